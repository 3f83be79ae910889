"""
CLI tools for gqlreg.

This module provides command-line tools for:
- schema: Validate schema documents and check their compatibility

Invariants:
    - Tools work offline on schema files
"""

from .schema_cli import SchemaCLI

__all__ = ["SchemaCLI"]
