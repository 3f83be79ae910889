"""
gqlreg Test Suite.

This package contains:
- unit/: Unit tests (no external dependencies beyond the package's own)
"""
