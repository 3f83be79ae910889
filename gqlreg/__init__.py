"""
gqlreg - GraphQL type registry and validator.

This package owns the named types of a GraphQL schema:
- Scalar, Object, Interface, Union, Enum and InputObject definitions
- List and NonNull wrappers
- A registry that resolves and validates definitions once, then answers
  type-compatibility queries for an execution engine

Query parsing, execution and transport are handled elsewhere; they consume
a validated registry.

Invariants:
    - A registry is built once, validated once, then read-only
    - Schema evolution replaces the whole registry
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
