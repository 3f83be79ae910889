"""
Schema module for gqlreg.

This module provides the GraphQL type system core, including:
- Type definitions (ScalarType, ObjectType, InterfaceType, UnionType,
  EnumType, InputObjectType, ListType, NonNullType)
- Built-in scalars (Int, Float, String, Boolean, ID)
- Type registry with validation and compatibility queries
- Compatibility checking for schema evolution
- Loading of YAML/JSON schema documents

Invariants:
    - Definitions are immutable once created
    - A registry is usable only after a successful freeze()
    - A validated registry is never mutated; evolve by building a new one

How to change safely:
    - Build the new registry completely before publishing it
    - Run check_compatibility against the deployed registry first
    - Deprecate fields and enum values before removing them
"""

from .compat import (
    ChangeKind,
    CompatibilityError,
    SchemaChange,
    check_compatibility,
    validate_breaking_changes,
)
from .errors import (
    CoercionError,
    DuplicateNameError,
    GqlRegError,
    NotReadyError,
    RegistryFrozenError,
    Rule,
    SchemaFormatError,
    SchemaValidationError,
    UnknownTypeError,
    Violation,
)
from .literals import ValueKind, ValueNode
from .registry import (
    RegistryState,
    TypeRegistry,
    build_registry,
    get_registry,
    publish_registry,
    reset_registry,
)
from .scalars import BUILTIN_SCALARS, ID, Boolean, Float, Int, String
from .schema_format import load_schema_file, parse_json, parse_yaml, types_from_dict
from .types import (
    UNSET,
    EnumType,
    EnumValueDefinition,
    FieldDefinition,
    InputObjectType,
    InputValueDefinition,
    InterfaceType,
    ListType,
    NamedType,
    NonNullType,
    ObjectType,
    ScalarType,
    TypeKind,
    TypeRef,
    UnionType,
    argument,
    field,
    input_field,
    list_of,
    non_null,
    parse_type_ref,
    type_ref_to_str,
)

__all__ = [
    # Types
    "TypeKind",
    "ScalarType",
    "ObjectType",
    "InterfaceType",
    "UnionType",
    "EnumType",
    "EnumValueDefinition",
    "InputObjectType",
    "FieldDefinition",
    "InputValueDefinition",
    "ListType",
    "NonNullType",
    "NamedType",
    "TypeRef",
    "UNSET",
    "field",
    "argument",
    "input_field",
    "list_of",
    "non_null",
    "parse_type_ref",
    "type_ref_to_str",
    # Scalars
    "Int",
    "Float",
    "String",
    "Boolean",
    "ID",
    "BUILTIN_SCALARS",
    # Literals
    "ValueKind",
    "ValueNode",
    # Registry
    "TypeRegistry",
    "RegistryState",
    "build_registry",
    "get_registry",
    "publish_registry",
    "reset_registry",
    # Errors
    "GqlRegError",
    "UnknownTypeError",
    "DuplicateNameError",
    "SchemaValidationError",
    "CoercionError",
    "NotReadyError",
    "RegistryFrozenError",
    "SchemaFormatError",
    "Rule",
    "Violation",
    # Compatibility
    "SchemaChange",
    "ChangeKind",
    "CompatibilityError",
    "check_compatibility",
    "validate_breaking_changes",
    # Documents
    "types_from_dict",
    "parse_yaml",
    "parse_json",
    "load_schema_file",
]
