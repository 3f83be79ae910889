"""
YAML/JSON schema documents for gqlreg.

A schema document is an already-parsed structure describing named types.
Documents are validated with pydantic before definitions are built, so a
malformed document fails with a SchemaFormatError listing every problem.
Type references use wrapper notation (``String``, ``[Int!]``, ``[[ID]!]!``).

Example document:
    version: 1
    types:
      - kind: interface
        name: Named
        fields:
          - name: name
            type: String
      - kind: object
        name: Dog
        interfaces: [Named]
        fields:
          - name: name
            type: String
          - name: barks
            type: Boolean
      - kind: enum
        name: Episode
        values:
          - name: NEWHOPE
            value: 4
          - EMPIRE
      - kind: union
        name: Pet
        types: [Dog]

Scalars declared in a document pass values through unchanged; custom
coercion needs a ScalarType built in code.

Invariants:
    - ``TypeRegistry.to_dict()`` output loads back to an equal schema
    - Documents wrapped as ``{"schema": {...}}`` (CLI snapshots) are accepted
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Literal, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError

from .errors import SchemaFormatError
from .types import (
    UNSET,
    EnumType,
    EnumValueDefinition,
    FieldDefinition,
    InputObjectType,
    InputValueDefinition,
    InterfaceType,
    NamedType,
    ObjectType,
    ScalarType,
    TypeKind,
    TypeRef,
    UnionType,
    parse_type_ref,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Document Models
# =============================================================================


class InputValueDocument(BaseModel):
    """An argument or input object field."""

    name: str = Field(..., description="Argument or field name")
    type: str = Field(..., description="Type reference, e.g. [String!]")
    default_value: Any = Field(None, description="Default value")
    description: str = Field("", description="Human-readable description")
    deprecation_reason: Optional[str] = Field(None, description="Set when deprecated")


class FieldDocument(BaseModel):
    """A field of an object, interface or input object.

    ``args`` applies to object and interface fields, ``default_value`` to
    input object fields.
    """

    name: str = Field(..., description="Field name")
    type: str = Field(..., description="Type reference, e.g. [String!]")
    args: list[InputValueDocument] = Field(default_factory=list)
    default_value: Any = Field(None, description="Default value (input object fields)")
    description: str = Field("", description="Human-readable description")
    deprecation_reason: Optional[str] = Field(None, description="Set when deprecated")


class EnumValueDocument(BaseModel):
    """A symbolic enum value."""

    name: str = Field(..., description="Symbolic name")
    value: Any = Field(None, description="Underlying value (defaults to the name)")
    description: str = Field("", description="Human-readable description")
    deprecation_reason: Optional[str] = Field(None, description="Set when deprecated")


class TypeDocument(BaseModel):
    """One named type; which attributes apply depends on ``kind``."""

    kind: Literal["scalar", "object", "interface", "union", "enum", "input_object"]
    name: str = Field(..., description="Type name")
    description: str = Field("", description="Human-readable description")
    fields: list[FieldDocument] = Field(default_factory=list)
    interfaces: list[str] = Field(default_factory=list)
    types: list[str] = Field(default_factory=list, description="Union members")
    values: list[Union[EnumValueDocument, str]] = Field(default_factory=list)
    specified_by_url: Optional[str] = None


class SchemaDocument(BaseModel):
    """A complete schema document."""

    version: int = Field(1, description="Document format version")
    types: list[TypeDocument] = Field(default_factory=list)


# =============================================================================
# Conversion
# =============================================================================


def _type_ref(text: str, where: str) -> TypeRef:
    try:
        return parse_type_ref(text)
    except ValueError as err:
        raise SchemaFormatError(f"Invalid type reference at {where}: {err}", [str(err)]) from err


def _input_value(doc: Union[InputValueDocument, FieldDocument], where: str) -> InputValueDefinition:
    default = doc.default_value if "default_value" in doc.model_fields_set else UNSET
    return InputValueDefinition(
        name=doc.name,
        type=_type_ref(doc.type, where),
        default_value=default,
        description=doc.description,
        deprecation_reason=doc.deprecation_reason,
    )


def _field(doc: FieldDocument, type_name: str) -> FieldDefinition:
    where = f"{type_name}.{doc.name}"
    return FieldDefinition(
        name=doc.name,
        type=_type_ref(doc.type, where),
        args=tuple(_input_value(a, f"{where}({a.name}:)") for a in doc.args),
        description=doc.description,
        deprecation_reason=doc.deprecation_reason,
    )


def _enum_value(doc: Union[EnumValueDocument, str]) -> EnumValueDefinition:
    if isinstance(doc, str):
        return EnumValueDefinition(name=doc)
    value = doc.value if "value" in doc.model_fields_set else UNSET
    return EnumValueDefinition(
        name=doc.name,
        value=value,
        description=doc.description,
        deprecation_reason=doc.deprecation_reason,
    )


def type_from_document(doc: TypeDocument) -> NamedType:
    """Build a named type definition from a validated document entry."""
    kind = TypeKind.from_str(doc.kind)

    if kind is TypeKind.SCALAR:
        return ScalarType(
            name=doc.name, description=doc.description, specified_by_url=doc.specified_by_url
        )
    if kind is TypeKind.OBJECT:
        return ObjectType(
            name=doc.name,
            fields=tuple(_field(f, doc.name) for f in doc.fields),
            interfaces=tuple(doc.interfaces),
            description=doc.description,
        )
    if kind is TypeKind.INTERFACE:
        return InterfaceType(
            name=doc.name,
            fields=tuple(_field(f, doc.name) for f in doc.fields),
            description=doc.description,
        )
    if kind is TypeKind.UNION:
        return UnionType(name=doc.name, types=tuple(doc.types), description=doc.description)
    if kind is TypeKind.ENUM:
        return EnumType(
            name=doc.name,
            values=tuple(_enum_value(v) for v in doc.values),
            description=doc.description,
        )
    return InputObjectType(
        name=doc.name,
        fields=tuple(_input_value(f, f"{doc.name}.{f.name}") for f in doc.fields),
        description=doc.description,
    )


def types_from_dict(data: dict[str, Any]) -> list[NamedType]:
    """Parse a schema document into named type definitions.

    Args:
        data: Document dict, optionally wrapped as ``{"schema": {...}}``

    Returns:
        Definitions in document order (not yet registered)

    Raises:
        SchemaFormatError: If the document is malformed
    """
    if not isinstance(data, dict):
        raise SchemaFormatError(f"Schema document must be a mapping, got {type(data).__name__}")
    schema_data = data.get("schema", data)

    try:
        document = SchemaDocument.model_validate(schema_data)
    except ValidationError as err:
        errors = [
            f"{'.'.join(str(part) for part in e['loc'])}: {e['msg']}" for e in err.errors()
        ]
        raise SchemaFormatError(
            f"Schema document is invalid ({len(errors)} error(s))", errors
        ) from err

    definitions = [type_from_document(t) for t in document.types]
    logger.debug(f"Parsed {len(definitions)} type definition(s) from schema document")
    return definitions


def parse_yaml(yaml_str: str) -> list[NamedType]:
    """Parse definitions from a YAML string (JSON is valid YAML too)."""
    try:
        data = yaml.safe_load(yaml_str)
    except yaml.YAMLError as err:
        raise SchemaFormatError(f"Schema document is not valid YAML: {err}") from err
    return types_from_dict(data or {})


def parse_json(json_str: str) -> list[NamedType]:
    """Parse definitions from a JSON string."""
    try:
        data = json.loads(json_str)
    except json.JSONDecodeError as err:
        raise SchemaFormatError(f"Schema document is not valid JSON: {err}") from err
    return types_from_dict(data or {})


def load_schema_file(path: Union[str, Path]) -> list[NamedType]:
    """Load definitions from a ``.json``, ``.yaml`` or ``.yml`` file."""
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    if path.suffix == ".json":
        return parse_json(text)
    return parse_yaml(text)


def to_yaml(data: dict[str, Any]) -> str:
    """Render a schema document (e.g. ``registry.to_dict()``) as YAML."""
    return yaml.safe_dump(data, default_flow_style=False, sort_keys=False)
