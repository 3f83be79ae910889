"""
Schema compatibility checking for gqlreg.

Schemas evolve by building a new registry that replaces the old one. This
module compares two validated registries and classifies every difference
by whether existing clients keep working:
- Removing types, fields, arguments, enum values, union members or
  interfaces breaks clients
- Changing a field's type is safe only when the new type is a subtype of the
  old one (output) or accepts everything the old one accepted (input)
- Adding a required argument or required input field breaks clients
- Additions, deprecations and description changes are safe

Invariants:
    - Both registries must be validated
    - Changes are reported in a deterministic order (sorted by type name)

Example:
    >>> from gqlreg.schema.compat import check_compatibility
    >>> changes = check_compatibility(old_registry, new_registry)
    >>> breaking = [c for c in changes if c.is_breaking]
    >>> if breaking:
    ...     raise CompatibilityError(breaking)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Dict, List, Optional, Sequence

from .errors import GqlRegError
from .registry import TypeRegistry
from .types import (
    EnumType,
    FieldDefinition,
    InputObjectType,
    InputValueDefinition,
    InterfaceType,
    ListType,
    NamedType,
    NonNullType,
    ObjectType,
    TypeRef,
    UnionType,
    get_named_type_name,
    type_ref_to_str,
)

logger = logging.getLogger(__name__)


class ChangeKind(Enum):
    """Types of schema changes."""
    # Non-breaking changes (allowed)
    TYPE_ADDED = auto()
    FIELD_ADDED = auto()
    OPTIONAL_ARG_ADDED = auto()
    OPTIONAL_INPUT_FIELD_ADDED = auto()
    ENUM_VALUE_ADDED = auto()
    UNION_MEMBER_ADDED = auto()
    INTERFACE_ADDED = auto()
    TYPE_CHANGED_SAFELY = auto()
    DEFAULT_VALUE_CHANGED = auto()
    FIELD_DEPRECATED = auto()
    ENUM_VALUE_DEPRECATED = auto()
    DESCRIPTION_CHANGED = auto()

    # Breaking changes (forbidden)
    TYPE_REMOVED = auto()
    TYPE_KIND_CHANGED = auto()
    FIELD_REMOVED = auto()
    FIELD_TYPE_CHANGED = auto()
    ARG_REMOVED = auto()
    ARG_TYPE_CHANGED = auto()
    REQUIRED_ARG_ADDED = auto()
    INPUT_FIELD_REMOVED = auto()
    INPUT_FIELD_TYPE_CHANGED = auto()
    REQUIRED_INPUT_FIELD_ADDED = auto()
    ENUM_VALUE_REMOVED = auto()
    UNION_MEMBER_REMOVED = auto()
    INTERFACE_REMOVED = auto()

    @property
    def is_breaking(self) -> bool:
        """Whether this change kind is a breaking change."""
        breaking_kinds = {
            ChangeKind.TYPE_REMOVED,
            ChangeKind.TYPE_KIND_CHANGED,
            ChangeKind.FIELD_REMOVED,
            ChangeKind.FIELD_TYPE_CHANGED,
            ChangeKind.ARG_REMOVED,
            ChangeKind.ARG_TYPE_CHANGED,
            ChangeKind.REQUIRED_ARG_ADDED,
            ChangeKind.INPUT_FIELD_REMOVED,
            ChangeKind.INPUT_FIELD_TYPE_CHANGED,
            ChangeKind.REQUIRED_INPUT_FIELD_ADDED,
            ChangeKind.ENUM_VALUE_REMOVED,
            ChangeKind.UNION_MEMBER_REMOVED,
            ChangeKind.INTERFACE_REMOVED,
        }
        return self in breaking_kinds


@dataclass
class SchemaChange:
    """Represents a single schema change between versions.

    Attributes:
        kind: The type of change
        path: Path to the changed element (e.g., "Dog.name" or "Query.dog(id:)")
        old_value: Previous value (if applicable)
        new_value: New value (if applicable)
        message: Human-readable description of the change
    """
    kind: ChangeKind
    path: str
    old_value: Optional[Any] = None
    new_value: Optional[Any] = None
    message: str = ""

    @property
    def is_breaking(self) -> bool:
        """Whether this is a breaking change."""
        return self.kind.is_breaking

    def __str__(self) -> str:
        status = "BREAKING" if self.is_breaking else "OK"
        return f"[{status}] {self.kind.name}: {self.path} - {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.name,
            "path": self.path,
            "old_value": self.old_value,
            "new_value": self.new_value,
            "message": self.message,
            "is_breaking": self.is_breaking,
        }


class CompatibilityError(GqlRegError):
    """Raised when breaking schema changes are detected.

    Attributes:
        changes: List of breaking changes detected
    """

    def __init__(self, changes: Sequence[SchemaChange]):
        self.changes = list(changes)
        messages = [str(c) for c in self.changes]
        super().__init__(
            f"Schema compatibility check failed with {len(self.changes)} breaking change(s):\n"
            + "\n".join(messages),
            code="COMPATIBILITY_ERROR",
            details={"changes": [c.to_dict() for c in self.changes]},
        )


def check_compatibility(
    old_registry: TypeRegistry,
    new_registry: TypeRegistry,
) -> List[SchemaChange]:
    """Check compatibility between two schema versions.

    Args:
        old_registry: The baseline (currently deployed) schema
        new_registry: The new (to be deployed) schema

    Returns:
        List of SchemaChange objects describing all differences

    Raises:
        NotReadyError: If either registry is not validated
    """
    old_types: Dict[str, NamedType] = {t.name: t for t in old_registry.types()}
    new_types: Dict[str, NamedType] = {t.name: t for t in new_registry.types()}
    changes: List[SchemaChange] = []

    for name in sorted(old_types.keys() | new_types.keys()):
        old_type = old_types.get(name)
        new_type = new_types.get(name)

        if new_type is None:
            changes.append(SchemaChange(
                kind=ChangeKind.TYPE_REMOVED,
                path=name,
                old_value=old_type.kind.value,
                message=f"Type '{name}' was removed",
            ))
            continue
        if old_type is None:
            changes.append(SchemaChange(
                kind=ChangeKind.TYPE_ADDED,
                path=name,
                new_value=new_type.kind.value,
                message=f"Type '{name}' was added",
            ))
            continue
        if old_type.kind is not new_type.kind:
            changes.append(SchemaChange(
                kind=ChangeKind.TYPE_KIND_CHANGED,
                path=name,
                old_value=old_type.kind.value,
                new_value=new_type.kind.value,
                message=f"Type '{name}' changed from {old_type.kind.value} to {new_type.kind.value}",
            ))
            continue

        changes.extend(_check_type_diff(old_type, new_type))

    return changes


def _check_type_diff(old_type: NamedType, new_type: NamedType) -> List[SchemaChange]:
    """Check changes within a type whose kind is unchanged."""
    changes: List[SchemaChange] = []
    name = new_type.name

    if old_type.description != new_type.description:
        changes.append(SchemaChange(
            kind=ChangeKind.DESCRIPTION_CHANGED,
            path=name,
            old_value=old_type.description,
            new_value=new_type.description,
            message=f"Description of '{name}' changed",
        ))

    if isinstance(old_type, (ObjectType, InterfaceType)):
        changes.extend(_check_output_fields(old_type, new_type))
    if isinstance(old_type, ObjectType):
        changes.extend(_check_members(
            name,
            old_type.interface_names,
            new_type.interface_names,
            ChangeKind.INTERFACE_REMOVED,
            ChangeKind.INTERFACE_ADDED,
            "interface",
        ))
    elif isinstance(old_type, UnionType):
        changes.extend(_check_members(
            name,
            old_type.member_names,
            new_type.member_names,
            ChangeKind.UNION_MEMBER_REMOVED,
            ChangeKind.UNION_MEMBER_ADDED,
            "member",
        ))
    elif isinstance(old_type, EnumType):
        changes.extend(_check_enum_values(old_type, new_type))
    elif isinstance(old_type, InputObjectType):
        changes.extend(_check_input_fields(old_type, new_type))

    return changes


def _check_output_fields(
    old_type: ObjectType | InterfaceType,
    new_type: ObjectType | InterfaceType,
) -> List[SchemaChange]:
    changes: List[SchemaChange] = []
    new_fields = {f.name: f for f in new_type.get_fields()}

    for old_field in old_type.get_fields():
        path = f"{old_type.name}.{old_field.name}"
        new_field = new_fields.pop(old_field.name, None)
        if new_field is None:
            changes.append(SchemaChange(
                kind=ChangeKind.FIELD_REMOVED,
                path=path,
                old_value=type_ref_to_str(old_field.type),
                message=f"Field '{path}' was removed",
            ))
            continue
        changes.extend(_check_field_diff(path, old_field, new_field))

    for new_field in new_fields.values():
        changes.append(SchemaChange(
            kind=ChangeKind.FIELD_ADDED,
            path=f"{new_type.name}.{new_field.name}",
            new_value=type_ref_to_str(new_field.type),
            message=f"Field '{new_type.name}.{new_field.name}' was added",
        ))
    return changes


def _check_field_diff(
    path: str, old_field: FieldDefinition, new_field: FieldDefinition
) -> List[SchemaChange]:
    changes: List[SchemaChange] = []

    if old_field.type != new_field.type:
        safe = _is_safe_output_change(old_field.type, new_field.type)
        changes.append(SchemaChange(
            kind=ChangeKind.TYPE_CHANGED_SAFELY if safe else ChangeKind.FIELD_TYPE_CHANGED,
            path=path,
            old_value=type_ref_to_str(old_field.type),
            new_value=type_ref_to_str(new_field.type),
            message=(
                f"Field '{path}' changed type from {type_ref_to_str(old_field.type)} "
                f"to {type_ref_to_str(new_field.type)}"
            ),
        ))

    if not old_field.is_deprecated and new_field.is_deprecated:
        changes.append(SchemaChange(
            kind=ChangeKind.FIELD_DEPRECATED,
            path=path,
            new_value=new_field.deprecation_reason,
            message=f"Field '{path}' was deprecated",
        ))

    if old_field.description != new_field.description:
        changes.append(SchemaChange(
            kind=ChangeKind.DESCRIPTION_CHANGED,
            path=path,
            old_value=old_field.description,
            new_value=new_field.description,
            message=f"Description of '{path}' changed",
        ))

    changes.extend(_check_input_values(
        path,
        old_field.args,
        new_field.args,
        removed=ChangeKind.ARG_REMOVED,
        type_changed=ChangeKind.ARG_TYPE_CHANGED,
        required_added=ChangeKind.REQUIRED_ARG_ADDED,
        optional_added=ChangeKind.OPTIONAL_ARG_ADDED,
        label="Argument",
        path_format="{owner}({name}:)",
    ))
    return changes


def _check_input_fields(old_type: InputObjectType, new_type: InputObjectType) -> List[SchemaChange]:
    return _check_input_values(
        old_type.name,
        old_type.get_fields(),
        new_type.get_fields(),
        removed=ChangeKind.INPUT_FIELD_REMOVED,
        type_changed=ChangeKind.INPUT_FIELD_TYPE_CHANGED,
        required_added=ChangeKind.REQUIRED_INPUT_FIELD_ADDED,
        optional_added=ChangeKind.OPTIONAL_INPUT_FIELD_ADDED,
        label="Input field",
        path_format="{owner}.{name}",
    )


def _check_input_values(
    owner: str,
    old_values: Sequence[InputValueDefinition],
    new_values: Sequence[InputValueDefinition],
    *,
    removed: ChangeKind,
    type_changed: ChangeKind,
    required_added: ChangeKind,
    optional_added: ChangeKind,
    label: str,
    path_format: str,
) -> List[SchemaChange]:
    """Check arguments or input object fields."""
    changes: List[SchemaChange] = []
    new_by_name = {v.name: v for v in new_values}

    for old_value in old_values:
        path = path_format.format(owner=owner, name=old_value.name)
        new_value = new_by_name.pop(old_value.name, None)
        if new_value is None:
            changes.append(SchemaChange(
                kind=removed,
                path=path,
                old_value=type_ref_to_str(old_value.type),
                message=f"{label} '{path}' was removed",
            ))
            continue

        if old_value.type != new_value.type:
            safe = _is_safe_input_change(old_value.type, new_value.type)
            changes.append(SchemaChange(
                kind=ChangeKind.TYPE_CHANGED_SAFELY if safe else type_changed,
                path=path,
                old_value=type_ref_to_str(old_value.type),
                new_value=type_ref_to_str(new_value.type),
                message=(
                    f"{label} '{path}' changed type from {type_ref_to_str(old_value.type)} "
                    f"to {type_ref_to_str(new_value.type)}"
                ),
            ))

        if old_value.has_default != new_value.has_default or (
            old_value.has_default and old_value.default_value != new_value.default_value
        ):
            changes.append(SchemaChange(
                kind=ChangeKind.DEFAULT_VALUE_CHANGED,
                path=path,
                old_value=old_value.default_value if old_value.has_default else None,
                new_value=new_value.default_value if new_value.has_default else None,
                message=f"{label} '{path}' changed its default value",
            ))

    for new_value in new_by_name.values():
        path = path_format.format(owner=owner, name=new_value.name)
        changes.append(SchemaChange(
            kind=required_added if new_value.is_required else optional_added,
            path=path,
            new_value=type_ref_to_str(new_value.type),
            message=(
                f"{'Required' if new_value.is_required else 'Optional'} "
                f"{label.lower()} '{path}' was added"
            ),
        ))
    return changes


def _check_enum_values(old_enum: EnumType, new_enum: EnumType) -> List[SchemaChange]:
    changes: List[SchemaChange] = []
    new_values = {v.name: v for v in new_enum.values}

    for old_value in old_enum.values:
        path = f"{old_enum.name}.{old_value.name}"
        new_value = new_values.pop(old_value.name, None)
        if new_value is None:
            changes.append(SchemaChange(
                kind=ChangeKind.ENUM_VALUE_REMOVED,
                path=path,
                old_value=old_value.name,
                message=f"Enum value '{path}' was removed",
            ))
        elif not old_value.is_deprecated and new_value.is_deprecated:
            changes.append(SchemaChange(
                kind=ChangeKind.ENUM_VALUE_DEPRECATED,
                path=path,
                new_value=new_value.deprecation_reason,
                message=f"Enum value '{path}' was deprecated",
            ))

    for new_value in new_values.values():
        changes.append(SchemaChange(
            kind=ChangeKind.ENUM_VALUE_ADDED,
            path=f"{new_enum.name}.{new_value.name}",
            new_value=new_value.name,
            message=f"Enum value '{new_enum.name}.{new_value.name}' was added",
        ))
    return changes


def _check_members(
    owner: str,
    old_names: Sequence[str],
    new_names: Sequence[str],
    removed: ChangeKind,
    added: ChangeKind,
    label: str,
) -> List[SchemaChange]:
    """Check interface claims of an object or members of a union."""
    changes: List[SchemaChange] = []
    for name in old_names:
        if name not in new_names:
            changes.append(SchemaChange(
                kind=removed,
                path=owner,
                old_value=name,
                message=f"'{owner}' no longer has {label} '{name}'",
            ))
    for name in new_names:
        if name not in old_names:
            changes.append(SchemaChange(
                kind=added,
                path=owner,
                new_value=name,
                message=f"'{owner}' gained {label} '{name}'",
            ))
    return changes


def _is_safe_output_change(old: TypeRef, new: TypeRef) -> bool:
    """A field type may only become more specific (e.g. gain NonNull)."""
    if isinstance(old, ListType):
        return (isinstance(new, ListType) and _is_safe_output_change(old.of_type, new.of_type)) or (
            isinstance(new, NonNullType) and _is_safe_output_change(old, new.of_type)
        )
    if isinstance(old, NonNullType):
        return isinstance(new, NonNullType) and _is_safe_output_change(old.of_type, new.of_type)
    if isinstance(new, NonNullType):
        return _is_safe_output_change(old, new.of_type)
    return not isinstance(new, ListType) and get_named_type_name(old) == get_named_type_name(new)


def _is_safe_input_change(old: TypeRef, new: TypeRef) -> bool:
    """An input type may only become more permissive (e.g. lose NonNull)."""
    if isinstance(old, ListType):
        return isinstance(new, ListType) and _is_safe_input_change(old.of_type, new.of_type)
    if isinstance(old, NonNullType):
        if isinstance(new, NonNullType):
            return _is_safe_input_change(old.of_type, new.of_type)
        return _is_safe_input_change(old.of_type, new)
    if isinstance(new, (ListType, NonNullType)):
        return False
    return get_named_type_name(old) == get_named_type_name(new)


def validate_breaking_changes(
    old_registry: TypeRegistry,
    new_registry: TypeRegistry,
) -> None:
    """Validate that there are no breaking changes.

    This is a convenience function for CI/CD pipelines.

    Raises:
        CompatibilityError: If breaking changes are detected
    """
    changes = check_compatibility(old_registry, new_registry)
    breaking = [c for c in changes if c.is_breaking]
    if breaking:
        raise CompatibilityError(breaking)
    logger.info(f"Schema compatibility check passed with {len(changes)} non-breaking changes")
