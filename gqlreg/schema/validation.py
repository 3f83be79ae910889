"""
Structural validation of a resolved set of named types.

The registry runs this pass once every reference is known to resolve. All
rules are checked and every violation is collected, so a failing schema
reports its problems in one go; the registry then refuses to become usable.

Rules (see ``Rule``):
    - Names match ``[_a-zA-Z][_a-zA-Z0-9]*`` and do not start with ``__``
    - Objects, interfaces and input objects declare at least one field,
      with unique field and argument names
    - Output positions hold output-safe types, input positions input-safe ones
    - NonNull never wraps NonNull
    - Objects satisfy every interface they claim
    - Unions list at least one member, and only object types
    - Enums declare at least one value, with unique names other than
      true/false/null
    - Input objects cannot reference themselves through non-null fields only
    - Default values of arguments and input fields are JSON-representable

Invariants:
    - Validation never mutates the types it inspects
    - Violations are reported in registration order, for deterministic errors
"""

from __future__ import annotations

import json
import logging
import re
from typing import Iterable, List, Mapping, Optional

from .errors import Rule, Violation
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
    TypeKind,
    TypeRef,
    UnionType,
    get_named_type_name,
    type_ref_to_str,
)

logger = logging.getLogger(__name__)

NAME_PATTERN = re.compile(r"^[_a-zA-Z][_a-zA-Z0-9]*$")
RESERVED_ENUM_VALUES = frozenset({"true", "false", "null"})


def collect_possible_types(types: Mapping[str, NamedType]) -> dict[str, frozenset[str]]:
    """Map each abstract type name to the object type names it may resolve to.

    Interfaces map to every object claiming them; unions map to their
    object members. Claims on non-interfaces and non-object union members are
    ignored here; validation reports them.
    """
    possible: dict[str, set[str]] = {
        name: set() for name, t in types.items() if t.kind.is_abstract
    }
    for t in types.values():
        if isinstance(t, ObjectType):
            for iface_name in t.interface_names:
                if iface_name in possible and types[iface_name].kind is TypeKind.INTERFACE:
                    possible[iface_name].add(t.name)
        elif isinstance(t, UnionType):
            for member in t.member_names:
                member_type = types.get(member)
                if member_type is not None and member_type.kind is TypeKind.OBJECT:
                    possible[t.name].add(member)
    return {name: frozenset(members) for name, members in possible.items()}


def is_subtype(
    types: Mapping[str, NamedType],
    possible: Mapping[str, frozenset[str]],
    maybe_subtype: TypeRef,
    super_type: TypeRef,
) -> bool:
    """Whether a value of ``maybe_subtype`` is always acceptable as ``super_type``.

    Both references must contain names only (see ``normalize_type_ref``).
    """
    if maybe_subtype == super_type:
        return True

    if isinstance(super_type, NonNullType):
        if isinstance(maybe_subtype, NonNullType):
            return is_subtype(types, possible, maybe_subtype.of_type, super_type.of_type)
        return False
    if isinstance(maybe_subtype, NonNullType):
        return is_subtype(types, possible, maybe_subtype.of_type, super_type)

    if isinstance(super_type, ListType):
        if isinstance(maybe_subtype, ListType):
            return is_subtype(types, possible, maybe_subtype.of_type, super_type.of_type)
        return False
    if isinstance(maybe_subtype, ListType):
        return False

    sub_name = get_named_type_name(maybe_subtype)
    super_name = get_named_type_name(super_type)
    if sub_name == super_name:
        return True
    if types[super_name].kind.is_abstract:
        return sub_name in possible.get(super_name, frozenset())
    return False


def validate_types(
    types: Mapping[str, NamedType],
    possible: Optional[Mapping[str, frozenset[str]]] = None,
) -> List[Violation]:
    """Check every structural rule against a resolved set of types.

    Args:
        types: Named types by name; field types and member references are
            names (as produced by registry resolution)
        possible: Possible-type map; computed when omitted

    Returns:
        List of violations (empty if valid)
    """
    if possible is None:
        possible = collect_possible_types(types)
    validator = _Validator(types, possible)
    for t in types.values():
        validator.validate_type(t)
    if validator.violations:
        logger.debug(f"Validation found {len(validator.violations)} violation(s)")
    return validator.violations


class _Validator:
    def __init__(
        self,
        types: Mapping[str, NamedType],
        possible: Mapping[str, frozenset[str]],
    ) -> None:
        self.types = types
        self.possible = possible
        self.violations: List[Violation] = []

    def report(self, rule: Rule, type_name: str, path: str, message: str) -> None:
        self.violations.append(Violation(rule, type_name, path, message))

    def validate_type(self, t: NamedType) -> None:
        self.check_name(t.name, t.name, t.name)

        if isinstance(t, (ObjectType, InterfaceType)):
            self.check_output_fields(t)
        if isinstance(t, ObjectType):
            self.check_interfaces(t)
        elif isinstance(t, UnionType):
            self.check_union(t)
        elif isinstance(t, EnumType):
            self.check_enum(t)
        elif isinstance(t, InputObjectType):
            self.check_input_object(t)

    # Names

    def check_name(self, name: str, type_name: str, path: str) -> None:
        if not NAME_PATTERN.match(name or ""):
            self.report(
                Rule.INVALID_NAME,
                type_name,
                path,
                f"Name '{name}' must match {NAME_PATTERN.pattern}",
            )
        elif name.startswith("__"):
            self.report(
                Rule.RESERVED_NAME,
                type_name,
                path,
                f"Name '{name}' must not begin with '__', which is reserved for introspection",
            )

    # Type references

    def check_ref(self, ref: TypeRef, type_name: str, path: str, *, input_position: bool) -> None:
        current = ref
        while isinstance(current, (ListType, NonNullType)):
            if isinstance(current, NonNullType) and isinstance(current.of_type, NonNullType):
                self.report(
                    Rule.DOUBLE_NON_NULL,
                    type_name,
                    path,
                    f"Type {type_ref_to_str(ref)} wraps NonNull in NonNull",
                )
                return
            current = current.of_type

        kind = self.types[get_named_type_name(ref)].kind
        if input_position and not kind.is_input_safe:
            self.report(
                Rule.INPUT_POSITION,
                type_name,
                path,
                f"Input position must be input-safe, got {kind.value} "
                f"type {type_ref_to_str(ref)}",
            )
        elif not input_position and not kind.is_output_safe:
            self.report(
                Rule.OUTPUT_POSITION,
                type_name,
                path,
                f"Output position must be output-safe, got {kind.value} "
                f"type {type_ref_to_str(ref)}",
            )

    # Objects and interfaces

    def check_output_fields(self, t: ObjectType | InterfaceType) -> None:
        fields = t.get_fields()
        if not fields:
            self.report(
                Rule.EMPTY_FIELDS, t.name, t.name, f"{t.kind.value} '{t.name}' must define fields"
            )
        seen: set[str] = set()
        for f in fields:
            path = f"{t.name}.{f.name}"
            if f.name in seen:
                self.report(Rule.DUPLICATE_FIELD, t.name, path, f"Field '{f.name}' is defined twice")
                continue
            seen.add(f.name)
            self.check_name(f.name, t.name, path)
            self.check_ref(f.type, t.name, path, input_position=False)
            self.check_args(t.name, path, f.args)

    def check_args(
        self, type_name: str, field_path: str, args: Iterable[InputValueDefinition]
    ) -> None:
        seen: set[str] = set()
        for arg in args:
            path = f"{field_path}({arg.name}:)"
            if arg.name in seen:
                self.report(
                    Rule.DUPLICATE_ARGUMENT, type_name, path, f"Argument '{arg.name}' is defined twice"
                )
                continue
            seen.add(arg.name)
            self.check_name(arg.name, type_name, path)
            self.check_ref(arg.type, type_name, path, input_position=True)
            self.check_default(arg, type_name, path)

    def check_default(self, value: InputValueDefinition, type_name: str, path: str) -> None:
        if not value.has_default:
            return
        try:
            json.dumps(value.default_value, allow_nan=False)
        except (TypeError, ValueError):
            self.report(
                Rule.NON_JSON_DEFAULT,
                type_name,
                path,
                f"Default value of {path} is not JSON-representable: {value.default_value!r}",
            )

    def check_interfaces(self, obj: ObjectType) -> None:
        seen: set[str] = set()
        for iface_name in obj.interface_names:
            path = f"{obj.name} implements {iface_name}"
            if iface_name in seen:
                self.report(
                    Rule.DUPLICATE_INTERFACE,
                    obj.name,
                    path,
                    f"Object '{obj.name}' claims interface '{iface_name}' more than once",
                )
                continue
            seen.add(iface_name)
            iface = self.types[iface_name]
            if not isinstance(iface, InterfaceType):
                self.report(
                    Rule.IMPLEMENTS_NON_INTERFACE,
                    obj.name,
                    path,
                    f"Object '{obj.name}' can only implement interfaces, "
                    f"'{iface_name}' is a {iface.kind.value}",
                )
                continue
            self.check_conformance(obj, iface)

    def check_conformance(self, obj: ObjectType, iface: InterfaceType) -> None:
        for iface_field in iface.get_fields():
            path = f"{obj.name}.{iface_field.name}"
            obj_field: Optional[FieldDefinition] = obj.get_field(iface_field.name)
            if obj_field is None:
                self.report(
                    Rule.INTERFACE_CONFORMANCE,
                    obj.name,
                    path,
                    f"Interface field {iface.name}.{iface_field.name} expected but "
                    f"{obj.name} does not provide it (missing field '{iface_field.name}')",
                )
                continue

            if not is_subtype(self.types, self.possible, obj_field.type, iface_field.type):
                self.report(
                    Rule.INTERFACE_CONFORMANCE,
                    obj.name,
                    path,
                    f"Interface field {iface.name}.{iface_field.name} expects type "
                    f"{type_ref_to_str(iface_field.type)} but {path} is type "
                    f"{type_ref_to_str(obj_field.type)}",
                )

            for iface_arg in iface_field.args:
                arg_path = f"{path}({iface_arg.name}:)"
                obj_arg = obj_field.get_arg(iface_arg.name)
                if obj_arg is None:
                    self.report(
                        Rule.INTERFACE_CONFORMANCE,
                        obj.name,
                        arg_path,
                        f"Interface field argument {iface.name}.{iface_field.name}"
                        f"({iface_arg.name}:) expected but {path} does not provide it",
                    )
                elif obj_arg.type != iface_arg.type:
                    self.report(
                        Rule.INTERFACE_CONFORMANCE,
                        obj.name,
                        arg_path,
                        f"Interface field argument {iface.name}.{iface_field.name}"
                        f"({iface_arg.name}:) expects type {type_ref_to_str(iface_arg.type)} "
                        f"but {arg_path} is type {type_ref_to_str(obj_arg.type)}",
                    )
                elif obj_arg.is_required != iface_arg.is_required:
                    expected = "required" if iface_arg.is_required else "optional"
                    actual = "required" if obj_arg.is_required else "optional"
                    self.report(
                        Rule.INTERFACE_CONFORMANCE,
                        obj.name,
                        arg_path,
                        f"Interface field argument {iface.name}.{iface_field.name}"
                        f"({iface_arg.name}:) is {expected} but {arg_path} is {actual}",
                    )

            for obj_arg in obj_field.args:
                if iface_field.get_arg(obj_arg.name) is None and obj_arg.is_required:
                    self.report(
                        Rule.INTERFACE_CONFORMANCE,
                        obj.name,
                        f"{path}({obj_arg.name}:)",
                        f"Object field {path} includes required argument '{obj_arg.name}' "
                        f"that is missing from interface field {iface.name}.{iface_field.name}",
                    )

    # Unions

    def check_union(self, union: UnionType) -> None:
        members = union.member_names
        if not members:
            self.report(
                Rule.EMPTY_UNION, union.name, union.name, f"Union '{union.name}' must have members"
            )
        seen: set[str] = set()
        for member in members:
            path = f"{union.name}|{member}"
            if member in seen:
                self.report(
                    Rule.DUPLICATE_UNION_MEMBER,
                    union.name,
                    path,
                    f"Union '{union.name}' includes '{member}' more than once",
                )
                continue
            seen.add(member)
            member_kind = self.types[member].kind
            if member_kind is not TypeKind.OBJECT:
                self.report(
                    Rule.UNION_MEMBER,
                    union.name,
                    path,
                    f"Union '{union.name}' can only include object types, "
                    f"'{member}' is a {member_kind.value}",
                )

    # Enums

    def check_enum(self, enum: EnumType) -> None:
        if not enum.values:
            self.report(
                Rule.EMPTY_ENUM, enum.name, enum.name, f"Enum '{enum.name}' must define values"
            )
        seen: set[str] = set()
        for value in enum.values:
            path = f"{enum.name}.{value.name}"
            if value.name in seen:
                self.report(
                    Rule.ENUM_DUPLICATE_VALUE,
                    enum.name,
                    path,
                    f"Enum '{enum.name}' defines value '{value.name}' more than once",
                )
                continue
            seen.add(value.name)
            if value.name in RESERVED_ENUM_VALUES:
                self.report(
                    Rule.ENUM_RESERVED_VALUE,
                    enum.name,
                    path,
                    f"Enum '{enum.name}' cannot include value '{value.name}'",
                )
            else:
                self.check_name(value.name, enum.name, path)

    # Input objects

    def check_input_object(self, input_type: InputObjectType) -> None:
        fields = input_type.get_fields()
        if not fields:
            self.report(
                Rule.EMPTY_FIELDS,
                input_type.name,
                input_type.name,
                f"Input object '{input_type.name}' must define fields",
            )
        seen: set[str] = set()
        for f in fields:
            path = f"{input_type.name}.{f.name}"
            if f.name in seen:
                self.report(
                    Rule.DUPLICATE_FIELD, input_type.name, path, f"Field '{f.name}' is defined twice"
                )
                continue
            seen.add(f.name)
            self.check_name(f.name, input_type.name, path)
            self.check_ref(f.type, input_type.name, path, input_position=True)
            self.check_default(f, input_type.name, path)

        cycle = self.find_required_cycle(input_type.name, [input_type.name], set())
        if cycle is not None:
            self.report(
                Rule.INPUT_OBJECT_CYCLE,
                input_type.name,
                ".".join(cycle),
                f"Input object '{input_type.name}' references itself through "
                f"non-null fields: {' -> '.join(cycle)}",
            )

    def find_required_cycle(
        self, origin: str, path: List[str], visited: set[str]
    ) -> Optional[List[str]]:
        current = self.types[path[-1]]
        if not isinstance(current, InputObjectType):
            return None
        visited.add(current.name)
        for f in current.get_fields():
            if not isinstance(f.type, NonNullType) or isinstance(f.type.of_type, ListType):
                continue
            target = get_named_type_name(f.type)
            if self.types[target].kind is not TypeKind.INPUT_OBJECT:
                continue
            if target == origin:
                return path + [f.name]
            if target in visited:
                continue
            found = self.find_required_cycle(origin, path + [f.name, target], visited)
            if found is not None:
                return found
        return None
