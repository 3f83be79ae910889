"""
Core type definitions for the gqlreg type system.

This module defines the named type kinds of a GraphQL schema and the
wrappers that modify them:
- ScalarType, ObjectType, InterfaceType, UnionType, EnumType, InputObjectType
- ListType and NonNullType wrappers
- FieldDefinition and InputValueDefinition for fields and arguments

Type references (``TypeRef``) are either a type name, a named type instance,
or a wrapper around another reference. References are resolved by name when a
registry is frozen, so definitions may refer to types declared later.

Invariants:
    - Definitions are immutable once created (frozen dataclasses, tuples)
    - NonNullType never directly wraps another NonNullType
    - Named types compare and hash by kind and name
    - Field collections given as a callable are evaluated only on request

Example:
    >>> from gqlreg.schema.types import ObjectType, field, non_null
    >>> Dog = ObjectType(
    ...     name="Dog",
    ...     fields=(
    ...         field("name", non_null("String")),
    ...         field("barks", "Boolean"),
    ...     ),
    ...     interfaces=("Named",),
    ... )
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field as dataclass_field
from enum import Enum
from typing import Any, Callable, ClassVar, Iterable, Optional, Union

from .errors import CoercionError, Rule, SchemaValidationError
from .literals import ValueKind, ValueNode


class TypeKind(Enum):
    """Tags of the named type variants."""

    SCALAR = "scalar"
    OBJECT = "object"
    INTERFACE = "interface"
    UNION = "union"
    ENUM = "enum"
    INPUT_OBJECT = "input_object"

    @property
    def is_input_safe(self) -> bool:
        """Whether types of this kind may appear in argument and input positions."""
        return self in (TypeKind.SCALAR, TypeKind.ENUM, TypeKind.INPUT_OBJECT)

    @property
    def is_output_safe(self) -> bool:
        """Whether types of this kind may appear as field result types."""
        return self is not TypeKind.INPUT_OBJECT

    @property
    def is_abstract(self) -> bool:
        return self in (TypeKind.INTERFACE, TypeKind.UNION)

    @classmethod
    def from_str(cls, value: str) -> TypeKind:
        """Convert string representation to TypeKind.

        Raises:
            ValueError: If value is not a valid type kind
        """
        for kind in cls:
            if kind.value == value:
                return kind
        valid = [k.value for k in cls]
        raise ValueError(f"Invalid type kind '{value}'. Valid kinds: {valid}")


class _Unset:
    """Marker for "no default value" (``None`` is a legitimate default)."""

    _instance: Optional[_Unset] = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


# Wrappers


@dataclass(frozen=True)
class ListType:
    """List wrapper: a value is a list of ``of_type`` values."""

    of_type: TypeRef

    def __str__(self) -> str:
        return f"[{type_ref_to_str(self.of_type)}]"


@dataclass(frozen=True)
class NonNullType:
    """Non-null wrapper: a value of ``of_type`` that is never null.

    Raises:
        SchemaValidationError: If ``of_type`` is itself a NonNullType
    """

    of_type: TypeRef

    def __post_init__(self) -> None:
        if isinstance(self.of_type, NonNullType):
            inner = type_ref_to_str(self.of_type)
            raise SchemaValidationError(
                f"NonNull cannot wrap another NonNull ({inner}!)",
                rule=Rule.DOUBLE_NON_NULL,
                type_name=get_named_type_name(self.of_type),
            )

    def __str__(self) -> str:
        return f"{type_ref_to_str(self.of_type)}!"


def list_of(of_type: TypeRef) -> ListType:
    return ListType(of_type)


def non_null(of_type: TypeRef) -> NonNullType:
    return NonNullType(of_type)


# Fields and input values


@dataclass(frozen=True)
class InputValueDefinition:
    """An argument or input object field.

    Attributes:
        name: Argument or field name
        type: Input type reference
        default_value: Default used when the value is omitted (UNSET for none)
        description: Human-readable description
        deprecation_reason: Set when the input value is deprecated
    """

    name: str
    type: TypeRef
    default_value: Any = UNSET
    description: str = ""
    deprecation_reason: Optional[str] = None

    @property
    def has_default(self) -> bool:
        return self.default_value is not UNSET

    @property
    def is_required(self) -> bool:
        """Required values are non-null and have no default."""
        return isinstance(self.type, NonNullType) and not self.has_default

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation for serialization."""
        result: dict[str, Any] = {
            "name": self.name,
            "type": type_ref_to_str(self.type),
        }
        if self.has_default:
            result["default_value"] = self.default_value
        if self.description:
            result["description"] = self.description
        if self.deprecation_reason is not None:
            result["deprecation_reason"] = self.deprecation_reason
        return result


@dataclass(frozen=True)
class FieldDefinition:
    """A field of an object or interface.

    Attributes:
        name: Field name
        type: Output type reference
        args: Arguments, in declaration order
        description: Human-readable description
        deprecation_reason: Set when the field is deprecated
    """

    name: str
    type: TypeRef
    args: tuple[InputValueDefinition, ...] = dataclass_field(default_factory=tuple)
    description: str = ""
    deprecation_reason: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.args, tuple):
            object.__setattr__(self, "args", tuple(self.args))

    @property
    def is_deprecated(self) -> bool:
        return self.deprecation_reason is not None

    def get_arg(self, name: str) -> Optional[InputValueDefinition]:
        for arg in self.args:
            if arg.name == name:
                return arg
        return None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "type": type_ref_to_str(self.type),
        }
        if self.args:
            result["args"] = [a.to_dict() for a in self.args]
        if self.description:
            result["description"] = self.description
        if self.deprecation_reason is not None:
            result["deprecation_reason"] = self.deprecation_reason
        return result


def field(
    name: str,
    type_: TypeRef,
    *,
    args: Iterable[InputValueDefinition] = (),
    description: str = "",
    deprecation_reason: Optional[str] = None,
) -> FieldDefinition:
    """Convenience function to create a FieldDefinition.

    Example:
        >>> hero = field("hero", "Character", args=(argument("episode", "Episode"),))
    """
    return FieldDefinition(
        name=name,
        type=type_,
        args=tuple(args),
        description=description,
        deprecation_reason=deprecation_reason,
    )


def argument(
    name: str,
    type_: TypeRef,
    *,
    default_value: Any = UNSET,
    description: str = "",
    deprecation_reason: Optional[str] = None,
) -> InputValueDefinition:
    """Convenience function to create an argument or input field."""
    return InputValueDefinition(
        name=name,
        type=type_,
        default_value=default_value,
        description=description,
        deprecation_reason=deprecation_reason,
    )


input_field = argument


FieldsThunk = Callable[[], Iterable[Any]]


class _NamedTypeMixin:
    """Equality, hashing and field access shared by the named type variants."""

    kind: ClassVar[TypeKind]
    name: str
    description: str

    def __hash__(self) -> int:
        return hash((self.kind, self.name))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, _NamedTypeMixin):
            return NotImplemented
        return self.kind is other.kind and self.name == other.name

    def __str__(self) -> str:
        return self.name


class _FieldsMixin(_NamedTypeMixin):
    fields: Any

    @property
    def fields_resolved(self) -> bool:
        """False while the fields are still an unevaluated callable."""
        return not callable(self.fields)

    def get_fields(self) -> tuple:
        """Fields in declaration order, evaluating a thunk if needed."""
        if callable(self.fields):
            return tuple(self.fields())
        return self.fields

    def get_field(self, name: str) -> Any:
        for f in self.get_fields():
            if f.name == name:
                return f
        return None

    def get_field_names(self) -> list[str]:
        return [f.name for f in self.get_fields()]

    def _normalize_fields(self) -> None:
        if not callable(self.fields) and not isinstance(self.fields, tuple):
            object.__setattr__(self, "fields", tuple(self.fields))


# Named types


@dataclass(frozen=True, eq=False)
class ScalarType(_NamedTypeMixin):
    """Leaf type holding a single primitive-like value.

    Custom scalars provide their own coercion triple. ``ValueError`` and
    ``TypeError`` raised by the callables are reported as ``CoercionError``.
    When ``literal_parser`` is omitted, the literal's Python value is passed
    to ``value_parser``.

    Attributes:
        name: Type name
        serializer: Internal value -> JSON-compatible result value
        value_parser: Variable (JSON) input -> internal value
        literal_parser: ValueNode -> internal value
        description: Human-readable description
        specified_by_url: Optional URL of the scalar's specification
    """

    kind: ClassVar[TypeKind] = TypeKind.SCALAR

    name: str
    serializer: Callable[[Any], Any] = dataclass_field(default=lambda value: value)
    value_parser: Callable[[Any], Any] = dataclass_field(default=lambda value: value)
    literal_parser: Optional[Callable[[ValueNode], Any]] = None
    description: str = ""
    specified_by_url: Optional[str] = None

    def serialize(self, value: Any) -> Any:
        try:
            return self.serializer(value)
        except CoercionError:
            raise
        except (ValueError, TypeError) as err:
            raise CoercionError(
                f"{self.name} cannot represent value {value!r}: {err}", self.name, value
            ) from err

    def parse_value(self, value: Any) -> Any:
        try:
            return self.value_parser(value)
        except CoercionError:
            raise
        except (ValueError, TypeError) as err:
            raise CoercionError(
                f"{self.name} cannot represent value {value!r}: {err}", self.name, value
            ) from err

    def parse_literal(self, node: ValueNode) -> Any:
        try:
            if self.literal_parser is not None:
                return self.literal_parser(node)
            return self.parse_value(literal_to_python(node))
        except CoercionError:
            raise
        except (ValueError, TypeError) as err:
            raise CoercionError(
                f"{self.name} cannot represent literal {node}: {err}", self.name, node
            ) from err

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"kind": self.kind.value, "name": self.name}
        if self.description:
            result["description"] = self.description
        if self.specified_by_url:
            result["specified_by_url"] = self.specified_by_url
        return result


@dataclass(frozen=True, eq=False)
class ObjectType(_FieldsMixin):
    """Composite output type with named, typed fields.

    Attributes:
        name: Type name
        fields: Field definitions, or a callable returning them
        interfaces: Names (or instances) of the interfaces this object implements
        is_type_of: Optional predicate an execution engine may use to decide
            whether a runtime value belongs to this type; never called here
        description: Human-readable description
    """

    kind: ClassVar[TypeKind] = TypeKind.OBJECT

    name: str
    fields: Union[tuple[FieldDefinition, ...], FieldsThunk] = dataclass_field(
        default_factory=tuple
    )
    interfaces: tuple[Union[str, InterfaceType], ...] = dataclass_field(default_factory=tuple)
    is_type_of: Optional[Callable[[Any], bool]] = None
    description: str = ""

    def __post_init__(self) -> None:
        self._normalize_fields()
        if not isinstance(self.interfaces, tuple):
            object.__setattr__(self, "interfaces", tuple(self.interfaces))

    @property
    def interface_names(self) -> tuple[str, ...]:
        return tuple(get_named_type_name(i) for i in self.interfaces)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "kind": self.kind.value,
            "name": self.name,
            "fields": [f.to_dict() for f in self.get_fields()],
        }
        if self.interfaces:
            result["interfaces"] = list(self.interface_names)
        if self.description:
            result["description"] = self.description
        return result


@dataclass(frozen=True, eq=False)
class InterfaceType(_FieldsMixin):
    """Named field contract that object types may implement."""

    kind: ClassVar[TypeKind] = TypeKind.INTERFACE

    name: str
    fields: Union[tuple[FieldDefinition, ...], FieldsThunk] = dataclass_field(
        default_factory=tuple
    )
    description: str = ""

    def __post_init__(self) -> None:
        self._normalize_fields()

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "kind": self.kind.value,
            "name": self.name,
            "fields": [f.to_dict() for f in self.get_fields()],
        }
        if self.description:
            result["description"] = self.description
        return result


@dataclass(frozen=True, eq=False)
class UnionType(_NamedTypeMixin):
    """Output type that is exactly one of a fixed set of object types.

    Attributes:
        name: Type name
        types: Member object names (or instances), in declaration order
        resolve_type: Optional callable mapping a runtime value to a member
            name; stored for the execution engine, never called here
        description: Human-readable description
    """

    kind: ClassVar[TypeKind] = TypeKind.UNION

    name: str
    types: tuple[Union[str, ObjectType], ...] = dataclass_field(default_factory=tuple)
    resolve_type: Optional[Callable[[Any], str]] = None
    description: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.types, tuple):
            object.__setattr__(self, "types", tuple(self.types))

    @property
    def member_names(self) -> tuple[str, ...]:
        return tuple(get_named_type_name(t) for t in self.types)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "kind": self.kind.value,
            "name": self.name,
            "types": list(self.member_names),
        }
        if self.description:
            result["description"] = self.description
        return result


@dataclass(frozen=True)
class EnumValueDefinition:
    """A symbolic enum value.

    Attributes:
        name: Symbolic name, as it appears in documents and responses
        value: Underlying internal value (defaults to the name)
        description: Human-readable description
        deprecation_reason: Set when the value is deprecated
    """

    name: str
    value: Any = UNSET
    description: str = ""
    deprecation_reason: Optional[str] = None

    def __post_init__(self) -> None:
        if self.value is UNSET:
            object.__setattr__(self, "value", self.name)

    @property
    def is_deprecated(self) -> bool:
        return self.deprecation_reason is not None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"name": self.name}
        if self.value != self.name:
            result["value"] = self.value
        if self.description:
            result["description"] = self.description
        if self.deprecation_reason is not None:
            result["deprecation_reason"] = self.deprecation_reason
        return result


@dataclass(frozen=True, eq=False)
class EnumType(_NamedTypeMixin):
    """Fixed set of named symbolic values.

    Values may be given as EnumValueDefinition instances or bare names.
    Duplicate names are representable here and rejected when the registry
    is frozen.

    Example:
        >>> Episode = EnumType.from_mapping("Episode", {"NEWHOPE": 4, "EMPIRE": 5, "JEDI": 6})
        >>> Episode.parse_value("EMPIRE")
        5
        >>> Episode.serialize(6)
        'JEDI'
    """

    kind: ClassVar[TypeKind] = TypeKind.ENUM

    name: str
    values: tuple[EnumValueDefinition, ...] = dataclass_field(default_factory=tuple)
    description: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "values",
            tuple(
                v if isinstance(v, EnumValueDefinition) else EnumValueDefinition(name=v)
                for v in self.values
            ),
        )

    @classmethod
    def from_mapping(cls, name: str, values: dict[str, Any], description: str = "") -> EnumType:
        """Create an enum from a ``{symbolic_name: underlying_value}`` mapping."""
        return cls(
            name=name,
            values=tuple(EnumValueDefinition(name=k, value=v) for k, v in values.items()),
            description=description,
        )

    def get_value(self, name: str) -> Optional[EnumValueDefinition]:
        """Look up a value definition by symbolic name."""
        for v in self.values:
            if v.name == name:
                return v
        return None

    def get_value_names(self) -> list[str]:
        return [v.name for v in self.values]

    def serialize(self, value: Any) -> str:
        """Map an underlying value to its symbolic name."""
        for v in self.values:
            # bools only match bools, never 0 or 1
            if isinstance(v.value, bool) != isinstance(value, bool):
                continue
            if v.value == value:
                return v.name
        raise CoercionError(f"Enum '{self.name}' cannot represent value {value!r}", self.name, value)

    def parse_value(self, value: Any) -> Any:
        """Map a symbolic name (variable input) to its underlying value."""
        if isinstance(value, str):
            enum_value = self.get_value(value)
            if enum_value is not None:
                return enum_value.value
        raise CoercionError(
            f"Value {value!r} does not exist in '{self.name}' enum", self.name, value
        )

    def parse_literal(self, node: ValueNode) -> Any:
        if node.kind != ValueKind.ENUM:
            raise CoercionError(
                f"Enum '{self.name}' cannot represent non-enum literal {node}", self.name, node
            )
        return self.parse_value(node.value)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "kind": self.kind.value,
            "name": self.name,
            "values": [v.to_dict() for v in self.values],
        }
        if self.description:
            result["description"] = self.description
        return result


@dataclass(frozen=True, eq=False)
class InputObjectType(_FieldsMixin):
    """Composite type usable only in input positions."""

    kind: ClassVar[TypeKind] = TypeKind.INPUT_OBJECT

    name: str
    fields: Union[tuple[InputValueDefinition, ...], FieldsThunk] = dataclass_field(
        default_factory=tuple
    )
    description: str = ""

    def __post_init__(self) -> None:
        self._normalize_fields()

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "kind": self.kind.value,
            "name": self.name,
            "fields": [f.to_dict() for f in self.get_fields()],
        }
        if self.description:
            result["description"] = self.description
        return result


NamedType = Union[ScalarType, ObjectType, InterfaceType, UnionType, EnumType, InputObjectType]
TypeRef = Union[str, NamedType, ListType, NonNullType]

NAMED_TYPE_CLASSES = (ScalarType, ObjectType, InterfaceType, UnionType, EnumType, InputObjectType)


# Type reference helpers


def is_named_type(value: Any) -> bool:
    return isinstance(value, NAMED_TYPE_CLASSES)


def is_wrapping_type(ref: Any) -> bool:
    return isinstance(ref, (ListType, NonNullType))


def unwrap(ref: TypeRef) -> Union[str, NamedType]:
    """Strip every List and NonNull wrapper from a reference."""
    while isinstance(ref, (ListType, NonNullType)):
        ref = ref.of_type
    return ref


def nullable(ref: TypeRef) -> TypeRef:
    """Strip one NonNull wrapper, if present."""
    if isinstance(ref, NonNullType):
        return ref.of_type
    return ref


def get_named_type_name(ref: TypeRef) -> str:
    """Name of the named type at the core of a reference."""
    base = unwrap(ref)
    if isinstance(base, str):
        return base
    if is_named_type(base):
        return base.name
    raise TypeError(f"Not a type reference: {ref!r}")


def type_ref_to_str(ref: TypeRef) -> str:
    """Render a reference in wrapper notation, e.g. ``[String!]!``."""
    if isinstance(ref, ListType):
        return f"[{type_ref_to_str(ref.of_type)}]"
    if isinstance(ref, NonNullType):
        return f"{type_ref_to_str(ref.of_type)}!"
    return get_named_type_name(ref)


def normalize_type_ref(ref: TypeRef) -> TypeRef:
    """Replace named type instances with their names, keeping wrappers."""
    if isinstance(ref, ListType):
        return ListType(normalize_type_ref(ref.of_type))
    if isinstance(ref, NonNullType):
        return NonNullType(normalize_type_ref(ref.of_type))
    return get_named_type_name(ref)


def parse_type_ref(text: str) -> TypeRef:
    """Parse wrapper notation (``[[Int!]]!``) into a TypeRef of names.

    Only type references are accepted here; full schema documents are not.

    Raises:
        ValueError: If the text is not a well-formed type reference
        SchemaValidationError: If the reference contains ``!!``
    """
    source = text.strip()
    ref, pos = _parse_type_ref_at(source, 0)
    if pos != len(source):
        raise ValueError(f"Unexpected '{source[pos:]}' in type reference '{text}'")
    return ref


def _parse_type_ref_at(source: str, pos: int) -> tuple[TypeRef, int]:
    if pos >= len(source):
        raise ValueError(f"Unexpected end of type reference '{source}'")

    ref: TypeRef
    if source[pos] == "[":
        inner, pos = _parse_type_ref_at(source, pos + 1)
        if pos >= len(source) or source[pos] != "]":
            raise ValueError(f"Missing ']' in type reference '{source}'")
        ref = ListType(inner)
        pos += 1
    else:
        start = pos
        while pos < len(source) and (source[pos].isalnum() or source[pos] == "_"):
            pos += 1
        if start == pos:
            raise ValueError(f"Expected a type name at position {start} in '{source}'")
        ref = source[start:pos]

    while pos < len(source) and source[pos] == "!":
        ref = NonNullType(ref)
        pos += 1
    return ref, pos


def literal_to_python(node: ValueNode) -> Any:
    """Plain Python value of a literal, without any type-directed coercion."""
    if node.kind == ValueKind.INT:
        return int(node.value)
    if node.kind == ValueKind.FLOAT:
        return float(node.value)
    if node.kind == ValueKind.LIST:
        return [literal_to_python(v) for v in node.value]
    if node.kind == ValueKind.OBJECT:
        return {k: literal_to_python(v) for k, v in node.value}
    if node.kind == ValueKind.NULL:
        return None
    if node.kind == ValueKind.VARIABLE:
        raise ValueError(f"Variable ${node.value} has no literal value")
    return node.value
