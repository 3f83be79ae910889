"""
Built-in scalar types.

Int, Float, String, Boolean and ID are always available to a registry. Their
coercion rules follow the GraphQL specification:
- Int is a signed 32-bit integer; non-integral floats and out-of-range
  magnitudes are rejected
- Float is a finite double; NaN and infinities are rejected
- Booleans are never accepted as numeric input (but serialize as 0/1)
- ID accepts strings and integers and always produces a string

Invariants:
    - Every rejected value raises CoercionError
    - Built-in instances are module singletons; identity is meaningful

Example:
    >>> Int.parse_value(7)
    7
    >>> ID.serialize(42)
    '42'
"""

from __future__ import annotations

import math
from typing import Any

from .errors import CoercionError
from .literals import ValueKind, ValueNode
from .types import ScalarType

# Limits of a signed 32-bit integer
MAX_INT = 2_147_483_647
MIN_INT = -2_147_483_648


def _is_finite(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(float(value))
    except OverflowError:
        # ints beyond the range of a double
        return False


def _is_integer(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value) and value.is_integer()


def _check_int_range(value: int, type_name: str = "Int") -> int:
    if not MIN_INT <= value <= MAX_INT:
        raise CoercionError(
            f"{type_name} cannot represent non 32-bit signed integer value: {value}",
            type_name,
            value,
        )
    return value


# Int


def serialize_int(value: Any) -> int:
    if isinstance(value, bool):
        return 1 if value else 0
    num = value
    if isinstance(value, str) and value.strip():
        try:
            num = int(value)
        except ValueError:
            try:
                num = float(value)
            except ValueError:
                raise CoercionError(
                    f"Int cannot represent non-integer value: {value!r}", "Int", value
                ) from None
    if not _is_integer(num):
        raise CoercionError(f"Int cannot represent non-integer value: {value!r}", "Int", value)
    return _check_int_range(int(num))


def parse_int_value(value: Any) -> int:
    if not _is_integer(value):
        raise CoercionError(f"Int cannot represent non-integer value: {value!r}", "Int", value)
    return _check_int_range(int(value))


def parse_int_literal(node: ValueNode) -> int:
    if node.kind != ValueKind.INT:
        raise CoercionError(f"Int cannot represent non-integer value: {node}", "Int", node)
    return _check_int_range(int(node.value))


# Float


def serialize_float(value: Any) -> float:
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    num = value
    if isinstance(value, str) and value.strip():
        try:
            num = float(value)
        except ValueError:
            raise CoercionError(
                f"Float cannot represent non numeric value: {value!r}", "Float", value
            ) from None
    if not _is_finite(num):
        raise CoercionError(f"Float cannot represent non numeric value: {value!r}", "Float", value)
    return float(num)


def parse_float_value(value: Any) -> float:
    if not _is_finite(value):
        raise CoercionError(f"Float cannot represent non numeric value: {value!r}", "Float", value)
    return float(value)


def parse_float_literal(node: ValueNode) -> float:
    if node.kind not in (ValueKind.INT, ValueKind.FLOAT):
        raise CoercionError(f"Float cannot represent non numeric value: {node}", "Float", node)
    result = float(node.value)
    if not math.isfinite(result):
        raise CoercionError(f"Float cannot represent non numeric value: {node}", "Float", node)
    return result


# String


def serialize_string(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if _is_integer(value):
        return str(int(value))
    if _is_finite(value):
        return str(value)
    raise CoercionError(f"String cannot represent value: {value!r}", "String", value)


def parse_string_value(value: Any) -> str:
    if not isinstance(value, str):
        raise CoercionError(f"String cannot represent a non string value: {value!r}", "String", value)
    return value


def parse_string_literal(node: ValueNode) -> str:
    if node.kind != ValueKind.STRING:
        raise CoercionError(f"String cannot represent a non string value: {node}", "String", node)
    return node.value


# Boolean


def serialize_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if _is_integer(value) or _is_finite(value):
        return value != 0
    raise CoercionError(f"Boolean cannot represent a non boolean value: {value!r}", "Boolean", value)


def parse_boolean_value(value: Any) -> bool:
    if not isinstance(value, bool):
        raise CoercionError(
            f"Boolean cannot represent a non boolean value: {value!r}", "Boolean", value
        )
    return value


def parse_boolean_literal(node: ValueNode) -> bool:
    if node.kind != ValueKind.BOOLEAN:
        raise CoercionError(f"Boolean cannot represent a non boolean value: {node}", "Boolean", node)
    return bool(node.value)


# ID


def serialize_id(value: Any) -> str:
    if isinstance(value, str):
        return value
    if _is_integer(value):
        return str(int(value))
    raise CoercionError(f"ID cannot represent value: {value!r}", "ID", value)


def parse_id_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    raise CoercionError(f"ID cannot represent value: {value!r}", "ID", value)


def parse_id_literal(node: ValueNode) -> str:
    if node.kind not in (ValueKind.STRING, ValueKind.INT):
        raise CoercionError(
            f"ID cannot represent a non-string and non-integer value: {node}", "ID", node
        )
    return str(node.value)


Int = ScalarType(
    name="Int",
    serializer=serialize_int,
    value_parser=parse_int_value,
    literal_parser=parse_int_literal,
    description="The `Int` scalar type represents non-fractional signed whole numeric values. "
    "Int can represent values between -(2^31) and 2^31 - 1.",
)

Float = ScalarType(
    name="Float",
    serializer=serialize_float,
    value_parser=parse_float_value,
    literal_parser=parse_float_literal,
    description="The `Float` scalar type represents signed double-precision fractional values.",
)

String = ScalarType(
    name="String",
    serializer=serialize_string,
    value_parser=parse_string_value,
    literal_parser=parse_string_literal,
    description="The `String` scalar type represents textual data, represented as UTF-8 "
    "character sequences.",
)

Boolean = ScalarType(
    name="Boolean",
    serializer=serialize_boolean,
    value_parser=parse_boolean_value,
    literal_parser=parse_boolean_literal,
    description="The `Boolean` scalar type represents `true` or `false`.",
)

ID = ScalarType(
    name="ID",
    serializer=serialize_id,
    value_parser=parse_id_value,
    literal_parser=parse_id_literal,
    description="The `ID` scalar type represents a unique identifier. It is serialized as a "
    "String; string and integer inputs are both accepted.",
)

BUILTIN_SCALARS: dict[str, ScalarType] = {s.name: s for s in (Int, Float, String, Boolean, ID)}


def is_builtin_scalar(type_: Any) -> bool:
    """Whether ``type_`` is one of the built-in scalar instances."""
    return isinstance(type_, ScalarType) and BUILTIN_SCALARS.get(type_.name) is type_
