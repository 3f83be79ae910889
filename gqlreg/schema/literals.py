"""
Literal value nodes.

Request parsing is not part of gqlreg; an external parser hands literal values
to ``parse_literal`` as ``ValueNode`` instances. Numeric literals keep their
source text, as a GraphQL lexer produces them.

Example:
    >>> from gqlreg.schema.literals import ValueKind, ValueNode
    >>> Int.parse_literal(ValueNode(ValueKind.INT, "42"))
    42
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ValueKind(Enum):
    """Kinds of literal values a GraphQL document can contain."""

    INT = "int"
    FLOAT = "float"
    STRING = "string"
    BOOLEAN = "boolean"
    NULL = "null"
    ENUM = "enum"
    LIST = "list"
    OBJECT = "object"
    VARIABLE = "variable"


@dataclass(frozen=True)
class ValueNode:
    """An already-parsed literal.

    Attributes:
        kind: Literal kind
        value: Source text for INT/FLOAT/STRING/ENUM/VARIABLE, a bool for
            BOOLEAN, None for NULL, a tuple of ValueNodes for LIST and a tuple
            of (name, ValueNode) pairs for OBJECT
    """

    kind: ValueKind
    value: Any = None

    def __str__(self) -> str:
        if self.kind == ValueKind.STRING:
            return f'"{self.value}"'
        if self.kind == ValueKind.BOOLEAN:
            return "true" if self.value else "false"
        if self.kind == ValueKind.NULL:
            return "null"
        if self.kind == ValueKind.VARIABLE:
            return f"${self.value}"
        if self.kind == ValueKind.LIST:
            return "[" + ", ".join(str(v) for v in self.value) + "]"
        if self.kind == ValueKind.OBJECT:
            return "{" + ", ".join(f"{k}: {v}" for k, v in self.value) + "}"
        return str(self.value)


def int_node(value: int | str) -> ValueNode:
    return ValueNode(ValueKind.INT, str(value))


def float_node(value: float | str) -> ValueNode:
    return ValueNode(ValueKind.FLOAT, str(value))


def string_node(value: str) -> ValueNode:
    return ValueNode(ValueKind.STRING, value)


def boolean_node(value: bool) -> ValueNode:
    return ValueNode(ValueKind.BOOLEAN, value)


def enum_node(name: str) -> ValueNode:
    return ValueNode(ValueKind.ENUM, name)


NULL_NODE = ValueNode(ValueKind.NULL)
