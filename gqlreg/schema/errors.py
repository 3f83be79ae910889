"""
Error types for the gqlreg type registry.

This module defines every exception raised by the registry:
- GqlRegError: Base exception
- UnknownTypeError: Reference to an unregistered type name
- DuplicateNameError: Two definitions share a name
- SchemaValidationError: Structural rule violation
- CoercionError: A scalar or enum value failed serialization or parsing
- NotReadyError: Query attempted before the registry is validated
- RegistryFrozenError: Registration attempted outside the building phase

Invariants:
    - All errors inherit from GqlRegError
    - Errors carry a stable code and a details dict for programmatic handling
    - Construction errors are terminal for the registry that raised them
    - CoercionError never invalidates a registry
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence


class Rule(str, Enum):
    """Structural rules checked when a registry is frozen."""

    INVALID_NAME = "invalid-name"
    RESERVED_NAME = "reserved-name"
    EMPTY_FIELDS = "empty-fields"
    DUPLICATE_FIELD = "duplicate-field"
    DUPLICATE_ARGUMENT = "duplicate-argument"
    DOUBLE_NON_NULL = "double-non-null"
    OUTPUT_POSITION = "output-position"
    INPUT_POSITION = "input-position"
    IMPLEMENTS_NON_INTERFACE = "implements-non-interface"
    DUPLICATE_INTERFACE = "duplicate-interface"
    INTERFACE_CONFORMANCE = "interface-conformance"
    EMPTY_UNION = "empty-union"
    UNION_MEMBER = "union-member"
    DUPLICATE_UNION_MEMBER = "duplicate-union-member"
    EMPTY_ENUM = "empty-enum"
    ENUM_DUPLICATE_VALUE = "enum-duplicate-value"
    ENUM_RESERVED_VALUE = "enum-reserved-value"
    INPUT_OBJECT_CYCLE = "input-object-cycle"
    NON_JSON_DEFAULT = "non-json-default"


class GqlRegError(Exception):
    """Base exception for all gqlreg errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "GQLREG_ERROR"
        self.details = details or {}


class UnknownTypeError(GqlRegError):
    """A type name was referenced but never registered.

    Raised when:
    - A field, argument or union member names an undefined type
    - ``resolve`` is called with an unknown name
    """

    def __init__(self, type_name: str, referenced_from: Optional[str] = None) -> None:
        msg = f"Unknown type '{type_name}'"
        if referenced_from:
            msg += f" (referenced from {referenced_from})"
        super().__init__(
            msg,
            code="UNKNOWN_TYPE",
            details={"type_name": type_name, "referenced_from": referenced_from},
        )
        self.type_name = type_name
        self.referenced_from = referenced_from


class DuplicateNameError(GqlRegError):
    """Two definitions share a name within one registry."""

    def __init__(self, type_name: str) -> None:
        super().__init__(
            f"Type name '{type_name}' is already registered",
            code="DUPLICATE_NAME",
            details={"type_name": type_name},
        )
        self.type_name = type_name


@dataclass(frozen=True)
class Violation:
    """A single structural rule violation.

    Attributes:
        rule: The rule that was broken
        type_name: Offending type
        path: Offending element, e.g. ``Dog.name`` or ``Query.dog(id:)``
        message: Human-readable description
    """

    rule: Rule
    type_name: str
    path: str
    message: str

    def __str__(self) -> str:
        return f"[{self.rule.value}] {self.path}: {self.message}"

    def to_dict(self) -> Dict[str, str]:
        return {
            "rule": self.rule.value,
            "type_name": self.type_name,
            "path": self.path,
            "message": self.message,
        }


class SchemaValidationError(GqlRegError):
    """Structural rule violation.

    The error is tagged with the first violation's rule, type name and path;
    ``violations`` holds every violation found by the validation pass.

    Raised when:
    - An object does not satisfy an interface it claims
    - A type sits in a position it is not safe for (input vs. output)
    - NonNull directly wraps NonNull
    - A union lists a non-object member
    - An enum repeats a value name
    """

    def __init__(
        self,
        message: str,
        rule: Rule,
        type_name: str,
        path: Optional[str] = None,
        violations: Optional[Sequence[Violation]] = None,
    ) -> None:
        path = path or type_name
        violations = list(violations or [Violation(rule, type_name, path, message)])
        super().__init__(
            message,
            code="SCHEMA_VALIDATION",
            details={
                "rule": rule.value,
                "type_name": type_name,
                "path": path,
                "violations": [v.to_dict() for v in violations],
            },
        )
        self.rule = rule
        self.type_name = type_name
        self.path = path
        self.violations: List[Violation] = violations

    @classmethod
    def from_violations(cls, violations: Sequence[Violation]) -> SchemaValidationError:
        """Build an error summarizing one or more violations."""
        first = violations[0]
        msg = str(first)
        if len(violations) > 1:
            msg += f" (and {len(violations) - 1} more violation(s))"
        return cls(
            msg,
            rule=first.rule,
            type_name=first.type_name,
            path=first.path,
            violations=violations,
        )


class CoercionError(GqlRegError):
    """A value could not be serialized or parsed by a scalar or enum.

    Attributes:
        type_name: Scalar or enum that rejected the value
        value: The rejected value
    """

    def __init__(self, message: str, type_name: str, value: Any = None) -> None:
        super().__init__(
            message,
            code="COERCION_ERROR",
            details={"type_name": type_name, "value": repr(value)},
        )
        self.type_name = type_name
        self.value = value


class NotReadyError(GqlRegError):
    """Query attempted on a registry that is not validated."""

    def __init__(self, message: str, state: Optional[str] = None) -> None:
        super().__init__(message, code="NOT_READY", details={"state": state})
        self.state = state


class RegistryFrozenError(GqlRegError):
    """Registration or freeze attempted once building has finished."""

    def __init__(self, message: str, state: Optional[str] = None) -> None:
        super().__init__(message, code="REGISTRY_FROZEN", details={"state": state})
        self.state = state


class SchemaFormatError(GqlRegError):
    """A schema document is malformed.

    Attributes:
        errors: Individual problems found in the document
    """

    def __init__(self, message: str, errors: Optional[List[str]] = None) -> None:
        super().__init__(
            message,
            code="SCHEMA_FORMAT",
            details={"errors": errors or []},
        )
        self.errors = errors or []
