"""
Type Registry for gqlreg.

The TypeRegistry is the central authority for all named types of a schema.
It provides:
- Registration of named type definitions
- Two-pass resolution (names first, then field bodies and references)
- Structural validation (see ``validation``)
- Type-compatibility queries for an execution engine
- Schema fingerprinting for consistency checks

Lifecycle:
    BUILDING --freeze() ok--> VALIDATED (terminal, read-only)
    BUILDING --any error----> FAILED    (terminal, unusable)

Invariants:
    - Registry is mutable while building, immutable once validated
    - Names are unique; every reference resolves to a registered name
    - Queries require the VALIDATED state
    - A failed registry is never repaired; build a new one instead

Thread-safety:
    - Registration and freeze are serialized by an internal lock
    - Queries on a validated registry are lock-free

Example:
    >>> from gqlreg.schema import TypeRegistry, ObjectType, field
    >>> registry = TypeRegistry()
    >>> registry.register(ObjectType(name="Query", fields=(field("hello", "String"),)))
    >>> registry.freeze()
    'sha256:...'
    >>> registry.is_output_type("Query")
    True
"""

from __future__ import annotations

import dataclasses
import hashlib
import json
import logging
import threading
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, Optional

from ..config import Settings, get_settings
from .errors import (
    DuplicateNameError,
    NotReadyError,
    RegistryFrozenError,
    SchemaValidationError,
    UnknownTypeError,
)
from .scalars import BUILTIN_SCALARS, is_builtin_scalar
from .schema_format import types_from_dict
from .types import (
    EnumType,
    InputObjectType,
    InterfaceType,
    NamedType,
    ObjectType,
    ScalarType,
    TypeKind,
    TypeRef,
    UnionType,
    get_named_type_name,
    is_named_type,
    normalize_type_ref,
)
from .validation import collect_possible_types, is_subtype, validate_types

logger = logging.getLogger(__name__)

# Currently published registry
_current_registry: Optional[TypeRegistry] = None
_registry_lock = threading.Lock()


def json_default(value: Any) -> str:
    """Encode enum values that have no JSON form.

    Python enum members become their qualified member name; anything else
    becomes its qualified type name. No object address ever leaks in, so equal
    schemas produce equal fingerprints in every process.
    """
    type_name = f"{type(value).__module__}.{type(value).__qualname__}"
    if isinstance(value, Enum):
        return f"{type_name}.{value.name}"
    return f"<{type_name}>"


class RegistryState(Enum):
    """Lifecycle states of a TypeRegistry."""

    BUILDING = "building"
    VALIDATED = "validated"
    FAILED = "failed"


class TypeRegistry:
    """Registry of the named types of one schema.

    Attributes:
        state: Current lifecycle state
        fingerprint: Hash of the canonical schema (computed on freeze)
        error: The error that failed the registry, if any

    Example:
        >>> registry = TypeRegistry()
        >>> registry.register(Named)
        >>> registry.register(Dog)
        >>> registry.register(Cat)
        >>> registry.register(Pet)
        >>> registry.freeze()
        >>> registry.possible_types("Pet")
        frozenset({ObjectType(name='Dog', ...), ObjectType(name='Cat', ...)})
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        """Initialize an empty registry in the BUILDING state."""
        self._settings = settings or get_settings()
        self._definitions: Dict[str, NamedType] = {}
        self._types: Dict[str, NamedType] = {}
        self._possible: Dict[str, frozenset[str]] = {}
        self._state = RegistryState.BUILDING
        self._fingerprint: Optional[str] = None
        self._error: Optional[Exception] = None
        self._lock = threading.Lock()

    @property
    def state(self) -> RegistryState:
        return self._state

    @property
    def fingerprint(self) -> Optional[str]:
        """Schema fingerprint (available once validated)."""
        return self._fingerprint

    @property
    def error(self) -> Optional[Exception]:
        return self._error

    @property
    def settings(self) -> Settings:
        return self._settings

    # Construction

    def register(self, definition: NamedType) -> None:
        """Register a named type definition.

        Registering the built-in scalar instance itself is accepted and has
        no effect. Any other definition reusing a built-in name is a
        duplicate unless ``allow_builtin_override`` is set.

        Raises:
            RegistryFrozenError: If the registry is no longer building
            DuplicateNameError: If the name is already registered (the
                registry is failed)
            TypeError: If ``definition`` is not a named type
        """
        if not is_named_type(definition):
            raise TypeError(f"Expected a named type definition, got {definition!r}")

        with self._lock:
            self._require_building("register")

            name = definition.name
            builtins = self._settings.include_builtin_scalars
            if builtins and is_builtin_scalar(definition):
                return

            builtin_taken = (
                builtins
                and name in BUILTIN_SCALARS
                and not (
                    self._settings.allow_builtin_override and isinstance(definition, ScalarType)
                )
            )
            if name in self._definitions or builtin_taken:
                error = DuplicateNameError(name)
                self._fail(error)
                raise error

            self._definitions[name] = definition
            logger.debug(f"Registered {definition.kind.value} type: {name}")

    def register_all(self, definitions: Iterable[NamedType]) -> None:
        for definition in definitions:
            self.register(definition)

    def freeze(self) -> str:
        """Resolve, validate and freeze the registry.

        Pass 1 collects every name and kind tag; pass 2 evaluates field
        thunks and resolves every reference by name; the validation pass
        then checks the structural rules.

        Returns:
            Schema fingerprint string

        Raises:
            RegistryFrozenError: If the registry is no longer building
            UnknownTypeError: If any reference names an unregistered type
            SchemaValidationError: If any structural rule is violated
        """
        with self._lock:
            self._require_building("freeze")
            try:
                kinds = self._collect_kinds()
                types = self._resolve_definitions(kinds)
                possible = collect_possible_types(types)
                violations = validate_types(types, possible)
                if violations:
                    raise SchemaValidationError.from_violations(violations)
            except Exception as err:
                self._fail(err)
                raise

            self._types = types
            self._possible = possible
            self._fingerprint = self._compute_fingerprint()
            self._state = RegistryState.VALIDATED
            logger.info(
                f"Type registry validated with {len(self._types)} types, "
                f"fingerprint={self._fingerprint}"
            )
            return self._fingerprint

    def _require_building(self, action: str) -> None:
        if self._state is not RegistryState.BUILDING:
            raise RegistryFrozenError(
                f"Cannot {action}: registry is {self._state.value}",
                state=self._state.value,
            )

    def _fail(self, error: Exception) -> None:
        self._state = RegistryState.FAILED
        self._error = error
        logger.warning(f"Type registry failed: {error}")

    def _collect_kinds(self) -> Dict[str, TypeKind]:
        kinds: Dict[str, TypeKind] = {}
        if self._settings.include_builtin_scalars:
            for name in BUILTIN_SCALARS:
                kinds[name] = TypeKind.SCALAR
        for name, definition in self._definitions.items():
            kinds[name] = definition.kind
        return kinds

    def _resolve_definitions(self, kinds: Dict[str, TypeKind]) -> Dict[str, NamedType]:
        types: Dict[str, NamedType] = {}
        if self._settings.include_builtin_scalars:
            for name, scalar in BUILTIN_SCALARS.items():
                if name not in self._definitions:
                    types[name] = scalar
        for name, definition in self._definitions.items():
            types[name] = self._resolve_definition(definition, kinds)
        return types

    def _resolve_definition(
        self, definition: NamedType, kinds: Dict[str, TypeKind]
    ) -> NamedType:
        def ref(type_ref: TypeRef, path: str) -> TypeRef:
            normalized = normalize_type_ref(type_ref)
            target = get_named_type_name(normalized)
            if target not in kinds:
                raise UnknownTypeError(target, referenced_from=path)
            return normalized

        def resolve_args(args: Iterable[Any], path: str) -> tuple:
            return tuple(
                dataclasses.replace(a, type=ref(a.type, f"{path}({a.name}:)")) for a in args
            )

        name = definition.name
        if isinstance(definition, (ObjectType, InterfaceType)):
            fields = tuple(
                dataclasses.replace(
                    f,
                    type=ref(f.type, f"{name}.{f.name}"),
                    args=resolve_args(f.args, f"{name}.{f.name}"),
                )
                for f in definition.get_fields()
            )
            if isinstance(definition, ObjectType):
                interfaces = tuple(
                    get_named_type_name(ref(i, f"{name} implements")) for i in definition.interfaces
                )
                return dataclasses.replace(definition, fields=fields, interfaces=interfaces)
            return dataclasses.replace(definition, fields=fields)

        if isinstance(definition, InputObjectType):
            fields = resolve_args(definition.get_fields(), name)
            return dataclasses.replace(definition, fields=fields)

        if isinstance(definition, UnionType):
            members = tuple(get_named_type_name(ref(t, name)) for t in definition.types)
            return dataclasses.replace(definition, types=members)

        return definition

    # Queries

    def _require_validated(self) -> None:
        if self._state is not RegistryState.VALIDATED:
            raise NotReadyError(
                f"Registry is {self._state.value}; queries require a validated registry",
                state=self._state.value,
            )

    def resolve(self, name: str) -> NamedType:
        """Get a named type by name.

        Raises:
            NotReadyError: If the registry is not validated
            UnknownTypeError: If no type has that name
        """
        self._require_validated()
        try:
            return self._types[name]
        except KeyError:
            raise UnknownTypeError(name) from None

    def get_type(self, name: str) -> Optional[NamedType]:
        """Get a named type by name, or None."""
        self._require_validated()
        return self._types.get(name)

    def named_type(self, type_ref: TypeRef) -> NamedType:
        """The named type at the core of a (possibly wrapped) reference."""
        return self.resolve(get_named_type_name(type_ref))

    def types(self) -> Iterator[NamedType]:
        """Iterate over all types, built-in scalars first, then in registration order."""
        self._require_validated()
        yield from self._types.values()

    def __contains__(self, name: object) -> bool:
        return self._state is RegistryState.VALIDATED and name in self._types

    def __len__(self) -> int:
        return len(self._types)

    def is_subtype_of(self, maybe_subtype: TypeRef, super_type: TypeRef) -> bool:
        """Whether a value of ``maybe_subtype`` is always acceptable where
        ``super_type`` is expected.

        Rules:
            - T is a subtype of T
            - NonNull(T) is a subtype of T (never the reverse)
            - List(A) is a subtype of List(B) iff A is a subtype of B
            - An object is a subtype of every interface it implements
            - An object is a subtype of every union listing it

        Raises:
            NotReadyError: If the registry is not validated
            UnknownTypeError: If either reference names an unknown type
        """
        self._require_validated()
        a = normalize_type_ref(maybe_subtype)
        b = normalize_type_ref(super_type)
        self.named_type(a)
        self.named_type(b)
        return is_subtype(self._types, self._possible, a, b)

    def possible_types(self, abstract_type: NamedType | str) -> frozenset[ObjectType]:
        """Object types a value of ``abstract_type`` may be at runtime.

        Interfaces yield every object claiming them; unions yield their
        members. An object type yields itself; scalars, enums and input
        objects yield nothing.
        """
        self._require_validated()
        named = self.named_type(abstract_type)
        if named.kind.is_abstract:
            return frozenset(self._types[n] for n in self._possible.get(named.name, ()))
        if isinstance(named, ObjectType):
            return frozenset({named})
        return frozenset()

    def is_input_type(self, type_ref: TypeRef) -> bool:
        """Whether the reference may appear in an input position (wrappers ignored)."""
        self._require_validated()
        return self.named_type(type_ref).kind.is_input_safe

    def is_output_type(self, type_ref: TypeRef) -> bool:
        """Whether the reference may appear as a field type (wrappers ignored)."""
        self._require_validated()
        return self.named_type(type_ref).kind.is_output_safe

    def is_abstract_type(self, type_ref: TypeRef) -> bool:
        self._require_validated()
        return self.named_type(type_ref).kind.is_abstract

    def is_leaf_type(self, type_ref: TypeRef) -> bool:
        self._require_validated()
        return isinstance(self.named_type(type_ref), (ScalarType, EnumType))

    # Serialization

    def _compute_fingerprint(self) -> str:
        """Hash the canonical JSON form of the schema.

        Returns:
            Fingerprint string in format '<algorithm>:<hash>'
        """
        canonical = json.dumps(
            self._to_dict(self._types),
            sort_keys=True,
            separators=(",", ":"),
            default=json_default,
        )
        algorithm = self._settings.fingerprint_algorithm
        digest = hashlib.new(algorithm, canonical.encode("utf-8")).hexdigest()
        return f"{algorithm}:{digest}"

    @staticmethod
    def _to_dict(types: Dict[str, NamedType]) -> dict:
        return {
            "types": [
                types[name].to_dict()
                for name in sorted(types)
                if not is_builtin_scalar(types[name])
            ]
        }

    def to_dict(self) -> dict:
        """Convert the registry to a schema document.

        Built-in scalars are omitted; types are sorted by name for
        determinism. The result loads back with ``from_dict``.
        """
        self._require_validated()
        return self._to_dict(self._types)

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True, default=json_default)

    @classmethod
    def from_dict(cls, data: dict, settings: Optional[Settings] = None) -> TypeRegistry:
        """Build and validate a registry from a schema document.

        Raises:
            SchemaFormatError: If the document is malformed
            UnknownTypeError, DuplicateNameError, SchemaValidationError:
                If the definitions do not form a valid schema
        """
        return build_registry(types_from_dict(data), settings=settings)

    @classmethod
    def from_json(cls, json_str: str, settings: Optional[Settings] = None) -> TypeRegistry:
        return cls.from_dict(json.loads(json_str), settings=settings)


def build_registry(
    definitions: Iterable[NamedType], settings: Optional[Settings] = None
) -> TypeRegistry:
    """Register every definition and freeze, in one step.

    Returns:
        A validated TypeRegistry

    Example:
        >>> registry = build_registry([Named, Dog, Cat, Pet])
        >>> registry.is_subtype_of("Dog", "Pet")
        True
    """
    registry = TypeRegistry(settings=settings)
    registry.register_all(definitions)
    registry.freeze()
    return registry


def publish_registry(registry: TypeRegistry) -> Optional[TypeRegistry]:
    """Make ``registry`` the process-wide current registry.

    The swap is a single reference assignment; readers holding the previous
    registry keep using it unchanged.

    Returns:
        The previously published registry, if any

    Raises:
        NotReadyError: If ``registry`` is not validated
    """
    global _current_registry
    if registry.state is not RegistryState.VALIDATED:
        raise NotReadyError(
            f"Only validated registries can be published (registry is {registry.state.value})",
            state=registry.state.value,
        )
    with _registry_lock:
        previous = _current_registry
        _current_registry = registry
    logger.info(f"Published type registry fingerprint={registry.fingerprint}")
    return previous


def get_registry() -> TypeRegistry:
    """Get the published registry.

    Raises:
        NotReadyError: If no registry has been published
    """
    registry = _current_registry
    if registry is None:
        raise NotReadyError("No type registry has been published")
    return registry


def reset_registry() -> None:
    """Clear the published registry (for testing only)."""
    global _current_registry
    with _registry_lock:
        _current_registry = None
