"""
Unit tests for schema compatibility checking.

Tests cover:
- Detection of breaking changes
- Allowance of non-breaking changes
- Output covariance and input contravariance of type changes
"""

import pytest

from gqlreg.schema.compat import (
    ChangeKind,
    CompatibilityError,
    check_compatibility,
    validate_breaking_changes,
)
from gqlreg.schema.errors import NotReadyError
from gqlreg.schema.registry import TypeRegistry, build_registry
from gqlreg.schema.types import (
    EnumType,
    EnumValueDefinition,
    InputObjectType,
    InterfaceType,
    ObjectType,
    UnionType,
    argument,
    field,
    input_field,
    list_of,
    non_null,
)


def make_registry(*definitions):
    """Helper to create a validated registry."""
    return build_registry(definitions)


def query(*fields):
    return ObjectType(name="Query", fields=fields)


def kinds(changes):
    return [c.kind for c in changes]


class TestBreakingChanges:
    """Tests for breaking change detection."""

    def test_type_removed(self):
        """Removing a type is breaking."""
        Dog = ObjectType(name="Dog", fields=(field("name", "String"),))
        old = make_registry(query(field("hello", "String")), Dog)
        new = make_registry(query(field("hello", "String")))

        changes = check_compatibility(old, new)

        assert kinds(changes) == [ChangeKind.TYPE_REMOVED]
        assert changes[0].is_breaking
        assert changes[0].path == "Dog"

    def test_type_kind_changed(self):
        """Changing a type's kind is breaking."""
        old = make_registry(query(field("pet", "Pet")), InterfaceType(name="Pet", fields=(field("name", "String"),)))
        new = make_registry(query(field("pet", "Pet")), ObjectType(name="Pet", fields=(field("name", "String"),)))

        assert kinds(check_compatibility(old, new)) == [ChangeKind.TYPE_KIND_CHANGED]

    def test_field_removed(self):
        """Removing a field is breaking."""
        old = make_registry(query(field("hello", "String"), field("bye", "String")))
        new = make_registry(query(field("hello", "String")))

        changes = check_compatibility(old, new)

        assert kinds(changes) == [ChangeKind.FIELD_REMOVED]
        assert changes[0].path == "Query.bye"

    def test_field_made_nullable(self):
        """Output types cannot lose NonNull."""
        old = make_registry(query(field("hello", non_null("String"))))
        new = make_registry(query(field("hello", "String")))

        changes = check_compatibility(old, new)

        assert kinds(changes) == [ChangeKind.FIELD_TYPE_CHANGED]
        assert changes[0].old_value == "String!"
        assert changes[0].new_value == "String"

    def test_field_type_replaced(self):
        """Changing a field's named type is breaking."""
        old = make_registry(query(field("count", "Int")))
        new = make_registry(query(field("count", "String")))
        assert kinds(check_compatibility(old, new)) == [ChangeKind.FIELD_TYPE_CHANGED]

    def test_required_arg_added(self):
        """Adding a required argument is breaking."""
        old = make_registry(query(field("dog", "String")))
        new = make_registry(query(field("dog", "String", args=(argument("id", non_null("ID")),))))

        changes = check_compatibility(old, new)

        assert kinds(changes) == [ChangeKind.REQUIRED_ARG_ADDED]
        assert changes[0].path == "Query.dog(id:)"

    def test_arg_removed(self):
        """Removing an argument is breaking."""
        old = make_registry(query(field("dog", "String", args=(argument("id", "ID"),))))
        new = make_registry(query(field("dog", "String")))
        assert kinds(check_compatibility(old, new)) == [ChangeKind.ARG_REMOVED]

    def test_arg_made_non_null(self):
        """Input types cannot gain NonNull."""
        old = make_registry(query(field("dog", "String", args=(argument("id", "ID"),))))
        new = make_registry(query(field("dog", "String", args=(argument("id", non_null("ID")),))))
        assert kinds(check_compatibility(old, new)) == [ChangeKind.ARG_TYPE_CHANGED]

    def test_required_input_field_added(self):
        """Adding a required input field is breaking."""
        old = make_registry(InputObjectType(name="Filter", fields=(input_field("name", "String"),)))
        new = make_registry(InputObjectType(
            name="Filter",
            fields=(input_field("name", "String"), input_field("age", non_null("Int"))),
        ))
        assert kinds(check_compatibility(old, new)) == [ChangeKind.REQUIRED_INPUT_FIELD_ADDED]

    def test_enum_value_removed(self):
        """Removing an enum value is breaking."""
        old = make_registry(EnumType(name="Episode", values=("NEWHOPE", "EMPIRE")))
        new = make_registry(EnumType(name="Episode", values=("NEWHOPE",)))

        changes = check_compatibility(old, new)

        assert kinds(changes) == [ChangeKind.ENUM_VALUE_REMOVED]
        assert changes[0].path == "Episode.EMPIRE"

    def test_union_member_removed(self):
        """Removing a union member is breaking."""
        Dog = ObjectType(name="Dog", fields=(field("name", "String"),))
        Cat = ObjectType(name="Cat", fields=(field("name", "String"),))
        old = make_registry(Dog, Cat, UnionType(name="Pet", types=("Dog", "Cat")))
        new = make_registry(Dog, Cat, UnionType(name="Pet", types=("Dog",)))

        changes = check_compatibility(old, new)

        assert kinds(changes) == [ChangeKind.UNION_MEMBER_REMOVED]
        assert changes[0].old_value == "Cat"

    def test_interface_removed(self):
        """Dropping an interface claim is breaking."""
        Named = InterfaceType(name="Named", fields=(field("name", "String"),))
        old = make_registry(Named, ObjectType(name="Dog", fields=(field("name", "String"),), interfaces=("Named",)))
        new = make_registry(Named, ObjectType(name="Dog", fields=(field("name", "String"),)))
        assert kinds(check_compatibility(old, new)) == [ChangeKind.INTERFACE_REMOVED]


class TestNonBreakingChanges:
    """Tests for allowed changes."""

    def test_identical_schemas(self):
        """Identical schemas have no changes."""
        old = make_registry(query(field("hello", "String")))
        new = make_registry(query(field("hello", "String")))
        assert check_compatibility(old, new) == []

    def test_type_and_field_added(self):
        """Additions are not breaking."""
        old = make_registry(query(field("hello", "String")))
        new = make_registry(
            query(field("hello", "String"), field("dog", "Dog")),
            ObjectType(name="Dog", fields=(field("name", "String"),)),
        )

        changes = check_compatibility(old, new)

        assert kinds(changes) == [ChangeKind.TYPE_ADDED, ChangeKind.FIELD_ADDED]
        assert not any(c.is_breaking for c in changes)

    def test_field_made_non_null(self):
        """Output types may gain NonNull."""
        old = make_registry(query(field("hello", "String")))
        new = make_registry(query(field("hello", non_null("String"))))
        assert kinds(check_compatibility(old, new)) == [ChangeKind.TYPE_CHANGED_SAFELY]

    def test_list_items_made_non_null(self):
        """List items of output types may gain NonNull."""
        old = make_registry(query(field("tags", list_of("String"))))
        new = make_registry(query(field("tags", non_null(list_of(non_null("String"))))))
        assert kinds(check_compatibility(old, new)) == [ChangeKind.TYPE_CHANGED_SAFELY]

    def test_arg_made_nullable(self):
        """Input types may lose NonNull."""
        old = make_registry(query(field("dog", "String", args=(argument("id", non_null("ID")),))))
        new = make_registry(query(field("dog", "String", args=(argument("id", "ID"),))))
        assert kinds(check_compatibility(old, new)) == [ChangeKind.TYPE_CHANGED_SAFELY]

    def test_optional_arg_added(self):
        """Optional arguments may be added."""
        old = make_registry(query(field("dogs", list_of("String"))))
        new = make_registry(query(field(
            "dogs",
            list_of("String"),
            args=(argument("first", "Int"), argument("after", non_null("String"), default_value="")),
        )))
        assert kinds(check_compatibility(old, new)) == [
            ChangeKind.OPTIONAL_ARG_ADDED,
            ChangeKind.OPTIONAL_ARG_ADDED,
        ]

    def test_enum_value_added_and_deprecated(self):
        """Enum additions and deprecations are not breaking."""
        old = make_registry(EnumType(name="Episode", values=("NEWHOPE", "EMPIRE")))
        new = make_registry(EnumType(
            name="Episode",
            values=(
                EnumValueDefinition("NEWHOPE", deprecation_reason="Use EMPIRE"),
                "EMPIRE",
                "JEDI",
            ),
        ))
        assert kinds(check_compatibility(old, new)) == [
            ChangeKind.ENUM_VALUE_DEPRECATED,
            ChangeKind.ENUM_VALUE_ADDED,
        ]

    def test_field_deprecated(self):
        """Deprecating a field is not breaking."""
        old = make_registry(query(field("hello", "String")))
        new = make_registry(query(field("hello", "String", deprecation_reason="Use greet")))
        assert kinds(check_compatibility(old, new)) == [ChangeKind.FIELD_DEPRECATED]

    def test_default_value_changed(self):
        """Default value changes are reported but not breaking."""
        old = make_registry(query(field("dogs", "String", args=(argument("first", "Int", default_value=10),))))
        new = make_registry(query(field("dogs", "String", args=(argument("first", "Int", default_value=20),))))

        changes = check_compatibility(old, new)

        assert kinds(changes) == [ChangeKind.DEFAULT_VALUE_CHANGED]
        assert (changes[0].old_value, changes[0].new_value) == (10, 20)

    def test_default_value_added(self):
        """Gaining a default is reported as a default value change."""
        old = make_registry(query(field("dogs", "String", args=(argument("first", "Int"),))))
        new = make_registry(query(field("dogs", "String", args=(argument("first", "Int", default_value=10),))))

        changes = check_compatibility(old, new)

        assert kinds(changes) == [ChangeKind.DEFAULT_VALUE_CHANGED]
        assert not changes[0].is_breaking
        assert (changes[0].old_value, changes[0].new_value) == (None, 10)
        assert kinds(check_compatibility(new, old)) == [ChangeKind.DEFAULT_VALUE_CHANGED]

    def test_changes_sorted_by_type(self):
        """Changes are reported in type name order."""
        old = make_registry(query(field("hello", "String")))
        new = make_registry(
            query(field("hello", "String")),
            ObjectType(name="Zebra", fields=(field("name", "String"),)),
            ObjectType(name="Ant", fields=(field("name", "String"),)),
        )
        assert [c.path for c in check_compatibility(old, new)] == ["Ant", "Zebra"]


class TestValidateBreakingChanges:
    """Tests for validate_breaking_changes."""

    def test_passes_without_breaking_changes(self):
        """Non-breaking evolutions pass."""
        old = make_registry(query(field("hello", "String")))
        new = make_registry(query(field("hello", "String"), field("bye", "String")))
        validate_breaking_changes(old, new)

    def test_raises_on_breaking_changes(self):
        """Breaking changes raise CompatibilityError listing only breaking changes."""
        old = make_registry(query(field("hello", "String"), field("bye", "String")))
        new = make_registry(query(field("hello", "Int"), field("greet", "String")))

        with pytest.raises(CompatibilityError) as exc_info:
            validate_breaking_changes(old, new)

        err = exc_info.value
        assert {c.kind for c in err.changes} == {ChangeKind.FIELD_REMOVED, ChangeKind.FIELD_TYPE_CHANGED}
        assert err.code == "COMPATIBILITY_ERROR"
        assert "Query.bye" in err.message

    def test_requires_validated_registries(self):
        """Both registries must be validated."""
        old = make_registry(query(field("hello", "String")))
        with pytest.raises(NotReadyError):
            check_compatibility(old, TypeRegistry())

    def test_change_to_dict(self):
        """Changes serialize with their breaking flag."""
        old = make_registry(query(field("hello", "String"), field("bye", "String")))
        new = make_registry(query(field("hello", "String")))

        data = check_compatibility(old, new)[0].to_dict()

        assert data["kind"] == "FIELD_REMOVED"
        assert data["path"] == "Query.bye"
        assert data["is_breaking"] is True
