"""
Unit tests for structural validation.

Tests cover:
- Names
- Input and output positions
- Interface conformance
- Unions and enums
- Input object cycles
- Default values
- Violation collection
"""

import pytest

from gqlreg.schema.errors import Rule, SchemaValidationError, Violation
from gqlreg.schema.registry import build_registry
from gqlreg.schema.scalars import String
from gqlreg.schema.types import (
    EnumType,
    EnumValueDefinition,
    InputObjectType,
    InterfaceType,
    NonNullType,
    ObjectType,
    UnionType,
    argument,
    field,
    input_field,
    list_of,
    non_null,
)
from gqlreg.schema.validation import collect_possible_types, validate_types


def assert_invalid(definitions, rule):
    """Building the definitions fails with ``rule`` as the first violation."""
    with pytest.raises(SchemaValidationError) as exc_info:
        build_registry(definitions)
    assert exc_info.value.rule == rule, str(exc_info.value)
    return exc_info.value


Named = InterfaceType(name="Named", fields=(field("name", "String"),))


class TestNames:
    """Tests for name rules."""

    def test_invalid_type_name(self):
        """Type names must match the name pattern."""
        assert_invalid([ObjectType(name="1Dog", fields=(field("name", "String"),))], Rule.INVALID_NAME)

    def test_reserved_type_name(self):
        """Names starting with '__' are reserved."""
        err = assert_invalid(
            [ObjectType(name="__Dog", fields=(field("name", "String"),))], Rule.RESERVED_NAME
        )
        assert err.type_name == "__Dog"

    def test_invalid_field_name(self):
        """Field names follow the same pattern."""
        err = assert_invalid(
            [ObjectType(name="Dog", fields=(field("first-name", "String"),))], Rule.INVALID_NAME
        )
        assert err.path == "Dog.first-name"

    def test_invalid_argument_name(self):
        """Argument names follow the same pattern."""
        Query = ObjectType(
            name="Query", fields=(field("dog", "String", args=(argument("__id", "ID"),)),)
        )
        err = assert_invalid([Query], Rule.RESERVED_NAME)
        assert err.path == "Query.dog(__id:)"


class TestFields:
    """Tests for field collections."""

    def test_object_without_fields(self):
        """Objects must define fields."""
        assert_invalid([ObjectType(name="Dog")], Rule.EMPTY_FIELDS)

    def test_interface_without_fields(self):
        """Interfaces must define fields."""
        assert_invalid([InterfaceType(name="Named")], Rule.EMPTY_FIELDS)

    def test_input_object_without_fields(self):
        """Input objects must define fields."""
        assert_invalid([InputObjectType(name="Filter")], Rule.EMPTY_FIELDS)

    def test_duplicate_field(self):
        """Field names are unique within a type."""
        Dog = ObjectType(name="Dog", fields=(field("name", "String"), field("name", "ID")))
        err = assert_invalid([Dog], Rule.DUPLICATE_FIELD)
        assert err.path == "Dog.name"

    def test_duplicate_argument(self):
        """Argument names are unique within a field."""
        Query = ObjectType(
            name="Query",
            fields=(field("dog", "String", args=(argument("id", "ID"), argument("id", "Int"))),),
        )
        assert_invalid([Query], Rule.DUPLICATE_ARGUMENT)


class TestPositions:
    """Tests for input and output position rules."""

    def test_input_object_field_referencing_object(self):
        """Input object fields must be input-safe."""
        Dog = ObjectType(name="Dog", fields=(field("name", "String"),))
        Filter = InputObjectType(name="Filter", fields=(input_field("dog", "Dog"),))

        err = assert_invalid([Dog, Filter], Rule.INPUT_POSITION)

        assert err.type_name == "Filter"
        assert err.path == "Filter.dog"
        assert "Input position must be input-safe" in err.message

    def test_argument_referencing_interface(self):
        """Arguments must be input-safe, through wrappers too."""
        Query = ObjectType(
            name="Query",
            fields=(field("search", "String", args=(argument("who", non_null(list_of("Named"))),)),),
        )
        err = assert_invalid([Named, Query], Rule.INPUT_POSITION)
        assert err.path == "Query.search(who:)"

    def test_field_returning_input_object(self):
        """Field types must be output-safe."""
        Filter = InputObjectType(name="Filter", fields=(input_field("name", "String"),))
        Query = ObjectType(name="Query", fields=(field("filter", list_of("Filter")),))
        assert_invalid([Filter, Query], Rule.OUTPUT_POSITION)

    def test_enum_and_scalar_allowed_everywhere(self):
        """Leaf types are valid in input and output positions."""
        Episode = EnumType(name="Episode", values=("NEWHOPE",))
        Filter = InputObjectType(
            name="Filter", fields=(input_field("episode", "Episode"), input_field("name", "String"))
        )
        Query = ObjectType(
            name="Query",
            fields=(field("hero", "Episode", args=(argument("filter", "Filter"),)),),
        )
        registry = build_registry([Episode, Filter, Query])
        assert registry.is_input_type("Filter")

    def test_double_non_null_found_by_validation(self):
        """Validation reports NonNull(NonNull(T)) even if constructed around the check."""
        double = object.__new__(NonNullType)
        object.__setattr__(double, "of_type", NonNullType("String"))
        types = {
            "String": String,
            "Query": ObjectType(name="Query", fields=(field("name", double),)),
        }

        violations = validate_types(types)

        assert [v.rule for v in violations] == [Rule.DOUBLE_NON_NULL]
        assert violations[0].path == "Query.name"


class TestInterfaces:
    """Tests for interface claims and conformance."""

    def test_missing_interface_field(self):
        """An object missing an interface field is rejected, naming the field."""
        Dog = ObjectType(name="Dog", fields=(field("barks", "Boolean"),), interfaces=("Named",))

        err = assert_invalid([Named, Dog], Rule.INTERFACE_CONFORMANCE)

        assert err.type_name == "Dog"
        assert err.path == "Dog.name"
        assert "missing field 'name'" in err.message

    def test_covariant_field_type_allowed(self):
        """Object fields may return a subtype of the interface field type."""
        Owner = InterfaceType(name="Owner", fields=(field("pet", "Named"),))
        Dog = ObjectType(name="Dog", fields=(field("name", non_null("String")),), interfaces=("Named",))
        Person = ObjectType(
            name="Person", fields=(field("pet", non_null("Dog")),), interfaces=("Owner",)
        )
        registry = build_registry([Named, Owner, Dog, Person])
        assert registry.is_subtype_of("Person", "Owner")

    def test_incompatible_field_type(self):
        """Object field types must be subtypes of the interface field type."""
        Dog = ObjectType(name="Dog", fields=(field("name", "Int"),), interfaces=("Named",))
        err = assert_invalid([Named, Dog], Rule.INTERFACE_CONFORMANCE)
        assert "expects type String" in err.message

    def test_nullable_field_for_non_null_interface_field(self):
        """Dropping NonNull is not covariant."""
        Strict = InterfaceType(name="Strict", fields=(field("id", non_null("ID")),))
        Dog = ObjectType(name="Dog", fields=(field("id", "ID"),), interfaces=("Strict",))
        assert_invalid([Strict, Dog], Rule.INTERFACE_CONFORMANCE)

    def test_interface_argument_required(self):
        """Interface arguments must be present with identical types."""
        Node = InterfaceType(
            name="Node", fields=(field("child", "String", args=(argument("id", non_null("ID")),)),)
        )
        Missing = ObjectType(name="Missing", fields=(field("child", "String"),), interfaces=("Node",))
        err = assert_invalid([Node, Missing], Rule.INTERFACE_CONFORMANCE)
        assert err.path == "Missing.child(id:)"

        Loose = ObjectType(
            name="Loose",
            fields=(field("child", "String", args=(argument("id", "ID"),)),),
            interfaces=("Node",),
        )
        assert_invalid([Node, Loose], Rule.INTERFACE_CONFORMANCE)

    def test_extra_arguments_must_be_optional(self):
        """Objects may add optional arguments but not required ones."""
        lenient = ObjectType(
            name="Dog",
            fields=(field("name", "String", args=(argument("upper", "Boolean"),)),),
            interfaces=("Named",),
        )
        build_registry([Named, lenient])

        strict = ObjectType(
            name="Dog",
            fields=(field("name", "String", args=(argument("upper", non_null("Boolean")),)),),
            interfaces=("Named",),
        )
        err = assert_invalid([Named, strict], Rule.INTERFACE_CONFORMANCE)
        assert "required argument 'upper'" in err.message

    def test_argument_requiredness_must_match(self):
        """An argument the interface defaults cannot be required by the object."""
        Sized = InterfaceType(
            name="Sized",
            fields=(field("size", "Int", args=(argument("unit", non_null("Int"), default_value=5),)),),
        )
        Box = ObjectType(
            name="Box",
            fields=(field("size", "Int", args=(argument("unit", non_null("Int")),)),),
            interfaces=("Sized",),
        )
        err = assert_invalid([Sized, Box], Rule.INTERFACE_CONFORMANCE)
        assert err.path == "Box.size(unit:)"
        assert "is optional but Box.size(unit:) is required" in err.message

        Crate = ObjectType(
            name="Crate",
            fields=(field("size", "Int", args=(argument("unit", non_null("Int"), default_value=1),)),),
            interfaces=("Sized",),
        )
        build_registry([Sized, Crate])

    def test_implements_non_interface(self):
        """Objects can only claim interfaces."""
        Animal = ObjectType(name="Animal", fields=(field("name", "String"),))
        Dog = ObjectType(name="Dog", fields=(field("name", "String"),), interfaces=("Animal",))
        assert_invalid([Animal, Dog], Rule.IMPLEMENTS_NON_INTERFACE)

    def test_duplicate_interface(self):
        """An interface is claimed at most once."""
        Dog = ObjectType(
            name="Dog", fields=(field("name", "String"),), interfaces=("Named", "Named")
        )
        assert_invalid([Named, Dog], Rule.DUPLICATE_INTERFACE)


class TestUnions:
    """Tests for union rules."""

    def test_empty_union(self):
        """Unions must have members."""
        assert_invalid([UnionType(name="Pet")], Rule.EMPTY_UNION)

    def test_union_with_interface_member(self):
        """Interfaces cannot be union members."""
        err = assert_invalid([Named, UnionType(name="Pet", types=("Named",))], Rule.UNION_MEMBER)
        assert err.type_name == "Pet"

    def test_union_with_scalar_member(self):
        """Scalars cannot be union members."""
        assert_invalid([UnionType(name="Pet", types=("String",))], Rule.UNION_MEMBER)

    def test_duplicate_union_member(self):
        """Members are listed at most once."""
        Dog = ObjectType(name="Dog", fields=(field("name", "String"),))
        assert_invalid([Dog, UnionType(name="Pet", types=("Dog", "Dog"))], Rule.DUPLICATE_UNION_MEMBER)


class TestEnums:
    """Tests for enum rules."""

    def test_empty_enum(self):
        """Enums must define values."""
        assert_invalid([EnumType(name="Episode")], Rule.EMPTY_ENUM)

    def test_duplicate_value(self):
        """Value names are unique."""
        Episode = EnumType(
            name="Episode",
            values=(EnumValueDefinition("NEWHOPE", 4), EnumValueDefinition("NEWHOPE", 5)),
        )
        err = assert_invalid([Episode], Rule.ENUM_DUPLICATE_VALUE)
        assert err.path == "Episode.NEWHOPE"

    def test_reserved_value(self):
        """true, false and null are not enum values."""
        assert_invalid([EnumType(name="Flag", values=("ON", "null"))], Rule.ENUM_RESERVED_VALUE)

    def test_invalid_value_name(self):
        """Value names follow the name pattern."""
        assert_invalid([EnumType(name="Flag", values=("ON-OFF",))], Rule.INVALID_NAME)


class TestInputObjectCycles:
    """Tests for self-referencing input objects."""

    def test_non_null_cycle(self):
        """A cycle through non-null fields cannot be satisfied."""
        A = InputObjectType(name="A", fields=(input_field("b", non_null("B")),))
        B = InputObjectType(name="B", fields=(input_field("a", non_null("A")),))

        err = assert_invalid([A, B], Rule.INPUT_OBJECT_CYCLE)

        assert err.type_name == "A"
        assert "A -> b -> B -> a" in err.message

    def test_self_reference(self):
        """A non-null field of its own type is a cycle."""
        Node = InputObjectType(name="Node", fields=(input_field("next", non_null("Node")),))
        assert_invalid([Node], Rule.INPUT_OBJECT_CYCLE)

    def test_nullable_or_list_breaks_cycle(self):
        """Nullable and list fields allow recursion."""
        Node = InputObjectType(
            name="Node",
            fields=(
                input_field("next", "Node"),
                input_field("children", non_null(list_of(non_null("Node")))),
            ),
        )
        build_registry([Node])


class TestDefaultValues:
    """Tests for default values of arguments and input fields."""

    def test_json_defaults_accepted(self):
        """Scalars, lists, mappings and null are valid defaults."""
        Filter = InputObjectType(
            name="Filter",
            fields=(
                input_field("tags", list_of("String"), default_value=["a", "b"]),
                input_field("limit", "Int", default_value=10),
                input_field("after", "String", default_value=None),
            ),
        )
        build_registry([Filter])

    def test_argument_default_must_be_json(self):
        """Arbitrary objects cannot be argument defaults."""
        Query = ObjectType(
            name="Query",
            fields=(field("dogs", "String", args=(argument("first", "Int", default_value=object()),)),),
        )
        err = assert_invalid([Query], Rule.NON_JSON_DEFAULT)
        assert err.path == "Query.dogs(first:)"

    def test_input_field_default_must_be_json(self):
        """Sets and NaN have no JSON form."""
        Filter = InputObjectType(
            name="Filter",
            fields=(
                input_field("tags", list_of("String"), default_value={"a"}),
                input_field("ratio", "Float", default_value=float("nan")),
            ),
        )
        with pytest.raises(SchemaValidationError) as exc_info:
            build_registry([Filter])
        assert [v.path for v in exc_info.value.violations] == ["Filter.tags", "Filter.ratio"]


class TestViolationCollection:
    """Tests for reporting every violation."""

    def test_all_violations_collected(self):
        """One error lists every violation, the first one tagging it."""
        Dog = ObjectType(name="Dog", fields=(field("barks", "Boolean"),), interfaces=("Named",))
        Pet = UnionType(name="Pet", types=("String",))

        with pytest.raises(SchemaValidationError) as exc_info:
            build_registry([Named, Dog, Pet])

        err = exc_info.value
        assert [v.rule for v in err.violations] == [Rule.INTERFACE_CONFORMANCE, Rule.UNION_MEMBER]
        assert err.rule == Rule.INTERFACE_CONFORMANCE
        assert "1 more violation" in err.message
        assert err.details["violations"][1]["rule"] == "union-member"

    def test_violation_str(self):
        """Violations render with their rule and path."""
        v = Violation(Rule.EMPTY_UNION, "Pet", "Pet", "Union 'Pet' must have members")
        assert str(v) == "[empty-union] Pet: Union 'Pet' must have members"

    def test_valid_types_have_no_violations(self):
        """A valid type set yields an empty list."""
        Dog = ObjectType(name="Dog", fields=(field("name", "String"),), interfaces=("Named",))
        types = {"String": String, "Named": Named, "Dog": Dog}
        assert validate_types(types) == []
        assert collect_possible_types(types) == {"Named": frozenset({"Dog"})}
