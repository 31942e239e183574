from __future__ import annotations

from dslgen.diagnostics import Diagnostics
from dslgen.domain import (
    DefaultValueHint,
    DomainProperty,
    DomainType,
    MapGroupType,
    TransformHint,
    TypeKind,
    TypeRef,
)
from dslgen.resolver import PropertySchemaResolver
from dslgen.schema import (
    BooleanSchema,
    BuilderSchema,
    CollectionSchema,
    DefaultSchema,
    GroupSchema,
    MapGroupSchema,
    MapSchema,
    SingleTransformSchema,
    describe,
)
from dslgen.typenames import ClassName

PACKAGE = "io.violabs.starship"


def _prop(declared: TypeRef, nullable: bool = False, **hints) -> DomainProperty:
    return DomainProperty(name="value", declared_type=declared, nullable=nullable, **hints)


def _passenger_ref(*, list_group: bool = False, map_group: MapGroupType = MapGroupType.NONE) -> TypeRef:
    return TypeRef.nominal(f"{PACKAGE}.Passenger", generable=True, list_group=list_group, map_group=map_group)


def test_star_ship_schemas(star_ship: DomainType, known_domains: dict[str, DomainType]) -> None:
    resolver = PropertySchemaResolver(Diagnostics(), known_domains)
    schemas = resolver.resolve_domain(star_ship)

    assert [describe(s) for s in schemas] == [
        "Default(name)",
        "MapGroup(crewMap)",
        "Collection(notes, nullable)",
        "Default(description, nullable)",
    ]
    assert [type(s) for s in schemas] == [DefaultSchema, MapGroupSchema, CollectionSchema, DefaultSchema]


def test_classification_is_idempotent(star_ship: DomainType) -> None:
    resolver = PropertySchemaResolver()
    for prop in star_ship.properties:
        assert resolver.resolve(prop) == resolver.resolve(prop)


def test_scalars() -> None:
    resolver = PropertySchemaResolver()
    assert isinstance(resolver.resolve(_prop(TypeRef.boolean())), BooleanSchema)
    for declared in (TypeRef.string(), TypeRef.char(), TypeRef.numeric("Long")):
        assert isinstance(resolver.resolve(_prop(declared)), DefaultSchema)


def test_generable_nominal_is_builder() -> None:
    schema = PropertySchemaResolver().resolve(_prop(_passenger_ref(), nullable=True))
    assert isinstance(schema, BuilderSchema)
    assert schema.nested_builder == ClassName.of(PACKAGE, "PassengerDslBuilder")
    assert schema.nullable_assignment


def test_list_of_group_element_is_group() -> None:
    declared = TypeRef.collection(_passenger_ref(list_group=True))
    schema = PropertySchemaResolver().resolve(_prop(declared))
    assert isinstance(schema, GroupSchema)
    assert schema.group_class == ClassName.of(PACKAGE, "PassengerDslBuilder", "Group")


def test_list_without_group_support_is_collection() -> None:
    schema = PropertySchemaResolver().resolve(_prop(TypeRef.collection(_passenger_ref())))
    assert isinstance(schema, CollectionSchema)


def test_map_group_follows_value_map_group_mode() -> None:
    resolver = PropertySchemaResolver()
    for mode in (MapGroupType.SINGLE, MapGroupType.LIST, MapGroupType.ALL):
        declared = TypeRef.map(TypeRef.string(), _passenger_ref(map_group=mode))
        assert isinstance(resolver.resolve(_prop(declared)), MapGroupSchema)

    declared = TypeRef.map(TypeRef.string(), _passenger_ref(map_group=MapGroupType.NONE))
    assert isinstance(resolver.resolve(_prop(declared)), MapSchema)


def test_transform_hint_wins() -> None:
    hint = TransformHint(input_type=TypeRef.string(), template="Version.parse(%N)")
    declared = TypeRef.nominal(f"{PACKAGE}.Version")
    schema = PropertySchemaResolver().resolve(_prop(declared, single_entry_transform=hint))
    assert isinstance(schema, SingleTransformSchema)
    assert schema.template == "Version.parse(%N)"


def test_transform_without_input_type_falls_back_to_default() -> None:
    diagnostics = Diagnostics()
    declared = TypeRef.nominal(f"{PACKAGE}.Version")
    prop = _prop(declared, single_entry_transform=TransformHint(input_type=None))

    schema = PropertySchemaResolver(diagnostics).resolve(prop, domain="StarShip")

    assert isinstance(schema, DefaultSchema)
    [warning] = diagnostics.warnings
    assert warning.property == "value"
    assert warning.domain == "StarShip"
    assert warning.fallback == "Default"


def test_unknown_nominal_falls_back_with_diagnostic() -> None:
    diagnostics = Diagnostics()
    schema = PropertySchemaResolver(diagnostics).resolve(_prop(TypeRef.nominal("java.time.Instant")))
    assert isinstance(schema, DefaultSchema)
    assert diagnostics.warnings[0].fallback == "Default"


def test_qualified_map_name_without_arguments_is_reported() -> None:
    diagnostics = Diagnostics()
    declared = TypeRef.nominal("kotlin.collections.Map")
    assert declared.kind is TypeKind.NOMINAL

    schema = PropertySchemaResolver(diagnostics).resolve(_prop(declared))

    assert isinstance(schema, DefaultSchema)
    messages = [w.message for w in diagnostics.warnings]
    assert any("conflicting map signals" in m for m in messages)
    assert any("not parameterized" in m for m in messages)


def test_default_value_is_carried() -> None:
    default = DefaultValueHint("Enterprise")
    schema = PropertySchemaResolver().resolve(_prop(TypeRef.string(), default_value=default))
    assert schema.default_value == default


def test_builder_doc_lists_nested_functions(passenger: DomainType) -> None:
    resolver = PropertySchemaResolver(known_domains={passenger.qualified_name: passenger})
    schema = resolver.resolve(_prop(passenger.as_type_ref()))
    assert schema.doc == (
        "Available builder functions:\n"
        "* [PassengerDslBuilder.age]\n"
        "* [PassengerDslBuilder.name]"
    )
