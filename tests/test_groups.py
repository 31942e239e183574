from __future__ import annotations

import pytest

from dslgen.config import BuilderConfig
from dslgen.domain import DomainConfig, DomainType, MapGroupType
from dslgen.groups import (
    LIST_GROUP_CONFIG,
    MAP_GROUP_CONFIG,
    GroupGenerator,
    ListGroupGenerator,
    MapGroupGenerator,
)
from dslgen.ir import CodeBlock, Modifier, TypeSpecBuilder
from dslgen.typenames import ClassName


def test_list_group_type(passenger_config: DomainConfig) -> None:
    group = ListGroupGenerator().build_type(passenger_config)

    assert group.name == "Group"
    assert group.type_variables == ()

    items = group.property_named("items")
    assert items.modifiers == (Modifier.PRIVATE,)
    assert not items.mutable
    assert items.type.render() == "MutableList<Passenger>"
    assert items.initializer == CodeBlock.of("mutableListOf()")

    snapshot = group.function_named("items")
    assert snapshot.return_type.render() == "List<Passenger>"
    assert snapshot.statements == (CodeBlock.of("return items.toList()"),)

    add = group.function_named("passenger")
    assert [p.name for p in add.parameters] == ["block"]
    assert add.statements == (
        CodeBlock.of("items.add(%T().apply(block).build())", ClassName.of("io.violabs.starship", "PassengerDslBuilder")),
    )


def test_map_group_type(passenger_config: DomainConfig) -> None:
    group = MapGroupGenerator().build_type(passenger_config)

    assert group.name == "MapGroup"
    assert [v.name for v in group.type_variables] == ["K"]
    assert group.property_named("items").type.render() == "MutableMap<K, Passenger>"
    assert group.function_named("items").return_type.render() == "Map<K, Passenger>"

    add = group.function_named("passenger")
    assert [p.name for p in add.parameters] == ["key", "block"]
    assert add.parameter("key").type.render() == "K"
    assert add.statements[0].format == "items[key] = %T().apply(block).build()"


def test_opt_out_contributes_nothing(builder_config: BuilderConfig) -> None:
    plain = DomainConfig(builder_config, DomainType("io.x.Plain"))
    builder = TypeSpecBuilder().with_name("PlainDslBuilder")

    assert ListGroupGenerator().generate(builder, plain) is None
    assert MapGroupGenerator().generate(builder, plain) is None
    assert builder.build().nested_types == ()


@pytest.mark.parametrize("mode", [MapGroupType.SINGLE, MapGroupType.LIST, MapGroupType.ALL])
def test_every_active_map_group_mode_opts_in(builder_config: BuilderConfig, mode: MapGroupType) -> None:
    config = DomainConfig(builder_config, DomainType("io.x.Crew", map_group_mode=mode))
    assert MapGroupGenerator().is_group(config)


def test_both_variants_share_one_algorithm() -> None:
    assert type(ListGroupGenerator()).build_type is GroupGenerator.build_type
    assert type(MapGroupGenerator()).build_type is GroupGenerator.build_type
    assert ListGroupGenerator().config is LIST_GROUP_CONFIG
    assert MapGroupGenerator().config is MAP_GROUP_CONFIG


def test_map_group_requires_type_variable() -> None:
    with pytest.raises(ValueError, match="Parameterized type required"):
        MAP_GROUP_CONFIG.property_type(None, ClassName.of("io.x", "Crew"))
