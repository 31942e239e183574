from __future__ import annotations

import pytest

from dslgen.config import BuilderConfig
from dslgen.diagnostics import Diagnostics
from dslgen.domain import DomainConfig, DomainProperty, DomainType, MapGroupType, TypeRef

PACKAGE = "io.violabs.starship"


def make_properties(*specs: tuple[str, TypeRef, bool]) -> tuple[DomainProperty, ...]:
    last = len(specs) - 1
    return tuple(
        DomainProperty(name=name, declared_type=declared, nullable=nullable, ordinal=i, is_last=i == last)
        for i, (name, declared, nullable) in enumerate(specs)
    )


@pytest.fixture
def builder_config() -> BuilderConfig:
    return BuilderConfig(
        project_root_classpath=PACKAGE,
        dsl_builder_classpath="io.violabs.core",
    )


@pytest.fixture
def diagnostics() -> Diagnostics:
    return Diagnostics(debug_enabled=True)


@pytest.fixture
def passenger() -> DomainType:
    return DomainType(
        qualified_name=f"{PACKAGE}.Passenger",
        properties=make_properties(
            ("name", TypeRef.string(), False),
            ("age", TypeRef.numeric("Int"), True),
        ),
        supports_list_group=True,
        map_group_mode=MapGroupType.SINGLE,
    )


@pytest.fixture
def star_ship(passenger: DomainType) -> DomainType:
    return DomainType(
        qualified_name=f"{PACKAGE}.StarShip",
        properties=make_properties(
            ("name", TypeRef.string(), False),
            ("crewMap", TypeRef.map(TypeRef.string(), passenger.as_type_ref()), False),
            ("notes", TypeRef.collection(TypeRef.string()), True),
            ("description", TypeRef.string(), True),
        ),
        is_root=True,
    )


@pytest.fixture
def fleet(star_ship: DomainType, passenger: DomainType) -> DomainType:
    return DomainType(
        qualified_name=f"{PACKAGE}.Fleet",
        properties=make_properties(
            ("tags", TypeRef.collection(TypeRef.string()), False),
            ("crew", TypeRef.collection(passenger.as_type_ref()), False),
            ("flagship", star_ship.as_type_ref(), False),
        ),
    )


@pytest.fixture
def star_ship_config(builder_config: BuilderConfig, star_ship: DomainType) -> DomainConfig:
    return DomainConfig(builder_config, star_ship)


@pytest.fixture
def passenger_config(builder_config: BuilderConfig, passenger: DomainType) -> DomainConfig:
    return DomainConfig(builder_config, passenger)


@pytest.fixture
def known_domains(star_ship: DomainType, passenger: DomainType) -> dict[str, DomainType]:
    return {d.qualified_name: d for d in (star_ship, passenger)}


@pytest.fixture
def properties_of():
    return make_properties
