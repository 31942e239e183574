"""
groups.py

Responsibility: Nested container types (`Group`, `MapGroup<K>`) inside a builder.

Both containers come from one algorithm (`GroupGenerator`) parameterized by a
`GroupConfig`: an opt-in check, code templates, and how the backing/built
collection types are derived. The list and map variants only differ in config.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from dslgen.diagnostics import Diagnostics
from dslgen.domain import DomainConfig, DomainType
from dslgen.ir import (
    FunctionSpecBuilder,
    ParameterSpecBuilder,
    PropertySpecBuilder,
    TypeSpec,
    TypeSpecBuilder,
)
from dslgen.schema import MAP_GROUP_KEY
from dslgen.typenames import (
    ClassName,
    TypeName,
    TypeVariableName,
    list_type_of,
    map_type_of,
    mutable_list_type_of,
    mutable_map_type_of,
)


@dataclass(frozen=True)
class Namespace:
    check_name: str
    type_name: str
    type_variable: TypeVariableName | None = None


@dataclass(frozen=True)
class Templates:
    prop: str
    items_return: str
    builder_add: str


@dataclass(frozen=True)
class GroupConfig:
    namespace: Namespace
    templates: Templates
    is_group: Callable[[DomainType], bool]
    # (type variable, domain class) -> type of the private backing collection
    property_type: Callable[[TypeName | None, ClassName], TypeName]
    # (type variable, domain class) -> return type of items()
    built_type: Callable[[TypeName | None, ClassName], TypeName]


def _require_key(type_variable: TypeName | None) -> TypeName:
    if type_variable is None:
        raise ValueError("Parameterized type required for MapGroup")
    return type_variable


LIST_GROUP_CONFIG = GroupConfig(
    namespace=Namespace(check_name="isListGroup", type_name="Group"),
    templates=Templates(
        prop="mutableListOf()",
        items_return="return items.toList()",
        builder_add="items.add(%T().apply(block).build())",
    ),
    is_group=lambda domain: domain.supports_list_group,
    property_type=lambda _, domain_class: mutable_list_type_of(domain_class),
    built_type=lambda _, domain_class: list_type_of(domain_class),
)

MAP_GROUP_CONFIG = GroupConfig(
    namespace=Namespace(check_name="isMapGroup", type_name="MapGroup", type_variable=MAP_GROUP_KEY),
    templates=Templates(
        prop="mutableMapOf()",
        items_return="return items.toMap()",
        builder_add="items[key] = %T().apply(block).build()",
    ),
    is_group=lambda domain: domain.supports_map_group,
    property_type=lambda key, domain_class: mutable_map_type_of(_require_key(key), domain_class),
    built_type=lambda key, domain_class: map_type_of(_require_key(key), domain_class),
)


class GroupGenerator:
    def __init__(self, config: GroupConfig, diagnostics: Diagnostics | None = None) -> None:
        self.config = config
        self.diagnostics = diagnostics or Diagnostics()

    def is_group(self, domain_config: DomainConfig) -> bool:
        is_group = self.config.is_group(domain_config.domain)
        self.diagnostics.debug(f"[DECISION] {self.config.namespace.check_name}: {is_group}", tier=1)
        return is_group

    def build_type(self, domain_config: DomainConfig, dsl_marker: ClassName | None = None) -> TypeSpec | None:
        """
        The nested container type, or None when the domain does not opt in.

        The container holds a private backing collection, an `items()` snapshot,
        and an add function named after the domain that builds one child per call.
        """
        if not self.is_group(domain_config):
            return None

        namespace = self.config.namespace
        templates = self.config.templates
        domain_class = domain_config.domain_class_name
        type_variable = namespace.type_variable
        self.diagnostics.debug(f"{namespace.type_name} added", tier=1, branch=True)

        nested = TypeSpecBuilder().with_name(namespace.type_name).add_annotation(dsl_marker)
        if type_variable is not None:
            nested.with_type_variables(type_variable)

        nested.add_property(
            PropertySpecBuilder()
            .private()
            .with_name("items")
            .value()
            .with_type(self.config.property_type(type_variable, domain_class))
            .with_initializer(templates.prop)
        )

        nested.add_function(
            FunctionSpecBuilder()
            .with_name("items")
            .returns(self.config.built_type(type_variable, domain_class))
            .add_statement(templates.items_return)
        )

        add = FunctionSpecBuilder().with_name(domain_config.function_name)
        if type_variable is not None:
            add.add_parameter(ParameterSpecBuilder().with_name("key").with_type(type_variable, nullable=False))
        add.add_parameter(ParameterSpecBuilder().lambda_type(domain_config.builder_class_name))
        add.add_statement(templates.builder_add, domain_config.builder_class_name)
        nested.add_function(add)

        return nested.build()

    def generate(self, builder: TypeSpecBuilder, domain_config: DomainConfig,
                 dsl_marker: ClassName | None = None) -> TypeSpec | None:
        """Add the container to `builder` when the domain opts in; returns what was added."""
        nested = self.build_type(domain_config, dsl_marker)
        if nested is not None:
            builder.add_nested_type(nested)
        return nested


class ListGroupGenerator(GroupGenerator):
    def __init__(self, diagnostics: Diagnostics | None = None) -> None:
        super().__init__(LIST_GROUP_CONFIG, diagnostics)


class MapGroupGenerator(GroupGenerator):
    def __init__(self, diagnostics: Diagnostics | None = None) -> None:
        super().__init__(MAP_GROUP_CONFIG, diagnostics)
