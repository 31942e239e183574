"""
builder_generator.py

Responsibility: Turn a domain's property schemas into its `<Type>DslBuilder` file.

The file contains:
- scope type aliases (`<Builder>Scope`, plus Group/MapGroup scopes when present)
- the builder type: one property and accessor(s) per schema, an overriding
  `build()` that calls the domain constructor, and nested group containers.

Validation helpers used by `build()` are imported only when at least one
property needs them.
"""

from __future__ import annotations

from dslgen.diagnostics import Diagnostics
from dslgen.domain import DomainConfig, TypeKind
from dslgen.groups import ListGroupGenerator, MapGroupGenerator
from dslgen.ir import (
    ArgumentList,
    CodeBlock,
    FileSpec,
    FileSpecBuilder,
    FunctionSpecBuilder,
    TypeAliasSpec,
    TypeAliasSpecBuilder,
    TypeSpec,
    TypeSpecBuilder,
)
from dslgen.schema import (
    MAP_GROUP_KEY,
    PropertySchema,
    Verification,
    accessors,
    property_value_return,
    to_property_spec,
    verification,
)
from dslgen.typenames import ClassName, LambdaTypeName


def create_dsl_marker_if_available(dsl_marker_class: str | None) -> ClassName | None:
    """The marker annotation class, or None when the project has no marker configured."""
    if not dsl_marker_class:
        return None
    return ClassName.from_qualified(dsl_marker_class)


class BuilderGenerator:
    def __init__(
        self,
        diagnostics: Diagnostics | None = None,
        list_group_generator: ListGroupGenerator | None = None,
        map_group_generator: MapGroupGenerator | None = None,
    ) -> None:
        self.diagnostics = diagnostics or Diagnostics()
        self.list_group_generator = list_group_generator or ListGroupGenerator(self.diagnostics)
        self.map_group_generator = map_group_generator or MapGroupGenerator(self.diagnostics)

    def generate(self, domain_config: DomainConfig, schemas: list[PropertySchema]) -> TypeSpec:
        """The builder type for one domain."""
        dsl_marker = create_dsl_marker_if_available(domain_config.builder_config.dsl_marker_class)
        if dsl_marker is not None:
            self.diagnostics.debug("DSL marker added", tier=1, branch=True)

        builder = (
            TypeSpecBuilder()
            .add_annotation(dsl_marker)
            .public()
            .with_name(domain_config.builder_name)
            .with_super_type(domain_config.parameterized_dsl_builder)
        )
        self.diagnostics.debug("DSL builder interface added", tier=1, branch=True)

        for schema in schemas:
            builder.add_property(to_property_spec(schema))
        self.diagnostics.debug("properties added", tier=1, branch=True)

        for schema in schemas:
            builder.add_functions(accessors(schema))
        builder.add_function(self._build_function(domain_config, schemas))

        self.list_group_generator.generate(builder, domain_config, dsl_marker)
        self.map_group_generator.generate(builder, domain_config, dsl_marker)

        return builder.build()

    @staticmethod
    def _build_function(domain_config: DomainConfig, schemas: list[PropertySchema]) -> FunctionSpecBuilder:
        domain_class = domain_config.domain_class_name
        fn = FunctionSpecBuilder().override().with_name("build").returns(domain_class)

        if not schemas:
            return fn.add_statement("return %T()", domain_class)

        arguments = ArgumentList(
            tuple(CodeBlock.of("%N = %L", s.prop_name, property_value_return(s)) for s in schemas)
        )
        return fn.add_statement("return %T(%L)", domain_class, arguments)

    def scope_alias_names(self, domain_config: DomainConfig) -> list[str]:
        names = [domain_config.builder_name]
        if self.list_group_generator.config.is_group(domain_config.domain):
            names.append(f"{domain_config.builder_name}.Group")
        if self.map_group_generator.config.is_group(domain_config.domain):
            names.append(f"{domain_config.builder_name}.MapGroup")
        return names

    def type_aliases(self, domain_config: DomainConfig) -> list[TypeAliasSpec]:
        """
        `StarShipDslBuilderScope = StarShipDslBuilder.() -> Unit`, and for containers
        `StarShipDslBuilderGroupScope` / `StarShipDslBuilderMapGroupScope<K>`.
        """
        aliases = []
        for base_name in self.scope_alias_names(domain_config):
            receiver = ClassName.of(domain_config.package_name, *base_name.split("."))
            alias = TypeAliasSpecBuilder().with_name(base_name.replace(".", "") + "Scope")
            if receiver.simple_name == "MapGroup":
                alias.with_type(LambdaTypeName(receiver=receiver.parameterized_by(MAP_GROUP_KEY)))
                alias.with_type_variables(MAP_GROUP_KEY)
            else:
                alias.with_type(LambdaTypeName(receiver=receiver))
            self.diagnostics.debug(f"typeAlias added: {alias.name}", tier=1, branch=True)
            aliases.append(alias.build())
        return aliases

    def generate_file(self, domain_config: DomainConfig, schemas: list[PropertySchema]) -> FileSpec:
        self.diagnostics.debug("-- generating builder --")
        self.diagnostics.debug(f"+++ DOMAIN: {domain_config.domain_class_name} +++")
        self.diagnostics.debug(f"package: {domain_config.package_name}", tier=1, branch=True)
        self.diagnostics.debug(f"builder: {domain_config.builder_name}", tier=1, branch=True)

        builder_type = self.generate(domain_config, schemas)
        aliases = self.type_aliases(domain_config)

        checks = {verification(s) for s in schemas}
        helper_package = domain_config.builder_config.dsl_builder_classpath

        file = FileSpecBuilder().with_class_name(domain_config.file_class_name)
        for check in (Verification.NOT_NULL, Verification.COLLECTION_NOT_EMPTY, Verification.MAP_NOT_EMPTY):
            self.diagnostics.debug(f"{check.helper}: {check in checks}", tier=1, branch=True)
            file.add_import_if(check in checks, helper_package, check.helper)

        for schema in schemas:
            default = schema.default_value
            if default is not None and default.value_type.kind is TypeKind.NOMINAL:
                value_class = default.value_type.class_name().top_level
                if value_class.package and value_class.package != domain_config.package_name:
                    file.add_import(value_class.package, value_class.simple_name)

        for alias in aliases:
            file.add_type_alias(alias)
        file.add_type(builder_type)

        spec = file.build()
        self.diagnostics.debug(f"file generated: {domain_config.file_class_name}", tier=1)
        return spec
