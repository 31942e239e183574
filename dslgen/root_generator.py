"""
root_generator.py

Responsibility: Top-level entry points for root domains, aggregated in one file.

For each root domain `StarShip`:

    fun starShip(block: StarShipDslBuilder.() -> Unit): StarShip {
        val builder = StarShipDslBuilder()
        builder.block()
        return builder.build()
    }

Functions keep the order the domains were discovered in.
"""

from __future__ import annotations

from dslgen.config import BuilderConfig
from dslgen.diagnostics import Diagnostics
from dslgen.domain import DomainConfig, DomainType
from dslgen.ir import FileSpec, FileSpecBuilder, FunctionSpec, FunctionSpecBuilder, ParameterSpecBuilder
from dslgen.typenames import ClassName

ROOT_FILE_NAME = "RootDslAccessor"


class RootFunctionGenerator:
    def generate(self, domain: DomainType, builder_config: BuilderConfig) -> FunctionSpec:
        domain_config = DomainConfig(builder_config, domain)
        builder_class = domain_config.builder_class_name

        fn = FunctionSpecBuilder().with_name(domain_config.function_name)
        fn.add_parameter(ParameterSpecBuilder().lambda_type(builder_class))
        fn.returns(domain_config.domain_class_name)
        fn.with_doc(f"Builds a [{domain_config.type_name}] by applying [block] to a new [{builder_class.simple_name}].")
        fn.add_statement("val builder = %T()", builder_class)
        fn.add_statement("builder.block()")
        fn.add_statement("return builder.build()")
        return fn.build()


class RootAccessorGenerator:
    def __init__(
        self,
        diagnostics: Diagnostics | None = None,
        root_function_generator: RootFunctionGenerator | None = None,
    ) -> None:
        self.diagnostics = diagnostics or Diagnostics()
        self.root_function_generator = root_function_generator or RootFunctionGenerator()

    def generate(self, domains: list[DomainType], builder_config: BuilderConfig) -> FileSpec:
        file = FileSpecBuilder().with_class_name(
            ClassName.of(builder_config.root_dsl_file_classpath, ROOT_FILE_NAME)
        )
        for domain in domains:
            file.add_function(self.root_function_generator.generate(domain, builder_config))
            self.diagnostics.debug(f"root function added: {domain.qualified_name}", tier=1, branch=True)

        spec = file.build()
        self.diagnostics.debug(f"file generated: {ROOT_FILE_NAME}", tier=1)
        return spec
