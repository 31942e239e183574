"""
generator.py

Responsibility: Run one generation pass over a set of discovered domains.

High-level flow:
1) Build `BuilderConfig` (config errors abort before anything is generated)
2) Short-circuit when the pass is ignored
3) Per domain: resolve schemas -> builder file. An `IRError` aborts only that
   domain's file; it is recorded and the pass moves on.
4) One aggregate root accessor file when any domain is a root

Every pass constructs its own components and diagnostics; nothing is reused
across passes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from dslgen.builder_generator import BuilderGenerator
from dslgen.config import BuilderConfig
from dslgen.diagnostics import Diagnostic, Diagnostics
from dslgen.domain import DomainConfig, DomainType
from dslgen.ir import FileSpec, IRError
from dslgen.resolver import PropertySchemaResolver
from dslgen.root_generator import RootAccessorGenerator
from dslgen.schema import PropertySchema


@dataclass(frozen=True)
class GenerationFailure:
    domain: str
    error: IRError

    def __str__(self) -> str:
        return f"{self.domain}: {self.error}"


@dataclass
class GenerationResult:
    files: list[FileSpec] = field(default_factory=list)
    failures: list[GenerationFailure] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return not self.failures


class DslGenerator:
    def __init__(self, diagnostics: Diagnostics | None = None) -> None:
        self.diagnostics = diagnostics or Diagnostics()

    def generate(self, domains: list[DomainType], options: BuilderConfig | Mapping[str, Any]) -> GenerationResult:
        builder_config = options if isinstance(options, BuilderConfig) else BuilderConfig.from_mapping(options)
        result = GenerationResult()

        if builder_config.is_ignored:
            self.diagnostics.warn(f"[SKIP] generate for project: {builder_config.project_root_classpath}")
            result.skipped = True
            result.diagnostics = list(self.diagnostics.records)
            return result

        self.diagnostics.debug(f"GENERATE for project: {builder_config.project_root_classpath}")
        if self.diagnostics.debug_enabled:
            builder_config.log_debug(self.diagnostics.log)

        known_domains = {d.qualified_name: d for d in domains}
        resolver = PropertySchemaResolver(self.diagnostics, known_domains)
        builder_generator = BuilderGenerator(self.diagnostics)

        for domain in domains:
            domain_config = DomainConfig(builder_config, domain)
            try:
                schemas: list[PropertySchema] = resolver.resolve_domain(domain)
                result.files.append(builder_generator.generate_file(domain_config, schemas))
            except IRError as e:
                self.diagnostics.error(f"builder generation failed: {e}", domain=domain.qualified_name, exc=e)
                result.failures.append(GenerationFailure(domain.qualified_name, e))

        roots = [d for d in domains if d.is_root]
        if not roots:
            self.diagnostics.debug("No root classes found.")
        else:
            try:
                result.files.append(RootAccessorGenerator(self.diagnostics).generate(roots, builder_config))
            except IRError as e:
                self.diagnostics.error(f"root accessor generation failed: {e}", exc=e)
                result.failures.append(GenerationFailure(builder_config.root_dsl_file_classpath, e))

        self.diagnostics.info(f"generated {len(result.files)} file(s), {len(result.failures)} failure(s)")
        result.diagnostics = list(self.diagnostics.records)
        return result


def generate(domains: list[DomainType], options: BuilderConfig | Mapping[str, Any], *,
             debug: bool = False) -> GenerationResult:
    """Run a fresh pass with its own diagnostics context."""
    return DslGenerator(Diagnostics(debug_enabled=debug)).generate(domains, options)
