from __future__ import annotations

import pytest

from dslgen.builder_generator import BuilderGenerator
from dslgen.config import BuilderConfig, ConfigError
from dslgen.diagnostics import Diagnostics
from dslgen.domain import DomainProperty, DomainType, TransformHint, TypeRef
from dslgen.generator import DslGenerator, generate
from dslgen.ir import AlreadySetError, ImportConflictError, InvalidTemplateError

OPTIONS = {
    "projectRootClasspath": "io.violabs.starship",
    "dslBuilderClasspath": "io.violabs.core",
}


def test_pass_generates_builders_and_root_file(star_ship: DomainType, passenger: DomainType) -> None:
    result = generate([star_ship, passenger], OPTIONS)

    assert result.ok
    assert not result.skipped
    assert [f.qualified_name for f in result.files] == [
        "io.violabs.starship.StarShipDsl",
        "io.violabs.starship.PassengerDsl",
        "io.violabs.starship.RootDslAccessor",
    ]


def test_no_roots_means_no_root_file(passenger: DomainType) -> None:
    result = generate([passenger], OPTIONS)
    assert [f.qualified_name for f in result.files] == ["io.violabs.starship.PassengerDsl"]


def test_ignored_pass_produces_nothing(star_ship: DomainType) -> None:
    result = generate([star_ship], {**OPTIONS, "isIgnored": "true"})

    assert result.skipped
    assert result.files == []
    assert result.diagnostics[0].message.startswith("[SKIP]")


@pytest.mark.parametrize("missing", ["projectRootClasspath", "dslBuilderClasspath"])
def test_missing_configuration_aborts_before_generation(star_ship: DomainType, missing: str) -> None:
    options = {k: v for k, v in OPTIONS.items() if k != missing}
    with pytest.raises(ConfigError, match=f"{missing} is missing"):
        generate([star_ship], options)


def test_ir_error_only_aborts_its_own_domain(star_ship: DomainType, passenger: DomainType, monkeypatch) -> None:
    original = BuilderGenerator.generate_file

    def failing(self, domain_config, schemas):
        if domain_config.type_name == "StarShip":
            raise AlreadySetError("Property name: type already set")
        return original(self, domain_config, schemas)

    monkeypatch.setattr(BuilderGenerator, "generate_file", failing)

    diagnostics = Diagnostics()
    result = DslGenerator(diagnostics).generate([star_ship, passenger], BuilderConfig.from_mapping(OPTIONS))

    assert not result.ok
    [failure] = result.failures
    assert failure.domain == "io.violabs.starship.StarShip"
    assert isinstance(failure.error, AlreadySetError)
    assert [e.domain for e in diagnostics.errors] == ["io.violabs.starship.StarShip"]
    assert [f.qualified_name for f in result.files] == [
        "io.violabs.starship.PassengerDsl",
        "io.violabs.starship.RootDslAccessor",
    ]


def test_fallbacks_are_reported_with_context() -> None:
    domain = DomainType(
        "io.x.Event",
        properties=(DomainProperty("at", TypeRef.nominal("java.time.Instant")),),
    )
    result = generate([domain], OPTIONS)

    assert result.ok
    [warning] = [d for d in result.diagnostics if d.fallback]
    assert warning.domain == "io.x.Event"
    assert warning.property == "at"
    assert warning.fallback == "Default"


def test_passes_do_not_share_state(star_ship: DomainType) -> None:
    first = generate([star_ship], OPTIONS)
    second = generate([star_ship], OPTIONS)
    assert first.files == second.files
    assert first.diagnostics == second.diagnostics


def test_import_clash_fails_only_its_domain(passenger: DomainType) -> None:
    domain = DomainType(
        "io.x.Release",
        properties=(
            DomainProperty("current", TypeRef.nominal("io.a.Version"), ordinal=0, is_last=False),
            DomainProperty("previous", TypeRef.nominal("io.b.Version"), ordinal=1),
        ),
    )
    result = generate([domain, passenger], OPTIONS)

    [failure] = result.failures
    assert failure.domain == "io.x.Release"
    assert isinstance(failure.error, ImportConflictError)
    assert [f.qualified_name for f in result.files] == ["io.violabs.starship.PassengerDsl"]


def test_unsupported_transform_placeholder_fails_only_its_domain(passenger: DomainType) -> None:
    version = TypeRef.nominal("io.x.Version")
    domain = DomainType(
        "io.x.Release",
        properties=(
            DomainProperty(
                "version",
                version,
                single_entry_transform=TransformHint(input_type=TypeRef.string(), template="Version.parse(%S)"),
            ),
        ),
    )
    result = generate([domain, passenger], OPTIONS)

    [failure] = result.failures
    assert failure.domain == "io.x.Release"
    assert isinstance(failure.error, InvalidTemplateError)
    assert "found %S" in str(failure.error)
    assert [f.qualified_name for f in result.files] == ["io.violabs.starship.PassengerDsl"]
