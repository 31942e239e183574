from __future__ import annotations

from pathlib import Path

import pytest

from dslgen.cli import main

DOC = """\
options:
  projectRootClasspath: io.violabs.starship
  dslBuilderClasspath: io.violabs.core
domains:
  - name: io.violabs.starship.StarShip
    root: true
    properties:
      - {name: name, type: String}
      - {name: crewMap, type: "Map<String, Passenger>"}
      - {name: notes, type: "List<String>?"}
      - {name: description, type: "String?"}
  - name: io.violabs.starship.Passenger
    mapGroup: SINGLE
    properties:
      - {name: name, type: String}
"""


@pytest.fixture
def domain_file(tmp_path: Path) -> Path:
    path = tmp_path / "domains.yaml"
    path.write_text(DOC, encoding="utf-8")
    return path


def test_generate_writes_files(tmp_path: Path, domain_file: Path) -> None:
    out = tmp_path / "out"
    assert main(["generate", str(domain_file), "--out", str(out)]) == 0

    package_dir = out / "io" / "violabs" / "starship"
    assert sorted(p.name for p in package_dir.iterdir()) == [
        "PassengerDsl.kt",
        "RootDslAccessor.kt",
        "StarShipDsl.kt",
    ]


def test_generate_refuses_non_empty_output(tmp_path: Path, domain_file: Path, capsys) -> None:
    out = tmp_path / "out"
    out.mkdir()
    (out / "keep.txt").write_text("x", encoding="utf-8")

    assert main(["generate", str(domain_file), "--out", str(out)]) == 2
    assert "not empty" in capsys.readouterr().err

    assert main(["generate", str(domain_file), "--out", str(out), "--overwrite"]) == 0


def test_cli_overrides_document_options(tmp_path: Path, domain_file: Path) -> None:
    out = tmp_path / "out"
    code = main(
        [
            "generate",
            str(domain_file),
            "--out",
            str(out),
            "--root-dsl-file-classpath",
            "io.violabs.dsl",
            "--dsl-marker-class",
            "io.violabs.core.GeneratedDsl",
        ]
    )
    assert code == 0
    root = (out / "io" / "violabs" / "dsl" / "RootDslAccessor.kt").read_text(encoding="utf-8")
    assert "import io.violabs.starship.StarShipDslBuilder\n" in root

    builder = (out / "io" / "violabs" / "starship" / "StarShipDsl.kt").read_text(encoding="utf-8")
    assert "@GeneratedDsl\npublic class StarShipDslBuilder" in builder


def test_ignore_writes_nothing(tmp_path: Path, domain_file: Path) -> None:
    out = tmp_path / "out"
    assert main(["generate", str(domain_file), "--out", str(out), "--ignore"]) == 0
    assert not out.exists()


def test_missing_configuration_is_reported(tmp_path: Path, capsys) -> None:
    path = tmp_path / "domains.yaml"
    path.write_text("options:\n  projectRootClasspath: io.x\ndomains: []\n", encoding="utf-8")

    assert main(["generate", str(path), "--out", str(tmp_path / "out")]) == 2
    assert "dslBuilderClasspath is missing" in capsys.readouterr().err


def test_schemas_command(domain_file: Path, capsys) -> None:
    assert main(["schemas", str(domain_file)]) == 0
    out = capsys.readouterr().out
    assert out.splitlines() == [
        "io.violabs.starship.StarShip",
        "  Default(name)",
        "  MapGroup(crewMap)",
        "  Collection(notes, nullable)",
        "  Default(description, nullable)",
        "io.violabs.starship.Passenger",
        "  Default(name)",
    ]
