"""
cli.py

Responsibility: CLI entrypoint for dslgen.

High-level flow (`generate`):
1) Parse the domain document -> `DomainFile`
2) Merge CLI overrides into the document's options -> `BuilderConfig`
3) Run one generation pass -> `GenerationResult`
4) Render and write every generated file under `--out`

`schemas` stops after classification and prints one line per property.

This module should orchestrate behavior but keep concerns isolated:
- Domain parsing: `spec_parser.py`
- Generation: `generator.py`
- Rendering: `renderer.py`
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

from dslgen.config import BuilderConfig, ConfigError
from dslgen.diagnostics import Diagnostics
from dslgen.generator import DslGenerator
from dslgen.renderer import RenderError, write_files
from dslgen.resolver import PropertySchemaResolver
from dslgen.schema import describe
from dslgen.spec_parser import SpecError, parse_domain_file

logger = logging.getLogger(__name__)


class CLIError(RuntimeError):
    pass


def _ensure_empty_dir(path: Path, *, overwrite: bool) -> None:
    path.mkdir(parents=True, exist_ok=True)
    if not overwrite:
        # If any children exist, refuse.
        if any(path.iterdir()):
            raise CLIError(f"Output directory is not empty: {path} (use --overwrite to allow)")


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _options(document_options: dict[str, Any], args: argparse.Namespace) -> dict[str, Any]:
    # CLI overrides
    options = dict(document_options)
    overrides = {
        "projectRootClasspath": args.project_root,
        "dslBuilderClasspath": args.dsl_builder_classpath,
        "rootDslFileClasspath": args.root_dsl_file_classpath,
        "dslMarkerClass": args.dsl_marker_class,
    }
    options.update({k: v for k, v in overrides.items() if v is not None})
    if args.ignore:
        options["isIgnored"] = True
    return options


def generate_cmd(args: argparse.Namespace) -> int:
    _configure_logging(bool(args.debug))
    document = parse_domain_file(args.domain_file)
    builder_config = BuilderConfig.from_mapping(_options(document.options, args))

    generator = DslGenerator(Diagnostics(debug_enabled=bool(args.debug)))
    result = generator.generate(list(document.domains), builder_config)
    if result.skipped:
        return 0

    out_dir = Path(args.out).resolve()
    _ensure_empty_dir(out_dir, overwrite=bool(args.overwrite))
    rendered = write_files(result.files, out_dir)
    logger.info("wrote %d file(s) to %s", rendered.rendered_files, out_dir)

    for failure in result.failures:
        print(f"error: {failure}", file=sys.stderr)
    return 0 if result.ok else 1


def schemas_cmd(args: argparse.Namespace) -> int:
    _configure_logging(bool(args.debug))
    document = parse_domain_file(args.domain_file)

    diagnostics = Diagnostics(debug_enabled=bool(args.debug))
    resolver = PropertySchemaResolver(diagnostics, {d.qualified_name: d for d in document.domains})
    for domain in document.domains:
        print(domain.qualified_name)
        for schema in resolver.resolve_domain(domain):
            print(f"  {describe(schema)}")
    for warning in diagnostics.warnings:
        print(f"warning: {warning}", file=sys.stderr)
    return 0


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("domain_file", help="Path to the domain document (YAML or markdown with YAML frontmatter)")
    p.add_argument("--debug", action="store_true", help="Enable tiered debug logging for the pass")


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="dslgen", description="dslgen - builder DSL source generator")
    sub = p.add_subparsers(dest="command", required=True)

    g = sub.add_parser("generate", help="Generate builder files and the root accessor file")
    _add_common(g)
    g.add_argument("--out", default="generated", help="Directory to write sources into (default: generated)")
    g.add_argument("--overwrite", action="store_true", help="Allow non-empty output directory")
    g.add_argument("--project-root", default=None, help="projectRootClasspath (overrides document options)")
    g.add_argument("--dsl-builder-classpath", default=None, help="dslBuilderClasspath (overrides document options)")
    g.add_argument("--root-dsl-file-classpath", default=None, help="Package of the root accessor file")
    g.add_argument("--dsl-marker-class", default=None, help="Qualified name of the DSL marker annotation")
    g.add_argument("--ignore", action="store_true", help="Skip generation for this project")
    g.set_defaults(func=generate_cmd)

    s = sub.add_parser("schemas", help="Print the schema chosen for every property")
    _add_common(s)
    s.set_defaults(func=schemas_cmd)
    return p


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    try:
        return int(args.func(args))
    except (CLIError, SpecError, ConfigError, RenderError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
