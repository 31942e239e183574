"""
renderer.py

Responsibility: Deterministically render `FileSpec`s to Kotlin source and write them out.

Rules:
- Layout lives in packaged Jinja2 templates (`dslgen/templates/*.kt.j2`).
- Code placeholders (`%T`, `%N`, `%L`, `%S`) are expanded here, never in templates.
- Children are emitted in the order the IR holds them; nothing is re-sorted
  except modifiers, which always print access first.
- Output uses LF newlines and ends with exactly one newline.

This module intentionally does NOT know about domains, schemas, or CLI parsing.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

from jinja2 import Environment, PackageLoader, StrictUndefined

from dslgen.ir import (
    ACCESS_MODIFIERS,
    ArgumentList,
    CodeBlock,
    FileSpec,
    FunctionSpec,
    Modifier,
    ParameterSpec,
    PropertySpec,
    TypeAliasSpec,
    TypeSpec,
)
from dslgen.typenames import TypeName

GENERATED_HEADER = "// Code generated by dslgen. DO NOT EDIT."
INDENT = "    "

_PLACEHOLDER = re.compile(r"%([TNLS%])")


class RenderError(RuntimeError):
    pass


@dataclass(frozen=True)
class RenderResult:
    rendered_files: int
    paths: tuple[Path, ...] = ()


# ---------------------------------------------------------------------------
# Code blocks
# ---------------------------------------------------------------------------


def string_literal(value: str) -> str:
    escaped = (
        str(value)
        .replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("$", "\\$")
        .replace("\n", "\\n")
        .replace("\t", "\\t")
    )
    return f'"{escaped}"'


def _name_of(arg: Any) -> str:
    if isinstance(arg, str):
        return arg
    name = getattr(arg, "name", None)
    if not isinstance(name, str):
        raise RenderError(f"%N expects a name or a named spec, got {arg!r}")
    return name


def _literal(arg: Any) -> str:
    if isinstance(arg, CodeBlock):
        return format_code(arg)
    if isinstance(arg, ArgumentList):
        return format_arguments(arg)
    if isinstance(arg, TypeName):
        return arg.render()
    if isinstance(arg, bool):
        return "true" if arg else "false"
    return str(arg)


def format_arguments(arguments: ArgumentList) -> str:
    """Named arguments, one per line; the surrounding parentheses come from the format."""
    if not arguments:
        return ""
    lines = ",\n".join(INDENT + format_code(a) for a in arguments.arguments)
    return f"\n{lines}\n"


def format_code(block: CodeBlock) -> str:
    args = iter(block.args)

    def substitute(match: re.Match[str]) -> str:
        placeholder = match.group(1)
        if placeholder == "%":
            return "%"
        try:
            arg = next(args)
        except StopIteration:
            raise RenderError(f"Not enough arguments for {block.format!r}") from None
        if placeholder == "T":
            if not isinstance(arg, TypeName):
                raise RenderError(f"%T expects a type name, got {arg!r}")
            return arg.render()
        if placeholder == "N":
            return _name_of(arg)
        if placeholder == "S":
            return string_literal(arg)
        return _literal(arg)

    text = _PLACEHOLDER.sub(substitute, block.format)
    if next(args, None) is not None:
        raise RenderError(f"Too many arguments for {block.format!r}")
    return text


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------


def format_modifiers(modifiers: Iterable[Modifier]) -> str:
    ordered = sorted(modifiers, key=lambda m: 0 if m in ACCESS_MODIFIERS else 1)
    return "".join(f"{m.value} " for m in ordered)


def format_parameter(param: ParameterSpec) -> str:
    text = f"{format_modifiers(param.modifiers)}{param.name}: {param.type.render()}"
    if param.default is not None:
        text += f" = {param.default}"
    return text


def format_property(prop: PropertySpec) -> str:
    keyword = "var" if prop.mutable else "val"
    text = f"{format_modifiers(prop.modifiers)}{keyword} {prop.name}: {prop.type.render()}"
    if prop.initializer is not None:
        text += f" = {format_code(prop.initializer)}"
    return text


def format_signature(fn: FunctionSpec) -> str:
    params = ", ".join(format_parameter(p) for p in fn.parameters)
    text = f"{format_modifiers(fn.modifiers)}fun {fn.name}({params})"
    if fn.return_type is not None:
        text += f": {fn.return_type.render()}"
    return text


def _type_variables(variables: Iterable[TypeName]) -> str:
    names = [v.render() for v in variables]
    return f"<{', '.join(names)}>" if names else ""


def format_type_header(type_spec: TypeSpec) -> str:
    text = f"{format_modifiers(type_spec.modifiers)}class {type_spec.name}{_type_variables(type_spec.type_variables)}"
    if type_spec.super_type is not None:
        text += f" : {type_spec.super_type.render()}"
    return text


def format_type_alias(alias: TypeAliasSpec) -> str:
    return f"typealias {alias.name}{_type_variables(alias.type_variables)} = {alias.aliased_type.render()}"


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


def _environment() -> Environment:
    env = Environment(
        loader=PackageLoader("dslgen", "templates"),
        autoescape=False,
        undefined=StrictUndefined,
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters.update(
        {
            "code": format_code,
            "kt_type": lambda t: t.render(),
            "property_decl": format_property,
            "signature": format_signature,
            "type_header": format_type_header,
            "type_alias": format_type_alias,
        }
    )
    return env


def render_file(file_spec: FileSpec) -> str:
    """Render one file to Kotlin source text."""
    try:
        template = _environment().get_template("file.kt.j2")
        out = template.render(file=file_spec, header=GENERATED_HEADER)
    except RenderError:
        raise
    except Exception as e:  # noqa: BLE001 - surface as RenderError
        raise RenderError(f"Failed rendering file: {file_spec.qualified_name}") from e
    return out.rstrip("\n") + "\n"


def output_path(file_spec: FileSpec, destination_dir: str | Path) -> Path:
    """`<destination>/<package as directories>/<Name>.kt`"""
    package_dir = Path(*file_spec.package.split(".")) if file_spec.package else Path()
    return Path(destination_dir) / package_dir / f"{file_spec.class_name.simple_name}.kt"


def write_files(files: Iterable[FileSpec], destination_dir: str | Path) -> RenderResult:
    """
    Render every file into destination_dir.

    - Creates package directories as needed.
    - Existing files at the same path are replaced.
    """
    dst_dir = Path(destination_dir).resolve()
    written: list[Path] = []
    for file_spec in files:
        text = render_file(file_spec)
        path = output_path(file_spec, dst_dir)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8", newline="\n")
        written.append(path)
    return RenderResult(rendered_files=len(written), paths=tuple(written))
