"""
spec_parser.py

Responsibility: Load a domain description document into immutable domain models.

This is the front end of a pass. It stays conservative:
- It accepts a plain YAML document, or markdown with YAML frontmatter.
- Type strings use target-language notation (`Map<String, Passenger>?`).
- Simple type names resolve to domains declared in the same document first,
  then to the declaring domain's package.

Everything after this module treats the parsed result as the single source of truth.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from dslgen.domain import (
    DefaultValueHint,
    DomainProperty,
    DomainType,
    MapGroupType,
    TransformHint,
    TypeRef,
)
from dslgen.typenames import NUMERIC_TYPES


class SpecError(ValueError):
    pass


@dataclass(frozen=True)
class DomainFile:
    """Parsed domain document: pass options, transform side map, ordered domains."""

    options: dict[str, Any] = field(default_factory=dict)
    transforms: dict[str, TransformHint] = field(default_factory=dict)
    domains: tuple[DomainType, ...] = ()

    def domain(self, name: str) -> DomainType:
        for domain in self.domains:
            if domain.qualified_name == name or domain.simple_name == name:
                return domain
        raise KeyError(name)


def _parse_yaml_frontmatter(text: str) -> tuple[dict[str, Any] | None, str]:
    """
    If the markdown begins with YAML frontmatter delimited by '---', parse it.
    Returns (frontmatter_dict_or_none, remaining_markdown_text).
    """
    if not text.startswith("---\n"):
        return None, text

    # Find the closing delimiter.
    end = text.find("\n---\n", 4)
    if end == -1:
        raise SpecError("YAML frontmatter starts with '---' but no closing '---' was found.")

    fm_text = text[4:end]  # between delimiters
    rest = text[end + len("\n---\n") :]
    data = yaml.safe_load(fm_text) or {}
    if not isinstance(data, dict):
        raise SpecError("YAML frontmatter must be a mapping/object at the top level.")
    return data, rest


def _load_document(text: str) -> dict[str, Any]:
    frontmatter, _rest = _parse_yaml_frontmatter(text)
    if frontmatter is not None:
        return frontmatter
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise SpecError(f"Domain document is not valid YAML: {e}") from e
    if not isinstance(data, dict):
        raise SpecError("Domain document must be a mapping/object at the top level.")
    return data


# ---------------------------------------------------------------------------
# Type strings
# ---------------------------------------------------------------------------

_TOKEN = re.compile(r"\s*(?:([A-Za-z_][\w.]*)|(.))")

_SCALARS = {
    "Boolean": TypeRef.boolean,
    "String": TypeRef.string,
    "Char": TypeRef.char,
}
_LIST_NAMES = {"List", "kotlin.collections.List"}
_MAP_NAMES = {"Map", "kotlin.collections.Map"}


def _tokenize(text: str) -> list[str]:
    tokens: list[str] = []
    for match in _TOKEN.finditer(text):
        name, symbol = match.groups()
        if name:
            tokens.append(name)
        elif symbol and not symbol.isspace():
            tokens.append(symbol)
    return tokens


class _TypeParser:
    """`type := NAME ('<' type (',' type)* '>')? '?'?`"""

    def __init__(self, text: str, registry: dict[str, DomainType], package: str) -> None:
        self.text = text
        self.tokens = _tokenize(text)
        self.pos = 0
        self.registry = registry
        self.package = package

    def _peek(self) -> str | None:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _take(self, expected: str | None = None) -> str:
        token = self._peek()
        if token is None or (expected is not None and token != expected):
            raise SpecError(f"Invalid type {self.text!r}: expected {expected or 'a type name'}")
        self.pos += 1
        return token

    def parse(self) -> tuple[TypeRef, bool]:
        ref, nullable = self._type()
        if self._peek() is not None:
            raise SpecError(f"Invalid type {self.text!r}: unexpected {self._peek()!r}")
        return ref, nullable

    def _type(self) -> tuple[TypeRef, bool]:
        name = self._take()
        if not (name[0].isalpha() or name[0] == "_"):
            raise SpecError(f"Invalid type {self.text!r}: expected a type name, got {name!r}")
        arguments: list[TypeRef] = []
        if self._peek() == "<":
            self._take("<")
            while True:
                arg, arg_nullable = self._type()
                arguments.append(arg.with_nullable(arg_nullable))
                if self._peek() == ",":
                    self._take(",")
                    continue
                self._take(">")
                break
        nullable = False
        if self._peek() == "?":
            self._take("?")
            nullable = True
        return self._resolve(name, tuple(arguments)), nullable

    def _resolve(self, name: str, arguments: tuple[TypeRef, ...]) -> TypeRef:
        simple = name.rsplit(".", 1)[-1]
        is_kotlin = name == simple or name.startswith("kotlin.")

        if is_kotlin and simple in _SCALARS and not arguments:
            return _SCALARS[simple]()
        if is_kotlin and simple in NUMERIC_TYPES and not arguments:
            return TypeRef.numeric(simple)
        if name in _LIST_NAMES and len(arguments) == 1:
            return TypeRef.collection(arguments[0])
        if name in _MAP_NAMES and len(arguments) == 2:
            return TypeRef.map(*arguments)
        if name in _LIST_NAMES or name in _MAP_NAMES:
            qualified = f"kotlin.collections.{simple}"
            return TypeRef.nominal(qualified, arguments=arguments)

        domain = self.registry.get(name)
        if domain is not None:
            return TypeRef.nominal(
                domain.qualified_name,
                generable=True,
                list_group=domain.supports_list_group,
                map_group=domain.map_group_mode,
                arguments=arguments,
            )
        qualified = name if "." in name or not self.package else f"{self.package}.{name}"
        return TypeRef.nominal(qualified, arguments=arguments)


def parse_type(text: str, registry: dict[str, DomainType] | None = None, package: str = "") -> tuple[TypeRef, bool]:
    """Parse a type string into `(TypeRef, top_level_nullable)`."""
    if not str(text).strip():
        raise SpecError("Type must not be empty.")
    return _TypeParser(str(text), registry or {}, package).parse()


# ---------------------------------------------------------------------------
# Document sections
# ---------------------------------------------------------------------------


def _as_bool(value: Any, where: str) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    text = str(value).strip().lower()
    if text in ("true", "yes", "1"):
        return True
    if text in ("false", "no", "0", ""):
        return False
    raise SpecError(f"`{where}` must be a boolean, got {value!r}")


def _literal(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _require_mapping(value: Any, where: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise SpecError(f"`{where}` must be an object/mapping when provided.")
    return value


def _require_list(value: Any, where: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise SpecError(f"`{where}` must be a list when provided.")
    return value


def _package_of(qualified_name: str) -> str:
    return qualified_name.rsplit(".", 1)[0] if "." in qualified_name else ""


def _domain_shell(raw: Any, index: int) -> tuple[DomainType, list[Any]]:
    """Domain flags without properties; properties need the full registry first."""
    if not isinstance(raw, dict):
        raise SpecError(f"`domains[{index}]` must be an object/mapping.")
    name = str(raw.get("name") or "").strip()
    if not name:
        raise SpecError(f"`domains[{index}].name` is required.")
    try:
        map_group = MapGroupType.parse(raw.get("mapGroup"))
    except ValueError as e:
        raise SpecError(f"`{name}.mapGroup` must be one of NONE, SINGLE, LIST, ALL.") from e
    shell = DomainType(
        qualified_name=name,
        is_root=_as_bool(raw.get("root"), f"{name}.root"),
        supports_list_group=_as_bool(raw.get("listGroup"), f"{name}.listGroup"),
        map_group_mode=map_group,
    )
    return shell, _require_list(raw.get("properties"), f"{name}.properties")


def _parse_transforms(raw: dict[str, Any], registry: dict[str, DomainType]) -> dict[str, TransformHint]:
    transforms: dict[str, TransformHint] = {}
    for qualified_name, entry in raw.items():
        entry = _require_mapping(entry, f"transforms.{qualified_name}")
        input_raw = str(entry.get("inputType") or "").strip()
        input_type = None
        if input_raw:
            input_type, _ = parse_type(input_raw, registry, _package_of(qualified_name))
        template = str(entry.get("template") or "").strip() or None
        transforms[str(qualified_name)] = TransformHint(input_type=input_type, template=template)
    return transforms


def _parse_default(raw: Any, declared: TypeRef, registry: dict[str, DomainType], package: str,
                   where: str) -> DefaultValueHint | None:
    if raw is None:
        return None
    if isinstance(raw, dict):
        if "value" not in raw:
            raise SpecError(f"`{where}.default.value` is required when `default` is an object.")
        value_type = declared
        if raw.get("type"):
            value_type, _ = parse_type(str(raw["type"]), registry, package)
        return DefaultValueHint(_literal(raw["value"]), value_type)
    return DefaultValueHint(_literal(raw), declared)


def _parse_properties(
    domain: DomainType,
    raw_properties: list[Any],
    registry: dict[str, DomainType],
    transforms: dict[str, TransformHint],
) -> tuple[DomainProperty, ...]:
    package = _package_of(domain.qualified_name)
    last_index = len(raw_properties) - 1
    properties: list[DomainProperty] = []
    for i, raw in enumerate(raw_properties):
        where = f"{domain.qualified_name}.properties[{i}]"
        if not isinstance(raw, dict):
            raise SpecError(f"`{where}` must be an object/mapping.")
        name = str(raw.get("name") or "").strip()
        if not name:
            raise SpecError(f"`{where}.name` is required.")
        type_text = str(raw.get("type") or "").strip()
        if not type_text:
            raise SpecError(f"`{where}.type` is required.")

        declared, nullable = parse_type(type_text, registry, package)
        properties.append(
            DomainProperty(
                name=name,
                declared_type=declared,
                nullable=nullable,
                ordinal=i,
                is_last=i == last_index,
                single_entry_transform=transforms.get(declared.qualified_name or ""),
                default_value=_parse_default(raw.get("default"), declared, registry, package, where),
            )
        )
    return tuple(properties)


def parse_domain_text(text: str) -> DomainFile:
    data = _load_document(text)

    options = _require_mapping(data.get("options"), "options")
    raw_domains = _require_list(data.get("domains"), "domains")

    shells = [_domain_shell(raw, i) for i, raw in enumerate(raw_domains)]
    registry: dict[str, DomainType] = {}
    for shell, _ in shells:
        if shell.qualified_name in registry:
            raise SpecError(f"Domain `{shell.qualified_name}` is declared more than once.")
        registry[shell.qualified_name] = shell
        registry.setdefault(shell.simple_name, shell)

    transforms = _parse_transforms(_require_mapping(data.get("transforms"), "transforms"), registry)

    domains = tuple(
        DomainType(
            qualified_name=shell.qualified_name,
            properties=_parse_properties(shell, raw_props, registry, transforms),
            is_root=shell.is_root,
            supports_list_group=shell.supports_list_group,
            map_group_mode=shell.map_group_mode,
        )
        for shell, raw_props in shells
    )

    # Options keep their document order; CLI overrides are applied by the caller.
    return DomainFile(options=dict(options), transforms=transforms, domains=domains)


def parse_domain_file(path: str | Path) -> DomainFile:
    """
    Parse a domain document (YAML, or markdown with YAML frontmatter).

    Expected keys:
    - options: mapping (see `BuilderConfig.from_mapping`)
    - transforms: mapping of qualified type name -> {inputType, template}
    - domains: list of {name, root, listGroup, mapGroup, properties}
    """
    path = Path(path)
    if not path.exists():
        raise SpecError(f"Domain file does not exist: {path}")
    return parse_domain_text(path.read_text(encoding="utf-8"))
