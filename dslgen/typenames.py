"""
typenames.py

Responsibility: Structural type names used by the code IR.

A type name never knows how it will be printed in a particular file; it only
knows which classes it references (so imports can be computed) and how to
render itself using simple (import-relative) names.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterator

# Packages whose classes never need an explicit import in generated files.
DEFAULT_IMPORT_PACKAGES = frozenset({"kotlin", "kotlin.collections"})


class TypeName:
    """Base class for every type name. Concrete kinds are frozen dataclasses."""

    nullable: bool

    def copy(self, *, nullable: bool) -> TypeName:
        return replace(self, nullable=nullable)

    def non_null(self) -> TypeName:
        return self.copy(nullable=False)

    def referenced_classes(self) -> Iterator[ClassName]:
        raise NotImplementedError

    def render(self) -> str:
        raise NotImplementedError

    def _suffix(self) -> str:
        return "?" if self.nullable else ""


@dataclass(frozen=True)
class ClassName(TypeName):
    package: str
    simple_names: tuple[str, ...]
    nullable: bool = False

    @classmethod
    def of(cls, package: str, *simple_names: str) -> ClassName:
        if not simple_names:
            raise ValueError("ClassName requires at least one simple name")
        return cls(package, tuple(simple_names))

    @classmethod
    def from_qualified(cls, qualified_name: str) -> ClassName:
        """
        Split `io.pkg.Outer.Inner` into package and simple names.

        Segments starting with an uppercase letter are treated as class names;
        everything before the first one is the package.
        """
        parts = [p for p in qualified_name.strip().split(".") if p]
        if not parts:
            raise ValueError(f"Invalid qualified name: {qualified_name!r}")
        first_class = next((i for i, p in enumerate(parts) if p[0].isupper()), len(parts) - 1)
        return cls(".".join(parts[:first_class]), tuple(parts[first_class:]))

    @property
    def simple_name(self) -> str:
        return self.simple_names[-1]

    @property
    def top_level(self) -> ClassName:
        return ClassName(self.package, self.simple_names[:1])

    @property
    def canonical_name(self) -> str:
        names = ".".join(self.simple_names)
        return f"{self.package}.{names}" if self.package else names

    def nested(self, name: str) -> ClassName:
        return ClassName(self.package, self.simple_names + (name,), self.nullable)

    def peer(self, name: str) -> ClassName:
        return ClassName(self.package, self.simple_names[:-1] + (name,), self.nullable)

    def parameterized_by(self, *type_arguments: TypeName) -> ParameterizedTypeName:
        return ParameterizedTypeName(self.non_null(), tuple(type_arguments))

    def referenced_classes(self) -> Iterator[ClassName]:
        yield self.non_null()

    def render(self) -> str:
        return ".".join(self.simple_names) + self._suffix()

    def __str__(self) -> str:
        return self.canonical_name + self._suffix()


@dataclass(frozen=True)
class ParameterizedTypeName(TypeName):
    raw_type: ClassName
    type_arguments: tuple[TypeName, ...]
    nullable: bool = False

    def referenced_classes(self) -> Iterator[ClassName]:
        yield from self.raw_type.referenced_classes()
        for argument in self.type_arguments:
            yield from argument.referenced_classes()

    def render(self) -> str:
        args = ", ".join(a.render() for a in self.type_arguments)
        return f"{self.raw_type.render()}<{args}>{self._suffix()}"

    def __str__(self) -> str:
        args = ", ".join(str(a) for a in self.type_arguments)
        return f"{self.raw_type}<{args}>{self._suffix()}"


@dataclass(frozen=True)
class TypeVariableName(TypeName):
    name: str
    nullable: bool = False

    def referenced_classes(self) -> Iterator[ClassName]:
        return iter(())

    def render(self) -> str:
        return self.name + self._suffix()

    def __str__(self) -> str:
        return self.render()


@dataclass(frozen=True)
class LambdaTypeName(TypeName):
    """`Receiver.(params) -> Return`"""

    receiver: TypeName | None = None
    parameters: tuple[TypeName, ...] = ()
    return_type: TypeName | None = None
    nullable: bool = False

    @property
    def returns(self) -> TypeName:
        return self.return_type if self.return_type is not None else UNIT

    def referenced_classes(self) -> Iterator[ClassName]:
        if self.receiver is not None:
            yield from self.receiver.referenced_classes()
        for param in self.parameters:
            yield from param.referenced_classes()
        yield from self.returns.referenced_classes()

    def _body(self, render) -> str:
        receiver = f"{render(self.receiver)}." if self.receiver is not None else ""
        params = ", ".join(render(p) for p in self.parameters)
        return f"{receiver}({params}) -> {render(self.returns)}"

    def render(self) -> str:
        body = self._body(lambda t: t.render())
        return f"({body})?" if self.nullable else body

    def __str__(self) -> str:
        body = self._body(str)
        return f"({body})?" if self.nullable else body


def _kotlin(name: str) -> ClassName:
    return ClassName("kotlin", (name,))


def _collections(name: str) -> ClassName:
    return ClassName("kotlin.collections", (name,))


BOOLEAN = _kotlin("Boolean")
CHAR = _kotlin("Char")
STRING = _kotlin("String")
BYTE = _kotlin("Byte")
SHORT = _kotlin("Short")
INT = _kotlin("Int")
LONG = _kotlin("Long")
FLOAT = _kotlin("Float")
DOUBLE = _kotlin("Double")
UNIT = _kotlin("Unit")

LIST = _collections("List")
MUTABLE_LIST = _collections("MutableList")
MAP = _collections("Map")
MUTABLE_MAP = _collections("MutableMap")

NUMERIC_TYPES = {t.simple_name: t for t in (BYTE, SHORT, INT, LONG, FLOAT, DOUBLE)}


def list_type_of(element: TypeName, *, nullable: bool = False) -> TypeName:
    return LIST.parameterized_by(element).copy(nullable=nullable)


def mutable_list_type_of(element: TypeName, *, nullable: bool = False) -> TypeName:
    return MUTABLE_LIST.parameterized_by(element).copy(nullable=nullable)


def map_type_of(key: TypeName, value: TypeName, *, nullable: bool = False) -> TypeName:
    return MAP.parameterized_by(key, value).copy(nullable=nullable)


def mutable_map_type_of(key: TypeName, value: TypeName, *, nullable: bool = False) -> TypeName:
    return MUTABLE_MAP.parameterized_by(key, value).copy(nullable=nullable)
