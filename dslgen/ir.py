"""
ir.py

Responsibility: Renderer-agnostic intermediate representation of generated code.

Specs (`PropertySpec`, `FunctionSpec`, `TypeSpec`, ...) are frozen values.
They can only be obtained from the matching builder's `build()`, which is where
the invariants are checked:
- a named spec must have its name set;
- a typed spec may have its type assigned exactly once, and must have one;
- at most one access modifier per spec;
- a file has exactly one qualified name;
- a file never imports two classes with the same simple name.

Violations raise `IRError` subclasses. They signal a defect in a generator, never
bad domain input, so callers should not try to recover from them mid-file.

Children are kept in insertion order; renderers must not reorder them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Iterator, TypeVar

from dslgen.typenames import (
    BOOLEAN,
    DEFAULT_IMPORT_PACKAGES,
    ClassName,
    LambdaTypeName,
    TypeName,
    TypeVariableName,
)


class IRError(RuntimeError):
    pass


class AlreadySetError(IRError):
    pass


class DuplicateAccessModifierError(IRError):
    pass


class MissingRequiredFieldError(IRError):
    pass


class ImportConflictError(IRError):
    pass


class InvalidTemplateError(IRError):
    pass


class Modifier(str, Enum):
    PUBLIC = "public"
    PROTECTED = "protected"
    INTERNAL = "internal"
    PRIVATE = "private"
    OVERRIDE = "override"
    VARARG = "vararg"


ACCESS_MODIFIERS = (Modifier.PUBLIC, Modifier.PROTECTED, Modifier.INTERNAL, Modifier.PRIVATE)


@dataclass(frozen=True)
class CodeBlock:
    """
    A format string plus arguments.

    Placeholders: `%T` type name, `%N` name (str or any spec with a `name`),
    `%L` literal (emitted verbatim, may be a nested CodeBlock), `%S` string literal.
    """

    format: str
    args: tuple[Any, ...] = ()

    @classmethod
    def of(cls, format: str, *args: Any) -> CodeBlock:
        return cls(format, tuple(args))

    def referenced_classes(self) -> Iterator[ClassName]:
        for arg in self.args:
            if isinstance(arg, TypeName):
                yield from arg.referenced_classes()
            elif isinstance(arg, (CodeBlock, ArgumentList)):
                yield from arg.referenced_classes()


@dataclass(frozen=True)
class ArgumentList:
    """Named constructor arguments, rendered one per line when non-empty."""

    arguments: tuple[CodeBlock, ...] = ()

    def __len__(self) -> int:
        return len(self.arguments)

    def referenced_classes(self) -> Iterator[ClassName]:
        for argument in self.arguments:
            yield from argument.referenced_classes()


@dataclass(frozen=True)
class PropertySpec:
    name: str
    type: TypeName
    mutable: bool = True
    modifiers: tuple[Modifier, ...] = ()
    initializer: CodeBlock | None = None

    def referenced_classes(self) -> Iterator[ClassName]:
        yield from self.type.referenced_classes()
        if self.initializer is not None:
            yield from self.initializer.referenced_classes()


@dataclass(frozen=True)
class ParameterSpec:
    name: str
    type: TypeName
    default: str | None = None
    modifiers: tuple[Modifier, ...] = ()

    @property
    def vararg(self) -> bool:
        return Modifier.VARARG in self.modifiers

    def referenced_classes(self) -> Iterator[ClassName]:
        yield from self.type.referenced_classes()


@dataclass(frozen=True)
class FunctionSpec:
    name: str
    parameters: tuple[ParameterSpec, ...] = ()
    return_type: TypeName | None = None
    overridden: bool = False
    doc: str | None = None
    annotations: tuple[ClassName, ...] = ()
    statements: tuple[CodeBlock, ...] = ()
    modifiers: tuple[Modifier, ...] = ()

    def parameter(self, name: str) -> ParameterSpec:
        for param in self.parameters:
            if param.name == name:
                return param
        raise KeyError(name)

    def referenced_classes(self) -> Iterator[ClassName]:
        for param in self.parameters:
            yield from param.referenced_classes()
        if self.return_type is not None:
            yield from self.return_type.referenced_classes()
        yield from self.annotations
        for statement in self.statements:
            yield from statement.referenced_classes()


@dataclass(frozen=True)
class TypeSpec:
    name: str
    super_type: TypeName | None = None
    type_variables: tuple[TypeVariableName, ...] = ()
    annotations: tuple[ClassName, ...] = ()
    properties: tuple[PropertySpec, ...] = ()
    functions: tuple[FunctionSpec, ...] = ()
    nested_types: tuple[TypeSpec, ...] = ()
    modifiers: tuple[Modifier, ...] = ()

    def function_named(self, name: str) -> FunctionSpec:
        for fn in self.functions:
            if fn.name == name:
                return fn
        raise KeyError(name)

    def property_named(self, name: str) -> PropertySpec:
        for prop in self.properties:
            if prop.name == name:
                return prop
        raise KeyError(name)

    def nested_type_named(self, name: str) -> TypeSpec:
        for nested in self.nested_types:
            if nested.name == name:
                return nested
        raise KeyError(name)

    def referenced_classes(self) -> Iterator[ClassName]:
        if self.super_type is not None:
            yield from self.super_type.referenced_classes()
        yield from self.annotations
        for prop in self.properties:
            yield from prop.referenced_classes()
        for fn in self.functions:
            yield from fn.referenced_classes()
        for nested in self.nested_types:
            yield from nested.referenced_classes()


@dataclass(frozen=True)
class TypeAliasSpec:
    name: str
    aliased_type: TypeName
    type_variables: tuple[TypeVariableName, ...] = ()

    def referenced_classes(self) -> Iterator[ClassName]:
        yield from self.aliased_type.referenced_classes()


@dataclass(frozen=True)
class FileSpec:
    class_name: ClassName
    imports: tuple[tuple[str, str], ...] = ()
    type_aliases: tuple[TypeAliasSpec, ...] = ()
    types: tuple[TypeSpec, ...] = ()
    functions: tuple[FunctionSpec, ...] = ()

    @property
    def package(self) -> str:
        return self.class_name.package

    @property
    def qualified_name(self) -> str:
        return self.class_name.canonical_name


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


_B = TypeVar("_B", bound="_SpecBuilder")
_T = TypeVar("_T", bound="_TypedSpecBuilder")


class _SpecBuilder:
    """Name and modifier handling shared by every named spec builder."""

    _kind = "Spec"

    def __init__(self) -> None:
        self.name: str | None = None
        self.modifiers: list[Modifier] = []

    def with_name(self: _B, name: str) -> _B:
        self.name = name
        return self

    def add_modifier(self: _B, modifier: Modifier) -> _B:
        if modifier in ACCESS_MODIFIERS:
            existing = next((m for m in self.modifiers if m in ACCESS_MODIFIERS), None)
            if existing is not None:
                raise DuplicateAccessModifierError(
                    f"{self._kind} {self.name or '<unnamed>'}: access modifier already set to {existing.value}"
                )
        self.modifiers.append(modifier)
        return self

    def private(self: _B) -> _B:
        return self.add_modifier(Modifier.PRIVATE)

    def protected(self: _B) -> _B:
        return self.add_modifier(Modifier.PROTECTED)

    def internal(self: _B) -> _B:
        return self.add_modifier(Modifier.INTERNAL)

    def public(self: _B) -> _B:
        return self.add_modifier(Modifier.PUBLIC)

    def _require_name(self) -> str:
        if not self.name:
            raise MissingRequiredFieldError(f"{self._kind} - name must be set")
        return self.name


class _TypedSpecBuilder(_SpecBuilder):
    """A spec whose type may be assigned exactly once."""

    def __init__(self) -> None:
        super().__init__()
        self.type: TypeName | None = None

    def with_type(self: _T, type_name: TypeName, *, nullable: bool | None = None) -> _T:
        if self.type is not None:
            raise AlreadySetError(f"{self._kind} {self.name or '<unnamed>'}: type already set: {self.type}")
        self.type = type_name if nullable is None else type_name.copy(nullable=nullable)
        return self

    def lambda_type(self: _T, receiver: TypeName | None = None, *, parameters: Iterable[TypeName] = (),
                    returns: TypeName | None = None) -> _T:
        """Lambda-typed spec; the name defaults to `block`."""
        self.with_type(LambdaTypeName(receiver=receiver, parameters=tuple(parameters), return_type=returns))
        if self.name is None:
            self.name = "block"
        return self

    def boolean_type(self: _T) -> _T:
        """Boolean-typed spec; the name defaults to `on`."""
        self.with_type(BOOLEAN)
        if self.name is None:
            self.name = "on"
        return self

    def _require_type(self) -> TypeName:
        if self.type is None:
            raise MissingRequiredFieldError(f"{self._kind} {self.name or '<unnamed>'} - type must be set")
        return self.type


class PropertySpecBuilder(_TypedSpecBuilder):
    _kind = "Property"

    def __init__(self) -> None:
        super().__init__()
        self.mutable = True
        self.initializer: CodeBlock | None = None

    def variable(self) -> PropertySpecBuilder:
        self.mutable = True
        return self

    def value(self) -> PropertySpecBuilder:
        self.mutable = False
        return self

    def with_initializer(self, code: str | CodeBlock, *args: Any) -> PropertySpecBuilder:
        self.initializer = code if isinstance(code, CodeBlock) else CodeBlock.of(code, *args)
        return self

    def init_null_value(self) -> PropertySpecBuilder:
        return self.with_initializer("null")

    def build(self) -> PropertySpec:
        return PropertySpec(
            name=self._require_name(),
            type=self._require_type(),
            mutable=self.mutable,
            modifiers=tuple(self.modifiers),
            initializer=self.initializer,
        )


class ParameterSpecBuilder(_TypedSpecBuilder):
    _kind = "Parameter"

    def __init__(self) -> None:
        super().__init__()
        self.default: str | None = None

    def default_value(self, value: Any) -> ParameterSpecBuilder:
        if isinstance(value, bool):
            self.default = "true" if value else "false"
        else:
            self.default = None if value is None else str(value)
        return self

    def build(self) -> ParameterSpec:
        return ParameterSpec(
            name=self._require_name(),
            type=self._require_type(),
            default=self.default,
            modifiers=tuple(self.modifiers),
        )


class FunctionSpecBuilder(_SpecBuilder):
    _kind = "Fun"

    def __init__(self) -> None:
        super().__init__()
        self.parameters: list[ParameterSpec] = []
        self.return_type: TypeName | None = None
        self.overridden = False
        self.doc: str | None = None
        self.annotations: list[ClassName] = []
        self.statements: list[CodeBlock] = []

    def add_parameter(self, param: ParameterSpec | ParameterSpecBuilder) -> ParameterSpec:
        spec = param.build() if isinstance(param, ParameterSpecBuilder) else param
        self.parameters.append(spec)
        return spec

    def returns(self, type_name: TypeName) -> FunctionSpecBuilder:
        self.return_type = type_name
        return self

    def override(self, on: bool = True) -> FunctionSpecBuilder:
        self.overridden = on
        return self

    def with_doc(self, text: str | None) -> FunctionSpecBuilder:
        self.doc = text
        return self

    def add_annotation(self, annotation: ClassName | None) -> FunctionSpecBuilder:
        if annotation is not None:
            self.annotations.append(annotation)
        return self

    def add_statement(self, format: str, *args: Any) -> FunctionSpecBuilder:
        self.statements.append(CodeBlock.of(format, *args))
        return self

    def build(self) -> FunctionSpec:
        modifiers = list(self.modifiers)
        if self.overridden and Modifier.OVERRIDE not in modifiers:
            modifiers.append(Modifier.OVERRIDE)
        return FunctionSpec(
            name=self._require_name(),
            parameters=tuple(self.parameters),
            return_type=self.return_type,
            overridden=self.overridden,
            doc=self.doc,
            annotations=tuple(self.annotations),
            statements=tuple(self.statements),
            modifiers=tuple(modifiers),
        )


class TypeSpecBuilder(_SpecBuilder):
    _kind = "Type"

    def __init__(self) -> None:
        super().__init__()
        self.super_type: TypeName | None = None
        self.type_variables: list[TypeVariableName] = []
        self.annotations: list[ClassName] = []
        self.properties: list[PropertySpec] = []
        self.functions: list[FunctionSpec] = []
        self.nested_types: list[TypeSpec] = []

    def with_super_type(self, super_type: TypeName) -> TypeSpecBuilder:
        self.super_type = super_type
        return self

    def with_type_variables(self, *variables: str | TypeVariableName) -> TypeSpecBuilder:
        self.type_variables = [v if isinstance(v, TypeVariableName) else TypeVariableName(v) for v in variables]
        return self

    def add_annotation(self, annotation: ClassName | None) -> TypeSpecBuilder:
        if annotation is not None:
            self.annotations.append(annotation)
        return self

    def add_property(self, prop: PropertySpec | PropertySpecBuilder) -> TypeSpecBuilder:
        self.properties.append(prop.build() if isinstance(prop, PropertySpecBuilder) else prop)
        return self

    def add_function(self, fn: FunctionSpec | FunctionSpecBuilder) -> TypeSpecBuilder:
        self.functions.append(fn.build() if isinstance(fn, FunctionSpecBuilder) else fn)
        return self

    def add_functions(self, functions: Iterable[FunctionSpec]) -> TypeSpecBuilder:
        for fn in functions:
            self.add_function(fn)
        return self

    def add_nested_type(self, nested: TypeSpec | TypeSpecBuilder) -> TypeSpecBuilder:
        self.nested_types.append(nested.build() if isinstance(nested, TypeSpecBuilder) else nested)
        return self

    def build(self) -> TypeSpec:
        return TypeSpec(
            name=self._require_name(),
            super_type=self.super_type,
            type_variables=tuple(self.type_variables),
            annotations=tuple(self.annotations),
            properties=tuple(self.properties),
            functions=tuple(self.functions),
            nested_types=tuple(self.nested_types),
            modifiers=tuple(self.modifiers),
        )


class TypeAliasSpecBuilder(_TypedSpecBuilder):
    _kind = "TypeAlias"

    def __init__(self) -> None:
        super().__init__()
        self.type_variables: list[TypeVariableName] = []

    def with_type_variables(self, *variables: str | TypeVariableName) -> TypeAliasSpecBuilder:
        self.type_variables = [v if isinstance(v, TypeVariableName) else TypeVariableName(v) for v in variables]
        return self

    def build(self) -> TypeAliasSpec:
        return TypeAliasSpec(
            name=self._require_name(),
            aliased_type=self._require_type(),
            type_variables=tuple(self.type_variables),
        )


class FileSpecBuilder:
    """
    Builds a `FileSpec`. Imports are computed at `build()` from every class the
    file's constructs reference, plus any explicit imports (e.g. top-level
    helper functions), minus same-package and default-imported classes.
    Two classes sharing a simple name raise `ImportConflictError`.
    """

    def __init__(self) -> None:
        self.class_name: ClassName | None = None
        self._imports: list[tuple[str, str]] = []
        self.type_aliases: list[TypeAliasSpec] = []
        self.types: list[TypeSpec] = []
        self.functions: list[FunctionSpec] = []

    def with_class_name(self, class_name: ClassName) -> FileSpecBuilder:
        if self.class_name is not None:
            raise AlreadySetError(f"File - class name already set: {self.class_name}")
        self.class_name = class_name
        return self

    def add_import(self, package: str, simple_name: str) -> FileSpecBuilder:
        self._imports.append((package, simple_name))
        return self

    def add_import_if(self, condition: bool, package: str, simple_name: str) -> FileSpecBuilder:
        if condition:
            self.add_import(package, simple_name)
        return self

    def add_type_alias(self, alias: TypeAliasSpec | TypeAliasSpecBuilder) -> FileSpecBuilder:
        self.type_aliases.append(alias.build() if isinstance(alias, TypeAliasSpecBuilder) else alias)
        return self

    def add_type(self, type_spec: TypeSpec | TypeSpecBuilder) -> FileSpecBuilder:
        self.types.append(type_spec.build() if isinstance(type_spec, TypeSpecBuilder) else type_spec)
        return self

    def add_function(self, fn: FunctionSpec | FunctionSpecBuilder) -> FileSpecBuilder:
        self.functions.append(fn.build() if isinstance(fn, FunctionSpecBuilder) else fn)
        return self

    def _referenced_classes(self) -> Iterator[ClassName]:
        for alias in self.type_aliases:
            yield from alias.referenced_classes()
        for type_spec in self.types:
            yield from type_spec.referenced_classes()
        for fn in self.functions:
            yield from fn.referenced_classes()

    def _compute_imports(self, package: str) -> tuple[tuple[str, str], ...]:
        found: set[tuple[str, str]] = set(self._imports)
        local: set[str] = set()
        for class_name in self._referenced_classes():
            top = class_name.top_level
            if top.package in DEFAULT_IMPORT_PACKAGES or not top.package:
                continue
            if top.package == package:
                local.add(top.simple_name)
                continue
            found.add((top.package, top.simple_name))

        owners: dict[str, str] = {}
        for pkg, name in sorted(found):
            owner = owners.setdefault(name, pkg)
            if owner != pkg:
                raise ImportConflictError(f"File {package}: {name} is imported from both {owner} and {pkg}")
            if pkg != package and name in local:
                raise ImportConflictError(f"File {package}: imported {pkg}.{name} shadows {package}.{name}")
        return tuple(sorted(found))

    def build(self) -> FileSpec:
        if self.class_name is None:
            raise MissingRequiredFieldError("File - class name must be set")
        return FileSpec(
            class_name=self.class_name,
            imports=self._compute_imports(self.class_name.package),
            type_aliases=tuple(self.type_aliases),
            types=tuple(self.types),
            functions=tuple(self.functions),
        )
