"""
domain.py

Responsibility: Normalized, immutable view of the domain types a pass generates for.

These objects are produced by a front end (see `spec_parser.py`) and are never
mutated afterwards. Nothing here performs classification or emits code.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from dslgen.config import BuilderConfig
from dslgen.typenames import (
    BOOLEAN,
    CHAR,
    NUMERIC_TYPES,
    STRING,
    ClassName,
    TypeName,
    list_type_of,
    map_type_of,
)

LIST_QUALIFIED_NAME = "kotlin.collections.List"
MAP_QUALIFIED_NAME = "kotlin.collections.Map"


class TypeKind(str, Enum):
    BOOLEAN = "boolean"
    NUMERIC = "numeric"
    STRING = "string"
    CHAR = "char"
    COLLECTION = "collection"
    MAP = "map"
    NOMINAL = "nominal"


class MapGroupType(str, Enum):
    NONE = "NONE"
    SINGLE = "SINGLE"
    LIST = "LIST"
    ALL = "ALL"

    @property
    def active(self) -> bool:
        return self is not MapGroupType.NONE

    @classmethod
    def parse(cls, value: object) -> MapGroupType:
        if value is None or value is False:
            return cls.NONE
        if value is True:
            return cls.SINGLE
        return cls(str(value).strip().upper())


@dataclass(frozen=True)
class TypeRef:
    """
    Semantic type descriptor.

    `nullable` only matters for type arguments (`List<String?>`); top-level
    nullability lives on `DomainProperty`.

    For NOMINAL kinds, `generable` says the type is itself a generated domain,
    and `list_group` / `map_group` mirror that domain's group flags.
    """

    kind: TypeKind
    name: str = ""
    qualified_name: str | None = None
    arguments: tuple[TypeRef, ...] = ()
    generable: bool = False
    list_group: bool = False
    map_group: MapGroupType = MapGroupType.NONE
    nullable: bool = False

    @classmethod
    def boolean(cls) -> TypeRef:
        return cls(TypeKind.BOOLEAN, "Boolean", BOOLEAN.canonical_name)

    @classmethod
    def string(cls) -> TypeRef:
        return cls(TypeKind.STRING, "String", STRING.canonical_name)

    @classmethod
    def char(cls) -> TypeRef:
        return cls(TypeKind.CHAR, "Char", CHAR.canonical_name)

    @classmethod
    def numeric(cls, name: str = "Int") -> TypeRef:
        if name not in NUMERIC_TYPES:
            raise ValueError(f"Unknown numeric type: {name}")
        return cls(TypeKind.NUMERIC, name, NUMERIC_TYPES[name].canonical_name)

    @classmethod
    def collection(cls, element: TypeRef) -> TypeRef:
        return cls(TypeKind.COLLECTION, "List", LIST_QUALIFIED_NAME, (element,))

    @classmethod
    def map(cls, key: TypeRef, value: TypeRef) -> TypeRef:
        return cls(TypeKind.MAP, "Map", MAP_QUALIFIED_NAME, (key, value))

    @classmethod
    def nominal(
        cls,
        qualified_name: str,
        *,
        generable: bool = False,
        list_group: bool = False,
        map_group: MapGroupType = MapGroupType.NONE,
        arguments: tuple[TypeRef, ...] = (),
    ) -> TypeRef:
        simple = qualified_name.rsplit(".", 1)[-1]
        return cls(
            TypeKind.NOMINAL,
            simple,
            qualified_name,
            arguments,
            generable=generable,
            list_group=list_group,
            map_group=map_group,
        )

    def with_nullable(self, nullable: bool) -> TypeRef:
        return TypeRef(
            self.kind,
            self.name,
            self.qualified_name,
            self.arguments,
            self.generable,
            self.list_group,
            self.map_group,
            nullable,
        )

    @property
    def is_group_element(self) -> bool:
        return self.kind is TypeKind.NOMINAL and self.generable and self.list_group

    @property
    def is_map_group_value(self) -> bool:
        return self.kind is TypeKind.NOMINAL and self.generable and self.map_group.active

    def class_name(self) -> ClassName:
        if self.kind is TypeKind.NOMINAL:
            return ClassName.from_qualified(self.qualified_name or self.name)
        return ClassName.from_qualified(self.qualified_name or f"kotlin.{self.name}")

    def to_type_name(self, nullable: bool | None = None) -> TypeName:
        is_nullable = self.nullable if nullable is None else nullable
        if self.kind is TypeKind.COLLECTION and len(self.arguments) == 1:
            return list_type_of(self.arguments[0].to_type_name(), nullable=is_nullable)
        if self.kind is TypeKind.MAP and len(self.arguments) == 2:
            key, value = self.arguments
            return map_type_of(key.to_type_name(), value.to_type_name(), nullable=is_nullable)
        raw = self.class_name()
        if self.arguments:
            return raw.parameterized_by(*(a.to_type_name() for a in self.arguments)).copy(nullable=is_nullable)
        return raw.copy(nullable=is_nullable)

    def __str__(self) -> str:
        return str(self.to_type_name())


@dataclass(frozen=True)
class TransformHint:
    """Single-entry transform: accept `input_type`, convert with `template`."""

    input_type: TypeRef | None
    template: str | None = None


@dataclass(frozen=True)
class DefaultValueHint:
    raw_literal: str
    value_type: TypeRef = field(default_factory=TypeRef.string)

    @property
    def is_string(self) -> bool:
        return self.value_type.kind is TypeKind.STRING


@dataclass(frozen=True)
class DomainProperty:
    name: str
    declared_type: TypeRef
    nullable: bool = False
    ordinal: int = 0
    is_last: bool = True
    single_entry_transform: TransformHint | None = None
    default_value: DefaultValueHint | None = None

    def type_name(self) -> TypeName:
        return self.declared_type.to_type_name(nullable=self.nullable)


@dataclass(frozen=True)
class DomainType:
    qualified_name: str
    properties: tuple[DomainProperty, ...] = ()
    is_root: bool = False
    supports_list_group: bool = False
    map_group_mode: MapGroupType = MapGroupType.NONE

    @property
    def class_name(self) -> ClassName:
        return ClassName.from_qualified(self.qualified_name)

    @property
    def simple_name(self) -> str:
        return self.class_name.simple_name

    @property
    def supports_map_group(self) -> bool:
        return self.map_group_mode.active

    def as_type_ref(self) -> TypeRef:
        return TypeRef.nominal(
            self.qualified_name,
            generable=True,
            list_group=self.supports_list_group,
            map_group=self.map_group_mode,
        )


def lower_camel(name: str) -> str:
    return name[:1].lower() + name[1:]


class DomainConfig:
    """
    Per-domain naming derived from a `DomainType` and the pass configuration.

    - builder: `<Type>DslBuilder` in the domain's package
    - file:    `<Type>Dsl` in the domain's package
    - contract: `DslBuilder<Type>` from `dsl_builder_classpath`
    """

    dsl_builder_postfix = "DslBuilder"
    dsl_build_file_postfix = "Dsl"

    def __init__(self, builder_config: BuilderConfig, domain: DomainType) -> None:
        self.builder_config = builder_config
        self.domain = domain
        self.domain_class_name: ClassName = domain.class_name
        self.package_name = self.domain_class_name.package
        self.type_name = self.domain_class_name.simple_name
        self.builder_name = f"{self.type_name}{self.dsl_builder_postfix}"
        self.builder_class_name = ClassName.of(self.package_name, self.builder_name)
        self.dsl_builder_interface = ClassName.of(builder_config.dsl_builder_classpath, self.dsl_builder_postfix)
        self.parameterized_dsl_builder = self.dsl_builder_interface.parameterized_by(self.domain_class_name)
        self.file_class_name = ClassName.of(self.package_name, f"{self.type_name}{self.dsl_build_file_postfix}")

    @property
    def function_name(self) -> str:
        return lower_camel(self.type_name)


def builder_class_name_for(class_name: ClassName) -> ClassName:
    """`io.x.Passenger` -> `io.x.PassengerDslBuilder`"""
    return class_name.peer(class_name.simple_name + DomainConfig.dsl_builder_postfix).non_null()
