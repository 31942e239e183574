"""
schema.py

Responsibility: The closed set of property schema variants and what each one emits.

A property schema is the generation strategy chosen for one domain property.
`PropertySchema` is a union of frozen dataclasses; consumers dispatch on the
concrete class. Every dispatch table in this module is checked against
`SCHEMA_TYPES` at import time, so adding a variant without handling it fails
immediately instead of silently emitting nothing.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, ClassVar, Union, get_args

from dslgen.domain import DefaultValueHint
from dslgen.ir import (
    CodeBlock,
    FunctionSpec,
    FunctionSpecBuilder,
    InvalidTemplateError,
    Modifier,
    ParameterSpecBuilder,
    PropertySpec,
    PropertySpecBuilder,
)
from dslgen.typenames import (
    BOOLEAN,
    ClassName,
    TypeName,
    TypeVariableName,
    list_type_of,
    map_type_of,
)


# Type variable used by MapGroup containers and their scope aliases.
MAP_GROUP_KEY = TypeVariableName("K")


class SchemaKind(str, Enum):
    BOOLEAN = "Boolean"
    DEFAULT = "Default"
    MAP = "Map"
    COLLECTION = "Collection"
    GROUP = "Group"
    MAP_GROUP = "MapGroup"
    BUILDER = "Builder"
    SINGLE_TRANSFORM = "SingleTransform"


class IterableType(str, Enum):
    COLLECTION = "collection"
    MAP = "map"


class Verification(str, Enum):
    """Wrapper applied to a stored value in `build()`; `helper` is the imported function."""

    NONE = ""
    NOT_NULL = "vRequireNotNull"
    COLLECTION_NOT_EMPTY = "vRequireCollectionNotEmpty"
    MAP_NOT_EMPTY = "vRequireMapNotEmpty"

    @property
    def helper(self) -> str | None:
        return self.value or None


@dataclass(frozen=True)
class BooleanSchema:
    kind: ClassVar[SchemaKind] = SchemaKind.BOOLEAN

    prop_name: str
    nullable_assignment: bool = True
    default_value: DefaultValueHint | None = None

    @property
    def prop_type(self) -> TypeName:
        return BOOLEAN.copy(nullable=self.nullable_assignment)


@dataclass(frozen=True)
class DefaultSchema:
    kind: ClassVar[SchemaKind] = SchemaKind.DEFAULT

    prop_name: str
    prop_type: TypeName
    nullable_assignment: bool = True
    default_value: DefaultValueHint | None = None


@dataclass(frozen=True)
class MapSchema:
    kind: ClassVar[SchemaKind] = SchemaKind.MAP

    prop_name: str
    key_type: TypeName
    value_type: TypeName
    nullable_assignment: bool = True
    default_value: DefaultValueHint | None = None

    @property
    def prop_type(self) -> TypeName:
        return map_type_of(self.key_type, self.value_type, nullable=self.nullable_assignment)


@dataclass(frozen=True)
class CollectionSchema:
    kind: ClassVar[SchemaKind] = SchemaKind.COLLECTION

    prop_name: str
    element_type: TypeName
    nullable_assignment: bool = True
    default_value: DefaultValueHint | None = None

    @property
    def prop_type(self) -> TypeName:
        return list_type_of(self.element_type, nullable=self.nullable_assignment)


@dataclass(frozen=True)
class GroupSchema:
    kind: ClassVar[SchemaKind] = SchemaKind.GROUP

    prop_name: str
    element_class: ClassName
    element_builder: ClassName
    nullable_assignment: bool = True
    default_value: DefaultValueHint | None = None
    doc: str | None = None

    @property
    def prop_type(self) -> TypeName:
        return list_type_of(self.element_class, nullable=self.nullable_assignment)

    @property
    def group_class(self) -> ClassName:
        return self.element_builder.nested("Group")


@dataclass(frozen=True)
class MapGroupSchema:
    kind: ClassVar[SchemaKind] = SchemaKind.MAP_GROUP

    prop_name: str
    key_type: TypeName
    value_class: ClassName
    value_builder: ClassName
    nullable_assignment: bool = True
    default_value: DefaultValueHint | None = None
    doc: str | None = None

    @property
    def prop_type(self) -> TypeName:
        return map_type_of(self.key_type, self.value_class, nullable=self.nullable_assignment)

    @property
    def map_group_type(self) -> TypeName:
        return self.value_builder.nested("MapGroup").parameterized_by(self.key_type.non_null())


@dataclass(frozen=True)
class BuilderSchema:
    kind: ClassVar[SchemaKind] = SchemaKind.BUILDER

    prop_name: str
    prop_type: TypeName
    nested_builder: ClassName
    nullable_assignment: bool = True
    default_value: DefaultValueHint | None = None
    doc: str | None = None


@dataclass(frozen=True)
class SingleTransformSchema:
    kind: ClassVar[SchemaKind] = SchemaKind.SINGLE_TRANSFORM

    prop_name: str
    prop_type: TypeName
    input_type: TypeName
    template: str | None = None
    nullable_assignment: bool = True
    default_value: DefaultValueHint | None = None


PropertySchema = Union[
    BooleanSchema,
    DefaultSchema,
    MapSchema,
    CollectionSchema,
    GroupSchema,
    MapGroupSchema,
    BuilderSchema,
    SingleTransformSchema,
]

SCHEMA_TYPES: tuple[type, ...] = get_args(PropertySchema)


def _check_exhaustive(table: dict, name: str) -> None:
    missing = [t.__name__ for t in SCHEMA_TYPES if t not in table]
    if missing:
        raise TypeError(f"{name} does not handle schema variants: {', '.join(missing)}")


def _dispatch(table: dict, schema: PropertySchema):
    try:
        return table[type(schema)]
    except KeyError:
        raise TypeError(f"Not a property schema: {schema!r}") from None


# ---------------------------------------------------------------------------
# Access and verification
# ---------------------------------------------------------------------------

_ACCESS_MODIFIERS: dict[type, Modifier] = {
    BooleanSchema: Modifier.PUBLIC,
    DefaultSchema: Modifier.PUBLIC,
    MapSchema: Modifier.PROTECTED,
    CollectionSchema: Modifier.PROTECTED,
    GroupSchema: Modifier.PRIVATE,
    MapGroupSchema: Modifier.PRIVATE,
    BuilderSchema: Modifier.PROTECTED,
    SingleTransformSchema: Modifier.PROTECTED,
}

_ITERABLE_TYPES: dict[type, IterableType | None] = {
    BooleanSchema: None,
    DefaultSchema: None,
    MapSchema: IterableType.MAP,
    CollectionSchema: IterableType.COLLECTION,
    GroupSchema: IterableType.COLLECTION,
    MapGroupSchema: IterableType.MAP,
    BuilderSchema: None,
    SingleTransformSchema: None,
}


def access_modifier(schema: PropertySchema) -> Modifier:
    return _dispatch(_ACCESS_MODIFIERS, schema)


def iterable_type(schema: PropertySchema) -> IterableType | None:
    return _dispatch(_ITERABLE_TYPES, schema)


def verification(schema: PropertySchema) -> Verification:
    """
    Nullable properties pass through, non-null lists/maps must be non-empty,
    everything else must be non-null.
    """
    if schema.nullable_assignment:
        return Verification.NONE
    kind = iterable_type(schema)
    if kind is IterableType.COLLECTION:
        return Verification.COLLECTION_NOT_EMPTY
    if kind is IterableType.MAP:
        return Verification.MAP_NOT_EMPTY
    return Verification.NOT_NULL


def property_value_return(schema: PropertySchema) -> CodeBlock:
    """The expression passed to the domain constructor for this property."""
    check = verification(schema)
    if check is Verification.NONE:
        return CodeBlock.of("%N", schema.prop_name)
    return CodeBlock.of(f"{check.helper}(::%N)", schema.prop_name)


# ---------------------------------------------------------------------------
# Stored property
# ---------------------------------------------------------------------------


def default_value_initializer(default: DefaultValueHint) -> CodeBlock:
    if default.is_string:
        return CodeBlock.of("%S", default.raw_literal)
    return CodeBlock.of("%L", default.raw_literal)


def to_property_spec(schema: PropertySchema) -> PropertySpec:
    """The backing `var` in the builder; always nullable, initialized to the default or null."""
    builder = (
        PropertySpecBuilder()
        .with_name(schema.prop_name)
        .add_modifier(access_modifier(schema))
        .variable()
        .with_type(schema.prop_type, nullable=True)
    )
    if schema.default_value is not None:
        builder.with_initializer(default_value_initializer(schema.default_value))
    else:
        builder.init_null_value()
    return builder.build()


# ---------------------------------------------------------------------------
# Accessors
# ---------------------------------------------------------------------------


def _boolean_accessors(schema: BooleanSchema) -> list[FunctionSpec]:
    default = True
    if schema.default_value is not None:
        default = schema.default_value.raw_literal.strip().lower() != "false"
    fn = FunctionSpecBuilder().with_name(schema.prop_name)
    param = fn.add_parameter(ParameterSpecBuilder().boolean_type().default_value(default))
    fn.add_statement("this.%N = %N", schema.prop_name, param)
    return [fn.build()]


def _value_accessor(schema: PropertySchema, value_type: TypeName) -> list[FunctionSpec]:
    fn = FunctionSpecBuilder().with_name(schema.prop_name)
    param = fn.add_parameter(ParameterSpecBuilder().with_name("value").with_type(value_type))
    fn.add_statement("this.%N = %N", schema.prop_name, param)
    return [fn.build()]


def _default_accessors(schema: DefaultSchema) -> list[FunctionSpec]:
    return _value_accessor(schema, schema.prop_type)


def _map_accessors(schema: MapSchema) -> list[FunctionSpec]:
    return _value_accessor(schema, map_type_of(schema.key_type, schema.value_type))


def _collection_accessors(schema: CollectionSchema) -> list[FunctionSpec]:
    return _value_accessor(schema, list_type_of(schema.element_type))


def _group_accessors(schema: GroupSchema) -> list[FunctionSpec]:
    group = schema.group_class
    fn = FunctionSpecBuilder().with_name(schema.prop_name).with_doc(schema.doc)
    fn.add_parameter(ParameterSpecBuilder().lambda_type(group))
    fn.add_statement("this.%N = %T().apply(block).items()", schema.prop_name, group)
    return [fn.build()]


def _map_group_accessors(schema: MapGroupSchema) -> list[FunctionSpec]:
    map_group = schema.map_group_type
    fn = FunctionSpecBuilder().with_name(schema.prop_name).with_doc(schema.doc)
    fn.add_parameter(ParameterSpecBuilder().lambda_type(map_group))
    fn.add_statement("this.%N = %T().apply(block).items()", schema.prop_name, map_group)
    return [fn.build()]


def _builder_accessors(schema: BuilderSchema) -> list[FunctionSpec]:
    nested = schema.nested_builder
    fn = FunctionSpecBuilder().with_name(schema.prop_name).with_doc(schema.doc)
    fn.add_parameter(ParameterSpecBuilder().lambda_type(nested))
    fn.add_statement("val builder = %T()", nested)
    fn.add_statement("builder.block()")
    fn.add_statement("this.%N = builder.build()", schema.prop_name)
    return [fn.build()]


_TEMPLATE_PLACEHOLDER = re.compile(r"%(.?)", re.DOTALL)


def _template_name_count(schema: SingleTransformSchema) -> int:
    """Number of `%N` in a transform template; only `%N` and `%%` are allowed."""
    count = 0
    for match in _TEMPLATE_PLACEHOLDER.finditer(schema.template or ""):
        token = match.group(1)
        if token == "N":
            count += 1
        elif token != "%":
            raise InvalidTemplateError(
                f"Property {schema.prop_name}: transform template {schema.template!r} "
                f"may only use %N and %%, found %{token}"
            )
    return count


def _single_transform_accessors(schema: SingleTransformSchema) -> list[FunctionSpec]:
    fn = FunctionSpecBuilder().with_name(schema.prop_name)
    param = fn.add_parameter(ParameterSpecBuilder().with_name("value").with_type(schema.input_type))
    if schema.template:
        # `%N` in the template refers to the accessor's input parameter.
        fn.add_statement("this.%N = " + schema.template, schema.prop_name, *([param] * _template_name_count(schema)))
    else:
        fn.add_statement("this.%N = %T(%N)", schema.prop_name, schema.prop_type.non_null(), param)
    return [fn.build()]


_ACCESSORS: dict[type, Callable[..., list[FunctionSpec]]] = {
    BooleanSchema: _boolean_accessors,
    DefaultSchema: _default_accessors,
    MapSchema: _map_accessors,
    CollectionSchema: _collection_accessors,
    GroupSchema: _group_accessors,
    MapGroupSchema: _map_group_accessors,
    BuilderSchema: _builder_accessors,
    SingleTransformSchema: _single_transform_accessors,
}


def accessors(schema: PropertySchema) -> list[FunctionSpec]:
    """Accessor functions the builder exposes for this property."""
    return _dispatch(_ACCESSORS, schema)(schema)


for _table, _name in (
    (_ACCESS_MODIFIERS, "access_modifier"),
    (_ITERABLE_TYPES, "iterable_type"),
    (_ACCESSORS, "accessors"),
):
    _check_exhaustive(_table, _name)


def describe(schema: PropertySchema) -> str:
    """Short human-readable form, e.g. `MapGroup(crewMap)` or `Collection(notes, nullable)`."""
    suffix = ", nullable" if schema.nullable_assignment else ""
    return f"{schema.kind.value}({schema.prop_name}{suffix})"
