"""
resolver.py

Responsibility: Classify each domain property into exactly one property schema.

Rules are checked in a fixed order, first match wins:
1) single-entry transform hint present
2) nominal type that is itself generable (single nested builder)
3) boolean
4) other scalars (char, string, numeric)
5) map: MapGroup when the value type opts into map groups, else Map
6) list: Group when the element type opts into list groups, else Collection
7) anything else: Default, with a diagnostic

`resolve` never raises for unusual input; it degrades to `DefaultSchema` and
records why. The outcome depends only on the property's declared type,
nullability and hints.
"""

from __future__ import annotations

from typing import Mapping

from dslgen.diagnostics import Diagnostics
from dslgen.domain import (
    LIST_QUALIFIED_NAME,
    MAP_QUALIFIED_NAME,
    DomainProperty,
    DomainType,
    TypeKind,
    builder_class_name_for,
)
from dslgen.schema import (
    BooleanSchema,
    BuilderSchema,
    CollectionSchema,
    DefaultSchema,
    GroupSchema,
    MapGroupSchema,
    MapSchema,
    PropertySchema,
    SingleTransformSchema,
    describe,
)
from dslgen.typenames import ClassName

DEFAULT_KINDS = frozenset({TypeKind.CHAR, TypeKind.STRING, TypeKind.NUMERIC})


class PropertySchemaResolver:
    """
    `known_domains` (qualified name -> domain) is only used to document the
    nested builder functions on Builder/Group/MapGroup accessors.
    """

    def __init__(
        self,
        diagnostics: Diagnostics | None = None,
        known_domains: Mapping[str, DomainType] | None = None,
    ) -> None:
        self.diagnostics = diagnostics or Diagnostics()
        self.known_domains = dict(known_domains or {})

    def resolve_domain(self, domain: DomainType) -> list[PropertySchema]:
        """Classify every property of `domain`, preserving declaration order."""
        self.diagnostics.debug(f"properties of {domain.qualified_name}", tier=1, branch=True)
        return [self.resolve(prop, domain=domain.qualified_name) for prop in domain.properties]

    def resolve(self, prop: DomainProperty, *, domain: str | None = None) -> PropertySchema:
        branch = not prop.is_last
        declared = prop.declared_type
        self.diagnostics.debug(f"mapping '{prop.name}'", tier=2, branch=branch)
        self.diagnostics.debug(f"type: {declared}", tier=3, branch=True)
        self.diagnostics.debug(f"nullable: {prop.nullable}", tier=3, branch=True)

        schema = self._annotated(prop, domain) or self._by_type(prop, domain)
        self.diagnostics.debug(f"-> {describe(schema)}", tier=3, branch=False)
        return schema

    # -- annotated rules -----------------------------------------------------

    def _annotated(self, prop: DomainProperty, domain: str | None) -> PropertySchema | None:
        if prop.single_entry_transform is not None:
            return self._single_transform(prop, domain)

        declared = prop.declared_type
        if declared.kind is TypeKind.NOMINAL and declared.generable:
            nested_builder = builder_class_name_for(declared.class_name())
            self.diagnostics.debug(f"nestedBuilder: {nested_builder}", tier=4)
            return BuilderSchema(
                prop.name,
                prop.type_name(),
                nested_builder,
                nullable_assignment=prop.nullable,
                default_value=prop.default_value,
                doc=self._builder_doc(nested_builder, declared.qualified_name),
            )
        return None

    def _single_transform(self, prop: DomainProperty, domain: str | None) -> PropertySchema:
        hint = prop.single_entry_transform
        self.diagnostics.debug(f"template: {hint.template}", tier=4, branch=True)
        self.diagnostics.debug(f"input type: {hint.input_type}", tier=4)

        if hint.input_type is None:
            self.diagnostics.warn(
                "single-entry transform input type is missing or could not be resolved",
                domain=domain,
                property=prop.name,
                fallback="Default",
            )
            return self._default(prop)

        return SingleTransformSchema(
            prop.name,
            prop.type_name(),
            hint.input_type.to_type_name(),
            template=hint.template,
            nullable_assignment=prop.nullable,
            default_value=prop.default_value,
        )

    # -- type rules ----------------------------------------------------------

    def _by_type(self, prop: DomainProperty, domain: str | None) -> PropertySchema:
        declared = prop.declared_type

        if declared.kind is TypeKind.BOOLEAN:
            return BooleanSchema(prop.name, prop.nullable, prop.default_value)

        if declared.kind in DEFAULT_KINDS:
            return self._default(prop)

        if self._is_collection_kind(prop, TypeKind.MAP, MAP_QUALIFIED_NAME, domain):
            self.diagnostics.debug("[CHOICE] map branch", tier=4)
            return self._map(prop, domain)

        if self._is_collection_kind(prop, TypeKind.COLLECTION, LIST_QUALIFIED_NAME, domain):
            self.diagnostics.debug("[CHOICE] list branch", tier=4)
            return self._list(prop, domain)

        self.diagnostics.warn(
            f"type '{declared}' could not be mapped to a known property schema",
            domain=domain,
            property=prop.name,
            fallback="Default",
        )
        return self._default(prop)

    def _is_collection_kind(self, prop: DomainProperty, kind: TypeKind, qualified_name: str,
                            domain: str | None) -> bool:
        """
        Either the structural kind or the qualified name is enough. When they
        disagree the property is still treated as that collection kind, and
        the disagreement is reported.
        """
        declared = prop.declared_type
        is_raw = declared.kind is kind
        is_qualified = declared.qualified_name == qualified_name
        if is_raw != is_qualified:
            self.diagnostics.warn(
                f"conflicting {kind.value} signals for '{declared}' "
                f"(structural: {is_raw}, qualified name: {is_qualified})",
                domain=domain,
                property=prop.name,
            )
        return is_raw or is_qualified

    def _map(self, prop: DomainProperty, domain: str | None) -> PropertySchema:
        args = prop.declared_type.arguments
        if len(args) != 2:
            self.diagnostics.warn(
                f"map type '{prop.declared_type}' is not parameterized by key and value",
                domain=domain,
                property=prop.name,
                fallback="Default",
            )
            return self._default(prop)

        key, value = args
        self.diagnostics.debug(f"mapElementKey: {key}", tier=5, branch=True)
        self.diagnostics.debug(f"mapElementValue: {value}", tier=5)

        if value.is_map_group_value:
            self.diagnostics.debug("[DECISION] MapGroup", tier=4)
            value_class = value.class_name()
            value_builder = builder_class_name_for(value_class)
            return MapGroupSchema(
                prop.name,
                key.to_type_name(),
                value_class,
                value_builder,
                nullable_assignment=prop.nullable,
                default_value=prop.default_value,
                doc=self._builder_doc(value_builder, value.qualified_name),
            )

        self.diagnostics.debug("[DECISION] Map", tier=4)
        return MapSchema(
            prop.name,
            key.to_type_name(),
            value.to_type_name(),
            nullable_assignment=prop.nullable,
            default_value=prop.default_value,
        )

    def _list(self, prop: DomainProperty, domain: str | None) -> PropertySchema:
        args = prop.declared_type.arguments
        if len(args) != 1:
            self.diagnostics.warn(
                f"list type '{prop.declared_type}' is not parameterized by an element type",
                domain=domain,
                property=prop.name,
                fallback="Default",
            )
            return self._default(prop)

        element = args[0]
        self.diagnostics.debug(f"listElementType: {element}", tier=5)

        if element.is_group_element:
            self.diagnostics.debug("[DECISION] Group", tier=4)
            element_class = element.class_name()
            element_builder = builder_class_name_for(element_class)
            return GroupSchema(
                prop.name,
                element_class,
                element_builder,
                nullable_assignment=prop.nullable,
                default_value=prop.default_value,
                doc=self._builder_doc(element_builder, element.qualified_name),
            )

        self.diagnostics.debug("[DECISION] Collection", tier=4)
        return CollectionSchema(
            prop.name,
            element.to_type_name(),
            nullable_assignment=prop.nullable,
            default_value=prop.default_value,
        )

    @staticmethod
    def _default(prop: DomainProperty) -> DefaultSchema:
        return DefaultSchema(prop.name, prop.type_name(), prop.nullable, prop.default_value)

    def _builder_doc(self, builder_class: ClassName, qualified_name: str | None) -> str | None:
        nested = self.known_domains.get(qualified_name or "")
        if nested is None or not nested.properties:
            return None
        names = sorted(p.name for p in nested.properties)
        lines = "\n".join(f"* [{builder_class.simple_name}.{name}]" for name in names)
        return f"Available builder functions:\n{lines}"
