"""Tests for oatui.parser.resolver."""

from __future__ import annotations

from typing import Any

import pytest

from oatui.exceptions import (
    MalformedDocumentError,
    UnresolvedReferenceError,
    UnsupportedReferenceError,
)
from oatui.models import (
    ArraySchema,
    Combinator,
    CompositeSchema,
    ObjectSchema,
    PrimitiveSchema,
    ReferenceSchema,
)
from oatui.parser.resolver import (
    SchemaResolver,
    escape_pointer,
    reference_name,
    resolve_schemas,
)


def _doc(**schemas: Any) -> dict[str, Any]:
    return {"openapi": "3.0.3", "components": {"schemas": schemas}}


def _count_placeholders(schema: Any, seen: set[int] | None = None) -> int:
    """Count ReferenceSchema nodes reachable from *schema*, visiting shared nodes once."""
    seen = set() if seen is None else seen
    if schema is None or id(schema) in seen:
        return 0
    seen.add(id(schema))
    if isinstance(schema, ReferenceSchema):
        return 1
    if isinstance(schema, ObjectSchema):
        return sum(_count_placeholders(p, seen) for p in schema.properties.values())
    if isinstance(schema, ArraySchema):
        return _count_placeholders(schema.items, seen)
    if isinstance(schema, CompositeSchema):
        return sum(_count_placeholders(v, seen) for v in schema.variants)
    return 0


# ---------------------------------------------------------------------------
# Conversion of schema kinds
# ---------------------------------------------------------------------------


class TestConvert:
    """Test conversion of raw schema objects into schema kinds."""

    def test_primitive(self) -> None:
        schema = SchemaResolver({}).resolve({"type": "string", "format": "uuid"})
        assert isinstance(schema, PrimitiveSchema)
        assert schema.type == "string"
        assert schema.format == "uuid"

    def test_missing_type_is_any(self) -> None:
        schema = SchemaResolver({}).resolve({"description": "Anything"})
        assert isinstance(schema, PrimitiveSchema)
        assert schema.type == "any"
        assert schema.description == "Anything"

    def test_boolean_schema_is_any(self) -> None:
        schema = SchemaResolver({}).resolve(True)
        assert isinstance(schema, PrimitiveSchema)
        assert schema.type == "any"

    def test_object_keeps_property_order_and_required(self) -> None:
        schema = SchemaResolver({}).resolve(
            {
                "type": "object",
                "required": ["b"],
                "properties": {"b": {"type": "string"}, "a": {"type": "integer"}},
            }
        )
        assert isinstance(schema, ObjectSchema)
        assert list(schema.properties) == ["b", "a"]
        assert schema.required == frozenset({"b"})

    def test_properties_without_type_is_object(self) -> None:
        schema = SchemaResolver({}).resolve({"properties": {"x": {"type": "string"}}})
        assert isinstance(schema, ObjectSchema)

    def test_array(self) -> None:
        schema = SchemaResolver({}).resolve({"type": "array", "items": {"type": "string"}})
        assert isinstance(schema, ArraySchema)
        assert isinstance(schema.items, PrimitiveSchema)

    def test_array_without_items(self) -> None:
        schema = SchemaResolver({}).resolve({"type": "array"})
        assert isinstance(schema, ArraySchema)
        assert schema.items is None

    def test_enum_and_nullable(self) -> None:
        schema = SchemaResolver({}).resolve(
            {"type": "string", "enum": ["a", "b"], "nullable": True}
        )
        assert schema.enum_values == ("a", "b")
        assert schema.nullable is True

    def test_openapi_31_type_list(self) -> None:
        schema = SchemaResolver({}).resolve({"type": ["string", "null"]})
        assert isinstance(schema, PrimitiveSchema)
        assert schema.type == "string"
        assert schema.nullable is True

    @pytest.mark.parametrize("keyword", ["oneOf", "anyOf", "allOf"])
    def test_composite(self, keyword: str) -> None:
        schema = SchemaResolver({}).resolve(
            {keyword: [{"type": "string"}, {"type": "integer"}]}
        )
        assert isinstance(schema, CompositeSchema)
        assert schema.combinator == Combinator(keyword)
        assert len(schema.variants) == 2

    def test_composite_with_own_shape_adds_variant(self) -> None:
        schema = SchemaResolver({}).resolve(
            {
                "allOf": [{"type": "object", "properties": {"a": {"type": "string"}}}],
                "properties": {"b": {"type": "string"}},
            }
        )
        assert isinstance(schema, CompositeSchema)
        assert len(schema.variants) == 2
        assert list(schema.variants[1].properties) == ["b"]

    def test_composite_with_only_annotations_keeps_variants(self) -> None:
        schema = SchemaResolver({}).resolve(
            {"oneOf": [{"type": "string"}], "description": "Either"}
        )
        assert len(schema.variants) == 1
        assert schema.description == "Either"


# ---------------------------------------------------------------------------
# $ref resolution and sharing
# ---------------------------------------------------------------------------


class TestReferences:
    """Test $ref resolution into the shared table."""

    def test_ref_is_resolved_and_titled(self) -> None:
        document = _doc(Pet={"type": "object", "properties": {"name": {"type": "string"}}})
        schema = SchemaResolver(document).resolve({"$ref": "#/components/schemas/Pet"})
        assert isinstance(schema, ObjectSchema)
        assert schema.title == "Pet"

    def test_same_ref_returns_same_object(self) -> None:
        document = _doc(Pet={"type": "object", "properties": {}})
        resolver = SchemaResolver(document)
        first = resolver.resolve({"$ref": "#/components/schemas/Pet"})
        second = resolver.resolve({"$ref": "#/components/schemas/Pet"})
        assert first is second
        assert resolver.table["#/components/schemas/Pet"] is first

    def test_does_not_mutate_document(self) -> None:
        document = _doc(
            Pet={"type": "object", "properties": {"tag": {"$ref": "#/components/schemas/Tag"}}},
            Tag={"type": "string"},
        )
        resolve_schemas(document)
        assert document["components"]["schemas"]["Pet"]["properties"]["tag"] == {
            "$ref": "#/components/schemas/Tag"
        }

    def test_ref_chain(self) -> None:
        document = _doc(A={"$ref": "#/components/schemas/B"}, B={"type": "integer"})
        table = resolve_schemas(document)
        assert table["#/components/schemas/A"] is table["#/components/schemas/B"]

    def test_table_follows_declaration_order(self) -> None:
        document = _doc(Zebra={"type": "string"}, Apple={"type": "string"})
        assert list(resolve_schemas(document)) == [
            "#/components/schemas/Zebra",
            "#/components/schemas/Apple",
        ]

    def test_table_order_ignores_dependency_order(self) -> None:
        document = _doc(
            Order={"type": "object", "properties": {"item": {"$ref": "#/components/schemas/Item"}}},
            Item={"type": "object", "properties": {"tag": {"$ref": "#/x/Tag"}}},
        )
        document["x"] = {"Tag": {"type": "string"}}
        assert list(resolve_schemas(document)) == [
            "#/components/schemas/Order",
            "#/components/schemas/Item",
            "#/x/Tag",
        ]

    def test_escaped_pointer(self) -> None:
        document = {"x": {"a/b": {"type": "boolean"}, "c~d": {"type": "number"}}}
        resolver = SchemaResolver(document)
        assert resolver.resolve({"$ref": "#/x/a~1b"}).type == "boolean"
        assert resolver.resolve({"$ref": "#/x/c~0d"}).type == "number"

    def test_list_index_pointer(self) -> None:
        document = {"list": [{"type": "string"}, {"type": "integer"}]}
        assert SchemaResolver(document).resolve({"$ref": "#/list/1"}).type == "integer"

    def test_missing_target_raises(self) -> None:
        with pytest.raises(UnresolvedReferenceError, match="Missing") as excinfo:
            SchemaResolver(_doc()).resolve({"$ref": "#/components/schemas/Missing"})
        assert excinfo.value.ref == "#/components/schemas/Missing"

    def test_bad_list_index_raises(self) -> None:
        with pytest.raises(UnresolvedReferenceError, match="invalid array index"):
            SchemaResolver({"list": []}).resolve({"$ref": "#/list/3"})

    @pytest.mark.parametrize(
        "ref", ["other.yaml#/components/schemas/Pet", "https://example.com/pet.json"]
    )
    def test_external_ref_raises(self, ref: str) -> None:
        with pytest.raises(UnsupportedReferenceError, match="External"):
            SchemaResolver(_doc()).resolve({"$ref": ref})

    def test_non_string_ref_raises(self) -> None:
        with pytest.raises(MalformedDocumentError, match="must be a string"):
            SchemaResolver(_doc()).resolve({"$ref": 42})

    def test_components_must_be_mapping(self) -> None:
        with pytest.raises(MalformedDocumentError, match="components"):
            resolve_schemas({"components": ["nope"]})


# ---------------------------------------------------------------------------
# Cycles
# ---------------------------------------------------------------------------


class TestCycles:
    """Test cycle detection on the active resolution path."""

    def test_self_reference_terminates_with_one_placeholder(
        self, tree_raw: dict[str, Any]
    ) -> None:
        table = resolve_schemas(tree_raw)
        node = table["#/components/schemas/Node"]

        assert isinstance(node, ObjectSchema)
        children = node.properties["children"]
        assert isinstance(children, ArraySchema)
        assert isinstance(children.items, ReferenceSchema)
        assert children.items.target == "#/components/schemas/Node"
        assert _count_placeholders(node) == 1

    def test_mutual_recursion(self) -> None:
        document = _doc(
            A={"type": "object", "properties": {"b": {"$ref": "#/components/schemas/B"}}},
            B={"type": "object", "properties": {"a": {"$ref": "#/components/schemas/A"}}},
        )
        table = resolve_schemas(document)
        a = table["#/components/schemas/A"]
        b = a.properties["b"]
        assert b is table["#/components/schemas/B"]
        assert isinstance(b.properties["a"], ReferenceSchema)
        assert b.properties["a"].target == "#/components/schemas/A"

    def test_self_reference_through_composite(self) -> None:
        document = _doc(
            Expr={
                "oneOf": [
                    {"type": "integer"},
                    {
                        "type": "object",
                        "properties": {
                            "left": {"$ref": "#/components/schemas/Expr"},
                            "right": {"$ref": "#/components/schemas/Expr"},
                        },
                    },
                ]
            }
        )
        expr = resolve_schemas(document)["#/components/schemas/Expr"]
        binary = expr.variants[1]
        assert isinstance(binary.properties["left"], ReferenceSchema)
        assert isinstance(binary.properties["right"], ReferenceSchema)

    def test_looping_deref_chain_raises(self) -> None:
        document = {"a": {"$ref": "#/b"}, "b": {"$ref": "#/a"}}
        with pytest.raises(UnresolvedReferenceError, match="Circular"):
            SchemaResolver(document).deref({"$ref": "#/a"})


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestHelpers:
    def test_escape_pointer(self) -> None:
        assert escape_pointer("a/b~c") == "a~1b~0c"

    def test_reference_name(self) -> None:
        assert reference_name("#/components/schemas/Pet") == "Pet"
        assert reference_name("#/components/schemas/a~1b") == "a/b"
        assert reference_name("Pet") is None

    def test_deref_returns_raw_target(self) -> None:
        document = {"components": {"parameters": {"Limit": {"name": "limit", "in": "query"}}}}
        raw = SchemaResolver(document).deref({"$ref": "#/components/parameters/Limit"})
        assert raw == {"name": "limit", "in": "query"}
