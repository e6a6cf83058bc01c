import pytest
from pydantic import ValidationError

from api_scaffold.parser.models import (
    AdditionalProperties,
    Parameter,
    ParameterLocation,
    PathItem,
    Reference,
    Schema,
    SchemaBox,
    SchemaKind,
    SpecDocument,
)


class TestSchemaBox:
    def test_nested_schemas_are_boxed(self):
        schema = Schema.model_validate({
            "type": "array",
            "items": {"type": "object", "properties": {"id": {"type": "string"}}},
        })
        assert isinstance(schema.items, SchemaBox)
        assert schema.items.value.properties["id"].value.type == "string"

    def test_box_is_transparent_on_the_wire(self):
        schema = Schema.model_validate({"type": "array", "items": {"type": "integer"}})
        dumped = schema.model_dump(by_alias=True, exclude_none=True, exclude_defaults=True)
        assert dumped == {"type": "array", "items": {"type": "integer"}}

    def test_self_reference_decodes(self):
        schema = Schema.model_validate({
            "type": "object",
            "properties": {"children": {"type": "array", "items": {"$ref": "#/components/schemas/Node"}}},
        })
        items = schema.properties["children"].value.items.value
        assert items.ref == "#/components/schemas/Node"
        assert items.kind is SchemaKind.REFERENCE


class TestAdditionalProperties:
    def test_true_selects_boolean_variant(self):
        schema = Schema.model_validate({"type": "object", "additionalProperties": True})
        assert schema.additional_properties.is_schema is False
        assert schema.additional_properties.root is True
        assert schema.additional_properties.allowed

    def test_false_disallows_extra_keys(self):
        extra = AdditionalProperties.model_validate(False)
        assert not extra.allowed
        assert extra.schema_value is None

    def test_schema_selects_schema_variant(self):
        schema = Schema.model_validate({"type": "object", "additionalProperties": {"type": "string"}})
        extra = schema.additional_properties
        assert extra.is_schema
        assert extra.schema_value.type == "string"

    def test_empty_schema_is_still_a_schema(self):
        extra = AdditionalProperties.model_validate({})
        assert extra.is_schema
        assert extra.schema_value.kind is SchemaKind.FREEFORM


class TestSchemaKeywords:
    def test_aliases(self):
        schema = Schema.model_validate({
            "type": "string",
            "default": "pending",
            "enum": ["pending", "done"],
            "readOnly": True,
            "minLength": 1,
        })
        assert schema.default_value == "pending"
        assert schema.enum_values == ["pending", "done"]
        assert schema.read_only is True
        assert schema.min_length == 1

    def test_arbitrary_example_values(self):
        value = {"tags": ["a", 1, 2.5, None, True], "nested": {"k": "v"}}
        schema = Schema.model_validate({"type": "object", "example": value})
        assert schema.example == value

    def test_not_keyword(self):
        schema = Schema.model_validate({"not": {"type": "null"}})
        assert schema.not_.value.type == "null"

    @pytest.mark.parametrize("raw, kind", [
        ({"type": "string"}, SchemaKind.PRIMITIVE),
        ({"type": "array", "items": {}}, SchemaKind.ARRAY),
        ({"properties": {"a": {}}}, SchemaKind.OBJECT),
        ({"oneOf": [{"type": "string"}, {"type": "integer"}]}, SchemaKind.COMPOSITION),
        ({"$ref": "#/components/schemas/X"}, SchemaKind.REFERENCE),
        ({}, SchemaKind.FREEFORM),
        ({"type": ["array", "null"], "items": {}}, SchemaKind.ARRAY),
        ({"type": ["string", "integer"]}, SchemaKind.FREEFORM),
    ])
    def test_kind(self, raw, kind):
        assert Schema.model_validate(raw).kind is kind

    def test_type_list(self):
        schema = Schema.model_validate({"type": ["string", "null"]})
        assert schema.type == ["string", "null"]
        assert schema.base_type == "string"
        assert schema.allows_null
        plain = Schema.model_validate({"type": "string"})
        assert plain.base_type == "string"
        assert not plain.allows_null
        assert Schema.model_validate({"type": ["string", "integer"]}).base_type is None

    def test_required_list(self):
        schema = Schema.model_validate({"required": ["id"], "properties": {"id": {}, "name": {}}})
        assert schema.is_required("id")
        assert not schema.is_required("name")

    def test_models_are_frozen(self):
        schema = Schema.model_validate({"type": "string"})
        with pytest.raises(ValidationError):
            schema.type = "integer"


class TestOperations:
    def test_parameter_location_alias(self):
        param = Parameter.model_validate({"name": "id", "in": "path", "required": True, "schema": {"type": "string"}})
        assert param.location is ParameterLocation.PATH
        assert param.schema_.value.type == "string"

    def test_reference_or_parameter(self):
        item = PathItem.model_validate({
            "parameters": [
                {"$ref": "#/components/parameters/Limit"},
                {"name": "q", "in": "query"},
            ],
        })
        assert isinstance(item.parameters[0], Reference)
        assert isinstance(item.parameters[1], Parameter)

    def test_operations_in_verb_order(self):
        item = PathItem.model_validate({
            "trace": {"responses": {}},
            "post": {"responses": {}},
            "get": {"responses": {}},
        })
        assert [method for method, _ in item.operations()] == ["get", "post", "trace"]


class TestSpecDocument:
    def test_minimal_document(self):
        doc = SpecDocument.model_validate({
            "openapi": "3.0.0",
            "info": {"title": "T", "version": 1.0},
            "paths": {},
        })
        assert doc.info.version == "1.0"
        assert doc.component_schemas == {}
        assert doc.base_url is None

    def test_base_url_is_first_server(self):
        doc = SpecDocument.model_validate({
            "openapi": "3.0.0",
            "info": {"title": "T", "version": "1"},
            "servers": [{"url": "https://a.example.com"}, {"url": "https://b.example.com"}],
            "paths": {},
        })
        assert doc.base_url == "https://a.example.com"
