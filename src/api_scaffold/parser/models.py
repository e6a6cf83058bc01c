"""Typed model of an OpenAPI 3.x document.

Every parser input is decoded into these models once per run. Wire keys are
camelCase (``operationId``); attributes are snake_case and either spelling is
accepted on input. Keys that collide with Python keywords or pydantic
attributes carry explicit aliases: ``$ref``, ``default``, ``enum``, ``in``,
``not`` and ``schema``.

Schemas may contain themselves, directly (``Node.children: [Node]``) or through
named component references, so every nested schema slot goes through
``SchemaBox`` instead of holding a ``Schema`` inline.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Iterator, Union

from pydantic import BaseModel, ConfigDict, Field, JsonValue, RootModel, StrictBool
from pydantic.alias_generators import to_camel

HTTP_METHODS = ("get", "post", "put", "delete", "patch", "head", "options", "trace")

PRIMITIVE_TYPES = frozenset({"string", "integer", "number", "boolean"})


class WireModel(BaseModel):
    """Base for all document models: camelCase on the wire, immutable once parsed."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,  # YAML reads `version: 1.0` as a float
        frozen=True,
    )


class Reference(WireModel):
    """A bare ``{"$ref": ...}`` object standing in for a reusable component."""

    ref: str = Field(alias="$ref")


# -- schema -------------------------------------------------------------------


class SchemaKind(str, Enum):
    PRIMITIVE = "primitive"
    ARRAY = "array"
    OBJECT = "object"
    COMPOSITION = "composition"
    REFERENCE = "reference"
    FREEFORM = "freeform"


class SchemaBox(RootModel):
    """Single-owner cell around a nested schema.

    Decoding and encoding delegate to the boxed ``Schema``; the cell itself
    never appears on the wire.
    """

    model_config = ConfigDict(frozen=True)

    root: Schema

    @property
    def value(self) -> Schema:
        return self.root


class AdditionalProperties(RootModel):
    """``additionalProperties``: either a boolean or a schema.

    Decoding tries a strict boolean first and only falls back to a schema
    when that fails.
    """

    model_config = ConfigDict(frozen=True)

    root: Annotated[Union[StrictBool, SchemaBox], Field(union_mode="left_to_right")]

    @property
    def is_schema(self) -> bool:
        return isinstance(self.root, SchemaBox)

    @property
    def allowed(self) -> bool:
        """Whether keys beyond ``properties`` may appear."""
        return self.is_schema or self.root is True

    @property
    def schema_value(self) -> Schema | None:
        return self.root.value if isinstance(self.root, SchemaBox) else None


class Schema(WireModel):
    """A JSON-Schema node, as far as OpenAPI 3.0 and 3.1 use it."""

    type: str | list[str] | None = None  # 3.1: ["string", "null"]
    format: str | None = None
    title: str | None = None
    description: str | None = None
    default_value: JsonValue = Field(default=None, alias="default")
    example: JsonValue = None
    enum_values: list[JsonValue] | None = Field(default=None, alias="enum")

    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None

    minimum: float | None = None
    maximum: float | None = None
    exclusive_minimum: bool | float | None = None
    exclusive_maximum: bool | float | None = None
    multiple_of: float | None = None

    items: SchemaBox | None = None
    min_items: int | None = None
    max_items: int | None = None
    unique_items: bool | None = None

    properties: dict[str, SchemaBox] = Field(default_factory=dict)
    required: list[str] = Field(default_factory=list)
    additional_properties: AdditionalProperties | None = None
    min_properties: int | None = None
    max_properties: int | None = None

    all_of: list[SchemaBox] | None = None
    one_of: list[SchemaBox] | None = None
    any_of: list[SchemaBox] | None = None
    not_: SchemaBox | None = Field(default=None, alias="not")

    ref: str | None = Field(default=None, alias="$ref")

    nullable: bool | None = None
    read_only: bool | None = None
    write_only: bool | None = None
    deprecated: bool | None = None

    @property
    def base_type(self) -> str | None:
        """``type`` with a 3.1 ``"null"`` member dropped; None unless one type is left."""
        if not isinstance(self.type, list):
            return self.type
        members = [name for name in self.type if name != "null"]
        return members[0] if len(members) == 1 else None

    @property
    def allows_null(self) -> bool:
        return isinstance(self.type, list) and "null" in self.type

    @property
    def kind(self) -> SchemaKind:
        if self.ref:
            return SchemaKind.REFERENCE
        if self.all_of or self.one_of or self.any_of:
            return SchemaKind.COMPOSITION
        if self.base_type == "array":
            return SchemaKind.ARRAY
        if self.base_type == "object" or self.properties:
            return SchemaKind.OBJECT
        if self.base_type in PRIMITIVE_TYPES:
            return SchemaKind.PRIMITIVE
        return SchemaKind.FREEFORM

    def is_required(self, property_name: str) -> bool:
        return property_name in self.required


SchemaBox.model_rebuild()
AdditionalProperties.model_rebuild()
Schema.model_rebuild()


# -- info / servers / tags ----------------------------------------------------


class Contact(WireModel):
    name: str | None = None
    url: str | None = None
    email: str | None = None


class License(WireModel):
    name: str
    url: str | None = None


class Info(WireModel):
    title: str
    version: str
    description: str | None = None
    contact: Contact | None = None
    license: License | None = None


class ServerVariable(WireModel):
    enum_values: list[str] | None = Field(default=None, alias="enum")
    default_value: str = Field(alias="default")
    description: str | None = None


class Server(WireModel):
    url: str
    description: str | None = None
    variables: dict[str, ServerVariable] = Field(default_factory=dict)


class ExternalDocumentation(WireModel):
    url: str
    description: str | None = None


class Tag(WireModel):
    name: str
    description: str | None = None
    external_docs: ExternalDocumentation | None = None


# -- operations ---------------------------------------------------------------


class ParameterLocation(str, Enum):
    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"


class Parameter(WireModel):
    name: str
    location: ParameterLocation = Field(alias="in")
    description: str | None = None
    required: bool = False
    deprecated: bool | None = None
    schema_: SchemaBox | None = Field(default=None, alias="schema")
    style: str | None = None
    explode: bool | None = None
    example: JsonValue = None


class Example(WireModel):
    summary: str | None = None
    description: str | None = None
    value: JsonValue = None
    external_value: str | None = None


class Header(WireModel):
    description: str | None = None
    required: bool | None = None
    deprecated: bool | None = None
    schema_: SchemaBox | None = Field(default=None, alias="schema")
    style: str | None = None
    explode: bool | None = None


class Encoding(WireModel):
    content_type: str | None = None
    headers: dict[str, Header] = Field(default_factory=dict)
    style: str | None = None
    explode: bool | None = None
    allow_reserved: bool | None = None


class MediaType(WireModel):
    schema_: SchemaBox | None = Field(default=None, alias="schema")
    example: JsonValue = None
    examples: dict[str, Example] = Field(default_factory=dict)
    encoding: dict[str, Encoding] = Field(default_factory=dict)


class RequestBody(WireModel):
    description: str | None = None
    content: dict[str, MediaType] = Field(default_factory=dict)
    required: bool = False


class Link(WireModel):
    operation_ref: str | None = None
    operation_id: str | None = None
    parameters: dict[str, JsonValue] = Field(default_factory=dict)
    request_body: JsonValue = None
    description: str | None = None
    server: Server | None = None


class Response(WireModel):
    description: str = ""
    headers: dict[str, Header] = Field(default_factory=dict)
    content: dict[str, MediaType] = Field(default_factory=dict)
    links: dict[str, Link] = Field(default_factory=dict)


# Reusable objects may be written inline or as a "$ref"; a bare reference is
# tried first since the inline models would otherwise accept it.
ParameterOrRef = Annotated[Union[Reference, Parameter], Field(union_mode="left_to_right")]
RequestBodyOrRef = Annotated[Union[Reference, RequestBody], Field(union_mode="left_to_right")]
ResponseOrRef = Annotated[Union[Reference, Response], Field(union_mode="left_to_right")]

SecurityRequirement = dict[str, list[str]]


class Operation(WireModel):
    tags: list[str] = Field(default_factory=list)
    summary: str | None = None
    description: str | None = None
    operation_id: str | None = None
    parameters: list[ParameterOrRef] = Field(default_factory=list)
    request_body: RequestBodyOrRef | None = None
    responses: dict[str, ResponseOrRef] = Field(default_factory=dict)
    deprecated: bool | None = None
    security: list[SecurityRequirement] | None = None


class PathItem(WireModel):
    summary: str | None = None
    description: str | None = None
    get: Operation | None = None
    post: Operation | None = None
    put: Operation | None = None
    delete: Operation | None = None
    patch: Operation | None = None
    head: Operation | None = None
    options: Operation | None = None
    trace: Operation | None = None
    parameters: list[ParameterOrRef] = Field(default_factory=list)

    def operations(self, methods: tuple[str, ...] = HTTP_METHODS) -> Iterator[tuple[str, Operation]]:
        """Yield (method, operation) for each defined verb, in ``methods`` order."""
        for method in methods:
            operation = getattr(self, method)
            if operation is not None:
                yield method, operation


# -- components / security ----------------------------------------------------


class OAuthFlow(WireModel):
    authorization_url: str | None = None
    token_url: str | None = None
    refresh_url: str | None = None
    scopes: dict[str, str] = Field(default_factory=dict)


class OAuthFlows(WireModel):
    implicit: OAuthFlow | None = None
    password: OAuthFlow | None = None
    client_credentials: OAuthFlow | None = None
    authorization_code: OAuthFlow | None = None


class SecurityScheme(WireModel):
    type: str  # apiKey / http / oauth2 / openIdConnect
    description: str | None = None
    name: str | None = None
    location: str | None = Field(default=None, alias="in")
    scheme: str | None = None
    bearer_format: str | None = None
    flows: OAuthFlows | None = None
    open_id_connect_url: str | None = None


Callback = dict[str, PathItem]


class Components(WireModel):
    schemas: dict[str, SchemaBox] = Field(default_factory=dict)
    responses: dict[str, Response] = Field(default_factory=dict)
    parameters: dict[str, Parameter] = Field(default_factory=dict)
    examples: dict[str, Example] = Field(default_factory=dict)
    request_bodies: dict[str, RequestBody] = Field(default_factory=dict)
    headers: dict[str, Header] = Field(default_factory=dict)
    security_schemes: dict[str, SecurityScheme] = Field(default_factory=dict)
    links: dict[str, Link] = Field(default_factory=dict)
    callbacks: dict[str, Callback] = Field(default_factory=dict)


class SpecDocument(WireModel):
    """A parsed service description. Built once per run and never mutated."""

    openapi: str
    info: Info
    servers: list[Server] = Field(default_factory=list)
    paths: dict[str, PathItem]
    components: Components | None = None
    security: list[SecurityRequirement] | None = None
    tags: list[Tag] = Field(default_factory=list)

    @property
    def component_schemas(self) -> dict[str, SchemaBox]:
        return self.components.schemas if self.components else {}

    @property
    def base_url(self) -> str | None:
        return self.servers[0].url if self.servers else None
