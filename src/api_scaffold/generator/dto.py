"""DTO generator: one Swift file per component schema.

Object schemas become ``Codable`` structs, string enums become ``String``
enums and arrays or scalars become type aliases. Struct fields are sorted by
wire name and a ``CodingKeys`` table is emitted only when at least one Swift
name differs from its wire name.
"""

from __future__ import annotations

import logging
from enum import Enum

from pydantic import BaseModel, ConfigDict

from api_scaffold.errors import GenerationFailure
from api_scaffold.grouping import Endpoint, ServiceGroups
from api_scaffold.naming import escape_identifier, lower_camel, swift_identifier, type_identifier
from api_scaffold.parser.loader import SCHEMA_REF_PREFIX, ref_name, resolve_schema
from api_scaffold.parser.models import Schema, SchemaKind, SpecDocument

from .artifact import DTO_DIR, ArtifactKind, GeneratedArtifact, swift_artifact
from .signature import json_media_type
from .types import TypeDescriptor, TypeMapper, required_for

logger = logging.getLogger(__name__)


class DtoShape(str, Enum):
    STRUCT = "struct"
    ENUM = "enum"
    ALIAS = "alias"


class DtoField(BaseModel):
    model_config = ConfigDict(frozen=True)

    wire_name: str
    identifier: str  # escaped, without keyword quoting
    type: TypeDescriptor
    description: str | None = None

    @property
    def declared_name(self) -> str:
        return swift_identifier(self.identifier)

    @property
    def is_renamed(self) -> bool:
        # synthesized Codable keys use the declared name minus its backticks
        return self.declared_name.strip("`") != self.wire_name


class DtoModel(BaseModel):
    """A component schema resolved into what its Swift file declares."""

    model_config = ConfigDict(frozen=True)

    name: str
    wire_name: str
    shape: DtoShape
    members: list[DtoField] = []
    cases: list[tuple[str, str]] = []  # (case identifier, raw value)
    alias: TypeDescriptor | None = None
    description: str | None = None

    @property
    def needs_coding_keys(self) -> bool:
        return any(f.is_renamed for f in self.members)


def swift_string(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def doc_comment(text: str | None, indent: str = "") -> list[str]:
    if not text:
        return []
    return [f"{indent}/// {line}".rstrip() for line in text.strip().splitlines()]


def flatten_all_of(
    document: SpecDocument,
    schema: Schema,
    seen: frozenset[str] = frozenset(),
) -> Schema:
    """``schema`` with the properties and required names of every ``allOf`` member merged in.

    Own declarations win over inherited ones; ``seen`` stops reference cycles.
    """
    properties = dict(schema.properties)
    required = list(schema.required)
    for member in schema.all_of or []:
        target = member.value
        if target.ref:
            if target.ref in seen:
                continue
            seen = seen | {target.ref}
            target = resolve_schema(document, target)
            if target is None:
                continue
        inherited = flatten_all_of(document, target, seen)
        for name, box in inherited.properties.items():
            properties.setdefault(name, box)
        required.extend(name for name in inherited.required if name not in required)
    return schema.model_copy(update={"properties": properties, "required": required})


def _is_string_enum(schema: Schema) -> bool:
    return (
        schema.base_type == "string"
        and bool(schema.enum_values)
        and all(isinstance(value, str) for value in schema.enum_values)
    )


def _enum_cases(values: list[str]) -> list[tuple[str, str]]:
    cases = []
    used: set[str] = set()
    for index, value in enumerate(values):
        camel = lower_camel(value)
        identifier = escape_identifier(camel) if camel else f"value{index}"
        if identifier in used:
            identifier = f"{identifier}{index}"
        used.add(identifier)
        cases.append((identifier, value))
    return cases


def build_dto_models(document: SpecDocument, mapper: TypeMapper) -> list[DtoModel]:
    """Resolve every component schema into a DtoModel, sorted by name."""
    models: list[DtoModel] = []
    owners: dict[str, str] = {}
    for wire_name in sorted(document.component_schemas):
        name = type_identifier(wire_name)
        if name in owners:
            raise GenerationFailure(
                "dto", f"Component schemas '{owners[name]}' and '{wire_name}' both generate DTO '{name}'"
            )
        owners[name] = wire_name
        schema = document.component_schemas[wire_name].value
        models.append(_build_model(document, mapper, name, wire_name, schema))
    return models


def _build_model(
    document: SpecDocument, mapper: TypeMapper, name: str, wire_name: str, schema: Schema
) -> DtoModel:
    if _is_string_enum(schema):
        return DtoModel(
            name=name,
            wire_name=wire_name,
            shape=DtoShape.ENUM,
            cases=_enum_cases(schema.enum_values),
            description=schema.description,
        )

    if schema.kind in (SchemaKind.ARRAY, SchemaKind.PRIMITIVE, SchemaKind.REFERENCE):
        return DtoModel(
            name=name,
            wire_name=wire_name,
            shape=DtoShape.ALIAS,
            alias=mapper.map_type(schema),
            description=schema.description,
        )

    flat = flatten_all_of(document, schema, frozenset({SCHEMA_REF_PREFIX + wire_name}))
    members: list[DtoField] = []
    identifiers: dict[str, str] = {}
    for property_name in sorted(flat.properties):
        identifier = escape_identifier(lower_camel(property_name))
        if identifier in identifiers:
            raise GenerationFailure(
                "dto",
                f"{name}: properties '{identifiers[identifier]}' and '{property_name}' "
                f"both generate the field '{identifier}'",
            )
        identifiers[identifier] = property_name
        property_schema = flat.properties[property_name].value
        members.append(DtoField(
            wire_name=property_name,
            identifier=identifier,
            type=mapper.map_type(property_schema, required=required_for(flat, property_name)),
            description=property_schema.description,
        ))

    return DtoModel(
        name=name,
        wire_name=wire_name,
        shape=DtoShape.STRUCT,
        members=members,
        description=schema.description,
    )


def _schema_refs(schema: Schema | None) -> list[str]:
    """Component names a body or response schema points at (one array level deep)."""
    if schema is None:
        return []
    if schema.ref and schema.ref.startswith(SCHEMA_REF_PREFIX):
        return [ref_name(schema.ref)]
    if schema.base_type == "array" and schema.items:
        return _schema_refs(schema.items.value)
    return []


def _endpoint_refs(endpoint: Endpoint) -> list[str]:
    names = []
    for status in sorted(endpoint.responses):
        media = json_media_type(endpoint.responses[status].content)
        if media and media.schema_:
            names.extend(_schema_refs(media.schema_.value))
    if endpoint.request_body:
        media = json_media_type(endpoint.request_body.content)
        if media and media.schema_:
            names.extend(_schema_refs(media.schema_.value))
    return names


def analyze_schema_usage(groups: ServiceGroups) -> dict[str, Endpoint]:
    """Map component name -> first endpoint that uses it as body or response."""
    usage: dict[str, Endpoint] = {}
    for endpoints in groups.values():
        for endpoint in endpoints:
            for name in _endpoint_refs(endpoint):
                usage.setdefault(name, endpoint)
    return usage


class DtoGenerator:
    """Renders DtoModels into Swift files under Network/DTOs/."""

    def generate(self, models: list[DtoModel], groups: ServiceGroups | None = None) -> list[GeneratedArtifact]:
        usage = analyze_schema_usage(groups or {})
        artifacts = []
        for model in models:
            endpoint = usage.get(model.wire_name)
            artifacts.append(swift_artifact(
                DTO_DIR,
                model.name,
                self.render(model),
                ArtifactKind.DTO,
                endpoint_path=endpoint.path if endpoint else None,
                http_method=endpoint.method.upper() if endpoint else None,
            ))
        logger.info("Generated %d DTOs", len(artifacts))
        return artifacts

    def render(self, model: DtoModel) -> str:
        lines = ["import Foundation", "", f"// MARK: - {model.name}", ""]
        lines.extend(doc_comment(model.description))
        if model.shape is DtoShape.ENUM:
            lines.extend(self._render_enum(model))
        elif model.shape is DtoShape.ALIAS:
            lines.append(f"typealias {model.name} = {model.alias.render()}")
        else:
            lines.extend(self._render_struct(model))
        return "\n".join(lines) + "\n"

    def _render_struct(self, model: DtoModel) -> list[str]:
        lines = [f"struct {model.name}: Codable {{"]
        for field in model.members:
            lines.extend(doc_comment(field.description, indent="    "))
            lines.append(f"    let {field.declared_name}: {field.type.render()}")

        if model.needs_coding_keys:
            lines.append("")
            lines.append("    enum CodingKeys: String, CodingKey {")
            for field in model.members:
                if field.is_renamed:
                    lines.append(f"        case {field.declared_name} = {swift_string(field.wire_name)}")
                else:
                    lines.append(f"        case {field.declared_name}")
            lines.append("    }")

        lines.append("}")
        return lines

    def _render_enum(self, model: DtoModel) -> list[str]:
        lines = [f"enum {model.name}: String, Codable {{"]
        for identifier, value in model.cases:
            if identifier == value:
                lines.append(f"    case {swift_identifier(identifier)}")
            else:
                lines.append(f"    case {swift_identifier(identifier)} = {swift_string(value)}")
        lines.append("}")
        return lines
