"""Method signatures shared by services, repositories and use cases.

A signature is computed once per endpoint; every layer renders it, so the
repository and use-case wrappers can never drift from the service contract.
"""

from __future__ import annotations

import logging
import re
from enum import Enum

from pydantic import BaseModel, ConfigDict

from api_scaffold.errors import GenerationFailure
from api_scaffold.grouping import Endpoint, ServiceGroups
from api_scaffold.naming import lower_camel, path_parameter_suffix, swift_identifier
from api_scaffold.parser.models import MediaType, ParameterLocation

from .types import TypeDescriptor, TypeKind, TypeMapper, required_for

logger = logging.getLogger(__name__)

# Responses are not decoded yet; every method hands back the raw body.
RETURN_TYPE = "Data"

BODY_PARAMETER = "body"

PATH_PLACEHOLDER = re.compile(r"\{([^}]+)\}")


class ParamRole(str, Enum):
    PATH = "path"
    QUERY = "query"
    BODY = "body"


class SignatureParam(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str  # Swift identifier, escaped if needed
    wire_name: str
    role: ParamRole
    type: TypeDescriptor

    def declaration(self, with_default: bool = False) -> str:
        text = f"{self.name}: {self.type.render()}"
        if with_default and self.type.optional:
            text += " = nil"
        return text

    @property
    def argument(self) -> str:
        return f"{self.name}: {self.name}"


class ServiceMethod(BaseModel):
    """An endpoint paired with its rendered-ready signature.

    ``suffix`` is only set when the plain name is already taken in the
    service; it is appended to both the method and the use-case name.
    """

    model_config = ConfigDict(frozen=True)

    endpoint: Endpoint
    params: list[SignatureParam]
    suffix: str = ""

    @property
    def name(self) -> str:
        return swift_identifier(self.endpoint.method_name + self.suffix)

    @property
    def use_case_name(self) -> str:
        return self.endpoint.use_case_name + self.suffix

    def declaration(self, name: str | None = None, with_defaults: bool = False) -> str:
        """``func name(a: A, b: B?) async throws -> Data``.

        Protocol requirements cannot carry default values, so defaults are
        only rendered for implementations.
        """
        params = ", ".join(p.declaration(with_defaults) for p in self.params)
        return f"func {name or self.name}({params}) async throws -> {RETURN_TYPE}"

    @property
    def arguments(self) -> str:
        return ", ".join(p.argument for p in self.params)

    def params_with(self, role: ParamRole) -> list[SignatureParam]:
        return [p for p in self.params if p.role is role]

    @property
    def body(self) -> SignatureParam | None:
        bodies = self.params_with(ParamRole.BODY)
        return bodies[0] if bodies else None

    def referenced_types(self) -> set[str]:
        names: set[str] = set()
        for param in self.params:
            names |= param.type.referenced_names()
        return names


def json_media_type(content: dict[str, MediaType]) -> MediaType | None:
    """Prefer application/json, then any +json type, then whatever is first."""
    if "application/json" in content:
        return content["application/json"]
    for content_type, media in content.items():
        if content_type.endswith("json"):
            return media
    return next(iter(content.values()), None)


def path_placeholders(path: str) -> list[str]:
    """``/users/{id}/posts/{post_id}`` -> ``["id", "post_id"]``."""
    return PATH_PLACEHOLDER.findall(path)


def build_method(endpoint: Endpoint, mapper: TypeMapper) -> ServiceMethod:
    """Path parameters (declared, then undeclared placeholders as String), query, body."""
    params: list[SignatureParam] = []
    for location, role in ((ParameterLocation.PATH, ParamRole.PATH), (ParameterLocation.QUERY, ParamRole.QUERY)):
        for parameter in endpoint.parameters_in(location):
            schema = parameter.schema_.value if parameter.schema_ else None
            params.append(SignatureParam(
                name=swift_identifier(lower_camel(parameter.name)),
                wire_name=parameter.name,
                role=role,
                type=mapper.map_type(schema, required=required_for(parameter)),
            ))

    declared = {p.wire_name for p in params if p.role is ParamRole.PATH}
    position = len(declared)
    for wire_name in path_placeholders(endpoint.path):
        if wire_name in declared:
            continue
        logger.warning("%s: path parameter '%s' is not declared; using String", endpoint.label, wire_name)
        declared.add(wire_name)
        params.insert(position, SignatureParam(
            name=swift_identifier(lower_camel(wire_name)),
            wire_name=wire_name,
            role=ParamRole.PATH,
            type=TypeDescriptor(kind=TypeKind.STRING),
        ))
        position += 1

    body = endpoint.request_body
    if body is not None:
        media = json_media_type(body.content)
        schema = media.schema_.value if media and media.schema_ else None
        params.append(SignatureParam(
            name=BODY_PARAMETER,
            wire_name=BODY_PARAMETER,
            role=ParamRole.BODY,
            type=mapper.map_type(schema, required=required_for(body)),
        ))

    seen: set[str] = set()
    for param in params:
        if param.name in seen:
            raise GenerationFailure(
                "service", f"{endpoint.label}: two parameters generate the identifier '{param.name}'"
            )
        seen.add(param.name)

    return ServiceMethod(endpoint=endpoint, params=params)


def build_methods(groups: ServiceGroups, mapper: TypeMapper) -> dict[str, list[ServiceMethod]]:
    """Signatures for every grouped endpoint, keyed like ``groups``.

    When two endpoints of one service resolve to the same method name the
    later one (in path order) is suffixed with its path parameters, so
    ``GET /users`` and ``GET /users/{id}`` become ``getUsers`` and
    ``getUsersById``. Fails on a reused operationId or when the names still
    collide.
    """
    operation_ids: dict[str, Endpoint] = {}
    methods: dict[str, list[ServiceMethod]] = {}
    for service, endpoints in groups.items():
        names: dict[str, Endpoint] = {}
        for endpoint in endpoints:
            operation_id = endpoint.operation.operation_id
            if operation_id:
                if operation_id in operation_ids:
                    raise GenerationFailure(
                        "service",
                        f"operationId '{operation_id}' is used by both "
                        f"{operation_ids[operation_id].label} and {endpoint.label}",
                    )
                operation_ids[operation_id] = endpoint

            method = build_method(endpoint, mapper)
            if method.name in names:
                method = method.model_copy(update={"suffix": path_parameter_suffix(endpoint.path)})
            if method.name in names:
                raise GenerationFailure(
                    "service",
                    f"{service}Service: method '{method.name}' is generated for both "
                    f"{names[method.name].label} and {endpoint.label}",
                )
            names[method.name] = endpoint
            methods.setdefault(service, []).append(method)
    return methods
