"""Cluster operations into named service groups.

Groups are keyed by service name (first tag, else first meaningful path
segment) and built from paths in sorted order, so two runs over the same
document always produce the same groups in the same order.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict

from api_scaffold.naming import (
    escape_identifier,
    is_path_parameter,
    method_name,
    path_segments,
    title_case,
    use_case_name,
)
from api_scaffold.parser.loader import dereference
from api_scaffold.parser.models import (
    Operation,
    Parameter,
    ParameterLocation,
    RequestBody,
    Response,
    SpecDocument,
)

logger = logging.getLogger(__name__)

# head/options/trace are parsed into PathItem but never grouped
GROUPED_METHODS = ("get", "post", "put", "delete", "patch")

FALLBACK_SERVICE = "API"


class Endpoint(BaseModel):
    """One (path, method) operation with its references resolved."""

    model_config = ConfigDict(frozen=True)

    path: str
    method: str
    operation: Operation
    parameters: list[Parameter]
    request_body: RequestBody | None = None
    responses: dict[str, Response] = {}
    service: str

    @property
    def method_name(self) -> str:
        return method_name(self.path, self.method, self.operation)

    @property
    def use_case_name(self) -> str:
        return use_case_name(self.path, self.method, self.operation)

    @property
    def label(self) -> str:
        return f"{self.method.upper()} {self.path}"

    def parameters_in(self, location: ParameterLocation) -> list[Parameter]:
        return [p for p in self.parameters if p.location is location]


ServiceGroups = dict[str, list[Endpoint]]


def service_name(path: str, operation: Operation) -> str:
    """Group key: first tag, else first path segment other than "api"."""
    if operation.tags:
        name = title_case(operation.tags[0])
        if name:
            return escape_identifier(name)
    for segment in path_segments(path):
        if is_path_parameter(segment) or segment.lower() == "api":
            continue
        name = title_case(segment)
        if name:
            return escape_identifier(name)
    return FALLBACK_SERVICE


def merge_parameters(document: SpecDocument, shared: list, own: list) -> list[Parameter]:
    """Path-level parameters overlaid by the operation's own.

    The operation wins when both declare the same (name, location).
    """
    merged: dict[tuple[str, ParameterLocation], Parameter] = {}
    for raw in [*shared, *own]:
        parameter = dereference(document, raw)
        if not isinstance(parameter, Parameter):
            logger.debug("Skipping unresolved parameter reference %s", raw)
            continue
        merged[(parameter.name, parameter.location)] = parameter
    return list(merged.values())


def resolve_responses(document: SpecDocument, operation: Operation) -> dict[str, Response]:
    resolved = {}
    for status, raw in operation.responses.items():
        response = dereference(document, raw)
        if isinstance(response, Response):
            resolved[status] = response
    return resolved


def group_endpoints(document: SpecDocument) -> ServiceGroups:
    """Group every get/post/put/delete/patch operation by service name."""
    groups: ServiceGroups = {}
    for path in sorted(document.paths):
        path_item = document.paths[path]
        for method, operation in path_item.operations(GROUPED_METHODS):
            body = dereference(document, operation.request_body)
            endpoint = Endpoint(
                path=path,
                method=method,
                operation=operation,
                parameters=merge_parameters(document, path_item.parameters, operation.parameters),
                request_body=body if isinstance(body, RequestBody) else None,
                responses=resolve_responses(document, operation),
                service=service_name(path, operation),
            )
            groups.setdefault(endpoint.service, []).append(endpoint)

    ordered = dict(sorted(groups.items()))
    logger.debug("Grouped %d endpoints into %d services", sum(map(len, ordered.values())), len(ordered))
    return ordered
