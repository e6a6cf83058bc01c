"""Layered (clean architecture) generators: repositories and use cases.

Only run when the architecture is layered. Each service group gets a
repository wrapping its service contract; each endpoint gets a use case
wrapping the repository contract.
"""

from __future__ import annotations

import logging

from api_scaffold.errors import GenerationFailure

from .artifact import REPOSITORY_DIR, USE_CASE_DIR, ArtifactKind, GeneratedArtifact, swift_artifact
from .service import service_type_name
from .signature import ServiceMethod

logger = logging.getLogger(__name__)


def repository_type_name(service: str) -> str:
    return f"{service}Repository"


def use_case_type_name(method: ServiceMethod) -> str:
    return f"{method.use_case_name}UseCase"


def _render_wrapper(
    type_name: str,
    dependency_name: str,
    dependency_type: str,
    members: list[tuple[str, ServiceMethod]],
) -> list[str]:
    """Protocol + final class forwarding each member to ``dependency_name``.

    ``members`` pairs the wrapper's own method name with the method it calls.
    """
    lines = [
        "import Foundation",
        "",
        f"// MARK: - {type_name}Protocol",
        "",
        f"protocol {type_name}Protocol {{",
    ]
    for own_name, method in members:
        lines.append(f"    {method.declaration(name=own_name)}")
    lines.extend([
        "}",
        "",
        f"// MARK: - {type_name}",
        "",
        f"final class {type_name}: {type_name}Protocol {{",
        f"    private let {dependency_name}: {dependency_type}Protocol",
        "",
        f"    init({dependency_name}: {dependency_type}Protocol = {dependency_type}()) {{",
        f"        self.{dependency_name} = {dependency_name}",
        "    }",
    ])
    for own_name, method in members:
        lines.extend([
            "",
            f"    {method.declaration(name=own_name, with_defaults=True)} {{",
            f"        try await {dependency_name}.{method.name}({method.arguments})",
            "    }",
        ])
    lines.append("}")
    return lines


class RepositoryGenerator:
    """One ``<Group>Repository.swift`` per service group."""

    def generate(self, methods: dict[str, list[ServiceMethod]]) -> list[GeneratedArtifact]:
        artifacts = []
        for service, service_methods in methods.items():
            artifacts.append(swift_artifact(
                REPOSITORY_DIR,
                repository_type_name(service),
                self.render(service, service_methods),
                ArtifactKind.REPOSITORY,
            ))
        logger.info("Generated %d repositories", len(artifacts))
        return artifacts

    def render(self, service: str, methods: list[ServiceMethod]) -> str:
        lines = _render_wrapper(
            repository_type_name(service),
            "service",
            service_type_name(service),
            [(method.name, method) for method in methods],
        )
        return "\n".join(lines) + "\n"


class UseCaseGenerator:
    """One ``<Verb><Resource>UseCase.swift`` per endpoint."""

    def generate(self, methods: dict[str, list[ServiceMethod]]) -> list[GeneratedArtifact]:
        artifacts = []
        owners: dict[str, ServiceMethod] = {}
        for service, service_methods in methods.items():
            for method in service_methods:
                name = use_case_type_name(method)
                if name in owners:
                    raise GenerationFailure(
                        "useCase",
                        f"use case '{name}' is generated for both "
                        f"{owners[name].endpoint.label} and {method.endpoint.label}",
                    )
                owners[name] = method
                artifacts.append(swift_artifact(
                    USE_CASE_DIR,
                    name,
                    self.render(service, method),
                    ArtifactKind.USE_CASE,
                    endpoint_path=method.endpoint.path,
                    http_method=method.endpoint.method.upper(),
                ))
        logger.info("Generated %d use cases", len(artifacts))
        return artifacts

    def render(self, service: str, method: ServiceMethod) -> str:
        lines = _render_wrapper(
            use_case_type_name(method),
            "repository",
            repository_type_name(service),
            [("execute", method)],
        )
        return "\n".join(lines) + "\n"
