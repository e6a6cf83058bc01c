"""Service generator: a protocol plus implementation per service group.

Each method builds its request from the typed path/query/body parameters and
returns the raw response body as ``Data``; response decoding is left to the
caller.
"""

from __future__ import annotations

import logging
import re

from api_scaffold.config import GeneratorConfig, NetworkingFramework

from .artifact import SERVICE_DIR, ArtifactKind, GeneratedArtifact, swift_artifact
from .dto import doc_comment, swift_string
from .signature import PATH_PLACEHOLDER, ParamRole, ServiceMethod

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.example.com"


def service_type_name(service: str) -> str:
    return f"{service}Service"


class ServiceGenerator:
    """Renders one ``<Group>Service.swift`` per service group."""

    def __init__(self, config: GeneratorConfig | None = None, base_url: str | None = None):
        self.config = config or GeneratorConfig()
        self.base_url = self.config.base_url or base_url or DEFAULT_BASE_URL

    def generate(self, methods: dict[str, list[ServiceMethod]]) -> list[GeneratedArtifact]:
        artifacts = []
        for service, service_methods in methods.items():
            name = service_type_name(service)
            artifacts.append(swift_artifact(
                SERVICE_DIR, name, self.render(service, service_methods), ArtifactKind.SERVICE
            ))
        logger.info("Generated %d services (%s)", len(artifacts), self.config.framework.value)
        return artifacts

    @property
    def uses_alamofire(self) -> bool:
        return self.config.framework is NetworkingFramework.ALAMOFIRE

    def render(self, service: str, methods: list[ServiceMethod]) -> str:
        name = service_type_name(service)
        lines = ["import Foundation"]
        if self.uses_alamofire:
            lines.append("import Alamofire")
        lines.extend(["", f"// MARK: - {name}Protocol", "", f"protocol {name}Protocol {{"])
        for method in methods:
            lines.append(f"    {method.declaration()}")
        lines.extend(["}", "", f"// MARK: - {name}", "", f"final class {name}: {name}Protocol {{"])
        lines.extend(self._render_init())
        for method in methods:
            lines.append("")
            lines.extend(self._render_method(method))
        lines.append("}")
        return "\n".join(lines) + "\n"

    def _render_init(self) -> list[str]:
        session_type, session_default = ("Session", ".default") if self.uses_alamofire else ("URLSession", ".shared")
        return [
            "    private let baseURL: URL",
            f"    private let session: {session_type}",
            "",
            "    init(",
            f"        baseURL: URL = URL(string: {swift_string(self.base_url)})!,",
            f"        session: {session_type} = {session_default}",
            "    ) {",
            "        self.baseURL = baseURL",
            "        self.session = session",
            "    }",
        ]

    def _render_method(self, method: ServiceMethod) -> list[str]:
        endpoint = method.endpoint
        lines = doc_comment(endpoint.operation.summary, indent="    ")
        lines.append(f"    /// {endpoint.label}")
        if endpoint.operation.deprecated:
            lines.append("    @available(*, deprecated)")
        lines.append(f"    {method.declaration(with_defaults=True)} {{")

        path_literal = self._interpolate_path(method)
        query = method.params_with(ParamRole.QUERY)
        if query:
            lines.append(
                "        var components = URLComponents("
                f"url: baseURL.appendingPathComponent({path_literal}), resolvingAgainstBaseURL: false)!"
            )
            lines.append("        components.queryItems = [")
            for param in query:
                if param.type.optional:
                    value = f'{param.name}.map {{ "\\($0)" }}'
                else:
                    value = f'"\\({param.name})"'
                lines.append(f"            URLQueryItem(name: {swift_string(param.wire_name)}, value: {value}),")
            lines.append("        ].filter { $0.value != nil }")
            lines.append("        var request = URLRequest(url: components.url!)")
        else:
            lines.append(f"        var request = URLRequest(url: baseURL.appendingPathComponent({path_literal}))")
        lines.append(f"        request.httpMethod = {swift_string(endpoint.method.upper())}")

        if method.body is not None:
            lines.extend(self._render_body(method))

        if self.uses_alamofire:
            lines.append("        return try await session.request(request).serializingData().value")
        else:
            lines.append("        let (data, _) = try await session.data(for: request)")
            lines.append("        return data")
        lines.append("    }")
        return lines

    def _render_body(self, method: ServiceMethod) -> list[str]:
        body = method.body
        if body.type.is_opaque:
            encode = f"try JSONSerialization.data(withJSONObject: {body.name})"
        else:
            encode = f"try JSONEncoder().encode({body.name})"
        statements = [
            'request.setValue("application/json", forHTTPHeaderField: "Content-Type")',
            f"request.httpBody = {encode}",
        ]
        if not body.type.optional:
            return [f"        {s}" for s in statements]
        return [
            f"        if let {body.name} {{",
            *[f"            {s}" for s in statements],
            "        }",
        ]

    def _interpolate_path(self, method: ServiceMethod) -> str:
        identifiers = {p.wire_name: p.name for p in method.params_with(ParamRole.PATH)}

        def replace(match: re.Match) -> str:
            wire = match.group(1)
            return "\\(" + identifiers[wire] + ")"

        path = method.endpoint.path.lstrip("/").replace("\\", "\\\\").replace('"', '\\"')
        return '"' + PATH_PLACEHOLDER.sub(replace, path) + '"'
