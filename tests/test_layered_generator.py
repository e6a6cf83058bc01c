from pathlib import Path

import pytest

from api_scaffold.errors import GenerationFailure
from api_scaffold.generator.artifact import ArtifactKind
from api_scaffold.generator.layered import RepositoryGenerator, UseCaseGenerator, use_case_type_name
from api_scaffold.generator.signature import build_methods
from api_scaffold.generator.types import TypeMapper
from api_scaffold.grouping import group_endpoints
from api_scaffold.parser.loader import load_path, parse_document

FIXTURES = Path(__file__).parent / "fixtures"


def _methods(doc):
    return build_methods(group_endpoints(doc), TypeMapper(doc.component_schemas))


class TestRepositoryGenerator:
    def test_one_repository_per_group(self):
        methods = _methods(load_path(FIXTURES / "orders.yaml"))
        [artifact] = RepositoryGenerator().generate(methods)
        assert artifact.relative_path == "Data/Repositories/OrdersRepository.swift"
        assert artifact.kind is ArtifactKind.REPOSITORY

    def test_repository_mirrors_service_contract(self):
        methods = _methods(load_path(FIXTURES / "orders.yaml"))
        content = RepositoryGenerator().render("Orders", methods["Orders"])
        assert "protocol OrdersRepositoryProtocol {" in content
        assert "final class OrdersRepository: OrdersRepositoryProtocol {" in content
        assert "    private let service: OrdersServiceProtocol" in content
        assert "    init(service: OrdersServiceProtocol = OrdersService()) {" in content
        assert "    func getOrders(pageSize: Int?, status: OrderStatus?) async throws -> Data\n" in content
        assert (
            "    func getOrders(pageSize: Int? = nil, status: OrderStatus? = nil) async throws -> Data {\n"
            "        try await service.getOrders(pageSize: pageSize, status: status)\n"
            "    }\n"
        ) in content
        assert "        try await service.createOrders(body: body)\n" in content


class TestUseCaseGenerator:
    def test_one_use_case_per_endpoint(self):
        methods = _methods(load_path(FIXTURES / "orders.yaml"))
        artifacts = UseCaseGenerator().generate(methods)
        assert [a.file_name for a in artifacts] == [
            "GetOrdersUseCase.swift",
            "CreateOrdersUseCase.swift",
            "DeleteOrdersUseCase.swift",
        ]
        assert all(a.relative_path.startswith("Domain/UseCases/") for a in artifacts)
        assert [(a.http_method, a.endpoint_path) for a in artifacts] == [
            ("GET", "/orders"),
            ("POST", "/orders"),
            ("DELETE", "/orders/{order_id}"),
        ]

    def test_use_case_wraps_repository(self):
        methods = _methods(load_path(FIXTURES / "orders.yaml"))
        delete = methods["Orders"][2]
        assert use_case_type_name(delete) == "DeleteOrdersUseCase"
        content = UseCaseGenerator().render("Orders", delete)
        assert content == (
            "import Foundation\n"
            "\n"
            "// MARK: - DeleteOrdersUseCaseProtocol\n"
            "\n"
            "protocol DeleteOrdersUseCaseProtocol {\n"
            "    func execute(orderId: String) async throws -> Data\n"
            "}\n"
            "\n"
            "// MARK: - DeleteOrdersUseCase\n"
            "\n"
            "final class DeleteOrdersUseCase: DeleteOrdersUseCaseProtocol {\n"
            "    private let repository: OrdersRepositoryProtocol\n"
            "\n"
            "    init(repository: OrdersRepositoryProtocol = OrdersRepository()) {\n"
            "        self.repository = repository\n"
            "    }\n"
            "\n"
            "    func execute(orderId: String) async throws -> Data {\n"
            "        try await repository.deleteOrders(orderId: orderId)\n"
            "    }\n"
            "}\n"
        )

    def test_use_case_name_collision_across_services_fails(self):
        doc = parse_document({
            "openapi": "3.0.0",
            "info": {"title": "T", "version": "1"},
            "paths": {
                "/v1/users": {"get": {"tags": ["legacy"], "responses": {}}},
                "/v2/users": {"get": {"tags": ["current"], "responses": {}}},
            },
        })
        with pytest.raises(GenerationFailure, match="GetUsersUseCase"):
            UseCaseGenerator().generate(_methods(doc))
