from pathlib import Path

from api_scaffold.generator.artifact import ArtifactKind, swift_artifact
from api_scaffold.generator.dto import DtoGenerator, build_dto_models
from api_scaffold.generator.service import ServiceGenerator
from api_scaffold.generator.signature import build_methods
from api_scaffold.generator.types import TypeMapper
from api_scaffold.generator.validator import validate_artifacts, validate_paths, validate_references
from api_scaffold.grouping import group_endpoints
from api_scaffold.parser.loader import load_path

FIXTURES = Path(__file__).parent / "fixtures"


def _generate(name: str):
    doc = load_path(FIXTURES / name)
    mapper = TypeMapper(doc.component_schemas)
    groups = group_endpoints(doc)
    methods = build_methods(groups, mapper)
    artifacts = DtoGenerator().generate(build_dto_models(doc, mapper), groups)
    artifacts.extend(ServiceGenerator().generate(methods))
    return artifacts, methods


class TestValidatePaths:
    def test_unique_paths_pass(self):
        artifacts, _ = _generate("orders.yaml")
        assert validate_paths(artifacts) == {}

    def test_duplicate_path_reported(self):
        a = swift_artifact("Network/DTOs", "User", "", ArtifactKind.DTO)
        b = swift_artifact("Network/DTOs", "User", "", ArtifactKind.DTO)
        errors = validate_paths([a, b])
        assert list(errors) == ["Network/DTOs/User.swift"]


class TestValidateReferences:
    def test_all_referenced_dtos_emitted(self):
        artifacts, methods = _generate("orders.yaml")
        assert validate_references(artifacts, methods) == {}

    def test_missing_dto_reported(self):
        artifacts, methods = _generate("orders.yaml")
        without_status = [a for a in artifacts if a.file_name != "OrderStatus.swift"]
        errors = validate_references(without_status, methods)
        assert list(errors) == ["OrderStatus"]
        assert "GET /orders" in errors["OrderStatus"]

    def test_validate_artifacts_combines_checks(self):
        artifacts, methods = _generate("tree.json")
        assert validate_artifacts(artifacts, methods) == {}
        errors = validate_artifacts(artifacts + artifacts[:1], methods)
        assert "Network/DTOs/Node.swift" in errors
