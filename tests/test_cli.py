from pathlib import Path
from unittest.mock import AsyncMock, patch

from click.testing import CliRunner

from api_scaffold.cli import main
from api_scaffold.config import Architecture, GeneratorConfig
from api_scaffold.errors import GenerationError, TransportFailure

FIXTURES = Path(__file__).parent / "fixtures"


class TestCliGenerate:
    def test_generate_writes_files(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, [
            "generate", str(FIXTURES / "users.json"),
            "-o", str(tmp_path),
        ])

        assert result.exit_code == 0, result.output
        assert (tmp_path / "Network" / "DTOs" / "User.swift").exists()
        service = tmp_path / "Network" / "Services" / "UsersService.swift"
        assert "final class UsersService" in service.read_text(encoding="utf-8")
        assert "Generated 2 files" in result.output

    def test_generate_clean_architecture(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, [
            "generate", str(FIXTURES / "orders.yaml"),
            "-o", str(tmp_path),
            "--architecture", "clean",
            "--framework", "alamofire",
        ])

        assert result.exit_code == 0, result.output
        assert (tmp_path / "Data" / "Repositories" / "OrdersRepository.swift").exists()
        assert len(list((tmp_path / "Domain" / "UseCases").iterdir())) == 3
        service = (tmp_path / "Network" / "Services" / "OrdersService.swift").read_text(encoding="utf-8")
        assert "import Alamofire" in service

    def test_dry_run_lists_files(self):
        runner = CliRunner()
        result = runner.invoke(main, ["generate", str(FIXTURES / "users.json"), "--dry-run"])

        assert result.exit_code == 0, result.output
        assert "Network/DTOs/User.swift" in result.output
        assert "Network/Services/UsersService.swift" in result.output
        assert "Network Service" in result.output

    def test_output_required_without_dry_run(self):
        runner = CliRunner()
        result = runner.invoke(main, ["generate", str(FIXTURES / "users.json")])
        assert result.exit_code == 2
        assert "--output" in result.output

    def test_generation_error_is_reported(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, [
            "generate", str(FIXTURES / "swagger2.json"),
            "-o", str(tmp_path),
        ])

        assert result.exit_code == 1
        assert "Generation failed while modeling" in result.output
        assert list(tmp_path.iterdir()) == []

    def test_base_url_option(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, [
            "generate", str(FIXTURES / "users.json"),
            "-o", str(tmp_path),
            "--base-url", "https://staging.example.com",
        ])

        assert result.exit_code == 0, result.output
        service = (tmp_path / "Network" / "Services" / "UsersService.swift").read_text(encoding="utf-8")
        assert 'URL(string: "https://staging.example.com")!' in service

    def test_strict_flag(self, tmp_path):
        document = tmp_path / "pets.json"
        document.write_text(
            '{"openapi": "3.0.0", "info": {"title": "Pets", "version": "1"}, "paths": {},'
            ' "components": {"schemas": {"Pet": {"type": "object",'
            ' "properties": {"owner": {"$ref": "#/components/schemas/Person"}}}}}}',
            encoding="utf-8",
        )
        runner = CliRunner()
        assert runner.invoke(main, ["generate", str(document), "--dry-run"]).exit_code == 0

        result = runner.invoke(main, ["generate", str(document), "--dry-run", "--strict"])
        assert result.exit_code == 1
        assert "while mapping" in result.output
        assert "Person" in result.output

    def test_invalid_environment_config(self, monkeypatch):
        monkeypatch.setenv("API_SCAFFOLD_ARCHITECTURE", "layered")
        runner = CliRunner()
        result = runner.invoke(main, ["generate", str(FIXTURES / "users.json"), "--dry-run"])

        assert result.exit_code == 1
        assert "Invalid configuration: architecture:" in result.output
        assert "Traceback" not in result.output

    @patch("api_scaffold.cli.GenerationOrchestrator")
    def test_environment_config(self, MockOrchestrator, monkeypatch):
        monkeypatch.setenv("API_SCAFFOLD_ARCHITECTURE", "clean")
        MockOrchestrator.return_value.run = AsyncMock(
            side_effect=GenerationError("fetching", TransportFailure("boom"))
        )
        runner = CliRunner()
        result = runner.invoke(main, ["generate", str(FIXTURES / "users.json"), "--dry-run"])

        assert result.exit_code == 1
        assert "boom" in result.output
        config = MockOrchestrator.call_args.args[0]
        assert isinstance(config, GeneratorConfig)
        assert config.architecture is Architecture.CLEAN


class TestCliEndpoints:
    def test_lists_groups(self):
        runner = CliRunner()
        result = runner.invoke(main, ["endpoints", str(FIXTURES / "orders.yaml")])

        assert result.exit_code == 0, result.output
        assert "Orders API 2.1" in result.output
        assert "OrdersService (3)" in result.output
        assert "func deleteOrders(orderId: String) async throws -> Data" in result.output

    def test_missing_file(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, ["endpoints", str(tmp_path / "nope.json")])
        assert result.exit_code == 1
        assert "No such file" in result.output
