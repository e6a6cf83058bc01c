"""Run the full pipeline: fetch, model, map, group and generate.

The orchestrator owns the run state. Each stage hands its result to the
next; anything that escapes a stage ends the run in FAILED and surfaces as a
single GenerationError. Artifacts are only returned once every stage has
completed.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path

import httpx
from pydantic import BaseModel, ConfigDict

from api_scaffold.config import GeneratorConfig
from api_scaffold.errors import GenerationError, GenerationFailure
from api_scaffold.generator.artifact import ArtifactKind, GeneratedArtifact
from api_scaffold.generator.dto import DtoGenerator, build_dto_models
from api_scaffold.generator.layered import RepositoryGenerator, UseCaseGenerator
from api_scaffold.generator.service import ServiceGenerator
from api_scaffold.generator.signature import build_methods
from api_scaffold.generator.types import TypeMapper
from api_scaffold.generator.validator import validate_artifacts
from api_scaffold.grouping import group_endpoints
from api_scaffold.parser.loader import fetch_source, parse_document, read_source
from api_scaffold.parser.models import SpecDocument

logger = logging.getLogger(__name__)


class Stage(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    MODELING = "modeling"
    MAPPING = "mapping"
    GROUPING = "grouping"
    GENERATING_DTO = "generating DTOs"
    GENERATING_SERVICE = "generating services"
    GENERATING_REPOSITORY = "generating repositories"
    GENERATING_USE_CASE = "generating use cases"
    DONE = "done"
    FAILED = "failed"


class GenerationResult(BaseModel):
    """Everything a successful run produced."""

    model_config = ConfigDict(frozen=True)

    title: str
    version: str
    services: tuple[str, ...]
    artifacts: tuple[GeneratedArtifact, ...]

    def of_kind(self, kind: ArtifactKind) -> list[GeneratedArtifact]:
        return [a for a in self.artifacts if a.kind is kind]


class GenerationOrchestrator:
    """Drives one generation run at a time.

    ``state`` is the current stage and ``history`` every stage the last run
    entered, in order. Both are reset at the start of each run.
    """

    def __init__(self, config: GeneratorConfig | None = None, client: httpx.AsyncClient | None = None):
        self.config = config or GeneratorConfig()
        self.client = client
        self.state = Stage.IDLE
        self.history: list[Stage] = []

    async def run(self, source: str | Path | dict | SpecDocument) -> GenerationResult:
        """Generate artifacts from a URL, a local path or an inline document."""
        self._reset()
        if isinstance(source, (dict, SpecDocument)):
            return self._build(source)
        try:
            self._enter(Stage.FETCHING)
            if isinstance(source, Path):
                data = read_source(source)
            else:
                data = await fetch_source(source, client=self.client, timeout=self.config.timeout)
        except Exception as e:
            raise self._fail(e) from e
        return self._build(data)

    def run_document(self, document: dict | SpecDocument) -> GenerationResult:
        """Generate artifacts from an already decoded document, skipping the fetch."""
        self._reset()
        return self._build(document)

    def _reset(self) -> None:
        self.state = Stage.IDLE
        self.history = [Stage.IDLE]

    def _enter(self, stage: Stage) -> None:
        logger.debug("Stage: %s", stage.value)
        self.state = stage
        self.history.append(stage)

    def _fail(self, error: Exception) -> GenerationError:
        stage = self.state
        self._enter(Stage.FAILED)
        if isinstance(error, GenerationError):
            return error
        logger.error("Generation failed while %s: %s", stage.value, error)
        return GenerationError(stage.value, error)

    def _build(self, data: dict | SpecDocument) -> GenerationResult:
        try:
            return self._generate(data)
        except Exception as e:
            raise self._fail(e) from e

    def _generate(self, data: dict | SpecDocument) -> GenerationResult:
        self._enter(Stage.MODELING)
        document = data if isinstance(data, SpecDocument) else parse_document(data)
        logger.info("Generating from %s %s", document.info.title, document.info.version)

        self._enter(Stage.MAPPING)
        mapper = TypeMapper(document.component_schemas, strict=self.config.strict)
        models = build_dto_models(document, mapper)

        self._enter(Stage.GROUPING)
        groups = group_endpoints(document)

        self._enter(Stage.GENERATING_DTO)
        artifacts = DtoGenerator().generate(models, groups)

        self._enter(Stage.GENERATING_SERVICE)
        methods = build_methods(groups, mapper)
        artifacts.extend(ServiceGenerator(self.config, base_url=document.base_url).generate(methods))

        if self.config.architecture.is_layered:
            self._enter(Stage.GENERATING_REPOSITORY)
            artifacts.extend(RepositoryGenerator().generate(methods))
            self._enter(Stage.GENERATING_USE_CASE)
            artifacts.extend(UseCaseGenerator().generate(methods))

        errors = validate_artifacts(artifacts, methods)
        if errors:
            details = "; ".join(f"{subject}: {message}" for subject, message in errors.items())
            raise GenerationFailure(self.state.value, details)

        self._enter(Stage.DONE)
        logger.info("Generated %d artifacts", len(artifacts))
        return GenerationResult(
            title=document.info.title,
            version=document.info.version,
            services=tuple(groups),
            artifacts=tuple(artifacts),
        )
