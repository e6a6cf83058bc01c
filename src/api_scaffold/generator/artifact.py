"""Generated artifact model and persistence."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict

DTO_DIR = "Network/DTOs"
SERVICE_DIR = "Network/Services"
REPOSITORY_DIR = "Data/Repositories"
USE_CASE_DIR = "Domain/UseCases"

SWIFT_EXTENSION = ".swift"


class ArtifactKind(str, Enum):
    DTO = "dto"
    SERVICE = "service"
    REPOSITORY = "repository"
    USE_CASE = "useCase"

    @property
    def description(self) -> str:
        return {
            ArtifactKind.DTO: "Data Transfer Object",
            ArtifactKind.SERVICE: "Network Service",
            ArtifactKind.REPOSITORY: "Repository",
            ArtifactKind.USE_CASE: "Use Case",
        }[self]


class GeneratedArtifact(BaseModel):
    """One generated file. Never mutated after a run completes."""

    model_config = ConfigDict(frozen=True)

    file_name: str
    relative_path: str
    content: str
    kind: ArtifactKind
    endpoint_path: str | None = None
    http_method: str | None = None


def swift_artifact(
    directory: str,
    stem: str,
    content: str,
    kind: ArtifactKind,
    endpoint_path: str | None = None,
    http_method: str | None = None,
) -> GeneratedArtifact:
    file_name = f"{stem}{SWIFT_EXTENSION}"
    return GeneratedArtifact(
        file_name=file_name,
        relative_path=f"{directory}/{file_name}",
        content=content,
        kind=kind,
        endpoint_path=endpoint_path,
        http_method=http_method,
    )


def write_artifacts(artifacts: list[GeneratedArtifact], root: Path) -> list[Path]:
    """Write artifacts below ``root``, creating directories as needed."""
    written = []
    for artifact in artifacts:
        file_path = root / artifact.relative_path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(artifact.content, encoding="utf-8")
        written.append(file_path)
    return written
