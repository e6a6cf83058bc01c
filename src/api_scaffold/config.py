"""Generator configuration.

Supplied by the caller (CLI options, environment, or an embedding UI). Only
the architecture and networking framework change what gets generated.
"""

from __future__ import annotations

import os
from enum import Enum

from pydantic import BaseModel, Field

ENV_PREFIX = "API_SCAFFOLD_"


class NetworkingFramework(str, Enum):
    """HTTP client the generated services are written against."""

    URLSESSION = "urlsession"  # default client
    ALAMOFIRE = "alamofire"  # third-party client


class Architecture(str, Enum):
    """Layering style of the target project."""

    SIMPLE = "simple"
    CLEAN = "clean"
    MVVM = "mvvm"
    VIPER = "viper"

    @property
    def is_layered(self) -> bool:
        # mvvm and viper fall back to the flat generator set
        return self is Architecture.CLEAN


class GeneratorConfig(BaseModel):
    """Options for a single generation run."""

    framework: NetworkingFramework = NetworkingFramework.URLSESSION
    architecture: Architecture = Architecture.SIMPLE
    base_url: str | None = Field(
        default=None,
        description="Overrides the first server URL declared by the document",
    )
    timeout: float = Field(default=30.0, gt=0, description="Fetch timeout in seconds")
    strict: bool = Field(default=False, description="Fail on schemas that would otherwise map to Any")

    @classmethod
    def from_env(cls, **overrides) -> GeneratorConfig:
        """Build a config from API_SCAFFOLD_* variables; explicit overrides win."""
        values: dict = {}
        for name in cls.model_fields:
            raw = os.getenv(f"{ENV_PREFIX}{name.upper()}")
            if raw:
                values[name] = raw
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
