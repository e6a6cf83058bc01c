"""Error taxonomy for the generation pipeline.

Stages raise the specific errors below; the orchestrator wraps whatever
escapes a stage into a single GenerationError for the caller.
"""


class ScaffoldError(Exception):
    """Base class for all api-scaffold errors."""


class InvalidInput(ScaffoldError):
    """The document location is malformed or cannot be opened."""


class TransportFailure(ScaffoldError):
    """The document could not be fetched or decoded."""


class UnsupportedVersion(ScaffoldError):
    """The document is not an OpenAPI 3.x description."""


class UnsupportedSchema(ScaffoldError):
    """A schema shape the type mapper cannot resolve."""


class GenerationFailure(ScaffoldError):
    """A generator stage could not produce a consistent artifact set."""

    def __init__(self, stage: str, message: str):
        self.stage = stage
        self.message = message
        super().__init__(f"[{stage}] {message}")


class GenerationError(ScaffoldError):
    """The single error surfaced for a failed run."""

    def __init__(self, stage: str, cause: Exception):
        self.stage = stage
        self.cause = cause
        super().__init__(f"Generation failed while {stage}: {cause}")
