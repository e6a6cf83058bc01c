"""Auto-detect the document encoding and OpenAPI generation."""

import json

import yaml

from api_scaffold.errors import TransportFailure

OPENAPI3 = "openapi3"
SWAGGER2 = "swagger2"
UNKNOWN = "unknown"

TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


class DocumentLoader(yaml.SafeLoader):
    """SafeLoader that reads unquoted dates and timestamps as plain strings.

    ``example: 2024-01-01`` must stay a JSON value, not a ``datetime.date``.
    """


DocumentLoader.yaml_implicit_resolvers = {
    first: [(tag, pattern) for tag, pattern in resolvers if tag != TIMESTAMP_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def decode_text(text: str, source: str = "<document>") -> object:
    """Decode a JSON or YAML document body."""
    try:
        return json.loads(text)
    except (json.JSONDecodeError, ValueError):
        pass

    # YAML is tried second so JSON keeps its exact number semantics
    try:
        return yaml.load(text, Loader=DocumentLoader)
    except yaml.YAMLError as e:
        raise TransportFailure(f"{source} is neither JSON nor YAML: {e}") from e


def detect_version(data: object) -> str:
    """Classify a decoded document.

    Returns: 'openapi3', 'swagger2', or 'unknown'.
    """
    if not isinstance(data, dict):
        return UNKNOWN
    if "swagger" in data:
        return SWAGGER2
    if str(data.get("openapi", "")).startswith("3."):
        return OPENAPI3
    return UNKNOWN
