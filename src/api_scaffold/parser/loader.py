"""Load an OpenAPI document from a URL, a local file, or an inline mapping.

Parses OpenAPI 3.x documents (JSON or YAML) into a SpecDocument.
"""

import logging
from pathlib import Path
from urllib.parse import urlparse
from urllib.request import url2pathname

import httpx
from pydantic import BaseModel, ValidationError

from api_scaffold.errors import InvalidInput, TransportFailure, UnsupportedVersion

from .detect import OPENAPI3, SWAGGER2, decode_text, detect_version
from .models import Reference, Schema, SpecDocument

logger = logging.getLogger(__name__)

REQUIRED_KEYS = ("openapi", "info", "paths")
KNOWN_VERSIONS = ("3.0", "3.1")
SCHEMA_REF_PREFIX = "#/components/schemas/"

# "#/components/<section>/<name>" -> Components attribute
_COMPONENT_SECTIONS = {
    "schemas": "schemas",
    "responses": "responses",
    "parameters": "parameters",
    "examples": "examples",
    "requestBodies": "request_bodies",
    "headers": "headers",
    "securitySchemes": "security_schemes",
    "links": "links",
    "callbacks": "callbacks",
}


async def load(
    url: str,
    *,
    client: httpx.AsyncClient | None = None,
    timeout: float = 30.0,
) -> SpecDocument:
    """Fetch and parse the document at ``url``.

    http(s) URLs are fetched with httpx; ``file://`` URLs and bare paths are
    read from disk. Pass ``client`` to reuse a configured AsyncClient.
    """
    return parse_document(await fetch_source(url, client=client, timeout=timeout))


async def fetch_source(
    url: str,
    *,
    client: httpx.AsyncClient | None = None,
    timeout: float = 30.0,
) -> object:
    """Fetch the document at ``url`` and decode it without validating it."""
    if not url or not url.strip():
        raise InvalidInput("No OpenAPI URL given")

    url = url.strip()
    parsed = urlparse(url)
    if parsed.scheme in ("http", "https"):
        if not parsed.netloc:
            raise InvalidInput(f"Invalid OpenAPI URL: {url}")
        text = await _fetch(url, client, timeout)
        return decode_text(text, source=url)
    if parsed.scheme == "file":
        return read_source(Path(url2pathname(parsed.path)))
    if len(parsed.scheme) <= 1:
        # no scheme, or a Windows drive letter
        return read_source(Path(url))
    raise InvalidInput(f"Unsupported URL scheme '{parsed.scheme}' in {url}")


async def _fetch(url: str, client: httpx.AsyncClient | None, timeout: float) -> str:
    logger.info("Fetching %s", url)
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as owned:
                response = await owned.get(url)
        else:
            response = await client.get(url)
        response.raise_for_status()
    except httpx.InvalidURL as e:
        raise InvalidInput(f"Invalid OpenAPI URL: {url}") from e
    except httpx.HTTPStatusError as e:
        raise TransportFailure(f"{url} returned HTTP {e.response.status_code}") from e
    except httpx.HTTPError as e:
        raise TransportFailure(f"Could not fetch {url}: {e}") from e
    return response.text


def read_source(file_path: Path) -> object:
    """Read and decode a JSON or YAML document from disk."""
    if not file_path.is_file():
        raise InvalidInput(f"No such file: {file_path}")
    text = file_path.read_text(encoding="utf-8")
    return decode_text(text, source=str(file_path))


def load_path(file_path: Path) -> SpecDocument:
    """Parse a JSON or YAML document from disk."""
    return parse_document(read_source(file_path))


def parse_document(data: object) -> SpecDocument:
    """Validate a decoded document into a SpecDocument."""
    if not isinstance(data, dict):
        raise TransportFailure("OpenAPI document root must be an object")

    kind = detect_version(data)
    if kind == SWAGGER2:
        raise UnsupportedVersion("Swagger 2.0 documents are not supported; convert to OpenAPI 3 first")

    missing = [key for key in REQUIRED_KEYS if key not in data]
    if missing:
        raise TransportFailure(f"OpenAPI document is missing required keys: {', '.join(missing)}")

    if kind != OPENAPI3:
        raise UnsupportedVersion(f"Unsupported OpenAPI version: {data['openapi']!r}")

    version = str(data["openapi"])
    if not version.startswith(KNOWN_VERSIONS):
        logger.warning("OpenAPI version %s is newer than this generator knows; continuing", version)

    try:
        return SpecDocument.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise TransportFailure(
            f"Invalid OpenAPI document ({e.error_count()} errors), first at {location}: {first['msg']}"
        ) from e


def ref_name(ref: str) -> str:
    """Return the component name a local reference points at."""
    return ref.rsplit("/", 1)[-1].replace("~1", "/").replace("~0", "~")


def resolve_ref(document: SpecDocument, ref: str) -> BaseModel | dict | None:
    """Resolve a local ``#/components/...`` reference, or None if it dangles."""
    parts = ref.split("/")
    if len(parts) != 4 or parts[:2] != ["#", "components"] or document.components is None:
        return None
    section = _COMPONENT_SECTIONS.get(parts[2])
    if section is None:
        return None
    target = getattr(document.components, section).get(ref_name(ref))
    if target is not None and parts[2] == "schemas":
        return target.value
    return target


def resolve_schema(document: SpecDocument, schema: Schema | None) -> Schema | None:
    """Follow ``$ref`` chains to the concrete schema, stopping on cycles."""
    seen: set[str] = set()
    while schema is not None and schema.ref:
        if schema.ref in seen:
            return None
        seen.add(schema.ref)
        target = resolve_ref(document, schema.ref)
        schema = target if isinstance(target, Schema) else None
    return schema


def dereference(document: SpecDocument, value):
    """Return the component a Reference points at; other values pass through."""
    if isinstance(value, Reference):
        return resolve_ref(document, value.ref)
    return value
