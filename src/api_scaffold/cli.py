"""CLI entry point for api-scaffold."""

import asyncio
import logging
from pathlib import Path

import click
from pydantic import ValidationError

from api_scaffold.config import Architecture, GeneratorConfig, NetworkingFramework
from api_scaffold.errors import GenerationError, ScaffoldError
from api_scaffold.generator.artifact import write_artifacts
from api_scaffold.generator.signature import build_methods
from api_scaffold.generator.types import TypeMapper
from api_scaffold.grouping import group_endpoints
from api_scaffold.orchestrator import GenerationOrchestrator
from api_scaffold.parser.loader import load

FRAMEWORKS = [f.value for f in NetworkingFramework]
ARCHITECTURES = [a.value for a in Architecture]


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@click.group()
def main():
    """API Scaffold: generate Swift networking code from OpenAPI 3 documents."""
    pass


@main.command()
@click.argument("source")
@click.option("-o", "--output", type=click.Path(file_okay=False, path_type=Path), default=None, help="Output directory for generated Swift files.")
@click.option("--framework", default=None, type=click.Choice(FRAMEWORKS), help="Networking framework of the generated services.")
@click.option("--architecture", default=None, type=click.Choice(ARCHITECTURES), help="Target architecture (clean adds repositories and use cases).")
@click.option("--base-url", default=None, help="Base URL baked into the services (defaults to the first server).")
@click.option("--timeout", default=None, type=float, help="Fetch timeout in seconds.")
@click.option("--strict", is_flag=True, help="Fail instead of mapping unsupported schemas to Any.")
@click.option("--dry-run", is_flag=True, help="List the files that would be generated without writing them.")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def generate(
    source: str,
    output: Path | None,
    framework: str | None,
    architecture: str | None,
    base_url: str | None,
    timeout: float | None,
    strict: bool,
    dry_run: bool,
    verbose: bool,
):
    """Generate DTOs, services and (clean) repositories/use cases from SOURCE.

    SOURCE is an http(s) URL, a file:// URL or a local path.
    """
    _setup_logging(verbose)
    if output is None and not dry_run:
        raise click.UsageError("Missing option '-o' / '--output' (or pass --dry-run).")

    try:
        config = GeneratorConfig.from_env(
            framework=framework, architecture=architecture, base_url=base_url, timeout=timeout,
            strict=strict or None,
        )
    except ValidationError as e:
        problems = "; ".join(f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors())
        raise click.ClickException(f"Invalid configuration: {problems}") from e
    click.echo(f"Loading {source} ({config.framework.value}, {config.architecture.value})...")

    orchestrator = GenerationOrchestrator(config)
    try:
        result = asyncio.run(orchestrator.run(source))
    except GenerationError as e:
        raise click.ClickException(str(e)) from e

    click.echo(
        f"{result.title} {result.version}: {len(result.services)} services, "
        f"{len(result.artifacts)} files."
    )

    if dry_run:
        for artifact in result.artifacts:
            click.echo(f"  {artifact.relative_path:<50} {artifact.kind.description}")
        return

    written = write_artifacts(list(result.artifacts), output)
    for file_path in written:
        click.echo(f"  Created {file_path}")
    click.echo(f"Generated {len(written)} files in {output}")


@main.command()
@click.argument("source")
@click.option("--timeout", default=30.0, type=float, help="Fetch timeout in seconds.")
def endpoints(source: str, timeout: float):
    """List the service groups and endpoints found in SOURCE."""
    try:
        document = asyncio.run(load(source, timeout=timeout))
        methods = build_methods(group_endpoints(document), TypeMapper(document.component_schemas))
    except ScaffoldError as e:
        raise click.ClickException(str(e)) from e

    click.echo(f"{document.info.title} {document.info.version}")
    for service, service_methods in methods.items():
        click.echo(f"{service}Service ({len(service_methods)})")
        for method in service_methods:
            click.echo(f"  {method.endpoint.label:<40} {method.declaration()}")
