"""Consistency checks over a run's artifact set."""

from api_scaffold.generator.artifact import ArtifactKind, GeneratedArtifact
from api_scaffold.generator.signature import ServiceMethod


def validate_paths(artifacts: list[GeneratedArtifact]) -> dict[str, str]:
    """Check that no two artifacts share a relative path.

    Returns dict of {relative_path: error_message} for duplicated paths.
    """
    errors = {}
    kinds: dict[str, ArtifactKind] = {}
    for artifact in artifacts:
        path = artifact.relative_path
        if path in kinds:
            errors[path] = f"Duplicate artifact path (generated as {kinds[path].value} and {artifact.kind.value})"
        else:
            kinds[path] = artifact.kind
    return errors


def validate_references(
    artifacts: list[GeneratedArtifact],
    methods: dict[str, list[ServiceMethod]],
) -> dict[str, str]:
    """Check that every DTO named in a signature was emitted under that name.

    Returns dict of {type_name: error_message} for dangling references.
    """
    emitted = {a.file_name.rsplit(".", 1)[0] for a in artifacts if a.kind is ArtifactKind.DTO}
    errors = {}
    for service_methods in methods.values():
        for method in service_methods:
            for name in sorted(method.referenced_types() - emitted):
                errors.setdefault(name, f"{method.endpoint.label} references DTO '{name}' which was not generated")
    return errors


def validate_artifacts(
    artifacts: list[GeneratedArtifact],
    methods: dict[str, list[ServiceMethod]],
) -> dict[str, str]:
    """Run all checks. Returns dict of {subject: error_message}."""
    errors = {}
    errors.update(validate_paths(artifacts))
    errors.update(validate_references(artifacts, methods))
    return errors
