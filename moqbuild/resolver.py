"""
Source selection resolver.

Turns the user's SourceSelection into exactly one ResolvedSource mode.
Pure validation and defaulting: no filesystem, network or subprocess access.
"""

from pathlib import Path

from moqbuild.config import ImplementationConfig
from moqbuild.errors import ConfigurationError
from moqbuild.schemas import ResolvedSource, SourceSelection, SourceType


def resolve_selection(selection: SourceSelection, implementation: ImplementationConfig) -> ResolvedSource:
    """
    Resolve user flags into a concrete source origin.

    Args:
        selection: Flags as supplied by the user
        implementation: Build definition supplying repository and default ref

    Returns:
        ResolvedSource in git, local or embedded mode

    Raises:
        ConfigurationError: If the selection combines mutually exclusive options
    """
    flags = (
        ("--ref", selection.ref),
        ("--local", selection.local_path),
        ("--repo", selection.repo_override),
        ("--target", selection.target),
    )
    for flag, value in flags:
        if value is not None and not str(value).strip():
            raise ConfigurationError(f"{flag} requires a value")

    ref = selection.ref
    local_path = selection.local_path
    repo_override = selection.repo_override

    if ref and local_path:
        raise ConfigurationError("Cannot specify both --ref and --local")

    if repo_override and local_path:
        raise ConfigurationError("Cannot specify both --repo and --local")

    if implementation.source_type is SourceType.EMBEDDED:
        given = [
            flag for flag, value in (("--ref", ref), ("--local", local_path), ("--repo", repo_override))
            if value
        ]
        if given:
            raise ConfigurationError(
                f"{implementation.name} builds from embedded source; "
                f"{', '.join(given)} cannot be used"
            )
        return ResolvedSource(
            type=SourceType.EMBEDDED,
            repository=implementation.repository,
            ref=implementation.default_ref,
        )

    if repo_override and not implementation.allow_repo_override:
        raise ConfigurationError(f"{implementation.name} does not support --repo")

    repository = repo_override or implementation.repository

    if local_path:
        return ResolvedSource(
            type=SourceType.LOCAL,
            repository=repository,
            local_path=Path(local_path).expanduser(),
        )

    return ResolvedSource(
        type=SourceType.GIT,
        repository=repository,
        ref=ref or implementation.default_ref,
    )
