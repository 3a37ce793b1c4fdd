"""
Error classes for moqbuild.

Every error raised by the build pipeline derives from MoqbuildError and is
fatal to the current invocation. Nothing is retried automatically.

- ConfigurationError: conflicting or missing options, invalid config files
- SourceNotFoundError: a --local path that does not exist
- UnknownTargetError: a target outside the implementation's known set
- ImplementationNotFoundError: no build definition for the implementation
- CommandError: git or docker exited non-zero
- BuildError: the container build for one target failed

Provenance lookups (commit hash, dirty state) never raise; they degrade
to sentinel values instead.
"""

from typing import Optional, Sequence


class MoqbuildError(Exception):
    """Base exception for moqbuild."""
    pass


class ConfigurationError(MoqbuildError):
    """
    Conflicting or missing configuration.

    Raised before any external tool runs: mutually exclusive CLI options,
    malformed moqbuild.yaml, malformed build.yaml.
    """
    pass


class SourceNotFoundError(MoqbuildError):
    """Declared local source path is absent or not a directory."""

    def __init__(self, path):
        self.path = path
        super().__init__(f"Local path does not exist: {path}")


class UnknownTargetError(MoqbuildError):
    """Target name is not a member of the implementation's target set."""

    def __init__(self, target: str, known: Sequence[str], implementation: Optional[str] = None):
        self.target = target
        self.known = list(known)
        self.implementation = implementation
        scope = f" ({implementation} only supports: {', '.join(self.known)})" if implementation else ""
        super().__init__(f"Unknown target: {target}{scope}")


class ImplementationNotFoundError(MoqbuildError):
    """No build definition exists for the requested implementation."""
    pass


class CommandError(MoqbuildError):
    """An external command exited with a non-zero status."""

    def __init__(self, command: Sequence[str], returncode: int, message: Optional[str] = None):
        self.command = list(command)
        self.returncode = returncode
        if message is None:
            message = f"Command failed with exit code {returncode}: {' '.join(self.command)}"
        super().__init__(message)


class BuildError(CommandError):
    """
    Container build failed for a target.

    The run aborts on the first BuildError; remaining targets are not
    attempted and no provenance record is written.
    """

    def __init__(self, target: str, command: Sequence[str], returncode: int):
        self.target = target
        super().__init__(
            command,
            returncode,
            f"Docker build failed for {target} (exit code {returncode})",
        )
