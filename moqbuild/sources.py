"""
Source acquisition for moqbuild.

Materializes a working tree for a ResolvedSource and captures its
provenance (commit, dirty state).

Cached clones live at <workspace>/<implementation-name>. A cached clone is
reused only while its origin matches the resolved repository URL; an
origin switch discards it and clones fresh.
"""

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from moqbuild.config import ImplementationConfig
from moqbuild.errors import SourceNotFoundError
from moqbuild.schemas import LOCAL_REF, ResolvedSource, SourceDescriptor, SourceType
from moqbuild.tools.git import GitAdapter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AcquiredSource:
    """A materialized working tree plus its provenance."""
    descriptor: SourceDescriptor
    context_dir: Path


class SourceManager:
    """Produces a usable working tree and SourceDescriptor for one implementation."""

    def __init__(self, implementation: ImplementationConfig, workspace_dir: Path,
                 runner_root: Path, git: GitAdapter):
        """
        Args:
            implementation: Build definition being built
            workspace_dir: Directory holding cached clones
            runner_root: Root of the orchestrator's own repository
            git: Git adapter used for all version-control operations
        """
        self.implementation = implementation
        self.workspace_dir = Path(workspace_dir)
        self.runner_root = Path(runner_root)
        self.git = git

    @property
    def clone_dir(self) -> Path:
        """Deterministic path of the cached clone."""
        return self.workspace_dir / self.implementation.name

    def acquire(self, resolved: ResolvedSource) -> AcquiredSource:
        """
        Materialize the source tree for resolved.

        Raises:
            SourceNotFoundError: If a local path does not exist
            CommandError: If clone, fetch or checkout fails
        """
        if resolved.type is SourceType.LOCAL:
            return self._acquire_local(resolved)
        if resolved.type is SourceType.EMBEDDED:
            return self._acquire_embedded(resolved)
        return self._acquire_git(resolved)

    def _acquire_local(self, resolved: ResolvedSource) -> AcquiredSource:
        path = Path(resolved.local_path).expanduser()
        if not path.is_dir():
            raise SourceNotFoundError(resolved.local_path)

        source_dir = path.resolve()
        logger.info("Using local checkout: %s", source_dir)

        descriptor = SourceDescriptor(
            type=SourceType.LOCAL,
            repository=resolved.repository,
            ref=LOCAL_REF,
            local_path=str(source_dir),
            commit=self.git.rev_parse_head(source_dir),
            dirty=self.git.is_dirty(source_dir),
        )
        return AcquiredSource(descriptor=descriptor, context_dir=source_dir)

    def _acquire_embedded(self, resolved: ResolvedSource) -> AcquiredSource:
        logger.info("Using embedded source: %s", self.implementation.build_dir)

        descriptor = SourceDescriptor(
            type=SourceType.EMBEDDED,
            repository=resolved.repository,
            ref=resolved.ref,
            local_path=None,
            commit=self.git.rev_parse_head(self.runner_root),
            dirty=self.git.is_dirty(self.runner_root),
        )
        return AcquiredSource(descriptor=descriptor, context_dir=self.implementation.build_dir)

    def _acquire_git(self, resolved: ResolvedSource) -> AcquiredSource:
        source_dir = self.clone_dir
        self.workspace_dir.mkdir(parents=True, exist_ok=True)

        if (source_dir / ".git").exists():
            existing_url = self.git.remote_url(source_dir) or ""
            if existing_url != resolved.repository:
                logger.info("Repo URL changed (%s -> %s), re-cloning...", existing_url, resolved.repository)
                shutil.rmtree(source_dir)
                self.git.clone(resolved.repository, source_dir)
            else:
                logger.info("Updating existing clone...")
                self.git.fetch(source_dir)
        else:
            logger.info("Cloning %s...", resolved.repository)
            if source_dir.exists():
                shutil.rmtree(source_dir)
            self.git.clone(resolved.repository, source_dir)

        logger.info("Checking out ref: %s", resolved.ref)
        self.git.checkout(source_dir, resolved.ref)
        self.git.pull(source_dir, resolved.ref)

        descriptor = SourceDescriptor(
            type=SourceType.GIT,
            repository=resolved.repository,
            ref=resolved.ref,
            local_path=None,
            commit=self.git.rev_parse_head(source_dir),
            dirty=self.git.is_dirty(source_dir),
        )
        return AcquiredSource(descriptor=descriptor, context_dir=source_dir)
