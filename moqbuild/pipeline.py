"""
Build pipeline for moqbuild.

Coordinates resolve → acquire → build (× targets) → record provenance for
one implementation. Single-threaded and sequential; the first error aborts
the run and nothing is recorded.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, TextIO

from moqbuild.builder import BuildExecutor
from moqbuild.config import RunnerConfig, load_config
from moqbuild.provenance import ProvenanceRecorder
from moqbuild.registry import ImplementationRegistry
from moqbuild.resolver import resolve_selection
from moqbuild.schemas import ProvenanceRecord, SourceSelection
from moqbuild.sources import SourceManager
from moqbuild.tools.docker import DockerAdapter
from moqbuild.tools.git import GitAdapter
from moqbuild.utils import format_duration, print_banner, print_info, print_success, print_warning

logger = logging.getLogger(__name__)


@dataclass
class BuildResult:
    """Result of a successful build invocation."""

    record: ProvenanceRecord
    provenance_path: Path
    started_at: datetime
    ended_at: datetime
    duration_seconds: float
    targets: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "implementation": self.record.implementation,
            "provenance_path": str(self.provenance_path),
            "started_at": self.started_at.isoformat(),
            "ended_at": self.ended_at.isoformat(),
            "duration_seconds": self.duration_seconds,
            "targets": self.targets,
        }


class BuildPipeline:
    """
    Main build orchestrator.

    Each implementation is built by the same pipeline; only its
    ImplementationConfig (repository, default ref, targets) differs.
    """

    def __init__(
        self,
        config: Optional[RunnerConfig] = None,
        registry: Optional[ImplementationRegistry] = None,
        git: Optional[GitAdapter] = None,
        docker: Optional[DockerAdapter] = None,
        recorder: Optional[ProvenanceRecorder] = None,
    ):
        """
        Initialize pipeline.

        Args:
            config: Runner configuration (defaults to load_config())
            registry: Implementation registry (defaults to config.builds_dir)
            git: Git adapter
            docker: Docker adapter
            recorder: Provenance recorder
        """
        self.config = config or load_config()
        self.registry = registry or ImplementationRegistry(self.config.builds_dir)
        self.git = git or GitAdapter(self.config.git_bin)
        self.docker = docker or DockerAdapter(self.config.docker_bin)
        self.recorder = recorder or ProvenanceRecorder(self.config.runner_root, self.git)

    def run(self, name: str, selection: Optional[SourceSelection] = None,
            stream: Optional[TextIO] = None) -> BuildResult:
        """
        Build one implementation.

        Args:
            name: Implementation name
            selection: Source selection flags (defaults to building the default ref)
            stream: Where to echo the provenance record (defaults to stdout)

        Returns:
            BuildResult for the completed build

        Raises:
            MoqbuildError: On any configuration, source or build failure
        """
        selection = selection or SourceSelection()
        started_at = datetime.now(timezone.utc)
        start_time = time.time()

        # Everything up to acquisition is validation only
        implementation = self.registry.load(name)
        resolved = resolve_selection(selection, implementation)
        executor = BuildExecutor(implementation, self.docker)
        targets = executor.select_targets(selection.target)

        print_banner(f"Building {implementation.name}")
        logger.info(
            "Building %s (%s source, targets: %s)",
            implementation.name,
            resolved.type.value,
            ", ".join(t.name for t in targets),
            extra={"event": "run_started", "implementation": implementation.name},
        )

        manager = SourceManager(
            implementation,
            workspace_dir=self.config.workspace_for(implementation),
            runner_root=self.config.runner_root,
            git=self.git,
        )
        source = manager.acquire(resolved)
        print_info(f"Source commit: {source.descriptor.commit}")
        if source.descriptor.dirty:
            print_warning("Source tree has uncommitted changes")

        images = executor.build_all(targets, source.context_dir)

        record = self.recorder.record(implementation, source.descriptor, images)
        path = self.recorder.write(record, implementation.provenance_path)
        self.recorder.emit(record, stream)

        duration = time.time() - start_time
        print_success(f"Build complete! ({format_duration(duration)})")

        result = BuildResult(
            record=record,
            provenance_path=path,
            started_at=started_at,
            ended_at=datetime.now(timezone.utc),
            duration_seconds=duration,
            targets=[t.name for t in targets],
        )
        logger.debug(
            "Run finished",
            extra={"event": "run_completed", "implementation": implementation.name, "metadata": result.to_dict()},
        )
        return result
