"""
Provenance recorder for moqbuild.

Assembles the ProvenanceRecord once every requested target has been built,
replaces <implementation-dir>/.last-build.json with it in a single atomic
step, and echoes it to stdout for calling automation.
"""

import json
import logging
import os
import sys
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable, Optional, TextIO

from moqbuild.config import ImplementationConfig
from moqbuild.errors import ConfigurationError
from moqbuild.schemas import TIMESTAMP_FORMAT, ImageRecord, ProvenanceRecord, SourceDescriptor
from moqbuild.tools.git import GitAdapter

logger = logging.getLogger(__name__)

PROVENANCE_BANNER = "=== Build Provenance ==="


def get_timestamp(now: Optional[datetime] = None) -> str:
    """Current time as ISO-8601 UTC, e.g. 2026-01-31T12:00:00Z."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def to_json(record: ProvenanceRecord) -> str:
    """Serialize a record the way it is stored on disk."""
    return json.dumps(record.to_dict(), indent=2) + "\n"


class ProvenanceRecorder:
    """Captures, persists and echoes build provenance."""

    def __init__(self, runner_root: Path, git: GitAdapter,
                 clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc)):
        """
        Args:
            runner_root: Root of the orchestrator's own repository
            git: Git adapter used to read the orchestrator commit
            clock: Source of the current time (injected by tests)
        """
        self.runner_root = Path(runner_root)
        self.git = git
        self._clock = clock

    def record(self, implementation: ImplementationConfig, source: SourceDescriptor,
               images: Iterable[ImageRecord]) -> ProvenanceRecord:
        """Assemble the record for a completed build."""
        return ProvenanceRecord(
            implementation=implementation.name,
            timestamp=get_timestamp(self._clock()),
            runner_commit=self.git.rev_parse_head(self.runner_root),
            source=source,
            images=tuple(images),
        )

    def write(self, record: ProvenanceRecord, path: Path) -> Path:
        """
        Replace path with the serialized record.

        The JSON is written to a temporary file next to path and moved into
        place with os.replace, so readers see either the old record or the
        new one, never a partial file.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        try:
            with os.fdopen(fd, "w") as f:
                f.write(to_json(record))
            os.chmod(tmp_name, 0o644)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.info("Provenance saved to %s", path, extra={"event": "provenance_saved"})
        return path

    def emit(self, record: ProvenanceRecord, stream: Optional[TextIO] = None) -> None:
        """Echo the record to stdout (or stream) for capture by calling automation."""
        stream = stream or sys.stdout
        stream.write("\n")
        stream.write(PROVENANCE_BANNER + "\n")
        stream.write(to_json(record))
        stream.flush()

    def load_last(self, implementation: ImplementationConfig) -> Optional[ProvenanceRecord]:
        """
        Read the last persisted record for an implementation.

        Returns:
            The record, or None if no build has been recorded yet

        Raises:
            ConfigurationError: If the file exists but is not a valid record
        """
        path = implementation.provenance_path
        if not path.exists():
            return None
        try:
            with open(path, "r") as f:
                return ProvenanceRecord.from_dict(json.load(f))
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid provenance record {path}: {e}")
