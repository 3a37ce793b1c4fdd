"""
Source schemas - what the user asked for and what was actually used.

SourceSelection -> ResolvedSource -> SourceDescriptor

1. SourceSelection: raw user intent (CLI flags), unvalidated
2. ResolvedSource: exactly one of git / local / embedded, defaults applied
3. SourceDescriptor: the materialized source, including commit and dirty state
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Optional

# Sentinel recorded when the commit hash cannot be resolved
UNKNOWN_COMMIT = "unknown"

# Ref recorded for sources built from a local checkout
LOCAL_REF = "local"


class SourceType(str, Enum):
    """Where the source tree for a build comes from."""

    GIT = "git"
    LOCAL = "local"
    EMBEDDED = "embedded"


@dataclass
class SourceSelection:
    """
    User intent before resolution.

    Attributes:
        ref: Git branch/tag/commit to build from
        local_path: Existing working tree to build from instead of cloning
        repo_override: Repository URL replacing the configured one
        target: Single target to build (None = default target set)
    """
    ref: Optional[str] = None
    local_path: Optional[Path] = None
    repo_override: Optional[str] = None
    target: Optional[str] = None


@dataclass(frozen=True)
class ResolvedSource:
    """
    A validated, unambiguous source origin.

    Exactly one mode is populated: repository + ref for git, local_path
    for local, nothing extra for embedded.
    """
    type: SourceType
    repository: str
    ref: Optional[str] = None
    local_path: Optional[Path] = None


@dataclass(frozen=True)
class SourceDescriptor:
    """
    The materialized source a build ran against.

    Immutable once acquisition completes. Embedded sources carry the
    orchestrator's own commit and dirty state.
    """
    type: SourceType
    repository: str
    ref: str
    local_path: Optional[str] = None
    commit: str = UNKNOWN_COMMIT
    dirty: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        return {
            "type": self.type.value,
            "repository": self.repository,
            "ref": self.ref,
            "local_path": self.local_path,
            "commit": self.commit,
            "dirty": self.dirty,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SourceDescriptor":
        """Deserialize from dictionary."""
        return cls(
            type=SourceType(data["type"]),
            repository=data.get("repository", ""),
            ref=data.get("ref", LOCAL_REF),
            local_path=data.get("local_path"),
            commit=data.get("commit", UNKNOWN_COMMIT),
            dirty=bool(data.get("dirty", False)),
        )
