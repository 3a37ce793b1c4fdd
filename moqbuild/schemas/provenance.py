"""
ProvenanceRecord schema - what was built, from where, and when.

A ProvenanceRecord is constructed once per build invocation, after every
requested target has been built. It is persisted as .last-build.json in
the implementation directory and echoed to stdout.
"""

from dataclasses import dataclass, field
from typing import Any

from .source import SourceDescriptor
from .target import ImageRecord

# ISO-8601 UTC with second precision, e.g. 2026-01-31T12:00:00Z
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


@dataclass(frozen=True)
class ProvenanceRecord:
    """
    A record of one build invocation.

    Attributes:
        implementation: Implementation name (e.g. "moq-rs")
        timestamp: ISO-8601 UTC time the record was assembled
        runner_commit: Commit of the orchestrating repository itself
        source: The source the images were built from
        images: Built images, in invocation order
    """
    implementation: str
    timestamp: str
    runner_commit: str
    source: SourceDescriptor
    images: tuple[ImageRecord, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        return {
            "implementation": self.implementation,
            "timestamp": self.timestamp,
            "runner_commit": self.runner_commit,
            "source": self.source.to_dict(),
            "images": [image.to_dict() for image in self.images],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProvenanceRecord":
        """Deserialize from dictionary."""
        return cls(
            implementation=data["implementation"],
            timestamp=data["timestamp"],
            runner_commit=data.get("runner_commit", "unknown"),
            source=SourceDescriptor.from_dict(data["source"]),
            images=tuple(ImageRecord.from_dict(i) for i in data.get("images", [])),
        )
