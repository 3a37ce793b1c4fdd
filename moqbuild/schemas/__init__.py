"""
moqbuild.schemas - Data structures for the build pipeline.

SourceSelection -> ResolvedSource -> SourceDescriptor -> ProvenanceRecord

Lifecycle:
1. SourceSelection: CLI flags as given by the user
2. ResolvedSource: validated source origin (git, local, or embedded)
3. SourceDescriptor: materialized source with commit and dirty state
4. ImageRecord: one per successfully built Target
5. ProvenanceRecord: final record, written once per invocation
"""

from .source import (
    LOCAL_REF,
    UNKNOWN_COMMIT,
    ResolvedSource,
    SourceDescriptor,
    SourceSelection,
    SourceType,
)
from .target import (
    IMAGE_TAG,
    ImageRecord,
    Target,
)
from .provenance import (
    TIMESTAMP_FORMAT,
    ProvenanceRecord,
)

__all__ = [
    "LOCAL_REF",
    "UNKNOWN_COMMIT",
    "ResolvedSource",
    "SourceDescriptor",
    "SourceSelection",
    "SourceType",
    "IMAGE_TAG",
    "ImageRecord",
    "Target",
    "TIMESTAMP_FORMAT",
    "ProvenanceRecord",
]
