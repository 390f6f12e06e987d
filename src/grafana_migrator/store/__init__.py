"""Local snapshot persistence."""

from .snapshot import DocumentHandle, SnapshotStore

__all__ = ["DocumentHandle", "SnapshotStore"]
