import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from ..errors import MalformedResponseError, SnapshotError
from ..models import EntityKind

logger = logging.getLogger(__name__)

SNAPSHOT_SUFFIX = ".json"


def dump_document(document: Dict[str, Any]) -> str:
    """Deterministic serialization: the same document always yields the same bytes."""
    return json.dumps(document, indent=2, sort_keys=True, ensure_ascii=False) + "\n"


@dataclass(frozen=True)
class DocumentHandle:
    """One persisted snapshot file."""

    kind: EntityKind
    path: Path

    @property
    def uid(self) -> str:
        return self.path.stem

    def load(self) -> Dict[str, Any]:
        try:
            raw = self.path.read_bytes()
        except OSError as e:
            raise SnapshotError(f"Cannot read snapshot {self.path}: {e}") from e
        try:
            data = json.loads(raw.decode("utf-8"))
        except UnicodeDecodeError as e:
            raise MalformedResponseError(f"Snapshot {self.path} is not UTF-8: {e}") from e
        except json.JSONDecodeError as e:
            raise MalformedResponseError(f"Snapshot {self.path} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise MalformedResponseError(f"Snapshot {self.path} does not hold a JSON object")
        return data


class SnapshotStore:
    """
    Local snapshot layout, one file per entity:
      <root>/folders/<uid>.json
      <root>/dashboards/<uid>.json
      <root>/datasources/<uid>.json
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def directory(self, kind: EntityKind) -> Path:
        return self.root / kind.directory

    def ensure_directories(self, kinds: Optional[Iterable[EntityKind]] = None) -> None:
        for kind in kinds or EntityKind:
            path = self.directory(kind)
            try:
                path.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise SnapshotError(f"Cannot create snapshot directory {path}: {e}") from e

    def path_for(self, kind: EntityKind, uid: str) -> Path:
        if not uid or "/" in uid or "\\" in uid or uid in (".", ".."):
            raise SnapshotError(f"Refusing to use {uid!r} as a {kind.value} snapshot file name")
        return self.directory(kind) / f"{uid}{SNAPSHOT_SUFFIX}"

    def save(self, kind: EntityKind, uid: str, document: Dict[str, Any]) -> Path:
        """Write (or overwrite) the snapshot of one entity."""
        path = self.path_for(kind, uid)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(dump_document(document), encoding="utf-8")
        except OSError as e:
            raise SnapshotError(f"Cannot write snapshot {path}: {e}") from e
        logger.info("Saved %s snapshot: %s/%s", kind.value, kind.directory, path.name)
        return path

    def list(self, kind: EntityKind) -> List[DocumentHandle]:
        """All snapshots of ``kind``, sorted by file name; [] if the directory is unusable."""
        directory = self.directory(kind)
        try:
            entries = sorted(p for p in directory.iterdir()
                             if p.is_file() and p.suffix == SNAPSHOT_SUFFIX)
        except OSError as e:
            logger.error("Cannot list %s snapshots in %s: %s", kind.value, directory, e)
            return []
        return [DocumentHandle(kind, p) for p in entries]


__all__ = ["SnapshotStore", "DocumentHandle", "dump_document"]
