"""Small value types shared across the export and import paths."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar

T = TypeVar("T")


class EntityKind(str, Enum):
    """The three Grafana resource kinds that get migrated."""

    FOLDER = "folder"
    DASHBOARD = "dashboard"
    DATASOURCE = "datasource"

    @property
    def directory(self) -> str:
        """Name of the snapshot directory holding this kind."""
        return f"{self.value}s"


@dataclass
class TransformedEntity:
    """An import-ready document together with its kind and uid."""

    kind: EntityKind
    uid: str
    document: Dict[str, Any]


@dataclass(frozen=True)
class Route:
    """HTTP method and destination path chosen for one entity write."""

    method: str
    path: str


@dataclass
class TaskOutcome(Generic[T]):
    item: Any
    value: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class PhaseReport:
    """Counts of one phase (e.g. "export dashboards")."""

    kind: EntityKind
    action: str
    succeeded: int = 0
    failed: int = 0
    failed_items: list = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.succeeded + self.failed

    def record(self, item: Any, ok: bool) -> None:
        if ok:
            self.succeeded += 1
        else:
            self.failed += 1
            self.failed_items.append(item)

    def __str__(self) -> str:
        return (f"{self.action} {self.kind.directory}: "
                f"{self.succeeded}/{self.total} succeeded, {self.failed} failed")


__all__ = ["EntityKind", "TransformedEntity", "Route", "TaskOutcome", "PhaseReport"]
