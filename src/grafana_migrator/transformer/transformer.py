"""
Turn documents fetched from a source instance into import-ready documents.

Everything here is pure: inputs are deep-copied, nothing touches the network
or the filesystem, and malformed input raises MalformedResponseError so the
caller can skip the one entity.
"""

import copy
from typing import Any, Callable, Dict

from ..errors import MalformedResponseError
from ..models import EntityKind

Document = Dict[str, Any]


def _require_object(value: Any, what: str) -> Document:
    if not isinstance(value, dict):
        raise MalformedResponseError(f"{what} is not a JSON object (got {type(value).__name__})")
    return value


def _require_str(container: Document, key: str, what: str) -> str:
    value = container.get(key)
    if not isinstance(value, str):
        raise MalformedResponseError(f"{what} has no string '{key}' field")
    return value


# ---------- uid lookup ----------
def entity_uid(kind: EntityKind, document: Any) -> str:
    """Cross-instance identity of a raw or transformed document."""
    doc = _require_object(document, f"{kind.value} document")
    if kind is EntityKind.DASHBOARD:
        dashboard = _require_object(doc.get("dashboard"), "dashboard.dashboard")
        uid = _require_str(dashboard, "uid", "dashboard.dashboard")
    else:
        uid = _require_str(doc, "uid", f"{kind.value} document")
    if not uid:
        raise MalformedResponseError(f"{kind.value} document has an empty uid")
    return uid


# ---------- per-kind rules ----------
def transform_folder(raw: Any) -> Document:
    doc = copy.deepcopy(_require_object(raw, "folder response"))
    entity_uid(EntityKind.FOLDER, doc)
    doc.pop("id", None)
    doc["overwrite"] = True
    return doc


def transform_dashboard(raw: Any) -> Document:
    """
    ``{"dashboard": {...}, "meta": {"folderUid": ...}}`` becomes
    ``{"dashboard": {...without id}, "folderUid": ..., "overwrite": true}``.
    """
    doc = copy.deepcopy(_require_object(raw, "dashboard response"))
    entity_uid(EntityKind.DASHBOARD, doc)
    meta = _require_object(doc.get("meta"), "dashboard.meta")
    folder_uid = _require_str(meta, "folderUid", "dashboard.meta")

    doc["dashboard"].pop("id", None)
    doc.pop("meta")
    doc["folderUid"] = folder_uid
    doc["overwrite"] = True
    return doc


def transform_datasource(raw: Any) -> Document:
    doc = copy.deepcopy(_require_object(raw, "datasource entry"))
    entity_uid(EntityKind.DATASOURCE, doc)
    doc.pop("id", None)
    doc.pop("orgId", None)
    return doc


_RULES: Dict[EntityKind, Callable[[Any], Document]] = {
    EntityKind.FOLDER: transform_folder,
    EntityKind.DASHBOARD: transform_dashboard,
    EntityKind.DATASOURCE: transform_datasource,
}


def transform(kind: EntityKind, raw: Any) -> Document:
    """Apply the rules of ``kind`` to a fetched API representation."""
    return _RULES[kind](raw)


__all__ = [
    "entity_uid",
    "transform",
    "transform_folder",
    "transform_dashboard",
    "transform_datasource",
]
