from urllib.parse import quote

from ..models import EntityKind

_LIST_ENDPOINTS = {
    EntityKind.DASHBOARD: "/api/search?type=dash-db",
    EntityKind.FOLDER: "/api/folders",
    EntityKind.DATASOURCE: "/api/datasources",
}

_ITEM_ENDPOINTS = {
    EntityKind.DASHBOARD: "/api/dashboards/uid/{uid}",
    EntityKind.FOLDER: "/api/folders/{uid}",
    EntityKind.DATASOURCE: "/api/datasources/uid/{uid}",
}

_CREATE_ENDPOINTS = {
    EntityKind.DASHBOARD: "/api/dashboards/db",
    EntityKind.FOLDER: "/api/folders",
    EntityKind.DATASOURCE: "/api/datasources",
}


def list_path(kind: EntityKind) -> str:
    """Endpoint listing every entity of ``kind``."""
    try:
        return _LIST_ENDPOINTS[kind]
    except KeyError as exc:
        raise ValueError(f"No list endpoint configured for '{kind}'") from exc


def item_path(kind: EntityKind, uid: str) -> str:
    """Per-uid endpoint: GET on the source, PUT on the destination."""
    try:
        template = _ITEM_ENDPOINTS[kind]
    except KeyError as exc:
        raise ValueError(f"No item endpoint configured for '{kind}'") from exc
    return template.format(uid=quote(uid, safe=""))


def create_path(kind: EntityKind) -> str:
    try:
        return _CREATE_ENDPOINTS[kind]
    except KeyError as exc:
        raise ValueError(f"No create endpoint configured for '{kind}'") from exc
