import logging
from dataclasses import dataclass
from typing import Any, Dict

from ..grafana.client import GrafanaClient
from ..models import EntityKind, Route
from ..transformer import entity_uid
from .resolver import UpsertResolver

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    kind: EntityKind
    uid: str
    route: Route
    status_code: int


class Importer:
    """
    Writes snapshot documents to the destination instance.

    Documents are sent exactly as they were persisted; the resolver only picks
    the method and endpoint. Non-2xx answers raise ApiError, transport
    failures raise TransportError; nothing is retried.
    """

    def __init__(self, client: GrafanaClient, resolver: UpsertResolver) -> None:
        self._client = client
        self._resolver = resolver

    async def upload(self, kind: EntityKind, document: Dict[str, Any]) -> ImportResult:
        uid = entity_uid(kind, document)
        route = await self._resolver.resolve(kind, uid)
        endpoint = f"{self._client.base_url}{route.path}"

        resp = await self._client.request(route.method, route.path, json=document)
        if not resp.ok:
            logger.error("Failed to import %s %r to %s %s with status code %d",
                         kind.value, uid, route.method, endpoint, resp.status_code)
            resp.raise_for_status()

        logger.info("Successfully imported %s %r to %s %s", kind.value, uid, route.method, endpoint)
        return ImportResult(kind=kind, uid=uid, route=route, status_code=resp.status_code)


__all__ = ["Importer", "ImportResult"]
