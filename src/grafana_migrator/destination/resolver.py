import logging
from typing import Optional, Set

from ..errors import MigrationError
from ..grafana.client import GrafanaClient
from ..grafana.endpoints import create_path, item_path, list_path
from ..models import EntityKind, Route

logger = logging.getLogger(__name__)


class UpsertResolver:
    """
    Decides, per entity, whether the destination write is a create (POST to
    the collection) or an update (PUT to the per-uid endpoint).

      - folders: checked one by one with GET /api/folders/{uid}
      - datasources: membership in one GET /api/datasources listing, taken once
      - dashboards: always POST /api/dashboards/db, Grafana upserts on uid + overwrite

    A failed lookup or listing counts as "absent", so the write falls back to a create.
    """

    def __init__(self, client: GrafanaClient) -> None:
        self._client = client
        self._datasource_uids: Optional[Set[str]] = None

    async def prepare(self, kind: EntityKind) -> None:
        """Take whatever snapshot of destination state ``kind`` needs before resolving."""
        if kind is EntityKind.DATASOURCE:
            self._datasource_uids = await self._list_datasource_uids()

    async def _list_datasource_uids(self) -> Set[str]:
        path = list_path(EntityKind.DATASOURCE)
        try:
            resp = await self._client.get(path)
        except MigrationError as e:
            logger.warning("Could not list destination datasources, assuming none exist: %s", e)
            return set()

        if not resp.ok or not isinstance(resp.body, list):
            logger.warning("Destination datasource listing unusable (status %d), assuming none exist",
                           resp.status_code)
            return set()

        uids = {item["uid"] for item in resp.body
                if isinstance(item, dict) and isinstance(item.get("uid"), str)}
        logger.info("Destination already has %d datasources", len(uids))
        return uids

    async def _folder_exists(self, uid: str) -> bool:
        try:
            resp = await self._client.get(item_path(EntityKind.FOLDER, uid))
        except MigrationError as e:
            logger.warning("Lookup of folder %r failed, assuming it is absent: %s", uid, e)
            return False
        return resp.status_code == 200

    async def resolve(self, kind: EntityKind, uid: str) -> Route:
        if kind is EntityKind.DASHBOARD:
            return Route("POST", create_path(kind))

        if kind is EntityKind.FOLDER:
            exists = await self._folder_exists(uid)
        else:
            if self._datasource_uids is None:
                await self.prepare(kind)
            exists = uid in (self._datasource_uids or set())

        if exists:
            return Route("PUT", item_path(kind, uid))
        return Route("POST", create_path(kind))


__all__ = ["UpsertResolver"]
