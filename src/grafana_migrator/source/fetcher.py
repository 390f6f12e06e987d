import logging
from typing import Any, Awaitable, Callable, List, Optional

from ..dispatcher import ConcurrentDispatcher
from ..errors import MalformedResponseError, MigrationError
from ..grafana.client import GrafanaClient
from ..grafana.endpoints import item_path, list_path
from ..models import EntityKind, TaskOutcome, TransformedEntity
from ..transformer import entity_uid, transform

logger = logging.getLogger(__name__)

EntityCallback = Callable[[TransformedEntity], Awaitable[None]]


class ResourceFetcher:
    """
    Reads folders, dashboards and datasources from the source instance and
    hands back import-ready documents:
      - listing (search for dashboards, plain lists for folders/datasources)
      - per-uid fetch + transformation
    """

    def __init__(self, client: GrafanaClient,
                 dispatcher: Optional[ConcurrentDispatcher] = None) -> None:
        self._client = client
        self._dispatcher = dispatcher or ConcurrentDispatcher()

    # -------------------------------------------------------------------------
    # Listing
    # -------------------------------------------------------------------------

    async def _list(self, kind: EntityKind) -> List[Any]:
        """Raw listing of ``kind``; any failure is logged and yields []."""
        path = list_path(kind)
        try:
            resp = await self._client.get(path)
        except MigrationError as e:
            logger.warning("Listing %s failed, treating as empty: %s", kind.directory, e)
            return []

        if not resp.ok:
            logger.warning("Listing %s returned status %d, treating as empty",
                           kind.directory, resp.status_code)
            return []
        if not isinstance(resp.body, list):
            logger.warning("Listing %s did not return a JSON array, treating as empty", kind.directory)
            return []
        return resp.body

    async def list_identifiers(self, kind: EntityKind) -> List[str]:
        uids: List[str] = []
        for item in await self._list(kind):
            uid = item.get("uid") if isinstance(item, dict) else None
            if isinstance(uid, str) and uid:
                uids.append(uid)
            else:
                logger.warning("Skipping %s listing entry without uid: %r", kind.value, item)
        logger.info("Found %d %s on source", len(uids), kind.directory)
        return uids

    # -------------------------------------------------------------------------
    # Single entity
    # -------------------------------------------------------------------------

    async def fetch_entity(self, kind: EntityKind, uid: str) -> TransformedEntity:
        """Fetch one folder or dashboard by uid and transform it."""
        path = item_path(kind, uid)
        resp = (await self._client.get(path)).raise_for_status()
        if not isinstance(resp.body, dict):
            raise MalformedResponseError(f"GET {path} did not return a JSON object")

        document = transform(kind, resp.body)
        return TransformedEntity(kind=kind, uid=entity_uid(kind, document), document=document)

    # -------------------------------------------------------------------------
    # All entities of a kind
    # -------------------------------------------------------------------------

    async def fetch_datasources(self) -> List[TransformedEntity]:
        """Datasource listings already carry full bodies, so no per-uid fetch."""
        entities: List[TransformedEntity] = []
        for raw in await self._list(EntityKind.DATASOURCE):
            try:
                document = transform(EntityKind.DATASOURCE, raw)
            except MalformedResponseError as e:
                logger.error("Skipping datasource: %s", e)
                continue
            entities.append(TransformedEntity(
                kind=EntityKind.DATASOURCE,
                uid=entity_uid(EntityKind.DATASOURCE, document),
                document=document,
            ))
        logger.info("Found %d datasources on source", len(entities))
        return entities

    async def fetch_each(self,
                         kind: EntityKind,
                         on_entity: Optional[EntityCallback] = None,
                         *,
                         label: Optional[str] = None) -> List[TaskOutcome]:
        """
        List folders or dashboards, then fetch each one in its own task.

        ``on_entity`` runs inside the same task right after a successful
        fetch, so a failure there is recorded against that uid only.
        """
        uids = await self.list_identifiers(kind)

        async def fetch_one(uid: str) -> TransformedEntity:
            entity = await self.fetch_entity(kind, uid)
            if on_entity is not None:
                await on_entity(entity)
            return entity

        return await self._dispatcher.run_all(
            uids, fetch_one, label=label or f"fetch {kind.directory}")

    async def fetch_all(self, kind: EntityKind) -> List[TransformedEntity]:
        """Every entity of ``kind`` that could be fetched and transformed."""
        if kind is EntityKind.DATASOURCE:
            return await self.fetch_datasources()

        outcomes = await self.fetch_each(kind)
        return [o.value for o in outcomes if o.ok and o.value is not None]


__all__ = ["ResourceFetcher"]
