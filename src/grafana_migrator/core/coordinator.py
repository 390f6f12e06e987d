import asyncio
import logging
from typing import List, Optional

import httpx

from ..config import MigrationConfig
from ..destination import Importer, UpsertResolver
from ..dispatcher import ConcurrentDispatcher
from ..grafana.client import GrafanaClient
from ..models import EntityKind, PhaseReport, TaskOutcome, TransformedEntity
from ..source import ResourceFetcher
from ..store import DocumentHandle, SnapshotStore

logger = logging.getLogger(__name__)

COMMANDS = ("export", "import")


class Coordinator:
    """
    Sequences the migration phases.

    Export:  dashboards -> folders -> datasources (source -> snapshots)
    Import:  folders -> [barrier] -> dashboards -> [barrier] -> datasources (snapshots -> destination)

    Dashboards reference their folder by uid, so no dashboard write starts
    before every folder write has finished.
    """

    def __init__(self,
                 config: MigrationConfig,
                 *,
                 progress: bool = False,
                 source_transport: Optional[httpx.AsyncBaseTransport] = None,
                 destination_transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self._config = config
        self._store = SnapshotStore(config.snapshot_dir)
        self._dispatcher = ConcurrentDispatcher(progress=progress)
        self._source_transport = source_transport
        self._destination_transport = destination_transport

    @property
    def store(self) -> SnapshotStore:
        return self._store

    # ---------- helpers ----------
    @staticmethod
    def _report(kind: EntityKind, action: str, outcomes: List[TaskOutcome]) -> PhaseReport:
        report = PhaseReport(kind=kind, action=action)
        for outcome in outcomes:
            report.record(getattr(outcome.item, "uid", outcome.item), outcome.ok)
        logger.info("%s", report)
        return report

    # ---------- export ----------
    async def _export_kind(self, fetcher: ResourceFetcher, kind: EntityKind) -> PhaseReport:
        async def save(entity: TransformedEntity) -> None:
            await asyncio.to_thread(self._store.save, kind, entity.uid, entity.document)

        outcomes = await fetcher.fetch_each(kind, save, label=f"export {kind.directory}")
        return self._report(kind, "export", outcomes)

    async def _export_datasources(self, fetcher: ResourceFetcher) -> PhaseReport:
        report = PhaseReport(kind=EntityKind.DATASOURCE, action="export")
        for entity in await fetcher.fetch_all(EntityKind.DATASOURCE):
            try:
                await asyncio.to_thread(self._store.save, entity.kind, entity.uid, entity.document)
                report.record(entity.uid, True)
            except Exception as e:
                logger.error("Error saving datasource %r: %s", entity.uid, e)
                logger.debug("Traceback for datasource %r", entity.uid, exc_info=True)
                report.record(entity.uid, False)
        logger.info("%s", report)
        return report

    async def run_export(self) -> List[PhaseReport]:
        credential = self._config.require_source()
        self._store.ensure_directories()
        logger.info("Exporting from %s into %s", credential.host, self._store.root.resolve())

        async with GrafanaClient(credential, self._config.timeout,
                                 transport=self._source_transport) as client:
            fetcher = ResourceFetcher(client, self._dispatcher)
            reports = [await self._export_kind(fetcher, EntityKind.DASHBOARD)]
            reports.append(await self._export_kind(fetcher, EntityKind.FOLDER))
            reports.append(await self._export_datasources(fetcher))
        return reports

    # ---------- import ----------
    async def _import_kind(self, importer: Importer, kind: EntityKind) -> PhaseReport:
        handles = await asyncio.to_thread(self._store.list, kind)
        logger.info("Importing %d %s", len(handles), kind.directory)

        async def load_and_upload(handle: DocumentHandle) -> None:
            document = await asyncio.to_thread(handle.load)
            await importer.upload(kind, document)

        outcomes = await self._dispatcher.run_all(handles, load_and_upload, label=f"import {kind.directory}")
        return self._report(kind, "import", outcomes)

    async def _import_datasources(self, importer: Importer, resolver: UpsertResolver) -> PhaseReport:
        kind = EntityKind.DATASOURCE
        report = PhaseReport(kind=kind, action="import")
        handles = await asyncio.to_thread(self._store.list, kind)
        logger.info("Importing %d %s", len(handles), kind.directory)
        if handles:
            await resolver.prepare(kind)

        for handle in handles:
            try:
                document = await asyncio.to_thread(handle.load)
                await importer.upload(kind, document)
                report.record(handle.uid, True)
            except Exception as e:
                logger.error("Error importing datasource %r: %s", handle.uid, e)
                logger.debug("Traceback for datasource %r", handle.uid, exc_info=True)
                report.record(handle.uid, False)
        logger.info("%s", report)
        return report

    async def run_import(self) -> List[PhaseReport]:
        credential = self._config.require_destination()
        logger.info("Importing from %s into %s", self._store.root.resolve(), credential.host)

        async with GrafanaClient(credential, self._config.timeout,
                                 transport=self._destination_transport) as client:
            resolver = UpsertResolver(client)
            importer = Importer(client, resolver)
            # each phase returns only after all of its tasks have finished
            reports = [await self._import_kind(importer, EntityKind.FOLDER)]
            reports.append(await self._import_kind(importer, EntityKind.DASHBOARD))
            reports.append(await self._import_datasources(importer, resolver))
        return reports

    # ---------- main ----------
    def run(self, command: str) -> List[PhaseReport]:
        if command == "export":
            return asyncio.run(self.run_export())
        if command == "import":
            return asyncio.run(self.run_import())
        raise ValueError(f"Unknown command {command!r}; expected one of {', '.join(COMMANDS)}")


__all__ = ["Coordinator", "COMMANDS"]
