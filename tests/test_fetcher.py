"""
Tests for listing and fetching entities from a source instance.
"""

import asyncio

import pytest

from grafana_migrator.errors import ApiError, MalformedResponseError, TransportError
from grafana_migrator.grafana import GrafanaClient
from grafana_migrator.models import EntityKind
from grafana_migrator.source import ResourceFetcher


def run_with_fetcher(source, credential, fn):
    async def main():
        async with GrafanaClient(credential, transport=source.transport) as client:
            return await fn(ResourceFetcher(client))

    return asyncio.run(main())


class TestListIdentifiers:

    def test_lists_dashboards_through_search(self, source, credential):
        source.add_dashboard("d1", "One")
        source.add_dashboard("d2", "Two")

        uids = run_with_fetcher(source, credential,
                                lambda f: f.list_identifiers(EntityKind.DASHBOARD))

        assert uids == ["d1", "d2"]
        assert source.calls[0]["path"] == "/api/search?type=dash-db"

    def test_transport_error_means_empty(self, source, credential):
        source.add_folder("f1", "One")
        source.fail_paths.add("/api/folders")

        uids = run_with_fetcher(source, credential,
                                lambda f: f.list_identifiers(EntityKind.FOLDER))

        assert uids == []

    def test_non_array_body_means_empty(self, source, credential):
        source._route = lambda method, path, body: (200, {"message": "nope"})

        uids = run_with_fetcher(source, credential,
                                lambda f: f.list_identifiers(EntityKind.FOLDER))

        assert uids == []

    def test_error_status_means_empty(self, source, credential):
        source.add_folder("f1", "One")
        source.status_overrides[("GET", "/api/folders")] = 500

        uids = run_with_fetcher(source, credential,
                                lambda f: f.list_identifiers(EntityKind.FOLDER))

        assert uids == []

    def test_sends_bearer_token(self, source, credential):
        seen = []
        original = source.handle

        async def spy(request):
            seen.append(request.headers.get("Authorization"))
            return await original(request)

        source.handle = spy
        run_with_fetcher(source, credential, lambda f: f.list_identifiers(EntityKind.FOLDER))

        assert seen == ["Bearer secret-token"]


class TestFetchEntity:

    def test_fetches_and_transforms_dashboard(self, source, credential):
        source.add_dashboard("d1", "One", folder_uid="f1")

        entity = run_with_fetcher(source, credential,
                                  lambda f: f.fetch_entity(EntityKind.DASHBOARD, "d1"))

        assert entity.uid == "d1"
        assert entity.document["folderUid"] == "f1"
        assert entity.document["overwrite"] is True
        assert "id" not in entity.document["dashboard"]
        assert "meta" not in entity.document

    def test_transport_error_raises(self, source, credential):
        source.add_folder("f1", "One")
        source.fail_paths.add("/api/folders/f1")

        with pytest.raises(TransportError):
            run_with_fetcher(source, credential, lambda f: f.fetch_entity(EntityKind.FOLDER, "f1"))

    def test_timeout_raises_transport_error(self, source, credential):
        source.add_folder("f1", "One")
        source.timeout_paths.add("/api/folders/f1")

        with pytest.raises(TransportError) as exc:
            run_with_fetcher(source, credential, lambda f: f.fetch_entity(EntityKind.FOLDER, "f1"))
        assert "timed out" in exc.value.reason

    def test_not_found_raises_api_error(self, source, credential):
        with pytest.raises(ApiError) as exc:
            run_with_fetcher(source, credential, lambda f: f.fetch_entity(EntityKind.FOLDER, "nope"))
        assert exc.value.status_code == 404

    def test_non_object_body_is_malformed(self, source, credential):
        source._route = lambda method, path, body: (200, ["list"])

        with pytest.raises(MalformedResponseError):
            run_with_fetcher(source, credential, lambda f: f.fetch_entity(EntityKind.FOLDER, "f1"))


class TestFetchAll:

    def test_partial_failure_skips_only_the_failed_dashboard(self, source, credential):
        for uid in ("d1", "d2", "d3"):
            source.add_dashboard(uid, uid.upper())
        source.fail_paths.add("/api/dashboards/uid/d2")

        entities = run_with_fetcher(source, credential, lambda f: f.fetch_all(EntityKind.DASHBOARD))

        assert sorted(e.uid for e in entities) == ["d1", "d3"]

    def test_datasources_come_from_the_listing(self, source, credential):
        source.add_datasource("p1", "prom")
        source.add_datasource("l1", "loki", "loki")

        entities = run_with_fetcher(source, credential, lambda f: f.fetch_all(EntityKind.DATASOURCE))

        assert [e.uid for e in entities] == ["p1", "l1"]
        assert all("id" not in e.document and "orgId" not in e.document for e in entities)
        assert [c["path"] for c in source.calls] == ["/api/datasources"]

    def test_datasource_without_uid_is_skipped(self, source, credential):
        source.add_datasource("p1", "prom")
        source.datasources["broken"] = {"id": 9, "name": "no uid"}

        entities = run_with_fetcher(source, credential, lambda f: f.fetch_all(EntityKind.DATASOURCE))

        assert [e.uid for e in entities] == ["p1"]

    def test_fetch_each_runs_callback_per_entity(self, source, credential):
        source.add_folder("f1", "One")
        source.add_folder("f2", "Two")
        seen = []

        async def on_entity(entity):
            if entity.uid == "f2":
                raise RuntimeError("disk full")
            seen.append(entity.uid)

        outcomes = run_with_fetcher(source, credential,
                                    lambda f: f.fetch_each(EntityKind.FOLDER, on_entity))

        assert seen == ["f1"]
        assert [(o.item, o.ok) for o in outcomes] == [("f1", True), ("f2", False)]
        assert isinstance(outcomes[1].error, RuntimeError)
