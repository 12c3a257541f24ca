"""
Tests for live sync: cached fetches plus store upsert of recent incidents.
"""

import pytest

from status_history.cache import SWRCache
from status_history.errors import TransientFetchError
from status_history.sync import LiveSync

from tests.conftest import FakeClient, incident_payload, make_incident

STATUS = {"status": {"indicator": "minor", "description": "Minor Service Outage"}}
UNRESOLVED = {"incidents": []}


def _recent(*incidents):
    return {"incidents": [incident_payload(i) for i in incidents]}


class TestSync:
    @pytest.mark.asyncio
    async def test_returns_live_payloads_and_upserts_recent(self, store):
        client = FakeClient(
            status=STATUS,
            unresolved=UNRESOLVED,
            recent=_recent(make_incident("a"), make_incident("b")),
        )
        snapshot = await LiveSync(client, SWRCache(store), store).sync()

        assert snapshot.status == STATUS
        assert snapshot.unresolved == UNRESOLVED
        assert store.existing_ids() == {"a", "b"}
        assert sorted(client.calls) == ["incidents", "status", "unresolved"]

    @pytest.mark.asyncio
    async def test_other_failures_do_not_block_store_update(self, store):
        client = FakeClient(
            status=TransientFetchError("status", "HTTP 502", status=502),
            unresolved=TransientFetchError("unresolved", "timeout"),
            recent=_recent(make_incident("a")),
        )
        snapshot = await LiveSync(client, SWRCache(store), store).sync()

        assert snapshot.status is None
        assert snapshot.unresolved is None
        assert store.existing_ids() == {"a"}

    @pytest.mark.asyncio
    async def test_total_failure_returns_nulls_and_leaves_store(self, store):
        store.upsert(make_incident("kept"))
        snapshot = await LiveSync(FakeClient(), SWRCache(store), store).sync()

        assert snapshot.status is None
        assert snapshot.unresolved is None
        assert store.existing_ids() == {"kept"}

    @pytest.mark.asyncio
    async def test_recent_update_overwrites_stored_incident(self, store):
        store.upsert(make_incident("a", resolved_at=None))
        client = FakeClient(status=STATUS, unresolved=UNRESOLVED, recent=_recent(make_incident("a")))
        await LiveSync(client, SWRCache(store), store).sync()

        assert store.list_all()[0].resolved_at == "2025-06-01T14:00:00.000Z"

    @pytest.mark.asyncio
    async def test_second_sync_within_ttl_uses_cache(self, store):
        client = FakeClient(status=STATUS, unresolved=UNRESOLVED, recent=_recent(make_incident("a")))
        sync = LiveSync(client, SWRCache(store, ttl=60), store)
        await sync.sync()
        await sync.sync()

        assert len(client.calls) == 3

    @pytest.mark.asyncio
    async def test_malformed_recent_incident_is_skipped(self, store):
        bad = incident_payload(make_incident("bad"))
        del bad["created_at"]
        client = FakeClient(
            status=STATUS,
            unresolved=UNRESOLVED,
            recent={"incidents": [incident_payload(make_incident("good")), bad]},
        )
        snapshot = await LiveSync(client, SWRCache(store), store).sync()

        assert store.existing_ids() == {"good"}
        assert snapshot.status == STATUS
        assert snapshot.unresolved == UNRESOLVED

    @pytest.mark.asyncio
    async def test_cached_malformed_payload_keeps_syncing(self, store):
        bad = incident_payload(make_incident("bad"))
        del bad["started_at"]
        client = FakeClient(status=STATUS, unresolved=UNRESOLVED, recent={"incidents": [bad]})
        sync = LiveSync(client, SWRCache(store, ttl=60), store)

        for _ in range(2):
            snapshot = await sync.sync()
            assert snapshot.status == STATUS
        assert store.count() == 0
