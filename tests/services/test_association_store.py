"""
Tests for the thread → discussion association store.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from threadroom.integrations.storage import InMemoryKeyValueStore
from threadroom.models.discussion import Room
from threadroom.services.association_store import AssociationStore, association_key, claim_key
from threadroom.services.errors import PersistenceGap
from tests.conftest import ALICE, BOB, THREAD_ID

NAMESPACE = "thread-discussion-map"
DISCUSSION = Room(id="D1", name="ship-v2", display_name="Ship v2", slug="ship-v2", parent_room_id="C1")


class TestFindAndRecord:

    async def test_find_missing(self, store):
        assert await store.find(THREAD_ID) is None

    async def test_record_then_find(self, store):
        await store.record(DISCUSSION, THREAD_ID)

        association = await store.find(THREAD_ID)
        assert association is not None
        assert association.discussion_id == "D1"
        assert association.thread_id == THREAD_ID
        assert association.created_fields["slug"] == "ship-v2"
        assert association.created_fields["parent_room_id"] == "C1"

    async def test_record_shape(self, store, kv_store):
        """Stored record is the room snapshot plus id and threadId."""
        await store.record(DISCUSSION, THREAD_ID)

        [record] = await kv_store.read_all(NAMESPACE)
        assert record["id"] == "D1"
        assert record["threadId"] == THREAD_ID
        assert record["display_name"] == "Ship v2"
        assert record["type"] == "channel"

    async def test_find_ignores_other_threads(self, store):
        await store.record(DISCUSSION, "other-thread")
        assert await store.find(THREAD_ID) is None

    async def test_find_matches_legacy_records_by_scan(self, store, kv_store):
        """Records written under any key are found by their threadId field."""
        await kv_store.insert_if_absent(NAMESPACE, "legacy", {"id": "D9", "threadId": THREAD_ID, "slug": "legacy"})

        association = await store.find(THREAD_ID)
        assert association.discussion_id == "D9"

    async def test_second_record_keeps_first(self, store, kv_store):
        await store.record(DISCUSSION, THREAD_ID)
        duplicate = DISCUSSION.model_copy(update={"id": "D2"})

        association = await store.record(duplicate, THREAD_ID)

        assert association.discussion_id == "D1"
        assert len(await kv_store.read_all(NAMESPACE)) == 1

    async def test_backend_failure_raises_persistence_gap(self, kv_store):
        kv_store.insert_if_absent = AsyncMock(side_effect=OSError("disk full"))
        store = AssociationStore(kv_store, namespace=NAMESPACE)

        with pytest.raises(PersistenceGap) as exc_info:
            await store.record(DISCUSSION, THREAD_ID)
        assert exc_info.value.discussion_id == "D1"
        assert exc_info.value.thread_id == THREAD_ID


def stale_claim(user=ALICE) -> dict:
    old = (datetime.now(timezone.utc) - timedelta(seconds=600)).isoformat()
    return {"kind": "claim", "threadId": THREAD_ID, "claimId": "old", "claimedBy": user.id, "claimedAt": old}


class YieldingStore(InMemoryKeyValueStore):
    """Hands control to other tasks after every read, like a remote backend."""

    async def read_all(self, namespace):
        records = await super().read_all(namespace)
        await asyncio.sleep(0)
        return records


class TestClaims:

    async def test_first_claim_wins(self, store):
        marker = await store.claim(THREAD_ID, ALICE)

        assert marker["claimedBy"] == ALICE.id
        assert marker["claimId"]
        assert await store.claim(THREAD_ID, BOB) is None

    async def test_claim_is_not_an_association(self, store):
        await store.claim(THREAD_ID, ALICE)
        assert await store.find(THREAD_ID) is None

    async def test_release_allows_new_claim(self, store):
        marker = await store.claim(THREAD_ID, ALICE)
        await store.release(THREAD_ID, marker)
        assert await store.claim(THREAD_ID, BOB) is not None

    async def test_stale_claim_is_taken_over(self, store, kv_store):
        await kv_store.insert_if_absent(NAMESPACE, claim_key(THREAD_ID), stale_claim())

        marker = await store.claim(THREAD_ID, BOB)

        assert marker is not None
        [record] = await kv_store.read_all(NAMESPACE)
        assert record == marker

    async def test_concurrent_takeovers_of_stale_claim(self):
        kv_store = YieldingStore()
        store = AssociationStore(kv_store, namespace=NAMESPACE, claim_ttl_seconds=120)
        await kv_store.insert_if_absent(NAMESPACE, claim_key(THREAD_ID), stale_claim())

        results = await asyncio.gather(store.claim(THREAD_ID, ALICE), store.claim(THREAD_ID, BOB))

        winners = [marker for marker in results if marker is not None]
        assert len(winners) == 1
        [record] = await kv_store.read_all(NAMESPACE)
        assert record == winners[0]

    async def test_release_leaves_a_taken_over_claim(self, store, kv_store):
        """A slow invocation whose stale claim was taken over must not drop the new one."""
        old_marker = stale_claim()
        await kv_store.insert_if_absent(NAMESPACE, claim_key(THREAD_ID), old_marker)
        new_marker = await store.claim(THREAD_ID, BOB)

        await store.release(THREAD_ID, old_marker)

        assert await kv_store.read_all(NAMESPACE) == [new_marker]
        assert await store.claim(THREAD_ID, ALICE) is None

    async def test_backend_without_conditional_writes_always_claims(self, kv_store):
        kv_store.supports_conditional_writes = False
        store = AssociationStore(kv_store, namespace=NAMESPACE)

        assert await store.claim(THREAD_ID, ALICE) is not None
        assert await store.claim(THREAD_ID, BOB) is not None
        assert await kv_store.read_all(NAMESPACE) == []

    async def test_release_failure_is_swallowed(self, kv_store):
        kv_store.delete_if = AsyncMock(side_effect=OSError("gone"))
        store = AssociationStore(kv_store, namespace=NAMESPACE)
        marker = await store.claim(THREAD_ID, ALICE)

        await store.release(THREAD_ID, marker)

        kv_store.delete_if.assert_awaited_once()


def test_keys_are_derived_from_thread_id():
    assert association_key("T1") == "thread:T1"
    assert claim_key("T1") == "claim:T1"
