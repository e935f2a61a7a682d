"""
Thread → Discussion Association Store

Responsibilities:
- find: look up the discussion created for a thread
- record: persist a new association once the discussion exists
- claim/release: mark a thread as "discussion being created" so concurrent
  invocations do not both create one

Records live in a single namespace. Associations are stored as
{...discussion room snapshot, "id", "threadId"}; claims carry "kind": "claim"
and are never returned by find.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from threadroom.config import get_settings
from threadroom.integrations.storage import KeyValueStore, Record
from threadroom.models.discussion import Room, ThreadDiscussionAssociation, User
from threadroom.services.errors import PersistenceGap

logger = logging.getLogger(__name__)

CLAIM_KIND = "claim"


def association_key(thread_id: str) -> str:
    return f"thread:{thread_id}"


def claim_key(thread_id: str) -> str:
    return f"claim:{thread_id}"


class AssociationStore:
    """Adapter over a KeyValueStore for thread/discussion associations."""

    def __init__(
        self,
        backend: KeyValueStore,
        namespace: Optional[str] = None,
        claim_ttl_seconds: Optional[int] = None,
    ):
        settings = get_settings()
        self.backend = backend
        self.namespace = namespace or settings.association_namespace
        self.claim_ttl_seconds = (
            claim_ttl_seconds if claim_ttl_seconds is not None else settings.claim_ttl_seconds
        )

    async def find(self, thread_id: str) -> Optional[ThreadDiscussionAssociation]:
        """Return the association for `thread_id`, or None."""
        records = await self.backend.read_all(self.namespace)
        for record in records:
            if record.get("kind") == CLAIM_KIND:
                continue
            if record.get("threadId") == thread_id and record.get("id"):
                return ThreadDiscussionAssociation.from_record(record)
        return None

    async def record(self, discussion: Room, thread_id: str) -> ThreadDiscussionAssociation:
        """
        Persist the association for a freshly created discussion.

        Uses insert-if-absent keyed by thread id, so at most one association
        per thread is ever stored. If one already exists (a concurrent
        invocation won), the existing association is kept.

        Raises:
            PersistenceGap: the backend failed to write
        """
        association = ThreadDiscussionAssociation.from_room(discussion, thread_id)
        try:
            written = await self.backend.insert_if_absent(
                self.namespace, association_key(thread_id), association.to_record()
            )
        except Exception as e:
            raise PersistenceGap(discussion.id, thread_id, e) from e

        if written:
            logger.info(f"Recorded association thread {thread_id} -> discussion {discussion.id}")
            return association

        logger.warning(
            f"Thread {thread_id} already has an association; "
            f"discussion {discussion.id} is a duplicate and was not recorded"
        )
        existing = await self.find(thread_id)
        return existing or association

    async def claim(self, thread_id: str, user: User) -> Optional[Record]:
        """
        Claim `thread_id` for discussion creation.

        A fresh claim held by someone else blocks the thread. A stale one is
        taken over with a conditional replace, so only one of several
        concurrent takers wins it.

        Returns:
            The claim marker this invocation wrote (pass it to release), or
            None if another invocation holds the claim. Backends without
            conditional writes always get a marker and nothing is stored.
        """
        now = datetime.now(timezone.utc)
        marker = {
            "kind": CLAIM_KIND,
            "threadId": thread_id,
            "claimId": uuid.uuid4().hex,
            "claimedBy": user.id,
            "claimedAt": now.isoformat(),
        }
        if not self.backend.supports_conditional_writes:
            return marker

        key = claim_key(thread_id)
        if await self.backend.insert_if_absent(self.namespace, key, marker):
            return marker

        current = await self._current_claim(thread_id)
        if current is None:
            # Released between our insert and the read
            if await self.backend.insert_if_absent(self.namespace, key, marker):
                return marker
            return None

        if not self._is_stale(current, now):
            logger.info(f"Thread {thread_id} is already claimed by {current.get('claimedBy')}")
            return None

        if await self.backend.replace_if(self.namespace, key, current, marker):
            logger.info(f"Took over stale creation claim for thread {thread_id}")
            return marker

        logger.info(f"Lost stale claim takeover for thread {thread_id}")
        return None

    async def release(self, thread_id: str, marker: Record) -> None:
        """
        Drop the creation claim, but only if it is still the one `marker`
        describes. A claim taken over by another invocation is left alone.
        Failures are logged; the claim then expires.
        """
        if not self.backend.supports_conditional_writes:
            return
        try:
            released = await self.backend.delete_if(self.namespace, claim_key(thread_id), marker)
        except Exception as e:
            logger.warning(f"Failed to release creation claim for thread {thread_id}: {e}")
            return
        if not released:
            logger.warning(f"Creation claim for thread {thread_id} was taken over before release")

    async def _current_claim(self, thread_id: str) -> Optional[Record]:
        for record in await self.backend.read_all(self.namespace):
            if record.get("kind") == CLAIM_KIND and record.get("threadId") == thread_id:
                return record
        return None

    def _is_stale(self, claim: Record, now: datetime) -> bool:
        try:
            claimed_at = datetime.fromisoformat(claim["claimedAt"])
        except (KeyError, TypeError, ValueError):
            return True
        return (now - claimed_at).total_seconds() > self.claim_ttl_seconds
