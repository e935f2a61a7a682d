"""
Discussion Resolver

Turns a thread into a discussion, at most once per thread:

    Start → ResolvingAssociation → Joining  → Done
                                 → Creating → Done

1. Reject discussion/DM contexts
2. If the thread already has a discussion, add the user to it and send a link
3. Otherwise derive the title, claim the thread, create the discussion,
   post a seed message pointing back to the thread and record the association

Concurrent invocations on the same thread are serialized by the creation
claim when the association backend supports conditional writes. The claim
holder looks the association up again before creating, so an invocation that
raced past a just-finished creation joins it instead. Without conditional
writes two invocations can both create a discussion; the second association
write is then dropped and logged.
"""

import logging
from typing import List, Optional

from threadroom.models.api_responses import DiscussAction, DiscussOutcome
from threadroom.models.discussion import (
    DiscussionRequest,
    Message,
    Room,
    ThreadDiscussionAssociation,
    User,
)
from threadroom.services.association_store import AssociationStore
from threadroom.services.context import InvocationContext
from threadroom.services.creation_gateway import CreationStatus, DiscussionGateway
from threadroom.services.errors import (
    CreationInProgressError,
    InvalidContextError,
    MissingNameError,
    PersistenceGap,
)
from threadroom.services.notifier import Notifier
from threadroom.services.target_resolver import invalid_context_message
from threadroom.utils.helpers import build_message_url, build_room_url

logger = logging.getLogger(__name__)

ORIGIN_THREAD_FIELD = "originThreadId"
SEED_ATTACHMENT_COLOR = "green"
GENERIC_FAILURE_MESSAGE = (
    "Something went wrong while creating the discussion, please try again later"
)


class DiscussionResolver:
    """Create-or-join state machine for thread-originated discussions."""

    def __init__(
        self,
        store: AssociationStore,
        gateway: Optional[DiscussionGateway] = None,
        notifier: Optional[Notifier] = None,
    ):
        self.store = store
        self.gateway = gateway or DiscussionGateway()
        self.notifier = notifier or Notifier()

    async def resolve(
        self,
        ctx: InvocationContext,
        thread_id: str,
        requested_name: Optional[str] = None,
    ) -> DiscussOutcome:
        """
        Resolve the discussion for `thread_id`, creating it if needed.

        Args:
            ctx: Invocation context; ctx.room is the parent for new discussions
            thread_id: Thread the command was run in
            requested_name: Explicit discussion name, wins over the thread text

        Returns:
            DiscussOutcome (created, joined or failed)

        Raises:
            InvalidContextError: ctx.room is a discussion or a direct message
            MissingNameError: no explicit name and the thread message has no text
            CreationInProgressError: another invocation is creating it right now
        """
        if ctx.room.is_discussion or ctx.room.is_direct:
            raise InvalidContextError(invalid_context_message(ctx.room, ctx.room, from_cli=False))

        existing = await self.store.find(thread_id)
        if existing is not None:
            return await self._join(ctx, existing)

        return await self._create(ctx, thread_id, requested_name)

    # Joining

    async def _join(self, ctx: InvocationContext, association: ThreadDiscussionAssociation) -> DiscussOutcome:
        discussion_id = association.discussion_id
        logger.info(
            f"Thread {association.thread_id} already has discussion {discussion_id}; "
            f"adding user {ctx.user.id}"
        )
        try:
            await ctx.host.add_member(discussion_id, ctx.user)
        except Exception as e:
            # The link below still lets the user join by hand
            logger.warning(f"Failed to add user {ctx.user.id} to discussion {discussion_id}: {e}")

        url = await self._room_url(ctx, discussion_id)
        await self.notifier.notify(ctx, f"A discussion already exists, please join [here]({url}).")
        return DiscussOutcome(
            action=DiscussAction.JOINED,
            discussion_id=discussion_id,
            discussion_url=url,
        )

    # Creating

    async def _create(
        self,
        ctx: InvocationContext,
        thread_id: str,
        requested_name: Optional[str],
    ) -> DiscussOutcome:
        thread_message = await self._get_thread_message(ctx, thread_id)
        title = self.derive_title(requested_name, thread_message)
        if not title:
            raise MissingNameError(
                "no thread message text found to use as discussion name, please provide one",
                thread_id=thread_id,
            )

        request = DiscussionRequest(
            source_thread_id=thread_id,
            requested_name=title,
            target_room=ctx.room,
            invoking_user=ctx.user,
            seed_members=self.seed_members(thread_message, ctx.user),
        )

        claim = await self.store.claim(thread_id, ctx.user)
        if claim is None:
            existing = await self.store.find(thread_id)
            if existing is not None:
                return await self._join(ctx, existing)
            raise CreationInProgressError(
                "A discussion for this thread is already being created, please try again in a moment.",
                thread_id=thread_id,
            )

        try:
            # Another invocation may have created and recorded it since our first lookup
            existing = await self.store.find(thread_id)
            if existing is not None:
                return await self._join(ctx, existing)

            result = await self.gateway.create(
                ctx,
                title=request.requested_name,
                parent_room=request.target_room,
                seed_members=request.seed_members,
                metadata={ORIGIN_THREAD_FIELD: request.source_thread_id},
            )

            if not result.ok:
                if result.status == CreationStatus.NOT_ALLOWED:
                    await self.notifier.notify(ctx, result.reason or "not allowed")
                    return DiscussOutcome(action=DiscussAction.REJECTED, reason=result.reason)
                await self.notifier.notify(ctx, GENERIC_FAILURE_MESSAGE)
                return DiscussOutcome(action=DiscussAction.FAILED, reason=GENERIC_FAILURE_MESSAGE)

            discussion = await self._get_discussion_room(ctx, result.discussion_id, title)
            await self._post_seed_message(ctx, discussion, thread_id, thread_message)

            try:
                await self.store.record(discussion, thread_id)
            except PersistenceGap as e:
                logger.warning(f"{e}; a later /discuss on this thread may create a duplicate")
        finally:
            await self.store.release(thread_id, claim)

        return DiscussOutcome(
            action=DiscussAction.CREATED,
            discussion_id=discussion.id,
            discussion_url=await self._room_url(ctx, discussion.id),
        )

    @staticmethod
    def derive_title(requested_name: Optional[str], thread_message: Optional[Message]) -> Optional[str]:
        """Explicit name first, then the thread message text."""
        if requested_name and requested_name.strip():
            return requested_name.strip()
        if thread_message and thread_message.text and thread_message.text.strip():
            return thread_message.text.strip()
        return None

    @staticmethod
    def seed_members(thread_message: Optional[Message], invoking_user: User) -> List[User]:
        """The thread author, unless they are the one running the command."""
        if thread_message is None or thread_message.sender.id == invoking_user.id:
            return []
        return [thread_message.sender]

    async def _get_thread_message(self, ctx: InvocationContext, thread_id: str) -> Optional[Message]:
        try:
            return await ctx.host.get_message(ctx.room.id, thread_id)
        except Exception as e:
            logger.warning(f"Could not fetch thread message {thread_id}: {e}")
            return None

    async def _get_discussion_room(self, ctx: InvocationContext, discussion_id: str, title: str) -> Room:
        room = await ctx.host.get_room_by_id(discussion_id)
        if room is not None:
            return room
        logger.warning(f"Discussion {discussion_id} not visible yet; recording minimal snapshot")
        return Room(
            id=discussion_id,
            display_name=title,
            type=ctx.room.type,
            parent_room_id=ctx.room.id,
        )

    async def _post_seed_message(
        self,
        ctx: InvocationContext,
        discussion: Room,
        thread_id: str,
        thread_message: Optional[Message],
    ) -> None:
        """
        Post the one message that links the discussion back to its thread.

        The host does not let us list thread replies, so this stands in for
        the thread history. It is sent as the thread's original author.
        """
        site_url = await ctx.host.get_site_url()
        permalink = build_message_url(
            site_url, ctx.room.id, thread_id, ctx.settings.message_url_template
        )
        thread_text = (thread_message.text or "") if thread_message else ""
        sender = thread_message.sender if thread_message else ctx.app_user
        text = f"{thread_text}\n\n[Original thread]({permalink})".strip()
        attachments = (thread_message.attachments if thread_message else None) or [
            {"color": SEED_ATTACHMENT_COLOR, "text": thread_text or permalink}
        ]

        try:
            await ctx.host.post_message(discussion.id, sender, text, attachments)
        except Exception as e:
            logger.warning(f"Failed to post seed message into discussion {discussion.id}: {e}")

    async def _room_url(self, ctx: InvocationContext, room_id: str) -> str:
        site_url = await ctx.host.get_site_url()
        return build_room_url(site_url, room_id, ctx.settings.room_url_template)
