"""
/discuss Command

Entry point for one command invocation:
1. Build a fresh InvocationContext (room, user, app user)
2. Inside a thread: hand off to the DiscussionResolver
3. Otherwise: resolve `[#room] name` and create the discussion directly

Every outcome is a DiscussOutcome; precondition errors become exactly one
notification and no exception escapes to the host.
"""

import logging
from typing import Optional

from threadroom.config import Settings, get_settings
from threadroom.integrations.host import ChatHost
from threadroom.models.api_responses import DiscussAction, DiscussCommandRequest, DiscussOutcome
from threadroom.services.association_store import AssociationStore
from threadroom.services.context import InvocationContext
from threadroom.services.creation_gateway import CreationStatus, DiscussionGateway
from threadroom.services.discussion_resolver import GENERIC_FAILURE_MESSAGE, DiscussionResolver
from threadroom.services.errors import DiscussError, RoomNotFoundError
from threadroom.services.notifier import Notifier
from threadroom.services.target_resolver import TargetResolver
from threadroom.utils.helpers import build_room_url

logger = logging.getLogger(__name__)


class DiscussCommand:
    """
    Runs /discuss against a chat host.

    Holds only collaborators; everything about the current request lives in
    the InvocationContext built per call.
    """

    def __init__(
        self,
        host: ChatHost,
        store: AssociationStore,
        settings: Optional[Settings] = None,
    ):
        self.host = host
        self.store = store
        self.settings = settings or get_settings()
        self.notifier = Notifier()
        self.gateway = DiscussionGateway()
        self.resolver = DiscussionResolver(store, self.gateway, self.notifier)
        self.target_resolver = TargetResolver()

    async def execute(self, request: DiscussCommandRequest) -> DiscussOutcome:
        """Run one invocation to a terminal outcome."""
        logger.info(
            f"/{self.settings.command_name} from user {request.user_id} in room {request.room_id}"
            f"{f' (thread {request.thread_id})' if request.thread_id else ''}: {request.text!r}"
        )

        try:
            ctx = await self._build_context(request)
        except Exception as e:
            logger.error(f"Could not build invocation context: {e}", exc_info=True)
            return DiscussOutcome(action=DiscussAction.FAILED, reason=str(e))

        try:
            if request.thread_id:
                return await self.resolver.resolve(ctx, request.thread_id, request.text or None)
            return await self._start_from_cli(ctx, request.text)
        except DiscussError as e:
            logger.info(f"Rejected /{self.settings.command_name}: {e.user_message}")
            await self.notifier.notify(ctx, e.user_message, thread_id=e.thread_id)
            return DiscussOutcome(action=DiscussAction.REJECTED, reason=e.user_message)
        except Exception as e:
            logger.error(f"Unexpected error running /{self.settings.command_name}: {e}", exc_info=True)
            await self.notifier.notify(ctx, GENERIC_FAILURE_MESSAGE)
            return DiscussOutcome(action=DiscussAction.FAILED, reason=GENERIC_FAILURE_MESSAGE)

    async def _build_context(self, request: DiscussCommandRequest) -> InvocationContext:
        app_user = await self.host.get_app_user()
        if app_user is None:
            raise RuntimeError("couldn't get app user")

        room = await self.host.get_room_by_id(request.room_id)
        if room is None:
            raise RoomNotFoundError(request.room_id)

        user = await self.host.get_user(request.user_id)
        if user is None:
            raise RuntimeError(f"unknown user {request.user_id}")

        return InvocationContext(
            host=self.host,
            settings=self.settings,
            room=room,
            user=user,
            app_user=app_user,
            thread_id=request.thread_id,
        )

    async def _start_from_cli(self, ctx: InvocationContext, arg_string: str) -> DiscussOutcome:
        discussion_request = await self.target_resolver.resolve(ctx, arg_string)
        result = await self.gateway.create(
            ctx,
            title=discussion_request.requested_name,
            parent_room=discussion_request.target_room,
            seed_members=discussion_request.seed_members,
        )

        if not result.ok:
            if result.status == CreationStatus.NOT_ALLOWED:
                await self.notifier.notify(ctx, result.reason or "not allowed")
                return DiscussOutcome(action=DiscussAction.REJECTED, reason=result.reason)
            await self.notifier.notify(ctx, GENERIC_FAILURE_MESSAGE)
            return DiscussOutcome(action=DiscussAction.FAILED, reason=GENERIC_FAILURE_MESSAGE)

        site_url = await self.host.get_site_url()
        return DiscussOutcome(
            action=DiscussAction.CREATED,
            discussion_id=result.discussion_id,
            discussion_url=build_room_url(site_url, result.discussion_id, self.settings.room_url_template),
        )
