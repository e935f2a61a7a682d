"""
CLI Target Resolver

Handles `/discuss [#roomName] <discussionName>` outside a thread: works out
which room the discussion belongs to and checks the invoking user may start
one there.
"""

import re
import logging

from threadroom.models.discussion import CLIInvocation, DiscussionRequest, Room
from threadroom.services.context import InvocationContext
from threadroom.services.errors import (
    InvalidContextError,
    MissingNameError,
    NotAMemberError,
    RoomNotFoundError,
)

logger = logging.getLogger(__name__)

# Every group is optional, so this always matches
_ARGS_RE = re.compile(r"^(#(\S+)\s*)?(.+)?$", re.DOTALL)


def parse(arg_string: str) -> CLIInvocation:
    """
    Split the argument string into an optional room reference and a name.

    The first token is a room reference only if it starts with '#'.

    Examples:
        "#general Launch planning" → room "general", name "Launch planning"
        "Launch planning"          → no room, name "Launch planning"
        "#general"                 → room "general", no name
    """
    match = _ARGS_RE.match((arg_string or "").strip())
    room_name = match.group(2) if match else None
    name = (match.group(3) or "").strip() if match else ""
    return CLIInvocation(room_name=room_name or None, discussion_name=name or None)


def invalid_context_message(room: Room, context_room: Room, from_cli: bool = True) -> str:
    """Explain why `room` cannot host a discussion."""
    where = "this room" if room.id == context_room.id else f"`{room.label}`"
    if from_cli:
        return (
            f"{where} isn't a public channel or private group, either pass a "
            f"different `#RoomName` or execute `/discuss` in another room"
        )
    return (
        "this room isn't public channel or private group, either pass a "
        "`#RoomName` or execute `/discuss` in a different room"
    )


class TargetResolver:
    """Resolves the parent room for a non-thread invocation."""

    async def resolve(self, ctx: InvocationContext, arg_string: str) -> DiscussionRequest:
        """
        Resolve the argument string to a DiscussionRequest.

        Raises:
            MissingNameError: no discussion name after parsing
            RoomNotFoundError: `#room` does not exist
            NotAMemberError: invoking user is not in the target room
            InvalidContextError: target room is a discussion or a DM
        """
        invocation = parse(arg_string)
        if not invocation.discussion_name:
            raise MissingNameError()

        if invocation.room_name:
            room = await ctx.host.get_room_by_name(invocation.room_name)
            if room is None:
                raise RoomNotFoundError(invocation.room_name)
        else:
            room = ctx.room

        if not await self._is_member(ctx, room):
            raise NotAMemberError(room.label)

        if room.is_discussion or room.is_direct:
            raise InvalidContextError(invalid_context_message(room, ctx.room))

        logger.debug(f"Resolved CLI target room {room.id} for '{invocation.discussion_name}'")
        return DiscussionRequest(
            requested_name=invocation.discussion_name,
            target_room=room,
            invoking_user=ctx.user,
        )

    async def _is_member(self, ctx: InvocationContext, room: Room) -> bool:
        members = await ctx.host.get_room_members(room.id)
        return ctx.user.id in {member.id for member in members}
