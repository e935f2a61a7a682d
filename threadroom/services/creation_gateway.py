"""
Discussion Creation Gateway

Wraps the host's room-creation primitive:
- derives the slug from the title
- seeds members
- reports a typed CreationResult instead of raising host errors
"""

import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from threadroom.models.discussion import Room, User
from threadroom.services.context import InvocationContext
from threadroom.services.errors import HostPolicyError
from threadroom.utils.helpers import slugify

logger = logging.getLogger(__name__)


class CreationStatus(str, Enum):
    CREATED = "created"
    NOT_ALLOWED = "not_allowed"
    HOST_ERROR = "host_error"


class CreationResult(BaseModel):
    """Outcome of one creation attempt."""

    status: CreationStatus
    discussion_id: Optional[str] = None
    reason: Optional[str] = None  # User-facing for NOT_ALLOWED, log-only for HOST_ERROR

    @property
    def ok(self) -> bool:
        return self.status == CreationStatus.CREATED


class DiscussionGateway:
    """Creates discussions through the host."""

    async def create(
        self,
        ctx: InvocationContext,
        title: str,
        parent_room: Room,
        seed_members: Optional[List[User]] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> CreationResult:
        """
        Create a discussion under `parent_room`, created by the invoking user.

        Args:
            ctx: Invocation context
            title: Discussion display name
            parent_room: Room the discussion hangs off
            seed_members: Users added at creation time
            metadata: Extra room metadata (e.g. originThreadId)

        Returns:
            CreationResult with the new discussion id, or the failure kind
        """
        slug = slugify(title)
        members = seed_members or []
        logger.info(
            f"Creating discussion '{title}' (slug={slug}) under room {parent_room.id} "
            f"for user {ctx.user.id} with {len(members)} seed member(s)"
        )

        try:
            discussion_id = await ctx.host.create_discussion(
                parent=parent_room,
                title=title,
                slug=slug,
                creator=ctx.user,
                members=members,
                metadata=metadata or {},
            )
        except HostPolicyError as e:
            logger.info(f"Host refused discussion creation: {e.reason}")
            return CreationResult(status=CreationStatus.NOT_ALLOWED, reason=e.reason)
        except Exception as e:
            logger.error(f"Unexpected host error creating discussion '{title}': {e}", exc_info=True)
            return CreationResult(status=CreationStatus.HOST_ERROR, reason=str(e))

        logger.info(f"Created discussion {discussion_id}")
        return CreationResult(status=CreationStatus.CREATED, discussion_id=discussion_id)
