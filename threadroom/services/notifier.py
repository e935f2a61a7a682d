"""
Notification Sink

Sends a single ephemeral message back to the invoking user. Delivery is best
effort: failures are logged, never raised.
"""

import logging
from typing import Optional

from threadroom.services.context import InvocationContext

logger = logging.getLogger(__name__)

NOTIFICATION_COLOR = "red"


class Notifier:
    """Formats and delivers user-facing notices for one command."""

    async def notify(
        self,
        ctx: InvocationContext,
        text: str,
        thread_id: Optional[str] = None,
    ) -> bool:
        """
        Notify the invoking user in the invoking room.

        Args:
            ctx: Invocation context (recipient, room and sender identity)
            text: Message body
            thread_id: Deliver inside this thread when set

        Returns:
            True if the host accepted the notification
        """
        try:
            await ctx.host.notify_user(
                room=ctx.room,
                user=ctx.user,
                sender=ctx.app_user,
                text=text,
                attachments=[{"color": NOTIFICATION_COLOR, "text": text}],
                emoji=ctx.settings.notification_emoji,
                thread_id=thread_id,
            )
            return True
        except Exception as e:
            logger.warning(f"Failed to notify user {ctx.user.id} in room {ctx.room.id}: {e}")
            return False
