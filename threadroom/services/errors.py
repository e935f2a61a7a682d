"""
Discussion Error Taxonomy

User-facing precondition errors carry the message the invoking user sees.
Host-level errors never reach the user verbatim.
"""

from typing import Optional


class DiscussError(Exception):
    """Base class for errors resolved into exactly one notification."""

    def __init__(self, message: str, thread_id: Optional[str] = None):
        super().__init__(message)
        self.user_message = message
        self.thread_id = thread_id


class InvalidContextError(DiscussError):
    """Target room is a discussion or a direct message."""


class MissingNameError(DiscussError):
    """No discussion name could be derived."""

    def __init__(self, message: str = "you must provide a discussion name", thread_id: Optional[str] = None):
        super().__init__(message, thread_id)


class RoomNotFoundError(DiscussError):
    """A `#room` reference did not resolve."""

    def __init__(self, room_name: str):
        super().__init__(f"room `{room_name}` not found")
        self.room_name = room_name


class NotAMemberError(DiscussError):
    """Invoking user does not belong to the target room."""

    def __init__(self, room_label: str):
        super().__init__(f"You are not a member of said room: {room_label}")
        self.room_label = room_label


class CreationInProgressError(DiscussError):
    """Another invocation holds the creation claim for this thread."""


class HostPolicyError(Exception):
    """Host refused the action (permissions, name collision, ...)."""

    def __init__(self, reason: str, code: Optional[str] = None):
        super().__init__(reason)
        self.reason = reason
        self.code = code


class PersistenceGap(Exception):
    """Discussion exists but its thread association could not be written."""

    def __init__(self, discussion_id: str, thread_id: str, cause: Optional[Exception] = None):
        super().__init__(
            f"association for thread {thread_id} -> discussion {discussion_id} not persisted: {cause}"
        )
        self.discussion_id = discussion_id
        self.thread_id = thread_id
        self.cause = cause
