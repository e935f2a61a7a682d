# Shared data models
from threadroom.models.discussion import (
    User,
    Room,
    RoomType,
    Message,
    ThreadDiscussionAssociation,
    CLIInvocation,
    DiscussionRequest,
)
from threadroom.models.api_responses import (
    DiscussAction,
    DiscussCommandRequest,
    DiscussOutcome,
)

__all__ = [
    "User",
    "Room",
    "RoomType",
    "Message",
    "ThreadDiscussionAssociation",
    "CLIInvocation",
    "DiscussionRequest",
    "DiscussAction",
    "DiscussCommandRequest",
    "DiscussOutcome",
]
