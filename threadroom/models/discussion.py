"""
Discussion Data Models

Platform-agnostic users, rooms and messages, plus the value objects that flow
through one /discuss invocation.
"""

from pydantic import BaseModel, Field
from enum import Enum
from typing import List, Optional, Dict, Any


class RoomType(str, Enum):
    """Room taxonomy as seen by the command."""

    CHANNEL = "channel"
    PRIVATE_GROUP = "private_group"
    DIRECT = "direct"


class User(BaseModel):
    """Chat user."""

    id: str
    username: str
    name: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name or self.username


class Room(BaseModel):
    """Chat room. A room with a parent is a discussion."""

    id: str
    name: Optional[str] = None
    display_name: Optional[str] = None
    slug: Optional[str] = None
    type: RoomType = RoomType.CHANNEL
    parent_room_id: Optional[str] = None

    @property
    def is_discussion(self) -> bool:
        return bool(self.parent_room_id)

    @property
    def is_direct(self) -> bool:
        return self.type == RoomType.DIRECT

    @property
    def label(self) -> str:
        """Best human-readable name for messages."""
        return self.display_name or self.slug or self.name or self.id


class Message(BaseModel):
    """Chat message, as returned by the host's message directory."""

    id: str
    room_id: str
    sender: User
    text: Optional[str] = None
    thread_id: Optional[str] = None
    attachments: List[Dict[str, Any]] = []


class ThreadDiscussionAssociation(BaseModel):
    """Durable fact that a discussion was created for a thread."""

    discussion_id: str
    thread_id: str
    created_fields: Dict[str, Any] = {}  # Snapshot of the discussion room

    @classmethod
    def from_room(cls, room: Room, thread_id: str) -> "ThreadDiscussionAssociation":
        return cls(
            discussion_id=room.id,
            thread_id=thread_id,
            created_fields=room.model_dump(mode="json", exclude={"id"}),
        )

    def to_record(self) -> Dict[str, Any]:
        """Stored shape: the room snapshot fields plus id and threadId."""
        return {**self.created_fields, "id": self.discussion_id, "threadId": self.thread_id}

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "ThreadDiscussionAssociation":
        fields = {k: v for k, v in record.items() if k not in ("id", "threadId")}
        return cls(
            discussion_id=record["id"],
            thread_id=record["threadId"],
            created_fields=fields,
        )


class CLIInvocation(BaseModel):
    """Parsed `[#roomName] <discussionName>` argument string."""

    room_name: Optional[str] = None
    discussion_name: Optional[str] = None


class DiscussionRequest(BaseModel):
    """One attempt to obtain a discussion. Never persisted."""

    source_thread_id: Optional[str] = None
    requested_name: Optional[str] = None
    target_room: Room
    invoking_user: User
    seed_members: List[User] = Field(default_factory=list)
