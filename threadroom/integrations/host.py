"""Abstract interface for the chat host the /discuss command runs inside."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from threadroom.models.discussion import Message, Room, User


class ChatHost(ABC):
    """Capabilities consumed from the chat platform.

    Implementations raise HostPolicyError when the platform refuses an
    action on policy grounds; every other failure propagates unchanged.
    """

    @abstractmethod
    async def get_app_user(self) -> Optional[User]:
        """Return the identity the application posts as."""
        ...

    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[User]:
        ...

    @abstractmethod
    async def get_room_by_id(self, room_id: str) -> Optional[Room]:
        ...

    @abstractmethod
    async def get_room_by_name(self, name: str) -> Optional[Room]:
        ...

    @abstractmethod
    async def get_room_members(self, room_id: str) -> List[User]:
        ...

    @abstractmethod
    async def get_message(self, room_id: str, message_id: str) -> Optional[Message]:
        """Fetch a single message (e.g. a thread's original message).

        Args:
            room_id: Room the message lives in
            message_id: Message identifier (a thread id is its root message id)

        Returns:
            Message if found, None otherwise
        """
        ...

    @abstractmethod
    async def create_discussion(
        self,
        parent: Room,
        title: str,
        slug: str,
        creator: User,
        members: List[User],
        metadata: Dict[str, Any],
    ) -> str:
        """Create a discussion sub-room of `parent` and return its id.

        The new room must be visible to lookups as soon as this returns.
        """
        ...

    @abstractmethod
    async def add_member(self, room_id: str, user: User) -> None:
        """Add a user to a room. Adding an existing member is not an error."""
        ...

    @abstractmethod
    async def post_message(
        self,
        room_id: str,
        sender: User,
        text: str,
        attachments: Optional[List[Dict[str, Any]]] = None,
        thread_id: Optional[str] = None,
    ) -> str:
        ...

    @abstractmethod
    async def notify_user(
        self,
        room: Room,
        user: User,
        sender: User,
        text: str,
        attachments: Optional[List[Dict[str, Any]]] = None,
        emoji: Optional[str] = None,
        thread_id: Optional[str] = None,
    ) -> None:
        """Deliver an ephemeral message only `user` can see."""
        ...

    @abstractmethod
    async def get_site_url(self) -> str:
        ...
