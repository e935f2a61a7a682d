"""
Shared fixtures: an in-process chat host and a fresh association store.
"""

from collections import defaultdict
from typing import Any, Dict, List, Optional

import pytest

from threadroom.config import Settings
from threadroom.integrations.host import ChatHost
from threadroom.integrations.storage import InMemoryKeyValueStore
from threadroom.models.discussion import Message, Room, RoomType, User
from threadroom.services.association_store import AssociationStore
from threadroom.services.context import InvocationContext

ALICE = User(id="U1", username="alice", name="Alice")
BOB = User(id="U2", username="bob", name="Bob")
CAROL = User(id="U3", username="carol")

GENERAL = Room(id="C1", name="general", display_name="general", slug="general")
RANDOM = Room(id="C2", name="random", display_name="random", slug="random")
SECRET = Room(id="G1", name="secret", slug="secret", type=RoomType.PRIVATE_GROUP)
DIRECT = Room(id="DM1", type=RoomType.DIRECT)
EXISTING_DISCUSSION = Room(
    id="DSC1", name="old-topic", display_name="Old topic", slug="old-topic", parent_room_id="C1"
)

THREAD_ID = "1706123400.123456"


class FakeHost(ChatHost):
    """In-memory ChatHost that records every mutation."""

    def __init__(self):
        self.app_user: Optional[User] = User(id="UAPP", username="threadroom-bot")
        self.site_url = "https://chat.example.com/"
        self.users: Dict[str, User] = {}
        self.rooms: Dict[str, Room] = {}
        self.members: Dict[str, set] = defaultdict(set)
        self.messages: Dict[str, Message] = {}

        self.created: List[Dict[str, Any]] = []
        self.added: List[tuple] = []
        self.posted: List[Dict[str, Any]] = []
        self.notifications: List[Dict[str, Any]] = []

        self.create_error: Optional[Exception] = None
        self.notify_error: Optional[Exception] = None
        self.add_member_error: Optional[Exception] = None

    # Setup helpers

    def add_user(self, user: User) -> None:
        self.users[user.id] = user

    def add_room(self, room: Room, members: List[User] = ()) -> None:
        self.rooms[room.id] = room
        for member in members:
            self.members[room.id].add(member.id)

    def add_message(self, message: Message) -> None:
        self.messages[message.id] = message

    # ChatHost

    async def get_app_user(self) -> Optional[User]:
        return self.app_user

    async def get_user(self, user_id: str) -> Optional[User]:
        return self.users.get(user_id)

    async def get_room_by_id(self, room_id: str) -> Optional[Room]:
        return self.rooms.get(room_id)

    async def get_room_by_name(self, name: str) -> Optional[Room]:
        for room in self.rooms.values():
            if room.name == name:
                return room
        return None

    async def get_room_members(self, room_id: str) -> List[User]:
        return [self.users.get(uid) or User(id=uid, username=uid) for uid in self.members[room_id]]

    async def get_message(self, room_id: str, message_id: str) -> Optional[Message]:
        message = self.messages.get(message_id)
        if message and message.room_id == room_id:
            return message
        return None

    async def create_discussion(self, parent, title, slug, creator, members, metadata) -> str:
        if self.create_error:
            raise self.create_error
        discussion_id = f"D{len(self.created) + 1}"
        self.created.append(
            {
                "id": discussion_id,
                "parent": parent,
                "title": title,
                "slug": slug,
                "creator": creator,
                "members": list(members),
                "metadata": dict(metadata),
            }
        )
        self.add_room(
            Room(
                id=discussion_id,
                name=slug,
                display_name=title,
                slug=slug,
                type=parent.type,
                parent_room_id=parent.id,
            ),
            [creator, *members],
        )
        return discussion_id

    async def add_member(self, room_id: str, user: User) -> None:
        if self.add_member_error:
            raise self.add_member_error
        self.added.append((room_id, user.id))
        self.members[room_id].add(user.id)

    async def post_message(self, room_id, sender, text, attachments=None, thread_id=None) -> str:
        self.posted.append(
            {"room_id": room_id, "sender": sender, "text": text, "attachments": attachments}
        )
        return f"M{len(self.posted)}"

    async def notify_user(self, room, user, sender, text, attachments=None, emoji=None, thread_id=None) -> None:
        if self.notify_error:
            raise self.notify_error
        self.notifications.append(
            {
                "room": room,
                "user": user,
                "sender": sender,
                "text": text,
                "attachments": attachments,
                "emoji": emoji,
                "thread_id": thread_id,
            }
        )

    async def get_site_url(self) -> str:
        return self.site_url


@pytest.fixture
def settings():
    return Settings(_env_file=None, site_url="https://chat.example.com/")


@pytest.fixture
def host():
    """Workspace: alice and bob in #general, only alice in #random."""
    fake = FakeHost()
    for user in (ALICE, BOB, CAROL):
        fake.add_user(user)
    fake.add_room(GENERAL, [ALICE, BOB])
    fake.add_room(RANDOM, [ALICE])
    fake.add_room(SECRET, [BOB])
    fake.add_room(DIRECT, [ALICE, BOB])
    fake.add_room(EXISTING_DISCUSSION, [ALICE])
    fake.add_message(
        Message(id=THREAD_ID, room_id=GENERAL.id, sender=ALICE, text="Ship v2", thread_id=THREAD_ID)
    )
    return fake


@pytest.fixture
def kv_store():
    return InMemoryKeyValueStore()


@pytest.fixture
def store(kv_store):
    return AssociationStore(kv_store, namespace="thread-discussion-map", claim_ttl_seconds=120)


@pytest.fixture
def make_ctx(host, settings):
    """Build an InvocationContext for a user in a room."""

    def _make(room: Room = GENERAL, user: User = BOB, thread_id: Optional[str] = None):
        return InvocationContext(
            host=host,
            settings=settings,
            room=room,
            user=user,
            app_user=host.app_user,
            thread_id=thread_id,
        )

    return _make
