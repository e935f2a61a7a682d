"""
Slack Chat Host

Responsibilities:
- Room directory: conversations.info / conversations.list / conversations.members
- Message directory: conversations.replies
- Room mutation: conversations.create + purpose/topic + conversations.invite
- Posting: chat.postMessage, chat.postEphemeral
- Mapping Slack policy errors to HostPolicyError

Slack has no native discussion rooms. A discussion is a regular channel whose
purpose carries `discussion-of:<parent_channel_id>`; that marker is how
discussions are recognized when read back.
"""

import asyncio
import logging
import re
from typing import Any, Dict, List, Optional

from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError

from threadroom.config import get_settings
from threadroom.integrations.host import ChatHost
from threadroom.models.discussion import Message, Room, RoomType, User
from threadroom.services.errors import HostPolicyError

logger = logging.getLogger(__name__)

PARENT_MARKER = "discussion-of:"
ORIGIN_MARKER = "thread:"
_PARENT_RE = re.compile(rf"{re.escape(PARENT_MARKER)}(\S+)")

MAX_CHANNEL_NAME = 80
MAX_TOPIC = 250
PAGE_SIZE = 200

# Slack error codes that mean "you may not do this", not "Slack is broken"
POLICY_ERRORS = {
    "name_taken": "A room with that name already exists",
    "restricted_action": "You are not allowed to create rooms in this workspace",
    "restricted_action_read_only_channel": "This room is read-only",
    "invalid_name": "That name can't be used for a room",
    "invalid_name_specials": "That name can't be used for a room",
    "invalid_name_maxlength": "That name is too long for a room",
    "invalid_name_required": "A room name is required",
    "not_in_channel": "The app is not a member of that room",
    "is_archived": "That room is archived",
    "missing_scope": "The app is missing a permission for this action",
    "not_allowed_token_type": "The app is not allowed to perform this action",
}

# Discussion attachment colors → Slack attachment colors
COLOR_MAP = {"green": "good", "red": "danger", "yellow": "warning"}


def parse_parent_room_id(purpose: Optional[str]) -> Optional[str]:
    """Extract the parent channel id from a discussion's purpose text."""
    if not purpose:
        return None
    match = _PARENT_RE.search(purpose)
    return match.group(1) if match else None


def build_purpose(parent_id: str, origin_thread_id: Optional[str] = None) -> str:
    purpose = f"{PARENT_MARKER}{parent_id}"
    if origin_thread_id:
        purpose += f" {ORIGIN_MARKER}{origin_thread_id}"
    return purpose


class SlackHost(ChatHost):
    """ChatHost backed by the Slack Web API."""

    def __init__(self, client: Optional[WebClient] = None):
        settings = get_settings()
        self.client = client or WebClient(token=settings.slack_bot_token)
        self.settings = settings
        self._app_user: Optional[User] = None

    async def _call(self, method: str, ignore: frozenset = frozenset(), **kwargs) -> Optional[Any]:
        """
        Call a WebClient method off the event loop.

        Args:
            method: WebClient method name, e.g. "conversations_info"
            ignore: Slack error codes treated as success (returns None)

        Raises:
            HostPolicyError: Slack refused the call on policy grounds
            SlackApiError: any other Slack API failure
        """
        try:
            return await asyncio.to_thread(getattr(self.client, method), **kwargs)
        except SlackApiError as e:
            code = e.response.get("error", "") if e.response is not None else ""
            if code in ignore:
                logger.debug(f"Slack {method} returned {code}, ignored")
                return None
            if code in POLICY_ERRORS:
                raise HostPolicyError(POLICY_ERRORS[code], code=code) from e
            logger.error(f"Slack API error in {method}: {code}")
            raise

    # Identity

    async def get_app_user(self) -> Optional[User]:
        if self._app_user is None:
            result = await self._call("auth_test")
            user_id = result.get("user_id")
            if not user_id:
                return None
            self._app_user = User(id=user_id, username=result.get("user") or user_id)
        return self._app_user

    async def get_user(self, user_id: str) -> Optional[User]:
        result = await self._call("users_info", ignore=frozenset({"user_not_found"}), user=user_id)
        if result is None:
            return None
        data = result.get("user") or {}
        profile = data.get("profile") or {}
        return User(
            id=data.get("id", user_id),
            username=data.get("name") or user_id,
            name=profile.get("display_name") or data.get("real_name") or None,
        )

    # Room directory

    def _to_room(self, channel: Dict[str, Any]) -> Room:
        if channel.get("is_im") or channel.get("is_mpim"):
            room_type = RoomType.DIRECT
        elif channel.get("is_private"):
            room_type = RoomType.PRIVATE_GROUP
        else:
            room_type = RoomType.CHANNEL

        parent_id = parse_parent_room_id((channel.get("purpose") or {}).get("value"))
        topic = (channel.get("topic") or {}).get("value")
        return Room(
            id=channel["id"],
            name=channel.get("name"),
            display_name=(topic if parent_id and topic else channel.get("name")),
            slug=channel.get("name"),
            type=room_type,
            parent_room_id=parent_id,
        )

    async def get_room_by_id(self, room_id: str) -> Optional[Room]:
        result = await self._call(
            "conversations_info", ignore=frozenset({"channel_not_found"}), channel=room_id
        )
        if result is None:
            return None
        return self._to_room(result["channel"])

    async def get_room_by_name(self, name: str) -> Optional[Room]:
        name = name.lstrip("#").lower()
        cursor = None
        while True:
            result = await self._call(
                "conversations_list",
                types="public_channel,private_channel",
                exclude_archived=True,
                limit=PAGE_SIZE,
                cursor=cursor,
            )
            for channel in result.get("channels", []):
                if channel.get("name") == name:
                    return self._to_room(channel)
            cursor = (result.get("response_metadata") or {}).get("next_cursor")
            if not cursor:
                return None

    async def get_room_members(self, room_id: str) -> List[User]:
        members: List[User] = []
        cursor = None
        while True:
            result = await self._call(
                "conversations_members", channel=room_id, limit=PAGE_SIZE, cursor=cursor
            )
            members.extend(User(id=uid, username=uid) for uid in result.get("members", []))
            cursor = (result.get("response_metadata") or {}).get("next_cursor")
            if not cursor:
                return members

    # Message directory

    async def get_message(self, room_id: str, message_id: str) -> Optional[Message]:
        result = await self._call(
            "conversations_replies",
            ignore=frozenset({"thread_not_found", "message_not_found"}),
            channel=room_id,
            ts=message_id,
            limit=1,
            inclusive=True,
        )
        messages = (result or {}).get("messages") or []
        if not messages:
            return None

        raw = messages[0]
        sender_id = raw.get("user") or raw.get("bot_id") or "unknown"
        sender = await self.get_user(sender_id) if raw.get("user") else None
        return Message(
            id=raw["ts"],
            room_id=room_id,
            sender=sender or User(id=sender_id, username=raw.get("username") or sender_id),
            text=raw.get("text"),
            thread_id=raw.get("thread_ts"),
            attachments=raw.get("attachments", []),
        )

    # Room mutation

    async def create_discussion(
        self,
        parent: Room,
        title: str,
        slug: str,
        creator: User,
        members: List[User],
        metadata: Dict[str, Any],
    ) -> str:
        result = await self._call(
            "conversations_create",
            name=slug[:MAX_CHANNEL_NAME],
            is_private=parent.type == RoomType.PRIVATE_GROUP,
        )
        channel_id = result["channel"]["id"]
        logger.info(f"Created Slack channel {channel_id} as discussion of {parent.id}")

        await self._call(
            "conversations_setPurpose",
            channel=channel_id,
            purpose=build_purpose(parent.id, metadata.get("originThreadId")),
        )
        await self._call("conversations_setTopic", channel=channel_id, topic=title[:MAX_TOPIC])

        user_ids = list(dict.fromkeys([creator.id] + [m.id for m in members]))
        await self._call(
            "conversations_invite",
            ignore=frozenset({"already_in_channel", "cant_invite_self"}),
            channel=channel_id,
            users=",".join(user_ids),
        )
        return channel_id

    async def add_member(self, room_id: str, user: User) -> None:
        await self._call(
            "conversations_invite",
            ignore=frozenset({"already_in_channel", "cant_invite_self"}),
            channel=room_id,
            users=user.id,
        )

    # Posting

    @staticmethod
    def _slack_attachments(attachments: Optional[List[Dict[str, Any]]]) -> Optional[List[Dict[str, Any]]]:
        if not attachments:
            return None
        return [
            {**a, "color": COLOR_MAP.get(a.get("color"), a.get("color"))} if "color" in a else a
            for a in attachments
        ]

    async def post_message(
        self,
        room_id: str,
        sender: User,
        text: str,
        attachments: Optional[List[Dict[str, Any]]] = None,
        thread_id: Optional[str] = None,
    ) -> str:
        result = await self._call(
            "chat_postMessage",
            channel=room_id,
            text=text,
            attachments=self._slack_attachments(attachments),
            username=sender.display_name,
            thread_ts=thread_id,
        )
        return result.get("ts", "")

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
        await self._call(
            "chat_postEphemeral",
            channel=room.id,
            user=user.id,
            text=text,
            attachments=self._slack_attachments(attachments),
            username=sender.display_name,
            icon_emoji=emoji,
            thread_ts=thread_id,
        )

    async def get_site_url(self) -> str:
        return self.settings.site_url
