"""
Per-invocation context.

Built fresh for every /discuss call and passed explicitly to each service;
nothing about the current request is kept on long-lived objects.
"""

from dataclasses import dataclass
from typing import Optional

from threadroom.config import Settings
from threadroom.integrations.host import ChatHost
from threadroom.models.discussion import Room, User


@dataclass(frozen=True)
class InvocationContext:
    """Who ran the command, where, and through which host."""

    host: ChatHost
    settings: Settings
    room: Room
    user: User
    app_user: User
    thread_id: Optional[str] = None
