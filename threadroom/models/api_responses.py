"""
API Request/Response Models

Pydantic models for the command payload and its outcome.
"""

from pydantic import BaseModel, Field
from typing import Optional
from enum import Enum


class DiscussAction(str, Enum):
    """How a /discuss invocation ended."""

    CREATED = "created"
    JOINED = "joined"
    REJECTED = "rejected"  # Precondition or policy failure, user was notified
    FAILED = "failed"  # Unexpected host failure


class DiscussCommandRequest(BaseModel):
    """One /discuss invocation as delivered by the host."""

    room_id: str = Field(..., description="Room the command was run in")
    user_id: str = Field(..., description="Invoking user")
    text: str = Field("", description="Raw argument string after the command")
    thread_id: Optional[str] = Field(
        None, description="Thread the command was run in, if any"
    )


class DiscussOutcome(BaseModel):
    """Result of one /discuss invocation."""

    action: DiscussAction = Field(..., description="created, joined, rejected or failed")
    discussion_id: Optional[str] = Field(None, description="Created or joined discussion")
    discussion_url: Optional[str] = Field(None, description="Link to the discussion")
    reason: Optional[str] = Field(
        None, description="Message shown to the user for rejected/failed outcomes"
    )
