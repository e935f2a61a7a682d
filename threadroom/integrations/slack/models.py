"""
Slack Data Models
"""

from pydantic import BaseModel

from threadroom.models.api_responses import DiscussCommandRequest


class SlackCommandPayload(BaseModel):
    """Form fields Slack posts for a slash command invocation."""

    command: str
    text: str = ""
    user_id: str
    channel_id: str
    team_id: str | None = None
    response_url: str | None = None
    trigger_id: str | None = None
    thread_ts: str | None = None  # Present when invoked from a thread context

    @property
    def command_name(self) -> str:
        return self.command.lstrip("/")

    def to_command_request(self) -> DiscussCommandRequest:
        return DiscussCommandRequest(
            room_id=self.channel_id,
            user_id=self.user_id,
            text=self.text.strip(),
            thread_id=self.thread_ts or None,
        )
