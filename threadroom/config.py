from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    app_name: str = "Threadroom"
    debug: bool = False

    # Slack
    slack_bot_token: str = ""
    slack_signing_secret: str = ""  # Signature check is skipped when empty

    # Links
    site_url: str = "http://localhost:3000"
    room_url_template: str = "{site_url}/channel/{room_id}"
    message_url_template: str = "{site_url}/channel/{room_id}?msg={message_id}"

    # Command
    command_name: str = "discuss"
    notification_emoji: str = ":cloud:"

    # Association storage
    association_namespace: str = "thread-discussion-map"
    association_store_path: str = ""  # Empty keeps associations in memory
    claim_ttl_seconds: int = 120

    model_config = ConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
