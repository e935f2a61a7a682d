"""
Shared service instances for the API routes.

Overridable through FastAPI's dependency_overrides in tests.
"""

import logging
from functools import lru_cache

from threadroom.config import get_settings
from threadroom.integrations.host import ChatHost
from threadroom.integrations.slack.client import SlackHost
from threadroom.integrations.storage import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStore,
)
from threadroom.services.association_store import AssociationStore
from threadroom.services.discuss_command import DiscussCommand

logger = logging.getLogger(__name__)


@lru_cache
def get_host() -> ChatHost:
    return SlackHost()


@lru_cache
def get_key_value_store() -> KeyValueStore:
    settings = get_settings()
    if settings.association_store_path:
        logger.info(f"Using JSON association store at {settings.association_store_path}")
        return JsonFileKeyValueStore(settings.association_store_path)
    logger.warning("ASSOCIATION_STORE_PATH not set; associations are kept in memory only")
    return InMemoryKeyValueStore()


def get_discuss_command() -> DiscussCommand:
    return DiscussCommand(
        host=get_host(),
        store=AssociationStore(get_key_value_store()),
        settings=get_settings(),
    )
