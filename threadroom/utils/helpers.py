"""
Shared Utility Functions

Slug derivation and link building used by the command services.
"""

import re
import logging
from typing import Optional

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")
_DISALLOWED_RE = re.compile(r"[^a-zA-Z0-9_.\-]")


def slugify(value: Optional[str], separator: str = "-") -> str:
    """
    Derive a URL-safe slug from a display name.

    - Lower-cases the text
    - Collapses runs of whitespace into a single separator
    - Strips every character outside [a-zA-Z0-9_.-]

    Examples:
        "Ship v2"            → "ship-v2"
        "  Launch   plan! "  → "launch-plan"

    Args:
        value: Display name (None is treated as empty)
        separator: Replacement for whitespace runs

    Returns:
        Slug, possibly empty if nothing survives
    """
    if not value:
        return ""

    collapsed = _WHITESPACE_RE.sub(separator, value.strip().lower())
    return _DISALLOWED_RE.sub("", collapsed)


def _base_url(site_url: str) -> str:
    return site_url.rstrip("/")


def build_room_url(site_url: str, room_id: str, template: str = "{site_url}/channel/{room_id}") -> str:
    """Link to a room, e.g. the join link for an existing discussion."""
    return template.format(site_url=_base_url(site_url), room_id=room_id)


def build_message_url(
    site_url: str,
    room_id: str,
    message_id: str,
    template: str = "{site_url}/channel/{room_id}?msg={message_id}",
) -> str:
    """Permalink to a single message, used to point back at a source thread."""
    return template.format(
        site_url=_base_url(site_url), room_id=room_id, message_id=message_id
    )
