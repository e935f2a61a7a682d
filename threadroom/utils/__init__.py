"""
Utility package exports
"""

from threadroom.utils.helpers import slugify, build_room_url, build_message_url

__all__ = ["slugify", "build_room_url", "build_message_url"]
