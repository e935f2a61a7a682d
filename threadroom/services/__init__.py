# Command services
from threadroom.services.association_store import AssociationStore
from threadroom.services.creation_gateway import CreationResult, CreationStatus, DiscussionGateway
from threadroom.services.discuss_command import DiscussCommand
from threadroom.services.discussion_resolver import DiscussionResolver
from threadroom.services.notifier import Notifier
from threadroom.services.target_resolver import TargetResolver

__all__ = [
    "AssociationStore",
    "CreationResult",
    "CreationStatus",
    "DiscussionGateway",
    "DiscussCommand",
    "DiscussionResolver",
    "Notifier",
    "TargetResolver",
]
