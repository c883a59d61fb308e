from .MoveNotificationListener import MoveNotificationListener
from .ReactionRouter import ReactionRouter

__all__ = [
    "MoveNotificationListener",
    "ReactionRouter",
]
