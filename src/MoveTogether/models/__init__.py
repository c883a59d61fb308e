from .MoveSession import MoveSession

__all__ = [
    "MoveSession",
]
