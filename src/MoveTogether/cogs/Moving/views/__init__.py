from .MoveEmbedBuilder import FAILURE_LABELS, MoveEmbedBuilder

__all__ = [
    "FAILURE_LABELS",
    "MoveEmbedBuilder",
]
