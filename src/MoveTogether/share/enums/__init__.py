from .ApiPriority import ApiPriority
from .MoveFailureKind import MoveFailureKind
from .ReactionOutcome import ReactionOutcome
from .SessionState import SessionState

__all__ = [
    "ApiPriority",
    "MoveFailureKind",
    "ReactionOutcome",
    "SessionState",
]
