from .SessionStore import SessionStore

__all__ = [
    "SessionStore",
]
