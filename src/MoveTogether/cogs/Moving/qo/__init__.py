from .OpenSessionQo import OpenSessionQo

__all__ = [
    "OpenSessionQo",
]
