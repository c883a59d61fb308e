from .BatchAbort import BatchAbort
from .InvalidTarget import InvalidTarget
from .NotInVoiceChannel import NotInVoiceChannel
from .PlatformError import PlatformError

__all__ = [
    "BatchAbort",
    "InvalidTarget",
    "NotInVoiceChannel",
    "PlatformError",
]
