from .ApiScheduler import APIScheduler
from .AppConfig import AppConfig, DiscordConfig
from .BaseDto import BaseDto
from .DiscordUtils import DiscordUtils
from .LoggingConfigurator import LoggingConfigurator
from .MoveTogetherBot import MoveTogetherBot
from .SafeDefer import safeDefer
from .TimeUtils import TimeUtils

__all__ = [
    "APIScheduler",
    "AppConfig",
    "BaseDto",
    "DiscordConfig",
    "DiscordUtils",
    "LoggingConfigurator",
    "MoveTogetherBot",
    "safeDefer",
    "TimeUtils",
]
