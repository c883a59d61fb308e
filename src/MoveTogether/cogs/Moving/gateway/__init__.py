from .DiscordVoiceGateway import DiscordVoiceGateway
from .VoiceGateway import VoiceGateway

__all__ = [
    "DiscordVoiceGateway",
    "VoiceGateway",
]
