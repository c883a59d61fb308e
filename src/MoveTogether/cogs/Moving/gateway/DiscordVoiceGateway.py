import logging
from typing import Optional

import discord

from MoveTogether.cogs.Moving.exceptions.BatchAbort import BatchAbort
from MoveTogether.cogs.Moving.exceptions.PlatformError import PlatformError
from MoveTogether.share.enums.ApiPriority import ApiPriority
from MoveTogether.share.DiscordUtils import DiscordUtils
from MoveTogether.share.enums.MoveFailureKind import MoveFailureKind
from MoveTogether.share.MoveTogetherBot import MoveTogetherBot

logger = logging.getLogger(__name__)

# Discord JSON 错误码
UNKNOWN_CHANNEL = 10003
UNKNOWN_MEMBER = 10007
TARGET_NOT_CONNECTED_TO_VOICE = 40032

VoiceLike = (discord.VoiceChannel, discord.StageChannel)


class DiscordVoiceGateway:
    """
    基于 discord.py 的 VoiceGateway 实现，绑定到一个服务器。
    所有 REST 调用都经由 APIScheduler 提交。
    """

    def __init__(self, bot: MoveTogetherBot, guild_id: int):
        self.bot = bot
        self.guild_id = guild_id

    def _get_guild(self) -> Optional[discord.Guild]:
        return self.bot.get_guild(self.guild_id)

    def _get_voice_channel(
        self, channel_id: int
    ) -> Optional[discord.VoiceChannel | discord.StageChannel]:
        guild = self._get_guild()
        if guild is None:
            return None
        channel = guild.get_channel(channel_id)
        if isinstance(channel, VoiceLike):
            return channel
        return None

    async def _get_member(self, guild: discord.Guild, user_id: int) -> discord.Member:
        member = guild.get_member(user_id)
        if member is not None:
            return member
        try:
            return await self.bot.api_scheduler.submit(
                guild.fetch_member(user_id), priority=ApiPriority.BATCH_MOVE
            )
        except discord.NotFound as e:
            raise PlatformError(MoveFailureKind.NOT_IN_VOICE, f"成员 {user_id} 不在服务器中") from e
        except discord.HTTPException as e:
            raise self._to_platform_error(e) from e

    @staticmethod
    def _to_platform_error(error: discord.HTTPException) -> PlatformError:
        if isinstance(error, discord.Forbidden):
            return PlatformError(MoveFailureKind.FORBIDDEN, str(error))
        if error.status == 429:
            return PlatformError(MoveFailureKind.RATE_LIMITED, str(error))
        if error.code in (UNKNOWN_MEMBER, TARGET_NOT_CONNECTED_TO_VOICE):
            return PlatformError(MoveFailureKind.NOT_IN_VOICE, str(error))
        return PlatformError(MoveFailureKind.UNKNOWN, str(error))

    async def move_user(
        self, user_id: int, channel_id: int, *, priority: int = ApiPriority.BATCH_MOVE
    ) -> None:
        guild = self._get_guild()
        if guild is None:
            raise BatchAbort("无法获取服务器信息")

        channel = self._get_voice_channel(channel_id)
        if channel is None:
            raise BatchAbort("移动目标频道已不存在")

        member = await self._get_member(guild, user_id)
        if member.voice is None or member.voice.channel is None:
            raise PlatformError(MoveFailureKind.NOT_IN_VOICE, f"成员 {user_id} 不在语音频道中")
        if member.voice.channel.id == channel_id:
            logger.debug(f"成员 {user_id} 已经在频道 {channel_id} 中，无需移动。")
            return

        try:
            await self.bot.api_scheduler.submit(
                member.move_to(channel, reason="一起移动"), priority=priority
            )
        except discord.NotFound as e:
            if e.code == UNKNOWN_CHANNEL:
                raise BatchAbort("移动目标频道已不存在") from e
            raise self._to_platform_error(e) from e
        except discord.HTTPException as e:
            raise self._to_platform_error(e) from e

    def get_voice_channel_id(self, user_id: int) -> Optional[int]:
        guild = self._get_guild()
        if guild is None:
            return None
        channel = DiscordUtils.get_member_voice_channel(guild, user_id)
        return channel.id if channel is not None else None

    def is_voice_channel(self, channel_id: int) -> bool:
        return self._get_voice_channel(channel_id) is not None

    def get_channel_category_id(self, channel_id: int) -> Optional[int]:
        guild = self._get_guild()
        if guild is None:
            return None
        channel = guild.get_channel(channel_id)
        if channel is None:
            return None
        return channel.category_id

    async def rename_channel(self, channel_id: int, name: str) -> None:
        channel = self._get_voice_channel(channel_id)
        if channel is None:
            raise BatchAbort("新建的VC已不存在")
        try:
            await self.bot.api_scheduler.submit(
                channel.edit(name=name, reason="一起移动"), priority=ApiPriority.BATCH_MOVE
            )
        except discord.NotFound as e:
            raise BatchAbort("新建的VC已不存在") from e
        except discord.HTTPException as e:
            raise self._to_platform_error(e) from e
