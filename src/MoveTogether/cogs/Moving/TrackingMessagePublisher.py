import logging
from datetime import datetime

import discord

from MoveTogether.cogs.Moving.qo.OpenSessionQo import OpenSessionQo
from MoveTogether.cogs.Moving.views.MoveEmbedBuilder import MoveEmbedBuilder
from MoveTogether.share.DiscordUtils import DiscordUtils
from MoveTogether.share.enums.ApiPriority import ApiPriority
from MoveTogether.share.MoveTogetherBot import MoveTogetherBot

logger = logging.getLogger(__name__)


class TrackingMessagePublisher:
    """
    在发起命令的文字频道中发布募集消息，并附上反应表情。

    发布与添加表情分为两步，会话在消息发出后立即登记，
    不必等待添加表情的请求排队完成。
    """

    def __init__(self, bot: MoveTogetherBot):
        self.bot = bot

    async def _get_channel(self, channel_id: int) -> discord.abc.Messageable:
        channel = self.bot.get_channel(channel_id)
        if channel is None:
            channel = await self.bot.api_scheduler.submit(
                self.bot.fetch_channel(channel_id), priority=ApiPriority.MESSAGE
            )
        if not isinstance(channel, discord.abc.Messageable):
            raise RuntimeError(f"频道 {channel_id} 无法发送消息。")
        return channel

    async def publish(self, qo: OpenSessionQo, deadline: datetime) -> int:
        """发送募集消息，返回消息 ID。"""
        channel = await self._get_channel(qo.channel_id)

        voice_member_ids = None
        guild = self.bot.get_guild(qo.guild_id)
        if guild is not None and qo.source_voice_channel_id is not None:
            source = guild.get_channel(qo.source_voice_channel_id)
            if isinstance(source, (discord.VoiceChannel, discord.StageChannel)):
                voice_member_ids = DiscordUtils.get_voice_members(source)

        content = MoveEmbedBuilder.build_recruitment_content(
            initiator_id=qo.initiator_id,
            target=qo.target,
            timeout_minutes=self.bot.config.discord.move_timeout_minutes,
            deadline=deadline,
            emoji=self.bot.config.discord.reaction_emoji,
            source_channel_id=qo.source_voice_channel_id,
            voice_member_ids=voice_member_ids,
        )
        message: discord.Message = await self.bot.api_scheduler.submit(
            channel.send(content), priority=ApiPriority.INTERACTION
        )
        return message.id

    async def add_reaction(self, channel_id: int, message_id: int) -> None:
        """为募集消息添加反应表情。失败时只记录日志，用户仍然可以自己添加。"""
        emoji = self.bot.config.discord.reaction_emoji
        try:
            channel = await self._get_channel(channel_id)
            await self.bot.api_scheduler.submit(
                channel.get_partial_message(message_id).add_reaction(emoji),  # type: ignore[attr-defined]
                priority=ApiPriority.MESSAGE,
            )
        except (discord.HTTPException, RuntimeError) as e:
            logger.warning(f"为募集消息 {message_id} 添加反应失败: {e}")
