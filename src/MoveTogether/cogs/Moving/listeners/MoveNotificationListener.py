import logging

import discord
from discord.ext import commands

from MoveTogether.cogs.Moving.views.MoveEmbedBuilder import MoveEmbedBuilder
from MoveTogether.dto.MoveReportDto import MoveReportDto
from MoveTogether.dto.SessionSnapshotDto import SessionSnapshotDto
from MoveTogether.share.enums.ApiPriority import ApiPriority
from MoveTogether.share.MoveTogetherBot import MoveTogetherBot

logger = logging.getLogger(__name__)


class MoveNotificationListener(commands.Cog):
    """
    监听 MoveCoordinator 分派的会话生命周期事件，并把结果发到频道中。
    """

    def __init__(self, bot: MoveTogetherBot):
        self.bot = bot

    def _get_channel(self, channel_id: int) -> discord.abc.Messageable | None:
        channel = self.bot.get_channel(channel_id)
        if isinstance(channel, discord.abc.Messageable):
            return channel
        logger.warning(f"无法找到可发送消息的频道 {channel_id}。")
        return None

    async def _delete_tracking_message(self, snapshot: SessionSnapshotDto):
        channel = self._get_channel(snapshot.channel_id)
        if channel is None or not hasattr(channel, "get_partial_message"):
            return
        try:
            await self.bot.api_scheduler.submit(
                channel.get_partial_message(  # type: ignore[attr-defined]
                    snapshot.tracking_message_id
                ).delete(),
                priority=ApiPriority.HOUSEKEEPING,
            )
        except discord.NotFound:
            logger.debug(f"募集消息 {snapshot.tracking_message_id} 已被删除。")

    @commands.Cog.listener()
    async def on_move_session_opened(self, snapshot: SessionSnapshotDto):
        logger.debug(f"会话 {snapshot.tracking_message_id} 已开启，等待反应。")

    @commands.Cog.listener()
    async def on_move_session_triggered(self, snapshot: SessionSnapshotDto):
        logger.debug(
            f"会话 {snapshot.tracking_message_id} 已由发起人 {snapshot.initiator_id} 触发，"
            f"确认者 {len(snapshot.confirmed_participants)} 人。"
        )

    @commands.Cog.listener()
    async def on_move_session_expired(self, snapshot: SessionSnapshotDto):
        """超时后删除募集消息并发送提示。"""
        try:
            await self._delete_tracking_message(snapshot)
            channel = self._get_channel(snapshot.channel_id)
            if channel is None:
                return
            await self.bot.api_scheduler.submit(
                channel.send(
                    MoveEmbedBuilder.build_expired_content(snapshot),
                    allowed_mentions=discord.AllowedMentions.none(),
                ),
                priority=ApiPriority.MESSAGE,
            )
        except Exception as e:
            logger.error(
                f"处理 'on_move_session_expired' 事件时出错 "
                f"(消息ID: {snapshot.tracking_message_id}): {e}",
                exc_info=True,
            )

    @commands.Cog.listener()
    async def on_move_session_completed(
        self, snapshot: SessionSnapshotDto, report: MoveReportDto
    ):
        """移动完成后删除募集消息并发送结果。"""
        try:
            await self._delete_tracking_message(snapshot)
            channel = self._get_channel(snapshot.channel_id)
            if channel is None:
                return
            await self.bot.api_scheduler.submit(
                channel.send(
                    content=MoveEmbedBuilder.build_result_content(snapshot, report),
                    embed=MoveEmbedBuilder.build_result_embed(report),
                    allowed_mentions=discord.AllowedMentions.none(),
                ),
                priority=ApiPriority.MESSAGE,
            )
        except Exception as e:
            logger.error(
                f"处理 'on_move_session_completed' 事件时出错 "
                f"(消息ID: {snapshot.tracking_message_id}): {e}",
                exc_info=True,
            )

    @commands.Cog.listener()
    async def on_move_session_cancelled(self, snapshot: SessionSnapshotDto):
        try:
            await self._delete_tracking_message(snapshot)
        except Exception as e:
            logger.error(
                f"处理 'on_move_session_cancelled' 事件时出错 "
                f"(消息ID: {snapshot.tracking_message_id}): {e}",
                exc_info=True,
            )
