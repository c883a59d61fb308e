import logging

import discord
from discord.ext import commands

from MoveTogether.cogs.Moving.MoveCoordinator import MoveCoordinator
from MoveTogether.share.enums.ReactionOutcome import ReactionOutcome
from MoveTogether.share.MoveTogetherBot import MoveTogetherBot

logger = logging.getLogger(__name__)


class ReactionRouter(commands.Cog):
    """
    把募集消息上的反应转交给 MoveCoordinator，其它消息上的反应直接丢弃。
    不保存任何状态，也不等待批量移动完成。
    """

    def __init__(self, bot: MoveTogetherBot, coordinator: MoveCoordinator):
        self.bot = bot
        self.coordinator = coordinator

    def _should_forward(self, payload: discord.RawReactionActionEvent) -> bool:
        if self.bot.user is not None and payload.user_id == self.bot.user.id:
            return False
        if payload.member is not None and payload.member.bot:
            return False
        if str(payload.emoji) != self.bot.config.discord.reaction_emoji:
            return False
        # 募集消息发布期间，会话尚未登记，反应交给 coordinator 暂存
        return self.coordinator.is_tracked(payload.message_id) or self.coordinator.is_publishing

    @commands.Cog.listener()
    async def on_raw_reaction_add(self, payload: discord.RawReactionActionEvent):
        if not self._should_forward(payload):
            return

        try:
            outcome = self.coordinator.on_reaction(payload.message_id, payload.user_id)
        except Exception as e:
            logger.error(
                f"处理消息 {payload.message_id} 上用户 {payload.user_id} 的反应时出错: {e}",
                exc_info=True,
            )
            return

        if outcome != ReactionOutcome.IGNORED:
            logger.debug(
                f"消息 {payload.message_id} 上用户 {payload.user_id} 的反应: {outcome.value}"
            )
