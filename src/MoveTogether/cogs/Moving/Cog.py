import logging

import discord
from discord import app_commands
from discord.ext import commands

from MoveTogether.cogs.Moving.exceptions import InvalidTarget, NotInVoiceChannel
from MoveTogether.cogs.Moving.MoveCoordinator import MoveCoordinator
from MoveTogether.cogs.Moving.qo.OpenSessionQo import OpenSessionQo
from MoveTogether.cogs.Moving.views.MoveEmbedBuilder import MoveEmbedBuilder
from MoveTogether.dto.MoveTargetDto import MoveTargetDto
from MoveTogether.share import MoveTogetherBot, safeDefer
from MoveTogether.share.enums.ApiPriority import ApiPriority

logger = logging.getLogger(__name__)


class Moving(commands.Cog):
    """
    处理发起一起移动的命令。
    """

    def __init__(self, bot: MoveTogetherBot, coordinator: MoveCoordinator):
        self.bot = bot
        self.coordinator = coordinator

    async def cog_unload(self):
        """卸载时取消所有募集中的会话。"""
        await self.coordinator.cancel_all()

    async def _reply(self, interaction: discord.Interaction, content: str):
        if interaction.response.is_done():
            await self.bot.api_scheduler.submit(
                interaction.followup.send(content, ephemeral=True),
                priority=ApiPriority.INTERACTION,
            )
        else:
            await self.bot.api_scheduler.submit(
                interaction.response.send_message(content, ephemeral=True),
                priority=ApiPriority.INTERACTION,
            )

    async def cog_app_command_error(
        self, interaction: discord.Interaction, error: app_commands.AppCommandError
    ):
        """
        这个 Cog 的局部错误处理器，只负责回复用户。
        未预期的错误由全局错误处理器记录日志。
        """
        original_error = getattr(error, "original", error)
        if isinstance(original_error, (InvalidTarget, NotInVoiceChannel)):
            logger.debug(f"拒绝了用户 {interaction.user.id} 的移动请求: {original_error}")
            await self._reply(interaction, str(original_error))
        else:
            await self._reply(interaction, "发生了一个未知错误，请联系管理员。")

    @staticmethod
    def _require_voice_member(
        interaction: discord.Interaction,
    ) -> tuple[discord.Member, discord.VoiceChannel | discord.StageChannel]:
        """获取发起人及其所在的语音频道。"""
        if interaction.guild is None or not isinstance(interaction.user, discord.Member):
            raise NotInVoiceChannel("只能在服务器中使用此命令。")
        member = interaction.user
        if member.voice is None or member.voice.channel is None:
            raise NotInVoiceChannel()
        return member, member.voice.channel

    async def _start_session(
        self,
        interaction: discord.Interaction,
        member: discord.Member,
        source: discord.VoiceChannel | discord.StageChannel,
        target: MoveTargetDto,
    ):
        assert interaction.guild is not None and interaction.channel is not None
        await safeDefer(interaction)

        qo = OpenSessionQo(
            initiator_id=member.id,
            target=target,
            channel_id=interaction.channel.id,
            guild_id=interaction.guild.id,
            source_voice_channel_id=source.id,
        )
        await self.coordinator.open(qo)

        await self.bot.api_scheduler.submit(
            interaction.followup.send(
                MoveEmbedBuilder.build_instruction_message(
                    target, self.bot.config.discord.reaction_emoji
                ),
                ephemeral=True,
            ),
            priority=ApiPriority.INTERACTION,
        )

    @app_commands.command(name="move_to", description="募集成员一起移动到已有的语音频道")
    @app_commands.describe(channel="移动目标语音频道")
    @app_commands.guild_only()
    async def move_to(self, interaction: discord.Interaction, channel: discord.VoiceChannel):
        """
        处理 /move_to 命令。发起人必须在语音频道中，并且有进入目标频道的权限。
        """
        member, source = self._require_voice_member(interaction)
        if not channel.permissions_for(member).connect:
            raise InvalidTarget("你没有进入该频道的权限。")
        if channel.id == source.id:
            raise InvalidTarget("你已经在该频道中了。")

        await self._start_session(
            interaction, member, source, MoveTargetDto(channel_id=channel.id)
        )

    @app_commands.command(name="move", description="新建语音频道并募集成员一起移动")
    @app_commands.describe(channel_name="新建的语音频道名称")
    @app_commands.guild_only()
    async def move(
        self,
        interaction: discord.Interaction,
        channel_name: app_commands.Range[str, 1, 100],
    ):
        """
        处理 /move 命令。新频道由VC生成器创建，移动时再改名。
        """
        member, source = self._require_voice_member(interaction)
        await self._start_session(
            interaction, member, source, MoveTargetDto(new_channel_name=channel_name)
        )
