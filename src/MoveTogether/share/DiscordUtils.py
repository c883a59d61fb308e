from typing import List, Optional

import discord


class DiscordUtils:
    """
    提供 Discord API 相关的静态工具方法。
    """

    @staticmethod
    def get_member_voice_channel(
        guild: discord.Guild, user_id: int
    ) -> Optional[discord.VoiceChannel | discord.StageChannel]:
        """
        从缓存中获取成员当前所在的语音频道。

        Returns:
            成员所在的语音频道；成员不在语音中或不在缓存中时返回 None。
        """
        member = guild.get_member(user_id)
        if member is None or member.voice is None:
            return None
        return member.voice.channel

    @staticmethod
    def get_voice_members(channel: discord.VoiceChannel | discord.StageChannel) -> List[int]:
        """
        获取语音频道中所有成员的 ID（不含 Bot）。
        """
        return [member.id for member in channel.members if not member.bot]
