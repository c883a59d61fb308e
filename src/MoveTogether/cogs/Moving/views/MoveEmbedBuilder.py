from datetime import datetime
from typing import List, Optional

import discord

from MoveTogether.dto.MoveReportDto import MoveReportDto
from MoveTogether.dto.MoveTargetDto import MoveTargetDto
from MoveTogether.dto.SessionSnapshotDto import SessionSnapshotDto
from MoveTogether.share.enums.MoveFailureKind import MoveFailureKind
from MoveTogether.share.TimeUtils import TimeUtils

FAILURE_LABELS = {
    MoveFailureKind.NOT_IN_VOICE: "不在语音频道中",
    MoveFailureKind.FORBIDDEN: "没有移动权限",
    MoveFailureKind.RATE_LIMITED: "请求过于频繁",
    MoveFailureKind.UNKNOWN: "未知错误",
}

# Embed description 的长度上限为 4096
_MAX_DESCRIPTION_LENGTH = 4000


class MoveEmbedBuilder:
    """
    构建移动相关的消息内容和 Embed。
    """

    @staticmethod
    def _join_mentions(user_ids: List[int], separator: str) -> str:
        text = separator.join(f"<@{user_id}>" for user_id in user_ids)
        if len(text) > _MAX_DESCRIPTION_LENGTH:
            text = text[:_MAX_DESCRIPTION_LENGTH].rsplit(separator, 1)[0] + separator + "…"
        return text

    @staticmethod
    def build_recruitment_content(
        initiator_id: int,
        target: MoveTargetDto,
        timeout_minutes: int,
        deadline: datetime,
        emoji: str,
        source_channel_id: Optional[int] = None,
        voice_member_ids: Optional[List[int]] = None,
    ) -> str:
        """
        构建募集消息的正文。会提及发起人所在语音频道中的成员。
        """
        lines = []
        if source_channel_id is not None:
            mentions = "".join(f"<@{user_id}>" for user_id in voice_member_ids or [])
            lines.append(f"致 <#{source_channel_id}> 中的各位 ({mentions})")
            lines.append("")
        lines.append(f"<@{initiator_id}> 发起了一起移动的募集。")
        lines.append(
            f"想移动到 {target.describe()} 的人，请在 {timeout_minutes} 分钟内"
            f"（{TimeUtils.format_discord_timestamp(deadline)}截止）点击 {emoji} 反应！"
        )
        return "\n".join(lines)

    @staticmethod
    def build_instruction_message(target: MoveTargetDto, emoji: str) -> str:
        """发给发起人的仅自己可见的说明。"""
        return (
            "已开始募集一起移动的成员。\n"
            f"你点击 {emoji} 后，将和点击了 {emoji} 的成员一起移动到 {target.describe()}。"
        )

    @staticmethod
    def build_expired_content(snapshot: SessionSnapshotDto) -> str:
        return (
            f"<@{snapshot.initiator_id}> 发起的移动到 {snapshot.target.describe()} 的募集已超时。"
        )

    @staticmethod
    def build_result_content(snapshot: SessionSnapshotDto, report: MoveReportDto) -> str:
        """结果消息的正文。"""
        destination = (
            f"<#{report.target_channel_id}>"
            if report.target_channel_id is not None
            else snapshot.target.describe()
        )
        others = sum(1 for user_id in report.moved if user_id != snapshot.initiator_id)
        if not report.moved:
            return f"<@{snapshot.initiator_id}> 发起的移动到 {destination} 未能完成。"
        if snapshot.initiator_id not in report.moved:
            return f"<@{snapshot.initiator_id}> 未能移动，{others} 名成员移动到了 {destination}。"
        return f"<@{snapshot.initiator_id}> 和 {others} 名成员一起移动到了 {destination}。"

    @staticmethod
    def build_result_embed(report: MoveReportDto) -> discord.Embed:
        """
        构建移动结果的 Embed，列出移动成功、失败和被跳过的成员。
        """
        if report.aborted or report.failures:
            color = discord.Color.orange()
        else:
            color = discord.Color.green()
        embed = discord.Embed(
            title="移动的成员",
            description=MoveEmbedBuilder._join_mentions(report.moved, "\n") or "无",
            color=color,
        )

        if report.failures:
            failure_lines = [
                f"<@{failure.user_id}>: {FAILURE_LABELS.get(failure.kind, failure.kind.value)}"
                for failure in report.failures
            ]
            embed.add_field(name="移动失败", value="\n".join(failure_lines)[:1024], inline=False)

        if report.aborted:
            value = report.abort_reason or "目标频道不可用"
            if report.skipped:
                value += "\n未移动: " + MoveEmbedBuilder._join_mentions(report.skipped, " ")
            embed.add_field(name="移动中止", value=value[:1024], inline=False)

        embed.set_footer(
            text=(
                f"尝试 {report.attempted} 人 · 成功 {report.succeeded} 人 · "
                f"失败 {report.failed} 人"
            )
        )
        return embed
