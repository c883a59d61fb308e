import logging

import discord

logger = logging.getLogger(__name__)


async def safeDefer(interaction: discord.Interaction, ephemeral: bool = True):
    """
    一个安全的“占坑”函数。
    它会检查交互是否已被响应，如果没有，就立即以指定的方式延迟响应

    :param interaction: 要延迟的交互对象。
    :param ephemeral: 是否将“占坑”消息设置为仅自己可见。默认为 True。
    """
    if interaction.response.is_done():
        return
    try:
        await interaction.response.defer(ephemeral=ephemeral, thinking=True)
    except discord.errors.InteractionResponded:
        # is_done() 检查与 defer() 之间交互被其他任务响应
        logger.warning(f"safeDefer: 交互 {interaction.id} 在竞态条件下已被响应。")
