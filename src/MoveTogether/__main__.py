import logging
import os
import sys

import aiorun
import discord
from discord import app_commands
from dotenv import load_dotenv

from MoveTogether.cogs.Moving.exceptions import InvalidTarget, NotInVoiceChannel
from MoveTogether.share.ApiScheduler import APIScheduler
from MoveTogether.share.AppConfig import AppConfig
from MoveTogether.share.enums.ApiPriority import ApiPriority
from MoveTogether.share.LoggingConfigurator import LoggingConfigurator
from MoveTogether.share.MoveTogetherBot import MoveTogetherBot

# --- .env 和 日志配置 ---
load_dotenv()
log_level = os.getenv("LOG_LEVEL", "INFO")
configurator = LoggingConfigurator(rootLogLevel=log_level)
configurator.configure()

logger = logging.getLogger("MoveTogether")
# --- 日志配置结束 ---


if sys.platform != "win32":
    try:
        import uvloop

        uvloop.install()
        logger.info("已成功启用 uvloop 作为 asyncio 事件循环")
    except ImportError:
        logger.warning("尝试启用 uvloop 失败，将使用默认事件循环")


bot = None


async def shutdown(loop):
    """专门用于清理资源的关闭回调函数"""
    global bot
    logger.info("收到关闭信号，正在关闭 Bot 资源...")
    if bot and bot.move_coordinator:
        # 会话不会被持久化，关闭前取消所有募集
        await bot.move_coordinator.cancel_all()

    if bot:
        await bot.close()

    if bot and bot.api_scheduler:
        await bot.api_scheduler.stop()

    logger.info("所有资源已清理，程序退出。")


async def main_async():
    """主函数，设置并运行 Bot"""
    global bot
    intents = discord.Intents.default()
    intents.members = True
    intents.voice_states = True
    intents.reactions = True

    config_path = os.getenv("CONFIG_PATH", "config.json")
    try:
        config = AppConfig.load(config_path)
    except (OSError, ValueError) as e:
        logger.error(f"读取设置文件失败: {e}")
        return

    bot = MoveTogetherBot(command_prefix="!", intents=intents, proxy=config.proxy)

    bot.api_scheduler = APIScheduler()
    bot.config = config

    @bot.event
    async def setup_hook():
        assert bot is not None
        bot.api_scheduler.start()

        logger.info("开始加载所有 Cogs 模块...")
        from MoveTogether.cogs import Moving

        try:
            await Moving.setup(bot)
            logger.info("所有 Cogs 模块加载完成。")
        except Exception as e:
            logger.exception(f"加载 Cogs 模块时发生错误: {e}")

        logger.info("正在同步命令...")
        await bot.api_scheduler.submit(bot.tree.sync(), priority=ApiPriority.HOUSEKEEPING)
        logger.info("命令已同步。")

    @bot.event
    async def on_ready():
        assert bot is not None
        logger.info(f"以 {bot.user} 的身份登录")

        logger.info("------ Bot 已准备就绪 ------")

    @bot.tree.error
    async def on_app_command_error(
        interaction: discord.Interaction, error: app_commands.AppCommandError
    ):
        """
        全局应用命令错误处理器。
        """
        assert bot is not None
        original_error = getattr(error, "original", error)
        if isinstance(original_error, (InvalidTarget, NotInVoiceChannel)):
            # 已由 Cog 的错误处理器回复
            return
        logger.error(f"在应用命令中发生未处理的错误: {error}", exc_info=True)
        if not interaction.response.is_done():
            await bot.api_scheduler.submit(
                interaction.response.send_message(
                    "发生了一个未知错误，请联系管理员", ephemeral=True
                ),
                priority=ApiPriority.INTERACTION,
            )

    token = os.getenv("DISCORD_TOKEN")
    if not token or token == "YOUR_BOT_TOKEN_HERE":
        logger.error("错误: 未找到或未配置 DISCORD_TOKEN。")
        return

    await bot.start(token)


def main():
    """主入口函数"""
    aiorun.run(main_async(), shutdown_callback=shutdown, stop_on_unhandled_errors=True)


if __name__ == "__main__":
    main()
