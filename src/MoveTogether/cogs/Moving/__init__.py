import asyncio
import logging
from functools import partial

from MoveTogether.services.SessionStore import SessionStore
from MoveTogether.share.MoveTogetherBot import MoveTogetherBot

from .Cog import Moving
from .gateway import DiscordVoiceGateway
from .listeners import MoveNotificationListener, ReactionRouter
from .MoveCoordinator import MoveCoordinator
from .MoveExecutor import MoveExecutor
from .TrackingMessagePublisher import TrackingMessagePublisher

__all__ = [
    "Moving",
    "MoveCoordinator",
    "MoveExecutor",
    "MoveNotificationListener",
    "ReactionRouter",
    "TrackingMessagePublisher",
]

logger = logging.getLogger(__name__)


async def setup(bot: MoveTogetherBot):
    """
    设置并加载所有与一起移动相关的 Cogs。
    """
    coordinator = MoveCoordinator(
        config=bot.config.discord,
        store=SessionStore(),
        gateway_factory=partial(DiscordVoiceGateway, bot),
        publisher=TrackingMessagePublisher(bot),
        dispatch=bot.dispatch,
    )
    bot.move_coordinator = coordinator

    cogs_to_load = [
        Moving(bot, coordinator),
        ReactionRouter(bot, coordinator),
        MoveNotificationListener(bot),
    ]

    await asyncio.gather(*[bot.add_cog(cog) for cog in cogs_to_load])
    logger.info(f"成功为 Moving 模块加载了 {len(cogs_to_load)} 个 Cogs。")
