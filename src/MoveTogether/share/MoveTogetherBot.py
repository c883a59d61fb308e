from typing import TYPE_CHECKING, Optional

from discord.ext import commands

from MoveTogether.share.ApiScheduler import APIScheduler
from MoveTogether.share.AppConfig import AppConfig

if TYPE_CHECKING:
    from MoveTogether.cogs.Moving.MoveCoordinator import MoveCoordinator


class MoveTogetherBot(commands.Bot):
    """
    自定义 Bot 基类。
    它继承自 commands.Bot，并为项目中的自定义属性（如 api_scheduler）
    提供一个集中的定义，以便在整个项目中获得准确的类型提示。
    """

    api_scheduler: APIScheduler
    config: AppConfig
    move_coordinator: Optional["MoveCoordinator"] = None
