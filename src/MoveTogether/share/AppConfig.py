import json
import logging
from pathlib import Path
from typing import FrozenSet, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from MoveTogether.share.BaseDto import BaseDto

logger = logging.getLogger(__name__)


class DiscordConfig(BaseDto):
    """
    config.json 中 `discord` 部分的设置。
    """

    move_timeout_minutes: int = Field(gt=0, description="募集的有效时间（分钟）")
    move_wait_seconds: int = Field(ge=0, description="移动发起人后、移动其他成员前的等待秒数")
    vc_create_channel: int = Field(description="自动创建 VC 的生成器频道 ID")
    vc_category: int = Field(description="允许作为移动目标的 VC 所在分类 ID")
    vc_ignored_channels: FrozenSet[int] = Field(
        default=frozenset(), description="不作为移动目标的频道 ID"
    )
    reaction_emoji: str = Field(default="🤚", description="表示参加移动的反应表情")

    @field_validator("vc_ignored_channels", mode="before")
    @classmethod
    def _coerce_ignored_channels(cls, value):
        # JSON 中频道 ID 既可能是数字也可能是字符串
        if value is None:
            return frozenset()
        return frozenset(int(v) for v in value)


class AppConfig(BaseSettings):
    """
    应用的全部设置。启动时读取一次，之后不可修改。

    以 config.json 为基础，`APP_` 前缀的环境变量优先，嵌套项用 `__` 分隔，
    例如 `APP_DISCORD__MOVE_WAIT_SECONDS=5`。
    """

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_nested_delimiter="__",
        extra="ignore",
        frozen=True,
    )

    discord: DiscordConfig
    proxy: Optional[str] = None

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # 排在前面的来源优先：环境变量覆盖设置文件
        return env_settings, init_settings

    @classmethod
    def load(cls, path: str | Path) -> "AppConfig":
        """
        从 JSON 文件读取设置。

        Raises:
            FileNotFoundError: 设置文件不存在。
            ValueError: 设置文件不是合法的 JSON，或缺少必需的项目。
        """
        path = Path(path)
        with path.open("r", encoding="utf-8") as f:
            try:
                raw = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"设置文件 {path} 不是合法的 JSON: {e}") from e
        if not isinstance(raw, dict):
            raise ValueError(f"设置文件 {path} 的顶层必须是对象")

        try:
            config = cls(**raw)
        except ValidationError as e:
            raise ValueError(f"设置文件 {path} 的内容不正确: {e}") from e

        logger.debug(f"已从 {path} 读取设置。")
        return config
