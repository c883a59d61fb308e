import logging

from MoveTogether.cogs.Moving.exceptions.InvalidTarget import InvalidTarget
from MoveTogether.cogs.Moving.gateway.VoiceGateway import VoiceGateway
from MoveTogether.dto.MoveTargetDto import MoveTargetDto
from MoveTogether.share.AppConfig import DiscordConfig

logger = logging.getLogger(__name__)

MAX_CHANNEL_NAME_LENGTH = 100


class TargetValidator:
    """
    校验移动目标是否允许使用。
    """

    def __init__(self, config: DiscordConfig):
        self.config = config

    def validate_channel(self, channel_id: int, gateway: VoiceGateway) -> None:
        """
        校验已有的语音频道。

        Raises:
            InvalidTarget: 频道是生成器频道、在排除列表中、不是语音频道，或不在指定分类中。
        """
        if channel_id == self.config.vc_create_channel:
            raise InvalidTarget("不能移动到VC生成器频道。")
        if channel_id in self.config.vc_ignored_channels:
            raise InvalidTarget("该频道被设置为不可移动。")
        if not gateway.is_voice_channel(channel_id):
            raise InvalidTarget("指定的频道不是语音频道，或已不存在。")
        if gateway.get_channel_category_id(channel_id) != self.config.vc_category:
            raise InvalidTarget("该频道不在允许移动的分类中。")

    def validate_new_channel_name(self, name: str) -> None:
        if not name or not name.strip():
            raise InvalidTarget("请指定新建频道的名称。")
        if len(name) > MAX_CHANNEL_NAME_LENGTH:
            raise InvalidTarget(f"频道名称不能超过 {MAX_CHANNEL_NAME_LENGTH} 个字符。")

    def validate_target(self, target: MoveTargetDto, gateway: VoiceGateway) -> None:
        if target.new_channel_name is not None:
            self.validate_new_channel_name(target.new_channel_name)
        else:
            assert target.channel_id is not None
            self.validate_channel(target.channel_id, gateway)
        logger.debug(f"移动目标 {target.describe()} 校验通过。")
