from MoveTogether.dto.MoveTargetDto import MoveTargetDto
from MoveTogether.share.BaseDto import BaseDto


class OpenSessionQo(BaseDto):
    """
    用于开启移动会话的查询对象。
    """

    initiator_id: int
    target: MoveTargetDto
    channel_id: int  # 发布募集消息的文字频道
    guild_id: int
    source_voice_channel_id: int | None = None  # 发起人当前所在的语音频道
