from typing import Optional

from pydantic import model_validator

from MoveTogether.share.BaseDto import BaseDto


class MoveTargetDto(BaseDto):
    """
    移动目标。

    - channel_id: 移动到已有的语音频道 (/move_to)。
    - new_channel_name: 通过生成器频道新建语音频道并改名 (/move)。
    两者必须且只能指定一个。
    """

    channel_id: Optional[int] = None
    new_channel_name: Optional[str] = None

    @model_validator(mode="after")
    def _exactly_one(self) -> "MoveTargetDto":
        if (self.channel_id is None) == (self.new_channel_name is None):
            raise ValueError("channel_id 与 new_channel_name 必须且只能指定一个")
        return self

    def describe(self) -> str:
        """用于消息中的目标描述。"""
        if self.new_channel_name is not None:
            return f"新建VC「{self.new_channel_name}」"
        return f"<#{self.channel_id}>"
