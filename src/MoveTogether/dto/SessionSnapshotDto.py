from datetime import datetime
from typing import List

from MoveTogether.dto.MoveTargetDto import MoveTargetDto
from MoveTogether.share.BaseDto import BaseDto
from MoveTogether.share.enums.SessionState import SessionState


class SessionSnapshotDto(BaseDto):
    """
    会话在某一时刻的只读快照，随生命周期事件一起分派给监听器。
    """

    tracking_message_id: int
    channel_id: int
    guild_id: int
    initiator_id: int
    target: MoveTargetDto
    state: SessionState
    deadline: datetime
    confirmed_participants: List[int]
