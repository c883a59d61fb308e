import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List

from MoveTogether.dto.MoveTargetDto import MoveTargetDto
from MoveTogether.dto.SessionSnapshotDto import SessionSnapshotDto
from MoveTogether.share.enums.SessionState import SessionState

logger = logging.getLogger(__name__)

# 允许的状态迁移，状态只会单向前进
_ALLOWED_TRANSITIONS = {
    SessionState.PENDING: {SessionState.TRIGGERED, SessionState.EXPIRED, SessionState.CANCELLED},
    SessionState.TRIGGERED: {SessionState.COMPLETED},
}


@dataclass
class MoveSession:
    """
    一次移动请求的内存状态，只由 SessionStore 持有。
    """

    tracking_message_id: int
    channel_id: int
    guild_id: int
    initiator_id: int
    target: MoveTargetDto
    created_at: datetime
    deadline: datetime
    state: SessionState = SessionState.PENDING
    _participants: dict[int, None] = field(default_factory=dict, init=False, repr=False)

    @property
    def confirmed_participants(self) -> List[int]:
        """按反应到达顺序排列、去重后的确认者。"""
        return list(self._participants)

    def add_participant(self, user_id: int) -> bool:
        """
        记录一名确认者。仅在募集中且此前未记录时生效。

        Returns:
            是否新增了确认者。
        """
        if self.state != SessionState.PENDING:
            return False
        if user_id == self.initiator_id or user_id in self._participants:
            return False
        self._participants[user_id] = None
        return True

    def transition(self, expected: SessionState, new: SessionState) -> bool:
        """
        比较并提交状态迁移：只有当前状态等于 expected 时才迁移到 new。
        同一事件循环中检查与赋值之间没有 await，因此竞争双方只会有一方成功。

        Returns:
            迁移是否成功。失败的一方应当什么都不做。
        """
        if new not in _ALLOWED_TRANSITIONS.get(expected, set()):
            raise ValueError(f"不允许的状态迁移: {expected.name} -> {new.name}")
        if self.state != expected:
            logger.debug(
                f"会话 {self.tracking_message_id} 的状态迁移 {expected.name} -> {new.name} "
                f"失败，当前状态为 {self.state.name}"
            )
            return False
        self.state = new
        return True

    def ordered_participants(self) -> List[int]:
        """移动顺序：发起人在前，其余按反应顺序。"""
        return [self.initiator_id, *self._participants]

    def to_snapshot(self) -> SessionSnapshotDto:
        return SessionSnapshotDto(
            tracking_message_id=self.tracking_message_id,
            channel_id=self.channel_id,
            guild_id=self.guild_id,
            initiator_id=self.initiator_id,
            target=self.target,
            state=self.state,
            deadline=self.deadline,
            confirmed_participants=self.confirmed_participants,
        )
