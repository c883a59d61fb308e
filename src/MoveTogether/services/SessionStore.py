import logging
from typing import Dict, List, Optional

from MoveTogether.models.MoveSession import MoveSession
from MoveTogether.share.enums.SessionState import SessionState

logger = logging.getLogger(__name__)


class SessionStore:
    """
    进程内的会话表：募集消息 ID -> 会话。

    这是唯一的共享可变状态，所有修改都经由 MoveCoordinator 调用这里的方法完成。
    会话不会被持久化，进程重启后全部丢失。
    """

    def __init__(self):
        self._sessions: Dict[int, MoveSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, tracking_message_id: int) -> bool:
        return tracking_message_id in self._sessions

    def add(self, session: MoveSession) -> None:
        """
        登记一个新会话。

        Raises:
            ValueError: 同一消息已经有会话。
        """
        if session.tracking_message_id in self._sessions:
            raise ValueError(f"消息 {session.tracking_message_id} 已经存在移动会话")
        self._sessions[session.tracking_message_id] = session
        logger.debug(f"登记会话 {session.tracking_message_id}，当前共 {len(self._sessions)} 个")

    def get(self, tracking_message_id: int) -> Optional[MoveSession]:
        return self._sessions.get(tracking_message_id)

    def add_participant(self, tracking_message_id: int, user_id: int) -> Optional[bool]:
        """
        为会话记录确认者。

        Returns:
            会话不存在时返回 None，否则返回是否新增了确认者。
        """
        session = self._sessions.get(tracking_message_id)
        if session is None:
            return None
        return session.add_participant(user_id)

    def try_transition(
        self, tracking_message_id: int, expected: SessionState, new: SessionState
    ) -> Optional[MoveSession]:
        """
        原子地迁移会话状态，进入终止状态的会话会立即从表中移除。

        Returns:
            迁移成功时返回会话，否则返回 None（会话不存在或已被其他一方迁移）。
        """
        session = self._sessions.get(tracking_message_id)
        if session is None or not session.transition(expected, new):
            return None
        if new.is_terminal:
            self._sessions.pop(tracking_message_id, None)
        return session

    def pending_ids(self) -> List[int]:
        return [
            message_id
            for message_id, session in self._sessions.items()
            if session.state == SessionState.PENDING
        ]
