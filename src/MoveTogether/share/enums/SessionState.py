from enum import IntEnum


class SessionState(IntEnum):
    """移动会话状态"""

    PENDING = 0  # 募集中
    TRIGGERED = 1  # 已触发，正在移动
    COMPLETED = 2  # 已完成
    EXPIRED = 3  # 已超时
    CANCELLED = 4  # 已取消

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.COMPLETED, SessionState.EXPIRED, SessionState.CANCELLED)
