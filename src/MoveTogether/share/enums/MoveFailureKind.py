from enum import Enum


class MoveFailureKind(str, Enum):
    """
    单个成员移动失败的原因。
    """

    NOT_IN_VOICE = "not_in_voice"  # 成员不在语音频道中
    FORBIDDEN = "forbidden"  # 没有移动权限
    RATE_LIMITED = "rate_limited"  # 触发了速率限制
    UNKNOWN = "unknown"
