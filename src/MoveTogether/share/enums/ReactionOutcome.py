from enum import Enum


class ReactionOutcome(str, Enum):
    """
    一次反应事件被会话协调器处理后的结果。
    """

    IGNORED = "ignored"  # 未追踪的消息或会话已不在募集中
    CONFIRMED = "confirmed"  # 新增一名确认者
    DUPLICATE = "duplicate"  # 重复反应，不计数
    TRIGGERED = "triggered"  # 发起人确认，开始移动
    EXPIRED = "expired"  # 反应晚于截止时间，会话随之超时
    DEFERRED = "deferred"  # 募集消息仍在发布中，登记会话后再处理
