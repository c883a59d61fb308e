from enum import IntEnum


class ApiPriority(IntEnum):
    """
    提交给 APIScheduler 的请求优先级，数字越小越优先。
    """

    INTERACTION = 1  # 对交互的响应，必须在 3 秒内完成
    INITIATOR_MOVE = 2  # 发起人的移动
    BATCH_MOVE = 3  # 其余成员的移动与频道改名
    MESSAGE = 5  # 募集消息、结果通知
    HOUSEKEEPING = 8  # 删除消息、同步命令
