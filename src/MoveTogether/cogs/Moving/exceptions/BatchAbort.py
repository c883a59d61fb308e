class BatchAbort(Exception):
    """
    移动目标本身在批量移动过程中失效（例如频道被删除）。
    剩余成员不再尝试移动。
    """

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason
