from MoveTogether.share.enums.MoveFailureKind import MoveFailureKind


class PlatformError(Exception):
    """
    移动单个成员时 Discord 返回的错误。只影响该成员，批量移动继续进行。
    """

    def __init__(self, kind: MoveFailureKind, message: str = ""):
        """
        Args:
            kind: 失败的种类。
            message: 补充说明，仅用于日志。
        """
        super().__init__(message or kind.value)
        self.kind = kind
