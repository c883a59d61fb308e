from discord.app_commands import AppCommandError


class InvalidTarget(AppCommandError):
    """
    移动目标未通过校验时抛出的异常（生成器频道、排除的频道、分类不符等）。
    消息会直接展示给发起命令的用户。
    """

    def __init__(self, message: str = "无法移动到指定的频道。"):
        super().__init__(message)
