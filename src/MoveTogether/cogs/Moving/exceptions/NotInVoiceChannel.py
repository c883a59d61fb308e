from discord.app_commands import AppCommandError


class NotInVoiceChannel(AppCommandError):
    """
    发起命令的用户不在语音频道中时抛出的异常。
    """

    def __init__(self, message: str = "请先加入语音频道再发起移动。"):
        super().__init__(message)
