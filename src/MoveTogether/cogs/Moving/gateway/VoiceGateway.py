from typing import Optional, Protocol

from MoveTogether.share.enums.ApiPriority import ApiPriority


class VoiceGateway(Protocol):
    """
    单个服务器内语音相关操作的抽象，MoveExecutor 只通过它与平台交互。

    move_user 的失败约定:
    - 单个成员的问题抛出 PlatformError，批量移动继续。
    - 目标频道本身失效抛出 BatchAbort，批量移动中止。
    """

    async def move_user(
        self, user_id: int, channel_id: int, *, priority: int = ApiPriority.BATCH_MOVE
    ) -> None: ...

    def get_voice_channel_id(self, user_id: int) -> Optional[int]:
        """成员当前所在的语音频道 ID，不在语音中时为 None。"""
        ...

    def is_voice_channel(self, channel_id: int) -> bool: ...

    def get_channel_category_id(self, channel_id: int) -> Optional[int]: ...

    async def rename_channel(self, channel_id: int, name: str) -> None: ...
