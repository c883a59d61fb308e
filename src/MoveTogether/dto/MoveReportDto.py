from typing import List, Optional

from MoveTogether.dto.MoveFailureDto import MoveFailureDto
from MoveTogether.share.BaseDto import BaseDto


class MoveReportDto(BaseDto):
    """
    一次批量移动的结果，交给通知层渲染。
    """

    target_channel_id: Optional[int]  # 新建 VC 未能确定时为 None
    moved: List[int] = []  # 移动成功的成员，按尝试顺序
    failures: List[MoveFailureDto] = []
    skipped: List[int] = []  # 批量中止后未尝试的成员
    aborted: bool = False
    abort_reason: Optional[str] = None

    @property
    def attempted(self) -> int:
        return len(self.moved) + len(self.failures)

    @property
    def succeeded(self) -> int:
        return len(self.moved)

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def failed_user_ids(self) -> List[int]:
        return [failure.user_id for failure in self.failures]
