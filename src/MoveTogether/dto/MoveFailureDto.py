from MoveTogether.share.BaseDto import BaseDto
from MoveTogether.share.enums.MoveFailureKind import MoveFailureKind


class MoveFailureDto(BaseDto):
    """
    单个成员的移动失败记录。
    """

    user_id: int
    kind: MoveFailureKind
