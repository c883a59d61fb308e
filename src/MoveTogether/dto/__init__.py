from .MoveFailureDto import MoveFailureDto
from .MoveReportDto import MoveReportDto
from .MoveTargetDto import MoveTargetDto
from .SessionSnapshotDto import SessionSnapshotDto

__all__ = [
    "MoveFailureDto",
    "MoveReportDto",
    "MoveTargetDto",
    "SessionSnapshotDto",
]
