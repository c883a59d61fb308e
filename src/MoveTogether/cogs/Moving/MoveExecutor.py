import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Sequence

from MoveTogether.cogs.Moving.exceptions.BatchAbort import BatchAbort
from MoveTogether.cogs.Moving.exceptions.InvalidTarget import InvalidTarget
from MoveTogether.cogs.Moving.exceptions.PlatformError import PlatformError
from MoveTogether.cogs.Moving.gateway.VoiceGateway import VoiceGateway
from MoveTogether.cogs.Moving.TargetValidator import TargetValidator
from MoveTogether.dto.MoveFailureDto import MoveFailureDto
from MoveTogether.dto.MoveReportDto import MoveReportDto
from MoveTogether.share.enums.ApiPriority import ApiPriority

logger = logging.getLogger(__name__)


class _BatchState:
    """一次批量移动过程中的累计结果。"""

    def __init__(self, initiator_id: int, rest: Sequence[int]):
        self.initiator_id = initiator_id
        self.pending: List[int] = list(rest)  # 尚未完成移动尝试的成员
        self.target_channel_id: Optional[int] = None
        self.moved: List[int] = []
        self.failures: List[MoveFailureDto] = []
        self.skipped: List[int] = []
        self.abort_reason: Optional[str] = None

    @property
    def initiator_attempted(self) -> bool:
        return self.initiator_id in self.moved or any(
            failure.user_id == self.initiator_id for failure in self.failures
        )

    def abort(self, reason: str) -> None:
        self.abort_reason = reason
        if self.initiator_attempted:
            self.skipped = list(self.pending)
        else:
            self.skipped = [self.initiator_id, *self.pending]

    def to_report(self) -> MoveReportDto:
        return MoveReportDto(
            target_channel_id=self.target_channel_id,
            moved=self.moved,
            failures=self.failures,
            skipped=self.skipped,
            aborted=self.abort_reason is not None,
            abort_reason=self.abort_reason,
        )


class MoveExecutor:
    """
    执行一次批量移动：先移动发起人，等待 move_wait_seconds 后再移动其余成员。

    一次性全部移动容易触发速率限制，也无法让大家看到功能已经开始生效，
    因此发起人总是最先移动。
    """

    def __init__(
        self,
        gateway: VoiceGateway,
        validator: TargetValidator,
        wait_seconds: float,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.gateway = gateway
        self.validator = validator
        self.wait_seconds = wait_seconds
        self._sleep = sleep
        self._batch: Optional[_BatchState] = None

    async def execute(
        self, target_channel_id: int, ordered_participants: Sequence[int]
    ) -> MoveReportDto:
        """
        把成员移动到已有的语音频道。

        Args:
            target_channel_id: 目标频道。
            ordered_participants: 第一个是发起人，其余按反应顺序。
        """

        async def resolve_target(_initiator_id: int, _initiator_moved: bool) -> int:
            return target_channel_id

        return await self._run(target_channel_id, ordered_participants, resolve_target)

    async def execute_into_new_channel(
        self, channel_name: str, ordered_participants: Sequence[int]
    ) -> MoveReportDto:
        """
        先把发起人移入VC生成器频道，由生成器创建新的VC；
        等待后找到发起人所在的新VC，改名后再把其余成员移过去。
        """
        return await self._run(
            self.validator.config.vc_create_channel,
            ordered_participants,
            lambda initiator_id, initiator_moved: self._resolve_created_channel(
                initiator_id, initiator_moved, channel_name
            ),
        )

    async def _resolve_created_channel(
        self, initiator_id: int, initiator_moved: bool, channel_name: str
    ) -> int:
        if not initiator_moved:
            raise BatchAbort("发起人未能进入VC生成器，无法创建新的VC")
        channel_id = self.gateway.get_voice_channel_id(initiator_id)
        if channel_id is None:
            raise BatchAbort("发起人不在语音频道中，无法确定新建的VC")
        if channel_id == self.validator.config.vc_create_channel:
            raise BatchAbort("VC生成器没有创建新的频道")

        try:
            self.validator.validate_channel(channel_id, self.gateway)
        except InvalidTarget as e:
            raise BatchAbort(f"新建的VC不可用: {e}") from e

        try:
            await self.gateway.rename_channel(channel_id, channel_name)
        except PlatformError as e:
            # 改名失败不影响移动
            logger.warning(f"修改频道 {channel_id} 的名称失败 ({e.kind.value})，继续移动。")
        return channel_id

    async def _move_one(
        self, batch: _BatchState, user_id: int, channel_id: int, priority: int
    ) -> None:
        try:
            await self.gateway.move_user(user_id, channel_id, priority=priority)
        except PlatformError as e:
            logger.info(f"移动成员 {user_id} 到频道 {channel_id} 失败: {e.kind.value}")
            batch.failures.append(MoveFailureDto(user_id=user_id, kind=e.kind))
        else:
            batch.moved.append(user_id)

    def interrupted_report(self, reason: str) -> MoveReportDto:
        """
        批量移动被中途取消时，根据已经完成的部分生成报告。
        正在进行中的那一次移动结果未知，计入未移动的成员。
        """
        batch = self._batch
        if batch is None:
            return MoveReportDto(target_channel_id=None, aborted=True, abort_reason=reason)
        batch.abort(reason)
        return batch.to_report()

    async def _run(
        self,
        first_hop_channel_id: int,
        ordered_participants: Sequence[int],
        resolve_target: Callable[[int, bool], Awaitable[int]],
    ) -> MoveReportDto:
        if not ordered_participants:
            return MoveReportDto(target_channel_id=None)

        initiator_id, *rest = ordered_participants
        batch = self._batch = _BatchState(initiator_id, rest)
        try:
            await self._move_one(
                batch, initiator_id, first_hop_channel_id, ApiPriority.INITIATOR_MOVE
            )

            # 无论发起人是否移动成功，都等待一段时间
            await self._sleep(self.wait_seconds)

            target_channel_id = await resolve_target(initiator_id, initiator_id in batch.moved)
            batch.target_channel_id = target_channel_id
            while batch.pending:
                await self._move_one(
                    batch, batch.pending[0], target_channel_id, ApiPriority.BATCH_MOVE
                )
                batch.pending.pop(0)
        except BatchAbort as e:
            logger.warning(f"批量移动中止: {e.reason}")
            batch.abort(e.reason)

        report = batch.to_report()
        logger.info(
            f"批量移动结束: 目标 {report.target_channel_id}，尝试 {report.attempted}，"
            f"成功 {report.succeeded}，失败 {report.failed}，跳过 {len(report.skipped)}"
        )
        return report
