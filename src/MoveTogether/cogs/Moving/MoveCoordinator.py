import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol

from MoveTogether.cogs.Moving.gateway.VoiceGateway import VoiceGateway
from MoveTogether.cogs.Moving.MoveExecutor import MoveExecutor
from MoveTogether.cogs.Moving.qo.OpenSessionQo import OpenSessionQo
from MoveTogether.cogs.Moving.TargetValidator import TargetValidator
from MoveTogether.dto.MoveReportDto import MoveReportDto
from MoveTogether.models.MoveSession import MoveSession
from MoveTogether.services.SessionStore import SessionStore
from MoveTogether.share.AppConfig import DiscordConfig
from MoveTogether.share.enums.ReactionOutcome import ReactionOutcome
from MoveTogether.share.enums.SessionState import SessionState
from MoveTogether.share.TimeUtils import TimeUtils

logger = logging.getLogger(__name__)

SHUTDOWN_ABORT_REASON = "Bot 正在关闭"


class MessagePublisher(Protocol):
    """发布募集消息。publish 返回消息 ID，add_reaction 为消息添加反应表情。"""

    async def publish(self, qo: OpenSessionQo, deadline: datetime) -> int: ...

    async def add_reaction(self, channel_id: int, message_id: int) -> None: ...


class MoveCoordinator:
    """
    管理移动会话的整个生命周期。

    - open: 校验目标，发布募集消息，登记会话并开始倒计时，最后添加反应表情。
      消息发出到会话登记之间收到的反应会被暂存，登记后按顺序补上。
    - on_reaction: 记录确认者；发起人的反应触发批量移动。
    - on_timeout: 倒计时结束，会话超时。
    超时与发起人的反应通过会话状态的比较并提交决出唯一的胜者，失败的一方什么都不做。

    会话状态的所有修改都经由这里完成，生命周期事件通过 dispatch 分派:
    move_session_opened / move_session_triggered / move_session_expired /
    move_session_completed / move_session_cancelled。
    """

    def __init__(
        self,
        config: DiscordConfig,
        store: SessionStore,
        gateway_factory: Callable[[int], VoiceGateway],
        publisher: MessagePublisher,
        dispatch: Callable[..., Any],
        *,
        timeout: Optional[timedelta] = None,
        wait_seconds: Optional[float] = None,
        clock: Callable[[], datetime] = TimeUtils.now_utc,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.config = config
        self.store = store
        self.validator = TargetValidator(config)
        self._gateway_factory = gateway_factory
        self._publisher = publisher
        self._dispatch = dispatch
        self.timeout = timeout if timeout is not None else timedelta(
            minutes=config.move_timeout_minutes
        )
        self.wait_seconds = wait_seconds if wait_seconds is not None else config.move_wait_seconds
        self._clock = clock
        self._sleep = sleep
        self._timers: Dict[int, asyncio.Task] = {}
        self._runs: Dict[int, asyncio.Task] = {}
        self._publishing = 0  # 正在发布的募集消息数量
        # 募集消息发出后、会话登记前收到的反应：消息 ID -> 用户 ID
        self._early_reactions: Dict[int, List[int]] = {}

    # -------------------------
    # 查询
    # -------------------------

    def is_tracked(self, tracking_message_id: int) -> bool:
        return tracking_message_id in self.store

    def get(self, tracking_message_id: int) -> Optional[MoveSession]:
        return self.store.get(tracking_message_id)

    @property
    def is_publishing(self) -> bool:
        """是否有募集消息正在发布，此时未登记消息上的反应会被暂存。"""
        return self._publishing > 0

    # -------------------------
    # 开启会话
    # -------------------------

    async def open(self, qo: OpenSessionQo) -> int:
        """
        开启一个移动会话。

        Returns:
            募集消息的 ID，之后对这条消息的反应会被计入该会话。

        Raises:
            InvalidTarget: 目标未通过校验。此时不会发布消息，也不会开始倒计时。
        """
        gateway = self._gateway_factory(qo.guild_id)
        self.validator.validate_target(qo.target, gateway)

        created_at = self._clock()
        deadline = created_at + self.timeout
        self._publishing += 1
        try:
            tracking_message_id = await self._publisher.publish(qo, deadline)
        finally:
            self._publishing -= 1
        early = self._early_reactions.pop(tracking_message_id, [])
        if self._publishing == 0:
            # 没有正在发布的消息时，缓存中剩下的都是无关消息上的反应
            self._early_reactions.clear()

        session = MoveSession(
            tracking_message_id=tracking_message_id,
            channel_id=qo.channel_id,
            guild_id=qo.guild_id,
            initiator_id=qo.initiator_id,
            target=qo.target,
            created_at=created_at,
            deadline=deadline,
        )
        self.store.add(session)
        self._timers[tracking_message_id] = asyncio.create_task(
            self._expire_later(tracking_message_id, self.timeout.total_seconds())
        )

        logger.info(
            f"用户 {qo.initiator_id} 开启了移动会话 {tracking_message_id}，"
            f"目标 {qo.target.describe()}，截止 {deadline.isoformat()}"
        )
        self._dispatch("move_session_opened", session.to_snapshot())

        # 消息发出后、会话登记前到达的反应，按到达顺序补上
        for user_id in early:
            self.on_reaction(tracking_message_id, user_id)

        await self._publisher.add_reaction(qo.channel_id, tracking_message_id)
        return tracking_message_id

    async def _expire_later(self, tracking_message_id: int, seconds: float) -> None:
        await asyncio.sleep(seconds)
        self._timers.pop(tracking_message_id, None)
        self.on_timeout(tracking_message_id)

    def _disarm(self, tracking_message_id: int) -> None:
        timer = self._timers.pop(tracking_message_id, None)
        if timer is not None and timer is not asyncio.current_task() and not timer.done():
            timer.cancel()

    # -------------------------
    # 反应与超时
    # -------------------------

    def on_reaction(self, tracking_message_id: int, user_id: int) -> ReactionOutcome:
        """
        处理一次反应。不会等待批量移动完成，移动在独立的任务中进行。
        """
        session = self.store.get(tracking_message_id)
        if session is None and self._publishing > 0:
            self._early_reactions.setdefault(tracking_message_id, []).append(user_id)
            return ReactionOutcome.DEFERRED
        if session is None or session.state != SessionState.PENDING:
            return ReactionOutcome.IGNORED

        if self._clock() >= session.deadline:
            # 倒计时任务尚未运行，但已过截止时间，由这次反应执行超时
            if self.on_timeout(tracking_message_id):
                return ReactionOutcome.EXPIRED
            return ReactionOutcome.IGNORED

        if user_id == session.initiator_id:
            if self.store.try_transition(
                tracking_message_id, SessionState.PENDING, SessionState.TRIGGERED
            ) is None:
                return ReactionOutcome.IGNORED
            self._disarm(tracking_message_id)
            task = asyncio.create_task(self._run(session))
            self._runs[tracking_message_id] = task
            task.add_done_callback(lambda _: self._runs.pop(tracking_message_id, None))
            return ReactionOutcome.TRIGGERED

        if self.store.add_participant(tracking_message_id, user_id):
            logger.debug(f"用户 {user_id} 确认参加会话 {tracking_message_id}")
            return ReactionOutcome.CONFIRMED
        return ReactionOutcome.DUPLICATE

    def on_timeout(self, tracking_message_id: int) -> bool:
        """
        尝试让会话超时。会话已被触发或取消时什么都不做。

        Returns:
            是否由这次调用完成了超时。
        """
        session = self.store.try_transition(
            tracking_message_id, SessionState.PENDING, SessionState.EXPIRED
        )
        if session is None:
            return False
        self._disarm(tracking_message_id)
        logger.info(f"移动会话 {tracking_message_id} 已超时。")
        self._dispatch("move_session_expired", session.to_snapshot())
        return True

    # -------------------------
    # 批量移动
    # -------------------------

    async def _run(self, session: MoveSession) -> MoveReportDto:
        ordered = session.ordered_participants()
        logger.info(
            f"移动会话 {session.tracking_message_id} 已触发，共 {len(ordered)} 人，"
            f"目标 {session.target.describe()}"
        )
        self._dispatch("move_session_triggered", session.to_snapshot())

        executor = MoveExecutor(
            self._gateway_factory(session.guild_id),
            self.validator,
            self.wait_seconds,
            sleep=self._sleep,
        )
        try:
            if session.target.new_channel_name is not None:
                report = await executor.execute_into_new_channel(
                    session.target.new_channel_name, ordered
                )
            else:
                assert session.target.channel_id is not None
                report = await executor.execute(session.target.channel_id, ordered)
        except asyncio.CancelledError:
            self._finish_interrupted(session, executor.interrupted_report(SHUTDOWN_ABORT_REASON))
            raise
        except Exception as e:
            logger.error(
                f"移动会话 {session.tracking_message_id} 的批量移动发生错误: {e}", exc_info=True
            )
            report = MoveReportDto(
                target_channel_id=session.target.channel_id,
                skipped=ordered,
                aborted=True,
                abort_reason="发生了未知错误",
            )

        self.store.try_transition(
            session.tracking_message_id, SessionState.TRIGGERED, SessionState.COMPLETED
        )
        self._dispatch("move_session_completed", session.to_snapshot(), report)
        return report

    def _finish_interrupted(self, session: MoveSession, report: MoveReportDto) -> None:
        if self.store.try_transition(
            session.tracking_message_id, SessionState.TRIGGERED, SessionState.COMPLETED
        ) is None:
            return
        logger.warning(
            f"移动会话 {session.tracking_message_id} 的批量移动被取消，"
            f"{len(report.skipped)} 名成员未移动。"
        )
        self._dispatch("move_session_completed", session.to_snapshot(), report)

    # -------------------------
    # 取消
    # -------------------------

    def cancel(self, tracking_message_id: int) -> bool:
        """
        取消一个仍在募集中的会话。

        Returns:
            是否取消成功。
        """
        session = self.store.try_transition(
            tracking_message_id, SessionState.PENDING, SessionState.CANCELLED
        )
        if session is None:
            return False
        self._disarm(tracking_message_id)
        logger.info(f"移动会话 {tracking_message_id} 已取消。")
        self._dispatch("move_session_cancelled", session.to_snapshot())
        return True

    async def cancel_all(self) -> None:
        """
        关闭时调用：取消所有募集中的会话，并停止正在进行的批量移动。
        被停止的移动以中止的报告结束，未移动的成员计入 skipped。
        """
        pending_ids = self.store.pending_ids()
        for tracking_message_id in pending_ids:
            self.cancel(tracking_message_id)

        running = [(self.store.get(message_id), task) for message_id, task in self._runs.items()]
        runs = [task for _, task in running]
        for task in runs:
            task.cancel()
        if runs:
            await asyncio.gather(*runs, return_exceptions=True)

        # 尚未开始执行就被取消的移动任务不会自行收尾
        for session, _ in running:
            if session is not None:
                self._finish_interrupted(
                    session,
                    MoveReportDto(
                        target_channel_id=None,
                        skipped=session.ordered_participants(),
                        aborted=True,
                        abort_reason=SHUTDOWN_ABORT_REASON,
                    ),
                )

        if pending_ids or runs:
            logger.info(f"已取消 {len(pending_ids)} 个募集中的会话，停止 {len(runs)} 个批量移动。")
