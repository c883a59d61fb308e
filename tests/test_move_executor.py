"""MoveExecutor 的测试：移动顺序、等待、单人失败与批量中止。"""

import asyncio

import pytest

from MoveTogether.cogs.Moving.exceptions import PlatformError
from MoveTogether.cogs.Moving.MoveExecutor import MoveExecutor
from MoveTogether.cogs.Moving.TargetValidator import TargetValidator
from MoveTogether.share.enums.ApiPriority import ApiPriority
from MoveTogether.share.enums.MoveFailureKind import MoveFailureKind
from tests.conftest import (
    CREATED_CHANNEL_ID,
    GENERATOR_CHANNEL_ID,
    INITIATOR,
    OTHER_CATEGORY_ID,
    TARGET_CHANNEL_ID,
    USER_A,
    USER_B,
    USER_C,
)


@pytest.fixture
def executor(gateway, discord_config, recording_sleep) -> MoveExecutor:
    return MoveExecutor(
        gateway,
        TargetValidator(discord_config),
        discord_config.move_wait_seconds,
        sleep=recording_sleep,
    )


class TestExecuteIntoExistingChannel:
    async def test_initiator_moves_first_then_waits_then_the_rest_in_order(
        self, executor, events
    ):
        report = await executor.execute(TARGET_CHANNEL_ID, [INITIATOR, USER_A, USER_B, USER_C])

        assert events == [
            ("move", INITIATOR, TARGET_CHANNEL_ID, int(ApiPriority.INITIATOR_MOVE)),
            ("sleep", 3),
            ("move", USER_A, TARGET_CHANNEL_ID, int(ApiPriority.BATCH_MOVE)),
            ("move", USER_B, TARGET_CHANNEL_ID, int(ApiPriority.BATCH_MOVE)),
            ("move", USER_C, TARGET_CHANNEL_ID, int(ApiPriority.BATCH_MOVE)),
        ]
        assert report.moved == [INITIATOR, USER_A, USER_B, USER_C]
        assert report.failures == []
        assert not report.aborted
        assert report.target_channel_id == TARGET_CHANNEL_ID

    async def test_member_who_left_voice_is_recorded_and_batch_continues(
        self, executor, gateway
    ):
        del gateway.voice[USER_B]

        report = await executor.execute(TARGET_CHANNEL_ID, [INITIATOR, USER_A, USER_B, USER_C])

        assert report.moved == [INITIATOR, USER_A, USER_C]
        assert report.failed_user_ids == [USER_B]
        assert report.failures[0].kind == MoveFailureKind.NOT_IN_VOICE
        assert report.attempted == 4
        assert not report.aborted

    async def test_initiator_failure_still_waits_and_moves_the_rest(
        self, executor, gateway, events
    ):
        gateway.failures[INITIATOR] = MoveFailureKind.FORBIDDEN

        report = await executor.execute(TARGET_CHANNEL_ID, [INITIATOR, USER_A])

        assert [event[0] for event in events] == ["move", "sleep", "move"]
        assert report.moved == [USER_A]
        assert report.failed_user_ids == [INITIATOR]

    async def test_target_deleted_mid_batch_aborts_remaining_moves(self, executor, gateway):
        gateway.delete_target_after_moves = 2

        report = await executor.execute(TARGET_CHANNEL_ID, [INITIATOR, USER_A, USER_B, USER_C])

        assert report.aborted
        assert report.abort_reason
        assert report.moved == [INITIATOR, USER_A]
        assert report.skipped == [USER_B, USER_C]
        assert gateway.moves == [(INITIATOR, TARGET_CHANNEL_ID), (USER_A, TARGET_CHANNEL_ID)]

    async def test_target_gone_before_first_move_skips_everyone(self, executor, gateway):
        gateway.delete_target_after_moves = 0

        report = await executor.execute(TARGET_CHANNEL_ID, [INITIATOR, USER_A])

        assert report.aborted
        assert report.moved == []
        assert report.skipped == [INITIATOR, USER_A]

    async def test_initiator_alone_still_waits(self, executor, events):
        report = await executor.execute(TARGET_CHANNEL_ID, [INITIATOR])

        assert events == [
            ("move", INITIATOR, TARGET_CHANNEL_ID, int(ApiPriority.INITIATOR_MOVE)),
            ("sleep", 3),
        ]
        assert report.moved == [INITIATOR]

    async def test_empty_participants_do_nothing(self, executor, events):
        report = await executor.execute(TARGET_CHANNEL_ID, [])

        assert events == []
        assert report.attempted == 0


class TestExecuteIntoNewChannel:
    async def test_initiator_goes_through_generator_and_channel_is_renamed(
        self, executor, gateway, events
    ):
        report = await executor.execute_into_new_channel("作业用", [INITIATOR, USER_A, USER_B])

        assert events == [
            ("move", INITIATOR, GENERATOR_CHANNEL_ID, int(ApiPriority.INITIATOR_MOVE)),
            ("sleep", 3),
            ("move", USER_A, CREATED_CHANNEL_ID, int(ApiPriority.BATCH_MOVE)),
            ("move", USER_B, CREATED_CHANNEL_ID, int(ApiPriority.BATCH_MOVE)),
        ]
        assert gateway.renamed == {CREATED_CHANNEL_ID: "作业用"}
        assert report.target_channel_id == CREATED_CHANNEL_ID
        assert report.moved == [INITIATOR, USER_A, USER_B]

    async def test_rename_failure_does_not_stop_the_move(self, executor, gateway):
        gateway.rename_error = PlatformError(MoveFailureKind.FORBIDDEN)

        report = await executor.execute_into_new_channel("作业用", [INITIATOR, USER_A])

        assert gateway.renamed == {}
        assert report.moved == [INITIATOR, USER_A]
        assert not report.aborted

    async def test_generator_not_creating_a_channel_aborts(self, executor, gateway):
        gateway.created_channel_id = None

        report = await executor.execute_into_new_channel("作业用", [INITIATOR, USER_A])

        assert report.aborted
        assert report.target_channel_id is None
        assert report.skipped == [USER_A]
        assert gateway.moves == [(INITIATOR, GENERATOR_CHANNEL_ID)]

    async def test_created_channel_outside_category_aborts(self, executor, gateway):
        gateway.created_channel_category = OTHER_CATEGORY_ID

        report = await executor.execute_into_new_channel("作业用", [INITIATOR, USER_A])

        assert report.aborted
        assert report.skipped == [USER_A]
        assert gateway.renamed == {}

    async def test_initiator_failing_to_enter_generator_aborts(self, executor, gateway):
        gateway.failures[INITIATOR] = MoveFailureKind.FORBIDDEN

        report = await executor.execute_into_new_channel("作业用", [INITIATOR, USER_A])

        assert report.aborted
        assert report.failed_user_ids == [INITIATOR]
        assert report.skipped == [USER_A]
        assert gateway.renamed == {}


class TestInterruptedReport:
    def test_before_any_move_reports_nothing_attempted(self, executor):
        report = executor.interrupted_report("Bot 正在关闭")

        assert report.aborted
        assert report.abort_reason == "Bot 正在关闭"
        assert report.moved == []

    async def test_cancelled_while_waiting_keeps_the_initiator_move(
        self, executor, gateway, events
    ):
        gate = asyncio.Event()

        async def blocking_sleep(seconds):
            events.append(("sleep", seconds))
            await gate.wait()

        executor._sleep = blocking_sleep
        task = asyncio.create_task(
            executor.execute(TARGET_CHANNEL_ID, [INITIATOR, USER_A, USER_B])
        )
        while ("sleep", 3) not in events:
            await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        report = executor.interrupted_report("Bot 正在关闭")

        assert report.moved == [INITIATOR]
        assert report.skipped == [USER_A, USER_B]
        assert report.target_channel_id is None
