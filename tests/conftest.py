"""测试共用的 fixture 与内存替身。"""

import asyncio
from datetime import timedelta
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

import pytest

from MoveTogether.cogs.Moving.exceptions import BatchAbort, PlatformError
from MoveTogether.cogs.Moving.MoveCoordinator import MoveCoordinator
from MoveTogether.cogs.Moving.qo.OpenSessionQo import OpenSessionQo
from MoveTogether.dto.MoveTargetDto import MoveTargetDto
from MoveTogether.services.SessionStore import SessionStore
from MoveTogether.share.AppConfig import AppConfig, DiscordConfig
from MoveTogether.share.enums.ApiPriority import ApiPriority
from MoveTogether.share.enums.MoveFailureKind import MoveFailureKind

GUILD_ID = 1
TEXT_CHANNEL_ID = 10
GENERATOR_CHANNEL_ID = 100
CATEGORY_ID = 200
OTHER_CATEGORY_ID = 201
IGNORED_CHANNEL_ID = 300
LOBBY_CHANNEL_ID = 400
TARGET_CHANNEL_ID = 500
FOREIGN_CHANNEL_ID = 600
CREATED_CHANNEL_ID = 700

INITIATOR = 1000
USER_A = 1001
USER_B = 1002
USER_C = 1003


class FakeVoiceGateway:
    """
    VoiceGateway 的内存实现。

    - channels: 语音频道 ID -> 分类 ID
    - voice: 成员 ID -> 所在语音频道 ID
    - failures: 成员 ID -> 移动时返回的错误
    移入生成器频道的成员会被移到 created_channel_id 指定的新频道中。
    """

    def __init__(self, events: Optional[List[Tuple[Any, ...]]] = None):
        self.channels: Dict[int, Optional[int]] = {
            GENERATOR_CHANNEL_ID: CATEGORY_ID,
            IGNORED_CHANNEL_ID: CATEGORY_ID,
            LOBBY_CHANNEL_ID: CATEGORY_ID,
            TARGET_CHANNEL_ID: CATEGORY_ID,
            FOREIGN_CHANNEL_ID: OTHER_CATEGORY_ID,
        }
        self.voice: Dict[int, int] = {
            INITIATOR: LOBBY_CHANNEL_ID,
            USER_A: LOBBY_CHANNEL_ID,
            USER_B: LOBBY_CHANNEL_ID,
            USER_C: LOBBY_CHANNEL_ID,
        }
        self.failures: Dict[int, MoveFailureKind] = {}
        self.non_voice_channels: Set[int] = set()
        self.created_channel_id: Optional[int] = CREATED_CHANNEL_ID
        self.created_channel_category: Optional[int] = CATEGORY_ID
        self.delete_target_after_moves: Optional[int] = None
        self.rename_error: Optional[Exception] = None
        self.renamed: Dict[int, str] = {}
        self.events = events if events is not None else []
        self.move_gate: Optional[asyncio.Event] = None

    @property
    def moves(self) -> List[Tuple[int, int]]:
        return [(event[1], event[2]) for event in self.events if event[0] == "move"]

    async def move_user(
        self, user_id: int, channel_id: int, *, priority: int = ApiPriority.BATCH_MOVE
    ) -> None:
        if self.move_gate is not None:
            await self.move_gate.wait()
        if (
            self.delete_target_after_moves is not None
            and len(self.moves) >= self.delete_target_after_moves
        ):
            self.channels.pop(channel_id, None)
        if channel_id not in self.channels:
            raise BatchAbort("移动目标频道已不存在")

        self.events.append(("move", user_id, channel_id, int(priority)))
        if user_id in self.failures:
            raise PlatformError(self.failures[user_id])
        if user_id not in self.voice:
            raise PlatformError(MoveFailureKind.NOT_IN_VOICE)

        if channel_id == GENERATOR_CHANNEL_ID and self.created_channel_id is not None:
            self.channels[self.created_channel_id] = self.created_channel_category
            self.voice[user_id] = self.created_channel_id
        else:
            self.voice[user_id] = channel_id

    def get_voice_channel_id(self, user_id: int) -> Optional[int]:
        return self.voice.get(user_id)

    def is_voice_channel(self, channel_id: int) -> bool:
        return channel_id in self.channels and channel_id not in self.non_voice_channels

    def get_channel_category_id(self, channel_id: int) -> Optional[int]:
        return self.channels.get(channel_id)

    async def rename_channel(self, channel_id: int, name: str) -> None:
        if self.rename_error is not None:
            raise self.rename_error
        self.renamed[channel_id] = name


class RecordingSleep:
    """代替 asyncio.sleep，记录等待的秒数。"""

    def __init__(self, events: List[Tuple[Any, ...]]):
        self.events = events

    async def __call__(self, seconds: float) -> None:
        self.events.append(("sleep", seconds))
        await asyncio.sleep(0)


class FakePublisher:
    """
    代替募集消息的发布，依次返回消息 ID。

    during_publish: 消息已发出、publish 尚未返回时调用，参数为消息 ID，
    用来模拟成员抢在会话登记前做出的反应。
    """

    def __init__(self, first_message_id: int = 5000):
        self.next_id = first_message_id
        self.calls: List[OpenSessionQo] = []
        self.reactions_added: List[Tuple[int, int]] = []
        self.during_publish: Optional[Callable[[int], Any]] = None
        self.during_add_reaction: Optional[Callable[[int], Any]] = None

    async def publish(self, qo: OpenSessionQo, deadline) -> int:
        self.calls.append(qo)
        message_id = self.next_id
        self.next_id += 1
        if self.during_publish is not None:
            self.during_publish(message_id)
        return message_id

    async def add_reaction(self, channel_id: int, message_id: int) -> None:
        if self.during_add_reaction is not None:
            self.during_add_reaction(message_id)
        self.reactions_added.append((channel_id, message_id))


class RecordingDispatch:
    """代替 bot.dispatch，记录分派的事件。"""

    def __init__(self):
        self.events: List[Tuple[str, Tuple[Any, ...]]] = []

    def __call__(self, event_name: str, *args: Any) -> None:
        self.events.append((event_name, args))

    def names(self) -> List[str]:
        return [name for name, _ in self.events]

    def last(self, event_name: str) -> Tuple[Any, ...]:
        for name, args in reversed(self.events):
            if name == event_name:
                return args
        raise AssertionError(f"事件 {event_name} 没有被分派")


class ImmediateScheduler:
    """代替 APIScheduler，立即执行提交的协程。"""

    def __init__(self):
        self.priorities: List[int] = []

    async def submit(self, coro, priority: int = ApiPriority.MESSAGE):
        self.priorities.append(int(priority))
        return await coro


@pytest.fixture
def discord_config() -> DiscordConfig:
    return DiscordConfig(
        move_timeout_minutes=5,
        move_wait_seconds=3,
        vc_create_channel=GENERATOR_CHANNEL_ID,
        vc_category=CATEGORY_ID,
        vc_ignored_channels=[IGNORED_CHANNEL_ID],
    )


@pytest.fixture
def app_config(discord_config: DiscordConfig) -> AppConfig:
    return AppConfig(discord=discord_config)


@pytest.fixture
def events() -> List[Tuple[Any, ...]]:
    return []


@pytest.fixture
def gateway(events) -> FakeVoiceGateway:
    return FakeVoiceGateway(events)


@pytest.fixture
def recording_sleep(events) -> RecordingSleep:
    return RecordingSleep(events)


@pytest.fixture
def publisher() -> FakePublisher:
    return FakePublisher()


@pytest.fixture
def dispatch() -> RecordingDispatch:
    return RecordingDispatch()


@pytest.fixture
async def make_coordinator(discord_config, gateway, publisher, dispatch, recording_sleep):
    """按需覆盖参数构建 MoveCoordinator。"""
    created: List[MoveCoordinator] = []

    def _make(**overrides: Any) -> MoveCoordinator:
        kwargs: Dict[str, Any] = dict(
            config=discord_config,
            store=SessionStore(),
            gateway_factory=lambda guild_id: gateway,
            publisher=publisher,
            dispatch=dispatch,
            timeout=timedelta(minutes=5),
            sleep=recording_sleep,
        )
        kwargs.update(overrides)
        coordinator = MoveCoordinator(**kwargs)
        created.append(coordinator)
        return coordinator

    yield _make

    for coordinator in created:
        await coordinator.cancel_all()


def make_open_qo(
    target: Optional[MoveTargetDto] = None, initiator_id: int = INITIATOR
) -> OpenSessionQo:
    return OpenSessionQo(
        initiator_id=initiator_id,
        target=target or MoveTargetDto(channel_id=TARGET_CHANNEL_ID),
        channel_id=TEXT_CHANNEL_ID,
        guild_id=GUILD_ID,
        source_voice_channel_id=LOBBY_CHANNEL_ID,
    )
