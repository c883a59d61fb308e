from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from MoveTogether.cogs.Moving.TrackingMessagePublisher import TrackingMessagePublisher
from MoveTogether.share.enums.ApiPriority import ApiPriority
from tests.conftest import (
    INITIATOR,
    LOBBY_CHANNEL_ID,
    TEXT_CHANNEL_ID,
    USER_A,
    ImmediateScheduler,
    make_open_qo,
)

DEADLINE = datetime(2024, 1, 1, 12, 5, tzinfo=timezone.utc)


@pytest.fixture
def message() -> MagicMock:
    message = MagicMock(spec=discord.Message)
    message.id = 7777
    message.add_reaction = AsyncMock()
    return message


@pytest.fixture
def text_channel(message) -> MagicMock:
    channel = MagicMock(spec=discord.TextChannel)
    channel.send = AsyncMock(return_value=message)
    channel.get_partial_message.return_value = message
    return channel


@pytest.fixture
def bot(app_config, text_channel) -> SimpleNamespace:
    source = MagicMock(spec=discord.VoiceChannel)
    source.members = [
        SimpleNamespace(id=INITIATOR, bot=False),
        SimpleNamespace(id=USER_A, bot=False),
        SimpleNamespace(id=4242, bot=True),
    ]
    guild = MagicMock()
    guild.get_channel.side_effect = lambda channel_id: (
        source if channel_id == LOBBY_CHANNEL_ID else None
    )
    return SimpleNamespace(
        config=app_config,
        api_scheduler=ImmediateScheduler(),
        get_channel=lambda channel_id: text_channel if channel_id == TEXT_CHANNEL_ID else None,
        fetch_channel=AsyncMock(),
        get_guild=lambda guild_id: guild,
    )


async def test_publishes_recruitment_message(bot, text_channel, message):
    message_id = await TrackingMessagePublisher(bot).publish(make_open_qo(), DEADLINE)

    assert message_id == 7777
    content = text_channel.send.await_args.args[0]
    assert f"<@{INITIATOR}><@{USER_A}>" in content
    assert "<@4242>" not in content
    message.add_reaction.assert_not_awaited()
    assert bot.api_scheduler.priorities == [int(ApiPriority.INTERACTION)]


async def test_add_reaction_uses_configured_emoji(bot, text_channel, message):
    await TrackingMessagePublisher(bot).add_reaction(TEXT_CHANNEL_ID, 7777)

    text_channel.get_partial_message.assert_called_once_with(7777)
    message.add_reaction.assert_awaited_once_with("🤚")
    assert bot.api_scheduler.priorities == [int(ApiPriority.MESSAGE)]


async def test_failed_reaction_is_only_logged(bot, message, caplog):
    message.add_reaction.side_effect = discord.HTTPException(
        SimpleNamespace(status=500, reason="error"), "error"
    )

    await TrackingMessagePublisher(bot).add_reaction(TEXT_CHANNEL_ID, 7777)

    assert "7777" in caplog.text


async def test_channel_that_cannot_send_is_rejected(bot):
    bot.get_channel = lambda channel_id: None
    bot.fetch_channel.return_value = MagicMock(spec=discord.CategoryChannel)

    with pytest.raises(RuntimeError):
        await TrackingMessagePublisher(bot).publish(make_open_qo(), DEADLINE)
