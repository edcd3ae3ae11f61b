import asyncio
import json

import pytest

import bot
from models.contest_settings import ContestSettings
from services.roll_engine import LineType


def test_load_settings_without_path_uses_defaults():
    settings = bot.load_settings(None)

    assert settings.to_dict() == ContestSettings().to_dict()


def test_load_settings_from_file(tmp_path):
    path = tmp_path / "roll_settings.json"
    path.write_text(json.dumps({"high_wins": False, "target_numbers": [7]}), encoding="utf-8")

    settings = bot.load_settings(str(path))

    assert settings.high_wins is False
    assert settings.target_numbers == [7]


@pytest.mark.parametrize("content", [None, "{not json"])
def test_load_settings_falls_back_on_bad_file(tmp_path, capsys, content):
    path = tmp_path / "roll_settings.json"
    if content is not None:
        path.write_text(content, encoding="utf-8")

    settings = bot.load_settings(str(path))

    assert settings.to_dict() == ContestSettings().to_dict()
    assert "Error loading settings" in capsys.readouterr().out


def test_collaborators_without_channel_do_not_send(capsys):
    roll_bot = bot.RollTrackerBot()

    assert roll_bot.select_member("Cloud Strife") is False
    roll_bot.send_announcement("Rolls are now OPEN!")

    assert "dropping message: Rolls are now OPEN!" in capsys.readouterr().out
    assert roll_bot._pending_sends == set()


@pytest.mark.parametrize("payload", [
    [],
    {"target_numbers": 5},
    {"templates": ["x"]},
    {"expiry_minutes": None},
])
def test_load_settings_falls_back_on_wrong_shape(tmp_path, capsys, payload):
    path = tmp_path / "roll_settings.json"
    path.write_text(json.dumps(payload), encoding="utf-8")

    settings = bot.load_settings(str(path))

    assert settings.to_dict() == ContestSettings().to_dict()
    assert "Error loading settings" in capsys.readouterr().out


class StubAuthor:
    def __init__(self, display_name):
        self.display_name = display_name


class StubMessage:
    def __init__(self, content, author, channel):
        self.content = content
        self.author = author
        self.channel = channel


@pytest.fixture
def host(monkeypatch):
    """Bot wired to a fake channel, recording what reaches the engine."""
    me = StubAuthor("Roll Tracker")
    monkeypatch.setattr(bot.RollTrackerBot, "user", property(lambda self: me))

    roll_bot = bot.RollTrackerBot()
    roll_bot.roll_channel = object()
    roll_bot.ingested = []

    async def no_commands(message):
        return None

    monkeypatch.setattr(roll_bot, "process_commands", no_commands)
    monkeypatch.setattr(
        roll_bot.engine, "ingest",
        lambda line, sender, line_type: roll_bot.ingested.append((line, sender, line_type))
    )
    return roll_bot, me


def test_own_messages_are_ingested_as_echo(host):
    roll_bot, me = host
    message = StubMessage("Random! Cloud Strife rolls a 57.", me, roll_bot.roll_channel)

    asyncio.run(roll_bot.on_message(message))

    assert roll_bot.ingested == [("Random! Cloud Strife rolls a 57.", "Roll Tracker", LineType.ECHO)]


def test_other_messages_are_ingested_as_normal(host):
    roll_bot, _ = host
    message = StubMessage("Random! 42", StubAuthor("Tifa Lockhart"), roll_bot.roll_channel)

    asyncio.run(roll_bot.on_message(message))

    assert roll_bot.ingested == [("Random! 42", "Tifa Lockhart", LineType.NORMAL)]


def test_commands_and_other_channels_are_not_ingested(host):
    roll_bot, _ = host
    player = StubAuthor("Tifa Lockhart")

    asyncio.run(roll_bot.on_message(StubMessage("!template winner Random! 5 wins", player, roll_bot.roll_channel)))
    asyncio.run(roll_bot.on_message(StubMessage("Random! 5", player, object())))

    assert roll_bot.ingested == []
