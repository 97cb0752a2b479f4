"""Tests for the Telegram transport adapter (no network)."""
import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from hostbot.bot.dispatcher import GREETING, Dispatcher
from hostbot.config import BotSettings
from hostbot.telegram.bot import build_application, to_inbound

OPERATOR = 1001


class FakePower:
    def __init__(self):
        self.launches = 0

    def launch(self):
        self.launches += 1


@pytest.fixture
def settings():
    return BotSettings(
        token="123456:TEST-TOKEN",
        user_id=OPERATOR,
        uptime_path="/proc/uptime",
        cpu_temp_path="/sys/class/thermal/thermal_zone0/temp",
        meminfo_path="/proc/meminfo",
        disk_mount="/",
        reboot_command=("sudo", "reboot"),
        reboot_delay_s=1.0,
        scope_cancel_to_operator=False,
    )


def _update(text, user_id=OPERATOR, chat_id=77, username="op"):
    user = SimpleNamespace(id=user_id, username=username, full_name="Op Erator")
    message = SimpleNamespace(from_user=user, chat_id=chat_id, text=text)
    return SimpleNamespace(message=message)


class TestToInbound:
    def test_command(self):
        msg = to_inbound(_update("/uptime@host_bot"))
        assert msg.sender_id == OPERATOR
        assert msg.chat_id == 77
        assert msg.is_command
        assert msg.command == "uptime"
        assert msg.sender_name == "op"

    def test_text(self):
        msg = to_inbound(_update("hello"))
        assert not msg.is_command
        assert msg.text == "hello"

    def test_non_text_message(self):
        msg = to_inbound(_update(None))
        assert msg.text == ""
        assert not msg.is_command

    def test_falls_back_to_full_name(self):
        msg = to_inbound(_update("/ping", username=None))
        assert msg.sender_name == "Op Erator"

    def test_no_message(self):
        assert to_inbound(SimpleNamespace(message=None)) is None


class TestApplication:
    def _handler(self, app):
        return app.handlers[0][0].callback

    def test_builds_default_dispatcher(self, settings):
        app = build_application(settings)
        d = app.bot_data["dispatcher"]
        assert isinstance(d, Dispatcher)
        assert d.operator_id == OPERATOR

    def test_operator_gets_reply(self, settings):
        d = Dispatcher(OPERATOR, FakePower(), readers={})
        app = build_application(settings, dispatcher=d)
        ctx = SimpleNamespace(bot=SimpleNamespace(send_message=AsyncMock()))
        asyncio.run(self._handler(app)(_update("/start"), ctx))
        ctx.bot.send_message.assert_awaited_once_with(chat_id=77, text=GREETING)

    def test_stranger_gets_nothing(self, settings):
        d = Dispatcher(OPERATOR, FakePower(), readers={})
        app = build_application(settings, dispatcher=d)
        ctx = SimpleNamespace(bot=SimpleNamespace(send_message=AsyncMock()))
        asyncio.run(self._handler(app)(_update("/start", user_id=5), ctx))
        ctx.bot.send_message.assert_not_awaited()

    def test_confirm_launches_power(self, settings):
        power = FakePower()
        d = Dispatcher(OPERATOR, power, readers={})
        app = build_application(settings, dispatcher=d)
        ctx = SimpleNamespace(bot=SimpleNamespace(send_message=AsyncMock()))
        handler = self._handler(app)
        asyncio.run(handler(_update("/reboot"), ctx))
        asyncio.run(handler(_update("/confirm"), ctx))
        assert power.launches == 1
        assert ctx.bot.send_message.await_count == 2
