"""Command dispatcher: operator gate, reboot confirmation handshake, routing.

The dispatcher is transport-agnostic and synchronous. The Telegram adapter
feeds it one InboundMessage at a time and delivers whatever Reply it returns.
Messages are handled strictly in arrival order, so the handshake state needs
no locking.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Callable, Mapping, Protocol

from hostbot.config import BotSettings
from hostbot.log import get_logger
from hostbot.telemetry.readers import (
    MetricsError,
    read_cpu_temp,
    read_disk,
    read_ram,
    read_uptime,
)

log = get_logger("dispatcher")


class Command(str, Enum):
    START = "start"
    PING = "ping"
    UPTIME = "uptime"
    TEMP = "temp"
    DISK = "disk"
    RAM = "ram"
    REBOOT = "reboot"
    CONFIRM = "confirm"
    HELP = "help"


class HandshakeState(str, Enum):
    IDLE = "idle"
    AWAITING_CONFIRMATION = "awaiting-confirmation"


# Reply texts
GREETING = "Hi 👋 I'm the bot running on your host 🤖"
PONG = "pong 🏓"
ASK_CONFIRM = "⚠️ Are you sure? Send /confirm to reboot"
REBOOTING = "♻️ Rebooting..."
NOTHING_PENDING = "Nothing pending to confirm"
UNKNOWN_COMMAND = "I don't know that command, try /help"
NOT_UNDERSTOOD = "Very interesting... but I'm not much of a talker, try /help"

METRIC_ERRORS: dict[Command, str] = {
    Command.UPTIME: "❌ Could not read uptime",
    Command.TEMP: "❌ Could not read CPU temperature",
    Command.DISK: "❌ Could not read disk usage",
    Command.RAM: "❌ Could not read RAM usage",
}

HELP_TEXT = "\n".join(f"/{c.value}" for c in Command)

_COMMAND_RE = re.compile(r"/([A-Za-z0-9_]{1,32})(?:@[A-Za-z0-9_]+)?(?=\s|$)")


@dataclass(frozen=True)
class InboundMessage:
    """One message as handed over by the transport."""
    sender_id: int
    chat_id: int
    text: str = ""
    sender_name: str = ""
    is_command: bool = False
    command: str = ""

    @classmethod
    def from_text(cls, sender_id: int, chat_id: int, text: str, sender_name: str = "") -> "InboundMessage":
        is_command, command = parse_command(text)
        return cls(
            sender_id=sender_id,
            chat_id=chat_id,
            text=text,
            sender_name=sender_name,
            is_command=is_command,
            command=command,
        )


@dataclass(frozen=True)
class Reply:
    chat_id: int
    text: str


class Launcher(Protocol):
    def launch(self) -> object: ...


def parse_command(text: str | None) -> tuple[bool, str]:
    """Return (is_command, token) for ``/token@botname args``.

    Only ASCII letters, digits and underscores make a command token, the same
    set Telegram marks as a bot_command. Anything else is plain text.
    """
    if not text:
        return False, ""
    m = _COMMAND_RE.match(text)
    if m is None:
        return False, ""
    return True, m.group(1)


def default_readers(settings: BotSettings) -> dict[Command, Callable[[], str]]:
    return {
        Command.UPTIME: partial(read_uptime, settings.uptime_path),
        Command.TEMP: partial(read_cpu_temp, settings.cpu_temp_path),
        Command.DISK: partial(read_disk, settings.disk_mount),
        Command.RAM: partial(read_ram, settings.meminfo_path),
    }


class Dispatcher:
    """Authorize, update handshake state and resolve a reply per message."""

    def __init__(
        self,
        operator_id: int,
        power: Launcher,
        readers: Mapping[Command, Callable[[], str]],
        scope_cancel_to_operator: bool = False,
    ) -> None:
        self.operator_id = operator_id
        self.power = power
        self.readers = dict(readers)
        self.scope_cancel_to_operator = scope_cancel_to_operator
        self.state = HandshakeState.IDLE

    @classmethod
    def from_settings(cls, settings: BotSettings, power: Launcher) -> "Dispatcher":
        return cls(
            operator_id=settings.user_id,
            power=power,
            readers=default_readers(settings),
            scope_cancel_to_operator=settings.scope_cancel_to_operator,
        )

    @property
    def pending(self) -> bool:
        return self.state is HandshakeState.AWAITING_CONFIRMATION

    def handle(self, msg: InboundMessage) -> Reply | None:
        """Process one message. Returns None when nothing must be sent."""
        authorized = msg.sender_id == self.operator_id

        if self.pending and not (msg.is_command and msg.command == Command.CONFIRM.value):
            if authorized or not self.scope_cancel_to_operator:
                log.info("pending reboot cancelled by message from %s", msg.sender_id)
                self.state = HandshakeState.IDLE

        if not authorized:
            log.warning(
                "ignoring message from unauthorized user %s (id=%s)",
                msg.sender_name or "?", msg.sender_id,
            )
            return None

        if not msg.is_command:
            return Reply(msg.chat_id, NOT_UNDERSTOOD)

        try:
            command = Command(msg.command)
        except ValueError:
            log.debug("unknown command: /%s", msg.command)
            return Reply(msg.chat_id, UNKNOWN_COMMAND)

        return Reply(msg.chat_id, self._resolve(command))

    def _resolve(self, command: Command) -> str:
        if command is Command.START:
            return GREETING
        if command is Command.PING:
            return PONG
        if command is Command.HELP:
            return HELP_TEXT
        if command is Command.REBOOT:
            self.state = HandshakeState.AWAITING_CONFIRMATION
            log.info("reboot requested, awaiting confirmation")
            return ASK_CONFIRM
        if command is Command.CONFIRM:
            return self._confirm()
        return self._read_metric(command)

    def _confirm(self) -> str:
        if not self.pending:
            return NOTHING_PENDING
        self.state = HandshakeState.IDLE
        log.warning("reboot confirmed by operator")
        self.power.launch()
        return REBOOTING

    def _read_metric(self, command: Command) -> str:
        reader = self.readers.get(command)
        if reader is None:
            log.error("no reader configured for /%s", command.value)
            return METRIC_ERRORS[command]
        try:
            return reader()
        except MetricsError as e:
            cause = e.__cause__
            log.warning("/%s failed: %s%s", command.value, e, f" ({cause})" if cause else "")
            return METRIC_ERRORS[command]
