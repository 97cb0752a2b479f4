"""hostbot CLI: start the bot, or print readings locally."""
from __future__ import annotations

from typing import Optional

import typer
from rich.table import Table

from hostbot.log import console, get_logger, setup_logging

log = get_logger("cli")

app = typer.Typer(
    name="hostbot",
    help="Telegram remote control for a single host: uptime, temperature, disk, RAM, reboot.",
    no_args_is_help=True,
)


# ── hostbot run ──────────────────────────────────────────────────────────────
@app.command()
def run(
    env_file: Optional[str] = typer.Option(None, "--env-file", "-e", help="Load variables from this .env file."),
    workspace: str = typer.Option(".", "--workspace", "-w", help="Directory holding .env and .hostbot/config.yaml."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Start the Telegram bot (runs until killed)."""
    from hostbot.config import ConfigError, load_settings

    try:
        settings = load_settings(workspace, env_file=env_file)
    except ConfigError as e:
        setup_logging(verbose=verbose)
        log.error("configuration error: %s", e)
        console.print(f"[error]{e}[/error]")
        raise typer.Exit(1)

    setup_logging(log_dir=settings.log_dir or None, verbose=verbose)

    from telegram.error import TelegramError
    from hostbot.telegram.bot import start_bot
    from hostbot.utils.secrets import mask

    console.print(
        f"[info]Starting Telegram bot (token {mask(settings.token)}) for operator {settings.user_id}…[/info]"
    )
    try:
        start_bot(settings)
    except TelegramError as e:
        log.error("telegram client failed: %s", e)
        console.print(f"[error]Telegram client failed: {e}[/error]")
        raise typer.Exit(1)


# ── hostbot status ───────────────────────────────────────────────────────────
@app.command()
def status(
    workspace: str = typer.Option(".", "--workspace", "-w", help="Directory holding .hostbot/config.yaml."),
) -> None:
    """Read uptime, CPU temperature, disk and RAM on this host."""
    from hostbot.bot.dispatcher import METRIC_ERRORS, Command
    from hostbot.config import load_config
    from hostbot.telemetry.readers import MetricsError, read_cpu_temp, read_disk, read_ram, read_uptime

    sources = load_config(workspace).sources
    readings = [
        (Command.UPTIME, lambda: read_uptime(sources.uptime)),
        (Command.TEMP, lambda: read_cpu_temp(sources.cpu_temp)),
        (Command.DISK, lambda: read_disk(sources.disk_mount)),
        (Command.RAM, lambda: read_ram(sources.meminfo)),
    ]

    table = Table(title="Host Status", show_header=True, header_style="bold cyan")
    table.add_column("Command", style="bold")
    table.add_column("Reply")
    for command, read in readings:
        try:
            value = read()
        except MetricsError as e:
            value = f"{METRIC_ERRORS[command]} [dim]({e})[/dim]"
        table.add_row(f"/{command.value}", value)

    console.print(table)


if __name__ == "__main__":
    app()
