"""Structured JSON logging + rich console output."""
from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

from rich.console import Console
from rich.theme import Theme

from hostbot.utils.secrets import redact

_theme = Theme({
    "info": "cyan",
    "warn": "yellow bold",
    "error": "red bold",
    "success": "green bold",
    "dim": "dim",
})
console = Console(theme=_theme, stderr=True)

_json_handler: logging.FileHandler | None = None


class _RedactFilter(logging.Filter):
    """Scrub secrets from the rendered message before any handler sees it."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = redact(record.getMessage())
        record.args = None
        return True


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1]:
            entry["error"] = redact(str(record.exc_info[1]))
        if hasattr(record, "extra_data"):
            entry["data"] = record.extra_data
        return json.dumps(entry, ensure_ascii=False)


def setup_logging(log_dir: str | Path | None = None, verbose: bool = False) -> None:
    """Configure the hostbot logger with stderr console + optional JSON file."""
    root = logging.getLogger("hostbot")
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    root.handlers.clear()

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(logging.DEBUG if verbose else logging.INFO)
    ch.setFormatter(logging.Formatter("[%(name)s] %(message)s"))
    ch.addFilter(_RedactFilter())
    root.addHandler(ch)

    # python-telegram-bot logs each getUpdates call at INFO through httpx
    logging.getLogger("httpx").setLevel(logging.WARNING)

    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        global _json_handler
        _json_handler = logging.FileHandler(log_path / "hostbot.jsonl", encoding="utf-8")
        _json_handler.setFormatter(_JsonFormatter())
        _json_handler.addFilter(_RedactFilter())
        root.addHandler(_json_handler)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"hostbot.{name}")
