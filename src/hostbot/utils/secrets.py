"""Redact secrets from text before logging or display."""
from __future__ import annotations

import os
import re

# Patterns that look like secrets
_SECRET_PATTERNS = [
    # Telegram bot token, also as it appears inside api.telegram.org/bot<token>/ URLs
    re.compile(r'\d{5,}:[A-Za-z0-9_\-]{30,}'),
    re.compile(r'(?i)(token|secret|password|passwd|credential)[\s=:]+\S+'),
]

# Env var names that are secret
_SECRET_ENV_KEYS = {
    "TELEGRAM_BOT_TOKEN",
}


def redact(text: str) -> str:
    """Replace probable secrets with [REDACTED]."""
    for pat in _SECRET_PATTERNS:
        text = pat.sub("[REDACTED]", text)
    # Redact known env var values that appear in text
    for key in _SECRET_ENV_KEYS:
        val = os.environ.get(key)
        if val and len(val) > 4 and val in text:
            text = text.replace(val, "[REDACTED]")
    return text


def mask(value: str, keep: int = 4) -> str:
    """Show only the first few characters of a secret, e.g. for startup banners."""
    if not value:
        return ""
    if len(value) <= keep:
        return "*" * len(value)
    return value[:keep] + "…"
