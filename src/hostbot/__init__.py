"""hostbot: Telegram remote control for a single host."""

__version__ = "0.1.0"
