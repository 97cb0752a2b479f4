"""hostbot tools — privileged host actions."""
from hostbot.tools.power import DEFAULT_REBOOT_COMMAND, PowerControl, PowerResult

__all__ = ["DEFAULT_REBOOT_COMMAND", "PowerControl", "PowerResult"]
