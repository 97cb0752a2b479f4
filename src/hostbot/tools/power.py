"""PowerControl — fire-and-forget host reboot with outcome logging."""
from __future__ import annotations

import subprocess
import threading
import time
from dataclasses import dataclass
from typing import Callable, Sequence

from hostbot.log import get_logger

log = get_logger("power")

DEFAULT_REBOOT_COMMAND: tuple[str, ...] = ("sudo", "reboot")


@dataclass
class PowerResult:
    """Outcome of one reboot launch."""
    command: str
    exit_code: int
    stderr: str
    duration_s: float


class PowerControl:
    """Launch the reboot command on a detached daemon thread.

    launch() never blocks: the host may go down before the command returns,
    so the caller must not depend on the result. The outcome is only logged
    and appended to ``history``.
    """

    def __init__(
        self,
        command: Sequence[str] = DEFAULT_REBOOT_COMMAND,
        delay_s: float = 1.0,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ) -> None:
        self.command = list(command)
        self.delay_s = delay_s
        self._runner = runner
        self.history: list[PowerResult] = []

    def launch(self) -> threading.Thread:
        """Start the reboot in the background and return the thread."""
        t = threading.Thread(target=self._run, name="hostbot-reboot", daemon=True)
        t.start()
        log.info("reboot scheduled in %.1fs: %s", self.delay_s, " ".join(self.command))
        return t

    def _run(self) -> PowerResult:
        cmd = " ".join(self.command)
        start = time.monotonic()
        try:
            if self.delay_s > 0:
                time.sleep(self.delay_s)
            proc = self._runner(self.command, capture_output=True, text=True)
            result = PowerResult(
                command=cmd,
                exit_code=proc.returncode,
                stderr=(proc.stderr or "").strip(),
                duration_s=round(time.monotonic() - start, 2),
            )
        except Exception as e:
            result = PowerResult(
                command=cmd,
                exit_code=-2,
                stderr=str(e),
                duration_s=round(time.monotonic() - start, 2),
            )
            log.exception("reboot launch failed: %s", cmd)
            self.history.append(result)
            return result

        self.history.append(result)
        if result.exit_code == 0:
            log.info("reboot accepted: %s", cmd)
        else:
            log.error("reboot failed: exit=%d stderr=%s", result.exit_code, result.stderr)
        return result
