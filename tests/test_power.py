"""Tests for PowerControl: detached launch and outcome logging."""
import subprocess
import threading

import pytest

from hostbot.tools.power import DEFAULT_REBOOT_COMMAND, PowerControl


class FakeRunner:
    def __init__(self, returncode=0, stderr="", exc=None):
        self.calls = []
        self.returncode = returncode
        self.stderr = stderr
        self.exc = exc

    def __call__(self, cmd, **kwargs):
        self.calls.append((cmd, kwargs))
        if self.exc:
            raise self.exc
        return subprocess.CompletedProcess(cmd, self.returncode, stdout="", stderr=self.stderr)


class TestLaunch:
    def test_default_command(self):
        assert PowerControl().command == list(DEFAULT_REBOOT_COMMAND)
        assert DEFAULT_REBOOT_COMMAND == ("sudo", "reboot")

    def test_launch_runs_detached(self):
        runner = FakeRunner()
        power = PowerControl(delay_s=0, runner=runner)
        t = power.launch()
        assert isinstance(t, threading.Thread)
        assert t.daemon
        t.join(timeout=5)
        assert runner.calls[0][0] == ["sudo", "reboot"]
        assert power.history[0].exit_code == 0

    def test_launch_does_not_wait(self):
        gate = threading.Event()

        def slow_runner(cmd, **kwargs):
            gate.wait(timeout=5)
            return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

        power = PowerControl(delay_s=0, runner=slow_runner)
        t = power.launch()
        # launch() returned while the command is still "running"
        assert t.is_alive()
        assert power.history == []
        gate.set()
        t.join(timeout=5)
        assert len(power.history) == 1


class TestOutcome:
    def test_nonzero_exit_logged(self, caplog):
        power = PowerControl(["sudo", "reboot"], delay_s=0, runner=FakeRunner(1, "sudo: a password is required"))
        with caplog.at_level("INFO", logger="hostbot.power"):
            power.launch().join(timeout=5)
        assert power.history[0].exit_code == 1
        assert "exit=1" in caplog.text
        assert any(r.levelname == "ERROR" for r in caplog.records)

    def test_missing_binary_logged(self, caplog):
        power = PowerControl(["no-such-reboot"], delay_s=0, runner=FakeRunner(exc=FileNotFoundError("no-such-reboot")))
        with caplog.at_level("INFO", logger="hostbot.power"):
            power.launch().join(timeout=5)
        result = power.history[0]
        assert result.exit_code == -2
        assert "no-such-reboot" in result.stderr
        assert "reboot launch failed" in caplog.text

    def test_failing_delay_is_logged(self, caplog):
        # float("inf") makes time.sleep raise OverflowError
        runner = FakeRunner()
        power = PowerControl(["sudo", "reboot"], delay_s=float("inf"), runner=runner)
        with caplog.at_level("INFO", logger="hostbot.power"):
            power.launch().join(timeout=5)
        assert runner.calls == []
        assert len(power.history) == 1
        assert power.history[0].exit_code == -2
        assert "reboot launch failed" in caplog.text

    @pytest.mark.parametrize("cmd", [["true"], ["false"]])
    def test_real_subprocess(self, cmd):
        power = PowerControl(cmd, delay_s=0)
        power.launch().join(timeout=10)
        assert power.history[0].exit_code == (0 if cmd == ["true"] else 1)
