"""Shell commands run once and inspected for status and output."""

from __future__ import annotations

import io
import subprocess
import sys
import threading

from hostspec.util import runner

LINUX_SHELL = "sh"
WINDOWS_SHELL = "cmd"


def command_wrapper(cmd: str) -> runner.Command:
    """Wrap a command line so the platform's shell runs it."""
    if sys.platform == "win32":
        return runner.windows_cmd_command(WINDOWS_SHELL, "/c", cmd)
    return runner.Command(LINUX_SHELL, "-c", cmd)


def _format_duration(ms: int) -> str:
    if ms <= 0:
        return "0s"
    if ms < 1000:
        return f"{ms}ms"
    hours, rest = divmod(ms, 3_600_000)
    minutes, rest = divmod(rest, 60_000)
    seconds = f"{rest / 1000:g}s"
    if hours:
        return f"{hours}h{minutes}m{seconds}"
    if minutes:
        return f"{minutes}m{seconds}"
    return seconds


def run_command(cmd: runner.Command, timeout: int) -> None:
    """Run ``cmd``, giving up after ``timeout`` milliseconds.

    Raises ``TimeoutError`` when the time runs out, otherwise whatever the
    command raised.
    """
    outcome: dict[str, BaseException] = {}

    def target() -> None:
        try:
            cmd.run()
        except BaseException as exc:  # handed back to the caller
            outcome["error"] = exc

    worker = threading.Thread(target=target, daemon=True)
    worker.start()
    worker.join(timeout / 1000 if timeout > 0 else 0)
    if worker.is_alive():
        raise TimeoutError(f"Command execution timed out ({_format_duration(timeout)})")
    if "error" in outcome:
        raise outcome["error"]


class Command:
    """A shell command, run on first use; its results are cached."""

    def __init__(self, command, system, config) -> None:
        self.command = command
        self.timeout = config.timeout_milliseconds()
        self._loaded = False
        self._err: Exception | None = None
        self._exit_status = 0
        self._stdout = ""
        self._stderr = ""

    def _setup(self) -> None:
        if not self._loaded:
            self._loaded = True
            cmd = command_wrapper(self.command)
            try:
                run_command(cmd, self.timeout)
            except subprocess.CalledProcessError:
                pass  # a non-zero exit is reported through the exit status
            except Exception as exc:
                self._err = exc
            self._exit_status = cmd.status
            self._stdout = cmd.stdout
            self._stderr = cmd.stderr
        if self._err is not None:
            raise self._err

    def exit_status(self) -> int:
        """The command's exit status."""
        self._setup()
        return self._exit_status

    def stdout(self) -> io.StringIO:
        """A reader over the command's standard output."""
        self._setup()
        return io.StringIO(self._stdout)

    def stderr(self) -> io.StringIO:
        """A reader over the command's standard error."""
        self._setup()
        return io.StringIO(self._stderr)

    def exists(self) -> bool:
        """Commands have no notion of existence; always False."""
        return False