"""Running external programs and capturing their output."""

from __future__ import annotations

import errno
import shlex
import shutil
import subprocess
import sys


class Command:
    """An external program whose output and exit status are captured by ``run``."""

    def __init__(self, name: str, *args: str) -> None:
        self.name = name
        self.args = list(args)
        self.path = shutil.which(name) or name
        # A raw command line handed to the program as is (used for cmd.exe).
        self.cmdline: str | None = None
        self.stdout = ""
        self.stderr = ""
        self.err: Exception | None = None
        self.status = 0

    def _argv(self) -> tuple[str | list[str], dict]:
        if self.cmdline is None:
            return [self.path, *self.args], {}
        if sys.platform == "win32":
            return self.cmdline, {"executable": self.path}
        return [self.path, *shlex.split(self.cmdline)], {}

    def run(self) -> None:
        """Run the program to completion.

        Output is stored in ``stdout`` and ``stderr`` and the exit code in
        ``status``. A missing executable raises ``FileNotFoundError``; a
        non-zero exit raises ``subprocess.CalledProcessError``. The raised
        exception is also kept in ``err``.
        """
        if shutil.which(self.name) is None:
            self.err = FileNotFoundError(
                errno.ENOENT, "executable file not found in $PATH", self.name
            )
            raise self.err

        argv, extra = self._argv()
        try:
            proc = subprocess.run(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                check=False,
                **extra,
            )
        except OSError as exc:
            self.err = exc
            raise

        self.stdout = proc.stdout.decode("utf-8", errors="replace")
        self.stderr = proc.stderr.decode("utf-8", errors="replace")

        if proc.returncode != 0:
            self.status = proc.returncode if proc.returncode > 0 else -1
            self.err = subprocess.CalledProcessError(
                proc.returncode, argv, proc.stdout, proc.stderr
            )
            raise self.err

        self.status = 0
        self.err = None


def windows_cmd_command(name: str, *args: str) -> Command:
    """Build a command whose arguments form one raw command line, as cmd.exe expects."""
    command = Command(name)
    command.cmdline = " ".join(args)
    return command