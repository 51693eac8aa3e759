"""System services managed by sysvinit, systemd or upstart."""

from __future__ import annotations

import abc
import glob
import os
import re
import subprocess

from hostspec.util import runner

ETC = "/etc"

_UPSTART_ENABLED = re.compile(r"\s*start on")
_UPSTART_DISABLED = re.compile(r"manual")


def invalid_service(s: str) -> bool:
    """Whether a service name is unusable (it contains a slash)."""
    return "/" in s


def _run(*argv: str) -> runner.Command:
    """Run a program; failures are left in the command's ``err`` and ``status``."""
    cmd = runner.Command(*argv)
    try:
        cmd.run()
    except (OSError, subprocess.CalledProcessError):
        pass
    return cmd


def _succeeded(cmd: runner.Command) -> bool:
    """True for exit status 0; an error that kept the program from running is raised."""
    if cmd.status != 0:
        return False
    if cmd.err is not None:
        raise cmd.err
    return True


def init_service_enabled(service: str, level: int) -> bool:
    """Whether a start link for the service exists in runlevel ``level``."""
    pattern = os.path.join(ETC, f"rc{level}.d", f"S[0-9][0-9]{service}")
    return bool(glob.glob(pattern))


def alpine_init_service_enabled(service: str, level: str) -> bool:
    """Whether the service is in the OpenRC runlevel ``level``."""
    return bool(glob.glob(os.path.join(ETC, "runlevels", level, service)))


def _lines(path: str):
    try:
        with open(path, encoding="utf-8", errors="replace") as fh:
            yield from (line.rstrip("\r\n") for line in fh)
    except OSError:
        return


class Service(abc.ABC):
    """A system service."""

    service: str

    @abc.abstractmethod
    def exists(self) -> bool:
        """Whether the service is known."""

    @abc.abstractmethod
    def enabled(self) -> bool:
        """Whether the service starts at boot."""

    @abc.abstractmethod
    def running(self) -> bool:
        """Whether the service is running."""


class ServiceInit(Service):
    """A sysvinit service, or an OpenRC one when ``alpine`` is set."""

    def __init__(self, service, system=None, config=None, alpine=False) -> None:
        self.service = service
        self.alpine = alpine

    def exists(self) -> bool:
        if invalid_service(self.service):
            return False
        return os.path.exists(os.path.join(ETC, "init.d", self.service))

    def enabled(self) -> bool:
        if invalid_service(self.service):
            return False
        if self.alpine:
            return alpine_init_service_enabled(self.service, "sysinit")
        return init_service_enabled(self.service, 3)

    def running(self) -> bool:
        if invalid_service(self.service):
            return False
        return _succeeded(_run("service", self.service, "status"))


def _sysv_says(check) -> bool:
    try:
        return bool(check())
    except Exception:
        return False


class ServiceSystemd(Service):
    """A systemd unit; with ``legacy`` set, sysvinit is consulted as a fallback."""

    def __init__(self, service, system=None, config=None, legacy=False) -> None:
        self.service = service
        self.legacy = legacy

    def _sysv(self) -> ServiceInit:
        return ServiceInit(self.service)

    def exists(self) -> bool:
        if invalid_service(self.service):
            return False
        cmd = _run("systemctl", "-q", "list-unit-files", "--type=service")
        if f"{self.service}.service" in cmd.stdout:
            if cmd.err is not None:
                raise cmd.err
            return True
        if self.legacy and _sysv_says(self._sysv().exists):
            return True
        return False

    def enabled(self) -> bool:
        if invalid_service(self.service):
            return False
        if _succeeded(_run("systemctl", "-q", "is-enabled", self.service)):
            return True
        if self.legacy and _sysv_says(self._sysv().enabled):
            return True
        return False

    def running(self) -> bool:
        if invalid_service(self.service):
            return False
        if _succeeded(_run("systemctl", "-q", "is-active", self.service)):
            return True
        if self.legacy and _sysv_says(self._sysv().running):
            return True
        return False


class ServiceUpstart(Service):
    """An upstart job, falling back on sysvinit."""

    def __init__(self, service, system=None, config=None) -> None:
        self.service = service

    def exists(self) -> bool:
        if os.path.exists(os.path.join(ETC, "init", f"{self.service}.conf")):
            return True
        return _sysv_says(ServiceInit(self.service).exists)

    def enabled(self) -> bool:
        override = os.path.join(ETC, "init", f"{self.service}.override")
        if any(_UPSTART_DISABLED.match(line) for line in _lines(override)):
            return False
        conf = os.path.join(ETC, "init", f"{self.service}.conf")
        if any(_UPSTART_ENABLED.match(line) for line in _lines(conf)):
            return True
        return _sysv_says(ServiceInit(self.service).enabled)

    def running(self) -> bool:
        cmd = _run("service", self.service, "status")
        out = cmd.stdout
        if cmd.status == 0 and ("running" in out or "online" in out):
            if cmd.err is not None:
                raise cmd.err
            return True
        return False