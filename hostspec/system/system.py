"""The host being checked: resource factories and platform detection."""

from __future__ import annotations

import functools
import os
import shutil
import threading
from collections.abc import Callable
from typing import Any

from hostspec.system.addr import Addr
from hostspec.system.command import Command
from hostspec.system.dns import DNS
from hostspec.system.file import File
from hostspec.system.gossfile import Gossfile
from hostspec.system.group import Group
from hostspec.system.http import HTTP
from hostspec.system.interface import Interface
from hostspec.system.kernel_param import KernelParam
from hostspec.system.mount import Mount
from hostspec.system.package import (
    AlpinePackage,
    DebPackage,
    PacmanPackage,
    RpmPackage,
)
from hostspec.system.port import PortEntry, Port, get_ports
from hostspec.system.process import Process, get_procs
from hostspec.system.service import ServiceInit, ServiceSystemd, ServiceUpstart
from hostspec.system.user import User

ETC = "/etc"

_SUPPORTED_PACKAGE_MANAGERS = ("apk", "dpkg", "pacman", "rpm")

_PACKAGE_FACTORIES: dict[str, Callable[..., Any]] = {
    "dpkg": DebPackage,
    "apk": AlpinePackage,
    "pacman": PacmanPackage,
}

_SERVICE_FACTORIES: dict[str, Callable[..., Any]] = {
    "upstart": ServiceUpstart,
    "systemd": ServiceSystemd,
    "systemdlegacy": functools.partial(ServiceSystemd, legacy=True),
    "alpineinit": functools.partial(ServiceInit, alpine=True),
}


def _etc(name: str) -> str:
    return os.path.join(ETC, name)


def _read_bytes(path: str) -> bytes | None:
    try:
        with open(path, "rb") as fh:
            return fh.read()
    except OSError:
        return None


def supported_package_managers() -> list[str]:
    """The package managers that can be queried."""
    return list(_SUPPORTED_PACKAGE_MANAGERS)


def is_supported_package_manager(p: str) -> bool:
    """Whether ``p`` names a supported package manager."""
    return p in _SUPPORTED_PACKAGE_MANAGERS


def has_command(cmd: str) -> bool:
    """Whether an executable by this name is on the PATH."""
    return shutil.which(cmd) is not None


def _is_redhat() -> bool:
    return os.path.exists(_etc("redhat-release")) or os.path.exists(
        _etc("system-release")
    )


def _is_legacy_systemd() -> bool:
    data = _read_bytes(_etc("debian_version"))
    if data is None:
        return False
    major, sep, _ = data.partition(b".")
    if not sep:
        return False
    text = major.decode("ascii", errors="replace")
    if text != text.strip():
        return False
    try:
        return int(text) < 9
    except ValueError:
        return False


def detect_distro() -> str:
    """The Linux distribution: ubuntu, redhat, alpine, arch, debian, or ``""``."""
    lsb = _read_bytes(_etc("lsb-release"))
    if lsb is not None and b"Ubuntu" in lsb:
        return "ubuntu"
    if _is_redhat():
        return "redhat"
    if os.path.exists(_etc("alpine-release")):
        return "alpine"
    if os.path.exists(_etc("arch-release")):
        return "arch"
    if os.path.exists(_etc("debian_version")):
        return "debian"
    return ""


def detect_package_manager() -> str:
    """The package manager in use: dpkg, rpm, apk, pacman, or ``""``.

    The distribution decides first; failing that, the first package manager
    found on the PATH.
    """
    by_distro = {
        "ubuntu": "dpkg",
        "redhat": "rpm",
        "alpine": "apk",
        "arch": "pacman",
        "debian": "dpkg",
    }
    manager = by_distro.get(detect_distro())
    if manager is not None:
        return manager
    for candidate in ("dpkg", "rpm", "apk", "pacman"):
        if has_command(candidate):
            return candidate
    return ""


def detect_service() -> str:
    """The service manager: systemd, systemdlegacy, upstart, alpineinit or init."""
    if has_command("systemctl"):
        return "systemdlegacy" if _is_legacy_systemd() else "systemd"
    by_distro = {"ubuntu": "upstart", "alpine": "alpineinit", "arch": "systemd"}
    return by_distro.get(detect_distro(), "init")


class System:
    """Factories for every kind of resource, chosen to suit this host.

    Each ``new_*`` attribute is called as ``factory(name, system, config)``.
    The port table and process table are read once and shared.
    """

    def __init__(self, package_manager: str = "") -> None:
        self.new_file = File
        self.new_addr = Addr
        self.new_port = Port
        self.new_user = User
        self.new_group = Group
        self.new_command = Command
        self.new_dns = DNS
        self.new_process = Process
        self.new_gossfile = Gossfile
        self.new_kernel_param = KernelParam
        self.new_mount = Mount
        self.new_interface = Interface
        self.new_http = HTTP
        self.new_service = self._detect_service()
        self.new_package = self._detect_package(package_manager)

        self._lock = threading.Lock()
        self._ports: dict[str, list[PortEntry]] | None = None
        self._procs_loaded = False
        self._proc_map: dict = {}
        self._proc_err: Exception | None = None

    @staticmethod
    def _detect_package(p: str) -> Callable[..., Any]:
        if not is_supported_package_manager(p):
            p = detect_package_manager()
        return _PACKAGE_FACTORIES.get(p, RpmPackage)

    @staticmethod
    def _detect_service() -> Callable[..., Any]:
        return _SERVICE_FACTORIES.get(detect_service(), ServiceInit)

    def ports(self) -> dict[str, list[PortEntry]]:
        """The listening ports, read on first use."""
        with self._lock:
            if self._ports is None:
                self._ports = get_ports(False)
            return self._ports

    def proc_map(self) -> dict:
        """Running processes by executable name, read on first use."""
        with self._lock:
            if not self._procs_loaded:
                self._procs_loaded = True
                try:
                    self._proc_map = get_procs()
                except Exception as exc:
                    self._proc_err = exc
            if self._proc_err is not None:
                raise self._proc_err
            return self._proc_map