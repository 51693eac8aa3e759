"""Installed packages, queried through the system's package manager."""

from __future__ import annotations

import abc
import subprocess

from hostspec.util import runner

_NOT_FOUND = "Package version not found"


class NullPackageError(RuntimeError):
    """Raised when no package manager could be detected."""

    def __init__(
        self,
        message: str = (
            "Could not detect Package type on this system, "
            "please use --package flag to explicity set it"
        ),
    ) -> None:
        super().__init__(message)


def _run(*argv: str) -> str | None:
    """Run a program and return its output, or None if it failed."""
    cmd = runner.Command(*argv)
    try:
        cmd.run()
    except (OSError, subprocess.CalledProcessError):
        return None
    return cmd.stdout


def parse_apk_output(output: str, name: str) -> list[str]:
    """Versions from ``apk version <name>`` output."""
    versions = []
    for line in output.strip().split("\n"):
        if line.startswith("Installed:") or line.startswith("WARNING"):
            continue
        fields = line.split()
        if not fields:
            continue
        first = fields[0]
        prefix = f"{name}-"
        versions.append(first[len(prefix):] if first.startswith(prefix) else first)
    return versions


def parse_dpkg_output(output: str) -> list[str]:
    """Versions of installed or held packages from ``dpkg-query`` output."""
    versions = []
    for line in output.strip().split("\n"):
        if not (
            line.startswith("install ok installed")
            or line.startswith("hold ok installed")
        ):
            continue
        fields = line.split()
        if len(fields) > 3:
            versions.append(fields[3])
    return versions


def parse_pacman_output(output: str) -> list[str]:
    """The version from ``pacman -Q`` output, formatted as ``name version``."""
    fields = output.split()
    return [fields[1]] if len(fields) > 1 else []


def parse_rpm_output(output: str) -> list[str]:
    """Versions from ``rpm -q`` output, one per line."""
    return output.strip().split("\n")


class Package(abc.ABC):
    """A package, queried on first use; the answer is cached."""

    def __init__(self, name, system, config) -> None:
        self.name = name
        self._loaded = False
        self._installed = False
        self._versions: list[str] = []

    @abc.abstractmethod
    def _query(self) -> tuple[bool, list[str]]:
        """Ask the package manager whether the package is installed and at which versions."""

    def _setup(self) -> None:
        if self._loaded:
            return
        self._loaded = True
        self._installed, self._versions = self._query()

    def exists(self) -> bool:
        """Same as ``installed``."""
        return self.installed()

    def installed(self) -> bool:
        """Whether the package is installed."""
        self._setup()
        return self._installed

    def versions(self) -> list[str]:
        """Installed versions; raises ``LookupError`` when there are none."""
        self._setup()
        if not self._versions:
            raise LookupError(_NOT_FOUND)
        return list(self._versions)


class NullPackage(Package):
    """Stand-in used when no package manager is known; every query raises."""

    def _query(self) -> tuple[bool, list[str]]:
        raise NullPackageError()

    def installed(self) -> bool:
        raise NullPackageError()

    def versions(self) -> list[str]:
        raise NullPackageError()


class AlpinePackage(Package):
    """A package managed by apk."""

    def _query(self) -> tuple[bool, list[str]]:
        output = _run("apk", "version", self.name)
        if output is None:
            return False, []
        versions = parse_apk_output(output, self.name)
        return bool(versions), versions


class DebPackage(Package):
    """A package managed by dpkg."""

    def _query(self) -> tuple[bool, list[str]]:
        output = _run("dpkg-query", "-f", "${Status} ${Version}\n", "-W", self.name)
        if output is None:
            return False, []
        versions = parse_dpkg_output(output)
        return bool(versions), versions


class PacmanPackage(Package):
    """A package managed by pacman."""

    def _query(self) -> tuple[bool, list[str]]:
        output = _run("pacman", "-Q", "--color", "never", "--noconfirm", self.name)
        if output is None:
            return False, []
        return True, parse_pacman_output(output)


class RpmPackage(Package):
    """A package managed by rpm."""

    def _query(self) -> tuple[bool, list[str]]:
        output = _run(
            "rpm", "-q", "--nosignature", "--nohdrchk", "--nodigest",
            "--qf", "%{VERSION}\n", self.name,
        )
        if output is None:
            return False, []
        return True, parse_rpm_output(output)