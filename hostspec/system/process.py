"""Running processes, looked up by executable name."""

from __future__ import annotations

import psutil


def get_procs() -> dict[str, list[psutil.Process]]:
    """Running processes grouped by executable name."""
    procs: dict[str, list[psutil.Process]] = {}
    for proc in psutil.process_iter(["name"]):
        name = proc.info.get("name") or ""
        procs.setdefault(name, []).append(proc)
    return procs


class Process:
    """An executable checked against the system's process table."""

    def __init__(self, executable, system, config) -> None:
        self.executable = executable
        self._err: Exception | None = None
        self._proc_map: dict = {}
        try:
            self._proc_map = system.proc_map()
        except (psutil.Error, OSError) as exc:
            self._err = exc

    def exists(self) -> bool:
        """Same as ``running``."""
        return self.running()

    def running(self) -> bool:
        """Whether any process runs the executable."""
        if self._err is not None:
            raise self._err
        return self.executable in self._proc_map

    def pids(self) -> list[int]:
        """Ids of the processes running the executable."""
        if self._err is not None:
            raise self._err
        return [proc.pid for proc in self._proc_map.get(self.executable, [])]