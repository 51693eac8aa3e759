"""Mount points and their options, source, filesystem and usage."""

from __future__ import annotations

import math
import os
import re
import shutil
from dataclasses import dataclass

import psutil

MOUNTINFO = "/proc/self/mountinfo"
_OCTAL_ESCAPE = re.compile(r"\\([0-7]{3})")


@dataclass
class MountInfo:
    """One entry of the mount table."""

    mountpoint: str
    source: str = ""
    fstype: str = ""
    opts: str = ""
    id: int = 0
    parent: int = 0
    major: int = 0
    minor: int = 0
    root: str = ""
    optional: str = ""
    vfs_opts: str = ""


def _unescape(field: str) -> str:
    return _OCTAL_ESCAPE.sub(lambda m: chr(int(m.group(1), 8)), field)


def parse_mountinfo(text: str) -> list[MountInfo]:
    """Parse the contents of a ``mountinfo`` file. Malformed lines raise ``ValueError``."""
    entries = []
    for line in text.splitlines():
        if not line.strip():
            continue
        before, sep, after = line.partition(" - ")
        head = before.split()
        tail = after.split()
        if not sep or len(head) < 6 or len(tail) < 2:
            raise ValueError(f"malformed mountinfo line: {line!r}")
        major, _, minor = head[2].partition(":")
        try:
            entries.append(
                MountInfo(
                    id=int(head[0]),
                    parent=int(head[1]),
                    major=int(major),
                    minor=int(minor),
                    root=_unescape(head[3]),
                    mountpoint=_unescape(head[4]),
                    opts=head[5],
                    optional=" ".join(head[6:]),
                    fstype=tail[0],
                    source=_unescape(tail[1]),
                    vfs_opts=tail[2] if len(tail) > 2 else "",
                )
            )
        except ValueError as exc:
            raise ValueError(f"malformed mountinfo line: {line!r}") from exc
    return entries


def _mounts() -> list[MountInfo]:
    if os.path.exists(MOUNTINFO):
        with open(MOUNTINFO, encoding="utf-8") as fh:
            return parse_mountinfo(fh.read())
    return [
        MountInfo(mountpoint=p.mountpoint, source=p.device, fstype=p.fstype, opts=p.opts)
        for p in psutil.disk_partitions(all=True)
    ]


def get_mount(mountpoint: str) -> MountInfo:
    """The mount table entry for ``mountpoint``; ``LookupError`` if absent."""
    for entry in _mounts():
        if entry.mountpoint == mountpoint:
            return entry
    raise LookupError("Mountpoint not found")


def get_usage(mountpoint: str) -> int:
    """Percentage of blocks in use on the filesystem, rounded to a whole number."""
    if hasattr(os, "statvfs"):
        st = os.statvfs(mountpoint)
        blocks, free = st.f_blocks, st.f_bfree
    else:
        usage = shutil.disk_usage(mountpoint)
        blocks, free = usage.total, usage.free
    if blocks == 0:
        return 0
    used = (1 - free / blocks) * 100
    return int(math.floor(used + 0.5))


class Mount:
    """A mount point, looked up on first use."""

    def __init__(self, mount_point, system, config) -> None:
        self.mount_point = mount_point
        self._loaded = False
        self._exists = False
        self._err: Exception | None = None
        self._info: MountInfo | None = None
        self._usage = -1

    def _setup(self) -> MountInfo:
        if not self._loaded:
            self._loaded = True
            try:
                self._info = get_mount(self.mount_point)
                self._exists = True
                self._usage = get_usage(self.mount_point)
            except (LookupError, OSError, ValueError) as exc:
                self._err = exc
        if self._err is not None:
            raise self._err
        assert self._info is not None
        return self._info

    def exists(self) -> bool:
        """Whether the mount point is mounted and its usage can be read."""
        try:
            self._setup()
        except (LookupError, OSError, ValueError):
            return False
        return self._exists

    def opts(self) -> list[str]:
        """Mount options."""
        return self._setup().opts.split(",")

    def source(self) -> str:
        """The mounted device or source."""
        return self._setup().source

    def filesystem(self) -> str:
        """The filesystem type."""
        return self._setup().fstype

    def usage(self) -> int:
        """Percentage of the filesystem in use."""
        self._setup()
        return self._usage