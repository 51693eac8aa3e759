"""Files on the local filesystem and their attributes."""

from __future__ import annotations

import hashlib
import os
import stat
import subprocess
import sys
from typing import BinaryIO

from hostspec.util import runner

try:
    import pwd
except ImportError:  # platforms without a passwd database
    pwd = None

try:
    import grp
except ImportError:  # platforms without a group database
    grp = None

_WINDOWS = sys.platform == "win32"
_NOT_APPLICABLE = "-1"
_CHUNK = 1 << 16


def _home_of(name: str) -> str:
    if pwd is None:
        if not name:
            return os.path.expanduser("~")
        raise LookupError(f"no passwd database to look up user {name!r}")
    try:
        if not name:
            return pwd.getpwuid(os.getuid()).pw_dir
        return pwd.getpwnam(name).pw_dir
    except KeyError:
        raise LookupError("no matching entries in passwd file") from None


def real_path(path: str) -> str:
    """Expand a leading ``~`` or ``~user`` to that user's home directory.

    Paths without a leading tilde are returned unchanged. An unknown user
    raises ``LookupError``.
    """
    if not path.startswith("~"):
        return path
    parts = path.split("/")
    parts[0] = _home_of(parts[0][1:])
    return os.path.abspath("/".join(parts))


def user_for_uid(uid: int) -> str:
    """The name of the user with id ``uid``, falling back on ``getent``."""
    if pwd is not None:
        try:
            return pwd.getpwuid(uid).pw_name
        except KeyError:
            pass
    cmd = runner.Command("getent", "passwd", str(uid))
    try:
        cmd.run()
    except (OSError, subprocess.CalledProcessError) as exc:
        raise LookupError(
            f"Error: no matching entries in passwd file. getent passwd: {exc}"
        ) from exc
    return cmd.stdout.split(":")[0]


def group_for_gid(gid: int) -> str:
    """The name of the group with id ``gid``, falling back on ``getent``."""
    if grp is not None:
        try:
            return grp.getgrgid(gid).gr_name
        except KeyError:
            pass
    cmd = runner.Command("getent", "group", str(gid))
    try:
        cmd.run()
    except (OSError, subprocess.CalledProcessError) as exc:
        raise LookupError(
            f"Error: no matching entries in passwd file. getent group: {exc}"
        ) from exc
    return cmd.stdout.split(":")[0]


class File:
    """A path on the filesystem; ``~`` is expanded on first use."""

    def __init__(self, path, system, config) -> None:
        if not path.startswith("~"):
            path = os.path.abspath(path)
        self.path = path
        self._real_path = path
        self._loaded = False
        self._err: Exception | None = None

    def _setup(self) -> str:
        if not self._loaded and self._err is None:
            self._loaded = True
            try:
                self._real_path = real_path(self.path)
            except LookupError as exc:
                self._err = exc
        if self._err is not None:
            raise self._err
        return self._real_path

    def _lstat(self) -> os.stat_result:
        return os.lstat(self._setup())

    def exists(self) -> bool:
        """Whether anything exists at the path (links are not followed)."""
        path = self._setup()
        try:
            os.lstat(path)
        except FileNotFoundError:
            return False
        return True

    def contains(self) -> BinaryIO:
        """The file opened for binary reading; the caller closes it."""
        return open(self._setup(), "rb")

    def mode(self) -> str:
        """Permission bits as four octal digits, e.g. ``0644``."""
        if _WINDOWS:
            return _NOT_APPLICABLE
        return f"{self._lstat().st_mode & 0o7777:04o}"

    def size(self) -> int:
        """Size in bytes."""
        return self._lstat().st_size

    def filetype(self) -> str:
        """The kind of file: symlink, device, pipe, socket, directory or file."""
        mode = self._lstat().st_mode
        if stat.S_ISLNK(mode):
            return "symlink"
        if stat.S_ISCHR(mode):
            return "character-device"
        if stat.S_ISBLK(mode):
            return "block-device"
        if stat.S_ISFIFO(mode):
            return "pipe"
        if stat.S_ISSOCK(mode):
            return "socket"
        if stat.S_ISDIR(mode):
            return "directory"
        return "file"

    def owner(self) -> str:
        """Name of the owning user."""
        if _WINDOWS:
            return _NOT_APPLICABLE
        return user_for_uid(self._lstat().st_uid)

    def group(self) -> str:
        """Name of the owning group."""
        if _WINDOWS:
            return _NOT_APPLICABLE
        return group_for_gid(self._lstat().st_gid)

    def linked_to(self) -> str:
        """Target of the symbolic link."""
        return os.readlink(self._setup())

    def _hash(self, name: str) -> str:
        digest = hashlib.new(name)
        with open(self._setup(), "rb") as fh:
            for chunk in iter(lambda: fh.read(_CHUNK), b""):
                digest.update(chunk)
        return digest.hexdigest()

    def md5(self) -> str:
        """MD5 digest of the contents, in hex."""
        return self._hash("md5")

    def sha256(self) -> str:
        """SHA-256 digest of the contents, in hex."""
        return self._hash("sha256")

    def sha512(self) -> str:
        """SHA-512 digest of the contents, in hex."""
        return self._hash("sha512")