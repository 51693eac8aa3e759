"""Local user lookups."""

from __future__ import annotations

try:
    import pwd
except ImportError:  # platforms without a passwd database
    pwd = None

try:
    import grp
except ImportError:  # platforms without a group database
    grp = None


def _lookup(username: str):
    if pwd is None:
        raise LookupError("no passwd database on this platform")
    try:
        return pwd.getpwnam(username)
    except KeyError:
        raise LookupError("no matching entries in passwd file") from None


def lookup_user_groups(username: str, gid: int) -> list[str]:
    """Names of the groups of a user: the primary group and every group listing it."""
    if grp is None:
        raise LookupError(f"Unable to find groups for user {username}: no group database")
    return [
        g.gr_name
        for g in grp.getgrall()
        if g.gr_gid == gid or username in g.gr_mem
    ]


class User:
    """A user in the local passwd database."""

    def __init__(self, username, system, config) -> None:
        self.username = username

    def exists(self) -> bool:
        """Whether the user is known."""
        try:
            _lookup(self.username)
        except LookupError:
            return False
        return True

    def uid(self) -> int:
        """The user's id."""
        return _lookup(self.username).pw_uid

    def gid(self) -> int:
        """The user's primary group id."""
        return _lookup(self.username).pw_gid

    def groups(self) -> list[str]:
        """Names of the user's groups, sorted."""
        entry = _lookup(self.username)
        return sorted(lookup_user_groups(entry.pw_name, entry.pw_gid))

    def home(self) -> str:
        """The user's home directory."""
        return _lookup(self.username).pw_dir

    def shell(self) -> str:
        """The user's login shell."""
        return _lookup(self.username).pw_shell