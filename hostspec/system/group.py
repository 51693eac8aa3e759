"""Local group lookups."""

from __future__ import annotations

try:
    import grp
except ImportError:  # platforms without a group database
    grp = None


def _lookup(groupname: str):
    if grp is None:
        raise LookupError("no group database on this platform")
    try:
        return grp.getgrnam(groupname)
    except KeyError:
        raise LookupError("no matching entries in group file") from None


class Group:
    """A group in the local group database."""

    def __init__(self, groupname, system, config) -> None:
        self.groupname = groupname

    def exists(self) -> bool:
        """Whether the group is known."""
        try:
            _lookup(self.groupname)
        except LookupError:
            return False
        return True

    def gid(self) -> int:
        """The group's id; raises ``LookupError`` if it is unknown."""
        return _lookup(self.groupname).gr_gid