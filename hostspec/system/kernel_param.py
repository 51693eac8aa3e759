"""Kernel parameters read through the sysctl tree."""

from __future__ import annotations

import os

SYSCTL_BASE = "/proc/sys"


class KernelParam:
    """A kernel parameter such as ``net.ipv4.ip_forward``."""

    def __init__(self, key, system, config) -> None:
        self.key = key

    def exists(self) -> bool:
        """Whether the parameter can be read."""
        try:
            self.value()
        except OSError:
            return False
        return True

    def value(self) -> str:
        """The parameter's value, without surrounding whitespace."""
        path = os.path.join(SYSCTL_BASE, self.key.replace(".", "/"))
        with open(path, encoding="utf-8") as fh:
            return fh.read().strip()