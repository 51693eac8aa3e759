"""Network interface lookups."""

from __future__ import annotations

import ipaddress
import socket

import psutil


def _prefix_length(address: str, netmask: str | None) -> int:
    ip = ipaddress.ip_address(address)
    if not netmask:
        return ip.max_prefixlen
    return bin(int(ipaddress.ip_address(netmask))).count("1")


class Interface:
    """A network interface, looked up by name on first use."""

    def __init__(self, name, system, config) -> None:
        self.name = name
        self._loaded = False
        self._exists = False
        self._err: Exception | None = None
        self._mtu = 0
        self._addrs: list = []

    def _setup(self) -> None:
        if not self._loaded:
            self._loaded = True
            stats = psutil.net_if_stats()
            if self.name not in stats:
                self._exists = False
                self._err = LookupError("route ip+net: no such network interface")
            else:
                self._exists = True
                self._mtu = stats[self.name].mtu
                self._addrs = psutil.net_if_addrs().get(self.name, [])
        if self._err is not None:
            raise self._err

    def exists(self) -> bool:
        """Whether the interface is present."""
        try:
            self._setup()
        except LookupError:
            return False
        return self._exists

    def addrs(self) -> list[str]:
        """The interface's IP addresses in CIDR notation."""
        self._setup()
        result = []
        for entry in self._addrs:
            if entry.family not in (socket.AF_INET, socket.AF_INET6):
                continue
            address = entry.address.split("%", 1)[0]
            result.append(f"{address}/{_prefix_length(address, entry.netmask)}")
        return result

    def mtu(self) -> int:
        """The interface's MTU."""
        self._setup()
        return self._mtu