"""Listening network ports."""

from __future__ import annotations

import socket
from dataclasses import dataclass

import psutil


@dataclass
class PortEntry:
    """A socket bound to a local port."""

    ip: str
    port: int
    state: str
    foreign_ip: str = ""
    foreign_port: int = 0
    pid: int | None = None
    name: str = ""


def split_port(fullport: str) -> tuple[str, str]:
    """Split ``network:port``; the network defaults to tcp."""
    network, sep, port = fullport.partition(":")
    if sep:
        return network, port
    return "tcp", fullport


def normalize_port(fullport: str) -> str:
    """The port with its network spelled out, as ``network:port``."""
    network, port = split_port(fullport)
    return f"{network}:{port}"


def _network(conn) -> str | None:
    if conn.type == socket.SOCK_STREAM:
        base = "tcp"
    elif conn.type == socket.SOCK_DGRAM:
        base = "udp"
    else:
        return None
    if conn.family == socket.AF_INET:
        return base
    if conn.family == socket.AF_INET6:
        return base + "6"
    return None


def _process_name(pid: int | None) -> str:
    if not pid:
        return ""
    try:
        return psutil.Process(pid).name()
    except psutil.Error:
        return ""


def get_ports(lookup_pids: bool) -> dict[str, list[PortEntry]]:
    """Listening TCP sockets and all UDP sockets, keyed by ``network:port``.

    Errors reading the socket table yield an empty result.
    """
    try:
        connections = psutil.net_connections(kind="inet")
    except (psutil.Error, OSError):
        return {}

    ports: dict[str, list[PortEntry]] = {}
    for conn in connections:
        network = _network(conn)
        if network is None or not conn.laddr:
            continue
        if network.startswith("tcp") and conn.status != psutil.CONN_LISTEN:
            continue
        raddr = conn.raddr or ("", 0)
        entry = PortEntry(
            ip=conn.laddr[0],
            port=conn.laddr[1],
            state=conn.status,
            foreign_ip=raddr[0],
            foreign_port=raddr[1],
            pid=conn.pid if lookup_pids else None,
            name=_process_name(conn.pid) if lookup_pids else "",
        )
        ports.setdefault(f"{network}:{entry.port}", []).append(entry)
    return ports


class Port:
    """A local port checked against the system's socket table."""

    def __init__(self, port, system, config) -> None:
        self.port = normalize_port(port)
        self._sys_ports: dict[str, list[PortEntry]] = system.ports()

    def exists(self) -> bool:
        """Same as ``listening``."""
        return self.listening()

    def listening(self) -> bool:
        """Whether something listens on the port."""
        return self.port in self._sys_ports

    def ip(self) -> list[str]:
        """Local addresses the port is bound to."""
        return [entry.ip for entry in self._sys_ports.get(self.port, [])]