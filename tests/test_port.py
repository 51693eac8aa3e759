import socket
from collections import namedtuple

import psutil
import pytest

from hostspec.system import port

_Conn = namedtuple("_Conn", "fd family type laddr raddr status pid")
_Addr = namedtuple("_Addr", "ip port")


class _FakeSystem:
    def __init__(self, ports):
        self._ports = ports

    def ports(self):
        return self._ports


def test_split_port():
    assert port.split_port("udp:53") == ("udp", "53")
    assert port.split_port("22") == ("tcp", "22")


def test_normalize_port():
    assert port.normalize_port("22") == "tcp:22"
    assert port.normalize_port("tcp6:80") == "tcp6:80"


def test_port_listening_and_ips():
    entries = {
        "tcp:22": [
            port.PortEntry(ip="0.0.0.0", port=22, state="LISTEN"),
            port.PortEntry(ip="127.0.0.1", port=22, state="LISTEN"),
        ]
    }
    p = port.Port("22", _FakeSystem(entries), None)
    assert p.port == "tcp:22"
    assert p.listening() is True
    assert p.exists() is True
    assert p.ip() == ["0.0.0.0", "127.0.0.1"]


def test_port_not_listening():
    p = port.Port("udp:53", _FakeSystem({"tcp:53": []}), None)
    assert p.listening() is False
    assert p.ip() == []


def _fake_connections():
    return [
        _Conn(3, socket.AF_INET, socket.SOCK_STREAM, _Addr("0.0.0.0", 22), (), "LISTEN", 10),
        _Conn(4, socket.AF_INET, socket.SOCK_STREAM, _Addr("10.0.0.1", 5000),
              _Addr("10.0.0.2", 443), "ESTABLISHED", 11),
        _Conn(5, socket.AF_INET6, socket.SOCK_STREAM, _Addr("::", 80), (), "LISTEN", 12),
        _Conn(6, socket.AF_INET, socket.SOCK_DGRAM, _Addr("0.0.0.0", 53), (), "NONE", 13),
        _Conn(7, socket.AF_INET6, socket.SOCK_DGRAM, _Addr("::", 123), (), "NONE", 14),
    ]


def test_get_ports_groups_by_network(monkeypatch):
    monkeypatch.setattr(psutil, "net_connections", lambda kind="inet": _fake_connections())
    ports = port.get_ports(False)
    assert sorted(ports) == ["tcp6:80", "tcp:22", "udp6:123", "udp:53"]
    assert [e.ip for e in ports["tcp:22"]] == ["0.0.0.0"]
    assert ports["tcp:22"][0].pid is None
    assert all("5000" not in key for key in ports)


def test_get_ports_keeps_pids_when_asked(monkeypatch):
    monkeypatch.setattr(psutil, "net_connections", lambda kind="inet": _fake_connections())
    ports = port.get_ports(True)
    assert ports["udp:53"][0].pid == 13


def test_get_ports_ignores_errors(monkeypatch):
    def denied(kind="inet"):
        raise psutil.AccessDenied()

    monkeypatch.setattr(psutil, "net_connections", denied)
    assert port.get_ports(False) == {}


@pytest.mark.parametrize("spec", ["tcp:22", "22"])
def test_port_with_real_table_shape(monkeypatch, spec):
    monkeypatch.setattr(psutil, "net_connections", lambda kind="inet": _fake_connections())
    p = port.Port(spec, _FakeSystem(port.get_ports(False)), None)
    assert p.listening() is True