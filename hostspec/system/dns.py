"""DNS resolution against the system resolver or a chosen server."""

from __future__ import annotations

import ipaddress
import re
import socket
import threading
from collections.abc import Callable, Iterator

import dns.message
import dns.query
import dns.rdatatype
import dns.reversename

_QTYPE = re.compile(r"[A-Z]+")
_DEFAULT_CLIENT_TIMEOUT = 2.0


def _split_host_port(hostport: str) -> tuple[str, str]:
    if hostport.startswith("["):
        end = hostport.find("]")
        if end < 0:
            raise ValueError(f"address {hostport}: missing ']' in address")
        rest = hostport[end + 1:]
        if not rest.startswith(":"):
            raise ValueError(f"address {hostport}: missing port in address")
        return hostport[1:end], rest[1:]
    host, sep, port = hostport.rpartition(":")
    if not sep:
        raise ValueError(f"address {hostport}: missing port in address")
    if ":" in host:
        raise ValueError(f"address {hostport}: too many colons in address")
    return host, port


def _join_host_port(host: str, port: str) -> str:
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def parse_server_string(server: str) -> str:
    """The server as ``host:port``, with port 53 when none is given."""
    try:
        host, port = _split_host_port(server)
    except ValueError:
        host, port = server, "53"
    return _join_host_port(host, port)


def _format_duration(ms: int) -> str:
    if ms <= 0:
        return "0s"
    if ms < 1000:
        return f"{ms}ms"
    minutes, rest = divmod(ms, 60_000)
    seconds = f"{rest / 1000:g}s"
    return f"{minutes}m{seconds}" if minutes else seconds


def _server_ip(host: str) -> str:
    try:
        ipaddress.ip_address(host)
        return host
    except ValueError:
        return socket.getaddrinfo(host, None)[0][4][0]


def _exchange(qname, rdtype, server: str, timeout: int) -> dns.message.Message:
    host, port = _split_host_port(parse_server_string(server))
    query = dns.message.make_query(qname, rdtype)
    wait = timeout / 1000 if timeout > 0 else _DEFAULT_CLIENT_TIMEOUT
    return dns.query.udp(query, _server_ip(host), timeout=wait, port=int(port))


def _answers(response: dns.message.Message, rdtype) -> Iterator:
    for rrset in response.answer:
        if rrset.rdtype == rdtype:
            yield from rrset


def _text(value: bytes) -> str:
    return value.decode("utf-8", errors="replace")


def lookup_a(host: str, server: str, timeout: int) -> list[str]:
    """IPv4 addresses of ``host``."""
    response = _exchange(host, dns.rdatatype.A, server, timeout)
    return [rr.address for rr in _answers(response, dns.rdatatype.A)]


def lookup_aaaa(host: str, server: str, timeout: int) -> list[str]:
    """IPv6 addresses of ``host``."""
    response = _exchange(host, dns.rdatatype.AAAA, server, timeout)
    return [rr.address for rr in _answers(response, dns.rdatatype.AAAA)]


def lookup_host(host: str, server: str, timeout: int) -> list[str]:
    """IPv4 then IPv6 addresses of ``host``; failures of either are ignored."""
    addrs: list[str] = []
    for lookup in (lookup_a, lookup_aaaa):
        try:
            addrs.extend(lookup(host, server, timeout))
        except Exception:
            pass
    return addrs


def lookup_cname(host: str, server: str, timeout: int) -> list[str]:
    """Canonical name targets of ``host``."""
    response = _exchange(host, dns.rdatatype.CNAME, server, timeout)
    return [rr.target.to_text() for rr in _answers(response, dns.rdatatype.CNAME)]


def lookup_mx(host: str, server: str, timeout: int) -> list[str]:
    """Mail exchangers of ``host`` as ``"preference exchange"``."""
    response = _exchange(host, dns.rdatatype.MX, server, timeout)
    return [
        f"{rr.preference} {rr.exchange.to_text()}"
        for rr in _answers(response, dns.rdatatype.MX)
    ]


def lookup_ns(host: str, server: str, timeout: int) -> list[str]:
    """Name servers of ``host``."""
    response = _exchange(host, dns.rdatatype.NS, server, timeout)
    return [rr.target.to_text() for rr in _answers(response, dns.rdatatype.NS)]


def lookup_srv(host: str, server: str, timeout: int) -> list[str]:
    """Service records of ``host`` as ``"priority weight port target"``."""
    response = _exchange(host, dns.rdatatype.SRV, server, timeout)
    return [
        f"{rr.priority} {rr.weight} {rr.port} {rr.target.to_text()}"
        for rr in _answers(response, dns.rdatatype.SRV)
    ]


def lookup_txt(host: str, server: str, timeout: int) -> list[str]:
    """Text strings of ``host``, each string of each record separately."""
    response = _exchange(host, dns.rdatatype.TXT, server, timeout)
    return [
        _text(part)
        for rr in _answers(response, dns.rdatatype.TXT)
        for part in rr.strings
    ]


def lookup_ptr(addr: str, server: str, timeout: int) -> list[str]:
    """Names that the IP address ``addr`` points back to."""
    reverse = dns.reversename.from_address(addr)
    response = _exchange(reverse, dns.rdatatype.PTR, server, timeout)
    return [rr.target.to_text() for rr in _answers(response, dns.rdatatype.PTR)]


def lookup_caa(host: str, server: str, timeout: int) -> list[str]:
    """Certification authority records of ``host`` as ``"flag tag value"``."""
    response = _exchange(host, dns.rdatatype.CAA, server, timeout)
    return [
        f"{rr.flags} {_text(rr.tag)} {_text(rr.value)}"
        for rr in _answers(response, dns.rdatatype.CAA)
    ]


_LOOKUPS: dict[str, Callable[[str, str, int], list[str]]] = {
    "A": lookup_a,
    "AAAA": lookup_aaaa,
    "PTR": lookup_ptr,
    "CNAME": lookup_cname,
    "MX": lookup_mx,
    "NS": lookup_ns,
    "SRV": lookup_srv,
    "TXT": lookup_txt,
    "CAA": lookup_caa,
}


def _system_lookup(host: str) -> list[str]:
    addrs: list[str] = []
    for *_, sockaddr in socket.getaddrinfo(host, None, proto=socket.IPPROTO_TCP):
        if sockaddr[0] not in addrs:
            addrs.append(sockaddr[0])
    return addrs


def dns_lookup(host: str, server: str, qtype: str, timeout: int) -> list[str]:
    """Resolve ``host``, giving up after ``timeout`` milliseconds.

    Without a server the system resolver is used and ``qtype`` is ignored;
    with one, ``qtype`` picks the record type, defaulting to A and AAAA.
    """
    outcome: dict[str, object] = {}

    def target() -> None:
        try:
            if server:
                lookup = _LOOKUPS.get(qtype, lookup_host)
                outcome["addrs"] = lookup(host, server, timeout)
            else:
                outcome["addrs"] = _system_lookup(host)
        except BaseException as exc:  # handed back to the caller
            outcome["error"] = exc

    worker = threading.Thread(target=target, daemon=True)
    worker.start()
    worker.join(timeout / 1000 if timeout > 0 else 0)
    if worker.is_alive():
        raise TimeoutError(f"DNS lookup timed out ({_format_duration(timeout)})")
    if "error" in outcome:
        raise outcome["error"]  # type: ignore[misc]
    return list(outcome["addrs"])  # type: ignore[arg-type]


class DNS:
    """A host name resolved once, with up to three attempts."""

    def __init__(self, host, system, config) -> None:
        qtype = ""
        prefix, sep, rest = host.partition(":")
        if sep and _QTYPE.fullmatch(prefix):
            qtype, host = prefix, rest
        self.host = host
        self.qtype = qtype
        self.server = config.server
        self.timeout = config.timeout_milliseconds()
        self._loaded = False
        self._err: Exception | None = None
        self._resolvable = False
        self._addrs: list[str] = []

    def _setup(self) -> None:
        if self._loaded:
            if self._err is not None:
                raise self._err
            return
        self._loaded = True
        for _ in range(3):
            try:
                addrs = dns_lookup(self.host, self.server, self.qtype, self.timeout)
            except socket.gaierror:
                # The name does not resolve: not an error, just unresolvable.
                self._resolvable = False
                self._addrs = []
                return
            except Exception as exc:
                self._resolvable = False
                self._addrs = []
                self._err = exc
                continue
            if not addrs:
                self._resolvable = False
                self._addrs = []
                self._err = None
                continue
            self._resolvable = True
            self._addrs = sorted(addrs)
            self._err = None
            return
        if self._err is not None:
            raise self._err

    def addrs(self) -> list[str]:
        """The resolved records, sorted."""
        self._setup()
        return list(self._addrs)

    def resolvable(self) -> bool:
        """Whether the name resolved to at least one record."""
        self._setup()
        return self._resolvable

    def exists(self) -> bool:
        """Names have no notion of existence; always False."""
        return False