"""Reachability checks for network addresses."""

from __future__ import annotations

import ipaddress
import socket

_DEFAULT_NETWORK = "tcp"
_UNIX_NETWORKS = ("unix", "unixgram", "unixpacket")


def split_address(fulladdress: str) -> tuple[str, str]:
    """Split ``network://address`` into its parts; the network defaults to tcp."""
    network, sep, address = fulladdress.partition("://")
    if sep:
        return network, address
    return _DEFAULT_NETWORK, fulladdress


def normalize_address(fulladdress: str) -> str:
    """The address with its network spelled out, as ``network://address``."""
    network, address = split_address(fulladdress)
    return f"{network}://{address}"


def _host_and_port(address: str) -> tuple[str, str]:
    host, sep, port = address.rpartition(":")
    if not sep:
        raise ValueError(f"address {address}: missing port in address")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    return host, port


def _valid_ip(text: str) -> bool:
    try:
        ipaddress.ip_address(text)
    except ValueError:
        return False
    return True


class Addr:
    """A network address that is checked by dialling it."""

    def __init__(self, address, system, config) -> None:
        self.address = normalize_address(address)
        self.local_address = config.local_address
        self.timeout = config.timeout_milliseconds()

    def exists(self) -> bool:
        """Same as ``reachable``."""
        return self.reachable()

    def reachable(self) -> bool:
        """Whether a connection to the address can be opened."""
        network, address = split_address(self.address)
        try:
            self._dial(network, address)
        except (OSError, ValueError):
            return False
        return True

    def _dial(self, network: str, address: str) -> None:
        timeout = self.timeout / 1000 if self.timeout > 0 else None

        if network in _UNIX_NETWORKS:
            family = getattr(socket, "AF_UNIX", None)
            if family is None:
                raise ValueError(f"dial {network}: unsupported on this platform")
            socktype = socket.SOCK_STREAM if network != "unixgram" else socket.SOCK_DGRAM
            with socket.socket(family, socktype) as sock:
                sock.settimeout(timeout)
                sock.connect(address)
            return

        base = network.rstrip("46")
        if base not in ("tcp", "udp") or len(network) - len(base) > 1:
            raise ValueError(f"dial {network}: unknown network {network}")
        family = {"4": socket.AF_INET, "6": socket.AF_INET6}.get(
            network[-1], socket.AF_UNSPEC
        )
        socktype = socket.SOCK_STREAM if base == "tcp" else socket.SOCK_DGRAM

        host, port = _host_and_port(address)
        local = self.local_address if _valid_ip(self.local_address) else None

        last_error: OSError | None = None
        for fam, stype, proto, _, sockaddr in socket.getaddrinfo(
            host or None, port, family, socktype
        ):
            try:
                with socket.socket(fam, stype, proto) as sock:
                    sock.settimeout(timeout)
                    if local is not None:
                        sock.bind((local, 0))
                    sock.connect(sockaddr)
                return
            except OSError as exc:
                last_error = exc
        raise last_error or OSError(f"dial {network} {address}: no addresses")