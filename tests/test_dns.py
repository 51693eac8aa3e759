import socket
import threading
from datetime import timedelta

import dns.exception
import dns.message
import dns.rdatatype
import dns.rrset
import pytest

from hostspec.system.dns import (
    DNS,
    dns_lookup,
    lookup_a,
    lookup_aaaa,
    lookup_caa,
    lookup_cname,
    lookup_host,
    lookup_mx,
    lookup_ns,
    lookup_ptr,
    lookup_srv,
    lookup_txt,
    parse_server_string,
)
from hostspec.util.config import Config


@pytest.fixture
def dns_server():
    records: dict[str, list[str]] = {}
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    sock.settimeout(0.05)
    stop = threading.Event()

    def serve():
        while not stop.is_set():
            try:
                data, peer = sock.recvfrom(4096)
            except socket.timeout:
                continue
            except OSError:
                return
            query = dns.message.from_wire(data)
            response = dns.message.make_response(query)
            question = query.question[0]
            texts = records.get(dns.rdatatype.to_text(question.rdtype), [])
            if texts:
                response.answer.append(
                    dns.rrset.from_text_list(question.name, 300, "IN", question.rdtype, texts)
                )
            sock.sendto(response.to_wire(), peer)

    thread = threading.Thread(target=serve, daemon=True)
    thread.start()
    yield f"127.0.0.1:{sock.getsockname()[1]}", records
    stop.set()
    thread.join()
    sock.close()


@pytest.fixture
def silent_server():
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    yield f"127.0.0.1:{sock.getsockname()[1]}"
    sock.close()


@pytest.mark.parametrize(
    "server, expected",
    [
        ("127.0.0.1", "127.0.0.1:53"),
        ("127.0.0.1:53", "127.0.0.1:53"),
        ("127.0.0.1:8600", "127.0.0.1:8600"),
        ("1.1.1.1:53", "1.1.1.1:53"),
    ],
)
def test_parse_server_string(server, expected):
    assert parse_server_string(server) == expected


def test_parse_server_string_ipv6():
    assert parse_server_string("::1") == "[::1]:53"


def test_qtype_prefix_is_split():
    d = DNS("MX:example.com", None, Config())
    assert d.host == "example.com"
    assert d.qtype == "MX"


def test_lowercase_prefix_is_part_of_host():
    d = DNS("mx:example.com", None, Config())
    assert d.host == "mx:example.com"
    assert d.qtype == ""


def test_server_from_config():
    d = DNS("example.com", None, Config(server="127.0.0.1"))
    assert d.server == "127.0.0.1"
    assert d.exists() is False


def test_lookup_a(dns_server):
    server, records = dns_server
    records["A"] = ["192.0.2.1", "192.0.2.2"]
    assert sorted(lookup_a("example.com", server, 2000)) == ["192.0.2.1", "192.0.2.2"]


def test_lookup_aaaa(dns_server):
    server, records = dns_server
    records["AAAA"] = ["2001:db8::1"]
    assert lookup_aaaa("example.com", server, 2000) == ["2001:db8::1"]


def test_lookup_host_joins_a_and_aaaa(dns_server):
    server, records = dns_server
    records["A"] = ["192.0.2.1"]
    records["AAAA"] = ["2001:db8::1"]
    assert lookup_host("example.com", server, 2000) == ["192.0.2.1", "2001:db8::1"]


def test_lookup_cname(dns_server):
    server, records = dns_server
    records["CNAME"] = ["target.example.com."]
    assert lookup_cname("alias.example.com", server, 2000) == ["target.example.com."]


def test_lookup_mx(dns_server):
    server, records = dns_server
    records["MX"] = ["10 mail.example.com."]
    assert lookup_mx("example.com", server, 2000) == ["10 mail.example.com."]


def test_lookup_ns(dns_server):
    server, records = dns_server
    records["NS"] = ["ns1.example.com."]
    assert lookup_ns("example.com", server, 2000) == ["ns1.example.com."]


def test_lookup_srv(dns_server):
    server, records = dns_server
    records["SRV"] = ["0 5 5060 sip.example.com."]
    assert lookup_srv("_sip._tcp.example.com", server, 2000) == ["0 5 5060 sip.example.com."]


def test_lookup_txt(dns_server):
    server, records = dns_server
    records["TXT"] = ['"hello world"']
    assert lookup_txt("example.com", server, 2000) == ["hello world"]


def test_lookup_ptr(dns_server):
    server, records = dns_server
    records["PTR"] = ["host.example.com."]
    assert lookup_ptr("192.0.2.1", server, 2000) == ["host.example.com."]


def test_lookup_ptr_rejects_bad_address(dns_server):
    server, _ = dns_server
    with pytest.raises((ValueError, dns.exception.DNSException)):
        lookup_ptr("not-an-ip", server, 2000)


def test_lookup_caa(dns_server):
    server, records = dns_server
    records["CAA"] = ['0 issue "ca.example.com"']
    assert lookup_caa("example.com", server, 2000) == ["0 issue ca.example.com"]


def test_dns_lookup_dispatches_on_qtype(dns_server):
    server, records = dns_server
    records["NS"] = ["ns1.example.com."]
    records["A"] = ["192.0.2.1"]
    assert dns_lookup("example.com", server, "NS", 2000) == ["ns1.example.com."]
    assert dns_lookup("example.com", server, "", 2000) == ["192.0.2.1"]


def test_dns_lookup_system_resolver():
    addrs = dns_lookup("localhost", "", "", 5000)
    assert "127.0.0.1" in addrs or "::1" in addrs


def test_dns_lookup_silent_server_fails(silent_server):
    with pytest.raises((TimeoutError, dns.exception.Timeout)):
        dns_lookup("example.com", silent_server, "A", 100)


def test_dns_resolves_sorted(dns_server):
    server, records = dns_server
    records["A"] = ["192.0.2.9", "192.0.2.3"]
    d = DNS("A:example.com", None, Config(server=server, timeout=timedelta(seconds=2)))
    assert d.resolvable() is True
    assert d.addrs() == ["192.0.2.3", "192.0.2.9"]


def test_dns_no_records_is_unresolvable(dns_server):
    server, _ = dns_server
    d = DNS("A:example.com", None, Config(server=server, timeout=timedelta(seconds=2)))
    assert d.resolvable() is False
    assert d.addrs() == []


def test_dns_errors_after_retries(silent_server):
    d = DNS(
        "A:example.com",
        None,
        Config(server=silent_server, timeout=timedelta(milliseconds=100)),
    )
    with pytest.raises((TimeoutError, dns.exception.Timeout)):
        d.resolvable()
    with pytest.raises((TimeoutError, dns.exception.Timeout)):
        d.addrs()