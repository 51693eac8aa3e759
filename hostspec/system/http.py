"""HTTP endpoints requested once and inspected for status, headers and body."""

from __future__ import annotations

import io
import warnings
from collections.abc import Mapping

import requests
from requests.structures import CaseInsensitiveDict


def _canonical(name: str) -> str:
    return "-".join(part[:1].upper() + part[1:].lower() for part in name.split("-"))


def header_to_list(headers: Mapping) -> list[str]:
    """Headers as ``"Name: value"`` lines, one per value."""
    lines = []
    for name, values in headers.items():
        if isinstance(values, str):
            values = [values]
        lines.extend(f"{name}: {value}" for value in values)
    return lines


class HTTP:
    """A URL, requested on first use; the response is cached."""

    def __init__(self, url, system, config) -> None:
        self.url = url
        self.allow_insecure = config.allow_insecure
        self.no_follow_redirects = config.no_follow_redirects
        self.method = config.method
        self.request_body = config.request_body
        self.timeout = config.timeout_milliseconds()
        self.username = config.username
        self.password = config.password
        self.proxy = config.proxy
        self.request_header: list[tuple[str, str]] = []
        for line in config.request_header or []:
            name, sep, value = line.partition(": ")
            if not sep:
                raise ValueError(f"invalid request header {line!r}, expected 'Name: value'")
            self.request_header.append((name, value))
        self._loaded = False
        self._err: Exception | None = None
        self._resp: requests.Response | None = None

    def _headers(self) -> CaseInsensitiveDict:
        headers: CaseInsensitiveDict = CaseInsensitiveDict()
        for name, value in self.request_header:
            headers[name] = f"{headers[name]}, {value}" if name in headers else value
        headers.setdefault("Connection", "close")
        return headers

    def _send(self) -> requests.Response:
        proxies = {"http": self.proxy, "https": self.proxy} if self.proxy else None
        auth = (self.username, self.password) if self.username or self.password else None
        with requests.Session() as session, warnings.catch_warnings():
            if self.allow_insecure:
                warnings.filterwarnings("ignore", message="Unverified HTTPS request")
            resp = session.request(
                self.method or "GET",
                self.url,
                headers=self._headers(),
                data=self.request_body.encode("utf-8") if self.request_body else None,
                timeout=self.timeout / 1000 if self.timeout > 0 else None,
                verify=not self.allow_insecure,
                allow_redirects=not self.no_follow_redirects,
                proxies=proxies,
                auth=auth,
            )
            resp.content  # read the whole body before the connection closes
            return resp

    def _setup(self) -> requests.Response:
        if not self._loaded:
            self._loaded = True
            try:
                self._resp = self._send()
            except (requests.RequestException, ValueError) as exc:
                self._err = exc
        if self._err is not None:
            raise self._err
        assert self._resp is not None
        return self._resp

    def exists(self) -> bool:
        """True once a response was received; request errors are raised."""
        self.status()
        return True

    def status(self) -> int:
        """The response status code."""
        return self._setup().status_code

    def headers(self) -> io.StringIO:
        """A reader over the response headers, one ``Name: value`` per line."""
        resp = self._setup()
        canonical = {_canonical(name): value for name, value in resp.headers.items()}
        return io.StringIO("\n".join(header_to_list(canonical)))

    def body(self) -> io.StringIO:
        """A reader over the response body."""
        return io.StringIO(self._setup().text)