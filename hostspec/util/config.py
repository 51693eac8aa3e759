"""Runtime configuration and helpers for validating spec attributes."""

from __future__ import annotations

import dataclasses
import json
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, TextIO

JSON = "json"
YAML = "yaml"


@dataclass
class Config:
    """Runtime configuration shared by the validator and the system probes."""

    allow_insecure: bool = False
    announce_to_cli: bool = False
    cache: timedelta = timedelta(0)
    debug: bool = False
    endpoint: str = ""
    format_options: list[str] = field(default_factory=list)
    ignore_list: list[str] = field(default_factory=list)
    listen_address: str = ""
    local_address: str = ""
    max_concurrent: int = 0
    method: str = ""
    no_color: bool | None = None
    no_follow_redirects: bool = False
    output_format: str = ""
    output_writer: TextIO | None = None
    package_manager: str = ""
    password: str = ""
    request_body: str = ""
    proxy: str = ""
    request_header: list[str] | None = None
    retry_timeout: timedelta = timedelta(0)
    server: str = ""
    sleep: timedelta = timedelta(0)
    spec: str = ""
    timeout: timedelta = timedelta(0)
    username: str = ""
    vars: str = ""
    vars_inline: str = ""

    def timeout_milliseconds(self) -> int:
        """The timeout in whole milliseconds."""
        return int(self.timeout / timedelta(milliseconds=1))


ConfigOption = Callable[[Config], None]


@dataclass
class OutputConfig:
    """Options handed to output formatters."""

    format_options: list[str] = field(default_factory=list)


def new_config(*opts: ConfigOption) -> Config:
    """Create a configuration with the command-line defaults, then apply ``opts``.

    Colour is turned off by default. An option that fails raises.
    """
    config = Config(
        cache=timedelta(seconds=5),
        endpoint="/healthz",
        listen_address=":8080",
        max_concurrent=50,
        output_format="structured",
        sleep=timedelta(seconds=1),
    )
    with_no_color()(config)
    for opt in opts:
        opt(config)
    return config


def with_spec_file(f: str) -> ConfigOption:
    """Set the path of the spec file."""
    def apply(c: Config) -> None:
        c.spec = f
    return apply


def with_output_format(f: str) -> ConfigOption:
    """Set the output formatter."""
    def apply(c: Config) -> None:
        c.output_format = f
    return apply


def with_format_options(*opts: str) -> ConfigOption:
    """Add options for the output formatter."""
    def apply(c: Config) -> None:
        c.format_options.extend(opts)
    return apply


def with_result_writer(w: TextIO) -> ConfigOption:
    """Set the stream that validation output is written to."""
    def apply(c: Config) -> None:
        c.output_writer = w
    return apply


def with_sleep(d: timedelta) -> ConfigOption:
    """Set the pause between retries."""
    def apply(c: Config) -> None:
        c.sleep = d
    return apply


def with_retry_timeout(d: timedelta) -> ConfigOption:
    """Set how long failing checks may be retried."""
    def apply(c: Config) -> None:
        c.retry_timeout = d
    return apply


def with_cache(d: timedelta) -> ConfigOption:
    """Set how long results may be cached."""
    def apply(c: Config) -> None:
        c.cache = d
    return apply


def with_max_concurrency(mc: int) -> ConfigOption:
    """Set the maximum number of checks run at once."""
    def apply(c: Config) -> None:
        c.max_concurrent = mc
    return apply


def with_no_color() -> ConfigOption:
    """Disable coloured output."""
    def apply(c: Config) -> None:
        c.no_color = True
    return apply


def with_color() -> ConfigOption:
    """Enable coloured output."""
    def apply(c: Config) -> None:
        c.no_color = False
    return apply


def with_package_manager(p: str) -> ConfigOption:
    """Override the detected package manager."""
    def apply(c: Config) -> None:
        c.package_manager = p
    return apply


def with_debug() -> ConfigOption:
    """Enable debug output."""
    def apply(c: Config) -> None:
        c.debug = True
    return apply


def with_vars_file(file: str) -> ConfigOption:
    """Set a JSON or YAML file of template variables."""
    def apply(c: Config) -> None:
        c.vars = file
    return apply


def with_vars_data(v: Any) -> ConfigOption:
    """Use ``v``, serialised as JSON, as inline template variables."""
    def apply(c: Config) -> None:
        c.vars_inline = json.dumps(
            v, separators=(",", ":"), sort_keys=True, ensure_ascii=False
        )
    return apply


def with_vars_bytes(v: bytes) -> ConfigOption:
    """Use a JSON or YAML byte string as inline template variables."""
    return with_vars_string(v.decode("utf-8"))


def with_vars_string(v: str) -> ConfigOption:
    """Use a JSON or YAML string as inline template variables."""
    def apply(c: Config) -> None:
        c.vars_inline = v
    return apply


def validate_sections(
    data: Mapping[str, Any], type_name: str, whitelist: Iterable[str]
) -> None:
    """Check that every attribute of every entry in ``data`` is whitelisted.

    ``data`` maps resource ids to mappings of attributes. Raises ``ValueError``
    naming the first attribute that is not allowed.
    """
    allowed = set(whitelist)
    if not isinstance(data, Mapping):
        raise TypeError(f"expected a mapping of {type_name} entries")
    for ident, attrs in data.items():
        if attrs is None:
            continue
        if not isinstance(attrs, Mapping):
            raise TypeError(f"expected a mapping of attributes for {type_name}:{ident}")
        for key in attrs:
            if key not in allowed:
                raise ValueError(f"invalid Attribute for {type_name}:{ident}: {key}")


def whitelist_attrs(cls: Any, fmt: str) -> set[str]:
    """Attribute names that a dataclass accepts in format ``fmt``.

    Names come from each field's metadata under the key ``fmt``; options
    after a comma are dropped.
    """
    if not dataclasses.is_dataclass(cls):
        raise TypeError(f"{cls!r} is not a dataclass")
    valid = set()
    for f in dataclasses.fields(cls):
        tag = f.metadata.get(str(fmt))
        if tag is not None:
            valid.add(tag.split(",")[0])
    return valid


def is_value_in_list(value: str, values: Iterable[str]) -> bool:
    """Whether ``value`` is in ``values``, ignoring case."""
    wanted = value.lower()
    return any(v.lower() == wanted for v in values)