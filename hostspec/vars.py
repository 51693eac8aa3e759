"""Spec file formats and loading of template variables."""

from __future__ import annotations

import enum
import json
import os
from dataclasses import dataclass, field
from typing import Any

import yaml


class StoreFormat(enum.IntEnum):
    """Serialisation format of a spec or variables document."""

    UNSET = 0
    JSON = 1
    YAML = 2


@dataclass
class TemplateVars:
    """Values visible to spec templates."""

    vars: dict[str, Any] = field(default_factory=dict)

    def env(self) -> dict[str, str]:
        """The process environment."""
        return dict(os.environ)


def _text(data: bytes | str) -> str:
    return data.decode("utf-8") if isinstance(data, bytes) else data


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON literal {name}")


def _parse_json(text: str) -> Any:
    return json.loads(text, parse_constant=_reject_constant)


def _parse_yaml(text: str) -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValueError(f"could not unmarshal {text!r} as YAML data: {exc}") from exc


def store_format_from_filename(f: str) -> StoreFormat:
    """The format implied by a file's extension."""
    base = f.replace("\\", "/").rsplit("/", 1)[-1]
    dot = base.rfind(".")
    ext = base[dot:] if dot >= 0 else ""
    if ext == ".json":
        return StoreFormat.JSON
    if ext in (".yaml", ".yml"):
        return StoreFormat.YAML
    raise ValueError(f"unknown file extension: {ext}")


def store_format_from_data(data: bytes | str) -> StoreFormat:
    """The format of a document: JSON if it parses as JSON, else YAML."""
    text = _text(data)
    try:
        _parse_json(text)
        return StoreFormat.JSON
    except ValueError:
        pass
    try:
        _parse_yaml(text)
        return StoreFormat.YAML
    except ValueError:
        pass
    raise ValueError("unable to determine format from content")


def _parse_vars(data: bytes | str) -> dict[str, Any]:
    text = _text(data)
    fmt = store_format_from_data(text)
    parsed = _parse_json(text) if fmt is StoreFormat.JSON else _parse_yaml(text)
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError(
            f"variables must be a mapping, got {type(parsed).__name__}"
        )
    return parsed


def vars_from_file(vars_file: str) -> dict[str, Any]:
    """Variables read from a JSON or YAML file; empty when no file is named."""
    if not vars_file:
        return {}
    with open(vars_file, "rb") as fh:
        data = fh.read()
    return _parse_vars(data)


def vars_from_string(vars_string: str) -> dict[str, Any]:
    """Variables parsed from a JSON or YAML string; empty for an empty string."""
    if not vars_string:
        return {}
    return _parse_vars(vars_string)


def load_vars(vars_file: str, vars_inline: str) -> dict[str, Any]:
    """Variables from a file, overridden key by key by inline variables."""
    try:
        merged = vars_from_file(vars_file)
    except (OSError, ValueError) as exc:
        raise ValueError(f"Error: loading vars file '{vars_file}'\n{exc}") from exc
    try:
        extra = vars_from_string(vars_inline)
    except ValueError as exc:
        raise ValueError(f"Error: loading inline vars\n{exc}") from exc
    merged.update(extra)
    return merged