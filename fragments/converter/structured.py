"""Handlers for the structured-data families: JSON and YAML."""

from __future__ import annotations

import json

import yaml


def _reject_constant(name: str) -> float:
    """NaN and Infinity are not JSON; refuse them instead of parsing."""
    raise ValueError(f"Invalid JSON constant: {name}")


def _loads(data: bytes):
    return json.loads(data.decode("utf-8"), parse_constant=_reject_constant)


def convert_json(data: bytes, target: str, source_type: str) -> bytes:
    """Pretty-print for ``txt``, dump block YAML for ``yaml``/``yml``.

    ``json`` and unknown targets return the original buffer.
    """
    if target == "txt":
        parsed = _loads(data)
        return json.dumps(parsed, indent=2, ensure_ascii=False).encode("utf-8")

    if target in ("yaml", "yml"):
        parsed = _loads(data)
        dumped = yaml.safe_dump(
            parsed,
            sort_keys=False,
            default_flow_style=False,
            allow_unicode=True,
        )
        return dumped.encode("utf-8")

    return data


def convert_yaml(data: bytes, target: str, source_type: str) -> bytes:
    """Re-serialize as compact JSON for ``json``; everything else passes.

    ``.nan`` and ``.inf`` have no JSON form and fail the conversion.
    """
    if target == "json":
        parsed = yaml.safe_load(data.decode("utf-8"))
        # YAML timestamps load as datetime objects; emit them as strings
        compact = json.dumps(
            parsed,
            ensure_ascii=False,
            separators=(",", ":"),
            default=str,
            allow_nan=False,
        )
        return compact.encode("utf-8")
    return data
