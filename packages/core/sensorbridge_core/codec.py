"""JSON line encoding for snapshots and error records."""

from __future__ import annotations

import json
from dataclasses import fields
from enum import Enum
from typing import Any

from sensorbridge_telemetry import Snapshot


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _record(value: Any) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for f in fields(value):
        item = getattr(value, f.name)
        if item is None:
            continue
        out[_camel(f.name)] = item.value if isinstance(item, Enum) else item
    return out


def snapshot_payload(snapshot: Snapshot) -> dict[str, list[dict[str, Any]]]:
    return {_camel(f.name): [_record(r) for r in getattr(snapshot, f.name)] for f in fields(snapshot)}


def encode_snapshot(snapshot: Snapshot) -> str:
    return json.dumps(snapshot_payload(snapshot), separators=(",", ":"), allow_nan=False)


def encode_error(message: str) -> str:
    return json.dumps({"error": message}, separators=(",", ":"))


def decode_line(line: str) -> dict[str, Any]:
    """Parse one output line back into a plain dict (used by clients and tests)."""
    obj = json.loads(line)
    if not isinstance(obj, dict):
        raise ValueError("expected a JSON object per line")
    return obj
