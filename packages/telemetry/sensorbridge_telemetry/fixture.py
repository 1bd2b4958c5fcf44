"""JSON fixture provider for deterministic runs and replaying captured hardware trees."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .models import HardwareKind, HardwareNode, RawReading, SensorCategory
from .provider import HardwareProvider, ProviderError


class FixtureHardwareProvider(HardwareProvider):
    """Serves a hardware tree described by JSON.

    Expected shape::

        {"hardware": [{"kind": "Cpu", "name": "...",
                       "sensors": [{"category": "Temperature", "name": "...",
                                    "value": 50.0, "parameters": {"TjMax": 95}}],
                       "children": [...]}]}

    A top-level ``"open_error"`` string makes ``open`` fail with that message.
    A node-level ``"fail_updates"`` makes ``update`` fail: ``true`` fails every
    call, an integer fails only that many calls.
    """

    def __init__(self, path: Path | None = None, data: dict[str, Any] | None = None) -> None:
        if path is None and data is None:
            raise ValueError("FixtureHardwareProvider needs a path or data")
        self.path = path
        self._data = data
        self._nodes: list[HardwareNode] = []
        self._entries: dict[int, dict[str, Any]] = {}
        self._readings: dict[int, list[RawReading]] = {}
        self._failures: dict[int, int] = {}
        self._opened = False
        self.open_calls = 0
        self.close_calls = 0
        self.update_calls = 0

    def _load(self) -> dict[str, Any]:
        if self._data is not None:
            return self._data
        if self.path is None:
            raise ProviderError("fixture has neither a path nor inline data")
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise ProviderError(f"fixture not found: {self.path}") from exc
        except (OSError, ValueError) as exc:
            raise ProviderError(f"fixture unreadable: {exc}") from exc
        if not isinstance(raw, dict):
            raise ProviderError("fixture root must be an object")
        return raw

    def _build(self, entry: dict[str, Any]) -> HardwareNode:
        try:
            kind = HardwareKind(entry["kind"])
            name = str(entry["name"])
        except (KeyError, TypeError, ValueError) as exc:
            raise ProviderError(f"invalid fixture node: {entry!r}") from exc

        node = HardwareNode(kind=kind, name=name)
        node.children = [self._build(child) for child in entry.get("children", [])]
        self._entries[id(node)] = entry

        fail = entry.get("fail_updates", 0)
        if fail is True:
            self._failures[id(node)] = -1
        elif fail:
            self._failures[id(node)] = int(fail)
        return node

    def open(self) -> None:
        self.open_calls += 1
        data = self._load()
        if data.get("open_error"):
            raise ProviderError(str(data["open_error"]))

        self._entries = {}
        self._failures = {}
        self._readings = {}
        self._nodes = [self._build(entry) for entry in data.get("hardware", [])]
        self._opened = True

    def close(self) -> None:
        self.close_calls += 1
        self._opened = False
        self._nodes = []
        self._readings = {}

    def nodes(self) -> list[HardwareNode]:
        if not self._opened:
            raise ProviderError("provider is not open")
        return list(self._nodes)

    def update(self, node: HardwareNode) -> None:
        self.update_calls += 1
        key = id(node)
        remaining = self._failures.get(key, 0)
        if remaining:
            if remaining > 0:
                self._failures[key] = remaining - 1
            raise ProviderError(f"update of {node.name} failed")

        readings: list[RawReading] = []
        for sensor in self._entries.get(key, {}).get("sensors", []):
            try:
                category = SensorCategory(sensor["category"])
            except (KeyError, ValueError) as exc:
                raise ProviderError(f"invalid fixture sensor on {node.name}: {sensor!r}") from exc
            value = sensor.get("value")
            readings.append(
                RawReading(
                    category=category,
                    hardware=node.name,
                    name=str(sensor.get("name", "")),
                    value=None if value is None else float(value),
                    parameters={k: float(v) for k, v in (sensor.get("parameters") or {}).items()},
                )
            )
        self._readings[key] = readings

    def sensors(self, node: HardwareNode) -> list[RawReading]:
        return list(self._readings.get(id(node), []))
