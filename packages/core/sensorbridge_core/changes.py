"""Sensor topology change detection for throttled diagnostic logging."""

from __future__ import annotations

from dataclasses import dataclass, fields

from sensorbridge_telemetry import Snapshot


UNSET = -1

_LABELS = {
    "sensors": "temp",
    "fans": "fan",
    "gpus": "gpu",
    "storages": "storage",
    "voltages": "voltage",
    "motherboard_temps": "mb_temp",
}


@dataclass(frozen=True)
class SensorCounts:
    sensors: int = UNSET
    fans: int = UNSET
    gpus: int = UNSET
    storages: int = UNSET
    voltages: int = UNSET
    motherboard_temps: int = UNSET

    @classmethod
    def of(cls, snapshot: Snapshot) -> SensorCounts:
        return cls(
            sensors=len(snapshot.sensors),
            fans=len(snapshot.fans),
            gpus=len(snapshot.gpus),
            storages=len(snapshot.storages),
            voltages=len(snapshot.voltages),
            motherboard_temps=len(snapshot.motherboard_temps),
        )


def detect_changes(snapshot: Snapshot, previous: SensorCounts) -> tuple[SensorCounts, str | None]:
    """Return the counts to carry forward and a log line when any category changed.

    With nothing changed the ``previous`` instance itself is returned.
    """
    current = SensorCounts.of(snapshot)
    parts = [
        f"{_LABELS[f.name]}={getattr(current, f.name)}"
        for f in fields(SensorCounts)
        if getattr(current, f.name) != getattr(previous, f.name)
    ]
    if not parts:
        return previous, None
    return current, "Sensor counts changed: " + " ".join(parts)
