"""Pure per-reading classification: validity filters, name heuristics, and rounding.

Nothing in this module raises for bad sensor data. A reading that is missing,
non-finite, or out of range for its category yields ``None`` and is dropped by
the caller.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from .models import (
    FanRecord,
    MediaType,
    MotherboardTempRecord,
    RawReading,
    SensorCategory,
    TemperatureRecord,
    VoltageRecord,
)


TEMP_MAX_C = 200.0
TJMAX_PARAMETER = "TjMax"
GB_TO_BYTES = 1024 * 1024 * 1024


@dataclass(frozen=True)
class Thresholds:
    default_high: float = 100.0
    critical: float = 105.0


DEFAULT_THRESHOLDS = Thresholds()


def _value(reading: RawReading) -> float | None:
    if reading.value is None:
        return None
    value = float(reading.value)
    if not math.isfinite(value):
        return None
    return value


def valid_temperature(value: float) -> bool:
    return 0.0 < value <= TEMP_MAX_C


def valid_fan(value: float) -> bool:
    return value >= 0.0


def valid_voltage(value: float) -> bool:
    return value > 0.0


def is_valid(reading: RawReading) -> bool:
    """Category validity filter; categories without a rule only need a finite value."""
    value = _value(reading)
    if value is None:
        return False
    if reading.category is SensorCategory.TEMPERATURE:
        return valid_temperature(value)
    if reading.category is SensorCategory.FAN:
        return valid_fan(value)
    if reading.category is SensorCategory.VOLTAGE:
        return valid_voltage(value)
    return True


def display_name(hardware: str, sensor: str) -> str:
    return f"{hardware} - {sensor}"


def classify_cpu_temperature(
    reading: RawReading,
    use_tjmax: bool = True,
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
) -> TemperatureRecord | None:
    """CPU temperature with warning/critical thresholds.

    Sub-hardware is classified with ``use_tjmax=False`` and always gets the
    default high threshold.
    """
    if reading.category is not SensorCategory.TEMPERATURE or not is_valid(reading):
        return None

    high = thresholds.default_high
    if use_tjmax and TJMAX_PARAMETER in reading.parameters:
        high = float(reading.parameters[TJMAX_PARAMETER])

    return TemperatureRecord(
        name=display_name(reading.hardware, reading.name),
        temperature=round(float(reading.value), 1),
        high=float(high),
        critical=float(thresholds.critical),
    )


def classify_fan(reading: RawReading) -> FanRecord | None:
    if reading.category is not SensorCategory.FAN or not is_valid(reading):
        return None
    return FanRecord(name=reading.name, rpm=round(float(reading.value), 0))


def classify_voltage(reading: RawReading) -> VoltageRecord | None:
    if reading.category is not SensorCategory.VOLTAGE or not is_valid(reading):
        return None
    return VoltageRecord(name=reading.name, voltage=round(float(reading.value), 3))


def classify_board_temperature(reading: RawReading) -> MotherboardTempRecord | None:
    if reading.category is not SensorCategory.TEMPERATURE or not is_valid(reading):
        return None
    return MotherboardTempRecord(
        name=display_name(reading.hardware, reading.name),
        temperature=round(float(reading.value), 1),
    )


def classify_gpu_reading(reading: RawReading) -> tuple[str, float] | None:
    """Map one GPU sensor onto a ``GpuRecord`` field name and rounded value.

    Name matching is case-sensitive. Fan readings always map to ``fan_speed``;
    keeping only the first one is the caller's job.
    """
    if not is_valid(reading):
        return None

    name = reading.name
    value = float(reading.value)
    category = reading.category

    if category is SensorCategory.TEMPERATURE:
        if "Core" in name or "GPU" in name:
            return "temperature", round(value, 1)
    elif category is SensorCategory.LOAD:
        if "Core" in name or name == "GPU Core":
            return "core_load", round(value, 1)
        if "Memory" in name:
            return "memory_load", round(value, 1)
    elif category is SensorCategory.FAN:
        return "fan_speed", round(value, 0)
    elif category is SensorCategory.POWER:
        if "Package" in name or "GPU" in name:
            return "power", round(value, 1)
    elif category is SensorCategory.CLOCK:
        if "Core" in name or name == "GPU Core":
            return "core_clock", round(value, 0)
        if "Memory" in name:
            return "memory_clock", round(value, 0)
    return None


def infer_media_type(hardware_name: str) -> MediaType:
    lowered = hardware_name.lower()
    if "nvme" in lowered:
        return MediaType.NVME
    if "ssd" in lowered:
        return MediaType.SSD
    return MediaType.HDD


def classify_storage_reading(reading: RawReading) -> tuple[str, float | int] | None:
    """Direct storage fields: temperature, remaining life, and bytes written."""
    if not is_valid(reading):
        return None

    lowered = reading.name.lower()
    value = float(reading.value)

    if reading.category is SensorCategory.TEMPERATURE:
        return "temperature", round(value, 1)
    if reading.category is SensorCategory.LEVEL:
        if "remaining" in lowered or "life" in lowered:
            return "remaining_life", round(value, 1)
    elif reading.category is SensorCategory.DATA:
        if "written" in lowered:
            return "total_bytes_written", int(value * GB_TO_BYTES)
    return None


# Checked in order; the first match wins, so "power-on hours" lands on power_cycles.
_STORAGE_COUNTERS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("media_errors", ("media error", "media_error")),
    ("power_cycles", ("power cycle", "power-on")),
    ("unsafe_shutdowns", ("unsafe shutdown",)),
    ("power_on_hours", ("power on hours", "power-on hours")),
)


def classify_storage_counter(reading: RawReading) -> tuple[str, int] | None:
    """S.M.A.R.T. counters matched by sensor name regardless of category."""
    value = _value(reading)
    if value is None or value < 0:
        return None

    lowered = reading.name.lower()
    for field_name, needles in _STORAGE_COUNTERS:
        if any(needle in lowered for needle in needles):
            return field_name, int(value)
    return None
