"""Typed hardware and sensor record models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SensorCategory(str, Enum):
    TEMPERATURE = "Temperature"
    FAN = "Fan"
    VOLTAGE = "Voltage"
    LOAD = "Load"
    POWER = "Power"
    CLOCK = "Clock"
    LEVEL = "Level"
    DATA = "Data"


class HardwareKind(str, Enum):
    CPU = "Cpu"
    MOTHERBOARD = "Motherboard"
    SUPER_IO = "SuperIO"
    GPU_NVIDIA = "GpuNvidia"
    GPU_AMD = "GpuAmd"
    GPU_INTEL = "GpuIntel"
    STORAGE = "Storage"

    @property
    def is_gpu(self) -> bool:
        return self in (HardwareKind.GPU_NVIDIA, HardwareKind.GPU_AMD, HardwareKind.GPU_INTEL)


class MediaType(str, Enum):
    NVME = "NVMe"
    SSD = "SSD"
    HDD = "HDD"


@dataclass(frozen=True)
class RawReading:
    category: SensorCategory
    hardware: str
    name: str
    value: float | None
    parameters: dict[str, float] = field(default_factory=dict)


@dataclass(eq=False)
class HardwareNode:
    """One provider-owned unit of hardware.

    ``key`` is an opaque handle the provider uses to find the node's live source
    again on ``update``; the collection pass never interprets it.
    """

    kind: HardwareKind
    name: str
    children: list[HardwareNode] = field(default_factory=list)
    key: Any = None


@dataclass(frozen=True)
class TemperatureRecord:
    name: str
    temperature: float
    high: float
    critical: float


@dataclass(frozen=True)
class FanRecord:
    name: str
    rpm: float


@dataclass(frozen=True)
class VoltageRecord:
    name: str
    voltage: float


@dataclass(frozen=True)
class MotherboardTempRecord:
    name: str
    temperature: float


@dataclass(frozen=True)
class GpuRecord:
    name: str
    temperature: float | None = None
    core_load: float | None = None
    memory_load: float | None = None
    fan_speed: float | None = None
    power: float | None = None
    core_clock: float | None = None
    memory_clock: float | None = None


@dataclass(frozen=True)
class StorageRecord:
    name: str
    type: MediaType
    temperature: float | None = None
    remaining_life: float | None = None
    media_errors: int | None = None
    power_cycles: int | None = None
    unsafe_shutdowns: int | None = None
    power_on_hours: int | None = None
    total_bytes_written: int | None = None


@dataclass(frozen=True)
class Snapshot:
    sensors: tuple[TemperatureRecord, ...] = ()
    fans: tuple[FanRecord, ...] = ()
    gpus: tuple[GpuRecord, ...] = ()
    storages: tuple[StorageRecord, ...] = ()
    voltages: tuple[VoltageRecord, ...] = ()
    motherboard_temps: tuple[MotherboardTempRecord, ...] = ()
