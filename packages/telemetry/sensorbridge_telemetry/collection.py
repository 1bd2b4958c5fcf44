"""One collection pass over an open provider, producing an immutable snapshot."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .classifier import (
    DEFAULT_THRESHOLDS,
    Thresholds,
    classify_board_temperature,
    classify_cpu_temperature,
    classify_fan,
    classify_gpu_reading,
    classify_storage_counter,
    classify_storage_reading,
    classify_voltage,
    infer_media_type,
)
from .models import (
    FanRecord,
    GpuRecord,
    HardwareKind,
    HardwareNode,
    MotherboardTempRecord,
    Snapshot,
    StorageRecord,
    TemperatureRecord,
    VoltageRecord,
)
from .provider import HardwareProvider


@dataclass(frozen=True)
class CollectionOptions:
    cpu: bool = True
    motherboard: bool = True
    gpu: bool = True
    storage: bool = True
    thresholds: Thresholds = DEFAULT_THRESHOLDS

    def enabled(self, kind: HardwareKind) -> bool:
        if kind is HardwareKind.CPU:
            return self.cpu
        if kind is HardwareKind.MOTHERBOARD:
            return self.motherboard
        if kind.is_gpu:
            return self.gpu
        if kind is HardwareKind.STORAGE:
            return self.storage
        return True


@dataclass
class _Accumulator:
    sensors: list[TemperatureRecord] = field(default_factory=list)
    fans: list[FanRecord] = field(default_factory=list)
    gpus: list[GpuRecord] = field(default_factory=list)
    storages: list[StorageRecord] = field(default_factory=list)
    voltages: list[VoltageRecord] = field(default_factory=list)
    motherboard_temps: list[MotherboardTempRecord] = field(default_factory=list)

    def freeze(self) -> Snapshot:
        return Snapshot(
            sensors=tuple(self.sensors),
            fans=tuple(self.fans),
            gpus=tuple(self.gpus),
            storages=tuple(self.storages),
            voltages=tuple(self.voltages),
            motherboard_temps=tuple(self.motherboard_temps),
        )


def _collect_cpu(provider: HardwareProvider, node: HardwareNode, acc: _Accumulator, thresholds: Thresholds) -> None:
    for reading in provider.sensors(node):
        record = classify_cpu_temperature(reading, use_tjmax=True, thresholds=thresholds)
        if record is not None:
            acc.sensors.append(record)

    # Multi-die CPUs expose per-die sensors as sub-hardware.
    for sub in node.children:
        provider.update(sub)
        for reading in provider.sensors(sub):
            record = classify_cpu_temperature(reading, use_tjmax=False, thresholds=thresholds)
            if record is not None:
                acc.sensors.append(record)


def _collect_board_sensors(provider: HardwareProvider, node: HardwareNode, acc: _Accumulator) -> None:
    for reading in provider.sensors(node):
        fan = classify_fan(reading)
        if fan is not None:
            acc.fans.append(fan)
            continue
        voltage = classify_voltage(reading)
        if voltage is not None:
            acc.voltages.append(voltage)
            continue
        temp = classify_board_temperature(reading)
        if temp is not None:
            acc.motherboard_temps.append(temp)


def _collect_motherboard(provider: HardwareProvider, node: HardwareNode, acc: _Accumulator) -> None:
    # Super I/O and embedded controller chips carry most fan and voltage sensors.
    for sub in node.children:
        provider.update(sub)
        _collect_board_sensors(provider, sub, acc)
    _collect_board_sensors(provider, node, acc)


def _collect_gpu(provider: HardwareProvider, node: HardwareNode) -> GpuRecord:
    fields: dict[str, Any] = {}
    for reading in provider.sensors(node):
        classified = classify_gpu_reading(reading)
        if classified is None:
            continue
        name, value = classified
        if name == "fan_speed" and name in fields:
            continue
        fields[name] = value
    return GpuRecord(name=node.name, **fields)


def _collect_storage(provider: HardwareProvider, node: HardwareNode) -> StorageRecord:
    readings = provider.sensors(node)
    fields: dict[str, Any] = {}

    for reading in readings:
        classified = classify_storage_reading(reading)
        if classified is not None:
            fields[classified[0]] = classified[1]

    for reading in readings:
        counter = classify_storage_counter(reading)
        if counter is not None:
            fields[counter[0]] = counter[1]

    return StorageRecord(name=node.name, type=infer_media_type(node.name), **fields)


def collect(provider: HardwareProvider, options: CollectionOptions | None = None) -> Snapshot:
    """Run one pass over every top-level node of an open provider.

    Each visited node is refreshed exactly once. Errors raised by the provider
    propagate; bad readings are filtered by the classifier.
    """
    options = options or CollectionOptions()
    acc = _Accumulator()

    for node in provider.nodes():
        if not options.enabled(node.kind):
            continue

        provider.update(node)

        if node.kind is HardwareKind.CPU:
            _collect_cpu(provider, node, acc, options.thresholds)
        elif node.kind is HardwareKind.MOTHERBOARD:
            _collect_motherboard(provider, node, acc)
        elif node.kind.is_gpu:
            acc.gpus.append(_collect_gpu(provider, node))
        elif node.kind is HardwareKind.STORAGE:
            acc.storages.append(_collect_storage(provider, node))

    return acc.freeze()
