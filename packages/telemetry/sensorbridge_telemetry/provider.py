"""Hardware provider interface and the psutil/NVML backed implementation."""

from __future__ import annotations

import logging
import platform
from pathlib import Path
from typing import Any

import psutil

from .models import HardwareKind, HardwareNode, RawReading, SensorCategory


logger = logging.getLogger("sensorbridge.provider")

CPU_CHIPS = ("coretemp", "k10temp", "zenpower", "cpu_thermal")
STORAGE_CHIPS = ("nvme", "drivetemp")
GPU_CHIPS = {
    "amdgpu": HardwareKind.GPU_AMD,
    "radeon": HardwareKind.GPU_AMD,
    "nouveau": HardwareKind.GPU_NVIDIA,
    "i915": HardwareKind.GPU_INTEL,
    "xe": HardwareKind.GPU_INTEL,
}
# hwmon GPU temperature labels, renamed to the names the classifier expects.
GPU_LABELS = {"edge": "GPU Core", "junction": "GPU Hot Spot", "mem": "GPU Memory"}


class ProviderError(RuntimeError):
    """Raised by providers when open/update/close cannot complete."""


class HardwareProvider:
    """Narrow provider surface consumed by the collection pass.

    ``nodes`` is only valid between ``open`` and ``close``. ``update`` refreshes
    one node to its latest values; ``sensors`` returns the readings captured by
    the most recent ``update`` of that node.
    """

    def open(self) -> None:
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError

    def nodes(self) -> list[HardwareNode]:
        raise NotImplementedError

    def update(self, node: HardwareNode) -> None:
        raise NotImplementedError

    def sensors(self, node: HardwareNode) -> list[RawReading]:
        raise NotImplementedError


class _NvmlGpuSource:
    def __init__(self) -> None:
        import pynvml  # type: ignore

        self._nvml = pynvml
        pynvml.nvmlInit()

    def count(self) -> int:
        return int(self._nvml.nvmlDeviceGetCount())

    def name(self, index: int) -> str:
        h = self._nvml.nvmlDeviceGetHandleByIndex(index)
        raw = self._nvml.nvmlDeviceGetName(h)
        return raw.decode("utf-8", "replace") if isinstance(raw, bytes) else str(raw)

    def readings(self, index: int, hardware: str) -> list[RawReading]:
        nvml = self._nvml
        h = nvml.nvmlDeviceGetHandleByIndex(index)
        queries = (
            (SensorCategory.TEMPERATURE, "GPU Core", lambda: nvml.nvmlDeviceGetTemperature(h, nvml.NVML_TEMPERATURE_GPU)),
            (SensorCategory.LOAD, "GPU Core", lambda: nvml.nvmlDeviceGetUtilizationRates(h).gpu),
            (SensorCategory.LOAD, "GPU Memory", lambda: nvml.nvmlDeviceGetUtilizationRates(h).memory),
            # NVML reports fan speed as a percentage of maximum.
            (SensorCategory.FAN, "GPU Fan", lambda: nvml.nvmlDeviceGetFanSpeed(h)),
            (SensorCategory.POWER, "GPU Package", lambda: nvml.nvmlDeviceGetPowerUsage(h) / 1000.0),
            (SensorCategory.CLOCK, "GPU Core", lambda: nvml.nvmlDeviceGetClockInfo(h, nvml.NVML_CLOCK_GRAPHICS)),
            (SensorCategory.CLOCK, "GPU Memory", lambda: nvml.nvmlDeviceGetClockInfo(h, nvml.NVML_CLOCK_MEM)),
        )

        out: list[RawReading] = []
        for category, sensor_name, query in queries:
            try:
                value = float(query())
            except nvml.NVMLError:
                continue
            out.append(RawReading(category=category, hardware=hardware, name=sensor_name, value=value))
        return out

    def shutdown(self) -> None:
        self._nvml.nvmlShutdown()


def _build_gpu_source() -> _NvmlGpuSource | None:
    try:
        return _NvmlGpuSource()
    except Exception as exc:
        logger.debug("NVML unavailable: %s", exc)
        return None


def _cpu_name() -> str:
    cpuinfo = Path("/proc/cpuinfo")
    if cpuinfo.exists():
        for line in cpuinfo.read_text(encoding="utf-8", errors="replace").splitlines():
            if line.startswith("model name") and ":" in line:
                return line.split(":", 1)[1].strip()
    return platform.processor() or "CPU"


def _board_name() -> str:
    board = Path("/sys/class/dmi/id/board_name")
    try:
        name = board.read_text(encoding="utf-8").strip()
    except OSError:
        name = ""
    return name or "Motherboard"


def _chip_kind(chip: str) -> HardwareKind:
    if chip in CPU_CHIPS:
        return HardwareKind.CPU
    if chip in GPU_CHIPS:
        return GPU_CHIPS[chip]
    if chip.startswith(STORAGE_CHIPS):
        return HardwareKind.STORAGE
    return HardwareKind.SUPER_IO


class PsutilHardwareProvider(HardwareProvider):
    """Maps psutil hwmon chips (and NVML devices) onto a hardware tree.

    CPU chips become one CPU node, NVMe/drivetemp chips become storage nodes,
    and every other chip hangs under a single motherboard node.
    """

    def __init__(self, nvml: bool = True) -> None:
        self._use_nvml = nvml
        self._gpu: _NvmlGpuSource | None = None
        self._nodes: list[HardwareNode] = []
        self._readings: dict[int, list[RawReading]] = {}
        self._opened = False

    @staticmethod
    def _read_temperatures() -> dict[str, Any]:
        if not hasattr(psutil, "sensors_temperatures"):
            return {}
        return psutil.sensors_temperatures() or {}

    @staticmethod
    def _read_fans() -> dict[str, Any]:
        if not hasattr(psutil, "sensors_fans"):
            return {}
        return psutil.sensors_fans() or {}

    def open(self) -> None:
        if self._opened:
            return
        if not hasattr(psutil, "sensors_temperatures"):
            raise ProviderError(f"psutil has no sensor support on {platform.system()}")

        try:
            temps = self._read_temperatures()
            fans = self._read_fans()
        except Exception as exc:
            raise ProviderError(f"sensor enumeration failed: {exc}") from exc

        chips = list(dict.fromkeys([*temps.keys(), *fans.keys()]))
        cpu_chips = [c for c in chips if _chip_kind(c) is HardwareKind.CPU]
        board_chips = [c for c in chips if _chip_kind(c) is HardwareKind.SUPER_IO]

        nodes: list[HardwareNode] = []
        if cpu_chips:
            nodes.append(HardwareNode(kind=HardwareKind.CPU, name=_cpu_name(), key=("chips", tuple(cpu_chips))))
        if board_chips:
            board = HardwareNode(kind=HardwareKind.MOTHERBOARD, name=_board_name())
            board.children = [
                HardwareNode(kind=HardwareKind.SUPER_IO, name=chip, key=("chips", (chip,))) for chip in board_chips
            ]
            nodes.append(board)

        if self._use_nvml:
            self._gpu = _build_gpu_source()
        if self._gpu is not None:
            for index in range(self._gpu.count()):
                nodes.append(HardwareNode(kind=HardwareKind.GPU_NVIDIA, name=self._gpu.name(index), key=("nvml", index)))

        device_chips = [c for c in chips if _chip_kind(c).is_gpu]
        device_chips += [c for c in chips if _chip_kind(c) is HardwareKind.STORAGE]
        for chip in device_chips:
            count = max(len(_device_slices(temps.get(chip, []))), len(_device_slices(fans.get(chip, []))), 1)
            for index in range(count):
                name = chip if count == 1 else f"{chip} #{index + 1}"
                nodes.append(HardwareNode(kind=_chip_kind(chip), name=name, key=("device", (chip, index))))

        self._nodes = nodes
        self._readings = {}
        self._opened = True
        logger.debug("psutil provider opened with %d top-level nodes", len(nodes))

    def close(self) -> None:
        gpu, self._gpu = self._gpu, None
        self._nodes = []
        self._readings = {}
        self._opened = False
        if gpu is not None:
            gpu.shutdown()

    def nodes(self) -> list[HardwareNode]:
        if not self._opened:
            raise ProviderError("provider is not open")
        return list(self._nodes)

    def update(self, node: HardwareNode) -> None:
        if not self._opened:
            raise ProviderError("provider is not open")
        if node.key is None:
            self._readings[id(node)] = []
            return

        source, ident = node.key
        try:
            if source == "nvml":
                readings = self._gpu.readings(ident, node.name) if self._gpu is not None else []
            elif source == "device":
                readings = self._device_readings(node, *ident)
            else:
                readings = self._chip_readings(node, ident)
        except Exception as exc:
            raise ProviderError(f"update of {node.name} failed: {exc}") from exc
        self._readings[id(node)] = readings

    def _chip_readings(self, node: HardwareNode, chips: tuple[str, ...]) -> list[RawReading]:
        temps = self._read_temperatures()
        fans = self._read_fans()
        out: list[RawReading] = []
        for chip in chips:
            out.extend(_entry_readings(node, chip, temps.get(chip, []), fans.get(chip, [])))
        return out

    def _device_readings(self, node: HardwareNode, chip: str, index: int) -> list[RawReading]:
        temps = self._read_temperatures().get(chip, [])
        fans = self._read_fans().get(chip, [])
        return _entry_readings(node, chip, _device_entries(temps, index), _device_entries(fans, index))

    def sensors(self, node: HardwareNode) -> list[RawReading]:
        return list(self._readings.get(id(node), []))


def _device_slices(entries: list[Any]) -> list[tuple[int, int]]:
    """Split a chip's entry list into per-device ranges.

    psutil files every hwmon device that shares a chip name (two NVMe drives,
    two amdgpu cards) under one key. A label seen again starts the next device.
    """
    bounds: list[tuple[int, int]] = []
    start = 0
    seen: set[str] = set()
    for idx, entry in enumerate(entries):
        if entry.label in seen:
            bounds.append((start, idx))
            start = idx
            seen = set()
        seen.add(entry.label)
    if entries:
        bounds.append((start, len(entries)))
    return bounds


def _device_entries(entries: list[Any], index: int) -> list[Any]:
    slices = _device_slices(entries)
    if index >= len(slices):
        return []
    start, stop = slices[index]
    return entries[start:stop]


def _gpu_sensor_name(label: str) -> str:
    return GPU_LABELS.get(label, f"GPU {label}" if label else "GPU Core")


def _entry_readings(node: HardwareNode, chip: str, temps: list[Any], fans: list[Any]) -> list[RawReading]:
    gpu = node.kind.is_gpu
    out: list[RawReading] = []
    for idx, entry in enumerate(temps):
        params: dict[str, float] = {}
        if node.kind is HardwareKind.CPU and entry.high:
            params["TjMax"] = float(entry.high)
        if gpu:
            name = _gpu_sensor_name(entry.label)
        else:
            name = entry.label or f"{chip} #{idx + 1}"
        out.append(
            RawReading(
                category=SensorCategory.TEMPERATURE,
                hardware=node.name,
                name=name,
                value=entry.current,
                parameters=params,
            )
        )
    for idx, entry in enumerate(fans):
        out.append(
            RawReading(
                category=SensorCategory.FAN,
                hardware=node.name,
                name="GPU Fan" if gpu else (entry.label or f"Fan #{idx + 1}"),
                value=entry.current,
            )
        )
    return out
