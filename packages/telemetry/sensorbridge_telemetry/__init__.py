"""Hardware sensor models, classification, and collection for SensorBridge."""

from .classifier import DEFAULT_THRESHOLDS, Thresholds
from .collection import CollectionOptions, collect
from .fixture import FixtureHardwareProvider
from .models import (
    FanRecord,
    GpuRecord,
    HardwareKind,
    HardwareNode,
    MediaType,
    MotherboardTempRecord,
    RawReading,
    SensorCategory,
    Snapshot,
    StorageRecord,
    TemperatureRecord,
    VoltageRecord,
)
from .provider import HardwareProvider, ProviderError, PsutilHardwareProvider

__all__ = [
    "DEFAULT_THRESHOLDS",
    "CollectionOptions",
    "FanRecord",
    "FixtureHardwareProvider",
    "GpuRecord",
    "HardwareKind",
    "HardwareNode",
    "HardwareProvider",
    "MediaType",
    "MotherboardTempRecord",
    "ProviderError",
    "PsutilHardwareProvider",
    "RawReading",
    "SensorCategory",
    "Snapshot",
    "StorageRecord",
    "TemperatureRecord",
    "Thresholds",
    "VoltageRecord",
    "collect",
]
