"""Persistent helper settings schema and load/save helpers."""

from __future__ import annotations

import json
import logging
import math
import os
import platform
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from sensorbridge_telemetry import CollectionOptions, Thresholds


CONFIG_VERSION = 1
BACKENDS = ("psutil", "fixture")


@dataclass
class ProviderConfig:
    backend: str = "psutil"
    fixture_path: str | None = None
    nvml: bool = True


@dataclass
class CollectionConfig:
    cpu: bool = True
    motherboard: bool = True
    gpu: bool = True
    storage: bool = True


@dataclass
class ThresholdsConfig:
    default_high: float = 100.0
    critical: float = 105.0


@dataclass
class LoggingConfig:
    level: str = "INFO"
    log_to_file: bool = False
    keep_log_files: int = 7


@dataclass
class HelperConfig:
    config_version: int = CONFIG_VERSION
    provider: ProviderConfig = field(default_factory=ProviderConfig)
    collection: CollectionConfig = field(default_factory=CollectionConfig)
    thresholds: ThresholdsConfig = field(default_factory=ThresholdsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def collection_options(self) -> CollectionOptions:
        return CollectionOptions(
            cpu=self.collection.cpu,
            motherboard=self.collection.motherboard,
            gpu=self.collection.gpu,
            storage=self.collection.storage,
            thresholds=Thresholds(
                default_high=self.thresholds.default_high,
                critical=self.thresholds.critical,
            ),
        )


def config_root() -> Path:
    system = platform.system()
    if system == "Windows":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        return base / "SensorBridge"
    if system == "Darwin":
        return Path.home() / "Library" / "Application Support" / "SensorBridge"
    return Path.home() / ".config" / "sensorbridge"


def config_path() -> Path:
    return config_root() / "config.json"


def _merge(dataclass_type, raw: Any):
    defaults = dataclass_type()  # type: ignore[misc]
    if not isinstance(raw, dict):
        return defaults
    for k, v in raw.items():
        if hasattr(defaults, k):
            setattr(defaults, k, v)
    return defaults


def _normalize_provider(cfg: HelperConfig) -> None:
    if cfg.provider.backend not in BACKENDS:
        cfg.provider.backend = "psutil"
    cfg.provider.nvml = bool(cfg.provider.nvml)


def _normalize_collection(cfg: HelperConfig) -> None:
    c = cfg.collection
    c.cpu, c.motherboard, c.gpu, c.storage = bool(c.cpu), bool(c.motherboard), bool(c.gpu), bool(c.storage)


def _finite(value: Any, default: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


def _normalize_thresholds(cfg: HelperConfig) -> None:
    defaults = ThresholdsConfig()
    cfg.thresholds.default_high = _finite(cfg.thresholds.default_high, defaults.default_high)
    cfg.thresholds.critical = _finite(cfg.thresholds.critical, defaults.critical)


def _normalize_logging(cfg: HelperConfig) -> None:
    level = str(cfg.logging.level).upper()
    cfg.logging.level = level if isinstance(logging.getLevelName(level), int) else "INFO"
    cfg.logging.log_to_file = bool(cfg.logging.log_to_file)
    try:
        cfg.logging.keep_log_files = max(2, int(cfg.logging.keep_log_files))
    except (TypeError, ValueError):
        cfg.logging.keep_log_files = LoggingConfig().keep_log_files


def load_config(path: Path | None = None) -> HelperConfig:
    path = path or config_path()
    if not path.exists():
        return HelperConfig()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except Exception:
        return HelperConfig()
    if not isinstance(data, dict):
        return HelperConfig()

    cfg = HelperConfig(
        config_version=CONFIG_VERSION,
        provider=_merge(ProviderConfig, data.get("provider", {})),
        collection=_merge(CollectionConfig, data.get("collection", {})),
        thresholds=_merge(ThresholdsConfig, data.get("thresholds", {})),
        logging=_merge(LoggingConfig, data.get("logging", {})),
    )

    _normalize_provider(cfg)
    _normalize_collection(cfg)
    _normalize_thresholds(cfg)
    _normalize_logging(cfg)
    return cfg


def save_config(cfg: HelperConfig, path: Path | None = None) -> Path:
    cfg.config_version = CONFIG_VERSION
    path = path or config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(cfg), indent=2, sort_keys=True), encoding="utf-8")
    return path
