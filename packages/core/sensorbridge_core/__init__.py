"""Core helper services: config, logging, change detection, codec, and the daemon loop."""

from .changes import SensorCounts, detect_changes
from .codec import decode_line, encode_error, encode_snapshot, snapshot_payload
from .config import HelperConfig, load_config, save_config
from .daemon import DaemonState, DaemonStatus, SensorDaemon, run_daemon, run_once

__all__ = [
    "DaemonState",
    "DaemonStatus",
    "HelperConfig",
    "SensorCounts",
    "SensorDaemon",
    "decode_line",
    "detect_changes",
    "encode_error",
    "encode_snapshot",
    "load_config",
    "run_daemon",
    "run_once",
    "save_config",
    "snapshot_payload",
]
