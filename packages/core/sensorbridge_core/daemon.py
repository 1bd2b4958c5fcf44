"""Request/response daemon loop and one-shot runner over a hardware provider."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import IO, Any

from sensorbridge_telemetry import CollectionOptions, HardwareProvider, Snapshot, collect

from .changes import SensorCounts, detect_changes
from .codec import encode_error, encode_snapshot
from .logging_setup import get_logger


EXIT_OK = 0
EXIT_FAILED = 1


class DaemonState(str, Enum):
    STARTING = "Starting"
    OPEN = "Open"
    SERVING = "Serving"
    COLLECTING = "Collecting"
    SHUTTING_DOWN = "ShuttingDown"
    FAILED = "Failed"


@dataclass
class DaemonStatus:
    state: DaemonState = DaemonState.STARTING
    ticks: int = 0
    errors: int = 0
    last_error: str | None = None
    counts: SensorCounts = field(default_factory=SensorCounts)


def _emit(out: IO[str], line: str) -> None:
    out.write(line + "\n")
    out.flush()


def _close_provider(provider: HardwareProvider) -> bool:
    log = get_logger("daemon")
    try:
        provider.close()
    except Exception as exc:
        log.warning(f"provider.close() error: {exc}", extra={"event": "provider_close_failed"})
        return False
    log.info("provider.close() succeeded", extra={"event": "provider_closed"})
    return True


class SensorDaemon:
    """Single-threaded tick loop: one input line in, one JSON line out.

    Line content is ignored. The loop ends when the input stream reaches EOF.
    """

    def __init__(
        self,
        provider: HardwareProvider,
        stdin: IO[Any] | None = None,
        stdout: IO[str] | None = None,
        options: CollectionOptions | None = None,
    ) -> None:
        self.provider = provider
        self.stdin = stdin if stdin is not None else sys.stdin
        self.stdout = stdout if stdout is not None else sys.stdout
        self.options = options or CollectionOptions()
        self._status = DaemonStatus()
        self._log = get_logger("daemon")

    @property
    def status(self) -> DaemonStatus:
        return self._status

    def _open(self) -> bool:
        try:
            self.provider.open()
        except Exception as exc:
            message = f"provider.open() failed: {exc}"
            self._status.state = DaemonState.FAILED
            self._status.last_error = message
            self._log.error(message, extra={"event": "provider_open_failed"})
            _emit(self.stdout, encode_error(message))
            _close_provider(self.provider)
            return False

        self._status.state = DaemonState.OPEN
        self._log.info("provider.open() succeeded", extra={"event": "provider_opened"})
        return True

    def tick(self) -> Snapshot | None:
        """Run one collection cycle and emit exactly one output line."""
        self._status.state = DaemonState.COLLECTING
        self._status.ticks += 1
        try:
            snapshot = collect(self.provider, self.options)
            line = encode_snapshot(snapshot)
        except Exception as exc:
            self._status.errors += 1
            self._status.last_error = str(exc)
            self._log.warning(f"Collection error: {exc}", extra={"event": "collection_error"})
            _emit(self.stdout, encode_error(str(exc)))
            self._status.state = DaemonState.SERVING
            return None

        _emit(self.stdout, line)
        counts, message = detect_changes(snapshot, self._status.counts)
        self._status.counts = counts
        if message:
            self._log.info(message, extra={"event": "sensor_counts"})
        self._status.state = DaemonState.SERVING
        return snapshot

    def run(self) -> int:
        self._status.state = DaemonState.STARTING
        self._log.info("sensorbridge daemon starting", extra={"event": "daemon_starting"})
        if not self._open():
            return EXIT_FAILED

        try:
            self._status.state = DaemonState.SERVING
            # Ticks are counted on the byte layer; line content is never decoded.
            for _line in getattr(self.stdin, "buffer", self.stdin):
                self.tick()
            self._status.state = DaemonState.SHUTTING_DOWN
            self._log.info("stdin closed, shutting down", extra={"event": "stdin_closed"})
        finally:
            _close_provider(self.provider)
        return EXIT_OK


def run_daemon(
    provider: HardwareProvider,
    stdin: IO[Any] | None = None,
    stdout: IO[str] | None = None,
    options: CollectionOptions | None = None,
) -> int:
    return SensorDaemon(provider, stdin=stdin, stdout=stdout, options=options).run()


def run_once(
    provider: HardwareProvider,
    stdout: IO[str] | None = None,
    options: CollectionOptions | None = None,
) -> int:
    """Open, collect once, emit, close. Any open/collect failure becomes an error line."""
    out = stdout if stdout is not None else sys.stdout
    log = get_logger("oneshot")
    try:
        try:
            provider.open()
            snapshot = collect(provider, options)
        finally:
            _close_provider(provider)
        line = encode_snapshot(snapshot)
    except Exception as exc:
        log.error(f"collection failed: {exc}", extra={"event": "collection_error"})
        _emit(out, encode_error(str(exc)))
        return EXIT_FAILED

    _emit(out, line)
    return EXIT_OK
