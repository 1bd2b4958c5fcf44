"""CLI entrypoint for the SensorBridge helper in one-shot or daemon mode."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import IO, Any

from sensorbridge_core import encode_error, load_config, run_daemon, run_once
from sensorbridge_core.config import BACKENDS, HelperConfig
from sensorbridge_core.daemon import EXIT_FAILED
from sensorbridge_core.logging_setup import configure_logging, get_logger, install_crash_hooks
from sensorbridge_telemetry import FixtureHardwareProvider, HardwareProvider, PsutilHardwareProvider


DAEMON_FLAG = "--daemon"


def _normalize_argv(argv: list[str]) -> list[str]:
    # The mode flag is matched without regard to case.
    return [DAEMON_FLAG if arg.lower() == DAEMON_FLAG else arg for arg in argv]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sensorbridge",
        allow_abbrev=False,
        exit_on_error=False,
        description="Hardware sensor helper: prints one JSON snapshot, or answers one per stdin line with --daemon",
    )
    parser.add_argument(DAEMON_FLAG, dest="daemon", action="store_true", help="Serve one snapshot per stdin line until EOF")
    parser.add_argument("--config", default=None, help="Path to config JSON (defaults to the per-user config file)")
    parser.add_argument("--backend", default=None, help=f"Hardware provider backend ({', '.join(BACKENDS)})")
    parser.add_argument("--fixture", default=None, help="Hardware tree JSON; implies --backend fixture")
    parser.add_argument("--log-level", default=None, help="Diagnostic log level (stderr)")
    return parser


def build_provider(cfg: HelperConfig) -> HardwareProvider:
    if cfg.provider.backend == "fixture":
        if not cfg.provider.fixture_path:
            raise ValueError("fixture backend requires a fixture path")
        return FixtureHardwareProvider(path=Path(cfg.provider.fixture_path).expanduser())
    return PsutilHardwareProvider(nvml=cfg.provider.nvml)


def _apply_overrides(cfg: HelperConfig, args: argparse.Namespace) -> HelperConfig:
    if args.fixture:
        cfg.provider.backend = "fixture"
        cfg.provider.fixture_path = args.fixture
    elif args.backend in BACKENDS:
        cfg.provider.backend = args.backend
    if args.log_level:
        level = str(args.log_level).upper()
        if isinstance(logging.getLevelName(level), int):
            cfg.logging.level = level
    return cfg


def _emit_error(stdout: IO[str] | None, message: str) -> int:
    out = stdout if stdout is not None else sys.stdout
    out.write(encode_error(message) + "\n")
    out.flush()
    return EXIT_FAILED


def main(argv: list[str] | None = None, stdin: IO[Any] | None = None, stdout: IO[str] | None = None) -> int:
    try:
        args, extras = build_parser().parse_known_args(_normalize_argv(sys.argv[1:] if argv is None else list(argv)))
    except argparse.ArgumentError as exc:
        configure_logging()
        get_logger().error(f"invalid arguments: {exc}")
        return _emit_error(stdout, f"invalid arguments: {exc}")

    cfg = _apply_overrides(load_config(Path(args.config).expanduser() if args.config else None), args)

    configure_logging(
        level=cfg.logging.level,
        log_to_file=cfg.logging.log_to_file,
        keep_files=cfg.logging.keep_log_files,
    )
    install_crash_hooks(to_file=cfg.logging.log_to_file)
    log = get_logger()
    if extras:
        log.warning(f"ignoring unrecognized arguments: {' '.join(extras)}", extra={"event": "ignored_arguments"})

    try:
        provider = build_provider(cfg)
    except ValueError as exc:
        log.error(str(exc))
        return _emit_error(stdout, str(exc))

    options = cfg.collection_options()
    if args.daemon:
        return run_daemon(provider, stdin=stdin, stdout=stdout, options=options)
    return run_once(provider, stdout=stdout, options=options)


if __name__ == "__main__":
    raise SystemExit(main())
