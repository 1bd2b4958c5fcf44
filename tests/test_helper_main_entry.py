from __future__ import annotations

import runpy
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "apps" / "helper"))
sys.path.insert(0, str(ROOT / "packages" / "core"))
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))

import sensorbridge_app.__main__ as helper_main


def test_main_passes_through_args(monkeypatch) -> None:
    calls: list[list[str]] = []
    monkeypatch.setattr(helper_main, "_cli_main", lambda argv=None: calls.append(list(argv or [])) or 0)

    rc = helper_main.main(["--daemon", "--fixture", "tree.json"])
    assert rc == 0
    assert calls == [["--daemon", "--fixture", "tree.json"]]


def test_main_without_args_runs_one_shot(monkeypatch) -> None:
    calls: list[list[str]] = []
    monkeypatch.setattr(helper_main, "_cli_main", lambda argv=None: calls.append(list(argv or [])) or 1)

    rc = helper_main.main([])
    assert rc == 1
    assert calls == [[]]


def test_main_module_runpath_without_package_context() -> None:
    main_path = (
        ROOT
        / "apps"
        / "helper"
        / "sensorbridge_app"
        / "__main__.py"
    )
    result = runpy.run_path(str(main_path))
    assert "main" in result
