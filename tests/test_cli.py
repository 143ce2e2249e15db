from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

import cli
from services.configmgr import ConfigMgrError

MODEL = "Latitude 7480"
VERSION = "1909_2020-03"


class FakeClient:
    def __init__(self, fail: set[str]) -> None:
        self.fail = fail
        self.calls: list[str] = []

    def __getattr__(self, name: str) -> Any:
        def call(*args: Any) -> None:
            self.calls.append(name)
            if name in self.fail:
                raise ConfigMgrError(f"{name} failed")
            return None

        return call


@pytest.fixture()
def staging(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    source_root = tmp_path / "Source"
    package_root = tmp_path / "Packages"
    driver_dir = source_root / MODEL / VERSION / "Audio"
    driver_dir.mkdir(parents=True)
    (driver_dir / "RTKVHD64.inf").write_text("[Version]")
    (package_root / MODEL).mkdir(parents=True)
    settings = tmp_path / "settings.json"
    settings.write_text(
        json.dumps({"driver_source_root": str(source_root), "package_root": str(package_root)}),
        encoding="utf-8",
    )

    clients: list[FakeClient] = []
    fail: set[str] = set()

    def make_client(site_code: str, site_server: str) -> FakeClient:
        client = FakeClient(fail)
        clients.append(client)
        return client

    monkeypatch.setattr(cli, "ensure_admin", lambda: True)
    monkeypatch.setattr(cli, "configure_logging", lambda path: Path(path))
    monkeypatch.setattr(cli, "ConfigMgrClient", make_client)
    argv = ["--settings", str(settings), "drivers", "--model", MODEL, "--version", VERSION]
    return argv, package_root / MODEL / VERSION, fail, clients


def test_drivers_returns_zero_on_success(staging) -> None:
    argv, _, _, clients = staging
    assert cli.main(argv) == 0
    assert clients[0].calls[-1] == "start_distribution"


def test_drivers_returns_one_when_a_gate_halts(staging) -> None:
    argv, version_dir, _, clients = staging
    (version_dir / "leftover").mkdir(parents=True)
    assert cli.main(argv) == 1
    assert clients[0].calls == []


def test_drivers_returns_one_when_import_fails(staging) -> None:
    argv, _, fail, _ = staging
    fail.add("import_drivers")
    assert cli.main(argv) == 1


def test_drivers_returns_zero_when_distribution_fails(staging) -> None:
    argv, _, fail, clients = staging
    fail.add("start_distribution")
    assert cli.main(argv) == 0
    assert clients[0].calls[-1] == "start_distribution"


def test_fonts_returns_one_for_missing_source(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("services.fonts.WindowsRegistryAccessor", lambda: object())
    monkeypatch.setattr(cli, "ensure_admin", lambda: True)
    monkeypatch.setattr(cli, "configure_logging", lambda path: Path(path))
    argv = ["--settings", str(tmp_path / "absent.json"), "fonts", "--source", str(tmp_path / "none")]
    assert cli.main(argv) == 1
