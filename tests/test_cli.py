from types import SimpleNamespace
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from tikwifi.cli import app
from tikwifi.config import save_config

CSV = (
    "AA:BB:CC:DD:EE:01,Cafe,2412/20/gn,-60,,privacy\n"
    "AA:BB:CC:DD:EE:02,Library,2437/20/gn,-75,,none\n"
)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def cfg_file(tmp_path, cfg):
    path = tmp_path / "cli.yml"
    save_config(cfg, path)
    return path


@pytest.fixture
def fake_router(router):
    with patch("tikwifi.cli.RouterClient", return_value=router):
        yield router


def test_version_command(runner):
    result = runner.invoke(app, ["version"], prog_name="tikwifi")
    assert result.exit_code == 0
    assert "tikwifi" in result.stdout


def test_config_validate_ok(runner, cfg_file):
    result = runner.invoke(app, ["config-validate", str(cfg_file)])
    assert result.exit_code == 0
    assert "Config OK" in result.stdout


def test_config_validate_fails(runner, tmp_path):
    bad = tmp_path / "bad.yml"
    bad.write_text("scan:\n  duration_seconds: -1\n", encoding="utf-8")
    result = runner.invoke(app, ["config-validate", str(bad)])
    assert result.exit_code == 1
    assert "failed" in result.stdout


def test_config_which(runner, cfg_file):
    result = runner.invoke(app, ["config-which", "-c", str(cfg_file)])
    assert result.exit_code == 0
    assert cfg_file.name in result.stdout


def test_scan_prints_networks(runner, cfg_file, fake_router, clock):
    fake_router.scan_output = CSV
    fake_router.profiles.append({
        ".id": "*9", "name": "client-Cafe", "mode": "dynamic-keys", "comment": "wifi-manager:ssid=Cafe",
    })
    with patch("tikwifi.cli.time", SimpleNamespace(monotonic=clock, sleep=clock.sleep)):
        result = runner.invoke(app, ["scan", "-c", str(cfg_file)])
    assert result.exit_code == 0, result.stdout
    assert "Cafe" in result.stdout
    assert "Library" in result.stdout
    assert "client-Cafe" in result.stdout
    assert fake_router.files == []
    assert fake_router.disks == []


def test_scan_timeout_exits_1(runner, cfg_file, fake_router, clock):
    with patch("tikwifi.cli.time", SimpleNamespace(monotonic=clock, sleep=clock.sleep)):
        result = runner.invoke(app, ["scan", "-c", str(cfg_file)])
    assert result.exit_code == 1
    assert "timeout" in result.stdout


def test_connect(runner, cfg_file, fake_router):
    result = runner.invoke(app, ["connect", "Cafe", "-c", str(cfg_file), "--password", "hunter22"])
    assert result.exit_code == 0
    assert fake_router.profile("client-Cafe")["wpa2-pre-shared-key"] == "hunter22"
    assert fake_router.interfaces[0]["ssid"] == "Cafe"


def test_connect_secured_without_password(runner, cfg_file, fake_router):
    result = runner.invoke(app, ["connect", "Cafe", "-c", str(cfg_file)])
    assert result.exit_code == 1
    assert "password_required" in result.stdout


def test_forget_unknown(runner, cfg_file, fake_router):
    result = runner.invoke(app, ["forget", "-c", str(cfg_file), "--ssid", "Cafe"])
    assert result.exit_code == 1
    assert "profile_not_found" in result.stdout
    assert fake_router.mutating_calls() == []


def test_disconnect(runner, cfg_file, fake_router):
    result = runner.invoke(app, ["disconnect", "-c", str(cfg_file)])
    assert result.exit_code == 0
    assert fake_router.interfaces[0]["disabled"] == "yes"


def test_status(runner, cfg_file, fake_router):
    result = runner.invoke(app, ["status", "-c", str(cfg_file)])
    assert result.exit_code == 0
    assert "registration" in result.stdout
