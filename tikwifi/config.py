from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .core.security import validate_interface_name


class DeviceConfig(BaseModel):
    """Uplink Wi-Fi the device itself joins."""
    wifi_ssid: str = Field("")
    wifi_password: str = Field("")


class RouterConfig(BaseModel):
    ip: str = Field("192.168.88.1")
    user: str = Field("admin")
    password: str = Field("")
    token: str = Field("")  # takes precedence over user/password
    wlan_interface: str = Field("wlan1")
    timeout_ms: int = Field(15000, gt=0, le=120_000)
    trigger_timeout_ms: int = Field(500, gt=0, le=10_000)
    band_switch_settle_ms: int = Field(500, ge=0, le=10_000)
    tmpfs_max_size: str = Field("1M")

    @field_validator("ip")
    @classmethod
    def _strip_ip(cls, value: str) -> str:
        value = value.strip()
        if any(c.isspace() for c in value):
            raise ValueError("router ip must be a hostname or IP")
        return value

    @field_validator("wlan_interface")
    @classmethod
    def _validate_iface(cls, value: str) -> str:
        value = value.strip()
        if not validate_interface_name(value):
            raise ValueError(f"invalid interface name: {value!r}")
        return value


class BandsConfig(BaseModel):
    band_2ghz: str = Field("2ghz-b/g/n")
    band_5ghz: str = Field("5ghz-a/n/ac")

    @field_validator("band_2ghz", "band_5ghz")
    @classmethod
    def _not_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("band cannot be empty")
        return value


class ScanConfig(BaseModel):
    duration_seconds: int = Field(5, gt=0, le=120)
    result_grace_ms: int = Field(3000, ge=0, le=120_000)
    poll_interval_ms: int = Field(500, gt=0, le=60_000)
    csv_filename: str = Field("tmp1/scan.csv")
    signal_min_dbm: int = Field(-90, ge=-120, le=0)
    signal_max_dbm: int = Field(-30, ge=-120, le=0)
    cache_last_result: bool = Field(False)

    @field_validator("csv_filename")
    @classmethod
    def _validate_filename(cls, value: str) -> str:
        if not value or ".." in value or any(c.isspace() for c in value):
            raise ValueError("csv_filename must be a plain router file path")
        return value

    @field_validator("signal_max_dbm")
    @classmethod
    def _max_above_min(cls, value: int, info: Any) -> int:
        low = info.data.get("signal_min_dbm", -90)
        if value <= low:
            raise ValueError("signal_max_dbm must be > signal_min_dbm")
        return value


class WebAuthConfig(BaseModel):
    token_env: str = Field("TIKWIFI_UI_TOKEN")


class WebConfig(BaseModel):
    bind_host: str = Field("0.0.0.0")
    bind_port: int = Field(8080, ge=1, le=65535)
    static_dir: Path = Field(Path("web"))
    cors_allow_origin: str = Field("*")
    auth: WebAuthConfig = Field(default_factory=WebAuthConfig)

    @field_validator("bind_host")
    @classmethod
    def _validate_host(cls, value: str) -> str:
        if not value or any(c.isspace() for c in value):
            raise ValueError("bind_host must be a valid hostname or IP")
        return value

    @field_validator("static_dir")
    @classmethod
    def _expand_static_dir(cls, value: Path) -> Path:
        return value.expanduser()


class PortalConfig(BaseModel):
    flag_file: Path = Field(Path("/run/tikwifi/captive_portal"))
    ssid: str = Field("MikroTikSetup")


class LoggingConfig(BaseModel):
    level: str = Field("INFO")
    file: Path | None = Field(default=None)

    @field_validator("level")
    @classmethod
    def _validate_level(cls, value: str) -> str:
        value = value.upper()
        if value not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"invalid log level: {value}")
        return value


class TikwifiConfig(BaseModel):
    device: DeviceConfig = Field(default_factory=DeviceConfig)
    router: RouterConfig = Field(default_factory=RouterConfig)
    bands: BandsConfig = Field(default_factory=BandsConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)
    web: WebConfig = Field(default_factory=WebConfig)
    portal: PortalConfig = Field(default_factory=PortalConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(path: Path) -> TikwifiConfig:
    with Path(path).expanduser().open("r", encoding="utf-8") as fp:
        raw = yaml.safe_load(fp) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    try:
        return TikwifiConfig.model_validate(raw)
    except ValidationError as exc:  # pragma: no cover - formatting
        raise ValueError(str(exc)) from exc


def save_config(cfg: TikwifiConfig, path: Path) -> None:
    """Write ``cfg`` back as YAML; the file holds router secrets, keep it private."""
    target = Path(path).expanduser()
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp = target.with_suffix(target.suffix + ".tmp")
    data = cfg.model_dump(mode="json")
    with tmp.open("w", encoding="utf-8") as fp:
        yaml.safe_dump(data, fp, sort_keys=False)
    os.chmod(tmp, 0o600)
    tmp.replace(target)


def resolve_config_path(cli_path: Path | None) -> Path:
    """Resolve config path by priority: CLI, env, /etc/tikwifi, repo configs."""
    candidates: list[Path] = []
    if cli_path:
        p = Path(cli_path).expanduser()
        if p.exists():
            return p.resolve()
        candidates.append(p)
    env = os.environ.get("TIKWIFI_CONFIG")
    if env:
        p = Path(env).expanduser()
        if p.exists():
            return p.resolve()
        candidates.append(p)
    for p in [Path("/etc/tikwifi/tikwifi.yml"), Path("configs/tikwifi.yml")]:
        if p.exists():
            return p.resolve()
        candidates.append(p)
    # Fallback to first candidate even if not exists to surface errors consistently
    return candidates[0] if candidates else Path("configs/tikwifi.yml").resolve()
