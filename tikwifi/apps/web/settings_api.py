"""
Settings API - read and update the device configuration from the UI.

Secrets are never returned, only ``has_password`` / ``has_token`` flags.
Updates are validated through the config models and written back to the
YAML file the server was started with.
"""

from __future__ import annotations

import logging
from typing import Any

from flask import Blueprint, Response, current_app, jsonify, request
from pydantic import ValidationError

from ...config import TikwifiConfig, save_config
from ...core.errors import RequestValidationError, TikwifiError
from ...infrastructure.portal import CaptivePortal

logger = logging.getLogger(__name__)

settings_bp = Blueprint("settings", __name__, url_prefix="/api")


def _cfg() -> TikwifiConfig:
    return current_app.config["TIKWIFI_CONFIG"]


def _portal() -> CaptivePortal:
    return current_app.extensions["tikwifi"]["portal"]


def _text(section: dict[str, Any], key: str) -> str | None:
    value = section.get(key)
    if not isinstance(value, str):
        return None
    return value.strip()


def _secret(section: dict[str, Any], key: str) -> str | None:
    value = section.get(key)
    return value if isinstance(value, str) else None


@settings_bp.get("/settings")
def get_settings() -> Response:
    cfg = _cfg()
    portal = _portal()
    return jsonify({
        "wifi": {
            "ssid": cfg.device.wifi_ssid,
            "has_password": bool(cfg.device.wifi_password),
        },
        "router": {
            "ip": cfg.router.ip,
            "user": cfg.router.user,
            "has_password": bool(cfg.router.password),
            "has_token": bool(cfg.router.token),
            "wlan_interface": cfg.router.wlan_interface,
        },
        "bands": {
            "band_2ghz": cfg.bands.band_2ghz,
            "band_5ghz": cfg.bands.band_5ghz,
        },
        "scan": {
            "duration_seconds": cfg.scan.duration_seconds,
        },
        "status": {
            "captive_portal": portal.active,
            "portal_ssid": portal.ssid,
        },
    })


@settings_bp.post("/settings")
def update_settings() -> Response:
    """
    Apply a partial settings update.

    Body (every section optional):
        {
            "wifi": {"ssid": "...", "password": "..."},
            "router": {"ip": "...", "user": "...", "password": "...",
                       "token": "...", "wlan_interface": "wlan1"},
            "bands": {"band_2ghz": "...", "band_5ghz": "..."},
            "scan": {"duration_seconds": 5}
        }

    A changed uplink Wi-Fi raises the captive portal so the device can be
    reached again if the new credentials are wrong.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise RequestValidationError("Invalid JSON", code="invalid_json")

    cfg = _cfg()
    doc = cfg.model_dump()
    changed = {"wifi": False, "router": False, "bands": False, "scan": False}

    def apply(flag: str, section: str, key: str, value: Any) -> None:
        if value is None or doc[section][key] == value:
            return
        doc[section][key] = value
        changed[flag] = True

    wifi = data.get("wifi")
    if isinstance(wifi, dict):
        apply("wifi", "device", "wifi_ssid", _text(wifi, "ssid"))
        apply("wifi", "device", "wifi_password", _secret(wifi, "password"))

    router = data.get("router")
    if isinstance(router, dict):
        for key in ("ip", "user", "wlan_interface"):
            apply("router", "router", key, _text(router, key))
        for key in ("password", "token"):
            apply("router", "router", key, _secret(router, key))

    bands = data.get("bands")
    if isinstance(bands, dict):
        for key in ("band_2ghz", "band_5ghz"):
            value = _text(bands, key)
            apply("bands", "bands", key, value or None)

    scan = data.get("scan")
    if isinstance(scan, dict) and "duration_seconds" in scan:
        duration = scan["duration_seconds"]
        if isinstance(duration, bool) or not isinstance(duration, int) or duration <= 0:
            raise RequestValidationError(
                "duration_seconds must be a positive integer", code="invalid_scan_duration"
            )
        apply("scan", "scan", "duration_seconds", duration)

    if not any(changed.values()):
        return jsonify(_changes_response(changed))

    try:
        new_cfg = TikwifiConfig.model_validate(doc)
    except ValidationError as exc:
        raise RequestValidationError(str(exc), code="invalid_settings") from exc

    config_path = current_app.extensions["tikwifi"]["config_path"]
    if config_path is None:
        raise TikwifiError("Server was started without a config file", code="settings_not_saved")
    try:
        save_config(new_cfg, config_path)
    except OSError as exc:
        logger.error("Saving settings to %s failed: %s", config_path, exc)
        raise TikwifiError("Failed to save settings", code="settings_not_saved") from exc

    current_app.config["TIKWIFI_CONFIG"] = new_cfg
    logger.info("Settings updated: %s", ", ".join(k for k, v in changed.items() if v))

    if changed["wifi"]:
        _portal().activate()

    return jsonify(_changes_response(changed))


def _changes_response(changed: dict[str, bool]) -> dict[str, Any]:
    return {
        "success": True,
        "wifi_changed": changed["wifi"],
        "router_changed": changed["router"],
        "bands_changed": changed["bands"],
        "scan_changed": changed["scan"],
        "captive_portal": _portal().active,
    }
