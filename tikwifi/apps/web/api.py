"""
Router API - scan, connect, disconnect and forget networks.

Handlers run one at a time; each builds its router collaborators from the
current configuration and touches the shared scan session only within its
own invocation.
"""

from __future__ import annotations

from typing import Any

from flask import Blueprint, Response, current_app, g, jsonify, request
from pydantic import ValidationError

from ...config import TikwifiConfig
from ...core.errors import RequestValidationError
from ...core.security import sanitize_ssid
from ...domain.models import ConnectRequest, DeleteProfileRequest
from ...infrastructure.portal import CaptivePortal
from ...infrastructure.router import (
    RouterClient,
    SecurityProfileReconciler,
    WirelessInterfaceService,
)
from ...infrastructure.scan import ScanOrchestrator, ScanSession


api_bp = Blueprint("api", __name__, url_prefix="/api")

# Answered even while the captive portal is up
PORTAL_EXEMPT_ENDPOINTS = ("api.get_config", "api.health")


def _cfg() -> TikwifiConfig:
    return current_app.config["TIKWIFI_CONFIG"]


def _ext() -> dict[str, Any]:
    return current_app.extensions["tikwifi"]


def _router() -> RouterClient:
    """One client per request; the app closes it once the response is done."""
    if "router_client" not in g:
        g.router_client = _ext()["router_factory"](_cfg())
    return g.router_client


def _orchestrator() -> ScanOrchestrator:
    ext = _ext()
    session: ScanSession = ext["scan_session"]
    return ScanOrchestrator(
        session,
        _router(),
        _cfg(),
        clock=ext["clock"],
        sleep=ext["sleep"],
    )


def _json_body() -> dict[str, Any]:
    if not request.get_data():
        return {}
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise RequestValidationError("Invalid JSON", code="invalid_json")
    return data


@api_bp.before_request
def _portal_guard():  # type: ignore[override]
    if request.method == "OPTIONS" or request.endpoint in PORTAL_EXEMPT_ENDPOINTS:
        return None
    portal: CaptivePortal = _ext()["portal"]
    if portal.active:
        return jsonify({"error": "captive_portal_active", "message": "Captive portal active"}), 403
    return None


@api_bp.get("/health")
def health() -> Response:
    session: ScanSession = _ext()["scan_session"]
    return jsonify({"ok": True, "scanning": session.active})


@api_bp.get("/config")
def get_config() -> Response:
    """
    Bands and scan timing for the UI.

    Returns:
        {
            "band_2ghz": "2ghz-b/g/n",
            "band_5ghz": "5ghz-a/n/ac",
            "scan_duration_ms": 5000,
            "scan_min_ready_ms": 5000,
            "scan_result_grace_ms": 3000,
            "scan_timeout_ms": 8500,
            "scan_poll_interval_ms": 500,
            "scan_csv_filename": "tmp1/scan.csv",
            "signal_min_dbm": -90,
            "signal_max_dbm": -30
        }
    """
    cfg = _cfg()
    timing = _orchestrator().scan_timing()
    return jsonify({
        "band_2ghz": cfg.bands.band_2ghz,
        "band_5ghz": cfg.bands.band_5ghz,
        "scan_duration_ms": timing.duration_ms,
        "scan_min_ready_ms": timing.min_ready_ms,
        "scan_result_grace_ms": cfg.scan.result_grace_ms,
        "scan_timeout_ms": timing.timeout_ms,
        "scan_poll_interval_ms": timing.poll_interval_ms,
        "scan_csv_filename": cfg.scan.csv_filename,
        "signal_min_dbm": cfg.scan.signal_min_dbm,
        "signal_max_dbm": cfg.scan.signal_max_dbm,
    })


@api_bp.get("/status")
def get_status() -> Response:
    """Raw router state: interfaces, registration table, addresses, routes, DNS."""
    cfg = _cfg()
    service = WirelessInterfaceService(_router(), cfg.router.wlan_interface)
    return jsonify(service.status_snapshot())


@api_bp.post("/scan/start")
def scan_start() -> Response:
    """
    Trigger a scan; poll ``/api/scan/result`` afterwards.

    Query params:
        band: RouterOS band string, defaults to the 2.4 GHz band

    Returns:
        {"status": "started", "duration_ms": ..., "min_ready_ms": ...,
         "timeout_ms": ..., "poll_interval_ms": ..., "csv_filename": ...}
        or {"status": "already_scanning"}
    """
    band = (request.args.get("band") or "").strip() or None
    return jsonify(_orchestrator().start(band))


@api_bp.get("/scan/result")
def scan_result() -> Response:
    """
    Poll the running scan.

    Returns:
        {"status": "pending" | "timeout" | "no_result"}
        or {"csv": "...", "band": "...", "profiles": [...]}
    """
    outcome = _orchestrator().poll()
    response = jsonify(outcome.payload)
    if outcome.delivered:
        # Artifact and tmpfs go away once the result is on the wire
        response.call_on_close(outcome.complete)
    return response


@api_bp.post("/connect")
def connect() -> Response:
    """
    Join a network: reconcile its security profile, then configure the
    interface as a station.

    Body:
        {"ssid": "Cafe", "password": "...", "band": "...",
         "requiresPassword": true, "profileName": "..."}
    """
    cfg = _cfg()
    try:
        req = ConnectRequest.model_validate(_json_body())
    except ValidationError as exc:
        raise RequestValidationError(str(exc), code="invalid_request") from exc
    ssid = sanitize_ssid(req.ssid)
    if not ssid:
        raise RequestValidationError("Missing ssid", code="missing_ssid")
    band = req.band.strip() or cfg.bands.band_2ghz

    client = _router()
    profile_name = SecurityProfileReconciler(client).reconcile(
        ssid, req.password, req.requires_password, req.profile_name.strip() or None
    )
    service = WirelessInterfaceService(client, cfg.router.wlan_interface)
    iface = service.resolve()
    service.connect(iface, ssid, band, profile_name)
    return jsonify({"success": True})


@api_bp.post("/disconnect")
def disconnect() -> Response:
    cfg = _cfg()
    service = WirelessInterfaceService(_router(), cfg.router.wlan_interface)
    service.disconnect(service.resolve())
    return jsonify({"success": True})


@api_bp.post("/profile/delete")
def delete_profile() -> Response:
    """
    Forget a network. Only profiles carrying this system's provenance tag
    can be deleted.

    Body:
        {"profileName": "client-Cafe", "ssid": "Cafe"}
    """
    try:
        req = DeleteProfileRequest.model_validate(_json_body())
    except ValidationError as exc:
        raise RequestValidationError(str(exc), code="invalid_request") from exc
    SecurityProfileReconciler(_router()).delete_managed(
        ssid=sanitize_ssid(req.ssid), profile_name=req.profile_name.strip()
    )
    return jsonify({"success": True})
