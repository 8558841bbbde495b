from __future__ import annotations

import logging
import time
from collections.abc import Callable
from pathlib import Path

from flask import Flask, Response, g, jsonify, request

from ...config import TikwifiConfig
from ...core.errors import TikwifiError
from ...infrastructure.portal import CaptivePortal
from ...infrastructure.router import RouterClient
from ...infrastructure.scan import ScanSession
from .api import api_bp
from .auth import check_api_token
from .pages import pages_bp
from .settings_api import settings_bp

logger = logging.getLogger(__name__)


def _default_router(cfg: TikwifiConfig) -> RouterClient:
    return RouterClient(cfg.router)


def create_app(
    cfg: TikwifiConfig,
    config_path: Path | None = None,
    router_factory: Callable[[TikwifiConfig], RouterClient] | None = None,
    clock: Callable[[], float] | None = None,
    sleep: Callable[[float], None] | None = None,
) -> Flask:
    """
    Build the web app.

    Args:
        cfg: Loaded configuration; replaced in ``app.config`` on settings updates
        config_path: YAML file settings updates are written to
        router_factory: Builds the router client per request (tests inject fakes)
        clock: Monotonic clock for scan timing
        sleep: Used for the band-switch settle delay
    """
    app = Flask(__name__)
    app.config["TIKWIFI_CONFIG"] = cfg
    app.extensions["tikwifi"] = {
        "scan_session": ScanSession(),
        "portal": CaptivePortal(cfg.portal.flag_file, cfg.portal.ssid),
        "router_factory": router_factory or _default_router,
        "config_path": config_path,
        "clock": clock or time.monotonic,
        "sleep": sleep or time.sleep,
    }

    @app.before_request
    def _auth_guard():  # type: ignore[override]
        return check_api_token(app.config["TIKWIFI_CONFIG"])

    @app.after_request
    def _cors(response: Response) -> Response:
        if request.path.startswith("/api/"):
            current: TikwifiConfig = app.config["TIKWIFI_CONFIG"]
            response.headers["Access-Control-Allow-Origin"] = current.web.cors_allow_origin
            response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
            response.headers["Access-Control-Allow-Headers"] = "Content-Type, Authorization, X-Token"
        return response

    @app.after_request
    def _release_router(response: Response) -> Response:
        client = g.pop("router_client", None)
        if client is not None:
            # Registered after the view's own close callbacks, so it runs last
            response.call_on_close(client.close)
        return response

    @app.teardown_request
    def _close_router(exc: BaseException | None) -> None:
        client = g.pop("router_client", None)
        if client is not None:
            client.close()

    @app.errorhandler(TikwifiError)
    def _tikwifi_error(exc: TikwifiError):
        if exc.http_status >= 500:
            logger.error("%s %s failed: %s", request.method, request.path, exc)
        else:
            logger.info("%s %s rejected: %s (%s)", request.method, request.path, exc.code, exc)
        return jsonify(exc.to_dict()), exc.http_status

    app.register_blueprint(api_bp)
    app.register_blueprint(settings_bp)
    app.register_blueprint(pages_bp)
    return app


__all__ = ["create_app"]
