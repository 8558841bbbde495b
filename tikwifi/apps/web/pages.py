from __future__ import annotations

from pathlib import Path

from flask import Blueprint, abort, current_app, redirect, send_from_directory

from ...config import TikwifiConfig
from ...core.security import sanitize_path
from ...infrastructure.portal import is_path_allowed_during_captive

pages_bp = Blueprint("pages", __name__)

# Configuration files that may sit next to the UI assets
HIDDEN_SUFFIXES = (".yml", ".yaml", ".tmp")
HIDDEN_NAMES = ("config.json",)


def _static_dir() -> Path:
    cfg: TikwifiConfig = current_app.config["TIKWIFI_CONFIG"]
    return cfg.web.static_dir


@pages_bp.get("/")
@pages_bp.get("/<path:path>")
def static_file(path: str = ""):
    portal = current_app.extensions["tikwifi"]["portal"]
    if portal.active and not is_path_allowed_during_captive("/" + path):
        return redirect("/config.html")

    if not path:
        path = "config.html" if portal.active else "index.html"

    name = Path(path).name.lower()
    if name in HIDDEN_NAMES or name.endswith(HIDDEN_SUFFIXES):
        abort(404)

    base = _static_dir()
    target = sanitize_path(path, base)
    if target is None or not target.is_file():
        abort(404)
    return send_from_directory(base.resolve(), str(target.relative_to(base.resolve())))
