from __future__ import annotations

import os

from flask import Response, request

from ...config import TikwifiConfig
from ...core.security import constant_time_compare

# Reachable without a token
UNAUTH_PATHS = ("/api/health",)


def _get_env(name: str) -> str | None:
    val = os.environ.get(name)
    if val is None or not val.strip():
        return None
    return val.strip()


def check_api_token(cfg: TikwifiConfig) -> Response | None:
    """Bearer / X-Token guard for ``/api/*``; inactive when no token is set."""
    if not request.path.startswith("/api/") or request.method == "OPTIONS":
        return None
    if request.path in UNAUTH_PATHS:
        return None
    expected = _get_env(cfg.web.auth.token_env)
    if expected is None:
        return None

    supplied = None
    auth = request.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        supplied = auth.split(" ", 1)[1]
    if not supplied:
        supplied = request.headers.get("X-Token")

    if not constant_time_compare(supplied or "", expected):
        return Response('{"error":"unauthorized"}', status=401, mimetype="application/json")
    return None
