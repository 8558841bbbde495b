"""
RouterOS REST Client.
~~~~~~~~~~~~~~~~~~~~~

Blocking HTTP client for the router's ``/rest`` API.

Every call is bounded by a per-call timeout and never retried: callers that
trigger long-running router operations pass a short timeout and
ignore the outcome.
"""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import quote

import requests

from ...config import RouterConfig
from ...core.errors import ApiError, ParseError, RequestValidationError

logger = logging.getLogger(__name__)

METHODS = ("GET", "POST", "PATCH", "DELETE")


def path_segment(value: str) -> str:
    """Quote a name or ``.id`` for use as a single path segment."""
    return quote(value, safe="*")


def router_error(text: str) -> str | None:
    """Return the router's error message when ``text`` is an error object."""
    try:
        data = json.loads(text) if text else None
    except ValueError:
        return None
    if isinstance(data, dict) and "error" in data:
        return str(data.get("message") or data.get("detail") or data["error"])
    return None


class RouterClient:
    """
    HTTP client for the RouterOS REST API.

    Example:
        >>> client = RouterClient(RouterConfig(ip="192.168.88.1", password="secret"))
        >>> client.get_list("/interface/wireless")
        [{'.id': '*1', 'name': 'wlan1', ...}]
    """

    def __init__(self, config: RouterConfig, session: requests.Session | None = None) -> None:
        """
        Initialize router client.

        Args:
            config: Router connection settings
            session: Optional pre-built requests session (tests)
        """
        self.config = config
        self._session = session or requests.Session()

    @property
    def base_url(self) -> str:
        return f"http://{self.config.ip}/rest"

    def _auth(self) -> tuple[dict[str, str], tuple[str, str] | None]:
        # Exactly one scheme per call, token wins
        if self.config.token:
            return {"Authorization": f"Bearer {self.config.token}"}, None
        return {}, (self.config.user, self.config.password)

    # ==================== Low-Level API ====================

    def call(
        self,
        method: str,
        path: str,
        body: Any = None,
        timeout_ms: int | None = None,
    ) -> str:
        """
        Issue one request against the router.

        Args:
            method: GET, POST, PATCH or DELETE
            path: Resource path below ``/rest`` (e.g. ``/interface/wireless``)
            body: JSON-serialisable payload
            timeout_ms: Per-call timeout, defaults to ``router.timeout_ms``

        Returns:
            Raw response text (the router reports its own errors as JSON)

        Raises:
            ApiError: transport failure or timeout, no distinction is made
        """
        method = method.upper()
        if method not in METHODS:
            raise RequestValidationError(f"unsupported method {method}", code="invalid_method")
        if not self.config.ip:
            logger.error("Router address not configured")
            raise ApiError("router address not configured", reason="router_not_configured")

        timeout = (timeout_ms if timeout_ms is not None else self.config.timeout_ms) / 1000.0
        headers, auth = self._auth()
        data = None
        if body is not None:
            headers["Content-Type"] = "application/json"
            data = json.dumps(body)

        url = self.base_url + path
        try:
            resp = self._session.request(
                method,
                url,
                data=data,
                headers=headers,
                auth=auth,
                timeout=timeout,
            )
        except requests.RequestException as exc:
            logger.warning("Router %s %s failed: %s", method, path, exc)
            raise ApiError(f"{method} {path}: {exc}") from exc

        if resp.status_code >= 400:
            logger.warning("Router %s %s answered %s: %s", method, path, resp.status_code, resp.text[:200])
        else:
            logger.debug("Router %s %s -> %s", method, path, resp.status_code)
        return resp.text

    # ==================== JSON Helpers ====================

    def get_json(self, path: str, timeout_ms: int | None = None) -> Any:
        """GET ``path`` and decode the body; malformed JSON raises ParseError."""
        text = self.call("GET", path, timeout_ms=timeout_ms)
        try:
            return json.loads(text)
        except ValueError as exc:
            logger.error("Router %s returned invalid JSON (%d bytes): %s", path, len(text), exc)
            raise ParseError(f"{path}: invalid JSON") from exc

    def get_list(self, path: str, timeout_ms: int | None = None) -> list[dict[str, Any]]:
        """GET a collection; anything but a JSON array raises ParseError."""
        data = self.get_json(path, timeout_ms=timeout_ms)
        if not isinstance(data, list):
            logger.error("Router %s returned %s instead of a list", path, type(data).__name__)
            raise ParseError(f"{path}: expected a list")
        return data

    def close(self) -> None:
        self._session.close()
