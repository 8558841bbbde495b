"""Shared fixtures: an in-memory RouterOS, a manual clock and the web app."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import MagicMock
from urllib.parse import unquote

import pytest

from tikwifi.config import RouterConfig, TikwifiConfig, save_config
from tikwifi.core.errors import ApiError
from tikwifi.infrastructure.router import RouterClient

PROFILES = "/interface/wireless/security-profiles"


class FakeRouter(RouterClient):
    """
    Stateful stand-in for the RouterOS REST API.

    Every call is recorded in ``calls`` as ``(method, path, body, timeout_ms)``.
    ``fail(method, path, exc)`` makes one endpoint raise.
    """

    def __init__(self, config: RouterConfig | None = None) -> None:
        super().__init__(config or RouterConfig(password="secret"), session=MagicMock())
        self.interfaces: list[dict[str, Any]] = [
            {".id": "*1", "name": "wlan1", "band": "2ghz-b/g/n", "mode": "station", "disabled": "false"},
        ]
        self.profiles: list[dict[str, Any]] = [
            {".id": "*0", "name": "default", "mode": "none", "authentication-types": "", "comment": ""},
        ]
        self.disks: list[dict[str, Any]] = []
        self.files: list[dict[str, Any]] = []
        self.calls: list[tuple[str, str, Any, int | None]] = []
        self.failures: dict[tuple[str, str], Exception] = {}
        self.responses: dict[tuple[str, str], str] = {}
        # CSV the router "writes" when a scan is triggered
        self.scan_output: str | None = None
        self.closed = 0
        self._next_id = 100

    # ==================== Test helpers ====================

    def fail(self, method: str, path: str, exc: Exception) -> None:
        self.failures[(method, path)] = exc

    def answer(self, method: str, path: str, text: str) -> None:
        self.responses[(method, path)] = text

    def mutating_calls(self) -> list[tuple[str, str, Any, int | None]]:
        return [c for c in self.calls if c[0] != "GET"]

    def calls_to(self, method: str, path: str) -> list[tuple[str, str, Any, int | None]]:
        return [c for c in self.calls if c[0] == method and c[1] == path]

    def profile(self, name: str) -> dict[str, Any] | None:
        return next((p for p in self.profiles if p["name"] == name), None)

    def _new_id(self, prefix: str = "*") -> str:
        self._next_id += 1
        return f"{prefix}{self._next_id:X}"

    # ==================== RouterClient ====================

    def close(self) -> None:
        self.closed += 1
        super().close()

    def call(self, method: str, path: str, body: Any = None, timeout_ms: int | None = None) -> str:
        method = method.upper()
        self.calls.append((method, path, body, timeout_ms))
        if (method, path) in self.failures:
            raise self.failures[(method, path)]
        if (method, path) in self.responses:
            return self.responses[(method, path)]
        return json.dumps(self._dispatch(method, path, body or {}))

    def _dispatch(self, method: str, path: str, body: dict[str, Any]) -> Any:
        if method == "GET":
            return {
                "/interface/wireless": self.interfaces,
                "/interface/wireless/registration-table": [],
                "/ip/address": [{".id": "*1", "address": "192.168.88.1/24", "interface": "bridge"}],
                "/ip/route": [],
                "/ip/dns": {"servers": ""},
                PROFILES: self.profiles,
                "/disk": self.disks,
                "/file": self.files,
            }[path]

        if path == "/disk/add":
            self.disks.append({".id": self._new_id(), "slot": "tmp1", "type": "tmpfs"})
            return {"ret": self.disks[-1][".id"]}
        if path == "/disk/remove":
            self.disks = [d for d in self.disks if d[".id"] != body["numbers"]]
            return []
        if path == "/file/remove":
            self.files = [f for f in self.files if f[".id"] != body["numbers"]]
            return []
        if path == "/interface/wireless/scan":
            if self.scan_output is not None:
                self.files.append({
                    ".id": self._new_id(),
                    "name": body["save-file"],
                    "type": ".csv file",
                    "contents": self.scan_output,
                })
            # The real router is still scanning when the short timeout hits
            raise ApiError("Read timed out")
        if path.startswith("/interface/wireless/") and method == "PATCH" and not path.startswith(PROFILES):
            iface_id = unquote(path.rsplit("/", 1)[1])
            for iface in self.interfaces:
                if iface[".id"] == iface_id:
                    iface.update(body)
                    return []
            return {"error": 404, "message": "no such item"}
        if path == PROFILES + "/add":
            self.profiles.append({".id": self._new_id(), **body})
            return {"ret": self.profiles[-1][".id"]}
        if path.startswith(PROFILES + "/"):
            name = unquote(path[len(PROFILES) + 1:])
            profile = self.profile(name)
            if profile is None:
                return {"error": 404, "message": "no such item"}
            if method == "PATCH":
                profile.update(body)
            elif method == "DELETE":
                self.profiles.remove(profile)
            return []
        raise AssertionError(f"unexpected router call {method} {path}")


class FakeClock:
    """Monotonic clock advanced by hand (or by ``sleep``)."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.now += seconds

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000.0


@pytest.fixture
def router() -> FakeRouter:
    return FakeRouter()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cfg(tmp_path) -> TikwifiConfig:
    static = tmp_path / "web"
    static.mkdir()
    (static / "index.html").write_text("<h1>networks</h1>", encoding="utf-8")
    (static / "config.html").write_text("<h1>setup</h1>", encoding="utf-8")
    (static / "tikwifi.yml").write_text("router: {}\n", encoding="utf-8")
    config = TikwifiConfig()
    config.router.password = "secret"
    config.web.static_dir = static
    config.portal.flag_file = tmp_path / "run" / "captive_portal"
    return config


@pytest.fixture
def config_path(tmp_path, cfg) -> Any:
    path = tmp_path / "tikwifi.yml"
    save_config(cfg, path)
    return path


@pytest.fixture
def app(cfg, config_path, router, clock, monkeypatch):
    """Flask app wired to the fake router and clock."""
    from tikwifi.apps.web import create_app

    monkeypatch.delenv("TIKWIFI_UI_TOKEN", raising=False)
    app = create_app(
        cfg,
        config_path=config_path,
        router_factory=lambda _cfg: router,
        clock=clock,
        sleep=clock.sleep,
    )
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
