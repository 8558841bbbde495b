"""Unit tests for the RouterOS REST client (HTTP layer mocked)."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from tikwifi.config import RouterConfig
from tikwifi.core.errors import ApiError, ParseError, RequestValidationError
from tikwifi.infrastructure.router import RouterClient, path_segment, router_error


def _response(text="[]", status=200):
    resp = MagicMock()
    resp.status_code = status
    resp.text = text
    return resp


@pytest.fixture
def config():
    return RouterConfig(ip="10.0.0.1", user="api", password="pw")


class TestCall:
    """RouterClient.call()"""

    def test_basic_auth_and_timeout(self, config):
        with patch.object(requests.Session, "request", return_value=_response()) as req:
            RouterClient(config).call("GET", "/interface/wireless")
        args, kwargs = req.call_args
        assert args == ("GET", "http://10.0.0.1/rest/interface/wireless")
        assert kwargs["auth"] == ("api", "pw")
        assert kwargs["timeout"] == 15.0
        assert kwargs["data"] is None

    def test_token_wins_over_password(self, config):
        config.token = "abc"
        with patch.object(requests.Session, "request", return_value=_response()) as req:
            RouterClient(config).call("GET", "/disk")
        kwargs = req.call_args.kwargs
        assert kwargs["headers"]["Authorization"] == "Bearer abc"
        assert kwargs["auth"] is None

    def test_body_is_json(self, config):
        with patch.object(requests.Session, "request", return_value=_response("{}")) as req:
            RouterClient(config).call("POST", "/disk/add", {"type": "tmpfs"}, timeout_ms=500)
        kwargs = req.call_args.kwargs
        assert kwargs["data"] == '{"type": "tmpfs"}'
        assert kwargs["headers"]["Content-Type"] == "application/json"
        assert kwargs["timeout"] == 0.5

    def test_error_status_returns_body(self, config):
        body = '{"error":404,"message":"no such command"}'
        with patch.object(requests.Session, "request", return_value=_response(body, 404)):
            text = RouterClient(config).call("GET", "/nope")
        assert router_error(text) == "no such command"

    def test_transport_failure_is_api_error(self, config):
        with patch.object(requests.Session, "request", side_effect=requests.Timeout("timed out")):
            with pytest.raises(ApiError) as err:
                RouterClient(config).call("GET", "/file")
        assert err.value.reason == "request_failed"
        assert err.value.http_status == 502

    def test_unconfigured_router(self):
        with patch.object(requests.Session, "request") as req:
            with pytest.raises(ApiError) as err:
                RouterClient(RouterConfig(ip="")).call("GET", "/file")
        assert err.value.reason == "router_not_configured"
        req.assert_not_called()

    def test_unsupported_method(self, config):
        with pytest.raises(RequestValidationError):
            RouterClient(config).call("PUT", "/file")


class TestJsonHelpers:
    """get_json() / get_list()"""

    def test_get_list(self, config):
        rows = '[{".id":"*1","name":"wlan1"}]'
        with patch.object(requests.Session, "request", return_value=_response(rows)):
            assert RouterClient(config).get_list("/interface/wireless") == [{".id": "*1", "name": "wlan1"}]

    def test_malformed_json(self, config):
        with patch.object(requests.Session, "request", return_value=_response("<html>")):
            with pytest.raises(ParseError):
                RouterClient(config).get_json("/ip/dns")

    def test_list_expected(self, config):
        with patch.object(requests.Session, "request", return_value=_response('{"servers":""}')):
            with pytest.raises(ParseError):
                RouterClient(config).get_list("/ip/dns")


def test_path_segment_keeps_router_ids():
    assert path_segment("*1A") == "*1A"
    assert path_segment("client-My Cafe") == "client-My%20Cafe"


def test_router_error_ignores_plain_bodies():
    assert router_error("[]") is None
    assert router_error("") is None
    assert router_error("not json") is None
