"""Unit tests for the wireless interface service."""

import pytest

from tikwifi.core.errors import ApiError, NotFoundError, ParseError
from tikwifi.domain import InterfaceRole
from tikwifi.infrastructure.router import WirelessInterfaceService


@pytest.fixture
def service(router):
    return WirelessInterfaceService(router, "wlan1")


def test_resolve(service):
    iface = service.resolve()
    assert iface.id == "*1"
    assert iface.role == InterfaceRole.STATION


def test_resolve_missing(service, router):
    router.interfaces = [{".id": "*2", "name": "wlan2"}]
    with pytest.raises(NotFoundError) as err:
        service.resolve()
    assert err.value.code == "interface_not_found"


def test_resolve_without_id(service, router):
    router.interfaces = [{"name": "wlan1"}]
    with pytest.raises(NotFoundError):
        service.resolve()


def test_resolve_listing_failure(service, router):
    router.fail("GET", "/interface/wireless", ApiError("down"))
    with pytest.raises(NotFoundError):
        service.resolve()


def test_connect_sets_station(service, router):
    service.connect(service.resolve(), "Cafe", "5ghz-a/n/ac", "client-Cafe")
    assert router.interfaces[0] == {
        ".id": "*1",
        "name": "wlan1",
        "band": "5ghz-a/n/ac",
        "mode": "station",
        "ssid": "Cafe",
        "security-profile": "client-Cafe",
        "disabled": "no",
    }


def test_connect_failure_is_logged(service, router):
    router.fail("PATCH", "/interface/wireless/*1", ApiError("down"))
    service.connect(service.resolve(), "Cafe", "2ghz-b/g/n", "client-Cafe")


def test_disconnect(service, router):
    service.disconnect(service.resolve())
    assert router.interfaces[0]["disabled"] == "yes"
    assert service.resolve().role == InterfaceRole.DISABLED


def test_status_snapshot(service, router):
    router.fail("GET", "/ip/route", ParseError("garbage"))
    snap = service.status_snapshot()
    assert set(snap) == {"interfaces", "registration", "addresses", "routes", "dns"}
    assert snap["routes"] is None
    assert snap["interfaces"][0]["name"] == "wlan1"
    assert snap["dns"] == {"servers": ""}
