"""Access to the single configured wireless interface of the router."""

from __future__ import annotations

import logging
from typing import Any

from ...core.errors import ApiError, NotFoundError, ParseError
from ...domain.models import WirelessInterface
from .client import RouterClient, path_segment

logger = logging.getLogger(__name__)

STATUS_SOURCES = {
    "interfaces": "/interface/wireless",
    "registration": "/interface/wireless/registration-table",
    "addresses": "/ip/address",
    "routes": "/ip/route",
    "dns": "/ip/dns",
}


class WirelessInterfaceService:
    """Resolve, retune, join and leave on the configured interface."""

    def __init__(self, client: RouterClient, interface_name: str) -> None:
        self.client = client
        self.interface_name = interface_name

    def resolve(self) -> WirelessInterface:
        """Find the configured interface; NotFoundError when it cannot be used."""
        try:
            rows = self.client.get_list("/interface/wireless")
        except (ApiError, ParseError) as exc:
            logger.error("Cannot list wireless interfaces: %s", exc)
            raise NotFoundError("Configured WLAN interface not found", code="interface_not_found") from exc

        for iface in WirelessInterface.parse_rows(rows):
            if iface.name == self.interface_name:
                if not iface.id:
                    logger.error("Interface %s has no .id", self.interface_name)
                    break
                return iface
        else:
            logger.error("Configured interface '%s' not found on router", self.interface_name)
        raise NotFoundError("Configured WLAN interface not found", code="interface_not_found")

    def _patch(self, iface: WirelessInterface, payload: dict[str, Any]) -> str:
        return self.client.call("PATCH", f"/interface/wireless/{path_segment(iface.id)}", payload)

    def switch_band(self, iface: WirelessInterface, band: str) -> None:
        logger.info("Switching %s band %s -> %s", iface.name, iface.band or "?", band)
        try:
            self._patch(iface, {"band": band})
        except ApiError as exc:
            logger.warning("Band switch failed, scanning on current band: %s", exc)

    def connect(self, iface: WirelessInterface, ssid: str, band: str, profile_name: str) -> None:
        """Turn the interface into a station for ``ssid``."""
        logger.info("Joining '%s' on %s (profile %s)", ssid, band, profile_name)
        payload = {
            "mode": "station",
            "ssid": ssid,
            "band": band,
            "security-profile": profile_name,
            "disabled": "no",
        }
        try:
            self._patch(iface, payload)
        except ApiError as exc:
            logger.warning("Station configuration of %s failed: %s", iface.name, exc)

    def disconnect(self, iface: WirelessInterface) -> None:
        logger.info("Disabling %s", iface.name)
        try:
            self._patch(iface, {"disabled": "yes"})
        except ApiError as exc:
            logger.warning("Disabling %s failed: %s", iface.name, exc)

    def status_snapshot(self) -> dict[str, Any]:
        """Collect router state for the status page; failed sources become None."""
        snapshot: dict[str, Any] = {}
        for key, path in STATUS_SOURCES.items():
            try:
                snapshot[key] = self.client.get_json(path)
            except (ApiError, ParseError) as exc:
                logger.warning("Status source %s unavailable: %s", key, exc)
                snapshot[key] = None
        return snapshot
