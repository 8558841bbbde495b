"""
Captive portal gate.

The setup access point itself is raised by the device's network service,
which watches a flag file. This module only reads and flips that flag so the
web layer can restrict operations while the device is in setup mode.
"""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

# Reachable while the portal is up: the configuration page and its assets
CAPTIVE_ALLOWED_PATHS = (
    "/",
    "/config.html",
    "/config.js",
    "/style.css",
    "/favicon.png",
    "/favicon.ico",
    "/favicon@2x.png",
)
CAPTIVE_ALLOWED_PREFIXES = ("/i18n/",)


def is_path_allowed_during_captive(path: str) -> bool:
    return path in CAPTIVE_ALLOWED_PATHS or path.startswith(CAPTIVE_ALLOWED_PREFIXES)


class CaptivePortal:
    """Flag-file view of the device's setup access point."""

    def __init__(self, flag_file: Path, ssid: str = "MikroTikSetup") -> None:
        self.flag_file = Path(flag_file)
        self.ssid = ssid

    @property
    def active(self) -> bool:
        return self.flag_file.exists()

    def activate(self) -> None:
        if self.active:
            return
        logger.info("Requesting captive portal '%s'", self.ssid)
        self.flag_file.parent.mkdir(parents=True, exist_ok=True)
        self.flag_file.write_text(self.ssid + "\n", encoding="utf-8")

    def deactivate(self) -> None:
        if not self.active:
            return
        logger.info("Stopping captive portal")
        self.flag_file.unlink(missing_ok=True)
