"""tikwifi domain models - typed views of RouterOS REST entities."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

PROFILE_COMMENT_PREFIX = "wifi-manager:ssid="
TMPFS_SLOT = "tmp1"


def as_bool(value: Any) -> bool:
    """RouterOS reports flags as strings (``"true"``, ``"yes"``, ...)."""
    if isinstance(value, bool):
        return value
    text = str(value or "").strip().lower()
    return text in ("true", "yes", "on", "1", "running", "enabled")


class SecurityMode(str, Enum):
    """Security profile modes this system writes."""

    NONE = "none"
    DYNAMIC_KEYS = "dynamic-keys"


class InterfaceRole(str, Enum):
    """Coarse role of the wireless interface."""

    STATION = "station"
    AP = "ap"
    DISABLED = "disabled"


class RouterEntity(BaseModel):
    """Base for router rows: hyphenated keys, unknown keys ignored."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(default="", alias=".id")

    @model_validator(mode="before")
    @classmethod
    def _scalars_as_text(cls, data: Any) -> Any:
        # RouterOS REST is stringly typed; normalise the odd number or bool
        if isinstance(data, dict):
            return {
                key: ("true" if value else "false") if isinstance(value, bool)
                else str(value) if isinstance(value, (int, float)) else value
                for key, value in data.items()
                if value is not None
            }
        return data

    @classmethod
    def parse_rows(cls, rows: list[Any]) -> list[Any]:
        return [cls.model_validate(row) for row in rows if isinstance(row, dict)]


class SecurityProfile(RouterEntity):
    """Wireless security profile (``/interface/wireless/security-profiles``)."""

    name: str = ""
    mode: str = ""
    authentication_types: str = Field(default="", alias="authentication-types")
    wpa_pre_shared_key: str = Field(default="", alias="wpa-pre-shared-key")
    wpa2_pre_shared_key: str = Field(default="", alias="wpa2-pre-shared-key")
    comment: str = ""

    @property
    def managed_ssid(self) -> str | None:
        """SSID from the provenance tag, None for profiles we do not own."""
        if self.comment.startswith(PROFILE_COMMENT_PREFIX):
            return self.comment[len(PROFILE_COMMENT_PREFIX):]
        return None

    @property
    def is_managed(self) -> bool:
        return self.managed_ssid is not None


class WirelessInterface(RouterEntity):
    """Wireless interface (``/interface/wireless``)."""

    name: str = ""
    band: str = ""
    mode: str = ""
    ssid: str = ""
    security_profile: str = Field(default="", alias="security-profile")
    disabled: bool = False
    running: bool = False

    @field_validator("disabled", "running", mode="before")
    @classmethod
    def _flag(cls, value: Any) -> bool:
        return as_bool(value)

    @property
    def role(self) -> InterfaceRole:
        if self.disabled:
            return InterfaceRole.DISABLED
        if self.mode == "station" or self.mode.startswith("station-"):
            return InterfaceRole.STATION
        return InterfaceRole.AP


class StorageVolume(RouterEntity):
    """Disk entry (``/disk``)."""

    slot: str = ""
    mount_point: str = Field(default="", alias="mount-point")
    type: str = ""

    @property
    def is_scan_volume(self) -> bool:
        return TMPFS_SLOT in (self.slot, self.mount_point)


class RouterFile(RouterEntity):
    """File entry (``/file``)."""

    name: str = ""
    type: str = ""
    size: str = ""
    contents: str = ""


@dataclass(frozen=True)
class ScanTiming:
    """Timing of one scan, fixed when the scan starts."""

    duration_ms: int
    min_ready_ms: int
    timeout_ms: int
    poll_interval_ms: int

    @classmethod
    def from_config(cls, scan: Any) -> ScanTiming:
        duration_ms = int(scan.duration_seconds) * 1000
        poll_ms = int(scan.poll_interval_ms)
        return cls(
            duration_ms=duration_ms,
            min_ready_ms=duration_ms,
            timeout_ms=duration_ms + int(scan.result_grace_ms) + poll_ms,
            poll_interval_ms=poll_ms,
        )


# =============================================================================
# Request bodies
# =============================================================================

class ConnectRequest(BaseModel):
    """Body of ``POST /api/connect``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    ssid: str = ""
    password: str = ""
    band: str = ""
    requires_password: bool = Field(default=True, alias="requiresPassword")
    profile_name: str = Field(default="", alias="profileName")

    @field_validator("ssid", "password", "band", "profile_name", mode="before")
    @classmethod
    def _none_is_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class DeleteProfileRequest(BaseModel):
    """Body of ``POST /api/profile/delete``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    ssid: str = ""
    profile_name: str = Field(default="", alias="profileName")

    @field_validator("ssid", "profile_name", mode="before")
    @classmethod
    def _none_is_empty(cls, value: Any) -> Any:
        return "" if value is None else value
