"""tikwifi domain - router entities, request bodies and scan CSV parsing."""

from .models import (
    PROFILE_COMMENT_PREFIX,
    ConnectRequest,
    DeleteProfileRequest,
    InterfaceRole,
    RouterFile,
    ScanTiming,
    SecurityMode,
    SecurityProfile,
    StorageVolume,
    WirelessInterface,
)
from .scan_csv import ScannedNetwork, mark_known, parse_scan_csv

__all__ = [
    "PROFILE_COMMENT_PREFIX",
    "ConnectRequest",
    "DeleteProfileRequest",
    "InterfaceRole",
    "RouterFile",
    "ScanTiming",
    "ScannedNetwork",
    "SecurityMode",
    "SecurityProfile",
    "StorageVolume",
    "WirelessInterface",
    "mark_known",
    "parse_scan_csv",
]
