"""
RouterOS REST infrastructure.

Client, ephemeral scan storage, wireless interface access and the security
profile reconciler.
"""

from .client import RouterClient, path_segment, router_error
from .interface import WirelessInterfaceService
from .profiles import (
    SecurityProfileReconciler,
    default_profile_name,
    known_networks,
    provenance_tag,
    ssid_from_tag,
)
from .storage import EphemeralStorage

__all__ = [
    "EphemeralStorage",
    "RouterClient",
    "SecurityProfileReconciler",
    "WirelessInterfaceService",
    "default_profile_name",
    "known_networks",
    "path_segment",
    "provenance_tag",
    "router_error",
    "ssid_from_tag",
]
