"""
Ephemeral scan storage on the router.

The router writes scan results to a file, which needs a writable volume. A
small tmpfs is created right before a scan and removed afterwards so the
router does not keep the memory reserved.
"""

from __future__ import annotations

import logging

from ...core.errors import ApiError, ParseError
from ...domain.models import StorageVolume
from .client import RouterClient, router_error

logger = logging.getLogger(__name__)


class EphemeralStorage:
    """Create/remove the ``tmp1`` tmpfs volume, both idempotent."""

    def __init__(self, client: RouterClient, max_size: str = "1M") -> None:
        self.client = client
        self.max_size = max_size

    def _find(self) -> StorageVolume | None:
        rows = self.client.get_list("/disk")
        for volume in StorageVolume.parse_rows(rows):
            if volume.is_scan_volume:
                return volume
        return None

    def ensure(self) -> bool:
        """Make sure the scan volume exists. False when it cannot be provided."""
        try:
            if self._find() is not None:
                return True
        except (ApiError, ParseError) as exc:
            logger.warning("Cannot list router disks: %s", exc)
            return False

        logger.info("tmpfs missing, creating (max %s)", self.max_size)
        try:
            text = self.client.call("POST", "/disk/add", {"type": "tmpfs", "tmpfs-max-size": self.max_size})
        except ApiError as exc:
            logger.warning("tmpfs creation failed: %s", exc)
            return False
        error = router_error(text)
        if error:
            logger.warning("tmpfs creation refused: %s", error)
            return False
        return True

    def remove(self) -> None:
        """Remove the scan volume if present; absence is not an error."""
        try:
            volume = self._find()
        except (ApiError, ParseError) as exc:
            logger.warning("Cannot list router disks for cleanup: %s", exc)
            return
        if volume is None or not volume.id:
            return
        logger.info("Removing tmpfs %s", volume.id)
        try:
            self.client.call("POST", "/disk/remove", {"numbers": volume.id})
        except ApiError as exc:
            logger.warning("tmpfs removal failed: %s", exc)
