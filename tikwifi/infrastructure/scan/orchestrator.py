"""
Remote Wireless Scan Orchestrator.

The router's scan runs for several seconds and writes its result to a CSV
file; there is no push notification. The device cannot block its single
request loop that long, so a scan is spread over short requests:

    idle -> triggering -> cooling_down -> polling -> delivered | timed_out -> idle

``start()`` triggers the scan with a fire-and-forget call and returns the
timing the client should poll with. Each ``poll()`` either answers
``pending`` without touching the router (cool-down), performs exactly one
file-list check, or ends the session on timeout.

Usage:
    session = ScanSession()
    orch = ScanOrchestrator(session, client, cfg)
    orch.start("5ghz-a/n/ac")
    ...
    result = orch.poll()
    send(result.payload)
    result.complete()   # delete the artifact and the tmpfs
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ...config import TikwifiConfig
from ...core.errors import ApiError, ParseError, StorageUnavailableError
from ...domain.models import RouterFile, ScanTiming
from ..router.client import RouterClient
from ..router.interface import WirelessInterfaceService
from ..router.profiles import SecurityProfileReconciler, known_networks
from ..router.storage import EphemeralStorage

logger = logging.getLogger(__name__)

SCAN_PATH = "/interface/wireless/scan"


class ScanPhase(str, Enum):
    """Lifecycle phase of the scan session."""
    IDLE = "idle"
    TRIGGERING = "triggering"
    COOLING_DOWN = "cooling_down"
    POLLING = "polling"
    DELIVERED = "delivered"
    TIMED_OUT = "timed_out"


class ScanStatus(str, Enum):
    """Status values reported to polling clients."""
    STARTED = "started"
    ALREADY_SCANNING = "already_scanning"
    PENDING = "pending"
    TIMEOUT = "timeout"
    NO_RESULT = "no_result"


@dataclass
class ScanSession:
    """The one in-memory scan record of the process."""
    phase: ScanPhase = ScanPhase.IDLE
    cached_result: dict[str, Any] | None = None
    started_at: float = 0.0
    band: str = ""
    artifact_name: str = ""
    timing: ScanTiming | None = None

    @property
    def active(self) -> bool:
        return self.phase != ScanPhase.IDLE

    def reset(self) -> None:
        self.phase = ScanPhase.IDLE
        self.started_at = 0.0
        self.band = ""
        self.artifact_name = ""
        self.timing = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "phase": self.phase.value,
            "active": self.active,
            "band": self.band,
            "artifact": self.artifact_name,
            "has_cached_result": self.cached_result is not None,
        }


@dataclass
class ScanPoll:
    """Answer to one result poll.

    ``complete()`` runs the post-delivery cleanup (artifact + tmpfs); it is
    meant to run after the payload has been handed to the client and does
    nothing on a second call or for non-delivery answers.
    """
    payload: dict[str, Any]
    delivered: bool = False
    _cleanup: Callable[[], None] | None = field(default=None, repr=False)

    def complete(self) -> None:
        cleanup, self._cleanup = self._cleanup, None
        if cleanup is not None:
            cleanup()


class ScanOrchestrator:
    """
    Drives one scan session against the router.

    Built per request; all state lives in the shared ``ScanSession``.
    """

    def __init__(
        self,
        session: ScanSession,
        client: RouterClient,
        config: TikwifiConfig,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.session = session
        self.client = client
        self.config = config
        self.clock = clock
        self.sleep = sleep
        self.storage = EphemeralStorage(client, config.router.tmpfs_max_size)
        self.interfaces = WirelessInterfaceService(client, config.router.wlan_interface)
        self.profiles = SecurityProfileReconciler(client)

    def scan_timing(self) -> ScanTiming:
        """Timing a scan started now would use."""
        return ScanTiming.from_config(self.config.scan)

    # ==================== Start ====================

    def start(self, band: str | None = None) -> dict[str, Any]:
        """
        Trigger a scan on ``band`` (default: the 2.4 GHz band).

        Raises:
            NotFoundError: configured interface missing
            StorageUnavailableError: tmpfs could not be provided
        """
        if self.session.active:
            logger.info("Scan start ignored, session is %s", self.session.phase.value)
            return {"status": ScanStatus.ALREADY_SCANNING.value}

        band = band or self.config.bands.band_2ghz
        self.session.phase = ScanPhase.TRIGGERING
        try:
            iface = self.interfaces.resolve()
            if band and iface.band != band:
                self.interfaces.switch_band(iface, band)
                self.sleep(self.config.router.band_switch_settle_ms / 1000.0)
            if not self.storage.ensure():
                raise StorageUnavailableError("tmpfs not available")
        except Exception:
            self.session.reset()
            raise

        scan_cfg = self.config.scan
        timing = ScanTiming.from_config(scan_cfg)
        self.session.cached_result = None
        self.session.started_at = self.clock()
        self.session.band = band
        self.session.artifact_name = scan_cfg.csv_filename
        self.session.timing = timing

        body = {
            ".id": iface.name,
            "duration": str(scan_cfg.duration_seconds),
            "save-file": self.session.artifact_name,
        }
        try:
            self.client.call("POST", SCAN_PATH, body, timeout_ms=self.config.router.trigger_timeout_ms)
        except ApiError as exc:
            # Expected: the router keeps scanning after our short timeout
            logger.debug("Scan trigger returned early: %s", exc)
        self.session.phase = ScanPhase.COOLING_DOWN
        logger.info(
            "Scan started on %s band %s (ready after %d ms, timeout %d ms)",
            iface.name, band, timing.min_ready_ms, timing.timeout_ms,
        )

        return {
            "status": ScanStatus.STARTED.value,
            "duration_ms": timing.duration_ms,
            "min_ready_ms": timing.min_ready_ms,
            "timeout_ms": timing.timeout_ms,
            "poll_interval_ms": timing.poll_interval_ms,
            "csv_filename": self.session.artifact_name,
        }

    # ==================== Poll ====================

    def poll(self) -> ScanPoll:
        """Answer one result poll without ever waiting on the scan."""
        session = self.session

        if session.cached_result is not None:
            payload, session.cached_result = session.cached_result, None
            logger.info("Serving cached scan result")
            return ScanPoll(payload)

        if not session.active or session.timing is None:
            return ScanPoll({"status": ScanStatus.NO_RESULT.value, "error": "No scan in progress"})

        timing = session.timing
        elapsed_ms = (self.clock() - session.started_at) * 1000.0

        if elapsed_ms < timing.min_ready_ms:
            return ScanPoll({"status": ScanStatus.PENDING.value})

        if elapsed_ms > timing.timeout_ms:
            logger.warning("Scan timeout after %d ms (limit %d ms)", elapsed_ms, timing.timeout_ms)
            session.phase = ScanPhase.TIMED_OUT
            self.storage.remove()
            session.reset()
            return ScanPoll({"status": ScanStatus.TIMEOUT.value, "error": "Scan timeout"})

        session.phase = ScanPhase.POLLING
        artifact = self._find_artifact(session.artifact_name)
        if artifact is None:
            return ScanPoll({"status": ScanStatus.PENDING.value})

        return self._deliver(artifact)

    def _find_artifact(self, name: str) -> RouterFile | None:
        try:
            rows = self.client.get_list("/file")
        except (ApiError, ParseError) as exc:
            logger.warning("File listing failed, still pending: %s", exc)
            return None
        for entry in RouterFile.parse_rows(rows):
            if entry.name == name and entry.contents:
                return entry
        return None

    def _deliver(self, artifact: RouterFile) -> ScanPoll:
        session = self.session
        session.phase = ScanPhase.DELIVERED
        payload = {
            "csv": artifact.contents,
            "band": session.band,
            "profiles": known_networks(self.profiles.list_profiles_lenient()),
        }
        logger.info(
            "Scan result ready: %d bytes, %d known profiles",
            len(artifact.contents), len(payload["profiles"]),
        )
        session.reset()
        if self.config.scan.cache_last_result:
            session.cached_result = payload

        def cleanup() -> None:
            self._remove_artifact(artifact)
            self.storage.remove()

        return ScanPoll(payload, delivered=True, _cleanup=cleanup)

    def _remove_artifact(self, artifact: RouterFile) -> None:
        if not artifact.id:
            return
        try:
            self.client.call("POST", "/file/remove", {"numbers": artifact.id})
        except ApiError as exc:
            logger.warning("Removing %s failed: %s", artifact.name, exc)
