"""Remote wireless scan orchestration."""

from .orchestrator import ScanOrchestrator, ScanPhase, ScanPoll, ScanSession, ScanStatus

__all__ = [
    "ScanOrchestrator",
    "ScanPhase",
    "ScanPoll",
    "ScanSession",
    "ScanStatus",
]
