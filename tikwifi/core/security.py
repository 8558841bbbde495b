"""
Input sanitization helpers for values that end up on the router or the
filesystem.
"""
from __future__ import annotations

import hmac
import re
from pathlib import Path

# =============================================================================
# INPUT SANITIZATION
# =============================================================================

def sanitize_ssid(ssid: str | None) -> str:
    """
    Strip control characters and surrounding whitespace from an SSID.

    Returns an empty string for missing input; callers decide whether that is
    an error.
    """
    if not ssid:
        return ""
    clean = re.sub(r'[\x00-\x1f\x7f-\x9f]', '', str(ssid))
    # 32 bytes on air, allow some slack for multi-byte characters
    return clean.strip()[:64]


def sanitize_path(path: str, base_dir: Path) -> Path | None:
    """
    Resolve ``path`` below ``base_dir``.

    Returns None when the result escapes ``base_dir`` (directory traversal).
    """
    try:
        base = base_dir.resolve()
        target = (base / path.lstrip("/")).resolve()
    except (OSError, ValueError):
        return None
    if target != base and base not in target.parents:
        return None
    return target


def validate_interface_name(iface: str) -> bool:
    """RouterOS interface names: letters, digits, ``_``, ``-`` and ``.``."""
    if not iface:
        return False
    return bool(re.match(r'^[a-zA-Z0-9_.-]{1,64}$', iface))


# =============================================================================
# TOKEN SECURITY
# =============================================================================

def constant_time_compare(a: str, b: str) -> bool:
    """Compare two secrets without leaking timing information."""
    return hmac.compare_digest((a or "").encode(), (b or "").encode())
