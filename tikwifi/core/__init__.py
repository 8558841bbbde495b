"""tikwifi core - error taxonomy and input sanitization."""

from .errors import (
    ApiError,
    NotFoundError,
    ParseError,
    RequestValidationError,
    StorageUnavailableError,
    TikwifiError,
)
from .security import constant_time_compare, sanitize_path, sanitize_ssid

__all__ = [
    "ApiError",
    "NotFoundError",
    "ParseError",
    "RequestValidationError",
    "StorageUnavailableError",
    "TikwifiError",
    "constant_time_compare",
    "sanitize_path",
    "sanitize_ssid",
]
