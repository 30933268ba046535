"""Structured error telemetry helpers."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Canonical error codes for operational telemetry."""

    CATALOG_UNREADABLE = "CATALOG_UNREADABLE"
    PERSISTENCE_FAILED = "PERSISTENCE_FAILED"
    STORAGE_UNAVAILABLE = "STORAGE_UNAVAILABLE"
    UNHANDLED_EXCEPTION = "UNHANDLED_EXCEPTION"
    SCRAPE_NAVIGATION_FAILED = "SCRAPE_NAVIGATION_FAILED"


def emit_structured_error(
    logger: logging.Logger,
    *,
    code: ErrorCode,
    message: str,
    suppressed: bool,
    path: str | None = None,
    details: dict[str, Any] | None = None,
) -> None:
    """Emit a structured telemetry event via logging."""
    logger.error(
        "udyam_error",
        extra={
            "error_code": code,
            "error_message": message,
            "suppressed": suppressed,
            "path": path,
            "details": details or {},
        },
    )
