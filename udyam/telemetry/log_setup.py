"""Process-wide logging setup."""

from __future__ import annotations

import logging

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class _ErrorContextFilter(logging.Filter):
    """Append structured error fields to the message of ``udyam_error`` records."""

    def filter(self, record: logging.LogRecord) -> bool:
        code = getattr(record, "error_code", None)
        if code is not None and not getattr(record, "_udyam_rendered", False):
            record.msg = (
                f"{record.msg} code={getattr(code, 'value', code)} "
                f"message={getattr(record, 'error_message', '')!r} "
                f"suppressed={getattr(record, 'suppressed', False)} "
                f"path={getattr(record, 'path', None)}"
            )
            record._udyam_rendered = True
        return True


def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the root logger."""
    root = logging.getLogger()
    root.setLevel(level.upper())
    for handler in root.handlers:
        if getattr(handler, "_udyam_handler", False):
            return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))
    handler.addFilter(_ErrorContextFilter())
    handler._udyam_handler = True  # type: ignore[attr-defined]
    root.addHandler(handler)


def mask_identifier(value: str | None, visible: int = 4) -> str:
    """Hide all but the last ``visible`` characters of a personal identifier."""
    if not value:
        return ""
    if len(value) <= visible:
        return "*" * len(value)
    return "*" * (len(value) - visible) + value[-visible:]
