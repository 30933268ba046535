"""Submission validation for Aadhaar and PAN identifiers."""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Mapping

_AADHAAR_PATTERN = re.compile(r"[0-9]{12}")
_PAN_PATTERN = re.compile(r"[A-Z]{5}[0-9]{4}[A-Z]{1}")


class ValidationReason(str, Enum):
    """Why a submission was rejected; the value is the client-facing message."""

    INVALID_AADHAAR = "Invalid Aadhaar number"
    INVALID_PAN = "Invalid PAN number"


def is_valid_aadhaar(value: Any) -> bool:
    return isinstance(value, str) and _AADHAAR_PATTERN.fullmatch(value) is not None


def is_valid_pan(value: Any) -> bool:
    return isinstance(value, str) and _PAN_PATTERN.fullmatch(value) is not None


def validate(
    submission: Mapping[str, Any], *, enforce_aadhaar: bool
) -> ValidationReason | None:
    """Return the first failing rule for ``submission``, or None when it is valid.

    Aadhaar is only checked when ``enforce_aadhaar`` is set (production
    deployments). PAN is always checked.
    """
    if enforce_aadhaar and not is_valid_aadhaar(submission.get("aadhaarNumber")):
        return ValidationReason.INVALID_AADHAAR

    if not is_valid_pan(submission.get("panNumber")):
        return ValidationReason.INVALID_PAN

    return None
