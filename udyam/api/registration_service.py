"""Service layer binding submissions to validation and the registration repository."""

from __future__ import annotations

import logging
from typing import Any

from udyam.errors import ConflictError, ValidationError
from udyam.storage.models import Registration
from udyam.storage.registration_repository import RegistrationPage, RegistrationRepository
from udyam.telemetry.log_setup import mask_identifier
from udyam.validation.validator import validate

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
# Largest row offset the storage backends accept (signed 64-bit).
MAX_OFFSET = 2**63 - 1


def parse_positive_int(raw: str | None, default: int) -> int:
    """Parse a query value, falling back to ``default`` for missing or bad input."""
    if raw is None:
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        return default
    return value if value > 0 else default


class RegistrationService:
    def __init__(self, repository: RegistrationRepository, enforce_aadhaar: bool) -> None:
        self._repository = repository
        self._enforce_aadhaar = enforce_aadhaar

    async def submit(self, submission: dict[str, Any]) -> Registration:
        reason = validate(submission, enforce_aadhaar=self._enforce_aadhaar)
        if reason is not None:
            logger.info("Submission rejected: %s", reason.value)
            raise ValidationError(reason.value)

        aadhaar = submission.get("aadhaarNumber") or None
        if aadhaar is not None and not isinstance(aadhaar, str):
            aadhaar = str(aadhaar)
        pan = submission["panNumber"]

        if await self._repository.exists_by_identity(aadhaar, pan):
            logger.info("Duplicate registration attempt for pan=%s", mask_identifier(pan))
            raise ConflictError()

        return await self._repository.insert(aadhaar, pan, submission)

    async def list_registrations(self, page: int, page_size: int) -> RegistrationPage:
        page_size = min(page_size, MAX_PAGE_SIZE)
        page = min(page, MAX_OFFSET // page_size)
        return await self._repository.list_page(page, page_size)
