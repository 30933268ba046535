"""REST API routes for the Udyam registration service.

Provides endpoints for:
- Serving the scraped form field catalog
- Accepting registration submissions
- Paginated listing of stored registrations
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Body, Depends, Query, Request
from pydantic import BaseModel, Field

from udyam.api.registration_service import (
    DEFAULT_PAGE,
    DEFAULT_PAGE_SIZE,
    RegistrationService,
    parse_positive_int,
)
from udyam.config.settings import AppSettings
from udyam.scraper.extractor import FieldDescriptor, load_catalog
from udyam.storage.registration_repository import RegistrationRepository

router = APIRouter()


def _now() -> datetime:
    return datetime.now(timezone.utc)


# --- Dependencies ---


def get_settings(request: Request) -> AppSettings:
    return request.app.state.settings


def get_repository(request: Request) -> RegistrationRepository:
    return RegistrationRepository(request.app.state.database)


def get_registration_service(
    repository: RegistrationRepository = Depends(get_repository),
    settings: AppSettings = Depends(get_settings),
) -> RegistrationService:
    return RegistrationService(repository, enforce_aadhaar=settings.api.is_production)


# --- Response Models ---


class FormFieldsResponse(BaseModel):
    success: bool = True
    count: int
    data: list[FieldDescriptor]
    timestamp: datetime = Field(default_factory=_now)


class SubmissionReceipt(BaseModel):
    id: int
    created_at: datetime


class SubmitResponse(BaseModel):
    success: bool = True
    message: str = "Form submitted successfully"
    data: SubmissionReceipt


class RegistrationSummary(BaseModel):
    id: int
    aadhaar: str | None
    pan: str
    created_at: datetime
    updated_at: datetime


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class RegistrationListResponse(BaseModel):
    success: bool = True
    data: list[RegistrationSummary]
    pagination: Pagination


# --- Endpoints ---


@router.get("/form-fields", response_model=FormFieldsResponse)
def get_form_fields(settings: AppSettings = Depends(get_settings)) -> FormFieldsResponse:
    """Return the field catalog produced by the last scrape, in document order."""
    fields = load_catalog(settings.scraper.catalog_path)
    return FormFieldsResponse(count=len(fields), data=fields)


@router.post("/submit", response_model=SubmitResponse, status_code=201)
async def submit_registration(
    submission: dict[str, Any] = Body(...),
    service: RegistrationService = Depends(get_registration_service),
) -> SubmitResponse:
    """Validate and store a registration.

    400 on invalid Aadhaar/PAN, 409 when either identifier is already
    registered.
    """
    registration = await service.submit(submission)
    return SubmitResponse(
        data=SubmissionReceipt(id=registration.id, created_at=registration.created_at)
    )


@router.get("/registrations", response_model=RegistrationListResponse)
async def list_registrations(
    page: str | None = Query(default=None),
    limit: str | None = Query(default=None),
    service: RegistrationService = Depends(get_registration_service),
) -> RegistrationListResponse:
    """List registrations newest first. Bad or missing paging values use the defaults."""
    result = await service.list_registrations(
        parse_positive_int(page, DEFAULT_PAGE),
        parse_positive_int(limit, DEFAULT_PAGE_SIZE),
    )
    return RegistrationListResponse(
        data=[RegistrationSummary(**row.to_summary()) for row in result.rows],
        pagination=Pagination(
            page=result.page,
            limit=result.page_size,
            total=result.total,
            total_pages=result.total_pages,
            has_next=result.has_next,
            has_prev=result.has_prev,
        ),
    )
