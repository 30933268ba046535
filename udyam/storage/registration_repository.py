"""Registration repository: duplicate checks, transactional inserts, paginated reads."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession

from udyam.errors import ConflictError, PersistenceError, StorageUnavailableError
from udyam.storage.database import Database
from udyam.storage.models import Registration
from udyam.telemetry.log_setup import mask_identifier

logger = logging.getLogger(__name__)


@dataclass
class RegistrationPage:
    """One page of registrations plus the metadata a client needs to paginate."""

    rows: list[Registration]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1


def _identity_clause(aadhaar: str | None, pan: str):
    clauses = [Registration.pan == pan]
    if aadhaar:
        clauses.append(Registration.aadhaar == aadhaar)
    return or_(*clauses)


class RegistrationRepository:
    """Persistence operations over the ``registrations`` table.

    The unique constraints on ``aadhaar`` and ``pan`` are the authoritative
    duplicate guard; :meth:`exists_by_identity` is only a fast path.
    """

    def __init__(self, database: Database) -> None:
        self._database = database

    async def _exists(self, session: AsyncSession, aadhaar: str | None, pan: str) -> bool:
        stmt = select(Registration.id).where(_identity_clause(aadhaar, pan)).limit(1)
        return (await session.execute(stmt)).first() is not None

    async def exists_by_identity(self, aadhaar: str | None, pan: str) -> bool:
        """True when any registration shares the Aadhaar number or the PAN."""
        try:
            async with self._database.session() as session:
                return await self._exists(session, aadhaar, pan)
        except PoolTimeoutError as exc:
            raise StorageUnavailableError() from exc
        except (SQLAlchemyError, OSError) as exc:
            raise PersistenceError(f"Duplicate check failed: {exc}") from exc

    async def insert(self, aadhaar: str | None, pan: str, payload: dict[str, Any]) -> Registration:
        """Insert one registration in a single transaction.

        Raises ConflictError when the identity is already taken, whether the
        re-check inside the transaction or the unique constraint catches it.
        """
        now = datetime.now(timezone.utc)
        registration = Registration(
            aadhaar=aadhaar,
            pan=pan,
            payload=payload,
            created_at=now,
            updated_at=now,
        )
        try:
            async with self._database.session() as session:
                async with session.begin():
                    if await self._exists(session, aadhaar, pan):
                        raise ConflictError()
                    session.add(registration)
                    await session.flush()
        except ConflictError:
            raise
        except IntegrityError as exc:
            logger.info(
                "Unique constraint rejected registration for pan=%s", mask_identifier(pan)
            )
            raise ConflictError() from exc
        except PoolTimeoutError as exc:
            raise StorageUnavailableError() from exc
        except (SQLAlchemyError, OSError) as exc:
            raise PersistenceError(f"Insert failed: {exc}") from exc

        logger.info("Registration %s stored", registration.id)
        return registration

    async def list_page(self, page: int, page_size: int) -> RegistrationPage:
        """Newest first; the total is counted separately from the page query."""
        offset = (page - 1) * page_size
        try:
            async with self._database.session() as session:
                total = (
                    await session.execute(select(func.count()).select_from(Registration))
                ).scalar_one()
                result = await session.execute(
                    select(Registration)
                    .order_by(Registration.created_at.desc(), Registration.id.desc())
                    .offset(offset)
                    .limit(page_size)
                )
                rows = list(result.scalars().all())
        except PoolTimeoutError as exc:
            raise StorageUnavailableError() from exc
        except (SQLAlchemyError, OSError) as exc:
            raise PersistenceError(f"Listing failed: {exc}") from exc

        return RegistrationPage(rows=rows, total=total, page=page, page_size=page_size)
