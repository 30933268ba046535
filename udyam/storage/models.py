from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func

from udyam.storage.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Registration(Base):
    __tablename__ = "registrations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    aadhaar = Column(String, unique=True, nullable=True, index=True)  # unchecked outside production
    pan = Column(String(10), unique=True, nullable=False, index=True)
    payload = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=False)  # full submission
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=_utcnow, server_default=func.now()
    )

    def to_summary(self) -> dict:
        """Listing view of the row; the payload is left out."""
        return {
            "id": self.id,
            "aadhaar": self.aadhaar,
            "pan": self.pan,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
