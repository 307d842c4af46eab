"""Base for all ORM models"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String
from sqlalchemy.inspection import inspect
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes, all stored values are UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class BaseModel(DeclarativeBase):
    # do not create separate table for this class
    __abstract__ = True

    # opaque identifiers, never derived from card secrets
    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    def __repr__(self):
        model_name = self.__class__.__name__
        attr_strs = []
        for attr, column in inspect(self.__class__).columns.items():
            value = getattr(self, attr)
            attr_strs.append(f"{attr}={value!r}")
        attr_str = ", ".join(attr_strs)
        return f"<{model_name}({attr_str})>"
