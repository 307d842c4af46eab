"""Profile contact record. Owned by the profile page, only contact fields are mirrored here."""

from cardvault.models.base import BaseModel
from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column


class Profile(BaseModel):
    __tablename__ = "profiles"

    email: Mapped[str | None] = mapped_column(String, nullable=True, default=None)
    phone: Mapped[str | None] = mapped_column(String, nullable=True, default=None)
