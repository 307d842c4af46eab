"""Card model. A provisioned credential tied to one profile."""

import enum
from datetime import datetime

from cardvault.models.base import BaseModel
from sqlalchemy import DateTime, Enum, String
from sqlalchemy.orm import Mapped, mapped_column


class CardStatus(enum.Enum):
    PENDING = "pending"
    ACTIVE = "active"
    REVOKED = "revoked"


class Card(BaseModel):
    __tablename__ = "cards"

    owner_profile_id: Mapped[str] = mapped_column(String(36), index=True)
    # presented by the physical/virtual card, never reused even after revocation
    card_token: Mapped[str] = mapped_column(
        String, index=True, nullable=False, unique=True
    )
    pin_hash: Mapped[str] = mapped_column(String, nullable=False)

    status: Mapped[CardStatus] = mapped_column(
        Enum(
            CardStatus,
            values_callable=lambda enum_cls: [e.value for e in enum_cls],
            name="card_status",
        ),
        nullable=False,
        default=CardStatus.PENDING,
    )
    activated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )
    revoked_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )
