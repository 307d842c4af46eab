"""One-time code challenge issued to prove possession of a delivery channel."""

import enum
from datetime import datetime

from cardvault.models.base import BaseModel
from sqlalchemy import DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column


class OtpChannel(enum.Enum):
    EMAIL = "email"
    SMS = "sms"


class ChallengeState(enum.Enum):
    LIVE = "live"
    # verified successfully
    CONSUMED = "consumed"
    # closed after too many wrong codes
    EXHAUSTED = "exhausted"
    # replaced by a newer challenge for the same card
    SUPERSEDED = "superseded"


class OtpChallenge(BaseModel):
    __tablename__ = "otp_challenges"

    card_id: Mapped[str] = mapped_column(
        ForeignKey("cards.id"), index=True, nullable=False
    )
    code_hash: Mapped[str] = mapped_column(String, nullable=False)
    channel: Mapped[OtpChannel] = mapped_column(
        Enum(
            OtpChannel,
            values_callable=lambda enum_cls: [e.value for e in enum_cls],
            name="otp_channel",
        ),
        nullable=False,
    )
    destination: Mapped[str] = mapped_column(String, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    attempts_remaining: Mapped[int] = mapped_column(Integer, nullable=False)
    state: Mapped[ChallengeState] = mapped_column(
        Enum(
            ChallengeState,
            values_callable=lambda enum_cls: [e.value for e in enum_cls],
            name="challenge_state",
        ),
        nullable=False,
        default=ChallengeState.LIVE,
    )

    @property
    def consumed(self) -> bool:
        return self.state is not ChallengeState.LIVE
