"""OTP ledger. One-time codes with expiry and attempt counters, one live challenge per card."""

import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from cardvault.models.base import as_utc, utcnow
from cardvault.models.otp_challenge import ChallengeState, OtpChallenge, OtpChannel
from cardvault.services.hashing import SecretHasher
from cardvault.services.secret_generator import SecretGenerator
from sqlalchemy import delete, or_, update
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class VerifyResult(enum.Enum):
    ACCEPTED = "accepted"
    WRONG_CODE = "wrong_code"
    EXPIRED = "expired"
    NO_CHALLENGE = "no_challenge"
    ATTEMPTS_EXHAUSTED = "attempts_exhausted"


@dataclass
class VerifyOutcome:
    result: VerifyResult
    attempts_remaining: int | None = None


class OtpLedger:
    # re-reads after losing a compare-and-swap to a concurrent verifier
    CAS_RETRIES = 3

    def __init__(
        self,
        db: Session,
        secret_generator: SecretGenerator,
        hasher: SecretHasher,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.secret_generator = secret_generator
        self.hasher = hasher
        self.clock = clock

    def current(self, card_id: str) -> OtpChallenge | None:
        """The latest challenge of a card that was not superseded, in any other state."""
        return (
            self.db.query(OtpChallenge)
            .filter(
                OtpChallenge.card_id == card_id,
                OtpChallenge.state != ChallengeState.SUPERSEDED,
            )
            .order_by(OtpChallenge.created_at.desc())
            .first()
        )

    def issue(
        self,
        card_id: str,
        channel: OtpChannel,
        destination: str,
        ttl: timedelta,
        max_attempts: int,
    ) -> tuple[OtpChallenge, str]:
        """Close every earlier challenge of the card and open a new one.

        Returns the challenge and the plaintext code. The code is only hashed
        here and has to be handed to the dispatcher by the caller.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be positive")
        now = self.clock()
        superseded = self.db.execute(
            update(OtpChallenge)
            .where(
                OtpChallenge.card_id == card_id,
                OtpChallenge.state != ChallengeState.SUPERSEDED,
            )
            .values(state=ChallengeState.SUPERSEDED)
            .execution_options(synchronize_session=False)
        ).rowcount
        # keep already loaded rows in sync with the bulk update
        self.db.expire_all()

        code = self.secret_generator.new_otp_code()
        challenge = OtpChallenge(
            card_id=card_id,
            code_hash=self.hasher.hash(code),
            channel=channel,
            destination=destination,
            expires_at=now + ttl,
            attempts_remaining=max_attempts,
            state=ChallengeState.LIVE,
            created_at=now,
        )
        self.db.add(challenge)
        self.db.flush()
        logger.info(
            "OtpLedger: challenge id=%s issued for card=%s via %s, superseded=%d",
            challenge.id,
            card_id,
            channel.value,
            superseded,
        )
        return challenge, code

    def verify(self, card_id: str, code: str) -> VerifyOutcome:
        for _ in range(self.CAS_RETRIES):
            outcome = self._verify_once(card_id, code)
            if outcome is not None:
                return outcome
            self.db.expire_all()
        # kept losing races, someone else closed or used the challenge
        return VerifyOutcome(VerifyResult.NO_CHALLENGE)

    def _verify_once(self, card_id: str, code: str) -> VerifyOutcome | None:
        challenge = self.current(card_id)
        if challenge is None or challenge.state is ChallengeState.CONSUMED:
            return VerifyOutcome(VerifyResult.NO_CHALLENGE)
        if challenge.state is ChallengeState.EXHAUSTED:
            return VerifyOutcome(VerifyResult.ATTEMPTS_EXHAUSTED, 0)
        now = self.clock()
        # authoritative expiry check, the sweep may not have run yet
        if now >= as_utc(challenge.expires_at):
            return VerifyOutcome(VerifyResult.EXPIRED)

        seen = challenge.attempts_remaining
        if self.hasher.verify(challenge.code_hash, code):
            values = {"state": ChallengeState.CONSUMED}
            result, remaining = VerifyResult.ACCEPTED, seen
        elif self._matches_superseded(card_id, code, now):
            # code of a replaced challenge, the live one is not charged for it
            return VerifyOutcome(VerifyResult.NO_CHALLENGE)
        else:
            remaining = seen - 1
            values = {"attempts_remaining": remaining}
            if remaining <= 0:
                values["state"] = ChallengeState.EXHAUSTED
            result = VerifyResult.WRONG_CODE

        swapped = self.db.execute(
            update(OtpChallenge)
            .where(
                OtpChallenge.id == challenge.id,
                OtpChallenge.state == ChallengeState.LIVE,
                OtpChallenge.attempts_remaining == seen,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        ).rowcount
        if swapped != 1:
            logger.info("OtpLedger: lost race on challenge id=%s", challenge.id)
            return None
        self.db.refresh(challenge)
        logger.info(
            "OtpLedger: challenge id=%s verify result=%s", challenge.id, result.value
        )
        return VerifyOutcome(result, remaining)

    def _matches_superseded(self, card_id: str, code: str, now: datetime) -> bool:
        """A replaced challenge is recognised until its own expiry."""
        replaced = (
            self.db.query(OtpChallenge)
            .filter(
                OtpChallenge.card_id == card_id,
                OtpChallenge.state == ChallengeState.SUPERSEDED,
                OtpChallenge.expires_at > now,
            )
            .all()
        )
        return any(self.hasher.verify(old.code_hash, code) for old in replaced)

    def sweep(self, now: datetime | None = None) -> int:
        """Delete consumed and expired challenges.

        Exhausted and superseded ones are kept until they expire, so their
        codes keep getting the same answer.
        """
        now = now or self.clock()
        deleted = self.db.execute(
            delete(OtpChallenge)
            .where(
                or_(
                    OtpChallenge.state == ChallengeState.CONSUMED,
                    OtpChallenge.expires_at <= now,
                )
            )
            .execution_options(synchronize_session=False)
        ).rowcount
        logger.info("OtpLedger: swept %d challenge(s)", deleted)
        return deleted
