"""Card service. Card provisioning and OTP activation state machine.

    pending --(OTP verified)--> active
    pending/active --(revoke)--> revoked

A live OTP challenge marks the implicit `otp_requested` state of a pending card.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta

from cardvault.config import Config
from cardvault.errors.card import (
    CardNotFound,
    InvalidCredentials,
    InvalidStateError,
    NotCardOwner,
)
from cardvault.errors.otp import (
    AttemptsExhausted,
    DeliveryError,
    NoChallenge,
    NoDestination,
    WrongCode,
)
from cardvault.models.card import Card, CardStatus
from cardvault.models.otp_challenge import OtpChallenge, OtpChannel
from cardvault.services.card_store import CardStore, IssuedCard
from cardvault.services.dispatch import ChannelDispatcher
from cardvault.services.locks import CardLocks
from cardvault.services.otp_ledger import OtpLedger, VerifyResult
from cardvault.services.pin_throttle import PinThrottle
from cardvault.services.profile import ProfileService
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

_VERIFY_ERRORS = {
    VerifyResult.NO_CHALLENGE: NoChallenge,
    VerifyResult.EXPIRED: NoChallenge,
    VerifyResult.WRONG_CODE: WrongCode,
    VerifyResult.ATTEMPTS_EXHAUSTED: AttemptsExhausted,
}


@dataclass
class OtpRequestReport:
    challenge: OtpChallenge
    channel: OtpChannel
    delivered: bool


class CardService:
    def __init__(
        self,
        db: Session,
        card_store: CardStore,
        otp_ledger: OtpLedger,
        profile_service: ProfileService,
        dispatcher: ChannelDispatcher,
        pin_throttle: PinThrottle,
        locks: CardLocks,
        config: Config,
    ):
        self.db = db
        self.card_store = card_store
        self.otp_ledger = otp_ledger
        self.profile_service = profile_service
        self.dispatcher = dispatcher
        self.pin_throttle = pin_throttle
        self.locks = locks
        self.config = config

    def create_card(
        self, actor_profile_id: str, owner_profile_id: str | None = None
    ) -> IssuedCard:
        """Mint a pending card. The returned PIN is never readable again."""
        owner_profile_id = owner_profile_id or actor_profile_id
        if owner_profile_id != actor_profile_id:
            raise NotCardOwner
        return self.card_store.create(owner_profile_id)

    def list_cards(self, owner_profile_id: str) -> list[Card]:
        return self.card_store.list_for_owner(owner_profile_id)

    def revoke_card(self, actor_profile_id: str, card_id: str) -> Card:
        card = self.card_store.get(card_id)
        if card.owner_profile_id != actor_profile_id:
            raise NotCardOwner
        with self.locks.hold(card.id, self.config.lock_timeout_seconds):
            card = self.card_store.revoke(card.id)
            self.db.commit()
        return card

    def _authenticate(self, card_token: str, pin: str) -> Card:
        """Resolve a card by token and PIN.

        A missing card costs one hash verification too, so timing does not
        tell unknown tokens apart from wrong PINs.
        """
        self.pin_throttle.check(card_token)
        card = self.card_store.find_by_token(card_token)
        if card is None:
            self.card_store.hasher.burn(pin)
            self.pin_throttle.record_failure(card_token)
            raise CardNotFound
        if not self.card_store.check_pin(card, pin):
            self.pin_throttle.record_failure(card_token)
            logger.info("CardService: wrong PIN for card=%s", card.id)
            raise InvalidCredentials
        self.pin_throttle.reset(card_token)
        return card

    def _resolve_destination(
        self,
        card: Card,
        channel: OtpChannel,
        email: str | None,
        phone: str | None,
    ) -> str:
        explicit = email if channel is OtpChannel.EMAIL else phone
        if explicit:
            return explicit
        stored = self.profile_service.get_contact(card.owner_profile_id, channel)
        if stored:
            return stored
        raise NoDestination(channel.value)

    def _message(self, code: str) -> str:
        minutes = max(1, self.config.otp_ttl_seconds // 60)
        return (
            f"Your card activation code is {code}. "
            f"It expires in {minutes} minute(s). Do not share it with anyone."
        )

    def request_otp(
        self,
        card_token: str,
        pin: str,
        channel: OtpChannel,
        email: str | None = None,
        phone: str | None = None,
    ) -> OtpRequestReport:
        card = self._authenticate(card_token, pin)
        if card.status is CardStatus.REVOKED:
            raise InvalidStateError("card is revoked")
        destination = self._resolve_destination(card, channel, email, phone)

        with self.locks.hold(card.id, self.config.lock_timeout_seconds):
            challenge, code = self.otp_ledger.issue(
                card_id=card.id,
                channel=channel,
                destination=destination,
                ttl=timedelta(seconds=self.config.otp_ttl_seconds),
                max_attempts=self.config.otp_max_attempts,
            )
            # the challenge is durable before delivery and outlives a failed one
            self.db.commit()

        delivered = self.dispatcher.send(channel, destination, self._message(code))
        if not delivered:
            logger.warning(
                "CardService: code for card=%s not delivered via %s",
                card.id,
                channel.value,
            )
            raise DeliveryError
        return OtpRequestReport(challenge=challenge, channel=channel, delivered=True)

    def verify_otp(self, card_token: str, code: str) -> Card:
        card = self.card_store.get_by_token(card_token)
        with self.locks.hold(card.id, self.config.lock_timeout_seconds):
            self.db.refresh(card)
            if card.status is CardStatus.ACTIVE:
                # retried request after a lost response
                return card
            if card.status is CardStatus.REVOKED:
                raise InvalidStateError("card is revoked")

            outcome = self.otp_ledger.verify(card.id, code)
            if outcome.result is VerifyResult.ACCEPTED:
                card = self.card_store.activate(card.id)
            # attempt counters persist even when an error is raised below
            self.db.commit()

        if outcome.result is not VerifyResult.ACCEPTED:
            raise _VERIFY_ERRORS[outcome.result]
        return card
