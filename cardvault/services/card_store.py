"""Card store. Single source of truth for card existence and lifecycle status.

Plaintext card tokens and PINs leave the store exactly once, as the result of
`create`. Afterwards only hash comparison is possible.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from cardvault.errors.card import CardNotFound, ConflictError, InvalidStateError
from cardvault.models.base import utcnow
from cardvault.models.card import Card, CardStatus
from cardvault.services.base import BaseService
from cardvault.services.hashing import SecretHasher
from cardvault.services.secret_generator import SecretGenerator
from sqlalchemy import update
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


@dataclass
class IssuedCard:
    card: Card
    card_token: str
    pin: str


class CardStore(BaseService[Card]):
    model = Card
    not_found_error = CardNotFound

    def __init__(
        self,
        db: Session,
        secret_generator: SecretGenerator,
        hasher: SecretHasher,
        token_attempts: int = 3,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.secret_generator = secret_generator
        self.hasher = hasher
        self.token_attempts = token_attempts
        self.clock = clock

    def _allocate_token(self) -> str:
        for attempt in range(1, self.token_attempts + 1):
            token = self.secret_generator.new_token()
            if self.find_by_token(token) is None:
                return token
            logger.warning(
                "CardStore: card token collision, attempt %d of %d",
                attempt,
                self.token_attempts,
            )
        raise ConflictError(f"{self.token_attempts} attempts collided")

    def create(self, owner_profile_id: str) -> IssuedCard:
        token = self._allocate_token()
        pin = self.secret_generator.new_pin()
        card = Card(
            owner_profile_id=owner_profile_id,
            card_token=token,
            pin_hash=self.hasher.hash(pin),
            status=CardStatus.PENDING,
            created_at=self.clock(),
        )
        self.db.add(card)
        self.db.flush()
        self.db.refresh(card)
        logger.info(
            "CardStore: card id=%s created for profile=%s", card.id, owner_profile_id
        )
        return IssuedCard(card=card, card_token=token, pin=pin)

    def find_by_token(self, token: str) -> Card | None:
        return self.db.query(Card).filter(Card.card_token == token).first()

    def get_by_token(self, token: str) -> Card:
        card = self.find_by_token(token)
        if card is None:
            raise CardNotFound
        return card

    def list_for_owner(self, owner_profile_id: str) -> list[Card]:
        return (
            self.db.query(Card)
            .filter(Card.owner_profile_id == owner_profile_id)
            .order_by(Card.created_at.desc())
            .all()
        )

    def verify_pin(self, card_id: str, pin: str) -> bool:
        return self.check_pin(self.get(card_id), pin)

    def check_pin(self, card: Card, pin: str) -> bool:
        """PIN check against an already loaded card, costs one hash verification."""
        return self.hasher.verify(card.pin_hash, pin)

    def activate(self, card_id: str) -> Card:
        """pending -> active. Activating an active card returns it unchanged."""
        card = self.get(card_id)
        if card.status is CardStatus.PENDING:
            result = self.db.execute(
                update(Card)
                .where(Card.id == card_id, Card.status == CardStatus.PENDING)
                .values(status=CardStatus.ACTIVE, activated_at=self.clock())
                .execution_options(synchronize_session=False)
            )
            self.db.refresh(card)
            if result.rowcount == 1:
                logger.info("CardStore: card id=%s activated", card_id)
        if card.status is CardStatus.REVOKED:
            raise InvalidStateError(f"card {card_id} is revoked")
        return card

    def revoke(self, card_id: str) -> Card:
        """pending/active -> revoked. Terminal, the token stays reserved."""
        card = self.get(card_id)
        if card.status is not CardStatus.REVOKED:
            self.db.execute(
                update(Card)
                .where(Card.id == card_id, Card.status != CardStatus.REVOKED)
                .values(status=CardStatus.REVOKED, revoked_at=self.clock())
                .execution_options(synchronize_session=False)
            )
            self.db.refresh(card)
            logger.info("CardStore: card id=%s revoked", card_id)
        return card
