"""Service dependency providers."""

from cardvault.config import Config, get_config
from cardvault.services.dispatch import ChannelDispatcher, get_dispatcher
from cardvault.services.locks import card_locks
from cardvault.uow import get_uow
from fastapi import Depends
from sqlalchemy.orm import Session


class ServiceContainer:
    """Request-scoped service container."""

    def __init__(
        self,
        db: Session,
        config: Config,
        dispatcher: ChannelDispatcher | None = None,
    ):
        self.db = db
        self.config = config
        self.dispatcher = dispatcher
        self._secret_generator = None
        self._hasher = None
        self._card_store = None
        self._otp_ledger = None
        self._profile_service = None
        self._token_service = None
        self._card_service = None

    @property
    def secret_generator(self):
        if self._secret_generator is None:
            from cardvault.services.secret_generator import SecretGenerator

            self._secret_generator = SecretGenerator.from_config(self.config)
        return self._secret_generator

    @property
    def hasher(self):
        if self._hasher is None:
            from cardvault.services.hashing import SecretHasher

            self._hasher = SecretHasher.from_config(self.config)
        return self._hasher

    @property
    def card_store(self):
        if self._card_store is None:
            from cardvault.services.card_store import CardStore

            self._card_store = CardStore(
                db=self.db,
                secret_generator=self.secret_generator,
                hasher=self.hasher,
                token_attempts=self.config.token_attempts,
            )
        return self._card_store

    @property
    def otp_ledger(self):
        if self._otp_ledger is None:
            from cardvault.services.otp_ledger import OtpLedger

            self._otp_ledger = OtpLedger(
                db=self.db,
                secret_generator=self.secret_generator,
                hasher=self.hasher,
            )
        return self._otp_ledger

    @property
    def profile_service(self):
        if self._profile_service is None:
            from cardvault.services.profile import ProfileService

            self._profile_service = ProfileService(db=self.db)
        return self._profile_service

    @property
    def token_service(self):
        if self._token_service is None:
            from cardvault.services.token import TokenService

            self._token_service = TokenService(config=self.config)
        return self._token_service

    @property
    def card_service(self):
        if self._card_service is None:
            from cardvault.services.card import CardService
            from cardvault.services.dispatch import GatewayDispatcher
            from cardvault.services.pin_throttle import get_pin_throttle

            self._card_service = CardService(
                db=self.db,
                card_store=self.card_store,
                otp_ledger=self.otp_ledger,
                profile_service=self.profile_service,
                dispatcher=self.dispatcher or GatewayDispatcher(self.config),
                pin_throttle=get_pin_throttle(
                    self.config.pin_max_failures,
                    self.config.pin_lockout_seconds,
                    self.config.pin_throttle_max_entries,
                ),
                locks=card_locks,
                config=self.config,
            )
        return self._card_service


def get_container(
    db: Session = Depends(get_uow),
    config: Config = Depends(get_config),
    dispatcher: ChannelDispatcher = Depends(get_dispatcher),
) -> ServiceContainer:
    return ServiceContainer(db, config, dispatcher)


def get_card_service(container: ServiceContainer = Depends(get_container)):
    return container.card_service


def get_profile_service(container: ServiceContainer = Depends(get_container)):
    return container.profile_service


def get_token_service(container: ServiceContainer = Depends(get_container)):
    return container.token_service
