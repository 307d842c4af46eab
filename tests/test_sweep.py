"""Tests for the periodic challenge sweep"""

import os
from datetime import timedelta

import pytest
from cardvault.db import DatabaseConnection
from cardvault.models.otp_challenge import OtpChallenge, OtpChannel
from cardvault.services.card_store import CardStore
from cardvault.services.hashing import SecretHasher
from cardvault.services.otp_ledger import OtpLedger
from cardvault.services.secret_generator import SecretGenerator
from cardvault.tasks.sweep_challenges import run_sweep


@pytest.fixture
def sweep_config(config_factory):
    config = config_factory()
    yield config
    DatabaseConnection.dispose(config.database_url)
    if os.path.exists(config.database_path):
        os.remove(config.database_path)


def seed_challenges(config, ttl: timedelta) -> None:
    session = DatabaseConnection(config).get_session()
    try:
        generator = SecretGenerator.from_config(config)
        hasher = SecretHasher.from_config(config)
        card = CardStore(session, generator, hasher).create("P1").card
        ledger = OtpLedger(session, generator, hasher)
        # the first one is superseded by the second
        ledger.issue(card.id, OtpChannel.EMAIL, "a@x.com", ttl, 5)
        ledger.issue(card.id, OtpChannel.EMAIL, "a@x.com", ttl, 5)
        session.commit()
    finally:
        session.close()


def count_challenges(config) -> int:
    session = DatabaseConnection(config).get_session()
    try:
        return session.query(OtpChallenge).count()
    finally:
        session.close()


class TestSweep:
    def test_unexpired_challenges_kept(self, sweep_config):
        # superseded codes keep being recognised until they expire
        seed_challenges(sweep_config, timedelta(minutes=5))
        assert run_sweep(sweep_config) == 0
        assert count_challenges(sweep_config) == 2

    def test_expired_removed(self, sweep_config):
        seed_challenges(sweep_config, timedelta(seconds=-1))
        assert run_sweep(sweep_config) == 2
        assert count_challenges(sweep_config) == 0

    def test_empty_database(self, sweep_config):
        assert run_sweep(sweep_config) == 0
