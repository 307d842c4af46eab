"""Periodic removal of closed and expired OTP challenges."""

from __future__ import annotations

import asyncio
import logging

from cardvault.config import Config, get_config
from cardvault.db import DatabaseConnection
from cardvault.dependencies.services import ServiceContainer
from cardvault.uow import UnitOfWork

logger = logging.getLogger(__name__)


def run_sweep(config: Config | None = None) -> int:
    config = config or get_config()
    db_conn = DatabaseConnection(config)
    session = db_conn.get_session()
    with UnitOfWork(session) as uow:
        container = ServiceContainer(uow, config)
        swept_count = container.otp_ledger.sweep()
    return swept_count


async def schedule_sweep(config: Config) -> None:
    while True:
        await asyncio.sleep(config.sweep_interval_seconds)
        try:
            swept_count = await asyncio.to_thread(run_sweep, config)
            logger.info("Challenge sweep completed. swept=%s", swept_count)
        except Exception:
            logger.exception("Challenge sweep failed")
