"""Database connection and initialization"""

import logging
import os
from typing import Any, Generator

from cardvault.config import Config, get_config
from cardvault.models.base import BaseModel

# register tables on the metadata
from cardvault.models.card import Card  # noqa: F401
from cardvault.models.otp_challenge import OtpChallenge  # noqa: F401
from cardvault.models.profile import Profile  # noqa: F401
from fastapi import Depends
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

logger = logging.getLogger(__name__)

# one engine (and connection pool) per database url and process
_engines: dict[str, Engine] = {}


class DatabaseConnection:
    engine: Engine
    session_local: sessionmaker[Session]

    def __init__(self, config: Config = Depends(get_config)) -> None:
        url = config.database_url
        if url not in _engines:
            if url.startswith("sqlite:///"):
                # Ensure the database folder exists.
                os.makedirs(config.database_path.parent, exist_ok=True)
                engine = create_engine(url, connect_args={"check_same_thread": False})
            else:
                engine = create_engine(url, pool_pre_ping=True)
            _engines[url] = engine
            self.engine = engine
            self.create_tables()
        self.engine = _engines[url]
        self.session_local = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=self.engine,
        )

    def create_tables(self) -> None:
        """Create all database tables defined in models."""
        logger.info("Creating database tables...")
        BaseModel.metadata.create_all(bind=self.engine)
        logger.info("Database tables created.")

    def drop_tables(self) -> None:
        """Drop all database tables."""
        logger.info("Dropping database tables...")
        BaseModel.metadata.drop_all(bind=self.engine)
        logger.info("Database tables dropped.")

    def get_session(self) -> Session:
        """Return a new SQLAlchemy session."""
        return self.session_local()

    @staticmethod
    def dispose(url: str) -> None:
        """Close pooled connections of an engine and forget it."""
        engine = _engines.pop(url, None)
        if engine is not None:
            engine.dispose()


def get_db(db_conn: DatabaseConnection = Depends()) -> Generator[Session, Any, None]:
    """
    Dependency for providing a SQLAlchemy session to services and tests.

    Yields:
        SQLAlchemy Session.
    """
    session = db_conn.get_session()
    try:
        yield session
    finally:
        session.close()
