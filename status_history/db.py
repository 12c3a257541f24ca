"""
SQLAlchemy engine, session scope and table definitions.

Both tables live in the same SQLite file: one row per incident and one
row per cached upstream resource.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from sqlalchemy import BigInteger, Column, String, Text, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

logger = logging.getLogger(__name__)

Base = declarative_base()


class IncidentRecord(Base):
    """One stored incident, keyed by the upstream id."""
    __tablename__ = "incidents"

    id = Column(String, primary_key=True)
    name = Column(Text, nullable=False)
    status = Column(String, nullable=False)
    created_at = Column(String, nullable=False)
    updated_at = Column(String, nullable=False)
    resolved_at = Column(String, nullable=True)  # null while open
    impact = Column(String, nullable=False)
    shortlink = Column(String, nullable=True)
    started_at = Column(String, nullable=False, index=True)


class CacheRecord(Base):
    """Last-known-good JSON payload of one upstream resource."""
    __tablename__ = "cache"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
    fetched_at = Column(BigInteger, nullable=False)  # epoch milliseconds


class Database:
    """Owns the engine and session factory for one SQLite file."""

    def __init__(self, path: str | Path) -> None:
        if str(path) == ":memory:":
            url = "sqlite://"
        else:
            db_file = Path(path).expanduser().resolve()
            db_file.parent.mkdir(parents=True, exist_ok=True)
            url = f"sqlite:///{db_file}"

        self.url = url
        self.engine: Engine = create_engine(url, echo=False, future=True)
        Base.metadata.create_all(self.engine)
        self._session_factory = sessionmaker(
            bind=self.engine, autocommit=False, autoflush=False, expire_on_commit=False
        )
        logger.info("Database initialized: %s", url)

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """Context manager for a single DB session. Commits on success, rolls back on error."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        self.engine.dispose()
