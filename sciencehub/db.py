from __future__ import annotations

from collections.abc import Iterator
from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from sciencehub.core.config import settings

# Unbound on purpose: callers bind an engine per session so tests can
# hand in their own.
SessionLocal = sessionmaker(autoflush=False, expire_on_commit=False, future=True)


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_engine(settings.database_url, pool_pre_ping=True, future=True)


def open_session(engine: Engine | None = None) -> Session:
    return SessionLocal(bind=engine or get_engine())


def get_db() -> Iterator[Session]:
    db = open_session()
    try:
        yield db
    finally:
        db.close()


def create_schema(engine: Engine | None = None) -> None:
    from sciencehub.models import Base

    Base.metadata.create_all(bind=engine or get_engine())
