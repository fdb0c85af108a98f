"""Database session helpers."""

from __future__ import annotations

from sqlalchemy.orm import Session, sessionmaker

from sweepbot.db.engine import build_engine
from sweepbot.db.init_db import ensure_db


def get_session(db_url: str | None = None) -> Session:
    """Build a session bound to the ledger engine, creating tables if needed."""
    engine = build_engine(db_url)
    ensure_db(engine)
    SessionLocal = sessionmaker(bind=engine)
    return SessionLocal()
