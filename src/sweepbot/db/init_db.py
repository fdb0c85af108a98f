from __future__ import annotations

from sqlalchemy.engine import Engine

from sweepbot.db.schema import Base


def init_db(engine: Engine) -> None:
    """
    Reset the ledger schema (drop + create).

    DuckDB + SQLAlchemy can behave oddly with transactional DDL, so this uses
    a plain connection and commits through the DBAPI connection when it can.
    """
    conn = engine.connect()
    try:
        Base.metadata.drop_all(bind=conn)
        Base.metadata.create_all(bind=conn)
        _commit_raw(conn)
    finally:
        conn.close()


def ensure_db(engine: Engine) -> None:
    """Create missing tables, keeping existing ledger rows."""
    conn = engine.connect()
    try:
        Base.metadata.create_all(bind=conn)
        _commit_raw(conn)
    finally:
        conn.close()


def _commit_raw(conn) -> None:
    raw = conn.connection
    if hasattr(raw, "commit"):
        raw.commit()
