# src/sweepbot/db/engine.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
import os

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from sweepbot.config.settings import settings


@dataclass(frozen=True)
class DBPingResult:
    ok: bool
    detail: str


def build_engine(db_url: Optional[str] = None) -> Engine:
    """
    Build a SQLAlchemy Engine for the sweep ledger.

    db_url override exists for tests (temp DuckDB files, in-memory DBs);
    the CLI falls back to SWEEPBOT_DB_URL / settings.db_url.
    """
    url = db_url or os.getenv("DATABASE_URL") or settings.db_url
    if url.startswith("duckdb:///") and ":memory:" not in url:
        # DuckDB will not create missing parent directories
        path = url[len("duckdb:///"):]
        parent = os.path.dirname(path)
        if parent:
            os.makedirs(parent, exist_ok=True)
    if url.startswith("postgresql"):
        return create_engine(url, future=True, pool_pre_ping=True)
    return create_engine(url, future=True)


def ping_db(engine: Engine) -> DBPingResult:
    """
    Lightweight DB connectivity check.
    Never raises; failures come back as ok=False.
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("select 1")).scalar_one()
        return DBPingResult(ok=True, detail="ok")
    except Exception as e:
        return DBPingResult(ok=False, detail=f"{type(e).__name__}: {e}")
