from __future__ import annotations

from sqlalchemy import text
from sqlalchemy.orm import sessionmaker

from sweepbot.db.engine import build_engine
from sweepbot.db.init_db import ensure_db, init_db
from sweepbot.repos.sweep_runs_repo import SweepRunsRepo


def _table_names(engine) -> set[str]:
    with engine.connect() as conn:
        rows = conn.execute(
            text(
                """
                SELECT table_name
                FROM information_schema.tables
                WHERE table_schema = 'main'
                """
            )
        ).fetchall()
    return {r[0] for r in rows}


def test_init_db_creates_tables(tmp_path) -> None:
    engine = build_engine(f"duckdb:///{tmp_path / 'test_sweepbot.duckdb'}")
    init_db(engine)
    assert "sweep_runs" in _table_names(engine)


def test_ensure_db_keeps_rows(tmp_path) -> None:
    engine = build_engine(f"duckdb:///{tmp_path / 'test_sweepbot.duckdb'}")
    init_db(engine)
    SessionLocal = sessionmaker(bind=engine)
    with SessionLocal() as session:
        SweepRunsRepo(session).create_run(task_id=3, learner_id="classif.svm", tag="t", trial=0, params={})

    ensure_db(engine)

    with SessionLocal() as session:
        assert len(SweepRunsRepo(session).list_runs()) == 1
