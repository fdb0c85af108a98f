"""Sweep ledger repository."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional
from uuid import uuid4

from sqlalchemy.orm import Session

from sweepbot.db.schema import SweepRun


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SweepRunsRepo:
    """
    Repository for the `sweep_runs` table.

    Every trial gets a row before it runs, so failed or interrupted trials
    stay visible next to the uploaded ones.
    """

    def __init__(self, session: Session):
        self.session = session

    def create_run(
        self,
        task_id: int,
        learner_id: str,
        tag: str,
        trial: int,
        params: Mapping[str, Any],
    ) -> str:
        row = SweepRun(
            sweep_run_id=str(uuid4()),
            created_at=utcnow(),
            task_id=int(task_id),
            learner_id=learner_id,
            tag=tag,
            trial=int(trial),
            status="started",
            params_json=json.dumps(dict(params), sort_keys=True, default=str),
        )
        self.session.add(row)
        self.session.commit()
        return row.sweep_run_id

    def mark_completed(self, sweep_run_id: str, openml_run_id: Optional[int]) -> None:
        row = self._require(sweep_run_id)
        row.status = "completed"
        row.openml_run_id = openml_run_id
        row.error_text = None
        self.session.commit()

    def mark_failed(self, sweep_run_id: str, error_text: str) -> None:
        row = self._require(sweep_run_id)
        row.status = "failed"
        row.error_text = error_text
        self.session.commit()

    def get_run(self, sweep_run_id: str) -> Optional[SweepRun]:
        return (
            self.session.query(SweepRun)
            .filter(SweepRun.sweep_run_id == sweep_run_id)
            .first()
        )

    def list_runs(self, tag: str | None = None) -> List[SweepRun]:
        query = self.session.query(SweepRun)
        if tag is not None:
            query = query.filter(SweepRun.tag == tag)
        return query.order_by(SweepRun.created_at, SweepRun.trial).all()

    def _require(self, sweep_run_id: str) -> SweepRun:
        row = self.get_run(sweep_run_id)
        if row is None:
            raise ValueError(f"Sweep run {sweep_run_id} does not exist")
        return row
