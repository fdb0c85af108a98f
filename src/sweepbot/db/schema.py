# src/sweepbot/db/schema.py
from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _uuid() -> str:
    return str(uuid4())


class Base(DeclarativeBase):
    pass


class SweepRun(Base):
    """
    Local ledger: one row per attempted trial of a sweep.
    """
    __tablename__ = "sweep_runs"

    sweep_run_id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid)

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
    )

    task_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    learner_id: Mapped[str] = mapped_column(String, nullable=False)
    tag: Mapped[str] = mapped_column(String, nullable=False, index=True)
    trial: Mapped[int] = mapped_column(Integer, nullable=False)

    status: Mapped[str] = mapped_column(String, nullable=False)  # started/completed/failed
    params_json: Mapped[str] = mapped_column(Text, nullable=False)

    # set once the platform accepted the upload
    openml_run_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    error_text: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
