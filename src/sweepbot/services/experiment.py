"""Random-search sweep: sample a design, run each configuration, upload tagged runs."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pandas as pd
from sqlalchemy.orm import Session

from sweepbot.clients.openml_platform import Platform
from sweepbot.repos.sweep_runs_repo import SweepRunsRepo
from sweepbot.services.learners import get_learner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SweepConfig:
    task_id: int
    learner_id: str
    n_configs: int
    seed: int
    tags: tuple[str, ...]
    upload: bool = True
    confirm_upload: bool = False
    stop_on_error: bool = True

    def __post_init__(self) -> None:
        if self.n_configs < 1:
            raise ValueError("n_configs must be >= 1")
        if self.upload and not self.tags:
            raise ValueError("uploaded runs need at least one tag to be found again")


@dataclass(frozen=True)
class TrialOutcome:
    trial: int
    sweep_run_id: str
    params: Dict[str, Any]
    status: str
    openml_run_id: Optional[int] = None
    error: Optional[str] = None


@dataclass
class SweepResult:
    design: pd.DataFrame
    trials: List[TrialOutcome] = field(default_factory=list)

    @property
    def uploaded_run_ids(self) -> List[int]:
        return [t.openml_run_id for t in self.trials if t.openml_run_id is not None]

    @property
    def n_failed(self) -> int:
        return sum(1 for t in self.trials if t.status == "failed")


def sample_design(learner_id: str, n_configs: int, seed: int | None = None) -> pd.DataFrame:
    """Parameter design for a learner: one row per trial, raw (untransformed) values."""
    return get_learner(learner_id).param_space.sample(n_configs, seed=seed)


def run_sweep(config: SweepConfig, platform: Platform, session: Session) -> SweepResult:
    """
    Execute every sampled configuration of `config.learner_id` on the task.

    Trials run one after another; each is recorded in the ledger before it
    starts and marked completed or failed afterwards.
    """
    learner = get_learner(config.learner_id)
    repo = SweepRunsRepo(session)
    ledger_tag = config.tags[0] if config.tags else ""

    task = platform.get_task(config.task_id)
    nominal = platform.nominal_feature_indices(task)
    design = learner.param_space.sample(config.n_configs, seed=config.seed)
    result = SweepResult(design=design)

    records = design.to_dict(orient="records")
    for trial, row in enumerate(records):
        params = learner.param_space.row_to_params(row)
        sweep_run_id = repo.create_run(
            task_id=config.task_id,
            learner_id=learner.learner_id,
            tag=ledger_tag,
            trial=trial,
            params=params,
        )
        logger.info("Trial %d/%d %s %s", trial + 1, len(records), learner.learner_id, params)

        try:
            estimator = learner.make_estimator(params, nominal_indices=nominal)
            # the flow is published together with the run, after any confirmation
            run = platform.run_model(estimator, task, upload_flow=False)
            openml_run_id = None
            if config.upload:
                openml_run_id = platform.upload_run(run, config.tags, confirm_upload=config.confirm_upload)
        except Exception as e:
            error = f"{type(e).__name__}: {e}"
            repo.mark_failed(sweep_run_id, error)
            result.trials.append(
                TrialOutcome(trial=trial, sweep_run_id=sweep_run_id, params=params, status="failed", error=error)
            )
            logger.warning("Trial %d failed: %s", trial + 1, error)
            if config.stop_on_error:
                raise
            continue

        repo.mark_completed(sweep_run_id, openml_run_id)
        result.trials.append(
            TrialOutcome(
                trial=trial,
                sweep_run_id=sweep_run_id,
                params=params,
                status="completed",
                openml_run_id=openml_run_id,
            )
        )

    logger.info(
        "Sweep done: %d trials, %d uploaded, %d failed",
        len(result.trials),
        len(result.uploaded_run_ids),
        result.n_failed,
    )
    return result
