"""Global test fixtures."""

import sys
from pathlib import Path
from types import SimpleNamespace

import pandas as pd
import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from sqlalchemy.orm import sessionmaker  # noqa: E402

from sweepbot.db.engine import build_engine  # noqa: E402
from sweepbot.db.init_db import init_db  # noqa: E402


class FakePlatform:
    """In-memory stand-in for OpenMLPlatform; records every call."""

    def __init__(
        self,
        evaluations: pd.DataFrame | None = None,
        runs: pd.DataFrame | None = None,
        setups: pd.DataFrame | None = None,
        qualities: dict | None = None,
        fail_on: set[int] | None = None,
        nominal: list[int] | None = None,
        accept_upload: bool = True,
    ):
        self.evaluations = evaluations if evaluations is not None else pd.DataFrame()
        self.runs = runs if runs is not None else pd.DataFrame()
        self.setups = setups if setups is not None else pd.DataFrame(columns=["setup_id", "flow_name", "name", "value"])
        self.qualities = qualities or {}
        self.fail_on = fail_on or set()
        self.nominal = nominal or []
        self.accept_upload = accept_upload
        self.estimators = []
        self.upload_flow_calls = []
        self.uploads = []
        self.setup_queries = []
        self._next_run_id = 1000

    def get_task(self, task_id):
        return SimpleNamespace(task_id=task_id, dataset_id=task_id + 10, target_name="class")

    def nominal_feature_indices(self, task):
        return list(self.nominal)

    def run_model(self, estimator, task, upload_flow=False):
        call = len(self.estimators)
        self.estimators.append(estimator)
        self.upload_flow_calls.append(upload_flow)
        if call in self.fail_on:
            raise RuntimeError(f"boom on call {call}")
        return SimpleNamespace(task_id=task.task_id, flow_name=type(estimator).__name__, run_id=None)

    def upload_run(self, run, tags, confirm_upload=False):
        if confirm_upload and not self.accept_upload:
            return None
        self._next_run_id += 1
        run.run_id = self._next_run_id
        self.uploads.append((run.run_id, tuple(tags), confirm_upload))
        return run.run_id

    def list_evaluations(self, measure, tag):
        return self.evaluations

    def list_runs(self, tag):
        return self.runs

    def list_setups(self, setup_ids):
        ids = list(setup_ids)
        self.setup_queries.append(ids)
        if self.setups.empty:
            return self.setups
        return self.setups[self.setups["setup_id"].isin(ids)]

    def get_dataset_qualities(self, data_id):
        return dict(self.qualities.get(data_id, {}))


@pytest.fixture
def fake_platform():
    return FakePlatform()


@pytest.fixture
def platform_factory():
    return FakePlatform


@pytest.fixture
def db_url(tmp_path):
    return f"duckdb:///{tmp_path / 'sweepbot_test.duckdb'}"


@pytest.fixture
def session(db_url):
    engine = build_engine(db_url)
    init_db(engine)
    SessionLocal = sessionmaker(bind=engine)
    with SessionLocal() as s:
        yield s


@pytest.fixture
def uploaded_frames():
    """Evaluations / runs / setups as the platform returns them for two uploaded SVM runs."""
    evaluations = pd.DataFrame(
        {
            "run_id": [11, 12, 11],
            "task_id": [3, 3, 3],
            "setup_id": [101, 102, 101],
            "data_id": [13, 13, 13],
            "function": ["area_under_roc_curve", "area_under_roc_curve", "predictive_accuracy"],
            "value": [0.91, 0.75, 0.88],
        }
    )
    runs = pd.DataFrame(
        {
            "run_id": [11, 12],
            "task_id": [3, 3],
            "setup_id": [101, 102],
            "flow_id": [7, 7],
        }
    )
    setups = pd.DataFrame(
        {
            "setup_id": [101, 101, 101, 101, 102, 102, 102, 102],
            "flow_name": ["sklearn.svm.SVC"] * 3 + ["sklearn.impute.SimpleImputer"] + ["sklearn.svm.SVC"] * 3
            + ["sklearn.impute.SimpleImputer"],
            "name": ["kernel", "C", "gamma", "strategy", "kernel", "C", "gamma", "strategy"],
            "value": ['"rbf"', "2.0", "0.125", '"median"', '"linear"', "0.5", '"scale"', '"median"'],
        }
    )
    return evaluations, runs, setups
