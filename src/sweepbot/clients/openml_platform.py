"""
Adapter around the `openml` client.

Only the calls the sweep actually consumes are exposed, so services can take
any object with the same shape (see `Platform`) and tests never touch the
network.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Sequence

import openml
import pandas as pd

logger = logging.getLogger(__name__)

SETUP_COLUMNS = ["setup_id", "flow_name", "name", "value"]
SETUP_CHUNK_SIZE = 100


class Platform(Protocol):
    """Experiment-tracking surface consumed by the sweep, results and enrichment services."""

    def get_task(self, task_id: int) -> Any:
        raise NotImplementedError

    def nominal_feature_indices(self, task: Any) -> List[int]:
        raise NotImplementedError

    def run_model(self, estimator: Any, task: Any, upload_flow: bool = False) -> Any:
        raise NotImplementedError

    def upload_run(self, run: Any, tags: Sequence[str], confirm_upload: bool = False) -> Optional[int]:
        raise NotImplementedError

    def list_evaluations(self, measure: str, tag: str) -> pd.DataFrame:
        raise NotImplementedError

    def list_runs(self, tag: str) -> pd.DataFrame:
        raise NotImplementedError

    def list_setups(self, setup_ids: Iterable[int]) -> pd.DataFrame:
        raise NotImplementedError

    def get_dataset_qualities(self, data_id: int) -> Dict[str, float]:
        raise NotImplementedError


def parse_parameter_value(raw: Any) -> Any:
    """
    OpenML stores flow parameter values JSON-encoded ('1.5', '"rbf"', 'null').
    Anything that does not decode is returned unchanged.
    """
    if not isinstance(raw, str):
        return raw
    try:
        return json.loads(raw)
    except ValueError:
        return raw


def _confirm_on_console(run: Any, tags: Sequence[str]) -> bool:
    import typer

    return typer.confirm(f"Upload run of flow '{run.flow_name}' on task {run.task_id} with tags {list(tags)}?")


class OpenMLPlatform:
    """Live OpenML backend. Configure `openml.config` first (see `apply_openml_config`)."""

    def __init__(
        self,
        confirm: Callable[[Any, Sequence[str]], bool] | None = None,
        page_size: int = 10_000,
        setup_chunk_size: int = SETUP_CHUNK_SIZE,
    ):
        self._confirm = confirm or _confirm_on_console
        self._page_size = page_size
        self._setup_chunk_size = setup_chunk_size

    def _check_page(self, df: pd.DataFrame, what: str, tag: str) -> pd.DataFrame:
        if len(df) >= self._page_size:
            logger.warning(
                "Listing %s for tag %r hit the page size (%d); results are truncated", what, tag, self._page_size
            )
        return df

    def get_task(self, task_id: int) -> Any:
        logger.info("Fetching task %s", task_id)
        # data and qualities are fetched lazily by task.get_dataset() when a run needs them
        return openml.tasks.get_task(task_id, download_data=False, download_qualities=False)

    def nominal_feature_indices(self, task: Any) -> List[int]:
        dataset = task.get_dataset()
        return list(dataset.get_features_by_type("nominal", exclude=[task.target_name]))

    def run_model(self, estimator: Any, task: Any, upload_flow: bool = False) -> Any:
        return openml.runs.run_model_on_task(
            estimator,
            task,
            avoid_duplicate_runs=False,
            upload_flow=upload_flow,
        )

    def upload_run(self, run: Any, tags: Sequence[str], confirm_upload: bool = False) -> Optional[int]:
        """
        Publish a run and attach tags.

        With `confirm_upload` the confirm callback must approve first;
        a declined upload returns None.
        """
        if confirm_upload and not self._confirm(run, tags):
            logger.info("Upload declined for task %s", run.task_id)
            return None
        run.publish()
        for tag in tags:
            run.push_tag(tag)
        logger.info("Uploaded run %s (tags=%s)", run.run_id, ",".join(tags))
        return int(run.run_id)

    def list_evaluations(self, measure: str, tag: str) -> pd.DataFrame:
        df = openml.evaluations.list_evaluations(
            function=measure,
            tag=tag,
            size=self._page_size,
            output_format="dataframe",
        )
        return self._check_page(pd.DataFrame(df), "evaluations", tag)

    def list_runs(self, tag: str) -> pd.DataFrame:
        df = openml.runs.list_runs(tag=tag, size=self._page_size, output_format="dataframe")
        return self._check_page(pd.DataFrame(df), "runs", tag)

    def list_setups(self, setup_ids: Iterable[int]) -> pd.DataFrame:
        """Long table: one row per (setup, parameter). Ids are queried in chunks to keep URLs short."""
        ids = sorted({int(s) for s in setup_ids})
        if not ids:
            return pd.DataFrame(columns=SETUP_COLUMNS)

        rows: List[dict] = []
        for start in range(0, len(ids), self._setup_chunk_size):
            chunk = ids[start : start + self._setup_chunk_size]
            setups = openml.setups.list_setups(setup=chunk, size=len(chunk), output_format="object")
            for setup_id, setup in setups.items():
                for param in (setup.parameters or {}).values():
                    rows.append(
                        {
                            "setup_id": int(setup_id),
                            "flow_name": param.flow_name,
                            "name": param.parameter_name,
                            "value": param.value,
                        }
                    )
        return pd.DataFrame(rows, columns=SETUP_COLUMNS)

    def get_dataset_qualities(self, data_id: int) -> Dict[str, float]:
        dataset = openml.datasets.get_dataset(
            data_id,
            download_data=False,
            download_qualities=True,
            download_features_meta_data=False,
        )
        return dict(dataset.qualities or {})
