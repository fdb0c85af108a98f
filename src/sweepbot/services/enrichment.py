"""Join dataset-level descriptive statistics onto a result table."""

from __future__ import annotations

import logging
from typing import Iterable, List, Sequence

import pandas as pd

from sweepbot.clients.openml_platform import Platform
from sweepbot.services.results import order_columns

logger = logging.getLogger(__name__)

DEFAULT_QUALITIES = ("NumberOfClasses", "NumberOfInstances")


def qualities_frame(
    platform: Platform,
    task_ids: Iterable[int],
    qualities: Sequence[str] = DEFAULT_QUALITIES,
) -> pd.DataFrame:
    """One row per task: task_id, data_id and the requested dataset qualities (NaN if absent)."""
    rows: List[dict] = []
    for task_id in sorted({int(t) for t in task_ids}):
        data_id = int(platform.get_task(task_id).dataset_id)
        found = platform.get_dataset_qualities(data_id)
        row = {"task_id": task_id, "data_id": data_id}
        for name in qualities:
            row[name] = found.get(name)
        rows.append(row)
    logger.info("Fetched qualities for %d tasks", len(rows))
    return pd.DataFrame(rows, columns=["task_id", "data_id", *qualities])


def enrich_results(
    table: pd.DataFrame,
    qualities: pd.DataFrame,
    measure: str,
) -> pd.DataFrame:
    """Left join on task_id; the performance measure stays the last column."""
    if table.empty:
        extra = [c for c in qualities.columns if c not in table.columns]
        return order_columns(table.reindex(columns=[*table.columns, *extra]), measure)
    merged = table.merge(qualities.astype({"task_id": table["task_id"].dtype}), on="task_id", how="left")
    return order_columns(merged, measure)
