"""Query uploaded runs by tag and reshape them into one row per run."""

from __future__ import annotations

import logging
from numbers import Number
from typing import List, Optional, Sequence

import pandas as pd

from sweepbot.clients.openml_platform import Platform, parse_parameter_value

logger = logging.getLogger(__name__)

ID_COLUMNS = ["run_id", "task_id", "setup_id"]


def _maybe_numeric(col: pd.Series) -> pd.Series:
    values = col.dropna()
    if len(values) and all(isinstance(v, Number) and not isinstance(v, bool) for v in values):
        return pd.to_numeric(col)
    return col


def pivot_setup_params(setups_long: pd.DataFrame, param_names: Optional[Sequence[str]] = None) -> pd.DataFrame:
    """
    Long (setup_id, name, value) rows -> one row per setup, one column per parameter.

    Values are JSON-decoded; columns follow `param_names` order when given.
    """
    if param_names is not None:
        columns = list(param_names)
    elif setups_long.empty:
        columns = []
    else:
        columns = sorted(setups_long["name"].unique())
    if setups_long.empty:
        return pd.DataFrame(columns=["setup_id", *columns])

    long = setups_long
    if param_names is not None:
        long = long[long["name"].isin(param_names)]
    long = long.assign(value=long["value"].map(parse_parameter_value))
    # a parameter name can repeat across pipeline components; the model step comes last
    long = long.drop_duplicates(subset=["setup_id", "name"], keep="last")

    wide = long.pivot(index="setup_id", columns="name", values="value")
    wide = wide.reindex(columns=columns)
    wide.columns.name = None
    for name in wide.columns:
        wide[name] = _maybe_numeric(wide[name])
    return wide.reset_index()


def order_columns(table: pd.DataFrame, measure: str) -> pd.DataFrame:
    """Identifiers first, performance measure last."""
    ids = [c for c in ID_COLUMNS if c in table.columns]
    rest = [c for c in table.columns if c not in ids and c != measure]
    tail = [measure] if measure in table.columns else []
    return table[ids + rest + tail]


def build_result_table(
    evaluations: pd.DataFrame,
    runs: pd.DataFrame,
    setups_long: pd.DataFrame,
    measure: str,
    param_names: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """Join run ids, task ids, hyperparameters and the measure; the measure is the last column."""
    params = pivot_setup_params(setups_long, param_names).astype({"setup_id": "int64"})
    param_cols: List[str] = [c for c in params.columns if c != "setup_id"]

    if evaluations.empty or runs.empty:
        return pd.DataFrame(columns=[*ID_COLUMNS, *param_cols, measure])

    evals = evaluations
    if "function" in evals.columns:
        evals = evals[evals["function"] == measure]
    evals = evals[["run_id", "value"]].rename(columns={"value": measure})

    table = runs[ID_COLUMNS].merge(evals, on="run_id", how="inner")
    table = table.merge(params, on="setup_id", how="left")
    table = table.sort_values("run_id").reset_index(drop=True)
    return order_columns(table, measure)


def collect_results(
    platform: Platform,
    tag: str,
    measure: str,
    param_names: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """Read everything uploaded under `tag` back from the platform as a wide table."""
    evaluations = platform.list_evaluations(measure, tag)
    runs = platform.list_runs(tag)
    setup_ids = runs["setup_id"].unique().tolist() if not runs.empty else []
    setups_long = platform.list_setups(setup_ids)
    logger.info(
        "tag=%s: %d evaluations, %d runs, %d setups",
        tag,
        len(evaluations),
        len(runs),
        len(setup_ids),
    )
    return build_result_table(evaluations, runs, setups_long, measure, param_names)
