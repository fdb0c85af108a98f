"""Persist result tables and quick diagnostic plots."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import List

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
import pandas as pd  # noqa: E402


def summarize(table: pd.DataFrame, measure: str) -> dict:
    if table.empty or measure not in table.columns:
        return {"n_runs": int(len(table)), "measure": measure, "best": None}
    values = pd.to_numeric(table[measure], errors="coerce")
    if values.isna().all():
        return {"n_runs": int(len(table)), "measure": measure, "best": None}
    best_idx = values.idxmax()
    return {
        "n_runs": int(len(table)),
        "measure": measure,
        "mean": float(values.mean()),
        "min": float(values.min()),
        "max": float(values.max()),
        "best": {k: (v.item() if hasattr(v, "item") else v) for k, v in table.loc[best_idx].items()},
    }


def write_report(table: pd.DataFrame, out_dir: Path, tag: str, measure: str) -> dict:
    """Write `<timestamp>_<tag>_results.csv` and a JSON summary next to it."""
    out_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.utcnow().strftime("%Y%m%d_%H%M%S")

    csv_path = out_dir / f"{timestamp}_{tag}_results.csv"
    table.to_csv(csv_path, index=False)

    summary = {"tag": tag, "timestamp": timestamp, **summarize(table, measure)}
    json_path = out_dir / f"{timestamp}_{tag}_summary.json"
    json_path.write_text(json.dumps(summary, sort_keys=True, indent=2, default=str), encoding="utf-8")
    return {"csv": csv_path, "summary": json_path, **summary}


def plot_measure_vs_params(table: pd.DataFrame, measure: str, out_dir: Path) -> List[Path]:
    """One scatter per numeric hyperparameter column against the measure."""
    skip = {"run_id", "task_id", "setup_id", "data_id", measure}
    paths: List[Path] = []
    if table.empty:
        return paths
    out_dir.mkdir(parents=True, exist_ok=True)
    y = pd.to_numeric(table[measure], errors="coerce")
    for col in table.columns:
        if col in skip or not pd.api.types.is_numeric_dtype(table[col]):
            continue
        plt.figure(figsize=(4, 3))
        plt.scatter(table[col], y, s=12)
        plt.xlabel(col)
        plt.ylabel(measure)
        plt.title(f"{measure} vs {col}")
        plt.tight_layout()
        path = out_dir / f"{measure}_vs_{col}.png"
        plt.savefig(path)
        plt.close()
        paths.append(path)
    return paths
