"""CLI command to tabulate uploaded runs by tag."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import pandas as pd
import typer
from rich.console import Console
from rich.table import Table

from sweepbot.cli import deps
from sweepbot.config.settings import settings
from sweepbot.services.enrichment import DEFAULT_QUALITIES, enrich_results, qualities_frame
from sweepbot.services.learners import get_learner
from sweepbot.services.reporting import plot_measure_vs_params, write_report
from sweepbot.services.results import collect_results

console = Console()


def _fmt(value) -> str:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""
    if isinstance(value, float):
        return f"{value:.4g}"
    return str(value)


def results_cmd(
    tag: Optional[str] = typer.Option(None, "--tag", help="Tag used when uploading"),
    measure: Optional[str] = typer.Option(None, "--measure", help="Evaluation measure"),
    learner: Optional[str] = typer.Option(None, "--learner", help="Keep only this learner's hyperparameters"),
    enrich: bool = typer.Option(False, "--enrich", help="Join dataset qualities by task"),
    quality: Optional[List[str]] = typer.Option(None, "--quality", help="Dataset quality name(s)"),
    out_dir: Optional[Path] = typer.Option(None, "--out-dir", help="Write CSV + JSON summary here"),
    plot: bool = typer.Option(False, "--plot", help="Also save measure-vs-parameter plots"),
    limit: int = typer.Option(20, "--limit", help="Rows to print"),
) -> None:
    """Query evaluations, runs and setups by tag and print them as one wide table."""
    tag = tag or settings.default_tag
    measure = measure or settings.default_measure

    try:
        param_names = get_learner(learner).tuned_param_names if learner else None
    except KeyError as e:
        console.print(f"[red]✗[/red] Error: {e.args[0]}")
        raise typer.Exit(1)

    platform = deps.get_platform()
    table = collect_results(platform, tag=tag, measure=measure, param_names=param_names)
    if enrich and not table.empty:
        qualities = qualities_frame(platform, table["task_id"].tolist(), tuple(quality or DEFAULT_QUALITIES))
        table = enrich_results(table, qualities, measure)

    if table.empty:
        console.print(f"[yellow]No runs found for tag '{tag}'[/yellow]")
    else:
        view = Table(title=f"Results for tag={tag} ({len(table)} runs)")
        for col in table.columns:
            view.add_column(str(col), style="green" if col == measure else None, justify="right")
        for _, row in table.head(limit).iterrows():
            view.add_row(*[_fmt(v) for v in row.tolist()])
        console.print(view)

    if out_dir is not None:
        report = write_report(table, out_dir, tag=tag, measure=measure)
        console.print(f"[green]✓[/green] Wrote {report['csv']}")
        if plot:
            paths = plot_measure_vs_params(table, measure, out_dir)
            console.print(f"[green]✓[/green] Wrote {len(paths)} plots")


if __name__ == "__main__":
    typer.run(results_cmd)
