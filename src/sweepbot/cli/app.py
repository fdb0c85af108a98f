from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from sweepbot.config.settings import settings
from sweepbot.db.engine import build_engine
from sweepbot.db.init_db import init_db
from sweepbot.db.session import get_session
from sweepbot.logging_setup import configure_logging
from sweepbot.repos.sweep_runs_repo import SweepRunsRepo
from sweepbot.services.experiment import sample_design
from sweepbot.services.learners import get_learner, list_learners
from sweepbot.cli.results import results_cmd
from sweepbot.cli.run_sweep import run_cmd

app = typer.Typer(help="sweepbot CLI (random hyperparameter sweeps on OpenML).")
console = Console()


@app.callback()
def main_callback(
    log_level: str = typer.Option(settings.log_level, "--log-level", help="Logging level"),
) -> None:
    configure_logging(log_level)


@app.command("init-db")
def init_db_cmd() -> None:
    """Reset the local sweep ledger."""
    engine = build_engine()
    init_db(engine)
    typer.echo("✅ Sweep ledger initialized.")


@app.command("learners")
def learners_cmd() -> None:
    """List registered learners and their search spaces."""
    table = Table(title="Learners")
    table.add_column("learner", style="cyan")
    table.add_column("param", style="magenta")
    table.add_column("kind")
    table.add_column("range")
    table.add_column("trafo")
    table.add_column("requires")

    for lrn in list_learners():
        for i, p in enumerate(lrn.param_space):
            if p.kind in ("numeric", "integer"):
                rng = f"[{p.lower}, {p.upper}]"
            elif p.kind == "discrete":
                rng = ", ".join(map(str, p.values))
            else:
                rng = "True, False"
            table.add_row(
                lrn.learner_id if i == 0 else "",
                p.name,
                p.kind,
                rng,
                p.trafo.__name__ if p.trafo else "",
                ", ".join(f"{k}={v}" for k, v in (p.requires or {}).items()),
            )
    console.print(table)


@app.command("sample")
def sample_cmd(
    learner: str = typer.Option(..., "--learner", help="Learner ID"),
    n_configs: int = typer.Option(settings.n_configs, "--n-configs", help="Number of configurations"),
    seed: int = typer.Option(settings.seed, "--seed", help="Sampling seed"),
    out: Optional[Path] = typer.Option(None, "--out", help="Write the design as CSV"),
) -> None:
    """Draw a parameter design without running anything."""
    try:
        design = sample_design(learner, n_configs, seed=seed)
    except (KeyError, ValueError) as e:
        console.print(f"[red]✗[/red] Error: {e.args[0] if e.args else e}")
        raise typer.Exit(1)

    space = get_learner(learner).param_space
    table = Table(title=f"Design for {learner} (seed={seed})")
    table.add_column("trial", justify="right")
    for name in design.columns:
        table.add_column(name, justify="right")
    for trial, row in design.iterrows():
        params = space.row_to_params(row.to_dict())
        table.add_row(
            str(trial),
            *[f"{params[n]:.4g}" if isinstance(params.get(n), float) else str(params.get(n, "")) for n in design.columns],
        )
    console.print(table)

    if out is not None:
        out.parent.mkdir(parents=True, exist_ok=True)
        design.to_csv(out)
        console.print(f"[green]✓[/green] Wrote design to {out}")


@app.command("history")
def history_cmd(
    tag: Optional[str] = typer.Option(None, "--tag", help="Only trials recorded under this tag"),
) -> None:
    """Show the local ledger of attempted trials."""
    with get_session() as session:
        rows = SweepRunsRepo(session).list_runs(tag=tag)
        table = Table(title="Sweep history")
        table.add_column("created_at", style="green")
        table.add_column("task", justify="right")
        table.add_column("learner", style="cyan")
        table.add_column("tag")
        table.add_column("trial", justify="right")
        table.add_column("status", style="magenta")
        table.add_column("openml_run", justify="right")
        table.add_column("params")
        for r in rows:
            table.add_row(
                r.created_at.isoformat(timespec="seconds") if r.created_at else "",
                str(r.task_id),
                r.learner_id,
                r.tag,
                str(r.trial),
                r.status,
                str(r.openml_run_id) if r.openml_run_id is not None else "",
                ", ".join(f"{k}={v}" for k, v in json.loads(r.params_json).items()),
            )

    console.print(table)


app.command("run")(run_cmd)
app.command("results")(results_cmd)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
