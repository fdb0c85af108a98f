"""CLI command for running a random-search sweep on an OpenML task."""

from __future__ import annotations

from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table
from sqlalchemy.orm import sessionmaker

from sweepbot.cli import deps
from sweepbot.config.settings import settings
from sweepbot.db.engine import build_engine
from sweepbot.db.init_db import ensure_db
from sweepbot.services.experiment import SweepConfig, run_sweep
from sweepbot.services.learners import get_learner

console = Console()


def run_cmd(
    task_id: int = typer.Option(..., "--task-id", help="OpenML task ID"),
    learner: str = typer.Option(..., "--learner", help="Learner ID, e.g. classif.svm"),
    n_configs: Optional[int] = typer.Option(None, "--n-configs", help="Number of sampled configurations"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Sampling seed"),
    tag: Optional[List[str]] = typer.Option(None, "--tag", help="Tag(s) attached to uploaded runs"),
    upload: bool = typer.Option(True, help="Publish runs to OpenML"),
    confirm_upload: bool = typer.Option(False, "--confirm-upload", help="Ask before each upload"),
    keep_going: bool = typer.Option(False, "--keep-going", help="Continue after a failed trial"),
) -> None:
    """Sample configurations, run each on the task and upload tagged runs."""
    try:
        get_learner(learner)
        config = SweepConfig(
            task_id=task_id,
            learner_id=learner,
            n_configs=n_configs if n_configs is not None else settings.n_configs,
            seed=seed if seed is not None else settings.seed,
            tags=tuple(tag or [settings.default_tag]),
            upload=upload,
            confirm_upload=confirm_upload,
            stop_on_error=not keep_going,
        )
    except (KeyError, ValueError) as e:
        console.print(f"[red]✗[/red] Error: {e.args[0] if e.args else e}")
        raise typer.Exit(1)

    engine = build_engine()
    ensure_db(engine)
    SessionLocal = sessionmaker(bind=engine)

    console.print(
        f"[bold blue]Sweeping {config.learner_id} on task {config.task_id} "
        f"({config.n_configs} configs, tags={','.join(config.tags)})[/bold blue]"
    )
    with SessionLocal() as session:
        result = run_sweep(config, deps.get_platform(), session)

    table = Table(title=f"Sweep: {config.learner_id} on task {config.task_id}")
    table.add_column("Trial", justify="right")
    table.add_column("Status", style="cyan")
    table.add_column("OpenML run", style="green", justify="right")
    table.add_column("Params", style="magenta")
    for t in result.trials:
        params = ", ".join(f"{k}={v:.4g}" if isinstance(v, float) else f"{k}={v}" for k, v in t.params.items())
        table.add_row(
            str(t.trial),
            t.status,
            str(t.openml_run_id) if t.openml_run_id is not None else "",
            params if t.status != "failed" else f"{params}\n[red]{t.error}[/red]",
        )
    console.print(table)
    console.print(
        f"[green]✓[/green] {len(result.uploaded_run_ids)} uploaded, {result.n_failed} failed"
    )


if __name__ == "__main__":
    typer.run(run_cmd)
