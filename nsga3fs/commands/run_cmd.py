from __future__ import annotations
import logging
from pathlib import Path

import pandas as pd
import typer
from rich import print
from rich.logging import RichHandler
from rich.table import Table

from nsga3fs.config import Config
from nsga3fs.errors import NSGA3FSError
from nsga3fs.fitness.evaluator import evaluator_from_config
from nsga3fs.ga.runner import GenerationEvent, run_nsga3
from nsga3fs.results import NSGA3Result
from nsga3fs.utils import ensure_dir, save_json

run_app = typer.Typer(add_completion=False, help="Feature selection commands")


def _print_event(ev: GenerationEvent):
    if ev.generation == 0:
        print(f"[cyan]Initial evaluation[/cyan] {ev.evaluated} individuals in {ev.eval_seconds:.2f}s "
              f"| fronts={ev.front_sizes}")
        return
    msg = (f"- Iteration {ev.generation}/{ev.max_gen} | time {ev.elapsed:.2f}s "
           f"| front1={ev.front_sizes[0] if ev.front_sizes else 0} fronts={len(ev.front_sizes)} niched={ev.niched}")
    if ev.penalized:
        msg += f" [yellow]penalized={ev.penalized}[/yellow]"
    print(msg)


def _votes_table(result: NSGA3Result, threshold: float) -> Table:
    table = Table(title="Majority vote")
    table.add_column("feature")
    table.add_column("vote", justify="right")
    for row in result.votes_table.itertuples(index=False):
        style = "green" if row.vote >= threshold else None
        table.add_row(str(row.feature), f"{row.vote:.2f}", style=style)
    return table


def _front_table(result: NSGA3Result) -> Table:
    table = Table(title=f"Pareto front ({len(result.ids)} individuals)")
    table.add_column("id", justify="right")
    for c in result.fitness.columns:
        table.add_column(str(c), justify="right")
    table.add_column("features")
    for item in result.per_individual:
        vals = [f"{v:.4g}" for v in item["objective_values"].values()]
        table.add_row(str(item["id"]), *vals, ", ".join(item["selected_feature_names"]))
    return table


def save_result(result: NSGA3Result, out_dir: Path):
    ensure_dir(out_dir)
    payload = result.to_dict()
    save_json(out_dir / "front.json", payload)
    save_json(out_dir / "history.json", result.history)
    result.votes_table.to_csv(out_dir / "votes.csv", index=False)


@run_app.command("run")
def run(
    config: str = typer.Option(..., "--config", "-c", help="Path to config.yaml"),
    data: str | None = typer.Option(None, "--data", "-d", help="CSV dataset (overrides data.path)"),
    workers: int | None = typer.Option(None, "--workers", "-w", help="Number of evaluation workers"),
    use_processes: bool = typer.Option(False, "--use-processes", help="Use processes instead of threads for evaluation"),
    seed: int | None = typer.Option(None, "--seed", help="Random seed (overrides ga.seed)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """Run NSGA-III feature selection on a CSV dataset."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
    )
    cfg = Config.load(config)
    data_path = Path(data) if data else cfg.data_path
    if data_path is None or not data_path.exists():
        print(f"[red]Dataset not found[/red]: {data_path}")
        raise typer.Exit(code=1)

    try:
        df = pd.read_csv(data_path)
        ev = evaluator_from_config(cfg, df)
        settings = cfg.settings(workers=workers, seed=seed, use_processes=use_processes or None)
    except NSGA3FSError as exc:
        print(f"[red]Invalid configuration[/red]: {exc}")
        raise typer.Exit(code=2)

    out_dir = cfg.run_root / cfg.run_name
    ensure_dir(out_dir)
    if cfg.path is not None:
        (out_dir / "config_snapshot.yaml").write_text(cfg.path.read_text(encoding="utf-8"), encoding="utf-8")

    print(f"[green]Running NSGA-III[/green] pop={settings.pop_size} gens={settings.max_gen} "
          f"features={ev.n_features} objectives={', '.join(ev.obj_names)}")
    result = run_nsga3(ev, settings, observer=_print_event)

    print(_front_table(result))
    print(_votes_table(result, settings.threshold))
    print(f"Selected features (vote >= {settings.threshold}): {', '.join(result.features_above_threshold) or '-'}")
    save_result(result, out_dir)
    print(f"[green]Done[/green] in {result.runtime['total_seconds']:.1f}s. Run dir: {out_dir}")
