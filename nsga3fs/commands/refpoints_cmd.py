from __future__ import annotations
import numpy as np
import typer
from rich import print
from rich.table import Table

from nsga3fs.errors import GenerationTimeout
from nsga3fs.ga.refpoints import METHODS, reference_points

refpoints_app = typer.Typer(add_completion=False, help="Reference point commands")


@refpoints_app.command("show")
def show(
    n_obj: int = typer.Argument(..., help="Number of objectives"),
    method: str = typer.Option("das_dennis", "--method", "-m", help=f"One of {', '.join(METHODS)}"),
    seed: int = typer.Option(0, "--seed", help="Seed for the sampling method"),
    max_iter: int = typer.Option(1_000_000, "--max-iter", help="Draw cap for the sampling method"),
):
    """Print the reference point set used for a given objective count."""
    try:
        refs = reference_points(n_obj, method=method, rng=np.random.default_rng(seed), max_iter=max_iter)
    except (ValueError, GenerationTimeout) as exc:
        print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)
    print(f"{len(refs)} reference points for {n_obj} objectives")
    table = Table()
    for j in range(refs.shape[1]):
        table.add_column(f"f{j + 1}", justify="right")
    for row in refs:
        table.add_row(*[f"{v:.3f}" for v in row])
    print(table)
