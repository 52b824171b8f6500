from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List

import numpy as np
import typer
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from typing_extensions import Annotated

from saddle_search.engines import ENGINES
from saddle_search.inputs import RunInputs
from saddle_search.results import DimerResults

app = typer.Typer()
console = Console()

DEFAULT_STARTS = {
    "quadratic": ([1.0, 1.0], [0.0, 1.0]),
    "muller-brown": ([-0.7, 0.5], [1.0, 0.0]),
    "three-well": ([0.0, 1.0], [1.0, 0.0]),
}


def _configure_cli_logging(verbose: int = 1) -> None:
    level = logging.INFO if verbose >= 1 else logging.WARNING
    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler, RichHandler):
            root.removeHandler(handler)
    root.addHandler(RichHandler(console=console, show_path=False, markup=False))
    logging.getLogger("saddle_search").setLevel(level)
    logging.getLogger("matplotlib").setLevel(logging.WARNING)


def _results_table(results: DimerResults, max_rows: int = 20) -> Table:
    log = results.log
    columns = log.columns()
    table = Table(box=box.SIMPLE, caption=f"status: {results.status.value} after {results.nit} iterations")
    table.add_column("it", justify="right")
    for name in columns:
        table.add_column(name, justify="right")

    start = max(len(log) - max_rows, 0)
    for i in range(start, len(log)):
        row = [str(i)]
        for name in columns:
            value = getattr(log, name)[i]
            row.append(str(value) if isinstance(value, int) else f"{value:1.2e}")
        table.add_row(*row)
    return table


@app.command()
def run(
        potential: Annotated[str, typer.Option(
            help=f'analytic surface. Options are: {list(ENGINES)}')] = None,
        x0: Annotated[List[float], typer.Option(
            help='initial position, one value per --x0')] = None,
        v0: Annotated[List[float], typer.Option(
            help='initial dimer direction, one value per --v0')] = None,
        inputs: Annotated[str, typer.Option("--inputs", "-i",
                                            help='path to RunInputs toml file')] = None,
        method: Annotated[str, typer.Option(
            help='saddle search method. Options are: [bbdimer, odedimer]')] = None,
        verbose: int = 1,
        plot: Annotated[str, typer.Option(
            help='write a convergence plot to this file')] = None):

    _configure_cli_logging(verbose)
    ri = RunInputs.open(inputs) if inputs is not None else RunInputs()
    if potential is not None:
        ri.engine_name = potential
    if method is not None:
        ri.method = method
    if ri.engine_name not in ENGINES:
        raise typer.BadParameter(f"unknown potential '{ri.engine_name}'")
    if ri.method not in ("bbdimer", "odedimer"):
        raise typer.BadParameter(f"unknown method '{ri.method}'")

    default_x0, default_v0 = DEFAULT_STARTS[ri.engine_name]
    x0 = np.array(x0 if x0 else default_x0, dtype=float)
    v0 = np.array(v0 if v0 else default_v0, dtype=float)
    if x0.shape != v0.shape:
        raise typer.BadParameter("--x0 and --v0 must have the same number of entries")

    engine = ENGINES[ri.engine_name]()
    solver = ri.make_method(verbose=verbose)
    results = solver.run(engine.energy, engine.gradient, x0, v0)

    console.print(_results_table(results))
    console.print(f"x = {np.array2string(results.x, precision=6)}")
    console.print(f"v = {np.array2string(results.v, precision=6)}")

    if plot is not None:
        from saddle_search.plotting import plot_log

        fig, _ = plot_log(results.log)
        fig.savefig(plot)

    if not results.converged:
        raise typer.Exit(code=1)


@app.command()
def make_default_inputs(
        name: Annotated[str, typer.Option(
            "--name", help='path to output toml file')] = None,
        method: Annotated[str, typer.Option(
            help='saddle search method. Options are: [bbdimer, odedimer]')] = "bbdimer"):
    if name is None:
        name = Path(Path(os.getcwd()) / 'default_inputs')
    ri = RunInputs(method=method)
    out = Path(name)
    ri.save(out.parent / (out.stem + ".toml"))


if __name__ == "__main__":
    app()
