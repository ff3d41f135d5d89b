"""Console rendering of trained models using Rich tables."""

from __future__ import annotations

from collections.abc import Mapping

from rich.console import Console
from rich.table import Table

from tabboost.model import Model

__all__: list[str] = ["importance_table", "parameter_table", "render_model"]


def parameter_table(model: Model) -> Table:
    """Build a table of the hyperparameters a model was trained with."""
    table = Table(title=f"XGBoost model for label '{model.label_name}'")
    table.add_column("Parameter", style="cyan")
    table.add_column("Value", justify="right")
    for key in sorted(model.parameters):
        table.add_row(key, model.parameters[key])
    table.caption = f"Boosting iterations: {model.iterations}"
    return table


def importance_table(scores: Mapping[str, float]) -> Table:
    """Build a table of feature importance, highest first."""
    table = Table(title="Feature importance (total gain)")
    table.add_column("Feature", style="cyan")
    table.add_column("Total gain", justify="right")
    for name, value in sorted(scores.items(), key=lambda item: (-item[1], item[0])):
        style = "dim" if value == 0.0 else None
        table.add_row(name, f"{value:.4f}", style=style)
    return table


def render_model(
    model: Model,
    importance: Mapping[str, float] | None = None,
    console: Console | None = None,
) -> None:
    """Print model parameters and, if given, feature importance."""
    console = console or Console()
    console.print(parameter_table(model))
    if importance is not None:
        if importance:
            console.print(importance_table(importance))
        else:
            console.print("[yellow]No features to display.[/yellow]")
