"""Tests for console reporting."""

from __future__ import annotations

from rich.console import Console

from tabboost.model import Model, TrainingHeader
from tabboost.report import importance_table, parameter_table, render_model
from tabboost.table import Column, Table


def make_model() -> Model:
    table = Table.of(
        Column.numeric("A", [1.0]),
        Column.nominal("B", ["x"]),
        Column.numeric("Label", [2.0]),
        label="Label",
    )
    return Model(
        parameters={"objective": "reg:squarederror", "max_depth": "4"},
        iterations=12,
        booster=b"",
        header=TrainingHeader.from_table(table, ("A", "B")),
    )


def render(*args: object, **kwargs: object) -> str:
    console = Console(record=True, width=100)
    render_model(*args, console=console, **kwargs)  # type: ignore[arg-type]
    return console.export_text()


class TestReport:
    """Tests for model rendering."""

    def test_parameter_table(self) -> None:
        table = parameter_table(make_model())
        assert table.row_count == 2
        assert table.caption == "Boosting iterations: 12"

    def test_importance_table_sorted(self) -> None:
        table = importance_table({"a": 0.5, "b": 2.0, "c": 0.0})
        assert table.row_count == 3
        assert list(table.columns[0].cells) == ["b", "a", "c"]

    def test_render_parameters(self) -> None:
        output = render(make_model())
        assert "Label" in output
        assert "reg:squarederror" in output
        assert "max_depth" in output
        assert "Boosting iterations: 12" in output
        assert "Feature importance" not in output

    def test_render_importance(self) -> None:
        output = render(make_model(), {"A": 1.25, "B": 0.0})
        assert "Feature importance" in output
        assert "1.2500" in output
        assert "0.0000" in output

    def test_render_no_features(self) -> None:
        output = render(make_model(), {})
        assert "No features to display." in output


class TestDescribe:
    """Tests for the plain-text model summary."""

    def test_describe(self) -> None:
        model = make_model()
        text = str(model)
        assert text.startswith("XGBoost prediction model for label 'Label'.")
        assert "max_depth = 4" in text
        assert text.endswith("Boosting iterations: 12")
        assert model.name == "XGBoost"
        assert model.header.feature_names == ["A", "B"]
