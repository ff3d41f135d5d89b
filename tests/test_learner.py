"""Tests for the high-level learner."""

from __future__ import annotations

import numpy as np
import pytest

from tabboost.config import EarlyStopping, LearnerConfig
from tabboost.errors import IncompatibleTableError, MissingValidationSetError
from tabboost.learner import AUTO_SPLIT_RATIO, Learner, adapt_validation, split_validation
from tabboost.table import Column, ColumnKind, Table


def separable_table(n: int = 300) -> Table:
    rng = np.random.default_rng(123456)
    i = np.arange(n)
    return Table.of(
        Column.numeric("A", (i % 2) * 5 + rng.random(n)),
        Column.numeric("B", rng.random(n)),
        Column.boolean("Label", ["A" if k % 2 == 0 else "B" for k in i], "A"),
        label="Label",
    )


class TestSplitValidation:
    """Tests for split_validation()."""

    def test_split_sizes(self, regression_table: Table) -> None:
        data, validation = split_validation(regression_table, seed=1)
        assert data.height == int(100 * AUTO_SPLIT_RATIO)
        assert data.height + validation.height == 100
        assert data.roles == regression_table.roles

    def test_rows_are_disjoint(self, regression_table: Table) -> None:
        data, validation = split_validation(regression_table, seed=1)
        training_rows = set(data.column("A").data.tolist())
        validation_rows = set(validation.column("A").data.tolist())
        assert not training_rows & validation_rows

    def test_stratified(self, five_class_table: Table) -> None:
        """Test every class keeps its share in the training part."""
        data, _ = split_validation(five_class_table, seed=3)
        label = data.label()
        assert label is not None
        counts = np.bincount(label.data, minlength=6)[1:]
        assert counts.tolist() == [14, 14, 14, 14, 14]

    def test_falls_back_for_rare_classes(self) -> None:
        """Test classes with a single row do not prevent splitting."""
        values = ["a"] * 29 + ["b"]
        table = Table.of(
            Column.numeric("x", np.arange(30, dtype=np.float64)),
            Column.nominal("y", values),
            label="y",
        )
        data, validation = split_validation(table, seed=0)
        assert data.height == 21
        assert validation.height == 9

    def test_single_row_rejected(self, regression_table: Table) -> None:
        """Test a table too small to split fails with a clear message."""
        with pytest.raises(ValueError, match="too small"):
            split_validation(regression_table.rows([0]), seed=0)

    def test_two_rows(self, regression_table: Table) -> None:
        data, validation = split_validation(regression_table.rows([0, 1]), seed=0)
        assert data.height == 1
        assert validation.height == 1

    def test_reproducible(self, regression_table: Table) -> None:
        first, _ = split_validation(regression_table, seed=5)
        second, _ = split_validation(regression_table, seed=5)
        assert first.column("A").data.tolist() == second.column("A").data.tolist()


class TestAdaptValidation:
    """Tests for adapt_validation()."""

    def test_reorders_and_remaps(self) -> None:
        data = Table.of(
            Column.numeric("x", [1.0, 2.0]),
            Column.nominal("c", ["p", "q"]),
            Column.nominal("y", ["n", "m"]),
            label="y",
        )
        validation = Table.of(
            Column.nominal("y", ["m", "n"]),
            Column.nominal("c", ["q", "p"]),
            Column.numeric("x", [3.0, 4.0]),
            label="y",
        )
        adapted = adapt_validation(validation, data)
        assert adapted.labels == ["x", "c", "y"]
        assert adapted.column("c").dictionary is data.column("c").dictionary
        assert adapted.column("y").dictionary is data.column("y").dictionary
        assert adapted.column("y").to_list() == ["m", "n"]
        assert adapted.label() is adapted.column("y")

    def test_different_columns(self, regression_table: Table) -> None:
        validation = Table.of(
            regression_table.column("A"),
            regression_table.column("B"),
            regression_table.column("Label"),
            label="Label",
        )
        with pytest.raises(IncompatibleTableError, match="same columns"):
            adapt_validation(validation, regression_table)

    def test_missing_label(self, regression_table: Table) -> None:
        validation = Table.of(
            regression_table.column("A"),
            regression_table.column("B"),
            regression_table.column("C"),
        )
        with pytest.raises(IncompatibleTableError, match="Missing column"):
            adapt_validation(validation, regression_table)


@pytest.mark.xgboost
class TestLearner:
    """Tests for Learner."""

    def test_learn_without_early_stopping(self, regression_table: Table) -> None:
        learner = Learner(LearnerConfig(rounds=7, random_seed=1))
        model = learner.learn(regression_table)
        assert model is not None
        assert model.iterations == 7
        assert model.parameters["seed"] == "1"
        assert "rounds" not in model.parameters

    def test_validation_ignored_without_early_stopping(self, regression_table: Table) -> None:
        """Test a validation table is not required or used by default."""
        learner = Learner(LearnerConfig(rounds=5))
        other = Table.of(Column.numeric("Z", [1.0]), label="Z")
        model = learner.learn(regression_table, other)
        assert model is not None
        assert model.iterations == 5

    def test_auto_early_stopping(self) -> None:
        config = LearnerConfig(
            rounds=100,
            early_stopping=EarlyStopping.AUTO,
            early_stopping_rounds=5,
            random_seed=123465,
        )
        model = Learner(config).learn(separable_table())
        assert model is not None
        assert 0 < model.iterations < 100

    def test_custom_early_stopping(self) -> None:
        table = separable_table()
        data, validation = split_validation(table, seed=0)
        config = LearnerConfig(
            rounds=100,
            early_stopping=EarlyStopping.CUSTOM,
            early_stopping_rounds=5,
            random_seed=123465,
        )
        model = Learner(config).learn(data, validation)
        assert model is not None
        assert 0 < model.iterations < 100

    def test_custom_early_stopping_requires_validation(self, regression_table: Table) -> None:
        config = LearnerConfig(early_stopping=EarlyStopping.CUSTOM)
        with pytest.raises(MissingValidationSetError):
            Learner(config).learn(regression_table)

    def test_custom_early_stopping_incompatible_validation(self, regression_table: Table) -> None:
        config = LearnerConfig(early_stopping=EarlyStopping.CUSTOM)
        validation = Table.of(regression_table.column("A"), regression_table.column("Label"), label="Label")
        with pytest.raises(IncompatibleTableError):
            Learner(config).learn(regression_table, validation)

    def test_auto_early_stopping_single_row(self, regression_table: Table) -> None:
        config = LearnerConfig(early_stopping=EarlyStopping.AUTO)
        with pytest.raises(ValueError, match="too small"):
            Learner(config).learn(regression_table.rows([3]))

    def test_sentinel_aborts(self, regression_table: Table) -> None:
        model = Learner(LearnerConfig(rounds=50)).learn(regression_table, sentinel=lambda: False)
        assert model is None

    def test_apply(self, five_class_table: Table) -> None:
        learner = Learner(LearnerConfig(rounds=10, random_seed=3))
        model = learner.learn(five_class_table)
        assert model is not None

        result = learner.apply(model, five_class_table)
        assert result.prediction.height == 100
        assert set(result.scores) == {"One", "Two", "Three", "Four", "Five"}

    def test_apply_empty_table(self, boolean_table: Table) -> None:
        """Test tables without rows give an empty prediction of the label type."""
        learner = Learner(LearnerConfig(rounds=3))
        model = learner.learn(boolean_table)
        assert model is not None

        result = learner.apply(model, boolean_table.rows([]))
        assert result.prediction.height == 0
        assert result.prediction.kind == ColumnKind.CATEGORICAL
        assert result.prediction.dictionary is boolean_table.column("Label").dictionary
        assert result.scores == {}

    def test_weights(self, boolean_table: Table) -> None:
        learner = Learner(LearnerConfig(rounds=5))
        model = learner.learn(boolean_table)
        assert model is not None

        scores = learner.weights(model, boolean_table)
        assert set(scores) == {"A", "B", "C"}
        assert scores["B"] > 0.0

    def test_seeds_differ_between_runs(self, regression_table: Table) -> None:
        """Test an unseeded learner draws a fresh seed per run."""
        learner = Learner(LearnerConfig(rounds=1, random_seed=None))
        first = learner.learn(regression_table)
        second = learner.learn(regression_table)
        assert first is not None and second is not None
        assert first.parameters["seed"] != second.parameters["seed"]
