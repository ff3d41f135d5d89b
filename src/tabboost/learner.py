"""High-level learner combining configuration, validation handling and training."""

from __future__ import annotations

import logging

import numpy as np
from sklearn.model_selection import train_test_split

from tabboost.config import EarlyStopping, LearnerConfig
from tabboost.errors import IncompatibleTableError, MissingValidationSetError
from tabboost.guard import Guard
from tabboost.importance import importance
from tabboost.model import Model
from tabboost.prediction import Prediction, predict
from tabboost.table import Table
from tabboost.training import train

logger = logging.getLogger(__name__)

__all__: list[str] = ["AUTO_SPLIT_RATIO", "Learner", "adapt_validation", "split_validation"]

# Share of rows kept for training when early stopping holds out data automatically.
AUTO_SPLIT_RATIO = 0.7


def split_validation(data: Table, seed: int = 0) -> tuple[Table, Table]:
    """Split ``data`` into training and validation tables.

    The split is stratified by a categorical label where every class has
    enough rows; otherwise rows are shuffled.

    Raises:
        ValueError: If the table has fewer than two rows.
    """
    if data.height < 2:
        raise ValueError("Training table too small for automatic validation split")
    indices = np.arange(data.height)
    label = data.label()
    stratify = label.data if label is not None and label.is_categorical else None
    try:
        train_idx, valid_idx = train_test_split(
            indices, train_size=AUTO_SPLIT_RATIO, random_state=seed, stratify=stratify
        )
    except ValueError:
        if stratify is None:
            raise
        logger.debug("Stratified split not possible, falling back to shuffled split")
        train_idx, valid_idx = train_test_split(indices, train_size=AUTO_SPLIT_RATIO, random_state=seed)
    return data.rows(np.sort(train_idx)), data.rows(np.sort(valid_idx))


def adapt_validation(validation: Table, data: Table) -> Table:
    """Reorder ``validation`` to the columns of ``data`` and align dictionaries.

    Raises:
        IncompatibleTableError: If the regular columns or the label differ.
    """
    expected = data.features()
    names = {c.name for c in validation.features()}
    if names != {c.name for c in expected}:
        raise IncompatibleTableError("Validation table must have the same columns as the training table")

    reference = list(expected)
    for special in (data.label(), data.weight()):
        if special is not None:
            reference.append(special)
    columns = validation.adapt(reference)
    return Table(tuple(columns), dict(data.roles))


class Learner:
    """XGBoost learner configured by a :class:`LearnerConfig`.

    Example:
        >>> learner = Learner(LearnerConfig(rounds=10))  # doctest: +SKIP
        >>> model = learner.learn(table)  # doctest: +SKIP
        >>> learner.apply(model, table).scores  # doctest: +SKIP
    """

    def __init__(self, config: LearnerConfig | None = None) -> None:
        self.config = config or LearnerConfig()
        self._rng = np.random.default_rng(self.config.random_seed)

    def learn(
        self,
        data: Table,
        validation: Table | None = None,
        sentinel: Guard | None = None,
    ) -> Model | None:
        """Train a model, handling the configured early stopping mode.

        Returns:
            The trained model, or ``None`` if ``sentinel`` aborted training.

        Raises:
            MissingValidationSetError: If custom early stopping lacks a validation table.
            IncompatibleTableError: If the validation table does not match ``data``.
        """
        config = self.config
        parameters = config.compile_parameters(self._rng)

        match config.early_stopping:
            case EarlyStopping.AUTO:
                data, validation = split_validation(data, seed=int(parameters["seed"]) % 2**32)
            case EarlyStopping.CUSTOM:
                if validation is None:
                    raise MissingValidationSetError("Custom early stopping requires a validation table")
                validation = adapt_validation(validation, data)
            case _:
                validation = None

        return train(
            data,
            validation,
            parameters,
            config.rounds,
            config.effective_early_stopping_rounds,
            sentinel,
        )

    def apply(self, model: Model, features: Table) -> Prediction:
        """Predict ``features``; tables without rows yield an empty prediction."""
        if features.height == 0:
            return Prediction(model.empty_prediction())
        return predict(model, features)

    def weights(self, model: Model, table: Table) -> dict[str, float]:
        """Feature importance of ``model`` for the features of ``table``."""
        return importance(model, table)
