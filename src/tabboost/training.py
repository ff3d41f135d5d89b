"""Training of XGBoost models on typed tables."""

from __future__ import annotations

import logging
from collections.abc import Mapping

import xgboost as xgb

from tabboost.encoding import encode_training, select_objective
from tabboost.errors import UsageBlockedError
from tabboost.guard import Guard, GuardCallback, GuardedMatrix
from tabboost.model import Model, TrainingHeader
from tabboost.native import NATIVE_LOCK, release, training_matrix
from tabboost.table import Table

logger = logging.getLogger(__name__)

__all__: list[str] = ["train"]


def train(
    data: Table,
    validation: Table | None,
    parameters: Mapping[str, str],
    iterations: int,
    early_stopping: int,
    sentinel: Guard | None = None,
) -> Model | None:
    """Train a new model on ``data``.

    Args:
        data: Training table with a label column and at least one feature.
        validation: Optional table watched for early stopping.
        parameters: XGBoost hyperparameters, passed through verbatim. A default
            objective is added when none is given.
        iterations: Maximum number of boosting rounds.
        early_stopping: Rounds without improvement on ``validation`` after
            which boosting stops. ``0`` disables early stopping.
        sentinel: Cancellation predicate polled before every native access to
            the training matrix. Returning ``False`` aborts training.

    Returns:
        The trained model, or ``None`` if training was aborted by ``sentinel``.

    Raises:
        ValueError: If the table is empty, has no label or no features.
        ConversionError: If the encoded data exceeds the native size limit.
        XGBoostError: If the native library fails.
    """
    if data.height == 0:
        raise ValueError("Training table must not be empty")

    training = encode_training(data)
    watched = encode_training(validation) if validation is not None else None
    resolved = select_objective(data, parameters)

    logger.info(
        "Training XGBoost on %d rows x %d slots for up to %d rounds (objective=%s)",
        training.height,
        training.features.width,
        iterations,
        resolved["objective"],
    )

    with NATIVE_LOCK:
        matrix = GuardedMatrix(training_matrix(training))
        evals: GuardedMatrix | None = None
        callback = GuardCallback(matrix)
        booster: xgb.Booster | None = None
        try:
            if watched is not None:
                evals = GuardedMatrix(training_matrix(watched))
            matrix.set_guard(sentinel)
            booster = xgb.train(
                dict(resolved),
                matrix.access(),
                num_boost_round=iterations,
                evals=[(evals.access(), "validation")] if evals is not None else None,
                early_stopping_rounds=early_stopping if evals is not None and early_stopping > 0 else None,
                verbose_eval=False,
                callbacks=[callback],
            )
            completed = booster.num_boosted_rounds()
            raw = bytes(booster.save_raw(raw_format="ubj"))
        except UsageBlockedError:
            logger.info("XGBoost training aborted")
            return None
        finally:
            # Booster is no longer used after this point.
            release(booster if booster is not None else callback.booster)
            matrix.release()
            if evals is not None:
                evals.release()

    logger.info("XGBoost training finished after %d rounds", completed)
    return Model(
        parameters=resolved,
        iterations=completed,
        booster=raw,
        header=TrainingHeader.from_table(data, training.features.slots),
    )
