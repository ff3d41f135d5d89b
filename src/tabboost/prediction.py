"""Application of trained models and decoding of XGBoost's raw output."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from tabboost.encoding import binary_indices, encode_features
from tabboost.model import Model
from tabboost.native import NATIVE_LOCK, load_booster, prediction_matrix, release
from tabboost.table import Column, Table

logger = logging.getLogger(__name__)

__all__: list[str] = [
    "Prediction",
    "decode",
    "decode_bicategorical",
    "decode_categorical",
    "decode_regression",
    "predict",
]


@dataclass(frozen=True)
class Prediction:
    """Predicted column plus per-class confidence scores.

    ``scores`` is empty for regression models.
    """

    prediction: Column
    scores: dict[str, NDArray[np.float64]] = field(default_factory=dict)


def predict(model: Model, features: Table) -> Prediction:
    """Apply ``model`` to ``features``.

    Feature columns are matched by name against the training table; categorical
    values are looked up in the training dictionaries.

    Raises:
        ValueError: If the table is empty.
        IncompatibleTableError: If training features are missing or of another kind.
        XGBoostError: If the native library fails.
    """
    if features.height == 0:
        raise ValueError("Scoring table must not be empty")

    aligned = Table(tuple(features.adapt(model.header.features)))
    encoded = encode_features(aligned)

    with NATIVE_LOCK:
        booster = load_booster(model.booster)
        matrix = None
        try:
            matrix = prediction_matrix(encoded)
            raw = booster.predict(matrix)
        finally:
            # Do not wait for GC to free native resources.
            release(matrix)
            release(booster)

    predictions = np.asarray(raw, dtype=np.float32).reshape(encoded.height, -1)
    logger.debug("Decoding %d predictions for label %r", encoded.height, model.label_name)
    return decode(predictions, model.label)


def decode(predictions: NDArray[np.float32], label: Column) -> Prediction:
    """Decode a ``(rows, outputs)`` prediction array against the training label."""
    if not label.is_categorical:
        return decode_regression(predictions, label)
    if label.is_at_most_bicategorical:
        return decode_bicategorical(predictions, label)
    return decode_categorical(predictions, label)


def decode_regression(predictions: NDArray[np.float32], label: Column) -> Prediction:
    """Use the first output of every row as numeric prediction."""
    return Prediction(Column.numeric(label.name, predictions[:, 0]))


def decode_bicategorical(predictions: NDArray[np.float32], label: Column) -> Prediction:
    """Decode positive-class probabilities.

    Rows with a probability of at least ``0.5`` are assigned the positive
    value. The negative score is omitted if the label has no negative value.
    """
    dictionary = label.dictionary
    assert dictionary is not None
    negative, positive = binary_indices(dictionary)
    negative_value = dictionary.get(negative)
    positive_value = dictionary.get(positive)

    score = predictions[:, 0].astype(np.float64)
    codes = np.where(score < 0.5, max(negative, 0), max(positive, 0))

    scores: dict[str, NDArray[np.float64]] = {}
    # There is no negative value if there is only one class.
    if negative_value is not None:
        scores[negative_value] = 1.0 - score
    if positive_value is not None:
        scores[positive_value] = score

    return Prediction(Column.from_codes(label.name, codes, dictionary), scores)


def decode_categorical(predictions: NDArray[np.float32], label: Column) -> Prediction:
    """Decode per-class scores by arg max.

    Output slot ``k`` belongs to the ``k``-th realized dictionary value. Ties
    are resolved in favour of the lowest slot.
    """
    dictionary = label.dictionary
    assert dictionary is not None
    codes_by_slot = np.array([code for code, _ in dictionary.realized()], dtype=np.int32)
    n_outputs = min(predictions.shape[1], len(codes_by_slot))

    winners = np.argmax(predictions[:, :n_outputs], axis=1)
    codes = codes_by_slot[winners]

    scores = {
        dictionary.get(int(codes_by_slot[slot])): predictions[:, slot].astype(np.float64)
        for slot in range(n_outputs)
    }
    return Prediction(Column.from_codes(label.name, codes, dictionary), scores)  # type: ignore[arg-type]
