"""Conversion of typed tables into XGBoost's flat float matrices.

XGBoost supports missing values but has no notion of dictionary-backed
categorical columns. Columns are therefore encoded as follows:

- Numeric columns occupy one slot; missing values stay NaN.
- Categorical columns with at most two realized values occupy one slot with
  ``0.0`` for the negative and ``1.0`` for the positive value. Boolean
  dictionaries declare both values; otherwise the highest realized code is
  the positive value and the lowest realized code below it the negative one.
  Everything else, including missing values, stays NaN.
- Categorical columns with more than two realized values occupy one slot per
  realized value. The slot of the row's value is set to ``1.0`` and all other
  slots stay NaN, i.e. the features are unary rather than binary.

Slots are laid out in table column order. Columns carrying a role are never
encoded as features.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, MutableMapping, Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

from tabboost.errors import ConversionError
from tabboost.table import Column, ColumnKind, Dictionary, Table

logger = logging.getLogger(__name__)

__all__: list[str] = [
    "MAX_ARRAY_SIZE",
    "EncodedMatrix",
    "TrainingMatrix",
    "binary_indices",
    "compact_index_map",
    "encode_features",
    "encode_label",
    "encode_training",
    "encode_weights",
    "encoded_width",
    "select_objective",
]

# Conservative bound on the number of values a single native array may hold.
MAX_ARRAY_SIZE = 2**31 - 1 - 8


@dataclass(frozen=True)
class EncodedMatrix:
    """Row-major ``float32`` feature matrix plus the source column of every slot."""

    values: NDArray[np.float32]
    slots: tuple[str, ...]

    @property
    def height(self) -> int:
        return int(self.values.shape[0])

    @property
    def width(self) -> int:
        return int(self.values.shape[1])


@dataclass(frozen=True)
class TrainingMatrix:
    """Encoded features with label and optional row weights."""

    features: EncodedMatrix
    label: NDArray[np.float32]
    weights: NDArray[np.float32] | None = None

    @property
    def height(self) -> int:
        return self.features.height


# =============================================================================
# Index helpers
# =============================================================================


def binary_indices(dictionary: Dictionary) -> tuple[int, int]:
    """Return the ``(negative, positive)`` codes of an at most bicategorical dictionary.

    For plain dictionaries the positive code is the highest *realized* code,
    not the maximal allocated one, so a trailing hole left by filtering never
    becomes the positive class. Codes that do not exist are reported as ``-1``.
    """
    if dictionary.is_boolean:
        negative = dictionary.negative_index if dictionary.negative_index is not None else -1
        positive = dictionary.positive_index if dictionary.positive_index is not None else -1
        return negative, positive

    codes = [code for code, _ in dictionary.realized()]
    if not codes:
        return -1, -1
    positive = codes[-1]
    negative = codes[0] if len(codes) > 1 else -1
    return negative, positive


def compact_index_map(dictionary: Dictionary) -> NDArray[np.intp]:
    """Map every code to its dense index among realized codes.

    Holes and the missing code map to ``-1``.
    """
    index_map = np.full(dictionary.maximal_index + 1, -1, dtype=np.intp)
    for slot, (code, _) in enumerate(dictionary.realized()):
        index_map[code] = slot
    return index_map


def _column_width(column: Column) -> int:
    if column.kind == ColumnKind.NUMERIC or column.is_at_most_bicategorical:
        return 1
    assert column.dictionary is not None
    return column.dictionary.size


def encoded_width(columns: Sequence[Column]) -> int:
    """Number of matrix slots required to encode the given feature columns."""
    return sum(_column_width(c) for c in columns)


# =============================================================================
# Column readers
# =============================================================================


def _read_numeric(column: Column, out: NDArray[np.float32]) -> None:
    out[:] = column.data


def _read_bicategorical(column: Column, out: NDArray[np.float32]) -> None:
    assert column.dictionary is not None
    negative, positive = binary_indices(column.dictionary)
    codes = column.data
    if negative > 0:
        out[codes == negative] = 0.0
    if positive > 0:
        out[codes == positive] = 1.0


def _read_categorical(column: Column, out: NDArray[np.float32]) -> None:
    assert column.dictionary is not None
    if column.dictionary.size == 0:
        return
    index_map = compact_index_map(column.dictionary)
    slots = index_map[column.data]
    rows = np.flatnonzero(slots >= 0)
    out[rows, slots[rows]] = 1.0


# =============================================================================
# Encoders
# =============================================================================


def encode_features(table: Table) -> EncodedMatrix:
    """Encode all feature columns of ``table``.

    Raises:
        ValueError: If the table has no feature columns.
        ConversionError: If the encoded matrix would exceed :data:`MAX_ARRAY_SIZE`.
    """
    features = table.features()
    if not features:
        raise ValueError("Data table does not contain any feature")

    width = encoded_width(features)
    height = table.height
    if width * height > MAX_ARRAY_SIZE:
        raise ConversionError("Size of encoded data set exceeds runtime limit")

    values = np.full((height, width), np.nan, dtype=np.float32)
    slots: list[str] = []
    x = 0
    for column in features:
        step = _column_width(column)
        if column.kind == ColumnKind.NUMERIC:
            _read_numeric(column, values[:, x])
        elif column.is_at_most_bicategorical:
            _read_bicategorical(column, values[:, x])
        else:
            _read_categorical(column, values[:, x : x + step])
        slots.extend([column.name] * step)
        x += step

    logger.debug("Encoded %d feature columns into a %dx%d matrix", len(features), height, width)
    return EncodedMatrix(values, tuple(slots))


def encode_label(table: Table) -> NDArray[np.float32]:
    """Encode the label column as XGBoost targets.

    Numeric labels are passed through. At most bicategorical labels become
    ``0``/``1`` (rows matching neither value count as ``0``). Other
    categorical labels become dense class indices starting at ``0``.

    Raises:
        ValueError: If the table has no label column.
    """
    column = table.label()
    if column is None:
        raise ValueError("Input table has no label")

    if column.kind == ColumnKind.NUMERIC:
        return column.data.astype(np.float32)

    assert column.dictionary is not None
    label = np.zeros(column.height, dtype=np.float32)
    if column.is_at_most_bicategorical:
        _, positive = binary_indices(column.dictionary)
        if positive > 0:
            label[column.data == positive] = 1.0
    else:
        label[:] = compact_index_map(column.dictionary)[column.data]
    return label


def encode_weights(table: Table) -> NDArray[np.float32] | None:
    """Encode the optional weight column."""
    column = table.weight()
    if column is None:
        return None
    if column.kind != ColumnKind.NUMERIC:
        raise ValueError(f"Weight column {column.name!r} must be numeric")
    return column.data.astype(np.float32)


def encode_training(table: Table) -> TrainingMatrix:
    """Encode features, label and weights of a training table."""
    features = encode_features(table)
    weights = encode_weights(table)
    label = encode_label(table)
    return TrainingMatrix(features=features, label=label, weights=weights)


def select_objective(table: Table, parameters: Mapping[str, Any]) -> dict[str, str]:
    """Return a copy of ``parameters`` with a default objective for the label.

    An explicitly configured objective is never replaced.
    """
    resolved = {str(k): str(v) for k, v in parameters.items()}
    if "objective" in resolved:
        return resolved

    column = table.label()
    if column is None:
        raise ValueError("Input table has no label")

    _put_objective(column, resolved)
    logger.debug("Selected default objective %s for label %r", resolved["objective"], column.name)
    return resolved


def _put_objective(column: Column, parameters: MutableMapping[str, str]) -> None:
    if column.kind == ColumnKind.NUMERIC:
        parameters["objective"] = "reg:squarederror"
    elif column.is_at_most_bicategorical:
        parameters["objective"] = "binary:logistic"
    else:
        assert column.dictionary is not None
        parameters["objective"] = "multi:softprob"
        parameters["num_class"] = str(column.dictionary.size)
