"""Serialized access to the native XGBoost library.

The native library is not safe for concurrent use through its Python
bindings, even though it parallelizes internally. Every interaction with
native objects (matrix construction, training, model loading, prediction,
scoring and disposal) must happen while holding :data:`NATIVE_LOCK`.
XGBoost's own ``nthread`` parameter is the way to use more cores.

Native objects hold memory outside the Python heap, so they are freed
explicitly with :func:`release` instead of waiting for garbage collection.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

import numpy as np
import xgboost as xgb

if TYPE_CHECKING:
    from tabboost.encoding import EncodedMatrix, TrainingMatrix

__all__: list[str] = [
    "NATIVE_LOCK",
    "load_booster",
    "prediction_matrix",
    "release",
    "training_matrix",
]

NATIVE_LOCK = threading.Lock()
"""Process-wide lock guarding all native XGBoost calls."""


def release(resource: xgb.DMatrix | xgb.Booster | None) -> None:
    """Free the native handle of a matrix or booster immediately.

    Safe to call more than once; the bindings' finalizers are idempotent.
    """
    if resource is not None:
        resource.__del__()


def training_matrix(data: TrainingMatrix) -> xgb.DMatrix:
    """Build a native matrix with label and weights. Caller must hold the lock."""
    return xgb.DMatrix(
        data.features.values,
        label=data.label,
        weight=data.weights,
        missing=np.nan,
    )


def prediction_matrix(data: EncodedMatrix) -> xgb.DMatrix:
    """Build a native matrix without label. Caller must hold the lock."""
    return xgb.DMatrix(data.values, missing=np.nan)


def load_booster(raw: bytes) -> xgb.Booster:
    """Deserialize a booster from its raw bytes. Caller must hold the lock."""
    booster = xgb.Booster()
    try:
        booster.load_model(bytearray(raw))
    except BaseException:
        release(booster)
        raise
    return booster
