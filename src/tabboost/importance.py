"""Feature importance of trained models."""

from __future__ import annotations

from collections import defaultdict

from tabboost.model import Model
from tabboost.native import NATIVE_LOCK, load_booster, release
from tabboost.table import Table

__all__: list[str] = ["IMPORTANCE_TYPE", "importance"]

IMPORTANCE_TYPE = "total_gain"


def importance(model: Model, table: Table) -> dict[str, float]:
    """Return the total gain of every feature column of ``table``.

    Scores of the one-hot slots of a categorical column are summed. Features
    the booster never split on score ``0.0``.

    Raises:
        XGBoostError: If the native library fails, e.g. for linear boosters.
    """
    with NATIVE_LOCK:
        booster = load_booster(model.booster)
        try:
            raw = booster.get_score(importance_type=IMPORTANCE_TYPE)
        finally:
            release(booster)

    slots = model.header.slots
    scores: defaultdict[str, float] = defaultdict(float)
    for key, value in raw.items():
        # Boosters trained without feature names report slots as f0, f1, ...
        index = int(key[1:])
        if 0 <= index < len(slots):
            scores[slots[index]] += float(value)  # type: ignore[arg-type]

    return {column.name: scores.get(column.name, 0.0) for column in table.features()}
