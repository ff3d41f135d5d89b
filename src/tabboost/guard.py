"""Cancellable access to native training matrices.

XGBoost offers no hook to abort a running boosting loop. Instead, the training
matrix is wrapped in a :class:`GuardedMatrix` whose handle can only be obtained
while its guard returns ``True``. :class:`GuardCallback` accesses the handle
before every boosting round, so a guard returning ``False`` stops training at
the next round with a :class:`~tabboost.errors.UsageBlockedError`.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import xgboost as xgb
from xgboost.callback import TrainingCallback

from tabboost.errors import UsageBlockedError
from tabboost.native import release

__all__: list[str] = [
    "Guard",
    "GuardCallback",
    "GuardedMatrix",
]

Guard = Callable[[], bool]
"""Cancellation predicate: ``True`` to continue, ``False`` to abort."""


class GuardedMatrix:
    """Owns one native matrix and gates access to it through a guard."""

    def __init__(self, matrix: xgb.DMatrix, guard: Guard | None = None) -> None:
        self._matrix: xgb.DMatrix | None = matrix
        self._guard = guard

    def set_guard(self, guard: Guard | None) -> None:
        """Install or replace the guard. ``None`` disables blocking."""
        self._guard = guard

    def access(self) -> xgb.DMatrix:
        """Return the native matrix.

        Raises:
            UsageBlockedError: If the guard is set and returns ``False``.
        """
        if self._matrix is None:
            raise ValueError("Matrix has already been released")
        if self._guard is None or self._guard():
            return self._matrix
        raise UsageBlockedError()

    @property
    def released(self) -> bool:
        return self._matrix is None

    def release(self) -> None:
        """Free the native matrix. Idempotent."""
        matrix, self._matrix = self._matrix, None
        release(matrix)

    def __enter__(self) -> GuardedMatrix:
        return self

    def __exit__(self, *exc: object) -> None:
        self.release()


class GuardCallback(TrainingCallback):
    """Checks the guard of a training matrix before every boosting round.

    Keeps a reference to the booster under training so it can be released
    when the loop is aborted.
    """

    def __init__(self, matrix: GuardedMatrix) -> None:
        super().__init__()
        self.matrix = matrix
        self.booster: xgb.Booster | None = None

    def before_training(self, model: Any) -> Any:
        self.booster = model
        return model

    def before_iteration(self, model: Any, epoch: int, evals_log: Any) -> bool:
        self.matrix.access()
        return False
