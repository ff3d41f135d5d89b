"""Tests for guarded native matrices."""

from __future__ import annotations

import numpy as np
import pytest

from tabboost.errors import UsageBlockedError
from tabboost.guard import GuardCallback, GuardedMatrix

pytestmark = pytest.mark.xgboost


def make_matrix() -> GuardedMatrix:
    import xgboost as xgb

    x = np.arange(12, dtype=np.float32).reshape(4, 3)
    return GuardedMatrix(xgb.DMatrix(x, label=np.arange(4, dtype=np.float32)))


class TestGuardedMatrix:
    """Tests for GuardedMatrix."""

    def test_access_without_guard(self) -> None:
        """Test access is granted when no guard is set."""
        with make_matrix() as matrix:
            assert matrix.access().num_row() == 4

    def test_access_with_passing_guard(self) -> None:
        """Test access is granted while the guard returns True."""
        with make_matrix() as matrix:
            matrix.set_guard(lambda: True)
            assert matrix.access().num_col() == 3

    def test_access_blocked(self) -> None:
        """Test a failing guard blocks access."""
        calls: list[int] = []

        def guard() -> bool:
            calls.append(1)
            return False

        with make_matrix() as matrix:
            matrix.set_guard(guard)
            with pytest.raises(UsageBlockedError, match="blocked"):
                matrix.access()
            assert len(calls) == 1

    def test_guard_can_be_removed(self) -> None:
        """Test setting the guard to None unblocks access."""
        with make_matrix() as matrix:
            matrix.set_guard(lambda: False)
            matrix.set_guard(None)
            assert matrix.access() is not None

    def test_blocked_error_is_not_native_error(self) -> None:
        """Test the blocked signal is distinct from native errors."""
        from xgboost.core import XGBoostError

        assert not issubclass(UsageBlockedError, XGBoostError)

    def test_release_is_idempotent(self) -> None:
        """Test releasing frees the matrix once and blocks later access."""
        matrix = make_matrix()
        matrix.release()
        matrix.release()
        assert matrix.released
        with pytest.raises(ValueError, match="released"):
            matrix.access()


class TestGuardCallback:
    """Tests for GuardCallback."""

    def test_checks_guard_before_iteration(self) -> None:
        """Test the callback raises once the guard fails."""
        state = {"allow": True}
        with make_matrix() as matrix:
            matrix.set_guard(lambda: state["allow"])
            callback = GuardCallback(matrix)
            assert callback.before_iteration(None, 0, {}) is False
            state["allow"] = False
            with pytest.raises(UsageBlockedError):
                callback.before_iteration(None, 1, {})

    def test_remembers_booster(self) -> None:
        """Test the booster under training is kept for release."""
        with make_matrix() as matrix:
            callback = GuardCallback(matrix)
            marker = object()
            assert callback.before_training(marker) is marker
            assert callback.booster is marker
