"""Pytest configuration for tabboost tests."""

from __future__ import annotations

import numpy as np
import pytest

from tabboost.table import Column, Table


def _check_xgboost() -> bool:
    """Check if xgboost is available."""
    try:
        import xgboost  # noqa: F401

        return True
    except ImportError:
        return False


# Cache availability check
_XGBOOST_AVAILABLE = _check_xgboost()


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "xgboost: tests requiring xgboost")


def pytest_collection_modifyitems(
    config: pytest.Config,
    items: list[pytest.Item],
) -> None:
    """Skip tests based on marker and available dependencies."""
    skip_xgboost = pytest.mark.skip(reason="xgboost not installed")

    for item in items:
        if "xgboost" in item.keywords and not _XGBOOST_AVAILABLE:
            item.add_marker(skip_xgboost)


@pytest.fixture
def regression_table() -> Table:
    """100 rows, three numeric features and a numeric label."""
    i = np.arange(100, dtype=np.float64)
    return Table.of(
        Column.numeric("A", i),
        Column.numeric("B", 2 * i),
        Column.numeric("C", 3 * i),
        Column.numeric("Label", 4 * i),
        label="Label",
    )


@pytest.fixture
def boolean_table() -> Table:
    """Boolean label that is easy to learn from feature B."""
    rng = np.random.default_rng(123456)
    i = np.arange(100)
    return Table.of(
        Column.numeric("A", i.astype(np.float64)),
        Column.numeric("B", (i % 2) * 5 + rng.random(100)),
        Column.numeric("C", 3.0 * i),
        Column.boolean("Label", ["False" if k % 2 == 0 else "True" for k in i], "True"),
        label="Label",
    )


@pytest.fixture
def five_class_table() -> Table:
    """Five-class label that is easy to learn from feature B."""
    rng = np.random.default_rng(123456)
    names = ["One", "Two", "Three", "Four", "Five"]
    i = np.arange(100)
    return Table.of(
        Column.numeric("A", i.astype(np.float64)),
        Column.numeric("B", (i % 5) * 10 + rng.random(100)),
        Column.numeric("C", 3.0 * i),
        Column.nominal("Label", [names[k % 5] for k in i]),
        label="Label",
    )


@pytest.fixture
def released(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    """Record the type name of every native object freed through ``release``."""
    import importlib

    import tabboost.native

    freed: list[str] = []
    release = tabboost.native.release

    def spy(resource: object) -> None:
        if resource is not None:
            freed.append(type(resource).__name__)
        release(resource)  # type: ignore[arg-type]

    # ``tabboost.importance`` the package attribute is the re-exported
    # function, which shadows the submodule; resolve modules by name.
    for name in (
        "tabboost.native",
        "tabboost.guard",
        "tabboost.training",
        "tabboost.prediction",
        "tabboost.importance",
    ):
        monkeypatch.setattr(importlib.import_module(name), "release", spy)
    return freed
