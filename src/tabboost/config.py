"""Learner configuration.

This module defines the Pydantic model holding user-facing hyperparameters and
compiles it into the string map passed to XGBoost. Meta-options (rounds and
early stopping) shape the training loop and are never forwarded.
"""

from __future__ import annotations

import os
from enum import Enum

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator

__all__: list[str] = [
    "Booster",
    "EarlyStopping",
    "FeatureSelector",
    "LearnerConfig",
    "LinearUpdater",
    "META_PARAMETERS",
    "NormalizeType",
    "PARAMETER_ALIASES",
    "SampleType",
    "TreeMethod",
]


class Booster(str, Enum):
    """Boosting algorithm."""

    TREE = "tree booster"
    LINEAR = "linear booster"
    DART = "DART"


class EarlyStopping(str, Enum):
    """Early stopping mode.

    ``auto`` holds out part of the training data for validation, ``custom``
    requires a separate validation table.
    """

    NONE = "none"
    AUTO = "auto"
    CUSTOM = "custom"


class TreeMethod(str, Enum):
    """Tree construction algorithm."""

    AUTO = "auto"
    EXACT = "exact"
    APPROXIMATE = "approximate"
    HISTOGRAM = "histogram"


class SampleType(str, Enum):
    UNIFORM = "uniform"
    WEIGHTED = "weighted"


class NormalizeType(str, Enum):
    TREE = "tree"
    FOREST = "forest"


class LinearUpdater(str, Enum):
    SHOTGUN = "shotgun"
    COORD_DESCENT = "coord_descent"


class FeatureSelector(str, Enum):
    CYCLIC = "cyclic"
    SHUFFLE = "shuffle"
    RANDOM = "random"
    GREEDY = "greedy"
    THRIFTY = "thrifty"


# Display names that differ from XGBoost's parameter values
PARAMETER_ALIASES: dict[str, str] = {
    "tree booster": "gbtree",
    "linear booster": "gblinear",
    "DART": "dart",
    "approximate": "approx",
    "histogram": "hist",
}

# Options that do not correspond to a named XGBoost hyperparameter
META_PARAMETERS: frozenset[str] = frozenset(
    {"rounds", "early_stopping", "early_stopping_rounds", "expert_parameters", "n_threads", "random_seed"}
)

_TREE_PARAMETERS = ("learning_rate", "min_split_loss", "max_depth", "min_child_weight", "subsample", "tree_method")
_DART_PARAMETERS = ("sample_type", "normalize_type", "rate_drop", "skip_drop")
_LINEAR_PARAMETERS = ("updater", "feature_selector")


def _default_threads() -> int:
    return os.cpu_count() or 1


class LearnerConfig(BaseModel):
    """Hyperparameters of the XGBoost learner.

    Parameter notes:
    - rounds: maximum number of boosting rounds
    - early_stopping_rounds: ignored when early_stopping is ``none``
    - expert_parameters: free-form XGBoost parameters applied last; empty
      values are skipped
    - n_threads: forwarded as ``nthread`` since native calls are serialized
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    booster: Booster = Booster.TREE
    rounds: int = 25
    early_stopping: EarlyStopping = EarlyStopping.NONE
    early_stopping_rounds: int = 10

    # Tree and DART boosters
    learning_rate: float = 0.3
    min_split_loss: float = 0.0
    max_depth: int = 6
    min_child_weight: float = 1.0
    subsample: float = 1.0
    tree_method: TreeMethod = TreeMethod.AUTO

    # All boosters
    reg_lambda: float = Field(default=1.0, alias="lambda")
    reg_alpha: float = Field(default=0.0, alias="alpha")

    # DART booster
    sample_type: SampleType = SampleType.UNIFORM
    normalize_type: NormalizeType = NormalizeType.TREE
    rate_drop: float = 0.0
    skip_drop: float = 0.0

    # Linear booster
    updater: LinearUpdater = LinearUpdater.SHOTGUN
    feature_selector: FeatureSelector = FeatureSelector.CYCLIC
    top_k: int = 0

    expert_parameters: dict[str, str] = {}
    n_threads: int = Field(default_factory=_default_threads)
    random_seed: int | None = None

    @field_validator("rounds")
    @classmethod
    def validate_rounds(cls, v: int) -> int:
        """Validate rounds is positive."""
        if v <= 0:
            raise ValueError("rounds must be positive")
        return v

    @field_validator("early_stopping_rounds", "max_depth", "top_k")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        """Validate integer options are non-negative."""
        if v < 0:
            raise ValueError("value must be non-negative")
        return v

    @field_validator("learning_rate", "subsample", "rate_drop", "skip_drop")
    @classmethod
    def validate_fraction(cls, v: float) -> float:
        """Validate fractions lie in [0, 1]."""
        if not 0.0 <= v <= 1.0:
            raise ValueError("value must be in [0, 1]")
        return v

    @field_validator("n_threads")
    @classmethod
    def validate_n_threads(cls, v: int) -> int:
        """Validate thread count is positive."""
        if v <= 0:
            raise ValueError("n_threads must be positive")
        return v

    @property
    def effective_early_stopping_rounds(self) -> int:
        """Early stopping rounds, zero if early stopping is disabled."""
        return 0 if self.early_stopping == EarlyStopping.NONE else self.early_stopping_rounds

    def compile_parameters(self, rng: np.random.Generator | None = None) -> dict[str, str]:
        """Compile the XGBoost parameter map.

        Only parameters relevant to the selected booster are included. The seed
        is drawn from ``rng`` unless ``random_seed`` is set.
        """
        values: dict[str, object] = {"booster": self.booster.value}
        if self.booster in (Booster.TREE, Booster.DART):
            values |= {name: getattr(self, name) for name in _TREE_PARAMETERS}
        values |= {"lambda": self.reg_lambda, "alpha": self.reg_alpha}
        if self.booster == Booster.DART:
            values |= {name: getattr(self, name) for name in _DART_PARAMETERS}
        if self.booster == Booster.LINEAR:
            values |= {name: getattr(self, name) for name in _LINEAR_PARAMETERS}
            if self.feature_selector in (FeatureSelector.GREEDY, FeatureSelector.THRIFTY):
                values["top_k"] = self.top_k

        parameters = {key: _to_parameter(value) for key, value in values.items()}

        # Native calls are serialized, thus pass on the parallelism level to the algorithm.
        parameters["nthread"] = str(self.n_threads)
        parameters["verbosity"] = "0"

        if self.random_seed is not None:
            parameters["seed"] = str(self.random_seed)
        else:
            rng = rng if rng is not None else np.random.default_rng()
            parameters["seed"] = str(int(rng.integers(0, 2**32, dtype=np.uint64)))

        # Expert parameters come last to allow overriding the defaults above.
        for key, value in self.expert_parameters.items():
            if value:
                parameters[key] = value

        return parameters


def _to_parameter(value: object) -> str:
    if isinstance(value, Enum):
        value = value.value
    text = str(value)
    return PARAMETER_ALIASES.get(text, text)
