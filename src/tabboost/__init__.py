"""XGBoost on typed tables.

Converts tables mixing numeric, categorical and missing values into XGBoost's
matrix format, trains boosters under a process-wide native lock with
cooperative cancellation, and decodes predictions against the label
dictionary.

Example:
    >>> from tabboost import Learner, LearnerConfig, Table
    >>> table = Table.from_frame(df, label="target")  # doctest: +SKIP
    >>> model = Learner(LearnerConfig(rounds=10)).learn(table)  # doctest: +SKIP
"""

from tabboost.config import Booster, EarlyStopping, LearnerConfig, TreeMethod
from tabboost.encoding import (
    MAX_ARRAY_SIZE,
    EncodedMatrix,
    TrainingMatrix,
    encode_features,
    encode_training,
    select_objective,
)
from tabboost.errors import (
    ConversionError,
    IncompatibleTableError,
    MissingValidationSetError,
    UsageBlockedError,
)
from tabboost.guard import GuardCallback, GuardedMatrix
from tabboost.importance import importance
from tabboost.learner import Learner
from tabboost.model import Model, TrainingHeader
from tabboost.native import NATIVE_LOCK
from tabboost.prediction import Prediction, predict
from tabboost.report import render_model
from tabboost.table import Column, ColumnKind, ColumnRole, Dictionary, Table
from tabboost.training import train

__all__ = [
    # Main API
    "train",
    "predict",
    "importance",
    "Learner",
    # Configuration
    "Booster",
    "EarlyStopping",
    "LearnerConfig",
    "TreeMethod",
    # Tables
    "Column",
    "ColumnKind",
    "ColumnRole",
    "Dictionary",
    "Table",
    # Encoding
    "MAX_ARRAY_SIZE",
    "EncodedMatrix",
    "TrainingMatrix",
    "encode_features",
    "encode_training",
    "select_objective",
    # Native access
    "NATIVE_LOCK",
    "GuardCallback",
    "GuardedMatrix",
    # Results
    "Model",
    "Prediction",
    "TrainingHeader",
    "render_model",
    # Errors
    "ConversionError",
    "IncompatibleTableError",
    "MissingValidationSetError",
    "UsageBlockedError",
]

__version__ = "0.1.0"
