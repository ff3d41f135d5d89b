"""Trained model record.

A :class:`Model` holds no native resources: the booster is kept in its
serialized form and only deserialized for the duration of a native call.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, field_validator

from tabboost.table import Column, Table

__all__: list[str] = [
    "Model",
    "TrainingHeader",
]


class TrainingHeader(BaseModel):
    """Schema of the table a model was trained on."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    label: Column
    features: tuple[Column, ...]
    slots: tuple[str, ...]

    @classmethod
    def from_table(cls, table: Table, slots: tuple[str, ...]) -> TrainingHeader:
        """Capture label and feature columns of ``table`` without their rows."""
        label = table.label()
        if label is None:
            raise ValueError("Input table has no label")
        return cls(
            label=label.take([]),
            features=tuple(c.take([]) for c in table.features()),
            slots=slots,
        )

    @property
    def feature_names(self) -> list[str]:
        return [c.name for c in self.features]


class Model(BaseModel):
    """Immutable wrapper of a serialized XGBoost booster.

    Attributes:
        parameters: Hyperparameters the booster was trained with.
        iterations: Number of completed boosting rounds.
        booster: Serialized booster, opaque to this package.
        header: Label and feature schema of the training table.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    parameters: Mapping[str, str]
    iterations: int
    booster: bytes
    header: TrainingHeader

    @field_validator("parameters")
    @classmethod
    def freeze_parameters(cls, v: Mapping[str, str]) -> Mapping[str, str]:
        """Store a read-only copy of the parameters."""
        return MappingProxyType(dict(v))

    @field_validator("iterations")
    @classmethod
    def validate_iterations(cls, v: int) -> int:
        """Validate iteration count is non-negative."""
        if v < 0:
            raise ValueError("iterations must be non-negative")
        return v

    @property
    def label(self) -> Column:
        """Label column of the training table (no rows)."""
        return self.header.label

    @property
    def label_name(self) -> str:
        return self.header.label.name

    @property
    def name(self) -> str:
        return "XGBoost"

    def empty_prediction(self) -> Column:
        """Prediction column for a table without rows."""
        return self.header.label

    def describe(self) -> str:
        """Plain-text summary of the model."""
        lines = [f"XGBoost prediction model for label '{self.label_name}'.", "", "Training hyper parameters: ", ""]
        lines.extend(f"{key} = {value}" for key, value in self.parameters.items())
        lines.extend(["", f"Boosting iterations: {self.iterations}"])
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.describe()
