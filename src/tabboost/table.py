"""Typed table model consumed by the encoder.

Tables are ordered collections of named columns. Numeric columns store
``float64`` values with NaN as missing. Categorical columns store ``int32``
codes into a :class:`Dictionary`; code ``0`` is reserved for missing values.

Types:
    - Dictionary: code to label mapping, optionally boolean, possibly sparse
    - Column: a numeric or categorical column
    - ColumnRole: LABEL or WEIGHT metadata
    - Table: ordered columns with roles and a shared height
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

import numpy as np
from numpy.typing import NDArray

from tabboost.errors import IncompatibleTableError

if TYPE_CHECKING:
    import pandas as pd

__all__: list[str] = [
    "Column",
    "ColumnKind",
    "ColumnRole",
    "Dictionary",
    "Table",
]


class ColumnKind(str, Enum):
    """Value category of a column."""

    NUMERIC = "numeric"
    CATEGORICAL = "categorical"


class ColumnRole(str, Enum):
    """Special role of a column. Columns with a role are never features."""

    LABEL = "label"
    WEIGHT = "weight"


# =============================================================================
# Dictionary
# =============================================================================


@dataclass(frozen=True, eq=False)
class Dictionary:
    """Mapping from integer codes ``>= 1`` to string labels.

    ``values[i]`` is the label of code ``i + 1``. ``None`` entries are holes:
    allocated codes without a label. Dictionaries compare by identity so that
    columns sharing a dictionary can be recognized as such.
    """

    values: tuple[str | None, ...]
    positive_index: int | None = None
    negative_index: int | None = None
    boolean: bool = False

    @classmethod
    def of(cls, values: Sequence[str | None]) -> Dictionary:
        """Create a plain dictionary from labels in code order."""
        return cls(tuple(values))

    @classmethod
    def boolean_of(cls, values: Sequence[str | None], positive: str | None) -> Dictionary:
        """Create a boolean dictionary with the given positive label.

        The negative label is the other realized label, if any.
        """
        values = tuple(values)
        realized = [v for v in values if v is not None]
        if len(realized) > 2:
            raise ValueError("Boolean dictionaries hold at most two values")
        if positive is not None and positive not in realized:
            raise ValueError(f"Positive value {positive!r} is not part of the dictionary")

        positive_index = values.index(positive) + 1 if positive is not None else None
        negative_index = None
        for code, value in enumerate(values, start=1):
            if value is not None and code != positive_index:
                negative_index = code
        return cls(values, positive_index=positive_index, negative_index=negative_index, boolean=True)

    @property
    def maximal_index(self) -> int:
        """Largest allocated code."""
        return len(self.values)

    @property
    def size(self) -> int:
        """Number of realized (non-null) codes."""
        return sum(1 for v in self.values if v is not None)

    @property
    def is_boolean(self) -> bool:
        return self.boolean

    def get(self, code: int) -> str | None:
        """Return the label for a code, ``None`` for missing or holes."""
        if 1 <= code <= len(self.values):
            return self.values[code - 1]
        return None

    def realized(self) -> Iterator[tuple[int, str]]:
        """Iterate over ``(code, label)`` pairs in ascending code order."""
        for code, value in enumerate(self.values, start=1):
            if value is not None:
                yield code, value

    def inverse(self) -> dict[str, int]:
        """Map labels back to their codes."""
        return {value: code for code, value in self.realized()}

    def __len__(self) -> int:
        return self.size

    def __repr__(self) -> str:
        flag = ", boolean" if self.boolean else ""
        return f"Dictionary({list(self.values)!r}{flag})"


# =============================================================================
# Column
# =============================================================================


@dataclass(frozen=True, eq=False)
class Column:
    """A named numeric or categorical column."""

    name: str
    kind: ColumnKind
    data: NDArray[Any]
    dictionary: Dictionary | None = None

    def __post_init__(self) -> None:
        if self.kind == ColumnKind.CATEGORICAL and self.dictionary is None:
            raise ValueError(f"Categorical column {self.name!r} requires a dictionary")

    @classmethod
    def numeric(cls, name: str, values: Sequence[float] | NDArray[Any]) -> Column:
        """Create a numeric column; NaN marks missing values."""
        return cls(name, ColumnKind.NUMERIC, np.asarray(values, dtype=np.float64))

    @classmethod
    def from_codes(cls, name: str, codes: Sequence[int] | NDArray[Any], dictionary: Dictionary) -> Column:
        """Create a categorical column from raw codes into ``dictionary``."""
        return cls(name, ColumnKind.CATEGORICAL, np.asarray(codes, dtype=np.int32), dictionary)

    @classmethod
    def nominal(cls, name: str, values: Sequence[str | None]) -> Column:
        """Create a categorical column, assigning codes in order of first appearance."""
        labels: list[str] = []
        lookup: dict[str, int] = {}
        codes = np.zeros(len(values), dtype=np.int32)
        for i, value in enumerate(values):
            if value is None:
                continue
            code = lookup.get(value)
            if code is None:
                labels.append(value)
                code = lookup[value] = len(labels)
            codes[i] = code
        return cls(name, ColumnKind.CATEGORICAL, codes, Dictionary.of(labels))

    @classmethod
    def boolean(cls, name: str, values: Sequence[str | None], positive: str) -> Column:
        """Create a two-valued categorical column with a boolean dictionary."""
        plain = cls.nominal(name, values)
        assert plain.dictionary is not None
        dictionary = Dictionary.boolean_of(plain.dictionary.values, positive if positive in values else None)
        return cls(name, ColumnKind.CATEGORICAL, plain.data, dictionary)

    @property
    def height(self) -> int:
        return len(self.data)

    @property
    def is_categorical(self) -> bool:
        return self.kind == ColumnKind.CATEGORICAL

    @property
    def is_at_most_bicategorical(self) -> bool:
        """Check if the column is categorical with at most two realized values."""
        return self.dictionary is not None and self.dictionary.size <= 2

    def take(self, indices: Sequence[int] | NDArray[Any]) -> Column:
        """Select rows by position, keeping the dictionary."""
        return Column(self.name, self.kind, self.data[np.asarray(indices, dtype=np.intp)], self.dictionary)

    def remap(self, dictionary: Dictionary) -> Column:
        """Re-express categorical codes in terms of another dictionary.

        Labels unknown to ``dictionary`` become missing.
        """
        if self.dictionary is None:
            raise TypeError(f"Column {self.name!r} is not categorical")
        if self.dictionary is dictionary:
            return self
        inverse = dictionary.inverse()
        mapping = np.zeros(self.dictionary.maximal_index + 1, dtype=np.int32)
        for code, value in self.dictionary.realized():
            mapping[code] = inverse.get(value, 0)
        return Column(self.name, self.kind, mapping[self.data], dictionary)

    def to_list(self) -> list[Any]:
        """Return values as Python objects (labels for categorical columns)."""
        if self.dictionary is None:
            return self.data.tolist()
        return [self.dictionary.get(int(code)) for code in self.data]

    def __repr__(self) -> str:
        return f"Column({self.name!r}, {self.kind.value}, height={self.height})"


# =============================================================================
# Table
# =============================================================================


@dataclass(frozen=True)
class Table:
    """Ordered columns sharing one height, with optional column roles."""

    columns: tuple[Column, ...]
    roles: Mapping[str, ColumnRole] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "columns", tuple(self.columns))
        object.__setattr__(self, "roles", dict(self.roles))
        names = [c.name for c in self.columns]
        if len(set(names)) != len(names):
            raise ValueError("Column names must be unique")
        heights = {c.height for c in self.columns}
        if len(heights) > 1:
            raise ValueError(f"Columns have differing heights: {sorted(heights)}")
        for name, role in self.roles.items():
            if name not in names:
                raise ValueError(f"Role {role.value} assigned to unknown column {name!r}")
        for role in ColumnRole:
            if sum(1 for r in self.roles.values() if r == role) > 1:
                raise ValueError(f"Table has more than one {role.value} column")

    @classmethod
    def of(
        cls,
        *columns: Column,
        label: str | None = None,
        weight: str | None = None,
    ) -> Table:
        """Build a table from columns, assigning label and weight roles by name."""
        roles: dict[str, ColumnRole] = {}
        if label is not None:
            roles[label] = ColumnRole.LABEL
        if weight is not None:
            roles[weight] = ColumnRole.WEIGHT
        return cls(columns, roles)

    @classmethod
    def from_frame(
        cls,
        frame: pd.DataFrame,
        *,
        label: str | None = None,
        weight: str | None = None,
    ) -> Table:
        """Convert a pandas DataFrame.

        Numeric dtypes become numeric columns. ``category`` dtypes keep their
        category order as dictionary. ``bool`` dtypes become boolean
        dictionaries with ``"True"`` as positive value. Any other dtype is
        converted to strings and treated as nominal.
        """
        import pandas as pd

        columns: list[Column] = []
        for name in frame.columns:
            series = frame[name]
            key = str(name)
            if pd.api.types.is_bool_dtype(series.dtype):
                values = [None if pd.isna(v) else str(bool(v)) for v in series]
                columns.append(Column.boolean(key, values, "True"))
            elif isinstance(series.dtype, pd.CategoricalDtype):
                categories = [str(c) for c in series.cat.categories]
                codes = series.cat.codes.to_numpy(dtype=np.int32) + 1
                columns.append(Column.from_codes(key, codes, Dictionary.of(categories)))
            elif pd.api.types.is_numeric_dtype(series.dtype):
                columns.append(Column.numeric(key, series.to_numpy(dtype=np.float64, na_value=np.nan)))
            else:
                columns.append(Column.nominal(key, [None if pd.isna(v) else str(v) for v in series]))
        return cls.of(*columns, label=label, weight=weight)

    @property
    def height(self) -> int:
        return self.columns[0].height if self.columns else 0

    @property
    def width(self) -> int:
        return len(self.columns)

    @property
    def labels(self) -> list[str]:
        """Column names in table order."""
        return [c.name for c in self.columns]

    def column(self, name: str) -> Column:
        for column in self.columns:
            if column.name == name:
                return column
        raise KeyError(f"Unknown column: {name}")

    def with_role(self, role: ColumnRole) -> list[Column]:
        """Columns carrying the given role, in table order."""
        return [c for c in self.columns if self.roles.get(c.name) == role]

    def features(self) -> list[Column]:
        """Columns without any role, in table order."""
        return [c for c in self.columns if c.name not in self.roles]

    def label(self) -> Column | None:
        found = self.with_role(ColumnRole.LABEL)
        return found[0] if found else None

    def weight(self) -> Column | None:
        found = self.with_role(ColumnRole.WEIGHT)
        return found[0] if found else None

    def rows(self, indices: Sequence[int] | NDArray[Any]) -> Table:
        """Select rows by position. Dictionaries are shared with this table."""
        return Table(tuple(c.take(indices) for c in self.columns), self.roles)

    def adapt(self, reference: Sequence[Column]) -> list[Column]:
        """Return the columns matching ``reference`` by name, in reference order.

        Categorical columns are re-expressed in the dictionaries of their
        reference columns so that codes line up with the reference encoding.

        Raises:
            IncompatibleTableError: If a column is missing or of another kind.
        """
        adapted: list[Column] = []
        for expected in reference:
            try:
                column = self.column(expected.name)
            except KeyError:
                raise IncompatibleTableError(f"Missing column: {expected.name}") from None
            if column.kind != expected.kind:
                raise IncompatibleTableError(
                    f"Column {expected.name!r} is {column.kind.value}, expected {expected.kind.value}"
                )
            if expected.dictionary is not None:
                column = column.remap(expected.dictionary)
            adapted.append(column)
        return adapted

    def __len__(self) -> int:
        return self.height

    def __repr__(self) -> str:
        return f"Table(height={self.height}, columns={self.labels!r}, roles={ {k: v.value for k, v in self.roles.items()} })"
