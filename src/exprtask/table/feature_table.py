"""
Samples × features table with a trailing class-label column.

FeatureTable is the output side of the adapter and the input of every
downstream learner: one row per sample, one float64 column per feature and
exactly one label column appended last.

Invariants (checked on construction):
    - The label column exists and is the last column
    - Feature column names are unique and differ from the label column
    - Feature columns are float64
    - No label is missing

Examples:
    >>> table = build_feature_table(matrix, labels="subtype").table
    >>> table.n_samples, table.n_features
    (120, 20000)
    >>> reduced = table.project(["ESR1", "ERBB2", "KRT5"])
    >>> list(reduced.to_frame().columns)
    ['ESR1', 'ERBB2', 'KRT5', 'Class']
"""

from __future__ import annotations

from typing import Iterable

import numpy as np
import pandas as pd

from exprtask.core.errors import (
    ColumnNotFoundError,
    DuplicateFeatureIdentifierError,
    ShapeMismatchError,
)

__all__ = ['FeatureTable', 'DEFAULT_LABEL_COLUMN']

DEFAULT_LABEL_COLUMN = "Class"


class FeatureTable:
    """
    Immutable samples × (features + label) table.

    Attributes:
        label_column: Name of the trailing label column
        feature_ids: Feature column names in original order
        sample_ids: Row index in original sample order
    """

    def __init__(self, frame: pd.DataFrame, label_column: str = DEFAULT_LABEL_COLUMN):
        if not isinstance(frame, pd.DataFrame):
            raise TypeError(f"frame must be pd.DataFrame, got {type(frame)}")
        if label_column not in frame.columns:
            raise ColumnNotFoundError(label_column, [str(c) for c in frame.columns])
        if frame.columns[-1] != label_column:
            raise ShapeMismatchError(
                f"Label column '{label_column}' must be the last column, "
                f"found at position {frame.columns.get_loc(label_column)}"
            )

        feature_cols = frame.columns[:-1]
        if feature_cols.duplicated().any() or label_column in feature_cols:
            dups = list(dict.fromkeys(frame.columns[frame.columns.duplicated()]))
            raise DuplicateFeatureIdentifierError(dups)

        non_float = [c for c in feature_cols if frame[c].dtype != np.float64]
        if non_float:
            raise TypeError(
                f"Feature columns must be float64, found {len(non_float)} other column(s), "
                f"e.g. {non_float[:5]}"
            )

        if frame[label_column].isna().any():
            raise ShapeMismatchError(
                f"{int(frame[label_column].isna().sum())} sample(s) have a missing label; "
                "drop them before constructing a FeatureTable"
            )

        self._frame = frame
        self._label_column = label_column

    @property
    def label_column(self) -> str:
        return self._label_column

    @property
    def feature_ids(self) -> pd.Index:
        return self._frame.columns[:-1]

    @property
    def sample_ids(self) -> pd.Index:
        return self._frame.index

    @property
    def n_samples(self) -> int:
        return self._frame.shape[0]

    @property
    def n_features(self) -> int:
        return self._frame.shape[1] - 1

    @property
    def shape(self) -> tuple[int, int]:
        """(n_samples, n_features + 1), label column included."""
        return self._frame.shape

    @property
    def features(self) -> pd.DataFrame:
        """Numeric block without the label column (a copy)."""
        return self._frame.iloc[:, :-1].copy()

    @property
    def labels(self) -> pd.Series:
        """Label column (a copy)."""
        return self._frame[self._label_column].copy()

    def feature_values(self) -> np.ndarray:
        """Numeric block as a float64 array (samples × features)."""
        return self._frame.iloc[:, :-1].to_numpy(dtype=np.float64, copy=True)

    def project(self, feature_ids: Iterable[str]) -> FeatureTable:
        """
        Keep only the given features, plus the label column.

        Columns keep their original table order regardless of the order of
        ``feature_ids``.

        Raises:
            ColumnNotFoundError: If a requested feature is not in the table
        """
        wanted = set()
        for fid in feature_ids:
            if fid not in self._frame.columns or fid == self._label_column:
                raise ColumnNotFoundError(fid)
            wanted.add(fid)

        keep = [c for c in self.feature_ids if c in wanted]
        return FeatureTable(
            self._frame.loc[:, keep + [self._label_column]].copy(),
            label_column=self._label_column,
        )

    def select_samples(self, sample_ids: Iterable) -> FeatureTable:
        """Keep the given samples, in the order given."""
        return FeatureTable(
            self._frame.loc[list(sample_ids)].copy(),
            label_column=self._label_column,
        )

    def to_frame(self) -> pd.DataFrame:
        """Defensive copy of the underlying DataFrame."""
        return self._frame.copy()

    def equals(self, other: FeatureTable) -> bool:
        return (
            isinstance(other, FeatureTable)
            and self._label_column == other._label_column
            and self._frame.index.equals(other._frame.index)
            and self._frame.columns.equals(other._frame.columns)
            and self._frame.equals(other._frame)
        )

    def __repr__(self) -> str:
        return (
            f"FeatureTable({self.n_samples} samples × {self.n_features} features, "
            f"label='{self._label_column}')"
        )
