"""
Transpose a MeasurementMatrix into a labelled FeatureTable.

This is the first half of the adapter: it turns the assay orientation
(features × samples) into the learner orientation (samples × features) and
appends the class label as the last column.

Contract:
    - Feature identifiers must be unique, otherwise
      DuplicateFeatureIdentifierError is raised before anything else happens
    - The label vector must have one entry per sample, otherwise
      ShapeMismatchError
    - Feature identifiers must be strings, otherwise TypeError
    - Values are widened to float64 (integer counts are never truncated);
      complex values are rejected with TypeError
    - Samples with a missing label are dropped and reported (count + ids),
      never silently
    - The input matrix is left untouched; the output shares no memory with it

Examples:
    >>> from exprtask.table.builder import build_feature_table
    >>> result = build_feature_table(matrix, labels="subtype")
    >>> result.n_dropped
    3
    >>> result.table.to_frame().columns[-1]
    'Class'
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence, Union

import numpy as np
import pandas as pd

from exprtask.core.errors import DuplicateFeatureIdentifierError, ShapeMismatchError
from exprtask.core.matrix import MeasurementMatrix
from exprtask.table.feature_table import DEFAULT_LABEL_COLUMN, FeatureTable

logger = logging.getLogger(__name__)

__all__ = ['build_feature_table', 'FeatureTableResult', 'check_unique_features']


@dataclass
class FeatureTableResult:
    """Feature table plus a record of the samples dropped for missing labels."""
    table: FeatureTable
    n_dropped: int
    dropped_samples: list = field(default_factory=list)

    @property
    def n_samples(self) -> int:
        return self.table.n_samples


def check_unique_features(feature_ids: pd.Index) -> None:
    """
    Raise DuplicateFeatureIdentifierError if any feature id occurs twice.

    Duplicates are reported once each, in first-seen order.
    """
    dup_mask = feature_ids.duplicated()
    if dup_mask.any():
        duplicates = list(dict.fromkeys(feature_ids[dup_mask]))
        raise DuplicateFeatureIdentifierError(duplicates)


def _check_string_features(feature_ids: pd.Index) -> None:
    non_str = [fid for fid in feature_ids if not isinstance(fid, str)]
    if non_str:
        raise TypeError(
            f"Feature identifiers must be strings, found {len(non_str)} other id(s), "
            f"e.g. {non_str[:5]}"
        )


def _resolve_labels(
    matrix: MeasurementMatrix,
    labels: Union[str, Sequence, pd.Series, np.ndarray, None],
    label_column: str,
) -> np.ndarray:
    # None or a string names a metadata column; anything else is the vector itself
    if labels is None:
        values = matrix.labels(label_column).to_numpy()
    elif isinstance(labels, str):
        values = matrix.labels(labels).to_numpy()
    elif isinstance(labels, pd.Series):
        values = labels.to_numpy()
    else:
        values = np.asarray(list(labels), dtype=object)

    if values.ndim != 1 or len(values) != matrix.n_samples:
        raise ShapeMismatchError(
            f"Label vector length ({len(values)}) must match the number of samples "
            f"({matrix.n_samples})"
        )
    return values


def _as_float64(data: np.ndarray) -> np.ndarray:
    if data.dtype.kind == "c":
        raise TypeError(
            f"Measurements must be real-valued, got complex dtype {data.dtype}"
        )
    if data.dtype.kind in "biuf":
        return data.astype(np.float64, copy=True)
    try:
        return data.astype(np.float64)
    except (TypeError, ValueError) as e:
        raise TypeError(
            f"Measurements must be representable as float64, got dtype {data.dtype}: {e}"
        ) from e


def build_feature_table(
    matrix: MeasurementMatrix,
    labels: Union[str, Sequence, pd.Series, np.ndarray, None] = None,
    label_column: str = DEFAULT_LABEL_COLUMN,
) -> FeatureTableResult:
    """
    Convert a features × samples matrix into a samples × (features + label) table.

    Args:
        matrix: Measurement container (features × samples)
        labels: Either the name of a sample_metadata column, or one label per
            sample in sample order. A Series is used by position. None reads
            the metadata column named ``label_column``.
        label_column: Name of the appended label column

    Returns:
        FeatureTableResult with the table, the number of dropped samples and
        their ids

    Raises:
        DuplicateFeatureIdentifierError: Feature ids are not unique, or the
            label column name clashes with a feature id
        ColumnNotFoundError: ``labels`` (or ``label_column`` when ``labels`` is
            None) names a missing metadata column
        ShapeMismatchError: Label vector length differs from the sample count
        TypeError: Measurements are not real numbers, or a feature id is not
            a string
    """
    check_unique_features(matrix.feature_ids)
    _check_string_features(matrix.feature_ids)
    if label_column in matrix.feature_ids:
        raise DuplicateFeatureIdentifierError(
            [label_column],
            f"Label column name '{label_column}' is also a feature identifier",
        )

    label_values = _resolve_labels(matrix, labels, label_column)
    data = _as_float64(matrix.data)

    frame = pd.DataFrame(
        data.T,
        index=matrix.sample_ids.copy(),
        columns=matrix.feature_ids.copy(),
    )
    frame[label_column] = label_values

    missing = pd.isna(frame[label_column]).to_numpy()
    n_dropped = int(missing.sum())
    dropped_samples = list(frame.index[missing])

    if n_dropped:
        logger.warning(
            f"Dropped {n_dropped}/{matrix.n_samples} sample(s) with a missing label: "
            f"{dropped_samples[:10]}{' ...' if n_dropped > 10 else ''}"
        )
        frame = frame.iloc[np.flatnonzero(~missing)]

    table = FeatureTable(frame, label_column=label_column)
    logger.info(
        f"Built feature table: {table.n_samples} samples × {table.n_features} features "
        f"(label column '{label_column}')"
    )

    return FeatureTableResult(
        table=table,
        n_dropped=n_dropped,
        dropped_samples=dropped_samples,
    )
