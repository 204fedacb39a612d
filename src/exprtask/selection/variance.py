"""
Label-blind variance filter for feature tables.

Ranks features by their variability across samples and keeps the top K.
This is the unsupervised gene filter used before classification or
clustering of expression data: the most variable genes carry most of the
between-sample structure, and cutting the feature space from ~20,000 genes to
a few hundred keeps downstream learners tractable.

Scoring:
    Population variance (ddof=0) across samples by default. The ddof is a
    parameter of the filter instance and is recorded in its params; it only
    rescales scores (by n / (n - 1)) and never changes the ranking on a
    complete table. Missing measurements (NaN) are ignored per feature.
    Features with no finite score (all values missing, or a single sample
    with ddof=1) score 0.

Ordering:
    Descending score, ties broken by original column position ascending.
    The order is a total order, so the same K features are selected on every
    call with the same table, including when scoring runs in a thread pool.

Label blindness:
    Only FeatureTable.feature_values() is read. The label column never
    reaches the scoring code, so the selection cannot leak class information
    between train and test partitions. Use fit() on the training table and
    transform() on the test table to apply one selection to both.

Examples:
    >>> from exprtask.selection.variance import VarianceFilter
    >>> vf = VarianceFilter(n_features=500)
    >>> ranking = vf.rank(table)
    >>> ranking.top(3)
    ['ESR1', 'KRT5', 'ERBB2']
    >>> reduced = vf.apply(table)
    >>> reduced.n_features
    500
"""

from __future__ import annotations

import logging
import warnings
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Iterator, Optional

import numpy as np
import pandas as pd

from exprtask.core.errors import InvalidFeatureCountError, ShapeMismatchError
from exprtask.core.transform import TableTransform
from exprtask.table.feature_table import FeatureTable

logger = logging.getLogger(__name__)

__all__ = ['VarianceFilter', 'FeatureRanking', 'feature_variance', 'rank_by_score']

DEFAULT_CHUNK_SIZE = 2000


@dataclass(frozen=True)
class FeatureRanking:
    """
    Features ordered by descending variability score.

    Attributes:
        feature_ids: Feature identifiers, best first
        scores: Score of each feature, aligned with feature_ids
        positions: Original column position of each feature
        ddof: Delta degrees of freedom used for the variance
    """
    feature_ids: tuple
    scores: tuple
    positions: tuple
    ddof: int = 0

    def __len__(self) -> int:
        return len(self.feature_ids)

    def __iter__(self) -> Iterator[tuple]:
        return iter(zip(self.feature_ids, self.scores))

    def top(self, k: int) -> list:
        """The k best feature ids, best first."""
        if k <= 0 or k > len(self):
            raise InvalidFeatureCountError(
                f"k must be in [1, {len(self)}], got {k}"
            )
        return list(self.feature_ids[:k])

    @property
    def n_zero_variance(self) -> int:
        return sum(1 for s in self.scores if s == 0.0)

    def to_frame(self) -> pd.DataFrame:
        """Ranking as a DataFrame with columns rank, feature_id, score, position."""
        return pd.DataFrame({
            'rank': np.arange(1, len(self) + 1),
            'feature_id': list(self.feature_ids),
            'score': list(self.scores),
            'position': list(self.positions),
        })


def feature_variance(values: np.ndarray, ddof: int = 0) -> np.ndarray:
    """
    Per-column variance of a samples × features array, ignoring NaN.

    Non-finite results (all-NaN columns, too few observations for ddof)
    are reported as 0.
    """
    if values.shape[1] == 0:
        return np.zeros(0, dtype=np.float64)

    with warnings.catch_warnings():
        # All-NaN columns and ddof >= n emit RuntimeWarnings; handled below
        warnings.simplefilter("ignore", RuntimeWarning)
        scores = np.nanvar(values, axis=0, ddof=ddof)

    scores = np.asarray(scores, dtype=np.float64)
    scores[~np.isfinite(scores)] = 0.0
    return scores


def rank_by_score(scores: np.ndarray) -> np.ndarray:
    """
    Positions sorted by descending score, ties by ascending position.

    np.lexsort treats its last key as primary.
    """
    positions = np.arange(len(scores))
    return np.lexsort((positions, -scores))


class VarianceFilter(TableTransform):
    """
    Keep the K most variable features of a FeatureTable.

    Params:
        n_features: Number of features to keep (K). Must be a positive
            integer; selecting from a table with fewer features raises
            InvalidFeatureCountError.
        ddof: Delta degrees of freedom for the variance (0 = population
            variance, 1 = sample variance with Bessel's correction)
        n_jobs: Threads used to score column chunks. Results are merged by
            chunk position, so the ranking is identical for any n_jobs.
        chunk_size: Columns per chunk when n_jobs > 1

    Examples:
        >>> vf = VarianceFilter(n_features=2)
        >>> vf.select(table)
        ['f2', 'f3']
        >>>
        >>> # One selection for both partitions
        >>> vf.fit(train_table)
        >>> test_reduced = vf.transform(test_table)
    """

    def __init__(
        self,
        n_features: int,
        ddof: int = 0,
        n_jobs: int = 1,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        if isinstance(n_features, bool) or not isinstance(n_features, (int, np.integer)):
            raise InvalidFeatureCountError(
                f"n_features must be a positive integer, got {n_features!r}"
            )
        if n_features <= 0:
            raise InvalidFeatureCountError(
                f"n_features must be a positive integer, got {n_features}"
            )
        if ddof < 0:
            raise ValueError(f"ddof must be non-negative, got {ddof}")
        if n_jobs < 1:
            raise ValueError(f"n_jobs must be >= 1, got {n_jobs}")
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")

        super().__init__(
            name="VarianceFilter",
            params={
                "n_features": int(n_features),
                "ddof": ddof,
                "statistic": "variance",
            }
        )
        self.n_features = int(n_features)
        self.ddof = ddof
        self.n_jobs = n_jobs
        self.chunk_size = chunk_size

        self.ranking_: Optional[FeatureRanking] = None
        self.selected_features_: Optional[list] = None

    def score(self, table: FeatureTable) -> np.ndarray:
        """Variance of every feature column, in table column order."""
        values = table.feature_values()
        n_cols = values.shape[1]

        if self.n_jobs == 1 or n_cols <= self.chunk_size:
            return feature_variance(values, ddof=self.ddof)

        bounds = [
            (start, min(start + self.chunk_size, n_cols))
            for start in range(0, n_cols, self.chunk_size)
        ]
        logger.debug(f"Scoring {n_cols} features in {len(bounds)} chunks "
                     f"with {self.n_jobs} workers")

        scores = np.empty(n_cols, dtype=np.float64)
        with ThreadPoolExecutor(max_workers=self.n_jobs) as executor:
            futures = {
                executor.submit(feature_variance, values[:, start:stop], self.ddof): (start, stop)
                for start, stop in bounds
            }
            # Each chunk writes to its own slice; completion order is irrelevant
            for future, (start, stop) in futures.items():
                scores[start:stop] = future.result()

        return scores

    def rank(self, table: FeatureTable) -> FeatureRanking:
        """Rank all features of the table. Never reads the label column."""
        scores = self.score(table)
        order = rank_by_score(scores)
        feature_ids = table.feature_ids

        ranking = FeatureRanking(
            feature_ids=tuple(feature_ids[order]),
            scores=tuple(float(s) for s in scores[order]),
            positions=tuple(int(p) for p in order),
            ddof=self.ddof,
        )

        n_zero = ranking.n_zero_variance
        if n_zero:
            logger.info(f"{n_zero}/{len(ranking)} features have zero variance")

        return ranking

    def select(self, table: FeatureTable) -> list:
        """
        Top-K feature ids, best first.

        Raises:
            InvalidFeatureCountError: If K exceeds the table's feature count
        """
        self._check_feature_count(table)
        ranking = self.rank(table)
        selected = ranking.top(self.n_features)

        n_positive = len(ranking) - ranking.n_zero_variance
        if self.n_features > n_positive:
            logger.info(
                f"Requested {self.n_features} features but only {n_positive} have "
                f"non-zero variance; padding with {self.n_features - n_positive} "
                "zero-variance feature(s)"
            )

        return selected

    def apply(self, table: FeatureTable) -> FeatureTable:
        """Reduced table with the top-K features (original column order) and the label."""
        logger.info(f"Applying {self!r} to {table.n_features} features")
        self._check_preconditions(table)
        selected = self.select(table)
        reduced = table.project(selected)
        logger.info(f"Kept {reduced.n_features}/{table.n_features} features")
        return reduced

    def fit(self, table: FeatureTable) -> VarianceFilter:
        """Rank ``table`` and remember the selection for transform()."""
        self._check_preconditions(table)
        self.ranking_ = self.rank(table)
        self.selected_features_ = self.ranking_.top(self.n_features)
        return self

    def transform(self, table: FeatureTable) -> FeatureTable:
        """
        Project another table onto the features selected by fit().

        Raises:
            RuntimeError: If called before fit()
            ColumnNotFoundError: If the table lacks a selected feature
        """
        if self.selected_features_ is None:
            raise RuntimeError("VarianceFilter.transform() called before fit()")
        return table.project(self.selected_features_)

    def validate(self, table: FeatureTable) -> list[str]:
        errors = super().validate(table)
        if self.n_features > table.n_features:
            errors.append(
                f"n_features={self.n_features} exceeds the {table.n_features} "
                "features in the table"
            )
        return errors

    def _check_preconditions(self, table: FeatureTable) -> None:
        self._check_feature_count(table)
        errors = self.validate(table)
        if errors:
            raise ShapeMismatchError(
                f"Validation failed for {self.name}:\n" +
                "\n".join(f"  - {err}" for err in errors)
            )

    def _check_feature_count(self, table: FeatureTable) -> None:
        if self.n_features > table.n_features:
            raise InvalidFeatureCountError(
                f"n_features={self.n_features} exceeds the {table.n_features} "
                "features in the table"
            )
