"""
Measurement container for gene-expression matrices.

MeasurementMatrix couples a numeric measurement matrix with its feature
identifiers and sample-level metadata (class labels, batches, clinical
annotations). It is the input side of the feature-table adapter.

Biological Context:
    Expression data is stored the way assays produce it:
    - Rows = features (genes, probes, transcripts)
    - Columns = samples (tumours, patients, cell lines)
    - Values = measurements (log-intensities, counts, TPM)

    Learning frameworks expect the transpose: one row per sample, one column
    per feature, plus a target column. Keeping the assay orientation here and
    converting in one place (exprtask.table.builder) keeps the metadata and
    the measurements aligned.

Engineering Design:
    - Immutable: every operation returns a new instance
    - Validated: constructor checks shape and index consistency
    - Duplicate feature ids are tolerated here; the table builder rejects
      them with DuplicateFeatureIdentifierError so the failure happens at
      the point where it matters

Examples:
    >>> import numpy as np
    >>> import pandas as pd
    >>> from exprtask.core.matrix import MeasurementMatrix
    >>>
    >>> data = np.array([[10, 20], [30, 40]])
    >>> matrix = MeasurementMatrix(
    ...     data=data,
    ...     feature_ids=pd.Index(["ENSG001", "ENSG002"]),
    ...     sample_ids=pd.Index(["TCGA-01", "TCGA-02"]),
    ...     sample_metadata=pd.DataFrame(
    ...         {'subtype': ['LumA', 'Basal']},
    ...         index=pd.Index(["TCGA-01", "TCGA-02"]),
    ...     ),
    ... )
    >>> basal = matrix.select_samples(matrix.sample_metadata['subtype'] == 'Basal')
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional

import numpy as np
import pandas as pd

from exprtask.core.errors import ColumnNotFoundError, ShapeMismatchError

logger = logging.getLogger(__name__)

__all__ = ['MeasurementMatrix']


class MeasurementMatrix:
    """
    Immutable container for an expression matrix and its sample annotations.

    Attributes:
        data: Numerical measurement matrix (features × samples)
        feature_ids: Row identifiers (e.g., gene symbols, probe ids)
        sample_ids: Column identifiers (e.g., TCGA barcodes)
        sample_metadata: Per-sample annotations (class label, batch, ...)

    Shape Invariants:
        - data.shape[0] == len(feature_ids)
        - data.shape[1] == len(sample_ids)
        - sample_metadata.index equals sample_ids
    """

    def __init__(
        self,
        data: np.ndarray,
        feature_ids: pd.Index,
        sample_ids: pd.Index,
        sample_metadata: Optional[pd.DataFrame] = None,
    ):
        """
        Initialize MeasurementMatrix with validation.

        Args:
            data: Measurement matrix (features × samples)
            feature_ids: Row identifiers
            sample_ids: Column identifiers
            sample_metadata: DataFrame indexed by sample_ids. Defaults to an
                empty frame with that index.

        Raises:
            TypeError: If arguments have the wrong type
            ShapeMismatchError: If shapes or indices are inconsistent
        """
        if not isinstance(data, np.ndarray):
            raise TypeError(f"data must be np.ndarray, got {type(data)}")
        if not isinstance(feature_ids, pd.Index):
            raise TypeError(f"feature_ids must be pd.Index, got {type(feature_ids)}")
        if not isinstance(sample_ids, pd.Index):
            raise TypeError(f"sample_ids must be pd.Index, got {type(sample_ids)}")
        if sample_metadata is None:
            sample_metadata = pd.DataFrame(index=sample_ids)
        if not isinstance(sample_metadata, pd.DataFrame):
            raise TypeError(f"sample_metadata must be pd.DataFrame, got {type(sample_metadata)}")

        if data.ndim != 2:
            raise ShapeMismatchError(f"data must be 2D, got shape {data.shape}")

        n_features, n_samples = data.shape

        if len(feature_ids) != n_features:
            raise ShapeMismatchError(
                f"feature_ids length ({len(feature_ids)}) must match data rows ({n_features})"
            )
        if len(sample_ids) != n_samples:
            raise ShapeMismatchError(
                f"sample_ids length ({len(sample_ids)}) must match data columns ({n_samples})"
            )
        if not sample_metadata.index.equals(sample_ids):
            raise ShapeMismatchError(
                "sample_metadata.index must match sample_ids exactly. "
                f"Got {len(sample_metadata.index)} metadata rows for {len(sample_ids)} samples."
            )

        self._data = data
        self._feature_ids = feature_ids
        self._sample_ids = sample_ids
        self._sample_metadata = sample_metadata

    @classmethod
    def from_frame(
        cls,
        expression: pd.DataFrame,
        sample_metadata: Optional[pd.DataFrame] = None,
    ) -> MeasurementMatrix:
        """
        Build from a features × samples DataFrame.

        Args:
            expression: DataFrame with feature ids as index, sample ids as columns
            sample_metadata: Optional annotations; reindexed to the expression
                columns when given

        Raises:
            ShapeMismatchError: If metadata lacks some of the expression samples
        """
        sample_ids = pd.Index(expression.columns)
        if sample_metadata is not None:
            missing = sample_ids.difference(sample_metadata.index)
            if len(missing) > 0:
                raise ShapeMismatchError(
                    f"{len(missing)} sample(s) have no metadata row, e.g. {list(missing[:5])}"
                )
            sample_metadata = sample_metadata.loc[sample_ids]

        return cls(
            data=expression.to_numpy(),
            feature_ids=pd.Index(expression.index),
            sample_ids=sample_ids,
            sample_metadata=sample_metadata,
        )

    @property
    def data(self) -> np.ndarray:
        """Measurement matrix (features × samples)."""
        return self._data

    @property
    def feature_ids(self) -> pd.Index:
        return self._feature_ids

    @property
    def sample_ids(self) -> pd.Index:
        return self._sample_ids

    @property
    def sample_metadata(self) -> pd.DataFrame:
        return self._sample_metadata

    @property
    def shape(self) -> tuple[int, int]:
        """Matrix dimensions (n_features, n_samples)."""
        return self._data.shape

    @property
    def n_features(self) -> int:
        return self._data.shape[0]

    @property
    def n_samples(self) -> int:
        return self._data.shape[1]

    def labels(self, column: str) -> pd.Series:
        """
        Sample-level label vector stored in the metadata.

        Raises:
            ColumnNotFoundError: If the metadata has no such column
        """
        if column not in self._sample_metadata.columns:
            raise ColumnNotFoundError(column, list(self._sample_metadata.columns))
        return self._sample_metadata[column]

    def select_samples(self, mask: np.ndarray | pd.Series) -> MeasurementMatrix:
        """
        Subset matrix by samples (columns).

        Args:
            mask: Boolean array/Series; a Series is used by position

        Raises:
            ShapeMismatchError: If mask length doesn't match n_samples

        Examples:
            >>> # Drop normal-tissue samples
            >>> tumours = matrix.select_samples(matrix.sample_metadata['tissue'] != 'Normal')
        """
        if isinstance(mask, pd.Series):
            mask = mask.to_numpy()
        mask = np.asarray(mask, dtype=bool)

        if len(mask) != self.n_samples:
            raise ShapeMismatchError(
                f"mask length ({len(mask)}) must match n_samples ({self.n_samples})"
            )

        return MeasurementMatrix(
            data=self._data[:, mask],
            feature_ids=self._feature_ids,
            sample_ids=self._sample_ids[mask],
            sample_metadata=self._sample_metadata.iloc[np.flatnonzero(mask)],
        )

    def select_features(self, mask: np.ndarray | pd.Series) -> MeasurementMatrix:
        """
        Subset matrix by features (rows).

        Raises:
            ShapeMismatchError: If mask length doesn't match n_features
        """
        if isinstance(mask, pd.Series):
            mask = mask.to_numpy()
        mask = np.asarray(mask, dtype=bool)

        if len(mask) != self.n_features:
            raise ShapeMismatchError(
                f"mask length ({len(mask)}) must match n_features ({self.n_features})"
            )

        return MeasurementMatrix(
            data=self._data[mask, :],
            feature_ids=self._feature_ids[mask],
            sample_ids=self._sample_ids,
            sample_metadata=self._sample_metadata,
        )

    def rename_features(self, mapping: Mapping[str, str]) -> MeasurementMatrix:
        """
        Rename feature identifiers through an annotation mapping.

        Identifiers absent from the mapping (or mapped to a missing value)
        keep their original name. The result may contain duplicates when
        several ids map to the same symbol; building a feature table from it
        raises DuplicateFeatureIdentifierError.

        Args:
            mapping: Old id -> new id (e.g. Ensembl id -> HGNC symbol)

        Examples:
            >>> symbols = matrix.rename_features({"ENSG00000141510": "TP53"})
        """
        renamed = []
        n_mapped = 0
        for fid in self._feature_ids:
            new = mapping.get(fid)
            if new is None or (isinstance(new, float) and np.isnan(new)):
                renamed.append(fid)
            else:
                renamed.append(new)
                n_mapped += 1

        new_ids = pd.Index(renamed, name=self._feature_ids.name)
        n_dup = int(new_ids.duplicated().sum())
        logger.info(f"Renamed {n_mapped}/{self.n_features} features")
        if n_dup:
            logger.warning(f"Renaming produced {n_dup} duplicated feature identifier(s)")

        return MeasurementMatrix(
            data=self._data,
            feature_ids=new_ids,
            sample_ids=self._sample_ids,
            sample_metadata=self._sample_metadata,
        )

    def copy(self) -> MeasurementMatrix:
        """Deep copy of all components."""
        return MeasurementMatrix(
            data=self._data.copy(),
            feature_ids=self._feature_ids.copy(),
            sample_ids=self._sample_ids.copy(),
            sample_metadata=self._sample_metadata.copy(),
        )

    def __repr__(self) -> str:
        if self.n_features == 0 or self.n_samples == 0:
            return f"MeasurementMatrix({self.n_features} features × {self.n_samples} samples)"
        return (
            f"MeasurementMatrix({self.n_features} features × {self.n_samples} samples)\n"
            f"  Features: {self.feature_ids[0]}...{self.feature_ids[-1]}\n"
            f"  Samples: {self.sample_ids[0]}...{self.sample_ids[-1]}\n"
            f"  Metadata columns: {list(self.sample_metadata.columns)}"
        )
