"""
Delimited-text loaders for expression matrices and sample annotations.

Expected layout of an expression file (features × samples):

    ```
    "","TCGA-A1-A0SB","TCGA-A1-A0SD"
    "ESR1",11.2,3.4
    "ERBB2",9.8,14.1
    ```

Sample annotations are a second file indexed by sample id, with one column
per annotation (subtype, stage, vital status, ...).

Data issues that a caller may reasonably want to proceed with (missing
values, duplicated feature ids) are reported with ``warnings.warn``;
structural problems raise. Duplicated feature ids are *kept* so that the
table builder can reject them explicitly.

Examples:
    >>> from pathlib import Path
    >>> from exprtask.io.loaders import load_expression_csv, load_sample_metadata
    >>>
    >>> matrix = load_expression_csv(Path("brca_expression.csv"))
    >>> matrix = load_sample_metadata(Path("brca_clinical.csv"), matrix)
    >>> matrix.sample_metadata['subtype'].value_counts()
"""

from __future__ import annotations

import logging
import warnings
from pathlib import Path
from typing import Optional

import numpy as np
import pandas as pd

from exprtask.core.matrix import MeasurementMatrix

logger = logging.getLogger(__name__)

__all__ = ['load_expression_csv', 'load_sample_metadata', 'infer_separator']


def infer_separator(path: Path) -> str:
    """Tab for .tsv/.txt/.tab files, comma otherwise."""
    suffixes = [s.lower() for s in path.suffixes]
    if suffixes and suffixes[-1] == '.gz':
        suffixes = suffixes[:-1]
    if suffixes and suffixes[-1] in ('.tsv', '.txt', '.tab'):
        return '\t'
    return ','


def _read_table(path: Path, sep: Optional[str], what: str) -> pd.DataFrame:
    if not isinstance(path, Path):
        path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"{what} file not found: {path}")
    if not path.is_file():
        raise ValueError(f"Path is not a file: {path}")

    if sep is None:
        sep = infer_separator(path)

    try:
        df = pd.read_csv(path, sep=sep, index_col=0)
    except pd.errors.EmptyDataError as e:
        raise ValueError(f"{what} file is empty: {path}") from e
    except pd.errors.ParserError as e:
        raise ValueError(f"Failed to parse {what} file {path}: {e}") from e

    if df.shape[0] == 0 or df.shape[1] == 0:
        raise ValueError(f"{what} file contains no data: {path}")

    return df


def load_expression_csv(
    path: Path,
    sep: Optional[str] = None,
) -> MeasurementMatrix:
    """
    Load a features × samples expression table into a MeasurementMatrix.

    Args:
        path: Delimited text file; first column = feature ids, header = sample ids
        sep: Field separator. Inferred from the suffix when omitted.

    Returns:
        MeasurementMatrix with float64 data and empty sample metadata

    Raises:
        FileNotFoundError: If path does not exist
        ValueError: If the file is empty, malformed, contains non-numeric or
            infinite values, or has duplicated sample ids
    """
    path = Path(path)
    df = _read_table(path, sep, "Expression")

    if df.columns.duplicated().any():
        dups = list(df.columns[df.columns.duplicated()])
        raise ValueError(f"Expression file has duplicated sample ids: {dups[:5]}")

    if df.index.duplicated().any():
        n_dup = int(df.index.duplicated().sum())
        warnings.warn(
            f"Found {n_dup} duplicated feature id(s) in {path.name}. They are kept; "
            "deduplicate before building a feature table.",
            UserWarning
        )

    non_numeric = [c for c in df.columns if not pd.api.types.is_numeric_dtype(df[c])]
    if non_numeric:
        raise ValueError(
            f"Expression file contains non-numeric values in {len(non_numeric)} "
            f"sample column(s), e.g. {non_numeric[:5]}"
        )

    data = df.to_numpy(dtype=np.float64)

    if np.isinf(data).any():
        raise ValueError(
            f"Expression file contains {int(np.isinf(data).sum())} infinite values. "
            "Please clean data before loading."
        )

    if np.isnan(data).any():
        n_nan = int(np.isnan(data).sum())
        warnings.warn(
            f"Found {n_nan:,} missing values ({100 * n_nan / data.size:.2f}% of data).",
            UserWarning
        )

    matrix = MeasurementMatrix(
        data=data,
        feature_ids=pd.Index(df.index.astype(str)),
        sample_ids=pd.Index(df.columns.astype(str)),
    )
    logger.info(f"Loaded {path.name}: {matrix.n_features} features × {matrix.n_samples} samples")
    return matrix


def load_sample_metadata(
    path: Path,
    matrix: MeasurementMatrix,
    sep: Optional[str] = None,
) -> MeasurementMatrix:
    """
    Attach sample annotations to a matrix.

    Extra annotation rows (samples not in the matrix) are ignored. Matrix
    samples without an annotation row are an error, since their labels would
    be silently undefined.

    Returns:
        New MeasurementMatrix with the annotations aligned to its samples

    Raises:
        ValueError: If some matrix samples have no annotation row
    """
    path = Path(path)
    metadata = _read_table(path, sep, "Sample metadata")
    metadata.index = metadata.index.astype(str)

    if metadata.index.duplicated().any():
        dups = list(metadata.index[metadata.index.duplicated()])
        raise ValueError(f"Sample metadata has duplicated sample ids: {dups[:5]}")

    missing = matrix.sample_ids.difference(metadata.index)
    if len(missing) > 0:
        raise ValueError(
            f"{len(missing)}/{matrix.n_samples} sample(s) have no metadata row, "
            f"e.g. {list(missing[:5])}"
        )

    n_extra = len(metadata.index.difference(matrix.sample_ids))
    if n_extra:
        logger.info(f"Ignoring {n_extra} metadata row(s) for samples not in the matrix")

    return MeasurementMatrix(
        data=matrix.data,
        feature_ids=matrix.feature_ids,
        sample_ids=matrix.sample_ids,
        sample_metadata=metadata.loc[matrix.sample_ids],
    )
