"""
Pytest configuration and shared fixtures.

Provides synthetic expression matrices with class labels, plus the small
three-feature matrix used to pin down the ranking rules.
"""

import numpy as np
import pandas as pd
import pytest

from exprtask.core.matrix import MeasurementMatrix


def generate_synthetic_expression_matrix(
    n_genes: int,
    n_samples: int,
    n_informative: int = 10,
    missing_label_fraction: float = 0.0,
    seed: int = 42
) -> MeasurementMatrix:
    """
    Generate a synthetic log-expression matrix with two subtypes.

    Args:
        n_genes: Number of genes (features)
        n_samples: Number of samples
        n_informative: Genes shifted between subtypes (the first n_informative)
        missing_label_fraction: Fraction of samples whose subtype is missing
        seed: Random seed for reproducibility

    Design:
        - Log-normal-ish expression with gene-specific spread, so variances
          are distinct and the ranking has no ties
        - Alternating LumA / Basal subtype annotation
        - A batch column to check unrelated metadata is carried along
    """
    rng = np.random.RandomState(seed)

    spread = rng.uniform(0.2, 2.0, size=n_genes)
    data = rng.normal(loc=8.0, scale=1.0, size=(n_genes, n_samples)) * spread[:, None]

    subtypes = np.array(["LumA" if i % 2 == 0 else "Basal" for i in range(n_samples)], dtype=object)
    shift = np.where(subtypes == "Basal", 3.0, 0.0)
    data[:n_informative, :] += shift[None, :]

    if missing_label_fraction > 0:
        n_missing = int(n_samples * missing_label_fraction)
        missing_idx = rng.choice(n_samples, size=n_missing, replace=False)
        subtypes[missing_idx] = None

    feature_ids = pd.Index([f"GENE_{i:05d}" for i in range(n_genes)])
    sample_ids = pd.Index([f"TCGA-{i:04d}" for i in range(n_samples)])
    sample_metadata = pd.DataFrame({
        'subtype': subtypes,
        'batch': [i % 3 for i in range(n_samples)],
    }, index=sample_ids)

    return MeasurementMatrix(
        data=data,
        feature_ids=feature_ids,
        sample_ids=sample_ids,
        sample_metadata=sample_metadata,
    )


@pytest.fixture
def small_matrix():
    """Small matrix (50 genes × 20 samples) for fast unit tests."""
    return generate_synthetic_expression_matrix(n_genes=50, n_samples=20, seed=42)


@pytest.fixture
def medium_matrix():
    """Medium matrix (3000 genes × 40 samples) for chunked/threaded scoring."""
    return generate_synthetic_expression_matrix(n_genes=3000, n_samples=40, seed=7)


@pytest.fixture
def three_feature_matrix():
    """
    f1 constant, f2 increasing, f3 decreasing across four samples.

    Population variances: f1 = 0, f2 = f3 = 1.25.
    """
    data = np.array([
        [1, 1, 1, 1],
        [1, 2, 3, 4],
        [4, 3, 2, 1],
    ])
    sample_ids = pd.Index(["s1", "s2", "s3", "s4"])
    return MeasurementMatrix(
        data=data,
        feature_ids=pd.Index(["f1", "f2", "f3"]),
        sample_ids=sample_ids,
        sample_metadata=pd.DataFrame({'group': ["A", "A", "B", "B"]}, index=sample_ids),
    )


def write_matrix_csv(matrix: MeasurementMatrix, path):
    """Write a matrix in the features × samples layout load_expression_csv expects."""
    df = pd.DataFrame(matrix.data, index=matrix.feature_ids, columns=matrix.sample_ids)
    df.to_csv(path)
    return path


def write_metadata_csv(matrix: MeasurementMatrix, path):
    matrix.sample_metadata.to_csv(path)
    return path


@pytest.fixture
def csv_inputs(tmp_path, small_matrix):
    """Expression and metadata CSVs for the small matrix."""
    expr = write_matrix_csv(small_matrix, tmp_path / "expression.csv")
    meta = write_metadata_csv(small_matrix, tmp_path / "clinical.csv")
    return {'expression': expr, 'metadata': meta, 'matrix': small_matrix}
