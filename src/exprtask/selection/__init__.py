"""
Unsupervised feature selection.

Only variance-based selection is provided; it is called directly rather than
looked up by name.

    VarianceFilter: keep the K most variable features (label-blind)
    FeatureRanking: ordered (feature_id, score) pairs
"""

from exprtask.selection.variance import (
    VarianceFilter,
    FeatureRanking,
    feature_variance,
    rank_by_score,
)

__all__ = [
    'VarianceFilter',
    'FeatureRanking',
    'feature_variance',
    'rank_by_score',
]
