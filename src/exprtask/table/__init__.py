"""
Feature-table construction.

    FeatureTable: samples × (features + label) table consumed by learners
    build_feature_table: MeasurementMatrix -> FeatureTable (transpose + label)
"""

from exprtask.table.feature_table import FeatureTable, DEFAULT_LABEL_COLUMN
from exprtask.table.builder import (
    build_feature_table,
    check_unique_features,
    FeatureTableResult,
)

__all__ = [
    'FeatureTable',
    'DEFAULT_LABEL_COLUMN',
    'build_feature_table',
    'check_unique_features',
    'FeatureTableResult',
]
