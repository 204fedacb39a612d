"""
Core data structures and error types for the feature-table adapter.

1. MeasurementMatrix: Features × samples expression matrix with sample annotations
2. TableTransform: Abstract base class for immutable FeatureTable transformations
3. Error taxonomy: ShapeMismatchError, DuplicateFeatureIdentifierError,
   InvalidFeatureCountError, ColumnNotFoundError, DuplicateTaskIdentifierError

Design Philosophy:
    - Immutability: All operations return new instances
    - Deterministic: Same input always yields the same output (or the same error)
    - Explicit state: Seeds and annotation mappings are passed in, never ambient
"""

from exprtask.core.errors import (
    AdapterError,
    ColumnNotFoundError,
    DuplicateFeatureIdentifierError,
    DuplicateTaskIdentifierError,
    InvalidFeatureCountError,
    ShapeMismatchError,
)
from exprtask.core.matrix import MeasurementMatrix
from exprtask.core.transform import TableTransform

__all__ = [
    'MeasurementMatrix',
    'TableTransform',
    'AdapterError',
    'ShapeMismatchError',
    'DuplicateFeatureIdentifierError',
    'InvalidFeatureCountError',
    'ColumnNotFoundError',
    'DuplicateTaskIdentifierError',
]
