"""
Base class for immutable feature-table transformations.

Every step that reshapes a FeatureTable (feature selection, projection onto a
training-set selection) derives from TableTransform. Steps are pure: they take
a table and their parameters and return a new table, leaving the input
untouched. Parameters are kept on the instance so that a run can be written
out as provenance (see exprtask.io.writers).

Examples:
    >>> from exprtask.core.transform import TableTransform
    >>>
    >>> class DropFeatures(TableTransform):
    ...     def __init__(self, feature_ids):
    ...         super().__init__(name="DropFeatures", params={"feature_ids": list(feature_ids)})
    ...         self.feature_ids = list(feature_ids)
    ...
    ...     def apply(self, table):
    ...         keep = [f for f in table.feature_ids if f not in set(self.feature_ids)]
    ...         return table.project(keep)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from exprtask.table.feature_table import FeatureTable

__all__ = ['TableTransform']


class TableTransform(ABC):
    """
    Abstract base class for FeatureTable transformations.

    Attributes:
        name: Human-readable transformation name (e.g., "VarianceFilter")
        params: JSON-serializable parameters used by this transformation
    """

    def __init__(self, name: str, params: dict[str, Any]) -> None:
        self.name = name
        self.params = params

    @abstractmethod
    def apply(self, table: FeatureTable) -> FeatureTable:
        """
        Execute transformation and return a new table.

        Must never modify the input table.
        """

    def validate(self, table: FeatureTable) -> list[str]:
        """
        Check preconditions before applying the transformation.

        Subclasses should override and call super().validate() first.

        Returns:
            List of error messages (empty list = valid)
        """
        errors: list[str] = []

        if table.n_samples == 0:
            errors.append("Cannot process a table without samples")
        if table.n_features == 0:
            errors.append("Cannot process a table without features")

        return errors

    def __repr__(self) -> str:
        params_str = ", ".join(f"{k}={v}" for k, v in self.params.items())
        return f"{self.name}({params_str})"
