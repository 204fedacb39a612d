"""
Exception taxonomy for the feature-table adapter.

Every failure raised by the adapter is a deterministic input-validation
failure: the same input always fails the same way, so callers should fix the
input rather than retry.

All adapter errors derive from AdapterError, which is a ValueError. Code that
already guards expression-matrix handling with ``except ValueError`` keeps
working, while callers that care about the specific condition can catch the
subclass.

Examples:
    >>> from exprtask.core.errors import InvalidFeatureCountError
    >>> try:
    ...     VarianceFilter(n_features=0)
    ... except InvalidFeatureCountError as e:
    ...     print(e)
    n_features must be a positive integer, got 0
"""

from __future__ import annotations

from typing import Sequence

__all__ = [
    'AdapterError',
    'ShapeMismatchError',
    'DuplicateFeatureIdentifierError',
    'InvalidFeatureCountError',
    'ColumnNotFoundError',
    'DuplicateTaskIdentifierError',
]


class AdapterError(ValueError):
    """Base class for all feature-table adapter errors."""


class ShapeMismatchError(AdapterError):
    """Label vector, metadata or data dimensions disagree with each other."""


class DuplicateFeatureIdentifierError(AdapterError):
    """
    Feature identifiers are not unique.

    Typically produced when annotation lookups (e.g. Ensembl id -> symbol)
    map several rows onto the same name and nobody deduplicated them.

    Attributes:
        duplicates: Identifiers that occur more than once, in first-seen order
    """

    def __init__(self, duplicates: Sequence[str], message: str | None = None):
        self.duplicates = list(duplicates)
        if message is None:
            preview = ", ".join(repr(d) for d in self.duplicates[:10])
            more = "" if len(self.duplicates) <= 10 else f" (+{len(self.duplicates) - 10} more)"
            message = (
                f"Found {len(self.duplicates)} duplicated feature identifier(s): "
                f"{preview}{more}. Deduplicate annotations before building a feature table."
            )
        super().__init__(message)


class InvalidFeatureCountError(AdapterError):
    """Requested feature count K is not in [1, total features]."""


class ColumnNotFoundError(AdapterError, KeyError):
    """
    A named column (label, metadata or task target) does not exist.

    Also a KeyError so dict-style lookups keep their usual contract.
    """

    def __init__(self, column: str, available: Sequence[str] = ()):
        self.column = column
        self.available = list(available)
        message = f"Column '{column}' not found"
        if self.available:
            message += f". Available columns: {self.available[:20]}"
        super().__init__(message)

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class DuplicateTaskIdentifierError(AdapterError):
    """A task id was issued twice by the same TaskFactory."""
