"""
Learner-task wrapper around a FeatureTable.

A LearnerTask packages a (usually variance-filtered) FeatureTable with what a
downstream learner needs to know: whether it is a supervised classification
problem or an unsupervised clustering problem, and which column is the
target. It does no computation of its own.

The set of task kinds is closed (TaskKind) and tasks are created through a
TaskFactory, which guarantees that the ids it issues are unique.

Examples:
    >>> from exprtask.tasks import TaskFactory, TaskKind
    >>> factory = TaskFactory()
    >>> task = factory.make_task("brca_subtypes", reduced, TaskKind.CLASSIFICATION)
    >>> X, y, names = task.to_arrays()
    >>>
    >>> from sklearn.ensemble import RandomForestClassifier
    >>> train, test = task.split(test_size=0.3, seed=1)
    >>> X_tr, y_tr, _ = train.to_arrays()
    >>> model = RandomForestClassifier(random_state=1).fit(X_tr, y_tr)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Union

import numpy as np
from sklearn.model_selection import train_test_split

from exprtask.core.errors import ColumnNotFoundError, DuplicateTaskIdentifierError
from exprtask.table.feature_table import DEFAULT_LABEL_COLUMN, FeatureTable

logger = logging.getLogger(__name__)

__all__ = ['TaskKind', 'LearnerTask', 'TaskFactory']


class TaskKind(Enum):
    """Kind of learning problem."""

    CLASSIFICATION = "classification"  # label column is the supervised target
    CLUSTERING = "clustering"          # label column is ignored

    @classmethod
    def parse(cls, value: Union[str, TaskKind]) -> TaskKind:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            valid = ", ".join(k.value for k in cls)
            raise ValueError(f"Unknown task kind '{value}'. Choose from: {valid}") from None


@dataclass(frozen=True)
class LearnerTask:
    """
    Immutable learner task.

    Attributes:
        task_id: Identifier, unique within the issuing TaskFactory
        kind: CLASSIFICATION or CLUSTERING
        table: Feature table (features + label column)
        target: Target column for classification, None for clustering
    """
    task_id: str
    kind: TaskKind
    table: FeatureTable
    target: Optional[str] = None

    @property
    def feature_names(self) -> list:
        return list(self.table.feature_ids)

    @property
    def n_samples(self) -> int:
        return self.table.n_samples

    @property
    def n_features(self) -> int:
        return self.table.n_features

    def to_arrays(self) -> tuple[np.ndarray, Optional[np.ndarray], list]:
        """
        Design matrix, target vector and feature names.

        Returns:
            (X, y, feature_names) where X is samples × features float64 and y
            is None for clustering tasks
        """
        X = self.table.feature_values()
        y = None
        if self.kind is TaskKind.CLASSIFICATION:
            y = self.table.labels.to_numpy()
        return X, y, self.feature_names

    def split(self, test_size: float = 0.25, seed: int = 0) -> tuple[LearnerTask, LearnerTask]:
        """
        Train/test partition of the samples.

        Classification tasks are stratified by label. The seed is explicit so
        the partition is reproducible.

        Returns:
            (train, test) tasks with ids suffixed ``/train`` and ``/test``
        """
        sample_ids = np.asarray(self.table.sample_ids)
        stratify = None
        if self.kind is TaskKind.CLASSIFICATION:
            stratify = self.table.labels.to_numpy()

        train_ids, test_ids = train_test_split(
            sample_ids,
            test_size=test_size,
            random_state=seed,
            stratify=stratify,
        )
        logger.info(f"Split task '{self.task_id}': {len(train_ids)} train / "
                    f"{len(test_ids)} test samples (seed={seed})")

        return (
            replace(self, task_id=f"{self.task_id}/train",
                    table=self.table.select_samples(train_ids)),
            replace(self, task_id=f"{self.task_id}/test",
                    table=self.table.select_samples(test_ids)),
        )

    def __repr__(self) -> str:
        return (
            f"LearnerTask(id='{self.task_id}', kind={self.kind.value}, "
            f"{self.n_samples} samples × {self.n_features} features, target={self.target!r})"
        )


class TaskFactory:
    """
    Issues LearnerTasks with ids that are unique per factory.

    One factory per caller (a script, a notebook, a CLI run). Reusing an id
    within the same factory raises DuplicateTaskIdentifierError.
    """

    def __init__(self):
        self._issued: set[str] = set()

    @property
    def issued_ids(self) -> frozenset:
        return frozenset(self._issued)

    def make_task(
        self,
        task_id: str,
        table: FeatureTable,
        kind: Union[str, TaskKind] = TaskKind.CLASSIFICATION,
        target: str = DEFAULT_LABEL_COLUMN,
    ) -> LearnerTask:
        """
        Wrap a table into a task.

        Args:
            task_id: Non-empty identifier, unique within this factory
            table: Feature table to wrap
            kind: Task kind (enum or its string value)
            target: Target column for classification; ignored for clustering

        Raises:
            DuplicateTaskIdentifierError: If task_id was already issued
            ColumnNotFoundError: If a classification target is not in the table
            ValueError: If task_id is empty or kind is unknown
        """
        if not task_id:
            raise ValueError("task_id must be a non-empty string")
        kind = TaskKind.parse(kind)

        if task_id in self._issued:
            raise DuplicateTaskIdentifierError(
                f"Task id '{task_id}' was already issued by this factory"
            )

        if kind is TaskKind.CLASSIFICATION:
            # Feature columns cannot double as the target
            if target != table.label_column:
                raise ColumnNotFoundError(target, [table.label_column])
            task = LearnerTask(task_id=task_id, kind=kind, table=table, target=target)
        else:
            task = LearnerTask(task_id=task_id, kind=kind, table=table, target=None)

        self._issued.add(task_id)
        logger.info(f"Created {task!r}")
        return task
