"""
One-call adapter from an expression matrix to a variance-filtered learner task.

    matrix --build_feature_table--> table --VarianceFilter--> reduced table
           --TaskFactory.make_task--> LearnerTask

Each call is independent: no module-level state is read or written, and the
result depends only on the arguments.

Examples:
    >>> from exprtask.pipeline import matrix_to_filtered_task
    >>> result = matrix_to_filtered_task(
    ...     matrix, label="subtype", n_features=500, task_id="brca_pam50",
    ... )
    >>> result.task
    LearnerTask(id='brca_pam50', kind=classification, 118 samples × 500 features, target='Class')
    >>> result.n_dropped
    2
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence, Union

import numpy as np
import pandas as pd

from exprtask.core.matrix import MeasurementMatrix
from exprtask.selection.variance import FeatureRanking, VarianceFilter
from exprtask.table.builder import build_feature_table
from exprtask.table.feature_table import DEFAULT_LABEL_COLUMN
from exprtask.tasks.task import LearnerTask, TaskFactory, TaskKind

logger = logging.getLogger(__name__)

__all__ = ['matrix_to_filtered_task', 'PipelineResult']


@dataclass
class PipelineResult:
    """Task plus the provenance needed to report how it was built."""
    task: LearnerTask
    ranking: FeatureRanking
    n_dropped: int
    dropped_samples: list = field(default_factory=list)
    parameters: dict[str, Any] = field(default_factory=dict)

    @property
    def selected_features(self) -> list:
        return self.task.feature_names

    def to_dict(self) -> dict[str, Any]:
        """JSON-serializable summary (no data)."""
        return {
            'task_id': self.task.task_id,
            'kind': self.task.kind.value,
            'n_samples': self.task.n_samples,
            'n_features': self.task.n_features,
            'n_dropped': self.n_dropped,
            'dropped_samples': [str(s) for s in self.dropped_samples],
            'selected_features': [str(f) for f in self.selected_features],
            'parameters': self.parameters,
        }


def matrix_to_filtered_task(
    matrix: MeasurementMatrix,
    label: Union[str, Sequence, pd.Series, np.ndarray],
    n_features: int,
    task_id: str,
    kind: Union[str, TaskKind] = TaskKind.CLASSIFICATION,
    label_column: str = DEFAULT_LABEL_COLUMN,
    factory: Optional[TaskFactory] = None,
    ddof: int = 0,
    n_jobs: int = 1,
) -> PipelineResult:
    """
    Build a feature table, keep the top-K variable features, wrap as a task.

    Args:
        matrix: Features × samples measurement container
        label: Metadata column name, or one label per sample
        n_features: Number of most-variable features to keep (K)
        task_id: Task identifier, unique within ``factory``
        kind: Classification or clustering
        label_column: Name of the label column in the table
        factory: TaskFactory enforcing id uniqueness across calls. A fresh
            factory is used when omitted.
        ddof: Variance degrees of freedom (0 = population variance)
        n_jobs: Threads for variance scoring

    Raises:
        DuplicateFeatureIdentifierError, ShapeMismatchError,
        InvalidFeatureCountError, ColumnNotFoundError,
        DuplicateTaskIdentifierError: see exprtask.core.errors
    """
    kind = TaskKind.parse(kind)
    # Fail on a bad K before doing any work
    vf = VarianceFilter(n_features=n_features, ddof=ddof, n_jobs=n_jobs)

    built = build_feature_table(matrix, labels=label, label_column=label_column)
    table = built.table

    vf.fit(table)
    reduced = vf.transform(table)

    if factory is None:
        factory = TaskFactory()
    task = factory.make_task(task_id, reduced, kind=kind, target=label_column)

    parameters = {
        'label': label if isinstance(label, str) else '<vector>',
        'label_column': label_column,
        'kind': kind.value,
        **vf.params,
    }

    logger.info(
        f"Pipeline complete: {matrix.n_features} -> {task.n_features} features, "
        f"{matrix.n_samples} -> {task.n_samples} samples"
    )

    return PipelineResult(
        task=task,
        ranking=vf.ranking_,
        n_dropped=built.n_dropped,
        dropped_samples=built.dropped_samples,
        parameters=parameters,
    )
