"""
Learner tasks: a closed set of task kinds over a FeatureTable.

    TaskKind: CLASSIFICATION | CLUSTERING
    LearnerTask: immutable (task_id, kind, table, target)
    TaskFactory: issues tasks with unique ids
"""

from exprtask.tasks.task import LearnerTask, TaskFactory, TaskKind

__all__ = [
    'LearnerTask',
    'TaskFactory',
    'TaskKind',
]
