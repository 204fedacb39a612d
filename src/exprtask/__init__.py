"""
exprtask - Expression matrices to learner-ready feature tables

Converts annotated gene-expression matrices (features × samples) into
samples × features tables with a class-label column, selects the most
variable features without looking at the labels, and wraps the result as a
classification or clustering task for scikit-learn style learners.
"""

__version__ = "0.1.0"

from exprtask.core.matrix import MeasurementMatrix
from exprtask.table.feature_table import FeatureTable
from exprtask.table.builder import build_feature_table
from exprtask.selection.variance import VarianceFilter, FeatureRanking
from exprtask.tasks.task import LearnerTask, TaskFactory, TaskKind
from exprtask.pipeline import matrix_to_filtered_task

__all__ = [
    "MeasurementMatrix",
    "FeatureTable",
    "build_feature_table",
    "VarianceFilter",
    "FeatureRanking",
    "LearnerTask",
    "TaskFactory",
    "TaskKind",
    "matrix_to_filtered_task",
]
