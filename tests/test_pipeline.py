"""Tests for the one-call matrix -> filtered task pipeline."""

import json

import numpy as np
import pandas as pd
import pytest

from conftest import generate_synthetic_expression_matrix
from exprtask.core.errors import (
    ColumnNotFoundError,
    DuplicateFeatureIdentifierError,
    DuplicateTaskIdentifierError,
    InvalidFeatureCountError,
    ShapeMismatchError,
)
from exprtask.core.matrix import MeasurementMatrix
from exprtask.pipeline import PipelineResult, matrix_to_filtered_task
from exprtask.tasks.task import TaskFactory, TaskKind


class TestMatrixToFilteredTask:

    def test_three_feature_scenario(self, three_feature_matrix):
        result = matrix_to_filtered_task(
            three_feature_matrix, label=["A", "A", "B", "B"], n_features=2, task_id="toy",
        )

        assert isinstance(result, PipelineResult)
        assert result.selected_features == ["f2", "f3"]
        assert result.ranking.feature_ids == ("f2", "f3", "f1")
        assert result.task.kind is TaskKind.CLASSIFICATION
        assert list(result.task.table.labels) == ["A", "A", "B", "B"]

    def test_k_equals_total_returns_all(self, three_feature_matrix):
        result = matrix_to_filtered_task(three_feature_matrix, "group", 3, "toy")
        assert result.selected_features == ["f1", "f2", "f3"]
        assert len(result.ranking) == 3

    def test_missing_labels_reported(self):
        matrix = generate_synthetic_expression_matrix(30, 20, missing_label_fraction=0.2, seed=1)
        result = matrix_to_filtered_task(matrix, "subtype", 10, "brca")

        assert result.n_dropped == 4
        assert len(result.dropped_samples) == 4
        assert result.task.n_samples == 16
        assert result.task.n_features == 10

    def test_clustering(self, small_matrix):
        result = matrix_to_filtered_task(small_matrix, "subtype", 5, "c", kind="clustering")
        assert result.task.target is None
        assert result.parameters['kind'] == "clustering"

    def test_shared_factory_enforces_unique_ids(self, small_matrix):
        factory = TaskFactory()
        matrix_to_filtered_task(small_matrix, "subtype", 5, "brca", factory=factory)
        with pytest.raises(DuplicateTaskIdentifierError):
            matrix_to_filtered_task(small_matrix, "subtype", 10, "brca", factory=factory)

    def test_deterministic(self, small_matrix):
        a = matrix_to_filtered_task(small_matrix, "subtype", 8, "a")
        b = matrix_to_filtered_task(small_matrix, "subtype", 8, "b", n_jobs=3)
        assert a.selected_features == b.selected_features
        assert a.task.table.equals(b.task.table)

    def test_to_dict_is_json_serializable(self, small_matrix):
        result = matrix_to_filtered_task(small_matrix, "subtype", 5, "brca")
        summary = json.loads(json.dumps(result.to_dict()))

        assert summary['task_id'] == "brca"
        assert summary['n_features'] == 5
        assert summary['parameters']['n_features'] == 5
        assert summary['parameters']['ddof'] == 0


class TestPipelineErrors:

    def test_invalid_k_before_any_work(self):
        # Duplicate ids would fail later; the K check comes first
        ids = pd.Index(["s1", "s2"])
        m = MeasurementMatrix(np.zeros((2, 2)), pd.Index(["g", "g"]), ids)
        with pytest.raises(InvalidFeatureCountError):
            matrix_to_filtered_task(m, ["A", "B"], 0, "t")

    def test_k_above_total(self, three_feature_matrix):
        with pytest.raises(InvalidFeatureCountError):
            matrix_to_filtered_task(three_feature_matrix, "group", 4, "t")

    def test_shape_mismatch(self, three_feature_matrix):
        with pytest.raises(ShapeMismatchError):
            matrix_to_filtered_task(three_feature_matrix, ["A", "A", "B"], 2, "t")

    def test_duplicate_features(self):
        ids = pd.Index(["s1", "s2", "s3", "s4"])
        m = MeasurementMatrix(np.arange(12).reshape(3, 4), pd.Index(["g1", "g1", "g2"]), ids)
        with pytest.raises(DuplicateFeatureIdentifierError):
            matrix_to_filtered_task(m, ["A", "A", "B", "B"], 1, "t")

    def test_missing_label_column(self, small_matrix):
        with pytest.raises(ColumnNotFoundError):
            matrix_to_filtered_task(small_matrix, "PAM50", 5, "t")

    def test_renamed_duplicates_rejected(self, small_matrix):
        renamed = small_matrix.rename_features({"GENE_00003": "TP53", "GENE_00007": "TP53"})
        with pytest.raises(DuplicateFeatureIdentifierError) as excinfo:
            matrix_to_filtered_task(renamed, "subtype", 5, "t")
        assert excinfo.value.duplicates == ["TP53"]
