"""Tests for learner tasks and the task factory."""

import numpy as np
import pytest
from sklearn.neighbors import KNeighborsClassifier
from sklearn.tree import DecisionTreeClassifier

from conftest import generate_synthetic_expression_matrix
from exprtask.core.errors import ColumnNotFoundError, DuplicateTaskIdentifierError
from exprtask.selection.variance import VarianceFilter
from exprtask.table.builder import build_feature_table
from exprtask.tasks.task import LearnerTask, TaskFactory, TaskKind


@pytest.fixture
def table():
    matrix = generate_synthetic_expression_matrix(n_genes=40, n_samples=40, seed=11)
    return build_feature_table(matrix, labels="subtype").table


class TestTaskKind:

    def test_parse_string(self):
        assert TaskKind.parse("classification") is TaskKind.CLASSIFICATION
        assert TaskKind.parse("CLUSTERING") is TaskKind.CLUSTERING

    def test_parse_enum(self):
        assert TaskKind.parse(TaskKind.CLUSTERING) is TaskKind.CLUSTERING

    def test_parse_unknown(self):
        with pytest.raises(ValueError, match="Unknown task kind"):
            TaskKind.parse("regression")


class TestTaskFactory:

    def test_classification_task(self, table):
        task = TaskFactory().make_task("brca", table, TaskKind.CLASSIFICATION)

        assert isinstance(task, LearnerTask)
        assert task.task_id == "brca"
        assert task.target == "Class"
        assert task.n_samples == 40
        assert task.n_features == 40

    def test_clustering_task_has_no_target(self, table):
        task = TaskFactory().make_task("brca_clusters", table, "clustering")
        assert task.kind is TaskKind.CLUSTERING
        assert task.target is None

    def test_missing_target_rejected(self, table):
        with pytest.raises(ColumnNotFoundError, match="PAM50"):
            TaskFactory().make_task("brca", table, TaskKind.CLASSIFICATION, target="PAM50")

    def test_feature_column_is_not_a_target(self, table):
        with pytest.raises(ColumnNotFoundError):
            TaskFactory().make_task("brca", table, target="GENE_00000")

    def test_clustering_ignores_target(self, table):
        task = TaskFactory().make_task("c", table, TaskKind.CLUSTERING, target="PAM50")
        assert task.target is None

    def test_duplicate_id_rejected(self, table):
        factory = TaskFactory()
        factory.make_task("brca", table)
        with pytest.raises(DuplicateTaskIdentifierError, match="brca"):
            factory.make_task("brca", table, TaskKind.CLUSTERING)
        assert factory.issued_ids == frozenset({"brca"})

    def test_failed_task_does_not_consume_id(self, table):
        factory = TaskFactory()
        with pytest.raises(ColumnNotFoundError):
            factory.make_task("brca", table, target="PAM50")
        factory.make_task("brca", table)

    def test_separate_factories_are_independent(self, table):
        TaskFactory().make_task("brca", table)
        TaskFactory().make_task("brca", table)

    def test_empty_id_rejected(self, table):
        with pytest.raises(ValueError, match="non-empty"):
            TaskFactory().make_task("", table)


class TestLearnerTask:

    def test_to_arrays_classification(self, table):
        task = TaskFactory().make_task("brca", table)
        X, y, names = task.to_arrays()

        assert X.shape == (40, 40)
        assert X.dtype == np.float64
        assert len(y) == 40
        assert set(y) == {"LumA", "Basal"}
        assert names == list(table.feature_ids)

    def test_to_arrays_clustering(self, table):
        X, y, _ = TaskFactory().make_task("c", table, "clustering").to_arrays()
        assert y is None
        assert X.shape == (40, 40)

    def test_split_reproducible(self, table):
        task = TaskFactory().make_task("brca", table)

        train1, test1 = task.split(test_size=0.25, seed=3)
        train2, test2 = task.split(test_size=0.25, seed=3)

        assert list(train1.table.sample_ids) == list(train2.table.sample_ids)
        assert list(test1.table.sample_ids) == list(test2.table.sample_ids)
        assert train1.task_id == "brca/train"
        assert test1.task_id == "brca/test"

    def test_split_is_stratified_and_disjoint(self, table):
        train, test = TaskFactory().make_task("brca", table).split(test_size=0.5, seed=0)

        assert set(train.table.sample_ids).isdisjoint(test.table.sample_ids)
        assert train.n_samples + test.n_samples == 40
        assert train.table.labels.value_counts().to_dict() == {"LumA": 10, "Basal": 10}

    def test_split_clustering(self, table):
        train, test = TaskFactory().make_task("c", table, "clustering").split(0.25, seed=1)
        assert train.kind is TaskKind.CLUSTERING
        assert test.n_samples == 10

    def test_sklearn_end_to_end(self, table):
        """Filter on the training partition only, then fit a learner."""
        task = TaskFactory().make_task("brca", table)
        train, test = task.split(test_size=0.25, seed=0)

        vf = VarianceFilter(n_features=10).fit(train.table)
        X_train = vf.transform(train.table).feature_values()
        y_train = train.table.labels.to_numpy()
        X_test = vf.transform(test.table).feature_values()

        model = DecisionTreeClassifier(random_state=0).fit(X_train, y_train)
        predictions = model.predict(X_test)

        assert len(predictions) == test.n_samples
        assert set(predictions) <= {"LumA", "Basal"}

    def test_knn_on_informative_features(self):
        """The subtype shift is recoverable from the task arrays."""
        matrix = generate_synthetic_expression_matrix(n_genes=20, n_samples=60,
                                                      n_informative=20, seed=2)
        table = build_feature_table(matrix, labels="subtype").table
        train, test = TaskFactory().make_task("t", table).split(test_size=0.3, seed=0)

        X_tr, y_tr, _ = train.to_arrays()
        X_te, y_te, _ = test.to_arrays()
        model = KNeighborsClassifier(n_neighbors=3).fit(X_tr, y_tr)

        assert model.score(X_te, y_te) > 0.8
