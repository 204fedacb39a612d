"""Tests for loaders and writers."""

import json
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from exprtask.io.loaders import infer_separator, load_expression_csv, load_sample_metadata
from exprtask.io.writers import atomic_write_json, write_feature_table, write_ranking
from exprtask.selection.variance import VarianceFilter
from exprtask.table.builder import build_feature_table


class TestLoadExpression:

    def test_round_trip_values(self, csv_inputs):
        matrix = load_expression_csv(csv_inputs['expression'])
        original = csv_inputs['matrix']

        assert matrix.shape == original.shape
        assert list(matrix.feature_ids) == list(original.feature_ids)
        assert list(matrix.sample_ids) == list(original.sample_ids)
        np.testing.assert_allclose(matrix.data, original.data)

    def test_tsv(self, tmp_path):
        path = tmp_path / "expr.tsv"
        path.write_text("\tS1\tS2\nG1\t1\t2\nG2\t3\t4\n")
        matrix = load_expression_csv(path)
        assert matrix.data.dtype == np.float64
        np.testing.assert_array_equal(matrix.data, [[1.0, 2.0], [3.0, 4.0]])

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_expression_csv(tmp_path / "nope.csv")

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_text("")
        with pytest.raises(ValueError, match="empty"):
            load_expression_csv(path)

    def test_non_numeric(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text(",S1,S2\nG1,1,abc\nG2,3,4\n")
        with pytest.raises(ValueError, match="non-numeric"):
            load_expression_csv(path)

    def test_infinite_values(self, tmp_path):
        path = tmp_path / "inf.csv"
        path.write_text(",S1,S2\nG1,1,inf\nG2,3,4\n")
        with pytest.raises(ValueError, match="infinite"):
            load_expression_csv(path)

    def test_nan_warns(self, tmp_path):
        path = tmp_path / "nan.csv"
        path.write_text(",S1,S2\nG1,1,\nG2,3,4\n")
        with pytest.warns(UserWarning, match="missing values"):
            matrix = load_expression_csv(path)
        assert np.isnan(matrix.data[0, 1])

    def test_duplicate_features_kept_with_warning(self, tmp_path):
        path = tmp_path / "dup.csv"
        path.write_text(",S1,S2\nG1,1,2\nG1,3,4\nG2,5,6\n")
        with pytest.warns(UserWarning, match="duplicated feature"):
            matrix = load_expression_csv(path)
        assert matrix.n_features == 3

    def test_infer_separator(self):
        assert infer_separator(Path("a.tsv")) == "\t"
        assert infer_separator(Path("a.txt.gz")) == "\t"
        assert infer_separator(Path("a.csv")) == ","


class TestLoadMetadata:

    def test_aligned_to_matrix(self, csv_inputs):
        matrix = load_expression_csv(csv_inputs['expression'])
        matrix = load_sample_metadata(csv_inputs['metadata'], matrix)

        assert matrix.sample_metadata.index.equals(matrix.sample_ids)
        assert list(matrix.sample_metadata['subtype']) == \
            list(csv_inputs['matrix'].sample_metadata['subtype'])

    def test_reordered_and_extra_rows(self, tmp_path):
        expr = tmp_path / "expr.csv"
        expr.write_text(",S1,S2\nG1,1,2\n")
        meta = tmp_path / "meta.csv"
        meta.write_text("sample,grp\nS3,C\nS2,B\nS1,A\n")

        matrix = load_sample_metadata(meta, load_expression_csv(expr))
        assert list(matrix.sample_metadata['grp']) == ["A", "B"]

    def test_missing_samples(self, tmp_path):
        expr = tmp_path / "expr.csv"
        expr.write_text(",S1,S2\nG1,1,2\n")
        meta = tmp_path / "meta.csv"
        meta.write_text("sample,grp\nS1,A\n")

        with pytest.raises(ValueError, match="no metadata row"):
            load_sample_metadata(meta, load_expression_csv(expr))


class TestWriters:

    def test_write_feature_table(self, tmp_path, small_matrix):
        table = build_feature_table(small_matrix, labels="subtype").table
        path = write_feature_table(table, tmp_path / "out" / "feature_table.csv")

        written = pd.read_csv(path, index_col=0)
        assert list(written.columns) == list(table.feature_ids) + ["Class"]
        assert list(written.index) == list(table.sample_ids)

    def test_write_ranking(self, tmp_path, small_matrix):
        table = build_feature_table(small_matrix, labels="subtype").table
        ranking = VarianceFilter(n_features=5).rank(table)
        path = write_ranking(ranking, tmp_path / "ranking.csv")

        written = pd.read_csv(path)
        assert list(written['feature_id']) == list(ranking.feature_ids)
        assert len(written) == small_matrix.n_features

    def test_atomic_write_json(self, tmp_path):
        path = tmp_path / "run.json"
        atomic_write_json(path, {'a': 1, 'path': Path("x")})

        assert json.loads(path.read_text()) == {'a': 1, 'path': 'x'}
        assert not list(tmp_path.glob("*.tmp"))
