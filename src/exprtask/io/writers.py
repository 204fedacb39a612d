"""
Writers for feature tables, rankings and run provenance.

Outputs of one adapter run:
    feature_table.csv  samples × (features + label), sample ids as first column
    ranking.csv        rank, feature_id, score, position for every feature
    run.json           parameters and summary counts

JSON provenance is written atomically (temporary file in the same directory,
then ``os.replace``) so an interrupted run never leaves a truncated file.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from exprtask.selection.variance import FeatureRanking
from exprtask.table.feature_table import FeatureTable

logger = logging.getLogger(__name__)

__all__ = ['write_feature_table', 'write_ranking', 'atomic_write_json']


def write_feature_table(table: FeatureTable, path: Path) -> Path:
    """Write a feature table as CSV. Returns the written path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    frame = table.to_frame()
    frame.index.name = frame.index.name or "sample_id"
    frame.to_csv(path)
    logger.info(f"Wrote feature table ({table.n_samples} × {table.n_features}) to {path}")
    return path


def write_ranking(ranking: FeatureRanking, path: Path) -> Path:
    """Write the full feature ranking as CSV. Returns the written path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    ranking.to_frame().to_csv(path, index=False)
    logger.info(f"Wrote ranking of {len(ranking)} features to {path}")
    return path


def atomic_write_json(path: Path, data: Any, *, indent: int = 2) -> None:
    """
    Write ``data`` as JSON via temp-file + rename.

    Readers see either the previous file or the complete new one.
    """
    path = Path(path)
    tmp_path = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w", dir=path.parent, suffix=".tmp", delete=False
        ) as tmp:
            tmp_path = tmp.name
            json.dump(data, tmp, indent=indent, default=str)
        os.replace(tmp_path, path)
    except BaseException:
        if tmp_path is not None and os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise
