"""
Loading expression data and writing adapter outputs.

Key Functions:
    - load_expression_csv: features × samples file -> MeasurementMatrix
    - load_sample_metadata: attach per-sample annotations (class labels)
    - write_feature_table / write_ranking: CSV outputs
    - atomic_write_json: run provenance

Remote dataset acquisition is out of scope; these functions read local files.
"""

from exprtask.io.loaders import infer_separator, load_expression_csv, load_sample_metadata
from exprtask.io.writers import atomic_write_json, write_feature_table, write_ranking

__all__ = [
    'load_expression_csv',
    'load_sample_metadata',
    'infer_separator',
    'write_feature_table',
    'write_ranking',
    'atomic_write_json',
]
