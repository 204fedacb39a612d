"""
exprtask build command - expression matrix to variance-filtered feature table.

Loads a features × samples expression file and its sample annotations,
builds the samples × features table with the class label appended, keeps the
K most variable features and writes:

    {output}/feature_table.csv
    {output}/ranking.csv
    {output}/run.json

Usage:
    exprtask build --input expr.csv --metadata clinical.csv --label PAM50 \\
        --n-features 500 --output results/brca
"""

import argparse
import logging
from datetime import datetime
from pathlib import Path

from exprtask.cli._validators import _non_negative_int, _positive_int


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the build subcommand."""
    parser = subparsers.add_parser(
        "build",
        allow_abbrev=False,
        help="Build a variance-filtered feature table from an expression matrix",
        description=(
            "Transpose an expression matrix into a samples x features table, "
            "append the class label and keep the most variable features."
        )
    )

    # Input/output
    parser.add_argument("--input", "-i", type=Path, default=None,
                        help="Expression data CSV/TSV (features x samples)")
    parser.add_argument("--metadata", "-m", type=Path, default=None,
                        help="Sample annotation CSV/TSV indexed by sample id")
    parser.add_argument("--output", "-o", type=Path, default=Path("results/exprtask"),
                        help="Output directory (default: results/exprtask)")
    parser.add_argument("--config", type=Path, default=None,
                        help="YAML/JSON run configuration (CLI flags override it)")

    # Labels
    parser.add_argument("--label", default=None,
                        help="Metadata column holding the class label")
    parser.add_argument("--label-column", default="Class",
                        help="Name of the label column in the output table (default: Class)")

    # Selection
    parser.add_argument("--n-features", "-k", type=_positive_int, default=500,
                        help="Number of most variable features to keep (default: 500)")
    parser.add_argument("--ddof", type=_non_negative_int, default=0,
                        help="Variance degrees of freedom, 0 = population (default: 0)")
    parser.add_argument("--n-jobs", type=_positive_int, default=1,
                        help="Threads for variance scoring (default: 1)")

    # Task
    parser.add_argument("--task-id", default=None,
                        help="Task identifier (default: input file stem)")
    parser.add_argument("--kind", choices=["classification", "clustering"],
                        default="classification",
                        help="Task kind (default: classification)")

    parser.set_defaults(func=run_build)


def run_build(args: argparse.Namespace) -> int:
    """Execute the build command."""
    from exprtask.core.errors import AdapterError
    from exprtask.io.loaders import load_expression_csv, load_sample_metadata
    from exprtask.io.writers import atomic_write_json, write_feature_table, write_ranking
    from exprtask.pipeline import matrix_to_filtered_task

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    logger = logging.getLogger(__name__)

    if args.config:
        from exprtask.cli.config import load_config, merge_config_with_args, validate_config

        logger.info(f"Loading configuration from: {args.config}")
        try:
            config = load_config(args.config)
            validate_config(config)
            args = merge_config_with_args(config, args, getattr(args, 'raw_args', None))
        except (FileNotFoundError, ValueError) as e:
            logger.error(f"Config file error: {e}")
            return 1

    # Required after config merge
    if not args.input:
        logger.error("--input is required (via CLI or config file)")
        return 1
    if not args.label:
        logger.error("--label is required (via CLI or config file)")
        return 1
    if not args.metadata:
        logger.error("--metadata is required (via CLI or config file)")
        return 1

    args.input = Path(args.input)
    args.metadata = Path(args.metadata)
    args.output = Path(args.output)
    task_id = args.task_id or args.input.name.split('.')[0]

    try:
        matrix = load_expression_csv(args.input)
        matrix = load_sample_metadata(args.metadata, matrix)
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Failed to load input: {e}")
        return 1

    try:
        result = matrix_to_filtered_task(
            matrix,
            label=args.label,
            n_features=args.n_features,
            task_id=task_id,
            kind=args.kind,
            label_column=args.label_column,
            ddof=args.ddof,
            n_jobs=args.n_jobs,
        )
    except AdapterError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 2

    args.output.mkdir(parents=True, exist_ok=True)
    write_feature_table(result.task.table, args.output / "feature_table.csv")
    write_ranking(result.ranking, args.output / "ranking.csv")

    run_info = {
        'timestamp': datetime.now().isoformat(),
        'input': str(args.input),
        'metadata': str(args.metadata),
        'n_input_features': matrix.n_features,
        'n_input_samples': matrix.n_samples,
        **result.to_dict(),
    }
    atomic_write_json(args.output / "run.json", run_info)

    logger.info(
        f"Task '{result.task.task_id}': {result.task.n_samples} samples × "
        f"{result.task.n_features} features ({result.n_dropped} dropped for missing labels)"
    )
    logger.info(f"Results saved to: {args.output}")
    return 0
