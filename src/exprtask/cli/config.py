"""
Run-configuration files for the exprtask CLI.

Supports YAML and JSON config files. Explicit command-line flags always win
over config values, which win over argparse defaults.

Example ``run.yaml``:

    input: data/brca_expression.csv
    metadata: data/brca_clinical.csv
    output: results/brca
    label: PAM50
    selection:
      n_features: 500
      ddof: 0
      n_jobs: 4
    task:
      id: brca_pam50
      kind: classification
"""

from __future__ import annotations

import json
from argparse import Namespace
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

__all__ = ['load_config', 'validate_config', 'merge_config_with_args', 'CONFIG_KEYS']

# (section, key) in the config file -> argparse destination
CONFIG_KEYS: Dict[tuple, str] = {
    (None, 'input'): 'input',
    (None, 'metadata'): 'metadata',
    (None, 'output'): 'output',
    (None, 'label'): 'label',
    (None, 'label_column'): 'label_column',
    ('selection', 'n_features'): 'n_features',
    ('selection', 'ddof'): 'ddof',
    ('selection', 'n_jobs'): 'n_jobs',
    ('task', 'id'): 'task_id',
    ('task', 'kind'): 'kind',
}

_PATH_ARGS = ('input', 'metadata', 'output')

_SHORT_FLAGS = {
    'i': 'input',
    'm': 'metadata',
    'o': 'output',
    'k': 'n_features',
}


def load_config(config_path: Path) -> Dict[str, Any]:
    """
    Load configuration from a YAML or JSON file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the format is unsupported or the content is invalid
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    suffix = config_path.suffix.lower()

    try:
        with open(config_path, 'r') as f:
            if suffix in ('.yaml', '.yml'):
                config = yaml.safe_load(f)
            elif suffix == '.json':
                config = json.load(f)
            else:
                raise ValueError(
                    f"Unsupported config format: {suffix}. "
                    f"Use .yaml, .yml, or .json"
                )
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file: {e}") from e
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in config file: {e}") from e

    if config is None:
        return {}

    if not isinstance(config, dict):
        raise ValueError("Config file must contain a mapping at top level")

    return config


def validate_config(config: Dict[str, Any]) -> None:
    """
    Validate configuration structure and values.

    Raises:
        ValueError: If the configuration is invalid
    """
    known_top = {key for section, key in CONFIG_KEYS if section is None}
    known_sections = {section for section, _ in CONFIG_KEYS if section is not None}
    unknown = set(config) - known_top - known_sections
    if unknown:
        raise ValueError(f"Unknown config keys: {sorted(unknown)}")

    for section in known_sections:
        if section in config and not isinstance(config[section], dict):
            raise ValueError(f"Config section '{section}' must be a mapping")

    selection = config.get('selection', {})
    if 'n_features' in selection:
        n = selection['n_features']
        if isinstance(n, bool) or not isinstance(n, int) or n <= 0:
            raise ValueError(f"selection.n_features must be a positive integer, got: {n}")
    if 'ddof' in selection:
        ddof = selection['ddof']
        if isinstance(ddof, bool) or not isinstance(ddof, int) or ddof < 0:
            raise ValueError(f"selection.ddof must be a non-negative integer, got: {ddof}")
    if 'n_jobs' in selection:
        n_jobs = selection['n_jobs']
        if isinstance(n_jobs, bool) or not isinstance(n_jobs, int) or n_jobs < 1:
            raise ValueError(f"selection.n_jobs must be >= 1, got: {n_jobs}")

    task = config.get('task', {})
    if 'kind' in task:
        valid_kinds = ['classification', 'clustering']
        if task['kind'] not in valid_kinds:
            raise ValueError(
                f"Invalid task kind '{task['kind']}'. "
                f"Choose from: {', '.join(valid_kinds)}"
            )


def _explicit_args(cli_args: Optional[List[str]]) -> set:
    """
    Destinations of flags that appear literally on the command line.

    The parsers are built with ``allow_abbrev=False``, so every long flag
    seen here is spelled in full.
    """
    explicit = set()
    for arg in cli_args or []:
        if arg.startswith('--'):
            explicit.add(arg[2:].split('=', 1)[0].replace('-', '_'))
        elif arg.startswith('-') and len(arg) >= 2 and arg[1] in _SHORT_FLAGS:
            # "-k 4" and the attached form "-k4"
            explicit.add(_SHORT_FLAGS[arg[1]])
    return explicit


def merge_config_with_args(
    config: Dict[str, Any],
    args: Namespace,
    cli_args: Optional[List[str]] = None,
) -> Namespace:
    """
    Merge config file values into parsed CLI arguments.

    Priority (highest to lowest):
    1. Explicitly provided CLI arguments
    2. Config file values
    3. CLI argument defaults

    Args:
        config: Configuration from load_config()
        args: Parsed CLI arguments
        cli_args: Raw argument list, used to detect explicit flags. If None,
            every argument is treated as a default.

    Returns:
        New Namespace with merged values
    """
    explicit = _explicit_args(cli_args)
    merged = Namespace(**vars(args))

    for (section, key), dest in CONFIG_KEYS.items():
        source = config if section is None else config.get(section, {})
        if key not in source or source[key] is None:
            continue
        if dest in explicit:
            continue

        value = source[key]
        if dest in _PATH_ARGS:
            value = Path(value)
        setattr(merged, dest, value)

    return merged
