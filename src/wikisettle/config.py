"""
Configuration loading.

Settings come from a YAML file (wikisettle.yaml in the working directory by
default). Every key is optional; missing keys fall back to DEFAULTS.

Format:
    project_dir: .
    paths:
      raw: data/raw
      included: data/pre_processed/included
      excluded: data/pre_processed/excluded
      parsed: data/parsed
    countries: null
    progress: true

Relative paths are resolved against project_dir, which is itself resolved
against the directory containing the config file.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = 'wikisettle.yaml'

DEFAULTS: Dict[str, Any] = {
    'project_dir': '.',
    'paths': {
        'raw': 'data/raw',
        'included': 'data/pre_processed/included',
        'excluded': 'data/pre_processed/excluded',
        'parsed': 'data/parsed',
    },
    'countries': None,
    'progress': True,
}


class ConfigError(ValueError):
    """Raised when a configuration or reference file is malformed."""


@dataclass(frozen=True)
class Config:
    """Resolved settings for one run."""

    project_dir: Path
    raw_dir: Path
    included_dir: Path
    excluded_dir: Path
    parsed_dir: Path
    countries_file: Optional[Path] = None
    progress: bool = True


def _as_mapping(value: Any, key: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{key}' must be a mapping, got {type(value).__name__}")
    return value


def _resolve(base: Path, value: Any, key: str) -> Path:
    if not isinstance(value, str):
        raise ConfigError(f"'{key}' must be a path string, got {type(value).__name__}")
    path = Path(value).expanduser()
    return path if path.is_absolute() else base / path


def build_config(data: Dict[str, Any], base_dir: Path) -> Config:
    """Build a Config from a parsed mapping, filling in DEFAULTS."""
    data = _as_mapping(data, 'config')
    paths = dict(DEFAULTS['paths'])
    paths.update(_as_mapping(data.get('paths'), 'paths'))

    project_dir = _resolve(base_dir, data.get('project_dir', DEFAULTS['project_dir']), 'project_dir')

    countries = data.get('countries', DEFAULTS['countries'])
    countries_file = _resolve(project_dir, countries, 'countries') if countries is not None else None

    progress = data.get('progress', DEFAULTS['progress'])
    if not isinstance(progress, bool):
        raise ConfigError(f"'progress' must be true or false, got {progress!r}")

    return Config(
        project_dir=project_dir,
        raw_dir=_resolve(project_dir, paths['raw'], 'paths.raw'),
        included_dir=_resolve(project_dir, paths['included'], 'paths.included'),
        excluded_dir=_resolve(project_dir, paths['excluded'], 'paths.excluded'),
        parsed_dir=_resolve(project_dir, paths['parsed'], 'paths.parsed'),
        countries_file=countries_file,
        progress=progress,
    )


def load_config(config_path: Optional[Path] = None) -> Config:
    """
    Load configuration from YAML.

    Args:
        config_path: Explicit config file. When None, wikisettle.yaml in the
            current directory is used if it exists, otherwise DEFAULTS.

    Raises:
        FileNotFoundError: An explicit config_path does not exist
        ConfigError: The file is not valid YAML or has wrong value types
    """
    if config_path is None:
        candidate = Path.cwd() / DEFAULT_CONFIG_NAME
        if not candidate.exists():
            logger.debug(f"No {DEFAULT_CONFIG_NAME} found, using defaults")
            return build_config({}, Path.cwd())
        config_path = candidate

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    logger.debug(f"Loaded config from {config_path}")
    return build_config(data or {}, config_path.resolve().parent)
