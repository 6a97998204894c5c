"""
Settings for the command-line tool and the upload web service, read from
config/ingest.yaml.
"""

import copy
import logging
import yaml
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / 'config' / 'ingest.yaml'

DEFAULT_CONFIG = {
    # Parsers to try, in order, when the format of a file is not given.
    'parsers': ['oe_csv', 'html'],
    'logging': {
        'level': 'INFO',
    },
    'webapp': {
        'max_upload_mb': 16,
    },
    # Text encoding of results files read from disk.
    'encoding': 'utf-8',
}


def _merge(defaults: dict, overrides: dict) -> dict:
    merged = copy.deepcopy(defaults)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: str = None) -> dict:
    """
    Load settings, filling in anything missing with the defaults.

    Args:
        config_path: YAML file to read.  Defaults to config/ingest.yaml.

    Returns:
        The settings.  If the file does not exist, the defaults.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH
    config_path = Path(config_path)

    if not config_path.exists():
        logger.debug(f"No config file at {config_path}, using defaults")
        return copy.deepcopy(DEFAULT_CONFIG)

    with open(config_path, 'r') as f:
        config = yaml.safe_load(f) or {}

    if not isinstance(config, dict):
        raise ValueError(f"Config file {config_path} should hold a mapping of settings")

    return _merge(DEFAULT_CONFIG, config)


def configure_logging(config: dict):
    """Set up logging for an entry point, at the configured level."""
    logging.basicConfig(
        level=getattr(logging, str(config['logging']['level']).upper(), logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s'
    )
