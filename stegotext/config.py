"""
Configuration loading for StegoText

Settings come from DEFAULT_CONFIG, overlaid with a YAML file. The file is
looked up in this order: explicit path, $STEGOTEXT_CONFIG, then
~/.stegotext/config.yaml.
"""

import copy
import os
from pathlib import Path
from typing import Dict, Optional

import yaml

CONFIG_ENV_VAR = 'STEGOTEXT_CONFIG'
DEFAULT_CONFIG_PATH = Path.home() / '.stegotext' / 'config.yaml'

DEFAULT_CONFIG = {
    'defaults': {
        'output_suffix': '_stego',
        'show_progress': True,
    },
    'raster': {
        'color_space': 'passthrough',
        'premultiply_alpha': False,
        'allow_resample': False,
    },
    'logging': {
        'level': 'WARNING',
    },
}

_config_cache: Optional[Dict] = None


class ConfigError(ValueError):
    """Configuration file could not be parsed"""


def _merge(base: Dict, override: Dict) -> Dict:
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _merge(result[key], value)
        else:
            result[key] = value
    return result


def _resolve_path(path: Optional[str]) -> Optional[Path]:
    if path:
        return Path(path)
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return DEFAULT_CONFIG_PATH


def load_config(path: Optional[str] = None) -> Dict:
    """
    Load configuration merged over the defaults

    Args:
        path: Optional YAML file; a missing file just yields the defaults

    Returns:
        dict: Full configuration
    """
    config_path = _resolve_path(path)
    if config_path is None or not config_path.exists():
        return copy.deepcopy(DEFAULT_CONFIG)

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            user_config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid configuration file {config_path}: {e}") from e

    if not isinstance(user_config, dict):
        raise ConfigError(f"Configuration file {config_path} must contain a mapping")

    return _merge(DEFAULT_CONFIG, user_config)


def get_config(path: Optional[str] = None) -> Dict:
    """Return the cached configuration, loading it on first use"""
    global _config_cache
    if _config_cache is None or path is not None:
        _config_cache = load_config(path)
    return _config_cache


def reload_config(path: Optional[str] = None) -> Dict:
    global _config_cache
    _config_cache = None
    return get_config(path)
