"""
Configuration management for the search trend calendar.

Settings are kept in a nested dictionary and read with chained ``.get()``
calls, e.g. ``get_config().get('api', {}).get('openai', {})``. Values come
from built-in defaults, then an optional JSON file named by
``TREND_CONFIG_FILE``, then environment variables (a ``.env`` file is loaded
first if present).
"""

import copy
import json
import logging
import os
from typing import Any, Dict, Optional

from dotenv import load_dotenv

DEFAULT_CONFIG: Dict[str, Any] = {
    'data': {
        'path': os.path.join('data', 'keyword_trends.csv'),
    },
    'ranking': {
        'top_n': 20,
        'default_selection': 2,
    },
    'insights': {
        'max_keywords': 3,
        'window_months': 6,
    },
    'chart': {
        'time_ranges': [6, 12, 24],
        'default_range': 12,
    },
    'api': {
        'openai': {
            'api_key': '',
            'model': 'gpt-4.1',
            'max_tokens': 1200,
            'temperature': 0.7,
            'timeout': 60.0,
        },
        'serper': {
            'api_key': '',
            'endpoint': 'https://google.serper.dev/search',
            'gl': 'kr',
            'hl': 'ko',
            'num_results': 5,
            'timeout': 10.0,
        },
    },
    'logging': {
        'level': 'INFO',
    },
}

# (environment variable, config path, converter)
ENV_OVERRIDES = [
    ('OPENAI_API_KEY', ('api', 'openai', 'api_key'), str),
    ('OPENAI_MODEL', ('api', 'openai', 'model'), str),
    ('OPENAI_MAX_TOKENS', ('api', 'openai', 'max_tokens'), int),
    ('OPENAI_TEMPERATURE', ('api', 'openai', 'temperature'), float),
    ('OPENAI_TIMEOUT', ('api', 'openai', 'timeout'), float),
    ('SERPER_API_KEY', ('api', 'serper', 'api_key'), str),
    ('SERPER_TIMEOUT', ('api', 'serper', 'timeout'), float),
    ('TREND_DATA_PATH', ('data', 'path'), str),
    ('LOG_LEVEL', ('logging', 'level'), str),
]

_config: Optional[Dict[str, Any]] = None


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def _load_config_file(path: str) -> Dict[str, Any]:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logging.warning(f"Ignoring config file {path}: {e}")
        return {}
    if not isinstance(data, dict):
        logging.warning(f"Ignoring config file {path}: top level must be an object")
        return {}
    return data


def _apply_env_overrides(config: Dict[str, Any]) -> None:
    for env_name, path, convert in ENV_OVERRIDES:
        raw = os.getenv(env_name)
        if raw is None or not raw.strip():
            continue
        try:
            value = convert(raw.strip())
        except ValueError:
            logging.warning(f"Invalid value for {env_name}; keeping default")
            continue
        section = config
        for part in path[:-1]:
            section = section.setdefault(part, {})
        section[path[-1]] = value


def build_config() -> Dict[str, Any]:
    """
    Build a fresh configuration dictionary from all layers

    Returns:
        Nested configuration dictionary
    """
    load_dotenv()
    config = copy.deepcopy(DEFAULT_CONFIG)

    config_file = os.getenv('TREND_CONFIG_FILE')
    if config_file:
        _deep_merge(config, _load_config_file(config_file))

    _apply_env_overrides(config)
    return config


def get_config(refresh: bool = False) -> Dict[str, Any]:
    """
    Return the process-wide configuration, building it on first use

    Args:
        refresh: Rebuild from defaults, file and environment

    Returns:
        Nested configuration dictionary
    """
    global _config
    if _config is None or refresh:
        _config = build_config()
    return _config
