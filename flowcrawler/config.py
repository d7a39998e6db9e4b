# config.py
from typing import Any, Dict, Optional

import yaml

from .constants import (
    BROWSER_ARGS, NAVIGATION_TIMEOUT, NAVIGATION_WAIT_UNTIL, WORKFLOWS_DIR,
    NEO4J_URI, NEO4J_USER, NEO4J_PASSWORD, logger,
)

DEFAULT_CONFIG: Dict[str, Any] = {
    'headful': False,
    'slow_mo': 0,
    'browser_args': BROWSER_ARGS,
    'navigation_timeout': NAVIGATION_TIMEOUT,
    'wait_until': NAVIGATION_WAIT_UNTIL,
    'continue_on_fail': False,
    'workflows_dir': WORKFLOWS_DIR,
    'neo4j_uri': NEO4J_URI,
    'neo4j_user': NEO4J_USER,
    'neo4j_password': NEO4J_PASSWORD,
}


def load_config_file(path: str) -> Dict[str, Any]:
    with open(path, encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    logger.info(f"Loaded config from {path}")
    return data


def build_config(config_file: Optional[str] = None, **overrides) -> Dict[str, Any]:
    """Merge defaults, an optional YAML file and keyword overrides (None values are skipped)."""
    config = dict(DEFAULT_CONFIG)
    if config_file:
        config.update(load_config_file(config_file))
    config.update({k: v for k, v in overrides.items() if v is not None})
    return config
