from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .models import IndexConfig

CACHE_DIR_ENV_VAR = "BACKPAN_INDEX_CACHE_DIR"
CONFIG_ENV_VAR = "BACKPAN_INDEX_CONFIG"

_DEFAULT_CACHE_DIR = Path.home() / ".backpan_index" / "cache"

DATABASE_FILENAME = "backpan.sqlite"


def get_cache_dir(config: IndexConfig) -> Path:
    """
    Determine the cache directory for a configuration.

    Priority:
    1. config.cache_dir
    2. Environment variable BACKPAN_INDEX_CACHE_DIR
    3. ~/.backpan_index/cache
    """
    if config.cache_dir is not None:
        cache_dir = Path(config.cache_dir).expanduser()
    else:
        env_path = os.environ.get(CACHE_DIR_ENV_VAR)
        cache_dir = Path(env_path).expanduser() if env_path else _DEFAULT_CACHE_DIR

    cache_dir.mkdir(parents=True, exist_ok=True)
    return cache_dir


def load_config(path: Optional[Union[str, Path]] = None, **overrides: Any) -> IndexConfig:
    """
    Build an IndexConfig from a JSON or YAML file plus keyword overrides.

    When no path is given, BACKPAN_INDEX_CONFIG is consulted; with neither,
    only the defaults and overrides apply.
    """
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR) or None

    raw: Dict[str, Any] = {}
    if path is not None:
        config_path = Path(path).expanduser()
        text = config_path.read_text(encoding="utf-8")
        if config_path.suffix.lower() in (".yaml", ".yml"):
            raw = yaml.safe_load(text) or {}
        else:
            raw = json.loads(text)

    raw.update(overrides)
    return IndexConfig(**raw)
