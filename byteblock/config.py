"""
Configuration for the byteblock command line tools.

Lookup order for the config file: explicit path, $BYTEBLOCK_CONFIG,
~/.byteblock/config.toml. Missing files fall back to defaults.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from byteblock.spec import MAX_FILE_SIZE

log = logging.getLogger(__name__)

CONFIG_ENV_VAR = "BYTEBLOCK_CONFIG"

DEFAULT_CONFIG_PATH = Path.home() / ".byteblock" / "config.toml"

DEFAULT_CONFIG = {
    "align": 0,                 # payload alignment for `pack`
    "chunk_size": 1024 * 1024,  # read size when streaming input files
    "log_level": "WARNING",
    "max_size": MAX_FILE_SIZE,  # largest stream file `list`/`unpack` will map
}


def load_config(config_path: Path | None = None) -> dict[str, Any]:
    """Load config from TOML file, falling back to defaults."""
    config = dict(DEFAULT_CONFIG)
    if config_path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR, "")
        config_path = Path(env_path) if env_path else DEFAULT_CONFIG_PATH
    path = Path(config_path)
    if not path.is_file():
        return config

    try:
        import tomllib
    except ImportError:
        import tomli as tomllib

    try:
        with open(path, "rb") as f:
            file_config = tomllib.load(f)
    except Exception as e:
        log.warning("Failed to load config from %s: %s", path, e)
        return config

    unknown = set(file_config) - set(DEFAULT_CONFIG)
    if unknown:
        log.warning("Ignoring unknown config keys in %s: %s", path, ", ".join(sorted(unknown)))
    config.update({k: v for k, v in file_config.items() if k in DEFAULT_CONFIG})
    return config
