"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ───────────────────────────────────────────
#
# Configuration is loaded in layers (later layers override earlier):
#
#   1. config/config.yaml  -- Static defaults checked into the repo
#   2. .env file           -- Local developer overrides (not committed)
#   3. Environment vars    -- Set at deploy time
#
# load_config() reads the YAML file first, then deep-merges the values
# derived from Settings on top.
# ──────────────────────────────────────────────────────────────────────
"""

from pathlib import Path

import yaml

from docqa.config.settings import Settings

# Used when config.yaml is absent or leaves a key out.
DEFAULTS: dict = {
    "rag": {
        "chunk_size": 1000,
        "chunk_overlap": 200,
        "top_k": 3,
        "preview_chars": 150,
    },
    "llm": {
        "max_tokens": 1024,
    },
    "vector_store": {
        "delete_poll_interval": 0.25,
        "delete_poll_attempts": 20,
    },
}


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Environment variables (via Settings) override YAML values where keys overlap.

    Args:
        path: Path to the YAML configuration file.
        settings: Settings to merge; a fresh ``Settings()`` when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config: dict = {}
    _deep_merge(config, DEFAULTS)

    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
        _deep_merge(config, yaml_config)

    settings = settings or Settings()
    env_overrides = {
        "vector_store": {
            "collection": settings.chromadb_collection,
        },
    }

    _deep_merge(config, env_overrides)
    return config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        elif isinstance(value, dict):
            base[key] = {}
            _deep_merge(base[key], value)
        else:
            base[key] = value
