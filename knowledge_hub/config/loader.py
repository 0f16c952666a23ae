"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ───────────────────────────────────────────
#
# Configuration is loaded in layers (later layers override earlier):
#
#   1. config/config.yaml  - Static defaults checked into the repo
#   2. .env file           - Local developer overrides (not committed)
#   3. Environment vars    - Set at deploy time
#
# load_config() reads the YAML file first, then deep-merges the
# environment-based Settings values on top.
# ──────────────────────────────────────────────────────────────────────
"""

from pathlib import Path

import yaml

from knowledge_hub.config.settings import Settings

_DEFAULT_IMPORT_TAGS = ["bulk"]
_DEFAULT_UPLOAD_TAGS = ["upload"]


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Environment variables (via Settings) override YAML values where keys overlap.

    Args:
        path: Path to the YAML configuration file.
        settings: Pre-built Settings; a fresh instance is read when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    # Keys the rest of the app reads unconditionally.
    yaml_config.setdefault("app", {}).setdefault("cors_origins", ["*"])
    ingestion = yaml_config.setdefault("ingestion", {})
    ingestion.setdefault("import_tags", list(_DEFAULT_IMPORT_TAGS))
    ingestion.setdefault("upload_tags", list(_DEFAULT_UPLOAD_TAGS))

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "store": {
            "db_path": settings.db_path,
        },
        "identifiers": {
            "counter_name": settings.counter_name,
            "prefix": settings.identifier_prefix,
            "pad_width": settings.identifier_pad_width,
        },
        "auth": {
            "enabled": settings.auth_enabled(),
            "editor_roles": list(settings.editor_roles),
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
