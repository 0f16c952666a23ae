"""Application settings loaded from environment variables via pydantic-settings.

# ─── HOW SETTINGS WORK ────────────────────────────────────────────────
#
# pydantic-settings reads configuration from two sources (priority order):
#
#   1. **Environment variables** - e.g. AUTH_SECRET=change-me
#   2. **.env file** - key=value lines in the project root .env file
#
# Field ``summary_budget`` maps to env var ``SUMMARY_BUDGET``.  List fields
# (``editor_roles``) are read as JSON, e.g. EDITOR_ROLES='["admin"]'.
#
# Defaults below are used when neither source sets a value.
# ──────────────────────────────────────────────────────────────────────
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Knowledge hub settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Article store ===
    db_path: str = "data/knowledge_hub.db"
    store_timeout_seconds: float = 5.0

    # === Identifier allocation ===
    # First allocation on a fresh counter yields counter_initial_value + 1,
    # i.e. KB-001001 with the defaults.
    counter_name: str = "kb"
    identifier_prefix: str = "KB"
    identifier_pad_width: int = 6
    counter_initial_value: int = 1000

    # === Ingestion ===
    summary_budget: int = 140
    split_marker: str = "Task type"
    markup_heading_tag: str = "h2"
    default_split_format: str = "marker"
    max_upload_bytes: int = 20 * 1024 * 1024

    # === Search ===
    search_default_limit: int = 50
    search_max_limit: int = 200

    # === Auth ===
    # Empty secret = development mode: write routes are open.
    auth_secret: str = ""
    auth_token_ttl_hours: int = 8
    editor_roles: list[str] = ["admin", "superadmin"]

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 3000
    app_env: str = "development"
    log_level: str = "INFO"

    def auth_enabled(self) -> bool:
        """Return True when a token secret is configured."""
        return bool(self.auth_secret)
