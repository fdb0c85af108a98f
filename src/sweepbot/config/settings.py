from __future__ import annotations

from pathlib import Path

import openml
from pydantic_settings import BaseSettings, SettingsConfigDict


OPENML_TEST_SERVER = "https://test.openml.org/api/v1/xml"


class Settings(BaseSettings):
    """
    Centralized config.

    Key idea:
    - read from env first (so tests/CI can override),
    - otherwise default to local dev values.
    """

    model_config = SettingsConfigDict(env_prefix="SWEEPBOT_", extra="ignore")

    # DuckDB file for the local sweep ledger
    db_url: str = "duckdb:///data/sweepbot.duckdb"

    # OpenML connection; apikey is only needed for uploads
    openml_server: str = "https://www.openml.org/api/v1/xml"
    openml_apikey: str | None = None
    use_test_server: bool = False
    cache_dir: str | None = None

    # sweep defaults
    default_tag: str = "sweepbot"
    default_measure: str = "area_under_roc_curve"
    n_configs: int = 10
    seed: int = 42

    reports_dir: str = "reports"
    log_level: str = "INFO"


settings = Settings()


def apply_openml_config(cfg: Settings | None = None) -> None:
    """Push server, apikey and cache directory into the global openml config."""
    cfg = cfg or settings
    openml.config.server = OPENML_TEST_SERVER if cfg.use_test_server else cfg.openml_server
    if cfg.openml_apikey:
        openml.config.apikey = cfg.openml_apikey
    if cfg.cache_dir:
        Path(cfg.cache_dir).mkdir(parents=True, exist_ok=True)
        openml.config.set_root_cache_directory(cfg.cache_dir)
