"""Application configuration via environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Collector-wide configuration options."""

    api_v1_prefix: str = "/v1"
    owner: str = ""
    gather_type: str = "team"
    oauth_key: str | None = None
    oauth_secret: str | None = None
    oauth_token_url: str = "https://bitbucket.org/site/oauth2/access_token"
    bitbucket_api_base_url: str = "https://api.bitbucket.org/2.0"
    http_timeout: float = 5.0
    max_workers: int | None = None
    measurement: str = "bitbucket"
    sink_backend: str = "file"
    sink_path: str = "data/bitbucket_metrics.jsonl"
    sink_table: str | None = None
    sink_batch_size: int = 25
    clickhouse_url: str | None = None
    clickhouse_database: str | None = None
    clickhouse_user: str | None = None
    clickhouse_password: str | None = None
    otel_enabled: bool = False
    otel_exporter: str = "console"

    model_config = SettingsConfigDict(env_prefix="prmetrics_", env_file=".env", extra="ignore")


settings = Settings()
