"""Configuration management using Pydantic BaseSettings.

All deployment parameters (API key, store table, query list, notification
endpoint, credentials) are read once from the environment (and an optional
``.env`` file) into a :class:`Config` object. Core components never read the
environment themselves; the entry points build them from this object.
"""
import json
from typing import List

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings

DEFAULT_QUERY = "site:stackoverflow.com OR site:stackexchange.com floqast OR liljwty"
QUERY_SEPARATOR = "||"
STORE_BACKENDS = ["dynamodb", "redis", "file", "memory"]


class Config(BaseSettings):
    """Main configuration class combining all settings."""

    # Search provider (SerpAPI)
    serpapi_api_key: str = Field("", validation_alias=AliasChoices("SERPAPI_API_KEY", "SERP"), description="SerpAPI key")
    serpapi_url: str = Field("https://serpapi.com/search.json", description="SerpAPI search endpoint")
    serpapi_engine: str = Field("google", description="SerpAPI engine")
    serpapi_google_domain: str = Field("google.com", description="Google domain to query")
    serpapi_gl: str = Field("us", description="Country of the search")
    serpapi_hl: str = Field("en", description="Interface language")
    serpapi_num: int = Field(0, ge=0, le=100, description="Results per query (0=provider default)")
    search_queries: str = Field(DEFAULT_QUERY, description="JSON list or '||'-separated queries")
    http_timeout: float = Field(20.0, ge=1.0, le=120.0, description="Timeout for outbound HTTP calls in seconds")

    # Notification channel
    slack_webhook_url: str = Field("", validation_alias=AliasChoices("SLACK_WEBHOOK_URL", "SLACK"), description="Slack incoming webhook")
    dry_run: bool = Field(False, description="Log alerts instead of posting them")
    persist_dry_run: bool = Field(False, description="Commit dry-run results to the store (they will never be alerted)")

    # Result store
    store_backend: str = Field("dynamodb", description="Store backend: dynamodb, redis, file, memory")
    dynamodb_table: str = Field("doorkeep", description="DynamoDB table name")
    dynamodb_endpoint_url: str = Field("", description="Override DynamoDB endpoint (local testing)")
    aws_region: str = Field("us-east-1", description="AWS region")
    aws_access_key_id: str = Field("", validation_alias=AliasChoices("AWS_ACCESS_KEY_ID", "ACCESS_KEY"), description="AWS access key id")
    aws_secret_access_key: str = Field("", validation_alias=AliasChoices("AWS_SECRET_ACCESS_KEY", "SECRET_ACCESS_KEY"), description="AWS secret key")
    redis_url: str = Field("redis://localhost:6379/0", description="Redis connection URL")
    redis_key_prefix: str = Field("doorkeep:", description="Prefix for stored result keys")
    file_store_path: str = Field(".doorkeep/results.json", description="JSON file used by the file store")

    # Orchestration
    max_workers: int = Field(1, ge=1, le=16, description="Queries processed in parallel")

    # Logging
    log_level: str = Field("INFO", description="Logging level")
    log_format: str = Field("%(asctime)s - %(name)s - %(levelname)s - %(message)s", description="Log format")

    # Metrics (DogStatsD)
    datadog_metrics_enabled: bool = Field(False, description="Emit DogStatsD metrics")
    dd_agent_host: str = Field("localhost", description="DogStatsD host")
    dd_agent_port: int = Field(8125, ge=1, le=65535, description="DogStatsD port")
    metrics_prefix: str = Field("doorkeep", description="Metric namespace")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
        "populate_by_name": True,
    }

    @field_validator("store_backend")
    @classmethod
    def validate_store_backend(cls, v):
        if v.lower() not in STORE_BACKENDS:
            raise ValueError(f"Invalid store backend: {v}. Valid options: {STORE_BACKENDS}")
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_level(cls, v):
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Valid options: {valid_levels}")
        return v.upper()

    @field_validator("search_queries")
    @classmethod
    def validate_search_queries(cls, v):
        if v.strip().startswith("["):
            try:
                queries = json.loads(v)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON in search_queries: {e}")
            if not isinstance(queries, list) or not all(isinstance(q, str) for q in queries):
                raise ValueError("search_queries must be a JSON list of strings")
        return v

    def get_queries(self) -> List[str]:
        """Parse and return the configured query list (blank entries dropped)."""
        raw = self.search_queries.strip()
        if raw.startswith("["):
            queries = json.loads(raw)
        else:
            queries = raw.split(QUERY_SEPARATOR)
        return [q.strip() for q in queries if q.strip()]

    def validate_configuration(self) -> List[str]:
        """Validate the complete configuration and return any issues."""
        issues = []

        if not self.serpapi_api_key:
            issues.append("SERPAPI_API_KEY is required")
        if not self.get_queries():
            issues.append("SEARCH_QUERIES must contain at least one query")
        if not self.dry_run and not self.slack_webhook_url:
            issues.append("SLACK_WEBHOOK_URL is required unless DRY_RUN=true")
        if self.slack_webhook_url and not self.slack_webhook_url.startswith("https://"):
            issues.append("SLACK_WEBHOOK_URL must be an https:// URL")

        if self.store_backend == "dynamodb":
            if not self.dynamodb_table:
                issues.append("DYNAMODB_TABLE is required for the dynamodb store")
            if bool(self.aws_access_key_id) != bool(self.aws_secret_access_key):
                issues.append("AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY must be set together")
        if self.store_backend == "redis" and not self.redis_url.startswith(("redis://", "rediss://")):
            issues.append("REDIS_URL must be a valid Redis URL (redis://...)")
        if self.store_backend == "memory" and not self.dry_run:
            issues.append("STORE_BACKEND=memory forgets results between runs; every result will be re-notified")

        return issues

    def log_configuration(self) -> None:
        """Log the current configuration (sanitized)."""
        from doorkeep.utils.logger import log_info

        log_info("Configuration loaded",
                 serpapi_engine=self.serpapi_engine,
                 query_count=len(self.get_queries()),
                 store_backend=self.store_backend,
                 dynamodb_table=self.dynamodb_table,
                 aws_region=self.aws_region,
                 slack_configured=bool(self.slack_webhook_url),
                 dry_run=self.dry_run,
                 persist_dry_run=self.persist_dry_run,
                 max_workers=self.max_workers,
                 metrics_enabled=self.datadog_metrics_enabled,
                 log_level=self.log_level)


# Global configuration instance (lazy loading), used by the entry points only
_config = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reload_config() -> Config:
    """Reload configuration from environment variables."""
    global _config
    _config = Config()
    return _config
