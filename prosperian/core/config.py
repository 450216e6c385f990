# prosperian/core/config.py
from __future__ import annotations

from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore"
    )

    # Environment
    environment: str = Field(default="development", validation_alias="ENVIRONMENT")
    debug: bool = Field(default=False, validation_alias="DEBUG")

    # Server
    api_host: str = Field(default="0.0.0.0", validation_alias="API_HOST")
    api_port: int = Field(default=8000, validation_alias="API_PORT")
    api_prefix: str = Field(default="/api", validation_alias="API_PREFIX")

    # Logging
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_format: str = Field(default="json", validation_alias="LOG_FORMAT")

    # CORS
    allowed_origins: str = Field(default="http://localhost:3000,http://127.0.0.1:3000", validation_alias="ALLOWED_ORIGINS")
    allowed_methods: str = Field(default="GET,POST,PUT,DELETE,OPTIONS", validation_alias="ALLOWED_METHODS")
    allowed_headers: str = Field(default="*", validation_alias="ALLOWED_HEADERS")

    # Pronto upstream
    pronto_base_url: str = Field(default="https://app.prontohq.com/api/v2", validation_alias="PRONTO_BASE_URL")
    pronto_api_key: str = Field(default="", validation_alias="PRONTO_API_KEY")
    pronto_timeout_seconds: float = Field(default=30.0, validation_alias="PRONTO_TIMEOUT_SECONDS")

    # Global result aggregation (/prosperian/get/global/result)
    global_result_page_size: int = Field(default=12, validation_alias="GLOBAL_RESULT_PAGE_SIZE")
    global_result_detail_timeout_ms: int = Field(default=900, validation_alias="GLOBAL_RESULT_DETAIL_TIMEOUT_MS")
    global_result_enrich_timeout_ms: int = Field(default=800, validation_alias="GLOBAL_RESULT_ENRICH_TIMEOUT_MS")
    search_detail_default_limit: int = Field(default=100, validation_alias="SEARCH_DETAIL_DEFAULT_LIMIT")
    fanout_max_concurrency: int = Field(default=16, validation_alias="FANOUT_MAX_CONCURRENCY")

    # Workflow global results (/pronto/workflow/global-results)
    workflow_detail_limit: int = Field(default=1000, validation_alias="WORKFLOW_DETAIL_LIMIT")
    workflow_default_limit: int = Field(default=1000, validation_alias="WORKFLOW_DEFAULT_LIMIT")
    workflow_max_limit: int = Field(default=10000, validation_alias="WORKFLOW_MAX_LIMIT")
    workflow_fetch_concurrency: int = Field(default=1, validation_alias="WORKFLOW_FETCH_CONCURRENCY")

    # Enrichment
    enrich_default_country: str = Field(default="FR", validation_alias="ENRICH_DEFAULT_COUNTRY")

    # Apify (Google Places crawler)
    apify_base_url: str = Field(default="https://api.apify.com/v2", validation_alias="APIFY_BASE_URL")
    apify_token: str = Field(default="", validation_alias="APIFY_TOKEN")
    apify_actor_id: str = Field(default="compass~crawler-google-places", validation_alias="APIFY_ACTOR_ID")
    apify_timeout_seconds: float = Field(default=15.0, validation_alias="APIFY_TIMEOUT_SECONDS")
    apify_poll_interval_seconds: float = Field(default=2.0, validation_alias="APIFY_POLL_INTERVAL_SECONDS")
    apify_max_wait_seconds: float = Field(default=60.0, validation_alias="APIFY_MAX_WAIT_SECONDS")
    places_max_results: int = Field(default=20, validation_alias="PLACES_MAX_RESULTS")

    # Pronto workflows (/pronto-workflows)
    all_searches_max_searches: int = Field(default=20, validation_alias="ALL_SEARCHES_MAX_SEARCHES")
    all_searches_leads_per_search: int = Field(default=50, validation_alias="ALL_SEARCHES_LEADS_PER_SEARCH")

    # Monitoring
    sentry_dsn: Optional[str] = Field(default=None, validation_alias="SENTRY_DSN")

    @field_validator("environment")
    def validate_environment(cls, v):
        valid_envs = ["development", "testing", "staging", "production"]
        if v not in valid_envs:
            raise ValueError(f"environment must be one of {valid_envs}")
        return v

    @field_validator("log_level")
    def validate_log_level(cls, v):
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    def validate_log_format(cls, v):
        valid_formats = ["json", "console"]
        if v not in valid_formats:
            raise ValueError(f"log_format must be one of {valid_formats}")
        return v

    @field_validator("fanout_max_concurrency", "workflow_fetch_concurrency")
    def validate_concurrency(cls, v):
        if v < 0:
            raise ValueError("concurrency limits must be >= 0 (0 means unbounded)")
        return v

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        return self.environment == "testing"

    def origins(self) -> List[str]:
        if self.allowed_origins.strip() == "*":
            return ["*"]
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    def methods(self) -> List[str]:
        return [method.strip() for method in self.allowed_methods.split(",") if method.strip()]

    def headers(self) -> List[str]:
        return [header.strip() for header in self.allowed_headers.split(",") if header.strip()]


settings = Settings()
