from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "internfinder-api"
    environment: str = "dev"
    frontend_url: str = "http://localhost:3000"
    host: str = "0.0.0.0"
    port: int = 3100
    database_url: str | None = None
    database_pool_min_size: int = 1
    database_pool_max_size: int = 10
    external_jobs_cache_ttl_seconds: float = 20 * 60
    external_jobs_timeout_seconds: float = 15.0
    remotive_categories: list[str] = ["software-dev", "design", "marketing", "sales", "product", "data", "business"]
    remotive_limit: int = 50
    rapidapi_key: str | None = None
    jsearch_query: str = "developer OR designer OR marketer in India"
    jsearch_num_pages: int = 3
    supabase_url: str | None = None
    supabase_anon_key: str | None = None
    auth_timeout_seconds: float = 5.0
    otel_enabled: bool = True
    otel_service_name: str = "internfinder-api"
    otel_exporter_otlp_endpoint: str | None = None
    otel_exporter_otlp_headers: str | None = None
    otel_trace_sample_ratio: float = 1.0
    otel_log_correlation: bool = True

    model_config = SettingsConfigDict(env_prefix="IF_", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
