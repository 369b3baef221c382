"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. DATABASE_URL is validated at load time.
"""

from functools import lru_cache

from pydantic import BaseModel, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class RateLimitRuleSettings(BaseModel):
    """One rate-limit rule: requests allowed per window for a path prefix."""

    max_requests: int
    window_seconds: int


def _default_rate_limit_rules() -> dict[str, RateLimitRuleSettings]:
    return {
        "/auth/login": RateLimitRuleSettings(max_requests=5, window_seconds=15 * 60),
        "/auth/register": RateLimitRuleSettings(max_requests=3, window_seconds=60 * 60),
        "/auth/refresh": RateLimitRuleSettings(max_requests=10, window_seconds=5 * 60),
        "/admin": RateLimitRuleSettings(max_requests=200, window_seconds=15 * 60),
        "default": RateLimitRuleSettings(max_requests=100, window_seconds=15 * 60),
    }


class Settings(BaseSettings):
    """Application settings loaded from environment and .env.

    All settings are optional with defaults except database_url, which is
    validated in validate_required.
    """

    # App
    app_name: str = "backoffice"
    app_version: str = "1.0.0"
    debug: bool = False
    api_prefix: str = "/api/v1"

    # Database
    database_url: str = ""
    database_echo: bool = False
    db_pool_size: int | None = None
    db_max_overflow: int | None = None
    db_command_timeout: int | None = None

    # CORS
    allowed_origins: str = "http://localhost:3000,http://localhost:8080"

    # Request / middleware
    request_id_header: str = "X-Request-ID"
    correlation_id_header: str = "X-Correlation-ID"
    session_id_header: str = "X-Session-ID"

    # RBAC
    super_role: str = "SUPER_ADMIN"
    # Header set by the upstream auth gateway with the admin user id ("" disables)
    principal_header: str = ""

    # Rate limiting (path prefix -> rule; "default" is the fallback)
    rate_limit_enabled: bool = True
    rate_limit_min_interval_ms: int = 100
    rate_limit_rules: dict[str, RateLimitRuleSettings] = _default_rate_limit_rules()

    # Audit log retention
    audit_retention_days: int = 365
    audit_export_max_rows: int = 50_000

    # Redis Cache
    redis_enabled: bool = True
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: SecretStr | None = None
    redis_max_connections: int = 10
    cache_ttl_user_permissions: int = 1800
    cache_ttl_role_permissions: int = 1800
    cache_ttl_roles: int = 3600

    # OpenTelemetry
    telemetry_enabled: bool = True
    telemetry_exporter: str = "console"
    telemetry_otlp_endpoint: str | None = None
    telemetry_sample_rate: float = 1.0
    telemetry_environment: str = "development"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_required(self) -> "Settings":
        """Validate required env and rate-limit rules.

        - DATABASE_URL is required.
        - The rule table must contain a "default" entry with positive values.
        """
        if not self.database_url:
            raise ValueError(
                "DATABASE_URL is required. Set in environment or .env file."
            )
        if "default" not in self.rate_limit_rules:
            raise ValueError("rate_limit_rules must define a 'default' rule")
        for prefix, rule in self.rate_limit_rules.items():
            if rule.max_requests <= 0 or rule.window_seconds <= 0:
                raise ValueError(
                    f"rate_limit_rules[{prefix!r}] must have positive max_requests and window_seconds"
                )
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings (single instance per process).

    Validation runs on first call, not at import time. In tests, call
    get_settings.cache_clear() before overriding env vars so the next
    get_settings() uses the new values.

    Returns:
        Loaded and validated Settings instance.
    """
    return Settings()
