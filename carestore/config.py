"""
Configuration management with environment variable support and validation.

Design principles:
- Validation at startup (fail fast)
- Type safety with Pydantic
- Secure defaults (no service keys in code)
"""

import logging
import os
from functools import lru_cache
from typing import Literal, cast

import structlog
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

# Load environment variables from .env file
load_dotenv()

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class StoreConfig(BaseModel):
    """Key-value store backend configuration."""

    backend: Literal["memory", "supabase"] = Field(
        default="memory", description="Which KeyValueBackend implementation to build"
    )
    url: str | None = Field(default=None, description="Supabase project URL")
    api_key: str | None = Field(default=None, description="Supabase service role key", repr=False)
    table_name: str = Field(default="kv_store", min_length=1, description="Key-value table")
    timeout_seconds: float = Field(
        default=8.0, gt=0.0, description="Timeout enforced by the HTTP client"
    )
    probe_key: str = Field(
        default="therapy_types", min_length=1, description="Key read by the status probe"
    )
    compensate_partial_writes: bool = Field(
        default=True,
        description="Delete the account again when its profile write fails",
    )

    @field_validator("url")
    def validate_url(cls, v):
        if v is not None and not v.startswith(("http://", "https://")):
            raise ValueError("Store URL must start with http:// or https://")
        return v.rstrip("/") if v else v

    @model_validator(mode="after")
    def remote_backend_needs_credentials(self) -> "StoreConfig":
        if self.backend == "supabase" and (not self.url or not self.api_key):
            raise ValueError("supabase backend requires SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY")
        return self


class SchedulingConfig(BaseModel):
    """Appointment slot configuration."""

    default_duration: int = Field(default=60, gt=0, description="Session length in minutes")
    notification_lead_time: int = Field(
        default=24, ge=0, description="Hours before a session to notify the patient"
    )
    working_hours_start: str = Field(default="09:00", pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    working_hours_end: str = Field(default="17:00", pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    buffer_time: int = Field(default=15, ge=0, description="Minutes between two sessions")
    lookahead_days: int = Field(default=30, gt=0, description="Days searched for a free slot")

    @model_validator(mode="after")
    def start_before_end(self) -> "SchedulingConfig":
        if self.working_hours_start >= self.working_hours_end:
            raise ValueError("working_hours_start must be before working_hours_end")
        return self


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(default="INFO", description="Logging level")
    format: Literal["json", "console"] = Field(default="json", description="Logging format")


class AppConfig(BaseModel):
    """Main application configuration combining all subsystems."""

    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    store: StoreConfig = Field(default_factory=StoreConfig)
    scheduling: SchedulingConfig = Field(default_factory=SchedulingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def debug_only_in_dev(self) -> "AppConfig":
        """Ensure debug mode is only allowed in development environment."""
        if self.debug and self.environment != "development":
            raise ValueError("debug mode is only allowed in development environment")
        return self


def load_config_from_env() -> AppConfig:
    """Load configuration from environment variables with validation."""

    def _env_to_literal(val: str) -> Literal["development", "staging", "production"]:
        v = val.strip().lower()
        if v in {"dev", "development"}:
            return "development"
        if v in {"stage", "staging"}:
            return "staging"
        return "production"

    def _level_to_literal(val: str) -> LogLevel:
        v = val.strip().upper()
        return cast(
            LogLevel, v if v in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} else "INFO"
        )

    def _parse_bool(val: str | None, default: bool) -> bool:
        if val is None:
            return default
        return val.strip().lower() in {"1", "true", "yes", "on"}

    environment = _env_to_literal(os.getenv("ENVIRONMENT", "development"))
    debug = environment == "development"

    backend = os.getenv("STORE_BACKEND", "memory").strip().lower()
    store_config = StoreConfig(
        backend=cast(Literal["memory", "supabase"], backend),
        url=os.getenv("SUPABASE_URL") or None,
        api_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY") or None,
        table_name=os.getenv("KV_TABLE_NAME", "kv_store"),
        timeout_seconds=float(os.getenv("STORE_TIMEOUT_SECONDS", "8.0")),
        probe_key=os.getenv("STORE_PROBE_KEY", "therapy_types"),
        compensate_partial_writes=_parse_bool(os.getenv("COMPENSATE_PARTIAL_WRITES"), True),
    )

    scheduling_config = SchedulingConfig(
        default_duration=int(os.getenv("SCHEDULING_DEFAULT_DURATION", "60")),
        notification_lead_time=int(os.getenv("SCHEDULING_NOTIFICATION_LEAD_TIME", "24")),
        working_hours_start=os.getenv("SCHEDULING_WORKING_HOURS_START", "09:00"),
        working_hours_end=os.getenv("SCHEDULING_WORKING_HOURS_END", "17:00"),
        buffer_time=int(os.getenv("SCHEDULING_BUFFER_TIME", "15")),
        lookahead_days=int(os.getenv("SCHEDULING_LOOKAHEAD_DAYS", "30")),
    )

    logging_config = LoggingConfig(
        level=_level_to_literal(os.getenv("LOG_LEVEL", "INFO")),
        format="console" if debug else "json",
    )

    return AppConfig(
        environment=environment,
        debug=debug,
        store=store_config,
        scheduling=scheduling_config,
        logging=logging_config,
    )


@lru_cache
def get_config() -> AppConfig:
    """Get cached application configuration."""
    return load_config_from_env()


def configure_logging(config: LoggingConfig) -> None:
    """Configure structlog for the whole process."""
    renderer = (
        structlog.dev.ConsoleRenderer()
        if config.format == "console"
        else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelNamesMapping()[config.level]
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


def validate_config() -> AppConfig:
    """Validate configuration at startup."""
    try:
        config = get_config()
    except ValueError as e:
        print(f"Configuration validation failed: {e}")
        raise
    print(f"Configuration loaded for {config.environment} environment")
    if config.store.backend == "supabase":
        print(f"Supabase store configured: {config.store.url} ({config.store.table_name})")
    return config


# Development helpers
def print_config_summary() -> None:
    """Print configuration summary for debugging."""
    config = get_config()

    print("\nCONFIGURATION SUMMARY")
    print(f"Environment: {config.environment}")
    print(f"Debug Mode: {config.debug}")
    print(f"Log Level: {config.logging.level}")

    print("\nSTORE")
    print(f"Backend: {config.store.backend}")
    print(f"Table: {config.store.table_name}")
    print(f"Timeout: {config.store.timeout_seconds}s")
    print(f"Compensate partial writes: {config.store.compensate_partial_writes}")

    scheduling = config.scheduling
    print("\nSCHEDULING")
    print(f"Working hours: {scheduling.working_hours_start}-{scheduling.working_hours_end}")
    print(f"Default duration: {scheduling.default_duration}m")
    print(f"Buffer: {scheduling.buffer_time}m")


if __name__ == "__main__":
    validate_config()
    print_config_summary()
