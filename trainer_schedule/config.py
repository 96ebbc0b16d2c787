"""
Centralized configuration with environment variable overrides.

Backend connection details, the availability time grid, cache lifetimes
and backup location are all configurable here. Nothing is hardcoded in
editor or service logic.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from trainer_schedule.logging_context import user_id_handler

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class BackendConfig:
    """Hosted backend (Supabase project) connection settings."""

    url: str = os.getenv("SUPABASE_URL", "https://example-project.supabase.co")
    anon_key: str = os.getenv("SUPABASE_ANON_KEY", "")
    request_timeout_sec: float = _safe_float("REQUEST_TIMEOUT", "10.0")
    client_info: str = os.getenv("CLIENT_INFO", "trainer-schedule/1.0.0")


@dataclass(frozen=True)
class ScheduleConfig:
    """Availability grid and default slot settings."""

    grid_start_hour: int = _safe_int("GRID_START_HOUR", "7")
    grid_end_hour: int = _safe_int("GRID_END_HOUR", "23")
    grid_step_minutes: int = _safe_int("GRID_STEP_MINUTES", "30")
    default_slot_start: str = os.getenv("DEFAULT_SLOT_START", "09:00")
    default_slot_end: str = os.getenv("DEFAULT_SLOT_END", "10:00")
    default_session_minutes: int = _safe_int("DEFAULT_SESSION_MINUTES", "60")


@dataclass(frozen=True)
class CacheConfig:
    """Lifetimes for client-side caches."""

    role_cache_ttl_sec: float = _safe_float("ROLE_CACHE_TTL", "600")


@dataclass(frozen=True)
class BackupConfig:
    """Device-local schedule backup location."""

    backup_dir: str = os.getenv("SCHEDULE_BACKUP_DIR", ".schedule_backups")
    key_prefix: str = os.getenv("SCHEDULE_BACKUP_PREFIX", "schedule_backup_")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    backend: BackendConfig = field(default_factory=BackendConfig)
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    backup: BackupConfig = field(default_factory=BackupConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    app_name: str = os.getenv("APP_NAME", "gym-trainer-schedule")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    from trainer_schedule.utils import parse_wall_clock

    schedule = config.schedule
    if not 0 <= schedule.grid_start_hour <= 23:
        raise ValueError(
            f"GRID_START_HOUR must be between 0 and 23, got {schedule.grid_start_hour}"
        )
    if not 1 <= schedule.grid_end_hour <= 24:
        raise ValueError(
            f"GRID_END_HOUR must be between 1 and 24, got {schedule.grid_end_hour}"
        )
    if schedule.grid_start_hour >= schedule.grid_end_hour:
        raise ValueError(
            "GRID_START_HOUR must be before GRID_END_HOUR, "
            f"got {schedule.grid_start_hour} >= {schedule.grid_end_hour}"
        )
    if schedule.grid_step_minutes <= 0 or 60 % schedule.grid_step_minutes != 0:
        raise ValueError(
            f"GRID_STEP_MINUTES must be a positive divisor of 60, got {schedule.grid_step_minutes}"
        )
    if parse_wall_clock(schedule.default_slot_end) <= parse_wall_clock(
        schedule.default_slot_start
    ):
        raise ValueError(
            "DEFAULT_SLOT_END must be after DEFAULT_SLOT_START, "
            f"got {schedule.default_slot_start} - {schedule.default_slot_end}"
        )
    if schedule.default_session_minutes < 1:
        raise ValueError(
            f"DEFAULT_SESSION_MINUTES must be >= 1, got {schedule.default_session_minutes}"
        )
    if config.backend.request_timeout_sec <= 0:
        raise ValueError(
            f"REQUEST_TIMEOUT must be > 0, got {config.backend.request_timeout_sec}"
        )
    if config.cache.role_cache_ttl_sec <= 0:
        raise ValueError(
            f"ROLE_CACHE_TTL must be > 0, got {config.cache.role_cache_ttl_sec}"
        )
    if not config.backup.key_prefix:
        raise ValueError("SCHEDULE_BACKUP_PREFIX must not be empty")


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        handlers=[user_id_handler(datefmt="%Y-%m-%d %H:%M:%S")],
    )
    if not config.backend.anon_key:
        logger.warning("SUPABASE_ANON_KEY not set; remote calls will be rejected")
    logger.info("Configuration loaded for '%s'", config.app_name)
    return config


# Singleton instance
settings = load_config()
