from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="RESPLAN_", env_file=".env", extra="ignore")

    app_name: str = "resplan"
    debug: bool = False
    log_level: str = "INFO"
    redis_url: str = "redis://localhost:6379/0"
    cache_enabled: bool = False
    cache_ttl_seconds: int = 300

    # Load thresholds
    overload_task_limit: int = 5
    hours_per_day: float = 8
    hours_per_week: float = 40
    capacity_week_hours: float = 40
    capacity_month_hours: float = 160
    capacity_quarter_hours: float = 480
    tier_overloaded_percent: float = 90
    tier_busy_percent: float = 70
    tier_moderate_percent: float = 40
    underutilized_percent: float = 40
    workload_capacity_hours: float = 40
    workload_display_cap_percent: float = 150
    effort_capacity_hours: float = 40

    # Optimizer
    reschedule_shift_days: int = 7
    reschedule_max_per_resource: int = 2
    solver_time_limit_seconds: int = 10
    solver_max_hours: int = 1_000_000


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
