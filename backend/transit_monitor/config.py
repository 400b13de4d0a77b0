from pydantic import Field, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    tick_interval_seconds: float = Field(default=5.0, gt=0)
    bus_speed_per_tick: float = Field(default=0.05, gt=0, le=1)
    max_history: int = Field(default=50, ge=1)
    chart_bucket_minutes: int = Field(default=10, ge=1)

    # Occupancy status tiers: count > high -> HIGH, count > medium -> MEDIUM
    medium_threshold: int = 25
    high_threshold: int = 55

    # Insight cutoffs applied on top of the status tier
    insight_medium_cutoff: int = 40
    insight_high_cutoff: int = 60

    person_count_min: int = Field(default=5, ge=0)
    person_count_max: int = Field(default=79, ge=0)

    random_seed: int | None = None
    log_level: str = "INFO"

    model_config = {"env_prefix": "TRANSIT_", "case_sensitive": False}

    @model_validator(mode="after")
    def _check_ranges(self) -> "Settings":
        if self.medium_threshold >= self.high_threshold:
            raise ValueError("medium_threshold must be lower than high_threshold")
        if self.person_count_min > self.person_count_max:
            raise ValueError("person_count_min must not exceed person_count_max")
        return self


settings = Settings()
