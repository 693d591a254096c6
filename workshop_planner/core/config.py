import warnings
from typing import Literal

from pydantic import computed_field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing_extensions import Self


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )
    PROJECT_NAME: str = "Workshop Day Planner"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"

    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["console", "json"] = "console"
    ENABLE_METRICS: bool = True

    # Working-hours window of the day view (24h clock)
    WORKING_HOURS_START: int = 7
    WORKING_HOURS_END: int = 18
    SLOT_MINUTES: int = 15

    # 60 minutes * 8 hours / 6 minutes per AW = 80 AW
    DEFAULT_AW_CAPACITY: int = 80

    # "warn" keeps over-capacity placements, "block" rejects them
    CAPACITY_POLICY: Literal["warn", "block"] = "warn"
    # "allow" keeps appointments that run past closing, "reject" refuses them
    OVERFLOW_POLICY: Literal["allow", "reject"] = "allow"

    UTILIZATION_HIGH_PERCENT: float = 80.0
    UTILIZATION_OVERBOOKED_PERCENT: float = 100.0
    NEAR_CAPACITY_PERCENT: float = 90.0

    SLA_CRITICAL_HOURS: float = 2.0
    SLA_WARNING_HOURS: float = 4.0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def working_minutes_per_day(self) -> int:
        return (self.WORKING_HOURS_END - self.WORKING_HOURS_START) * 60

    @model_validator(mode="after")
    def _check_working_window(self) -> Self:
        if not 0 <= self.WORKING_HOURS_START < self.WORKING_HOURS_END <= 24:
            raise ValueError(
                "WORKING_HOURS_START must be before WORKING_HOURS_END within 0-24, "
                f"got {self.WORKING_HOURS_START}-{self.WORKING_HOURS_END}"
            )
        if self.SLOT_MINUTES <= 0 or 60 % self.SLOT_MINUTES != 0:
            raise ValueError(
                f"SLOT_MINUTES must divide an hour evenly, got {self.SLOT_MINUTES}"
            )
        return self

    @model_validator(mode="after")
    def _check_thresholds(self) -> Self:
        if self.UTILIZATION_HIGH_PERCENT > self.UTILIZATION_OVERBOOKED_PERCENT:
            message = (
                "UTILIZATION_HIGH_PERCENT is above UTILIZATION_OVERBOOKED_PERCENT, "
                "the high band will never be reported."
            )
            if self.ENVIRONMENT == "local":
                warnings.warn(message, stacklevel=1)
            else:
                raise ValueError(message)
        if self.SLA_CRITICAL_HOURS > self.SLA_WARNING_HOURS:
            raise ValueError("SLA_CRITICAL_HOURS must not exceed SLA_WARNING_HOURS")
        return self


settings = Settings()  # type: ignore
