from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MeterSettings(BaseSettings):
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["text", "json"] = "text"
    mask_locations: bool = Field(
        default=True,
        description="Truncate coordinates in log messages to three decimals",
    )

    sample_mode: Literal["live", "simulated"] = Field(
        default="simulated",
        description="Sample source used for new trips: device GPS or synthetic random walk",
    )

    # Metering
    noise_threshold_m: float = Field(
        default=5.0,
        ge=0.0,
        le=100.0,
        description="Movement at or below this many corrected meters is treated as GPS jitter",
    )
    correction_factor: float = Field(
        default=1.4,
        ge=1.0,
        le=3.0,
        description="Empirical multiplier applied to raw great-circle distance",
    )
    waiting_tick_seconds: float = Field(default=1.0, gt=0.0, le=60.0)

    # Simulated samples
    simulated_tick_seconds: float = Field(default=1.0, gt=0.0, le=60.0)
    simulated_step_degrees: float = Field(
        default=0.01,
        gt=0.0,
        le=1.0,
        description="Total span of the per-tick random offset (each axis moves within ±step/2)",
    )
    simulated_noise_m: float = Field(default=0.0, ge=0.0, le=50.0)
    random_seed: int | None = None

    # Clock
    realtime: bool = Field(
        default=False,
        description="Pace the clock against the wall clock instead of running in virtual time",
    )
    realtime_factor: float = Field(default=1.0, gt=0.0, le=10.0)
    realtime_step_seconds: float = Field(
        default=0.1,
        gt=0.0,
        le=1.0,
        description="Largest simulated increment between wall-clock syncs",
    )

    model_config = SettingsConfigDict(env_prefix="METER_")


class DemoSettings(BaseSettings):
    """Scripted trip run by the command-line entry point."""

    origin_latitude: float = Field(default=19.4326, ge=-90.0, le=90.0)
    origin_longitude: float = Field(default=-99.1332, ge=-180.0, le=180.0)
    trip_type: str = "normal"
    driving_seconds: int = Field(default=30, ge=0, le=86400)
    waiting_seconds: int = Field(default=90, ge=0, le=86400)

    model_config = SettingsConfigDict(env_prefix="DEMO_")


class Settings(BaseSettings):
    meter: MeterSettings = Field(default_factory=MeterSettings)
    demo: DemoSettings = Field(default_factory=DemoSettings)

    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        case_sensitive=False,
    )


def get_settings() -> Settings:
    """Load and validate settings from environment variables."""
    return Settings()
