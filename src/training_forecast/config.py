"""Configuration settings for training-forecast."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from .metrics.fitness import ProjectionConfig


# __file__ = src/training_forecast/config.py
PROJECT_ROOT = Path(__file__).parent.parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    debug: bool = False
    log_level: str = "INFO"

    # intervals.icu
    intervals_api_key: str = ""
    intervals_athlete_id: str = ""
    intervals_base_url: str = "https://intervals.icu/api/v1"

    # OpenAI (narratives)
    openai_api_key: str = ""
    llm_model: str = "gpt-4o-mini"
    llm_timeout_seconds: float = 30.0
    llm_max_tokens: int = 400

    # Network retries (fixed delay)
    http_timeout_seconds: float = 15.0
    retry_attempts: int = 3
    retry_delay_seconds: float = 2.0

    # Projection constants
    chronic_tau: float = 42.0
    acute_tau: float = 7.0
    peak_form_min: float = 0.0
    peak_form_max: float = 20.0
    fatigue_warning_form: float = -20.0
    sustainable_form_floor: float = -30.0
    well_rested_form: float = 10.0
    impact_horizon_days: int = 14

    # Taper search
    taper_lengths: list[int] = [7, 10, 14, 17, 21]
    taper_intensities: list[float] = [0.30, 0.50, 0.70]
    taper_target_form: float = 10.0
    stress_lookback_days: int = 14
    min_lookback_days: int = 7

    @property
    def intervals_configured(self) -> bool:
        return bool(self.intervals_api_key and self.intervals_athlete_id)

    @property
    def llm_configured(self) -> bool:
        return bool(self.openai_api_key)

    def projection_config(self) -> ProjectionConfig:
        """Build the immutable projection constants from these settings."""
        return ProjectionConfig(
            chronic_tau=self.chronic_tau,
            acute_tau=self.acute_tau,
            peak_form_min=self.peak_form_min,
            peak_form_max=self.peak_form_max,
            fatigue_warning_form=self.fatigue_warning_form,
            sustainable_form_floor=self.sustainable_form_floor,
            well_rested_form=self.well_rested_form,
            impact_horizon_days=self.impact_horizon_days,
            taper_lengths=tuple(self.taper_lengths),
            taper_intensities=tuple(self.taper_intensities),
            taper_target_form=self.taper_target_form,
            stress_lookback_days=self.stress_lookback_days,
            min_lookback_days=self.min_lookback_days,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
