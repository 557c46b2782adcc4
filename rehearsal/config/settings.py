"""
Application settings and configuration management.

Uses pydantic-settings for environment variable loading.
"""

from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_DIMENSION_WEIGHTS: dict[str, float] = {
    "clarity": 0.15,
    "relevance": 0.20,
    "depth": 0.15,
    "communication": 0.15,
    "completeness": 0.15,
    "technical_accuracy": 0.10,
    "behavioral_competency": 0.05,
    "problem_solving": 0.05,
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Interview Rehearsal"
    app_version: str = "0.1.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    # Session settings
    average_question_minutes: float = Field(default=3.0, gt=0)
    default_session_minutes: int = Field(default=30, ge=5, le=120)  # When a config names no duration

    # Scoring
    scoring_profile: str = "standard"  # Options: standard, enhanced
    dimension_weights: dict[str, float] = Field(
        default_factory=lambda: dict(DEFAULT_DIMENSION_WEIGHTS)
    )
    recency_factor: float = Field(default=1.1, gt=0)
    trend_threshold: float = Field(default=2.0, ge=0)
    history_limit: int = Field(default=100, ge=1)

    # Scheduling and reminders
    reminder_lead_minutes: list[int] = Field(default_factory=lambda: [15, 5])
    reminder_sweep_seconds: float = Field(default=60.0, gt=0)
    missed_after_minutes: int = Field(default=30, ge=0)
    streak_milestones: list[int] = Field(
        default_factory=lambda: [3, 7, 14, 30, 60, 100]
    )
    weekly_session_target: int = Field(default=3, ge=1)

    # Notification delivery (logged only when no webhook is set)
    notification_webhook_url: str | None = None
    notification_webhook_token: str | None = None
    notification_timeout: float = Field(default=10.0, gt=0)

    # CORS - stored as comma-separated string in env
    cors_origins_str: str = Field(
        default="http://localhost:3000,http://localhost:8000",
        validation_alias="cors_origins"
    )

    @computed_field
    @property
    def cors_origins(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
