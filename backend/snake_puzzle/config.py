"""
Snake Puzzle - Backend Configuration

Настройки приложения через environment variables.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from functools import lru_cache
from pathlib import Path
from typing import Literal


class Settings(BaseSettings):
    """Настройки приложения."""

    # App
    APP_NAME: str = "Snake Puzzle"
    DEBUG: bool = False
    API_PREFIX: str = "/api/v1"
    ENVIRONMENT: Literal["development", "production"] = "development"
    LOG_LEVEL: str = "INFO"

    # Redis (game sessions)
    REDIS_URL: str = "redis://localhost:6379"
    SESSION_TTL_SECONDS: int = 60 * 60 * 24 * 7  # 7 days

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Rate Limiting (per minute)
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_GENERATE: int = 20
    RATE_LIMIT_GAME: int = 60

    # Level generation
    STRAIGHT_PREFERENCE: float = 0.90
    MAX_FILL_BOARD_SIZE: int = 35
    FIRST_SNAKE_MAX_ATTEMPTS: int = 100
    SOLVABILITY_ITERATION_MARGIN: int = 10
    MAX_BOARD_SIZE: int = 100
    MAX_SNAKE_LENGTH_LIMIT: int = 30
    # Добивка поля на запрос API (полная проверка проходимости на каждого кандидата)
    API_MAX_FILL_BOARD_SIZE: int = 10

    # Game rules
    DEFAULT_LIVES: int = 5

    # Pre-generated level files
    LEVELS_DIR: Path = Path(__file__).parent / "levels"

    @field_validator("STRAIGHT_PREFERENCE")
    @classmethod
    def validate_straight_preference(cls, value: float) -> float:
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"STRAIGHT_PREFERENCE must be in [0, 1], got: {value}")
        return value

    @field_validator("MAX_FILL_BOARD_SIZE", "API_MAX_FILL_BOARD_SIZE", "FIRST_SNAKE_MAX_ATTEMPTS",
                     "MAX_BOARD_SIZE", "MAX_SNAKE_LENGTH_LIMIT", "DEFAULT_LIVES")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError(f"must be positive, got: {value}")
        return value

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def cors_origins_list(self) -> list[str]:
        """Парсит CORS_ORIGINS в список."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    """Получить настройки (кэшируется)."""
    return Settings()


settings = get_settings()
