"""Configuration settings for the fitness coach API."""

from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Storage
    database_url: str = "sqlite:///fitness_coach.db"

    # Auth
    jwt_secret_key: str = "change-me-in-production-0123456789abcdef"
    jwt_algorithm: str = "HS256"
    access_token_expire_days: int = 30

    # Model provider
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"

    # HTTP
    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"

    # Optional exercise dataset (CSV)
    exercise_dataset_path: Optional[str] = None


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
