# gighire/config.py

from __future__ import annotations
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # — Core —
    SECRET_KEY: str = Field("change-me", description="JWT signing key")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(60, ge=5, le=60 * 24)
    DEBUG: bool = True  # set False in prod
    ENVIRONMENT: str = "development"

    # --- Database ---
    DATABASE_URL: str = Field("sqlite:///./gighire.db")
    # Alembic reads DATABASE_URL from env directly.

    # --- Logging ---
    LOG_LEVEL: str = "INFO"
    LOG_JSON_FORMAT: bool = False
    LOG_FILE: str | None = None  # e.g. "logs/gighire_{time:YYYY-MM-DD}.log"

    # --- Billing ---
    TRIAL_DAYS: int = Field(14, ge=1)

    # --- Application transitions ---
    # Attempts per transition before giving up on a version conflict
    TRANSITION_MAX_RETRIES: int = Field(3, ge=1, le=10)

    # --- Interviews ---
    INTERVIEW_DEFAULT_DURATION: int = Field(30, ge=5, le=480)
    INTERVIEW_MAX_RESCHEDULES: int = Field(2, ge=0)
    BUSINESS_HOURS_START: str = "09:00"
    BUSINESS_HOURS_END: str = "18:00"
    SLOT_STEP_MINUTES: int = Field(30, ge=5)

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
