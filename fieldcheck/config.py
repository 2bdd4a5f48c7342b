from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False  # True for production (structured JSON), False for dev (colored)
    LOG_OUTCOMES: bool = False  # Log each field's selected message at debug level; messages may quote field values

    # Guarded constraints
    GUARD_MESSAGE: str = "Validation could not be completed"
    GUARD_TIMEOUT_SECONDS: float | None = None

    class Config:
        env_prefix = "FIELDCHECK_"
        env_file = ".env"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    return Settings()
