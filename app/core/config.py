from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_NAME: str = "fb_data_deletion"
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    # Facebook app secret, the HMAC key for signed_request
    APP_SECRET: str
    BASE_URL: str = "https://data-deletion-callback.onrender.com"

    HOST: str = "0.0.0.0"
    PORT: int = 3000

    STORE_BACKEND: Literal["sql", "redis"] = "sql"
    DATABASE_URL: str = "sqlite+aiosqlite:///./deletion.db"
    REDIS_URL: str = "redis://localhost:6379/0"

@lru_cache
def get_settings() -> Settings:
    return Settings()
