# backend/baggo/core/config_loader.py

from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    OPENAI_API_KEY: str = ""
    GOOGLE_MAPS_API_KEY: str = ""
    JWT_SECRET_KEY: str = "supersecret"
    DB_PATH: str = "data.sqlite3"

    gpt_model_chat: str = "gpt-4o-mini"
    gpt_model_itinerary: str = "gpt-4"
    places_language: str = "en"

    # user key stored for requests without a valid bearer token
    anonymous_user_key: str = "anonymous"
    timezone: str = "UTC"
    environment: str = "development"

    # server
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()
