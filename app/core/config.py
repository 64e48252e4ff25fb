from pydantic_settings import BaseSettings
from typing import Literal


class Settings(BaseSettings):
    APP_NAME: str = "OD Zen"
    AUTH_MODE: Literal["supabase", "mock"] = "mock"

    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""
    SUPABASE_SERVICE_KEY: str = ""

    SITE_URL: str = "http://localhost:3000"
    CORS_ORIGINS: str = "http://localhost:3000"

    ATTACHMENTS_BUCKET: str = "od-attachments"
    OAUTH_PROVIDER: str = "google"

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
