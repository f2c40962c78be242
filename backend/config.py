# backend/config.py
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Database
    DATABASE_URL: str = "sqlite:///./guacamole_ip.db"

    # Token the admin UI sends in X-Admin-Token
    ADMIN_SECRET: str = "secret-admin-token"

    # Origins allowed to call the API from the browser UI
    CORS_ORIGINS: List[str] = ["http://localhost:3001"]

    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None

    # development | production
    ENVIRONMENT: str = "development"
    APP_VERSION: str = "1.0.0"

    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # Groups created on startup if missing
    DEFAULT_GROUPS: List[str] = []

settings = Settings()
