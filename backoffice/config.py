"""
Configuration management for the back-office board
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import List, Optional


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Back-office Board"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: Optional[str] = None  # overrides the DEBUG-derived level

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Storage: "sql" (relational) or "local" (JSON key-value file)
    STORAGE_BACKEND: str = "sql"
    DATABASE_URL: str = "sqlite:///./backoffice.db"
    LOCAL_STORE_PATH: str = "./backoffice_store.json"
    STORAGE_KEY_PREFIX: str = "cocoroboard_"

    # Billing
    TAX_RATE: float = 0.1  # consumption tax, 10%

    # Synthetic records that host internal work without a real client
    SELF_DEV_CUSTOMER_NAME: str = "自社開発"
    SELF_DEV_PROJECT_NAME: str = "自社開発タスク"

    # Dashboard
    DASHBOARD_PENDING_TASKS: int = 5
    DASHBOARD_NEXT_ACTIONS: int = 10
    DASHBOARD_ACTIVE_PROJECTS: int = 6
    UPCOMING_DEADLINE_DAYS: int = 7

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)


@lru_cache()
def get_settings() -> Settings:
    return Settings()
