from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ==============================
    # Application
    # ==============================
    APP_NAME: str = "SellerPro Inventory"
    ENVIRONMENT: str = "local"

    # ==============================
    # Database
    # ==============================
    DATABASE_URL: str = "sqlite:///./sellerpro.db"
    DB_TIMEOUT_SECONDS: int = 10

    # ==============================
    # Logging
    # ==============================
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # ==============================
    # Security
    # ==============================
    JWT_SECRET: Optional[str] = None
    JWT_ALGORITHM: str = "HS256"
    JWT_AUDIENCE: Optional[str] = None
    JWT_ISSUER: Optional[str] = None
    ALLOW_HEADER_USER: bool = False

    # ==============================
    # Inventory
    # ==============================
    DEFAULT_WAREHOUSES: str = "Hangzhou No.1,Shanghai Pudong,Beijing Daxing,Guangzhou Baiyun"
    FALLBACK_WAREHOUSE: str = "Hangzhou No.1"
    DEFAULT_PLATFORM: str = "Dewu"
    PRODUCTS_PAGE_SIZE: int = 50
    RECENT_ACTIVITY_LIMIT: int = 10

    def default_warehouse_names(self) -> list[str]:
        names = []
        for value in self.DEFAULT_WAREHOUSES.split(","):
            value = value.strip()
            if value and value not in names:
                names.append(value)
        return names


@lru_cache
def get_settings() -> Settings:
    """Cached settings loader (once per process)."""
    return Settings()


__all__ = ["Settings", "get_settings"]
