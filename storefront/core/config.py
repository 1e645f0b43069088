# storefront/core/config.py

from typing import List
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # Настройки WooCommerce REST API
    WC_URL: str = "http://localhost:8000"
    WC_CONSUMER_KEY: str = ""
    WC_CONSUMER_SECRET: str = ""
    WC_TIMEOUT_SECONDS: float = 20.0
    WC_READ_TIMEOUT_SECONDS: float = 60.0

    # Локальное хранилище кеша (SQLite на устройстве, Postgres на сервере)
    DATABASE_URL: str = "sqlite:///./storefront.db"

    # Redis нужен только для межпроцессной координации (блокировка старта, инвалидация)
    REDIS_ENABLED: bool = True
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379

    # Настройки кеша каталога
    CACHE_EVICTION_MINUTES: int = 60 * 24 # 24 часа
    CACHE_SWEEP_INTERVAL_MINUTES: int = 30

    # Сколько хранятся забытые позиции корзины и избранного (для всех владельцев)
    CART_RETENTION_DAYS: int = 30
    WISHLIST_RETENTION_DAYS: int = 180

    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    CORS_ORIGINS_STR: str = Field(default="http://localhost:3000", alias="CORS_ORIGINS")

    @property
    def CORS_ORIGINS(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS_STR.split(',') if origin.strip()]

    @property
    def CACHE_EVICTION_WINDOW_MS(self) -> int:
        return self.CACHE_EVICTION_MINUTES * 60 * 1000

    @property
    def REDIS_URL(self) -> str:
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}"

    model_config = SettingsConfigDict(env_file=".env", populate_by_name=True)

settings = Settings()
