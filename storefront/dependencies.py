# storefront/dependencies.py

import logging
from typing import Iterator, Optional

from fastapi import Header
from sqlalchemy.orm import Session

from storefront.clients.woocommerce import wc_client
from storefront.core.config import settings
from storefront.core.redis import redis_client
from storefront.db.session import SessionLocal
from storefront.services.cache_store import CacheChangeNotifier, ProductCacheStore
from storefront.services.catalog import CatalogRepository

# --- Инициализация логгера ---
logger = logging.getLogger(__name__)

# --- Управление сессией БД ---
def get_db_session_instance() -> Session:
    """Создает и возвращает экземпляр сессии БД."""
    return SessionLocal()

def get_db() -> Iterator[Session]:
    """
    Основная зависимость FastAPI для получения сессии БД.
    Это генератор, который корректно работает с `Depends`.
    """
    db = get_db_session_instance()
    try:
        yield db
    finally:
        db.close()

# --- Слой данных каталога ---
# Хранилище и репозиторий создаются один раз на процесс и живут до остановки.

_notifier: Optional[CacheChangeNotifier] = None
_cache_store: Optional[ProductCacheStore] = None
_catalog_repository: Optional[CatalogRepository] = None

def get_cache_notifier() -> CacheChangeNotifier:
    global _notifier
    if _notifier is None:
        _notifier = CacheChangeNotifier(redis_client if settings.REDIS_ENABLED else None)
    return _notifier

def get_cache_store() -> ProductCacheStore:
    global _cache_store
    if _cache_store is None:
        _cache_store = ProductCacheStore(SessionLocal, notifier=get_cache_notifier())
    return _cache_store

def get_catalog_repository() -> CatalogRepository:
    global _catalog_repository
    if _catalog_repository is None:
        _catalog_repository = CatalogRepository(get_cache_store(), wc_client)
        logger.info("Catalog repository initialized.")
    return _catalog_repository

# --- Идентификация клиента ---

def get_optional_user_id(x_user_id: Optional[str] = Header(None)) -> Optional[str]:
    """
    НЕОБЯЗАТЕЛЬНАЯ зависимость.
    Возвращает идентификатор пользователя из заголовка X-User-Id или None для гостя.
    """
    if x_user_id is None:
        return None
    user_id = x_user_id.strip()
    return user_id or None
