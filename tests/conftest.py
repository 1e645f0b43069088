# tests/conftest.py
from decimal import Decimal
from typing import Optional
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.clients.woocommerce import WooCommerceClient
from storefront.db.session import Base
from storefront.dependencies import get_catalog_repository, get_db
from storefront.main import app
from storefront.models import cart, product # Импортируем все модели для создания таблиц
from storefront.schemas.product import Product
from storefront.services.cache_store import CacheChangeNotifier, ProductCacheStore
from storefront.services.catalog import CatalogRepository

# Используем in-memory SQLite для тестов - это быстро и изолированно.
# StaticPool: одно соединение на все сессии, иначе потоки FastAPI увидят пустую базу.
SQLALCHEMY_DATABASE_URL = "sqlite://"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Одни сутки в миллисекундах, как в настройках по умолчанию
EVICTION_WINDOW_MS = 24 * 60 * 60 * 1000
NOW_MS = 1_760_000_000_000


# --- Тестовые данные (не путать со статическим фолбэком приложения) ---

def wire_product(product_id: int, **overrides) -> dict:
    """Запись товара в формате WooCommerce API."""
    data = {
        "id": product_id,
        "name": f"Test Bag {product_id}",
        "slug": f"test-bag-{product_id}",
        "permalink": f"https://shop.test/product/test-bag-{product_id}/",
        "date_created": "2024-03-01T09:00:00",
        "type": "simple",
        "featured": False,
        "description": "Genuine leather test bag",
        "short_description": "Test bag",
        "sku": f"TB-{product_id}",
        "price": "1000000",
        "regular_price": "1000000",
        "sale_price": "",
        "on_sale": False,
        "total_sales": 0,
        "stock_quantity": 10,
        "stock_status": "instock",
        "average_rating": "4.00",
        "rating_count": 1,
        "categories": [{"id": 100, "name": "Handbags", "slug": "handbags"}],
        "tags": [],
        "images": [{"id": 1, "src": f"https://shop.test/img/{product_id}.jpg"}],
        "attributes": [],
    }
    data.update(overrides)
    return data


def make_product(product_id: int, **overrides) -> Product:
    """Каноничный товар для тестов без участия маппера."""
    data = {
        "id": product_id,
        "name": f"Test Bag {product_id}",
        "price": Decimal("1000000"),
        "regular_price": Decimal("1000000"),
        "categories": ["Handbags"],
        "images": [f"https://shop.test/img/{product_id}.jpg"],
    }
    data.update(overrides)
    return Product(**data)


def wc_response(payload, status_code: int = 200, headers: Optional[dict] = None) -> httpx.Response:
    return httpx.Response(status_code, json=payload, headers=headers or {})


class FakeClock:
    """Управляемые часы в epoch millis."""
    def __init__(self, now: int = NOW_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now


# --- Фикстуры ---

@pytest.fixture(scope="function")
def session_factory():
    """
    Фикстура для создания чистой базы данных для каждого теста.
    """
    Base.metadata.create_all(bind=engine) # Создаем все таблицы
    try:
        yield TestingSessionLocal
    finally:
        Base.metadata.drop_all(bind=engine) # Очищаем все после теста

@pytest.fixture(scope="function")
def db_session(session_factory) -> Session:
    db = session_factory()
    try:
        yield db
    finally:
        db.close()

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()

@pytest.fixture
def notifier() -> CacheChangeNotifier:
    return CacheChangeNotifier()

@pytest.fixture
def store(session_factory, notifier, clock) -> ProductCacheStore:
    return ProductCacheStore(session_factory, notifier=notifier, clock=clock)

@pytest.fixture
def mock_wc_client() -> MagicMock:
    client = MagicMock(spec=WooCommerceClient)
    client.get = AsyncMock()
    return client

@pytest.fixture
def repository(store, mock_wc_client, clock) -> CatalogRepository:
    return CatalogRepository(store, mock_wc_client, eviction_window_ms=EVICTION_WINDOW_MS, clock=clock)

@pytest.fixture
async def client(session_factory, repository):
    """HTTP-клиент поверх ASGI-приложения с подмененными зависимостями."""
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_catalog_repository] = lambda: repository
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()

# Фабрики тестовых данных доступны тестам как фикстуры

@pytest.fixture
def wire():
    return wire_product

@pytest.fixture
def product_factory():
    return make_product

@pytest.fixture
def response_factory():
    return wc_response
