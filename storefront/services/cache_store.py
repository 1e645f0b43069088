# storefront/services/cache_store.py

import asyncio
import logging
import time
import uuid
from typing import AsyncIterator, Callable, Iterable, List, Optional, Set

from redis.asyncio import Redis
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from storefront.core.errors import StorageError
from storefront.crud import product_cache as crud_cache
from storefront.schemas.product import Category, Product, ProductFilter, ProductSort
from storefront.services.query import apply_query

logger = logging.getLogger(__name__)

CACHE_CHANGED_CHANNEL = "storefront:cache:changed"


def epoch_millis() -> int:
    return int(time.time() * 1000)


class CacheChangeNotifier:
    """
    Push-уведомления об изменениях кеша.
    Локальные подписчики будятся сразу; если передан Redis, событие дополнительно
    публикуется в канал, чтобы другие воркеры тоже обновили свои подписки.
    """
    def __init__(self, redis: Optional[Redis] = None, channel: str = CACHE_CHANGED_CHANNEL):
        self.redis = redis
        self.channel = channel
        self.instance_id = uuid.uuid4().hex
        self._subscribers: Set[asyncio.Event] = set()

    def subscribe(self) -> asyncio.Event:
        event = asyncio.Event()
        self._subscribers.add(event)
        return event

    def unsubscribe(self, event: asyncio.Event):
        self._subscribers.discard(event)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def notify_local(self):
        for event in self._subscribers:
            event.set()

    async def notify(self):
        self.notify_local()
        if self.redis is None:
            return
        try:
            await self.redis.publish(self.channel, self.instance_id)
        except RedisError:
            # Локальные подписчики уже уведомлены, межпроцессная рассылка не критична
            logger.warning("Failed to publish cache change event to Redis.", exc_info=True)

    async def listen(self):
        """Слушает события других воркеров. Запускается фоновой задачей в lifespan."""
        if self.redis is None:
            return
        pubsub = self.redis.pubsub()
        await pubsub.subscribe(self.channel)
        logger.info(f"Listening for cache change events on '{self.channel}'.")
        try:
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                if message.get("data") == self.instance_id:
                    continue
                self.notify_local()
        finally:
            await pubsub.unsubscribe(self.channel)
            await pubsub.close()


class ProductCacheStore:
    """
    Локальное хранилище товаров и категорий поверх SQLAlchemy.
    Создается один раз при старте и передается в репозиторий явно.
    Любая ошибка базы данных превращается в StorageError.
    """
    def __init__(
        self,
        session_factory: sessionmaker,
        notifier: Optional[CacheChangeNotifier] = None,
        clock: Callable[[], int] = epoch_millis,
    ):
        self.session_factory = session_factory
        self.notifier = notifier or CacheChangeNotifier()
        self.clock = clock

    def _call(self, operation: str, fn: Callable[[Session], object]):
        try:
            with self.session_factory() as db:
                return fn(db)
        except SQLAlchemyError as e:
            logger.error(f"Cache store operation '{operation}' failed", exc_info=True)
            raise StorageError(f"Cache store operation '{operation}' failed: {e}") from e

    async def _changed(self, affected: int):
        if affected:
            await self.notifier.notify()

    # --- Товары ---

    async def get(self, product_id: int) -> Optional[Product]:
        def _get(db: Session):
            row = crud_cache.get_product(db, product_id)
            return crud_cache.to_product(row) if row else None
        return self._call("get", _get)

    async def get_many(self, product_ids: Iterable[int]) -> List[Product]:
        ids = list(product_ids)
        return self._call(
            "get_many",
            lambda db: [crud_cache.to_product(row) for row in crud_cache.get_products_by_ids(db, ids)],
        )

    async def upsert(self, product: Product, last_updated: Optional[int] = None):
        stamp = last_updated if last_updated is not None else self.clock()
        self._call("upsert", lambda db: crud_cache.upsert_product(db, product, stamp))
        await self._changed(1)

    async def upsert_many(self, products: Iterable[Product], last_updated: Optional[int] = None) -> int:
        stamp = last_updated if last_updated is not None else self.clock()
        items = list(products)
        count = self._call("upsert_many", lambda db: crud_cache.upsert_products(db, items, stamp))
        await self._changed(count)
        return count

    async def delete_by_id(self, product_id: int) -> bool:
        deleted = self._call("delete_by_id", lambda db: crud_cache.delete_product(db, product_id))
        await self._changed(int(deleted))
        return deleted

    async def delete_older_than(self, threshold: int) -> int:
        deleted = self._call("delete_older_than", lambda db: crud_cache.delete_products_older_than(db, threshold))
        await self._changed(deleted)
        return deleted

    async def delete_all(self) -> int:
        deleted = self._call("delete_all", crud_cache.delete_all_products)
        await self._changed(deleted)
        return deleted

    async def count(self) -> int:
        return self._call("count", crud_cache.count_products)

    async def exists(self, product_id: int) -> bool:
        return self._call("exists", lambda db: crud_cache.product_exists(db, product_id))

    async def list_products(
        self,
        product_filter: Optional[ProductFilter] = None,
        sort: Optional[ProductSort] = None,
    ) -> List[Product]:
        product_filter = product_filter or ProductFilter()
        rows = self._call(
            "list_products",
            lambda db: [
                crud_cache.to_product(row)
                for row in crud_cache.list_products(db, featured=product_filter.featured, on_sale=product_filter.on_sale)
            ],
        )
        return apply_query(rows, product_filter, sort or ProductSort())

    async def watch_products(
        self,
        product_filter: Optional[ProductFilter] = None,
        sort: Optional[ProductSort] = None,
    ) -> AsyncIterator[List[Product]]:
        """
        Реактивная выборка: сразу отдает текущий снимок, затем новый снимок
        после каждого изменения кеша. Несколько изменений подряд схлопываются в один снимок.
        """
        event = self.notifier.subscribe()
        try:
            while True:
                event.clear()
                yield await self.list_products(product_filter, sort)
                await event.wait()
        finally:
            self.notifier.unsubscribe(event)

    # --- Категории ---

    async def upsert_categories(self, categories: Iterable[Category], last_updated: Optional[int] = None) -> int:
        stamp = last_updated if last_updated is not None else self.clock()
        items = list(categories)
        count = self._call("upsert_categories", lambda db: crud_cache.upsert_categories(db, items, stamp))
        await self._changed(count)
        return count

    async def list_categories(self) -> List[Category]:
        return self._call(
            "list_categories",
            lambda db: [crud_cache.to_category(row) for row in crud_cache.list_categories(db)],
        )

    async def count_categories(self) -> int:
        return self._call("count_categories", crud_cache.count_categories)

    async def delete_categories_older_than(self, threshold: int) -> int:
        deleted = self._call(
            "delete_categories_older_than",
            lambda db: crud_cache.delete_categories_older_than(db, threshold),
        )
        await self._changed(deleted)
        return deleted

    async def delete_all_categories(self) -> int:
        deleted = self._call("delete_all_categories", crud_cache.delete_all_categories)
        await self._changed(deleted)
        return deleted
