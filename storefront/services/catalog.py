# storefront/services/catalog.py

import asyncio
import logging
import math
from dataclasses import dataclass
from typing import AsyncIterator, Awaitable, Callable, List, Optional, Set, TypeVar, Union

from storefront.clients.woocommerce import WooCommerceClient
from storefront.core.config import settings
from storefront.core.errors import DecodeError, ErrorKind, RemoteError, ServerError, StorageError
from storefront.data import fallback
from storefront.schemas.admin import EvictionResult
from storefront.schemas.product import Category, Product, ProductPage, ProductQuery
from storefront.schemas.result import Error, Loading, Provenance, Result, Success
from storefront.services import remote_catalog
from storefront.services.cache_store import ProductCacheStore
from storefront.services.query import apply_query, paginate, sort_products

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class ResolvedResult:
    """Итог потока снимков: терминальный снимок и последний успешный до него."""
    terminal: Union[Success, Error]
    last_good: Optional[Success] = None


async def resolve(stream: AsyncIterator[Result]) -> ResolvedResult:
    """Дочитывает поток до конца и возвращает терминальный снимок."""
    terminal: Optional[Union[Success, Error]] = None
    last_good: Optional[Success] = None
    async for snapshot in stream:
        if isinstance(snapshot, Loading):
            continue
        terminal = snapshot
        if isinstance(snapshot, Success):
            last_good = snapshot
    if terminal is None:
        terminal = Error(kind=ErrorKind.UNEXPECTED, message="Query finished without a result")
    if isinstance(terminal, Success):
        return ResolvedResult(terminal=terminal)
    return ResolvedResult(terminal=terminal, last_good=last_good)


class CatalogRepository:
    """
    Сводит три источника данных каталога: локальный кеш, WooCommerce API и
    статический фолбэк.

    Каждый запрос - это асинхронный генератор снимков: Loading, затем (опционально)
    данные из кеша, затем терминальный Success или Error. Генератор никогда не
    выбрасывает исключения наружу. После удаленного Success ничего более старого
    не отдается.
    """
    def __init__(
        self,
        store: ProductCacheStore,
        client: WooCommerceClient,
        eviction_window_ms: int = settings.CACHE_EVICTION_WINDOW_MS,
        clock: Optional[Callable[[], int]] = None,
    ):
        self.store = store
        self.client = client
        self.eviction_window_ms = eviction_window_ms
        self.clock = clock or store.clock
        self._background: Set[asyncio.Task] = set()

    # --- Списки товаров ---

    async def query_products(self, query: ProductQuery, force_refresh: bool = False) -> AsyncIterator[Result]:
        yield Loading()
        try:
            if not force_refresh:
                cached_page = await self._cached_products_page(query)
                if cached_page is not None:
                    yield Success[ProductPage](data=cached_page, provenance=Provenance.CACHE)

            try:
                remote_page = await self._shielded(lambda: self._fetch_and_store_products(query))
            except RemoteError as e:
                self._log_remote_failure("products query", e)
                yield await self._products_after_failure(query, e)
                return

            yield Success[ProductPage](data=remote_page, provenance=Provenance.REMOTE)
        except Exception as e:
            logger.error(f"Unexpected error while resolving products query {query.model_dump()}", exc_info=True)
            yield Error(kind=ErrorKind.UNEXPECTED, message=str(e))

    async def _cached_products_page(self, query: ProductQuery) -> Optional[ProductPage]:
        try:
            matching = await self.store.list_products(query.filter, query.sort)
        except StorageError:
            # Уже залогировано хранилищем, продолжаем с удаленным источником
            return None
        page = paginate(matching, query.pagination)
        if not page.items:
            return None
        logger.info(f"Serving {len(page.items)} products from local cache.")
        return page

    async def _fetch_and_store_products(self, query: ProductQuery) -> ProductPage:
        remote_page = await remote_catalog.fetch_products(self.client, query)
        items = sort_products(remote_page.items, query.sort)
        try:
            await self.store.upsert_many(items, last_updated=self.clock())
        except StorageError:
            logger.error("Fresh products were fetched but could not be written to the cache.")

        pagination = query.pagination
        total_items = remote_page.total_items
        if total_items is None:
            total_items = (pagination.page - 1) * pagination.page_size + len(items)
        total_pages = remote_page.total_pages
        if total_pages is None:
            total_pages = math.ceil(total_items / pagination.page_size) if total_items > 0 else 0

        return ProductPage(
            total_items=total_items,
            total_pages=total_pages,
            current_page=pagination.page,
            size=pagination.page_size,
            items=items,
        )

    async def _products_after_failure(self, query: ProductQuery, error: RemoteError) -> Union[Success, Error]:
        cache_rows = await self._count_quietly(self.store.count)
        await self._sweep_quietly()

        if cache_rows == 0:
            logger.warning("Cache is empty and remote catalog failed. Serving static fallback products.")
            matching = apply_query(fallback.fallback_products(), query.filter, query.sort)
            return Success[ProductPage](data=paginate(matching, query.pagination), provenance=Provenance.FALLBACK)

        return Error.from_exception(error)

    # --- Один товар ---

    async def get_product(self, product_id: int, force_refresh: bool = False) -> AsyncIterator[Result]:
        yield Loading()
        try:
            cached: Optional[Product] = None
            try:
                cached = await self.store.get(product_id)
            except StorageError:
                cached = None

            if cached is not None and not force_refresh:
                yield Success[Product](data=cached, provenance=Provenance.CACHE)
                return

            try:
                product = await self._shielded(lambda: self._fetch_and_store_product(product_id))
            except ServerError as e:
                if e.is_not_found:
                    logger.warning(f"Product with ID {product_id} not found in WooCommerce (404).")
                    await self._forget_product(product_id)
                    # Строка кеша устарела, но фолбэк остается последним источником
                    yield self._fallback_product_or_not_found(product_id)
                    return
                self._log_remote_failure(f"product {product_id}", e)
                yield await self._product_after_failure(product_id, cached)
                return
            except RemoteError as e:
                self._log_remote_failure(f"product {product_id}", e)
                yield await self._product_after_failure(product_id, cached)
                return

            yield Success[Product](data=product, provenance=Provenance.REMOTE)
        except Exception as e:
            logger.error(f"Unexpected error fetching product by ID {product_id}", exc_info=True)
            yield Error(kind=ErrorKind.UNEXPECTED, message=str(e))

    async def _fetch_and_store_product(self, product_id: int) -> Product:
        product = await remote_catalog.fetch_product(self.client, product_id)
        try:
            await self.store.upsert(product, last_updated=self.clock())
        except StorageError:
            logger.error(f"Fresh product {product_id} was fetched but could not be written to the cache.")
        return product

    async def _product_after_failure(self, product_id: int, cached: Optional[Product]) -> Union[Success, Error]:
        await self._sweep_quietly()
        # Сюда попадаем с кешем только при force_refresh: отдаем его, он свежее фолбэка
        if cached is not None:
            return Success[Product](data=cached, provenance=Provenance.CACHE)
        return self._fallback_product_or_not_found(product_id)

    def _fallback_product_or_not_found(self, product_id: int) -> Union[Success, Error]:
        fallback_product = fallback.find_fallback_product(product_id)
        if fallback_product is not None:
            return Success[Product](data=fallback_product, provenance=Provenance.FALLBACK)
        return Error(kind=ErrorKind.NOT_FOUND, message=f"Product {product_id} not found")

    async def _forget_product(self, product_id: int):
        try:
            await self.store.delete_by_id(product_id)
        except StorageError:
            pass

    # --- Категории ---

    async def query_categories(self, force_refresh: bool = False) -> AsyncIterator[Result]:
        yield Loading()
        try:
            if not force_refresh:
                cached: List[Category] = []
                try:
                    cached = await self.store.list_categories()
                except StorageError:
                    cached = []
                if cached:
                    logger.info("Serving categories from cache.")
                    yield Success[List[Category]](data=cached, provenance=Provenance.CACHE)

            try:
                categories = await self._shielded(self._fetch_and_store_categories)
            except RemoteError as e:
                self._log_remote_failure("categories", e)
                cache_rows = await self._count_quietly(self.store.count_categories)
                await self._sweep_quietly()
                if cache_rows == 0:
                    logger.warning("Category cache is empty and remote catalog failed. Serving static fallback categories.")
                    yield Success[List[Category]](data=fallback.fallback_categories(), provenance=Provenance.FALLBACK)
                else:
                    yield Error.from_exception(e)
                return

            yield Success[List[Category]](data=categories, provenance=Provenance.REMOTE)
        except Exception as e:
            logger.error("Unexpected error while resolving categories", exc_info=True)
            yield Error(kind=ErrorKind.UNEXPECTED, message=str(e))

    async def _fetch_and_store_categories(self) -> List[Category]:
        categories = await remote_catalog.fetch_categories(self.client)
        try:
            await self.store.upsert_categories(categories, last_updated=self.clock())
        except StorageError:
            logger.error("Fresh categories were fetched but could not be written to the cache.")
        return categories

    # --- Обслуживание кеша ---

    async def evict_stale(self, now: Optional[int] = None) -> EvictionResult:
        """Удаляет строки старше окна вытеснения. Размер кеша при этом не учитывается."""
        threshold = (now if now is not None else self.clock()) - self.eviction_window_ms
        products_deleted = await self.store.delete_older_than(threshold)
        categories_deleted = await self.store.delete_categories_older_than(threshold)
        if products_deleted or categories_deleted:
            logger.info(f"Evicted {products_deleted} products and {categories_deleted} categories from cache.")
        return EvictionResult(products_deleted=products_deleted, categories_deleted=categories_deleted)

    async def _sweep_quietly(self):
        try:
            await self.evict_stale()
        except StorageError:
            pass

    async def _count_quietly(self, counter: Callable[[], Awaitable[int]]) -> int:
        try:
            return await counter()
        except StorageError:
            return 0

    # --- Вспомогательное ---

    async def _shielded(self, factory: Callable[[], Awaitable[T]]) -> T:
        """
        Выполняет удаленный запрос с записью в кеш как отдельную задачу.
        Если потребитель бросил запрос, задача дорабатывает и кеш все равно обновляется.
        """
        task = asyncio.ensure_future(factory())
        self._background.add(task)
        task.add_done_callback(self._task_done)
        return await asyncio.shield(task)

    def _task_done(self, task: asyncio.Task):
        self._background.discard(task)
        if not task.cancelled() and task.exception() is not None:
            # Для брошенных запросов исключение больше никто не заберет
            logger.debug(f"Background catalog fetch finished with {task.exception()!r}")

    async def wait_background(self):
        """Дожидается фоновых запросов (используется при остановке и в тестах)."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    def _log_remote_failure(self, what: str, error: RemoteError):
        if isinstance(error, DecodeError):
            # Неверная форма ответа - дефект схемы, логируем полностью
            logger.error(f"Catalog API returned malformed data for {what}: {error.message}", exc_info=error)
        else:
            logger.warning(f"Remote catalog failed for {what} ({error.kind.value}): {error.message}")
