# storefront/services/cache_maintenance.py
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from storefront.core.config import settings
from storefront.dependencies import get_catalog_repository
from storefront.schemas.admin import EvictionResult
from storefront.schemas.cart import CleanupResult
from storefront.schemas.product import ProductQuery
from storefront.schemas.result import Success
from storefront.services import cart as cart_service
from storefront.services.catalog import CatalogRepository, resolve

logger = logging.getLogger(__name__)


async def evict_stale_cache_task(repository: Optional[CatalogRepository] = None) -> Optional[EvictionResult]:
    """Фоновая задача: удаляет из кеша товары и категории старше окна вытеснения."""
    logger.info("--- Starting scheduled job: Evict Stale Cache ---")
    repository = repository or get_catalog_repository()
    result = None
    try:
        result = await repository.evict_stale()
        if result.products_deleted or result.categories_deleted:
            logger.info(f"Evicted {result.products_deleted} products and {result.categories_deleted} categories.")
        else:
            logger.info("No stale cache rows to evict.")
    except Exception:
        logger.error("An error occurred during cache eviction task", exc_info=True)
    logger.info("--- Finished scheduled job: Evict Stale Cache ---")
    return result


async def warm_catalog_task(repository: Optional[CatalogRepository] = None):
    """
    Прогревает кеш: первая страница каталога и все категории запрашиваются
    у API в обход кеша.
    """
    logger.info("--- Starting job: Warm Catalog Cache ---")
    repository = repository or get_catalog_repository()

    products = await resolve(repository.query_products(ProductQuery(), force_refresh=True))
    if isinstance(products.terminal, Success):
        logger.info(
            f"Products warmed from {products.terminal.provenance.value}: {len(products.terminal.data.items)} items."
        )
    else:
        logger.warning(f"Failed to warm products: {products.terminal.message}")

    categories = await resolve(repository.query_categories(force_refresh=True))
    if isinstance(categories.terminal, Success):
        logger.info(
            f"Categories warmed from {categories.terminal.provenance.value}: {len(categories.terminal.data)} items."
        )
    else:
        logger.warning(f"Failed to warm categories: {categories.terminal.message}")
    logger.info("--- Finished job: Warm Catalog Cache ---")


async def clear_cache_task(repository: Optional[CatalogRepository] = None) -> EvictionResult:
    """Полностью очищает кеш каталога. Корзины и избранное не затрагиваются."""
    repository = repository or get_catalog_repository()
    products_deleted = await repository.store.delete_all()
    categories_deleted = await repository.store.delete_all_categories()
    logger.warning(f"Catalog cache cleared: {products_deleted} products, {categories_deleted} categories.")
    return EvictionResult(products_deleted=products_deleted, categories_deleted=categories_deleted)


async def cleanup_old_items_task(repository: Optional[CatalogRepository] = None) -> Optional[CleanupResult]:
    """
    Фоновая задача: удаляет давно забытые позиции корзин и избранного.
    Работает с той же базой, что и кеш каталога.
    """
    logger.info("--- Starting scheduled job: Cleanup Old Cart and Wishlist Items ---")
    repository = repository or get_catalog_repository()
    now = repository.clock()
    result = None
    try:
        with repository.store.session_factory() as db:
            result = cart_service.cleanup_old_items(
                db,
                cart_before=now - settings.CART_RETENTION_DAYS * cart_service.DAY_MS,
                wishlist_before=now - settings.WISHLIST_RETENTION_DAYS * cart_service.DAY_MS,
            )
    except SQLAlchemyError:
        logger.error("An error occurred during cart/wishlist cleanup task", exc_info=True)
    logger.info("--- Finished scheduled job: Cleanup Old Cart and Wishlist Items ---")
    return result
