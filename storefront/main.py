# storefront/main.py

import asyncio
import logging
from contextlib import asynccontextmanager

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

# Конфигурация и ядро
from storefront.core.config import settings as config
from storefront.core.logging_config import setup_logging
from storefront.core.redis import redis_client
from storefront.clients.woocommerce import wc_client
from storefront.dependencies import get_cache_notifier, get_catalog_repository

# Роутеры FastAPI
from storefront.routers import account, admin as admin_router, cart, catalog, wishlist

# Фоновые задачи
from storefront.services.cache_maintenance import cleanup_old_items_task, evict_stale_cache_task

# --- Инициализация ---
logger = logging.getLogger(__name__)
scheduler = AsyncIOScheduler()

STARTUP_LOCK_KEY = "app_startup_lock"

# --- Обработчик критических ошибок ---
async def unhandled_exception_handler(request: Request, exc: Exception):
    """
    Глобальный обработчик для всех необработанных исключений.
    """
    logger.critical(f"Unhandled exception for request: {request.method} {request.url}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal Server Error."},
    )

async def _acquire_startup_lock() -> bool:
    """Надежная блокировка через Redis для однократной инициализации."""
    if not config.REDIS_ENABLED:
        return True
    try:
        return bool(await redis_client.set(STARTUP_LOCK_KEY, "1", ex=60, nx=True))
    except RedisError:
        # Без Redis координировать воркеры нечем, считаем себя главным
        logger.warning("Redis is unavailable, acting as the main worker.", exc_info=True)
        return True

# --- Lifespan Manager (запуск и остановка приложения) ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info("Application lifespan startup...")

    repository = get_catalog_repository()

    # Подписка на изменения кеша от других воркеров нужна всем воркерам
    listener_task = None
    if config.REDIS_ENABLED:
        listener_task = asyncio.create_task(get_cache_notifier().listen())

    is_main_worker = await _acquire_startup_lock()

    if is_main_worker:
        logger.info("This is the main worker. Running initial setup...")
        await evict_stale_cache_task(repository)

        if not scheduler.running:
            scheduler.add_job(
                evict_stale_cache_task, 'interval',
                minutes=config.CACHE_SWEEP_INTERVAL_MINUTES,
                id="evict_stale_cache",
            )
            scheduler.add_job(cleanup_old_items_task, 'cron', hour=3, minute=30, id="cleanup_old_items")
            scheduler.start()
            logger.info("Scheduler started with background jobs.")
    else:
        logger.info("This is a secondary worker. Skipping initial setup.")

    yield

    # Код при остановке
    await repository.wait_background()
    if listener_task is not None:
        listener_task.cancel()
        try:
            await listener_task
        except asyncio.CancelledError:
            pass
        except RedisError:
            logger.warning("Cache change listener stopped with Redis error.", exc_info=True)

    if is_main_worker:
        logger.info("Main worker shutting down...")
        if scheduler.running:
            scheduler.shutdown()
            logger.info("Scheduler shut down.")
        if config.REDIS_ENABLED:
            try:
                await redis_client.delete(STARTUP_LOCK_KEY)
            except RedisError:
                logger.warning("Failed to release startup lock.", exc_info=True)
    else:
        logger.info("Secondary worker shutting down.")

    await wc_client.aclose()
    logger.info("WooCommerce client closed.")

# --- Создание FastAPI приложения ---
app = FastAPI(
    title="Storefront Catalog Service",
    description="Offline-first catalog, cart and wishlist backend on top of WooCommerce",
    version="0.1.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS, # Разрешить запросы с этих доменов
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Регистрация обработчика исключений ---
app.add_exception_handler(Exception, unhandled_exception_handler)

# --- Подключение роутеров FastAPI ---
api_router = APIRouter(prefix="/api/v1")

api_router.include_router(catalog.router, tags=["Catalog"])
api_router.include_router(cart.router, tags=["Cart"])
api_router.include_router(wishlist.router, tags=["Wishlist"])
api_router.include_router(account.router, tags=["Account"])

# Админские эндпоинты
api_router.include_router(admin_router.router, prefix="/admin", tags=["Admin"])

app.include_router(api_router)
