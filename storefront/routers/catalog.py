# storefront/routers/catalog.py

import logging
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import StreamingResponse
from pydantic import ValidationError
from sqlalchemy.orm import Session

from storefront.core import locales
from storefront.core.config import settings
from storefront.core.errors import ErrorKind
from storefront.dependencies import get_catalog_repository, get_db
from storefront.schemas.product import (
    Category, Pagination, Product, ProductFilter, ProductPage, ProductQuery,
    ProductSort, SortDirection, SortField,
)
from storefront.schemas.result import Provenance, ProvenancedResponse, Success
from storefront.services import cart as cart_service
from storefront.services.catalog import CatalogRepository, ResolvedResult, resolve

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Вспомогательные функции, общие для роутеров ---

def _provenanced(success: Success) -> ProvenancedResponse:
    return ProvenancedResponse(data=success.data, provenance=success.provenance, stale=success.is_stale)


def unwrap(resolved: ResolvedResult) -> ProvenancedResponse:
    """
    Превращает терминальный снимок в HTTP-ответ.
    not_found -> 404, любая другая ошибка -> 503 с последними успешными данными, если они были.
    """
    terminal = resolved.terminal
    if isinstance(terminal, Success):
        return _provenanced(terminal)

    if terminal.kind == ErrorKind.NOT_FOUND:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=terminal.message)

    last_good = _provenanced(resolved.last_good).model_dump(mode="json") if resolved.last_good else None
    raise HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail={
            "message": locales.ERROR_CATALOG_UNAVAILABLE,
            "kind": terminal.kind.value,
            "error": terminal.message,
            "last_good": last_good,
        },
    )


async def require_product(repository: CatalogRepository, product_id: int) -> Product:
    """Разрешает товар через репозиторий для операций корзины и избранного."""
    resolved = await resolve(repository.get_product(product_id))
    if isinstance(resolved.terminal, Success):
        return resolved.terminal.data
    if resolved.terminal.kind == ErrorKind.NOT_FOUND:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=locales.ERROR_PRODUCT_NOT_FOUND)
    raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=locales.ERROR_CATALOG_UNAVAILABLE)


def product_query_params(
    # Параметры пагинации
    page: int = Query(1, ge=1, description="Номер страницы"),
    size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE, description="Количество товаров на странице"),

    # Параметры фильтрации
    search: Optional[str] = Query(None, description="Поиск по названию и описаниям"),
    category: Optional[str] = Query(None, description="Подстрока названия категории"),
    min_price: Optional[Decimal] = Query(None, ge=0, description="Минимальная цена"),
    max_price: Optional[Decimal] = Query(None, ge=0, description="Максимальная цена"),
    featured: Optional[bool] = Query(None, description="Только рекомендуемые товары"),
    on_sale: Optional[bool] = Query(None, description="Только товары со скидкой"),

    # Параметры сортировки
    orderby: SortField = Query(SortField.DATE, description="Поле для сортировки: date, price, rating, popularity, name"),
    order: SortDirection = Query(SortDirection.DESC, description="Направление сортировки: asc, desc"),
) -> ProductQuery:
    try:
        return ProductQuery(
            filter=ProductFilter(
                search=search,
                category=category,
                min_price=min_price,
                max_price=max_price,
                featured=featured,
                on_sale=on_sale,
            ),
            sort=ProductSort(field=orderby, direction=order),
            pagination=Pagination(page=page, page_size=size),
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": locales.ERROR_INVALID_QUERY, "errors": e.errors(include_url=False, include_context=False, include_input=False)},
        )


# --- Эндпоинты ---

@router.get("/categories", response_model=ProvenancedResponse[List[Category]])
async def get_categories(
    force_refresh: bool = Query(False, description="Игнорировать кеш и сразу идти в API"),
    repository: CatalogRepository = Depends(get_catalog_repository),
):
    """
    Получение списка всех категорий товаров.
    Этот эндпоинт публичный и не требует аутентификации.
    """
    return unwrap(await resolve(repository.query_categories(force_refresh=force_refresh)))


@router.get("/products", response_model=ProvenancedResponse[ProductPage])
async def get_all_products(
    query: ProductQuery = Depends(product_query_params),
    force_refresh: bool = Query(False, description="Игнорировать кеш и сразу идти в API"),
    repository: CatalogRepository = Depends(get_catalog_repository),
):
    """
    Получение списка товаров с пагинацией, фильтрацией, поиском и сортировкой.
    Отдается терминальный результат; источник данных указан в поле provenance.
    """
    return unwrap(await resolve(repository.query_products(query, force_refresh=force_refresh)))


@router.get("/products/stream")
async def stream_products(
    query: ProductQuery = Depends(product_query_params),
    force_refresh: bool = Query(False),
    repository: CatalogRepository = Depends(get_catalog_repository),
):
    """
    Тот же запрос, но все промежуточные снимки (loading, кеш, итог) отдаются
    построчно в формате NDJSON, чтобы клиент мог сразу показать кеш.
    """
    async def snapshots():
        async for snapshot in repository.query_products(query, force_refresh=force_refresh):
            yield snapshot.model_dump_json() + "\n"

    return StreamingResponse(snapshots(), media_type="application/x-ndjson")


@router.get("/products/{product_id}", response_model=ProvenancedResponse[Product])
async def get_single_product(
    product_id: int,
    force_refresh: bool = Query(False, description="Игнорировать кеш и сразу идти в API"),
    repository: CatalogRepository = Depends(get_catalog_repository),
    db: Session = Depends(get_db),
):
    """
    Получение детальной информации о товаре.
    Свежие данные из API заодно обновляют снимки товара в корзинах и избранном.
    """
    resolved = await resolve(repository.get_product(product_id, force_refresh=force_refresh))
    terminal = resolved.terminal
    if isinstance(terminal, Success) and terminal.provenance == Provenance.REMOTE:
        cart_service.refresh_snapshots(db, terminal.data)
    return unwrap(resolved)
