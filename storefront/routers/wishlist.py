# storefront/routers/wishlist.py

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

from storefront.core import locales
from storefront.core.errors import NotFoundError
from storefront.dependencies import get_catalog_repository, get_db, get_optional_user_id
from storefront.routers.catalog import require_product
from storefront.schemas.cart import (
    WishlistQuery, WishlistSortOrder, WishlistSummary, WishlistToggleRequest, WishlistToggleResponse,
)
from storefront.services.cache_store import epoch_millis
from storefront.services import cart as cart_service
from storefront.services.catalog import CatalogRepository

router = APIRouter()


def wishlist_query_params(
    search: Optional[str] = Query(None, description="Поиск по названию товара"),
    min_price: Optional[Decimal] = Query(None, ge=0, description="Минимальная цена"),
    max_price: Optional[Decimal] = Query(None, ge=0, description="Максимальная цена"),
    recent_days: Optional[int] = Query(None, ge=1, description="Только добавленные за последние N дней"),
    sort: WishlistSortOrder = Query(WishlistSortOrder.DATE_NEWEST, description="date_newest, date_oldest, price_asc, price_desc, name"),
    limit: Optional[int] = Query(None, ge=1, description="Максимум позиций в ответе"),
) -> WishlistQuery:
    added_after = epoch_millis() - recent_days * cart_service.DAY_MS if recent_days else None
    try:
        return WishlistQuery(
            search=search,
            min_price=min_price,
            max_price=max_price,
            added_after=added_after,
            sort=sort,
            limit=limit,
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": locales.ERROR_INVALID_QUERY, "errors": e.errors(include_url=False, include_context=False, include_input=False)},
        )


@router.get("/wishlist", response_model=WishlistSummary)
def get_wishlist(
    query: WishlistQuery = Depends(wishlist_query_params),
    user_id: Optional[str] = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
):
    """
    Получение избранного со статистикой цен (сумма, средняя, минимум, максимум).
    По умолчанию новые сверху.
    """
    return cart_service.get_wishlist_summary(db, user_id, query)


@router.post("/wishlist/toggle", response_model=WishlistToggleResponse)
async def toggle_wishlist(
    request_data: WishlistToggleRequest,
    user_id: Optional[str] = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
    repository: CatalogRepository = Depends(get_catalog_repository),
):
    """Добавляет товар в избранное или убирает его оттуда."""
    product = await require_product(repository, request_data.product_id)
    wishlisted = cart_service.toggle_wishlist(db, product, user_id)
    return WishlistToggleResponse(product_id=product.id, wishlisted=wishlisted)


@router.delete("/wishlist/items/{product_id}")
def remove_wishlist_item(
    product_id: int,
    user_id: Optional[str] = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
):
    """Удаление товара из избранного."""
    try:
        cart_service.remove_from_wishlist(db, product_id, user_id)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=locales.ERROR_ITEM_NOT_IN_WISHLIST)
    return {"status": "ok", "message": locales.SUCCESS_REMOVED_FROM_WISHLIST}
