# storefront/routers/cart.py

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from storefront.core import locales
from storefront.core.errors import NotFoundError
from storefront.crud import cart as crud_cart
from storefront.dependencies import get_catalog_repository, get_db, get_optional_user_id
from storefront.routers.catalog import require_product
from storefront.schemas.cart import CartItemCreate, CartLine, CartProductStatus, CartQuantityUpdate, CartSummary
from storefront.schemas.product import StockStatus
from storefront.services import cart as cart_service
from storefront.services.catalog import CatalogRepository

logger = logging.getLogger(__name__)

router = APIRouter()


def _owned_line_or_404(db: Session, line_id: int, user_id: Optional[str]):
    line = crud_cart.get_cart_line(db, line_id)
    if line is None or line.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=locales.ERROR_ITEM_NOT_IN_CART)
    return line


@router.get("/cart", response_model=CartSummary)
def get_cart(
    user_id: Optional[str] = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
):
    """Получение содержимого корзины текущего пользователя (или гостя)."""
    return cart_service.get_cart(db, user_id)


@router.post("/cart/items", response_model=CartLine, status_code=status.HTTP_201_CREATED)
async def add_cart_item(
    item_data: CartItemCreate,
    user_id: Optional[str] = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
    repository: CatalogRepository = Depends(get_catalog_repository),
):
    """
    Добавление товара в корзину с проверкой наличия на складе.
    Повторное добавление той же вариации увеличивает количество.
    """
    product = await require_product(repository, item_data.product_id)

    if product.stock_status == StockStatus.OUT_OF_STOCK:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=locales.ERROR_PRODUCT_OUT_OF_STOCK)

    # Учитываем то, что уже лежит в корзине: слияние не должно превышать остаток
    in_cart = crud_cart.product_quantity_in_cart(db, product.id, user_id)
    if product.stock_quantity is not None and in_cart + item_data.quantity > product.stock_quantity:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=locales.ERROR_NOT_ENOUGH_STOCK.format(available_quantity=max(product.stock_quantity - in_cart, 0)),
        )

    return cart_service.add_to_cart(
        db, product, quantity=item_data.quantity, variation=item_data.variation, user_id=user_id
    )


@router.patch("/cart/items/{line_id}", response_model=Optional[CartLine])
def update_cart_item(
    line_id: int,
    update: CartQuantityUpdate,
    user_id: Optional[str] = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
):
    """Изменение количества. Количество 0 и меньше удаляет позицию, в ответе null."""
    _owned_line_or_404(db, line_id, user_id)
    try:
        return cart_service.update_quantity(db, line_id, update.quantity)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=locales.ERROR_ITEM_NOT_IN_CART)


@router.delete("/cart/items/{line_id}")
def delete_cart_item(
    line_id: int,
    user_id: Optional[str] = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
):
    """Удаление позиции из корзины."""
    _owned_line_or_404(db, line_id, user_id)
    try:
        cart_service.remove_line(db, line_id)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=locales.ERROR_ITEM_NOT_IN_CART)
    return {"status": "ok", "message": locales.SUCCESS_ITEM_REMOVED_FROM_CART}


@router.delete("/cart")
def clear_cart(
    user_id: Optional[str] = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
):
    """Полная очистка корзины."""
    deleted = cart_service.clear_cart(db, user_id)
    return {"status": "ok", "message": locales.SUCCESS_CART_CLEARED, "deleted": deleted}


@router.get("/cart/products/{product_id}", response_model=CartProductStatus)
def get_cart_product_status(
    product_id: int,
    user_id: Optional[str] = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
):
    """Есть ли товар в корзине и сколько его там по всем вариациям."""
    return cart_service.get_cart_product_status(db, product_id, user_id)
