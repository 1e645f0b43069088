# storefront/services/cart.py

import logging
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.core.errors import NotFoundError
from storefront.crud import cart as crud_cart
from storefront.schemas.cart import (
    CartLine, CartProductStatus, CartSummary, CleanupResult, MigrationResult,
    WishlistEntry, WishlistQuery, WishlistSummary,
)
from storefront.schemas.product import Product
from storefront.services.cache_store import epoch_millis
from storefront.services.query import apply_wishlist_query

logger = logging.getLogger(__name__)

DAY_MS = 24 * 60 * 60 * 1000


def get_cart(db: Session, user_id: Optional[str] = None) -> CartSummary:
    """Собирает корзину владельца вместе с итогами."""
    lines = [CartLine.model_validate(item) for item in crud_cart.get_cart_items(db, user_id)]
    total_price = sum((line.line_total for line in lines), Decimal("0"))
    return CartSummary(
        items=lines,
        item_count=len(lines),
        total_quantity=sum(line.quantity for line in lines),
        total_price=total_price,
    )


def add_to_cart(
    db: Session,
    product: Product,
    quantity: int = 1,
    variation: Optional[Dict[str, str]] = None,
    user_id: Optional[str] = None,
) -> CartLine:
    if quantity < 1:
        raise ValueError("Quantity must be at least 1")
    try:
        item = crud_cart.add_to_cart(db, product, quantity, variation, user_id, added_at=epoch_millis())
    except IntegrityError:
        # Ту же позицию только что вставил параллельный запрос: повторяем, теперь это слияние
        db.rollback()
        logger.warning(f"Concurrent cart insert for product {product.id} (user: {user_id}), merging.")
        item = crud_cart.add_to_cart(db, product, quantity, variation, user_id, added_at=epoch_millis())
    logger.info(f"Cart line {item.id} for product {product.id} now has quantity {item.quantity} (user: {user_id}).")
    return CartLine.model_validate(item)


def update_quantity(db: Session, line_id: int, quantity: int) -> Optional[CartLine]:
    """
    Задает количество позиции. 0 и меньше удаляют позицию, тогда возвращается None.
    """
    item = crud_cart.get_cart_line(db, line_id)
    if item is None:
        raise NotFoundError(f"Cart line {line_id} not found")
    if quantity <= 0:
        crud_cart.remove_cart_line(db, line_id)
        logger.info(f"Cart line {line_id} removed by zero quantity.")
        return None
    return CartLine.model_validate(crud_cart.set_quantity(db, item, quantity))


def remove_line(db: Session, line_id: int):
    if not crud_cart.remove_cart_line(db, line_id):
        raise NotFoundError(f"Cart line {line_id} not found")


def clear_cart(db: Session, user_id: Optional[str] = None) -> int:
    deleted = crud_cart.clear_cart(db, user_id)
    logger.info(f"Cleared {deleted} cart lines (user: {user_id}).")
    return deleted


def get_cart_product_status(db: Session, product_id: int, user_id: Optional[str] = None) -> CartProductStatus:
    quantity = crud_cart.product_quantity_in_cart(db, product_id, user_id)
    return CartProductStatus(product_id=product_id, in_cart=quantity > 0, quantity=quantity)


# --- Избранное ---

def get_wishlist(
    db: Session,
    user_id: Optional[str] = None,
    query: Optional[WishlistQuery] = None,
) -> List[WishlistEntry]:
    """
    Избранное владельца. Без запроса - все позиции, новые сверху.
    Запрос добавляет поиск по имени, диапазон цен, отбор недавних и сортировку.
    """
    entries = [WishlistEntry.model_validate(item) for item in crud_cart.get_wishlist_items(db, user_id)]
    return apply_wishlist_query(entries, query)


def get_recent_wishlist(
    db: Session,
    user_id: Optional[str] = None,
    days: int = 7,
    now: Optional[int] = None,
) -> List[WishlistEntry]:
    since = (now if now is not None else epoch_millis()) - days * DAY_MS
    return get_wishlist(db, user_id, WishlistQuery(added_after=since))


def summarize_wishlist(entries: List[WishlistEntry]) -> WishlistSummary:
    prices = [entry.effective_price for entry in entries]
    total_value = sum(prices, Decimal("0"))
    return WishlistSummary(
        items=entries,
        item_count=len(entries),
        total_value=total_value,
        average_price=total_value / len(prices) if prices else None,
        min_price=min(prices) if prices else None,
        max_price=max(prices) if prices else None,
    )


def get_wishlist_summary(
    db: Session,
    user_id: Optional[str] = None,
    query: Optional[WishlistQuery] = None,
) -> WishlistSummary:
    return summarize_wishlist(get_wishlist(db, user_id, query))


def is_wishlisted(db: Session, product_id: int, user_id: Optional[str] = None) -> bool:
    return crud_cart.get_wishlist_item(db, product_id, user_id) is not None


def toggle_wishlist(db: Session, product: Product, user_id: Optional[str] = None) -> bool:
    """
    Добавляет товар в избранное, если его там нет, иначе удаляет.
    Возвращает True, если после вызова товар в избранном.

    Вставку от параллельного запроса отсекают уникальные индексы
    (для гостей - частичный индекс по product_id).
    """
    if crud_cart.get_wishlist_item(db, product.id, user_id) is not None:
        crud_cart.remove_wishlist_item(db, product.id, user_id)
        return False
    try:
        crud_cart.add_wishlist_item(db, product, user_id, added_at=epoch_millis())
    except IntegrityError:
        # Строку успел вставить параллельный запрос, итоговое состояние то же
        db.rollback()
        logger.warning(f"Concurrent wishlist insert for product {product.id} (user: {user_id}).")
    return True


def remove_from_wishlist(db: Session, product_id: int, user_id: Optional[str] = None):
    if not crud_cart.remove_wishlist_item(db, product_id, user_id):
        raise NotFoundError(f"Product {product_id} is not in the wishlist")


def clear_wishlist(db: Session, user_id: Optional[str] = None) -> int:
    return crud_cart.clear_wishlist(db, user_id)


# --- Общее ---

def refresh_snapshots(db: Session, product: Product) -> int:
    updated = crud_cart.refresh_snapshots(db, product)
    if updated:
        logger.info(f"Refreshed {updated} cart/wishlist snapshots for product {product.id}.")
    return updated


def cleanup_old_items(db: Session, cart_before: int, wishlist_before: int) -> CleanupResult:
    """Удаляет у всех владельцев позиции корзины и избранного, добавленные раньше порогов."""
    result = CleanupResult(
        cart_lines_deleted=crud_cart.delete_old_cart_items(db, cart_before),
        wishlist_items_deleted=crud_cart.delete_old_wishlist_items(db, wishlist_before),
    )
    if result.cart_lines_deleted or result.wishlist_items_deleted:
        logger.info(
            f"Removed {result.cart_lines_deleted} old cart lines and "
            f"{result.wishlist_items_deleted} old wishlist items."
        )
    return result


def migrate_guest_to_user(db: Session, user_id: str) -> MigrationResult:
    result = crud_cart.migrate_guest_to_user(db, user_id)
    logger.info(
        f"Guest data migrated to user {user_id}: "
        f"cart {result.cart_lines_migrated} moved / {result.cart_lines_merged} merged, "
        f"wishlist {result.wishlist_items_migrated} moved / {result.wishlist_duplicates_dropped} duplicates dropped."
    )
    return result
