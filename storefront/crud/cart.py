# storefront/crud/cart.py
import json
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.models.cart import CartItem, WishlistItem
from storefront.schemas.cart import MigrationResult
from storefront.schemas.product import Product


def variation_key(variation: Optional[Dict[str, str]]) -> str:
    """Каноничный ключ вариации: порядок атрибутов не важен."""
    if not variation:
        return ""
    return json.dumps(variation, sort_keys=True, ensure_ascii=False, separators=(",", ":"))

def _owned_by(column, user_id: Optional[str]):
    # NULL в user_id означает гостя
    return column.is_(None) if user_id is None else column == user_id

# --- CRUD для Корзины ---

def get_cart_items(db: Session, user_id: Optional[str] = None) -> List[CartItem]:
    """Получает все позиции корзины владельца в порядке добавления."""
    return (
        db.query(CartItem)
        .filter(_owned_by(CartItem.user_id, user_id))
        .order_by(CartItem.added_at, CartItem.id)
        .all()
    )

def get_cart_line(db: Session, line_id: int) -> Optional[CartItem]:
    return db.get(CartItem, line_id)

def find_cart_line(db: Session, product_id: int, key: str, user_id: Optional[str] = None) -> Optional[CartItem]:
    return db.query(CartItem).filter(
        CartItem.product_id == product_id,
        CartItem.variation_key == key,
        _owned_by(CartItem.user_id, user_id),
    ).first()

def add_to_cart(
    db: Session,
    product: Product,
    quantity: int,
    variation: Optional[Dict[str, str]],
    user_id: Optional[str],
    added_at: int,
) -> CartItem:
    """
    Добавляет товар (с вариацией) в корзину.
    Если такая позиция уже есть - количество увеличивается, а не заменяется.
    """
    key = variation_key(variation)
    item = find_cart_line(db, product.id, key, user_id)

    if item:
        item.quantity = item.quantity + quantity
    else:
        # Снимок данных товара на момент добавления
        item = CartItem(
            product_id=product.id,
            variation=dict(variation or {}),
            variation_key=key,
            quantity=quantity,
            product_name=product.name,
            product_price=product.effective_price,
            product_image=product.primary_image,
            user_id=user_id,
            added_at=added_at,
        )
        db.add(item)
    db.commit()
    db.refresh(item)
    return item

def set_quantity(db: Session, item: CartItem, quantity: int) -> CartItem:
    item.quantity = quantity
    db.commit()
    db.refresh(item)
    return item

def remove_cart_line(db: Session, line_id: int) -> bool:
    deleted = db.query(CartItem).filter(CartItem.id == line_id).delete(synchronize_session=False)
    db.commit()
    return deleted > 0

def clear_cart(db: Session, user_id: Optional[str] = None) -> int:
    """Полностью очищает корзину владельца."""
    deleted = db.query(CartItem).filter(_owned_by(CartItem.user_id, user_id)).delete(synchronize_session=False)
    db.commit()
    return deleted

def product_quantity_in_cart(db: Session, product_id: int, user_id: Optional[str] = None) -> int:
    """Сколько единиц товара (по всем вариациям) уже лежит в корзине владельца."""
    total = db.query(func.sum(CartItem.quantity)).filter(
        CartItem.product_id == product_id,
        _owned_by(CartItem.user_id, user_id),
    ).scalar()
    return int(total or 0)

def delete_old_cart_items(db: Session, threshold: int) -> int:
    """Удаляет позиции всех владельцев, добавленные раньше threshold (epoch millis)."""
    deleted = db.query(CartItem).filter(CartItem.added_at < threshold).delete(synchronize_session=False)
    db.commit()
    return deleted

# --- CRUD для Избранного ---

def get_wishlist_items(db: Session, user_id: Optional[str] = None) -> List[WishlistItem]:
    return (
        db.query(WishlistItem)
        .filter(_owned_by(WishlistItem.user_id, user_id))
        .order_by(WishlistItem.added_at.desc(), WishlistItem.id.desc())
        .all()
    )

def get_wishlist_item(db: Session, product_id: int, user_id: Optional[str] = None) -> Optional[WishlistItem]:
    """Проверяет, находится ли КОНКРЕТНЫЙ товар в избранном у владельца."""
    return db.query(WishlistItem).filter(
        WishlistItem.product_id == product_id,
        _owned_by(WishlistItem.user_id, user_id),
    ).first()

def add_wishlist_item(db: Session, product: Product, user_id: Optional[str], added_at: int) -> WishlistItem:
    existing_item = get_wishlist_item(db, product.id, user_id)
    if existing_item:
        return existing_item

    item = WishlistItem(
        product_id=product.id,
        product_name=product.name,
        product_image=product.primary_image,
        price=product.price,
        regular_price=product.regular_price,
        sale_price=product.sale_price,
        on_sale=product.on_sale,
        user_id=user_id,
        added_at=added_at,
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    return item

def remove_wishlist_item(db: Session, product_id: int, user_id: Optional[str] = None) -> bool:
    deleted = db.query(WishlistItem).filter(
        WishlistItem.product_id == product_id,
        _owned_by(WishlistItem.user_id, user_id),
    ).delete(synchronize_session=False)
    db.commit()
    return deleted > 0

def clear_wishlist(db: Session, user_id: Optional[str] = None) -> int:
    deleted = db.query(WishlistItem).filter(_owned_by(WishlistItem.user_id, user_id)).delete(synchronize_session=False)
    db.commit()
    return deleted

def delete_old_wishlist_items(db: Session, threshold: int) -> int:
    deleted = db.query(WishlistItem).filter(WishlistItem.added_at < threshold).delete(synchronize_session=False)
    db.commit()
    return deleted

# --- Обновление снимков ---

def refresh_snapshots(db: Session, product: Product) -> int:
    """
    Переписывает денормализованные имя, цену и картинку товара во всех
    позициях корзины и избранного. Возвращает число затронутых строк.
    """
    cart_updated = db.query(CartItem).filter(CartItem.product_id == product.id).update(
        {
            CartItem.product_name: product.name,
            CartItem.product_price: product.effective_price,
            CartItem.product_image: product.primary_image,
        },
        synchronize_session=False,
    )
    wishlist_updated = db.query(WishlistItem).filter(WishlistItem.product_id == product.id).update(
        {
            WishlistItem.product_name: product.name,
            WishlistItem.product_image: product.primary_image,
            WishlistItem.price: product.price,
            WishlistItem.regular_price: product.regular_price,
            WishlistItem.sale_price: product.sale_price,
            WishlistItem.on_sale: product.on_sale,
        },
        synchronize_session=False,
    )
    db.commit()
    return cart_updated + wishlist_updated

# --- Перенос гостевых данных ---

def migrate_guest_to_user(db: Session, user_id: str) -> MigrationResult:
    """
    Переносит гостевые корзину и избранное на пользователя одной транзакцией.

    Коллизии обрабатываются явно: гостевая позиция корзины с тем же товаром и
    вариацией вливается в позицию пользователя (количества складываются), гостевой
    дубликат в избранном удаляется. Остальные строки перетегируются массовым UPDATE.
    Повторный вызов ничего не меняет: гостевых строк уже нет.
    """
    result = MigrationResult()
    try:
        # Корзина
        user_lines = {
            (line.product_id, line.variation_key): line
            for line in db.query(CartItem).filter(CartItem.user_id == user_id)
        }
        merged_ids = []
        for guest_line in db.query(CartItem).filter(CartItem.user_id.is_(None)):
            target = user_lines.get((guest_line.product_id, guest_line.variation_key))
            if target is not None:
                target.quantity = target.quantity + guest_line.quantity
                merged_ids.append(guest_line.id)
        db.flush()
        if merged_ids:
            db.query(CartItem).filter(CartItem.id.in_(merged_ids)).delete(synchronize_session=False)
        result.cart_lines_merged = len(merged_ids)
        result.cart_lines_migrated = db.query(CartItem).filter(CartItem.user_id.is_(None)).update(
            {CartItem.user_id: user_id}, synchronize_session=False
        )

        # Избранное
        user_products = {
            product_id for (product_id,) in db.query(WishlistItem.product_id).filter(WishlistItem.user_id == user_id)
        }
        if user_products:
            result.wishlist_duplicates_dropped = db.query(WishlistItem).filter(
                WishlistItem.user_id.is_(None),
                WishlistItem.product_id.in_(user_products),
            ).delete(synchronize_session=False)
        result.wishlist_items_migrated = db.query(WishlistItem).filter(WishlistItem.user_id.is_(None)).update(
            {WishlistItem.user_id: user_id}, synchronize_session=False
        )

        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    return result
