# storefront/schemas/cart.py
from decimal import Decimal
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Dict, List, Optional


# Схема для добавления товара в корзину
class CartItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(1, gt=0) # Количество должно быть больше 0
    variation: Dict[str, str] = {} # Например, {"Color": "Black", "Size": "28cm"}

# Схема для изменения количества. 0 и меньше означают удаление позиции.
class CartQuantityUpdate(BaseModel):
    quantity: int

class CartLine(BaseModel):
    id: int
    product_id: int
    variation: Dict[str, str]
    quantity: int
    product_name: str
    product_price: Decimal
    product_image: Optional[str] = None
    user_id: Optional[str] = None
    added_at: int

    model_config = ConfigDict(from_attributes=True)

    @property
    def line_total(self) -> Decimal:
        return self.product_price * self.quantity

class CartSummary(BaseModel):
    items: List[CartLine]
    item_count: int        # Количество позиций
    total_quantity: int    # Сумма количеств по всем позициям
    total_price: Decimal

class CartProductStatus(BaseModel):
    product_id: int
    in_cart: bool
    quantity: int # Сумма по всем вариациям товара


# --- Избранное ---

class WishlistEntry(BaseModel):
    id: int
    product_id: int
    product_name: str
    product_image: Optional[str] = None
    price: Decimal
    regular_price: Decimal
    sale_price: Optional[Decimal] = None
    on_sale: bool
    user_id: Optional[str] = None
    added_at: int

    model_config = ConfigDict(from_attributes=True)

    @property
    def effective_price(self) -> Decimal:
        # То же правило, что и у товара каталога
        if self.on_sale and self.sale_price is not None:
            return self.sale_price
        return self.price

class WishlistSortOrder(str, Enum):
    DATE_NEWEST = "date_newest"
    DATE_OLDEST = "date_oldest"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    NAME = "name"

class WishlistQuery(BaseModel):
    """Выборка из избранного: поиск по имени, диапазон цен, недавние, сортировка."""
    search: Optional[str] = None
    min_price: Optional[Decimal] = Field(None, ge=0)
    max_price: Optional[Decimal] = Field(None, ge=0)
    added_after: Optional[int] = None # epoch millis, строго позже
    sort: WishlistSortOrder = WishlistSortOrder.DATE_NEWEST
    limit: Optional[int] = Field(None, ge=1)

    @model_validator(mode="after")
    def check_price_range(self) -> "WishlistQuery":
        if self.min_price is not None and self.max_price is not None and self.min_price > self.max_price:
            raise ValueError("min_price must not exceed max_price")
        return self

class WishlistSummary(BaseModel):
    """Избранное вместе со статистикой по ценам показанных позиций."""
    items: List[WishlistEntry]
    item_count: int
    total_value: Decimal
    average_price: Optional[Decimal] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None

class WishlistToggleRequest(BaseModel):
    product_id: int

class WishlistToggleResponse(BaseModel):
    product_id: int
    wishlisted: bool


class MigrationRequest(BaseModel):
    user_id: str = Field(..., min_length=1)

class MigrationResult(BaseModel):
    """Отчет о переносе гостевых данных. Коллизии считаются отдельно, а не теряются молча."""
    cart_lines_migrated: int = 0
    cart_lines_merged: int = 0
    wishlist_items_migrated: int = 0
    wishlist_duplicates_dropped: int = 0


class CleanupResult(BaseModel):
    cart_lines_deleted: int
    wishlist_items_deleted: int
