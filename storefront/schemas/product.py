# storefront/schemas/product.py
from datetime import datetime
from decimal import Decimal
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Dict, Generic, List, Optional, TypeVar


class StockStatus(str, Enum):
    IN_STOCK = "instock"
    OUT_OF_STOCK = "outofstock"
    ON_BACKORDER = "onbackorder"


class Product(BaseModel):
    """
    Каноническая форма товара. Одна и та же для кеша, удаленного API и фолбэка,
    поэтому все фильтры и сортировки применяются к ней одинаково.
    """
    id: int
    name: str
    slug: str = ""
    permalink: Optional[str] = None
    type: str = "simple"
    description: str = ""
    short_description: str = ""
    sku: str = ""

    # Все суммы в единой валюте магазина
    price: Decimal
    regular_price: Decimal
    sale_price: Optional[Decimal] = None
    on_sale: bool = False

    stock_status: StockStatus = StockStatus.IN_STOCK
    stock_quantity: Optional[int] = None # None - остаток не отслеживается

    categories: List[str] = []
    tags: List[str] = []
    images: List[str] = []
    attributes: Dict[str, List[str]] = {}

    featured: bool = False
    average_rating: Decimal = Field(Decimal("0"), ge=0, le=5)
    rating_count: int = Field(0, ge=0)
    total_sales: int = Field(0, ge=0)
    date_created: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @model_validator(mode="after")
    def check_sale_price(self) -> "Product":
        if self.on_sale and self.sale_price is not None and self.sale_price > self.regular_price:
            raise ValueError(
                f"sale_price {self.sale_price} exceeds regular_price {self.regular_price} for product {self.id}"
            )
        return self

    @property
    def effective_price(self) -> Decimal:
        """Цена для витрины и корзины с учетом активной распродажи."""
        if self.on_sale and self.sale_price is not None:
            return self.sale_price
        return self.price

    @property
    def primary_image(self) -> Optional[str]:
        return self.images[0] if self.images else None


class Category(BaseModel):
    id: int
    name: str
    slug: str = ""
    parent: int = 0
    description: Optional[str] = None
    image: Optional[str] = None
    count: int = 0

    model_config = ConfigDict(from_attributes=True)


# --- Контракт запроса: фильтр, сортировка, пагинация ---

class SortField(str, Enum):
    DATE = "date"
    PRICE = "price"
    RATING = "rating"
    POPULARITY = "popularity"
    NAME = "name"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class ProductFilter(BaseModel):
    search: Optional[str] = None
    category: Optional[str] = None # Подстрока имени категории, без учета регистра
    min_price: Optional[Decimal] = Field(None, ge=0)
    max_price: Optional[Decimal] = Field(None, ge=0)
    featured: Optional[bool] = None
    on_sale: Optional[bool] = None

    @model_validator(mode="after")
    def check_price_range(self) -> "ProductFilter":
        if self.min_price is not None and self.max_price is not None and self.min_price > self.max_price:
            raise ValueError("min_price must not exceed max_price")
        return self


class ProductSort(BaseModel):
    field: SortField = SortField.DATE
    direction: SortDirection = SortDirection.DESC


class Pagination(BaseModel):
    page: int = Field(1, ge=1)
    page_size: int = Field(20, gt=0)


class ProductQuery(BaseModel):
    filter: ProductFilter = ProductFilter()
    sort: ProductSort = ProductSort()
    pagination: Pagination = Pagination()


# --- Пагинированные ответы ---

DataType = TypeVar('DataType')

class PaginatedResponse(BaseModel, Generic[DataType]):
    """
    Универсальная Pydantic-схема для пагинированных ответов.
    """
    total_items: int
    total_pages: int
    current_page: int
    size: int
    items: List[DataType]


class ProductPage(PaginatedResponse[Product]):
    pass
