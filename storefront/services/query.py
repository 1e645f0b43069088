# storefront/services/query.py
"""
Единый контракт фильтрации, сортировки и пагинации.

Им пользуются все три источника (кеш, удаленный каталог, фолбэк), чтобы одна и та же
выборка не "прыгала" при смене источника внутри сессии.
"""

import math
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from storefront.schemas.cart import WishlistEntry, WishlistQuery, WishlistSortOrder
from storefront.schemas.product import (
    Pagination, Product, ProductFilter, ProductPage, ProductSort, SortDirection, SortField
)

_MIN_DATE = datetime.min.replace(tzinfo=timezone.utc)


def _contains(haystack: str, needle: str) -> bool:
    return needle in (haystack or "").casefold()


def matches_filter(product: Product, product_filter: ProductFilter) -> bool:
    if product_filter.search:
        needle = product_filter.search.casefold()
        if not (
            _contains(product.name, needle)
            or _contains(product.description, needle)
            or _contains(product.short_description, needle)
        ):
            return False

    if product_filter.category:
        needle = product_filter.category.casefold()
        if not any(_contains(name, needle) for name in product.categories):
            return False

    price = product.effective_price
    if product_filter.min_price is not None and price < product_filter.min_price:
        return False
    if product_filter.max_price is not None and price > product_filter.max_price:
        return False

    if product_filter.featured is not None and product.featured != product_filter.featured:
        return False
    if product_filter.on_sale is not None and product.on_sale != product_filter.on_sale:
        return False

    return True


def filter_products(products: Iterable[Product], product_filter: ProductFilter) -> List[Product]:
    return [product for product in products if matches_filter(product, product_filter)]


def _date_key(product: Product) -> datetime:
    value = product.date_created
    if value is None:
        return _MIN_DATE
    # SQLite возвращает naive datetime, приводим к UTC для сравнения
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


_SORT_KEYS = {
    SortField.DATE: _date_key,
    SortField.PRICE: lambda product: product.effective_price,
    SortField.RATING: lambda product: product.average_rating,
    SortField.POPULARITY: lambda product: product.total_sales,
    SortField.NAME: lambda product: product.name.casefold(),
}


def sort_products(products: Iterable[Product], sort: ProductSort) -> List[Product]:
    # sorted() стабилен и при reverse=True: равные ключи сохраняют исходный порядок
    return sorted(
        products,
        key=_SORT_KEYS[sort.field],
        reverse=sort.direction == SortDirection.DESC,
    )


def paginate(products: List[Product], pagination: Pagination) -> ProductPage:
    total_items = len(products)
    start = (pagination.page - 1) * pagination.page_size
    return ProductPage(
        total_items=total_items,
        total_pages=math.ceil(total_items / pagination.page_size) if total_items > 0 else 0,
        current_page=pagination.page,
        size=pagination.page_size,
        items=products[start:start + pagination.page_size],
    )


def apply_query(products: Iterable[Product], product_filter: ProductFilter, sort: ProductSort) -> List[Product]:
    return sort_products(filter_products(products, product_filter), sort)


# --- Избранное ---
# Позиции избранного - снимки, поэтому фильтруются по собственным полям, но по тем же правилам:
# подстрока без учета регистра и включительный диапазон эффективной цены.

def matches_wishlist_query(entry: WishlistEntry, query: WishlistQuery) -> bool:
    if query.search and not _contains(entry.product_name, query.search.casefold()):
        return False

    price = entry.effective_price
    if query.min_price is not None and price < query.min_price:
        return False
    if query.max_price is not None and price > query.max_price:
        return False

    if query.added_after is not None and entry.added_at <= query.added_after:
        return False
    return True


# (ключ, reverse). Для одинаковых ключей сохраняется порядок из базы: новые сверху.
_WISHLIST_SORT_KEYS = {
    WishlistSortOrder.DATE_NEWEST: (lambda entry: entry.added_at, True),
    WishlistSortOrder.DATE_OLDEST: (lambda entry: entry.added_at, False),
    WishlistSortOrder.PRICE_ASC: (lambda entry: entry.effective_price, False),
    WishlistSortOrder.PRICE_DESC: (lambda entry: entry.effective_price, True),
    WishlistSortOrder.NAME: (lambda entry: entry.product_name.casefold(), False),
}


def apply_wishlist_query(entries: Iterable[WishlistEntry], query: Optional[WishlistQuery] = None) -> List[WishlistEntry]:
    query = query or WishlistQuery()
    key, reverse = _WISHLIST_SORT_KEYS[query.sort]
    selected = sorted(
        (entry for entry in entries if matches_wishlist_query(entry, query)),
        key=key,
        reverse=reverse,
    )
    if query.limit is not None:
        selected = selected[:query.limit]
    return selected
