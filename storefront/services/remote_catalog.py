# storefront/services/remote_catalog.py

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional, Tuple

import httpx
from pydantic import BaseModel, ValidationError

from storefront.clients.woocommerce import WooCommerceClient
from storefront.core.errors import DecodeError
from storefront.schemas.product import Category, Product, ProductQuery, SortField

logger = logging.getLogger(__name__)

# Поле сортировки в нашем контракте -> значение orderby в WooCommerce
ORDERBY_MAP = {
    SortField.DATE: "date",
    SortField.PRICE: "price",
    SortField.RATING: "rating",
    SortField.POPULARITY: "popularity",
    SortField.NAME: "title",
}


class RemotePage(BaseModel):
    items: List[Product]
    total_items: Optional[int] = None
    total_pages: Optional[int] = None


# --- Маппинг "проводных" записей WooCommerce в каноническую форму ---

def _to_decimal(value: Any, default: Optional[Decimal] = None) -> Optional[Decimal]:
    # WooCommerce отдает цены строками, пустая строка означает "не задано"
    if value is None or value == "" or value is False:
        return default
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise DecodeError(f"Invalid decimal value: {value!r}")


def _names(items: Any) -> List[str]:
    if not items:
        return []
    return [item.get("name", "") if isinstance(item, dict) else str(item) for item in items]


def _image_urls(images: Any) -> List[str]:
    if not images:
        return []
    urls = []
    for image in images:
        src = image.get("src") if isinstance(image, dict) else image
        if isinstance(src, str) and src:
            urls.append(src)
    return urls


def _attributes(attributes: Any) -> dict:
    if isinstance(attributes, dict):
        return {name: list(options) for name, options in attributes.items()}
    result = {}
    for attribute in attributes or []:
        name = attribute.get("name")
        if name:
            result[name] = list(attribute.get("options") or [])
    return result


def map_product(data: Any) -> Product:
    """Преобразует запись товара из WooCommerce в Product. Ошибка формы -> DecodeError."""
    if not isinstance(data, dict):
        raise DecodeError(f"Product record must be an object, got {type(data).__name__}")
    try:
        price = _to_decimal(data.get("price"), Decimal("0"))
        return Product.model_validate({
            "id": data["id"],
            "name": data.get("name", ""),
            "slug": data.get("slug") or "",
            "permalink": data.get("permalink"),
            "type": data.get("type") or "simple",
            "description": data.get("description") or "",
            "short_description": data.get("short_description") or "",
            "sku": data.get("sku") or "",
            "price": price,
            "regular_price": _to_decimal(data.get("regular_price"), price),
            "sale_price": _to_decimal(data.get("sale_price")),
            "on_sale": bool(data.get("on_sale", False)),
            "stock_status": data.get("stock_status") or "instock",
            "stock_quantity": data.get("stock_quantity"),
            "categories": _names(data.get("categories")),
            "tags": _names(data.get("tags")),
            "images": _image_urls(data.get("images")),
            "attributes": _attributes(data.get("attributes")),
            "featured": bool(data.get("featured", False)),
            "average_rating": _to_decimal(data.get("average_rating"), Decimal("0")),
            "rating_count": data.get("rating_count") or 0,
            "total_sales": data.get("total_sales") or 0,
            "date_created": data.get("date_created") or None,
        })
    except (KeyError, TypeError, ValidationError) as e:
        raise DecodeError(f"Unexpected product shape for ID {data.get('id')}: {e}") from e


def map_products(records: Any) -> List[Product]:
    """
    Маппинг списка. Неверная форма самого списка -> DecodeError,
    отдельные битые записи пропускаются с предупреждением.
    """
    if not isinstance(records, list):
        raise DecodeError(f"Expected a list of products, got {type(records).__name__}")
    products = []
    for record in records:
        try:
            products.append(map_product(record))
        except DecodeError:
            record_id = record.get("id") if isinstance(record, dict) else None
            logger.warning(f"Skipping product due to validation error for product ID {record_id}", exc_info=True)
    return products


def map_category(data: Any) -> Category:
    if not isinstance(data, dict):
        raise DecodeError(f"Category record must be an object, got {type(data).__name__}")
    image_obj = data.get("image")
    image_src = None
    # API возвращает false или null, если у категории нет изображения
    if isinstance(image_obj, dict):
        image_src = image_obj.get("src") or None
    elif isinstance(image_obj, str) and image_obj:
        image_src = image_obj
    try:
        return Category.model_validate({
            "id": data["id"],
            "name": data.get("name", ""),
            "slug": data.get("slug") or "",
            "parent": data.get("parent") or 0,
            "description": data.get("description") or None,
            "image": image_src,
            "count": data.get("count") or 0,
        })
    except (KeyError, TypeError, ValidationError) as e:
        raise DecodeError(f"Unexpected category shape for ID {data.get('id')}: {e}") from e


# --- Разбор ответа ---

def _header_int(headers: httpx.Headers, *names: str) -> Optional[int]:
    for name in names:
        value = headers.get(name)
        if value is not None:
            try:
                return int(value)
            except ValueError:
                raise DecodeError(f"Invalid pagination header {name}: {value!r}")
    return None


def _decode_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise DecodeError("Catalog API response is not valid JSON") from e


def extract_records(response: httpx.Response, *envelope_keys: str) -> Tuple[list, Optional[int], Optional[int]]:
    """
    Достает список записей и метаданные пагинации.
    Поддерживаются оба соглашения: голый список + заголовки X-WP-Total/X-WP-TotalPages
    (или total/total-pages), либо конверт в теле {"products": [...], "total": n, "total_pages": m}.
    """
    payload = _decode_json(response)
    if isinstance(payload, list):
        total_items = _header_int(response.headers, "X-WP-Total", "total")
        total_pages = _header_int(response.headers, "X-WP-TotalPages", "total-pages")
        return payload, total_items, total_pages

    if isinstance(payload, dict):
        for key in envelope_keys:
            if isinstance(payload.get(key), list):
                total_items = payload.get("total")
                total_pages = payload.get("total_pages", payload.get("totalPages"))
                try:
                    return (
                        payload[key],
                        int(total_items) if total_items is not None else None,
                        int(total_pages) if total_pages is not None else None,
                    )
                except (TypeError, ValueError) as e:
                    raise DecodeError(f"Invalid pagination metadata in body: {e}") from e

    raise DecodeError(f"Unexpected response shape: {type(payload).__name__}")


# --- Запросы ---

def build_product_params(query: ProductQuery) -> dict:
    params = {
        "page": query.pagination.page,
        "per_page": query.pagination.page_size,
        "status": "publish",
        "orderby": ORDERBY_MAP[query.sort.field],
        "order": query.sort.direction.value,
    }
    product_filter = query.filter
    if product_filter.search: params["search"] = product_filter.search
    if product_filter.category: params["category"] = product_filter.category
    if product_filter.min_price is not None: params["min_price"] = str(product_filter.min_price)
    if product_filter.max_price is not None: params["max_price"] = str(product_filter.max_price)
    if product_filter.featured is not None: params["featured"] = str(product_filter.featured).lower()
    if product_filter.on_sale is not None: params["on_sale"] = str(product_filter.on_sale).lower()
    return params


async def fetch_products(client: WooCommerceClient, query: ProductQuery) -> RemotePage:
    params = build_product_params(query)
    logger.info(f"Fetching products from WC with params: {params}")
    response = await client.get("products", params=params)
    records, total_items, total_pages = extract_records(response, "products", "items")
    return RemotePage(items=map_products(records), total_items=total_items, total_pages=total_pages)


async def fetch_product(client: WooCommerceClient, product_id: int) -> Product:
    response = await client.get(f"products/{product_id}")
    return map_product(_decode_json(response))


async def fetch_categories(
    client: WooCommerceClient,
    page: int = 1,
    per_page: int = 100,
    hide_empty: Optional[bool] = None,
    parent: Optional[int] = None,
    orderby: str = "name",
    order: str = "asc",
) -> List[Category]:
    params = {"page": page, "per_page": per_page, "orderby": orderby, "order": order}
    if hide_empty is not None: params["hide_empty"] = str(hide_empty).lower()
    if parent is not None: params["parent"] = parent

    response = await client.get("products/categories", params=params)
    records, _, _ = extract_records(response, "categories", "items")

    categories = []
    for record in records:
        try:
            categories.append(map_category(record))
        except DecodeError:
            logger.warning("Skipping category due to validation error", exc_info=True)
    logger.info(f"Fetched {len(categories)} categories from WC.")
    return categories
