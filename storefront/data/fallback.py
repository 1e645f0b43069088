# storefront/data/fallback.py
"""
Статический резервный каталог.

Используется только как последний рубеж: удаленный каталог недоступен, а локальный
кеш пуст. Данные записаны в "проводном" формате WooCommerce и проходят через тот же
маппер, что и ответы API. В кеш они никогда не пишутся.
"""

from typing import List, Optional

from storefront.schemas.product import Category, Product
from storefront.services.remote_catalog import map_category, map_product

_UPLOADS = "https://hayuwidyas.com/wp-content/uploads/2025/07"

FALLBACK_PRODUCT_RECORDS = (
    {
        "id": 1,
        "name": "HAYU WIDYAS Calais tas kulit asli berkualitas – Tas Wanita 28cm",
        "slug": "hayu-widyas-calais-28cm",
        "permalink": "https://hayuwidyas.com/product/hayu-widyas-calais-tas-kulit-asli-berkualitas-tas-wanita-28cm/",
        "date_created": "2024-01-15T10:00:00",
        "type": "variable",
        "featured": True,
        "description": "Tas kulit asli berkualitas tinggi dengan desain elegan dan timeless. "
                       "Material crocodile leather premium dengan finishing yang sempurna.",
        "short_description": "Luxury crocodile leather handbag, handcrafted in Indonesia",
        "sku": "HW-CAL-28-001",
        "price": "18000000",
        "regular_price": "18000000",
        "sale_price": "",
        "on_sale": False,
        "total_sales": 45,
        "stock_quantity": 3,
        "stock_status": "instock",
        "average_rating": "4.80",
        "rating_count": 12,
        "categories": [
            {"id": 1, "name": "Crocodile Series", "slug": "crocodile-series"},
            {"id": 2, "name": "Top Handle Bags", "slug": "top-handle-bags"},
        ],
        "tags": [{"id": 1, "name": "Luxury"}, {"id": 2, "name": "Handmade"}],
        "images": [
            {"id": 1, "src": f"{_UPLOADS}/ginee_20250718162858897_2728616238-300x300.jpg"},
            {"id": 2, "src": f"{_UPLOADS}/ginee_20250718162858828_1482019247-300x300.jpg"},
        ],
        "attributes": [
            {"name": "Size", "options": ["28cm"]},
            {"name": "Color", "options": ["Black", "Brown", "Burgundy"]},
        ],
    },
    {
        "id": 2,
        "name": "HAYU WIDYAS Kale Landscape tas kulit asli berkualitas – Tas Wanita 25cm",
        "slug": "hayu-widyas-kale-landscape-25cm",
        "permalink": "https://hayuwidyas.com/product/hayu-widyas-kale-landscape-tas-kulit-asli-berkualitas-tas-wanita-25cm-2/",
        "date_created": "2024-01-10T10:00:00",
        "type": "variable",
        "featured": True,
        "description": "Tas kulit landscape dengan desain modern dan elegan. "
                       "Material python leather berkualitas tinggi.",
        "short_description": "Modern python leather landscape bag",
        "sku": "HW-KAL-25-001",
        "price": "14650000",
        "regular_price": "14650000",
        "sale_price": "",
        "on_sale": False,
        "total_sales": 32,
        "stock_quantity": 5,
        "stock_status": "instock",
        "average_rating": "4.90",
        "rating_count": 8,
        "categories": [
            {"id": 3, "name": "Python Series", "slug": "python-series"},
            {"id": 4, "name": "Shoulder Bags", "slug": "shoulder-bags"},
        ],
        "tags": [{"id": 1, "name": "Luxury"}, {"id": 4, "name": "Daily Use"}],
        "images": [
            {"id": 3, "src": f"{_UPLOADS}/ginee_20250716165451242_4547345771-300x300.jpeg"},
            {"id": 4, "src": f"{_UPLOADS}/ginee_20250716165451452_4691009833-300x300.jpeg"},
        ],
        "attributes": [
            {"name": "Size", "options": ["25cm"]},
            {"name": "Color", "options": ["Natural", "Black", "Brown"]},
        ],
    },
    {
        "id": 3,
        "name": "HAYU WIDYAS Hasselt Hz tas kulit asli berkualitas – Tas Wanita 39cm",
        "slug": "hayu-widyas-hasselt-hz-39cm",
        "permalink": "https://hayuwidyas.com/product/hayu-widyas-hasselt-hz-tas-kulit-asli-berkualitas-tas-wanita-39cm/",
        "date_created": "2024-01-05T10:00:00",
        "type": "simple",
        "featured": False,
        "description": "Tas kulit berukuran besar dengan desain sophisticated. "
                       "Material lizard leather dengan craftsmanship terbaik.",
        "short_description": "Large sophisticated lizard leather bag",
        "sku": "HW-HAS-39-001",
        "price": "24650000",
        "regular_price": "24650000",
        "sale_price": "",
        "on_sale": False,
        "total_sales": 18,
        "stock_quantity": 2,
        "stock_status": "instock",
        "average_rating": "5.00",
        "rating_count": 5,
        "categories": [
            {"id": 5, "name": "Lizard Series", "slug": "lizard-series"},
            {"id": 6, "name": "Travel Bags", "slug": "travel-bags"},
        ],
        "tags": [{"id": 1, "name": "Luxury"}, {"id": 5, "name": "Travel"}],
        "images": [
            {"id": 5, "src": f"{_UPLOADS}/ginee_20250714104232587_8797003711-300x300.jpeg"},
            {"id": 6, "src": f"{_UPLOADS}/ginee_20250714104232639_7607271006-300x300.jpeg"},
        ],
        "attributes": [{"name": "Size", "options": ["39cm"]}],
    },
    {
        "id": 4,
        "name": "HAYU WIDYAS Herve Hz tas kulit asli berkualitas – Tas Wanita 30cm",
        "slug": "hayu-widyas-herve-hz-30cm",
        "permalink": "https://hayuwidyas.com/product/hayu-widyas-herve-hz-tas-kulit-asli-berkualitas-tas-wanita-30cm/",
        "date_created": "2023-12-20T10:00:00",
        "type": "simple",
        "featured": False,
        "description": "Tas kulit klasik dengan desain timeless untuk acara formal.",
        "short_description": "Classic timeless leather handbag",
        "sku": "HW-HER-30-001",
        "price": "21500000",
        "regular_price": "21500000",
        "sale_price": "",
        "on_sale": False,
        "total_sales": 27,
        "stock_quantity": 4,
        "stock_status": "instock",
        "average_rating": "4.70",
        "rating_count": 15,
        "categories": [
            {"id": 1, "name": "Crocodile Series", "slug": "crocodile-series"},
            {"id": 2, "name": "Top Handle Bags", "slug": "top-handle-bags"},
        ],
        "tags": [{"id": 2, "name": "Handmade"}],
        "images": [
            {"id": 7, "src": f"{_UPLOADS}/ginee_20250711143925985_7560644664-300x300.jpeg"},
            {"id": 8, "src": f"{_UPLOADS}/ginee_20250711143926039_5523846646-300x300.jpeg"},
        ],
        "attributes": [{"name": "Size", "options": ["30cm"]}],
    },
    {
        "id": 5,
        "name": "HAYU WIDYAS Calais tas kulit asli berkualitas – Tas Wanita 24cm",
        "slug": "hayu-widyas-calais-24cm",
        "permalink": "https://hayuwidyas.com/product/hayu-widyas-calais-tas-kulit-asli-berkualitas-tas-wanita-24cm/",
        "date_created": "2023-12-15T10:00:00",
        "type": "simple",
        "featured": False,
        "description": "Tas kulit compact dan elegan, cocok untuk acara malam.",
        "short_description": "Compact elegant crocodile leather bag",
        "sku": "HW-CAL-24-001",
        "price": "13500000",
        "regular_price": "14800000",
        "sale_price": "13500000",
        "on_sale": True,
        "total_sales": 51,
        "stock_quantity": 6,
        "stock_status": "instock",
        "average_rating": "4.60",
        "rating_count": 22,
        "categories": [
            {"id": 1, "name": "Crocodile Series", "slug": "crocodile-series"},
            {"id": 7, "name": "Mini Bags", "slug": "mini-bags"},
        ],
        "tags": [{"id": 1, "name": "Luxury"}],
        "images": [
            {"id": 9, "src": f"{_UPLOADS}/ginee_20250711143903500_1490068491-300x300.jpeg"},
            {"id": 10, "src": f"{_UPLOADS}/ginee_20250711143903576_0966219591-300x300.jpeg"},
        ],
        "attributes": [{"name": "Size", "options": ["24cm"]}],
    },
)

FALLBACK_CATEGORY_RECORDS = (
    {"id": 1, "name": "Crocodile Series", "slug": "crocodile-series", "count": 3},
    {"id": 2, "name": "Top Handle Bags", "slug": "top-handle-bags", "count": 2},
    {"id": 3, "name": "Python Series", "slug": "python-series", "count": 1},
    {"id": 4, "name": "Shoulder Bags", "slug": "shoulder-bags", "count": 1},
    {"id": 5, "name": "Lizard Series", "slug": "lizard-series", "count": 1},
    {"id": 6, "name": "Travel Bags", "slug": "travel-bags", "count": 1},
    {"id": 7, "name": "Mini Bags", "slug": "mini-bags", "count": 1},
    {"id": 8, "name": "Cowhide Series", "slug": "cowhide-series", "count": 0},
    {"id": 9, "name": "Tote Bags", "slug": "tote-bags", "count": 0},
    {"id": 10, "name": "Clutch and Evening", "slug": "clutch-evening", "count": 0},
)


def fallback_products() -> List[Product]:
    return [map_product(record) for record in FALLBACK_PRODUCT_RECORDS]


def fallback_categories() -> List[Category]:
    return [map_category(record) for record in FALLBACK_CATEGORY_RECORDS]


def find_fallback_product(product_id: int) -> Optional[Product]:
    for record in FALLBACK_PRODUCT_RECORDS:
        if record["id"] == product_id:
            return map_product(record)
    return None
