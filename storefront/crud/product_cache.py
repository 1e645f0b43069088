# storefront/crud/product_cache.py
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from storefront.models.product import CachedCategory, CachedProduct
from storefront.schemas.product import Category, Product

# --- Преобразование между схемой и строкой кеша ---

def _product_values(product: Product, last_updated: int) -> dict:
    return {
        "id": product.id,
        "name": product.name,
        "slug": product.slug,
        "permalink": product.permalink,
        "type": product.type,
        "description": product.description,
        "short_description": product.short_description,
        "sku": product.sku,
        "price": product.price,
        "regular_price": product.regular_price,
        "sale_price": product.sale_price,
        "on_sale": product.on_sale,
        "stock_status": product.stock_status.value,
        "stock_quantity": product.stock_quantity,
        "categories": list(product.categories),
        "tags": list(product.tags),
        "images": list(product.images),
        "attributes": {name: list(options) for name, options in product.attributes.items()},
        "featured": product.featured,
        "average_rating": product.average_rating,
        "rating_count": product.rating_count,
        "total_sales": product.total_sales,
        "date_created": product.date_created,
        "last_updated": last_updated,
    }

def to_product(row: CachedProduct) -> Product:
    return Product.model_validate(row)

def to_category(row: CachedCategory) -> Category:
    return Category.model_validate(row)

# --- CRUD для товаров ---

def get_product(db: Session, product_id: int) -> Optional[CachedProduct]:
    return db.get(CachedProduct, product_id)

def get_products_by_ids(db: Session, product_ids: Iterable[int]) -> List[CachedProduct]:
    ids = list(product_ids)
    if not ids:
        return []
    return db.query(CachedProduct).filter(CachedProduct.id.in_(ids)).order_by(CachedProduct.id).all()

def upsert_product(db: Session, product: Product, last_updated: int) -> CachedProduct:
    """Вставка или замена по id. Повторный вызов с теми же данными ничего не дублирует."""
    row = db.merge(CachedProduct(**_product_values(product, last_updated)))
    db.commit()
    return row

def upsert_products(db: Session, products: Iterable[Product], last_updated: int) -> int:
    count = 0
    for product in products:
        db.merge(CachedProduct(**_product_values(product, last_updated)))
        count += 1
    db.commit()
    return count

def delete_product(db: Session, product_id: int) -> bool:
    deleted = db.query(CachedProduct).filter(CachedProduct.id == product_id).delete(synchronize_session=False)
    db.commit()
    return deleted > 0

def delete_products_older_than(db: Session, threshold: int) -> int:
    """Удаляет строки, записанные строго раньше threshold (epoch millis)."""
    deleted = db.query(CachedProduct).filter(CachedProduct.last_updated < threshold).delete(synchronize_session=False)
    db.commit()
    return deleted

def delete_all_products(db: Session) -> int:
    deleted = db.query(CachedProduct).delete(synchronize_session=False)
    db.commit()
    return deleted

def count_products(db: Session) -> int:
    return db.query(CachedProduct).count()

def product_exists(db: Session, product_id: int) -> bool:
    return db.query(CachedProduct.id).filter(CachedProduct.id == product_id).first() is not None

def list_products(
    db: Session,
    featured: Optional[bool] = None,
    on_sale: Optional[bool] = None,
) -> List[CachedProduct]:
    """
    Базовая выборка для списков. Булевы флаги фильтруются в SQL, остальной контракт
    (подстроки, диапазон цен, сортировка) применяется в storefront.services.query.
    """
    query = db.query(CachedProduct)
    if featured is not None:
        query = query.filter(CachedProduct.featured == featured)
    if on_sale is not None:
        query = query.filter(CachedProduct.on_sale == on_sale)
    return query.order_by(CachedProduct.last_updated.desc(), CachedProduct.id).all()

# --- CRUD для категорий ---

def upsert_categories(db: Session, categories: Iterable[Category], last_updated: int) -> int:
    count = 0
    for category in categories:
        db.merge(CachedCategory(**category.model_dump(), last_updated=last_updated))
        count += 1
    db.commit()
    return count

def list_categories(db: Session) -> List[CachedCategory]:
    return db.query(CachedCategory).order_by(CachedCategory.name, CachedCategory.id).all()

def count_categories(db: Session) -> int:
    return db.query(CachedCategory).count()

def delete_categories_older_than(db: Session, threshold: int) -> int:
    deleted = db.query(CachedCategory).filter(CachedCategory.last_updated < threshold).delete(synchronize_session=False)
    db.commit()
    return deleted

def delete_all_categories(db: Session) -> int:
    deleted = db.query(CachedCategory).delete(synchronize_session=False)
    db.commit()
    return deleted
