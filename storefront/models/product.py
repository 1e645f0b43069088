# storefront/models/product.py
from sqlalchemy import Column, Integer, String, Text, Boolean, Numeric, BigInteger, DateTime, JSON

from storefront.db.session import Base


class CachedProduct(Base):
    """
    Локальная копия товара из WooCommerce. Единая таблица кеша:
    категории и теги хранятся денормализованно (списком имен), а не ссылками.
    """
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=False) # ID товара из WooCommerce
    name = Column(String, nullable=False)
    slug = Column(String, nullable=False, default="")
    permalink = Column(String, nullable=True)
    type = Column(String, nullable=False, default="simple")
    description = Column(Text, nullable=False, default="")
    short_description = Column(Text, nullable=False, default="")
    sku = Column(String, nullable=False, default="")

    price = Column(Numeric(18, 2), nullable=False)
    regular_price = Column(Numeric(18, 2), nullable=False)
    sale_price = Column(Numeric(18, 2), nullable=True)
    on_sale = Column(Boolean, nullable=False, default=False, index=True)

    stock_status = Column(String, nullable=False, default="instock")
    stock_quantity = Column(Integer, nullable=True) # NULL - остаток не отслеживается

    categories = Column(JSON, nullable=False, default=list)
    tags = Column(JSON, nullable=False, default=list)
    images = Column(JSON, nullable=False, default=list) # Первый URL - основное изображение
    attributes = Column(JSON, nullable=False, default=dict)

    featured = Column(Boolean, nullable=False, default=False, index=True)
    average_rating = Column(Numeric(3, 2), nullable=False, default=0)
    rating_count = Column(Integer, nullable=False, default=0)
    total_sales = Column(Integer, nullable=False, default=0)
    date_created = Column(DateTime(timezone=True), nullable=True)

    # Время последней записи из удаленного каталога, epoch millis
    last_updated = Column(BigInteger, nullable=False, index=True)


class CachedCategory(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=False)
    name = Column(String, nullable=False)
    slug = Column(String, nullable=False, default="")
    parent = Column(Integer, nullable=False, default=0)
    description = Column(Text, nullable=True)
    image = Column(String, nullable=True)
    count = Column(Integer, nullable=False, default=0)

    last_updated = Column(BigInteger, nullable=False, index=True)
