# storefront/models/cart.py
from sqlalchemy import Column, Integer, String, Boolean, Numeric, BigInteger, JSON, Index, text
from sqlalchemy.schema import UniqueConstraint

from storefront.db.session import Base

# Для гостей user_id равен NULL, а NULL в уникальном ключе не сравнивается сам с собой.
# Поэтому гостевые строки закрываются отдельными частичными индексами.
GUEST_ROWS = text("user_id IS NULL")


class CartItem(Base):
    __tablename__ = "cart_items"
    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, nullable=False, index=True)

    # Выбранные опции вариации ({"Color": "Black"}) и их каноничный ключ.
    # Пара (product_id, variation_key) в рамках одного владельца - ключ слияния позиций.
    variation = Column(JSON, nullable=False, default=dict)
    variation_key = Column(String, nullable=False, default="")

    quantity = Column(Integer, nullable=False, default=1)

    # Снимок данных товара на момент добавления, с каталогом не связан
    product_name = Column(String, nullable=False)
    product_price = Column(Numeric(18, 2), nullable=False)
    product_image = Column(String, nullable=True)

    user_id = Column(String, nullable=True, index=True) # NULL - гостевая корзина
    added_at = Column(BigInteger, nullable=False)

    __table_args__ = (
        UniqueConstraint('user_id', 'product_id', 'variation_key', name='_user_product_variation_uc'),
        Index(
            'ix_cart_items_guest_product_variation', 'product_id', 'variation_key',
            unique=True, sqlite_where=GUEST_ROWS, postgresql_where=GUEST_ROWS,
        ),
    )


class WishlistItem(Base):
    __tablename__ = "wishlist_items"
    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, nullable=False, index=True)

    product_name = Column(String, nullable=False)
    product_image = Column(String, nullable=True)
    price = Column(Numeric(18, 2), nullable=False)
    regular_price = Column(Numeric(18, 2), nullable=False)
    sale_price = Column(Numeric(18, 2), nullable=True)
    on_sale = Column(Boolean, nullable=False, default=False)

    user_id = Column(String, nullable=True, index=True) # NULL - гостевое избранное
    added_at = Column(BigInteger, nullable=False)

    __table_args__ = (
        UniqueConstraint('user_id', 'product_id', name='_user_wishlist_product_uc'),
        Index(
            'ix_wishlist_items_guest_product', 'product_id',
            unique=True, sqlite_where=GUEST_ROWS, postgresql_where=GUEST_ROWS,
        ),
    )
