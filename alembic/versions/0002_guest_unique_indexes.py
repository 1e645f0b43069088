"""unique indexes for guest cart and wishlist rows

Revision ID: 0002_guest_unique_indexes
Revises: 0001_initial
Create Date: 2026-10-20 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0002_guest_unique_indexes'
down_revision: Union[str, None] = '0001_initial'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_index(
        'ix_cart_items_guest_product_variation', 'cart_items', ['product_id', 'variation_key'],
        unique=True,
        sqlite_where=sa.text('user_id IS NULL'),
        postgresql_where=sa.text('user_id IS NULL'),
    )
    op.create_index(
        'ix_wishlist_items_guest_product', 'wishlist_items', ['product_id'],
        unique=True,
        sqlite_where=sa.text('user_id IS NULL'),
        postgresql_where=sa.text('user_id IS NULL'),
    )


def downgrade() -> None:
    op.drop_index('ix_wishlist_items_guest_product', table_name='wishlist_items')
    op.drop_index('ix_cart_items_guest_product_variation', table_name='cart_items')
