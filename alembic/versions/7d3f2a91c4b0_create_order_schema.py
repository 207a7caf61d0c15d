"""create catalog, cart, order, review and wishlist tables

Revision ID: 7d3f2a91c4b0
Revises:
Create Date: 2026-10-19 09:12:44.201533

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '7d3f2a91c4b0'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'user',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('first_name', sa.String(), nullable=False),
        sa.Column('last_name', sa.String(), nullable=False),
        sa.Column('username', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('password', sa.String(), nullable=False),
        sa.Column('role', sa.String(), nullable=False, server_default='user'),
        sa.Column('can_login', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_user_email', 'user', ['email'], unique=True)

    op.create_table(
        'book',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('author', sa.String(), nullable=False),
        sa.Column('genre', sa.String(), nullable=True),
        sa.Column('isbn', sa.String(), nullable=True),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('cover_image', sa.String(), nullable=False),
        sa.Column('price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('on_sale', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('discount_percentage', sa.Numeric(precision=5, scale=2), nullable=True),
        sa.Column('discount_start_date', sa.DateTime(), nullable=True),
        sa.Column('discount_end_date', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('stock >= 0', name='book_stock_nonneg'),
        sa.CheckConstraint('price >= 0', name='book_price_nonneg'),
    )

    op.create_table(
        'cartitem',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('book_id', sa.Integer(), sa.ForeignKey('book.id', ondelete='CASCADE'), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('added_date', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('user_id', 'book_id', name='uq_cartitem_user_book'),
    )
    op.create_index('ix_cartitem_user_id', 'cartitem', ['user_id'])

    op.create_table(
        'order',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', sa.String(), nullable=False, server_default='pending'),
        sa.Column('order_date', sa.DateTime(), nullable=False),
        sa.Column('claim_code', sa.String(), nullable=False),
        sa.Column('subtotal', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('total_amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('discount_applied', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('order_completed_date', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_order_user_id', 'order', ['user_id'])
    op.create_index('ix_order_status', 'order', ['status'])
    op.create_index('ix_order_claim_code', 'order', ['claim_code'], unique=True)

    op.create_table(
        'orderitem',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('order_id', sa.Integer(), sa.ForeignKey('order.id', ondelete='CASCADE'), nullable=False),
        sa.Column('book_id', sa.Integer(), sa.ForeignKey('book.id', ondelete='CASCADE'), nullable=False),
        sa.Column('book_title', sa.String(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('discount', sa.Numeric(precision=10, scale=2), nullable=False),
    )
    op.create_index('ix_orderitem_order_id', 'orderitem', ['order_id'])
    op.create_index('ix_orderitem_book_id', 'orderitem', ['book_id'])

    op.create_table(
        'review',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('book_id', sa.Integer(), sa.ForeignKey('book.id', ondelete='CASCADE'), nullable=False),
        sa.Column('comment', sa.String(), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_review_book_id', 'review', ['book_id'])

    op.create_table(
        'wishlist',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('book_id', sa.Integer(), sa.ForeignKey('book.id', ondelete='CASCADE'), nullable=False),
        sa.Column('bookmarked_on', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('user_id', 'book_id', name='uq_wishlist_user_book'),
    )


def downgrade() -> None:
    op.drop_table('wishlist')
    op.drop_index('ix_review_book_id', table_name='review')
    op.drop_table('review')
    op.drop_index('ix_orderitem_book_id', table_name='orderitem')
    op.drop_index('ix_orderitem_order_id', table_name='orderitem')
    op.drop_table('orderitem')
    op.drop_index('ix_order_claim_code', table_name='order')
    op.drop_index('ix_order_status', table_name='order')
    op.drop_index('ix_order_user_id', table_name='order')
    op.drop_table('order')
    op.drop_index('ix_cartitem_user_id', table_name='cartitem')
    op.drop_table('cartitem')
    op.drop_table('book')
    op.drop_index('ix_user_email', table_name='user')
    op.drop_table('user')
