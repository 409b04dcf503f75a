"""create_pgfinder_tables

Revision ID: 9f1c2a7d4e01
Revises:
Create Date: 2026-10-19 10:12:44.381205

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '9f1c2a7d4e01'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=False),
        sa.Column('role', sa.Enum('USER', 'OWNER', 'ADMIN', name='user_role'), nullable=False),
        sa.Column('status', sa.Enum('ACTIVE', 'INACTIVE', 'SUSPENDED', name='user_status'), nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])

    op.create_table(
        'listings',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('slug', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('city', sa.String(length=100), nullable=False),
        sa.Column('locality', sa.String(length=255), nullable=False),
        sa.Column('address', sa.String(length=500), nullable=False),
        sa.Column('distance', sa.String(length=255), nullable=False),
        sa.Column('map_link', sa.String(length=1000), nullable=False),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('type', sa.Enum('boys', 'girls', 'co-ed', 'family', name='listing_type'), nullable=False),
        sa.Column('room_types', sa.JSON(), nullable=False),
        sa.Column(
            'availability',
            sa.Enum('available', 'sold-out', 'coming-soon', name='listing_availability'),
            nullable=False,
        ),
        sa.Column('images', sa.JSON(), nullable=False),
        sa.Column('gallery', sa.JSON(), nullable=False),
        sa.Column('amenities', sa.JSON(), nullable=False),
        sa.Column('longitude', sa.Float(), nullable=False),
        sa.Column('latitude', sa.Float(), nullable=False),
        sa.Column('published', sa.Boolean(), nullable=False),
        sa.Column('verified', sa.Boolean(), nullable=False),
        sa.Column('featured', sa.Boolean(), nullable=False),
        sa.Column('rating', sa.Float(), nullable=False),
        sa.Column('review_count', sa.Integer(), nullable=False),
        sa.Column('owner_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('owner_name', sa.String(length=255), nullable=False),
        sa.Column('owner_phone', sa.String(length=20), nullable=False),
        sa.Column('owner_email', sa.String(length=255), nullable=False),
        sa.Column('contact_email', sa.String(length=255), nullable=False),
        sa.Column('contact_phone', sa.String(length=20), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('price >= 0', name='listing_price_non_negative'),
        sa.CheckConstraint('rating >= 0 AND rating <= 5', name='listing_rating_range'),
        sa.CheckConstraint('review_count >= 0', name='listing_review_count_non_negative'),
    )
    op.create_index('ix_listings_slug', 'listings', ['slug'], unique=True)
    op.create_index('ix_listings_name', 'listings', ['name'])
    op.create_index('ix_listings_city', 'listings', ['city'])
    op.create_index('ix_listings_price', 'listings', ['price'])
    op.create_index('ix_listings_type', 'listings', ['type'])
    op.create_index('ix_listings_published', 'listings', ['published'])
    op.create_index('ix_listings_owner_id', 'listings', ['owner_id'])
    op.create_index('ix_listings_created_at', 'listings', ['created_at'])
    op.create_index('ix_listings_published_created_at', 'listings', ['published', 'created_at'])

    op.create_table(
        'reviews',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('listing_id', sa.Uuid(), sa.ForeignKey('listings.id', ondelete='CASCADE'), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=100), nullable=False),
        sa.Column('comment', sa.String(length=1000), nullable=False),
        sa.Column('likes', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('rating >= 1 AND rating <= 5', name='review_rating_range'),
        sa.UniqueConstraint('user_id', 'listing_id', name='uq_review_user_listing'),
    )
    op.create_index('ix_reviews_user_id', 'reviews', ['user_id'])
    op.create_index('ix_reviews_listing_id', 'reviews', ['listing_id'])
    op.create_index('ix_reviews_listing_rating_created', 'reviews', ['listing_id', 'rating', 'created_at'])

    op.create_table(
        'review_replies',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('review_id', sa.Uuid(), sa.ForeignKey('reviews.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('comment', sa.String(length=500), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_review_replies_review_id', 'review_replies', ['review_id'])

    op.create_table(
        'bookings',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_id', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('listing_id', sa.Uuid(), sa.ForeignKey('listings.id', ondelete='CASCADE'), nullable=False),
        sa.Column(
            'room_type',
            sa.Enum('SINGLE', 'DOUBLE', 'TRIPLE', 'QUAD', 'DORMITORY', name='room_type'),
            nullable=False,
        ),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=False, comment='Months'),
        sa.Column('total_amount', sa.Float(), nullable=False),
        sa.Column('deposit', sa.Float(), nullable=False),
        sa.Column(
            'status',
            sa.Enum('PENDING', 'CONFIRMED', 'CANCELLED', 'COMPLETED', name='booking_status'),
            nullable=False,
        ),
        sa.Column(
            'payment_method',
            sa.Enum('CASH', 'ONLINE', 'BANK_TRANSFER', name='payment_method'),
            nullable=False,
        ),
        sa.Column(
            'payment_status',
            sa.Enum('PENDING', 'COMPLETED', 'FAILED', 'REFUNDED', name='booking_payment_status'),
            nullable=False,
        ),
        sa.Column('transaction_id', sa.String(length=255), nullable=True),
        sa.Column('special_requests', sa.String(length=1000), nullable=True),
        sa.Column('contact_name', sa.String(length=255), nullable=True),
        sa.Column('contact_phone', sa.String(length=20), nullable=True),
        sa.Column('contact_email', sa.String(length=255), nullable=True),
        sa.Column('emergency_contact', sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('duration >= 1 AND duration <= 12', name='booking_duration_range'),
    )
    op.create_index('ix_bookings_user_id', 'bookings', ['user_id'])
    op.create_index('ix_bookings_listing_id', 'bookings', ['listing_id'])
    op.create_index('ix_bookings_status', 'bookings', ['status'])
    op.create_index('ix_bookings_user_created_at', 'bookings', ['user_id', 'created_at'])
    op.create_index('ix_bookings_listing_status', 'bookings', ['listing_id', 'status'])

    op.create_table(
        'reports',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('listing_id', sa.Uuid(), sa.ForeignKey('listings.id', ondelete='CASCADE'), nullable=False),
        sa.Column('reported_by', sa.Uuid(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('reason', sa.String(length=255), nullable=False),
        sa.Column('description', sa.String(length=2000), nullable=True),
        sa.Column('contact_info', sa.String(length=255), nullable=True),
        sa.Column(
            'status',
            sa.Enum('PENDING', 'REVIEWED', 'RESOLVED', name='report_status'),
            nullable=False,
        ),
        *_timestamps(),
    )
    op.create_index('ix_reports_listing_id', 'reports', ['listing_id'])
    op.create_index('ix_reports_status', 'reports', ['status'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('reports')
    op.drop_table('bookings')
    op.drop_table('review_replies')
    op.drop_table('reviews')
    op.drop_table('listings')
    op.drop_table('users')
    for enum_name in (
        'report_status',
        'booking_payment_status',
        'payment_method',
        'booking_status',
        'room_type',
        'listing_availability',
        'listing_type',
        'user_status',
        'user_role',
    ):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
