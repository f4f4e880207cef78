"""Initial schema for users, groups, restaurants, ratings and notifications

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Users
    op.create_table(
        'users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('username', sa.String(100), nullable=False),
        sa.Column('password', sa.String(255), nullable=False),
        sa.Column('color', sa.String(20), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_unique_constraint('uq_users_username', 'users', ['username'])

    # Groups and memberships
    op.create_table(
        'groups',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_table(
        'group_memberships',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('group_id', sa.String(36), sa.ForeignKey('groups.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('role', sa.Enum('ADMIN', 'MEMBER', name='membership_role'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('group_id', 'user_id', name='uq_group_membership'),
    )
    op.create_index('ix_group_memberships_group_id', 'group_memberships', ['group_id'])
    op.create_index('ix_group_memberships_user_id', 'group_memberships', ['user_id'])

    # Restaurants and menus
    op.create_table(
        'restaurants',
        sa.Column('id', sa.String(100), primary_key=True),
        sa.Column('cuisine', sa.String(100), nullable=False),
    )
    op.create_table(
        'menu_items',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('price', sa.Float(), nullable=False),
    )
    op.create_table(
        'restaurant_menu_items',
        sa.Column('restaurant_id', sa.String(100), sa.ForeignKey('restaurants.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('menu_item_id', sa.Integer(), sa.ForeignKey('menu_items.id', ondelete='CASCADE'), primary_key=True),
    )

    # Ratings
    op.create_table(
        'ratings',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('group_id', sa.String(36), sa.ForeignKey('groups.id', ondelete='CASCADE'), nullable=False),
        sa.Column('restaurant_id', sa.String(100), sa.ForeignKey('restaurants.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('username', sa.String(100), nullable=False),
        sa.Column('score', sa.Float(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('idx_ratings_group_restaurant_created', 'ratings', ['group_id', 'restaurant_id', 'created_at'])
    op.create_index('idx_ratings_user', 'ratings', ['user_id'])

    # Completion notification ledger
    op.create_table(
        'rating_notifications',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('restaurant_id', sa.String(100), sa.ForeignKey('restaurants.id', ondelete='CASCADE'), nullable=False),
        sa.Column('group_id', sa.String(36), sa.ForeignKey('groups.id', ondelete='CASCADE'), nullable=False),
        sa.Column('notified_at', sa.DateTime(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('period', sa.Enum('Q1', 'Q2', 'Q3', 'Q4', name='rating_period'), nullable=False),
        sa.UniqueConstraint('restaurant_id', 'group_id', 'year', 'period', name='uq_rating_notification_period'),
    )
    op.create_index(
        'idx_rating_notifications_lookup', 'rating_notifications', ['restaurant_id', 'group_id', 'notified_at']
    )

    # Web push subscriptions
    op.create_table(
        'push_subscriptions',
        sa.Column('endpoint', sa.String(768), primary_key=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('p256dh', sa.String(255), nullable=False),
        sa.Column('auth', sa.String(255), nullable=False),
    )
    op.create_index('ix_push_subscriptions_user_id', 'push_subscriptions', ['user_id'])

    # IP blacklist
    op.create_table(
        'ip_blacklist',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('ip_address', sa.String(45), nullable=False, unique=True),
    )


def downgrade() -> None:
    op.drop_table('ip_blacklist')
    op.drop_table('push_subscriptions')
    op.drop_table('rating_notifications')
    op.drop_table('ratings')
    op.drop_table('restaurant_menu_items')
    op.drop_table('menu_items')
    op.drop_table('restaurants')
    op.drop_table('group_memberships')
    op.drop_table('groups')
    op.drop_table('users')
    sa.Enum(name='rating_period').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='membership_role').drop(op.get_bind(), checkfirst=True)
