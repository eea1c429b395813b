"""Initial schema: users, entities, hierarchy relationships, products, legacy events

Revision ID: pm001
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'pm001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('user_id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(255), unique=True, nullable=False),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', sa.String(50), nullable=False),
        sa.Column('authorities', sa.String(500), nullable=False, server_default=''),
    )

    op.create_table(
        'hierarchy_contexts',
        sa.Column('code', sa.String(10), primary_key=True),
        sa.Column('description', sa.String(255), nullable=True),
    )

    op.create_table(
        'entities',
        sa.Column('entity_id', sa.BigInteger(), primary_key=True, autoincrement=False),
        sa.Column('entity_type', sa.String(5), nullable=False, index=True),
        sa.Column('display_number', sa.BigInteger(), nullable=True, index=True),
        sa.Column('display_text', sa.String(255), nullable=False),
        sa.Column('create_user_id', sa.String(20), nullable=False),
        sa.Column('create_ts', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'entity_descriptions',
        sa.Column('entity_id', sa.BigInteger(),
                  sa.ForeignKey('entities.entity_id', ondelete='CASCADE'), primary_key=True),
        sa.Column('hierarchy_context', sa.String(10),
                  sa.ForeignKey('hierarchy_contexts.code'), primary_key=True),
        sa.Column('short_description', sa.String(50), nullable=False),
        sa.Column('long_description', sa.String(255), nullable=False),
        sa.Column('create_user_id', sa.String(20), nullable=False),
        sa.Column('create_ts', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'entity_relationships',
        sa.Column('parent_entity_id', sa.BigInteger(),
                  sa.ForeignKey('entities.entity_id'), primary_key=True),
        sa.Column('child_entity_id', sa.BigInteger(),
                  sa.ForeignKey('entities.entity_id'), primary_key=True, index=True),
        sa.Column('hierarchy_context', sa.String(10),
                  sa.ForeignKey('hierarchy_contexts.code'), primary_key=True),
        sa.Column('default_parent', sa.Boolean(), nullable=False),
        sa.Column('display', sa.Boolean(), nullable=False),
        sa.Column('sequence_number', sa.Integer(), nullable=False),
        sa.Column('effective_date', sa.DateTime(), nullable=False),
        sa.Column('expiration_date', sa.Date(), nullable=False),
        sa.Column('active', sa.String(1), nullable=False),
        sa.Column('create_user_id', sa.String(20), nullable=False),
        sa.Column('create_ts', sa.DateTime(), nullable=False),
        sa.Column('last_update_user_id', sa.String(20), nullable=False),
        sa.Column('last_update_ts', sa.DateTime(), nullable=False),
        sa.CheckConstraint('parent_entity_id != child_entity_id', name='ck_entity_relationship_no_self_ref'),
    )

    op.create_table(
        'products',
        sa.Column('product_id', sa.BigInteger(), primary_key=True, autoincrement=False),
        sa.Column('description', sa.String(255), nullable=False),
    )

    op.create_table(
        'product_groups',
        sa.Column('product_group_id', sa.BigInteger(), primary_key=True, autoincrement=False),
        sa.Column('name', sa.String(255), nullable=False),
    )

    op.create_table(
        'product_scan_codes',
        sa.Column('upc', sa.BigInteger(), primary_key=True, autoincrement=False),
        sa.Column('product_id', sa.BigInteger(), sa.ForeignKey('products.product_id'),
                  nullable=False, index=True),
        sa.Column('primary_upc', sa.Boolean(), nullable=False),
    )

    op.create_table(
        'goods_products',
        sa.Column('product_id', sa.BigInteger(), sa.ForeignKey('products.product_id'),
                  primary_key=True, autoincrement=False),
        sa.Column('vertex_tax_category', sa.String(20), nullable=True),
        sa.Column('self_manufactured', sa.String(1), nullable=False),
        sa.Column('last_update_user_id', sa.String(20), nullable=True),
        sa.Column('last_update_ts', sa.DateTime(), nullable=True),
        sa.Column('last_system_update_id', sa.Integer(), nullable=True),
    )

    op.create_table(
        'legacy_events',
        sa.Column('event_id', sa.Integer(), primary_key=True),
        sa.Column('event_code', sa.String(4), nullable=False, index=True),
        sa.Column('function_code', sa.String(1), nullable=False),
        sa.Column('key_data', sa.String(100), nullable=False),
        sa.Column('program_name', sa.String(20), nullable=False),
        sa.Column('user_id', sa.String(20), nullable=False),
        sa.Column('create_ts', sa.DateTime(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table('legacy_events')
    op.drop_table('goods_products')
    op.drop_table('product_scan_codes')
    op.drop_table('product_groups')
    op.drop_table('products')
    op.drop_table('entity_relationships')
    op.drop_table('entity_descriptions')
    op.drop_table('entities')
    op.drop_table('hierarchy_contexts')
    op.drop_table('users')
