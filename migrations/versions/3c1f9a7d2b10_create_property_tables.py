"""create properties, market_data and user tables

Revision ID: 3c1f9a7d2b10
Revises:
Create Date: 2026-10-19 09:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c1f9a7d2b10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'properties',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('external_id', sa.String(length=120), nullable=True),
        sa.Column('source', sa.String(length=30), nullable=True),
        sa.Column('address', sa.String(length=255), nullable=False),
        sa.Column('city', sa.String(length=100), nullable=False),
        sa.Column('state', sa.String(length=50), nullable=False),
        sa.Column('zip_code', sa.String(length=20), nullable=False),
        sa.Column('neighborhood', sa.String(length=120), nullable=True),
        sa.Column('latitude', sa.Numeric(10, 7), nullable=True),
        sa.Column('longitude', sa.Numeric(10, 7), nullable=True),
        sa.Column('price', sa.Numeric(14, 2), nullable=True),
        sa.Column('bedrooms', sa.Integer(), nullable=True),
        sa.Column('bathrooms', sa.Numeric(4, 1), nullable=True),
        sa.Column('square_feet', sa.Numeric(12, 2), nullable=True),
        sa.Column('lot_size', sa.Numeric(12, 4), nullable=True),
        sa.Column('year_built', sa.Integer(), nullable=True),
        sa.Column('property_type', sa.String(length=50), nullable=True),
        sa.Column('status', sa.String(length=30), nullable=True),
        sa.Column('days_on_market', sa.Integer(), nullable=True),
        sa.Column('sale_date', sa.Date(), nullable=True),
        sa.Column('has_basement', sa.Boolean(), nullable=True),
        sa.Column('has_garage', sa.Boolean(), nullable=True),
        sa.Column('garage_spaces', sa.Integer(), nullable=True),
        sa.Column('images', sa.JSON(), nullable=True),
        sa.Column('price_per_sqft', sa.Numeric(12, 2), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('features', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('address', 'city', 'state', 'zip_code', name='uq_properties_identity'),
    )
    op.create_index('ix_properties_external_id', 'properties', ['external_id'])

    op.create_table(
        'market_data',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('city', sa.String(length=100), nullable=False),
        sa.Column('state', sa.String(length=50), nullable=False),
        sa.Column('zip_code', sa.String(length=20), nullable=False, server_default=''),
        sa.Column('median_price', sa.Numeric(14, 2), nullable=True),
        sa.Column('average_price_per_sqft', sa.Numeric(12, 2), nullable=True),
        sa.Column('days_on_market', sa.Integer(), nullable=True),
        sa.Column('active_listings', sa.Integer(), nullable=True),
        sa.Column('inventory_months', sa.Numeric(6, 2), nullable=True),
        sa.Column('sale_to_list_ratio', sa.Numeric(6, 3), nullable=True),
        sa.Column('price_reductions', sa.Numeric(6, 2), nullable=True),
        sa.Column('market_type', sa.String(length=50), nullable=True),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('city', 'state', 'zip_code', 'year', 'month', name='uq_market_data_period'),
    )

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('username', sa.String(length=120), nullable=False, unique=True),
        sa.Column('email', sa.String(length=120), nullable=True, unique=True),
        sa.Column('full_name', sa.String(length=200), nullable=True),
        sa.Column('password_hash', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=50), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'saved_searches',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('filters', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'saved_properties',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('property_id', sa.Integer(), sa.ForeignKey('properties.id'), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('user_id', 'property_id', name='uq_saved_properties_user_property'),
    )

    op.create_table(
        'reports',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('report_type', sa.String(length=50), nullable=True),
        sa.Column('property_ids', sa.JSON(), nullable=True),
        sa.Column('content', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )


def downgrade():
    op.drop_table('reports')
    op.drop_table('saved_properties')
    op.drop_table('saved_searches')
    op.drop_table('users')
    op.drop_table('market_data')
    op.drop_index('ix_properties_external_id', table_name='properties')
    op.drop_table('properties')
