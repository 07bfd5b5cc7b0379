"""create users, bikes, component tracking, inventory and strava tables

Revision ID: 3c1f9a2b7d10
Revises:
Create Date: 2026-10-19 09:40:12.418533
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '3c1f9a2b7d10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('password_hash', sa.Text(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(), server_default=sa.text('now()'), nullable=True),
        sa.UniqueConstraint('email', name='uq_users_email'),
    )

    op.create_table(
        'profiles',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('full_name', sa.Text(), nullable=True),
        sa.Column('strava_access_token', sa.Text(), nullable=True),
        sa.Column('strava_refresh_token', sa.Text(), nullable=True),
        sa.Column('strava_athlete_id', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.TIMESTAMP(), server_default=sa.text('now()'), nullable=True),
        sa.UniqueConstraint('user_id', name='uq_profiles_user_id'),
    )

    op.create_table(
        'bikes',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('brand', sa.Text(), nullable=True),
        sa.Column('model', sa.Text(), nullable=True),
        sa.Column('bike_type', sa.Text(), nullable=True),
        sa.Column('year', sa.Integer(), nullable=True),
        sa.Column('weight', sa.Float(), nullable=True),
        sa.Column('price', sa.Float(), nullable=True),
        sa.Column('purchase_date', sa.Date(), nullable=True),
        sa.Column('total_distance', sa.Float(), server_default=sa.text('0'), nullable=False),
        sa.Column('retired_at', sa.TIMESTAMP(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.TIMESTAMP(), server_default=sa.text('now()'), nullable=True),
        sa.CheckConstraint('total_distance >= 0', name='bikes_total_distance_nonneg'),
    )
    op.create_index('ix_bikes_user_created', 'bikes', ['user_id', 'created_at'])

    op.create_table(
        'component_types',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('default_replacement_distance', sa.Float(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(), server_default=sa.text('now()'), nullable=True),
        sa.UniqueConstraint('name', name='uq_component_types_name'),
        sa.CheckConstraint('default_replacement_distance > 0', name='component_types_default_distance_pos'),
    )

    op.create_table(
        'bike_components',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column('bike_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('bikes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('component_type_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('component_types.id'), nullable=False),
        sa.Column('replacement_distance', sa.Float(), nullable=False),
        sa.Column('current_distance', sa.Float(), server_default=sa.text('0'), nullable=False),
        sa.Column('install_distance', sa.Float(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.TIMESTAMP(), server_default=sa.text('now()'), nullable=True),
        sa.CheckConstraint('replacement_distance > 0', name='bike_components_replacement_pos'),
        sa.CheckConstraint('current_distance >= 0', name='bike_components_current_nonneg'),
    )
    # one active instance per (bike, component type)
    op.create_index(
        'uq_bike_components_active_type', 'bike_components',
        ['bike_id', 'component_type_id'],
        unique=True,
        postgresql_where=sa.text('is_active'),
    )
    op.create_index('ix_bike_components_bike_active', 'bike_components', ['bike_id', 'is_active'])

    op.create_table(
        'maintenance_records',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column('bike_component_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('bike_components.id', ondelete='CASCADE'), nullable=False),
        sa.Column('action_type', sa.Text(), nullable=False),
        sa.Column('distance_at_action', sa.Float(), nullable=False),
        sa.Column('cost', sa.Float(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(), server_default=sa.text('now()'), nullable=True),
    )
    op.create_index('ix_maintenance_records_component', 'maintenance_records', ['bike_component_id'])

    op.create_table(
        'parts_inventory',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('component_type_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('component_types.id'), nullable=False),
        sa.Column('quantity', sa.Integer(), server_default=sa.text('1'), nullable=False),
        sa.Column('purchase_price', sa.Float(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.TIMESTAMP(), server_default=sa.text('now()'), nullable=True),
        sa.CheckConstraint('quantity >= 0', name='parts_inventory_quantity_nonneg'),
    )

    op.create_table(
        'strava_activities',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('bike_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('bikes.id', ondelete='SET NULL'), nullable=True),
        sa.Column('strava_activity_id', sa.Text(), nullable=False),
        sa.Column('distance', sa.Float(), nullable=False),
        sa.Column('processed_at', sa.TIMESTAMP(), server_default=sa.text('now()'), nullable=True),
        sa.UniqueConstraint('user_id', 'strava_activity_id', name='uq_strava_activities_user_activity'),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('strava_activities')
    op.drop_table('parts_inventory')
    op.drop_index('ix_maintenance_records_component', table_name='maintenance_records')
    op.drop_table('maintenance_records')
    op.drop_index('ix_bike_components_bike_active', table_name='bike_components')
    op.drop_index('uq_bike_components_active_type', table_name='bike_components')
    op.drop_table('bike_components')
    op.drop_table('component_types')
    op.drop_index('ix_bikes_user_created', table_name='bikes')
    op.drop_table('bikes')
    op.drop_table('profiles')
    op.drop_table('users')
