"""Initial schema with stations, substations and catalog tables

Revision ID: 001
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'operations',
        sa.Column('id', sa.String(100), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('type', sa.String(100), nullable=True),
        sa.Column('semi_output_code', sa.String(20), nullable=True),
        sa.Column('skills', postgresql.JSON(), nullable=False),
    )

    op.create_table(
        'skills',
        sa.Column('id', sa.String(100), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False, unique=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'workers',
        sa.Column('id', sa.String(100), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('skills', postgresql.JSON(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('current_station_id', sa.String(100), nullable=True),
    )

    op.create_table(
        'stations',
        sa.Column('id', sa.String(100), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('location', sa.String(255), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('operation_ids', postgresql.JSON(), nullable=False),
        sa.Column('station_specific_skills', postgresql.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )

    op.create_index('ix_stations_status', 'stations', ['status'])

    op.create_table(
        'substations',
        sa.Column('code', sa.String(120), primary_key=True),
        sa.Column(
            'station_id',
            sa.String(100),
            sa.ForeignKey('stations.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('technical_status', sa.String(20), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )

    op.create_index('ix_substations_station_id', 'substations', ['station_id'])


def downgrade() -> None:
    op.drop_index('ix_substations_station_id')
    op.drop_table('substations')
    op.drop_index('ix_stations_status')
    op.drop_table('stations')
    op.drop_table('workers')
    op.drop_table('skills')
    op.drop_table('operations')
