"""create auth_users, profiles, user_identities, reports

Revision ID: a7c2e4f9b1d3
Revises:
Create Date: 2026-01-12
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = 'a7c2e4f9b1d3'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'auth_users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('user_metadata', postgresql.JSONB(), nullable=False, server_default='{}'),
        sa.Column('email_confirmed', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'profiles',
        sa.Column('id', sa.String(36), sa.ForeignKey('auth_users.id'), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('role', sa.String(16), nullable=False, server_default='member'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('line_user_id', sa.String(64), nullable=True, unique=True),
        sa.Column('line_linked_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('line_linking_code', sa.String(6), nullable=True),
        sa.Column('line_linking_code_expires_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.CheckConstraint("role IN ('admin', 'member')", name='ck_profiles_role'),
    )
    op.create_index('ix_profiles_line_linking_code', 'profiles', ['line_linking_code'])

    op.create_table(
        'user_identities',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('provider', sa.String(32), nullable=False),
        sa.Column('provider_uid', sa.String(128), nullable=False),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('auth_users.id'), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('provider', 'provider_uid', name='uq_user_identities_provider_uid'),
    )
    op.create_index('ix_user_identities_user_id', 'user_identities', ['user_id'])

    op.create_table(
        'reports',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('profiles.id'), nullable=False),
        sa.Column('report_date', sa.Date(), nullable=False),
        sa.Column('yesterday_tasks', postgresql.JSONB(), nullable=False, server_default='[]'),
        sa.Column('today_tasks', postgresql.JSONB(), nullable=False, server_default='[]'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('submitted_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('user_id', 'report_date', name='uq_reports_user_date'),
    )
    op.create_index('ix_reports_user_id', 'reports', ['user_id'])
    op.create_index('ix_reports_report_date', 'reports', ['report_date'])


def downgrade():
    op.drop_index('ix_reports_report_date', 'reports')
    op.drop_index('ix_reports_user_id', 'reports')
    op.drop_table('reports')

    op.drop_index('ix_user_identities_user_id', 'user_identities')
    op.drop_table('user_identities')

    op.drop_index('ix_profiles_line_linking_code', 'profiles')
    op.drop_table('profiles')

    op.drop_table('auth_users')
