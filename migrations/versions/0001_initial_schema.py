"""Initial schema: runbooks, roster, schedules, sync log, config, users

Revision ID: 0001
Revises:
Create Date: 2024-06-01 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
    ]


def upgrade():
    op.create_table(
        'pops',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('client', sa.String(), nullable=False),
        sa.Column('filename', sa.String(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('category', sa.String(), nullable=True),
        sa.Column('icon', sa.String(), nullable=True),
        sa.Column('data', sa.Text(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_pops'),
        sa.UniqueConstraint('client', 'filename', name='uq_pops_client'),
    )
    op.create_index('ix_pops_client', 'pops', ['client'])

    op.create_table(
        'analysts',
        sa.Column('id', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('role', sa.String(), nullable=False),
        sa.Column('phone', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_analysts'),
    )

    op.create_table(
        'shifts',
        sa.Column('id', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('start_time', sa.String(), nullable=False),
        sa.Column('end_time', sa.String(), nullable=False),
        sa.Column('color', sa.String(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_shifts'),
    )

    op.create_table(
        'schedules',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('shift_id', sa.Integer(), nullable=False),
        sa.Column('analyst_id', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_schedules'),
        sa.ForeignKeyConstraint(['shift_id'], ['shifts.id'], name='fk_schedules_shift_id_shifts', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['analyst_id'], ['analysts.id'], name='fk_schedules_analyst_id_analysts', ondelete='CASCADE'),
        sa.UniqueConstraint('date', 'shift_id', name='uq_schedules_date'),
    )
    op.create_index('ix_schedules_date', 'schedules', ['date'])
    op.create_index('ix_schedules_shift_id', 'schedules', ['shift_id'])
    op.create_index('ix_schedules_analyst_id', 'schedules', ['analyst_id'])

    op.create_table(
        'sync_log',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('sync_type', sa.String(), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('records_synced', sa.Integer(), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_sync_log'),
    )
    op.create_index('ix_sync_log_started_at', 'sync_log', ['started_at'])

    op.create_table(
        'config',
        sa.Column('key', sa.String(), nullable=False),
        sa.Column('value', sa.Text(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('key', name='pk_config'),
    )

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('microsoft_id', sa.String(), nullable=True),
        sa.Column('user_type', sa.String(), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=False),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_users'),
        sa.UniqueConstraint('email', name='uq_users_email'),
    )

    op.create_table(
        'user_permissions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('resource', sa.String(), nullable=False),
        sa.Column('permission_level', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_user_permissions'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_user_permissions_user_id_users', ondelete='CASCADE'),
        sa.UniqueConstraint('user_id', 'resource', name='uq_user_permissions_user_id'),
    )
    op.create_index('ix_user_permissions_user_id', 'user_permissions', ['user_id'])


def downgrade():
    op.drop_index('ix_user_permissions_user_id', table_name='user_permissions')
    op.drop_table('user_permissions')
    op.drop_table('users')
    op.drop_table('config')
    op.drop_index('ix_sync_log_started_at', table_name='sync_log')
    op.drop_table('sync_log')
    op.drop_index('ix_schedules_analyst_id', table_name='schedules')
    op.drop_index('ix_schedules_shift_id', table_name='schedules')
    op.drop_index('ix_schedules_date', table_name='schedules')
    op.drop_table('schedules')
    op.drop_table('shifts')
    op.drop_table('analysts')
    op.drop_index('ix_pops_client', table_name='pops')
    op.drop_table('pops')
