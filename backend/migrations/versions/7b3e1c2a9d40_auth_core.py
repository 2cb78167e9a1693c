"""auth core: accounts, roles, stores, passcode challenges

Revision ID: 7b3e1c2a9d40
Revises:
Create Date: 2026-10-18 00:00:00.000000
"""
import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = '7b3e1c2a9d40'
down_revision = None
branch_labels = None
depends_on = None

ACCOUNT_STATUS = ('PENDING', 'ACTIVE', 'SUSPENDED', 'BLOCKED')
ROLES = ('ADMIN', 'CUSTOMER')
OTP_PURPOSES = ('EMAIL_VERIFICATION', 'PASSWORD_RESET')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade():
    op.create_table(
        'accounts',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('username', sa.String(length=50), nullable=False),
        sa.Column('email', sa.String(length=254), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('email_verified_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            'status',
            sa.Enum(*ACCOUNT_STATUS, name='enum_account_status', create_constraint=True),
            nullable=False,
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_accounts')),
    )
    op.create_index(
        'uq_accounts_email',
        'accounts',
        ['email'],
        unique=True,
        postgresql_where=sa.text('deleted_at IS NULL'),
        sqlite_where=sa.text('deleted_at IS NULL'),
    )
    op.create_index('ix_accounts_username', 'accounts', ['username'])

    op.create_table(
        'account_roles',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('account_id', sa.String(length=36), nullable=False),
        sa.Column('role', sa.Enum(*ROLES, name='enum_role', create_constraint=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ['account_id'], ['accounts.id'],
            name=op.f('fk_account_roles_account_id_accounts'), ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_account_roles')),
        sa.UniqueConstraint('account_id', 'role', name='uq_account_roles_account_id_role'),
    )
    op.create_index('ix_account_roles_account_id', 'account_roles', ['account_id'])

    op.create_table(
        'stores',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('owner_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_by', sa.String(length=36), nullable=True),
        sa.Column('updated_by', sa.String(length=36), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ['owner_id'], ['accounts.id'],
            name=op.f('fk_stores_owner_id_accounts'), ondelete='RESTRICT',
        ),
        sa.ForeignKeyConstraint(
            ['created_by'], ['accounts.id'],
            name=op.f('fk_stores_created_by_accounts'), ondelete='SET NULL',
        ),
        sa.ForeignKeyConstraint(
            ['updated_by'], ['accounts.id'],
            name=op.f('fk_stores_updated_by_accounts'), ondelete='SET NULL',
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_stores')),
        sa.UniqueConstraint('name', name='uq_stores_name'),
        sa.UniqueConstraint('owner_id', name='uq_stores_owner_id'),
    )

    op.create_table(
        'otp_challenges',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('account_id', sa.String(length=36), nullable=False),
        sa.Column('code_hash', sa.String(length=255), nullable=False),
        sa.Column(
            'purpose',
            sa.Enum(*OTP_PURPOSES, name='enum_otp_purpose', create_constraint=True),
            nullable=False,
        ),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('verified_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('attempt_count', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            'attempt_count >= 0', name=op.f('ck_otp_challenges_attempt_count_non_negative')
        ),
        sa.ForeignKeyConstraint(
            ['account_id'], ['accounts.id'],
            name=op.f('fk_otp_challenges_account_id_accounts'), ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_otp_challenges')),
    )
    op.create_index(
        'ix_otp_challenges_lookup', 'otp_challenges', ['account_id', 'purpose', 'created_at']
    )


def downgrade():
    op.drop_index('ix_otp_challenges_lookup', table_name='otp_challenges')
    op.drop_table('otp_challenges')
    op.drop_table('stores')
    op.drop_index('ix_account_roles_account_id', table_name='account_roles')
    op.drop_table('account_roles')
    op.drop_index('ix_accounts_username', table_name='accounts')
    op.drop_index('uq_accounts_email', table_name='accounts')
    op.drop_table('accounts')
    sa.Enum(name='enum_otp_purpose').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='enum_role').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='enum_account_status').drop(op.get_bind(), checkfirst=True)
