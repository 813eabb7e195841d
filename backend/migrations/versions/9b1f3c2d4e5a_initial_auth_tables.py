"""initial auth tables

Revision ID: 9b1f3c2d4e5a
Revises:
Create Date: 2024-06-01 00:00:00.000000
"""
import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = '9b1f3c2d4e5a'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=254), nullable=False),
        sa.Column('password_hash', sa.String(length=254), nullable=False),
        sa.Column('role', sa.Enum('admin', 'client', name='user_role'), nullable=False),
        sa.Column('verified', sa.Boolean(), nullable=False),
        sa.Column('token_version', sa.Integer(), server_default=sa.text('0'), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_users'),
        sa.UniqueConstraint('email', name='uq_users_email'),
    )
    op.create_index('ix_users_email', 'users', ['email'])

    op.create_table(
        'issued_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column('refresh_token_hash', sa.String(length=64), nullable=True),
        sa.Column('access_jti', sa.String(length=64), nullable=True),
        sa.Column('refresh_jti', sa.String(length=64), nullable=True),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('refresh_expires_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('revoked', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('revoked_at', sa.DateTime(), nullable=True),
        sa.Column('revoked_reason', sa.String(length=50), nullable=True),
        sa.Column('last_used_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(
            ['user_id'], ['users.id'],
            name='fk_issued_tokens_user_id_users', ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_issued_tokens'),
        sa.UniqueConstraint('user_id', name='uq_issued_tokens_user_id'),
    )
    op.create_index('ix_issued_tokens_token_hash', 'issued_tokens', ['token_hash'])
    op.create_index(
        'ix_issued_tokens_refresh_token_hash', 'issued_tokens', ['refresh_token_hash']
    )

    op.create_table(
        'token_blacklist',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('token_id', sa.String(length=64), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('original_exp', sa.DateTime(), nullable=False),
        sa.Column('blacklisted_at', sa.DateTime(), nullable=False),
        sa.Column('reason', sa.String(length=50), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_token_blacklist'),
        sa.UniqueConstraint('token_id', name='uq_token_blacklist_token_id'),
    )
    op.create_index('ix_token_blacklist_user_id', 'token_blacklist', ['user_id'])
    op.create_index('ix_token_blacklist_original_exp', 'token_blacklist', ['original_exp'])

    op.create_table(
        'invitations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('token', sa.String(length=128), nullable=False),
        sa.Column('email', sa.String(length=254), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('used_at', sa.DateTime(), nullable=True),
        sa.Column('used_by_user_id', sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_invitations'),
        sa.UniqueConstraint('token', name='uq_invitations_token'),
    )
    op.create_index('ix_invitations_email', 'invitations', ['email'])

    op.create_table(
        'rate_limits',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('ip_address', sa.String(length=45), nullable=False),
        sa.Column('action', sa.String(length=50), nullable=False),
        sa.Column('attempt_count', sa.Integer(), nullable=False),
        sa.Column('last_attempt', sa.DateTime(), nullable=False),
        sa.Column('lockout_until', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_rate_limits'),
        sa.UniqueConstraint('ip_address', 'action', name='uq_rate_limits_ip_address_action'),
    )

    op.create_table(
        'auth_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('action', sa.String(length=50), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.Column('user_agent', sa.String(length=255), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_auth_logs'),
    )
    op.create_index('ix_auth_logs_user_id', 'auth_logs', ['user_id'])
    op.create_index('ix_auth_logs_action', 'auth_logs', ['action'])


def downgrade():
    op.drop_index('ix_auth_logs_action', table_name='auth_logs')
    op.drop_index('ix_auth_logs_user_id', table_name='auth_logs')
    op.drop_table('auth_logs')
    op.drop_table('rate_limits')
    op.drop_index('ix_invitations_email', table_name='invitations')
    op.drop_table('invitations')
    op.drop_index('ix_token_blacklist_original_exp', table_name='token_blacklist')
    op.drop_index('ix_token_blacklist_user_id', table_name='token_blacklist')
    op.drop_table('token_blacklist')
    op.drop_index('ix_issued_tokens_refresh_token_hash', table_name='issued_tokens')
    op.drop_index('ix_issued_tokens_token_hash', table_name='issued_tokens')
    op.drop_table('issued_tokens')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
    sa.Enum(name='user_role').drop(op.get_bind(), checkfirst=True)
