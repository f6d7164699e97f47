"""initial schema - kakao users and login sessions

Revision ID: 001
Revises: 
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Kakao identity is assigned by the provider, never generated here
    op.create_table(
        'kakao_users',
        sa.Column('identity', sa.BigInteger(), primary_key=True, autoincrement=False),
        sa.Column('display_name', sa.String(100), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('avatar_url', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    )
    op.create_index('ix_kakao_users_last_login', 'kakao_users', ['last_login'])

    # Only used with SESSION_BACKEND=database
    op.create_table(
        'login_sessions',
        sa.Column('session_id', sa.String(64), primary_key=True),
        sa.Column('data', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_login_sessions_expires_at', 'login_sessions', ['expires_at'])


def downgrade() -> None:
    op.drop_index('ix_login_sessions_expires_at', table_name='login_sessions')
    op.drop_table('login_sessions')
    op.drop_index('ix_kakao_users_last_login', table_name='kakao_users')
    op.drop_table('kakao_users')
