"""initial schema

Revision ID: 001_initial
Revises: 
Create Date: 2026-10-18 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001_initial'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False, comment='Дата создания'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, comment='Дата последнего изменения'),
    ]


def _image_columns():
    return [
        sa.Column('image', sa.Text(), nullable=True, comment='URL изображения или /api/...-image/<id>'),
        sa.Column('image_data', sa.Text(), nullable=True, comment='Base64 изображения (inline-хранение)'),
        sa.Column('image_type', sa.String(length=64), nullable=True, comment='MIME тип изображения'),
    ]


def upgrade() -> None:
    # Создание таблицы animals
    op.create_table(
        'animals',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price', sa.Numeric(12, 2), nullable=True),
        sa.Column('payments', postgresql.JSONB(astext_type=sa.Text()), nullable=False, comment='Способы оплаты'),
        *_image_columns(),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )

    # Создание таблицы news
    op.create_table(
        'news',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('content', sa.Text(), nullable=True),
        *_image_columns(),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )

    # Создание таблицы chats
    op.create_table(
        'chats',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=320), nullable=False, comment='Email посетителя (нижний регистр)'),
        sa.Column('messages', postgresql.JSONB(astext_type=sa.Text()), nullable=False, comment='История сообщений'),
        sa.Column('version', sa.Integer(), nullable=False, comment='Версия для optimistic locking'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_chats_email'), 'chats', ['email'], unique=True)

    # Создание таблицы site_settings
    op.create_table(
        'site_settings',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('email', sa.String(length=320), nullable=False, server_default=''),
        sa.Column('payments', postgresql.JSONB(astext_type=sa.Text()), nullable=False, comment='Способы оплаты для checkout'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )

    # Создание таблицы payment_submissions
    op.create_table(
        'payment_submissions',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=320), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('payment_method', sa.String(length=255), nullable=True),
        sa.Column('status', sa.Enum('pending', 'verified', 'rejected', name='submission_status', native_enum=False, length=16), nullable=False, comment='pending / verified / rejected'),
        sa.Column('version', sa.Integer(), nullable=False, comment='Версия для optimistic locking'),
        *_image_columns(),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )


def downgrade() -> None:
    op.drop_table('payment_submissions')
    op.drop_table('site_settings')
    op.drop_index(op.f('ix_chats_email'), table_name='chats')
    op.drop_table('chats')
    op.drop_table('news')
    op.drop_table('animals')
