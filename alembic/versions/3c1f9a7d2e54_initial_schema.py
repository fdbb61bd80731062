"""Initial schema with soft-delete flags and registration uniqueness

Revision ID: 3c1f9a7d2e54
Revises: 
Create Date: 2026-10-18 09:12:41.512203

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3c1f9a7d2e54'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

role_enum = sa.Enum('USER', 'ORGANIZER', 'ADMIN', name='roleenum')
event_status_enum = sa.Enum('DRAFT', 'PUBLISHED', 'CANCELLED', 'COMPLETED', name='eventstatus')
event_category_enum = sa.Enum(
    'CONFERENCE', 'WORKSHOP', 'SEMINAR', 'NETWORKING', 'CONCERT', 'SPORTS', 'OTHER', name='eventcategory'
)
registration_status_enum = sa.Enum('PENDING', 'CONFIRMED', 'CANCELLED', 'ATTENDED', name='registrationstatus')


def _record_columns():
    return [
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('is_deleted', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # Create users table
    op.create_table(
        'users',
        *_record_columns(),
        sa.Column('name', sa.String(50), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('role', role_enum, nullable=False, server_default='USER'),
        sa.Column('avatar', sa.String(500), nullable=True),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('idx_user_deleted', 'users', ['is_deleted'])

    # Create events table
    op.create_table(
        'events',
        *_record_columns(),
        sa.Column('title', sa.String(100), nullable=False),
        sa.Column('description', sa.Text, nullable=False),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('location', sa.String(200), nullable=False),
        sa.Column('capacity', sa.Integer, nullable=False),
        sa.Column('organizer_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('status', event_status_enum, nullable=False, server_default='DRAFT'),
        sa.Column('category', event_category_enum, nullable=False),
        sa.Column('image_url', sa.String(500), nullable=True),
    )
    op.create_index('idx_event_date', 'events', ['date'])
    op.create_index('idx_event_organizer', 'events', ['organizer_id'])
    op.create_index('idx_event_status', 'events', ['status'])
    op.create_index('idx_event_category', 'events', ['category'])
    op.create_index('idx_event_deleted', 'events', ['is_deleted'])

    # Create registrations table
    op.create_table(
        'registrations',
        *_record_columns(),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('event_id', sa.String(36), sa.ForeignKey('events.id'), nullable=False),
        sa.Column('status', registration_status_enum, nullable=False, server_default='PENDING'),
        sa.Column('registered_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('notes', sa.String(500), nullable=True),
    )
    # One live registration per (user, event)
    op.create_index(
        'uq_registration_user_event_active',
        'registrations',
        ['user_id', 'event_id'],
        unique=True,
        postgresql_where=sa.text('is_deleted = false'),
        sqlite_where=sa.text('is_deleted = 0'),
    )
    op.create_index('idx_registration_user', 'registrations', ['user_id'])
    op.create_index('idx_registration_event', 'registrations', ['event_id'])
    op.create_index('idx_registration_status', 'registrations', ['status'])

    # Create comments table
    op.create_table(
        'comments',
        *_record_columns(),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('event_id', sa.String(36), sa.ForeignKey('events.id'), nullable=False),
        sa.Column('content', sa.Text, nullable=False),
        sa.Column('rating', sa.Integer, nullable=True),
    )
    op.create_index('idx_comment_event', 'comments', ['event_id'])
    op.create_index('idx_comment_user', 'comments', ['user_id'])
    op.create_index('idx_comment_created_at', 'comments', ['created_at'])


def downgrade() -> None:
    op.drop_table('comments')
    op.drop_table('registrations')
    op.drop_table('events')
    op.drop_table('users')

    bind = op.get_bind()
    registration_status_enum.drop(bind, checkfirst=True)
    event_category_enum.drop(bind, checkfirst=True)
    event_status_enum.drop(bind, checkfirst=True)
    role_enum.drop(bind, checkfirst=True)
