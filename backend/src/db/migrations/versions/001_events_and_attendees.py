"""Events and attendees schema

Revision ID: 001_events_and_attendees
Revises:
Create Date: 2026-10-16

Creates the events and attendees tables with:
- events: event details, hashed shared secret, lifecycle flag
- attendees: roster entries with check-in state and provenance
- Foreign key attendees.event_id -> events.id (ON DELETE CASCADE)
- Indexes for roster queries and duplicate matching
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '001_events_and_attendees'
down_revision = None
branch_labels = None
depends_on = None


def _uuid_column() -> sa.Column:
    return sa.Column(
        'uuid',
        postgresql.UUID(as_uuid=True).with_variant(sa.LargeBinary(16), 'sqlite'),
        nullable=False
    )


def upgrade() -> None:
    """
    Create events and attendees tables.

    Columns (events):
    - id / uuid: internal key and public GUID source (evt_xxx)
    - name, description, date, time, location: event details
    - secret_hash: bcrypt hash of the shared secret (NULL = unprotected)
    - is_finished / finished_at: lifecycle
    - created_at / updated_at: timestamps

    Columns (attendees):
    - id / uuid: internal key and public GUID source (att_xxx)
    - event_id: owning event
    - name, phone_number, affiliation: identity fields
    - checked_in / checked_in_at: check-in state
    - source: 'manual' or 'import'
    - created_at / updated_at: timestamps
    """
    op.create_table(
        'events',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        _uuid_column(),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('date', sa.Date(), nullable=True),
        sa.Column('time', sa.Time(), nullable=True),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('secret_hash', sa.String(length=255), nullable=True),
        sa.Column('is_finished', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('finished_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('uuid')
    )
    op.create_index('ix_events_uuid', 'events', ['uuid'], unique=True)

    op.create_table(
        'attendees',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        _uuid_column(),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('phone_number', sa.String(length=50), nullable=True),
        sa.Column('affiliation', sa.String(length=255), nullable=True),
        sa.Column('checked_in', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('checked_in_at', sa.DateTime(), nullable=True),
        sa.Column('source', sa.String(length=10), nullable=False, server_default='manual'),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('uuid'),
        sa.CheckConstraint(
            "(checked_in AND checked_in_at IS NOT NULL) OR "
            "(NOT checked_in AND checked_in_at IS NULL)",
            name='ck_attendees_checked_in_at'
        ),
        sa.CheckConstraint("source IN ('manual', 'import')", name='ck_attendees_source')
    )
    op.create_index('ix_attendees_uuid', 'attendees', ['uuid'], unique=True)
    op.create_index('ix_attendees_event_id', 'attendees', ['event_id'])
    op.create_index('ix_attendees_phone_number', 'attendees', ['phone_number'])
    op.create_index(
        'idx_attendees_name_lower', 'attendees', [sa.text('lower(name)')]
    )


def downgrade() -> None:
    """Drop attendees and events tables."""
    op.drop_index('idx_attendees_name_lower', table_name='attendees')
    op.drop_index('ix_attendees_phone_number', table_name='attendees')
    op.drop_index('ix_attendees_event_id', table_name='attendees')
    op.drop_index('ix_attendees_uuid', table_name='attendees')
    op.drop_table('attendees')
    op.drop_index('ix_events_uuid', table_name='events')
    op.drop_table('events')
