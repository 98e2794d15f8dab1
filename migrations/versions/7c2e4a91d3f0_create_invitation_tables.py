"""create_invitation_tables

Revision ID: 7c2e4a91d3f0
Revises:
Create Date: 2026-10-19 09:12:44.318207

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '7c2e4a91d3f0'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create participants, events, sessions, invitations and decline details."""
    op.create_table('participants',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )

    op.create_table('events',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('starts_on', sa.Date(), nullable=False),
        sa.Column('ends_on', sa.Date(), nullable=False),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('venue', sa.String(length=255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table('event_sessions',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('event_id', sa.UUID(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('starts_at', sa.DateTime(), nullable=True),
        sa.Column('ends_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_event_sessions_event_id', 'event_sessions', ['event_id'], unique=False)

    op.create_table('invitations',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('event_id', sa.UUID(), nullable=False),
        sa.Column('session_id', sa.UUID(), nullable=True),
        sa.Column('invitee_id', sa.UUID(), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=True),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='speaker'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('token', sa.Text(), nullable=False),
        sa.Column('invited_at', sa.DateTime(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('responded_at', sa.DateTime(), nullable=True),
        sa.Column('last_notified_at', sa.DateTime(), nullable=True),
        sa.Column('delivery_count', sa.Integer(), nullable=False, server_default='0'),
        sa.CheckConstraint("role IN ('speaker', 'moderator', 'chairperson')", name='ck_invitations_role'),
        sa.CheckConstraint(
            "status IN ('pending', 'tentative', 'accepted', 'declined', 'cancelled')",
            name='ck_invitations_status',
        ),
        sa.CheckConstraint("(status = 'pending') = (responded_at IS NULL)", name='ck_invitations_responded_at'),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['session_id'], ['event_sessions.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['invitee_id'], ['participants.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('token'),
    )
    # Counting by event/session and status
    op.create_index('ix_invitations_event_status', 'invitations', ['event_id', 'status'], unique=False)
    op.create_index('ix_invitations_session_status', 'invitations', ['session_id', 'status'], unique=False)
    # Duplicate check when issuing
    op.create_index('ix_invitations_invitee_event', 'invitations', ['event_id', 'email'], unique=False)
    # At most one open invitation per invitee and event/session
    op.create_index(
        'uq_invitations_open_invitee',
        'invitations',
        ['event_id', sa.text("coalesce(session_id, '00000000-0000-0000-0000-000000000000')"), 'email'],
        unique=True,
        postgresql_where=sa.text("status IN ('pending', 'tentative')"),
    )

    op.create_table('invitation_decline_details',
        sa.Column('invitation_id', sa.UUID(), nullable=False),
        sa.Column('reason_code', sa.String(length=30), nullable=False),
        sa.Column('suggested_topic', sa.Text(), nullable=True),
        sa.Column('suggested_time_start', sa.DateTime(), nullable=True),
        sa.Column('suggested_time_end', sa.DateTime(), nullable=True),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('now()')),
        sa.CheckConstraint(
            "reason_code IN ('not_interested', 'suggested_topic', 'time_conflict')",
            name='ck_decline_reason_code',
        ),
        sa.CheckConstraint("reason_code = 'suggested_topic' OR suggested_topic IS NULL", name='ck_decline_topic_reason'),
        sa.CheckConstraint(
            "reason_code = 'time_conflict' OR (suggested_time_start IS NULL AND suggested_time_end IS NULL)",
            name='ck_decline_time_reason',
        ),
        sa.ForeignKeyConstraint(['invitation_id'], ['invitations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('invitation_id'),
    )


def downgrade() -> None:
    """Drop invitation tables."""
    op.drop_table('invitation_decline_details')
    op.drop_index('uq_invitations_open_invitee', table_name='invitations')
    op.drop_index('ix_invitations_invitee_event', table_name='invitations')
    op.drop_index('ix_invitations_session_status', table_name='invitations')
    op.drop_index('ix_invitations_event_status', table_name='invitations')
    op.drop_table('invitations')
    op.drop_index('ix_event_sessions_event_id', table_name='event_sessions')
    op.drop_table('event_sessions')
    op.drop_table('events')
    op.drop_table('participants')
