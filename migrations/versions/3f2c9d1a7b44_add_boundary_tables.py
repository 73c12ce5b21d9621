"""Add boundary tables

Revision ID: 3f2c9d1a7b44
Revises:
Create Date: 2026-10-17 10:12:41.508203

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f2c9d1a7b44'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


adjustment_type = sa.Enum(
    'REDUCE_ACCESS', 'INCREASE_SUPPORT', 'MODIFY_COMPLEXITY', 'TEMPORAL_SHIFT', name='adjustmenttype'
)
proposal_status = sa.Enum('PENDING', 'APPROVED', 'REJECTED', name='proposalstatus')
notification_priority = sa.Enum('LOW', 'MEDIUM', 'HIGH', name='notificationpriority')


def upgrade() -> None:
    """Upgrade schema."""
    # Create assignments table
    op.create_table('assignments',
        sa.Column('id', sa.String(length=50), nullable=False),
        sa.Column('course_id', sa.String(length=50), nullable=False),
        sa.Column('title', sa.String(length=500), nullable=False),
        sa.Column('instructor_id', sa.String(length=50), nullable=True),
        sa.Column('ai_boundary_settings', sa.JSON(), nullable=True),
        sa.Column('settings_version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('due_date', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_assignments_course_id'), 'assignments', ['course_id'], unique=False)

    # Create boundary_proposals table
    op.create_table('boundary_proposals',
        sa.Column('id', sa.String(length=50), nullable=False),
        sa.Column('assignment_id', sa.String(length=50), nullable=False),
        sa.Column('type', adjustment_type, nullable=False),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('specific_change', sa.Text(), nullable=False),
        sa.Column('affected_students', sa.JSON(), nullable=False),
        sa.Column('expected_outcome', sa.Text(), nullable=False),
        sa.Column('evidence', sa.JSON(), nullable=False),
        sa.Column('confidence', sa.Float(), nullable=False),
        sa.Column('status', proposal_status, nullable=False),
        sa.Column('approved_by', sa.String(length=50), nullable=True),
        sa.Column('approved_at', sa.DateTime(), nullable=True),
        sa.Column('implemented_at', sa.DateTime(), nullable=True),
        sa.Column('educator_notes', sa.Text(), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['assignment_id'], ['assignments.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_boundary_proposals_assignment_id'), 'boundary_proposals', ['assignment_id'], unique=False)
    op.create_index(op.f('ix_boundary_proposals_type'), 'boundary_proposals', ['type'], unique=False)
    op.create_index(op.f('ix_boundary_proposals_status'), 'boundary_proposals', ['status'], unique=False)
    op.create_index(op.f('ix_boundary_proposals_created_at'), 'boundary_proposals', ['created_at'], unique=False)

    # Create boundary_adjustment_logs table
    op.create_table('boundary_adjustment_logs',
        sa.Column('id', sa.String(length=50), nullable=False),
        sa.Column('assignment_id', sa.String(length=50), nullable=False),
        sa.Column('proposal_id', sa.String(length=50), nullable=True),
        sa.Column('previous_value', sa.JSON(), nullable=False),
        sa.Column('new_value', sa.JSON(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('implemented_by', sa.String(length=50), nullable=False),
        sa.Column('educator_notes', sa.Text(), nullable=True),
        sa.Column('impact_metrics', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['assignment_id'], ['assignments.id']),
        sa.ForeignKeyConstraint(['proposal_id'], ['boundary_proposals.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_boundary_adjustment_logs_assignment_id'), 'boundary_adjustment_logs', ['assignment_id'], unique=False)
    op.create_index(op.f('ix_boundary_adjustment_logs_proposal_id'), 'boundary_adjustment_logs', ['proposal_id'], unique=False)
    op.create_index(op.f('ix_boundary_adjustment_logs_created_at'), 'boundary_adjustment_logs', ['created_at'], unique=False)

    # Create notifications table
    op.create_table('notifications',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('recipient_id', sa.String(length=50), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('priority', notification_priority, nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_notifications_recipient_id'), 'notifications', ['recipient_id'], unique=False)
    op.create_index(op.f('ix_notifications_type'), 'notifications', ['type'], unique=False)
    op.create_index(op.f('ix_notifications_created_at'), 'notifications', ['created_at'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f('ix_notifications_created_at'), table_name='notifications')
    op.drop_index(op.f('ix_notifications_type'), table_name='notifications')
    op.drop_index(op.f('ix_notifications_recipient_id'), table_name='notifications')
    op.drop_table('notifications')

    op.drop_index(op.f('ix_boundary_adjustment_logs_created_at'), table_name='boundary_adjustment_logs')
    op.drop_index(op.f('ix_boundary_adjustment_logs_proposal_id'), table_name='boundary_adjustment_logs')
    op.drop_index(op.f('ix_boundary_adjustment_logs_assignment_id'), table_name='boundary_adjustment_logs')
    op.drop_table('boundary_adjustment_logs')

    op.drop_index(op.f('ix_boundary_proposals_created_at'), table_name='boundary_proposals')
    op.drop_index(op.f('ix_boundary_proposals_status'), table_name='boundary_proposals')
    op.drop_index(op.f('ix_boundary_proposals_type'), table_name='boundary_proposals')
    op.drop_index(op.f('ix_boundary_proposals_assignment_id'), table_name='boundary_proposals')
    op.drop_table('boundary_proposals')

    op.drop_index(op.f('ix_assignments_course_id'), table_name='assignments')
    op.drop_table('assignments')

    notification_priority.drop(op.get_bind(), checkfirst=True)
    proposal_status.drop(op.get_bind(), checkfirst=True)
    adjustment_type.drop(op.get_bind(), checkfirst=True)
