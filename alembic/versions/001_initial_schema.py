"""initial_schema

Revision ID: 001
Revises: 
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = sa.Enum('USER', 'ADMIN', 'TECHNICAL_REVIEWER', 'JURY_MEMBER', 'DRAGONS_DEN_JUDGE', name='userrole')
code_purpose = sa.Enum('SIGNUP', 'PASSWORD_RESET', name='codepurpose')
APPLICATION_STATUSES = (
    'DRAFT', 'SUBMITTED', 'UNDER_REVIEW', 'SHORTLISTED', 'SCORING_PHASE',
    'DRAGONS_DEN', 'FINALIST', 'APPROVED', 'REJECTED',
)
application_status = sa.Enum(*APPLICATION_STATUSES, name='applicationstatus')
# Second reference to the same type, created along with the applications table
application_status_ref = postgresql.ENUM(*APPLICATION_STATUSES, name='applicationstatus', create_type=False)
ticket_category = sa.Enum(
    'TECHNICAL_ISSUE', 'APPLICATION_HELP', 'ACCOUNT_PROBLEM', 'PAYMENT_ISSUE',
    'FEATURE_REQUEST', 'BUG_REPORT', 'GENERAL_INQUIRY', 'OTHER',
    name='ticketcategory',
)
ticket_priority = sa.Enum('LOW', 'MEDIUM', 'HIGH', 'URGENT', name='ticketpriority')
ticket_status = sa.Enum('OPEN', 'IN_PROGRESS', 'WAITING_FOR_USER', 'RESOLVED', 'CLOSED', name='ticketstatus')


def upgrade() -> None:
    """Upgrade schema."""
    # Create users table
    op.create_table(
        'users',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=True),
        sa.Column('role', user_role, nullable=False),
        sa.Column('email_verified', sa.Boolean(), nullable=False),
        sa.Column('email_verified_at', sa.DateTime(), nullable=True),
        sa.Column('last_login', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=False)
    op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)

    # Create email_verification_codes table
    op.create_table(
        'email_verification_codes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('code', sa.String(6), nullable=False),
        sa.Column('purpose', code_purpose, nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('is_used', sa.Boolean(), nullable=False),
        sa.Column('attempts', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_email_verification_codes_email'), 'email_verification_codes', ['email'], unique=False)
    op.create_index(op.f('ix_email_verification_codes_id'), 'email_verification_codes', ['id'], unique=False)

    # Create applications table
    op.create_table(
        'applications',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('business_name', sa.String(200), nullable=False),
        sa.Column('status', application_status, nullable=False),
        sa.Column('submitted_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_applications_id'), 'applications', ['id'], unique=False)
    op.create_index(op.f('ix_applications_user_id'), 'applications', ['user_id'], unique=False)
    op.create_index(op.f('ix_applications_status'), 'applications', ['status'], unique=False)

    op.create_table(
        'application_status_changes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('application_id', sa.Integer(), nullable=False),
        sa.Column('from_status', application_status_ref, nullable=True),
        sa.Column('to_status', application_status_ref, nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('changed_by', sa.String(36), nullable=True),
        sa.Column('changed_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['application_id'], ['applications.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['changed_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        op.f('ix_application_status_changes_id'), 'application_status_changes', ['id'], unique=False
    )
    op.create_index(
        op.f('ix_application_status_changes_application_id'),
        'application_status_changes',
        ['application_id'],
        unique=False,
    )

    # Create scoring tables
    op.create_table(
        'scoring_configurations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('version', sa.String(20), nullable=False),
        sa.Column('total_max_score', sa.Integer(), nullable=False),
        sa.Column('pass_threshold', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_by', sa.String(36), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_scoring_configurations_id'), 'scoring_configurations', ['id'], unique=False)
    op.create_index(op.f('ix_scoring_configurations_is_active'), 'scoring_configurations', ['is_active'], unique=False)

    op.create_table(
        'scoring_criteria',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('configuration_id', sa.Integer(), nullable=False),
        sa.Column('category', sa.String(200), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('max_points', sa.Integer(), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['configuration_id'], ['scoring_configurations.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_scoring_criteria_id'), 'scoring_criteria', ['id'], unique=False)
    op.create_index(op.f('ix_scoring_criteria_configuration_id'), 'scoring_criteria', ['configuration_id'], unique=False)

    op.create_table(
        'application_scores',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('application_id', sa.Integer(), nullable=False),
        sa.Column('criteria_id', sa.Integer(), nullable=False),
        sa.Column('configuration_id', sa.Integer(), nullable=False),
        sa.Column('evaluated_by', sa.String(36), nullable=False),
        sa.Column('score', sa.Integer(), nullable=True),
        sa.Column('max_score', sa.Integer(), nullable=False),
        sa.Column('level', sa.String(100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('evaluated_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['application_id'], ['applications.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['criteria_id'], ['scoring_criteria.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['configuration_id'], ['scoring_configurations.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['evaluated_by'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('application_id', 'criteria_id', 'evaluated_by', name='uq_score_per_evaluator'),
    )
    op.create_index(op.f('ix_application_scores_id'), 'application_scores', ['id'], unique=False)
    op.create_index(op.f('ix_application_scores_application_id'), 'application_scores', ['application_id'], unique=False)
    op.create_index(op.f('ix_application_scores_evaluated_by'), 'application_scores', ['evaluated_by'], unique=False)

    # Create support tables
    op.create_table(
        'support_tickets',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('ticket_number', sa.String(50), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('user_email', sa.String(255), nullable=False),
        sa.Column('user_name', sa.String(255), nullable=False),
        sa.Column('category', ticket_category, nullable=False),
        sa.Column('priority', ticket_priority, nullable=False),
        sa.Column('status', ticket_status, nullable=False),
        sa.Column('subject', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('attachment_url', sa.String(500), nullable=True),
        sa.Column('assigned_to', sa.String(36), nullable=True),
        sa.Column('resolution_notes', sa.Text(), nullable=True),
        sa.Column('resolved_at', sa.DateTime(), nullable=True),
        sa.Column('resolved_by', sa.String(36), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['assigned_to'], ['users.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['resolved_by'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_support_tickets_id'), 'support_tickets', ['id'], unique=False)
    op.create_index(op.f('ix_support_tickets_ticket_number'), 'support_tickets', ['ticket_number'], unique=True)
    op.create_index(op.f('ix_support_tickets_user_id'), 'support_tickets', ['user_id'], unique=False)
    op.create_index(op.f('ix_support_tickets_user_email'), 'support_tickets', ['user_email'], unique=False)
    op.create_index(op.f('ix_support_tickets_status'), 'support_tickets', ['status'], unique=False)

    op.create_table(
        'support_responses',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('ticket_id', sa.String(36), nullable=False),
        sa.Column('responder_id', sa.String(36), nullable=True),
        sa.Column('responder_name', sa.String(255), nullable=False),
        sa.Column('responder_role', sa.String(32), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('attachment_url', sa.String(500), nullable=True),
        sa.Column('is_internal', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['ticket_id'], ['support_tickets.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['responder_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_support_responses_id'), 'support_responses', ['id'], unique=False)
    op.create_index(op.f('ix_support_responses_ticket_id'), 'support_responses', ['ticket_id'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('support_responses')
    op.drop_table('support_tickets')
    op.drop_table('application_scores')
    op.drop_table('scoring_criteria')
    op.drop_table('scoring_configurations')
    op.drop_table('application_status_changes')
    op.drop_table('applications')
    op.drop_table('email_verification_codes')
    op.drop_table('users')

    bind = op.get_bind()
    for enum in (ticket_status, ticket_priority, ticket_category, application_status, code_purpose, user_role):
        enum.drop(bind, checkfirst=True)
