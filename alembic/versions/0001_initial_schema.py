"""initial gighire schema

Revision ID: 0001_initial
Revises: 
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial'
down_revision = None
branch_labels = None
depends_on = None

TERMINAL = "'cancelled', 'completed', 'declined', 'rejected', 'withdrawn'"


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('email', sa.String(320), nullable=False),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('user_type', sa.String(16), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'seekers',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('user_id', sa.String(32), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('full_name', sa.String(255)),
        sa.Column('email', sa.String(320)),
        sa.Column('phone', sa.String(32)),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_seekers_user_id', 'seekers', ['user_id'], unique=True)

    op.create_table(
        'companies',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('user_id', sa.String(32), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('company_name', sa.String(255), nullable=False),
        sa.Column('company_email', sa.String(320)),
        sa.Column('subscription_plan', sa.String(32)),
        sa.Column('trial_start_date', sa.DateTime(timezone=True)),
        sa.Column('trial_end_date', sa.DateTime(timezone=True)),
        sa.Column('next_billing_date', sa.DateTime(timezone=True)),
        *_timestamps(),
    )
    op.create_index('ix_companies_user_id', 'companies', ['user_id'], unique=True)

    op.create_table(
        'blocked_seekers',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('company_id', sa.String(32), sa.ForeignKey('companies.id', ondelete='CASCADE'), nullable=False),
        sa.Column('seeker_id', sa.String(32), sa.ForeignKey('seekers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('reason', sa.String(512)),
        sa.Column('blocked_by', sa.String(255)),
        sa.Column('is_active', sa.Boolean, nullable=False),
        sa.Column('blocked_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('unblocked_at', sa.DateTime(timezone=True)),
        sa.Column('unblock_reason', sa.String(512)),
        sa.Column('unblocked_by', sa.String(255)),
    )
    op.create_index('ix_blocked_seekers_company_id', 'blocked_seekers', ['company_id'])
    op.create_index('ix_blocked_seekers_seeker_id', 'blocked_seekers', ['seeker_id'])

    op.create_table(
        'usage_events',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('company_id', sa.String(32), sa.ForeignKey('companies.id', ondelete='CASCADE'), nullable=False),
        sa.Column('action', sa.String(32), nullable=False),
        sa.Column('quantity', sa.Integer, nullable=False),
        sa.Column('source_ref', sa.String(64)),
        sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_usage_events_company_id', 'usage_events', ['company_id'])
    op.create_index('ix_usage_events_action', 'usage_events', ['action'])
    op.create_index('ix_usage_events_occurred_at', 'usage_events', ['occurred_at'])

    op.create_table(
        'jobs',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('job_id', sa.String(32), nullable=False),
        sa.Column('company_id', sa.String(32), sa.ForeignKey('companies.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.String(32), nullable=False),
        sa.Column('role_name', sa.String(255)),
        sa.Column('company_name', sa.String(255)),
        sa.Column('job_summary', sa.Text),
        sa.Column('brand_location_id', sa.String(64)),
        sa.Column('hiring_type', sa.String(32), nullable=False),
        sa.Column('pay_per_hour', sa.Float),
        sa.Column('hours_per_day', sa.Float),
        sa.Column('start_date', sa.Date),
        sa.Column('payment_terms', sa.String(64)),
        sa.Column('work_type', sa.String(16)),
        sa.Column('job_status', sa.String(16), nullable=False),
        sa.Column('published_at', sa.DateTime(timezone=True)),
        sa.Column('applications_count', sa.Integer, nullable=False, server_default='0'),
        sa.Column('views_count', sa.Integer, nullable=False, server_default='0'),
        sa.Column('hired_count', sa.Integer, nullable=False, server_default='0'),
        *_timestamps(),
    )
    op.create_index('ix_jobs_job_id', 'jobs', ['job_id'], unique=True)
    op.create_index('ix_jobs_company_id', 'jobs', ['company_id'])
    op.create_index('ix_jobs_user_id', 'jobs', ['user_id'])
    op.create_index('ix_jobs_job_status', 'jobs', ['job_status'])

    op.create_table(
        'job_applications',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('application_id', sa.String(32), nullable=False),
        sa.Column('job_id', sa.String(32), sa.ForeignKey('jobs.id', ondelete='CASCADE'), nullable=False),
        sa.Column('seeker_id', sa.String(32), sa.ForeignKey('seekers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('company_id', sa.String(32), sa.ForeignKey('companies.id', ondelete='CASCADE'), nullable=False),
        sa.Column('job_title', sa.String(255)),
        sa.Column('company_name', sa.String(255)),
        sa.Column('hiring_type', sa.String(32)),
        sa.Column('status', sa.String(16), nullable=False),
        sa.Column('application_source', sa.String(16), nullable=False),
        sa.Column('availability', sa.String(255)),
        sa.Column('hire_status', sa.String(16)),
        sa.Column('hire_response', sa.String(16)),
        sa.Column('pre_hire_status', sa.String(16)),
        sa.Column('hire_requested_at', sa.DateTime(timezone=True)),
        sa.Column('hire_responded_at', sa.DateTime(timezone=True)),
        sa.Column('interview_scheduled', sa.Boolean, nullable=False),
        sa.Column('interview_response', sa.String(16)),
        sa.Column('decline_reason', sa.String(255)),
        sa.Column('reporting_enabled', sa.Boolean, nullable=False),
        sa.Column('report_history', sa.JSON, nullable=False),
        sa.Column('chat_id', sa.String(32)),
        sa.Column('version', sa.Integer, nullable=False),
        sa.Column('applied_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status_changed_at', sa.DateTime(timezone=True)),
        *_timestamps(),
    )
    op.create_index('ix_job_applications_application_id', 'job_applications', ['application_id'], unique=True)
    op.create_index('ix_job_applications_job_id', 'job_applications', ['job_id'])
    op.create_index('ix_job_applications_seeker_id', 'job_applications', ['seeker_id'])
    op.create_index('ix_job_applications_company_id', 'job_applications', ['company_id'])
    op.create_index('ix_job_applications_status', 'job_applications', ['status'])
    # one active application per (job, seeker)
    op.create_index(
        'uq_job_applications_active_pair',
        'job_applications',
        ['job_id', 'seeker_id'],
        unique=True,
        sqlite_where=sa.text(f"status NOT IN ({TERMINAL})"),
        postgresql_where=sa.text(f"status NOT IN ({TERMINAL})"),
    )

    op.create_table(
        'interviews',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('interview_id', sa.String(32), nullable=False),
        sa.Column('application_id', sa.String(32), sa.ForeignKey('job_applications.id', ondelete='CASCADE')),
        sa.Column('job_id', sa.String(32), nullable=False),
        sa.Column('company_id', sa.String(32), nullable=False),
        sa.Column('seeker_id', sa.String(32), nullable=False),
        sa.Column('interview_date', sa.Date, nullable=False),
        sa.Column('start_time', sa.String(5), nullable=False),
        sa.Column('duration', sa.Integer, nullable=False),
        sa.Column('end_time', sa.String(5), nullable=False),
        sa.Column('interview_type', sa.String(16), nullable=False),
        sa.Column('location', sa.String(512)),
        sa.Column('notes', sa.Text),
        sa.Column('status', sa.String(16), nullable=False),
        sa.Column('confirmation_status', sa.String(16), nullable=False),
        sa.Column('reschedule_history', sa.JSON, nullable=False),
        sa.Column('reschedule_count', sa.Integer, nullable=False),
        sa.Column('max_reschedules', sa.Integer, nullable=False),
        sa.Column('allow_rescheduling', sa.Boolean, nullable=False),
        sa.Column('rating', sa.Integer),
        sa.Column('feedback', sa.Text),
        sa.Column('result', sa.String(16)),
        sa.Column('next_steps', sa.Text),
        sa.Column('cancellation_reason', sa.String(512)),
        sa.Column('completed_at', sa.DateTime(timezone=True)),
        sa.Column('cancelled_at', sa.DateTime(timezone=True)),
        sa.Column('no_show_at', sa.DateTime(timezone=True)),
        sa.Column('scheduled_by', sa.String(32)),
        sa.Column('version', sa.Integer, nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_interviews_interview_id', 'interviews', ['interview_id'], unique=True)
    for column in ('application_id', 'job_id', 'company_id', 'seeker_id', 'interview_date', 'status'):
        op.create_index(f'ix_interviews_{column}', 'interviews', [column])

    op.create_table(
        'chats',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('company_id', sa.String(32), nullable=False),
        sa.Column('seeker_id', sa.String(32), nullable=False),
        sa.Column('job_id', sa.String(32), nullable=False),
        sa.Column('job_title', sa.String(255)),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_message_at', sa.DateTime(timezone=True)),
    )
    for column in ('company_id', 'seeker_id', 'job_id'):
        op.create_index(f'ix_chats_{column}', 'chats', [column])

    op.create_table(
        'chat_messages',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('chat_id', sa.String(32), sa.ForeignKey('chats.id', ondelete='CASCADE'), nullable=False),
        sa.Column('sender_type', sa.String(16), nullable=False),
        sa.Column('content', sa.Text, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_chat_messages_chat_id', 'chat_messages', ['chat_id'])

    op.create_table(
        'application_history',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('history_id', sa.String(32), nullable=False, unique=True),
        sa.Column('application_id', sa.String(32), nullable=False),
        sa.Column('job_id', sa.String(32), nullable=False),
        sa.Column('seeker_id', sa.String(32), nullable=False),
        sa.Column('company_id', sa.String(32), nullable=False),
        sa.Column('action', sa.String(32), nullable=False),
        sa.Column('from_status', sa.String(16)),
        sa.Column('to_status', sa.String(16)),
        sa.Column('actor_type', sa.String(16), nullable=False),
        sa.Column('actor_id', sa.String(32), nullable=False),
        sa.Column('reason', sa.String(512)),
        sa.Column('notes', sa.Text),
        sa.Column('details', sa.JSON, nullable=False),
        sa.Column('action_at', sa.DateTime(timezone=True), nullable=False),
    )
    for column in ('application_id', 'job_id', 'seeker_id', 'company_id', 'action_at'):
        op.create_index(f'ix_application_history_{column}', 'application_history', [column])

    op.create_table(
        'outbox_events',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('event_type', sa.String(64), nullable=False),
        sa.Column('aggregate_id', sa.String(32), nullable=False),
        sa.Column('payload', sa.JSON, nullable=False),
        sa.Column('status', sa.String(16), nullable=False),
        sa.Column('attempts', sa.Integer, nullable=False),
        sa.Column('last_error', sa.Text),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('processed_at', sa.DateTime(timezone=True)),
    )
    for column in ('event_type', 'aggregate_id', 'status'):
        op.create_index(f'ix_outbox_events_{column}', 'outbox_events', [column])


def downgrade() -> None:
    for table in (
        'outbox_events', 'application_history', 'chat_messages', 'chats', 'interviews',
        'job_applications', 'jobs', 'usage_events', 'blocked_seekers', 'companies', 'seekers', 'users',
    ):
        op.drop_table(table)
