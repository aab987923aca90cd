from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = 'a1c3e5f70001'
down_revision = None
branch_labels = None
depends_on = None

# Enum columns are stored as VARCHAR holding the member name (e.g. PRAYER_SUBMISSION)

def upgrade():
    op.create_table(
        'prayers',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('requester', sa.Text(), nullable=False),
        sa.Column('prayer_for', sa.Text(), nullable=False),
        sa.Column('prayer_type', sa.Text(), nullable=True),
        sa.Column('email', sa.Text(), nullable=True),
        sa.Column('is_anonymous', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='CURRENT'),
        sa.Column('approval_status', sa.String(length=16), nullable=False, server_default='PENDING'),
        sa.Column('date_answered', sa.TIMESTAMP(), nullable=True),
        sa.Column('last_reminder_sent', sa.TIMESTAMP(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(), nullable=True),
    )
    op.create_index('ix_prayers_status_approval', 'prayers', ['status', 'approval_status'])

    op.create_table(
        'prayer_updates',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('prayer_id', sa.Uuid(), sa.ForeignKey('prayers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('author', sa.Text(), nullable=False),
        sa.Column('author_email', sa.Text(), nullable=True),
        sa.Column('is_anonymous', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('approval_status', sa.String(length=16), nullable=False, server_default='PENDING'),
        sa.Column('created_at', sa.TIMESTAMP(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_prayer_updates_prayer_created', 'prayer_updates', ['prayer_id', 'created_at'])

    op.create_table(
        'verification_codes',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('code', sa.Text(), nullable=False),
        sa.Column('action_type', sa.String(length=32), nullable=False),
        sa.Column('action_data', sa.JSON(), nullable=False),
        sa.Column('expires_at', sa.TIMESTAMP(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_verification_codes_email_action', 'verification_codes', ['email', 'action_type'])
    op.create_index('ix_verification_codes_expires_at', 'verification_codes', ['expires_at'])

    op.create_table(
        'pending_requests',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('action_type', sa.String(length=32), nullable=False),
        sa.Column('action_data', sa.JSON(), nullable=False),
        sa.Column('submitter_email', sa.Text(), nullable=False),
        sa.Column('submitter_name', sa.Text(), nullable=False),
        sa.Column('approval_status', sa.String(length=16), nullable=False, server_default='PENDING'),
        sa.Column('reviewed_by', sa.Text(), nullable=True),
        sa.Column('reviewed_at', sa.TIMESTAMP(), nullable=True),
        sa.Column('denial_reason', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_pending_requests_type_status', 'pending_requests', ['action_type', 'approval_status'])
    op.create_index('ix_pending_requests_submitter', 'pending_requests', ['submitter_email'])

    op.create_table(
        'admin_settings',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('require_email_verification', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('verification_code_length', sa.Integer(), nullable=False, server_default='6'),
        sa.Column('verification_code_expiry_minutes', sa.Integer(), nullable=False, server_default='15'),
        sa.Column('reminder_interval_days', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('auto_transition_days', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('enable_auto_archive', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('days_before_archive', sa.Integer(), nullable=False, server_default='7'),
        sa.Column('notification_emails', sa.JSON(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(), server_default=sa.func.now(), nullable=True),
        sa.CheckConstraint('id = 1', name='admin_settings_singleton'),
        sa.CheckConstraint('verification_code_length BETWEEN 4 AND 8', name='admin_settings_code_length'),
        sa.CheckConstraint('verification_code_expiry_minutes BETWEEN 5 AND 60', name='admin_settings_code_expiry'),
    )

    op.create_table(
        'email_subscribers',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.TIMESTAMP(), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.TIMESTAMP(), nullable=True),
    )
    op.create_unique_constraint('uq_email_subscribers_email', 'email_subscribers', ['email'])

    op.create_table(
        'email_templates',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('template_key', sa.Text(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('subject', sa.Text(), nullable=False),
        sa.Column('html_body', sa.Text(), nullable=False),
        sa.Column('text_body', sa.Text(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(), nullable=True),
    )
    op.create_unique_constraint('uq_email_templates_key', 'email_templates', ['template_key'])

    op.create_table(
        'admin_users',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('email', sa.Text(), nullable=False),
        sa.Column('name', sa.Text(), nullable=True),
        sa.Column('password_hash', sa.Text(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.TIMESTAMP(), server_default=sa.func.now(), nullable=True),
    )
    op.create_unique_constraint('uq_admin_users_email', 'admin_users', ['email'])

def downgrade():
    op.drop_constraint('uq_admin_users_email', 'admin_users', type_='unique')
    op.drop_table('admin_users')
    op.drop_constraint('uq_email_templates_key', 'email_templates', type_='unique')
    op.drop_table('email_templates')
    op.drop_constraint('uq_email_subscribers_email', 'email_subscribers', type_='unique')
    op.drop_table('email_subscribers')
    op.drop_table('admin_settings')
    op.drop_index('ix_pending_requests_submitter', table_name='pending_requests')
    op.drop_index('ix_pending_requests_type_status', table_name='pending_requests')
    op.drop_table('pending_requests')
    op.drop_index('ix_verification_codes_expires_at', table_name='verification_codes')
    op.drop_index('ix_verification_codes_email_action', table_name='verification_codes')
    op.drop_table('verification_codes')
    op.drop_index('ix_prayer_updates_prayer_created', table_name='prayer_updates')
    op.drop_table('prayer_updates')
    op.drop_index('ix_prayers_status_approval', table_name='prayers')
    op.drop_table('prayers')
