from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = 'b7d2f4a90002'
down_revision = 'a1c3e5f70001'
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'email_outbox',
        sa.Column('id', sa.Uuid(), primary_key=True, nullable=False),
        sa.Column('to_address', sa.Text(), nullable=False),
        sa.Column('template_key', sa.Text(), nullable=False),
        sa.Column('subject', sa.Text(), nullable=False),
        sa.Column('html_body', sa.Text(), nullable=False),
        sa.Column('text_body', sa.Text(), nullable=False),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(), server_default=sa.func.now(), nullable=False),
        sa.Column('sent_at', sa.TIMESTAMP(), nullable=True),
    )
    op.create_index('ix_email_outbox_unsent', 'email_outbox', ['sent_at', 'created_at'])


def downgrade():
    op.drop_index('ix_email_outbox_unsent', table_name='email_outbox')
    op.drop_table('email_outbox')
