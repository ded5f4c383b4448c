"""Create message table

Revision ID: 002
Revises: 001
Create Date: 2026-10-17 11:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '002'
down_revision = '001'
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'message',
        sa.Column('id', postgresql.UUID(as_uuid=True), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('sender_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('receiver_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('subject', sa.Text(), server_default='', nullable=False),
        sa.Column('body', sa.Text(), server_default='', nullable=False),
        # No FK: replies keep their thread after the root is deleted
        sa.Column('thread_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('is_read', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('is_draft', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('is_trashed', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['sender_id'], ['user.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['receiver_id'], ['user.id'], ondelete='CASCADE')
    )

    op.create_index('ix_message_sender_id', 'message', ['sender_id'])
    op.create_index('ix_message_receiver_id', 'message', ['receiver_id'])
    op.create_index('ix_message_thread_id', 'message', ['thread_id'])
    op.create_index('idx_message_inbox', 'message', ['receiver_id', 'is_draft', 'is_trashed', 'created_at'])
    op.create_index('idx_message_drafts', 'message', ['sender_id', 'is_draft', 'updated_at'])

    op.execute("""
        CREATE TRIGGER update_message_updated_at
        BEFORE UPDATE ON message
        FOR EACH ROW
        EXECUTE FUNCTION update_updated_at_column();
    """)


def downgrade():
    op.execute('DROP TRIGGER IF EXISTS update_message_updated_at ON message')
    op.drop_index('idx_message_drafts', table_name='message')
    op.drop_index('idx_message_inbox', table_name='message')
    op.drop_index('ix_message_thread_id', table_name='message')
    op.drop_index('ix_message_receiver_id', table_name='message')
    op.drop_index('ix_message_sender_id', table_name='message')
    op.drop_table('message')
