"""create_scans_table

Revision ID: 001
Revises: 
Create Date: 2025-12-06 19:22:56.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

scan_status = sa.Enum('pending', 'processing', 'completed', 'failed', name='scanstatus')


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'scans',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('url', sa.String(2048), nullable=False),
        sa.Column('cms_type', sa.String(64), nullable=True),
        sa.Column('status', scan_status, nullable=False),
        sa.Column('current_step', sa.String(64), nullable=True),
        sa.Column('failed_step', sa.String(64), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('celery_task_id', sa.String(128), nullable=True),
        sa.Column('lighthouse_performance', sa.Integer(), nullable=True),
        sa.Column('lighthouse_accessibility', sa.Integer(), nullable=True),
        sa.Column('lighthouse_seo', sa.Integer(), nullable=True),
        sa.Column('cta_score', sa.Integer(), nullable=True),
        sa.Column('cta_details', sa.JSON(), nullable=True),
        sa.Column('form_friction_score', sa.Integer(), nullable=True),
        sa.Column('form_details', sa.JSON(), nullable=True),
        sa.Column('trust_signals', sa.JSON(), nullable=True),
        sa.Column('mobile_issues', sa.JSON(), nullable=True),
        sa.Column('readability_score', sa.Integer(), nullable=True),
        sa.Column('image_issues', sa.JSON(), nullable=True),
        sa.Column('schema_detected', sa.JSON(), nullable=True),
        sa.Column('screenshot_path', sa.String(512), nullable=True),
        sa.Column('queued_at', sa.DateTime(), nullable=False),
        sa.Column('started_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_scans_id'), 'scans', ['id'], unique=False)
    op.create_index(op.f('ix_scans_status'), 'scans', ['status'], unique=False)
    op.create_index(op.f('ix_scans_celery_task_id'), 'scans', ['celery_task_id'], unique=False)
    op.create_index('idx_scans_created_at', 'scans', ['created_at'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('idx_scans_created_at', table_name='scans')
    op.drop_index(op.f('ix_scans_celery_task_id'), table_name='scans')
    op.drop_index(op.f('ix_scans_status'), table_name='scans')
    op.drop_index(op.f('ix_scans_id'), table_name='scans')
    op.drop_table('scans')
    scan_status.drop(op.get_bind(), checkfirst=True)
