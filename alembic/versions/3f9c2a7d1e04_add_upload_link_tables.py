"""add_upload_link_tables

Revision ID: 3f9c2a7d1e04
Revises:
Create Date: 2025-03-04 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3f9c2a7d1e04'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create upload_link_audit, token_validation_log and file_upload_audit tables."""

    # Create upload_link_audit table
    op.create_table(
        'upload_link_audit',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('token_id', sa.String(length=100), nullable=False),
        sa.Column('owner_id', sa.String(length=100), nullable=False),
        sa.Column('client_name', sa.String(length=255), nullable=False),
        sa.Column('sections', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('folder_paths', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('generated_by', sa.String(length=255), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='active'),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('files_uploaded', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('generated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint("status IN ('active', 'expired', 'revoked')", name='ck_upload_link_audit_status'),
        comment='Audit records for issued document upload links'
    )
    op.create_index('ix_upload_link_audit_id', 'upload_link_audit', ['id'], unique=False)
    op.create_index('ix_upload_link_audit_token_id', 'upload_link_audit', ['token_id'], unique=True)
    op.create_index('ix_upload_link_audit_owner_id', 'upload_link_audit', ['owner_id'], unique=False)
    op.create_index('ix_upload_link_audit_status', 'upload_link_audit', ['status'], unique=False)
    op.create_index('ix_upload_link_audit_expires_at', 'upload_link_audit', ['expires_at'], unique=False)

    # Create token_validation_log table
    op.create_table(
        'token_validation_log',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('token_id', sa.String(length=100), nullable=True),
        sa.Column('client_ip', sa.String(length=100), nullable=False),
        sa.Column('user_agent', sa.Text(), nullable=False),
        sa.Column('validation_result', sa.String(length=20), nullable=False),
        sa.Column('reason', sa.String(length=50), nullable=True),
        sa.Column('validated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_token_validation_log_id', 'token_validation_log', ['id'], unique=False)
    op.create_index('ix_token_validation_log_token_id', 'token_validation_log', ['token_id'], unique=False)

    # Create file_upload_audit table
    op.create_table(
        'file_upload_audit',
        sa.Column('id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('token_id', sa.String(length=100), nullable=False),
        sa.Column('owner_id', sa.String(length=100), nullable=False),
        sa.Column('client_name', sa.String(length=255), nullable=False),
        sa.Column('section', sa.String(length=255), nullable=False),
        sa.Column('original_filename', sa.String(length=255), nullable=False),
        sa.Column('storage_path', sa.Text(), nullable=False, server_default=''),
        sa.Column('file_size', sa.BigInteger(), nullable=False),
        sa.Column('uploaded_by', sa.String(length=100), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('uploaded_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_file_upload_audit_id', 'file_upload_audit', ['id'], unique=False)
    op.create_index('ix_file_upload_audit_token_id', 'file_upload_audit', ['token_id'], unique=False)
    op.create_index('ix_file_upload_audit_owner_id', 'file_upload_audit', ['owner_id'], unique=False)


def downgrade() -> None:
    """Drop the upload link tables."""
    op.drop_index('ix_file_upload_audit_owner_id', table_name='file_upload_audit')
    op.drop_index('ix_file_upload_audit_token_id', table_name='file_upload_audit')
    op.drop_index('ix_file_upload_audit_id', table_name='file_upload_audit')
    op.drop_table('file_upload_audit')

    op.drop_index('ix_token_validation_log_token_id', table_name='token_validation_log')
    op.drop_index('ix_token_validation_log_id', table_name='token_validation_log')
    op.drop_table('token_validation_log')

    op.drop_index('ix_upload_link_audit_expires_at', table_name='upload_link_audit')
    op.drop_index('ix_upload_link_audit_status', table_name='upload_link_audit')
    op.drop_index('ix_upload_link_audit_owner_id', table_name='upload_link_audit')
    op.drop_index('ix_upload_link_audit_token_id', table_name='upload_link_audit')
    op.drop_index('ix_upload_link_audit_id', table_name='upload_link_audit')
    op.drop_table('upload_link_audit')
