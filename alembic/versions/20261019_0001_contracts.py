"""Create contracts and contract_audit tables.

Revision ID: 0001_contracts
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001_contracts'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'contracts',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('client_id', sa.String(100), nullable=False),
        sa.Column('contract_number', sa.String(32), nullable=False),

        # Terms
        sa.Column('tier', sa.String(100), nullable=False),
        sa.Column('annual_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('currency', sa.String(3), nullable=False, server_default='SEK'),
        sa.Column('billing_interval', sa.String(20), nullable=False, server_default='annual'),
        sa.Column('vat_rate_pct', sa.Numeric(5, 2), nullable=False, server_default='25'),
        sa.Column('contract_start_date', sa.Date(), nullable=False),
        sa.Column('contract_duration_months', sa.Integer(), nullable=False, server_default='12'),
        sa.Column('custom_terms', sa.JSON(), nullable=True),

        # Parties
        sa.Column('company_name', sa.String(255), nullable=True),
        sa.Column('signer_name', sa.String(255), nullable=False),
        sa.Column('signer_email', sa.String(255), nullable=False),
        sa.Column('signer_title', sa.String(255), nullable=True),
        sa.Column('reviewer_name', sa.String(255), nullable=True),
        sa.Column('reviewer_email', sa.String(255), nullable=True),
        sa.Column('reviewer_title', sa.String(255), nullable=True),

        # Lifecycle and links
        sa.Column('status', sa.String(30), nullable=False, server_default='draft'),
        sa.Column('reviewer_token_hash', sa.String(64), nullable=True),
        sa.Column('reviewer_token_expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('signing_token_hash', sa.String(64), nullable=True),
        sa.Column('token_expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('viewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('signed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('signature_image', sa.Text(), nullable=True),
        sa.Column('document_hash_sha256', sa.String(64), nullable=True),
        sa.Column('signed_document_hash_sha256', sa.String(64), nullable=True),

        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_contracts_client_id', 'contracts', ['client_id'])
    op.create_index('ix_contracts_contract_number', 'contracts', ['contract_number'], unique=True)
    op.create_index('ix_contracts_signer_email', 'contracts', ['signer_email'])
    op.create_index('ix_contracts_status', 'contracts', ['status'])
    op.create_index('ix_contracts_reviewer_token_hash', 'contracts', ['reviewer_token_hash'], unique=True)
    op.create_index('ix_contracts_signing_token_hash', 'contracts', ['signing_token_hash'], unique=True)

    op.create_table(
        'contract_audit',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column(
            'contract_id', sa.String(36),
            sa.ForeignKey('contracts.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column('sequence', sa.Integer(), nullable=False),
        sa.Column('event_type', sa.String(50), nullable=False),
        sa.Column('document_hash_sha256', sa.String(64), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('actor_email', sa.String(255), nullable=True),
        sa.Column('ip_address', sa.String(50), nullable=True),
        sa.Column('user_agent', sa.String(512), nullable=True),
        sa.Column('previous_hash', sa.String(64), nullable=True),
        sa.Column('entry_hash', sa.String(64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('contract_id', 'sequence', name='uq_contract_audit_sequence'),
    )
    op.create_index('ix_contract_audit_contract_id', 'contract_audit', ['contract_id'])
    op.create_index('ix_contract_audit_event_type', 'contract_audit', ['event_type'])
    op.create_index('ix_contract_audit_created_at', 'contract_audit', ['created_at'])


def downgrade() -> None:
    op.drop_table('contract_audit')
    op.drop_table('contracts')
