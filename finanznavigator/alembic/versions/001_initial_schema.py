"""initial_schema

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 12:00:00.000000 UTC

Creates the leads table: one row per wizard session, flat key figures plus
the full Profile as a JSONB blob.
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "leads",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("session_id", sa.String(length=36), nullable=False, comment="Profile meta.session_id — upsert key"),
        sa.Column("is_finished", sa.Boolean(), nullable=False),
        # lead form
        sa.Column("lead_name", sa.String(length=200), nullable=False),
        sa.Column("lead_email", sa.String(length=320), nullable=False),
        sa.Column("lead_phone", sa.String(length=50), nullable=False),
        sa.Column("lead_consent", sa.Boolean(), nullable=False),
        # intake answers
        sa.Column("age", sa.Integer(), nullable=True),
        sa.Column("household_type", sa.String(length=20), nullable=False),
        sa.Column("employment", sa.String(length=20), nullable=False),
        sa.Column("net_income", sa.Float(), nullable=True),
        sa.Column("fixed_costs", sa.Float(), nullable=True),
        sa.Column("savings", sa.Float(), nullable=True),
        sa.Column("investments", sa.Float(), nullable=True),
        sa.Column("mortgage_remaining", sa.Float(), nullable=True),
        sa.Column("consumer_loans_monthly", sa.Float(), nullable=True),
        sa.Column("emergency_fund_months", sa.Integer(), nullable=False),
        sa.Column("has_private_pension", sa.String(length=10), nullable=False),
        sa.Column("has_income_protection", sa.String(length=10), nullable=False),
        # scores
        sa.Column("score_overall", sa.Integer(), nullable=False),
        sa.Column("score_liquidity", sa.Integer(), nullable=False),
        sa.Column("score_wealth", sa.Integer(), nullable=False),
        sa.Column("score_protection", sa.Integer(), nullable=False),
        sa.Column("score_retirement", sa.Integer(), nullable=False),
        sa.Column("score_debt", sa.Integer(), nullable=False),
        # module key figures
        sa.Column("pension_gap_monthly", sa.Float(), nullable=True),
        sa.Column("pension_capital_needed", sa.Float(), nullable=True),
        sa.Column("finance_loan_amount", sa.Float(), nullable=True),
        sa.Column("finance_ltv", sa.Float(), nullable=True),
        sa.Column("risk_runway_months", sa.Float(), nullable=True),
        sa.Column("risk_gap_to_safety", sa.Float(), nullable=True),
        sa.Column("profile_data", postgresql.JSONB(astext_type=sa.Text()), nullable=False, comment="Full Profile serialized as JSON — restores the session"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_leads_session_id"), "leads", ["session_id"], unique=True)


def downgrade() -> None:
    op.drop_index(op.f("ix_leads_session_id"), table_name="leads")
    op.drop_table("leads")
