"""
models/lead.py — SQLAlchemy ORM model for captured leads.

Table: leads
One row per wizard session (unique session_id), written by upsert whenever the
autosave rule fires. Flat columns make the row queryable for advisers; the
full Profile travels along in profile_data so a session can be restored.
"""
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON, Boolean, DateTime, Float, Integer, String
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from finanznavigator.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LeadORM(Base):
    __tablename__ = "leads"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    session_id: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        unique=True,
        index=True,
        comment="Profile meta.session_id — upsert key",
    )
    is_finished: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # --- Lead form ---
    lead_name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    lead_email: Mapped[str] = mapped_column(String(320), nullable=False, default="")
    lead_phone: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    lead_consent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # --- Intake answers ---
    age: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    household_type: Mapped[str] = mapped_column(String(20), nullable=False)
    employment: Mapped[str] = mapped_column(String(20), nullable=False)
    net_income: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    fixed_costs: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    savings: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    investments: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    mortgage_remaining: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    consumer_loans_monthly: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    emergency_fund_months: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    has_private_pension: Mapped[str] = mapped_column(String(10), nullable=False)
    has_income_protection: Mapped[str] = mapped_column(String(10), nullable=False)

    # --- Scores ---
    score_overall: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    score_liquidity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    score_wealth: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    score_protection: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    score_retirement: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    score_debt: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # --- Module key figures (NULL until the module has run) ---
    pension_gap_monthly: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    pension_capital_needed: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    finance_loan_amount: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    finance_ltv: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    risk_runway_months: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    risk_gap_to_safety: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    profile_data: Mapped[dict] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=False,
        comment="Full Profile serialized as JSON — restores the session",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
        nullable=False,
    )
