"""
Profile lifecycle — the session layer around the pure core.

Every function takes a Profile and returns a new one; nothing here performs I/O.
Timestamps are refreshed here and never inside the scoring engine or the
calculators, so the core stays a pure function of its inputs.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from finanznavigator.profile.schemas import INPUT_SECTIONS, Lead, Meta, Profile
from finanznavigator.scoring.engine import calculate_scores

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def touch(profile: Profile) -> Profile:
    """Refresh meta.last_updated_at."""
    meta = profile.meta.model_copy(update={"last_updated_at": _now()})
    return profile.model_copy(update={"meta": meta})


def new_profile() -> Profile:
    """All-default profile with a freshly generated session id."""
    now = _now()
    profile = Profile(meta=Meta(created_at=now, last_updated_at=now))
    logger.info("New profile session_id=%s", profile.meta.session_id)
    return profile


def reset_profile(profile: Optional[Profile] = None) -> Profile:
    """A reset never reuses the old session id — it is a brand-new profile."""
    fresh = new_profile()
    if profile is not None:
        logger.info(
            "Profile reset old_session_id=%s new_session_id=%s",
            profile.meta.session_id,
            fresh.meta.session_id,
        )
    return fresh


def update_section(profile: Profile, section: str, updates: dict[str, Any]) -> Profile:
    """
    Merge wizard answers into one input section.

    Raises:
        KeyError: section is not a client-writable input section.
        pydantic.ValidationError: merged section fails structural validation,
            or updates name a field the wizard may not set (cashflow.free_cash_monthly).
    """
    answers_model = INPUT_SECTIONS[section]
    current = getattr(profile, section)
    writable = set(answers_model.model_fields)
    answers = answers_model.model_validate({**current.model_dump(include=writable), **updates})
    merged = current.model_copy(update=answers.model_dump())
    if section == "cashflow":
        # stale once income or fixed costs may have changed
        merged = merged.model_copy(update={"free_cash_monthly": None})
    return touch(profile.model_copy(update={section: merged}))


def finish_intake(profile: Profile) -> Profile:
    """Score the completed intake and mark the profile finished (stays finished afterwards)."""
    scored = calculate_scores(profile)
    meta = scored.meta.model_copy(update={"is_finished": True, "last_updated_at": _now()})
    logger.info(
        "Intake finished session_id=%s overall=%d",
        profile.meta.session_id,
        scored.scores.overall,
    )
    return scored.model_copy(update={"meta": meta})


def capture_lead(profile: Profile, lead: Lead) -> Profile:
    return touch(profile.model_copy(update={"lead": lead}))


def should_persist(profile: Profile) -> bool:
    """
    Autosave rule: persist once the intake is finished, or as soon as the user has
    consented and left an e-mail — never empty sessions before that.
    """
    has_consent_and_email = profile.lead.consent and bool(profile.lead.email)
    return profile.meta.is_finished or has_consent_and_email


def to_persistence_row(profile: Profile) -> dict[str, Any]:
    """
    Flatten a profile into the leads-table row keyed by session_id.
    The full profile travels along as JSON in profile_data.
    """
    pension = profile.module_results.pension
    financing = profile.module_results.financing
    risk = profile.module_results.risk
    return {
        "session_id": profile.meta.session_id,
        "created_at": profile.meta.created_at or _now(),
        "is_finished": profile.meta.is_finished,
        "lead_name": profile.lead.name,
        "lead_email": profile.lead.email,
        "lead_phone": profile.lead.phone,
        "lead_consent": profile.lead.consent,
        "age": profile.basic.age,
        "household_type": profile.basic.household_type.value,
        "employment": profile.basic.employment.value,
        "net_income": profile.cashflow.net_income_monthly,
        "fixed_costs": profile.cashflow.fixed_costs_monthly,
        "savings": profile.assets.savings,
        "investments": profile.assets.investments,
        "mortgage_remaining": profile.debts.mortgage_remaining,
        "consumer_loans_monthly": profile.debts.consumer_loans_monthly,
        "emergency_fund_months": profile.protection.emergency_fund_months,
        "has_private_pension": profile.protection.private_pension.value,
        "has_income_protection": profile.protection.income_protection.value,
        "score_overall": profile.scores.overall,
        "score_liquidity": profile.scores.liquidity,
        "score_wealth": profile.scores.wealth,
        "score_protection": profile.scores.protection,
        "score_retirement": profile.scores.retirement,
        "score_debt": profile.scores.debt,
        "pension_gap_monthly": pension.gap_monthly if pension else None,
        "pension_capital_needed": pension.capital_needed if pension else None,
        "finance_loan_amount": financing.loan_amount if financing else None,
        "finance_ltv": financing.ltv if financing else None,
        "risk_runway_months": risk.runway_months if risk else None,
        "risk_gap_to_safety": risk.gap_to_safety if risk else None,
        "profile_data": profile.model_dump(mode="json"),
    }
