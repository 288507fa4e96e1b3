"""
Wizard business-rule validator.

Runs AFTER pydantic structural validation. Each validator collects every
violation in a single pass and raises ValueError with a JSON-encoded list of
{field, issue} dicts so the route can build the standard error envelope.

Rules:
  intake     1. age present and within 16–100
             2. net income present and > 0
             3. fixed costs present and > 0
  pension    4. age within 16–70   5. net income > 0   6. retirement age > age
  financing  7. purchase price > 0   8. net income > 0   9. term within 5–35 years
  risk       10. monthly burn (fixed + debt + variable) > 0
  lead       11. name present   12. e-mail contains "@"   13. consent given

The calculators themselves never raise on these inputs; the rules keep the
wizard's answers inside the domain the estimates are meant for.
"""
from __future__ import annotations

import json
import logging
from typing import Any

from finanznavigator.calculators.schemas import FinancingInput, PensionInput, RiskInput
from finanznavigator.profile.schemas import Lead, Profile

logger = logging.getLogger(__name__)

_AGE_MIN = 16
_AGE_MAX = 100
_PENSION_AGE_MAX = 70
_TERM_MIN_YEARS = 5
_TERM_MAX_YEARS = 35


def _raise_if_any(violations: list[dict[str, Any]], scope: str, session_id: str = "") -> None:
    if violations:
        # Log only the scope, session id and count: never the submitted values
        logger.info(
            "Business-rule validation failed: %d violation(s) scope=%s session_id=%s",
            len(violations),
            scope,
            session_id,
        )
        raise ValueError(json.dumps(violations))


def validate_intake(profile: Profile) -> None:
    """Rules the basic check must satisfy before it can be scored."""
    violations: list[dict[str, Any]] = []

    age = profile.basic.age
    if not age:
        violations.append({"field": "basic.age", "issue": "Please enter your age."})
    elif age < _AGE_MIN or age > _AGE_MAX:
        violations.append({
            "field": "basic.age",
            "issue": f"Age {age} is outside the supported range of {_AGE_MIN}–{_AGE_MAX}.",
        })

    if not profile.cashflow.net_income_monthly:
        violations.append({
            "field": "cashflow.net_income_monthly",
            "issue": "Please enter your monthly net household income.",
        })
    if not profile.cashflow.fixed_costs_monthly:
        violations.append({
            "field": "cashflow.fixed_costs_monthly",
            "issue": "Please enter your monthly fixed costs.",
        })

    _raise_if_any(violations, "intake", profile.meta.session_id)


def validate_pension_input(inputs: PensionInput) -> None:
    violations: list[dict[str, Any]] = []

    if inputs.age < _AGE_MIN or inputs.age > _PENSION_AGE_MAX:
        violations.append({
            "field": "age",
            "issue": f"Age {inputs.age} is outside the supported range of {_AGE_MIN}–{_PENSION_AGE_MAX}.",
        })
    if inputs.net_income_monthly <= 0:
        violations.append({"field": "net_income_monthly", "issue": "Please enter your net income."})
    if inputs.desired_retirement_age <= inputs.age:
        violations.append({
            "field": "desired_retirement_age",
            "issue": (
                f"Retirement age {inputs.desired_retirement_age} must be higher "
                f"than the current age {inputs.age}."
            ),
        })

    _raise_if_any(violations, "pension")


def validate_financing_input(inputs: FinancingInput) -> None:
    violations: list[dict[str, Any]] = []

    if inputs.purchase_price <= 0:
        violations.append({"field": "purchase_price", "issue": "Please enter a realistic purchase price."})
    if inputs.net_income_monthly <= 0:
        violations.append({"field": "net_income_monthly", "issue": "Please enter your net income."})
    if not _TERM_MIN_YEARS <= inputs.term_years <= _TERM_MAX_YEARS:
        violations.append({
            "field": "term_years",
            "issue": f"Loan term must be between {_TERM_MIN_YEARS} and {_TERM_MAX_YEARS} years.",
        })

    _raise_if_any(violations, "financing")


def validate_risk_input(inputs: RiskInput) -> None:
    violations: list[dict[str, Any]] = []

    burn = inputs.fixed_costs_monthly + inputs.debt_payments_monthly + inputs.variable_costs_monthly
    if burn <= 0:
        violations.append({"field": "fixed_costs_monthly", "issue": "Please enter your monthly costs."})

    _raise_if_any(violations, "risk")


def validate_lead(lead: Lead) -> None:
    """Report unlock form: name, a plausible e-mail and explicit consent."""
    violations: list[dict[str, Any]] = []

    if not lead.name.strip():
        violations.append({"field": "name", "issue": "Name is required."})
    if not lead.email.strip() or "@" not in lead.email:
        violations.append({"field": "email", "issue": "A valid e-mail address is required."})
    if not lead.consent:
        violations.append({"field": "consent", "issue": "Consent is required to unlock the report."})

    _raise_if_any(violations, "lead")
