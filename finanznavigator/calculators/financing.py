"""
Financing / mortgage calculator with a KIM-style affordability check.
Pure Python, deterministic. Same input → same output.

Sequence:
  1. ancillary total = sum of active cost items against the purchase price
  2. loan = max(0, price + ancillary − equity − sweat equity)   (0 → no financing needed)
  3. monthly annuity per rate scenario (primary, stress)
  4. DSTI per scenario = (annuity + existing debt service) / net income
  5. LTV = loan / purchase price
  6. traffic lights: LTV ≤ 90 % / ≤ 95 %, DSTI ≤ 40 % / ≤ 45 %, term ≤ 35 years (two-state)
  7. assessment: worst of LTV and primary DSTI; a red stress DSTI pushes green to yellow only
"""
from __future__ import annotations

import logging

from finanznavigator.calculators.formulas import (
    MONTHS_PER_YEAR,
    ancillary_total,
    annuity_payment,
    round_half_up,
)
from finanznavigator.calculators.schemas import FinancingInput, default_cost_items
from finanznavigator.profile.schemas import (
    AncillaryCosts,
    FinancingResult,
    FinancingScenario,
    KimCheck,
    ModuleId,
    Profile,
    TrafficLight,
)
from finanznavigator.scoring.engine import apply_module_result
from finanznavigator.scoring.traffic_light import classify_at_most

logger = logging.getLogger(__name__)

# ===========================================================================
# KIM THRESHOLDS (inclusive)
# ===========================================================================

LTV_GREEN_MAX   = 0.90
LTV_YELLOW_MAX  = 0.95
DSTI_GREEN_MAX  = 0.40
DSTI_YELLOW_MAX = 0.45
TERM_MAX_YEARS  = 35

# ===========================================================================
# DEFAULT ASSUMPTIONS
# ===========================================================================

DEFAULT_PURCHASE_PRICE = 300_000
DEFAULT_EQUITY         = 50_000
DEFAULT_NET_INCOME     = 3_000
DEFAULT_TERM_YEARS     = 30
DEFAULT_RATE_A         = 0.035    # fixed
DEFAULT_RATE_B         = 0.045    # variable / stress

_SEVERITY = {TrafficLight.green: 0, TrafficLight.yellow: 1, TrafficLight.red: 2}

_SUMMARIES = {
    TrafficLight.green: "Your financing plan looks solid and stays within the KIM lending criteria.",
    TrafficLight.yellow: (
        "The plan is feasible but sits in borderline territory. "
        "Review your equity or the loan term."
    ),
    TrafficLight.red: (
        "Attention: key ratios (loan-to-value or debt service) are outside the recommended limits."
    ),
}
_NO_FINANCING_SUMMARY = "Your equity covers the purchase price and closing costs. No loan is needed."


def _safe_denominator(value: float) -> float:
    # Zero income or price saturates the ratio instead of dividing by zero
    return value if value > 0 else 1.0


def _build_scenario(label: str, rate: float, payment: float, dsti: float, term_years: int) -> FinancingScenario:
    return FinancingScenario(
        label=label,
        interest_pa=rate,
        payment_monthly=round_half_up(payment),
        total_repayment=round_half_up(payment * term_years * MONTHS_PER_YEAR),
        dsti=dsti,
    )


def assess_financing(ltv_status: TrafficLight, dsti_a_status: TrafficLight, dsti_b_status: TrafficLight) -> TrafficLight:
    """
    Worst of LTV and primary DSTI. The stress scenario can only push green to yellow;
    it never demotes an already yellow or red result.
    """
    assessment = max(ltv_status, dsti_a_status, key=_SEVERITY.__getitem__)
    if assessment == TrafficLight.green and dsti_b_status == TrafficLight.red:
        assessment = TrafficLight.yellow
    return assessment


def calculate_financing(inputs: FinancingInput) -> FinancingResult:
    """Compute loan, annuities, DSTI, LTV and the KIM traffic lights for two rate scenarios."""
    costs_total = ancillary_total(inputs.ancillary_items, inputs.purchase_price)
    loan_amount = max(
        0.0,
        (inputs.purchase_price + costs_total) - (inputs.equity + inputs.equity_work),
    )
    ancillary = AncillaryCosts(items=list(inputs.ancillary_items), total=costs_total)
    term_status = classify_at_most(inputs.term_years, TERM_MAX_YEARS)

    if loan_amount <= 0:
        zero_a = _build_scenario("Scenario A", inputs.rate_a, 0.0, 0.0, inputs.term_years)
        zero_b = _build_scenario("Scenario B", inputs.rate_b, 0.0, 0.0, inputs.term_years)
        return FinancingResult(
            purchase_price=inputs.purchase_price,
            purpose=inputs.purpose,
            equity=inputs.equity,
            equity_work=inputs.equity_work,
            ancillary_costs=ancillary,
            loan_amount=0.0,
            financing_needed=False,
            term_years=inputs.term_years,
            net_income_monthly=inputs.net_income_monthly,
            existing_debt_payments_monthly=inputs.existing_debt_payments_monthly,
            scenario_a=zero_a,
            scenario_b=zero_b,
            ltv=0.0,
            kim_check=KimCheck(
                ltv_status=TrafficLight.green,
                dsti_a_status=TrafficLight.green,
                dsti_b_status=TrafficLight.green,
                term_status=TrafficLight.green,
            ),
            assessment=TrafficLight.green,
            generated_summary=_NO_FINANCING_SUMMARY,
        )

    pmt_a = annuity_payment(loan_amount, inputs.rate_a, inputs.term_years)
    pmt_b = annuity_payment(loan_amount, inputs.rate_b, inputs.term_years)

    income = _safe_denominator(inputs.net_income_monthly)
    dsti_a = (pmt_a + inputs.existing_debt_payments_monthly) / income
    dsti_b = (pmt_b + inputs.existing_debt_payments_monthly) / income
    ltv = loan_amount / _safe_denominator(inputs.purchase_price)

    kim_check = KimCheck(
        ltv_status=classify_at_most(ltv, LTV_GREEN_MAX, LTV_YELLOW_MAX),
        dsti_a_status=classify_at_most(dsti_a, DSTI_GREEN_MAX, DSTI_YELLOW_MAX),
        dsti_b_status=classify_at_most(dsti_b, DSTI_GREEN_MAX, DSTI_YELLOW_MAX),
        term_status=term_status,
    )
    assessment = assess_financing(kim_check.ltv_status, kim_check.dsti_a_status, kim_check.dsti_b_status)

    return FinancingResult(
        purchase_price=inputs.purchase_price,
        purpose=inputs.purpose,
        equity=inputs.equity,
        equity_work=inputs.equity_work,
        ancillary_costs=ancillary,
        loan_amount=loan_amount,
        financing_needed=True,
        term_years=inputs.term_years,
        net_income_monthly=inputs.net_income_monthly,
        existing_debt_payments_monthly=inputs.existing_debt_payments_monthly,
        scenario_a=_build_scenario("Scenario A", inputs.rate_a, pmt_a, dsti_a, inputs.term_years),
        scenario_b=_build_scenario("Scenario B", inputs.rate_b, pmt_b, dsti_b, inputs.term_years),
        ltv=ltv,
        kim_check=kim_check,
        assessment=assessment,
        generated_summary=_SUMMARIES[assessment],
    )


def financing_defaults(profile: Profile) -> FinancingInput:
    """Pre-fill the financing wizard: savings as equity, income and consumer loans from the intake."""
    return FinancingInput(
        purchase_price=DEFAULT_PURCHASE_PRICE,
        ancillary_items=default_cost_items(),
        equity=profile.assets.savings or DEFAULT_EQUITY,
        equity_work=0,
        net_income_monthly=profile.cashflow.net_income_monthly or DEFAULT_NET_INCOME,
        existing_debt_payments_monthly=profile.debts.consumer_loans_monthly or 0,
        term_years=DEFAULT_TERM_YEARS,
        rate_a=DEFAULT_RATE_A,
        rate_b=DEFAULT_RATE_B,
    )


def run_financing_module(profile: Profile, inputs: FinancingInput) -> Profile:
    """Calculate, store the result on the profile and re-score the debt domain."""
    result = calculate_financing(inputs)
    if not result.financing_needed:
        logger.info("Financing short-circuit: equity covers cost session_id=%s", profile.meta.session_id)
    return apply_module_result(profile, ModuleId.financing, result)
