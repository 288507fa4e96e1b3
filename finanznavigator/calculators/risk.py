"""
Income-shock stress test: how long do liquid reserves last, and do they cover
a 3/6/12-month loss of income?

  burn      = fixed + debt service + variable costs
  reserves  = savings + quick investments
  runway    = reserves / burn (one decimal; RUNWAY_UNBOUNDED when burn ≤ 0)
  deficit   = max(0, burn − replacement income)
  need      = deficit × shock months
  gap       = max(0, need − reserves)

Assessment: red if runway < 3 or gap > 0, yellow if runway < 6, else green.
"""
from __future__ import annotations

from finanznavigator.calculators.formulas import round_to
from finanznavigator.calculators.schemas import RiskInput
from finanznavigator.profile.schemas import (
    ModuleId,
    Profile,
    RiskResult,
    TrafficLight,
    YesNoUnknown,
)
from finanznavigator.scoring.engine import apply_module_result
from finanznavigator.scoring.traffic_light import classify_at_least

RUNWAY_UNBOUNDED = 999.0
RUNWAY_GREEN_MIN = 6
RUNWAY_YELLOW_MIN = 3

DEFAULT_NET_INCOME = 2_500
DEFAULT_FIXED_COSTS = 1_500
DEFAULT_SHOCK_MONTHS = 6


def runway_months(liquid_reserves: float, monthly_burn: float) -> float:
    if monthly_burn <= 0:
        return RUNWAY_UNBOUNDED
    return round_to(liquid_reserves / monthly_burn, 1)


def _summary(assessment: TrafficLight, runway: float, shock_months: int, gap: float) -> str:
    if assessment == TrafficLight.green:
        return (
            f"Very solid! Your reserves last about {runway:g} months without income. "
            f"The selected {shock_months}-month scenario is financially covered."
        )
    if assessment == TrafficLight.yellow:
        return (
            f"You have some buffer ({runway:g} months), but longer outages get tight. "
            f"About €{gap:,.0f} is missing to fully cover the {shock_months}-month scenario."
        )
    return (
        f"Critical: your reserves only cover about {runway:g} months. "
        f"A {shock_months}-month loss of income leaves a gap of €{gap:,.0f}."
    )


def calculate_risk(inputs: RiskInput) -> RiskResult:
    monthly_burn = inputs.fixed_costs_monthly + inputs.debt_payments_monthly + inputs.variable_costs_monthly
    liquid_reserves = inputs.savings + inputs.quick_investments
    runway = runway_months(liquid_reserves, monthly_burn)

    shock_deficit = max(0.0, monthly_burn - inputs.support_monthly)
    total_shock_need = shock_deficit * inputs.shock_months
    gap_to_safety = max(0.0, total_shock_need - liquid_reserves)

    if gap_to_safety > 0:
        assessment = TrafficLight.red
    else:
        assessment = classify_at_least(runway, RUNWAY_GREEN_MIN, RUNWAY_YELLOW_MIN)

    summary = _summary(assessment, runway, inputs.shock_months, gap_to_safety)
    if inputs.income_protection == YesNoUnknown.no:
        summary += " Without income protection you carry the risk of long-term disability alone."

    return RiskResult(
        net_income_monthly=inputs.net_income_monthly,
        fixed_costs_monthly=inputs.fixed_costs_monthly,
        debt_payments_monthly=inputs.debt_payments_monthly,
        variable_costs_monthly=inputs.variable_costs_monthly,
        monthly_burn=monthly_burn,
        savings=inputs.savings,
        quick_investments=inputs.quick_investments,
        liquid_reserves=liquid_reserves,
        runway_months=runway,
        shock_months=inputs.shock_months,
        support_monthly=inputs.support_monthly,
        shock_deficit_monthly=shock_deficit,
        total_shock_need=total_shock_need,
        gap_to_safety=gap_to_safety,
        income_protection=inputs.income_protection,
        assessment=assessment,
        generated_summary=summary,
    )


def risk_defaults(profile: Profile) -> RiskInput:
    return RiskInput(
        net_income_monthly=profile.cashflow.net_income_monthly or DEFAULT_NET_INCOME,
        fixed_costs_monthly=profile.cashflow.fixed_costs_monthly or DEFAULT_FIXED_COSTS,
        debt_payments_monthly=profile.debts.consumer_loans_monthly or 0,
        variable_costs_monthly=0,
        savings=profile.assets.savings or 0,
        quick_investments=profile.assets.investments or 0,
        shock_months=DEFAULT_SHOCK_MONTHS,
        support_monthly=0,
        income_protection=profile.protection.income_protection,
    )


def run_risk_module(profile: Profile, inputs: RiskInput) -> Profile:
    """
    Calculate, store the result, write the income-protection answer back into
    the profile and re-score the protection domain.
    """
    protection = profile.protection.model_copy(update={"income_protection": inputs.income_protection})
    profile = profile.model_copy(update={"protection": protection})
    return apply_module_result(profile, ModuleId.risk, calculate_risk(inputs))
