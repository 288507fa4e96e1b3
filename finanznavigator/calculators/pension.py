"""
Pension-gap calculator.
Pure Python, deterministic. Same input → same output.

Sequence:
  1. effective replacement rate = base rate (× 0.9 for part-time / career break)
  2. estimated statutory pension = round(net income × effective rate)
  3. gap = max(0, desired pension − statutory pension)
  4. capital needed = gap × 12 × payout years  (desired pension is in today's money)
  5. months to retirement = max(1, retirement age − age) × 12
  6. per return scenario: required saving (future-value adjusted), extra saving on top of current
  7. assessment on gap ratio: > 25 % red, > 10 % yellow, else green
"""
from __future__ import annotations

from finanznavigator.calculators.formulas import (
    MONTHS_PER_YEAR,
    required_monthly_saving,
    round_half_up,
)
from finanznavigator.calculators.schemas import PensionInput
from finanznavigator.profile.schemas import (
    ModuleId,
    PensionResult,
    PensionScenario,
    Profile,
    TrafficLight,
)
from finanznavigator.scoring.engine import apply_module_result
from finanznavigator.scoring.traffic_light import classify_at_most

# ===========================================================================
# ASSUMPTIONS
# ===========================================================================

STATUTORY_REPLACEMENT_RATE = 0.60
PART_TIME_RATE_FACTOR      = 0.90
DESIRED_PENSION_SHARE      = 0.70    # default target: 70 % of current net income
DEFAULT_RETIREMENT_AGE     = 65
DEFAULT_AGE                = 30
DEFAULT_NET_INCOME         = 2_000

GAP_RATIO_GREEN_MAX  = 0.10
GAP_RATIO_YELLOW_MAX = 0.25


def _scenario(inputs: PensionInput, return_pa: float, capital_needed: float, months: int) -> PensionScenario:
    required = round_half_up(
        required_monthly_saving(capital_needed, inputs.current_savings_stock, return_pa, months)
    )
    extra = max(0, round_half_up(required - inputs.current_savings_monthly))
    return PensionScenario(return_pa=return_pa, required_pmt=required, extra_pmt=extra)


def _assess(gap_monthly: float, desired_pension: float) -> TrafficLight:
    # A zero target cannot be under-funded
    if desired_pension <= 0:
        return TrafficLight.green
    return classify_at_most(gap_monthly / desired_pension, GAP_RATIO_GREEN_MAX, GAP_RATIO_YELLOW_MAX)


def _summary(gap_monthly: float, capital_needed: float, duration_years: int) -> str:
    if gap_monthly == 0:
        return "Excellent! By current estimates the statutory pension covers your desired retirement income."
    return (
        f"You are facing a pension gap of about €{gap_monthly:,.0f} per month. "
        f"Without private provision you will be missing roughly €{capital_needed / 1000:,.1f}k "
        f"of capital over {duration_years} years of retirement."
    )


def calculate_pension(inputs: PensionInput) -> PensionResult:
    """Project the pension gap and the monthly saving needed to close it in two return scenarios."""
    effective_rate = inputs.replacement_rate
    if inputs.is_part_time_or_break:
        effective_rate = inputs.replacement_rate * PART_TIME_RATE_FACTOR

    statutory = round_half_up(inputs.net_income_monthly * effective_rate)
    gap_monthly = max(0.0, inputs.desired_pension_monthly - statutory)
    capital_needed = gap_monthly * MONTHS_PER_YEAR * inputs.pension_duration_years

    years_to_retirement = max(1, inputs.desired_retirement_age - inputs.age)
    months = years_to_retirement * MONTHS_PER_YEAR

    return PensionResult(
        desired_pension_monthly=inputs.desired_pension_monthly,
        retirement_age=inputs.desired_retirement_age,
        replacement_rate=effective_rate,
        is_part_time_or_break=inputs.is_part_time_or_break,
        estimated_statutory_pension_monthly=statutory,
        gap_monthly=gap_monthly,
        capital_needed=capital_needed,
        years_to_retirement=years_to_retirement,
        current_savings_monthly=inputs.current_savings_monthly,
        current_savings_stock=inputs.current_savings_stock,
        pension_duration_years=inputs.pension_duration_years,
        scenario_a=_scenario(inputs, inputs.scenario_a_return, capital_needed, months),
        scenario_b=_scenario(inputs, inputs.scenario_b_return, capital_needed, months),
        assessment=_assess(gap_monthly, inputs.desired_pension_monthly),
        generated_summary=_summary(gap_monthly, capital_needed, inputs.pension_duration_years),
    )


def pension_defaults(profile: Profile) -> PensionInput:
    """Pre-fill the pension wizard from the intake answers."""
    net_income = profile.cashflow.net_income_monthly or DEFAULT_NET_INCOME
    return PensionInput(
        age=profile.basic.age or DEFAULT_AGE,
        net_income_monthly=net_income,
        desired_pension_monthly=round_half_up(net_income * DESIRED_PENSION_SHARE),
        desired_retirement_age=DEFAULT_RETIREMENT_AGE,
        replacement_rate=STATUTORY_REPLACEMENT_RATE,
    )


def run_pension_module(profile: Profile, inputs: PensionInput) -> Profile:
    """Calculate, store the result on the profile and re-score the retirement domain."""
    return apply_module_result(profile, ModuleId.pension, calculate_pension(inputs))
