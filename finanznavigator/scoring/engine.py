"""
Scoring engine — five domain scores, overall score and module routing.
Pure Python, deterministic. Same input → same output; running it twice on an
unchanged profile yields identical scores and recommendations.

calculate_scores(profile)            full run after the intake (and on any later re-run)
apply_module_result(profile, m, r)   targeted re-score after a module calculator

Domain rules:
  liquidity   step function of emergency-fund months
  wealth      step function of savings rate, +10 if liquid + invested assets > 6 × income
  protection  20 base, +40 income protection yes / +10 unknown, +30 fund ≥ 3 / +10 fund ≥ 1
  retirement  private pension yes 80 / unknown 40 / no 10 (age > 40 with no pension: 10)
  debt        100, DSTI bands 70/40/20, −5 with an outstanding mortgage, clamped 0–100
"""
from __future__ import annotations

import logging
from typing import Callable, Optional, Union

from finanznavigator.calculators.formulas import round_half_up
from finanznavigator.profile.schemas import (
    FinancingResult,
    ModuleId,
    ModuleResults,
    PensionResult,
    Profile,
    RiskResult,
    Scores,
    TrafficLight,
    YesNoUnknown,
)

logger = logging.getLogger(__name__)

ModuleResult = Union[PensionResult, FinancingResult, RiskResult]

# ===========================================================================
# DOMAIN CONSTANTS
# ===========================================================================

# (minimum, score): first match wins
LIQUIDITY_STEPS: list[tuple[float, int]] = [(6, 100), (3, 85), (2, 60), (1, 45)]
LIQUIDITY_FLOOR = 20

SAVINGS_RATE_STEPS: list[tuple[float, int]] = [(0.20, 95), (0.15, 80), (0.10, 60), (0.05, 40)]
SAVINGS_RATE_FLOOR = 20
ASSET_BONUS = 10
ASSET_BONUS_INCOME_MULTIPLE = 6

PROTECTION_BASE = 20
INCOME_PROTECTION_POINTS = {YesNoUnknown.yes: 40, YesNoUnknown.unknown: 10, YesNoUnknown.no: 0}

RETIREMENT_POINTS = {YesNoUnknown.yes: 80, YesNoUnknown.unknown: 40, YesNoUnknown.no: 10}
RETIREMENT_PENALTY_AGE = 40
RETIREMENT_PENALTY_SCORE = 10

# (DSTI strictly above, score)
DEBT_DSTI_STEPS: list[tuple[float, int]] = [(0.4, 20), (0.3, 40), (0.1, 70)]
MORTGAGE_PENALTY = 5

# Routing
PENSION_ROUTE_BELOW = 70
FINANCING_ROUTE_BELOW = 50
RISK_ROUTE_BELOW = 70
MAX_RECOMMENDATIONS = 2
FALLBACK_MODULE = ModuleId.pension

# Targeted re-score bands per module assessment
FINANCING_SCORE = {TrafficLight.green: 80, TrafficLight.yellow: 55, TrafficLight.red: 30}
RISK_SCORE = {TrafficLight.green: 85, TrafficLight.yellow: 60, TrafficLight.red: 30}
RISK_INCOME_PROTECTION_BONUS = 10
PENSION_GREEN_FLOOR = 85
PENSION_SCORE = {TrafficLight.yellow: 60, TrafficLight.red: 30}

MODULE_DOMAIN: dict[ModuleId, str] = {
    ModuleId.pension: "retirement",
    ModuleId.financing: "debt",
    ModuleId.risk: "protection",
}


# ===========================================================================
# INTERNAL HELPERS
# ===========================================================================

def _step(value: float, steps: list[tuple[float, int]], floor: int) -> int:
    for minimum, score in steps:
        if value >= minimum:
            return score
    return floor


def _clamp(score: float) -> int:
    return int(max(0, min(100, score)))


def _income(profile: Profile) -> float:
    # Missing or zero income is replaced by 1 so ratios saturate instead of dividing by zero
    return profile.cashflow.net_income_monthly or 1


def free_cash(profile: Profile) -> float:
    """Provided free cash, or income − fixed costs when it is unset (or zero)."""
    cf = profile.cashflow
    if cf.free_cash_monthly:
        return cf.free_cash_monthly
    return (cf.net_income_monthly or 0) - (cf.fixed_costs_monthly or 0)


def liquidity_score(profile: Profile) -> int:
    return _step(profile.protection.emergency_fund_months, LIQUIDITY_STEPS, LIQUIDITY_FLOOR)


def wealth_score(profile: Profile) -> int:
    income = _income(profile)
    score = _step(free_cash(profile) / income, SAVINGS_RATE_STEPS, SAVINGS_RATE_FLOOR)
    total_assets = (profile.assets.savings or 0) + (profile.assets.investments or 0)
    if total_assets > income * ASSET_BONUS_INCOME_MULTIPLE:
        score = min(100, score + ASSET_BONUS)
    return score


def protection_score(profile: Profile) -> int:
    score = PROTECTION_BASE + INCOME_PROTECTION_POINTS[profile.protection.income_protection]
    months = profile.protection.emergency_fund_months
    if months >= 3:
        score += 30
    elif months >= 1:
        score += 10
    return min(100, score)


def retirement_score(profile: Profile) -> int:
    pension = profile.protection.private_pension
    score = RETIREMENT_POINTS[pension]
    age = profile.basic.age
    if age and age > RETIREMENT_PENALTY_AGE and pension == YesNoUnknown.no:
        score = RETIREMENT_PENALTY_SCORE
    return score


def debt_score(profile: Profile) -> int:
    dsti = (profile.debts.consumer_loans_monthly or 0) / _income(profile)
    score = 100
    for above, band_score in DEBT_DSTI_STEPS:
        if dsti > above:
            score = band_score
            break
    if (profile.debts.mortgage_remaining or 0) > 0:
        score -= MORTGAGE_PENALTY
    return _clamp(score)


def overall_score(scores: Scores) -> int:
    total = scores.liquidity + scores.wealth + scores.protection + scores.retirement + scores.debt
    return round_half_up(total / 5)


def recommend_modules(scores: Scores, profile: Profile) -> list[ModuleId]:
    """
    Priority order pension → financing → risk, at most two entries.
    Falls back to the pension module when no domain is weak.
    """
    candidates: list[ModuleId] = []
    if scores.retirement < PENSION_ROUTE_BELOW:
        candidates.append(ModuleId.pension)
    if scores.debt < FINANCING_ROUTE_BELOW or (profile.debts.mortgage_remaining or 0) > 0:
        candidates.append(ModuleId.financing)
    if scores.protection < RISK_ROUTE_BELOW:
        candidates.append(ModuleId.risk)

    recommended = candidates[:MAX_RECOMMENDATIONS]
    if not recommended:
        recommended.append(FALLBACK_MODULE)
    return recommended


# ===========================================================================
# MODULE RE-SCORE
# ===========================================================================

def _pension_domain_score(result: PensionResult, current: int) -> int:
    if result.assessment == TrafficLight.green:
        return max(current, PENSION_GREEN_FLOOR)
    return PENSION_SCORE[result.assessment]


def _financing_domain_score(result: FinancingResult, current: int) -> int:
    return FINANCING_SCORE[result.assessment]


def _risk_domain_score(result: RiskResult, current: int) -> int:
    score = RISK_SCORE[result.assessment]
    if result.income_protection == YesNoUnknown.yes:
        score += RISK_INCOME_PROTECTION_BONUS
    return min(100, score)


_MODULE_SCORERS: dict[ModuleId, Callable[..., int]] = {
    ModuleId.pension: _pension_domain_score,
    ModuleId.financing: _financing_domain_score,
    ModuleId.risk: _risk_domain_score,
}


def module_domain_score(module: ModuleId, result: ModuleResult, current: int) -> int:
    """Domain score a module result implies, given the domain's current score."""
    return _MODULE_SCORERS[module](result, current)


def _fold_module_results(scores: Scores, results: ModuleResults) -> Scores:
    updates: dict[str, int] = {}
    for module, domain in MODULE_DOMAIN.items():
        result: Optional[ModuleResult] = getattr(results, module.value)
        if result is not None:
            updates[domain] = module_domain_score(module, result, getattr(scores, domain))
    return scores.model_copy(update=updates) if updates else scores


# ===========================================================================
# PUBLIC API
# ===========================================================================

def calculate_scores(profile: Profile) -> Profile:
    """
    Full scoring run. Returns a new profile with scores, recommended_modules and
    cashflow.free_cash_monthly set. Module results already on the profile override
    their domain exactly as the targeted re-score would.
    """
    scores = Scores(
        liquidity=liquidity_score(profile),
        wealth=wealth_score(profile),
        protection=protection_score(profile),
        retirement=retirement_score(profile),
        debt=debt_score(profile),
    )
    scores = _fold_module_results(scores, profile.module_results)
    scores = scores.model_copy(update={"overall": overall_score(scores)})

    recommended = recommend_modules(scores, profile)
    cashflow = profile.cashflow.model_copy(update={"free_cash_monthly": free_cash(profile)})

    logger.debug(
        "Scored session_id=%s overall=%d recommended=%s",
        profile.meta.session_id,
        scores.overall,
        [m.value for m in recommended],
    )
    return profile.model_copy(update={
        "scores": scores,
        "recommended_modules": recommended,
        "cashflow": cashflow,
    })


def apply_module_result(profile: Profile, module: ModuleId, result: ModuleResult) -> Profile:
    """
    Store a module result and re-score only its domain plus the overall average.
    The recommendation list is left as it is.
    """
    domain = MODULE_DOMAIN[module]
    domain_score = module_domain_score(module, result, getattr(profile.scores, domain))
    scores = profile.scores.model_copy(update={domain: domain_score})
    scores = scores.model_copy(update={"overall": overall_score(scores)})
    module_results = profile.module_results.model_copy(update={module.value: result})

    logger.info(
        "Module applied session_id=%s module=%s assessment=%s",
        profile.meta.session_id,
        module.value,
        result.assessment.value,
    )
    return profile.model_copy(update={"scores": scores, "module_results": module_results})
