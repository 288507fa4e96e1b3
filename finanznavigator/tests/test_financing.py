"""
Financing calculator tests.

Groups:
  1. Loan amount and ancillary costs
  2. KIM boundaries (LTV, DSTI, term)
  3. Overall assessment incl. the stress-scenario rule
  4. No-financing short-circuit
  5. Defaults and module run
"""
from __future__ import annotations

import pytest

from finanznavigator.calculators.financing import (
    assess_financing,
    calculate_financing,
    financing_defaults,
    run_financing_module,
)
from finanznavigator.calculators.schemas import FinancingInput
from finanznavigator.profile.schemas import TrafficLight
from finanznavigator.scoring.engine import calculate_scores
from finanznavigator.tests.demo_profiles import build_profile

G, Y, R = TrafficLight.green, TrafficLight.yellow, TrafficLight.red


def _plain(**overrides) -> FinancingInput:
    """No closing costs and a high income, so LTV alone drives the result."""
    base = dict(purchase_price=100_000, ancillary_items=[], equity=10_000, net_income_monthly=10_000)
    base.update(overrides)
    return FinancingInput(**base)


# ===========================================================================
# TEST GROUP 1: Loan amount
# ===========================================================================

def test_default_purchase() -> None:
    """300 000 + 31 100 closing costs − 50 000 equity = 281 100."""
    result = calculate_financing(FinancingInput())
    assert result.ancillary_costs.total == pytest.approx(31_100)
    assert result.loan_amount == pytest.approx(281_100)
    assert result.financing_needed is True
    assert result.ltv == pytest.approx(281_100 / 300_000)


def test_sweat_equity_reduces_loan() -> None:
    assert calculate_financing(_plain(equity_work=5_000)).loan_amount == pytest.approx(85_000)


def test_scenario_payment_and_total() -> None:
    result = calculate_financing(_plain(purchase_price=300_000, equity=0, term_years=30))
    assert result.scenario_a.payment_monthly == 1347
    assert result.scenario_a.total_repayment == pytest.approx(1347.13 * 360, abs=5)
    assert result.scenario_b.payment_monthly > result.scenario_a.payment_monthly
    assert result.scenario_a.label == "Scenario A"
    assert result.scenario_b.interest_pa == pytest.approx(0.045)


def test_existing_debt_adds_to_dsti() -> None:
    base = calculate_financing(_plain())
    with_debt = calculate_financing(_plain(existing_debt_payments_monthly=1_000))
    assert with_debt.scenario_a.dsti == pytest.approx(base.scenario_a.dsti + 0.1)


# ===========================================================================
# TEST GROUP 2: KIM boundaries
# ===========================================================================

@pytest.mark.parametrize(
    "equity, expected",
    [
        (10_000, G),     # LTV 0.90
        (9_990, Y),      # LTV 0.9001
        (5_000, Y),      # LTV 0.95
        (4_990, R),      # LTV 0.9501
    ],
)
def test_ltv_boundaries(equity: float, expected: TrafficLight) -> None:
    result = calculate_financing(_plain(equity=equity))
    assert result.kim_check.ltv_status == expected
    assert result.assessment == expected


def test_dsti_bands() -> None:
    # 90 000 at 3.5 % over 30 years ≈ 404 per month
    assert calculate_financing(_plain(net_income_monthly=1_100)).kim_check.dsti_a_status == G
    assert calculate_financing(_plain(net_income_monthly=950)).kim_check.dsti_a_status == Y
    assert calculate_financing(_plain(net_income_monthly=800)).kim_check.dsti_a_status == R


def test_term_is_two_state() -> None:
    assert calculate_financing(_plain(term_years=35)).kim_check.term_status == G
    assert calculate_financing(_plain(term_years=36)).kim_check.term_status == R


def test_term_does_not_drive_assessment() -> None:
    result = calculate_financing(_plain(term_years=40))
    assert result.kim_check.term_status == R
    assert result.assessment == G


def test_zero_income_saturates_dsti() -> None:
    result = calculate_financing(_plain(net_income_monthly=0))
    assert result.kim_check.dsti_a_status == R
    assert result.assessment == R


# ===========================================================================
# TEST GROUP 3: Assessment
# ===========================================================================

@pytest.mark.parametrize(
    "ltv, dsti_a, dsti_b, expected",
    [
        (G, G, G, G),
        (G, G, Y, G),     # a yellow stress scenario does not count
        (G, G, R, Y),     # a red stress scenario demotes green to yellow
        (Y, G, R, Y),     # but never demotes yellow to red
        (G, Y, R, Y),
        (R, G, G, R),
        (G, R, G, R),
        (Y, Y, G, Y),
    ],
)
def test_assessment_rule(ltv, dsti_a, dsti_b, expected) -> None:
    assert assess_financing(ltv, dsti_a, dsti_b) == expected


# ===========================================================================
# TEST GROUP 4: Short-circuit
# ===========================================================================

def test_equity_covers_everything() -> None:
    result = calculate_financing(FinancingInput(equity=500_000))
    assert result.financing_needed is False
    assert result.loan_amount == 0
    assert result.ltv == 0
    assert result.scenario_a.payment_monthly == 0
    assert result.scenario_b.dsti == 0
    assert result.kim_check.ltv_status == G
    assert result.kim_check.dsti_b_status == G
    assert result.assessment == G
    assert "No loan" in result.generated_summary


def test_exact_equity_is_no_financing() -> None:
    assert calculate_financing(_plain(equity=100_000)).financing_needed is False


# ===========================================================================
# TEST GROUP 5: Defaults and module run
# ===========================================================================

def test_defaults_from_profile() -> None:
    defaults = financing_defaults(build_profile("markus"))
    assert defaults.purchase_price == 300_000
    assert defaults.equity == 20_000                 # savings
    assert defaults.net_income_monthly == 5_000
    assert defaults.existing_debt_payments_monthly == 600
    assert len(defaults.ancillary_items) == 7


def test_defaults_fall_back_without_savings() -> None:
    defaults = financing_defaults(build_profile("anna"))
    assert defaults.equity == 50_000


def test_run_module_rescores_debt_only() -> None:
    scored = calculate_scores(build_profile("markus"))
    updated = run_financing_module(scored, _plain(equity=40_000))
    assert updated.module_results.financing.assessment == G
    assert updated.scores.debt == 80
    assert updated.scores.retirement == scored.scores.retirement
