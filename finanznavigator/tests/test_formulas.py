"""
Formula library tests.

Groups:
  1. Annuity payment (reference value, zero rate, degenerate inputs, monotonicity)
  2. Required monthly saving / future value
  3. Ancillary cost items
  4. Rounding helpers
"""
from __future__ import annotations

import pytest

from finanznavigator.calculators.formulas import (
    ancillary_total,
    annuity_payment,
    future_value,
    required_monthly_saving,
    resolve_cost_item,
    round_half_up,
    round_to,
)
from finanznavigator.calculators.schemas import default_cost_items
from finanznavigator.profile.schemas import AncillaryCostItem, CostItemType


# ===========================================================================
# TEST GROUP 1: Annuity payment
# ===========================================================================

def test_annuity_reference_mortgage() -> None:
    """300 000 at 3.5 % over 30 years → 1347.13 per month."""
    assert annuity_payment(300_000, 0.035, 30) == pytest.approx(1347.13, abs=0.01)


def test_annuity_zero_rate_is_straight_line() -> None:
    assert annuity_payment(120_000, 0.0, 10) == pytest.approx(1000.0)


@pytest.mark.parametrize("amount, years", [(0, 30), (-5_000, 30), (100_000, 0)])
def test_annuity_degenerate_inputs_yield_zero(amount: float, years: int) -> None:
    assert annuity_payment(amount, 0.035, years) == 0.0


def test_annuity_increases_with_rate() -> None:
    payments = [annuity_payment(250_000, rate, 25) for rate in (0.0, 0.02, 0.035, 0.05, 0.08)]
    assert payments == sorted(payments)
    assert len(set(payments)) == len(payments)


def test_annuity_decreases_with_term() -> None:
    assert annuity_payment(250_000, 0.04, 35) < annuity_payment(250_000, 0.04, 20)


# ===========================================================================
# TEST GROUP 2: Required monthly saving
# ===========================================================================

def test_future_value_compounds_monthly() -> None:
    assert future_value(1_000, 0.12, 12) == pytest.approx(1_000 * 1.01 ** 12)


def test_required_saving_zero_rate() -> None:
    assert required_monthly_saving(12_000, 0, 0.0, 12) == pytest.approx(1_000.0)


def test_required_saving_covered_by_lump_sum() -> None:
    assert required_monthly_saving(1_000, 5_000, 0.03, 12) == 0.0


def test_required_saving_grows_to_target() -> None:
    """Paying the computed contribution for n months reaches the target exactly."""
    rate, months, target = 0.05, 240, 100_000
    pmt = required_monthly_saving(target, 0, rate, months)
    r = rate / 12
    reached = pmt * ((1 + r) ** months - 1) / r
    assert reached == pytest.approx(target)


def test_required_saving_higher_return_needs_less() -> None:
    low = required_monthly_saving(72_000, 0, 0.03, 360)
    high = required_monthly_saving(72_000, 0, 0.05, 360)
    assert high < low


def test_required_saving_no_months_left() -> None:
    assert required_monthly_saving(10_000, 4_000, 0.03, 0) == pytest.approx(6_000)


# ===========================================================================
# TEST GROUP 3: Ancillary cost items
# ===========================================================================

def test_percent_item_resolves_against_base() -> None:
    item = AncillaryCostItem(id="transfer_tax", label="Transfer tax", value=3.5, type=CostItemType.percent)
    assert resolve_cost_item(item, 300_000) == pytest.approx(10_500)


def test_fixed_item_ignores_base() -> None:
    item = AncillaryCostItem(id="notary", label="Notary", value=2_500, type=CostItemType.fixed)
    assert resolve_cost_item(item, 300_000) == 2_500


def test_inactive_item_costs_nothing() -> None:
    item = AncillaryCostItem(id="x", label="X", value=5, type=CostItemType.percent, is_active=False)
    assert resolve_cost_item(item, 300_000) == 0.0


def test_default_items_total() -> None:
    """9.4 % of 300 000 plus 2 500 notary plus 400 appraisal; 'other' is inactive."""
    assert ancillary_total(default_cost_items(), 300_000) == pytest.approx(31_100)


# ===========================================================================
# TEST GROUP 4: Rounding
# ===========================================================================

@pytest.mark.parametrize("value, expected", [(2.5, 3), (0.5, 1), (1.4999, 1), (123.56, 124), (-0.5, 0)])
def test_round_half_up(value: float, expected: int) -> None:
    assert round_half_up(value) == expected


def test_round_to_one_decimal() -> None:
    assert round_to(10 / 3, 1) == pytest.approx(3.3)
    assert round_to(4.25, 1) == pytest.approx(4.3)
