"""
Financial formula library — pure functions, no I/O, no rounding.

Round only at output boundaries (module results), never inside a formula.

  annuity_payment          level monthly payment of a fixed-rate amortizing loan
  required_monthly_saving  monthly contribution closing a future-value target
  resolve_cost_item        one ancillary cost item against a base amount
  ancillary_total          sum of the active cost items
"""
from __future__ import annotations

import math
from typing import Iterable

from finanznavigator.profile.schemas import AncillaryCostItem, CostItemType

MONTHS_PER_YEAR = 12


def annuity_payment(amount: float, rate_pa: float, years: float) -> float:
    """
    PMT = A * r(1+r)^n / ((1+r)^n - 1), with r = rate_pa / 12 and n = years * 12.

    Zero rate falls back to straight-line repayment A / n.
    A non-positive amount (nothing to finance) or term yields 0.
    """
    n = years * MONTHS_PER_YEAR
    if amount <= 0 or n <= 0:
        return 0.0
    r = rate_pa / MONTHS_PER_YEAR
    if r == 0:
        return amount / n
    growth = (1 + r) ** n
    return amount * r * growth / (growth - 1)


def future_value(present_value: float, rate_pa: float, months: int) -> float:
    """Compound a lump sum monthly: PV * (1 + r)^n."""
    return present_value * (1 + rate_pa / MONTHS_PER_YEAR) ** months


def required_monthly_saving(
    target_fv: float,
    start_pv: float,
    rate_pa: float,
    months: int,
) -> float:
    """
    Monthly contribution needed so that start_pv plus the contributions grow to target_fv.

    remaining = FV - PV(1+r)^n; 0 if the lump sum already covers the target,
    otherwise PMT = remaining * r / ((1+r)^n - 1). A zero rate is straight-line.
    """
    if months <= 0:
        return max(0.0, target_fv - start_pv)
    remaining = target_fv - future_value(start_pv, rate_pa, months)
    if remaining <= 0:
        return 0.0
    r = rate_pa / MONTHS_PER_YEAR
    if r == 0:
        return remaining / months
    return remaining * r / ((1 + r) ** months - 1)


def resolve_cost_item(item: AncillaryCostItem, base: float) -> float:
    """Percent items are value % of base; fixed items are the value itself. Inactive items cost 0."""
    if not item.is_active:
        return 0.0
    if item.type == CostItemType.percent:
        return base * item.value / 100
    return item.value


def ancillary_total(items: Iterable[AncillaryCostItem], base: float) -> float:
    return sum(resolve_cost_item(item, base) for item in items)


def round_half_up(value: float) -> int:
    """Commercial rounding (2.5 -> 3), unlike round()'s banker's rounding."""
    return int(math.floor(value + 0.5))


def round_to(value: float, digits: int) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor
