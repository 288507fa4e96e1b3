"""
schemas.py — Module calculator inputs (pydantic v2).

Defines:
  - PensionInput    (pension-gap projection)
  - FinancingInput  (mortgage affordability / KIM check)
  - RiskInput       (income-shock runway analysis)

These hold the module-local wizard state. They are merged into the Profile only
at calculation time: the calculator reads them, writes a result slot and
re-scores its own domain. Defaults pre-filled from a Profile are built by
<module>_defaults() in each calculator module.

Rates are decimals (0.035 = 3.5 % p.a.). Structural bounds only; business rules
(retirement age above current age, term 5–35, ...) live in profile/validator.py.
"""
from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field

from finanznavigator.profile.schemas import (
    AncillaryCostItem,
    CostItemType,
    FinancingPurpose,
    ShockMonths,
    YesNoUnknown,
)


class PensionInput(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    age: int = Field(..., ge=0)
    net_income_monthly: float = Field(..., ge=0)
    desired_pension_monthly: float = Field(..., ge=0)
    desired_retirement_age: int = Field(default=65, ge=0)
    is_part_time_or_break: bool = Field(
        default=False,
        description="Part-time work or career break — reduces the statutory replacement rate by 10 %.",
    )
    replacement_rate: float = Field(default=0.60, ge=0, le=1)
    pension_duration_years: int = Field(default=20, ge=1)
    current_savings_monthly: float = Field(default=0, ge=0)
    current_savings_stock: float = Field(default=0, ge=0)
    scenario_a_return: float = Field(default=0.03, description="Conservative annual return.")
    scenario_b_return: float = Field(default=0.05, description="Optimistic annual return.")


def default_cost_items() -> List[AncillaryCostItem]:
    """Typical closing costs for a residential purchase (broker, transfer tax, registry, notary, bank, appraisal)."""
    return [
        AncillaryCostItem(id="broker", label="Broker commission", value=3.6, type=CostItemType.percent),
        AncillaryCostItem(id="transfer_tax", label="Real-estate transfer tax", value=3.5, type=CostItemType.percent),
        AncillaryCostItem(id="registration", label="Land registry entry", value=1.1, type=CostItemType.percent),
        AncillaryCostItem(id="notary", label="Notary / contract", value=2500, type=CostItemType.fixed),
        AncillaryCostItem(id="bank", label="Bank fees / mortgage lien", value=1.2, type=CostItemType.percent),
        AncillaryCostItem(id="appraisal", label="Valuation / appraisal", value=400, type=CostItemType.fixed),
        AncillaryCostItem(id="other", label="Other / moving", value=0, type=CostItemType.fixed, is_active=False),
    ]


class FinancingInput(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    purchase_price: float = Field(default=300_000, ge=0)
    purpose: FinancingPurpose = FinancingPurpose.purchase
    ancillary_items: List[AncillaryCostItem] = Field(default_factory=default_cost_items)
    equity: float = Field(default=50_000, ge=0)
    equity_work: float = Field(default=0, ge=0, description="Value of self-performed work (sweat equity).")
    net_income_monthly: float = Field(default=3_000, ge=0)
    existing_debt_payments_monthly: float = Field(default=0, ge=0)
    term_years: int = Field(default=30, ge=1)
    rate_a: float = Field(default=0.035, ge=0, description="Primary (fixed) annual rate.")
    rate_b: float = Field(default=0.045, ge=0, description="Stress (variable) annual rate.")


class RiskInput(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    net_income_monthly: float = Field(default=2_500, ge=0)
    fixed_costs_monthly: float = Field(default=1_500, ge=0)
    debt_payments_monthly: float = Field(default=0, ge=0)
    variable_costs_monthly: float = Field(default=0, ge=0)
    savings: float = Field(default=0, ge=0)
    quick_investments: float = Field(default=0, ge=0)
    shock_months: ShockMonths = 6
    support_monthly: float = Field(
        default=0, ge=0,
        description="Replacement income during the shock, e.g. unemployment benefit.",
    )
    income_protection: YesNoUnknown = YesNoUnknown.unknown


__all__ = [
    "PensionInput",
    "FinancingInput",
    "RiskInput",
    "default_cost_items",
]
