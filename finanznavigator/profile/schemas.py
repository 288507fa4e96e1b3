"""
schemas.py — Profile data model (pydantic v2).

Defines:
  - HouseholdType, EmploymentType, YesNoUnknown, ModuleId, TrafficLight,
    CostItemType, FinancingPurpose enums
  - Section models: Meta, Basic, Cashflow, Assets, Debts, Protection, Scores, Lead
  - Module result models: PensionResult, FinancingResult, RiskResult
  - Profile  (the root aggregate — every calculator and the scoring engine consume this)
  - ErrorDetail, ErrorBody, ErrorResponse  (cross-cutting error envelope)

All models are frozen: an operation never mutates a Profile, it returns a new one
via model_copy(update=...). The caller owns merging it into the session store.

All monetary fields are in EUR and MONTHLY unless stated otherwise.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class HouseholdType(str, Enum):
    single = "single"
    couple = "couple"
    family = "family"


class EmploymentType(str, Enum):
    employed = "employed"
    self_employed = "self_employed"
    part_time = "part_time"


class YesNoUnknown(str, Enum):
    yes = "yes"
    no = "no"
    unknown = "unknown"


class ModuleId(str, Enum):
    pension = "pension"
    financing = "financing"
    risk = "risk"


class TrafficLight(str, Enum):
    green = "green"
    yellow = "yellow"
    red = "red"


class CostItemType(str, Enum):
    percent = "percent"
    fixed = "fixed"


class FinancingPurpose(str, Enum):
    purchase = "purchase"
    new_build = "new_build"
    renovation = "renovation"


# Ordinal answer set offered by the wizard for "how many months would your savings last"
EmergencyFundMonths = Literal[0, 1, 2, 3, 6, 12]
ShockMonths = Literal[3, 6, 12]


_FROZEN = ConfigDict(extra="forbid", frozen=True)


# ---------------------------------------------------------------------------
# Profile sections
# ---------------------------------------------------------------------------

class Meta(BaseModel):
    """Session bookkeeping. session_id never changes once assigned."""
    model_config = _FROZEN

    session_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    created_at: Optional[datetime] = None
    last_updated_at: Optional[datetime] = None
    is_finished: bool = False


class Basic(BaseModel):
    model_config = _FROZEN

    age: Optional[int] = Field(default=None, ge=0)
    household_type: HouseholdType = HouseholdType.single
    employment: EmploymentType = EmploymentType.employed


class Cashflow(BaseModel):
    """
    free_cash_monthly is derived (income - fixed costs) by the scoring engine
    when it is not set; a module may override it. Any wizard edit of this
    section clears it, so the next scoring run derives it again.
    """
    model_config = _FROZEN

    net_income_monthly: Optional[float] = Field(default=None, ge=0)
    fixed_costs_monthly: Optional[float] = Field(default=None, ge=0)
    free_cash_monthly: Optional[float] = None


class CashflowAnswers(BaseModel):
    """Wizard-writable part of Cashflow; free cash is never entered directly."""
    model_config = _FROZEN

    net_income_monthly: Optional[float] = Field(default=None, ge=0)
    fixed_costs_monthly: Optional[float] = Field(default=None, ge=0)


class Assets(BaseModel):
    model_config = _FROZEN

    savings: Optional[float] = Field(default=None, ge=0)
    investments: Optional[float] = Field(default=None, ge=0)


class Debts(BaseModel):
    model_config = _FROZEN

    mortgage_remaining: Optional[float] = Field(
        default=None, ge=0,
        description="Outstanding mortgage principal (total, not monthly).",
    )
    consumer_loans_monthly: Optional[float] = Field(
        default=None, ge=0,
        description="Monthly consumer-loan / leasing instalments.",
    )


class Protection(BaseModel):
    model_config = _FROZEN

    emergency_fund_months: EmergencyFundMonths = 0
    private_pension: YesNoUnknown = YesNoUnknown.unknown
    income_protection: YesNoUnknown = YesNoUnknown.unknown


class Scores(BaseModel):
    """Five domain scores (0–100) plus overall = rounded mean of the five."""
    model_config = _FROZEN

    liquidity: int = Field(default=0, ge=0, le=100)
    wealth: int = Field(default=0, ge=0, le=100)
    protection: int = Field(default=0, ge=0, le=100)
    retirement: int = Field(default=0, ge=0, le=100)
    debt: int = Field(default=0, ge=0, le=100)
    overall: int = Field(default=0, ge=0, le=100)


class Lead(BaseModel):
    """Contact data — only filled in when the user unlocks the report."""
    model_config = _FROZEN

    name: str = ""
    email: str = ""
    phone: str = ""
    consent: bool = False


# ---------------------------------------------------------------------------
# Module results
# ---------------------------------------------------------------------------

class PensionScenario(BaseModel):
    model_config = _FROZEN

    return_pa: float          # annual return, decimal (0.03 = 3 %)
    required_pmt: int         # monthly saving needed to close the gap
    extra_pmt: int            # required_pmt - current monthly saving, floored at 0


class PensionResult(BaseModel):
    model_config = _FROZEN

    desired_pension_monthly: float
    retirement_age: int
    replacement_rate: float               # effective rate (after part-time reduction)
    is_part_time_or_break: bool
    estimated_statutory_pension_monthly: int
    gap_monthly: float
    capital_needed: float
    years_to_retirement: int
    current_savings_monthly: float
    current_savings_stock: float
    pension_duration_years: int
    scenario_a: PensionScenario           # conservative
    scenario_b: PensionScenario           # optimistic
    assessment: TrafficLight
    generated_summary: str


class AncillaryCostItem(BaseModel):
    """Closing-cost line item: either a percentage of the purchase price or a fixed amount."""
    model_config = _FROZEN

    id: str
    label: str
    value: float = Field(..., ge=0)      # percent (3.5 = 3.5 %) or absolute EUR, per type
    type: CostItemType
    is_active: bool = True


class AncillaryCosts(BaseModel):
    model_config = _FROZEN

    items: List[AncillaryCostItem]
    total: float


class FinancingScenario(BaseModel):
    model_config = _FROZEN

    label: str
    interest_pa: float        # annual nominal rate, decimal
    payment_monthly: int
    total_repayment: int
    dsti: float


class KimCheck(BaseModel):
    """Lending-standard traffic lights (LTV, DSTI per scenario, term)."""
    model_config = _FROZEN

    ltv_status: TrafficLight
    dsti_a_status: TrafficLight
    dsti_b_status: TrafficLight
    term_status: TrafficLight                # two-state: green or red only


class FinancingResult(BaseModel):
    model_config = _FROZEN

    purchase_price: float
    purpose: FinancingPurpose
    equity: float
    equity_work: float
    ancillary_costs: AncillaryCosts
    loan_amount: float
    financing_needed: bool
    term_years: int
    net_income_monthly: float
    existing_debt_payments_monthly: float
    scenario_a: FinancingScenario         # primary
    scenario_b: FinancingScenario         # stress
    ltv: float
    kim_check: KimCheck
    assessment: TrafficLight
    generated_summary: str


class RiskResult(BaseModel):
    model_config = _FROZEN

    net_income_monthly: float
    fixed_costs_monthly: float
    debt_payments_monthly: float
    variable_costs_monthly: float
    monthly_burn: float
    savings: float
    quick_investments: float
    liquid_reserves: float
    runway_months: float
    shock_months: ShockMonths
    support_monthly: float
    shock_deficit_monthly: float
    total_shock_need: float
    gap_to_safety: float
    income_protection: YesNoUnknown
    assessment: TrafficLight
    generated_summary: str


class ModuleResults(BaseModel):
    """One slot per deep-dive module; None until its calculator has run."""
    model_config = _FROZEN

    pension: Optional[PensionResult] = None
    financing: Optional[FinancingResult] = None
    risk: Optional[RiskResult] = None


# ---------------------------------------------------------------------------
# Profile: root aggregate
# ---------------------------------------------------------------------------

class Profile(BaseModel):
    """
    One user's financial situation plus everything derived from it.

    Input sections (basic, cashflow, assets, debts, protection, lead) are filled by
    the wizard; scores, recommended_modules and module_results are written only by
    the scoring engine and the module calculators.
    """
    model_config = _FROZEN

    meta: Meta = Field(default_factory=Meta)
    basic: Basic = Field(default_factory=Basic)
    cashflow: Cashflow = Field(default_factory=Cashflow)
    assets: Assets = Field(default_factory=Assets)
    debts: Debts = Field(default_factory=Debts)
    protection: Protection = Field(default_factory=Protection)
    scores: Scores = Field(default_factory=Scores)
    recommended_modules: List[ModuleId] = Field(default_factory=list, max_length=2)
    module_results: ModuleResults = Field(default_factory=ModuleResults)
    lead: Lead = Field(default_factory=Lead)


# Sections a client may write through the wizard, mapped to the fields it may set
# (lead goes through the lead-capture form)
INPUT_SECTIONS: dict[str, type[BaseModel]] = {
    "basic": Basic,
    "cashflow": CashflowAnswers,
    "assets": Assets,
    "debts": Debts,
    "protection": Protection,
}


# ---------------------------------------------------------------------------
# Error response models: used by main.py exception handlers (cross-cutting)
# ---------------------------------------------------------------------------

class ErrorDetail(BaseModel):
    """Single field-level validation or business-rule error."""
    model_config = ConfigDict(extra="forbid")

    field: Optional[str] = None   # Dot-notation field path, e.g. "basic.age"
    issue: str


class ErrorBody(BaseModel):
    model_config = ConfigDict(extra="forbid")

    code: str                                      # VALIDATION_ERROR, NOT_FOUND, etc.
    message: str
    details: List[ErrorDetail] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """
    Standard error response format for all endpoints.

    Structure: {"error": {"code": "...", "message": "...", "details": [...]}}
    """
    model_config = ConfigDict(extra="forbid")

    error: ErrorBody


__all__ = [
    "HouseholdType",
    "EmploymentType",
    "YesNoUnknown",
    "ModuleId",
    "TrafficLight",
    "CostItemType",
    "FinancingPurpose",
    "EmergencyFundMonths",
    "ShockMonths",
    "Meta",
    "Basic",
    "Cashflow",
    "CashflowAnswers",
    "Assets",
    "Debts",
    "Protection",
    "Scores",
    "Lead",
    "PensionScenario",
    "PensionResult",
    "AncillaryCostItem",
    "AncillaryCosts",
    "FinancingScenario",
    "KimCheck",
    "FinancingResult",
    "RiskResult",
    "ModuleResults",
    "Profile",
    "INPUT_SECTIONS",
    "ErrorDetail",
    "ErrorBody",
    "ErrorResponse",
]
