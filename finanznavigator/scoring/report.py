"""
Report content — pure functions over a scored Profile.

  top_action_areas(scores)      three weakest domains, lowest first (stable on ties)
  build_recommendations(p)      up to five prioritized next steps
  is_unlocked(p)                finished intake + lead name + lead e-mail
  build_report(p)               everything above bundled for the API and the PDF

A module that has already run speaks through its result; a module that has not
run falls back to the domain score that would route the user to it.
"""
from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from finanznavigator.profile.schemas import (
    ModuleId,
    ModuleResults,
    Profile,
    Scores,
    TrafficLight,
)
from finanznavigator.scoring.traffic_light import traffic_light, traffic_light_color

TOP_ACTION_AREAS = 3
MAX_RECOMMENDATIONS = 5
SCORE_CHECK_BELOW = 70
WEALTH_CHECK_BELOW = 50

_FROZEN = ConfigDict(extra="forbid", frozen=True)


class Priority(str, Enum):
    high = "high"
    medium = "medium"


class ActionArea(BaseModel):
    model_config = _FROZEN

    id: str
    label: str
    score: int
    traffic_light: TrafficLight
    color: str
    reason: str


class Recommendation(BaseModel):
    model_config = _FROZEN

    title: str
    description: str
    priority: Priority
    module: Optional[ModuleId] = None     # None → back to the basic check


class Report(BaseModel):
    model_config = _FROZEN

    session_id: str
    scores: Scores
    overall_traffic_light: TrafficLight
    overall_color: str
    action_areas: List[ActionArea]
    recommendations: List[Recommendation]
    recommended_modules: List[ModuleId]
    module_results: ModuleResults


# (domain, label, reason) in display order: also the tie-break order
_DOMAINS: list[tuple[str, str, str]] = [
    ("liquidity", "Liquidity", "An emergency fund keeps you out of the debt trap."),
    ("wealth", "Wealth", "Your assets should be working for you."),
    ("protection", "Protection", "Losing your income is an existential risk."),
    ("retirement", "Retirement", "The statutory pension alone is often not enough."),
    ("debt", "Financing", "High repayments limit your room to manoeuvre."),
]


def top_action_areas(scores: Scores) -> list[ActionArea]:
    areas = [
        ActionArea(
            id=domain,
            label=label,
            score=getattr(scores, domain),
            traffic_light=traffic_light(getattr(scores, domain)),
            color=traffic_light_color(getattr(scores, domain)),
            reason=reason,
        )
        for domain, label, reason in _DOMAINS
    ]
    # sorted() is stable: equal scores keep display order
    return sorted(areas, key=lambda a: a.score)[:TOP_ACTION_AREAS]


def _needs_work(assessment: TrafficLight) -> bool:
    return assessment in (TrafficLight.red, TrafficLight.yellow)


def build_recommendations(profile: Profile) -> list[Recommendation]:
    scores = profile.scores
    results = profile.module_results
    recs: list[Recommendation] = []

    if results.pension is not None:
        if _needs_work(results.pension.assessment):
            recs.append(Recommendation(
                title="Build a pension plan",
                description=f"Close your gap of €{results.pension.gap_monthly:,.0f} per month systematically.",
                priority=Priority.high,
                module=ModuleId.pension,
            ))
    elif scores.retirement < SCORE_CHECK_BELOW:
        recs.append(Recommendation(
            title="Run the pension check",
            description="Find out the exact size of your pension gap.",
            priority=Priority.high,
            module=ModuleId.pension,
        ))

    if results.financing is not None:
        if _needs_work(results.financing.assessment):
            recs.append(Recommendation(
                title="Optimise your financing structure",
                description="Review your loan instalment and interest-rate risk.",
                priority=Priority.high,
                module=ModuleId.financing,
            ))
    elif scores.debt < SCORE_CHECK_BELOW or (profile.debts.mortgage_remaining or 0) > 0:
        recs.append(Recommendation(
            title="Run the financing check",
            description="See where your loans can be optimised.",
            priority=Priority.medium,
            module=ModuleId.financing,
        ))

    if results.risk is not None:
        # red only, unlike pension and financing
        if results.risk.assessment == TrafficLight.red:
            recs.append(Recommendation(
                title="Secure your livelihood",
                description="Build an emergency fund and protect your income.",
                priority=Priority.high,
                module=ModuleId.risk,
            ))
    elif scores.protection < SCORE_CHECK_BELOW:
        recs.append(Recommendation(
            title="Run the risk stress test",
            description="How long would your reserves last?",
            priority=Priority.medium,
            module=ModuleId.risk,
        ))

    if scores.wealth < WEALTH_CHECK_BELOW and len(recs) < MAX_RECOMMENDATIONS:
        recs.append(Recommendation(
            title="Increase your savings capacity",
            description="Analyse your budget and start a savings plan.",
            priority=Priority.medium,
        ))

    return recs[:MAX_RECOMMENDATIONS]


def is_unlocked(profile: Profile) -> bool:
    return profile.meta.is_finished and bool(profile.lead.name) and bool(profile.lead.email)


def build_report(profile: Profile) -> Report:
    return Report(
        session_id=profile.meta.session_id,
        scores=profile.scores,
        overall_traffic_light=traffic_light(profile.scores.overall),
        overall_color=traffic_light_color(profile.scores.overall),
        action_areas=top_action_areas(profile.scores),
        recommendations=build_recommendations(profile),
        recommended_modules=list(profile.recommended_modules),
        module_results=profile.module_results,
    )
