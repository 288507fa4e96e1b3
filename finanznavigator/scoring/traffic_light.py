"""
Traffic-light classifier — shared thresholding used by the scoring engine,
the three module calculators and the report.

All thresholds are inclusive on the stated boundary:
  - scores:  >= 70 green, >= 40 yellow, else red
  - ratios:  <= green_max green, <= yellow_max yellow, else red
"""
from __future__ import annotations

from typing import Optional

from finanznavigator.profile.schemas import TrafficLight

SCORE_GREEN_MIN = 70
SCORE_YELLOW_MIN = 40

# Presentation colours consumed by the report / PDF
TRAFFIC_LIGHT_COLORS: dict[TrafficLight, str] = {
    TrafficLight.green: "#10B981",
    TrafficLight.yellow: "#F59E0B",
    TrafficLight.red: "#EF4444",
}
FALLBACK_COLOR = "#9CA3AF"


def classify_at_most(
    value: float,
    green_max: float,
    yellow_max: Optional[float] = None,
) -> TrafficLight:
    """
    Classify a ratio where lower is better (LTV, DSTI, pension gap ratio, loan term).
    Without yellow_max the scale is two-state: green or red.
    """
    if value <= green_max:
        return TrafficLight.green
    if yellow_max is not None and value <= yellow_max:
        return TrafficLight.yellow
    return TrafficLight.red


def classify_at_least(value: float, green_min: float, yellow_min: float) -> TrafficLight:
    """Classify a value where higher is better (scores, runway months)."""
    if value >= green_min:
        return TrafficLight.green
    if value >= yellow_min:
        return TrafficLight.yellow
    return TrafficLight.red


def traffic_light(score: float) -> TrafficLight:
    return classify_at_least(score, SCORE_GREEN_MIN, SCORE_YELLOW_MIN)


def traffic_light_color(score: float) -> str:
    return TRAFFIC_LIGHT_COLORS.get(traffic_light(score), FALLBACK_COLOR)
