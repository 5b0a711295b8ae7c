"""Micro-behavioral "hidden markers" computed per task.

Accuracy scores can look normal while trial-to-trial behavior does not.
For every task that supplied an RT series this module measures
successive-difference volatility, within-task fatigue and an ex-Gaussian
(mu, sigma, tau) estimate, then decides whether the pattern looks like a
compensated high performer.
"""

from __future__ import annotations

import math
import statistics
from dataclasses import dataclass
from typing import Sequence

from cogreport.domains.attention.domain_logic.biomarkers import ols_slope
from cogreport.domains.attention.domain_logic.domain_scores import round_half_up
from cogreport.domains.attention.domain_logic.task_models import NormalizedAssessment

# RTs outside [100, 2000] ms are excluded from the hidden-marker analysis
HIDDEN_RT_MIN = 100
HIDDEN_RT_MAX = 2000

MSSD_MIN_POINTS = 5
FATIGUE_MIN_POINTS = 10
EX_GAUSSIAN_MIN_POINTS = 10

MSSD_ELEVATED = 5000
MSSD_HIGH = 10000

COMPENSATED_SUMMARY = (
    "COMPENSATED HIGH-PERFORMER PATTERN: Despite passing cognitive tests, micro-behavioral "
    "markers reveal hidden attention instability. This individual may be masking ADHD "
    "symptoms through extra cognitive effort."
)
NO_PATTERN_SUMMARY = (
    "No hidden compensated pattern detected - micro-behavioral markers are within normal ranges."
)


@dataclass(frozen=True)
class MssdMarker:
    value: int
    status: str  # normal | elevated | high | insufficient_data
    interpretation: str


@dataclass(frozen=True)
class FatigueMarker:
    value: float
    direction: str  # stable | slowing | speeding | insufficient_data
    significance: str  # none | mild | significant | severe
    interpretation: str


@dataclass(frozen=True)
class ExGaussianEstimate:
    mu: int
    sigma: int
    tau: int
    available: bool


@dataclass(frozen=True)
class TaskMarkers:
    name: str
    mssd: MssdMarker
    fatigue: FatigueMarker
    ex_gaussian: ExGaussianEstimate


@dataclass(frozen=True)
class HiddenMarkers:
    available: bool
    tasks: tuple[TaskMarkers, ...]
    avg_mssd: int
    avg_mssd_status: str
    mssd_interpretation: str
    avg_fatigue_slope: float
    has_significant_decline: bool
    fatigue_interpretation: str
    compensated_pattern: bool
    summary: str


def _mssd_status(value: float) -> str:
    if value < MSSD_ELEVATED:
        return "normal"
    if value < MSSD_HIGH:
        return "elevated"
    return "high"


def calculate_task_mssd(reaction_times: Sequence[float]) -> MssdMarker:
    """Mean squared successive difference (not rooted) over [100, 2000] ms RTs."""
    if len(reaction_times) < MSSD_MIN_POINTS:
        return MssdMarker(0, "insufficient_data", "Not enough data points")
    valid = [rt for rt in reaction_times if HIDDEN_RT_MIN <= rt <= HIDDEN_RT_MAX]
    if len(valid) < MSSD_MIN_POINTS:
        return MssdMarker(0, "insufficient_data", "Not enough valid data points")

    mssd = sum((b - a) ** 2 for a, b in zip(valid, valid[1:])) / (len(valid) - 1)
    status = _mssd_status(mssd)
    interpretation = {
        "normal": "Stable trial-to-trial performance",
        "elevated": "Elevated trial-to-trial volatility - possible hidden ADHD marker",
        "high": "High trial-to-trial volatility - strong compensated ADHD indicator",
    }[status]
    return MssdMarker(round_half_up(mssd), status, interpretation)


def calculate_task_fatigue(reaction_times: Sequence[float]) -> FatigueMarker:
    insufficient = FatigueMarker(0, "insufficient_data", "none", "Not enough data points")
    if len(reaction_times) < FATIGUE_MIN_POINTS:
        return insufficient
    valid = [rt for rt in reaction_times if HIDDEN_RT_MIN <= rt <= HIDDEN_RT_MAX]
    if len(valid) < FATIGUE_MIN_POINTS:
        return insufficient
    slope = ols_slope(valid)
    if slope is None:
        return insufficient

    if abs(slope) < 0.5:
        direction, significance = "stable", "none"
    elif slope > 0:
        direction = "slowing"
        significance = "severe" if slope > 2 else "significant" if slope > 1 else "mild"
    else:
        direction = "speeding"
        significance = "significant" if abs(slope) > 1 else "mild"

    if direction == "slowing":
        interpretation = f"RT increasing by {slope:.2f}ms per trial - cognitive fatigue detected"
    elif direction == "speeding":
        interpretation = "RT decreasing - possible practice effect or rushing"
    else:
        interpretation = "Stable performance across trials"
    return FatigueMarker(round_half_up(slope, 2), direction, significance, interpretation)


def estimate_ex_gaussian(reaction_times: Sequence[float]) -> ExGaussianEstimate:
    """Moment-based ex-Gaussian estimate: tau from sample skewness."""
    valid = [rt for rt in reaction_times if 0 < rt < 5000]
    n = len(valid)
    if n < EX_GAUSSIAN_MIN_POINTS:
        return ExGaussianEstimate(0, 0, 0, available=False)

    mean = statistics.fmean(valid)
    sd = statistics.stdev(valid)
    if n < 3 or sd == 0:
        skewness = 0.0
    else:
        skewness = n / ((n - 1) * (n - 2)) * sum(((x - mean) / sd) ** 3 for x in valid)
    tau = max(0.0, skewness * sd * 0.5)
    mu = mean - tau
    sigma = math.sqrt(max(0.0, sd ** 2 - tau ** 2))
    return ExGaussianEstimate(
        mu=round_half_up(mu),
        sigma=round_half_up(sigma),
        tau=round_half_up(tau),
        available=True,
    )


def calculate_hidden_markers(assessment: NormalizedAssessment) -> HiddenMarkers:
    """Analyze every task RT series and aggregate into a compensation verdict."""
    tasks = tuple(
        TaskMarkers(
            name=name,
            mssd=calculate_task_mssd(rts),
            fatigue=calculate_task_fatigue(rts),
            ex_gaussian=estimate_ex_gaussian(rts),
        )
        for name, rts in assessment.task_reaction_times()
    )

    mssd_values = [t.mssd.value for t in tasks if t.mssd.value > 0]
    avg_mssd = sum(mssd_values) / len(mssd_values) if mssd_values else 0
    avg_status = _mssd_status(avg_mssd)
    mssd_interpretation = {
        "high": "High trial-to-trial volatility detected across tasks - strong hidden ADHD marker",
        "elevated": "Elevated volatility - possible compensated ADHD pattern",
        "normal": "Normal trial-to-trial consistency",
    }[avg_status]

    slopes = [t.fatigue.value for t in tasks if t.fatigue.value != 0]
    avg_slope = sum(slopes) / len(slopes) if slopes else 0.0
    has_decline = any(t.fatigue.significance in ("significant", "severe") for t in tasks)

    compensated = avg_status in ("elevated", "high") or has_decline
    return HiddenMarkers(
        available=bool(tasks),
        tasks=tasks,
        avg_mssd=round_half_up(avg_mssd),
        avg_mssd_status=avg_status,
        mssd_interpretation=mssd_interpretation,
        avg_fatigue_slope=round_half_up(avg_slope, 2),
        has_significant_decline=has_decline,
        fatigue_interpretation=(
            "Cognitive fatigue detected - performance declined over time"
            if has_decline
            else "Stable endurance across tasks"
        ),
        compensated_pattern=compensated,
        summary=COMPENSATED_SUMMARY if compensated else NO_PATTERN_SUMMARY,
    )
