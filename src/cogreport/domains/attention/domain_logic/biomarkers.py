"""Functional biomarkers: IES, MSSD, fatigue slope and switching cost.

Each calculator returns a :class:`BiomarkerResult`. Below its minimum
sample size a biomarker is reported as ``available=False`` with a zero
score; it never raises for short or empty input.

Also home to signal-detection sensitivity (d′), computed when a task
reports its hit / miss / false-alarm / correct-rejection counts.
"""

from __future__ import annotations

import math
from statistics import NormalDist
from types import MappingProxyType
from typing import Sequence

from cogreport.domains.attention.domain_logic.biomarker_models import (
    FATIGUE_FORMULA,
    FATIGUE_THRESHOLDS,
    FATIGUE_TIERS,
    FATIGUE_UNIT,
    IES_FORMULA,
    IES_THRESHOLDS,
    IES_TIERS,
    IES_UNIT,
    INSUFFICIENT_DATA,
    MSSD_FORMULA,
    MSSD_THRESHOLDS,
    MSSD_TIERS,
    MSSD_UNIT,
    PANEL_INTERPRETATION_MULTIPLE,
    PANEL_INTERPRETATION_NONE,
    PANEL_INTERPRETATION_SINGLE,
    PANEL_RISK_LEVELS,
    SWITCHING_FORMULA,
    SWITCHING_THRESHOLDS,
    SWITCHING_TIERS,
    SWITCHING_UNIT,
    BiomarkerPanel,
    BiomarkerResult,
    BiomarkerTier,
    PanelSummary,
)
from cogreport.domains.attention.domain_logic.domain_scores import round_half_up
from cogreport.domains.attention.domain_logic.task_models import SignalCounts

# RTs outside (100, 5000) ms are technical artifacts, not lapses
RT_ARTIFACT_MIN = 100
RT_ARTIFACT_MAX = 5000

MSSD_MIN_RTS = 2
FATIGUE_MIN_RTS = 5


def _valid_rt(rt: float) -> bool:
    return RT_ARTIFACT_MIN < rt < RT_ARTIFACT_MAX


def _unavailable(key: str, name: str, unit: str, formula: str, reason: str) -> BiomarkerResult:
    return BiomarkerResult(
        key=key,
        name=name,
        available=False,
        score=0,
        rating=INSUFFICIENT_DATA,
        interpretation=f"Unable to calculate - {reason}.",
        unit=unit,
        formula=formula,
    )


def _rated(
    key: str,
    name: str,
    score: float,
    tier: BiomarkerTier,
    *,
    unit: str,
    formula: str,
    thresholds,
    details: dict | None = None,
    **fmt,
) -> BiomarkerResult:
    return BiomarkerResult(
        key=key,
        name=name,
        available=True,
        score=score,
        rating=tier.rating,
        interpretation=tier.interpretation.format(**fmt),
        unit=unit,
        formula=formula,
        real_life_impact=tier.real_life_impact,
        thresholds=thresholds,
        details=MappingProxyType(details or {}),
        concern=tier.concern,
        is_strength=tier.strength,
    )


# ---------------------------------------------------------------------------
# Individual biomarkers
# ---------------------------------------------------------------------------

def calculate_ies(mean_rt: float, accuracy: float) -> BiomarkerResult:
    """Inverse efficiency: mean RT divided by proportion correct.

    400 ms at 100% accuracy scores 400 (Efficient); 800 ms at 70% scores
    1143 (Severe).
    """
    name = "Cognitive Efficiency Tax"
    if not mean_rt or mean_rt <= 0 or not accuracy or accuracy <= 0:
        return _unavailable(
            "ies", name, IES_UNIT, IES_FORMULA, "missing reaction time or accuracy data"
        )

    score = round_half_up(mean_rt / max(0.01, accuracy / 100))
    if score > 900:
        tier = IES_TIERS["Severe"]
    elif score >= 750:
        tier = IES_TIERS["High"]
    elif score >= 500:
        tier = IES_TIERS["Normal"]
    else:
        tier = IES_TIERS["Efficient"]
    return _rated(
        "ies", name, score, tier,
        unit=IES_UNIT, formula=IES_FORMULA, thresholds=IES_THRESHOLDS,
        details={"mean_rt": mean_rt, "accuracy": accuracy},
    )


def calculate_mssd(reaction_times: Sequence[float]) -> BiomarkerResult:
    """Root mean squared successive difference over artifact-free RT pairs."""
    name = "Attention Stability"
    if len(reaction_times) < MSSD_MIN_RTS:
        return _unavailable(
            "mssd", name, MSSD_UNIT, MSSD_FORMULA, "need at least 2 reaction time data points"
        )

    sum_sq = 0.0
    valid_pairs = 0
    for current, nxt in zip(reaction_times, reaction_times[1:]):
        if _valid_rt(current) and _valid_rt(nxt):
            sum_sq += (nxt - current) ** 2
            valid_pairs += 1
    if valid_pairs == 0:
        return _unavailable(
            "mssd", name, MSSD_UNIT, MSSD_FORMULA, "no valid reaction time pairs found"
        )

    score = round_half_up(math.sqrt(sum_sq / valid_pairs))
    if score > 300:
        tier = MSSD_TIERS["Severe"]
    elif score >= 150:
        tier = MSSD_TIERS["Elevated"]
    else:
        tier = MSSD_TIERS["Stable"]
    return _rated(
        "mssd", name, score, tier,
        unit=MSSD_UNIT, formula=MSSD_FORMULA, thresholds=MSSD_THRESHOLDS,
        details={"valid_pairs": valid_pairs},
    )


def ols_slope(values: Sequence[float]) -> float | None:
    """Least-squares slope of ``values`` against their index; None if undefined."""
    n = len(values)
    sum_x = sum(range(n))
    sum_y = sum(values)
    sum_xy = sum(i * y for i, y in enumerate(values))
    sum_xx = sum(i * i for i in range(n))
    denominator = n * sum_xx - sum_x * sum_x
    if denominator == 0:
        return None
    return (n * sum_xy - sum_x * sum_y) / denominator


def calculate_fatigue_slope(reaction_times: Sequence[float]) -> BiomarkerResult:
    """Change in RT per trial across the session (positive = slowing)."""
    name = "Cognitive Endurance"
    if len(reaction_times) < FATIGUE_MIN_RTS:
        return _unavailable(
            "fatigue", name, FATIGUE_UNIT, FATIGUE_FORMULA,
            "need at least 5 reaction time data points",
        )
    valid = [rt for rt in reaction_times if _valid_rt(rt)]
    if len(valid) < FATIGUE_MIN_RTS:
        return _unavailable(
            "fatigue", name, FATIGUE_UNIT, FATIGUE_FORMULA, "insufficient valid reaction times"
        )
    slope = ols_slope(valid)
    if slope is None:
        return _unavailable(
            "fatigue", name, FATIGUE_UNIT, FATIGUE_FORMULA, "slope is undefined for this series"
        )

    n = len(valid)
    total_drift = round_half_up(slope * n)
    if slope > 10:
        tier, direction = FATIGUE_TIERS["Rapid Drain"], "slowing"
    elif slope > 3:
        tier, direction = FATIGUE_TIERS["Moderate Drain"], "slowing"
    elif slope < -5:
        tier, direction = FATIGUE_TIERS["Speeding"], "speeding"
    else:
        tier, direction = FATIGUE_TIERS["Stable"], "stable"
    return _rated(
        "fatigue", name, round_half_up(slope, 2), tier,
        unit=FATIGUE_UNIT, formula=FATIGUE_FORMULA, thresholds=FATIGUE_THRESHOLDS,
        details={"total_drift": total_drift, "trial_count": n, "direction": direction},
        drift=abs(total_drift),
        trial_count=n,
    )


def calculate_switching_cost(trail_a_ms: float, trail_b_ms: float) -> BiomarkerResult:
    """Trail B / Trail A completion-time ratio; an efficient ratio is a strength."""
    name = "Executive Flexibility"
    if not trail_a_ms or trail_a_ms <= 0 or not trail_b_ms or trail_b_ms <= 0:
        return _unavailable(
            "switching", name, SWITCHING_UNIT, SWITCHING_FORMULA, "missing Trail Making data"
        )

    ratio = trail_b_ms / trail_a_ms
    rounded_ratio = round_half_up(ratio, 2)
    if ratio > 2.5:
        tier = SWITCHING_TIERS["Severe"]
    elif ratio >= 2.0:
        tier = SWITCHING_TIERS["Elevated"]
    else:
        tier = SWITCHING_TIERS["Efficient"]
    return _rated(
        "switching", name, rounded_ratio, tier,
        unit=SWITCHING_UNIT, formula=SWITCHING_FORMULA, thresholds=SWITCHING_THRESHOLDS,
        details={
            "raw_ms": round_half_up(trail_b_ms - trail_a_ms),
            "trail_a_ms": round_half_up(trail_a_ms),
            "trail_b_ms": round_half_up(trail_b_ms),
        },
        ratio=rounded_ratio,
    )


# ---------------------------------------------------------------------------
# Panel
# ---------------------------------------------------------------------------

def summarize_panel(results: Sequence[BiomarkerResult]) -> PanelSummary:
    concern_count = sum(1 for r in results if r.available and r.concern)
    overall_risk = next(label for minimum, label in PANEL_RISK_LEVELS if concern_count >= minimum)
    if concern_count >= 2:
        interpretation = PANEL_INTERPRETATION_MULTIPLE.format(concern_count=concern_count)
    elif concern_count == 1:
        interpretation = PANEL_INTERPRETATION_SINGLE
    else:
        interpretation = PANEL_INTERPRETATION_NONE
    return PanelSummary(
        concern_count=concern_count,
        total_biomarkers=len(results),
        overall_risk=overall_risk,
        interpretation=interpretation,
    )


def calculate_all_biomarkers(
    reaction_times: Sequence[float],
    mean_rt: float,
    accuracy: float,
    trail_a_ms: float = 0,
    trail_b_ms: float = 0,
) -> BiomarkerPanel:
    """Compute all four biomarkers from one RT series plus summary inputs."""
    ies = calculate_ies(mean_rt, accuracy)
    mssd = calculate_mssd(reaction_times)
    fatigue = calculate_fatigue_slope(reaction_times)
    switching = calculate_switching_cost(trail_a_ms, trail_b_ms)
    return BiomarkerPanel(
        ies=ies,
        mssd=mssd,
        fatigue=fatigue,
        switching=switching,
        summary=summarize_panel((ies, mssd, fatigue, switching)),
    )


# ---------------------------------------------------------------------------
# Signal detection
# ---------------------------------------------------------------------------

_STANDARD_NORMAL = NormalDist()


def compute_d_prime(counts: SignalCounts) -> float | None:
    """Sensitivity index z(hit rate) - z(false-alarm rate).

    Rates are clamped to [0.01, 0.99] so perfect scores stay finite.
    Returns None unless all four counts are known.
    """
    if not counts.complete:
        return None
    hit_rate = counts.hits / max(1, counts.hits + counts.misses)
    fa_rate = counts.false_alarms / max(1, counts.false_alarms + counts.correct_rejections)
    hit_rate = min(0.99, max(0.01, hit_rate))
    fa_rate = min(0.99, max(0.01, fa_rate))
    return round(_STANDARD_NORMAL.inv_cdf(hit_rate) - _STANDARD_NORMAL.inv_cdf(fa_rate), 2)
