"""Composite indices derived from the domain scores and RT statistics.

Tau (attention lapses), RT variability, the MC index (moment-to-moment
consistency), CPI (cognitive pair index, working memory paired with
inhibition), WM load response, conflict sensitivity and the Attention
Load Score (ALS). All thresholds below are clinical constants and must
not drift.
"""

from __future__ import annotations

from dataclasses import dataclass

from cogreport.domains.attention.domain_logic.domain_scores import (
    DomainScores,
    round_half_up,
    safe_score,
)
from cogreport.domains.attention.domain_logic.task_models import QuestionnaireRecord


# ---------------------------------------------------------------------------
# Clinical thresholds
# ---------------------------------------------------------------------------

TAU_NORMAL_MAX = 40
TAU_BORDERLINE_MAX = 60
TAU_ELEVATED_MAX = 100

WM_COLLAPSE_DROP = 20
WM_DECLINE_DROP = 10

CONFLICT_LOW_MAX = 50
CONFLICT_MODERATE_MAX = 100

ACCURACY_STABILITY = 85  # no first/second-half split is available

COMPENSATION_PENALTY = 30
QUESTIONNAIRE_MAX_SCORE = 54  # inattention + hyperactivity scale maxima
QUESTIONNAIRE_SEVERITY_SCALE = 72

ALS_MIN = 1
ALS_MAX = 99


@dataclass(frozen=True)
class TauResult:
    value: int
    category: str  # NORMAL | BORDERLINE | ELEVATED | SEVERE


@dataclass(frozen=True)
class RtVariability:
    rt_cv: float
    consistency: int


@dataclass(frozen=True)
class CompositeScore:
    key: str
    value: int
    details: dict


@dataclass(frozen=True)
class WmLoadResult:
    drop: int
    response: str  # STABLE | DECLINE | COLLAPSE


@dataclass(frozen=True)
class ConflictResult:
    effect: int
    sensitivity: str  # LOW | MODERATE | HIGH


@dataclass(frozen=True)
class ALSResult:
    value: int
    category: str
    raw_value: float
    performance: int
    compensation_penalty: int
    questionnaire_modifier: int
    floor_applied: bool = False
    floor_rule: int | None = None
    floor_reason: str | None = None


# ---------------------------------------------------------------------------
# Indices
# ---------------------------------------------------------------------------

def compute_tau(rt_sd: float) -> TauResult:
    """Approximate the ex-Gaussian tau as 0.8 x RT standard deviation."""
    value = safe_score(rt_sd * 0.8, 50)
    if value <= TAU_NORMAL_MAX:
        category = "NORMAL"
    elif value <= TAU_BORDERLINE_MAX:
        category = "BORDERLINE"
    elif value <= TAU_ELEVATED_MAX:
        category = "ELEVATED"
    else:
        category = "SEVERE"
    return TauResult(value=value, category=category)


def compute_rt_variability(rt_sd: float, avg_rt: float) -> RtVariability:
    cv_pct = rt_sd / avg_rt * 100 if avg_rt else None
    rt_cv = safe_score(cv_pct, 30) / 100
    return RtVariability(rt_cv=rt_cv, consistency=safe_score(100 - rt_cv * 200, 60))


def compute_mc_index(consistency: int, commission_rate: float, hit_rate: float) -> CompositeScore:
    """Moment-to-moment consistency: RT consistency blended with error control."""
    commission_control = safe_score(100 - commission_rate, 85)
    omission_control = safe_score(hit_rate, 85)
    value = safe_score(
        consistency * 0.35
        + ACCURACY_STABILITY * 0.25
        + commission_control * 0.20
        + omission_control * 0.20,
        60,
    )
    return CompositeScore(
        key="mc_index",
        value=value,
        details={
            "rt_consistency": consistency,
            "accuracy_stability": ACCURACY_STABILITY,
            "commission_control": commission_control,
            "omission_control": omission_control,
        },
    )


def compute_cpi(working_memory: int, response_inhibition: int) -> CompositeScore:
    """Cognitive pair index: the two systems lose ~10 points when paired."""
    value = safe_score((working_memory + response_inhibition) / 2 - 10, 50)
    return CompositeScore(
        key="cpi",
        value=value,
        details={"working_memory": working_memory, "response_inhibition": response_inhibition},
    )


def compute_wm_load(one_back_accuracy: float, two_back_accuracy: float) -> WmLoadResult:
    drop = safe_score(one_back_accuracy - two_back_accuracy, 15)
    if drop > WM_COLLAPSE_DROP:
        response = "COLLAPSE"
    elif drop > WM_DECLINE_DROP:
        response = "DECLINE"
    else:
        response = "STABLE"
    return WmLoadResult(drop=drop, response=response)


def compute_conflict(flanker_effect: float) -> ConflictResult:
    effect = safe_score(flanker_effect, 80)
    if effect < CONFLICT_LOW_MAX:
        sensitivity = "LOW"
    elif effect < CONFLICT_MODERATE_MAX:
        sensitivity = "MODERATE"
    else:
        sensitivity = "HIGH"
    return ConflictResult(effect=effect, sensitivity=sensitivity)


def compute_overall_accuracy(domains: DomainScores) -> int:
    total = (
        domains.sustained_attention.score
        + domains.response_inhibition.score
        + domains.working_memory.score
    )
    return safe_score(total / 3, 70)


def compute_performance_score(domains: DomainScores) -> int:
    return round_half_up(
        domains.sustained_attention.score * 0.20
        + domains.response_inhibition.score * 0.20
        + domains.working_memory.score * 0.15
        + domains.interference_control.score * 0.15
        + domains.cognitive_flexibility.score * 0.10
        + domains.processing_speed.score * 0.20
    )


# ---------------------------------------------------------------------------
# Attention Load Score
# ---------------------------------------------------------------------------

def questionnaire_modifier(questionnaire: QuestionnaireRecord) -> int:
    """Symptom-endorsement modifier added to the raw ALS."""
    if questionnaire.meets_criteria:
        return 20
    factor = (
        questionnaire.inattention_score + questionnaire.hyperactivity_score
    ) / QUESTIONNAIRE_MAX_SCORE
    if factor > 0.5:
        return 15
    if factor > 0.37:
        return 10
    if factor > 0.25:
        return 5
    return 0


def _floor_rule(questionnaire: QuestionnaireRecord) -> tuple[int, int, str] | None:
    """The first matching floor as (rule number, minimum ALS, reason)."""
    severity_pct = questionnaire.total_score / QUESTIONNAIRE_SEVERITY_SCALE * 100
    combined = "combined" in (questionnaire.presentation or "").lower()
    impaired = questionnaire.meets_supporting_criteria

    if severity_pct >= 75 and combined and impaired:
        return 1, 65, "Severe DSM-5 symptoms with impairment override mild cognitive scores"
    if severity_pct >= 60 and questionnaire.meets_criteria and impaired:
        return 2, 55, "Moderate-Severe DSM-5 symptoms override mild cognitive scores"
    if questionnaire.meets_criteria and impaired:
        return 3, 45, "DSM-5 criteria met with impairment"
    return None


def als_category(value: int) -> str:
    if value <= 30:
        return "TYPICAL"
    if value <= 50:
        return "MILD"
    if value <= 70:
        return "MODERATE"
    if value <= 85:
        return "SIGNIFICANT"
    return "SEVERE"


def compute_als(
    performance: int, compensation: bool, questionnaire: QuestionnaireRecord
) -> ALSResult:
    """Combine cognitive performance, compensation and questionnaire severity.

    Floor rules are evaluated in priority order and only ever raise the
    value; the first rule whose conditions match is the only one considered.
    """
    penalty = COMPENSATION_PENALTY if compensation else 0
    modifier = questionnaire_modifier(questionnaire)
    raw = 100 - performance + penalty + modifier

    value = raw
    floor_rule = None
    floor_reason = None
    rule = _floor_rule(questionnaire)
    if rule is not None:
        number, minimum, reason = rule
        if value < minimum:
            value = minimum
            floor_rule = number
            floor_reason = reason

    final = min(ALS_MAX, max(ALS_MIN, round_half_up(value)))
    return ALSResult(
        value=final,
        category=als_category(final),
        raw_value=raw,
        performance=performance,
        compensation_penalty=penalty,
        questionnaire_modifier=modifier,
        floor_applied=floor_rule is not None,
        floor_rule=floor_rule,
        floor_reason=floor_reason,
    )


# ---------------------------------------------------------------------------
# Level keys used to select narrative phrasing
# ---------------------------------------------------------------------------

def mc_level(mc_index: int) -> str:
    if mc_index < 35:
        return "very_low"
    if mc_index < 50:
        return "low"
    if mc_index < 65:
        return "moderate"
    return "high"


def cpi_level(cpi: int) -> str:
    if cpi > 70:
        return "very_high"
    if cpi > 50:
        return "high"
    if cpi > 30:
        return "moderate"
    return "low"


def tau_level(tau: int) -> str:
    if tau > 100:
        return "severe"
    if tau > 60:
        return "elevated"
    if tau > 40:
        return "borderline"
    return "normal"


def wm_level(drop: int) -> str:
    if drop > 25:
        return "collapse"
    if drop > 15:
        return "decline"
    return "stable"


def conflict_level(effect: int, hyperfocus: bool) -> str:
    if hyperfocus and effect < 30:
        return "paradoxical"
    if effect > 100:
        return "high"
    if effect > 50:
        return "moderate"
    return "low"


def implication_key(mc_index: int, cpi: int) -> str:
    mc_part = "low_mc" if mc_index < 50 else "high_mc"
    cpi_part = "high_cpi" if cpi > 50 else "low_cpi"
    return f"{mc_part}_{cpi_part}"


def als_level(value: int) -> str:
    if value <= 30:
        return "typical"
    if value <= 50:
        return "mild"
    if value <= 70:
        return "moderate"
    return "significant"
