"""Domain score calculation: canonical task records -> six 0-100 scores.

Every score passes through :func:`safe_score`, so a zero denominator, NaN or
infinity collapses to the documented default instead of propagating.
Higher is better for all six domains.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from cogreport.domains.attention.domain_logic.task_models import NormalizedAssessment


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves away from zero on the positive side (2.5 -> 3, not 2)."""
    factor = 10 ** digits
    rounded = math.floor(value * factor + 0.5) / factor
    return int(rounded) if digits == 0 else rounded


def safe_score(value, default: float = 50) -> int:
    """Clamp to [0, 100] and round; None, NaN, infinity or non-numbers yield ``default``."""
    if value is None or isinstance(value, bool):
        return default
    try:
        value = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(value):
        return default
    return round_half_up(max(0.0, min(100.0, value)))


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DomainScore:
    key: str
    score: int
    label: str
    description: str


DOMAIN_LABELS = {
    "sustained_attention": ("Sustained Attention", "Ability to maintain focus over time"),
    "response_inhibition": ("Impulse Control", "Ability to stop inappropriate responses"),
    "working_memory": ("Working Memory", "Ability to hold and manipulate information"),
    "interference_control": ("Distraction Filtering", "Ability to filter irrelevant information"),
    "cognitive_flexibility": ("Mental Flexibility", "Ability to switch between tasks"),
    "processing_speed": ("Processing Speed", "Speed of cognitive processing"),
}


@dataclass(frozen=True)
class DomainScores:
    sustained_attention: DomainScore
    response_inhibition: DomainScore
    working_memory: DomainScore
    interference_control: DomainScore
    cognitive_flexibility: DomainScore
    processing_speed: DomainScore

    def ordered(self) -> tuple[DomainScore, ...]:
        return tuple(getattr(self, key) for key in DOMAIN_LABELS)

    def score_map(self) -> dict[str, int]:
        return {d.key: d.score for d in self.ordered()}


def _domain(key: str, score: int) -> DomainScore:
    label, description = DOMAIN_LABELS[key]
    return DomainScore(key=key, score=score, label=label, description=description)


# ---------------------------------------------------------------------------
# Per-domain formulas
# ---------------------------------------------------------------------------

def compute_sustained_attention(hit_rate: float, commission_rate: float) -> int:
    return safe_score(hit_rate * 0.6 + (100 - commission_rate) * 0.4, 70)


def compute_response_inhibition(no_go_accuracy: float, go_accuracy: float) -> int:
    return safe_score(no_go_accuracy * 0.7 + go_accuracy * 0.3, 70)


def compute_working_memory(accuracy: float, level: int) -> int:
    """Accuracy scaled up 5% per N-Back level above one."""
    return safe_score(accuracy * (1 + (level - 1) * 0.05), 65)


def compute_interference_control(
    congruent_accuracy: float, incongruent_accuracy: float, flanker_effect: float
) -> int:
    """Mean flanker accuracy discounted by the congruency effect (at most 40%)."""
    penalty = min(flanker_effect / 300, 0.4)
    return safe_score(((congruent_accuracy + incongruent_accuracy) / 2) * (1 - penalty), 70)


def compute_cognitive_flexibility(part_a_seconds: float, part_b_seconds: float) -> int:
    switching_cost = max(0.0, part_b_seconds - part_a_seconds)
    return safe_score(100 - ((part_b_seconds / 180) * 50 + (switching_cost / 120) * 50), 60)


def compute_processing_speed(avg_rt: float) -> int:
    """100 at 250 ms mean RT, losing one point per 4 ms beyond that."""
    return safe_score(100 - (avg_rt - 250) / 4, 60)


def compute_domain_scores(assessment: NormalizedAssessment) -> DomainScores:
    """Compute all six domain scores from a normalized assessment."""
    cpt = assessment.cpt
    gng = assessment.go_no_go
    nback = assessment.nback
    flanker = assessment.flanker
    trail = assessment.trail

    return DomainScores(
        sustained_attention=_domain(
            "sustained_attention",
            compute_sustained_attention(cpt.hit_rate, cpt.commission_rate),
        ),
        response_inhibition=_domain(
            "response_inhibition",
            compute_response_inhibition(gng.no_go_accuracy, gng.go_accuracy),
        ),
        working_memory=_domain(
            "working_memory",
            compute_working_memory(nback.accuracy, nback.level),
        ),
        interference_control=_domain(
            "interference_control",
            compute_interference_control(
                flanker.congruent_accuracy, flanker.incongruent_accuracy, flanker.flanker_effect
            ),
        ),
        cognitive_flexibility=_domain(
            "cognitive_flexibility",
            compute_cognitive_flexibility(trail.part_a_seconds, trail.part_b_seconds),
        ),
        processing_speed=_domain(
            "processing_speed",
            compute_processing_speed(assessment.avg_rt),
        ),
    )
