"""Presentation subtype inference."""

from __future__ import annotations

from dataclasses import dataclass

from cogreport.domains.attention.domain_logic.flags import FlagSet
from cogreport.domains.attention.domain_logic.task_models import QuestionnaireRecord

COMBINED = "COMBINED"
INATTENTIVE = "INATTENTIVE"
HYPERACTIVE = "HYPERACTIVE-IMPULSIVE"
SUBTHRESHOLD = "SUBTHRESHOLD"

HYPERACTIVE_SYMPTOM_THRESHOLD = 6


@dataclass(frozen=True)
class SubtypeResult:
    label: str
    source: str  # questionnaire | symptom_count | cognitive_flags | none
    indicators: dict

    @property
    def key(self) -> str:
        """Block-library key for this subtype."""
        return {
            COMBINED: "combined",
            INATTENTIVE: "inattentive",
            HYPERACTIVE: "hyperactive",
        }.get(self.label, "subthreshold")


def _from_presentation(presentation: str | None) -> str:
    if not presentation:
        return SUBTHRESHOLD
    if "Combined" in presentation:
        return COMBINED
    if "Hyperactive" in presentation:
        return HYPERACTIVE
    if "Inattentive" in presentation:
        return INATTENTIVE
    return SUBTHRESHOLD


def infer_subtype(
    questionnaire: QuestionnaireRecord, flags: FlagSet, mc_index: int
) -> SubtypeResult:
    """Questionnaire presentation first, symptom count override, then flags.

    Each later rule only fills in a missing or subthreshold label; none of
    them downgrade an established one.
    """
    label = _from_presentation(questionnaire.presentation)
    source = "questionnaire" if label != SUBTHRESHOLD else "none"

    if label == INATTENTIVE and questionnaire.hyperactivity_count >= HYPERACTIVE_SYMPTOM_THRESHOLD:
        label = COMBINED
        source = "symptom_count"

    if label == SUBTHRESHOLD:
        combined = flags.impulsivity and (flags.inattention or flags.variability)
        hyperactive = flags.impulsivity and not flags.inattention
        inattentive = (flags.inattention or flags.variability or mc_index < 60) and not flags.impulsivity
        if combined:
            label = COMBINED
        elif hyperactive:
            label = HYPERACTIVE
        elif inattentive:
            label = INATTENTIVE
        if label != SUBTHRESHOLD:
            source = "cognitive_flags"

    return SubtypeResult(
        label=label,
        source=source,
        indicators={
            "inattentive": label == INATTENTIVE,
            "hyperactive": label == HYPERACTIVE,
            "combined": label == COMBINED,
        },
    )
