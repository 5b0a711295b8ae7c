"""Aggregate result types for one scored assessment."""

from __future__ import annotations

from dataclasses import dataclass

from cogreport.domains.attention.domain_logic.biomarker_models import BiomarkerPanel
from cogreport.domains.attention.domain_logic.composites import (
    ALSResult,
    CompositeScore,
    ConflictResult,
    RtVariability,
    TauResult,
    WmLoadResult,
)
from cogreport.domains.attention.domain_logic.domain_scores import DomainScores
from cogreport.domains.attention.domain_logic.flags import (
    ClinicalIndicator,
    FlagSet,
    PatternLabel,
    ProfileSnapshot,
)
from cogreport.domains.attention.domain_logic.hidden_markers import HiddenMarkers
from cogreport.domains.attention.domain_logic.subtype import SubtypeResult
from cogreport.domains.attention.domain_logic.task_models import NormalizedAssessment

QUESTIONNAIRE_MAX_TOTAL = 72


def domain_severity(score: float) -> str:
    """Severity of one questionnaire domain (0-36 scale)."""
    if score <= 9:
        return "MINIMAL"
    if score <= 18:
        return "MILD"
    if score <= 27:
        return "MODERATE"
    return "SEVERE"


@dataclass(frozen=True)
class QuestionnaireSummary:
    available: bool
    inattention_score: float
    hyperactivity_score: float
    total_score: float
    inattention_count: int
    hyperactivity_count: int
    inattention_severity: str
    hyperactivity_severity: str
    meets_inattention_criteria: bool
    meets_hyperactivity_criteria: bool
    meets_supporting_criteria: bool
    presentation: str | None
    risk_level: str
    severity_percent: float
    modifier: int
    max_score: int = QUESTIONNAIRE_MAX_TOTAL

    @property
    def meets_criteria(self) -> bool:
        return self.meets_inattention_criteria or self.meets_hyperactivity_criteria


@dataclass(frozen=True)
class CompensationAnalysis:
    detected: bool
    accuracy: int
    avg_rt: float
    tau: int
    rt_cv: float
    penalty: int


@dataclass(frozen=True)
class AssessmentMetrics:
    """Every index computed for one assessment, ready for narrative composition."""

    assessment: NormalizedAssessment
    domains: DomainScores
    tau: TauResult
    rt_variability: RtVariability
    mc_index: CompositeScore
    cpi: CompositeScore
    wm_load: WmLoadResult
    conflict: ConflictResult
    performance_score: int
    overall_accuracy: int
    als: ALSResult
    flags: FlagSet
    compensation: CompensationAnalysis
    clinical_indicators: tuple[ClinicalIndicator, ...]
    profile: ProfileSnapshot
    patterns: tuple[PatternLabel, ...]
    biomarkers: BiomarkerPanel
    hidden_markers: HiddenMarkers
    subtype: SubtypeResult
    questionnaire: QuestionnaireSummary
    d_prime: dict

    @property
    def avg_rt(self) -> float:
        return self.assessment.avg_rt

    def snapshot(self) -> dict:
        """Flat, JSON-ready view of the headline numbers."""
        data = {
            "domains": self.domains.score_map(),
            "performance_score": self.performance_score,
            "overall_accuracy": self.overall_accuracy,
            "als": self.als.value,
            "als_category": self.als.category,
            "als_floor_applied": self.als.floor_applied,
            "als_floor_reason": self.als.floor_reason,
            "mc_index": self.mc_index.value,
            "cpi": self.cpi.value,
            "tau": self.tau.value,
            "tau_category": self.tau.category,
            "rt_cv": self.rt_variability.rt_cv,
            "rt_consistency": self.rt_variability.consistency,
            "avg_rt": round(self.avg_rt, 1),
            "wm_load_drop": self.wm_load.drop,
            "wm_load_response": self.wm_load.response,
            "flanker_effect": self.assessment.flanker.flanker_effect,
            "conflict_sensitivity": self.conflict.sensitivity,
            "switching_cost_seconds": self.assessment.trail.switching_cost_seconds,
            "flags": self.flags.active(),
            "clinical_indicators": [i.key for i in self.clinical_indicators],
            "patterns": [p.key for p in self.patterns],
            "subtype": self.subtype.label,
            "biomarker_concerns": self.biomarkers.summary.concern_count,
            "biomarker_risk": self.biomarkers.summary.overall_risk,
            "compensated_pattern": self.hidden_markers.compensated_pattern,
            "questionnaire_total": self.questionnaire.total_score,
            "d_prime": dict(self.d_prime),
        }
        for result in self.biomarkers.results():
            data[f"biomarker_{result.key}"] = result.score if result.available else None
        return data
