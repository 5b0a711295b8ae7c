"""Unit tests for behavioral flags, clinical indicators, patterns and subtype inference."""

from __future__ import annotations

from dataclasses import replace

from cogreport.domains.attention.domain_logic.domain_scores import (
    DOMAIN_LABELS,
    DomainScore,
    DomainScores,
)
from cogreport.domains.attention.domain_logic.flags import (
    FlagSet,
    ProfileSnapshot,
    compute_clinical_indicators,
    compute_compensation,
    compute_flags,
    detect_patterns,
)
from cogreport.domains.attention.domain_logic.subtype import (
    COMBINED,
    HYPERACTIVE,
    INATTENTIVE,
    SUBTHRESHOLD,
    infer_subtype,
)
from cogreport.domains.attention.domain_logic.task_models import QuestionnaireRecord


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _domains(**scores: int) -> DomainScores:
    """Domain scores defaulting to a comfortable 75."""
    return DomainScores(**{
        key: DomainScore(key=key, score=scores.get(key, 75), label=label, description=desc)
        for key, (label, desc) in DOMAIN_LABELS.items()
    })


def _flags(domains: DomainScores | None = None, **overrides) -> FlagSet:
    kwargs = {
        "tau": 40,
        "rt_cv": 0.2,
        "mc_index": 70,
        "cpi": 40,
        "compensation": False,
        "conflict_effect": 60,
        "incongruent_accuracy": 85,
    }
    kwargs.update(overrides)
    return compute_flags(domains or _domains(), **kwargs)


def _snapshot(**overrides) -> ProfileSnapshot:
    """A profile that matches no pattern rule."""
    fields = {
        "mc_index": 70,
        "cpi": 40,
        "tau": 40,
        "als": 30,
        "sustained_attention": 75,
        "inhibitory_control": 75,
        "working_memory": 75,
        "processing_speed": 75,
        "cognitive_flexibility": 75,
        "interference_control": 75,
        "accuracy": 80.0,
        "mean_rt": 450.0,
        "rt_cv": 0.2,
        "wm_load_drop": 10,
        "flanker_effect": 60.0,
        "switching_cost": 30.0,
        "commission_errors": 5.0,
    }
    fields.update(overrides)
    return ProfileSnapshot(**fields)


def _keys(snapshot: ProfileSnapshot, flags: FlagSet | None = None) -> list[str]:
    return [p.key for p in detect_patterns(snapshot, flags or FlagSet())]


# ---------------------------------------------------------------------------
# Flags
# ---------------------------------------------------------------------------

class TestFlags:
    def test_typical_profile_raises_nothing(self):
        assert _flags().active() == []

    def test_impulsivity(self):
        assert _flags(_domains(response_inhibition=54)).impulsivity
        assert not _flags(_domains(response_inhibition=55)).impulsivity

    def test_inattention_from_tau(self):
        assert _flags(tau=81).inattention

    def test_variability_from_rt_cv_or_mc(self):
        assert _flags(rt_cv=0.31).variability
        assert _flags(mc_index=59).variability

    def test_hyperfocus(self):
        assert _flags(conflict_effect=20, incongruent_accuracy=95).hyperfocus
        assert not _flags(conflict_effect=20, incongruent_accuracy=90).hyperfocus

    def test_masking_needs_compensation_without_variability(self):
        assert _flags(compensation=True).masking
        assert not _flags(compensation=True, rt_cv=0.4).masking

    def test_executive_overload(self):
        assert _flags(cpi=51).executive_overload

    def test_active_keeps_declaration_order(self):
        flags = _flags(_domains(response_inhibition=40, sustained_attention=40))
        assert flags.active()[:2] == ["impulsivity", "inattention"]


class TestCompensation:
    def test_requires_high_accuracy(self):
        assert not compute_compensation(85, 700, 70, 0.4)

    def test_slow_responding(self):
        assert compute_compensation(90, 650, 40, 0.1)

    def test_variable_responding(self):
        assert compute_compensation(90, 450, 40, 0.35)

    def test_fast_and_consistent(self):
        assert not compute_compensation(90, 450, 40, 0.1)


# ---------------------------------------------------------------------------
# Clinical indicators
# ---------------------------------------------------------------------------

class TestClinicalIndicators:
    def test_none_for_typical_profile(self):
        assert compute_clinical_indicators(_domains(), _flags(), 70) == ()

    def test_severity_bands(self):
        domains = _domains(sustained_attention=35, response_inhibition=50, working_memory=58)
        indicators = {i.key: i.severity for i in compute_clinical_indicators(domains, _flags(domains), 70)}
        assert indicators["sustained_attention"] == "severe"
        assert indicators["response_inhibition"] == "moderate"
        assert indicators["working_memory"] == "mild"

    def test_compensation_indicator(self):
        flags = _flags(compensation=True)
        keys = [i.key for i in compute_clinical_indicators(_domains(), flags, 70)]
        assert keys == ["compensation_pattern"]


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

class TestPatterns:
    def test_never_empty(self):
        assert _keys(_snapshot()) == ["typical_profile"]

    def test_compensated_adhd(self):
        snapshot = _snapshot(accuracy=90.0, mean_rt=560.0, rt_cv=0.3)
        patterns = detect_patterns(snapshot, FlagSet())
        assert patterns[0].key == "compensated_adhd"
        assert patterns[0].confidence == "HIGH"

    def test_executive_dysfunction(self):
        snapshot = _snapshot(working_memory=55, cognitive_flexibility=55, cpi=55)
        assert "executive_dysfunction" in _keys(snapshot)

    def test_inconsistent_attention_confidence(self):
        patterns = detect_patterns(_snapshot(mc_index=35), FlagSet())
        match = next(p for p in patterns if p.key == "inconsistent_attention")
        assert match.confidence == "HIGH"

    def test_rules_are_independent(self):
        snapshot = _snapshot(working_memory=45, mc_index=45)
        keys = _keys(snapshot, FlagSet(hyperfocus=True, masking=True))
        assert keys == [
            "inconsistent_attention",
            "hyperfocus_pattern",
            "working_memory_deficit",
            "masking_pattern",
        ]

    def test_impulsivity_dominant(self):
        snapshot = _snapshot(commission_errors=25.0, inhibitory_control=50)
        assert "impulsivity_dominant" in _keys(snapshot)

    def test_anxiety_overlay(self):
        snapshot = _snapshot(mean_rt=650.0, commission_errors=2.0, accuracy=95.0)
        assert "anxiety_overlay" in _keys(snapshot)

    def test_working_memory_load_collapse(self):
        patterns = detect_patterns(_snapshot(wm_load_drop=35), FlagSet())
        match = next(p for p in patterns if p.key == "working_memory_deficit")
        assert match.confidence == "HIGH"


# ---------------------------------------------------------------------------
# Subtype
# ---------------------------------------------------------------------------

class TestSubtype:
    def test_questionnaire_presentation_wins(self):
        q = QuestionnaireRecord(presentation="Predominantly Inattentive", present=True)
        result = infer_subtype(q, _flags(_domains(response_inhibition=40)), 70)
        assert result.label == INATTENTIVE
        assert result.source == "questionnaire"

    def test_symptom_count_upgrades_to_combined(self):
        q = QuestionnaireRecord(presentation="Inattentive", hyperactivity_count=6, present=True)
        result = infer_subtype(q, FlagSet(), 70)
        assert result.label == COMBINED
        assert result.source == "symptom_count"

    def test_flags_fill_missing_presentation(self):
        flags = replace(FlagSet(), impulsivity=True, variability=True)
        assert infer_subtype(QuestionnaireRecord(), flags, 70).label == COMBINED

    def test_impulsivity_alone_is_hyperactive(self):
        flags = replace(FlagSet(), impulsivity=True)
        result = infer_subtype(QuestionnaireRecord(), flags, 70)
        assert result.label == HYPERACTIVE
        assert result.key == "hyperactive"
        assert result.source == "cognitive_flags"

    def test_low_mc_index_is_inattentive(self):
        assert infer_subtype(QuestionnaireRecord(), FlagSet(), 55).label == INATTENTIVE

    def test_subthreshold(self):
        result = infer_subtype(QuestionnaireRecord(), FlagSet(), 70)
        assert result.label == SUBTHRESHOLD
        assert result.key == "subthreshold"
        assert result.source == "none"
