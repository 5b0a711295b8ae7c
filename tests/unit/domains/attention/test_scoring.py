"""Unit tests for domain scores, composite indices and the Attention Load Score."""

from __future__ import annotations

import pytest

from cogreport.domains.attention.domain_logic.composites import (
    als_category,
    compute_als,
    compute_conflict,
    compute_cpi,
    compute_mc_index,
    compute_performance_score,
    compute_rt_variability,
    compute_tau,
    compute_wm_load,
    implication_key,
    mc_level,
    questionnaire_modifier,
)
from cogreport.domains.attention.domain_logic.domain_scores import (
    compute_cognitive_flexibility,
    compute_domain_scores,
    compute_interference_control,
    compute_processing_speed,
    compute_response_inhibition,
    compute_sustained_attention,
    compute_working_memory,
    round_half_up,
    safe_score,
)
from cogreport.domains.attention.domain_logic.normalizer import normalize_assessment
from cogreport.domains.attention.domain_logic.task_models import QuestionnaireRecord


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _questionnaire(**overrides) -> QuestionnaireRecord:
    fields = {"present": True}
    fields.update(overrides)
    return QuestionnaireRecord(**fields)


def _severe_combined() -> QuestionnaireRecord:
    """Severe combined presentation with impairment: the highest floor rule."""
    return _questionnaire(
        inattention_score=32,
        hyperactivity_score=28,
        total_score=60,
        meets_inattention_criteria=True,
        meets_hyperactivity_criteria=True,
        meets_supporting_criteria=True,
        presentation="Combined Presentation",
    )


# ---------------------------------------------------------------------------
# Arithmetic guards
# ---------------------------------------------------------------------------

class TestSafeScore:
    def test_clamps_to_range(self):
        assert safe_score(150) == 100
        assert safe_score(-3) == 0

    def test_rounds_half_up(self):
        assert safe_score(61.5) == 62
        assert safe_score(61.49) == 61

    @pytest.mark.parametrize("value", [None, float("nan"), float("inf"), True, "abc"])
    def test_unusable_values_give_default(self, value):
        assert safe_score(value, 70) == 70

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(0.5) == 1
        assert round_half_up(2.25, 1) == pytest.approx(2.3)


# ---------------------------------------------------------------------------
# Domain scores
# ---------------------------------------------------------------------------

class TestDomainFormulas:
    def test_sustained_attention(self):
        assert compute_sustained_attention(90, 10) == 90

    def test_response_inhibition(self):
        assert compute_response_inhibition(80, 90) == 83

    def test_working_memory_level_bonus(self):
        assert compute_working_memory(70, 1) == 70
        assert compute_working_memory(70, 3) == 77
        assert compute_working_memory(100, 3) == 100

    def test_interference_penalty(self):
        assert compute_interference_control(95, 85, 60) == 72

    def test_interference_penalty_capped(self):
        assert compute_interference_control(95, 85, 600) == 54

    def test_cognitive_flexibility(self):
        assert compute_cognitive_flexibility(30, 70) == 64
        assert compute_cognitive_flexibility(30, 30) == 92

    def test_processing_speed(self):
        assert compute_processing_speed(250) == 100
        assert compute_processing_speed(450) == 50
        assert compute_processing_speed(700) == 0


class TestDomainScores:
    def test_all_scores_bounded_for_empty_input(self, empty_assessment):
        domains = compute_domain_scores(normalize_assessment(empty_assessment))
        for domain in domains.ordered():
            assert 0 <= domain.score <= 100

    def test_extreme_inputs_stay_bounded(self):
        assessment = normalize_assessment({
            "cpt": {"hitRate": 500, "commissionErrors": -50, "meanRT": -100},
            "nback": {"accuracy": 400, "level": 9},
            "flanker": {"congruentRT": 900, "incongruentRT": 100},
            "trail": {"partATime": 0, "partBTime": 0},
        })
        for domain in compute_domain_scores(assessment).ordered():
            assert 0 <= domain.score <= 100

    def test_sample_scores(self, sample_assessment):
        domains = compute_domain_scores(normalize_assessment(sample_assessment))
        assert domains.sustained_attention.score == 89
        assert domains.response_inhibition.score == 79
        assert domains.working_memory.score == 71
        assert domains.cognitive_flexibility.score == 64
        assert domains.processing_speed.score == 45

    def test_score_map_order_and_labels(self, sample_assessment):
        domains = compute_domain_scores(normalize_assessment(sample_assessment))
        assert list(domains.score_map()) == [
            "sustained_attention",
            "response_inhibition",
            "working_memory",
            "interference_control",
            "cognitive_flexibility",
            "processing_speed",
        ]
        assert domains.response_inhibition.label == "Impulse Control"


# ---------------------------------------------------------------------------
# Composite indices
# ---------------------------------------------------------------------------

class TestComposites:
    def test_tau_categories(self):
        assert compute_tau(50).category == "NORMAL"
        assert compute_tau(75).category == "BORDERLINE"
        assert compute_tau(100).category == "ELEVATED"

    def test_tau_capped_at_100(self):
        assert compute_tau(400).value == 100

    def test_rt_variability(self):
        result = compute_rt_variability(120, 400)
        assert result.rt_cv == pytest.approx(0.3)
        assert result.consistency == 40

    def test_rt_variability_zero_mean_rt(self):
        assert compute_rt_variability(100, 0).rt_cv == pytest.approx(0.3)

    def test_mc_index(self):
        result = compute_mc_index(40, 5, 90)
        assert result.value == 72
        assert result.details["commission_control"] == 95

    def test_cpi(self):
        assert compute_cpi(70, 80).value == 65
        assert compute_cpi(5, 5).value == 0

    @pytest.mark.parametrize(
        ("one_back", "two_back", "drop", "response"),
        [(90, 62, 28, "COLLAPSE"), (90, 78, 12, "DECLINE"), (90, 85, 5, "STABLE"), (90, 95, 0, "STABLE")],
    )
    def test_wm_load(self, one_back, two_back, drop, response):
        result = compute_wm_load(one_back, two_back)
        assert result.drop == drop
        assert result.response == response

    def test_conflict_sensitivity(self):
        assert compute_conflict(49).sensitivity == "LOW"
        assert compute_conflict(95).sensitivity == "MODERATE"
        assert compute_conflict(100).sensitivity == "HIGH"
        assert compute_conflict(-20).effect == 0

    def test_performance_score_of_uniform_domains(self, empty_assessment):
        domains = compute_domain_scores(normalize_assessment(empty_assessment))
        assert 0 <= compute_performance_score(domains) <= 100

    def test_level_keys(self):
        assert mc_level(34) == "very_low"
        assert mc_level(35) == "low"
        assert mc_level(65) == "high"
        assert implication_key(40, 60) == "low_mc_high_cpi"
        assert implication_key(70, 20) == "high_mc_low_cpi"


# ---------------------------------------------------------------------------
# Attention Load Score
# ---------------------------------------------------------------------------

class TestQuestionnaireModifier:
    def test_criteria_met(self):
        assert questionnaire_modifier(_questionnaire(meets_inattention_criteria=True)) == 20

    @pytest.mark.parametrize(
        ("inattention", "modifier"), [(30, 15), (21, 10), (14, 5), (13, 0)],
    )
    def test_symptom_fraction(self, inattention, modifier):
        assert questionnaire_modifier(_questionnaire(inattention_score=inattention)) == modifier


class TestALS:
    def test_plain_performance(self):
        result = compute_als(60, False, QuestionnaireRecord())
        assert result.value == 40
        assert result.category == "MILD"
        assert not result.floor_applied

    def test_compensation_penalty(self):
        result = compute_als(60, True, QuestionnaireRecord())
        assert result.value == 70
        assert result.compensation_penalty == 30

    def test_severe_combined_floor_is_at_least_65(self):
        result = compute_als(95, False, _severe_combined())
        assert result.value >= 65
        assert result.value == 65
        assert result.floor_rule == 1
        assert result.floor_reason

    def test_criteria_with_impairment_floor(self):
        q = _questionnaire(
            inattention_score=12,
            total_score=20,
            meets_inattention_criteria=True,
            meets_supporting_criteria=True,
        )
        result = compute_als(90, False, q)
        assert result.value == 45
        assert result.floor_rule == 3

    def test_floor_never_lowers(self):
        result = compute_als(10, False, _severe_combined())
        assert result.value == 99
        assert not result.floor_applied

    def test_no_floor_without_impairment(self):
        q = _questionnaire(meets_inattention_criteria=True, total_score=60, presentation="Combined")
        result = compute_als(95, False, q)
        assert result.value == 25
        assert not result.floor_applied

    def test_lower_bound(self):
        assert compute_als(100, False, QuestionnaireRecord()).value == 1

    @pytest.mark.parametrize(
        ("value", "category"),
        [(30, "TYPICAL"), (31, "MILD"), (50, "MILD"), (51, "MODERATE"), (70, "MODERATE"),
         (71, "SIGNIFICANT"), (85, "SIGNIFICANT"), (86, "SEVERE")],
    )
    def test_category_boundaries(self, value, category):
        assert als_category(value) == category
