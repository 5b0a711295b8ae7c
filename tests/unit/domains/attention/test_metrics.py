"""Unit tests for the end-to-end scoring pipeline."""

from __future__ import annotations

import json

import pytest

from cogreport.domains.attention.domain_logic.metrics import calculate_assessment_metrics
from cogreport.domains.attention.domain_logic.normalizer import normalize_assessment


def _metrics(raw):
    return calculate_assessment_metrics(normalize_assessment(raw))


class TestSampleAssessment:
    def test_subtype_from_questionnaire(self, sample_assessment):
        metrics = _metrics(sample_assessment)
        assert metrics.subtype.label == "INATTENTIVE"
        assert metrics.subtype.source == "questionnaire"

    def test_als_respects_criteria_floor(self, sample_assessment):
        metrics = _metrics(sample_assessment)
        assert metrics.als.value >= 45
        assert metrics.als.questionnaire_modifier == 20

    def test_switching_biomarker_from_trail(self, sample_assessment):
        switching = _metrics(sample_assessment).biomarkers.switching
        assert switching.available
        assert switching.score == pytest.approx(2.33)
        assert switching.rating == "Elevated"

    def test_rt_series_biomarkers_available(self, sample_assessment):
        biomarkers = _metrics(sample_assessment).biomarkers
        assert biomarkers.mssd.available
        assert biomarkers.fatigue.available

    def test_d_prime_for_tasks_with_counts(self, sample_assessment):
        d_prime = _metrics(sample_assessment).d_prime
        assert set(d_prime) == {"cpt"}
        assert d_prime["cpt"] > 0

    def test_questionnaire_summary(self, sample_assessment):
        q = _metrics(sample_assessment).questionnaire
        assert q.available
        assert q.inattention_severity == "MODERATE"
        assert q.severity_percent == pytest.approx(52.8)

    def test_snapshot_is_json_ready(self, sample_assessment):
        snapshot = _metrics(sample_assessment).snapshot()
        json.dumps(snapshot)
        for key in ("domains", "als", "als_category", "mc_index", "cpi", "tau", "rt_cv",
                    "flags", "patterns", "subtype", "d_prime", "biomarker_switching"):
            assert key in snapshot
        assert snapshot["biomarker_switching"] == pytest.approx(2.33)


class TestEmptyAssessment:
    def test_all_scores_bounded(self, empty_assessment):
        metrics = _metrics(empty_assessment)
        for value in metrics.domains.score_map().values():
            assert 0 <= value <= 100
        for value in (metrics.mc_index.value, metrics.cpi.value, metrics.tau.value,
                      metrics.performance_score):
            assert 0 <= value <= 100
        assert 1 <= metrics.als.value <= 99

    def test_rt_biomarkers_unavailable(self, empty_assessment):
        metrics = _metrics(empty_assessment)
        assert not metrics.biomarkers.mssd.available
        assert not metrics.biomarkers.fatigue.available
        assert metrics.snapshot()["biomarker_mssd"] is None

    def test_untimed_trail_has_no_switching_biomarker(self, empty_assessment):
        assert not _metrics(empty_assessment).biomarkers.switching.available

    def test_no_questionnaire(self, empty_assessment):
        metrics = _metrics(empty_assessment)
        assert not metrics.questionnaire.available
        assert metrics.d_prime == {}
        assert metrics.patterns


class TestCompensation:
    def test_accurate_but_slow_profile(self, assessment_factory):
        raw = assessment_factory(
            cpt={"hitRate": 0.97, "commissionErrors": 1, "meanRT": 680, "rtStandardDeviation": 60},
            goNoGo={"noGoAccuracy": 0.95, "goAccuracy": 0.98, "meanRT": 700},
            nback={"accuracy": 0.9, "level": 2, "oneBackAccuracy": 0.95, "twoBackAccuracy": 0.9},
            dsm5=None,
        )
        metrics = _metrics(raw)
        assert metrics.flags.compensation
        assert metrics.compensation.detected
        assert metrics.als.compensation_penalty == 30
