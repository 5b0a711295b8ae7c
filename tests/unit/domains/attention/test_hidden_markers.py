"""Unit tests for per-task micro-behavioral markers."""

from __future__ import annotations

from cogreport.domains.attention.domain_logic.hidden_markers import (
    COMPENSATED_SUMMARY,
    NO_PATTERN_SUMMARY,
    calculate_hidden_markers,
    calculate_task_fatigue,
    calculate_task_mssd,
    estimate_ex_gaussian,
)
from cogreport.domains.attention.domain_logic.normalizer import normalize_assessment


def _ramp(start: float, step: float, count: int = 12) -> list[float]:
    return [start + step * i for i in range(count)]


class TestTaskMSSD:
    def test_normal(self):
        marker = calculate_task_mssd([500, 550, 500, 550, 500])
        assert marker.value == 2500
        assert marker.status == "normal"

    def test_elevated(self):
        assert calculate_task_mssd([500, 580, 500, 580, 500]).status == "elevated"

    def test_high(self):
        marker = calculate_task_mssd([500, 600, 500, 600, 500])
        assert marker.value == 10000
        assert marker.status == "high"

    def test_too_few_points(self):
        assert calculate_task_mssd([500, 600, 500]).status == "insufficient_data"

    def test_out_of_range_rts_excluded(self):
        assert calculate_task_mssd([500, 600, 50, 2500, 500, 600]).status == "insufficient_data"


class TestTaskFatigue:
    def test_severe_slowing(self):
        marker = calculate_task_fatigue(_ramp(400, 3))
        assert marker.direction == "slowing"
        assert marker.significance == "severe"
        assert "3.00ms per trial" in marker.interpretation

    def test_significant_slowing(self):
        assert calculate_task_fatigue(_ramp(400, 1.5)).significance == "significant"

    def test_stable(self):
        marker = calculate_task_fatigue([500] * 12)
        assert marker.direction == "stable"
        assert marker.significance == "none"

    def test_speeding(self):
        marker = calculate_task_fatigue(_ramp(600, -2))
        assert marker.direction == "speeding"
        assert marker.significance == "significant"

    def test_needs_ten_points(self):
        assert calculate_task_fatigue(_ramp(400, 3, count=9)).direction == "insufficient_data"


class TestExGaussian:
    def test_symmetric_series_has_no_tail(self):
        estimate = estimate_ex_gaussian([400, 500] * 5)
        assert estimate.available
        assert estimate.tau == 0
        assert estimate.mu == 450

    def test_right_skew_gives_positive_tau(self):
        estimate = estimate_ex_gaussian([400] * 9 + [400, 1200])
        assert estimate.tau > 0
        # mu sits below the sample mean (about 473 ms)
        assert estimate.mu < 473

    def test_too_few_points(self):
        assert not estimate_ex_gaussian([400] * 9).available


class TestHiddenMarkers:
    def test_no_reaction_times(self, empty_assessment):
        markers = calculate_hidden_markers(normalize_assessment(empty_assessment))
        assert not markers.available
        assert markers.tasks == ()
        assert not markers.compensated_pattern
        assert markers.summary == NO_PATTERN_SUMMARY

    def test_fatigue_reveals_compensation(self):
        assessment = normalize_assessment({"cpt": {"reactionTimes": _ramp(400, 3)}})
        markers = calculate_hidden_markers(assessment)
        assert markers.available
        assert [t.name for t in markers.tasks] == ["CPT"]
        assert markers.has_significant_decline
        assert markers.compensated_pattern
        assert markers.summary == COMPENSATED_SUMMARY

    def test_every_task_series_analyzed(self):
        assessment = normalize_assessment({
            "cpt": {"reactionTimes": [500] * 12},
            "flanker": {"reactionTimes": [520] * 12},
        })
        markers = calculate_hidden_markers(assessment)
        assert [t.name for t in markers.tasks] == ["CPT", "Flanker"]
        assert markers.avg_mssd == 0
        assert not markers.compensated_pattern
