"""Unit tests for functional biomarkers and signal-detection sensitivity."""

from __future__ import annotations

import pytest

from cogreport.domains.attention.domain_logic.biomarker_models import INSUFFICIENT_DATA
from cogreport.domains.attention.domain_logic.biomarkers import (
    calculate_all_biomarkers,
    calculate_fatigue_slope,
    calculate_ies,
    calculate_mssd,
    calculate_switching_cost,
    compute_d_prime,
    ols_slope,
)
from cogreport.domains.attention.domain_logic.task_models import SignalCounts


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _ramp(start: float, step: float, count: int = 10) -> list[float]:
    return [start + step * i for i in range(count)]


# ---------------------------------------------------------------------------
# IES
# ---------------------------------------------------------------------------

class TestIES:
    def test_efficient(self):
        result = calculate_ies(400, 100)
        assert result.available
        assert result.score == 400
        assert result.rating == "Efficient"
        assert not result.concern

    def test_severe(self):
        result = calculate_ies(800, 70)
        assert result.score == 1143
        assert result.rating == "Severe"
        assert result.concern

    def test_tier_boundaries(self):
        assert calculate_ies(500, 100).rating == "Normal"
        assert calculate_ies(750, 100).rating == "High"
        assert calculate_ies(900, 100).rating == "High"
        assert calculate_ies(901, 100).rating == "Severe"

    @pytest.mark.parametrize(("mean_rt", "accuracy"), [(0, 90), (-5, 90), (450, 0)])
    def test_missing_inputs_unavailable(self, mean_rt, accuracy):
        result = calculate_ies(mean_rt, accuracy)
        assert not result.available
        assert result.score == 0
        assert result.rating == INSUFFICIENT_DATA


# ---------------------------------------------------------------------------
# MSSD
# ---------------------------------------------------------------------------

class TestMSSD:
    @pytest.mark.parametrize(
        ("second_rt", "score", "rating"),
        [(649, 149, "Stable"), (650, 150, "Elevated"), (800, 300, "Elevated"), (801, 301, "Severe")],
    )
    def test_boundaries(self, second_rt, score, rating):
        result = calculate_mssd([500, second_rt])
        assert result.score == score
        assert result.rating == rating

    def test_root_mean_square_of_successive_differences(self):
        # diffs 10, -5, 95, -110 -> sqrt(21250 / 4) = 72.9
        result = calculate_mssd([300, 310, 305, 400, 290])
        assert result.score == 73
        assert result.rating == "Stable"
        assert result.details["valid_pairs"] == 4

    def test_reproducible(self):
        rts = [420, 515, 398, 610, 455, 530]
        assert calculate_mssd(rts) == calculate_mssd(list(rts))

    def test_artifact_pairs_skipped(self):
        result = calculate_mssd([50, 500, 600])
        assert result.score == 100
        assert result.details["valid_pairs"] == 1

    def test_too_short(self):
        result = calculate_mssd([500])
        assert not result.available
        assert result.score == 0

    def test_no_valid_pairs(self):
        assert not calculate_mssd([50, 6000, 80]).available


# ---------------------------------------------------------------------------
# Fatigue slope
# ---------------------------------------------------------------------------

class TestFatigueSlope:
    def test_ols_slope(self):
        assert ols_slope([1, 3, 5, 7]) == pytest.approx(2.0)
        assert ols_slope([5]) is None

    def test_rapid_drain(self):
        result = calculate_fatigue_slope(_ramp(400, 20))
        assert result.rating == "Rapid Drain"
        assert result.score == pytest.approx(20.0)
        assert result.details["total_drift"] == 200
        assert result.details["trial_count"] == 10
        assert "200ms over 10 trials" in result.interpretation
        assert result.concern

    def test_moderate_drain(self):
        assert calculate_fatigue_slope(_ramp(400, 5)).rating == "Moderate Drain"

    def test_stable(self):
        result = calculate_fatigue_slope([500] * 10)
        assert result.rating == "Stable"
        assert result.score == 0
        assert not result.concern

    def test_speeding(self):
        result = calculate_fatigue_slope(_ramp(600, -10))
        assert result.rating == "Speeding"
        assert result.details["direction"] == "speeding"

    def test_needs_five_points(self):
        assert not calculate_fatigue_slope([400, 410, 420, 430]).available

    def test_needs_five_valid_points(self):
        assert not calculate_fatigue_slope([400, 410, 20, 30, 9000]).available


# ---------------------------------------------------------------------------
# Switching cost
# ---------------------------------------------------------------------------

class TestSwitchingCost:
    def test_elevated_ratio(self):
        result = calculate_switching_cost(30000, 70000)
        assert result.score == pytest.approx(2.33)
        assert result.rating == "Elevated"
        assert result.concern
        assert not result.is_strength
        assert result.details["raw_ms"] == 40000

    def test_efficient_is_a_strength(self):
        result = calculate_switching_cost(30000, 45000)
        assert result.rating == "Efficient"
        assert result.is_strength
        assert not result.concern

    def test_severe(self):
        assert calculate_switching_cost(20000, 60000).rating == "Severe"

    def test_missing_trail_unavailable(self):
        assert not calculate_switching_cost(0, 60000).available


# ---------------------------------------------------------------------------
# Panel
# ---------------------------------------------------------------------------

class TestPanel:
    def test_nothing_available(self):
        panel = calculate_all_biomarkers([], mean_rt=0, accuracy=0)
        assert not panel.any_available
        assert panel.summary.concern_count == 0
        assert panel.summary.overall_risk == "Minimal Functional Impact"
        assert panel.summary.clinical_relevance == "LOW"

    def test_concerns_counted(self):
        panel = calculate_all_biomarkers(
            _ramp(400, 20), mean_rt=800, accuracy=70, trail_a_ms=30000, trail_b_ms=70000
        )
        # IES severe, MSSD stable (20ms steps), fatigue rapid drain, switching elevated
        assert panel.summary.concern_count == 3
        assert panel.summary.overall_risk == "High Functional Impact"
        assert panel.summary.clinical_relevance == "HIGH"
        assert panel.summary.total_biomarkers == 4

    def test_results_order(self):
        panel = calculate_all_biomarkers([], mean_rt=400, accuracy=100)
        assert [r.key for r in panel.results()] == ["ies", "mssd", "fatigue", "switching"]
        assert panel.any_available


# ---------------------------------------------------------------------------
# d′
# ---------------------------------------------------------------------------

class TestDPrime:
    def test_typical(self):
        counts = SignalCounts(hits=40, misses=10, false_alarms=5, correct_rejections=45)
        assert compute_d_prime(counts) == pytest.approx(2.12)

    def test_perfect_rates_clamped(self):
        counts = SignalCounts(hits=50, misses=0, false_alarms=0, correct_rejections=50)
        assert compute_d_prime(counts) == pytest.approx(4.65)

    def test_incomplete_counts(self):
        assert compute_d_prime(SignalCounts(hits=40, misses=10)) is None
