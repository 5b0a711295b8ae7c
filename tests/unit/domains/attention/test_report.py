"""Unit tests for the end-to-end report pipeline."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

import pytest

from cogreport.domains.attention.domain_logic.normalizer import MalformedAssessmentError
from cogreport.domains.attention.report import compute_metrics, generate_report

GENERATED_AT = datetime(2026, 3, 2, tzinfo=timezone.utc)


class TestGenerateReport:
    def test_defaults_to_standard(self, sample_assessment):
        report = generate_report(sample_assessment, seed=1, generated_at=GENERATED_AT)
        assert report.audience == "standard"
        assert report.annotations == {}

    @pytest.mark.parametrize("audience", ["standard", "patient", "clinician"])
    def test_audience_applied(self, library, sample_assessment, audience):
        report = generate_report(
            sample_assessment, audience=audience, seed=1, library=library, generated_at=GENERATED_AT
        )
        assert report.audience == audience
        assert len(report.sections) == 18

    def test_seeded_output_reproducible(self, library, sample_assessment):
        kwargs = {"audience": "patient", "seed": 99, "library": library, "generated_at": GENERATED_AT}
        first = generate_report(sample_assessment, **kwargs)
        second = generate_report(sample_assessment, **kwargs)
        assert json.dumps(first.to_dict()) == json.dumps(second.to_dict())

    def test_input_not_modified(self, library, sample_assessment, assessment_factory):
        generate_report(sample_assessment, seed=1, library=library)
        assert sample_assessment == assessment_factory()

    def test_unknown_audience(self, library, sample_assessment):
        with pytest.raises(ValueError, match="Unknown audience"):
            generate_report(sample_assessment, audience="press", library=library)

    def test_malformed_aggregate(self, library):
        with pytest.raises(MalformedAssessmentError):
            generate_report(["not", "a", "mapping"], library=library)

    def test_malformed_task_payload(self, library, assessment_factory):
        with pytest.raises(MalformedAssessmentError):
            generate_report(assessment_factory(cpt="fast"), library=library)

    def test_empty_assessment_still_reports(self, library, empty_assessment):
        report = generate_report(empty_assessment, seed=1, library=library)
        assert len(report.sections) == 18
        assert 1 <= report.metrics["als"] <= 99

    def test_logs_summary(self, library, sample_assessment, caplog):
        with caplog.at_level(logging.INFO, logger="cogreport.domains.attention.report"):
            generate_report(sample_assessment, seed=1, library=library)
        assert "subtype=INATTENTIVE" in caplog.text


class TestComputeMetrics:
    def test_matches_report_snapshot(self, library, sample_assessment):
        metrics = compute_metrics(sample_assessment)
        report = generate_report(sample_assessment, seed=1, library=library)
        assert report.metrics["als"] == metrics.als.value
        assert report.metrics["subtype"] == metrics.subtype.label
