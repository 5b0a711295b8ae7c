"""End-to-end report pipeline: raw aggregate -> adapted Report.

Normalization, metric calculation, composition and audience adaptation run
synchronously in one pass. The only shared state is the read-only block
library.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping

from cogreport.core.audience.adapter import adapt_report
from cogreport.core.blocks.loader import get_default_library
from cogreport.core.blocks.registry import BlockLibrary
from cogreport.domains.attention.domain_logic.metric_models import AssessmentMetrics
from cogreport.domains.attention.domain_logic.metrics import calculate_assessment_metrics
from cogreport.domains.attention.domain_logic.normalizer import normalize_assessment
from cogreport.domains.attention.narrative.composer import NarrativeComposer
from cogreport.domains.attention.narrative.models import IntakeContext, Report

logger = logging.getLogger(__name__)


def compute_metrics(raw: Mapping[str, Any]) -> AssessmentMetrics:
    """Normalize ``raw`` and derive every score, flag and biomarker."""
    return calculate_assessment_metrics(normalize_assessment(raw))


def generate_report(
    raw: Mapping[str, Any],
    audience: str | None = None,
    seed: int | None = None,
    library: BlockLibrary | None = None,
    intake: IntakeContext | Mapping[str, Any] | None = None,
    generated_at: datetime | None = None,
) -> Report:
    """Build the narrative report for one assessment.

    Args:
        raw: The assessment aggregate (task results, questionnaire, user/device context).
        audience: ``"patient"``, ``"clinician"`` or ``"standard"``. ``None`` means standard.
        seed: Fixes every phrasing choice; ``None`` lets wording vary between calls.
        library: Block library to compose from. Defaults to the packaged one.
        intake: Optional name/age/assessment details for the intake summary.
        generated_at: Timestamp recorded in the metadata. Defaults to now (UTC).

    Raises:
        MalformedAssessmentError: ``raw`` or a task payload is not a mapping.
        ValueError: ``audience`` is not recognised.
    """
    library = library or get_default_library()
    metrics = compute_metrics(raw)
    report = NarrativeComposer(library).compose(
        metrics, seed=seed, intake=intake, generated_at=generated_at
    )
    report = adapt_report(report, audience or "standard", library)
    logger.info(
        "Generated %s report: ALS=%d (%s), subtype=%s, flags=%d, biomarker concerns=%d",
        report.audience,
        metrics.als.value,
        metrics.als.category,
        metrics.subtype.label,
        len(metrics.flags.active()),
        metrics.biomarkers.summary.concern_count,
    )
    return report
