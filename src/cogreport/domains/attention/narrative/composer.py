"""Narrative composer: AssessmentMetrics + BlockLibrary -> Report."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from cogreport.core.blocks.registry import BlockLibrary
from cogreport.core.blocks.selection import VariantPicker
from cogreport.domains.attention.domain_logic.metric_models import AssessmentMetrics
from cogreport.domains.attention.narrative import guidance, sections
from cogreport.domains.attention.narrative.biomarker_narrative import (
    build_biomarker_section,
    build_life_predictions,
)
from cogreport.domains.attention.narrative.clinical_levels import (
    build_clinical_levels,
    build_risk_indicators,
)
from cogreport.domains.attention.narrative.models import IntakeContext, Report, Section
from cogreport.domains.attention.narrative.writer import BlockWriter

logger = logging.getLogger(__name__)

SectionBuilder = Callable[[AssessmentMetrics, BlockWriter], Section]

SECTION_KEYS = (
    "intake_summary",
    "validity",
    "concept_glossary",
    "core_markers",
    "task_breakdown",
    "cross_task_patterns",
    "subtype_profile",
    "symptom_correlation",
    "reliability",
    "real_life_impact",
    "strengths_challenges",
    "clinical_analysis",
    "limitations",
    "recommendations",
    "risk_indicators",
    "functional_biomarkers",
    "technical_appendix",
    "simple_summary",
)

_BUILDERS: dict[str, SectionBuilder] = {
    "validity": sections.build_validity,
    "concept_glossary": sections.build_concept_glossary,
    "core_markers": sections.build_core_markers,
    "task_breakdown": sections.build_task_breakdown,
    "cross_task_patterns": sections.build_cross_task_patterns,
    "subtype_profile": sections.build_subtype_profile,
    "symptom_correlation": sections.build_symptom_correlation,
    "reliability": sections.build_reliability,
    "real_life_impact": guidance.build_real_life_impact,
    "strengths_challenges": guidance.build_strengths_challenges,
    "clinical_analysis": guidance.build_clinical_analysis,
    "limitations": guidance.build_limitations,
    "recommendations": guidance.build_recommendations,
    "risk_indicators": build_risk_indicators,
    "functional_biomarkers": lambda m, w: build_biomarker_section(m.biomarkers, w),
    "technical_appendix": guidance.build_technical_appendix,
    "simple_summary": guidance.build_simple_summary,
}


class NarrativeComposer:
    """Composes one Report per call from a shared, read-only block library.

    The composer holds no per-report state; each ``compose`` call gets its
    own variant picker, so one instance is safe to share between threads.
    """

    def __init__(self, library: BlockLibrary) -> None:
        self.library = library

    def compose(
        self,
        metrics: AssessmentMetrics,
        seed: int | None = None,
        intake: IntakeContext | Mapping[str, Any] | None = None,
        generated_at: datetime | None = None,
    ) -> Report:
        if not isinstance(intake, IntakeContext):
            intake = IntakeContext.from_mapping(intake)
        writer = BlockWriter(self.library, VariantPicker(seed))

        built = []
        for key in SECTION_KEYS:
            if key == "intake_summary":
                built.append(sections.build_intake_summary(metrics, writer, intake))
            else:
                built.append(_BUILDERS[key](metrics, writer))

        generated_at = generated_at or datetime.now(timezone.utc)
        report = Report(
            metadata={
                "library": self.library.manifest.library,
                "library_version": self.library.version,
                "seed": seed,
                "generated_at": generated_at.isoformat(),
                "subtype": metrics.subtype.label,
                "als": metrics.als.value,
                "als_category": metrics.als.category,
            },
            executive_summary=guidance.build_executive_summary(metrics, writer),
            sections=tuple(built),
            clinical_levels=build_clinical_levels(metrics, writer),
            life_predictions=build_life_predictions(metrics.biomarkers, writer),
            metrics=metrics.snapshot(),
        )
        logger.debug(
            "Composed report: %d sections (%d unavailable), seed=%s",
            len(report.sections),
            sum(1 for s in report.sections if not s.available),
            seed,
        )
        return report
