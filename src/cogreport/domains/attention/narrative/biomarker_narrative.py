"""Functional biomarker narrative and real-life predictions."""

from __future__ import annotations

from typing import Any

from cogreport.domains.attention.domain_logic.biomarker_models import BiomarkerPanel
from cogreport.domains.attention.narrative.models import Section
from cogreport.domains.attention.narrative.writer import BlockWriter

# Library order of the prediction entries
PREDICTION_KEYS = ("burnout", "drifting", "abandonment", "paralysis", "crisis")


def build_life_predictions(panel: BiomarkerPanel, writer: BlockWriter) -> list[dict[str, Any]]:
    """Predictions whose biomarker is available and rated in the listed tiers."""
    predictions = []
    for key in PREDICTION_KEYS:
        entry = writer.raw("life_predictions", key)
        result = getattr(panel, entry["biomarker"])
        if not result.available or result.rating not in entry["ratings"]:
            continue

        explanations = entry["explanation"]
        template = explanations.get(result.rating, explanations["default"])
        explanation = template.format(
            total_drift=result.details.get("total_drift", 0),
            trial_count=result.details.get("trial_count", 0),
            ratio=result.score,
        )
        is_strength = bool(entry.get("strength", False))
        predictions.append({
            "key": key,
            "biomarker": result.key,
            "metric": entry["metric"],
            "value": result.score,
            "unit": entry["unit"],
            "severity": "Strength" if is_strength else result.rating,
            "prediction": entry["prediction"],
            "headline": entry["headline"],
            "explanation": explanation,
            "daily_life_examples": entry["daily_life_examples"],
            "strategies": entry["strategies"],
            "is_strength": is_strength,
        })
    return predictions


def build_biomarker_section(
    panel: BiomarkerPanel,
    writer: BlockWriter,
    key: str = "functional_biomarkers",
    title_path: tuple[str, ...] | None = None,
) -> Section:
    """Narrative paragraphs, rated biomarker cards and predictions.

    Falls back to a placeholder when no biomarker could be computed.
    """
    if not panel.any_available:
        return writer.placeholder(key, "biomarkers", title_path=title_path)

    summary = panel.summary
    paragraphs = [writer.text("biomarker_narrative", "opening", concern_count=summary.concern_count)]
    cards: dict[str, Any] = {}
    for result in panel.results():
        if not result.available:
            cards[result.key] = None
            continue
        paragraphs.append(writer.text(
            "biomarker_narrative", result.key,
            score=result.score, rating=result.rating, interpretation=result.interpretation,
        ))
        cards[result.key] = {
            "name": writer.text("biomarker_narrative", "names", result.key),
            "value": result.score,
            "unit": result.unit,
            "rating": result.rating,
            "concern": result.concern,
            "is_strength": result.is_strength,
            "real_life_impact": list(result.real_life_impact),
        }

    return writer.section(key, paragraphs, {
        "biomarkers": cards,
        "summary": {
            "concern_count": summary.concern_count,
            "total_biomarkers": summary.total_biomarkers,
            "overall_risk": summary.overall_risk,
            "interpretation": summary.interpretation,
        },
        "clinical_relevance": summary.clinical_relevance,
        "predictions": build_life_predictions(panel, writer),
    }, title_path=title_path)
