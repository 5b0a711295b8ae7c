"""Assessment sections: intake through reliability.

Each builder takes the scored metrics plus a :class:`BlockWriter` and
returns one :class:`Section`. Builders never mutate their inputs and read
phrasing only through the writer.
"""

from __future__ import annotations

from typing import Any

from cogreport.domains.attention.domain_logic.composites import (
    conflict_level,
    cpi_level,
    implication_key,
    mc_level,
    tau_level,
    wm_level,
)
from cogreport.domains.attention.domain_logic.metric_models import AssessmentMetrics
from cogreport.domains.attention.domain_logic.subtype import (
    COMBINED,
    HYPERACTIVE,
    INATTENTIVE,
    SUBTHRESHOLD,
)
from cogreport.domains.attention.narrative.models import IntakeContext, Section
from cogreport.domains.attention.narrative.writer import BlockWriter, plain_number

DEFAULT_VALIDITY_SCORE = 95
CONSISTENT_RT_SD = 200

PRESENTATION_KEYS = {
    "Combined": "combined",
    "Predominantly Inattentive": "inattentive",
    "Predominantly Hyperactive-Impulsive": "hyperactive",
}

SUBTYPE_DESCRIPTION_KEYS = {
    "inattentive": "inattentive",
    "hyperactive": "hyperactive_impulsive",
    "combined": "combined",
    "subthreshold": "subthreshold",
}

# Flag narrative order in the core-marker summary
FLAG_NARRATIVES = (
    ("hyperfocus", "hyperfocus"),
    ("compensation", "compensated"),
    ("masking", "masking"),
    ("executive_overload", "executive_overload"),
    ("variability", "high_variability"),
)


def intake_severity(score: float) -> str:
    """Plain severity word for one questionnaire domain score (0-27)."""
    if score >= 18:
        return "significant"
    if score >= 12:
        return "moderate"
    if score >= 6:
        return "mild"
    return "minimal"


def symptom_severity(score: float) -> str:
    if score >= 18:
        return "Severe"
    if score >= 12:
        return "Moderate"
    if score >= 6:
        return "Mild"
    return "Minimal"


# ---------------------------------------------------------------------------
# Intake, validity, glossary
# ---------------------------------------------------------------------------

def build_intake_summary(
    metrics: AssessmentMetrics, writer: BlockWriter, intake: IntakeContext
) -> Section:
    q = metrics.questionnaire
    user = metrics.assessment.user
    age = intake.age if intake.age is not None else user.age

    paragraphs = [writer.pick("intake", "welcome")]
    if age:
        paragraphs.append(writer.pick("intake", "age_context", age=age))

    if q.inattention_score > 0 or q.hyperactivity_score > 0:
        key = PRESENTATION_KEYS.get(q.presentation or "")
        if key:
            detail = writer.text(
                "intake_extras", "symptom_detail", key,
                inattention_count=q.inattention_count,
                inattention_severity=intake_severity(q.inattention_score),
                hyperactivity_count=q.hyperactivity_count,
                hyperactivity_severity=intake_severity(q.hyperactivity_score),
            )
            paragraphs.append(f"{writer.pick('intake', key)} {detail}")
        elif q.inattention_score > 10 or q.hyperactivity_score > 10:
            domain = (
                "attention and focus"
                if q.inattention_score > q.hyperactivity_score
                else "restlessness and impulse control"
            )
            paragraphs.append(writer.text("intake_extras", "self_reported", domain=domain))

    met = []
    if q.meets_inattention_criteria:
        met.append("Inattention")
    if q.meets_hyperactivity_criteria:
        met.append("Hyperactivity-Impulsivity")
    if met:
        paragraphs.append(writer.pick("intake", "criteria_note", domains=" and ".join(met)))

    paragraphs.append(writer.pick("intake", "closing"))

    if q.risk_level == "high":
        risk = "High Risk Indicators"
    elif q.risk_level == "moderate":
        risk = "Moderate Risk Indicators"
    elif q.total_score > 20:
        risk = "Elevated Symptoms"
    else:
        risk = "Typical Range"

    content: dict[str, Any] = {
        "highlights": [
            {
                "label": "Assessment Type",
                "value": intake.assessment_type or writer.text("intake_extras", "assessment_type"),
            },
            {
                "label": "Tests Completed",
                "value": intake.tests_completed or writer.text("intake_extras", "tests_completed"),
            },
            {"label": "Self-Report Risk", "value": risk},
            {"label": "DSM-5 Presentation", "value": q.presentation or "Not Determined"},
        ],
    }
    name = intake.name or user.name
    if name:
        content["name"] = name
    if age:
        content["age"] = age
    return writer.section("intake_summary", paragraphs, content)


def _validity_level(score: float) -> str:
    if score >= 90:
        return "good"
    if score >= 70:
        return "moderate"
    return "concerns"


def build_validity(metrics: AssessmentMetrics, writer: BlockWriter) -> Section:
    device = metrics.assessment.device
    score = device.validity_score if device.validity_score is not None else DEFAULT_VALIDITY_SCORE
    level = _validity_level(score)
    rt_sd = metrics.assessment.cpt.rt_sd

    paragraphs = [
        writer.pick("validity_checks", "openers"),
        writer.pick("validity_checks", "pattern_statements"),
    ]
    if rt_sd is not None and rt_sd < CONSISTENT_RT_SD:
        paragraphs.append(writer.pick("validity_checks", "consistency_notes"))
    paragraphs.append(writer.pick("validity", level))

    valid = level != "concerns"
    return writer.section("validity", paragraphs, {
        "level": level,
        "score": plain_number(score),
        "latency_corrected": device.latency_corrected,
        "indicators": [
            {
                "label": "Session Validity",
                "value": "VALID" if valid else "REVIEW",
                "status": "good" if valid else "warning",
            },
            {"label": "Response Pattern", "value": "Consistent", "status": "good"},
            {"label": "Engagement Level", "value": "Adequate", "status": "good"},
            {
                "label": "Data Quality",
                "value": f"{plain_number(score)}%",
                "status": "good" if score > 80 else "warning",
            },
        ],
    })


def build_concept_glossary(metrics: AssessmentMetrics, writer: BlockWriter) -> Section:
    return writer.section(
        "concept_glossary",
        [writer.text("glossary", "intro")],
        {"concepts": writer.raw("glossary", "concepts")},
    )


# ---------------------------------------------------------------------------
# Core markers
# ---------------------------------------------------------------------------

def _mc_status(value: int) -> str:
    if value >= 70:
        return "normal"
    if value >= 50:
        return "borderline"
    return "concern"


def _cpi_status(value: int) -> str:
    if value <= 40:
        return "normal"
    if value <= 60:
        return "borderline"
    return "concern"


_TAU_STATUS = {"normal": "normal", "borderline": "borderline", "elevated": "concern", "severe": "concern"}
_WM_STATUS = {"stable": "normal", "decline": "borderline", "collapse": "concern"}
_CONFLICT_STATUS = {"low": "normal", "moderate": "borderline", "paradoxical": "info", "high": "concern"}


def _marker(writer: BlockWriter, key: str, level: str, value, unit: str, status: str) -> dict:
    return {
        "key": key,
        "name": writer.text("core_markers", key, "name"),
        "value": value,
        "unit": unit,
        "level": level,
        "status": status,
        "significance": writer.text("core_markers", key, "significance"),
        "interpretation": writer.pick("core_markers", key, "interpretations", level),
    }


def build_core_markers(metrics: AssessmentMetrics, writer: BlockWriter) -> Section:
    mc = metrics.mc_index.value
    cpi = metrics.cpi.value
    tau = metrics.tau.value
    flags = metrics.flags
    mc_key, cpi_key, tau_key = mc_level(mc), cpi_level(cpi), tau_level(tau)
    wm_key = wm_level(metrics.wm_load.drop)
    conflict_key = conflict_level(metrics.conflict.effect, flags.hyperfocus)
    implication = writer.pick("implications", implication_key(mc, cpi))

    markers = [
        _marker(writer, "mc", mc_key, mc, "", _mc_status(mc)),
        _marker(writer, "cpi", cpi_key, cpi, "", _cpi_status(cpi)),
        _marker(writer, "tau", tau_key, tau, "ms", _TAU_STATUS[tau_key]),
        _marker(writer, "wm_load", wm_key, metrics.wm_load.drop, "%", _WM_STATUS[wm_key]),
        _marker(
            writer, "conflict", conflict_key, metrics.conflict.effect, "ms",
            _CONFLICT_STATUS[conflict_key],
        ),
    ]
    markers[1]["implication"] = writer.pick("cpi_implications", cpi_key)

    comp = metrics.compensation
    if comp.detected:
        markers.append({
            "key": "compensation",
            "name": writer.text("core_markers", "compensation", "name"),
            "value": comp.penalty,
            "unit": writer.text("core_markers", "compensation", "unit"),
            "level": "detected",
            "status": "concern",
            "significance": writer.text("core_markers", "compensation", "significance"),
            "interpretation": writer.pick(
                "core_markers", "compensation", "interpretations",
                accuracy=comp.accuracy, avg_rt=round(comp.avg_rt), tau=comp.tau,
            ),
        })

    paragraphs = [
        (
            f"Testing {writer.pick('mc_intro', mc_key)} (MC Index: {mc:.1f}), "
            f"{writer.pick('mc_technical', mc_key)}. Cognitive efficiency analysis revealed "
            f"{writer.pick('cpi_context', cpi_key)} (CPI: {cpi:.1f})."
        ),
        (
            f"{writer.pick('tau_intro', tau_key)} (τ = {tau:.1f}ms), "
            f"{writer.pick('tau_explanation', tau_key)}. {implication}"
        ),
    ]
    flag_texts = [
        writer.pick("flags", block, "detected")
        for flag, block in FLAG_NARRATIVES
        if getattr(flags, flag)
    ]
    if metrics.biomarkers.fatigue.available and metrics.biomarkers.fatigue.rating == "Speeding":
        flag_texts.append(writer.pick("flags", "practice_effect", "detected"))
    if flag_texts:
        paragraphs.append(" ".join(flag_texts))

    return writer.section("core_markers", paragraphs, {
        "markers": markers,
        "clinical_implication": implication,
        "load_response": writer.pick("wm_load", wm_key),
        "interference": writer.pick("conflict", conflict_key),
    })


# ---------------------------------------------------------------------------
# Task breakdown and cross-task patterns
# ---------------------------------------------------------------------------

def _rated(writer: BlockWriter, task: str, metric: str, value, unit: str, good: bool) -> dict:
    return {
        "metric": metric,
        "value": value,
        "unit": unit,
        "status": "good" if good else "weak",
        "note": writer.text("task_breakdown", task, metric, "good" if good else "weak"),
    }


def _plain(writer: BlockWriter, task: str, metric: str, value, unit: str) -> dict:
    return {
        "metric": metric,
        "value": value,
        "unit": unit,
        "status": "info",
        "note": writer.text("task_breakdown", task, metric),
    }


def build_task_breakdown(metrics: AssessmentMetrics, writer: BlockWriter) -> Section:
    a = metrics.assessment
    d = metrics.domains
    tasks: list[dict] = []

    def task(key: str, present: bool, score: int, rows: list[dict], interpretation: str) -> None:
        entry = {
            "key": key,
            "name": writer.text("task_breakdown", key, "name"),
            "domain": writer.text("task_breakdown", key, "domain"),
            "available": present,
        }
        if present:
            entry.update(score=score, metrics=rows, interpretation=interpretation)
        else:
            entry["interpretation"] = writer.text("insufficient_data", "default")
        tasks.append(entry)

    cpt = a.cpt
    task("cpt", cpt.present, d.sustained_attention.score, [
        _rated(writer, "cpt", "hit_rate", plain_number(cpt.hit_rate), "%", cpt.hit_rate >= 85),
        _rated(writer, "cpt", "commission_rate", plain_number(cpt.commission_rate), "%",
               cpt.commission_rate <= 10),
        _rated(writer, "cpt", "tau", metrics.tau.value, "ms", metrics.tau.value <= 50),
    ], writer.text("task_breakdown", "cpt", "interpretation",
                   "good" if d.sustained_attention.score >= 70 else "weak"))

    gng = a.go_no_go
    task("go_no_go", gng.present, d.response_inhibition.score, [
        _plain(writer, "go_no_go", "go_accuracy", plain_number(gng.go_accuracy), "%"),
        _rated(writer, "go_no_go", "no_go_accuracy", plain_number(gng.no_go_accuracy), "%",
               gng.no_go_accuracy >= 80),
        _rated(writer, "go_no_go", "commission_errors", plain_number(gng.commission_errors), "",
               gng.commission_errors <= 5),
    ], writer.text("task_breakdown", "go_no_go", "interpretation",
                   "good" if d.response_inhibition.score >= 70 else "weak"))

    nback = a.nback
    task("nback", nback.present, d.working_memory.score, [
        _plain(writer, "nback", "one_back", plain_number(nback.one_back_accuracy), "%"),
        _plain(writer, "nback", "two_back", plain_number(nback.two_back_accuracy), "%"),
        _rated(writer, "nback", "load_drop", metrics.wm_load.drop, "%", metrics.wm_load.drop <= 15),
    ], writer.text("task_breakdown", "nback", "interpretation", metrics.wm_load.response.lower()))

    flanker = a.flanker
    effect = metrics.conflict.effect
    task("flanker", flanker.present, d.interference_control.score, [
        _plain(writer, "flanker", "congruent", plain_number(flanker.congruent_accuracy), "%"),
        _plain(writer, "flanker", "incongruent", plain_number(flanker.incongruent_accuracy), "%"),
        _rated(writer, "flanker", "effect", effect, "ms", effect <= 50),
    ], writer.text("task_breakdown", "flanker", "interpretation",
                   "good" if metrics.conflict.sensitivity == "LOW" else "weak"))

    trail = a.trail
    switching = trail.switching_cost_seconds
    task("trail", trail.present, d.cognitive_flexibility.score, [
        _plain(writer, "trail", "part_a", plain_number(trail.part_a_seconds), "s"),
        _plain(writer, "trail", "part_b", plain_number(trail.part_b_seconds), "s"),
        _rated(writer, "trail", "switching", plain_number(switching), "s", switching <= 40),
    ], writer.text("task_breakdown", "trail", "interpretation",
                   "good" if switching <= 40 else "weak"))

    if not any(t["available"] for t in tasks):
        return writer.placeholder("task_breakdown")
    return writer.section("task_breakdown", (), {"tasks": tasks})


def build_cross_task_patterns(metrics: AssessmentMetrics, writer: BlockWriter) -> Section:
    flags = metrics.flags
    keys = []
    if flags.variability:
        keys.append("variability")
    if metrics.wm_load.response != "STABLE":
        keys.append("load_dependent")
    if flags.compensation:
        keys.append("compensation")
    if flags.hyperfocus:
        keys.append("hyperfocus")
    if not flags.impulsivity and (flags.inattention or flags.variability):
        keys.append("inattentive_dissociation")

    converging = len(keys) >= 2
    patterns = [dict(writer.raw("cross_task", "patterns", key), key=key) for key in keys]
    return writer.section(
        "cross_task_patterns",
        [
            writer.text("cross_task", "summary"),
            writer.text("cross_task", "conclusion", "converging" if converging else "limited"),
        ],
        {"patterns": patterns, "converging": converging},
    )


# ---------------------------------------------------------------------------
# Subtype and questionnaire correlation
# ---------------------------------------------------------------------------

def subjective_subtype(presentation: str | None) -> str:
    """Map a self-reported presentation label onto a subtype label."""
    text = (presentation or "").upper()
    if INATTENTIVE in text:
        return INATTENTIVE
    if "HYPERACTIVE" in text:
        return HYPERACTIVE
    if COMBINED in text:
        return COMBINED
    return SUBTHRESHOLD


def _concordance(metrics: AssessmentMetrics, writer: BlockWriter) -> dict | None:
    presentation = metrics.questionnaire.presentation
    if not presentation:
        return None
    subjective = subjective_subtype(presentation)
    objective = metrics.subtype.label
    if subjective == objective:
        status = "CONCORDANT"
        text = writer.pick("subtype_profile", "concordance", "concordant", presentation=presentation)
    elif SUBTHRESHOLD in (subjective, objective):
        status = "PARTIAL"
        measure = "objective tests" if objective == SUBTHRESHOLD else "self-report"
        text = writer.pick(
            "subtype_profile", "concordance", "partial", subthreshold_measure=measure
        )
    else:
        status = "DIVERGENT"
        text = writer.pick(
            "subtype_profile", "concordance", "divergent",
            presentation=presentation, subtype=objective,
        )
    return {
        "status": status,
        "subjective": subjective,
        "objective": objective,
        "description": text,
    }


def build_subtype_profile(metrics: AssessmentMetrics, writer: BlockWriter) -> Section:
    subtype = metrics.subtype
    description_key = SUBTYPE_DESCRIPTION_KEYS[subtype.key]
    block = ("subtype_profile", "descriptions", description_key)

    paragraphs = [
        writer.pick("subtype", subtype.key, "intro"),
        writer.pick(*block, "descriptions"),
        writer.pick(*block, "real_world"),
        writer.pick("subtype", subtype.key, "characteristics"),
    ]
    content: dict[str, Any] = {
        "subtype": subtype.label,
        "source": subtype.source,
        "pattern_title": writer.text(*block, "title"),
        "characteristics": writer.items(*block, "characteristics"),
        "indicators": dict(subtype.indicators),
        "disclaimer": writer.pick("subtype_profile", "disclaimers"),
    }
    concordance = _concordance(metrics, writer)
    if concordance:
        content["concordance"] = concordance
        paragraphs.append(concordance["description"])
    return writer.section("subtype_profile", paragraphs, content)


def _alignment(metrics: AssessmentMetrics) -> str:
    q = metrics.questionnaire
    objective = metrics.als.value > 50
    subjective = q.total_score > 20 or q.risk_level in ("high", "moderate")
    if objective and subjective:
        return "STRONG"
    if objective:
        return "OBJECTIVE_ELEVATED"
    if subjective:
        return "SUBJECTIVE_ELEVATED"
    return "CONCORDANT_LOW"


def build_symptom_correlation(metrics: AssessmentMetrics, writer: BlockWriter) -> Section:
    q = metrics.questionnaire
    if not q.available:
        return writer.placeholder("symptom_correlation")

    alignment = _alignment(metrics)
    if (
        alignment == "SUBJECTIVE_ELEVATED"
        and q.inattention_severity == "SEVERE"
        and not metrics.flags.inattention
    ):
        alignment_text = writer.text("symptom_correlation", "masked_inattention")
    else:
        alignment_text = writer.pick("questionnaire_alignment", alignment.lower())

    inattention_label = symptom_severity(q.inattention_score)
    hyperactivity_label = symptom_severity(q.hyperactivity_score)

    criteria = []
    if q.meets_inattention_criteria:
        criteria.append(writer.text(
            "symptom_correlation", "criteria", "inattention", count=q.inattention_count
        ))
    if q.meets_hyperactivity_criteria:
        criteria.append(writer.text(
            "symptom_correlation", "criteria", "hyperactivity", count=q.hyperactivity_count
        ))
    if q.meets_supporting_criteria:
        criteria.append(writer.text("symptom_correlation", "criteria", "supporting"))

    details = []
    endorsed = [r for r in metrics.assessment.questionnaire.responses if _response_score(r) >= 2]
    if endorsed:
        fallback = writer.text("symptom_correlation", "symptom_fallback")
        details.append({
            "label": writer.text("symptom_correlation", "frequently_endorsed"),
            "count": len(endorsed),
            "examples": [r.get("question") or r.get("symptom") or fallback for r in endorsed[:5]],
        })

    presentation_clause = (
        writer.pick("symptom_correlation", "presentation_clauses", presentation=q.presentation)
        if q.presentation
        else ""
    )
    interpretation = writer.pick(
        "symptom_correlation", "interpretations",
        inattention_severity=inattention_label.lower(),
        inattention_score=plain_number(q.inattention_score),
        inattention_count=q.inattention_count,
        hyperactivity_severity=hyperactivity_label.lower(),
        hyperactivity_score=plain_number(q.hyperactivity_score),
        hyperactivity_count=q.hyperactivity_count,
        presentation_clause=presentation_clause,
        alignment=alignment_text,
    )

    return writer.section("symptom_correlation", [interpretation], {
        "alignment": alignment,
        "alignment_description": alignment_text,
        "subjective_profile": {
            "inattention": {
                "score": plain_number(q.inattention_score),
                "max_score": 27,
                "severity": inattention_label,
                "symptom_count": q.inattention_count,
                "meets_criteria": q.meets_inattention_criteria,
            },
            "hyperactivity": {
                "score": plain_number(q.hyperactivity_score),
                "max_score": 27,
                "severity": hyperactivity_label,
                "symptom_count": q.hyperactivity_count,
                "meets_criteria": q.meets_hyperactivity_criteria,
            },
        },
        "presentation": q.presentation or "Not Determined",
        "risk_level": q.risk_level,
        "clinical_criteria": criteria,
        "symptom_details": details,
        "agreement": alignment in ("STRONG", "CONCORDANT_LOW"),
    })


def _response_score(response) -> float:
    score = response.get("score")
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        return 0
    return score


# ---------------------------------------------------------------------------
# Reliability
# ---------------------------------------------------------------------------

def build_reliability(metrics: AssessmentMetrics, writer: BlockWriter) -> Section:
    keys = ["cross_task"]
    if metrics.tau.value > 40:
        keys.append("tau_signature")
    keys += ["response_validity", "timing"]
    return writer.section(
        "reliability",
        [writer.text("reliability", "conclusion")],
        {
            "overall": "HIGH",
            "factors": [writer.raw("reliability", "factors", key) for key in keys],
        },
    )
