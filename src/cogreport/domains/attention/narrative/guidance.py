"""Guidance sections: daily-life impact through the plain-language summary."""

from __future__ import annotations

from typing import Any

from cogreport.domains.attention.domain_logic.biomarker_models import INSUFFICIENT_DATA
from cogreport.domains.attention.domain_logic.composites import als_level
from cogreport.domains.attention.domain_logic.domain_scores import DomainScore
from cogreport.domains.attention.domain_logic.metric_models import AssessmentMetrics
from cogreport.domains.attention.domain_logic.subtype import COMBINED, HYPERACTIVE, INATTENTIVE
from cogreport.domains.attention.narrative.models import Section
from cogreport.domains.attention.narrative.writer import BlockWriter, plain_number

STRENGTH_MIN = 75
CHALLENGE_MAX = 60
SIGNIFICANT_CHALLENGE_MAX = 50
INTERACTION_MAX = 70
MEDICATION_ALS_MIN = 60

_EXECUTIVE_RISK_KEYS = {
    "typical": "low_risk",
    "mild": "moderate_risk",
    "moderate": "elevated_risk",
    "significant": "high_risk",
}


# ---------------------------------------------------------------------------
# Real-life impact
# ---------------------------------------------------------------------------

def build_real_life_impact(metrics: AssessmentMetrics, writer: BlockWriter) -> Section:
    flags = metrics.flags
    domains = metrics.domains
    keys = []
    if flags.variability or metrics.mc_index.value < 60:
        keys.append("variability")
    if flags.working_memory_deficit or domains.working_memory.score < 60:
        keys.append("working_memory")
    if flags.compensation:
        keys.append("compensation")
    if flags.hyperfocus:
        keys.append("hyperfocus")
    if metrics.assessment.trail.switching_cost_seconds > 50:
        keys.append("switching")
    keys.append("not_laziness")

    impacts = [
        {
            "key": key,
            "title": writer.text("real_life", key, "title"),
            "description": writer.pick("real_life", key, "descriptions"),
            "tip": writer.pick("real_life", key, "tips"),
        }
        for key in keys
    ]
    return writer.section(
        "real_life_impact",
        [impact["description"] for impact in impacts],
        {"impacts": impacts},
    )


# ---------------------------------------------------------------------------
# Strengths, challenges, interactions and strategies
# ---------------------------------------------------------------------------

def _interaction_keys(metrics: AssessmentMetrics) -> list[str]:
    d = metrics.domains
    wm = d.working_memory.score
    ri = d.response_inhibition.score
    sa = d.sustained_attention.score
    ps = d.processing_speed.score
    cf = d.cognitive_flexibility.score
    ic = d.interference_control.score

    rules = (
        ("wm_inhibition", wm < INTERACTION_MAX and ri < INTERACTION_MAX),
        ("attention_speed", sa < INTERACTION_MAX and ps < INTERACTION_MAX),
        ("wm_flexibility", wm < INTERACTION_MAX and cf < INTERACTION_MAX),
        ("interference_inhibition", ic < INTERACTION_MAX and ri < INTERACTION_MAX),
        ("attention_wm", sa < INTERACTION_MAX and wm < INTERACTION_MAX),
        ("flexibility_focus", cf < INTERACTION_MAX and sa >= STRENGTH_MIN),
        ("processing_load", ps < STRENGTH_MIN),
    )
    return [key for key, applies in rules if applies]


def _interactions(metrics: AssessmentMetrics, writer: BlockWriter) -> list[dict]:
    keys = _interaction_keys(metrics)
    if keys:
        return [dict(writer.raw("cognitive_interactions", key), key=key) for key in keys]

    ranked = sorted(metrics.domains.ordered(), key=lambda d: d.score)
    weakest, second, strongest = ranked[0], ranked[1], ranked[-1]
    primary = writer.raw("cognitive_interactions", "primary_pattern")
    primary.update(
        key="primary_pattern",
        traits=[weakest.label, second.label],
        explanation=primary["explanation"].format(
            weakest=weakest.label, weakest_score=weakest.score,
            second=second.label, second_score=second.score,
        ),
    )
    advantage = writer.raw("cognitive_interactions", "advantage")
    advantage.update(
        key="advantage",
        traits=[strongest.label],
        explanation=advantage["explanation"].format(
            strongest=strongest.label, strongest_score=strongest.score,
        ),
    )
    return [primary, advantage]


def _strategy(writer: BlockWriter, domain: DomainScore) -> dict:
    return {
        "target_area": domain.label,
        "priority": "HIGH",
        "why": writer.text("strengths_challenges", "focus_area_reason", score=domain.score),
        "strategies": writer.items("strengths_challenges", "strategies", domain.key),
        "tools": writer.items("strengths_challenges", "tools", domain.key),
    }


def build_strengths_challenges(metrics: AssessmentMetrics, writer: BlockWriter) -> Section:
    domains = metrics.domains.ordered()
    compensation = metrics.flags.compensation

    strengths = [
        {
            "key": d.key,
            "area": d.label,
            "score": d.score,
            "what_it_means": writer.text(
                "strengths_challenges", "strength_meaning", area=d.label, score=d.score
            ),
            "how_to_leverage": writer.text("strengths_challenges", "leverage", d.key),
        }
        for d in sorted(domains, key=lambda d: -d.score)
        if d.score >= STRENGTH_MIN
    ]
    challenges = [
        {
            "key": d.key,
            "area": d.label,
            "score": d.score,
            "severity": "significant" if d.score < SIGNIFICANT_CHALLENGE_MAX else "moderate",
            "what_it_means": writer.text(
                "strengths_challenges", "challenge_meaning", area=d.label, score=d.score
            ),
            "support_strategies": writer.items("strengths_challenges", "strategies", d.key),
        }
        for d in sorted(domains, key=lambda d: d.score)
        if d.score < CHALLENGE_MAX
    ]
    if compensation:
        strength = writer.raw("strengths_challenges", "compensation", "strength")
        strengths.append(dict(strength, key="compensation", score=None))
        challenge = writer.raw("strengths_challenges", "compensation", "challenge")
        challenges.append(dict(challenge, key="compensation", score=None, severity="moderate"))

    weakest = sorted(domains, key=lambda d: d.score)[:2]
    strategies = [_strategy(writer, d) for d in weakest]
    if compensation:
        strategies.append(dict(writer.raw("strengths_challenges", "energy_management"), priority="HIGH"))
    strategies.append(dict(writer.raw("strengths_challenges", "daily_routines"), priority="MEDIUM"))

    return writer.section("strengths_challenges", (), {
        "strengths": strengths,
        "challenges": challenges,
        "interactions": _interactions(metrics, writer),
        "personalized_strategies": strategies,
    })


# ---------------------------------------------------------------------------
# Clinical analysis
# ---------------------------------------------------------------------------

def _flag_analysis(metrics: AssessmentMetrics, writer: BlockWriter) -> list[dict]:
    flags = metrics.flags
    block = ("clinical_analysis", "flag_analysis")
    analysis = []
    if flags.inattention:
        score = metrics.domains.sustained_attention.score
        if score >= 70:
            entry = writer.raw(*block, "attention_intact")
            entry["clinical_meaning"] = entry["clinical_meaning"].format(score=score)
        elif score < 55:
            entry = writer.raw(*block, "attention_deficit")
        else:
            entry = writer.raw(*block, "attention_borderline")
        analysis.append(entry)
    if flags.impulsivity:
        analysis.append(writer.raw(*block, "inhibition_deficit"))
    if flags.working_memory_deficit:
        analysis.append(writer.raw(*block, "working_memory_deficit"))
    return analysis


def _brain_regions(metrics: AssessmentMetrics, writer: BlockWriter) -> dict:
    flags = metrics.flags
    compensation = metrics.compensation.detected
    block = ("clinical_analysis", "brain_regions")
    implicated = {
        "prefrontal": flags.inattention or metrics.domains.sustained_attention.score < 60,
        "parietal": flags.variability,
        "striatum": compensation,
        "anterior_cingulate": flags.variability or compensation,
    }
    no_evidence = writer.text(*block, "no_evidence")
    regions = []
    for key, hit in implicated.items():
        region = writer.raw(*block, "regions", key)
        if not hit:
            region["status"] = no_evidence
        regions.append(dict(region, key=key))
    return {
        "summary": writer.text(*block, "summary"),
        "regions": regions,
        "detailed_interpretation": writer.text(*block, "detailed_interpretation"),
        "clinical_implication": writer.text(*block, "clinical_implication"),
    }


def _neurochemistry(metrics: AssessmentMetrics, writer: BlockWriter) -> dict:
    flags = metrics.flags
    block = ("clinical_analysis", "neurochemical")
    altered = {
        "dopamine": metrics.compensation.detected or flags.inattention,
        "norepinephrine": flags.inattention,
        "acetylcholine": flags.working_memory_deficit,
    }
    adequate = writer.text(*block, "adequate")
    result: dict[str, Any] = {"summary": writer.text(*block, "summary")}
    for key, hit in altered.items():
        pathway = writer.raw(*block, "pathways", key)
        result[key] = {
            "status": pathway["altered"] if hit else adequate,
            "implication": pathway["implication"],
            "treatment_implication": pathway["treatment_implication"],
        }
    return result


def _compensation_mechanisms(metrics: AssessmentMetrics, writer: BlockWriter) -> dict:
    comp = metrics.compensation
    block = ("clinical_analysis", "compensation_mechanisms")
    if not comp.detected:
        return dict(writer.raw(*block, "absent"), detected=False)
    entry = writer.raw(*block, "detected")
    entry["details"] = entry["details"].format(accuracy=round(comp.accuracy), avg_rt=round(comp.avg_rt))
    return dict(entry, detected=True)


def _medication(metrics: AssessmentMetrics, writer: BlockWriter) -> dict:
    block = ("clinical_analysis", "medication")
    if metrics.als.value >= MEDICATION_ALS_MIN or metrics.compensation.detected:
        keys = ["stimulants"]
        extra = {INATTENTIVE: "atomoxetine", HYPERACTIVE: "alpha2", COMBINED: "combination"}
        if metrics.subtype.label in extra:
            keys.append(extra[metrics.subtype.label])
    else:
        keys = ["non_pharmacological"]
    options = [writer.raw(*block, "options", key) for key in keys]
    return {
        "disclaimer": writer.text(*block, "disclaimer"),
        "typical_intervention": options[0]["medication"],
        "intervention_options": options,
        "contraindication_checks": writer.items(*block, "contraindication_checks"),
    }


def _treatment_phases(metrics: AssessmentMetrics, writer: BlockWriter) -> dict:
    phases = writer.raw("clinical_analysis", "treatment_phases")
    if metrics.compensation.detected:
        phases["phase1"]["actions"].append(writer.text("clinical_analysis", "compensation_action"))
    return phases


def build_clinical_analysis(metrics: AssessmentMetrics, writer: BlockWriter) -> Section:
    als = metrics.als
    flags = metrics.flags
    block = "clinical_analysis"
    score_block = (block, "score_interpretation")

    key_findings = [
        writer.text(block, "key_findings", "als", als=als.value, category=als.category),
        writer.text(block, "key_findings", "presentation", subtype=metrics.subtype.label),
        writer.text(
            block, "key_findings", "severity",
            total=plain_number(metrics.questionnaire.total_score),
        ),
    ]
    red_flags = (
        [writer.text(block, "red_flags", "compensation")] if metrics.compensation.detected else []
    )

    differential = []
    if flags.inattention:
        differential += [
            writer.raw(block, "differential", "anxiety"),
            writer.raw(block, "differential", "depression"),
        ]
    if flags.variability:
        differential.append(writer.raw(block, "differential", "sleep"))

    comorbidity = []
    if metrics.compensation.detected:
        comorbidity.append(writer.raw(block, "comorbidity", "anxiety"))
    if flags.inattention:
        comorbidity.append(writer.raw(block, "comorbidity", "depression"))

    return writer.section("clinical_analysis", key_findings, {
        "disclaimer": writer.text("sections", "clinical_analysis", "disclaimer"),
        "clinical_summary": {
            "als": als.value,
            "als_category": als.category,
            "presentation": metrics.subtype.label,
            "confidence_level": "HIGH" if als.value >= 80 else "MODERATE",
            "key_findings": key_findings,
            "red_flags": red_flags,
        },
        "flag_analysis": _flag_analysis(metrics, writer),
        "score_interpretation": {
            "als": {
                "score": als.value,
                "interpretation": writer.text(
                    *score_block, "als", als=als.value, category=als.category.lower()
                ),
                "clinical_action": writer.text(
                    *score_block, "als_action", "evaluate" if als.value > 50 else "monitor"
                ),
                "limitations": writer.text(*score_block, "als_limitations"),
            },
            "tau": {
                "score": metrics.tau.value,
                "meaning": writer.text(*score_block, "tau_meaning"),
                "clinical_significance": writer.text(
                    *score_block, "tau_significance",
                    "significant" if metrics.tau.value > 60 else "normal",
                ),
            },
            "mc_index": {
                "score": metrics.mc_index.value,
                "meaning": writer.text(*score_block, "mc_meaning"),
            },
        },
        "brain_regions": _brain_regions(metrics, writer),
        "neurochemistry": _neurochemistry(metrics, writer),
        "compensation_mechanisms": _compensation_mechanisms(metrics, writer),
        "medication": _medication(metrics, writer),
        "differential_diagnosis": differential,
        "comorbidity_risks": comorbidity,
        "treatment_phases": _treatment_phases(metrics, writer),
        "follow_up": writer.raw(block, "follow_up"),
    })


# ---------------------------------------------------------------------------
# Limitations and recommendations
# ---------------------------------------------------------------------------

def build_limitations(metrics: AssessmentMetrics, writer: BlockWriter) -> Section:
    return writer.section("limitations", writer.items("limitations"))


def _action_plan(metrics: AssessmentMetrics, writer: BlockWriter) -> list[dict]:
    d = metrics.domains
    flags = metrics.flags
    sa = d.sustained_attention.score
    keys = ["offloading"]
    if sa >= 70 and d.processing_speed.score < 60:
        keys.append("processing_speed")
    if flags.working_memory_deficit or d.working_memory.score < 60:
        keys.append("working_memory")
    if flags.inattention or sa < 60:
        keys.append("focus")
    if flags.impulsivity or d.response_inhibition.score < 60:
        keys.append("impulse_control")
    if flags.compensation:
        keys.append("recovery")
    return [dict(writer.raw("action_plan", key), key=key) for key in keys]


def build_recommendations(metrics: AssessmentMetrics, writer: BlockWriter) -> Section:
    als = metrics.als.value
    framing = ("level_framing", "recommendations")
    chosen = []
    if als > 50:
        chosen.append(("professional", "professional"))
    if als > 70:
        chosen.append(("treatment", "treatment"))
    if metrics.flags.compensation:
        chosen.append(("compensation", "compensation_specific"))
    if metrics.flags.variability:
        chosen.append(("variability", "variability_specific"))

    recommendations = [
        {
            "category": writer.text(*framing, frame, "category"),
            "reason": writer.text(*framing, frame, "reason"),
            "items": [writer.pick("recommendations", block)],
        }
        for frame, block in chosen
    ]
    recommendations.append({
        "category": writer.text(*framing, "lifestyle", "category"),
        "reason": writer.text(*framing, "lifestyle", "reason"),
        "items": writer.items("recommendations", "general")[:3],
    })

    action_plan = _action_plan(metrics, writer)
    return writer.section(
        "recommendations",
        [f"{item['title']}: {item['description']}" for item in action_plan],
        {"action_plan": action_plan, "recommendations": recommendations},
    )


# ---------------------------------------------------------------------------
# Appendix and summaries
# ---------------------------------------------------------------------------

def _biomarker_rows(metrics: AssessmentMetrics) -> list[dict]:
    rows = []
    for result in metrics.biomarkers.results():
        rows.append({
            "key": result.key,
            "label": result.name,
            "value": f"{result.score} {result.unit}" if result.available else "N/A",
            "rating": result.rating if result.available else INSUFFICIENT_DATA,
        })
    return rows


def build_technical_appendix(metrics: AssessmentMetrics, writer: BlockWriter) -> Section:
    a = metrics.assessment
    labels = ("technical_appendix", "labels")

    def row(key: str, value: Any) -> dict:
        return {"key": key, "label": writer.text(*labels, key), "value": value}

    composite = [
        row("als", metrics.als.value),
        row("mc_index", metrics.mc_index.value),
        row("cpi", metrics.cpi.value),
        row("tau", f"{metrics.tau.value}ms"),
    ]
    tasks = [
        row("cpt_hit_rate", f"{plain_number(a.cpt.hit_rate)}%"),
        row("no_go_accuracy", f"{plain_number(a.go_no_go.no_go_accuracy)}%"),
        row("nback_accuracy", f"{plain_number(a.nback.accuracy)}%"),
        row("flanker_effect", f"{metrics.conflict.effect}ms"),
        row("switching_cost", f"{plain_number(a.trail.switching_cost_seconds)}s"),
    ]
    return writer.section("technical_appendix", (), {
        "tables": [
            {"title": writer.text("technical_appendix", "composite_title"), "rows": composite},
            {"title": writer.text("technical_appendix", "task_title"), "rows": tasks},
            {"title": writer.text("technical_appendix", "biomarker_title"), "rows": _biomarker_rows(metrics)},
        ],
        "domains": metrics.domains.score_map(),
    })


def build_simple_summary(metrics: AssessmentMetrics, writer: BlockWriter) -> Section:
    als = metrics.als
    paragraphs = [writer.pick("simple_summary", als_level(als.value))]
    if metrics.flags.compensation:
        paragraphs.append(writer.pick("simple_summary", "compensated"))
    paragraphs.append(writer.text("level_framing", "simple_summary", "closing"))

    return writer.section("simple_summary", paragraphs, {
        "plain_summary": {
            "likelihood": writer.text("plain_summary", "likelihood", category=als.category.lower()),
            "pattern": writer.text("plain_summary", "pattern", subtype=metrics.subtype.label.lower()),
            "meaning": writer.text("plain_summary", "meaning"),
        },
        "one_line": writer.text(
            "level_framing", "simple_summary", "one_line",
            "stable" if als.value <= 50 else "attention_needed",
        ),
    })


def _executive_profile(metrics: AssessmentMetrics) -> str:
    d = metrics.domains
    als = metrics.als.value
    if d.sustained_attention.score >= 70 and d.processing_speed.score < 60:
        return "high_functioning_compensated"
    if metrics.compensation.detected:
        return "compensated"
    if als >= 70:
        return "high_severity"
    if als <= 35:
        return "low_likelihood"
    return "standard"


def build_executive_summary(metrics: AssessmentMetrics, writer: BlockWriter) -> tuple[str, ...]:
    """Headline paragraphs shown above the sections."""
    d = metrics.domains
    als = metrics.als
    profile = _executive_profile(metrics)

    overview = " ".join([
        writer.pick("executive_summary", "opener"),
        writer.pick("executive_summary", _EXECUTIVE_RISK_KEYS[als_level(als.value)]),
    ])
    if profile == "high_functioning_compensated":
        body = writer.text(
            "executive_profiles", profile,
            attention=d.sustained_attention.score,
            processing=d.processing_speed.score,
            severity="severe" if metrics.questionnaire.severity_percent >= 60 else "moderate",
        )
    else:
        body = writer.text("executive_profiles", profile)

    strengths = [f"{x.label} ({x.score}%)" for x in d.ordered() if x.score >= 70]
    concerns = [f"{x.label} ({x.score}%)" for x in d.ordered() if x.score < 55]
    balance = []
    if strengths:
        balance.append(writer.text("executive_profiles", "strengths", items=", ".join(strengths)))
    if concerns:
        balance.append(writer.text("executive_profiles", "concerns", items=", ".join(concerns)))

    closing = writer.text(
        "executive_profiles", "closing",
        category=als.category, als=als.value, subtype=metrics.subtype.label,
    )
    if metrics.compensation.detected:
        closing = f"{closing} {writer.text('executive_profiles', 'compensation_note')}"

    paragraphs = [overview, body, " ".join(balance), closing]
    return tuple(p for p in paragraphs if p)
