"""Clinical levels 1-4: progressively more technical views of one assessment."""

from __future__ import annotations

from typing import Any

from cogreport.domains.attention.domain_logic.metric_models import AssessmentMetrics
from cogreport.domains.attention.narrative.biomarker_narrative import build_biomarker_section
from cogreport.domains.attention.narrative.models import ClinicalLevel, Section
from cogreport.domains.attention.narrative.writer import BlockWriter


def _title_path(level: str, key: str) -> tuple[str, ...]:
    return ("clinical_levels", level, "sections", key)


def _level_title(writer: BlockWriter, level: str) -> str:
    return writer.text("clinical_levels", level, "title")


# ---------------------------------------------------------------------------
# Level 1: clinically useful information
# ---------------------------------------------------------------------------

# Experiences listed per impairment severity
_EXPERIENCE_COUNTS = {
    "severe": 4, "slow": 4, "impaired": 4,
    "moderate": 3,
    "mild": 2, "adequate": 2,
}


def _impairment_areas(metrics: AssessmentMetrics) -> list[tuple[str, str]]:
    d = metrics.domains
    sa = d.sustained_attention.score
    ri = d.response_inhibition.score
    ps = d.processing_speed.score
    wm = d.working_memory.score

    areas = []
    if sa < 70:
        areas.append(("inattention", "severe" if sa < 40 else "moderate" if sa < 60 else "mild"))
    if ri < 80:
        areas.append(("impulsivity", "severe" if ri < 50 else "moderate" if ri < 70 else "mild"))
    if ps < 70:
        areas.append(("processing_speed", "slow" if ps < 40 else "moderate" if ps < 60 else "adequate"))
    if wm < 75:
        areas.append(("working_memory", "impaired" if wm < 50 else "moderate" if wm < 70 else "adequate"))
    return areas


def build_real_world_impairment(metrics: AssessmentMetrics, writer: BlockWriter) -> Section:
    framing = ("level_framing", "impairment")
    areas = []
    for key, severity in _impairment_areas(metrics):
        experiences = writer.items(*framing, "domains", key, "experiences")
        areas.append({
            "key": key,
            "domain": writer.text(*framing, "domains", key, "domain"),
            "severity": severity,
            "description": writer.pick("real_world_impairment", key, severity),
            "examples": experiences[:_EXPERIENCE_COUNTS[severity]],
        })

    if len(areas) > 2:
        overall = "significant"
    elif areas:
        overall = "moderate"
    else:
        overall = "minimal"

    return writer.section(
        "real_world_impairment",
        [writer.text(*framing, "introduction")],
        {"impairment_areas": areas, "overall_severity": overall},
        title_path=_title_path("level1", "real_world_impairment"),
    )


def _mapping_level(score: int) -> str:
    if score >= 80:
        return "high"
    if score >= 50:
        return "moderate"
    return "low"


def build_symptom_pattern_mapping(metrics: AssessmentMetrics, writer: BlockWriter) -> Section:
    d = metrics.domains
    scores = (
        ("sustained_attention", d.sustained_attention.score),
        ("processing_speed", d.processing_speed.score),
        ("inhibitory_control", d.response_inhibition.score),
        ("working_memory", d.working_memory.score),
        ("cognitive_flexibility", d.cognitive_flexibility.score),
    )
    mappings = []
    for key, score in scores:
        level = _mapping_level(score)
        node = writer.raw("symptom_pattern_mapping", key, level)
        strengths = node.get("strengths", [])
        challenges = node.get("challenges", [])
        mappings.append({
            "key": key,
            "domain": writer.text("level_framing", "symptom_mapping", "domains", key),
            "score": score,
            "level": level,
            "behaviors": (challenges + strengths)[:4],
            "cognitive_pattern": f"{node['score']} - {strengths[0] if strengths else ''}",
        })
    return writer.section(
        "symptom_pattern_mapping", (), {"domains": mappings},
        title_path=_title_path("level1", "symptom_pattern_mapping"),
    )


def _question_sets(metrics: AssessmentMetrics) -> list[tuple[str, str]]:
    d = metrics.domains
    flags = metrics.flags
    ri = d.response_inhibition.score
    ps = d.processing_speed.score
    wm = d.working_memory.score

    sets = []
    if metrics.mc_index.value < 60 or d.sustained_attention.score < 60:
        sets.append(("attention", "HIGH"))
    if ri < 70:
        sets.append(("impulsivity", "HIGH" if ri < 50 else "MEDIUM"))
    if ps < 60:
        sets.append(("processing_speed", "HIGH" if ps < 40 else "MEDIUM"))
    if wm < 60:
        sets.append(("working_memory", "HIGH" if wm < 40 else "MEDIUM"))
    if flags.compensation or flags.masking:
        sets.append(("compensation", "HIGH"))
    if metrics.tau.value > 80:
        sets.append(("emotional_regulation", "MEDIUM"))
    sets.append(("history", "STANDARD"))
    return sets


def build_clinical_questions(metrics: AssessmentMetrics, writer: BlockWriter) -> Section:
    framing = ("level_framing", "clinical_questions")
    question_sets = []
    questions = []
    for key, priority in _question_sets(metrics):
        domain = writer.text(*framing, "domains", key)
        listed = writer.items("clinical_questions", key)
        question_sets.append({"key": key, "domain": domain, "priority": priority, "questions": listed})
        rationale = writer.text(*framing, "rationale", domain=domain.lower())
        questions += [
            {"category": domain, "question": q, "rationale": rationale} for q in listed
        ]
    return writer.section(
        "clinical_questions",
        [writer.text(*framing, "introduction")],
        {"questions": questions, "question_sets": question_sets},
        title_path=_title_path("level1", "clinical_questions"),
    )


# ---------------------------------------------------------------------------
# Level 2: professional analysis
# ---------------------------------------------------------------------------

def build_functional_domains(metrics: AssessmentMetrics, writer: BlockWriter) -> Section:
    d = metrics.domains
    high = {
        "attention": metrics.mc_index.value >= 60,
        "wm": d.working_memory.score >= 60,
        "processing": d.processing_speed.score >= 60,
        "inhibition": d.response_inhibition.score >= 60,
        "flexibility": d.cognitive_flexibility.score >= 60,
    }
    no_strengths = writer.text("level_framing", "functional_domains", "no_strengths")
    no_challenges = writer.text("level_framing", "functional_domains", "no_challenges")

    rows = []
    for key, node in writer.raw("functional_domains").items():
        strengths = [node["strength_patterns"][f"high_{t}"] for t, ok in high.items() if ok]
        challenges = [node["challenge_patterns"][f"low_{t}"] for t, ok in high.items() if not ok]
        rows.append({
            "key": key,
            "domain": node["domain"],
            "strengths": strengths or [no_strengths],
            "challenges": challenges or [no_challenges],
        })
    return writer.section(
        "functional_domains", (), {"domains": rows},
        title_path=_title_path("level2", "functional_domains"),
    )


def build_pattern_labels(metrics: AssessmentMetrics, writer: BlockWriter) -> Section:
    patterns = [
        {
            "key": p.key,
            "label": p.label,
            "criteria": list(p.criteria),
            "confidence": p.confidence,
            "description": p.description,
            "clinical_note": p.clinical_note,
            "evidence": p.evidence,
        }
        for p in metrics.patterns
    ]
    intro = "introduction_multiple" if len(patterns) > 1 else "introduction_single"
    return writer.section(
        "pattern_labels",
        [writer.text("level_framing", "pattern_labels", intro)],
        {"patterns": patterns, "primary_pattern": patterns[0]["key"] if patterns else None},
        title_path=_title_path("level2", "pattern_labels"),
    )


def _environment_predictions(metrics: AssessmentMetrics) -> list[tuple[str, str, str]]:
    """(environment, prediction, reasoning key) for every setting."""
    flags = metrics.flags
    variability = metrics.mc_index.value < 60 or flags.variability
    hyperfocus = flags.hyperfocus
    executive = metrics.domains.working_memory.score < 60 or metrics.cpi.value > 50

    def first(*options: tuple[bool, str]) -> str:
        return next((reason for hit, reason in options if hit), "typical")

    return [
        ("structured", "BETTER" if variability else "TYPICAL", first((variability, "variability"))),
        (
            "unstructured",
            "CHALLENGED" if variability or executive else "TYPICAL",
            first((variability, "variability"), (executive, "executive")),
        ),
        (
            "high_stimulation",
            "EXCELLENT" if hyperfocus else "BETTER" if variability else "TYPICAL",
            first((hyperfocus, "hyperfocus"), (variability, "variability")),
        ),
        (
            "low_stimulation",
            "CHALLENGED" if variability or hyperfocus else "TYPICAL",
            first((variability or hyperfocus, "challenged")),
        ),
        (
            "multitasking",
            "CHALLENGED" if executive or variability else "TYPICAL",
            first((executive, "executive"), (variability, "variability")),
        ),
        (
            "isolated_focus",
            "VARIABLE" if hyperfocus or variability else "GOOD",
            first((hyperfocus, "hyperfocus"), (variability, "variability")),
        ),
    ]


def build_environment_predictions(metrics: AssessmentMetrics, writer: BlockWriter) -> Section:
    environments = []
    for key, prediction, reason in _environment_predictions(metrics):
        node = writer.raw("environment_interpretation", key)
        environments.append({
            "key": key,
            "environment": node["environment"],
            "setting": node["description"],
            "performance": prediction,
            "description": writer.text("level_framing", "environment", "reasoning", key, reason),
            "examples": node.get("examples", []),
        })
    return writer.section(
        "environment_predictions",
        [writer.text("level_framing", "environment", "introduction")],
        {"environments": environments},
        title_path=_title_path("level2", "environment_predictions"),
    )


# ---------------------------------------------------------------------------
# Level 3: advanced insights
# ---------------------------------------------------------------------------

def _intervention_keys(metrics: AssessmentMetrics) -> list[tuple[str, str]]:
    d = metrics.domains
    flags = metrics.flags
    ps = d.processing_speed.score
    wm = d.working_memory.score
    sa = d.sustained_attention.score
    cf = d.cognitive_flexibility.score

    rules = (
        ("slow_processing_high_wm", ps < 60 and wm >= 60, "HIGH"),
        ("high_impulsivity_high_attention", d.response_inhibition.score < 60 and sa >= 60, "HIGH"),
        ("low_wm_high_processing", wm < 60 and ps >= 60, "HIGH"),
        ("high_variability_low_consistency", metrics.mc_index.value < 50 or flags.variability, "HIGH"),
        ("compensated_pattern", flags.compensation, "CRITICAL"),
        ("executive_dysfunction_pattern", metrics.cpi.value > 50 or (wm < 60 and cf < 60), "HIGH"),
        ("low_flexibility_high_focus", cf < 60 and sa >= 60, "MEDIUM"),
        ("hyperfocus_pattern", flags.hyperfocus, "MEDIUM"),
    )
    return [(key, priority) for key, applies, priority in rules if applies]


def build_personalized_interventions(metrics: AssessmentMetrics, writer: BlockWriter) -> Section:
    interventions = []
    for key, priority in _intervention_keys(metrics):
        node = writer.raw("personalized_interventions", key)
        interventions.append({
            "key": key,
            "target_area": node["profile"],
            "priority": priority,
            "rationale": node["rationale"],
            "strategies": node["interventions"],
        })
    framing = ("level_framing", "interventions")
    return writer.section(
        "personalized_interventions",
        [writer.text(*framing, "introduction"), writer.text(*framing, "general_note")],
        {"interventions": interventions},
        title_path=_title_path("level3", "personalized_interventions"),
    )


def _trait_profile(metrics: AssessmentMetrics) -> tuple[str, str]:
    """(profile key, summary block key); the first matching rule wins."""
    flags = metrics.flags
    profile = metrics.profile
    variability = metrics.mc_index.value < 50 or flags.variability

    if flags.compensation:
        return "high_capacity_high_cost", "high_capacity_high_cost"
    if variability and flags.hyperfocus:
        return "inconsistent_brilliance", "inconsistent_brilliance"
    if metrics.domains.processing_speed.score < 50 and not variability:
        return "slow_but_steady", "slow_but_steady"
    if metrics.domains.response_inhibition.score < 50 and not variability:
        return "impulsive_engine", "impulsive_engine"
    if metrics.cpi.value > 50:
        return "overloaded_executive", "overloaded_executive"
    if profile.mean_rt > 600 and profile.accuracy > 90:
        return "anxiety_comorbid", "anxiety_comorbid"
    if variability:
        return "variable_performer", "inconsistent_brilliance"
    return "typical", ""


def build_trait_summary(metrics: AssessmentMetrics, writer: BlockWriter) -> Section:
    profile_key, summary_key = _trait_profile(metrics)
    framing = ("level_framing", "trait_summary")
    if summary_key:
        summary = writer.pick("trait_summary", summary_key)
    else:
        summary = writer.text(*framing, "typical")
    return writer.section(
        "trait_summary",
        [summary],
        {"profile": profile_key, "profile_label": writer.text(*framing, "profiles", profile_key)},
        title_path=_title_path("level3", "trait_summary"),
    )


def _risk_keys(metrics: AssessmentMetrics) -> list[tuple[str, str]]:
    flags = metrics.flags
    profile = metrics.profile
    tau = metrics.tau.value

    rules = (
        ("emotional_dysregulation", tau > 80, "EXPLORE"),
        (
            "burnout_risk",
            flags.compensation
            or (profile.accuracy > 90 and profile.mean_rt > 500 and metrics.cpi.value > 50),
            "HIGH",
        ),
        ("masking_compensation", flags.masking or flags.compensation, "MODERATE"),
        ("substance_risk", metrics.als.value > 70, "MONITOR"),
        ("sleep_disruption", tau > 60, "EXPLORE"),
        ("anxiety_comorbidity", profile.mean_rt > 600 and profile.commission_errors < 10, "EVALUATE"),
    )
    return [(key, severity) for key, applies, severity in rules if applies]


def risk_indicator_content(metrics: AssessmentMetrics, writer: BlockWriter) -> dict[str, Any]:
    risks = []
    for key, severity in _risk_keys(metrics):
        node = writer.raw("risk_indicators", key)
        risks.append({
            "key": key,
            "indicator": node["indicator"],
            "severity": severity,
            "description": node["description"],
            "markers": node.get("markers", []),
            "questions": node.get("questions", []),
            "recommendations": node.get("recommendations", []),
        })
    return {
        "disclaimer": writer.text("level_framing", "risk_indicators", "disclaimer"),
        "risks": risks,
        "has_significant_risks": any(r["severity"] in ("HIGH", "EVALUATE") for r in risks),
    }


def build_risk_indicators(
    metrics: AssessmentMetrics,
    writer: BlockWriter,
    title_path: tuple[str, ...] | None = None,
) -> Section:
    content = risk_indicator_content(metrics, writer)
    return writer.section(
        "risk_indicators", [content["disclaimer"]], content, title_path=title_path
    )


def build_micro_behavioral(metrics: AssessmentMetrics, writer: BlockWriter) -> Section:
    hidden = metrics.hidden_markers
    title_path = _title_path("level3", "micro_behavioral")
    if not hidden.available:
        return writer.placeholder("micro_behavioral", "reaction_times", title_path=title_path)

    framing = ("level_framing", "micro_behavioral")
    fatigue_elevated = hidden.has_significant_decline
    if hidden.compensated_pattern:
        template = "compensated"
        fatigue_status = "DETECTED" if fatigue_elevated else "MINIMAL"
    elif hidden.avg_mssd_status != "normal" or fatigue_elevated:
        template = "subtle"
        fatigue_status = "PRESENT" if fatigue_elevated else "MINIMAL"
    else:
        template = "stable"
        fatigue_status = "MINIMAL"

    narrative = writer.text(
        *framing, template,
        mssd_status=hidden.avg_mssd_status.upper(),
        mssd_value=hidden.avg_mssd,
        mssd_interpretation=hidden.mssd_interpretation,
        fatigue_status=fatigue_status,
        fatigue_meaning="declined significantly over time" if fatigue_elevated else "remained stable",
        fatigue_value=hidden.avg_fatigue_slope,
        fatigue_interpretation=hidden.fatigue_interpretation,
    )
    return writer.section("micro_behavioral", [narrative], {
        "compensated_pattern": hidden.compensated_pattern,
        "mssd": {
            "value": hidden.avg_mssd,
            "status": hidden.avg_mssd_status,
            "interpretation": hidden.mssd_interpretation,
        },
        "fatigue": {
            "slope": hidden.avg_fatigue_slope,
            "significant_decline": fatigue_elevated,
            "interpretation": hidden.fatigue_interpretation,
        },
        "tasks": [
            {
                "name": t.name,
                "mssd": t.mssd.value,
                "mssd_status": t.mssd.status,
                "fatigue_slope": t.fatigue.value,
                "fatigue_direction": t.fatigue.direction,
                "ex_gaussian": {
                    "mu": t.ex_gaussian.mu,
                    "sigma": t.ex_gaussian.sigma,
                    "tau": t.ex_gaussian.tau,
                } if t.ex_gaussian.available else None,
            }
            for t in hidden.tasks
        ],
        "summary": hidden.summary,
        "clinical_relevance": writer.text(*framing, "relevance", template),
    }, title_path=title_path)


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------

def build_clinical_levels(metrics: AssessmentMetrics, writer: BlockWriter) -> tuple[ClinicalLevel, ...]:
    return (
        ClinicalLevel("level1", _level_title(writer, "level1"), (
            build_real_world_impairment(metrics, writer),
            build_symptom_pattern_mapping(metrics, writer),
            build_clinical_questions(metrics, writer),
        )),
        ClinicalLevel("level2", _level_title(writer, "level2"), (
            build_functional_domains(metrics, writer),
            build_pattern_labels(metrics, writer),
            build_environment_predictions(metrics, writer),
        )),
        ClinicalLevel("level3", _level_title(writer, "level3"), (
            build_personalized_interventions(metrics, writer),
            build_trait_summary(metrics, writer),
            build_risk_indicators(metrics, writer, _title_path("level3", "risk_indicators")),
            build_micro_behavioral(metrics, writer),
        )),
        ClinicalLevel("level4", _level_title(writer, "level4"), (
            build_biomarker_section(
                metrics.biomarkers, writer,
                title_path=_title_path("level4", "functional_biomarkers"),
            ),
        )),
    )
