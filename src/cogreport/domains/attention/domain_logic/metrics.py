"""Scoring pipeline: normalized assessment -> AssessmentMetrics.

Runs domain scores, composite indices, flags and patterns, biomarkers and
subtype inference in order. Deterministic; no randomness, no I/O.
"""

from __future__ import annotations

import logging

from cogreport.domains.attention.domain_logic.biomarkers import (
    calculate_all_biomarkers,
    compute_d_prime,
)
from cogreport.domains.attention.domain_logic.composites import (
    compute_als,
    compute_conflict,
    compute_cpi,
    compute_mc_index,
    compute_overall_accuracy,
    compute_performance_score,
    compute_rt_variability,
    compute_tau,
    compute_wm_load,
    questionnaire_modifier,
)
from cogreport.domains.attention.domain_logic.domain_scores import compute_domain_scores
from cogreport.domains.attention.domain_logic.flags import (
    ProfileSnapshot,
    compute_clinical_indicators,
    compute_compensation,
    compute_flags,
    detect_patterns,
)
from cogreport.domains.attention.domain_logic.hidden_markers import calculate_hidden_markers
from cogreport.domains.attention.domain_logic.metric_models import (
    QUESTIONNAIRE_MAX_TOTAL,
    AssessmentMetrics,
    CompensationAnalysis,
    QuestionnaireSummary,
    domain_severity,
)
from cogreport.domains.attention.domain_logic.subtype import infer_subtype
from cogreport.domains.attention.domain_logic.task_models import (
    NormalizedAssessment,
    QuestionnaireRecord,
)

logger = logging.getLogger(__name__)

# RT CV assumed for the pattern rules when the CPT reports no RT SD
DEFAULT_PROFILE_RT_CV = 0.2


def summarize_questionnaire(questionnaire: QuestionnaireRecord) -> QuestionnaireSummary:
    return QuestionnaireSummary(
        available=questionnaire.present,
        inattention_score=questionnaire.inattention_score,
        hyperactivity_score=questionnaire.hyperactivity_score,
        total_score=questionnaire.total_score,
        inattention_count=questionnaire.inattention_count,
        hyperactivity_count=questionnaire.hyperactivity_count,
        inattention_severity=domain_severity(questionnaire.inattention_score),
        hyperactivity_severity=domain_severity(questionnaire.hyperactivity_score),
        meets_inattention_criteria=questionnaire.meets_inattention_criteria,
        meets_hyperactivity_criteria=questionnaire.meets_hyperactivity_criteria,
        meets_supporting_criteria=questionnaire.meets_supporting_criteria,
        presentation=questionnaire.presentation,
        risk_level=questionnaire.risk_level,
        severity_percent=round(questionnaire.total_score / QUESTIONNAIRE_MAX_TOTAL * 100, 1),
        modifier=questionnaire_modifier(questionnaire),
    )


def calculate_assessment_metrics(assessment: NormalizedAssessment) -> AssessmentMetrics:
    """Score one normalized assessment end to end."""
    cpt = assessment.cpt
    flanker = assessment.flanker
    avg_rt = assessment.avg_rt

    # --- Domain scores and composites ---
    domains = compute_domain_scores(assessment)
    tau = compute_tau(assessment.rt_sd)
    variability = compute_rt_variability(assessment.rt_sd, avg_rt)
    mc_index = compute_mc_index(variability.consistency, cpt.commission_rate, cpt.hit_rate)
    cpi = compute_cpi(domains.working_memory.score, domains.response_inhibition.score)
    wm_load = compute_wm_load(assessment.nback.one_back_accuracy, assessment.nback.two_back_accuracy)
    conflict = compute_conflict(flanker.flanker_effect)
    overall_accuracy = compute_overall_accuracy(domains)
    performance = compute_performance_score(domains)

    # --- Flags, ALS, indicators ---
    compensation = compute_compensation(overall_accuracy, avg_rt, tau.value, variability.rt_cv)
    flags = compute_flags(
        domains,
        tau=tau.value,
        rt_cv=variability.rt_cv,
        mc_index=mc_index.value,
        cpi=cpi.value,
        compensation=compensation,
        conflict_effect=conflict.effect,
        incongruent_accuracy=flanker.incongruent_accuracy,
    )
    als = compute_als(performance, compensation, assessment.questionnaire)
    indicators = compute_clinical_indicators(domains, flags, mc_index.value)

    profile = ProfileSnapshot(
        mc_index=mc_index.value,
        cpi=cpi.value,
        tau=tau.value,
        als=als.value,
        sustained_attention=domains.sustained_attention.score,
        inhibitory_control=domains.response_inhibition.score,
        working_memory=domains.working_memory.score,
        processing_speed=domains.processing_speed.score,
        cognitive_flexibility=domains.cognitive_flexibility.score,
        interference_control=domains.interference_control.score,
        accuracy=cpt.hit_rate,
        mean_rt=cpt.mean_rt,
        rt_cv=cpt.rt_sd / cpt.mean_rt if cpt.rt_sd and cpt.mean_rt else DEFAULT_PROFILE_RT_CV,
        wm_load_drop=wm_load.drop,
        flanker_effect=flanker.flanker_effect,
        switching_cost=assessment.trail.switching_cost_seconds,
        commission_errors=assessment.go_no_go.commission_errors,
    )
    patterns = detect_patterns(profile, flags)

    # --- Biomarkers ---
    trail = assessment.trail
    biomarkers = calculate_all_biomarkers(
        assessment.best_reaction_times,
        mean_rt=avg_rt,
        accuracy=overall_accuracy,
        trail_a_ms=trail.part_a_seconds * 1000 if trail.timed else 0,
        trail_b_ms=trail.part_b_seconds * 1000 if trail.timed else 0,
    )
    hidden = calculate_hidden_markers(assessment)
    d_prime = {
        task: value
        for task, value in (
            ("cpt", compute_d_prime(cpt.counts)),
            ("go_no_go", compute_d_prime(assessment.go_no_go.counts)),
        )
        if value is not None
    }

    subtype = infer_subtype(assessment.questionnaire, flags, mc_index.value)

    metrics = AssessmentMetrics(
        assessment=assessment,
        domains=domains,
        tau=tau,
        rt_variability=variability,
        mc_index=mc_index,
        cpi=cpi,
        wm_load=wm_load,
        conflict=conflict,
        performance_score=performance,
        overall_accuracy=overall_accuracy,
        als=als,
        flags=flags,
        compensation=CompensationAnalysis(
            detected=compensation,
            accuracy=overall_accuracy,
            avg_rt=avg_rt,
            tau=tau.value,
            rt_cv=variability.rt_cv,
            penalty=als.compensation_penalty,
        ),
        clinical_indicators=indicators,
        profile=profile,
        patterns=patterns,
        biomarkers=biomarkers,
        hidden_markers=hidden,
        subtype=subtype,
        questionnaire=summarize_questionnaire(assessment.questionnaire),
        d_prime=d_prime,
    )
    logger.debug(
        "Scored assessment: ALS=%d (%s), subtype=%s, flags=%s",
        als.value, als.category, subtype.label, flags.active(),
    )
    return metrics
