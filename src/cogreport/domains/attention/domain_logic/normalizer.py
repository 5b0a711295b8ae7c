"""Input normalization: loosely structured task results -> canonical records.

Task payloads arrive from several generations of the task front-ends, so
the same measurement can appear under different field names, as a 0-1
fraction or a 0-100 percentage, in seconds or in milliseconds. This module
resolves all of that in a single pass. Missing fields are replaced with the
documented defaults (logged at DEBUG), unusable values likewise (logged at
WARNING). Only a non-mapping aggregate or task payload is fatal.
"""

from __future__ import annotations

import logging
import math
from types import MappingProxyType
from typing import Any, Mapping

from cogreport.domains.attention.domain_logic.domain_scores import safe_score
from cogreport.domains.attention.domain_logic.task_models import (
    DEFAULT_CONGRUENT_ACCURACY,
    DEFAULT_CONGRUENT_RT,
    DEFAULT_CPT_COMMISSION_RATE,
    DEFAULT_CPT_HIT_RATE,
    DEFAULT_CPT_MEAN_RT,
    DEFAULT_GO_ACCURACY,
    DEFAULT_GO_NO_GO_MEAN_RT,
    DEFAULT_INCONGRUENT_ACCURACY,
    DEFAULT_INCONGRUENT_RT,
    DEFAULT_NBACK_ACCURACY,
    DEFAULT_NBACK_LEVEL,
    DEFAULT_NO_GO_ACCURACY,
    DEFAULT_ONE_BACK_ACCURACY,
    DEFAULT_TRAIL_A_SECONDS,
    DEFAULT_TRAIL_B_SECONDS,
    DEFAULT_TWO_BACK_ACCURACY,
    CptRecord,
    DeviceContext,
    FlankerRecord,
    GoNoGoRecord,
    NBackRecord,
    NormalizedAssessment,
    QuestionnaireRecord,
    SignalCounts,
    TrailRecord,
    UserContext,
)

logger = logging.getLogger(__name__)


class MalformedAssessmentError(ValueError):
    """The assessment aggregate, or one of its task payloads, is not a mapping."""


TASK_ALIASES: dict[str, tuple[str, ...]] = {
    "cpt": ("cpt", "cptResults"),
    "go_no_go": ("goNoGo", "goNoGoResults", "go_no_go"),
    "nback": ("nback", "nBackResults", "n_back"),
    "flanker": ("flanker", "flankerResults"),
    "trail": ("trail", "trailMakingResults", "trail_making"),
    "questionnaire": ("dsm5", "dsm5Results", "questionnaire"),
}

RT_ALIASES = ("reactionTimes", "reactionTimesMs", "rtArray")

NOT_ASSESSED = "Not assessed"


# ---------------------------------------------------------------------------
# Field readers
# ---------------------------------------------------------------------------

def _lookup(payload: Mapping[str, Any], aliases: tuple[str, ...]) -> tuple[str | None, Any]:
    """Return the first alias holding a non-None value."""
    for alias in aliases:
        value = payload.get(alias)
        if value is not None:
            return alias, value
    return None, None


def _coerce(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _optional_number(
    payload: Mapping[str, Any], aliases: tuple[str, ...], where: str
) -> float | None:
    key, raw = _lookup(payload, aliases)
    if key is None:
        logger.debug("%s absent", where)
        return None
    value = _coerce(raw)
    if value is None:
        logger.warning("%s malformed (%s=%r); ignoring", where, key, raw)
    return value


def _number(
    payload: Mapping[str, Any], aliases: tuple[str, ...], default: float, where: str
) -> float:
    value = _optional_number(payload, aliases, where)
    if value is None:
        logger.debug("%s defaulted to %s", where, default)
        return default
    return value


def _accuracy(
    payload: Mapping[str, Any], aliases: tuple[str, ...], default: float, where: str
) -> float:
    """Read an accuracy; values <= 1 are fractions and are scaled to percent."""
    value = _optional_number(payload, aliases, where)
    if value is None:
        logger.debug("%s defaulted to %s", where, default)
        return default
    return value * 100 if value <= 1 else value


def _count(payload: Mapping[str, Any], alias: str, where: str) -> int | None:
    value = _optional_number(payload, (alias,), where)
    return None if value is None else max(0, int(value))


def _flag(payload: Mapping[str, Any], alias: str, where: str) -> bool:
    raw = payload.get(alias)
    if raw is None:
        return False
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float)) and raw in (0, 1):
        return bool(raw)
    if isinstance(raw, str) and raw.strip().lower() in ("true", "false", "yes", "no"):
        return raw.strip().lower() in ("true", "yes")
    logger.warning("%s malformed (%s=%r); treating as False", where, alias, raw)
    return False


def _text(payload: Mapping[str, Any], alias: str) -> str | None:
    raw = payload.get(alias)
    if raw is None:
        return None
    text = str(raw).strip()
    return text or None


def _reaction_times(payload: Mapping[str, Any], task: str) -> tuple[float, ...]:
    key, raw = _lookup(payload, RT_ALIASES)
    if key is None:
        return ()
    if not isinstance(raw, (list, tuple)):
        logger.warning("%s.%s is not a sequence (%s); ignoring", task, key, type(raw).__name__)
        return ()
    values = [_coerce(v) for v in raw]
    dropped = sum(1 for v in values if v is None)
    if dropped:
        logger.warning("%s.%s: dropped %d non-numeric entries", task, key, dropped)
    return tuple(v for v in values if v is not None)


def _signal_counts(payload: Mapping[str, Any], task: str) -> SignalCounts:
    return SignalCounts(
        hits=_count(payload, "hits", f"{task}.hits"),
        misses=_count(payload, "misses", f"{task}.misses"),
        false_alarms=_count(payload, "falseAlarms", f"{task}.false_alarms"),
        correct_rejections=_count(payload, "correctRejections", f"{task}.correct_rejections"),
    )


def _task_payload(raw: Mapping[str, Any], task: str) -> Mapping[str, Any]:
    key, payload = _lookup(raw, TASK_ALIASES[task])
    if key is None:
        logger.debug("Task %s not supplied; using defaults", task)
        return {}
    if not isinstance(payload, Mapping):
        raise MalformedAssessmentError(
            f"Task payload {key!r} must be a mapping, got {type(payload).__name__}"
        )
    return payload


# ---------------------------------------------------------------------------
# Per-task normalizers
# ---------------------------------------------------------------------------

def normalize_cpt(payload: Mapping[str, Any]) -> CptRecord:
    errors = _optional_number(payload, ("commissionErrors",), "cpt.commission_errors")
    if errors is not None:
        trials = _optional_number(payload, ("totalTrials",), "cpt.total_trials") or 100
        rate = errors / trials * 100
    else:
        false_alarm_rate = _optional_number(payload, ("falseAlarmRate",), "cpt.false_alarm_rate")
        rate = None if false_alarm_rate is None else false_alarm_rate * 100

    return CptRecord(
        hit_rate=_accuracy(payload, ("hitRate", "accuracy"), DEFAULT_CPT_HIT_RATE, "cpt.hit_rate"),
        commission_rate=safe_score(rate, DEFAULT_CPT_COMMISSION_RATE),
        mean_rt=_number(payload, ("meanRT", "averageRT"), DEFAULT_CPT_MEAN_RT, "cpt.mean_rt"),
        rt_sd=_optional_number(payload, ("rtStandardDeviation", "rtSD"), "cpt.rt_sd"),
        reaction_times=_reaction_times(payload, "cpt"),
        counts=_signal_counts(payload, "cpt"),
        present=bool(payload),
    )


def normalize_go_no_go(payload: Mapping[str, Any]) -> GoNoGoRecord:
    return GoNoGoRecord(
        no_go_accuracy=_accuracy(
            payload, ("noGoAccuracy", "correctRejectionRate"), DEFAULT_NO_GO_ACCURACY,
            "go_no_go.no_go_accuracy",
        ),
        go_accuracy=_accuracy(
            payload, ("goAccuracy", "hitRate"), DEFAULT_GO_ACCURACY, "go_no_go.go_accuracy"
        ),
        mean_rt=_number(
            payload, ("meanRT", "averageRT"), DEFAULT_GO_NO_GO_MEAN_RT, "go_no_go.mean_rt"
        ),
        commission_errors=_number(
            payload, ("commissionErrors",), 0.0, "go_no_go.commission_errors"
        ),
        rt_sd=_optional_number(payload, ("rtSD", "rtStandardDeviation"), "go_no_go.rt_sd"),
        reaction_times=_reaction_times(payload, "go_no_go"),
        counts=_signal_counts(payload, "go_no_go"),
        present=bool(payload),
    )


def normalize_nback(payload: Mapping[str, Any]) -> NBackRecord:
    level = _number(payload, ("level", "nLevel"), DEFAULT_NBACK_LEVEL, "nback.level")
    return NBackRecord(
        accuracy=_accuracy(
            payload, ("accuracy", "overallAccuracy"), DEFAULT_NBACK_ACCURACY, "nback.accuracy"
        ),
        level=max(1, int(level)),
        one_back_accuracy=_accuracy(
            payload, ("oneBackAccuracy", "level1Accuracy"), DEFAULT_ONE_BACK_ACCURACY,
            "nback.one_back_accuracy",
        ),
        two_back_accuracy=_accuracy(
            payload, ("twoBackAccuracy", "level2Accuracy"), DEFAULT_TWO_BACK_ACCURACY,
            "nback.two_back_accuracy",
        ),
        reaction_times=_reaction_times(payload, "nback"),
        present=bool(payload),
    )


def normalize_flanker(payload: Mapping[str, Any]) -> FlankerRecord:
    congruent_rt = _number(payload, ("congruentRT",), DEFAULT_CONGRUENT_RT, "flanker.congruent_rt")
    incongruent_rt = _number(
        payload, ("incongruentRT",), DEFAULT_INCONGRUENT_RT, "flanker.incongruent_rt"
    )
    return FlankerRecord(
        congruent_accuracy=_accuracy(
            payload, ("congruentAccuracy",), DEFAULT_CONGRUENT_ACCURACY, "flanker.congruent_accuracy"
        ),
        incongruent_accuracy=_accuracy(
            payload, ("incongruentAccuracy",), DEFAULT_INCONGRUENT_ACCURACY,
            "flanker.incongruent_accuracy",
        ),
        congruent_rt=congruent_rt,
        incongruent_rt=incongruent_rt,
        mean_rt=_number(
            payload, ("meanRT",), (congruent_rt + incongruent_rt) / 2, "flanker.mean_rt"
        ),
        reaction_times=_reaction_times(payload, "flanker"),
        present=bool(payload),
    )


def _trail_seconds(payload: Mapping[str, Any], part: str) -> float | None:
    seconds = _optional_number(
        payload, (f"part{part}Time", f"time{part}"), f"trail.part_{part.lower()}_seconds"
    )
    if seconds is not None:
        return seconds
    millis = _optional_number(
        payload, (f"part{part}TimeMs", f"time{part}Ms"), f"trail.part_{part.lower()}_ms"
    )
    return None if millis is None else millis / 1000


def normalize_trail(payload: Mapping[str, Any]) -> TrailRecord:
    part_a = _trail_seconds(payload, "A")
    part_b = _trail_seconds(payload, "B")
    return TrailRecord(
        part_a_seconds=DEFAULT_TRAIL_A_SECONDS if part_a is None else part_a,
        part_b_seconds=DEFAULT_TRAIL_B_SECONDS if part_b is None else part_b,
        present=bool(payload),
        timed=part_a is not None and part_b is not None,
    )


def _responses(payload: Mapping[str, Any]) -> tuple[Mapping[str, Any], ...]:
    raw = payload.get("responses")
    if raw is None:
        return ()
    if isinstance(raw, Mapping):
        # keyed by question id
        raw = [dict(v, id=k) if isinstance(v, Mapping) else {"id": k, "score": v} for k, v in raw.items()]
    if not isinstance(raw, (list, tuple)):
        logger.warning("questionnaire.responses malformed (%s); ignoring", type(raw).__name__)
        return ()
    return tuple(MappingProxyType(dict(r)) for r in raw if isinstance(r, Mapping))


def normalize_questionnaire(payload: Mapping[str, Any]) -> QuestionnaireRecord:
    """Merge top-level and ``results`` fields (top level wins) into one record."""
    nested = payload.get("results")
    if nested is not None and not isinstance(nested, Mapping):
        logger.warning("questionnaire.results malformed (%s); ignoring", type(nested).__name__)
        nested = None
    fields: dict[str, Any] = dict(nested or {})
    fields.update({k: v for k, v in payload.items() if v is not None and k != "results"})

    inattention = _number(
        fields, ("inattentionScore", "inattention"), 0.0, "questionnaire.inattention_score"
    )
    hyperactivity = _number(
        fields, ("hyperactivityScore", "hyperactivity"), 0.0, "questionnaire.hyperactivity_score"
    )
    total = _number(fields, ("totalScore",), 0.0, "questionnaire.total_score")
    if not total and (inattention or hyperactivity):
        total = inattention + hyperactivity

    presentation = _text(fields, "presentation")
    if presentation == NOT_ASSESSED:
        presentation = None
    severity = fields.get("severityLevel")

    return QuestionnaireRecord(
        inattention_score=inattention,
        hyperactivity_score=hyperactivity,
        total_score=total,
        inattention_count=int(_number(fields, ("inattentionCount",), 0, "questionnaire.inattention_count")),
        hyperactivity_count=int(
            _number(fields, ("hyperactivityCount",), 0, "questionnaire.hyperactivity_count")
        ),
        meets_inattention_criteria=_flag(fields, "meetsInattentionCriteria", "questionnaire"),
        meets_hyperactivity_criteria=_flag(fields, "meetsHyperactivityCriteria", "questionnaire"),
        meets_supporting_criteria=_flag(fields, "meetsSupportingCriteria", "questionnaire"),
        presentation=presentation,
        risk_level=_text(fields, "riskLevel") or "unknown",
        severity_level=str(severity) if severity not in (None, "", 0) else None,
        additional_notes=_text(fields, "additionalNotes"),
        responses=_responses(fields),
        present=bool(payload),
    )


def _user_context(raw: Mapping[str, Any]) -> UserContext:
    user = raw.get("user")
    if not isinstance(user, Mapping):
        if user is not None:
            logger.warning("user context malformed (%s); ignoring", type(user).__name__)
        return UserContext()
    age = _optional_number(user, ("age",), "user.age")
    return UserContext(
        age=None if age is None else int(age),
        name=_text(user, "name"),
    )


def _device_context(raw: Mapping[str, Any]) -> DeviceContext:
    device = raw.get("device")
    if not isinstance(device, Mapping):
        if device is not None:
            logger.warning("device context malformed (%s); ignoring", type(device).__name__)
        return DeviceContext()
    extras = {k: v for k, v in device.items() if k not in ("validityScore", "latencyCorrected")}
    return DeviceContext(
        validity_score=_optional_number(device, ("validityScore",), "device.validity_score"),
        latency_corrected=_flag(device, "latencyCorrected", "device"),
        extras=MappingProxyType(extras),
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def normalize_assessment(raw: Mapping[str, Any]) -> NormalizedAssessment:
    """Resolve a raw assessment aggregate into a :class:`NormalizedAssessment`.

    Raises:
        MalformedAssessmentError: ``raw`` or one of its task payloads is not a mapping.
    """
    if not isinstance(raw, Mapping):
        raise MalformedAssessmentError(
            f"Assessment must be a mapping, got {type(raw).__name__}"
        )

    assessment = NormalizedAssessment(
        cpt=normalize_cpt(_task_payload(raw, "cpt")),
        go_no_go=normalize_go_no_go(_task_payload(raw, "go_no_go")),
        nback=normalize_nback(_task_payload(raw, "nback")),
        flanker=normalize_flanker(_task_payload(raw, "flanker")),
        trail=normalize_trail(_task_payload(raw, "trail")),
        questionnaire=normalize_questionnaire(_task_payload(raw, "questionnaire")),
        user=_user_context(raw),
        device=_device_context(raw),
    )
    logger.debug(
        "Normalized assessment: tasks present=%s, rt series=%d",
        [
            name
            for name, record in (
                ("cpt", assessment.cpt),
                ("go_no_go", assessment.go_no_go),
                ("nback", assessment.nback),
                ("flanker", assessment.flanker),
                ("trail", assessment.trail),
                ("questionnaire", assessment.questionnaire),
            )
            if record.present
        ],
        len(assessment.task_reaction_times()),
    )
    return assessment
