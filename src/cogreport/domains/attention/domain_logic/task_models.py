"""Canonical task records produced by the input normalizer.

Every numeric field is guaranteed present after normalization; downstream
calculators never need to re-check for missing values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping


# ---------------------------------------------------------------------------
# Documented fallback defaults (accuracies in percent, times in ms unless noted)
# ---------------------------------------------------------------------------

DEFAULT_CPT_HIT_RATE = 85.0
DEFAULT_CPT_COMMISSION_RATE = 5.0
DEFAULT_CPT_MEAN_RT = 450.0

DEFAULT_NO_GO_ACCURACY = 80.0
DEFAULT_GO_ACCURACY = 90.0
DEFAULT_GO_NO_GO_MEAN_RT = 400.0

DEFAULT_NBACK_ACCURACY = 70.0
DEFAULT_NBACK_LEVEL = 2
DEFAULT_ONE_BACK_ACCURACY = 90.0
DEFAULT_TWO_BACK_ACCURACY = 65.0

DEFAULT_CONGRUENT_ACCURACY = 95.0
DEFAULT_INCONGRUENT_ACCURACY = 85.0
DEFAULT_CONGRUENT_RT = 400.0
DEFAULT_INCONGRUENT_RT = 500.0

DEFAULT_TRAIL_A_SECONDS = 30.0
DEFAULT_TRAIL_B_SECONDS = 70.0

DEFAULT_RT_SD = 120.0


@dataclass(frozen=True)
class SignalCounts:
    """Optional signal-detection trial counts for d′."""

    hits: int | None = None
    misses: int | None = None
    false_alarms: int | None = None
    correct_rejections: int | None = None

    @property
    def complete(self) -> bool:
        return None not in (self.hits, self.misses, self.false_alarms, self.correct_rejections)


@dataclass(frozen=True)
class CptRecord:
    hit_rate: float = DEFAULT_CPT_HIT_RATE
    commission_rate: float = DEFAULT_CPT_COMMISSION_RATE
    mean_rt: float = DEFAULT_CPT_MEAN_RT
    rt_sd: float | None = None
    reaction_times: tuple[float, ...] = ()
    counts: SignalCounts = field(default_factory=SignalCounts)
    present: bool = False


@dataclass(frozen=True)
class GoNoGoRecord:
    no_go_accuracy: float = DEFAULT_NO_GO_ACCURACY
    go_accuracy: float = DEFAULT_GO_ACCURACY
    mean_rt: float = DEFAULT_GO_NO_GO_MEAN_RT
    commission_errors: float = 0.0
    rt_sd: float | None = None
    reaction_times: tuple[float, ...] = ()
    counts: SignalCounts = field(default_factory=SignalCounts)
    present: bool = False


@dataclass(frozen=True)
class NBackRecord:
    accuracy: float = DEFAULT_NBACK_ACCURACY
    level: int = DEFAULT_NBACK_LEVEL
    one_back_accuracy: float = DEFAULT_ONE_BACK_ACCURACY
    two_back_accuracy: float = DEFAULT_TWO_BACK_ACCURACY
    reaction_times: tuple[float, ...] = ()
    present: bool = False


@dataclass(frozen=True)
class FlankerRecord:
    congruent_accuracy: float = DEFAULT_CONGRUENT_ACCURACY
    incongruent_accuracy: float = DEFAULT_INCONGRUENT_ACCURACY
    congruent_rt: float = DEFAULT_CONGRUENT_RT
    incongruent_rt: float = DEFAULT_INCONGRUENT_RT
    mean_rt: float = (DEFAULT_CONGRUENT_RT + DEFAULT_INCONGRUENT_RT) / 2
    reaction_times: tuple[float, ...] = ()
    present: bool = False

    @property
    def flanker_effect(self) -> float:
        """Incongruent minus congruent mean RT (ms)."""
        return self.incongruent_rt - self.congruent_rt


@dataclass(frozen=True)
class TrailRecord:
    part_a_seconds: float = DEFAULT_TRAIL_A_SECONDS
    part_b_seconds: float = DEFAULT_TRAIL_B_SECONDS
    present: bool = False
    # both part times were measured rather than defaulted
    timed: bool = False

    @property
    def switching_cost_seconds(self) -> float:
        """B − A, floored at zero."""
        return max(0.0, self.part_b_seconds - self.part_a_seconds)


@dataclass(frozen=True)
class QuestionnaireRecord:
    inattention_score: float = 0.0
    hyperactivity_score: float = 0.0
    total_score: float = 0.0
    inattention_count: int = 0
    hyperactivity_count: int = 0
    meets_inattention_criteria: bool = False
    meets_hyperactivity_criteria: bool = False
    meets_supporting_criteria: bool = False
    presentation: str | None = None
    risk_level: str = "unknown"
    severity_level: str | None = None
    additional_notes: str | None = None
    responses: tuple[Mapping[str, Any], ...] = ()
    present: bool = False

    @property
    def meets_criteria(self) -> bool:
        return self.meets_inattention_criteria or self.meets_hyperactivity_criteria


@dataclass(frozen=True)
class UserContext:
    age: int | None = None
    name: str | None = None


@dataclass(frozen=True)
class DeviceContext:
    validity_score: float | None = None
    latency_corrected: bool = False
    extras: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))


@dataclass(frozen=True)
class NormalizedAssessment:
    """One canonical record per task plus questionnaire and context."""

    cpt: CptRecord = field(default_factory=CptRecord)
    go_no_go: GoNoGoRecord = field(default_factory=GoNoGoRecord)
    nback: NBackRecord = field(default_factory=NBackRecord)
    flanker: FlankerRecord = field(default_factory=FlankerRecord)
    trail: TrailRecord = field(default_factory=TrailRecord)
    questionnaire: QuestionnaireRecord = field(default_factory=QuestionnaireRecord)
    user: UserContext = field(default_factory=UserContext)
    device: DeviceContext = field(default_factory=DeviceContext)

    @property
    def rt_sd(self) -> float:
        """RT standard deviation: CPT, then Go/No-Go, then the default."""
        if self.cpt.rt_sd:
            return self.cpt.rt_sd
        if self.go_no_go.rt_sd:
            return self.go_no_go.rt_sd
        return DEFAULT_RT_SD

    @property
    def avg_rt(self) -> float:
        """Mean of the CPT, Go/No-Go and Flanker mean RTs."""
        return (self.cpt.mean_rt + self.go_no_go.mean_rt + self.flanker.mean_rt) / 3

    @property
    def best_reaction_times(self) -> tuple[float, ...]:
        """First non-empty RT series in CPT → Go/No-Go → N-Back → Flanker order."""
        for series in (
            self.cpt.reaction_times,
            self.go_no_go.reaction_times,
            self.nback.reaction_times,
            self.flanker.reaction_times,
        ):
            if series:
                return series
        return ()

    def task_reaction_times(self) -> list[tuple[str, tuple[float, ...]]]:
        """Named RT series for every task that supplied one."""
        named = [
            ("CPT", self.cpt.reaction_times),
            ("Go/No-Go", self.go_no_go.reaction_times),
            ("N-Back", self.nback.reaction_times),
            ("Flanker", self.flanker.reaction_times),
        ]
        return [(name, rts) for name, rts in named if rts]
