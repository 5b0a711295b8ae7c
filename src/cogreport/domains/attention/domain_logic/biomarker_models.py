"""Functional biomarker result types and tier tables.

Each biomarker maps a millisecond-level statistic onto a rated tier. A tier
carries the interpretation template, the real-life impact list and whether
it counts as a concern (or, for switching, a strength). Interpretation
templates are ``str.format`` strings; see ``biomarkers`` for the fields.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping


@dataclass(frozen=True)
class BiomarkerTier:
    rating: str
    interpretation: str
    real_life_impact: tuple[str, ...]
    concern: bool = False
    strength: bool = False


@dataclass(frozen=True)
class BiomarkerResult:
    """One biomarker outcome; ``available=False`` results always score 0."""

    key: str
    name: str
    available: bool
    score: float
    rating: str
    interpretation: str
    unit: str
    formula: str
    real_life_impact: tuple[str, ...] = ()
    thresholds: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    details: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    concern: bool = False
    is_strength: bool = False


@dataclass(frozen=True)
class PanelSummary:
    concern_count: int
    total_biomarkers: int
    overall_risk: str
    interpretation: str

    @property
    def clinical_relevance(self) -> str:
        if self.concern_count >= 2:
            return "HIGH"
        if self.concern_count >= 1:
            return "MODERATE"
        return "LOW"


@dataclass(frozen=True)
class BiomarkerPanel:
    ies: BiomarkerResult
    mssd: BiomarkerResult
    fatigue: BiomarkerResult
    switching: BiomarkerResult
    summary: PanelSummary

    def results(self) -> tuple[BiomarkerResult, ...]:
        return (self.ies, self.mssd, self.fatigue, self.switching)

    @property
    def any_available(self) -> bool:
        return any(r.available for r in self.results())


INSUFFICIENT_DATA = "Insufficient Data"


# ---------------------------------------------------------------------------
# IES: the energy tax
# ---------------------------------------------------------------------------

IES_UNIT = "ms efficiency units"
IES_FORMULA = "RT ÷ Accuracy"
IES_THRESHOLDS = MappingProxyType({
    "efficient": "<500", "normal": "500-750", "high": "750-900", "severe": ">900",
})

IES_TIERS = {
    "Severe": BiomarkerTier(
        rating="Severe",
        interpretation=(
            "Your brain is burning 2-3x more cognitive fuel than typical to maintain accuracy. "
            "This is unsustainable long-term."
        ),
        real_life_impact=(
            'Likely experiencing "crash" fatigue by mid-afternoon',
            'May feel mentally exhausted even after "easy" days',
            "High risk of burnout if not managed",
            "Weekends spent recovering rather than enjoying",
        ),
        concern=True,
    ),
    "High": BiomarkerTier(
        rating="High",
        interpretation=(
            "You're working harder than necessary to achieve accuracy. "
            "This cognitive overhead adds up over time."
        ),
        real_life_impact=(
            "May feel tired earlier than peers",
            "Needs more recovery time after focused work",
            "Concentration becomes harder as day progresses",
            "May rely on caffeine or stimulation to push through",
        ),
        concern=True,
    ),
    "Normal": BiomarkerTier(
        rating="Normal",
        interpretation=(
            "Your cognitive efficiency is within typical ranges. "
            "You're not overworking to maintain performance."
        ),
        real_life_impact=(
            "Energy levels likely stable throughout day",
            "Can sustain focus without excessive fatigue",
            "Recovery time is appropriate",
        ),
    ),
    "Efficient": BiomarkerTier(
        rating="Efficient",
        interpretation="Excellent cognitive efficiency. You achieve accuracy with minimal mental effort.",
        real_life_impact=(
            "Strong cognitive stamina",
            "Likely handles demanding tasks with ease",
            "Low burnout risk from cognitive demands",
        ),
    ),
}


# ---------------------------------------------------------------------------
# MSSD: the micro-lapse index
# ---------------------------------------------------------------------------

MSSD_UNIT = "ms jitter"
MSSD_FORMULA = "√(Σ(RT[i+1] - RT[i])² / n)"
MSSD_THRESHOLDS = MappingProxyType({
    "stable": "<150ms", "elevated": "150-300ms", "severe": ">300ms",
})

MSSD_TIERS = {
    "Severe": BiomarkerTier(
        rating="Severe",
        interpretation=(
            'Your attention "flickers" significantly between moments. '
            "This creates frequent micro-gaps in awareness."
        ),
        real_life_impact=(
            "Likely missing middle sentences in conversations",
            "Need to re-read paragraphs multiple times",
            'May ask "what?" frequently even when listening',
            "Difficulty following multi-step verbal instructions",
            "Partners may feel ignored even when you're trying to pay attention",
        ),
        concern=True,
    ),
    "Elevated": BiomarkerTier(
        rating="Elevated",
        interpretation=(
            'Some attention flickering detected. Your focus has occasional "blinks" '
            "that may cause information gaps."
        ),
        real_life_impact=(
            "May lose track occasionally during long conversations",
            "Sometimes needs information repeated",
            "Works best with written backup for verbal instructions",
            "May miss details in fast-paced discussions",
        ),
        concern=True,
    ),
    "Stable": BiomarkerTier(
        rating="Stable",
        interpretation=(
            'Your attention is consistent moment-to-moment. Minimal "flickering" between trials.'
        ),
        real_life_impact=(
            "Can follow conversations reliably",
            "Rarely needs information repeated",
            "Good at catching details in real-time",
        ),
    ),
}


# ---------------------------------------------------------------------------
# Fatigue slope: time-on-task endurance
# ---------------------------------------------------------------------------

FATIGUE_UNIT = "ms/trial"
FATIGUE_FORMULA = "Linear regression slope of RT over trials"
FATIGUE_THRESHOLDS = MappingProxyType({
    "stable": "-5 to +3", "moderate_drain": "+3 to +10", "rapid_drain": ">+10", "speeding": "<-5",
})

FATIGUE_TIERS = {
    "Rapid Drain": BiomarkerTier(
        rating="Rapid Drain",
        interpretation=(
            "Your cognitive battery drains rapidly. "
            "Performance slowed by ~{drift}ms over {trial_count} trials."
        ),
        real_life_impact=(
            "Starts projects with high energy but struggles with final 10%",
            "Performance drops significantly in long meetings",
            "May avoid tasks that require sustained effort",
            "Deadline work often rushed at the end",
            "Needs frequent breaks to maintain quality",
        ),
        concern=True,
    ),
    "Moderate Drain": BiomarkerTier(
        rating="Moderate Drain",
        interpretation=(
            "Some cognitive fatigue detected. "
            "Performance slowed by ~{drift}ms over {trial_count} trials."
        ),
        real_life_impact=(
            "May need breaks during long tasks",
            "Quality may decline toward end of workday",
            "Benefits from task chunking",
            "Second half of tasks takes more effort",
        ),
        concern=True,
    ),
    "Speeding": BiomarkerTier(
        rating="Speeding",
        interpretation=(
            "Unusual speeding pattern detected. "
            "RTs decreased by ~{drift}ms over {trial_count} trials."
        ),
        real_life_impact=(
            "May indicate rushing or reduced care over time",
            "Could reflect practice effect",
            "Possible disengagement from task",
            "Worth monitoring accuracy alongside speed",
        ),
    ),
    "Stable": BiomarkerTier(
        rating="Stable",
        interpretation=(
            "Excellent cognitive endurance. Performance remained consistent throughout testing."
        ),
        real_life_impact=(
            "Good sustained attention capacity",
            "Can maintain quality over longer tasks",
            "Reliable performer throughout workday",
            "Low risk of fatigue-related errors",
        ),
    ),
}


# ---------------------------------------------------------------------------
# Switching cost: the executive tax
# ---------------------------------------------------------------------------

SWITCHING_UNIT = "x ratio"
SWITCHING_FORMULA = "Trail B Time ÷ Trail A Time"
SWITCHING_THRESHOLDS = MappingProxyType({
    "efficient": "<2.0x", "elevated": "2.0-2.5x", "severe": ">2.5x",
})

SWITCHING_TIERS = {
    "Severe": BiomarkerTier(
        rating="Severe",
        interpretation=(
            'Shifting mental gears is very "expensive" for your brain. '
            "Trail B took {ratio}x longer than Trail A."
        ),
        real_life_impact=(
            'Gets "stuck" in waiting mode before appointments',
            "Difficulty transitioning from work mode to relaxation",
            "May procrastinate starting tasks due to switching cost",
            "Struggles when interrupted mid-task",
            "Benefits from minimal context-switching in work environment",
        ),
        concern=True,
    ),
    "Elevated": BiomarkerTier(
        rating="Elevated",
        interpretation=(
            "Some executive overhead when switching tasks. Trail B took {ratio}x longer than Trail A."
        ),
        real_life_impact=(
            "May need transition time between different activities",
            "Works best with predictable schedules",
            "Interruptions are more disruptive than for others",
            "Benefits from task batching",
        ),
        concern=True,
    ),
    "Efficient": BiomarkerTier(
        rating="Efficient",
        interpretation=(
            "Excellent mental flexibility. Trail B took only {ratio}x longer than Trail A."
        ),
        real_life_impact=(
            "Shifts gears smoothly between tasks",
            "Handles interruptions relatively well",
            "May actually thrive in dynamic environments",
            "Good at multitasking when needed",
            "Performs well in crisis/high-pressure situations",
        ),
        strength=True,
    ),
}


# ---------------------------------------------------------------------------
# Panel summary
# ---------------------------------------------------------------------------

PANEL_RISK_LEVELS = (
    (3, "High Functional Impact"),
    (2, "Moderate Functional Impact"),
    (1, "Mild Functional Impact"),
    (0, "Minimal Functional Impact"),
)

PANEL_INTERPRETATION_MULTIPLE = (
    "{concern_count} of 4 functional biomarkers indicate daily life challenges. "
    "These patterns predict specific real-world difficulties."
)
PANEL_INTERPRETATION_SINGLE = (
    "One functional biomarker shows elevation. Targeted support may help in this area."
)
PANEL_INTERPRETATION_NONE = (
    "All functional biomarkers are within typical ranges. "
    "No significant daily life impairments predicted from cognitive testing."
)
