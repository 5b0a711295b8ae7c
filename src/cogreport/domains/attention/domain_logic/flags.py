"""Behavioral flags, clinical indicators and named pattern detection.

Flags are single booleans over the domain and composite scores.
Clinical indicators carry a severity and are derived from objective task
data only, never from the questionnaire. Patterns are independent named
conjunctions defined in the ``PATTERN_RULES`` table; detection never
returns an empty result.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Callable

from cogreport.domains.attention.domain_logic.domain_scores import DomainScores


# ---------------------------------------------------------------------------
# Flags
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FlagSet:
    impulsivity: bool = False
    inattention: bool = False
    variability: bool = False
    slow_processing: bool = False
    working_memory_deficit: bool = False
    switching_deficit: bool = False
    compensation: bool = False
    hyperfocus: bool = False
    # derived
    masking: bool = False
    executive_overload: bool = False

    def active(self) -> list[str]:
        """Names of the raised flags, in declaration order."""
        return [f.name for f in fields(self) if getattr(self, f.name)]


def compute_compensation(overall_accuracy: int, avg_rt: float, tau: int, rt_cv: float) -> bool:
    """High accuracy bought with slow, lapse-prone or variable responding."""
    return overall_accuracy > 85 and (avg_rt > 600 or tau > 60 or rt_cv > 0.30)


def compute_flags(
    domains: DomainScores,
    *,
    tau: int,
    rt_cv: float,
    mc_index: int,
    cpi: int,
    compensation: bool,
    conflict_effect: int,
    incongruent_accuracy: float,
) -> FlagSet:
    variability = rt_cv > 0.30 or mc_index < 60
    return FlagSet(
        impulsivity=domains.response_inhibition.score < 55,
        inattention=domains.sustained_attention.score < 60 or tau > 80,
        variability=variability,
        slow_processing=domains.processing_speed.score < 55,
        working_memory_deficit=domains.working_memory.score < 55,
        switching_deficit=domains.cognitive_flexibility.score < 55,
        compensation=compensation,
        hyperfocus=conflict_effect < 30 and incongruent_accuracy > 90,
        masking=compensation and not variability,
        executive_overload=cpi > 50,
    )


# ---------------------------------------------------------------------------
# Clinical indicators
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ClinicalIndicator:
    key: str
    severity: str  # mild | moderate | severe | notable
    label: str
    source: str


def _severity(score: int, severe_below: int, moderate_below: int) -> str:
    if score < severe_below:
        return "severe"
    if score < moderate_below:
        return "moderate"
    return "mild"


def compute_clinical_indicators(
    domains: DomainScores, flags: FlagSet, mc_index: int
) -> tuple[ClinicalIndicator, ...]:
    sa = domains.sustained_attention.score
    ri = domains.response_inhibition.score
    wm = domains.working_memory.score
    ps = domains.processing_speed.score
    cf = domains.cognitive_flexibility.score
    ic = domains.interference_control.score

    indicators: list[ClinicalIndicator] = []
    if flags.inattention or sa < 65:
        indicators.append(ClinicalIndicator(
            "sustained_attention", _severity(sa, 40, 55),
            "Sustained Attention Deficit", "CPT Task Performance",
        ))
    if flags.impulsivity or ri < 65:
        indicators.append(ClinicalIndicator(
            "response_inhibition", _severity(ri, 40, 55),
            "Response Inhibition Deficit", "Go/No-Go & CPT Commission Rate",
        ))
    if flags.working_memory_deficit or wm < 60:
        indicators.append(ClinicalIndicator(
            "working_memory", _severity(wm, 40, 55),
            "Working Memory Deficit", "N-Back Task Performance",
        ))
    if flags.slow_processing or ps < 55:
        indicators.append(ClinicalIndicator(
            "processing_speed", _severity(ps, 40, 50),
            "Processing Speed Deficit", "Mean RT Across Tasks",
        ))
    if flags.variability or mc_index < 55:
        indicators.append(ClinicalIndicator(
            "attention_variability", _severity(mc_index, 40, 50),
            "Attention Variability", "RT Variability & MC Index",
        ))
    if flags.switching_deficit or cf < 55:
        indicators.append(ClinicalIndicator(
            "cognitive_flexibility", _severity(cf, 40, 50),
            "Cognitive Flexibility Deficit", "Trail Making B-A Switching Cost",
        ))
    if ic < 60:
        indicators.append(ClinicalIndicator(
            "interference_control", _severity(ic, 40, 50),
            "Interference Control Deficit", "Flanker Task Congruency Effect",
        ))
    if flags.compensation:
        indicators.append(ClinicalIndicator(
            "compensation_pattern", "notable",
            "Compensation Pattern Detected", "Accuracy-Speed-Variability Triad",
        ))
    return tuple(indicators)


# ---------------------------------------------------------------------------
# Pattern recognition
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProfileSnapshot:
    """Flat view of the scores the pattern rules and narrative read.

    Accuracy, mean RT and RT CV come from the CPT alone; commission errors
    from Go/No-Go.
    """

    mc_index: int
    cpi: int
    tau: int
    als: int
    sustained_attention: int
    inhibitory_control: int
    working_memory: int
    processing_speed: int
    cognitive_flexibility: int
    interference_control: int
    accuracy: float
    mean_rt: float
    rt_cv: float
    wm_load_drop: int
    flanker_effect: float
    switching_cost: float
    commission_errors: float


@dataclass(frozen=True)
class PatternLabel:
    key: str
    label: str
    criteria: tuple[str, ...]
    confidence: str  # HIGH | MODERATE
    description: str
    clinical_note: str
    evidence: str


Condition = Callable[[ProfileSnapshot, FlagSet], bool]


@dataclass(frozen=True)
class PatternRule:
    key: str
    label: str
    criteria: tuple[str, ...]
    description: str
    clinical_note: str
    evidence: str
    condition: Condition
    confidence: Callable[[ProfileSnapshot], str] = lambda s: "MODERATE"

    def match(self, snapshot: ProfileSnapshot, flags: FlagSet) -> PatternLabel | None:
        if not self.condition(snapshot, flags):
            return None
        return PatternLabel(
            key=self.key,
            label=self.label,
            criteria=self.criteria,
            confidence=self.confidence(snapshot),
            description=self.description,
            clinical_note=self.clinical_note,
            evidence=self.evidence,
        )


def _high(_: ProfileSnapshot) -> str:
    return "HIGH"


PATTERN_RULES: tuple[PatternRule, ...] = (
    PatternRule(
        key="compensated_adhd",
        label="Compensated ADHD Pattern",
        criteria=("highAccuracy", "highRT", "elevatedVariability", "highCognitiveEffort"),
        description=(
            "High accuracy achieved through significant cognitive effort. Performance appears "
            "normal but is metabolically costly and often unsustainable."
        ),
        clinical_note=(
            "Consider hidden struggle: the individual may appear unimpaired but experiences "
            "substantial fatigue and effort."
        ),
        evidence="Strong convergent evidence",
        condition=lambda s, f: s.accuracy > 85 and s.mean_rt > 500 and (s.rt_cv > 0.25 or f.compensation),
        confidence=_high,
    ),
    PatternRule(
        key="executive_dysfunction",
        label="Executive Dysfunction Profile",
        criteria=("lowWM", "lowFlexibility", "highCPI", "taskManagementDifficulty"),
        description=(
            "Primary challenges in executive control systems affecting planning, organization, "
            "and task management rather than pure attention."
        ),
        clinical_note="May benefit more from organizational interventions than attention-focused strategies.",
        evidence="Multiple executive markers affected",
        condition=lambda s, f: s.working_memory < 60 and s.cognitive_flexibility < 60 and s.cpi > 50,
        confidence=_high,
    ),
    PatternRule(
        key="inconsistent_attention",
        label="Inconsistent Attentional Regulation",
        criteria=("highVariability", "lowMC", "fluctuatingPerformance"),
        description=(
            "Attention that fluctuates unpredictably rather than steadily declining. "
            "Performance varies moment-to-moment."
        ),
        clinical_note="Classic ADHD signature: inconsistency itself is the core feature.",
        evidence="Variability metrics elevated",
        condition=lambda s, f: s.mc_index < 50 or s.rt_cv > 0.3 or f.variability,
        confidence=lambda s: "HIGH" if s.mc_index < 40 else "MODERATE",
    ),
    PatternRule(
        key="processing_mismatch",
        label="Slow Processing + High Focus Mismatch",
        criteria=("lowProcessingSpeed", "highSustainedAttention", "discrepantPattern"),
        description=(
            "Individual maintains good focus but processes information slowly. Creates a "
            "frustrating pattern of 'knowing but not showing.'"
        ),
        clinical_note=(
            "May be misinterpreted as inattentive when actually processing-limited. "
            "Consider processing speed accommodations."
        ),
        evidence="Discrepant speed vs. attention pattern",
        condition=lambda s, f: s.processing_speed < 50 and s.sustained_attention > 70,
    ),
    PatternRule(
        key="hyperfocus_pattern",
        label="Hyperfocus-Dominant Pattern",
        criteria=("hyperfocusDetected", "interestDependentPerformance", "extremeVariability"),
        description=(
            "Attention is highly interest-dependent. Capable of intense focus on engaging tasks "
            "but struggles severely with low-stimulation activities."
        ),
        clinical_note="Leverage interests for engagement strategies. Consider stimulation-matching interventions.",
        evidence="Interest-dependent performance detected",
        condition=lambda s, f: f.hyperfocus,
    ),
    PatternRule(
        key="impulsivity_dominant",
        label="Impulsivity-Dominant Profile",
        criteria=("highCommissionErrors", "lowInhibition", "preservedAttention"),
        description=(
            "Primary challenge is inhibitory control rather than sustained attention. "
            "Actions precede thought."
        ),
        clinical_note="Focus interventions on response-delay techniques and impulse management.",
        evidence="Commission errors with preserved attention",
        condition=lambda s, f: (
            s.commission_errors > 20 and s.inhibitory_control < 60 and s.sustained_attention > 50
        ),
        confidence=_high,
    ),
    PatternRule(
        key="anxiety_overlay",
        label="Anxiety-Attention Interaction",
        criteria=("elevatedRT", "overcautious", "possibleAnxietyMarkers"),
        description="Performance pattern suggests anxiety may be interacting with or masking attention patterns.",
        clinical_note=(
            "Consider anxiety evaluation. Determine whether attention difficulties are primary "
            "or secondary to anxiety."
        ),
        evidence="Overcautious response pattern",
        condition=lambda s, f: s.mean_rt > 600 and s.commission_errors < 10 and s.accuracy > 90,
    ),
    PatternRule(
        key="cognitive_slowing",
        label="Generalized Cognitive Slowing",
        criteria=("slowProcessing", "slowRT", "preservedAccuracy"),
        description="Globally slower cognitive tempo affecting multiple domains while accuracy is preserved.",
        clinical_note=(
            "Consider differential diagnosis including depression, sleep disorders, or "
            "sluggish cognitive tempo."
        ),
        evidence="Globally slowed with preserved accuracy",
        condition=lambda s, f: s.processing_speed < 40 and s.mean_rt > 550 and s.accuracy > 80,
    ),
    PatternRule(
        key="working_memory_deficit",
        label="Working Memory Deficit Pattern",
        criteria=("lowWM", "wmLoadCollapse", "forgettingPattern"),
        description="Primary limitation in working memory capacity affecting multiple cognitive domains.",
        clinical_note="Prioritize external memory supports and reduce cognitive load in recommendations.",
        evidence="Working memory load collapse detected",
        condition=lambda s, f: s.working_memory < 50 or s.wm_load_drop > 25,
        confidence=lambda s: "HIGH" if s.wm_load_drop > 30 else "MODERATE",
    ),
    PatternRule(
        key="masking_pattern",
        label="Active Masking/Suppression Pattern",
        criteria=("suppressedVariability", "elevatedEffort", "controlledPresentation"),
        description=(
            "Individual actively controls and suppresses symptoms, creating artificially "
            "stable appearance."
        ),
        clinical_note="True difficulty level may be underestimated. Explore masking behaviors and their costs.",
        evidence="Suppression indicators present",
        condition=lambda s, f: f.masking,
    ),
)

TYPICAL_PATTERN = PatternLabel(
    key="typical_profile",
    label="Typical Profile",
    criteria=("metricsWithinNormalRanges",),
    confidence="HIGH",
    description=(
        "No specific clinical patterns were strongly detected. Performance falls within "
        "typical ranges across most cognitive domains."
    ),
    clinical_note="Continue standard assessment protocols if concerns persist.",
    evidence="Metrics within normal ranges",
)


def detect_patterns(snapshot: ProfileSnapshot, flags: FlagSet) -> tuple[PatternLabel, ...]:
    """Evaluate every rule independently; fall back to the typical profile."""
    detected = tuple(
        label
        for label in (rule.match(snapshot, flags) for rule in PATTERN_RULES)
        if label is not None
    )
    return detected or (TYPICAL_PATTERN,)
