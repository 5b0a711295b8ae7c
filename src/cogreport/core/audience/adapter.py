"""Audience adaptation of composed reports.

A composed report is written in the library's neutral register. Adapting it
produces a *new* report for one reader:

- ``patient``: technical vocabulary is swapped for the plain-language term
  table in every prose string (section text, clinical levels, executive
  summary, life predictions). Metadata and the metrics snapshot are left as
  numbers and identifiers.
- ``clinician``: prose is unchanged; ``annotations`` gains raw index notes,
  effect sizes and the diagnostic code list.
- ``standard``: returned as is.

Section order and count never change.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Literal, Mapping

from cogreport.core.blocks.models import thaw
from cogreport.core.blocks.registry import BlockLibrary
from cogreport.domains.attention.narrative.models import ClinicalLevel, Report, Section

Audience = Literal["standard", "patient", "clinician"]
AUDIENCES: tuple[str, ...] = ("standard", "patient", "clinician")


def adapt_report(report: Report, audience: str, library: BlockLibrary) -> Report:
    """Return a copy of ``report`` adapted to ``audience``.

    Raises ValueError for an unknown audience.
    """
    if audience not in AUDIENCES:
        raise ValueError(f"Unknown audience {audience!r}; expected one of {', '.join(AUDIENCES)}")
    if audience == "patient":
        return _for_patient(report, library)
    if audience == "clinician":
        return _for_clinician(report, library)
    return report


# ---------------------------------------------------------------------------
# Patient
# ---------------------------------------------------------------------------


def term_substituter(terms: Mapping[str, str]) -> Callable[[str], str]:
    """Build a single-pass, case-insensitive replacer for ``terms``.

    Longer terms are tried first so a phrase wins over any term it
    contains. Replaced text is never rescanned.
    """
    if not terms:
        return lambda text: text
    lookup = {term.lower(): replacement for term, replacement in terms.items()}
    ordered = sorted(terms, key=len, reverse=True)
    pattern = re.compile("|".join(re.escape(term) for term in ordered), re.IGNORECASE)
    return lambda text: pattern.sub(lambda m: lookup[m.group(0).lower()], text)


def map_strings(obj: Any, fn: Callable[[str], str]) -> Any:
    """Apply ``fn`` to every string value in a nested dict/list structure.

    Mapping keys are identifiers and are left alone.
    """
    if isinstance(obj, str):
        return fn(obj)
    if isinstance(obj, Mapping):
        return {k: map_strings(v, fn) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [map_strings(v, fn) for v in obj]
    return obj


def _adapt_section(section: Section, fn: Callable[[str], str]) -> Section:
    return Section(
        key=section.key,
        title=fn(section.title),
        subtitle=fn(section.subtitle),
        paragraphs=tuple(fn(p) for p in section.paragraphs),
        content=map_strings(thaw(section.content), fn),
        available=section.available,
    )


def _for_patient(report: Report, library: BlockLibrary) -> Report:
    substitute = term_substituter(library.terms())
    levels = tuple(
        ClinicalLevel(
            key=level.key,
            title=substitute(level.title),
            sections=tuple(_adapt_section(s, substitute) for s in level.sections),
        )
        for level in report.clinical_levels
    )
    return report.with_changes(
        audience="patient",
        executive_summary=tuple(substitute(p) for p in report.executive_summary),
        sections=tuple(_adapt_section(s, substitute) for s in report.sections),
        clinical_levels=levels,
        life_predictions=map_strings(thaw(report.life_predictions), substitute),
    )


# ---------------------------------------------------------------------------
# Clinician
# ---------------------------------------------------------------------------


def _validity_summary(report: Report) -> str:
    try:
        section = report.section("validity")
    except KeyError:
        return "N/A"
    indicators = section.content.get("indicators", ())
    if not indicators:
        return "N/A"
    return ", ".join(f"{i['label']}: {i['value']}" for i in indicators)


def _number(value: Any) -> Any:
    if isinstance(value, float):
        value = round(value, 1)
        if value.is_integer():
            return int(value)
    return value


def clinician_notes(report: Report, library: BlockLibrary) -> dict[str, str]:
    metrics = report.metrics
    domains = metrics.get("domains", {})
    notes = library.entry("clinician_notes")
    return {
        "mc_index": notes["mc_index"].format(mc_index=metrics["mc_index"], rt_cv=metrics["rt_cv"]),
        "cpi": notes["cpi"].format(
            cpi=metrics["cpi"],
            working_memory=domains.get("working_memory", "N/A"),
            response_inhibition=domains.get("response_inhibition", "N/A"),
        ),
        "tau": notes["tau"].format(tau=metrics["tau"]),
        "als": notes["als"].format(
            als=metrics["als"],
            category=metrics["als_category"],
            performance=metrics["performance_score"],
        ),
        "validity": notes["validity"].format(validity=_validity_summary(report)),
    }


def effect_sizes(report: Report, library: BlockLibrary) -> list[str]:
    """d' per task (when trial counts allow), flanker effect, WM load drop."""
    templates = library.entry("effect_sizes")
    metrics = report.metrics
    d_prime = metrics.get("d_prime") or {}

    lines = [
        templates[f"{task}_d_prime"].format(value=value)
        for task, value in d_prime.items()
        if f"{task}_d_prime" in templates
    ]
    if not lines:
        lines.append(templates["unavailable"])
    lines.append(templates["flanker_effect"].format(value=_number(metrics["flanker_effect"])))
    lines.append(templates["wm_load_drop"].format(value=_number(metrics["wm_load_drop"])))
    return lines


def _for_clinician(report: Report, library: BlockLibrary) -> Report:
    annotations = thaw(report.annotations)
    annotations.update({
        "clinician_notes": clinician_notes(report, library),
        "effect_sizes": effect_sizes(report, library),
        "diagnostic_codes": list(library.entry("diagnostic_codes")),
    })
    return report.with_changes(audience="clinician", annotations=annotations)
