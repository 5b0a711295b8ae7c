"""MCP tools for attention assessment metrics and narrative reports.

Both tools are pure computations over the submitted aggregate: nothing is
stored, and the response is the only place the assessment data ends up.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from fastmcp import Context, FastMCP

from cogreport.core.audience.adapter import AUDIENCES
from cogreport.domains.attention.domain_logic.normalizer import MalformedAssessmentError
from cogreport.domains.attention.report import compute_metrics, generate_report

if TYPE_CHECKING:
    from cogreport.core.blocks.registry import BlockLibrary
    from cogreport.core.config.settings import Settings

logger = logging.getLogger(__name__)


def register_report_tools(
    mcp: FastMCP,
    library: BlockLibrary,
    settings: Settings,
) -> None:
    """Register the metrics and report tools on the MCP server."""

    @mcp.tool
    async def cognitive_metrics(
        ctx: Context,
        assessment: dict[str, Any],
    ) -> str:
        """Compute attention metrics for one assessment without narrative text.

        Returns domain scores, ALS, MC Index, CPI, tau, flags, cross-task
        patterns, inferred subtype and functional biomarkers.

        Args:
            assessment: The assessment aggregate: per-task results (cpt, goNoGo,
                nBack, flanker, trail), optional questionnaire, user and device context.
        """
        try:
            metrics = compute_metrics(assessment)
        except MalformedAssessmentError as exc:
            logger.warning("cognitive_metrics rejected assessment: %s", exc)
            return json.dumps({"status": "error", "message": str(exc)})

        return json.dumps({
            "status": "ok",
            "metrics": metrics.snapshot(),
            "biomarkers": {
                r.key: {
                    "available": r.available,
                    "score": r.score if r.available else None,
                    "rating": r.rating if r.available else None,
                    "concern": r.concern,
                }
                for r in metrics.biomarkers.results()
            },
        }, indent=2)

    @mcp.tool
    async def cognitive_report(
        ctx: Context,
        assessment: dict[str, Any],
        audience: str = "",
        seed: int | None = None,
    ) -> str:
        """Generate the full narrative attention report for one assessment.

        Args:
            assessment: The assessment aggregate (same shape as cognitive_metrics).
            audience: 'patient' (plain-language terms), 'clinician' (adds technical
                notes, effect sizes and diagnostic codes) or 'standard'.
                Defaults to the server's configured audience.
            seed: Fix the phrasing choices so the same input yields the same text.
                Omit for varied wording.
        """
        audience = audience or settings.cog_default_audience
        if audience not in AUDIENCES:
            return json.dumps({
                "status": "error",
                "message": f"Unknown audience {audience!r}; expected one of {', '.join(AUDIENCES)}",
            })
        if seed is None:
            seed = settings.cog_default_seed

        try:
            report = generate_report(assessment, audience=audience, seed=seed, library=library)
        except MalformedAssessmentError as exc:
            logger.warning("cognitive_report rejected assessment: %s", exc)
            return json.dumps({"status": "error", "message": str(exc)})

        return json.dumps({"status": "ok", "report": report.to_dict()}, indent=2)
