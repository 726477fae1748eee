"""Revenue Health MCP Server.

FastMCP server that scores a small business from whatever metrics it has
and turns the score into explanations, a 7-day action plan, and tool picks.
Run: revenue-health-mcp
"""

from __future__ import annotations

import logging
import math
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations

from .catalog import load_tool_catalog
from .clients.narrative import fetch_narrative
from .core.action_plan import generate_action_plan
from .core.models import FACT_FIELDS, BusinessType, FactRecord, ScoreResult
from .core.narrative import build_narrative_request
from .core.reasoning import explain_action_task, explain_result, explain_tool
from .core.report import build_health_report
from .core.scoring import compute_health_score
from .core.tool_matcher import recommend_tools
from .core.weights import BUSINESS_TYPE_LABELS, PILLAR_LABELS
from .db import close_db, init_db
from .history import compare_latest, get_score_history, save_score_snapshot

logger = logging.getLogger(__name__)

READ_ONLY = ToolAnnotations(readOnlyHint=True, destructiveHint=False, idempotentHint=True, openWorldHint=False)
WRITES_HISTORY = ToolAnnotations(readOnlyHint=False, destructiveHint=False, idempotentHint=False, openWorldHint=False)
CALLS_OUT = ToolAnnotations(readOnlyHint=True, destructiveHint=False, idempotentHint=True, openWorldHint=True)

PERCENT_FIELDS = frozenset({"gross_margin_pct", "churn_monthly_pct", "conversion_rate_pct"})
SIGNED_FIELDS = frozenset({"net_profit_monthly"})


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[None]:
    """Configure logging and the score history database."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    await init_db()
    try:
        yield
    finally:
        await close_db()


mcp = FastMCP(
    "Revenue Health",
    instructions="Score a small business across revenue, profitability, retention, acquisition, and operations. Works with partial metrics, explains every number, and turns the weakest areas into a 7-day action plan with matching tools.",
    lifespan=lifespan,
)


# ─── Input validation ────────────────────────────────────────────────────────


def _parse_business_type(business_type: Optional[str]) -> Optional[BusinessType]:
    if business_type is None or business_type == "":
        return None
    try:
        return BusinessType(business_type.strip().lower())
    except ValueError:
        valid = ", ".join(bt.value for bt in BusinessType)
        raise ValueError(f"Unknown business_type '{business_type}'. Valid types: {valid}") from None


def _parse_facts(facts: Optional[dict[str, Any]]) -> FactRecord:
    """Validate caller metrics and build a FactRecord.

    Missing keys and None values mean "not provided". Unknown keys, non-numeric
    values, percentages outside [0, 100], and negative amounts are rejected.
    """
    facts = facts or {}
    unknown = sorted(set(facts) - set(FACT_FIELDS))
    if unknown:
        raise ValueError(f"Unknown fact fields: {', '.join(unknown)}. Valid fields: {', '.join(FACT_FIELDS)}")

    values: dict[str, float] = {}
    for name, raw in facts.items():
        if raw is None:
            continue
        if isinstance(raw, bool):
            raise ValueError(f"{name} must be a number, got {raw!r}")
        try:
            value = float(raw)
        except (TypeError, ValueError):
            raise ValueError(f"{name} must be a number, got {raw!r}") from None
        if math.isnan(value) or math.isinf(value):
            raise ValueError(f"{name} must be a finite number")
        if name in PERCENT_FIELDS and not 0 <= value <= 100:
            raise ValueError(f"{name} is a percentage and must be between 0 and 100, got {value:g}")
        if name not in SIGNED_FIELDS and value < 0:
            raise ValueError(f"{name} cannot be negative, got {value:g}")
        values[name] = value

    return FactRecord(**values)


def _score(facts: Optional[dict[str, Any]], business_type: Optional[str]) -> ScoreResult:
    return compute_health_score(_parse_facts(facts), _parse_business_type(business_type))


def _score_summary(result: ScoreResult) -> str:
    pillars = " | ".join(f"{PILLAR_LABELS[p]}: {r.score}" for p, r in result.pillars.items())
    return f"{result.score}/100 as {BUSINESS_TYPE_LABELS[result.business_type]} — {pillars}"


# ─── Tool 1: Health Score ────────────────────────────────────────────────────


@mcp.tool(annotations=WRITES_HISTORY)
async def health_score(
    facts: dict[str, Any],
    business_type: Optional[str] = None,
    profile_id: Optional[str] = None,
) -> dict:
    """Score business health 0-100 across five pillars from whatever metrics are available.

    Args:
        facts: Metric name to value, e.g. {"revenue_monthly": 8000, "churn_monthly_pct": 6}.
               Fields: revenue_monthly, gross_margin_pct, net_profit_monthly, runway_months,
               churn_monthly_pct, conversion_rate_pct, traffic_monthly, avg_order_value, cac, ltv,
               ops_hours_per_week, fulfillment_days, support_tickets_per_week. Omit what you don't know.
        business_type: ecommerce, saas, service_agency, creator, or local_business. Default service_agency.
        profile_id: Optional identifier. When given, the score is saved so history and changes can be tracked.
    """
    result = _score(facts, business_type)
    snapshot = await save_score_snapshot(profile_id, result) if profile_id else None
    return {
        "title": "Business Health Score",
        "result": result.model_dump(mode="json", exclude={"facts"}),
        "snapshot": snapshot,
        "summary": _score_summary(result),
    }


# ─── Tool 2: Action Plan ─────────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def health_action_plan(facts: dict[str, Any], business_type: Optional[str] = None) -> dict:
    """A 7-day action plan of up to 10 tasks targeting the two weakest pillars.

    Args:
        facts: Metric name to value. See health_score for the field list.
        business_type: ecommerce, saas, service_agency, creator, or local_business.
    """
    result = _score(facts, business_type)
    plan = generate_action_plan(result)
    return {
        "title": "7-Day Action Plan",
        "score": result.score,
        "plan": plan.model_dump(mode="json"),
        "summary": (
            f"{len(plan.tasks)} tasks focused on {PILLAR_LABELS[plan.primary_pillar]} "
            f"and {PILLAR_LABELS[plan.secondary_pillar]}"
        ),
    }


# ─── Tool 3: Tool Recommendations ────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def health_tool_recommendations(facts: dict[str, Any], business_type: Optional[str] = None) -> dict:
    """Recommend up to two tools for each of the three weakest pillars.

    Args:
        facts: Metric name to value. See health_score for the field list.
        business_type: ecommerce, saas, service_agency, creator, or local_business.
    """
    result = _score(facts, business_type)
    groups = recommend_tools(result, load_tool_catalog())
    tool_count = sum(len(g.tools) for g in groups)
    return {
        "title": "Recommended Tools",
        "score": result.score,
        "recommendations": [g.model_dump(mode="json") for g in groups],
        "summary": (
            f"{tool_count} tools across {len(groups)} pillars" if groups else "No matching tools available"
        ),
    }


# ─── Tool 4: Explain ─────────────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def health_explain(facts: dict[str, Any], business_type: Optional[str] = None) -> dict:
    """Explain the score: why the primary risk, what the lever is worth, and which pillars are estimated.

    Args:
        facts: Metric name to value. See health_score for the field list.
        business_type: ecommerce, saas, service_agency, creator, or local_business.
    """
    result = _score(facts, business_type)
    explanation = explain_result(result)
    plan = generate_action_plan(result)
    groups = recommend_tools(result, load_tool_catalog())
    return {
        "title": "Score Explanation",
        "score": result.score,
        "explanation": explanation.model_dump(mode="json"),
        "action_tasks": [
            {"id": task.id, "title": task.title, **explain_action_task(task, result).model_dump(mode="json")}
            for task in plan.tasks
        ],
        "tools": [
            {"id": tool.id, "name": tool.name, **explain_tool(tool, result).model_dump(mode="json")}
            for group in groups
            for tool in group.tools
        ],
        "summary": explanation.primary_risk,
    }


# ─── Tool 5: Full Report ─────────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def health_report(facts: dict[str, Any], business_type: Optional[str] = None) -> dict:
    """Score, action plan, tool recommendations, and explanations in one call.

    Args:
        facts: Metric name to value. See health_score for the field list.
        business_type: ecommerce, saas, service_agency, creator, or local_business.
    """
    report = build_health_report(_parse_facts(facts), _parse_business_type(business_type), load_tool_catalog())
    return {
        "title": "Business Health Report",
        "report": report.model_dump(mode="json"),
        "summary": _score_summary(report.result),
    }


# ─── Tool 6: Narrative ───────────────────────────────────────────────────────


@mcp.tool(annotations=CALLS_OUT)
async def health_narrative(facts: dict[str, Any], business_type: Optional[str] = None) -> dict:
    """Plain-language narrative of the score from the configured text-generation service.

    Requires NARRATIVE_API_URL. Without it, or if the service fails, the score is
    returned with narrative set to null.

    Args:
        facts: Metric name to value. See health_score for the field list.
        business_type: ecommerce, saas, service_agency, creator, or local_business.
    """
    result = _score(facts, business_type)
    request = build_narrative_request(result)
    narrative = await fetch_narrative(request)
    return {
        "title": "Health Narrative",
        "score": result.score,
        "profile_hash": request.profile_hash,
        "narrative": narrative,
        "summary": narrative or "Narrative unavailable — showing deterministic score only",
    }


# ─── Tool 7: History ─────────────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def health_history(profile_id: str, months: int = 12) -> dict:
    """Saved health scores for a profile over time.

    Args:
        profile_id: Identifier used when scores were saved with health_score.
        months: How many months of history to return. Default 12.
    """
    history = await get_score_history(profile_id, months)
    return {
        "title": "Score History",
        "profile_id": profile_id,
        "months": months,
        "history": history,
        "summary": (
            f"{len(history)} snapshots, latest {history[-1]['score']}/100" if history else "No saved scores yet"
        ),
    }


# ─── Tool 8: Changes ─────────────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def health_changes(profile_id: str) -> dict:
    """Composite and per-pillar change between the two most recent saved scores.

    Args:
        profile_id: Identifier used when scores were saved with health_score.
    """
    changes = await compare_latest(profile_id)
    if changes is None:
        summary = "No saved scores yet"
    elif changes["change"] is None:
        summary = f"First snapshot: {changes['current_score']}/100"
    else:
        summary = f"{changes['previous_score']} → {changes['current_score']} ({changes['change']:+d})"
    return {
        "title": "Score Changes",
        "profile_id": profile_id,
        "changes": changes,
        "summary": summary,
    }


def main():
    """Entry point for the MCP server."""
    mcp.run()


if __name__ == "__main__":
    main()
