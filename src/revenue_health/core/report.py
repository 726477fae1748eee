"""One-call pipeline: score, plan, tools, and explanations for a profile."""

from __future__ import annotations

from typing import Optional

from .action_plan import generate_action_plan
from .models import BusinessType, FactRecord, HealthReport, ToolEntry
from .reasoning import explain_result
from .scoring import compute_health_score
from .tool_matcher import recommend_tools


def build_health_report(
    facts: FactRecord,
    business_type: Optional[BusinessType] = None,
    catalog: Optional[list[ToolEntry]] = None,
) -> HealthReport:
    """Run the whole pipeline. A missing or empty catalog only empties the tool section."""
    result = compute_health_score(facts, business_type)
    return HealthReport(
        result=result,
        action_plan=generate_action_plan(result),
        tool_recommendations=recommend_tools(result, catalog or []),
        explanation=explain_result(result),
    )
