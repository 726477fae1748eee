"""Reasoning transparency: why each recommendation exists.

Read-only. Every function here consumes an already computed ScoreResult,
re-derives the same weight lookups and score comparisons the scoring stage
made, and renders short paragraphs for an end user. Nothing here feeds back
into a score, and calling any function twice yields the same text.
"""

from __future__ import annotations

from typing import Optional

from .derived import round_half_up
from .models import (
    ActionTask,
    EstimatedField,
    EstimatedPillarDetail,
    LeverExplanation,
    NextStep,
    Pillar,
    RecommendedTool,
    ScoreExplanation,
    ScoreResult,
    StepExplanation,
    ToolExplanation,
)
from .rules import identify_fastest_lever, identify_primary_risk
from .scoring import NO_DATA_REASONS
from .weights import (
    BUSINESS_TYPE_LABELS,
    DEFAULT_PILLAR_SCORES,
    FIELD_LABELS,
    PILLAR_FIELDS,
    PILLAR_LABELS,
    get_weights,
)

# Pillar score treated as "healthy" when sizing potential gains.
TARGET_PILLAR_SCORE = 70

# What the scorer does without each fact.
FIELD_ASSUMPTIONS: dict[str, tuple[str, str]] = {
    "revenue_monthly": ("not provided", "Revenue tier and net margin are skipped without it"),
    "avg_order_value": ("not provided", "Order-value tier and repeat-purchase estimate are skipped"),
    "gross_margin_pct": ("not provided", "Gross margin tier is skipped; other profitability data is used"),
    "net_profit_monthly": ("not provided", "Net margin cannot be calculated without it"),
    "cac": ("not provided", "CAC tier and LTV:CAC ratio are skipped"),
    "ltv": ("not provided", "LTV:CAC ratio and repeat-purchase estimate are skipped"),
    "runway_months": ("not provided", "Not factored — add for profitability accuracy"),
    "churn_monthly_pct": ("not provided", "Retention relies on other data or the conservative default"),
    "traffic_monthly": ("not provided", "Cannot size the acquisition funnel without this"),
    "conversion_rate_pct": ("not provided", "Conversion tier is skipped"),
    "ops_hours_per_week": ("not provided", "Ops load tier is skipped"),
    "fulfillment_days": ("not provided", "Fulfillment speed tier is skipped"),
    "support_tickets_per_week": ("not provided", "Support load tier is skipped"),
}


def _weight_pct(result: ScoreResult, pillar: Pillar) -> int:
    return round_half_up(get_weights(result.business_type)[pillar] * 100)


def _overall_potential(result: ScoreResult, pillar: Pillar) -> int:
    """Composite points gained if ``pillar`` reached the healthy target."""
    gap = max(0, TARGET_PILLAR_SCORE - result.pillars[pillar].score)
    return round_half_up(gap * get_weights(result.business_type)[pillar])


def is_defaulted(result: ScoreResult, pillar: Pillar) -> bool:
    return NO_DATA_REASONS[pillar] in result.pillars[pillar].reasons


def missing_fields_for(result: ScoreResult, pillar: Pillar) -> list[str]:
    return [f for f in PILLAR_FIELDS[pillar] if f in result.missing_data]


# ── Primary risk ──


def explain_primary_risk(result: ScoreResult) -> str:
    finding = identify_primary_risk(result.pillars, result.facts, result.business_type)
    pillar_result = result.pillars[finding.pillar]
    label = PILLAR_LABELS[finding.pillar]
    bt_label = BUSINESS_TYPE_LABELS[result.business_type]

    parts = []
    if finding.rule is None:
        parts.append(f"{label} is your lowest-scoring pillar at {finding.score}/100.")
    else:
        parts.append(
            f"For {bt_label} businesses, {finding.rule} is flagged before anything else, "
            f"which points at {label.lower()} ({finding.score}/100)."
        )
    parts.append(f"{label} carries a {_weight_pct(result, finding.pillar)}% weight in the {bt_label} overall score.")
    if pillar_result.reasons:
        parts.append(pillar_result.reasons[0])
    if is_defaulted(result, finding.pillar):
        parts.append("This score is estimated — adding real data may change the risk picture.")
    return " ".join(parts)


# ── Fastest lever ──


def explain_fastest_lever(result: ScoreResult) -> LeverExplanation:
    finding = identify_fastest_lever(result.pillars, result.facts, result.business_type)
    if finding.pillar is None:
        return LeverExplanation(
            text="Focus on the pillar with the lowest score for the biggest impact.",
            potential="Improvement depends on data added",
        )

    label = PILLAR_LABELS[finding.pillar]
    bt_label = BUSINESS_TYPE_LABELS[result.business_type]
    score = result.pillars[finding.pillar].score

    parts = []
    if finding.rule is None and not result.pillars[finding.pillar].levers:
        parts.append(
            "No pillar has a specific fix yet, and your conversion rate is under 3%, "
            f"so {label.lower()} ({score}/100) is the place to start."
        )
    elif finding.rule is None:
        parts.append(f"{label} ({score}/100) has the most room for improvement among pillars with a clear fix.")
    else:
        parts.append(f"With {finding.rule}, {label.lower()} ({score}/100) is the quickest win for {bt_label} businesses.")
    parts.append(
        f"With a {_weight_pct(result, finding.pillar)}% weight for {bt_label}, "
        "improving this pillar moves your overall score directly."
    )
    parts.append(finding.text)

    points = _overall_potential(result, finding.pillar)
    return LeverExplanation(
        text=" ".join(parts),
        potential=f"+{points} pts potential overall improvement" if points > 0 else "Improvement possible with better inputs",
    )


# ── Steps and tasks ──


def _explain_pillar_action(result: ScoreResult, why: str, pillar: Optional[Pillar]) -> StepExplanation:
    if pillar is None:
        missing = len(result.missing_data)
        if missing:
            verb = "is" if missing == 1 else "are"
            return StepExplanation(
                text=f"{why} {missing} of your metrics {verb} missing, so parts of your score are estimated.",
                potential="5-15 pts sharper pillar scores with real data",
            )
        return StepExplanation(text=why, potential="Keeps your score current")

    score = result.pillars[pillar].score
    text = (
        f"{why} This directly targets your {PILLAR_LABELS[pillar].lower()} pillar "
        f"({score}/100, {_weight_pct(result, pillar)}% weight)."
    )
    gap = max(0, TARGET_PILLAR_SCORE - score)
    per_step = max(1, round_half_up(gap * 0.05))
    return StepExplanation(text=text, potential=f"~{per_step}-{per_step * 2} pts pillar improvement")


def explain_next_step(step: NextStep, result: ScoreResult) -> StepExplanation:
    return _explain_pillar_action(result, step.why, step.pillar)


def explain_action_task(task: ActionTask, result: ScoreResult) -> StepExplanation:
    return _explain_pillar_action(result, task.why, task.pillar)


# ── Tools ──


def explain_tool(tool: RecommendedTool, result: ScoreResult) -> ToolExplanation:
    label = PILLAR_LABELS[tool.pillar]
    score = result.pillars[tool.pillar].score
    text = (
        f"{tool.why_it_fits} Your {label.lower()} pillar is at {score}/100 "
        f"({_weight_pct(result, tool.pillar)}% weight) — this tool helps address that gap."
    )
    points = _overall_potential(result, tool.pillar)
    impact = (
        f"Improving {label} could add +{points} pts to overall score"
        if points > 0
        else f"Targets {label} pillar"
    )
    return ToolExplanation(text=text, impact=impact)


# ── Estimated data ──


def explain_estimated_pillar(pillar: Pillar, result: ScoreResult) -> Optional[EstimatedPillarDetail]:
    """Which facts a pillar lacked and how much real data could move it.

    Returns None when the pillar had every fact it reads.
    """
    missing = missing_fields_for(result, pillar)
    if not missing:
        return None

    label = PILLAR_LABELS[pillar]
    weight_pct = _weight_pct(result, pillar)
    field_labels = ", ".join(FIELD_LABELS[f] for f in missing)
    fields = [
        EstimatedField(
            field=f,
            label=FIELD_LABELS[f],
            assumed_value=FIELD_ASSUMPTIONS[f][0],
            reason=FIELD_ASSUMPTIONS[f][1],
        )
        for f in missing
    ]

    if is_defaulted(result, pillar):
        default = DEFAULT_PILLAR_SCORES[pillar]
        text = (
            f"This score defaults to {default}/100 because no usable {label.lower()} data was provided. "
            f"It carries {weight_pct}% weight. Add {field_labels} for an accurate score."
        )
        impact = (
            f"This pillar defaults to {default}/100 with no real data. Your real {label.lower()} score "
            "could be 10-15 points higher with actual metrics."
        )
    else:
        total = len(PILLAR_FIELDS[pillar])
        text = (
            f"Missing {field_labels} — the score is built from the data you did provide. "
            f"Adding them will sharpen your {label.lower()} score ({weight_pct}% weight)."
        )
        impact = (
            f"{len(missing)} of {total} fields estimated. Adding real values could shift your "
            f"{label.lower()} score by 5-15 points."
        )

    return EstimatedPillarDetail(pillar=pillar, text=text, fields=fields, impact=impact)


def explain_result(result: ScoreResult) -> ScoreExplanation:
    """Bundle every explanation for a Score Result."""
    estimated = [explain_estimated_pillar(pillar, result) for pillar in result.pillars]
    return ScoreExplanation(
        primary_risk=explain_primary_risk(result),
        fastest_lever=explain_fastest_lever(result),
        next_steps=[explain_next_step(step, result) for step in result.recommended_next_steps],
        estimated_pillars=[detail for detail in estimated if detail is not None],
    )
