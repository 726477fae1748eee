"""Pillar scorers and the weighted composite score.

Each pillar scorer is a pure function of the Fact Record. It scores whatever
subset of facts is present against fixed breakpoint tables, averages the
sub-scores it could compute, and falls back to a conservative default when it
could compute none. That fallback is what keeps a sparse or empty profile
scoreable.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from .derived import (
    clamp,
    fmt_number,
    implied_revenue,
    ltv_cac_ratio,
    net_margin_pct,
    repeat_orders,
    round_half_up,
)
from .models import BusinessType, FactRecord, NormalizedFacts, Pillar, PillarResult, ScoreResult
from .next_steps import generate_next_steps
from .rules import identify_fastest_lever, identify_primary_risk
from .weights import DEFAULT_PILLAR_SCORES, get_weights, resolve_business_type

logger = logging.getLogger(__name__)

Breakpoints = tuple[tuple[float, int], ...]

# (threshold, score) rows, first match wins. "below" rows match value < threshold,
# "at_least" rows match value >= threshold, "at_most" rows match value <= threshold.
REVENUE_BELOW: Breakpoints = ((1_000, 20), (5_000, 40), (15_000, 60), (50_000, 75))
AOV_AT_LEAST: Breakpoints = ((200, 80), (50, 60))
GROSS_MARGIN_AT_LEAST: Breakpoints = ((70, 90), (50, 70), (30, 50))
NET_MARGIN_AT_LEAST: Breakpoints = ((20, 90), (10, 70), (0, 45))
LTV_CAC_AT_LEAST: Breakpoints = ((5, 95), (3, 80), (1.5, 55))
RUNWAY_AT_LEAST: Breakpoints = ((18, 90), (12, 75), (6, 50))
CHURN_AT_MOST: Breakpoints = ((2, 90), (5, 70), (10, 45))
REPEAT_ORDERS_AT_LEAST: Breakpoints = ((5, 85), (3, 65), (1.5, 45))
TRAFFIC_AT_LEAST: Breakpoints = ((50_000, 90), (10_000, 70), (2_000, 50))
CONVERSION_AT_LEAST: Breakpoints = ((5, 90), (3, 75), (1, 50))
CAC_AT_MOST: Breakpoints = ((20, 90), (50, 75), (150, 55))
OPS_HOURS_AT_MOST: Breakpoints = ((10, 90), (25, 70), (40, 50))
FULFILLMENT_AT_MOST: Breakpoints = ((1, 95), (3, 80), (7, 55))
SUPPORT_TICKETS_AT_MOST: Breakpoints = ((5, 90), (20, 70), (50, 45))

NO_DATA_REASONS: dict[Pillar, str] = {
    Pillar.REVENUE: "No revenue data provided — score estimated conservatively.",
    Pillar.PROFITABILITY: "No profitability data provided — score estimated conservatively.",
    Pillar.RETENTION: "No retention data provided — score estimated conservatively.",
    Pillar.ACQUISITION: "No acquisition data provided — score estimated conservatively.",
    Pillar.OPERATIONS: "No operational data provided — score estimated conservatively.",
}


def tier_below(value: float, rows: Breakpoints, otherwise: int) -> int:
    return next((score for threshold, score in rows if value < threshold), otherwise)


def tier_at_least(value: float, rows: Breakpoints, otherwise: int) -> int:
    return next((score for threshold, score in rows if value >= threshold), otherwise)


def tier_at_most(value: float, rows: Breakpoints, otherwise: int) -> int:
    return next((score for threshold, score in rows if value <= threshold), otherwise)


def _finish(pillar: Pillar, scores: list[int], reasons: list[str], levers: list[str]) -> PillarResult:
    if not scores:
        return PillarResult(
            score=DEFAULT_PILLAR_SCORES[pillar],
            reasons=reasons + [NO_DATA_REASONS[pillar]],
            levers=levers,
        )
    return PillarResult(score=_mean_score(scores), reasons=reasons, levers=levers)


def _mean_score(scores: list[int]) -> int:
    return int(clamp(round_half_up(sum(scores) / len(scores))))


# ── Revenue ──


def score_revenue(facts: FactRecord) -> PillarResult:
    reasons: list[str] = []
    levers: list[str] = []
    scores: list[int] = []

    if facts.has("revenue_monthly"):
        revenue = facts.revenue_monthly
        scores.append(tier_below(revenue, REVENUE_BELOW, 90))
        if revenue < 1_000:
            reasons.append("Monthly revenue is below $1k — early stage.")
        elif revenue < 5_000:
            reasons.append("Revenue between $1k-$5k — gaining traction.")
        elif revenue < 15_000:
            reasons.append("Revenue $5k-$15k — solid foundation.")
        elif revenue < 50_000:
            reasons.append("Revenue $15k-$50k — scaling nicely.")
        else:
            reasons.append("Revenue above $50k/mo — strong position.")

    implied = implied_revenue(facts)
    if implied is not None and facts.has("revenue_monthly") and implied > facts.revenue_monthly * 1.3:
        levers.append(
            f"Traffic × conversion × AOV implies ~${round_half_up(implied):,}/mo potential — "
            "there may be unrealized revenue."
        )

    if facts.has("avg_order_value"):
        scores.append(tier_at_least(facts.avg_order_value, AOV_AT_LEAST, 35))
        if facts.avg_order_value < 50:
            levers.append("Increasing average order value (bundles, upsells) is a fast revenue lever.")

    result = _finish(Pillar.REVENUE, scores, reasons, levers)
    if scores and result.score >= 70 and not levers:
        return result.model_copy(update={
            "levers": ["Consider diversifying revenue streams to reduce dependency risk."],
        })
    return result


# ── Profitability ──


def score_profitability(facts: FactRecord) -> PillarResult:
    reasons: list[str] = []
    levers: list[str] = []
    scores: list[int] = []

    if facts.has("gross_margin_pct"):
        margin = facts.gross_margin_pct
        scores.append(tier_at_least(margin, GROSS_MARGIN_AT_LEAST, 25))
        if margin < 50:
            reasons.append(f"Gross margin at {fmt_number(margin)}% — below healthy threshold.")
            levers.append("Review COGS and pricing to improve gross margin above 50%.")
        else:
            reasons.append(f"Gross margin at {fmt_number(margin)}% — healthy.")

    net_pct = net_margin_pct(facts)
    if net_pct is not None:
        scores.append(tier_at_least(net_pct, NET_MARGIN_AT_LEAST, 15))
        if net_pct < 0:
            reasons.append("Business is operating at a loss.")
            levers.append("Cut non-essential expenses or raise prices to reach break-even.")
        elif net_pct < 10:
            reasons.append(f"Net profit margin at {net_pct:.1f}% — thin margins.")
            levers.append("Target 15%+ net margin by reducing overhead or increasing price.")

    ratio = ltv_cac_ratio(facts)
    if ratio is not None:
        scores.append(tier_at_least(ratio, LTV_CAC_AT_LEAST, 20))
        if ratio < 3:
            reasons.append(f"LTV:CAC ratio is {ratio:.1f}x — should be 3x+.")
            levers.append("Improve LTV through retention or reduce CAC through organic acquisition.")
        else:
            reasons.append(f"LTV:CAC ratio is {ratio:.1f}x — efficient.")

    if facts.has("runway_months"):
        runway = facts.runway_months
        scores.append(tier_at_least(runway, RUNWAY_AT_LEAST, 20))
        if runway < 6:
            reasons.append(f"Only {fmt_number(runway)} months of runway — urgent.")
            levers.append("Extend runway by cutting burn or securing revenue commitments.")

    return _finish(Pillar.PROFITABILITY, scores, reasons, levers)


# ── Retention ──


def score_retention(facts: FactRecord) -> PillarResult:
    reasons: list[str] = []
    levers: list[str] = []
    scores: list[int] = []

    if facts.has("churn_monthly_pct"):
        churn = facts.churn_monthly_pct
        scores.append(tier_at_most(churn, CHURN_AT_MOST, 15))
        if churn > 5:
            reasons.append(f"Monthly churn at {fmt_number(churn)}% — above healthy range.")
            levers.append("Implement a churn-reduction campaign: exit surveys, win-back emails, better onboarding.")
        else:
            reasons.append(f"Monthly churn at {fmt_number(churn)}% — well controlled.")

    orders = repeat_orders(facts)
    if orders is not None:
        scores.append(tier_at_least(orders, REPEAT_ORDERS_AT_LEAST, 25))
        if orders < 3:
            reasons.append(f"Estimated ~{orders:.1f} orders per customer lifetime — low repeat rate.")
            levers.append("Add post-purchase email sequences and loyalty incentives to boost repeat purchases.")

    return _finish(Pillar.RETENTION, scores, reasons, levers)


# ── Acquisition ──


def score_acquisition(facts: FactRecord) -> PillarResult:
    reasons: list[str] = []
    levers: list[str] = []
    scores: list[int] = []

    if facts.has("traffic_monthly"):
        scores.append(tier_at_least(facts.traffic_monthly, TRAFFIC_AT_LEAST, 25))
        if facts.traffic_monthly < 2_000:
            reasons.append("Monthly traffic below 2k — limited top-of-funnel.")
            levers.append("Invest in content marketing or paid acquisition to drive traffic above 5k/mo.")

    if facts.has("conversion_rate_pct"):
        conversion = facts.conversion_rate_pct
        scores.append(tier_at_least(conversion, CONVERSION_AT_LEAST, 25))
        if conversion < 2:
            reasons.append(f"Conversion rate at {fmt_number(conversion)}% — below average.")
            levers.append("A/B test landing pages, simplify checkout, add social proof to improve conversion.")
        else:
            reasons.append(f"Conversion rate at {fmt_number(conversion)}% — solid.")

    if facts.has("cac"):
        scores.append(tier_at_most(facts.cac, CAC_AT_MOST, 25))
        if facts.cac > 100:
            reasons.append(f"CAC at ${fmt_number(facts.cac)} — high. Watch unit economics.")
            levers.append("Shift budget toward organic channels or referral programs to lower CAC.")

    return _finish(Pillar.ACQUISITION, scores, reasons, levers)


# ── Operations ──


def score_operations(facts: FactRecord) -> PillarResult:
    reasons: list[str] = []
    levers: list[str] = []
    scores: list[int] = []

    if facts.has("ops_hours_per_week"):
        hours = facts.ops_hours_per_week
        scores.append(tier_at_most(hours, OPS_HOURS_AT_MOST, 25))
        if hours > 30:
            reasons.append(f"Spending {fmt_number(hours)} hrs/wk on ops — high overhead.")
            levers.append("Automate repetitive tasks (invoicing, reporting) to reclaim 10+ hrs/week.")
        else:
            reasons.append(f"Ops load at {fmt_number(hours)} hrs/wk — manageable.")

    if facts.has("fulfillment_days"):
        days = facts.fulfillment_days
        scores.append(tier_at_most(days, FULFILLMENT_AT_MOST, 25))
        if days > 5:
            reasons.append(f"Fulfillment takes {fmt_number(days)} days — slow.")
            levers.append("Streamline fulfillment or switch to faster logistics partners.")

    if facts.has("support_tickets_per_week"):
        tickets = facts.support_tickets_per_week
        scores.append(tier_at_most(tickets, SUPPORT_TICKETS_AT_MOST, 20))
        if tickets > 30:
            reasons.append(f"{fmt_number(tickets)} support tickets/week — indicating product or process issues.")
            levers.append("Create a self-service knowledge base and fix top recurring ticket causes.")

    return _finish(Pillar.OPERATIONS, scores, reasons, levers)


PILLAR_SCORERS: dict[Pillar, Callable[[FactRecord], PillarResult]] = {
    Pillar.REVENUE: score_revenue,
    Pillar.PROFITABILITY: score_profitability,
    Pillar.RETENTION: score_retention,
    Pillar.ACQUISITION: score_acquisition,
    Pillar.OPERATIONS: score_operations,
}


def score_pillars(facts: FactRecord) -> dict[Pillar, PillarResult]:
    """Run every pillar scorer, keyed in canonical pillar order."""
    return {pillar: scorer(facts) for pillar, scorer in PILLAR_SCORERS.items()}


def compute_composite(
    pillars: dict[Pillar, PillarResult],
    business_type: Optional[BusinessType] = None,
) -> int:
    """Weighted composite of the pillar scores for a business type."""
    weights = get_weights(business_type)
    weighted = sum(pillars[pillar].score * weight for pillar, weight in weights.items())
    return round_half_up(clamp(weighted))


def compute_health_score(
    facts: FactRecord,
    business_type: Optional[BusinessType] = None,
) -> ScoreResult:
    """Score a Fact Record end to end.

    Pure and deterministic: identical inputs always produce an identical
    ScoreResult. Missing facts never raise; they lower confidence through the
    pillar defaults and are listed in ``missing_data``.
    """
    resolved = resolve_business_type(business_type)
    pillars = score_pillars(facts)
    score = compute_composite(pillars, resolved)

    logger.debug(
        "Scored %s profile: composite=%d pillars=%s",
        resolved.value,
        score,
        {p.value: r.score for p, r in pillars.items()},
    )

    return ScoreResult(
        score=score,
        business_type=resolved,
        pillars=pillars,
        primary_risk=identify_primary_risk(pillars, facts, resolved).text,
        fastest_lever=identify_fastest_lever(pillars, facts, resolved).text,
        recommended_next_steps=generate_next_steps(pillars, facts),
        missing_data=facts.missing_fields(),
        facts=facts.model_copy(),
    )


def compute_from_normalized(
    normalized: NormalizedFacts,
    business_type: Optional[BusinessType] = None,
) -> ScoreResult:
    """Score facts delivered through an integration wrapper."""
    return compute_health_score(normalized.facts, business_type)
