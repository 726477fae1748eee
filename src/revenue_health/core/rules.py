"""Primary-risk and fastest-lever identification.

Each business type has an ordered table of ``(description, predicate, outcome)``
rules over the raw facts. Tables are evaluated top to bottom and the first
matching rule wins; when nothing matches, a pure fallback over the pillar
scores decides. The same raw metric can point at a different pillar per
archetype: high churn is the headline risk for a subscription business and a
secondary one for a storefront.
"""

from __future__ import annotations

from typing import Callable, NamedTuple, Optional, TypeVar

from .derived import ltv_cac_ratio
from .models import BusinessType, FactRecord, Pillar, PillarResult
from .weights import PILLAR_RISK_LABELS, resolve_business_type

Predicate = Callable[[FactRecord], bool]
T = TypeVar("T")

GENERIC_CONVERSION_LEVER = "Improving conversion rate is typically the fastest revenue lever — test your checkout flow."
GENERIC_LEVER = "Focus on the pillar with the lowest score to unlock the biggest improvement."


class RiskFinding(NamedTuple):
    pillar: Pillar
    score: int
    text: str
    rule: Optional[str]


class LeverFinding(NamedTuple):
    pillar: Optional[Pillar]
    text: str
    rule: Optional[str]


class LeverOutcome(NamedTuple):
    pillar: Pillar
    text: str


# ── Predicates ──


def above(field: str, threshold: float) -> Predicate:
    def predicate(facts: FactRecord) -> bool:
        return facts.has(field) and getattr(facts, field) > threshold
    return predicate


def below(field: str, threshold: float) -> Predicate:
    def predicate(facts: FactRecord) -> bool:
        return facts.has(field) and getattr(facts, field) < threshold
    return predicate


def ltv_cac_below(threshold: float) -> Predicate:
    def predicate(facts: FactRecord) -> bool:
        ratio = ltv_cac_ratio(facts)
        return ratio is not None and ratio < threshold
    return predicate


# ── Rule tables ──

RISK_RULES: dict[BusinessType, list[tuple[str, Predicate, Pillar]]] = {
    BusinessType.SAAS: [
        ("monthly churn above 8%", above("churn_monthly_pct", 8), Pillar.RETENTION),
        ("LTV:CAC below 2x", ltv_cac_below(2), Pillar.PROFITABILITY),
    ],
    BusinessType.ECOMMERCE: [
        ("conversion rate below 2%", below("conversion_rate_pct", 2), Pillar.ACQUISITION),
        ("fulfillment slower than 5 days", above("fulfillment_days", 5), Pillar.OPERATIONS),
    ],
    BusinessType.SERVICE_AGENCY: [
        ("more than 50 ops hours a week", above("ops_hours_per_week", 50), Pillar.OPERATIONS),
    ],
    BusinessType.CREATOR: [
        ("monthly traffic below 1,000", below("traffic_monthly", 1_000), Pillar.ACQUISITION),
    ],
    BusinessType.LOCAL_BUSINESS: [
        ("monthly revenue below $3,000", below("revenue_monthly", 3_000), Pillar.REVENUE),
    ],
}

LEVER_RULES: dict[BusinessType, list[tuple[str, Predicate, LeverOutcome]]] = {
    BusinessType.SAAS: [
        ("monthly churn above 5%", above("churn_monthly_pct", 5), LeverOutcome(
            Pillar.RETENTION,
            "Reducing churn is your highest-leverage move — even 1% improvement compounds across your MRR base.",
        )),
    ],
    BusinessType.ECOMMERCE: [
        ("average order value below $40", below("avg_order_value", 40), LeverOutcome(
            Pillar.REVENUE,
            "Increasing average order value (bundles, upsells, free-shipping thresholds) is the fastest ecommerce lever.",
        )),
    ],
    BusinessType.SERVICE_AGENCY: [
        ("more than 35 ops hours a week", above("ops_hours_per_week", 35), LeverOutcome(
            Pillar.OPERATIONS,
            "Automate or delegate ops tasks to free up hours for billable client work — that's direct revenue recovery.",
        )),
    ],
    BusinessType.CREATOR: [
        ("conversion rate below 2%", below("conversion_rate_pct", 2), LeverOutcome(
            Pillar.ACQUISITION,
            "Optimizing your conversion funnel (landing pages, CTAs, email sequences) will monetize your existing audience faster.",
        )),
    ],
    BusinessType.LOCAL_BUSINESS: [
        ("monthly traffic below 2,000", below("traffic_monthly", 2_000), LeverOutcome(
            Pillar.ACQUISITION,
            "Local SEO and Google Business Profile optimization can drive foot traffic and calls with minimal spend.",
        )),
    ],
}


def first_match(rules: list[tuple[str, Predicate, T]], facts: FactRecord) -> Optional[tuple[str, T]]:
    """Return ``(name, outcome)`` of the first rule whose predicate holds."""
    for name, predicate, outcome in rules:
        if predicate(facts):
            return name, outcome
    return None


# ── Primary risk ──


def format_risk(pillar: Pillar, score: int) -> str:
    label = PILLAR_RISK_LABELS[pillar]
    if score < 40:
        return f"Critical risk in {label} (score: {score}/100) — address immediately."
    if score < 60:
        return f"Primary risk area is {label} (score: {score}/100) — improvement needed."
    return f"All pillars above 60. Lowest is {label} at {score}/100 — optimize for growth."


def lowest_pillar(pillars: dict[Pillar, PillarResult]) -> Pillar:
    """Lowest-scoring pillar; ties resolve to the earlier pillar in canonical order."""
    return min(pillars, key=lambda p: pillars[p].score)


def identify_primary_risk(
    pillars: dict[Pillar, PillarResult],
    facts: FactRecord,
    business_type: Optional[BusinessType] = None,
) -> RiskFinding:
    bt = resolve_business_type(business_type)
    match = first_match(RISK_RULES.get(bt, []), facts)
    if match is not None:
        rule, pillar = match
    else:
        rule, pillar = None, lowest_pillar(pillars)
    score = pillars[pillar].score
    return RiskFinding(pillar=pillar, score=score, text=format_risk(pillar, score), rule=rule)


# ── Fastest lever ──


def fallback_lever(pillars: dict[Pillar, PillarResult], facts: FactRecord) -> LeverFinding:
    with_levers = [p for p in pillars if pillars[p].levers]
    if with_levers:
        pillar = min(with_levers, key=lambda p: pillars[p].score)
        return LeverFinding(pillar=pillar, text=pillars[pillar].levers[0], rule=None)
    if below("conversion_rate_pct", 3)(facts):
        return LeverFinding(pillar=Pillar.ACQUISITION, text=GENERIC_CONVERSION_LEVER, rule=None)
    return LeverFinding(pillar=None, text=GENERIC_LEVER, rule=None)


def identify_fastest_lever(
    pillars: dict[Pillar, PillarResult],
    facts: FactRecord,
    business_type: Optional[BusinessType] = None,
) -> LeverFinding:
    bt = resolve_business_type(business_type)
    match = first_match(LEVER_RULES.get(bt, []), facts)
    if match is not None:
        rule, outcome = match
        return LeverFinding(pillar=outcome.pillar, text=outcome.text, rule=rule)
    return fallback_lever(pillars, facts)
