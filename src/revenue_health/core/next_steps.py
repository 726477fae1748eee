"""Recommended next steps derived from pillar weaknesses.

Walks pillars weakest first and lets a fixed catalog of conditional templates
contribute steps, up to seven. Sparse profiles that trigger nothing still get
at least three steps from the generic catalog.
"""

from __future__ import annotations

from typing import Callable, NamedTuple

from .derived import ltv_cac_ratio
from .models import EffortLevel, FactRecord, NextStep, Pillar, PillarResult

MAX_STEPS = 7
MIN_STEPS = 3
SKIP_STRONG_PILLAR_AT = 80


class StepTemplate(NamedTuple):
    pillar: Pillar
    condition: Callable[[FactRecord, int], bool]
    title: str
    why: str
    how_to_start: str
    effort: EffortLevel


def _fact_above(field: str, threshold: float) -> Callable[[FactRecord, int], bool]:
    return lambda facts, _score: facts.has(field) and getattr(facts, field) > threshold


def _fact_below(field: str, threshold: float) -> Callable[[FactRecord, int], bool]:
    return lambda facts, _score: facts.has(field) and getattr(facts, field) < threshold


def _weak_unit_economics(facts: FactRecord, _score: int) -> bool:
    ratio = ltv_cac_ratio(facts)
    return ratio is not None and ratio < 3


_REVENUE_TITLE = "Increase monthly revenue baseline"
_REVENUE_WHY = "Revenue is the foundation — all other metrics improve with a stronger top line."
_REVENUE_HOW = "Identify your best-performing product/service and create a promotional push this week."

STEP_TEMPLATES: list[StepTemplate] = [
    StepTemplate(
        Pillar.REVENUE, lambda _facts, score: score < 40,
        _REVENUE_TITLE, _REVENUE_WHY, _REVENUE_HOW, EffortLevel.HIGH,
    ),
    StepTemplate(
        Pillar.REVENUE, lambda _facts, score: 40 <= score < 70,
        _REVENUE_TITLE, _REVENUE_WHY, _REVENUE_HOW, EffortLevel.MEDIUM,
    ),
    StepTemplate(
        Pillar.PROFITABILITY, _fact_below("gross_margin_pct", 50),
        "Improve gross margin above 50%",
        "Low margins mean you need much more revenue to be profitable.",
        "Audit your top 3 costs and identify one you can reduce by 10% this month.",
        EffortLevel.MEDIUM,
    ),
    StepTemplate(
        Pillar.PROFITABILITY, _weak_unit_economics,
        "Fix LTV:CAC ratio (target 3x+)",
        "Spending too much to acquire customers who don't generate enough lifetime value.",
        "Reduce CAC via organic channels or increase LTV with upsells and retention.",
        EffortLevel.HIGH,
    ),
    StepTemplate(
        Pillar.RETENTION, _fact_above("churn_monthly_pct", 5),
        "Reduce monthly churn below 5%",
        "High churn negates acquisition efforts — you're filling a leaky bucket.",
        "Survey 10 recent churned customers to find the top reason, then fix it.",
        EffortLevel.MEDIUM,
    ),
    StepTemplate(
        Pillar.ACQUISITION, _fact_below("conversion_rate_pct", 2),
        "Optimize conversion rate",
        "You have traffic but aren't converting — this is the fastest revenue win.",
        "Run one A/B test on your main landing page CTA this week.",
        EffortLevel.LOW,
    ),
    StepTemplate(
        Pillar.ACQUISITION, _fact_below("traffic_monthly", 2_000),
        "Scale traffic acquisition",
        "Not enough visitors entering your funnel to generate consistent revenue.",
        "Publish 2 SEO-optimized articles targeting buyer-intent keywords.",
        EffortLevel.MEDIUM,
    ),
    StepTemplate(
        Pillar.OPERATIONS, _fact_above("ops_hours_per_week", 30),
        "Automate operational workflows",
        "You're spending too many hours on ops instead of growth activities.",
        "List your 5 most repetitive weekly tasks and automate the top one with Zapier or similar.",
        EffortLevel.LOW,
    ),
]

GENERIC_STEPS: list[NextStep] = [
    NextStep(
        title="Complete your business profile",
        why="More data means a more accurate score and better recommendations.",
        how_to_start="Fill in any missing fields in your Revenue Health profile.",
        effort=EffortLevel.LOW,
    ),
    NextStep(
        title="Set up monthly metric tracking",
        why="Trend data over time reveals whether your changes are working.",
        how_to_start="Schedule a 15-min monthly review to update your numbers.",
        effort=EffortLevel.LOW,
    ),
    NextStep(
        title="Benchmark against your industry",
        why="Context matters — your numbers may be great or concerning depending on your market.",
        how_to_start="Research 2-3 competitors' public metrics to calibrate your expectations.",
        effort=EffortLevel.LOW,
    ),
]


def _to_step(template: StepTemplate) -> NextStep:
    return NextStep(
        title=template.title,
        why=template.why,
        how_to_start=template.how_to_start,
        effort=template.effort,
        pillar=template.pillar,
    )


def steps_for_pillar(pillar: Pillar, score: int, facts: FactRecord) -> list[NextStep]:
    """Steps the catalog offers for one pillar at its current score."""
    return [
        _to_step(t) for t in STEP_TEMPLATES
        if t.pillar == pillar and t.condition(facts, score)
    ]


def generate_next_steps(pillars: dict[Pillar, PillarResult], facts: FactRecord) -> list[NextStep]:
    steps: list[NextStep] = []

    for pillar, result in sorted(pillars.items(), key=lambda item: item[1].score):
        if len(steps) >= MAX_STEPS:
            break
        if result.score >= SKIP_STRONG_PILLAR_AT and len(steps) >= MIN_STEPS:
            continue
        steps.extend(steps_for_pillar(pillar, result.score, facts))

    for generic in GENERIC_STEPS:
        if len(steps) >= MIN_STEPS:
            break
        if not any(s.title == generic.title for s in steps):
            steps.append(generic)

    return steps[:MAX_STEPS]

