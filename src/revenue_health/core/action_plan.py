"""Deterministic 7-day action plan.

Takes a ScoreResult and produces a prioritized plan of at most ten tasks
drawn from the two weakest pillars, with every task due within the week.
"""

from __future__ import annotations

import logging
from typing import Callable, NamedTuple, Optional

from .models import ActionPlan, ActionTask, EffortSize, FactRecord, Pillar, ScoreResult

logger = logging.getLogger(__name__)

MAX_TASKS = 10
MAX_PRIMARY_TASKS = 5
MAX_SECONDARY_TASKS = 3
MAX_MISSING_DATA_TASKS = 2
LAST_DAY = 7


class TaskTemplate(NamedTuple):
    title: str
    why: str
    how_to_start: str
    expected_impact: str
    effort: EffortSize
    condition: Optional[Callable[[FactRecord], bool]] = None


class MissingDataTemplate(NamedTuple):
    fields: tuple[str, ...]
    keywords: tuple[str, ...]
    pillar: Pillar
    task: TaskTemplate


PILLAR_TASKS: dict[Pillar, list[TaskTemplate]] = {
    Pillar.REVENUE: [
        TaskTemplate(
            "Audit your top 3 revenue sources",
            "Understanding where revenue comes from reveals where to double down.",
            "List every revenue stream and rank by monthly contribution. Identify the top 3.",
            "Clarity on where to focus growth efforts",
            EffortSize.SMALL,
        ),
        TaskTemplate(
            "Create one upsell or cross-sell offer",
            "Selling more to existing customers is faster than finding new ones.",
            "Pick your best-selling product and create a bundle or upgrade option.",
            "10-25% increase in average order value",
            EffortSize.MEDIUM,
        ),
        TaskTemplate(
            "Launch a limited-time promotion",
            "Urgency drives action — a time-boxed offer can spike short-term revenue.",
            "Create a 48-hour flash deal for your highest-margin product. Email your list.",
            "Immediate revenue boost within the week",
            EffortSize.MEDIUM,
        ),
        TaskTemplate(
            "Set up revenue tracking dashboard",
            "You can't improve what you don't measure daily.",
            "Use a spreadsheet or tool to track daily revenue, orders, and AOV.",
            "Faster response to revenue dips",
            EffortSize.SMALL,
        ),
        TaskTemplate(
            "Raise prices on your lowest-margin offering",
            "Many businesses underprice — even a 10% increase rarely affects volume.",
            "Identify your lowest-margin product and test a 10-15% price increase.",
            "Direct margin improvement with minimal effort",
            EffortSize.SMALL,
            lambda f: f.has("gross_margin_pct") and f.gross_margin_pct < 50,
        ),
    ],
    Pillar.PROFITABILITY: [
        TaskTemplate(
            "Review and cut your 3 biggest expenses",
            "Reducing costs drops straight to the bottom line.",
            "Export last month's expenses. Sort by amount. Question each of the top 5.",
            "5-15% reduction in monthly burn",
            EffortSize.SMALL,
        ),
        TaskTemplate(
            "Calculate your true CAC and LTV",
            "Without these numbers you're flying blind on unit economics.",
            "Total marketing spend ÷ new customers = CAC. Average revenue per customer × avg lifetime = LTV.",
            "Foundation for all profitability decisions",
            EffortSize.MEDIUM,
            lambda f: not (f.has("cac") and f.has("ltv")),
        ),
        TaskTemplate(
            "Negotiate one vendor contract",
            "Most vendors have room to negotiate — especially annual contracts.",
            "Pick your most expensive SaaS tool and ask for a 15% discount for annual commitment.",
            "Immediate cost savings",
            EffortSize.SMALL,
        ),
        TaskTemplate(
            "Implement profit-first allocation",
            "Paying yourself first ensures profitability isn't an afterthought.",
            "Set up a separate profit account. Move 5% of every deposit there automatically.",
            "Guaranteed profit accumulation",
            EffortSize.MEDIUM,
        ),
    ],
    Pillar.RETENTION: [
        TaskTemplate(
            "Email 10 recent churned customers",
            "Understanding why people leave is the fastest path to fixing retention.",
            "Send a personal email: 'We noticed you left — would love 2 minutes of feedback.'",
            "Actionable churn reasons + potential win-backs",
            EffortSize.SMALL,
        ),
        TaskTemplate(
            "Create a post-purchase email sequence",
            "The first 7 days after purchase determine whether a customer returns.",
            "Draft 3 emails: Day 1 welcome, Day 3 tips, Day 7 check-in. Set up in your email tool.",
            "15-30% improvement in repeat purchase rate",
            EffortSize.MEDIUM,
        ),
        TaskTemplate(
            "Identify your top 10% of customers",
            "Your best customers drive disproportionate revenue — protect and grow them.",
            "Sort customers by total spend. Create a VIP list and send them a personal thank-you.",
            "Stronger relationships with highest-value accounts",
            EffortSize.SMALL,
        ),
        TaskTemplate(
            "Add a feedback mechanism to your product",
            "Customers who feel heard churn less.",
            "Add a simple NPS survey or feedback widget. Review responses weekly.",
            "Early warning system for churn risks",
            EffortSize.MEDIUM,
        ),
        TaskTemplate(
            "Set up churn tracking",
            "You need to know your monthly churn rate to improve it.",
            "Count customers at start of month vs end. Calculate: lost ÷ starting × 100.",
            "Baseline measurement for all retention efforts",
            EffortSize.SMALL,
            lambda f: not f.has("churn_monthly_pct"),
        ),
    ],
    Pillar.ACQUISITION: [
        TaskTemplate(
            "Publish one SEO-optimized article",
            "Content compounds — each article is a permanent traffic source.",
            "Research one buyer-intent keyword. Write a 1500-word guide targeting it.",
            "Organic traffic growth within 30-90 days",
            EffortSize.MEDIUM,
        ),
        TaskTemplate(
            "A/B test your main landing page CTA",
            "Small conversion improvements multiply across all traffic.",
            "Change your CTA button text and color. Run for 1 week and compare.",
            "10-30% conversion rate improvement",
            EffortSize.SMALL,
            lambda f: f.has("conversion_rate_pct") and f.conversion_rate_pct < 3,
        ),
        TaskTemplate(
            "Set up one referral incentive",
            "Referred customers have 2-3x higher LTV than paid acquisition.",
            "Offer existing customers $20 credit for each referral that converts.",
            "New acquisition channel with low CAC",
            EffortSize.MEDIUM,
        ),
        TaskTemplate(
            "Optimize your signup/checkout flow",
            "Every unnecessary step in your funnel loses 10-20% of prospects.",
            "Walk through your checkout as a new user. Remove or combine any unnecessary steps.",
            "Immediate conversion lift",
            EffortSize.SMALL,
        ),
        TaskTemplate(
            "Install analytics and set up conversion tracking",
            "You can't optimize acquisition without knowing where visitors come from and convert.",
            "Set up Google Analytics 4 with conversion events for signups/purchases.",
            "Data-driven acquisition decisions",
            EffortSize.MEDIUM,
            lambda f: not f.has("traffic_monthly"),
        ),
    ],
    Pillar.OPERATIONS: [
        TaskTemplate(
            "Automate your most repeated weekly task",
            "Every hour saved on ops is an hour you can spend on growth.",
            "List your 5 most repetitive tasks. Pick the easiest to automate with Zapier or similar.",
            "2-5 hours saved per week",
            EffortSize.MEDIUM,
        ),
        TaskTemplate(
            "Document your top 3 processes as SOPs",
            "SOPs let you delegate or automate — you can't scale what isn't documented.",
            "Screen-record yourself doing each process. Turn into step-by-step checklists.",
            "Foundation for delegation and scaling",
            EffortSize.MEDIUM,
        ),
        TaskTemplate(
            "Batch similar tasks into time blocks",
            "Context switching is the #1 productivity killer.",
            "Group email, calls, and admin into dedicated 1-hour blocks. Protect deep work time.",
            "30-50% improvement in productive output",
            EffortSize.SMALL,
        ),
        TaskTemplate(
            "Reduce support ticket volume",
            "Each ticket costs time — prevention is better than response.",
            "Review top 5 ticket categories. Create FAQ or help docs for the most common issues.",
            "20-40% reduction in support load",
            EffortSize.MEDIUM,
            lambda f: f.has("support_tickets_per_week") and f.support_tickets_per_week > 15,
        ),
        TaskTemplate(
            "Set up a weekly 15-minute ops review",
            "A brief weekly check prevents small issues from becoming big problems.",
            "Block 15 min every Friday. Review: what broke, what's slow, what to fix next week.",
            "Continuous operational improvement",
            EffortSize.SMALL,
        ),
    ],
}

MISSING_DATA_TASKS: list[MissingDataTemplate] = [
    MissingDataTemplate(
        fields=("cac", "ltv"),
        keywords=("cac", "ltv"),
        pillar=Pillar.PROFITABILITY,
        task=TaskTemplate(
            "Set up CAC and LTV tracking",
            "These are the two most important unit economics metrics — everything else depends on them.",
            "Calculate: Total marketing spend ÷ new customers = CAC. Revenue per customer × lifetime = LTV.",
            "Unlocks accurate profitability and acquisition scoring",
            EffortSize.SMALL,
        ),
    ),
    MissingDataTemplate(
        fields=("churn_monthly_pct",),
        keywords=("churn tracking", "churn rate"),
        pillar=Pillar.RETENTION,
        task=TaskTemplate(
            "Start tracking monthly churn rate",
            "Without churn data, your retention score is a guess.",
            "Count active customers at month start vs end. Formula: (lost ÷ starting) × 100.",
            "Accurate retention pillar scoring",
            EffortSize.SMALL,
        ),
    ),
]


def assign_due_day(position: int) -> int:
    """Due day for the task at 0-based ``position``: one per day, then day 7 for the rest."""
    return min(position + 1, LAST_DAY)


def weakest_pillars(result: ScoreResult) -> tuple[Pillar, Pillar]:
    ranked = result.pillars_by_score()
    return ranked[0][0], ranked[1][0]


def eligible_templates(pillar: Pillar, facts: FactRecord) -> list[TaskTemplate]:
    return [t for t in PILLAR_TASKS[pillar] if t.condition is None or t.condition(facts)]


def is_near_duplicate(keywords: tuple[str, ...], titles: list[str]) -> bool:
    lowered = [title.lower() for title in titles]
    return any(keyword in title for keyword in keywords for title in lowered)


def _build_task(template: TaskTemplate, pillar: Pillar, position: int) -> ActionTask:
    return ActionTask(
        id=f"ap-{position + 1}",
        title=template.title,
        why=template.why,
        how_to_start=template.how_to_start,
        expected_impact=template.expected_impact,
        effort=template.effort,
        due_in_days=assign_due_day(position),
        pillar=pillar,
    )


def generate_action_plan(result: ScoreResult) -> ActionPlan:
    """Build the 7-day plan for the two weakest pillars of a scored profile."""
    facts = result.facts
    primary, secondary = weakest_pillars(result)

    selected: list[tuple[TaskTemplate, Pillar]] = []
    selected += [(t, primary) for t in eligible_templates(primary, facts)[:MAX_PRIMARY_TASKS]]
    selected += [(t, secondary) for t in eligible_templates(secondary, facts)[:MAX_SECONDARY_TASKS]]

    added = 0
    for missing in MISSING_DATA_TASKS:
        if added >= MAX_MISSING_DATA_TASKS or len(selected) >= MAX_TASKS:
            break
        if not any(field in result.missing_data for field in missing.fields):
            continue
        if is_near_duplicate(missing.keywords, [t.title for t, _ in selected]):
            continue
        selected.append((missing.task, missing.pillar))
        added += 1

    tasks = [_build_task(t, pillar, i) for i, (t, pillar) in enumerate(selected[:MAX_TASKS])]
    logger.debug("Action plan: %d tasks for %s/%s", len(tasks), primary.value, secondary.value)
    return ActionPlan(tasks=tasks, primary_pillar=primary, secondary_pillar=secondary)
