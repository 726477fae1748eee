"""Tool recommendations for the weakest pillars.

Maps each weak pillar to tool categories, filters the externally supplied
catalog, and picks up to two tools per pillar with two different tie-break
policies. A tool recommended for one pillar is never repeated for another.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from .models import Pillar, PickLabel, RecommendedTool, ScoreResult, ToolEntry, ToolsByPillar
from .weights import PILLAR_LABELS

logger = logging.getLogger(__name__)

PILLARS_TO_MATCH = 3
TOP_RATED_AT = 4.7
BUDGET_PRICE_BELOW = 15.0

PILLAR_CATEGORIES: dict[Pillar, list[str]] = {
    Pillar.ACQUISITION: ["crm", "email_marketing", "scheduling"],
    Pillar.RETENTION: ["crm", "email_marketing", "communication"],
    Pillar.PROFITABILITY: ["invoicing", "bookkeeping", "business_banking", "payment_processing"],
    Pillar.OPERATIONS: ["project_management", "automation", "time_tracking", "communication"],
    Pillar.REVENUE: ["crm", "email_marketing", "payment_processing", "scheduling"],
}

WHY_IT_FITS: dict[Pillar, dict[str, str]] = {
    Pillar.ACQUISITION: {
        "crm": "Track and nurture leads systematically instead of losing them in your inbox.",
        "email_marketing": "Build an audience you own — email converts 3-5x better than social.",
        "scheduling": "Remove friction from booking — every missed call is a lost opportunity.",
    },
    Pillar.RETENTION: {
        "crm": "Stay on top of customer relationships and catch churn signals early.",
        "email_marketing": "Automated sequences keep customers engaged between purchases.",
        "communication": "Faster, better communication reduces support churn.",
    },
    Pillar.PROFITABILITY: {
        "invoicing": "Get paid faster — every day of delayed payment hurts cash flow.",
        "bookkeeping": "Know your real margins so you can price confidently.",
        "business_banking": "Separate business finances and see true profitability.",
        "payment_processing": "Lower processing fees and faster payouts improve margins.",
    },
    Pillar.OPERATIONS: {
        "project_management": "Stop losing tasks and deadlines — reclaim hours every week.",
        "automation": "Eliminate repetitive work and focus on what actually grows revenue.",
        "time_tracking": "See where your hours actually go — most people are surprised.",
        "communication": "Reduce meetings and async better to save 5+ hours/week.",
    },
    Pillar.REVENUE: {
        "crm": "A pipeline you can see is a pipeline you can grow.",
        "email_marketing": "Your email list is your most reliable revenue channel.",
        "payment_processing": "Accept more payment methods to capture more revenue.",
        "scheduling": "Make it effortless for prospects to book and buy.",
    },
}

_NUMBER = re.compile(r"\d+(?:\.\d+)?")
_RECURRING = re.compile(r"/\s*(?:mo|month|wk|week|yr|year|user|seat)\b|per\s+(?:month|week|year|user|seat)", re.IGNORECASE)


def parse_commission(rate: Optional[str]) -> float:
    """Leading number of a free-form commission string; 0 when absent or unparseable."""
    if not rate:
        return 0.0
    match = _NUMBER.search(rate.replace(",", ""))
    return float(match.group()) if match else 0.0


def parse_recurring_price(pricing: Optional[str]) -> Optional[float]:
    """Price per period for strings like '$12/mo'; None for one-off or unparseable prices."""
    if not pricing or not _RECURRING.search(pricing):
        return None
    match = _NUMBER.search(pricing.replace(",", ""))
    return float(match.group()) if match else None


def promo_label(tool: ToolEntry) -> Optional[str]:
    if tool.has_free_tier:
        return "Free tier available"
    if tool.rating is not None and tool.rating >= TOP_RATED_AT:
        return "Top rated"
    price = parse_recurring_price(tool.pricing)
    if price is not None and price < BUDGET_PRICE_BELOW:
        return "Budget friendly"
    return None


def why_it_fits(tool: ToolEntry, pillar: Pillar) -> str:
    return WHY_IT_FITS.get(pillar, {}).get(
        tool.category,
        f"{tool.name} helps improve your {PILLAR_LABELS[pillar].lower()} performance.",
    )


def pick_best_for_you(candidates: list[ToolEntry]) -> Optional[ToolEntry]:
    """Free tier first, then highest rating; catalog order breaks remaining ties."""
    if not candidates:
        return None
    return sorted(candidates, key=lambda t: (not t.has_free_tier, -(t.rating or 0.0)))[0]


def pick_top_partner(candidates: list[ToolEntry], exclude_id: Optional[str]) -> Optional[ToolEntry]:
    """Highest commission rate among candidates other than ``exclude_id``."""
    remaining = [t for t in candidates if t.id != exclude_id]
    if not remaining:
        return None
    return sorted(remaining, key=lambda t: -parse_commission(t.commission_rate))[0]


def _recommend(tool: ToolEntry, pillar: Pillar, label: PickLabel) -> RecommendedTool:
    return RecommendedTool(
        id=tool.id,
        slug=tool.slug,
        name=tool.name,
        description=tool.description,
        category=tool.category,
        affiliate_url=tool.affiliate_url,
        has_free_tier=tool.has_free_tier,
        pricing=tool.pricing,
        rating=tool.rating,
        why_it_fits=why_it_fits(tool, pillar),
        promo_label=promo_label(tool),
        pick_label=label,
        pillar=pillar,
    )


def recommend_tools(result: ScoreResult, catalog: list[ToolEntry]) -> list[ToolsByPillar]:
    """Two ranked picks for each of the three weakest pillars.

    Pillars with no matching catalog entries are left out entirely. An empty
    catalog yields an empty list.
    """
    if not catalog:
        logger.debug("Tool catalog is empty; no recommendations")
        return []

    grouped: list[ToolsByPillar] = []
    used_ids: set[str] = set()

    for pillar, pillar_result in result.pillars_by_score()[:PILLARS_TO_MATCH]:
        categories = PILLAR_CATEGORIES[pillar]
        candidates = [t for t in catalog if t.category in categories and t.id not in used_ids]

        best = pick_best_for_you(candidates)
        if best is None:
            continue
        partner = pick_top_partner(candidates, best.id)

        picks = [_recommend(best, pillar, PickLabel.BEST_FOR_YOU)]
        used_ids.add(best.id)
        if partner is not None:
            picks.append(_recommend(partner, pillar, PickLabel.TOP_PARTNER))
            used_ids.add(partner.id)

        grouped.append(ToolsByPillar(
            pillar=pillar,
            pillar_label=PILLAR_LABELS[pillar],
            pillar_score=pillar_result.score,
            tools=picks,
        ))

    return grouped
