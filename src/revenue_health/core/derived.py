"""Derived metrics that need two or more facts, plus numeric helpers.

Each derived metric returns None unless every input it needs is present,
so callers skip it instead of scoring a synthetic zero.
"""

from __future__ import annotations

import math
from typing import Optional

from .models import FactRecord


def clamp(value: float, low: float = 0, high: float = 100) -> float:
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """Round halves up: 72.5 -> 73, where round() gives 72."""
    return int(math.floor(value + 0.5))


def fmt_number(value: float) -> str:
    """Render a fact the way a person typed it: 35.0 -> '35', 0.8 -> '0.8', 1234567 -> '1,234,567'."""
    return f"{value:,.2f}".rstrip("0").rstrip(".")


def ltv_cac_ratio(facts: FactRecord) -> Optional[float]:
    if not (facts.has("ltv") and facts.has("cac")):
        return None
    return facts.ltv / max(facts.cac, 1)


def net_margin_pct(facts: FactRecord) -> Optional[float]:
    if not (facts.has("net_profit_monthly") and facts.has("revenue_monthly")):
        return None
    if facts.revenue_monthly <= 0:
        return None
    return facts.net_profit_monthly / facts.revenue_monthly * 100


def implied_revenue(facts: FactRecord) -> Optional[float]:
    """Traffic x conversion x AOV, a revenue proxy from the funnel.

    None when an input is missing or the product overflows a float.
    """
    if not all(facts.has(f) for f in ("traffic_monthly", "conversion_rate_pct", "avg_order_value")):
        return None
    implied = facts.traffic_monthly * (facts.conversion_rate_pct / 100) * facts.avg_order_value
    return implied if math.isfinite(implied) else None


def repeat_orders(facts: FactRecord) -> Optional[float]:
    """Orders per customer lifetime, estimated as LTV / AOV."""
    if not (facts.has("ltv") and facts.has("avg_order_value")):
        return None
    if facts.avg_order_value <= 0:
        return None
    return facts.ltv / facts.avg_order_value
