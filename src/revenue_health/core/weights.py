"""Declarative configuration shared by the scorers and the reasoning layer.

Plain data only: weights per business type, conservative pillar defaults,
display labels, and which facts feed which pillar.
"""

from __future__ import annotations

from typing import Optional

from .models import BusinessType, Pillar

DEFAULT_BUSINESS_TYPE = BusinessType.SERVICE_AGENCY

WEIGHT_MATRIX: dict[BusinessType, dict[Pillar, float]] = {
    BusinessType.ECOMMERCE: {
        Pillar.REVENUE: 0.25,
        Pillar.PROFITABILITY: 0.20,
        Pillar.RETENTION: 0.20,
        Pillar.ACQUISITION: 0.25,
        Pillar.OPERATIONS: 0.10,
    },
    BusinessType.SAAS: {
        Pillar.REVENUE: 0.20,
        Pillar.PROFITABILITY: 0.20,
        Pillar.RETENTION: 0.30,
        Pillar.ACQUISITION: 0.15,
        Pillar.OPERATIONS: 0.15,
    },
    BusinessType.SERVICE_AGENCY: {
        Pillar.REVENUE: 0.25,
        Pillar.PROFITABILITY: 0.15,
        Pillar.RETENTION: 0.20,
        Pillar.ACQUISITION: 0.10,
        Pillar.OPERATIONS: 0.30,
    },
    BusinessType.CREATOR: {
        Pillar.REVENUE: 0.20,
        Pillar.PROFITABILITY: 0.15,
        Pillar.RETENTION: 0.25,
        Pillar.ACQUISITION: 0.30,
        Pillar.OPERATIONS: 0.10,
    },
    BusinessType.LOCAL_BUSINESS: {
        Pillar.REVENUE: 0.30,
        Pillar.PROFITABILITY: 0.20,
        Pillar.RETENTION: 0.15,
        Pillar.ACQUISITION: 0.15,
        Pillar.OPERATIONS: 0.20,
    },
}

# Score a pillar falls back to when none of its sub-scores are computable.
DEFAULT_PILLAR_SCORES: dict[Pillar, int] = {
    Pillar.REVENUE: 30,
    Pillar.PROFITABILITY: 30,
    Pillar.RETENTION: 40,
    Pillar.ACQUISITION: 35,
    Pillar.OPERATIONS: 45,
}

PILLAR_LABELS: dict[Pillar, str] = {
    Pillar.REVENUE: "Revenue",
    Pillar.PROFITABILITY: "Profitability",
    Pillar.RETENTION: "Retention",
    Pillar.ACQUISITION: "Acquisition",
    Pillar.OPERATIONS: "Operations",
}

PILLAR_RISK_LABELS: dict[Pillar, str] = {
    Pillar.REVENUE: "revenue generation",
    Pillar.PROFITABILITY: "profitability and unit economics",
    Pillar.RETENTION: "customer retention",
    Pillar.ACQUISITION: "customer acquisition",
    Pillar.OPERATIONS: "operational efficiency",
}

BUSINESS_TYPE_LABELS: dict[BusinessType, str] = {
    BusinessType.ECOMMERCE: "E-commerce",
    BusinessType.SAAS: "SaaS",
    BusinessType.SERVICE_AGENCY: "Service/Agency",
    BusinessType.CREATOR: "Creator",
    BusinessType.LOCAL_BUSINESS: "Local Business",
}

# Facts each pillar reads. A fact may feed more than one pillar.
PILLAR_FIELDS: dict[Pillar, tuple[str, ...]] = {
    Pillar.REVENUE: ("revenue_monthly", "avg_order_value"),
    Pillar.PROFITABILITY: ("gross_margin_pct", "net_profit_monthly", "cac", "ltv", "runway_months"),
    Pillar.RETENTION: ("churn_monthly_pct", "ltv"),
    Pillar.ACQUISITION: ("traffic_monthly", "conversion_rate_pct", "cac"),
    Pillar.OPERATIONS: ("ops_hours_per_week", "fulfillment_days", "support_tickets_per_week"),
}

FIELD_LABELS: dict[str, str] = {
    "revenue_monthly": "Monthly Revenue",
    "gross_margin_pct": "Gross Margin %",
    "net_profit_monthly": "Net Profit Monthly",
    "runway_months": "Runway (months)",
    "churn_monthly_pct": "Monthly Churn %",
    "conversion_rate_pct": "Conversion Rate %",
    "traffic_monthly": "Monthly Traffic",
    "avg_order_value": "Avg Order Value",
    "cac": "CAC",
    "ltv": "LTV",
    "ops_hours_per_week": "Ops Hours / Week",
    "fulfillment_days": "Fulfillment Days",
    "support_tickets_per_week": "Support Tickets / Week",
}


def resolve_business_type(business_type: Optional[BusinessType]) -> BusinessType:
    return business_type if business_type is not None else DEFAULT_BUSINESS_TYPE


def get_weights(business_type: Optional[BusinessType] = None) -> dict[Pillar, float]:
    """Weight vector for a business type, falling back to the default archetype."""
    return WEIGHT_MATRIX[resolve_business_type(business_type)]
