"""Shared fixtures for the revenue_health test suite."""
from __future__ import annotations

import pytest

from revenue_health.core.models import FactRecord, ToolEntry


# ── Fact fixtures ────────────────────────────────────────────────────


@pytest.fixture
def sparse_facts():
    """Five metrics from a struggling early-stage business."""
    return FactRecord(
        revenue_monthly=800,
        gross_margin_pct=35,
        churn_monthly_pct=12,
        conversion_rate_pct=0.8,
        ops_hours_per_week=45,
    )


@pytest.fixture
def new_business_facts():
    """Every metric filled in for a low-revenue, high-ops business."""
    return FactRecord(
        revenue_monthly=800,
        gross_margin_pct=35,
        net_profit_monthly=-200,
        runway_months=4,
        churn_monthly_pct=12,
        conversion_rate_pct=0.8,
        traffic_monthly=500,
        avg_order_value=25,
        cac=120,
        ltv=80,
        ops_hours_per_week=45,
        fulfillment_days=8,
        support_tickets_per_week=35,
    )


@pytest.fixture
def growing_facts():
    return FactRecord(
        revenue_monthly=12_000,
        gross_margin_pct=55,
        net_profit_monthly=1_800,
        runway_months=14,
        churn_monthly_pct=4,
        conversion_rate_pct=3.2,
        traffic_monthly=8_000,
        avg_order_value=75,
        cac=45,
        ltv=280,
        ops_hours_per_week=22,
        fulfillment_days=3,
        support_tickets_per_week=15,
    )


@pytest.fixture
def healthy_facts():
    return FactRecord(
        revenue_monthly=65_000,
        gross_margin_pct=72,
        net_profit_monthly=18_000,
        runway_months=24,
        churn_monthly_pct=1.5,
        conversion_rate_pct=5.5,
        traffic_monthly=45_000,
        avg_order_value=180,
        cac=30,
        ltv=900,
        ops_hours_per_week=12,
        fulfillment_days=1,
        support_tickets_per_week=8,
    )


# ── Catalog fixtures ─────────────────────────────────────────────────


def _make_tool(
    tool_id: str,
    category: str,
    has_free_tier: bool = False,
    rating: float | None = None,
    commission_rate: str | None = None,
    pricing: str | None = None,
) -> ToolEntry:
    return ToolEntry(
        id=tool_id,
        slug=tool_id,
        name=tool_id.replace("-", " ").title(),
        category=category,
        has_free_tier=has_free_tier,
        rating=rating,
        commission_rate=commission_rate,
        pricing=pricing,
    )


@pytest.fixture
def small_catalog():
    """Two or three tools for every category a pillar maps to."""
    return [
        _make_tool("crm-free", "crm", has_free_tier=True, rating=4.2, commission_rate="10%"),
        _make_tool("crm-paid", "crm", rating=4.9, commission_rate="40% recurring"),
        _make_tool("mail-free", "email_marketing", has_free_tier=True, rating=4.6, commission_rate="5%"),
        _make_tool("mail-paid", "email_marketing", rating=4.4, commission_rate="25%"),
        _make_tool("chat-free", "communication", has_free_tier=True, rating=4.0),
        _make_tool("invoice-paid", "invoicing", rating=4.5, commission_rate="$100 per sale", pricing="$19/mo"),
        _make_tool("books-paid", "bookkeeping", rating=4.3, commission_rate="20%", pricing="$30/mo"),
        _make_tool("bank-free", "business_banking", has_free_tier=True, rating=4.8),
        _make_tool("pm-free", "project_management", has_free_tier=True, rating=4.5, commission_rate="15%"),
        _make_tool("auto-paid", "automation", rating=4.7, commission_rate="30%"),
        _make_tool("time-paid", "time_tracking", rating=4.1, pricing="$9/user/mo"),
        _make_tool("book-free", "scheduling", has_free_tier=True, rating=4.7, commission_rate="12%"),
        _make_tool("pay-paid", "payment_processing", rating=4.6),
    ]


@pytest.fixture
def make_tool():
    """Factory for one-off catalog entries."""
    return _make_tool
