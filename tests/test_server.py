"""Tests for MCP tool input validation and tool payloads."""
from __future__ import annotations

import asyncio

import pytest

from revenue_health.core.models import BusinessType
from revenue_health.server import (
    _parse_business_type,
    _parse_facts,
    health_action_plan,
    health_explain,
    health_narrative,
    health_report,
    health_tool_recommendations,
)

SPARSE = {
    "revenue_monthly": 800,
    "gross_margin_pct": 35,
    "churn_monthly_pct": 12,
    "conversion_rate_pct": 0.8,
    "ops_hours_per_week": 45,
}


class TestParseBusinessType:
    @pytest.mark.parametrize("raw", ["saas", "SaaS", " saas "])
    def test_valid(self, raw):
        assert _parse_business_type(raw) == BusinessType.SAAS

    @pytest.mark.parametrize("raw", [None, ""])
    def test_absent_uses_default(self, raw):
        assert _parse_business_type(raw) is None

    def test_unknown_rejected(self):
        with pytest.raises(ValueError, match="Unknown business_type 'bakery'"):
            _parse_business_type("bakery")


class TestParseFacts:
    def test_valid(self):
        facts = _parse_facts({**SPARSE, "cac": None})
        assert facts.revenue_monthly == 800
        assert facts.cac is None

    def test_empty(self):
        assert _parse_facts(None).present_fields() == []

    def test_numeric_strings_accepted(self):
        assert _parse_facts({"traffic_monthly": "2500"}).traffic_monthly == 2500

    def test_negative_profit_allowed(self):
        assert _parse_facts({"net_profit_monthly": -200}).net_profit_monthly == -200

    @pytest.mark.parametrize(
        "facts, message",
        [
            ({"revenue": 100}, "Unknown fact fields: revenue"),
            ({"churn_monthly_pct": 120}, "churn_monthly_pct is a percentage"),
            ({"gross_margin_pct": -5}, "gross_margin_pct is a percentage"),
            ({"cac": -1}, "cac cannot be negative"),
            ({"ltv": "lots"}, "ltv must be a number"),
            ({"ltv": True}, "ltv must be a number"),
            ({"runway_months": float("inf")}, "runway_months must be a finite number"),
        ],
    )
    def test_invalid(self, facts, message):
        with pytest.raises(ValueError, match=message):
            _parse_facts(facts)


class TestTools:
    def test_action_plan(self):
        payload = asyncio.run(health_action_plan(SPARSE))
        assert payload["plan"]["primary_pillar"] == "retention"
        assert len(payload["plan"]["tasks"]) <= 10
        assert payload["summary"] == "8 tasks focused on Retention and Revenue"

    def test_tool_recommendations(self, monkeypatch):
        monkeypatch.delenv("TOOL_CATALOG_PATH", raising=False)
        payload = asyncio.run(health_tool_recommendations(SPARSE, "service_agency"))
        ids = [t["id"] for group in payload["recommendations"] for t in group["tools"]]
        assert ids
        assert len(ids) == len(set(ids))

    def test_explain(self):
        payload = asyncio.run(health_explain(SPARSE))
        assert payload["summary"].startswith("Retention is your lowest-scoring pillar")
        assert len(payload["action_tasks"]) == 8

    def test_report(self):
        payload = asyncio.run(health_report(SPARSE, "service_agency"))
        assert payload["report"]["result"]["score"] == 26
        assert payload["summary"].startswith("26/100 as Service/Agency")

    def test_narrative_unconfigured(self, monkeypatch):
        monkeypatch.delenv("NARRATIVE_API_URL", raising=False)
        payload = asyncio.run(health_narrative(SPARSE))
        assert payload["narrative"] is None
        assert payload["score"] == 26
        assert len(payload["profile_hash"]) == 16

    def test_report_survives_overflowing_funnel(self):
        facts = {
            "revenue_monthly": 1_000,
            "traffic_monthly": 1e200,
            "conversion_rate_pct": 50,
            "avg_order_value": 1e200,
        }
        payload = asyncio.run(health_report(facts))
        assert 0 <= payload["report"]["result"]["score"] <= 100
        levers = payload["report"]["result"]["pillars"]["revenue"]["levers"]
        assert not any("potential" in lever for lever in levers)

    def test_invalid_input_raises(self):
        with pytest.raises(ValueError):
            asyncio.run(health_report({"mrr": 1000}))
