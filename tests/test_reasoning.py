"""Tests for the read-only explanation layer."""
from __future__ import annotations

from revenue_health.core.action_plan import generate_action_plan
from revenue_health.core.models import BusinessType, EffortLevel, FactRecord, NextStep, Pillar
from revenue_health.core.reasoning import (
    explain_action_task,
    explain_estimated_pillar,
    explain_fastest_lever,
    explain_next_step,
    explain_primary_risk,
    explain_result,
    explain_tool,
    is_defaulted,
)
from revenue_health.core.scoring import compute_health_score
from revenue_health.core.tool_matcher import recommend_tools


class TestPrimaryRisk:
    def test_lowest_pillar_wording(self, sparse_facts):
        text = explain_primary_risk(compute_health_score(sparse_facts))
        assert text == (
            "Retention is your lowest-scoring pillar at 15/100. "
            "Retention carries a 20% weight in the Service/Agency overall score. "
            "Monthly churn at 12% — above healthy range."
        )

    def test_rule_wording_names_the_rule(self):
        result = compute_health_score(FactRecord(churn_monthly_pct=9), BusinessType.SAAS)
        text = explain_primary_risk(result)
        assert text.startswith("For SaaS businesses, monthly churn above 8% is flagged before anything else")
        assert "30% weight" in text

    def test_estimated_pillar_is_flagged(self):
        text = explain_primary_risk(compute_health_score(FactRecord()))
        assert text.endswith("This score is estimated — adding real data may change the risk picture.")


class TestFastestLever:
    def test_rule_lever_potential(self, sparse_facts):
        explanation = explain_fastest_lever(compute_health_score(sparse_facts))
        assert "more than 35 ops hours a week" in explanation.text
        assert explanation.potential == "+14 pts potential overall improvement"

    def test_generic_lever(self):
        explanation = explain_fastest_lever(compute_health_score(FactRecord()))
        assert explanation.text == "Focus on the pillar with the lowest score for the biggest impact."

    def test_no_gap_left(self, healthy_facts):
        explanation = explain_fastest_lever(compute_health_score(healthy_facts))
        assert explanation.potential == "Improvement possible with better inputs"

    def test_generic_conversion_lever_has_its_own_wording(self):
        explanation = explain_fastest_lever(compute_health_score(FactRecord(conversion_rate_pct=2.5)))
        assert explanation.text.startswith(
            "No pillar has a specific fix yet, and your conversion rate is under 3%, "
            "so acquisition (50/100) is the place to start."
        )
        assert "most room for improvement" not in explanation.text
        assert explanation.potential == "+2 pts potential overall improvement"


class TestStepsAndTools:
    def test_pillar_step_potential(self, sparse_facts):
        result = compute_health_score(sparse_facts)
        explanation = explain_next_step(result.recommended_next_steps[0], result)
        assert "retention pillar (15/100, 20% weight)" in explanation.text
        assert explanation.potential == "~3-6 pts pillar improvement"

    def test_generic_step_with_missing_data(self):
        result = compute_health_score(FactRecord())
        generic = result.recommended_next_steps[-1]
        explanation = explain_next_step(generic, result)
        assert "13 of your metrics are missing" in explanation.text
        assert explanation.potential == "5-15 pts sharper pillar scores with real data"

    def test_single_missing_metric_is_singular(self, growing_facts):
        result = compute_health_score(growing_facts.model_copy(update={"cac": None}))
        step = NextStep(
            title="Set up monthly metric tracking",
            why="Tracking keeps the score honest.",
            how_to_start="Pick one day a month to update your numbers.",
            effort=EffortLevel.LOW,
        )
        explanation = explain_next_step(step, result)
        assert "1 of your metrics is missing" in explanation.text

    def test_action_task(self, sparse_facts):
        result = compute_health_score(sparse_facts)
        task = generate_action_plan(result).tasks[0]
        assert "retention pillar" in explain_action_task(task, result).text

    def test_tool_impact(self, sparse_facts, small_catalog):
        result = compute_health_score(sparse_facts)
        tool = recommend_tools(result, small_catalog)[0].tools[0]
        explanation = explain_tool(tool, result)
        assert explanation.impact == "Improving Retention could add +11 pts to overall score"
        assert explanation.text.startswith(tool.why_it_fits)


class TestEstimatedData:
    def test_defaulted_pillar(self):
        result = compute_health_score(FactRecord())
        detail = explain_estimated_pillar(Pillar.RETENTION, result)
        assert is_defaulted(result, Pillar.RETENTION)
        assert detail.text.startswith("This score defaults to 40/100")
        assert "could be 10-15 points higher" in detail.impact
        assert [f.field for f in detail.fields] == ["churn_monthly_pct", "ltv"]

    def test_partially_estimated_pillar(self, sparse_facts):
        detail = explain_estimated_pillar(Pillar.REVENUE, compute_health_score(sparse_facts))
        assert detail.impact.startswith("1 of 2 fields estimated")
        assert [f.field for f in detail.fields] == ["avg_order_value"]

    def test_complete_pillar_has_no_detail(self, healthy_facts):
        result = compute_health_score(healthy_facts)
        assert explain_estimated_pillar(Pillar.REVENUE, result) is None
        assert explain_result(result).estimated_pillars == []


class TestExplainResult:
    def test_idempotent(self, sparse_facts):
        result = compute_health_score(sparse_facts)
        assert explain_result(result) == explain_result(result)

    def test_does_not_mutate_result(self, new_business_facts):
        result = compute_health_score(new_business_facts)
        before = result.model_dump()
        explain_result(result)
        assert result.model_dump() == before

    def test_one_explanation_per_step(self, sparse_facts):
        result = compute_health_score(sparse_facts)
        assert len(explain_result(result).next_steps) == len(result.recommended_next_steps)
