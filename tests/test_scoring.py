"""Tests for pillar scorers, the weight matrix, and the composite score."""
from __future__ import annotations

import math

import pytest

from revenue_health.core.derived import fmt_number, implied_revenue, round_half_up
from revenue_health.core.models import (
    FACT_FIELDS,
    BusinessType,
    FactRecord,
    NormalizedFacts,
    Pillar,
    SourceMeta,
)
from revenue_health.core.scoring import (
    NO_DATA_REASONS,
    compute_composite,
    compute_from_normalized,
    compute_health_score,
    score_acquisition,
    score_operations,
    score_pillars,
    score_profitability,
    score_retention,
    score_revenue,
    tier_at_least,
    tier_at_most,
    tier_below,
)
from revenue_health.core.weights import DEFAULT_PILLAR_SCORES, PILLAR_FIELDS, WEIGHT_MATRIX, get_weights


class TestWeightMatrix:
    @pytest.mark.parametrize("business_type", list(BusinessType))
    def test_weights_sum_to_one(self, business_type):
        assert math.isclose(sum(WEIGHT_MATRIX[business_type].values()), 1.0)

    @pytest.mark.parametrize("business_type", list(BusinessType))
    def test_every_pillar_weighted(self, business_type):
        assert set(WEIGHT_MATRIX[business_type]) == set(Pillar)

    def test_default_business_type_is_service_agency(self):
        assert get_weights(None) == WEIGHT_MATRIX[BusinessType.SERVICE_AGENCY]


class TestBreakpoints:
    ROWS = ((10, 90), (20, 70))

    def test_first_matching_row_wins(self):
        assert tier_at_most(5, self.ROWS, 10) == 90
        assert tier_at_most(15, self.ROWS, 10) == 70
        assert tier_at_most(25, self.ROWS, 10) == 10

    def test_boundaries_are_inclusive_for_at_least_and_at_most(self):
        assert tier_at_most(10, self.ROWS, 10) == 90
        assert tier_at_least(20, ((20, 80), (10, 60)), 5) == 80

    def test_below_is_strict(self):
        assert tier_below(1_000, ((1_000, 20), (5_000, 40)), 90) == 40

    def test_round_half_up(self):
        assert round_half_up(72.5) == 73
        assert round_half_up(25.5) == 26
        assert round_half_up(25.4) == 25

    @pytest.mark.parametrize(
        "value, expected",
        [(35.0, "35"), (0.8, "0.8"), (12.5, "12.5"), (100, "100"), (1_234_567, "1,234,567")],
    )
    def test_fmt_number(self, value, expected):
        assert fmt_number(value) == expected


class TestPillarScorers:
    def test_empty_record_uses_defaults(self):
        pillars = score_pillars(FactRecord())
        for pillar, result in pillars.items():
            assert result.score == DEFAULT_PILLAR_SCORES[pillar]
            assert NO_DATA_REASONS[pillar] in result.reasons

    def test_revenue_tiers(self):
        assert score_revenue(FactRecord(revenue_monthly=500)).score == 20
        assert score_revenue(FactRecord(revenue_monthly=1_000)).score == 40
        assert score_revenue(FactRecord(revenue_monthly=60_000)).score == 90

    def test_revenue_implied_potential_lever(self):
        facts = FactRecord(
            revenue_monthly=10_000,
            traffic_monthly=20_000,
            conversion_rate_pct=2,
            avg_order_value=60,
        )
        result = score_revenue(facts)
        assert any("~$24,000/mo potential" in lever for lever in result.levers)

    def test_overflowing_funnel_skips_implied_lever(self):
        facts = FactRecord(
            revenue_monthly=1_000,
            traffic_monthly=1e200,
            conversion_rate_pct=50,
            avg_order_value=1e200,
        )
        assert implied_revenue(facts) is None
        result = score_revenue(facts)
        assert result.score == 60
        assert not any("potential" in lever for lever in result.levers)
        assert compute_health_score(facts).score > 0

    def test_strong_revenue_without_levers_suggests_diversifying(self):
        result = score_revenue(FactRecord(revenue_monthly=65_000))
        assert result.score == 90
        assert result.levers == ["Consider diversifying revenue streams to reduce dependency risk."]

    def test_profitability_averages_available_subscores(self):
        result = score_profitability(FactRecord(gross_margin_pct=72, cac=30, ltv=900))
        assert result.score == 93

    def test_loss_making_business(self):
        result = score_profitability(FactRecord(revenue_monthly=1_000, net_profit_monthly=-100))
        assert result.score == 15
        assert "Business is operating at a loss." in result.reasons

    def test_zero_revenue_skips_net_margin(self):
        result = score_profitability(FactRecord(revenue_monthly=0, net_profit_monthly=-500))
        assert result.score == DEFAULT_PILLAR_SCORES[Pillar.PROFITABILITY]

    def test_ltv_cac_uses_cac_floor_of_one(self):
        result = score_profitability(FactRecord(cac=0, ltv=4))
        assert result.score == 80

    def test_retention_repeat_orders(self):
        result = score_retention(FactRecord(ltv=80, avg_order_value=25))
        assert result.score == 65

    def test_acquisition_high_cac_lever(self):
        result = score_acquisition(FactRecord(cac=200))
        assert result.score == 25
        assert any("lower CAC" in lever for lever in result.levers)

    def test_large_values_render_without_exponent(self):
        result = score_acquisition(FactRecord(cac=1_234_567))
        assert "CAC at $1,234,567 — high. Watch unit economics." in result.reasons

    def test_operations_reasons(self):
        result = score_operations(FactRecord(ops_hours_per_week=45, fulfillment_days=8))
        assert result.score == 25
        assert "Spending 45 hrs/wk on ops — high overhead." in result.reasons
        assert "Fulfillment takes 8 days — slow." in result.reasons

    def test_nan_counts_as_missing(self):
        result = score_retention(FactRecord(churn_monthly_pct=float("nan")))
        assert result.score == DEFAULT_PILLAR_SCORES[Pillar.RETENTION]


class TestComposite:
    def test_weighted_sum(self):
        pillars = score_pillars(FactRecord())
        assert compute_composite(pillars, BusinessType.SERVICE_AGENCY) == 37

    @pytest.mark.parametrize("business_type", list(BusinessType))
    def test_score_bounds(self, business_type, new_business_facts, healthy_facts):
        for facts in (FactRecord(), new_business_facts, healthy_facts):
            result = compute_health_score(facts, business_type)
            assert 0 <= result.score <= 100
            assert all(0 <= p.score <= 100 for p in result.pillars.values())

    def test_deterministic(self, growing_facts):
        first = compute_health_score(growing_facts, BusinessType.SAAS)
        second = compute_health_score(growing_facts, BusinessType.SAAS)
        assert first == second
        assert first.model_dump() == second.model_dump()

    def test_monotonic_in_a_single_metric(self, growing_facts):
        worse = growing_facts.model_copy(update={"churn_monthly_pct": 15})
        better = growing_facts.model_copy(update={"churn_monthly_pct": 1})
        assert (
            compute_health_score(worse).score
            <= compute_health_score(growing_facts).score
            <= compute_health_score(better).score
        )

    @pytest.mark.parametrize(
        "field, values",
        [
            ("revenue_monthly", [0, 500, 1_000, 4_999, 5_000, 15_000, 50_000, 1_000_000]),
            ("gross_margin_pct", [0, 29, 30, 50, 70, 100]),
            ("net_profit_monthly", [-5_000, -1, 0, 1_199, 1_200, 2_400, 50_000]),
            ("runway_months", [0, 5, 6, 12, 18, 60]),
            ("conversion_rate_pct", [0, 0.5, 1, 2, 3, 5, 20]),
            ("traffic_monthly", [0, 1_999, 2_000, 10_000, 50_000, 1_000_000]),
            ("avg_order_value", [1, 49, 50, 199, 200, 10_000]),
            ("ltv", [0, 45, 67.5, 135, 225, 375, 5_000]),
        ],
    )
    def test_owning_pillar_never_drops_as_positive_fact_rises(self, growing_facts, field, values):
        owners = [pillar for pillar, fields in PILLAR_FIELDS.items() if field in fields]
        assert owners
        for pillar in owners:
            scores = [
                compute_health_score(growing_facts.model_copy(update={field: value})).pillars[pillar].score
                for value in values
            ]
            assert scores == sorted(scores), f"{pillar.value} dropped while raising {field}: {scores}"

    def test_profiles_rank_in_order(self, new_business_facts, growing_facts, healthy_facts):
        new = compute_health_score(new_business_facts)
        growing = compute_health_score(growing_facts)
        healthy = compute_health_score(healthy_facts)
        assert new.score == 32
        assert growing.score == 69
        assert healthy.score == 81
        assert new.score < growing.score < healthy.score

    def test_input_record_not_mutated(self, sparse_facts):
        before = sparse_facts.model_dump()
        compute_health_score(sparse_facts)
        assert sparse_facts.model_dump() == before


class TestEmptyRecord:
    def test_scores_positive_with_all_fields_missing(self):
        result = compute_health_score(FactRecord())
        assert result.score > 0
        assert result.missing_data == list(FACT_FIELDS)
        assert result.pillar_scores() == DEFAULT_PILLAR_SCORES

    def test_generic_steps_fill_the_floor(self):
        result = compute_health_score(FactRecord())
        titles = [step.title for step in result.recommended_next_steps]
        assert titles == [
            "Increase monthly revenue baseline",
            "Complete your business profile",
            "Set up monthly metric tracking",
        ]

    def test_primary_risk_tie_resolves_to_revenue(self):
        result = compute_health_score(FactRecord())
        assert result.primary_risk == "Critical risk in revenue generation (score: 30/100) — address immediately."


class TestScenarios:
    def test_sparse_unhealthy(self, sparse_facts):
        result = compute_health_score(sparse_facts)
        assert result.score < 40
        assert result.score == round_half_up(20 * 0.25 + 50 * 0.15 + 15 * 0.20 + 25 * 0.10 + 25 * 0.30)
        assert "Spending 45 hrs/wk on ops — high overhead." in result.pillars[Pillar.OPERATIONS].reasons
        assert any("churn-reduction" in lever for lever in result.pillars[Pillar.RETENTION].levers)

    def test_full_new_business_profile_lands_in_low_thirties(self, new_business_facts):
        result = compute_health_score(new_business_facts)
        assert 30 <= result.score <= 35

    def test_rich_healthy(self):
        facts = FactRecord(
            revenue_monthly=65_000,
            gross_margin_pct=72,
            churn_monthly_pct=1.5,
            conversion_rate_pct=5.5,
            cac=30,
            ltv=900,
        )
        result = compute_health_score(facts)
        assert result.score >= 70
        assert result.score == 76

    def test_missing_only_unit_economics(self, growing_facts):
        facts = growing_facts.model_copy(update={"cac": None, "ltv": None})
        result = compute_health_score(facts)
        assert result.missing_data == ["cac", "ltv"]
        profitability = result.pillars[Pillar.PROFITABILITY]
        assert NO_DATA_REASONS[Pillar.PROFITABILITY] not in profitability.reasons
        assert profitability.score == 72


class TestNormalizedFacts:
    def test_scores_wrapped_facts(self, growing_facts):
        normalized = NormalizedFacts(
            facts=growing_facts,
            sources=[SourceMeta(provider="manual", fetched_at="2025-01-01T00:00:00")],
        )
        assert compute_from_normalized(normalized) == compute_health_score(growing_facts)
