"""Value objects passed between the scoring stages.

The scorers, the scheduler, the tool matcher, and the reasoning layer all
exchange these models. Everything here is a value object: created fresh per
call, never mutated, JSON-serializable with ``model_dump(mode="json")``.
"""

from __future__ import annotations

import math
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class BusinessType(str, Enum):
    """Business archetypes used to select weights and rule precedence."""

    ECOMMERCE = "ecommerce"
    SAAS = "saas"
    SERVICE_AGENCY = "service_agency"
    CREATOR = "creator"
    LOCAL_BUSINESS = "local_business"


class Pillar(str, Enum):
    """Scored dimensions of business health, in canonical order."""

    REVENUE = "revenue"
    PROFITABILITY = "profitability"
    RETENTION = "retention"
    ACQUISITION = "acquisition"
    OPERATIONS = "operations"


class EffortLevel(str, Enum):
    """Effort of a recommended next step."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class EffortSize(str, Enum):
    """T-shirt size of an action-plan task."""

    SMALL = "S"
    MEDIUM = "M"
    LARGE = "L"


class PickLabel(str, Enum):
    """Role a recommended tool plays within its pillar."""

    BEST_FOR_YOU = "Best for you"
    TOP_PARTNER = "Top partner"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# ── Input ──


class FactRecord(_Frozen):
    """Sparse business metrics. Every field is optional and independently absent.

    Percentages are expected in [0, 100]; ranges are the caller's concern.
    """

    revenue_monthly: Optional[float] = None
    gross_margin_pct: Optional[float] = None
    net_profit_monthly: Optional[float] = None
    runway_months: Optional[float] = None
    churn_monthly_pct: Optional[float] = None
    conversion_rate_pct: Optional[float] = None
    traffic_monthly: Optional[float] = None
    avg_order_value: Optional[float] = None
    cac: Optional[float] = Field(None, description="Customer acquisition cost")
    ltv: Optional[float] = Field(None, description="Customer lifetime value")
    ops_hours_per_week: Optional[float] = None
    fulfillment_days: Optional[float] = None
    support_tickets_per_week: Optional[float] = None

    def has(self, field: str) -> bool:
        value = getattr(self, field)
        return value is not None and not math.isnan(value)

    def present_fields(self) -> list[str]:
        return [name for name in FACT_FIELDS if self.has(name)]

    def missing_fields(self) -> list[str]:
        return [name for name in FACT_FIELDS if not self.has(name)]


FACT_FIELDS: tuple[str, ...] = tuple(FactRecord.model_fields)


class SourceMeta(_Frozen):
    """Where a batch of facts came from."""

    provider: str = Field(description="e.g. manual, stripe, shopify")
    fetched_at: datetime


class NormalizedFacts(_Frozen):
    """Integration-ready wrapper around a Fact Record."""

    facts: FactRecord
    sources: list[SourceMeta] = Field(default_factory=list)
    freshness_timestamp: Optional[datetime] = Field(None, description="Timestamp of the newest data point")


# ── Scoring output ──


class PillarResult(_Frozen):
    """Score and findings for a single pillar."""

    score: int = Field(ge=0, le=100)
    reasons: list[str] = Field(default_factory=list)
    levers: list[str] = Field(default_factory=list)


class NextStep(_Frozen):
    """A generic recommended step."""

    title: str
    why: str
    how_to_start: str
    effort: EffortLevel
    pillar: Optional[Pillar] = Field(None, description="Owning pillar; None for generic profile steps")


class ScoreResult(_Frozen):
    """The sole output of the scoring stage and the input to every consumer."""

    score: int = Field(ge=0, le=100, description="Weighted composite score")
    business_type: BusinessType = Field(description="Archetype whose weights were applied")
    pillars: dict[Pillar, PillarResult]
    primary_risk: str
    fastest_lever: str
    recommended_next_steps: list[NextStep]
    missing_data: list[str] = Field(description="Fact fields that were absent")
    facts: FactRecord = Field(description="Copy of the facts the score was computed from")

    def pillar_scores(self) -> dict[Pillar, int]:
        return {pillar: result.score for pillar, result in self.pillars.items()}

    def pillars_by_score(self) -> list[tuple[Pillar, PillarResult]]:
        """Pillars ascending by score; ties keep canonical pillar order."""
        return sorted(self.pillars.items(), key=lambda item: item[1].score)


# ── Action plan ──


class ActionTask(_Frozen):
    """A concrete task scheduled within the 7-day plan."""

    id: str
    title: str
    why: str = Field(description="Rationale")
    how_to_start: str = Field(description="First concrete action")
    expected_impact: str
    effort: EffortSize
    due_in_days: int = Field(ge=1, le=7)
    pillar: Pillar


class ActionPlan(_Frozen):
    """At most 10 tasks targeting the two weakest pillars."""

    tasks: list[ActionTask]
    primary_pillar: Pillar
    secondary_pillar: Pillar


# ── Tool recommendations ──


class ToolEntry(_Frozen):
    """A tool as listed in the externally supplied catalog."""

    id: str
    slug: str
    name: str
    description: str = ""
    category: str
    affiliate_url: str = ""
    has_free_tier: bool = False
    pricing: Optional[str] = Field(None, description="Free-form price, e.g. '$12/mo'")
    rating: Optional[float] = None
    commission_rate: Optional[str] = Field(None, description="Free-form rate, e.g. '30% recurring'")


class RecommendedTool(_Frozen):
    """A catalog tool selected for a weak pillar."""

    id: str
    slug: str
    name: str
    description: str
    category: str
    affiliate_url: str
    has_free_tier: bool
    pricing: Optional[str] = None
    rating: Optional[float] = None
    why_it_fits: str
    promo_label: Optional[str] = None
    pick_label: PickLabel
    pillar: Pillar


class ToolsByPillar(_Frozen):
    """Recommended tools grouped under the pillar they address."""

    pillar: Pillar
    pillar_label: str
    pillar_score: int
    tools: list[RecommendedTool]


# ── Reasoning ──


class LeverExplanation(_Frozen):
    text: str
    potential: str


class StepExplanation(_Frozen):
    text: str
    potential: str


class ToolExplanation(_Frozen):
    text: str
    impact: str


class EstimatedField(_Frozen):
    """A fact the pillar score had to do without."""

    field: str
    label: str
    assumed_value: str
    reason: str


class EstimatedPillarDetail(_Frozen):
    """Why a pillar score is partly or wholly estimated."""

    pillar: Pillar
    text: str
    fields: list[EstimatedField]
    impact: str


class ScoreExplanation(_Frozen):
    """Every justification for a Score Result, for display only."""

    primary_risk: str
    fastest_lever: LeverExplanation
    next_steps: list[StepExplanation]
    estimated_pillars: list[EstimatedPillarDetail]


class HealthReport(_Frozen):
    """Everything the pipeline produces for one set of facts."""

    result: ScoreResult
    action_plan: ActionPlan
    tool_recommendations: list[ToolsByPillar]
    explanation: ScoreExplanation
