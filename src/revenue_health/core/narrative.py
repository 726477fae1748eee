"""Hand-off payload for optional narrative enrichment.

Defines only the shape of what a text-generation collaborator receives. The
protocol used to reach it lives outside the core, and a narrative never
changes a score.
"""

from __future__ import annotations

import hashlib
import json

from pydantic import BaseModel, ConfigDict, Field

from .models import BusinessType, Pillar, ScoreResult


class NarrativeRequest(BaseModel):
    """What a narrative generator is given about a scored profile."""

    model_config = ConfigDict(frozen=True)

    profile_hash: str = Field(description="Stable fingerprint of facts + scores, usable as a cache key")
    business_type: BusinessType
    score: int
    pillar_scores: dict[Pillar, int]
    primary_risk: str
    fastest_lever: str
    next_step_titles: list[str]
    missing_data: list[str]


def compute_profile_hash(result: ScoreResult) -> str:
    """16-hex-char sha256 of the business type, facts, and scores."""
    payload = json.dumps(
        {
            "business_type": result.business_type.value,
            "facts": result.facts.model_dump(mode="json"),
            "score": result.score,
            "pillar_scores": {p.value: s for p, s in result.pillar_scores().items()},
        },
        sort_keys=True,
        separators=(",", ":"),
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:16]


def build_narrative_request(result: ScoreResult) -> NarrativeRequest:
    return NarrativeRequest(
        profile_hash=compute_profile_hash(result),
        business_type=result.business_type,
        score=result.score,
        pillar_scores=result.pillar_scores(),
        primary_risk=result.primary_risk,
        fastest_lever=result.fastest_lever,
        next_step_titles=[step.title for step in result.recommended_next_steps],
        missing_data=result.missing_data,
    )
