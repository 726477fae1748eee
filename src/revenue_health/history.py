"""Score snapshot persistence, history, and change reporting.

Lives outside the core: the scoring engine never touches storage. Each
snapshot carries the full serialized ScoreResult, so the facts behind a
score remain inspectable later.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import select

from .core.models import Pillar, ScoreResult
from .core.narrative import compute_profile_hash
from .db import session_scope
from .sqlmodels import ScoreSnapshot

logger = logging.getLogger(__name__)


def _snapshot_to_dict(row: ScoreSnapshot) -> dict:
    return {
        "id": row.id,
        "profile_id": row.profile_id,
        "business_type": row.business_type,
        "score": row.score,
        "pillar_scores": json.loads(row.pillar_scores),
        "profile_hash": row.profile_hash,
        "computed_at": row.computed_at.isoformat(),
    }


def _change_type(delta: int) -> str:
    if delta > 0:
        return "increase"
    if delta < 0:
        return "decrease"
    return "unchanged"


async def save_score_snapshot(profile_id: str, result: ScoreResult) -> dict:
    """Persist a score for a profile and return the stored snapshot."""
    snapshot = ScoreSnapshot(
        profile_id=profile_id,
        business_type=result.business_type.value,
        score=result.score,
        pillar_scores=json.dumps({p.value: s for p, s in result.pillar_scores().items()}),
        profile_hash=compute_profile_hash(result),
        result_json=result.model_dump_json(),
        computed_at=datetime.now(timezone.utc).replace(tzinfo=None),
    )

    async with session_scope() as session:
        session.add(snapshot)

    logger.info("Saved score snapshot for %s: %d", profile_id, result.score)
    return _snapshot_to_dict(snapshot)


async def get_score_history(profile_id: str, months: int = 12) -> list[dict]:
    """Snapshots for a profile from the last `months` months, oldest first."""
    cutoff = datetime.now(timezone.utc).replace(tzinfo=None) - timedelta(days=months * 31)

    async with session_scope() as session:
        result = await session.execute(
            select(ScoreSnapshot)
            .where(ScoreSnapshot.profile_id == profile_id)
            .where(ScoreSnapshot.computed_at >= cutoff)
            .order_by(ScoreSnapshot.computed_at.asc(), ScoreSnapshot.id.asc())
        )
        rows = result.scalars().all()

    return [_snapshot_to_dict(r) for r in rows]


async def load_latest_result(profile_id: str) -> Optional[ScoreResult]:
    """The most recent full ScoreResult stored for a profile, if any."""
    async with session_scope() as session:
        result = await session.execute(
            select(ScoreSnapshot)
            .where(ScoreSnapshot.profile_id == profile_id)
            .order_by(ScoreSnapshot.id.desc())
            .limit(1)
        )
        row = result.scalar_one_or_none()

    if row is None:
        return None
    return ScoreResult.model_validate_json(row.result_json)


async def compare_latest(profile_id: str) -> Optional[dict]:
    """Composite and per-pillar deltas between the two newest snapshots.

    Returns None when the profile has no snapshots. With a single snapshot,
    deltas are None and the change type is "new". Every difference is
    reported; deciding what is significant is left to the reader.
    """
    async with session_scope() as session:
        result = await session.execute(
            select(ScoreSnapshot)
            .where(ScoreSnapshot.profile_id == profile_id)
            .order_by(ScoreSnapshot.id.desc())
            .limit(2)
        )
        rows = result.scalars().all()

    if not rows:
        return None

    latest = rows[0]
    latest_pillars = json.loads(latest.pillar_scores)

    if len(rows) == 1:
        return {
            "profile_id": profile_id,
            "current_score": latest.score,
            "previous_score": None,
            "change": None,
            "change_type": "new",
            "pillars": [
                {"pillar": p.value, "current_score": latest_pillars.get(p.value), "previous_score": None,
                 "change": None, "change_type": "new"}
                for p in Pillar
            ],
            "computed_at": latest.computed_at.isoformat(),
            "previous_computed_at": None,
        }

    prior = rows[1]
    prior_pillars = json.loads(prior.pillar_scores)
    delta = latest.score - prior.score

    pillars = []
    for p in Pillar:
        current = latest_pillars.get(p.value)
        previous = prior_pillars.get(p.value)
        if current is None or previous is None:
            pillars.append({"pillar": p.value, "current_score": current, "previous_score": previous,
                            "change": None, "change_type": "new"})
            continue
        pillar_delta = current - previous
        pillars.append({
            "pillar": p.value,
            "current_score": current,
            "previous_score": previous,
            "change": pillar_delta,
            "change_type": _change_type(pillar_delta),
        })

    return {
        "profile_id": profile_id,
        "current_score": latest.score,
        "previous_score": prior.score,
        "change": delta,
        "change_type": _change_type(delta),
        "pillars": pillars,
        "computed_at": latest.computed_at.isoformat(),
        "previous_computed_at": prior.computed_at.isoformat(),
    }
