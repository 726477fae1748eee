"""Narrative enrichment client.

POSTs a NarrativeRequest to an external text-generation endpoint configured
with ``NARRATIVE_API_URL`` (optionally authenticated with
``NARRATIVE_API_KEY``). The endpoint answers ``{"narrative": "..."}``.
Any failure means "no enrichment available": the caller gets None and the
deterministic score is unaffected.
"""

from __future__ import annotations

import logging
import math
import os
from typing import Optional

import httpx

from ..core.narrative import NarrativeRequest

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 20.0


def _get_timeout() -> float:
    raw = os.environ.get("NARRATIVE_TIMEOUT_SECONDS", "")
    if not raw:
        return DEFAULT_TIMEOUT_SECONDS
    try:
        timeout = float(raw)
    except ValueError:
        timeout = math.nan
    if not math.isfinite(timeout) or timeout <= 0:
        logger.warning(
            "NARRATIVE_TIMEOUT_SECONDS=%r is not a positive number — using %ss", raw, DEFAULT_TIMEOUT_SECONDS
        )
        return DEFAULT_TIMEOUT_SECONDS
    return timeout


async def fetch_narrative(
    request: NarrativeRequest,
    url: Optional[str] = None,
    api_key: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Optional[str]:
    """Ask the narrative collaborator for prose about a scored profile.

    Returns None when no endpoint is configured, the request fails, or the
    response has no usable narrative.
    """
    url = url or os.environ.get("NARRATIVE_API_URL", "")
    if not url:
        logger.debug("NARRATIVE_API_URL not set — narrative enrichment disabled")
        return None

    api_key = api_key or os.environ.get("NARRATIVE_API_KEY", "")
    headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
    timeout = httpx.Timeout(_get_timeout(), connect=10.0)

    async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
        try:
            response = await client.post(url, json=request.model_dump(mode="json"), headers=headers)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as exc:
            logger.warning("Narrative request failed for profile %s: %s", request.profile_hash, exc)
            return None
        except ValueError as exc:
            logger.warning("Narrative response was not JSON for profile %s: %s", request.profile_hash, exc)
            return None

    narrative = data.get("narrative") if isinstance(data, dict) else None
    if not isinstance(narrative, str) or not narrative.strip():
        logger.warning("Narrative response for profile %s had no narrative text", request.profile_hash)
        return None
    return narrative.strip()
