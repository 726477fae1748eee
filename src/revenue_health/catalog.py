"""Tool catalog loading.

The catalog is owned elsewhere; this module only reads it. A JSON list of
tool entries is read from ``TOOL_CATALOG_PATH`` when set, otherwise from the
catalog shipped with the package. A catalog that cannot be read or parsed is
treated as empty, so recommendations are omitted rather than failing.
"""

from __future__ import annotations

import logging
import os
from importlib import resources
from pathlib import Path
from typing import Optional

from pydantic import TypeAdapter, ValidationError

from .core.models import ToolEntry

logger = logging.getLogger(__name__)

_catalog_adapter = TypeAdapter(list[ToolEntry])


def get_catalog_path() -> Optional[Path]:
    """Configured catalog path, or None to use the packaged catalog."""
    configured = os.environ.get("TOOL_CATALOG_PATH", "")
    return Path(configured).expanduser() if configured else None


def parse_tool_catalog(raw: str | bytes) -> list[ToolEntry]:
    return _catalog_adapter.validate_json(raw)


def load_tool_catalog(path: Optional[Path] = None) -> list[ToolEntry]:
    """Read the tool catalog, returning an empty list if it is unavailable."""
    path = path or get_catalog_path()
    try:
        if path is None:
            raw = resources.files("revenue_health").joinpath("data/tool_catalog.json").read_bytes()
            source = "packaged catalog"
        else:
            raw = path.read_bytes()
            source = str(path)
        catalog = parse_tool_catalog(raw)
    except (OSError, ValidationError) as exc:
        logger.warning("Tool catalog unavailable, recommendations will be omitted: %s", exc)
        return []

    logger.info("Loaded %d tools from %s", len(catalog), source)
    return catalog
