"""Shared normalization and output formatting helpers."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Iterable

from mcp.types import TextContent
from pydantic import BaseModel


_MISSING = object()


# ---------------------------------------------------------------------------
# Raw record access
# ---------------------------------------------------------------------------

def dig(obj: Any, *path: str, default: Any = None) -> Any:
    """Walk nested dicts, returning ``default`` when any step is absent or null."""
    cur = obj
    for key in path:
        if not isinstance(cur, dict):
            return default
        cur = cur.get(key, _MISSING)
        if cur is _MISSING or cur is None:
            return default
    return cur


def parse_timestamp(value: str | datetime | None) -> datetime | None:
    """Parse an RFC 3339 timestamp as emitted by the API server."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        ts = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            ts = datetime.fromisoformat(text)
        except ValueError:
            return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


# ---------------------------------------------------------------------------
# Derived fields
# ---------------------------------------------------------------------------

def age(created: str | datetime | None, now: datetime | None = None) -> str:
    """Render elapsed time since ``created`` as 3d4h, 5h12m or 7m."""
    ts = parse_timestamp(created)
    if ts is None:
        return "unknown"
    now = now or datetime.now(timezone.utc)
    seconds = max(int((now - ts).total_seconds()), 0)
    days, rem = divmod(seconds, 86400)
    hours, rem = divmod(rem, 3600)
    minutes = rem // 60
    if days > 0:
        return f"{days}d{hours}h"
    if hours > 0:
        return f"{hours}h{minutes}m"
    return f"{minutes}m"


def ready_ratio(ready: int, total: int) -> str:
    return f"{ready or 0}/{total or 0}"


def sort_key_timestamp(value: str | None) -> float:
    """Sort key for timestamps; missing or unparsable values sort as the epoch."""
    ts = parse_timestamp(value)
    return ts.timestamp() if ts else 0.0


def join(items: Iterable[Any], sep: str = ",") -> str:
    return sep.join(str(i) for i in items if i is not None and i != "")


# ---------------------------------------------------------------------------
# Tool output
# ---------------------------------------------------------------------------

def to_jsonable(value: Any) -> Any:
    """Convert adapter output (models, lists of models, dicts) to plain JSON data."""
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, exclude_none=True, mode="json")
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    return value


def render(value: Any) -> list[TextContent]:
    text = json.dumps(to_jsonable(value), indent=2)
    return [TextContent(type="text", text=text)]


def _err(msg: str) -> list[TextContent]:
    return [TextContent(type="text", text=f"Error: {msg}")]
