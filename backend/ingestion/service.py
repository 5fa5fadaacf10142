from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from loguru import logger

from .client import PolymarketClient
from .errors import UpstreamMalformed


def parse_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def fetch_window_events(
    client: PolymarketClient, *, now: datetime, window_hours: float
) -> list[Any]:
    """Fetch the raw events closing between ``now`` and ``now + window_hours``."""
    url = client.build_url(now, window_hours)
    raw_events = client.fetch_events(url)
    logger.info("Fetched {} events closing within {}h", len(raw_events), window_hours)
    return raw_events


def load_events_file(path: str | Path) -> list[Any]:
    """Read a saved feed response; accepts the same shapes as the live endpoint."""
    file_path = Path(path)
    try:
        text = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise UpstreamMalformed(f"Could not read events from {file_path}: {exc}") from exc
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise UpstreamMalformed(f"{file_path} does not contain valid JSON") from exc
    raw_events = PolymarketClient.unwrap_events(payload)
    logger.info("Loaded {} events from {}", len(raw_events), file_path)
    return raw_events
