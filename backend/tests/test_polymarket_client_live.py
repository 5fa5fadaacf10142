from __future__ import annotations

from datetime import datetime, timezone

import pytest

from ingestion.client import PolymarketClient
from ingestion.errors import PolymarketServiceError
from ingestion.service import fetch_window_events


@pytest.mark.network
def test_polymarket_client_live_fetches_events():
    client = PolymarketClient(fetch_limit=5)
    try:
        events = fetch_window_events(client, now=datetime.now(timezone.utc), window_hours=168)
    except PolymarketServiceError as exc:
        pytest.skip(f"Polymarket API unavailable: {exc.message}")
    finally:
        client.close()

    assert isinstance(events, list)
    for event in events:
        assert isinstance(event, dict)
        assert event.get("id"), "event payload missing identifier"
