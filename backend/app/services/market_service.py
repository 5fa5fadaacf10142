"""Scan facade combining the feed client, the payload cache, and the scan pipeline."""

from __future__ import annotations

from datetime import datetime
from typing import Callable

from loguru import logger

from app.core.config import Settings, get_settings
from app.schemas import ScanPayload, build_payload
from ingestion.client import PolymarketClient
from ingestion.service import fetch_window_events, utc_now
from pipelines.context import ScanContext
from pipelines.registry import FLIPPED, OPPORTUNITIES, VELOCITY, VARIANT_NAMES, build_variants
from pipelines.scan import run_scan

from .cache import MarketCache


class MarketService:
    """Serves scan payloads per variant, optionally through a TTL cache."""

    def __init__(
        self,
        client: PolymarketClient,
        *,
        cache: MarketCache | None = None,
        settings: Settings | None = None,
        now_fn: Callable[[], datetime] = utc_now,
    ) -> None:
        self._client = client
        self._cache = cache
        self._settings = settings or get_settings()
        self._variants = build_variants(self._settings)
        self._now_fn = now_fn

    def get_opportunities(self, window_hours: float | None = None) -> ScanPayload:
        return self.scan(OPPORTUNITIES, window_hours)

    def get_flipped(self, window_hours: float | None = None) -> ScanPayload:
        return self.scan(FLIPPED, window_hours)

    def get_velocity(self, window_hours: float | None = None) -> ScanPayload:
        return self.scan(VELOCITY, window_hours)

    def scan(self, variant_name: str, window_hours: float | None = None) -> ScanPayload:
        variant = self._variants.get(variant_name)
        if variant is None:
            raise ValueError(
                f"Unknown scan variant '{variant_name}'. Available: {', '.join(VARIANT_NAMES)}"
            )

        now = self._now_fn()
        context = ScanContext(
            variant=variant,
            now=now,
            window_hours=window_hours,
            capacity=self._settings.bucket_capacity,
        )

        if self._cache is not None:
            cached = self._cache.get(context.cache_key, now)
            if cached is not None:
                logger.debug("Polymarket {} served from cache", variant.name)
                return cached

        logger.debug("Polymarket {} fetch started", variant.name)
        raw_events = fetch_window_events(
            self._client, now=now, window_hours=context.effective_window_hours
        )
        payload = build_payload(
            run_scan(raw_events, context, web_url=self._settings.polymarket_web_url)
        )
        logger.debug(
            "Polymarket {} fetch completed counts={}",
            variant.name,
            {key: len(items) for key, items in payload.items()},
        )

        if self._cache is not None:
            self._cache.set(context.cache_key, payload, now)
        return payload
