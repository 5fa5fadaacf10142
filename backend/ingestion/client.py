from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Iterable
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

import httpx
from loguru import logger

from app.core.config import Settings, get_settings

from .errors import ConfigurationInvalid, UpstreamMalformed, UpstreamUnavailable


DEFAULT_EVENTS_PATH = "/events"
FIXED_QUERY_KEYS = ("limit", "closed", "active", "archived")


class PolymarketClient:
    """Thin wrapper around the Polymarket Gamma events endpoint."""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        excluded_tag_ids: Iterable[int] | None = None,
        fetch_limit: int | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
        settings: Settings | None = None,
    ) -> None:
        settings = settings or get_settings()
        self.base_url = base_url or settings.polymarket_api_url
        self.excluded_tag_ids = tuple(
            settings.excluded_tags if excluded_tag_ids is None else excluded_tag_ids
        )
        self.fetch_limit = fetch_limit or settings.fetch_limit
        self.timeout = timeout or settings.request_timeout_seconds
        self.client = httpx.Client(timeout=self.timeout, transport=transport)

    def _fixed_params(self) -> list[tuple[str, str]]:
        return [
            ("limit", str(self.fetch_limit)),
            ("closed", "false"),
            ("active", "true"),
            ("archived", "false"),
        ]

    def build_url(self, now: datetime, window_hours: float) -> str:
        """Build the events query for markets closing within the window.

        Query parameters already present on the configured base URL are kept;
        an explicit ``end_date_min``/``end_date_max`` there wins over the
        computed date window.
        """
        try:
            parsed = urlparse(self.base_url)
        except ValueError as exc:
            raise ConfigurationInvalid("Invalid POLYMARKET_API_URL") from exc
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ConfigurationInvalid("Invalid POLYMARKET_API_URL")

        path = parsed.path if parsed.path and parsed.path != "/" else DEFAULT_EVENTS_PATH
        query = [
            (key, value)
            for key, value in parse_qsl(parsed.query, keep_blank_values=True)
            if key not in FIXED_QUERY_KEYS
        ]
        existing_keys = {key for key, _ in query}
        query.extend(self._fixed_params())
        query.extend(("exclude_tag_id", str(tag_id)) for tag_id in self.excluded_tag_ids)

        now_utc = now.replace(tzinfo=timezone.utc) if now.tzinfo is None else now.astimezone(timezone.utc)
        window_end = now_utc + timedelta(hours=window_hours)
        if "end_date_min" not in existing_keys:
            query.append(("end_date_min", now_utc.date().isoformat()))
        if "end_date_max" not in existing_keys:
            query.append(("end_date_max", window_end.date().isoformat()))

        return urlunparse(parsed._replace(path=path, query=urlencode(query)))

    @staticmethod
    def unwrap_events(payload: Any) -> list[Any]:
        if isinstance(payload, list):
            return payload
        if isinstance(payload, dict):
            for key in ("events", "markets"):
                value = payload.get(key)
                if isinstance(value, list):
                    return value
        logger.warning("Polymarket events fetch returned an unexpected payload shape")
        raise UpstreamMalformed("Polymarket API returned an unexpected payload")

    def fetch_events(self, url: str) -> list[Any]:
        logger.debug("Polymarket GET {}", url)
        try:
            response = self.client.get(url, headers={"accept": "application/json"})
        except httpx.HTTPError as exc:
            logger.warning("Polymarket events fetch failed to reach endpoint: {}", exc)
            raise UpstreamUnavailable("Failed to reach Polymarket API") from exc

        if not response.is_success:
            logger.warning("Polymarket events fetch non-ok status {}", response.status_code)
            raise UpstreamUnavailable.from_status(response.status_code)

        try:
            payload = response.json()
        except ValueError as exc:
            logger.warning("Polymarket events fetch returned invalid JSON")
            raise UpstreamMalformed("Failed to parse Polymarket API response") from exc

        return self.unwrap_events(payload)

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "PolymarketClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
