from __future__ import annotations

import json
import math
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Callable, Iterable, Iterator, Mapping

from dateutil import parser as date_parser
from loguru import logger

from app.domain import Candidate, Tag


POLYMARKET_WEB_URL = "https://polymarket.com"

_EPOCH_MILLIS_THRESHOLD = 1_000_000_000_000
_HOURS_QUANTUM = Decimal("0.01")

# Ordered fallback chains of (scope, key). The first usable value wins.
FieldChain = tuple[tuple[str, str], ...]

QUESTION_FIELDS: FieldChain = (
    ("market", "question"),
    ("market", "title"),
    ("market", "name"),
    ("event", "question"),
    ("event", "title"),
    ("event", "name"),
    ("event", "slug"),
    ("event", "id"),
)
OUTCOME_FIELDS: FieldChain = (("market", "outcomes"), ("event", "outcomes"))
OUTCOME_PRICE_FIELDS: FieldChain = (("market", "outcomePrices"), ("event", "outcomePrices"))
VOLUME_FIELDS: FieldChain = (
    ("market", "volume"),
    ("market", "volumeNum"),
    ("event", "volume"),
)
ONE_DAY_CHANGE_FIELDS: FieldChain = (
    ("market", "oneDayPriceChange"),
    ("event", "oneDayPriceChange"),
)
ONE_WEEK_CHANGE_FIELDS: FieldChain = (
    ("market", "oneWeekPriceChange"),
    ("event", "oneWeekPriceChange"),
)
ONE_MONTH_CHANGE_FIELDS: FieldChain = (
    ("market", "oneMonthPriceChange"),
    ("event", "oneMonthPriceChange"),
)
TAG_FIELDS: FieldChain = (
    ("event", "tags"),
    ("event", "categories"),
    ("market", "tags"),
    ("market", "categories"),
)


def _as_list(value: Any) -> list[Any]:
    """Return value as a list when possible, decoding JSON strings."""
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except (json.JSONDecodeError, RecursionError):
            return []
        return parsed if isinstance(parsed, list) else []
    return []


def _to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _iter_chain(chain: FieldChain, event: Mapping[str, Any], market: Mapping[str, Any]) -> Iterator[Any]:
    scopes = {"event": event, "market": market}
    for scope, key in chain:
        yield scopes[scope].get(key)


def _first_present(values: Iterable[Any]) -> Any:
    return next((value for value in values if value is not None), None)


def as_number(value: Any) -> float | None:
    """Coerce numbers and numeric-looking strings, rejecting non-finite results."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        try:
            number = float(value)
        except (OverflowError, ValueError, InvalidOperation):
            return None
    elif isinstance(value, str):
        text = value.strip()
        # Reject digit separators such as "1_000".
        if not text or "_" in text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def as_text(value: Any) -> str | None:
    """Return a trimmed non-empty string, stringifying finite numbers."""
    if isinstance(value, str):
        text = value.strip()
        return text or None
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float) and math.isfinite(value):
        return str(int(value)) if value.is_integer() else repr(value)
    return None


def parse_string_list(value: Any) -> list[str]:
    items: list[str] = []
    for item in _as_list(value):
        if isinstance(item, str):
            items.append(item)
        elif isinstance(item, bool):
            items.append("true" if item else "false")
        elif isinstance(item, (int, float)):
            text = as_text(item)
            if text is not None:
                items.append(text)
    return items


def parse_number_list(value: Any) -> list[float]:
    numbers: list[float] = []
    for item in _as_list(value):
        number = as_number(item)
        if number is not None:
            numbers.append(number)
    return numbers


def _parse_iso(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return _to_utc(date_parser.isoparse(value.strip()))
    except (ValueError, TypeError, OverflowError):
        return None


def _parse_epoch(value: Any) -> datetime | None:
    number = as_number(value)
    if number is None:
        return None
    # Feeds mix epoch seconds and milliseconds.
    seconds = number if number < _EPOCH_MILLIS_THRESHOLD else number / 1000
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


END_DATE_FIELDS: tuple[tuple[str, Callable[[Any], datetime | None]], ...] = (
    ("endDate", _parse_iso),
    ("endDateIso", _parse_iso),
    ("closeDate", _parse_iso),
    ("endTime", _parse_epoch),
    ("closeTime", _parse_epoch),
    ("timeResolved", _parse_iso),
)


def _nested_markets(event: Mapping[str, Any]) -> list[Mapping[str, Any]]:
    return [
        market if isinstance(market, Mapping) else {}
        for market in _as_list(event.get("markets"))
    ]


def resolve_own_end_date(record: Mapping[str, Any]) -> datetime | None:
    """Resolve an end date from a single event or market mapping."""
    for key, parse in END_DATE_FIELDS:
        resolved = parse(record.get(key))
        if resolved is not None:
            return resolved
    return None


def resolve_end_date(
    event: Mapping[str, Any], market: Mapping[str, Any] | None = None
) -> datetime | None:
    """Resolve the closing instant for a market, falling back to its parent event.

    When neither the market nor the event carries a date, the earliest date
    found across the event's nested markets is used.
    """
    if market:
        from_market = resolve_own_end_date(market)
        if from_market is not None:
            return from_market

    from_event = resolve_own_end_date(event)
    if from_event is not None:
        return from_event

    nested = [
        resolved
        for resolved in (resolve_own_end_date(candidate) for candidate in _nested_markets(event))
        if resolved is not None
    ]
    return min(nested) if nested else None


def resolve_resolution_state(
    event: Mapping[str, Any], market: Mapping[str, Any] | None = None
) -> str | None:
    for record in (market or {}, event):
        for key in ("resolutionState", "status"):
            state = as_text(record.get(key))
            if state:
                return state
        resolved = record.get("resolved")
        if isinstance(resolved, bool):
            return "resolved" if resolved else "unresolved"
    return None


def resolve_question(event: Mapping[str, Any], market: Mapping[str, Any] | None = None) -> str:
    texts = (as_text(value) for value in _iter_chain(QUESTION_FIELDS, event, market or {}))
    return next((text for text in texts if text), "")


def _tag_from_item(item: Any) -> Tag | None:
    if isinstance(item, bool):
        return None
    if isinstance(item, (str, int, float)):
        label = as_text(item)
        return Tag(id=label, label=label) if label else None
    if isinstance(item, Mapping):
        label = next(
            (text for text in (as_text(item.get(key)) for key in ("label", "name", "slug")) if text),
            None,
        )
        if not label:
            return None
        tag_id = next(
            (text for text in (as_text(item.get(key)) for key in ("id", "slug", "label")) if text),
            label,
        )
        return Tag(id=tag_id, label=label)
    return None


def extract_tags(*sources: Any) -> list[Tag]:
    """Collect tags from any mix of lists, bare strings, numbers and mappings."""
    tags: list[Tag] = []
    for source in sources:
        if source is None:
            continue
        items = source if isinstance(source, (list, tuple)) else [source]
        for item in items:
            tag = _tag_from_item(item)
            if tag is not None:
                tags.append(tag)
    return tags


def deduplicate_tags(tags: Iterable[Tag]) -> list[Tag]:
    """Keep the first label seen for every tag id, preserving order."""
    seen: dict[str, str] = {}
    for tag in tags:
        tag_id = tag.id.strip()
        label = tag.label.strip()
        if not tag_id or not label:
            continue
        seen.setdefault(tag_id, label)
    return [Tag(id=tag_id, label=label) for tag_id, label in seen.items()]


def compute_hours_to_close(end_date: datetime, now: datetime) -> float | None:
    try:
        hours = (_to_utc(end_date) - _to_utc(now)).total_seconds() / 3600
    except (OverflowError, TypeError):
        return None
    if not math.isfinite(hours) or hours <= 0:
        return None
    rounded = float(Decimal(repr(hours)).quantize(_HOURS_QUANTUM, rounding=ROUND_HALF_UP))
    return rounded if rounded > 0 else None


def compute_time_to_end(end_date: datetime, now: datetime) -> str | None:
    try:
        remaining = (_to_utc(end_date) - _to_utc(now)).total_seconds()
    except (OverflowError, TypeError):
        return None
    if not math.isfinite(remaining):
        return None
    total_seconds = math.floor(remaining)
    if total_seconds <= 0:
        return None
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def resolve_event_url(event: Mapping[str, Any], *, web_url: str = POLYMARKET_WEB_URL) -> str:
    slug = as_text(event.get("slug")) or as_text(event.get("id"))
    if slug:
        return f"{web_url}/event/{slug}"
    return web_url


def resolve_market_url(
    event: Mapping[str, Any],
    market: Mapping[str, Any] | None = None,
    *,
    web_url: str = POLYMARKET_WEB_URL,
) -> str:
    market_slug = as_text((market or {}).get("slug"))
    if market_slug:
        return f"{web_url}/market/{market_slug}"
    return resolve_event_url(event, web_url=web_url)


def normalize_market(
    event: Mapping[str, Any],
    market: Mapping[str, Any] | None,
    now: datetime,
    *,
    web_url: str = POLYMARKET_WEB_URL,
) -> Candidate:
    """Build one candidate from a market, falling back to event-level fields."""
    market = market or {}
    end_date = resolve_end_date(event, market)
    outcome_prices = parse_number_list(_first_present(_iter_chain(OUTCOME_PRICE_FIELDS, event, market)))
    positive_prices = [price for price in outcome_prices if price > 0]
    hours_to_close = compute_hours_to_close(end_date, now) if end_date else None
    # Null exactly when hours_to_close is null.
    time_to_end = compute_time_to_end(end_date, now) if hours_to_close is not None else None

    return Candidate(
        question=resolve_question(event, market),
        end_date=end_date,
        hours_to_close=hours_to_close,
        time_to_end=time_to_end,
        resolution_state=resolve_resolution_state(event, market),
        url=resolve_market_url(event, market, web_url=web_url),
        event_url=resolve_event_url(event, web_url=web_url),
        tags=deduplicate_tags(extract_tags(*_iter_chain(TAG_FIELDS, event, market))),
        outcomes=parse_string_list(_first_present(_iter_chain(OUTCOME_FIELDS, event, market))),
        outcome_prices=outcome_prices,
        best_price=min(positive_prices) if positive_prices else None,
        volume=as_number(_first_present(_iter_chain(VOLUME_FIELDS, event, market))),
        one_day_price_change=as_number(
            _first_present(_iter_chain(ONE_DAY_CHANGE_FIELDS, event, market))
        ),
        one_week_price_change=as_number(
            _first_present(_iter_chain(ONE_WEEK_CHANGE_FIELDS, event, market))
        ),
        one_month_price_change=as_number(
            _first_present(_iter_chain(ONE_MONTH_CHANGE_FIELDS, event, market))
        ),
    )


def normalize_event(
    raw_event: Mapping[str, Any],
    now: datetime,
    *,
    web_url: str = POLYMARKET_WEB_URL,
) -> list[Candidate]:
    """Expand a raw event into one candidate per nested market.

    Events without nested markets produce a single candidate built from the
    event-level fields.
    """
    event = raw_event if isinstance(raw_event, Mapping) else {}
    now = _to_utc(now)
    markets = _nested_markets(event)
    if not markets:
        return [normalize_market(event, None, now, web_url=web_url)]
    return [normalize_market(event, market, now, web_url=web_url) for market in markets]


def normalize_events(
    raw_events: Iterable[Any],
    now: datetime,
    *,
    web_url: str = POLYMARKET_WEB_URL,
) -> list[Candidate]:
    candidates: list[Candidate] = []
    for index, raw_event in enumerate(raw_events):
        if not isinstance(raw_event, Mapping):
            logger.warning("Skipping non-object event at index {}", index)
            continue
        candidates.extend(normalize_event(raw_event, now, web_url=web_url))
    return candidates
