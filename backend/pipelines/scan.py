from __future__ import annotations

from typing import Any, Iterable

from loguru import logger

from app.domain import Candidate
from ingestion.normalize import POLYMARKET_WEB_URL, normalize_events

from .buckets import assemble
from .context import ScanContext
from .filters import apply_predicates


def run_scan(
    raw_events: Iterable[Any],
    context: ScanContext,
    *,
    web_url: str = POLYMARKET_WEB_URL,
) -> dict[str, list[Candidate]]:
    """Normalize, filter, score and bucket one fetched batch.

    The scan is a pure function of the batch and the context; it performs no
    I/O and never raises on malformed individual records.
    """
    variant = context.variant
    candidates = normalize_events(raw_events, context.now, web_url=web_url)
    eligible = apply_predicates(
        candidates, variant.predicates(context.effective_window_hours)
    )
    eligible.sort(key=variant.tie_break, reverse=True)

    buckets = assemble(
        eligible,
        scorer=variant.scorer,
        categorize=variant.categorize,
        categories=variant.categories,
        capacity=context.capacity,
    )
    logger.debug(
        "Scan {} kept {} of {} candidates: {}",
        variant.name,
        len(eligible),
        len(candidates),
        {key: len(items) for key, items in buckets.items()},
    )
    return buckets
