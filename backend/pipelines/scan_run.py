from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from loguru import logger

from app.core.config import Settings, get_settings
from app.schemas import ScanPayload, build_payload
from ingestion.client import PolymarketClient
from ingestion.errors import PolymarketServiceError
from ingestion.service import fetch_window_events, load_events_file, parse_datetime, utc_now

from .context import ScanContext
from .registry import OPPORTUNITIES, VARIANT_NAMES, get_variant
from .scan import run_scan


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run one Polymarket scan and print the buckets")
    parser.add_argument(
        "--variant",
        choices=VARIANT_NAMES,
        default=OPPORTUNITIES,
        help="Scan flavour to run",
    )
    parser.add_argument(
        "--window-hours",
        type=float,
        default=None,
        help="Override the closing window (defaults to the variant setting)",
    )
    parser.add_argument(
        "--capacity",
        type=int,
        default=None,
        help="Maximum markets per category (defaults to BUCKET_CAPACITY)",
    )
    parser.add_argument(
        "--input",
        type=Path,
        default=None,
        help="Read events from a saved JSON response instead of calling the API",
    )
    parser.add_argument(
        "--now",
        default=None,
        help="Evaluation instant as ISO-8601 (defaults to the current UTC time)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the JSON payload here instead of stdout",
    )
    return parser.parse_args(argv)


def run(args: argparse.Namespace, settings: Settings | None = None) -> ScanPayload:
    settings = settings or get_settings()
    now = utc_now()
    if args.now:
        parsed_now = parse_datetime(args.now)
        if parsed_now is None:
            raise ValueError(f"--now must be an ISO-8601 timestamp, got {args.now!r}")
        now = parsed_now

    if args.window_hours is not None and args.window_hours <= 0:
        raise ValueError("--window-hours must be positive")
    if args.capacity is not None and args.capacity < 1:
        raise ValueError("--capacity must be at least 1")

    context = ScanContext(
        variant=get_variant(args.variant, settings),
        now=now,
        window_hours=args.window_hours,
        capacity=args.capacity or settings.bucket_capacity,
    )

    if args.input:
        raw_events = load_events_file(args.input)
    else:
        with PolymarketClient(settings=settings) as client:
            raw_events = fetch_window_events(
                client, now=now, window_hours=context.effective_window_hours
            )

    payload = build_payload(run_scan(raw_events, context, web_url=settings.polymarket_web_url))
    for category, markets in payload.items():
        logger.info("{} {}: {} markets", args.variant, category, len(markets))
    return payload


def _serialize(payload: ScanPayload) -> dict[str, list[dict[str, Any]]]:
    return {
        category: [market.model_dump(by_alias=True) for market in markets]
        for category, markets in payload.items()
    }


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        payload = run(args)
    except PolymarketServiceError as exc:
        logger.error("Scan failed: {} (retryable={})", exc.message, exc.retryable)
        return 1
    except ValueError as exc:
        logger.error("Invalid arguments: {}", exc)
        return 2

    document = json.dumps(_serialize(payload), indent=2)
    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(document + "\n", encoding="utf-8")
        logger.info("Wrote scan payload to {}", args.output)
    else:
        sys.stdout.write(document + "\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
