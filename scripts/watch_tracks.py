#!/usr/bin/env python3
"""Watch the live air and sea picture from the terminal.

Starts the polling and frame loops and periodically prints every tracked
entity with its reported and displayed positions.

Usage
-----
Set environment variables and run::

    export SAGA_BARENTSWATCH_CLIENT_ID="you@example.com:client"
    export SAGA_BARENTSWATCH_CLIENT_SECRET="secret"
    python scripts/watch_tracks.py

OpenSky works anonymously; BarentsWatch is skipped without credentials.

Options::

    --bbox S,W,N,E       Override the coverage area
    --print-every SEC    Seconds between table dumps (default: 5)
    --once               Poll every feed once, print, and exit
    --json               Print machine-readable JSON
    --no-opensky         Disable the air picture
    --no-barentswatch    Disable the sea picture
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pysaga import BoundingBox, Entity, Orchestrator, SagaConfig, SagaError, unproject  # noqa: E402

# ── helpers ──────────────────────────────────────────────────


def _entity_row(entity: Entity) -> dict[str, Any]:
    track = entity.latest_track
    shown_lat, shown_lon = unproject(entity.displayed)
    return {
        "id": entity.id,
        "category": str(track.category),
        "feed": track.feed,
        "callsign": track.callsign,
        "country": track.country,
        "latitude": round(track.latitude, 5),
        "longitude": round(track.longitude, 5),
        "displayed_latitude": round(shown_lat, 5),
        "displayed_longitude": round(shown_lon, 5),
        "heading": round(track.heading, 1),
        "altitude": round(track.altitude, 1),
        "speed": round(track.speed, 1),
        "gap_m": round(entity.gap, 1),
    }


def _print_table(orchestrator: Orchestrator) -> None:
    entities = sorted(orchestrator.store.snapshot(), key=lambda e: (str(e.category), e.id))
    line = "=" * 96
    print(f"\n{line}")
    for status in orchestrator.feed_status():
        print(
            f"  {status.name:<13} polls={status.polls:<5} failures={status.failures:<4} "
            f"last={status.last_track_count}"
        )
    print(line)
    print(f"  {'id':<10} {'cat':<4} {'callsign':<20} {'lat':>9} {'lon':>10} {'hdg':>6} {'alt':>8} {'gap m':>8}")
    for entity in entities:
        row = _entity_row(entity)
        print(
            f"  {row['id']:<10} {row['category']:<4} {row['callsign'][:20]:<20} "
            f"{row['latitude']:>9.4f} {row['longitude']:>10.4f} {row['heading']:>6.1f} "
            f"{row['altitude']:>8.0f} {row['gap_m']:>8.1f}"
        )
    print(f"  {len(entities)} entities")


def _print_json(orchestrator: Orchestrator) -> None:
    payload = {
        "feeds": [dataclasses.asdict(status) for status in orchestrator.feed_status()],
        "entities": [_entity_row(entity) for entity in orchestrator.store.snapshot()],
    }
    print(json.dumps(payload, indent=2, ensure_ascii=False))


async def main() -> None:
    parser = argparse.ArgumentParser(
        description="Print the fused air and sea picture pysaga maintains.",
    )
    parser.add_argument("--bbox", help="Coverage area as south,west,north,east")
    parser.add_argument("--print-every", type=float, default=5.0, help="Seconds between table dumps")
    parser.add_argument("--once", action="store_true", help="Poll every feed once, print, and exit")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--no-opensky", action="store_true", help="Disable the OpenSky air picture")
    parser.add_argument("--no-barentswatch", action="store_true", help="Disable the BarentsWatch sea picture")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    overrides: dict[str, Any] = {}
    if args.no_opensky:
        overrides["opensky_enabled"] = False
    if args.no_barentswatch:
        overrides["barentswatch_enabled"] = False
    try:
        if args.bbox:
            overrides["bounding_box"] = BoundingBox.parse(args.bbox)
        config = SagaConfig.from_env(**overrides)
    except SagaError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        raise SystemExit(2) from exc

    show = _print_json if args.json_mode else _print_table

    async with Orchestrator(config) as orchestrator:
        if not orchestrator.feeds:
            print("No feeds enabled", file=sys.stderr)
            return
        if args.once:
            await orchestrator.stop()
            for feed in orchestrator.feeds:
                await orchestrator.poll_feed(feed.name)
            show(orchestrator)
            return
        while True:
            await asyncio.sleep(args.print_every)
            show(orchestrator)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
