from __future__ import annotations

import argparse
import json
import logging
from datetime import date, datetime, timezone
from pathlib import Path
from typing import List, Optional

from pokeguess.catalog import Catalog, PokeApiClient
from pokeguess.game import clamp_generation, daily_identifier, display_name, filter_suggestions
from pokeguess.settings import Settings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Guess the Pokémon from its silhouette")
    parser.add_argument("--settings", default=None, help="Path to settings JSON")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])

    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the web game")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=5001)
    serve.add_argument("--debug", action="store_true")

    daily = sub.add_parser("daily", help="Print the id of the daily puzzle")
    daily.add_argument("--generation", type=int, default=None, help="Generation limit (1-251)")
    daily.add_argument("--date", default=None, help="UTC date as YYYY-MM-DD (default: today)")

    suggest = sub.add_parser("suggest", help="List autocomplete suggestions for a partial name")
    suggest.add_argument("query")
    suggest.add_argument("--generation", type=int, default=None, help="Generation limit (1-251)")

    return parser


def _load_settings(path: Optional[str]) -> Settings:
    try:
        return Settings.load(Path(path) if path else None)
    except (OSError, ValueError) as exc:
        raise SystemExit(f"Could not load settings: {exc}")


def _day_millis(raw: Optional[str]) -> Optional[int]:
    if raw is None:
        return None
    try:
        day = date.fromisoformat(raw)
    except ValueError:
        raise SystemExit(f"Invalid --date '{raw}', expected YYYY-MM-DD")
    midnight = datetime(day.year, day.month, day.day, tzinfo=timezone.utc)
    return int(midnight.timestamp() * 1000)


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings = _load_settings(args.settings)

    if args.command == "serve":
        from pokeguess.app import create_app

        app = create_app(settings)
        app.run(host=args.host, port=args.port, debug=args.debug)
        return

    limit = clamp_generation(args.generation or settings.generation_limit())

    if args.command == "daily":
        identifier = daily_identifier(limit, _day_millis(args.date))
        print(json.dumps({"generation_limit": limit, "id": identifier}))
        return

    if args.command == "suggest":
        client = PokeApiClient(settings.api_base_url, settings.request_timeout)
        catalog = Catalog(client, settings.catalog_limit)
        if not catalog.load():
            raise SystemExit(catalog.message())
        for name in filter_suggestions(catalog.names, args.query, limit):
            print(display_name(name))
        return

    raise SystemExit(f"Unknown command: {args.command}")


if __name__ == "__main__":
    main()
