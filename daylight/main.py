#!/usr/bin/env python3
"""
Daylight cross-venue spread monitor

Commands:
- scan            Run one scan cycle and print the results
- monitor         Scan now, then every check_interval (standalone monitor)
- serve           Run the web view (optionally with the monitor in-process)
- config          Show or change the persisted settings
- export-history  Write the price history to CSV

Supported venues:
- Kalshi (venue A)
- Polymarket (venue B)
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from . import config as cfg
from .config import ArbConfig, load_config, save_config
from .engine import ScanReport, create_engine
from .history import PriceHistoryStore
from .storage import JsonStore, export_price_history
from .utils.timeutil import setup_logging

logger = logging.getLogger(__name__)


def print_summary(report: ScanReport, limit: int = 10):
    """Print summary of one scan cycle."""
    print("\n" + "=" * 80)
    print("DAYLIGHT SCAN RESULTS")
    print("=" * 80)
    print(f"\nKalshi markets: {len(report.instruments_a)} | Polymarket markets: {len(report.instruments_b)}")

    if report.inconclusive:
        print("\nOne venue returned no data; opportunities left unchanged.")

    candidates = report.display_candidates
    if not candidates:
        print("\nNo spread opportunities found.")
    else:
        print(f"\nFound {len(candidates)} spread opportunities!\n")

        for i, candidate in enumerate(candidates[:limit], 1):
            print(f"\n--- Opportunity #{i} ---")
            print(f"Spread: {candidate.spread}c | {candidate.direction.describe()}")
            print(f"Match Score: {candidate.similarity:.2f}")
            print(f"  Kalshi: {candidate.title_a[:60]} ({candidate.price_a}c)")
            print(f"  Poly:   {candidate.title_b[:60]} ({candidate.price_b}c)")

        if len(candidates) > limit:
            print(f"\n... and {len(candidates) - limit} more opportunities")

    if report.movers:
        print("\nTop movers:")
        for mover in report.movers:
            sign = "+" if mover.delta > 0 else ""
            print(f"  {sign}{mover.delta}c  {mover.title[:60]} ({mover.yes_price}c)")

    print(f"\nOpened: {len(report.opened)} | Closed: {len(report.closed)} | Alerts: {len(report.alerts)}")
    print("\n" + "=" * 80)


def _parse_value(raw: str):
    """Decode a CLI value as JSON where possible ("5", "true", "0.5")."""
    try:
        return json.loads(raw)
    except ValueError:
        return raw


def cmd_scan(args) -> int:
    engine = create_engine(args.data_dir)
    report = asyncio.run(engine.run_cycle(display_min_spread=args.min_spread))
    print_summary(report)
    return 0


def cmd_monitor(args) -> int:
    engine = create_engine(args.data_dir)
    try:
        asyncio.run(engine.run_forever(max_cycles=args.cycles))
    except KeyboardInterrupt:
        logger.info("Monitor stopped")
    return 0


def cmd_serve(args) -> int:
    import uvicorn

    from .web_server import create_app

    app = create_app(create_engine(args.data_dir), run_monitor=args.monitor)
    uvicorn.run(app, host=args.host, port=args.port)
    return 0


def cmd_config(args) -> int:
    store = JsonStore(args.data_dir)
    current = load_config(store)

    if args.set:
        changes = {}
        for assignment in args.set:
            if "=" not in assignment:
                logger.error(f"Expected key=value, got: {assignment}")
                return 2
            key, raw = assignment.split("=", 1)
            changes[key.strip()] = _parse_value(raw.strip())
        try:
            current = current.replace(**changes)
        except (TypeError, ValueError) as e:
            logger.error(f"Invalid config: {e}")
            return 2
        save_config(store, current)
        logger.info(f"Config saved to {store.path_for(cfg.CONFIG_STORE)}")

    if args.reset:
        current = ArbConfig()
        save_config(store, current)

    print(json.dumps(current.to_dict(), indent=2))
    return 0


def cmd_export_history(args) -> int:
    store = JsonStore(args.data_dir)
    config = load_config(store)
    history = PriceHistoryStore(max_samples=config.max_history)
    history.load(store)
    path = export_price_history(history.to_frame(), args.output)
    print(path)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="daylight",
        description="Cross-venue prediction market spread monitor",
    )
    parser.add_argument("--data-dir", default=str(cfg.DATA_DIR), help="Directory for the JSON stores")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    parser.add_argument("--log-file", default=cfg.LOG_FILE, help="Log file ('' to disable)")

    subparsers = parser.add_subparsers(dest="command", required=True)

    scan = subparsers.add_parser("scan", help="Run one scan cycle")
    scan.add_argument("--min-spread", type=int, default=None, help="Spread filter for the printed list")
    scan.set_defaults(func=cmd_scan)

    monitor = subparsers.add_parser("monitor", help="Run the periodic monitor")
    monitor.add_argument("--cycles", type=int, default=None, help="Stop after N cycles")
    monitor.set_defaults(func=cmd_monitor)

    serve = subparsers.add_parser("serve", help="Run the web view")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--monitor", action="store_true", help="Also run the monitor in-process")
    serve.set_defaults(func=cmd_serve)

    config_cmd = subparsers.add_parser("config", help="Show or change settings")
    config_cmd.add_argument("--set", nargs="*", metavar="KEY=VALUE", help="e.g. min_spread=7 auto_alert=false")
    config_cmd.add_argument("--reset", action="store_true", help="Restore defaults")
    config_cmd.set_defaults(func=cmd_config)

    export = subparsers.add_parser("export-history", help="Write price history to CSV")
    export.add_argument("--output", default=str(cfg.DATA_DIR), help="CSV file or directory")
    export.set_defaults(func=cmd_export_history)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    level = getattr(logging, str(args.log_level).upper(), logging.INFO)
    setup_logging(level=level, log_file=args.log_file or None)

    try:
        return args.func(args)
    except OSError as e:
        logger.error(f"Fatal storage error: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
