"""Command-line load planning: manifest in, plan files out."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import time
from pathlib import Path
from typing import Optional, Sequence

from loadplanner.config import ConfigError, get_vehicle, load_settings, load_unit_catalog
from loadplanner.monitoring.axles import calculate_axle_loads, format_axle_report
from loadplanner.monitoring.metrics import (
    PlanMetrics,
    export_to_csv,
    export_to_json,
    print_summary,
)
from loadplanner.monitoring.telegram_notifier import (
    format_error,
    format_plan_summary,
    format_unpacked,
    send_telegram,
)
from loadplanner.runner.manifest import load_manifest
from loadplanner.runner.planner import LoadPlanner


logger = logging.getLogger(__name__)

DEFAULT_VEHICLE = "standard"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="loadplanner-run",
        description="Plan the load of a vehicle from a cargo manifest",
    )
    parser.add_argument("manifest", type=Path, help="Manifest YAML file")
    parser.add_argument(
        "--vehicle",
        default=None,
        help=f"Vehicle name (default: manifest 'vehicle' or {DEFAULT_VEHICLE})",
    )
    parser.add_argument("--vehicles", type=Path, default=None, help="Vehicle catalog YAML")
    parser.add_argument("--units", type=Path, default=None, help="Unit catalog YAML")
    parser.add_argument("--settings", type=Path, default=None, help="Packer settings YAML")
    parser.add_argument(
        "--results-dir",
        type=Path,
        default=Path("results"),
        help="Directory for the plan JSON/CSV (default: results)",
    )
    parser.add_argument(
        "--telegram",
        action="store_true",
        help="Send the plan summary to Telegram (TELEGRAM_BOT_TOKEN / TELEGRAM_CHAT_ID)",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    return parser


async def run(args: argparse.Namespace) -> int:
    """
    Plan one manifest and write the results.

    Returns:
        Process exit code: 0 when everything was loaded, 1 when items were
        left outside, 2 on configuration errors.
    """
    try:
        catalog = load_unit_catalog(args.units)
        manifest = load_manifest(args.manifest, catalog=catalog)
        vehicle_name = args.vehicle or manifest.vehicle or DEFAULT_VEHICLE
        container = get_vehicle(vehicle_name, args.vehicles)
        settings = load_settings(args.settings)
    except ConfigError as exc:
        print(f"error: {exc}", file=sys.stderr)
        if args.telegram:
            await send_telegram(format_error("ConfigError", str(exc), {"manifest": args.manifest}))
        return 2

    planner = LoadPlanner(container, settings)
    started = time.perf_counter()
    result = planner.pack(manifest.items)
    logger.info("planned %s in %.3fs", manifest.name, time.perf_counter() - started)

    metrics = PlanMetrics.from_plan(manifest.items, result, container, plan_name=manifest.name)
    print(print_summary(metrics))
    axles = calculate_axle_loads(result.placed, container, settings.section_gap)
    if axles is not None:
        print(format_axle_report(axles))

    results_dir = Path(args.results_dir)
    json_path = results_dir / f"{manifest.name}.json"
    csv_path = results_dir / f"{manifest.name}_items.csv"
    export_to_json(metrics, json_path, result=result, axles=axles)
    export_to_csv(result, csv_path)
    print(f"✓ Saved plan to {json_path} and {csv_path}")

    if args.telegram:
        sent = await send_telegram(format_plan_summary(metrics))
        if sent and result.unpacked:
            await send_telegram(format_unpacked([item.name or item.type for item in result.unpacked]))
        if not sent:
            print("Telegram notification not sent", file=sys.stderr)

    return 0 if result.success else 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
