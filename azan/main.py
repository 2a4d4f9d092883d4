import argparse
import json
import logging
import sys
from typing import List, Optional

from azan.core.app import AzanApp
from azan.prayer.models import PRAYER_NAMES, PrayerDay


def setup_basic_logging():
    """Setup basic stdout logging before config is loaded"""
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
        ))
        root_logger.addHandler(handler)
        root_logger.setLevel(logging.INFO)


def _print_day(day: Optional[PrayerDay]) -> None:
    if day is None:
        print("No prayer times cached for today. Run `azan refresh` after `azan set-location`.")
        return
    print(f"{day.date.isoformat()} ({day.calculation_method})")
    for name in PRAYER_NAMES:
        print(f"  {name.capitalize():<8} {getattr(day, name)}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="azan", description="Offline prayer time cache")
    parser.add_argument("--config", help="Path to config file (default: ~/.azan/config.yaml)")
    sub = parser.add_subparsers(dest="command", required=True)

    refresh = sub.add_parser("refresh", help="Recalculate prayer times if stale")
    refresh.add_argument("--force", action="store_true", help="Recalculate even if the cache is fresh")

    sub.add_parser("today", help="Show today's prayer times")

    list_cmd = sub.add_parser("list", help="List all cached days")
    list_cmd.add_argument("--json", action="store_true", help="Print as JSON")

    sub.add_parser("status", help="Show cache range and whether a refresh is due")
    sub.add_parser("countries", help="List countries with a known calculation method")

    location = sub.add_parser("set-location", help="Save coordinates and recalculate")
    location.add_argument("latitude", type=float)
    location.add_argument("longitude", type=float)
    location.add_argument("--country", help="Country name (detected from coordinates if omitted)")

    country = sub.add_parser("set-country", help="Change the country used to pick the calculation method")
    country.add_argument("country")

    schedule = sub.add_parser("schedule", help="Schedule periodic background refresh")
    schedule.add_argument("--replace", action="store_true", help="Replace an existing schedule")
    sub.add_parser("cancel", help="Cancel periodic background refresh")
    sub.add_parser("reset", help="Delete all cached prayer times")

    serve = sub.add_parser("serve", help="Run the scheduler (and API if enabled) until interrupted")
    serve.add_argument("--api", action="store_true", default=None, help="Serve the HTTP API")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    setup_basic_logging()
    args = build_parser().parse_args(argv)

    app = AzanApp(config_path=args.config, watch_config=args.command == "serve")
    if args.command == "serve":
        app.run(serve_api=args.api)
        return 0

    try:
        if args.command in ("refresh", "set-location", "set-country"):
            if args.command == "refresh":
                outcome = app.refresh(force=args.force)
            elif args.command == "set-location":
                outcome = app.set_location(args.latitude, args.longitude, args.country)
            else:
                outcome = app.set_country(args.country)
            print(outcome.message)
            return 0 if outcome.ok else 1
        if args.command == "today":
            _print_day(app.get_today_record())
        elif args.command == "list":
            days = app.get_all_records()
            if args.json:
                print(json.dumps([d.to_dict() for d in days], indent=2))
            else:
                for day in days:
                    print(day.date.isoformat(), " ".join(day.times().values()), day.calculation_method)
        elif args.command == "status":
            store = app.store
            print(f"Cached days: {store.count()} ({store.oldest_date()} to {store.newest_date()})")
            print(f"Refresh due: {'yes' if app.should_refresh() else 'no'}")
            print(f"Periodic refresh scheduled: {'yes' if app.scheduler.is_scheduled() else 'no'}")
        elif args.command == "countries":
            for name in app.resolver.available_countries():
                print(name)
        elif args.command == "schedule":
            created = app.schedule_periodic_refresh(replace=args.replace, arm=False)
            print("Scheduled periodic refresh; it runs while `azan serve` is running." if created else "Periodic refresh already scheduled.")
        elif args.command == "cancel":
            print("Cancelled periodic refresh." if app.cancel_periodic_refresh() else "Nothing was scheduled.")
        elif args.command == "reset":
            print(f"Removed {app.reset()} cached days.")
        return 0
    finally:
        app.stop()


if __name__ == "__main__":
    sys.exit(main())
