#!/usr/bin/env python3
"""
Prayer Time console widget
Follows the day's prayer windows for a location and prints:
  - the active window (obligatory, recommended or discouraged)
  - the next window with its Arabic name
  - a countdown to it
Desktop notifications fire when a window begins and 10 and 5 minutes
before each obligatory prayer.
"""

import argparse
import logging
import sys
import time

from prayerwindows.errors import PrayerTimeError
from prayerwindows.location import (
    DEFAULT_LOCATION,
    Location,
    clear_manual_location,
    get_location,
    load_manual_location,
    save_manual_location,
)
from prayerwindows.notifier import ReminderTracker, notify_window_started
from prayerwindows.prayer_api import AladhanProvider, FixedTimesProvider
from prayerwindows.scheduler import REFRESH_SECONDS, PrayerScheduler

logger = logging.getLogger("prayertime")


def setup_basic_logging(level=logging.INFO):
    """Log to stdout unless the root logger is already configured."""
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))
        root_logger.addHandler(handler)
        root_logger.setLevel(level)


def format_status(snapshot) -> str:
    """One console line for a scheduler snapshot."""
    if snapshot.current_label is None:
        line = "No active prayer window"
    else:
        line = (
            f"{snapshot.current_label} ({snapshot.current_category})  │  "
            f"next: {snapshot.next_label} {snapshot.next_arabic_label}  │  "
            f"{snapshot.time_remaining_formatted}"
        )
    if snapshot.last_error:
        line += f"  │  ⚠ {snapshot.last_error}"
    return line


def resolve_location(args):
    """Command line coordinates, then the saved manual location, then the default."""
    if args.lat is not None and args.lon is not None:
        location = Location(args.lat, args.lon, args.label or f"{args.lat}, {args.lon}")
        if args.save:
            save_manual_location(location)
            logger.info(f"Saved manual location {location.label}")
        return location
    return load_manual_location() or DEFAULT_LOCATION


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Prayer window countdown")
    parser.add_argument("--lat", type=float, help="Latitude")
    parser.add_argument("--lon", type=float, help="Longitude")
    parser.add_argument("--label", help="Name shown for the location")
    parser.add_argument("--save", action="store_true", help="Remember --lat/--lon as the manual location")
    parser.add_argument("--forget", action="store_true", help="Clear the saved manual location")
    parser.add_argument("--offline", action="store_true", help="Use the built-in timetable instead of the API")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_basic_logging(logging.DEBUG if args.debug else logging.INFO)

    if args.forget:
        clear_manual_location()
        logger.info("Cleared the saved manual location")

    location = resolve_location(args)
    provider = FixedTimesProvider() if args.offline else AladhanProvider()
    reminders = ReminderTracker()
    scheduler = PrayerScheduler(
        provider,
        on_transition=lambda previous, current: notify_window_started(current),
    )

    try:
        scheduler.start(location)
    except PrayerTimeError as exc:
        logger.error(f"Could not load prayer times for {location.label}: {exc}")
        return 1
    if scheduler.using_default_location and not args.offline:
        scheduler.refresh_location(get_location)

    last_line = None
    try:
        while True:
            snapshot = scheduler.snapshot()
            reminders.check(scheduler.next_window(), scheduler.time_remaining())
            line = format_status(snapshot)
            if line != last_line:
                print(line, flush=True)
                last_line = line
            time.sleep(REFRESH_SECONDS)
    except KeyboardInterrupt:
        pass
    finally:
        scheduler.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
