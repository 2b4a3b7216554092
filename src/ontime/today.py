"""CLI entry point for today's prayer schedule, travel status and next-prayer countdown.

Set ONTIME_LATITUDE / ONTIME_LONGITUDE (and optionally ONTIME_CITY) in .env, then run:
    uv run ontime-today [--lang ar] [--watch]
"""

import argparse
import logging
import sys
import threading
from collections.abc import Sequence
from datetime import datetime, timedelta

from dotenv import load_dotenv

from ontime.clock import PrayerClock
from ontime.config import LOG_FORMAT, load_config
from ontime.conventions import ParameterBundle, resolve
from ontime.ephemeris import ScheduleUnavailable, qibla_bearing
from ontime.location import Location, UnknownTimezone, local_timezone
from ontime.persistence import JsonFileStore
from ontime.reminders import ReminderKind, plan_reminders
from ontime.schedule import build_schedule, visible_prayers
from ontime.settings import SettingsStore
from ontime.summary import (
    countdown_summary,
    prayer_label,
    qasr_badge,
    travel_details,
    travel_summary,
)
from ontime.tracker import PrayerStatus, format_time, time_until, track
from ontime.travel import evaluate_travel

_KIND_LABELS = {
    ReminderKind.BEFORE: "reminder",
    ReminderKind.AT_TIME: "adhan",
    ReminderKind.JUMUAH: "jumu'ah",
}


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Today's prayer times")
    parser.add_argument("--lang", choices=("en", "ar"), default="en", help="Label language")
    parser.add_argument("--watch", action="store_true", help="Keep a live countdown running")
    return parser.parse_args(argv)


def _watch(location: Location, bundle: ParameterBundle, lang: str) -> None:
    """Print a live countdown until interrupted. Timers stop on exit."""
    tz = local_timezone(location.coordinates)

    def show(status: PrayerStatus) -> None:
        countdown = time_until(status.next_prayer_time, datetime.now(tz))
        print(f"\r{countdown_summary(status.next_prayer, countdown, lang)}   ", end="", flush=True)

    with PrayerClock(location.coordinates, bundle, show, now=lambda: datetime.now(tz)):
        try:
            threading.Event().wait()
        except KeyboardInterrupt:
            print()


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    load_dotenv()
    config = load_config()
    logging.basicConfig(level=config.log_level, format=LOG_FORMAT)
    lang = args.lang

    if config.location is None:
        print("Set ONTIME_LATITUDE and ONTIME_LONGITUDE to a valid location.", file=sys.stderr)
        return 2
    location = config.location

    settings = SettingsStore(JsonFileStore(config.settings_path)).load()
    bundle = resolve(settings.calculation_method, settings.asr_calculation)

    try:
        now = datetime.now(local_timezone(location.coordinates))
        schedule = build_schedule(location.coordinates, now.date(), bundle)
        status = track(
            schedule,
            now,
            lambda: build_schedule(location.coordinates, schedule.day + timedelta(days=1), bundle),
        )
    except (ScheduleUnavailable, UnknownTimezone) as e:
        print(f"Prayer times unavailable: {e}", file=sys.stderr)
        return 1

    travel_state = evaluate_travel(settings.travel, location.coordinates, now)

    print(f"{location.city_name}, {schedule.day:%A %d %B %Y}")
    for prayer in visible_prayers(schedule, settings.optional_prayers):
        marker = "▸" if prayer.name == status.current_prayer else " "
        badge = qasr_badge(prayer.name, travel_state, lang)
        line = f"{marker} {prayer_label(prayer.name, lang):<16} {format_time(prayer.time):>8}"
        print(f"{line}  {badge}" if badge else line)

    print()
    print(countdown_summary(status.next_prayer, time_until(status.next_prayer_time, now), lang))
    print(f"Travel: {travel_summary(settings, travel_state, lang)}")
    for detail in travel_details(settings, travel_state, now, lang):
        print(f"  {detail}")

    reminders = plan_reminders(schedule, settings, now)
    if reminders:
        print("Reminders:")
        for reminder in reminders:
            label = prayer_label(reminder.prayer, lang)
            print(f"  {format_time(reminder.at):>8}  {label} ({_KIND_LABELS[reminder.kind]})")
    print(f"Qibla: {qibla_bearing(location.coordinates):.1f}°")

    if args.watch:
        _watch(location, bundle, lang)
    return 0


if __name__ == "__main__":
    sys.exit(main())
