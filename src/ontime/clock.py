"""Live driver — one-second countdown tick and local-midnight schedule rebuild."""

import logging
import threading
from collections.abc import Callable
from datetime import date, datetime, time, timedelta
from typing import Protocol

from pytz import utc

from ontime.conventions import ParameterBundle
from ontime.ephemeris import ScheduleUnavailable, compute_day_times
from ontime.location import UnknownTimezone, local_timezone
from ontime.models import Coordinates, DaySchedule
from ontime.schedule import EphemerisFn, build_schedule
from ontime.tracker import PrayerStatus, track

LOGGER = logging.getLogger(__name__)

TICK_SECONDS = 1.0
_CACHE_DAYS = 3


class Timer(Protocol):
    def start(self) -> None: ...

    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], None]], Timer]


def _thread_timer(interval: float, callback: Callable[[], None]) -> Timer:
    timer = threading.Timer(interval, callback)
    timer.daemon = True
    return timer


def seconds_until_midnight(now: datetime) -> float:
    """Real seconds until the next local midnight in now's zone.

    The difference is taken in UTC, so a DST day is 23 or 25 hours long.
    """
    tz = now.tzinfo
    naive_midnight = datetime.combine(now.date() + timedelta(days=1), time())
    if hasattr(tz, "localize"):
        midnight = tz.localize(naive_midnight)
    else:
        midnight = naive_midnight.replace(tzinfo=tz)
    return (midnight.astimezone(utc) - now.astimezone(utc)).total_seconds()


class PrayerClock:
    """Drives the tracker for one location and convention.

    Owns two cancelable timers (the countdown tick and the midnight rebuild)
    that are always torn down together by ``stop()`` or on leaving a ``with``
    block. Schedules are memoized on (coordinates, day, bundle).
    """

    def __init__(
        self,
        coordinates: Coordinates,
        bundle: ParameterBundle,
        on_tick: Callable[[PrayerStatus], None],
        *,
        compute: EphemerisFn = compute_day_times,
        now: Callable[[], datetime] | None = None,
        timer_factory: TimerFactory = _thread_timer,
    ) -> None:
        self._coordinates = coordinates
        self._bundle = bundle
        self._on_tick = on_tick
        self._compute = compute
        self._now = now or self._local_now
        self._timer_factory = timer_factory
        self._cache: dict[tuple[Coordinates, date, ParameterBundle], DaySchedule] = {}
        self._schedule: DaySchedule | None = None
        self._tick_timer: Timer | None = None
        self._midnight_timer: Timer | None = None
        self._running = False
        self._lock = threading.RLock()

    def _local_now(self) -> datetime:
        return datetime.now(local_timezone(self._coordinates))

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def schedule(self) -> DaySchedule:
        with self._lock:
            if self._schedule is None:
                self._schedule = self.schedule_for(self._now().date())
            return self._schedule

    def schedule_for(self, day: date) -> DaySchedule:
        """Memoized schedule build for the current inputs."""
        key = (self._coordinates, day, self._bundle)
        with self._lock:
            cached = self._cache.get(key)
            if cached is not None:
                return cached
            LOGGER.debug("Building schedule for %s at %s", day, self._coordinates)
            schedule = build_schedule(self._coordinates, day, self._bundle, self._compute)
            oldest = day - timedelta(days=_CACHE_DAYS)
            self._cache = {k: v for k, v in self._cache.items() if k[1] >= oldest}
            self._cache[key] = schedule
            return schedule

    def update_inputs(
        self,
        coordinates: Coordinates | None = None,
        bundle: ParameterBundle | None = None,
    ) -> None:
        """Swap location or convention; the next status call rebuilds."""
        with self._lock:
            if coordinates is not None:
                self._coordinates = coordinates
            if bundle is not None:
                self._bundle = bundle
            self._schedule = None

    def rebuild(self) -> DaySchedule:
        with self._lock:
            self._schedule = self.schedule_for(self._now().date())
            return self._schedule

    def status(self) -> PrayerStatus:
        """Track now against the current schedule, rebuilding once if signalled."""
        with self._lock:
            now = self._now()
            schedule = self.schedule
            status = track(schedule, now, lambda: self.schedule_for(schedule.day + timedelta(days=1)))
            if status.needs_rebuild:
                schedule = self.rebuild()
                status = track(
                    schedule, now, lambda: self.schedule_for(schedule.day + timedelta(days=1))
                )
            return status

    def tick(self) -> None:
        try:
            status = self.status()
        except (ScheduleUnavailable, UnknownTimezone) as e:
            LOGGER.error("Cannot track prayer times: %s", e)
        else:
            self._on_tick(status)
        with self._lock:
            if self._running:
                self._tick_timer = self._timer_factory(TICK_SECONDS, self.tick)
                self._tick_timer.start()

    def _on_midnight(self) -> None:
        LOGGER.debug("Local midnight reached, rebuilding schedule")
        try:
            self.rebuild()
        except (ScheduleUnavailable, UnknownTimezone) as e:
            LOGGER.error("Cannot rebuild prayer schedule: %s", e)
        with self._lock:
            if self._running:
                self._arm_midnight()

    def _arm_midnight(self) -> None:
        delay = seconds_until_midnight(self._now())
        self._midnight_timer = self._timer_factory(delay, self._on_midnight)
        self._midnight_timer.start()

    def start(self) -> None:
        with self._lock:
            if self._running:
                return
            self._running = True
            self._arm_midnight()
        LOGGER.debug("Prayer clock started")
        self.tick()

    def stop(self) -> None:
        with self._lock:
            self._running = False
            for timer in (self._tick_timer, self._midnight_timer):
                if timer is not None:
                    timer.cancel()
            self._tick_timer = None
            self._midnight_timer = None
        LOGGER.debug("Prayer clock stopped")

    def __enter__(self) -> "PrayerClock":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()
