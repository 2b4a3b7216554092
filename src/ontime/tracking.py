"""Prayer log — on-time/missed records per prayer per day, kept for 30 days."""

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum

from pytz import utc

from ontime.models import PrayerName
from ontime.persistence import KeyValueStore, PersistenceError

LOGGER = logging.getLogger(__name__)

TRACKING_KEY = "ontime_prayer_tracking"
RETENTION_DAYS = 30


class PrayerStatusMark(str, Enum):
    ONTIME = "ontime"
    MISSED = "missed"
    UNTRACKED = "untracked"


_PRAYER_VALUES = frozenset(p.value for p in PrayerName)
_STATUS_VALUES = frozenset(
    s.value for s in PrayerStatusMark if s != PrayerStatusMark.UNTRACKED
)


@dataclass(frozen=True)
class PrayerRecord:
    date: str  # "YYYY-MM-DD"
    prayer: str  # PrayerName value
    status: str  # PrayerStatusMark value
    tracked_at: str  # ISO timestamp (UTC)


@dataclass(frozen=True)
class DailyRecord:
    date: str
    prayers: dict[PrayerName, PrayerStatusMark]


@dataclass(frozen=True)
class PrayerStats:
    total_tracked: int
    on_time: int
    missed: int
    percentage: int  # Rounded on-time share, 0 when nothing is tracked


class PrayerLog:
    """Prayer tracking records stored as one JSON document in a key-value store."""

    def __init__(
        self,
        store: KeyValueStore,
        now: Callable[[], datetime] = lambda: datetime.now(utc),
    ) -> None:
        self._store = store
        self._now = now

    def _load(self) -> list[PrayerRecord]:
        try:
            raw = self._store.get(TRACKING_KEY)
        except PersistenceError as e:
            LOGGER.error("Failed to load tracking data: %s", e)
            return []
        if raw is None:
            return []
        try:
            data = json.loads(raw)
            entries = data.get("records", [])
            records = [
                PrayerRecord(
                    date=r["date"],
                    prayer=r["prayer"],
                    status=r["status"],
                    tracked_at=r.get("trackedAt", ""),
                )
                for r in entries
            ]
        except (json.JSONDecodeError, AttributeError, KeyError, TypeError) as e:
            LOGGER.error("Discarding unreadable tracking data: %s", e)
            return []
        return [r for r in records if self._is_known(r)]

    @staticmethod
    def _is_known(record: PrayerRecord) -> bool:
        if (
            isinstance(record.date, str)
            and isinstance(record.prayer, str)
            and isinstance(record.status, str)
            and record.prayer in _PRAYER_VALUES
            and record.status in _STATUS_VALUES
        ):
            return True
        LOGGER.warning(
            "Skipping tracking record %s/%s with status %r",
            record.date,
            record.prayer,
            record.status,
        )
        return False

    def _save(self, records: list[PrayerRecord]) -> None:
        payload = {
            "records": [
                {
                    "date": r.date,
                    "prayer": r.prayer,
                    "status": r.status,
                    "trackedAt": r.tracked_at,
                }
                for r in records
            ]
        }
        try:
            self._store.set(TRACKING_KEY, json.dumps(payload))
        except PersistenceError as e:
            LOGGER.error("Failed to save tracking data: %s", e)

    def _today(self) -> date:
        return self._now().date()

    def track(
        self, prayer: PrayerName, status: PrayerStatusMark, day: date | None = None
    ) -> None:
        """Record a prayer's status, replacing any earlier mark for that day.

        ``UNTRACKED`` removes the record. Records older than 30 days are pruned.
        """
        day_key = (day or self._today()).isoformat()
        records = [
            r
            for r in self._load()
            if not (r.date == day_key and r.prayer == prayer.value)
        ]
        if status != PrayerStatusMark.UNTRACKED:
            records.append(
                PrayerRecord(
                    date=day_key,
                    prayer=prayer.value,
                    status=status.value,
                    tracked_at=self._now().isoformat(),
                )
            )
        cutoff = (self._today() - timedelta(days=RETENTION_DAYS)).isoformat()
        self._save([r for r in records if r.date >= cutoff])

    def status_for(self, prayer: PrayerName, day: date | None = None) -> PrayerStatusMark:
        day_key = (day or self._today()).isoformat()
        for r in self._load():
            if r.date == day_key and r.prayer == prayer.value:
                return PrayerStatusMark(r.status)
        return PrayerStatusMark.UNTRACKED

    def _daily(self, records: list[PrayerRecord], day_key: str) -> DailyRecord:
        prayers = {
            PrayerName(r.prayer): PrayerStatusMark(r.status)
            for r in records
            if r.date == day_key
        }
        return DailyRecord(date=day_key, prayers=prayers)

    def daily_record(self, day: date | None = None) -> DailyRecord:
        return self._daily(self._load(), (day or self._today()).isoformat())

    def recent_records(self, days: int = 7) -> list[DailyRecord]:
        """One DailyRecord per day, most recent first."""
        records = self._load()
        today = self._today()
        return [
            self._daily(records, (today - timedelta(days=i)).isoformat())
            for i in range(days)
        ]

    def stats(self, days: int = 7) -> PrayerStats:
        cutoff = (self._today() - timedelta(days=days)).isoformat()
        recent = [r for r in self._load() if r.date >= cutoff]
        on_time = sum(1 for r in recent if r.status == PrayerStatusMark.ONTIME.value)
        missed = sum(1 for r in recent if r.status == PrayerStatusMark.MISSED.value)
        total = on_time + missed
        return PrayerStats(
            total_tracked=total,
            on_time=on_time,
            missed=missed,
            percentage=round(on_time / total * 100) if total else 0,
        )
