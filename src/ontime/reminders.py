"""Reminder planning — which notifications the delivery layer should schedule for a day."""

import logging
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from enum import Enum

from ontime.models import DaySchedule, NotificationSound, PrayerName, Settings

LOGGER = logging.getLogger(__name__)

_FRIDAY = 4


class ReminderKind(str, Enum):
    BEFORE = "before"
    AT_TIME = "at_time"
    JUMUAH = "jumuah"


@dataclass(frozen=True)
class Reminder:
    prayer: PrayerName
    kind: ReminderKind
    at: datetime
    sound: NotificationSound
    minutes_before: int = 0


def _parse_hhmm(value: str) -> time:
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def plan_reminders(
    schedule: DaySchedule, settings: Settings, now: datetime
) -> list[Reminder]:
    """Future reminders for the schedule's day, ordered by time.

    Args:
        schedule: The day's built schedule.
        settings: Notification and Jumu'ah configuration.
        now: Reminders at or before this instant are dropped.

    Returns:
        Reminders sorted by firing time. Empty when notifications are off.
    """
    notifications = settings.notifications
    if not notifications.enabled:
        return []

    reminders: list[Reminder] = []
    for name, config in notifications.prayers.items():
        if not config.enabled:
            continue
        prayer_time = schedule.time_of(name)
        if config.reminder_minutes > 0:
            reminders.append(
                Reminder(
                    prayer=name,
                    kind=ReminderKind.BEFORE,
                    at=prayer_time - timedelta(minutes=config.reminder_minutes),
                    sound=config.sound,
                    minutes_before=config.reminder_minutes,
                )
            )
        if config.at_prayer_time:
            reminders.append(
                Reminder(prayer=name, kind=ReminderKind.AT_TIME, at=prayer_time, sound=config.sound)
            )

    jumuah = settings.jumuah
    if jumuah.enabled and schedule.day.weekday() == _FRIDAY:
        dhuhr = schedule.time_of(PrayerName.DHUHR)
        for slot in jumuah.times:
            try:
                khutbah_time = _parse_hhmm(slot.khutbah)
            except ValueError:
                LOGGER.warning("Skipping malformed khutbah time %r", slot.khutbah)
                continue
            # Same calendar day and UTC offset as Dhuhr
            khutbah = dhuhr.replace(
                hour=khutbah_time.hour, minute=khutbah_time.minute, second=0, microsecond=0
            )
            reminders.append(
                Reminder(
                    prayer=PrayerName.DHUHR,
                    kind=ReminderKind.JUMUAH,
                    at=khutbah - timedelta(minutes=jumuah.reminder_minutes),
                    sound=notifications.default_sound,
                    minutes_before=jumuah.reminder_minutes,
                )
            )

    return sorted((r for r in reminders if r.at > now), key=lambda r: r.at)
