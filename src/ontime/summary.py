"""Human-readable one-line summaries of each settings category."""

from datetime import datetime

from ontime.conventions import convention_label
from ontime.i18n import t
from ontime.location import Location
from ontime.models import PrayerName, Settings, TravelState
from ontime.tracker import Countdown
from ontime.travel import days_elapsed, is_shortened, rakah_count


def prayer_label(name: PrayerName, lang: str = "en") -> str:
    return t(name.value, lang)


def location_summary(location: Location) -> str:
    return location.city_name


def calculation_summary(settings: Settings) -> str:
    return convention_label(settings.calculation_method)


def jumuah_summary(settings: Settings, lang: str = "en") -> str:
    if not settings.jumuah.enabled:
        return t("summary_off", lang)
    return settings.jumuah.masjid_name or t("summary_enabled", lang)


def notifications_summary(settings: Settings, lang: str = "en") -> str:
    if not settings.notifications.enabled:
        return t("summary_off", lang)
    count = sum(1 for p in settings.notifications.prayers.values() if p.enabled)
    return t("summary_prayer_count", lang).format(count=count)


def travel_summary(settings: Settings, state: TravelState, lang: str = "en") -> str:
    if not settings.travel.enabled:
        return t("summary_off", lang)
    if state.is_traveling:
        return t("summary_traveling", lang)
    return t("summary_enabled", lang)


def travel_details(
    settings: Settings, state: TravelState, now: datetime, lang: str = "en"
) -> list[str]:
    """Detail lines for the travel card: distance, day counter, active Jama pairs."""
    lines: list[str] = []
    if state.distance_from_home_km is not None:
        lines.append(t("distance_from_home", lang).format(km=state.distance_from_home_km))
    travel = settings.travel
    if state.is_traveling and travel.max_travel_days > 0 and travel.travel_start_date:
        day = days_elapsed(travel.travel_start_date, now) + 1
        lines.append(t("travel_day", lang).format(day=day, max_days=travel.max_travel_days))
    if state.jama_dhuhr_asr:
        lines.append(t("jama_dhuhr_asr", lang))
    if state.jama_maghrib_isha:
        lines.append(t("jama_maghrib_isha", lang))
    return lines


def qasr_badge(name: PrayerName, state: TravelState, lang: str = "en") -> str | None:
    """Badge text for a shortened prayer, None when Qasr does not apply."""
    if not is_shortened(name, state):
        return None
    return t("qasr_badge", lang).format(rakahs=rakah_count(name, state))


def countdown_summary(name: PrayerName, countdown: Countdown, lang: str = "en") -> str:
    return t("next_prayer_in", lang).format(
        prayer=prayer_label(name, lang),
        hours=countdown.hours,
        minutes=countdown.minutes,
        seconds=countdown.seconds,
    )
