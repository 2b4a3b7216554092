from dataclasses import replace
from datetime import date, timedelta

from conftest import NEW_YORK, local
from ontime.i18n import t
from ontime.location import Location
from ontime.models import (
    CalculationConvention,
    JumuahSettings,
    PrayerName,
    QasrFlags,
    Settings,
    TravelConfig,
    TravelState,
)
from ontime.summary import (
    calculation_summary,
    countdown_summary,
    jumuah_summary,
    location_summary,
    notifications_summary,
    prayer_label,
    qasr_badge,
    travel_details,
    travel_summary,
)
from ontime.tracker import Countdown

NOW = local(date(2026, 3, 10), 12, 0)
TRAVELING = TravelState(
    is_traveling=True,
    distance_from_home_km=3935.7,
    is_auto_detected=True,
    qasr=QasrFlags(dhuhr=True, asr=True, isha=True),
    jama_dhuhr_asr=True,
)


def test_simple_summaries():
    settings = Settings()
    assert location_summary(Location(NEW_YORK, "New York")) == "New York"
    assert calculation_summary(settings) == "ISNA"
    assert calculation_summary(replace(settings, calculation_method=CalculationConvention.TURKEY)) == "Turkey"
    # Sunrise notification is off by default
    assert notifications_summary(settings) == "5 prayers"
    off = replace(settings, notifications=replace(settings.notifications, enabled=False))
    assert notifications_summary(off) == "Off"


def test_jumuah_summary():
    assert jumuah_summary(Settings()) == "Off"
    enabled = replace(Settings(), jumuah=JumuahSettings(enabled=True))
    assert jumuah_summary(enabled) == "Enabled"
    named = replace(Settings(), jumuah=JumuahSettings(enabled=True, masjid_name="Masjid An-Noor"))
    assert jumuah_summary(named) == "Masjid An-Noor"


def test_travel_summary():
    settings = Settings()
    assert travel_summary(settings, TRAVELING) == "Off"
    enabled = replace(settings, travel=TravelConfig(enabled=True))
    assert travel_summary(enabled, TravelState()) == "Enabled"
    assert travel_summary(enabled, TRAVELING) == "Traveling"


def test_travel_details():
    settings = replace(
        Settings(),
        travel=TravelConfig(enabled=True, max_travel_days=4, travel_start_date=NOW.date() - timedelta(days=1)),
    )
    assert travel_details(settings, TRAVELING, NOW) == [
        "3935.7 km from home",
        "Day 2 of 4",
        "Combine Dhuhr & Asr",
    ]


def test_qasr_badge():
    assert qasr_badge(PrayerName.DHUHR, TRAVELING) == "Qasr · 2 rak'ahs"
    assert qasr_badge(PrayerName.MAGHRIB, TRAVELING) is None
    assert qasr_badge(PrayerName.DHUHR, TravelState()) is None


def test_labels_and_fallback():
    assert prayer_label(PrayerName.LAST_THIRD_OF_NIGHT) == "Last Third"
    assert prayer_label(PrayerName.FAJR, "ar") == "الفجر"
    assert t("summary_off", "fr") == "Off"
    assert t("missing_key", "en") == "missing_key"
    assert countdown_summary(PrayerName.ASR, Countdown(1, 2, 3, 3723)) == "Asr in 1h 2m 3s"
