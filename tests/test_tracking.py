import json
from datetime import date, datetime, timedelta

from pytz import utc

from ontime.models import PrayerName
from ontime.persistence import MemoryStore
from ontime.tracking import TRACKING_KEY, PrayerLog, PrayerStatusMark

NOW = utc.localize(datetime(2026, 3, 10, 12, 0))
TODAY = NOW.date()


def make_log(store=None):
    return PrayerLog(store or MemoryStore(), now=lambda: NOW)


def test_track_and_read_back():
    log = make_log()
    log.track(PrayerName.FAJR, PrayerStatusMark.ONTIME)
    log.track(PrayerName.DHUHR, PrayerStatusMark.MISSED)
    assert log.status_for(PrayerName.FAJR) == PrayerStatusMark.ONTIME
    assert log.status_for(PrayerName.ASR) == PrayerStatusMark.UNTRACKED
    record = log.daily_record()
    assert record.date == "2026-03-10"
    assert record.prayers == {
        PrayerName.FAJR: PrayerStatusMark.ONTIME,
        PrayerName.DHUHR: PrayerStatusMark.MISSED,
    }


def test_retracking_replaces_and_untracked_removes():
    store = MemoryStore()
    log = make_log(store)
    log.track(PrayerName.ASR, PrayerStatusMark.MISSED)
    log.track(PrayerName.ASR, PrayerStatusMark.ONTIME)
    assert len(json.loads(store.get(TRACKING_KEY))["records"]) == 1
    assert log.status_for(PrayerName.ASR) == PrayerStatusMark.ONTIME

    log.track(PrayerName.ASR, PrayerStatusMark.UNTRACKED)
    assert json.loads(store.get(TRACKING_KEY))["records"] == []


def test_old_records_are_pruned():
    store = MemoryStore()
    log = make_log(store)
    log.track(PrayerName.FAJR, PrayerStatusMark.ONTIME, day=TODAY - timedelta(days=31))
    log.track(PrayerName.FAJR, PrayerStatusMark.ONTIME, day=TODAY - timedelta(days=30))
    dates = [r["date"] for r in json.loads(store.get(TRACKING_KEY))["records"]]
    assert dates == [(TODAY - timedelta(days=30)).isoformat()]


def test_recent_records_most_recent_first():
    log = make_log()
    log.track(PrayerName.ISHA, PrayerStatusMark.ONTIME, day=date(2026, 3, 9))
    recent = log.recent_records(3)
    assert [r.date for r in recent] == ["2026-03-10", "2026-03-09", "2026-03-08"]
    assert recent[1].prayers == {PrayerName.ISHA: PrayerStatusMark.ONTIME}


def test_stats():
    log = make_log()
    assert log.stats().percentage == 0
    log.track(PrayerName.FAJR, PrayerStatusMark.ONTIME)
    log.track(PrayerName.DHUHR, PrayerStatusMark.ONTIME)
    log.track(PrayerName.ASR, PrayerStatusMark.MISSED)
    log.track(PrayerName.FAJR, PrayerStatusMark.MISSED, day=TODAY - timedelta(days=20))
    stats = log.stats(days=7)
    assert (stats.total_tracked, stats.on_time, stats.missed) == (3, 2, 1)
    assert stats.percentage == 67


def test_unreadable_data_starts_fresh(caplog):
    log = make_log(MemoryStore({TRACKING_KEY: "not json"}))
    assert log.daily_record().prayers == {}
    assert "Discarding unreadable tracking data" in caplog.text


def test_unknown_prayer_or_status_records_are_skipped(caplog):
    records = [
        {"date": "2026-03-10", "prayer": "tahajjud", "status": "ontime", "trackedAt": ""},
        {"date": "2026-03-10", "prayer": "asr", "status": "late", "trackedAt": ""},
        {"date": "2026-03-10", "prayer": "fajr", "status": "ontime", "trackedAt": ""},
    ]
    log = make_log(MemoryStore({TRACKING_KEY: json.dumps({"records": records})}))
    assert log.daily_record().prayers == {PrayerName.FAJR: PrayerStatusMark.ONTIME}
    assert log.status_for(PrayerName.ASR) == PrayerStatusMark.UNTRACKED
    assert log.recent_records(1)[0].prayers == {PrayerName.FAJR: PrayerStatusMark.ONTIME}
    assert log.stats().total_tracked == 1
    assert "tahajjud" in caplog.text
