"""Settings ownership — persisted JSON shape and forward-compatible migration."""

import json
import logging
import math
from collections.abc import Callable, Mapping
from dataclasses import replace
from datetime import date
from enum import Enum
from typing import Any, Literal, TypeVar

from ontime.models import (
    NOTIFIABLE_PRAYERS,
    CalculationConvention,
    Coordinates,
    DisplaySettings,
    HomeBase,
    JumuahSettings,
    JumuahTime,
    Jurisprudence,
    NotificationSettings,
    NotificationSound,
    OptionalPrayers,
    PrayerName,
    PrayerNotification,
    Settings,
    TravelConfig,
    TravelOverride,
)
from ontime.persistence import KeyValueStore, PersistenceError

LOGGER = logging.getLogger(__name__)

SETTINGS_KEY = "ontime_settings"
SETTINGS_VERSION = 2

DEFAULT_SETTINGS = Settings()

_E = TypeVar("_E", bound=Enum)


# --- Persisted JSON shape ---


def _prayer_notification_to_dict(p: PrayerNotification) -> dict[str, Any]:
    return {
        "enabled": p.enabled,
        "reminderMinutes": p.reminder_minutes,
        "atPrayerTime": p.at_prayer_time,
        "sound": p.sound.value,
    }


def _home_base_to_dict(home: HomeBase | None) -> dict[str, Any] | None:
    if home is None:
        return None
    return {
        "coordinates": {
            "latitude": home.coordinates.latitude,
            "longitude": home.coordinates.longitude,
        },
        "cityName": home.city_name,
        "countryCode": home.country_code,
    }


def settings_to_dict(settings: Settings) -> dict[str, Any]:
    """Serialize to the camelCase JSON document stored under SETTINGS_KEY."""
    travel = settings.travel
    return {
        "version": SETTINGS_VERSION,
        "calculationMethod": settings.calculation_method.value,
        "asrCalculation": settings.asr_calculation.value,
        "optionalPrayers": {
            "showSunrise": settings.optional_prayers.show_sunrise,
            "showMiddleOfNight": settings.optional_prayers.show_middle_of_night,
            "showLastThirdOfNight": settings.optional_prayers.show_last_third_of_night,
        },
        "notifications": {
            "enabled": settings.notifications.enabled,
            "defaultSound": settings.notifications.default_sound.value,
            "defaultReminderMinutes": settings.notifications.default_reminder_minutes,
            "prayers": {
                name.value: _prayer_notification_to_dict(p)
                for name, p in settings.notifications.prayers.items()
            },
        },
        "jumuah": {
            "enabled": settings.jumuah.enabled,
            "masjidName": settings.jumuah.masjid_name,
            "times": [
                {"khutbah": t.khutbah, "iqamah": t.iqamah} for t in settings.jumuah.times
            ],
            "reminderMinutes": settings.jumuah.reminder_minutes,
        },
        "travel": {
            "enabled": travel.enabled,
            "homeBase": _home_base_to_dict(travel.home_base),
            "override": travel.override.value,
            "distanceThresholdKm": travel.distance_threshold_km,
            "jamaDhuhrAsr": travel.jama_dhuhr_asr,
            "jamaMaghribIsha": travel.jama_maghrib_isha,
            "maxTravelDays": travel.max_travel_days,
            "travelStartDate": (
                travel.travel_start_date.isoformat() if travel.travel_start_date else None
            ),
        },
        "display": {
            "showCurrentPrayer": settings.display.show_current_prayer,
            "showNextPrayer": settings.display.show_next_prayer,
            "showSunnahCard": settings.display.show_sunnah_card,
        },
    }


def _enum(cls: type[_E], value: Any, default: _E) -> _E:
    try:
        return cls(value)
    except ValueError:
        LOGGER.warning("Unknown %s %r, using %s", cls.__name__, value, default.value)
        return default


def _home_base_from_dict(data: Any) -> HomeBase | None:
    if data is None:
        return None
    try:
        coords = data["coordinates"]
        lat = float(coords["latitude"])
        lng = float(coords["longitude"])
        if not (-90 <= lat <= 90 and -180 <= lng <= 180):
            raise ValueError(f"out of range: {lat}, {lng}")
        return HomeBase(
            coordinates=Coordinates(latitude=lat, longitude=lng),
            city_name=str(data.get("cityName", "")),
            country_code=str(data.get("countryCode", "")),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        LOGGER.warning("Discarding malformed home base %r: %s", data, e)
        return None


def _date_from_str(value: Any) -> date | None:
    if not value:
        return None
    try:
        # Older builds stored a full ISO timestamp
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        LOGGER.warning("Discarding malformed travel start date %r", value)
        return None


def _jumuah_times(data: list[Any]) -> tuple[JumuahTime, ...]:
    times = []
    for entry in data:
        if (
            isinstance(entry, Mapping)
            and isinstance(entry.get("khutbah"), str)
            and isinstance(entry.get("iqamah"), str)
        ):
            times.append(JumuahTime(khutbah=entry["khutbah"], iqamah=entry["iqamah"]))
    return tuple(times)


def settings_from_dict(data: Mapping[str, Any], defaults: Settings) -> Settings:
    """Build Settings from a fully populated (already merged) JSON document."""
    notifications = data["notifications"]
    jumuah = data["jumuah"]
    travel = data["travel"]
    d_notifications = defaults.notifications

    prayers: dict[PrayerName, PrayerNotification] = {}
    for name, default in d_notifications.prayers.items():
        entry = notifications["prayers"][name.value]
        prayers[name] = PrayerNotification(
            enabled=bool(entry["enabled"]),
            reminder_minutes=int(entry["reminderMinutes"]),
            at_prayer_time=bool(entry["atPrayerTime"]),
            sound=_enum(NotificationSound, entry["sound"], default.sound),
        )

    return Settings(
        calculation_method=_enum(
            CalculationConvention, data["calculationMethod"], defaults.calculation_method
        ),
        asr_calculation=_enum(Jurisprudence, data["asrCalculation"], defaults.asr_calculation),
        optional_prayers=OptionalPrayers(
            show_sunrise=data["optionalPrayers"]["showSunrise"],
            show_middle_of_night=data["optionalPrayers"]["showMiddleOfNight"],
            show_last_third_of_night=data["optionalPrayers"]["showLastThirdOfNight"],
        ),
        notifications=NotificationSettings(
            enabled=notifications["enabled"],
            default_sound=_enum(
                NotificationSound, notifications["defaultSound"], d_notifications.default_sound
            ),
            default_reminder_minutes=int(notifications["defaultReminderMinutes"]),
            prayers=prayers,
        ),
        jumuah=JumuahSettings(
            enabled=jumuah["enabled"],
            masjid_name=jumuah["masjidName"],
            times=_jumuah_times(jumuah["times"]),
            reminder_minutes=int(jumuah["reminderMinutes"]),
        ),
        travel=TravelConfig(
            enabled=travel["enabled"],
            home_base=_home_base_from_dict(travel["homeBase"]),
            override=_enum(TravelOverride, travel["override"], defaults.travel.override),
            distance_threshold_km=float(travel["distanceThresholdKm"]),
            jama_dhuhr_asr=travel["jamaDhuhrAsr"],
            jama_maghrib_isha=travel["jamaMaghribIsha"],
            max_travel_days=int(travel["maxTravelDays"]),
            travel_start_date=_date_from_str(travel["travelStartDate"]),
        ),
        display=DisplaySettings(
            show_current_prayer=data["display"]["showCurrentPrayer"],
            show_next_prayer=data["display"]["showNextPrayer"],
            show_sunnah_card=data["display"]["showSunnahCard"],
        ),
    )


# --- Migration ---


def _same_shape(default: Any, value: Any) -> bool:
    if isinstance(default, bool):
        return isinstance(value, bool)
    if isinstance(default, (int, float)):
        # json.loads accepts NaN and Infinity
        return (
            isinstance(value, (int, float))
            and not isinstance(value, bool)
            and math.isfinite(value)
        )
    if isinstance(default, str):
        return isinstance(value, str)
    if isinstance(default, list):
        return isinstance(value, list)
    return True


def _deep_merge(defaults: Mapping[str, Any], persisted: Mapping[str, Any], path: str = "") -> dict[str, Any]:
    """Merge persisted over defaults key by key. Unknown keys are dropped."""
    merged = dict(defaults)
    for key, value in persisted.items():
        if key not in defaults:
            continue
        default = defaults[key]
        if isinstance(default, Mapping):
            if isinstance(value, Mapping):
                merged[key] = _deep_merge(default, value, f"{path}{key}.")
            else:
                LOGGER.warning("Ignoring %s%s: expected an object, got %r", path, key, value)
        elif default is None or _same_shape(default, value):
            merged[key] = value
        else:
            LOGGER.warning("Ignoring %s%s: unexpected value %r", path, key, value)
    return merged


def _migrate_prayers(defaults: Mapping[str, Any], persisted: Any) -> dict[str, Any]:
    """Upgrade bare-boolean per-prayer entries and merge object entries."""
    prayers = {name: dict(entry) for name, entry in defaults.items()}
    if not isinstance(persisted, Mapping):
        return prayers
    for name, default in defaults.items():
        entry = persisted.get(name)
        if isinstance(entry, bool):
            prayers[name] = {**default, "enabled": entry}
        elif isinstance(entry, Mapping):
            prayers[name] = _deep_merge(default, entry, f"notifications.prayers.{name}.")
    return prayers


def migrate(persisted: Mapping[str, Any] | Settings | None, defaults: Settings = DEFAULT_SETTINGS) -> Settings:
    """Deep-merge persisted settings over the current defaults.

    Fields added since the data was saved get their defaults; per-prayer
    notification entries saved as a bare boolean become full objects.
    Idempotent: migrating an already migrated value returns it unchanged.

    Args:
        persisted: Parsed JSON document (any older schema), a Settings value, or None.
        defaults: Current defaults.

    Returns:
        A complete Settings value.
    """
    if isinstance(persisted, Settings):
        persisted = settings_to_dict(persisted)
    base = settings_to_dict(defaults)
    if not isinstance(persisted, Mapping):
        return settings_from_dict(base, defaults)

    persisted = dict(persisted)
    persisted_prayers = None
    notifications = persisted.get("notifications")
    if isinstance(notifications, Mapping):
        persisted_prayers = notifications.get("prayers")
        persisted["notifications"] = {k: v for k, v in notifications.items() if k != "prayers"}

    merged = _deep_merge(base, persisted)
    merged["notifications"] = dict(merged["notifications"])
    merged["notifications"]["prayers"] = _migrate_prayers(
        base["notifications"]["prayers"], persisted_prayers
    )
    merged["version"] = SETTINGS_VERSION
    return settings_from_dict(merged, defaults)


# --- Owner ---


class SettingsStore:
    """Single owner of the user's Settings.

    Every named update replaces the in-memory value and re-persists it. The
    in-memory value is the source of truth: a failed write is logged and not
    rolled back.
    """

    def __init__(
        self,
        store: KeyValueStore,
        defaults: Settings = DEFAULT_SETTINGS,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._store = store
        self._defaults = defaults
        self._today = today
        self._settings = defaults

    @property
    def settings(self) -> Settings:
        return self._settings

    def load(self) -> Settings:
        """Read and migrate the persisted settings. Falls back to defaults on any failure."""
        try:
            raw = self._store.get(SETTINGS_KEY)
        except PersistenceError as e:
            LOGGER.error("Failed to load settings: %s", e)
            return self._settings
        if raw is None:
            return self._settings
        try:
            persisted = json.loads(raw)
        except json.JSONDecodeError as e:
            LOGGER.error("Failed to parse stored settings: %s", e)
            return self._settings
        self._settings = migrate(persisted, self._defaults)
        return self._settings

    def _save(self) -> None:
        try:
            self._store.set(SETTINGS_KEY, json.dumps(settings_to_dict(self._settings)))
        except PersistenceError as e:
            LOGGER.error("Failed to save settings: %s", e)

    def _commit(self, settings: Settings) -> Settings:
        self._settings = settings
        self._save()
        return settings

    def update_calculation_method(self, method: CalculationConvention) -> Settings:
        return self._commit(replace(self._settings, calculation_method=method))

    def update_asr_calculation(self, jurisprudence: Jurisprudence) -> Settings:
        return self._commit(replace(self._settings, asr_calculation=jurisprudence))

    def update_optional_prayers(self, **changes: bool) -> Settings:
        optional = replace(self._settings.optional_prayers, **changes)
        return self._commit(replace(self._settings, optional_prayers=optional))

    def update_notifications(self, **changes: Any) -> Settings:
        notifications = replace(self._settings.notifications, **changes)
        return self._commit(replace(self._settings, notifications=notifications))

    def update_default_sound(self, sound: NotificationSound) -> Settings:
        return self.update_notifications(default_sound=sound)

    def update_default_reminder_minutes(self, minutes: int) -> Settings:
        return self.update_notifications(default_reminder_minutes=minutes)

    def update_prayer_notification(self, prayer: PrayerName, **changes: Any) -> Settings:
        if prayer not in NOTIFIABLE_PRAYERS:
            raise ValueError(f"No notification settings for {prayer.value}")
        current = self._settings.notifications
        prayers = dict(current.prayers)
        prayers[prayer] = replace(prayers[prayer], **changes)
        notifications = replace(current, prayers=prayers)
        return self._commit(replace(self._settings, notifications=notifications))

    def update_jumuah(self, **changes: Any) -> Settings:
        jumuah = replace(self._settings.jumuah, **changes)
        return self._commit(replace(self._settings, jumuah=jumuah))

    def update_travel(self, **changes: Any) -> Settings:
        """Patch the travel config, keeping the travel start date in step.

        Entering travel mode (enabling it, or forcing it on) stamps today's
        date when none is set. Clearing the home base clears the date.
        """
        current = self._settings.travel
        travel = replace(current, **changes)
        entering = (travel.enabled and not current.enabled) or (
            travel.override == TravelOverride.FORCE_ON
            and current.override != TravelOverride.FORCE_ON
        )
        if entering and travel.travel_start_date is None:
            travel = replace(travel, travel_start_date=self._today())
        if current.home_base is not None and travel.home_base is None:
            travel = replace(travel, travel_start_date=None)
        return self._commit(replace(self._settings, travel=travel))

    def update_display(self, **changes: bool) -> Settings:
        display = replace(self._settings.display, **changes)
        return self._commit(replace(self._settings, display=display))

    def set_home_base(self, home: HomeBase) -> Settings:
        return self.update_travel(home_base=home)

    def clear_home_base(self) -> Settings:
        return self.update_travel(home_base=None)

    def set_travel_override(self, override: TravelOverride) -> Settings:
        return self.update_travel(override=override)

    def toggle_jama(self, pair: Literal["dhuhrAsr", "maghribIsha"]) -> Settings:
        travel = self._settings.travel
        if pair == "dhuhrAsr":
            return self.update_travel(jama_dhuhr_asr=not travel.jama_dhuhr_asr)
        return self.update_travel(jama_maghrib_isha=not travel.jama_maghrib_isha)

    def toggle_travel_enabled(self) -> Settings:
        return self.update_travel(enabled=not self._settings.travel.enabled)
