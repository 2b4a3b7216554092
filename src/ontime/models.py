"""Domain types shared by the schedule, travel and settings code."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum


class CalculationConvention(str, Enum):
    """Named preset of twilight angles used to compute prayer instants."""

    MUSLIM_WORLD_LEAGUE = "MuslimWorldLeague"
    EGYPTIAN = "Egyptian"
    KARACHI = "Karachi"
    UMM_AL_QURA = "UmmAlQura"
    DUBAI = "Dubai"
    MOONSIGHTING_COMMITTEE = "MoonsightingCommittee"
    NORTH_AMERICA = "NorthAmerica"
    KUWAIT = "Kuwait"
    QATAR = "Qatar"
    SINGAPORE = "Singapore"
    TEHRAN = "Tehran"
    TURKEY = "Turkey"


class Jurisprudence(str, Enum):
    """Asr shadow-length school."""

    STANDARD = "Standard"
    HANAFI = "Hanafi"


class PrayerName(str, Enum):
    FAJR = "fajr"
    SUNRISE = "sunrise"
    DHUHR = "dhuhr"
    ASR = "asr"
    MAGHRIB = "maghrib"
    ISHA = "isha"
    MIDDLE_OF_NIGHT = "middleOfNight"
    LAST_THIRD_OF_NIGHT = "lastThirdOfNight"


OBLIGATORY_PRAYERS: tuple[PrayerName, ...] = (
    PrayerName.FAJR,
    PrayerName.DHUHR,
    PrayerName.ASR,
    PrayerName.MAGHRIB,
    PrayerName.ISHA,
)

# Prayers that carry a per-prayer notification entry
NOTIFIABLE_PRAYERS: tuple[PrayerName, ...] = (
    PrayerName.FAJR,
    PrayerName.SUNRISE,
    PrayerName.DHUHR,
    PrayerName.ASR,
    PrayerName.MAGHRIB,
    PrayerName.ISHA,
)


class TravelOverride(str, Enum):
    AUTO = "auto"
    FORCE_ON = "force_on"
    FORCE_OFF = "force_off"


class NotificationSound(str, Enum):
    DEFAULT = "default"
    ADHAN = "adhan"
    ADHAN_FAJR = "adhan_fajr"
    SILENT = "silent"


@dataclass(frozen=True)
class Coordinates:
    """A point on the Earth's surface."""

    latitude: float  # Decimal degrees, [-90, 90]
    longitude: float  # Decimal degrees, [-180, 180]


@dataclass(frozen=True)
class DayTimes:
    """Raw ephemeris output for one calendar day. All values are tz-aware."""

    fajr: datetime
    sunrise: datetime
    dhuhr: datetime
    asr: datetime
    maghrib: datetime
    isha: datetime


@dataclass(frozen=True)
class PrayerInstant:
    name: PrayerName
    time: datetime  # tz-aware
    is_optional: bool = False


@dataclass(frozen=True)
class DaySchedule:
    """Ordered prayer/sunnah instants for one calendar day at one location."""

    day: date
    coordinates: Coordinates
    prayers: tuple[PrayerInstant, ...]

    def get(self, name: PrayerName) -> PrayerInstant:
        for prayer in self.prayers:
            if prayer.name == name:
                return prayer
        raise KeyError(name)

    def time_of(self, name: PrayerName) -> datetime:
        return self.get(name).time

    def obligatory(self) -> tuple[PrayerInstant, ...]:
        return tuple(p for p in self.prayers if p.name in OBLIGATORY_PRAYERS)


@dataclass(frozen=True)
class HomeBase:
    coordinates: Coordinates
    city_name: str
    country_code: str = ""


@dataclass(frozen=True)
class TravelConfig:
    """User-controlled travel settings. Persisted as part of Settings."""

    enabled: bool = False
    home_base: HomeBase | None = None
    override: TravelOverride = TravelOverride.AUTO
    distance_threshold_km: float = 88.7  # ~48 mi, the Sharia travel distance
    jama_dhuhr_asr: bool = False
    jama_maghrib_isha: bool = False
    max_travel_days: int = 0  # 0 = unlimited
    travel_start_date: date | None = None


@dataclass(frozen=True)
class QasrFlags:
    """Shortening flags. Fajr and Maghrib are never shortened."""

    dhuhr: bool = False
    asr: bool = False
    isha: bool = False


@dataclass(frozen=True)
class TravelState:
    """Derived travel status. Never persisted."""

    is_traveling: bool = False
    distance_from_home_km: float | None = None
    is_auto_detected: bool = False
    qasr: QasrFlags = QasrFlags()
    jama_dhuhr_asr: bool = False
    jama_maghrib_isha: bool = False


@dataclass(frozen=True)
class OptionalPrayers:
    show_sunrise: bool = True
    show_middle_of_night: bool = True
    show_last_third_of_night: bool = True


@dataclass(frozen=True)
class PrayerNotification:
    enabled: bool = True
    reminder_minutes: int = 15  # 0 = no advance reminder
    at_prayer_time: bool = True
    sound: NotificationSound = NotificationSound.DEFAULT


def _default_prayer_notifications() -> dict[PrayerName, PrayerNotification]:
    return {
        PrayerName.FAJR: PrayerNotification(sound=NotificationSound.ADHAN_FAJR),
        PrayerName.SUNRISE: PrayerNotification(enabled=False),
        PrayerName.DHUHR: PrayerNotification(),
        PrayerName.ASR: PrayerNotification(),
        PrayerName.MAGHRIB: PrayerNotification(),
        PrayerName.ISHA: PrayerNotification(),
    }


@dataclass(frozen=True)
class NotificationSettings:
    enabled: bool = True
    default_sound: NotificationSound = NotificationSound.DEFAULT
    default_reminder_minutes: int = 15
    prayers: dict[PrayerName, PrayerNotification] = field(
        default_factory=_default_prayer_notifications
    )


@dataclass(frozen=True)
class JumuahTime:
    khutbah: str  # "HH:MM" local time
    iqamah: str  # "HH:MM" local time


@dataclass(frozen=True)
class JumuahSettings:
    enabled: bool = False
    masjid_name: str = ""
    times: tuple[JumuahTime, ...] = (JumuahTime(khutbah="13:00", iqamah="13:30"),)
    reminder_minutes: int = 30


@dataclass(frozen=True)
class DisplaySettings:
    show_current_prayer: bool = True
    show_next_prayer: bool = True
    show_sunnah_card: bool = True


@dataclass(frozen=True)
class Settings:
    """The whole persisted user configuration. Replaced, never mutated."""

    calculation_method: CalculationConvention = CalculationConvention.NORTH_AMERICA
    asr_calculation: Jurisprudence = Jurisprudence.STANDARD
    optional_prayers: OptionalPrayers = OptionalPrayers()
    notifications: NotificationSettings = field(default_factory=NotificationSettings)
    jumuah: JumuahSettings = JumuahSettings()
    travel: TravelConfig = TravelConfig()
    display: DisplaySettings = DisplaySettings()
