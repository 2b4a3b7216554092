"""Calculation convention presets — maps a named method to ephemeris parameters."""

from dataclasses import dataclass
from enum import Enum
from typing import assert_never

from ontime.models import CalculationConvention, Jurisprudence, PrayerName


class HighLatitudeRule(str, Enum):
    """How Fajr/Isha are bounded when twilight never reaches the target angle."""

    MIDDLE_OF_THE_NIGHT = "middle_of_the_night"
    SEVENTH_OF_THE_NIGHT = "seventh_of_the_night"
    TWILIGHT_ANGLE = "twilight_angle"


@dataclass(frozen=True)
class ParameterBundle:
    """Everything the ephemeris needs besides location and date."""

    fajr_angle: float  # Sun depression below horizon (degrees)
    isha_angle: float
    isha_interval_minutes: int | None = None  # Fixed Isha offset after Maghrib
    maghrib_angle: float | None = None  # None = sunset
    high_latitude_rule: HighLatitudeRule = HighLatitudeRule.MIDDLE_OF_THE_NIGHT
    adjustments: tuple[tuple[PrayerName, int], ...] = ()  # Minutes added per prayer
    shadow_factor: int = 1  # Asr shadow length multiplier

    def adjustment_for(self, name: PrayerName) -> int:
        return dict(self.adjustments).get(name, 0)


@dataclass(frozen=True)
class ConventionInfo:
    value: CalculationConvention
    label: str
    description: str


CALCULATION_METHODS: tuple[ConventionInfo, ...] = (
    ConventionInfo(CalculationConvention.NORTH_AMERICA, "ISNA", "Islamic Society of North America"),
    ConventionInfo(CalculationConvention.MUSLIM_WORLD_LEAGUE, "MWL", "Muslim World League"),
    ConventionInfo(CalculationConvention.EGYPTIAN, "Egyptian", "Egyptian General Authority"),
    ConventionInfo(CalculationConvention.UMM_AL_QURA, "Umm Al-Qura", "Umm Al-Qura University, Makkah"),
    ConventionInfo(CalculationConvention.DUBAI, "Dubai", "UAE"),
    ConventionInfo(CalculationConvention.KARACHI, "Karachi", "University of Islamic Sciences, Karachi"),
    ConventionInfo(CalculationConvention.KUWAIT, "Kuwait", "Kuwait"),
    ConventionInfo(CalculationConvention.QATAR, "Qatar", "Qatar"),
    ConventionInfo(CalculationConvention.SINGAPORE, "Singapore", "Singapore"),
    ConventionInfo(CalculationConvention.TEHRAN, "Tehran", "Institute of Geophysics, Tehran"),
    ConventionInfo(CalculationConvention.TURKEY, "Turkey", "Diyanet, Turkey"),
    ConventionInfo(CalculationConvention.MOONSIGHTING_COMMITTEE, "Moonsighting", "Moonsighting Committee"),
)


def convention_label(method: CalculationConvention) -> str:
    """Short display label for a convention ("ISNA", "MWL", ...)."""
    for info in CALCULATION_METHODS:
        if info.value == method:
            return info.label
    return method.value


def _preset(method: CalculationConvention) -> ParameterBundle:
    match method:
        case CalculationConvention.MUSLIM_WORLD_LEAGUE:
            return ParameterBundle(18, 17, adjustments=((PrayerName.DHUHR, 1),))
        case CalculationConvention.EGYPTIAN:
            return ParameterBundle(19.5, 17.5, adjustments=((PrayerName.DHUHR, 1),))
        case CalculationConvention.KARACHI:
            return ParameterBundle(18, 18, adjustments=((PrayerName.DHUHR, 1),))
        case CalculationConvention.UMM_AL_QURA:
            return ParameterBundle(18.5, 0, isha_interval_minutes=90)
        case CalculationConvention.DUBAI:
            return ParameterBundle(
                18.2,
                18.2,
                adjustments=(
                    (PrayerName.SUNRISE, -3),
                    (PrayerName.DHUHR, 3),
                    (PrayerName.ASR, 3),
                    (PrayerName.MAGHRIB, 3),
                ),
            )
        case CalculationConvention.MOONSIGHTING_COMMITTEE:
            return ParameterBundle(
                18,
                18,
                high_latitude_rule=HighLatitudeRule.SEVENTH_OF_THE_NIGHT,
                adjustments=((PrayerName.DHUHR, 5), (PrayerName.MAGHRIB, 3)),
            )
        case CalculationConvention.NORTH_AMERICA:
            return ParameterBundle(15, 15, adjustments=((PrayerName.DHUHR, 1),))
        case CalculationConvention.KUWAIT:
            return ParameterBundle(18, 17.5)
        case CalculationConvention.QATAR:
            return ParameterBundle(18, 0, isha_interval_minutes=90)
        case CalculationConvention.SINGAPORE:
            return ParameterBundle(20, 18, adjustments=((PrayerName.DHUHR, 1),))
        case CalculationConvention.TEHRAN:
            return ParameterBundle(17.7, 14, maghrib_angle=4.5)
        case CalculationConvention.TURKEY:
            return ParameterBundle(
                18,
                17,
                adjustments=(
                    (PrayerName.SUNRISE, -7),
                    (PrayerName.DHUHR, 5),
                    (PrayerName.ASR, 4),
                    (PrayerName.MAGHRIB, 7),
                ),
            )
        case _:
            assert_never(method)


def resolve(
    method: CalculationConvention, jurisprudence: Jurisprudence
) -> ParameterBundle:
    """Resolve a convention and Asr school into the ephemeris parameter bundle.

    Args:
        method: Named calculation convention.
        jurisprudence: Asr school. Only affects the shadow factor.

    Returns:
        ParameterBundle with the convention's preset and the chosen shadow factor.
    """
    bundle = _preset(method)
    shadow_factor = 2 if jurisprudence == Jurisprudence.HANAFI else 1
    return ParameterBundle(
        fajr_angle=bundle.fajr_angle,
        isha_angle=bundle.isha_angle,
        isha_interval_minutes=bundle.isha_interval_minutes,
        maghrib_angle=bundle.maghrib_angle,
        high_latitude_rule=bundle.high_latitude_rule,
        adjustments=bundle.adjustments,
        shadow_factor=shadow_factor,
    )
