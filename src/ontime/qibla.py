"""Qibla compass — turns a device heading stream into an arrow rotation."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Protocol

from ontime.ephemeris import qibla_bearing
from ontime.models import Coordinates

LOGGER = logging.getLogger(__name__)


class SensorUnavailable(Exception):
    """The heading stream cannot be started on this device."""


@dataclass(frozen=True)
class HeadingEvent:
    """One raw orientation sample from the device."""

    alpha: float | None  # W3C orientation alpha, counterclockwise (degrees)
    compass_heading: float | None = None  # Platform heading, clockwise from north


class Subscription(Protocol):
    def unsubscribe(self) -> None: ...


class HeadingSource(Protocol):
    def subscribe(self, callback: Callable[[HeadingEvent], None]) -> Subscription: ...


@dataclass(frozen=True)
class QiblaReading:
    qibla_direction: float  # Bearing to the Kaaba from north
    device_heading: float = 0.0
    rotation_angle: float = 0.0  # How far to rotate the arrow
    is_calibrated: bool = False
    error: str | None = None


def normalize_heading(alpha: float | None, compass_heading: float | None = None) -> float:
    """Clockwise-from-north heading.

    The platform compass heading is used as-is when present; otherwise alpha is
    assumed to follow the counterclockwise W3C convention.
    """
    if compass_heading is not None:
        return compass_heading % 360
    return (360 - (alpha or 0.0)) % 360


def rotation_angle(qibla_direction: float, heading: float) -> float:
    return (qibla_direction - heading) % 360


class QiblaCompass:
    """Holds the latest reading; subscribes to a HeadingSource while open.

    Use as a context manager so the subscription is always released.
    """

    def __init__(self, source: HeadingSource, coordinates: Coordinates) -> None:
        self._source = source
        self._subscription: Subscription | None = None
        self._reading = QiblaReading(qibla_direction=qibla_bearing(coordinates))

    @property
    def reading(self) -> QiblaReading:
        return self._reading

    @property
    def is_listening(self) -> bool:
        return self._subscription is not None

    def update_location(self, coordinates: Coordinates) -> None:
        qibla = qibla_bearing(coordinates)
        self._reading = replace(
            self._reading,
            qibla_direction=qibla,
            rotation_angle=rotation_angle(qibla, self._reading.device_heading),
        )

    def start(self) -> None:
        """Subscribe to the heading stream. A failure is kept as the reading's error."""
        if self._subscription is not None:
            return
        try:
            self._subscription = self._source.subscribe(self._on_heading)
        except SensorUnavailable as e:
            LOGGER.warning("Heading sensor unavailable: %s", e)
            self._reading = replace(self._reading, is_calibrated=False, error=str(e))

    def stop(self) -> None:
        if self._subscription is None:
            return
        subscription, self._subscription = self._subscription, None
        subscription.unsubscribe()

    def __enter__(self) -> "QiblaCompass":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def _on_heading(self, event: HeadingEvent) -> None:
        heading = normalize_heading(event.alpha, event.compass_heading)
        qibla = self._reading.qibla_direction
        self._reading = QiblaReading(
            qibla_direction=qibla,
            device_heading=heading,
            rotation_angle=rotation_angle(qibla, heading),
            is_calibrated=True,
        )
