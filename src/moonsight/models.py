"""Data model definitions: explicit boundaries between location, compute, and display layers."""

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Literal

from moonsight.errors import InvalidCoordinate


@dataclass(frozen=True)
class Coordinate:
    """A checked observer position. Bounds are inclusive."""

    latitude: float  # Decimal degrees, [-90, 90]
    longitude: float  # Decimal degrees, [-180, 180]

    def __post_init__(self) -> None:
        if math.isnan(self.latitude) or not -90.0 <= self.latitude <= 90.0:
            raise InvalidCoordinate(f"Latitude out of range: {self.latitude}")
        if math.isnan(self.longitude) or not -180.0 <= self.longitude <= 180.0:
            raise InvalidCoordinate(f"Longitude out of range: {self.longitude}")


@dataclass(frozen=True)
class RawPosition:
    """Moon position as the ephemeris provider reports it."""

    altitude_rad: float
    azimuth_rad: float  # 0 = south, increasing through west


@dataclass(frozen=True)
class RawIllumination:
    phase: float  # 0 = new, 0.5 = full
    fraction: float


@dataclass(frozen=True)
class RawRiseSet:
    """Rise/set instants for one local calendar day. None when the event does not occur."""

    rise: datetime | None
    set: datetime | None


@dataclass(frozen=True)
class MoonObservation:
    """Computed snapshot for one (time, coordinate) pair. Replaced, never mutated."""

    observed_at: datetime  # UTC
    coordinate: Coordinate
    is_visible: bool
    altitude_degrees: float
    azimuth_degrees: float  # [0, 360), 0 = true north, clockwise
    phase: float  # [0, 1)
    illuminated_fraction: float  # [0, 1]
    next_rise: datetime | None
    next_set: datetime | None


@dataclass(frozen=True)
class DeviceSelection:
    """Use whatever position the device's geolocation reports."""


@dataclass(frozen=True)
class PresetSelection:
    """Use a named city from the fixed preset table."""

    name: str


LocationSelection = DeviceSelection | PresetSelection


@dataclass(frozen=True)
class ResolvedLocation:
    """A selection turned into coordinates. Cached between refresh ticks."""

    coordinate: Coordinate
    place_name: str | None  # None when unresolved; display falls back to coordinates
    source: Literal["device", "preset"]


class PhaseLabel(Enum):
    NEW_MOON = "new_moon"
    WAXING_CRESCENT = "waxing_crescent"
    FIRST_QUARTER = "first_quarter"
    WAXING_GIBBOUS = "waxing_gibbous"
    FULL_MOON = "full_moon"
    WANING_GIBBOUS = "waning_gibbous"
    LAST_QUARTER = "last_quarter"
    WANING_CRESCENT = "waning_crescent"


@dataclass(frozen=True)
class MajorPhase:
    label: PhaseLabel
    at: datetime


@dataclass(frozen=True)
class TimeRemaining:
    hours: int
    minutes: int


@dataclass(frozen=True)
class Idle:
    """Nothing requested yet."""


@dataclass(frozen=True)
class Loading:
    """A computation is in flight."""


@dataclass(frozen=True)
class Ready:
    observation: MoonObservation
    location: ResolvedLocation
    updated_at: datetime


@dataclass(frozen=True)
class Failed:
    error: Exception


ObservationState = Idle | Loading | Ready | Failed
