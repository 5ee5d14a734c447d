"""Ephemeris provider contract and its skyfield implementation."""

import logging
import math
from datetime import datetime, time, timedelta
from functools import lru_cache
from pathlib import Path
from typing import Protocol

from pytz import timezone, utc
from pytz.tzinfo import BaseTzInfo
from skyfield import almanac
from skyfield.api import Loader, wgs84
from timezonefinder import TimezoneFinder

from moonsight.models import RawIllumination, RawPosition, RawRiseSet

logger = logging.getLogger(__name__)

_ROOT = Path(__file__).parent.parent.parent


class EphemerisProvider(Protocol):
    """Raw lunar data for a given instant and observer.

    Azimuth is in radians referenced to south, increasing through west.
    `rise_set` covers the observer's local calendar day containing `when`.
    """

    def position(self, when: datetime, lat: float, lng: float) -> RawPosition: ...

    def illumination(self, when: datetime) -> RawIllumination: ...

    def rise_set(self, when: datetime, lat: float, lng: float) -> RawRiseSet: ...


@lru_cache(maxsize=1)
def _finder() -> TimezoneFinder:
    return TimezoneFinder()


@lru_cache(maxsize=256)
def local_timezone(lat: float, lng: float) -> BaseTzInfo:
    """Timezone in effect at a coordinate. Falls back to UTC when none is found."""
    tz_str = _finder().timezone_at(lat=lat, lng=lng)
    if tz_str is None:
        logger.debug("No timezone at %.4f,%.4f, using UTC", lat, lng)
        return utc
    return timezone(tz_str)


def local_day_bounds(when: datetime, tz: BaseTzInfo) -> tuple[datetime, datetime]:
    """UTC start and end of the local calendar day in `tz` that contains `when`."""
    day = when.astimezone(tz).date()
    start = tz.localize(datetime.combine(day, time()))
    end = tz.localize(datetime.combine(day + timedelta(days=1), time()))
    return start.astimezone(utc), end.astimezone(utc)


class SkyfieldEphemeris:
    """EphemerisProvider backed by a JPL kernel loaded through skyfield.

    The kernel is downloaded into `directory` on first use if it is missing.
    """

    def __init__(
        self, directory: Path | str = _ROOT / "resources", filename: str = "de421.bsp"
    ) -> None:
        self._loader = Loader(str(directory))
        self._eph = self._loader(filename)
        self._ts = self._loader.timescale()
        self._earth = self._eph["earth"]
        self._moon = self._eph["moon"]
        self._sun = self._eph["sun"]
        logger.info("Loaded ephemeris %s from %s", filename, directory)

    def position(self, when: datetime, lat: float, lng: float) -> RawPosition:
        t = self._ts.from_datetime(when)
        ground = self._earth + wgs84.latlon(latitude_degrees=lat, longitude_degrees=lng)
        alt, az, _ = ground.at(t).observe(self._moon).apparent().altaz()
        # skyfield measures azimuth from north; the contract is south-referenced
        return RawPosition(altitude_rad=alt.radians, azimuth_rad=az.radians - math.pi)

    def illumination(self, when: datetime) -> RawIllumination:
        t = self._ts.from_datetime(when)
        phase_angle = almanac.moon_phase(self._eph, t)
        moon = self._earth.at(t).observe(self._moon).apparent()
        fraction = moon.fraction_illuminated(self._sun)
        return RawIllumination(
            phase=(phase_angle.degrees / 360.0) % 1.0, fraction=float(fraction)
        )

    def rise_set(self, when: datetime, lat: float, lng: float) -> RawRiseSet:
        start, end = local_day_bounds(when, local_timezone(lat, lng))
        topos = wgs84.latlon(latitude_degrees=lat, longitude_degrees=lng)
        f = almanac.risings_and_settings(self._eph, self._moon, topos)
        times, events = almanac.find_discrete(
            self._ts.from_datetime(start), self._ts.from_datetime(end), f
        )

        rise: datetime | None = None
        set_: datetime | None = None
        for t, is_rising in zip(times, events):
            if is_rising and rise is None:
                rise = t.utc_datetime()
            elif not is_rising and set_ is None:
                set_ = t.utc_datetime()
        return RawRiseSet(rise=rise, set=set_)
