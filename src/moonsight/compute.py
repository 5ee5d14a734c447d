"""Visibility computation layer: raw ephemeris output to a horizon-relative MoonObservation."""

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Callable

from moonsight.ephemeris import EphemerisProvider
from moonsight.errors import EphemerisUnavailable
from moonsight.models import Coordinate, MoonObservation, RawRiseSet

logger = logging.getLogger(__name__)

DEFAULT_HORIZON_DAYS = 7


def validate_coordinate(latitude: float, longitude: float) -> Coordinate:
    """Build a checked Coordinate.

    Raises:
        InvalidCoordinate: If either value is out of range. Bounds are inclusive.
    """
    return Coordinate(latitude=float(latitude), longitude=float(longitude))


def _as_utc(when: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if when.tzinfo is None:
        return when.replace(tzinfo=timezone.utc)
    return when.astimezone(timezone.utc)


def _wrap(value: float, period: float) -> float:
    """Reduce into [0, period)."""
    wrapped = value % period
    # tiny negatives round up to `period` in floating point
    return 0.0 if wrapped >= period else wrapped


def _north_azimuth(azimuth_rad: float) -> float:
    """South-referenced radians to north-referenced degrees in [0, 360)."""
    return _wrap(math.degrees(azimuth_rad) + 180.0, 360.0)


def _next_event(
    when: datetime,
    horizon_days: int,
    day_events: Callable[[int], RawRiseSet],
    pick: Callable[[RawRiseSet], datetime | None],
) -> datetime | None:
    """First event strictly after `when`, scanning today then each following day.

    Returns None if no day up to `horizon_days` ahead has a qualifying event.
    """
    for offset in range(horizon_days + 1):
        event = pick(day_events(offset))
        if event is not None and _as_utc(event) > when:
            return _as_utc(event)
    return None


def compute_observation(
    when: datetime,
    coordinate: Coordinate,
    provider: EphemerisProvider,
    horizon_days: int = DEFAULT_HORIZON_DAYS,
) -> MoonObservation:
    """Compute the moon's visibility and next rise/set for one instant and place.

    Args:
        when: Query instant. Naive values are taken to be UTC.
        coordinate: Observer position.
        provider: Source of raw lunar position, illumination, and rise/set times.
        horizon_days: How many days past today to search for the next rise/set.

    Returns:
        The assembled MoonObservation.

    Raises:
        InvalidCoordinate: If the coordinate fails range validation. No provider
            call is made in that case.
        EphemerisUnavailable: If any provider call fails. No partial observation
            is returned.
    """
    coordinate = validate_coordinate(coordinate.latitude, coordinate.longitude)
    when = _as_utc(when)
    lat, lng = coordinate.latitude, coordinate.longitude

    # Rise and set searches query the same days
    days: dict[int, RawRiseSet] = {}

    def day_events(offset: int) -> RawRiseSet:
        if offset not in days:
            days[offset] = provider.rise_set(when + timedelta(days=offset), lat, lng)
        return days[offset]

    try:
        position = provider.position(when, lat, lng)
        illumination = provider.illumination(when)
        next_rise = _next_event(when, horizon_days, day_events, lambda rs: rs.rise)
        next_set = _next_event(when, horizon_days, day_events, lambda rs: rs.set)
    except EphemerisUnavailable:
        raise
    except Exception as e:
        raise EphemerisUnavailable(f"Ephemeris lookup failed: {e}") from e

    altitude = math.degrees(position.altitude_rad)
    azimuth = _north_azimuth(position.azimuth_rad)

    logger.debug(
        "Moon at %s for %.4f,%.4f: alt=%.2f az=%.2f rise=%s set=%s (%d days queried)",
        when.isoformat(),
        lat,
        lng,
        altitude,
        azimuth,
        next_rise,
        next_set,
        len(days),
    )

    return MoonObservation(
        observed_at=when,
        coordinate=coordinate,
        is_visible=altitude > 0,
        altitude_degrees=altitude,
        azimuth_degrees=azimuth,
        phase=_wrap(illumination.phase, 1.0),
        illuminated_fraction=min(1.0, max(0.0, illumination.fraction)),
        next_rise=next_rise,
        next_set=next_set,
    )
