from datetime import datetime, timedelta

import pytest
from pytz import utc

from moonsight.models import Coordinate, MoonObservation, RawIllumination, RawPosition, RawRiseSet

LONDON = Coordinate(51.5074, -0.1278)
NOW = datetime(2026, 10, 17, 21, 0, tzinfo=utc)


class FakeEphemeris:
    """EphemerisProvider returning canned values and recording every call."""

    def __init__(
        self,
        altitude_rad: float = 0.1,
        azimuth_rad: float = 0.0,
        phase: float = 0.25,
        fraction: float = 0.5,
        days: dict[int, RawRiseSet] | None = None,
        base: datetime = NOW,
    ) -> None:
        self.altitude_rad = altitude_rad
        self.azimuth_rad = azimuth_rad
        self.phase = phase
        self.fraction = fraction
        # keyed by whole days after `base`; missing days have no events
        self.days = days or {}
        self.base = base
        self.calls: list[tuple[str, datetime]] = []

    def position(self, when, lat, lng):
        self.calls.append(("position", when))
        return RawPosition(altitude_rad=self.altitude_rad, azimuth_rad=self.azimuth_rad)

    def illumination(self, when):
        self.calls.append(("illumination", when))
        return RawIllumination(phase=self.phase, fraction=self.fraction)

    def rise_set(self, when, lat, lng):
        self.calls.append(("rise_set", when))
        offset = (when.date() - self.base.date()).days
        return self.days.get(offset, RawRiseSet(rise=None, set=None))


class BrokenEphemeris(FakeEphemeris):
    def rise_set(self, when, lat, lng):
        raise OSError("kernel file is corrupt")


def make_observation(when: datetime = NOW, coordinate: Coordinate = LONDON, **overrides) -> MoonObservation:
    fields = dict(
        observed_at=when,
        coordinate=coordinate,
        is_visible=True,
        altitude_degrees=12.0,
        azimuth_degrees=135.0,
        phase=0.3,
        illuminated_fraction=0.6,
        next_rise=when + timedelta(hours=20),
        next_set=when + timedelta(hours=5),
    )
    fields.update(overrides)
    return MoonObservation(**fields)


@pytest.fixture
def fake_ephemeris():
    return FakeEphemeris()
