"""Values derived from a MoonObservation for display. All pure functions."""

import math
from datetime import datetime, timedelta

from moonsight.models import MajorPhase, PhaseLabel, TimeRemaining

SYNODIC_MONTH_DAYS = 29.53

_COMPASS_POINTS = (
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
)  # fmt: skip

# Upper bounds (exclusive) for each band after the new moon check
_PHASE_BANDS: tuple[tuple[float, PhaseLabel], ...] = (
    (0.22, PhaseLabel.WAXING_CRESCENT),
    (0.28, PhaseLabel.FIRST_QUARTER),
    (0.47, PhaseLabel.WAXING_GIBBOUS),
    (0.53, PhaseLabel.FULL_MOON),
    (0.72, PhaseLabel.WANING_GIBBOUS),
    (0.78, PhaseLabel.LAST_QUARTER),
)

_MAJOR_PHASES: tuple[tuple[float, PhaseLabel], ...] = (
    (0.25, PhaseLabel.FIRST_QUARTER),
    (0.5, PhaseLabel.FULL_MOON),
    (0.75, PhaseLabel.LAST_QUARTER),
    (1.0, PhaseLabel.NEW_MOON),
)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def phase_label(phase: float) -> PhaseLabel:
    """Name the phase. `phase` wraps at 0/1; 0.03 is already a waxing crescent."""
    phase = phase % 1.0
    if phase < 0.03 or phase > 0.97:
        return PhaseLabel.NEW_MOON
    for upper, label in _PHASE_BANDS:
        if phase < upper:
            return label
    return PhaseLabel.WANING_CRESCENT


def moon_age_days(phase: float) -> float:
    """Days since new moon, to one decimal."""
    return round(phase * SYNODIC_MONTH_DAYS, 1)


def next_major_phase(phase: float, now: datetime) -> MajorPhase:
    """The next quarter, full, or new moon after `phase`, dated from `now`.

    Uses the mean synodic month, so the date is approximate to within a day or so.
    """
    phase = phase % 1.0
    for target, label in _MAJOR_PHASES:
        if target > phase:
            days = (target - phase) * SYNODIC_MONTH_DAYS
            return MajorPhase(label=label, at=now + timedelta(days=days))
    # phase % 1.0 < 1.0, so the loop always returns
    raise AssertionError(f"unreachable phase {phase}")


def compass_label(azimuth_degrees: float) -> str:
    """One of 16 compass points for a north-referenced azimuth."""
    return _COMPASS_POINTS[_round_half_up(azimuth_degrees / 22.5) % 16]


def time_remaining(target: datetime | None, now: datetime) -> TimeRemaining | None:
    """Whole hours and minutes until `target`, floored. None if absent or past."""
    if target is None or target <= now:
        return None
    seconds = (target - now).total_seconds()
    hours, rest = divmod(int(seconds), 3600)
    return TimeRemaining(hours=hours, minutes=rest // 60)


def illumination_percent(fraction: float) -> int:
    return _round_half_up(fraction * 100)


def normalize_heading(
    webkit_compass_heading: float | None = None, alpha: float | None = None
) -> float | None:
    """Device heading in degrees clockwise from north, or None if unknown.

    iOS reports `webkitCompassHeading` clockwise from north. Other devices report
    the absolute orientation `alpha`, which runs counter-clockwise.
    """
    if webkit_compass_heading is not None:
        return webkit_compass_heading % 360.0
    if alpha is not None:
        return (360.0 - alpha) % 360.0
    return None


def pointer_rotation(azimuth_degrees: float, heading: float | None) -> float:
    """Rotation for an on-screen arrow pointing at the moon. North-up without a heading."""
    return (azimuth_degrees - (heading or 0.0)) % 360.0
