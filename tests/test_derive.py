"""
Derived value tests: phase names, moon age, compass points, countdowns.
Run:  python -m pytest tests/test_derive.py -v
"""
from datetime import timedelta

import pytest

from conftest import NOW
from moonsight.derive import (
    SYNODIC_MONTH_DAYS,
    compass_label,
    illumination_percent,
    moon_age_days,
    next_major_phase,
    normalize_heading,
    phase_label,
    pointer_rotation,
    time_remaining,
)
from moonsight.models import PhaseLabel, TimeRemaining

# ─────────────────────────────────────────────────────────────────────────────
# 1. PHASE LABELS
# ─────────────────────────────────────────────────────────────────────────────


class TestPhaseLabel:

    @pytest.mark.parametrize(
        "phase, expected",
        [
            (0.0, PhaseLabel.NEW_MOON),
            (0.029, PhaseLabel.NEW_MOON),
            (0.03, PhaseLabel.WAXING_CRESCENT),
            (0.1, PhaseLabel.WAXING_CRESCENT),
            (0.22, PhaseLabel.FIRST_QUARTER),
            (0.25, PhaseLabel.FIRST_QUARTER),
            (0.28, PhaseLabel.WAXING_GIBBOUS),
            (0.47, PhaseLabel.FULL_MOON),
            (0.5, PhaseLabel.FULL_MOON),
            (0.53, PhaseLabel.WANING_GIBBOUS),
            (0.72, PhaseLabel.LAST_QUARTER),
            (0.75, PhaseLabel.LAST_QUARTER),
            (0.78, PhaseLabel.WANING_CRESCENT),
            (0.97, PhaseLabel.WANING_CRESCENT),
            (0.971, PhaseLabel.NEW_MOON),
            (0.999, PhaseLabel.NEW_MOON),
        ],
    )
    def test_bands(self, phase, expected):
        assert phase_label(phase) is expected

    def test_wraps_at_one(self):
        assert phase_label(1.0) is PhaseLabel.NEW_MOON
        assert phase_label(1.5) is PhaseLabel.FULL_MOON

    def test_every_phase_has_exactly_one_label(self):
        for i in range(1000):
            assert isinstance(phase_label(i / 1000), PhaseLabel)


# ─────────────────────────────────────────────────────────────────────────────
# 2. MOON AGE AND NEXT MAJOR PHASE
# ─────────────────────────────────────────────────────────────────────────────


class TestMoonAge:

    def test_new_moon_is_zero(self):
        assert moon_age_days(0) == 0.0

    def test_full_moon_is_half_cycle(self):
        assert moon_age_days(0.5) == pytest.approx(14.8, abs=0.1)

    def test_one_decimal(self):
        assert moon_age_days(0.123) == round(0.123 * SYNODIC_MONTH_DAYS, 1)


class TestNextMajorPhase:

    def test_waxing_crescent_heads_to_first_quarter(self):
        major = next_major_phase(0.1, NOW)
        assert major.label is PhaseLabel.FIRST_QUARTER
        assert (major.at - NOW).total_seconds() == pytest.approx(0.15 * SYNODIC_MONTH_DAYS * 86400)

    def test_exact_quarter_moves_to_next(self):
        major = next_major_phase(0.25, NOW)
        assert major.label is PhaseLabel.FULL_MOON
        assert (major.at - NOW).total_seconds() == pytest.approx(0.25 * SYNODIC_MONTH_DAYS * 86400)

    def test_full_moon_heads_to_last_quarter(self):
        assert next_major_phase(0.5, NOW).label is PhaseLabel.LAST_QUARTER

    def test_waning_crescent_heads_to_new_moon(self):
        major = next_major_phase(0.9, NOW)
        assert major.label is PhaseLabel.NEW_MOON
        assert major.at > NOW
        assert major.at - NOW < timedelta(days=3)

    def test_new_moon_heads_to_first_quarter(self):
        assert next_major_phase(0.0, NOW).label is PhaseLabel.FIRST_QUARTER


# ─────────────────────────────────────────────────────────────────────────────
# 3. COMPASS
# ─────────────────────────────────────────────────────────────────────────────


class TestCompass:

    @pytest.mark.parametrize(
        "azimuth, expected",
        [
            (0, "N"),
            (11.24, "N"),
            (11.25, "NNE"),
            (45, "NE"),
            (90, "E"),
            (180, "S"),
            (202.5, "SSW"),
            (270, "W"),
            (348.74, "NNW"),
            (348.75, "N"),
            (359.9, "N"),
        ],
    )
    def test_sixteen_points(self, azimuth, expected):
        assert compass_label(azimuth) == expected

    def test_heading_conventions(self):
        assert normalize_heading(webkit_compass_heading=90) == 90
        assert normalize_heading(alpha=90) == 270
        assert normalize_heading(webkit_compass_heading=10, alpha=90) == 10
        assert normalize_heading() is None

    def test_pointer_rotation(self):
        assert pointer_rotation(180, None) == 180
        assert pointer_rotation(180, 90) == 90
        assert pointer_rotation(10, 350) == 20


# ─────────────────────────────────────────────────────────────────────────────
# 4. COUNTDOWN AND DISPLAY HELPERS
# ─────────────────────────────────────────────────────────────────────────────


class TestTimeRemaining:

    def test_absent_target(self):
        assert time_remaining(None, NOW) is None

    def test_past_and_present_targets(self):
        assert time_remaining(NOW - timedelta(seconds=1), NOW) is None
        assert time_remaining(NOW, NOW) is None

    def test_floors_to_whole_minutes(self):
        assert time_remaining(NOW + timedelta(seconds=30), NOW) == TimeRemaining(0, 0)
        assert time_remaining(NOW + timedelta(minutes=59, seconds=59), NOW) == TimeRemaining(0, 59)

    def test_hours_and_minutes(self):
        assert time_remaining(NOW + timedelta(hours=5, minutes=7), NOW) == TimeRemaining(5, 7)
        assert time_remaining(NOW + timedelta(days=1, minutes=1), NOW) == TimeRemaining(24, 1)

    def test_illumination_percent(self):
        assert illumination_percent(0.0) == 0
        assert illumination_percent(0.506) == 51
        assert illumination_percent(1.0) == 100
