"""Error kinds surfaced by the calculator, the scheduler, and the location layer."""


class MoonsightError(Exception):
    """Base class for every error the display layer knows how to show."""


class InvalidCoordinate(MoonsightError, ValueError):
    """Latitude or longitude outside the valid range."""


class LocationUnavailable(MoonsightError):
    """Device location denied, unsupported, timed out, or unknown preset."""


class EphemerisUnavailable(MoonsightError):
    """Ephemeris provider call failed."""


class GeocodeUnavailable(MoonsightError):
    """Reverse geocoder call failed. Never fatal."""
