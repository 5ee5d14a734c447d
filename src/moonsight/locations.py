"""Location layer: preset cities, device geolocation payloads, and reverse geocoding."""

import logging
from typing import Any, Awaitable, Callable

import httpx

from moonsight.config import NOMINATIM_REVERSE_URL
from moonsight.errors import GeocodeUnavailable, InvalidCoordinate, LocationUnavailable
from moonsight.models import Coordinate

logger = logging.getLogger(__name__)

UNKNOWN_PLACE = "Unknown Location"

# Async callable yielding the device's current position
DeviceLocator = Callable[[], Awaitable[Coordinate]]

PRESET_CITIES: dict[str, Coordinate] = {
    "London": Coordinate(51.5074, -0.1278),
    "New York": Coordinate(40.7128, -74.0060),
    "Los Angeles": Coordinate(34.0522, -118.2437),
    "Mexico City": Coordinate(19.4326, -99.1332),
    "São Paulo": Coordinate(-23.5505, -46.6333),
    "Reykjavík": Coordinate(64.1466, -21.9426),
    "Paris": Coordinate(48.8566, 2.3522),
    "Cairo": Coordinate(30.0444, 31.2357),
    "Nairobi": Coordinate(-1.2921, 36.8219),
    "Moscow": Coordinate(55.7558, 37.6173),
    "Mumbai": Coordinate(19.0760, 72.8777),
    "Singapore": Coordinate(1.3521, 103.8198),
    "Seoul": Coordinate(37.5665, 126.9780),
    "Tokyo": Coordinate(35.6762, 139.6503),
    "Sydney": Coordinate(-33.8688, 151.2093),
    "Auckland": Coordinate(-36.8485, 174.7633),
    "Tromsø": Coordinate(69.6492, 18.9553),
}

# W3C GeolocationPositionError codes
_GEOLOCATION_ERRORS = {
    1: "permission denied",
    2: "position unavailable",
    3: "timed out",
}


def preset_coordinate(name: str) -> Coordinate:
    """Look up a preset city.

    Raises:
        LocationUnavailable: If `name` is not in the preset table.
    """
    try:
        return PRESET_CITIES[name]
    except KeyError:
        raise LocationUnavailable(f"Unknown preset location: {name}") from None


def coordinate_from_geolocation(payload: dict[str, Any] | None) -> Coordinate:
    """Parse a browser `navigator.geolocation.getCurrentPosition` result.

    Accepts either `{"coords": {"latitude": ..., "longitude": ...}}` or
    `{"error": {"code": ..., "message": ...}}`.

    Raises:
        LocationUnavailable: On an error payload, a missing payload, or a payload
            without usable coordinates.
    """
    if not payload:
        raise LocationUnavailable("Geolocation is not supported by this browser")
    if "error" in payload:
        error = payload["error"] or {}
        reason = _GEOLOCATION_ERRORS.get(error.get("code"), "unknown error")
        message = error.get("message") or reason
        raise LocationUnavailable(f"Location error: {message}")
    coords = payload.get("coords") or {}
    try:
        return Coordinate(float(coords["latitude"]), float(coords["longitude"]))
    except (KeyError, TypeError, ValueError, InvalidCoordinate) as e:
        raise LocationUnavailable(f"Malformed geolocation payload: {e}") from e


def geolocation_key(attempt: int) -> str:
    """Component key for the browser geolocation request.

    A new key makes the browser ask for a fresh fix instead of replaying the stored one.
    """
    return f"geolocation_{attempt}"


def payload_locator(payload: dict[str, Any] | None) -> DeviceLocator:
    """Wrap an already-delivered geolocation payload as a DeviceLocator."""

    async def locate() -> Coordinate:
        return coordinate_from_geolocation(payload)

    return locate


def reverse_geocode(
    coordinate: Coordinate,
    client: httpx.Client | None = None,
    url: str = NOMINATIM_REVERSE_URL,
    user_agent: str = "Moonsight/1.0",
    timeout: float = 10.0,
) -> str:
    """Nominatim (OpenStreetMap) reverse geocoder. Returns a short place name.

    Raises:
        GeocodeUnavailable: On transport errors, HTTP errors, or an unreadable body.
    """
    params = {
        "lat": coordinate.latitude,
        "lon": coordinate.longitude,
        "format": "json",
        "zoom": 10,
        "accept-language": "en",
    }
    headers = {"User-Agent": user_agent}
    try:
        if client is None:
            resp = httpx.get(url, params=params, headers=headers, timeout=timeout)
        else:
            resp = client.get(url, params=params, headers=headers, timeout=timeout)
        resp.raise_for_status()
        data = resp.json()
    except (httpx.HTTPError, ValueError) as e:
        raise GeocodeUnavailable(f"Reverse geocoding failed: {e}") from e
    if not isinstance(data, dict):
        raise GeocodeUnavailable(f"Unexpected geocoder response: {data!r}")

    address = data.get("address") or {}
    if not isinstance(address, dict):
        raise GeocodeUnavailable(f"Unexpected address in geocoder response: {address!r}")
    for key in ("city", "town", "village", "municipality", "county"):
        if address.get(key):
            return str(address[key])
    return UNKNOWN_PLACE


def place_name_for(coordinate: Coordinate, **kwargs: Any) -> str | None:
    """Best-effort reverse_geocode. None on failure."""
    try:
        return reverse_geocode(coordinate, **kwargs)
    except GeocodeUnavailable as e:
        logger.warning("No place name for %s: %s", coordinate, e)
        return None
