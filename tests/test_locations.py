"""
Location layer tests: presets, geolocation payloads, reverse geocoding.
Run:  python -m pytest tests/test_locations.py -v
"""
import httpx
import pytest

from conftest import LONDON, make_observation
from moonsight.errors import GeocodeUnavailable, LocationUnavailable
from moonsight.locations import (
    PRESET_CITIES,
    UNKNOWN_PLACE,
    coordinate_from_geolocation,
    geolocation_key,
    payload_locator,
    place_name_for,
    preset_coordinate,
    reverse_geocode,
)
from moonsight.models import Coordinate, DeviceSelection, Failed, Ready
from moonsight.scheduler import RefreshScheduler


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


# ─────────────────────────────────────────────────────────────────────────────
# 1. PRESETS
# ─────────────────────────────────────────────────────────────────────────────


class TestPresets:

    def test_known_city(self):
        assert preset_coordinate("London") == LONDON

    def test_unknown_city(self):
        with pytest.raises(LocationUnavailable):
            preset_coordinate("Atlantis")

    def test_all_presets_are_valid_coordinates(self):
        assert PRESET_CITIES
        for name, coordinate in PRESET_CITIES.items():
            assert isinstance(coordinate, Coordinate), name


# ─────────────────────────────────────────────────────────────────────────────
# 2. BROWSER GEOLOCATION PAYLOADS
# ─────────────────────────────────────────────────────────────────────────────


class TestGeolocationPayload:

    def test_success_payload(self):
        payload = {"coords": {"latitude": 51.5074, "longitude": -0.1278, "accuracy": 20}, "timestamp": 0}
        assert coordinate_from_geolocation(payload) == LONDON

    def test_permission_denied(self):
        with pytest.raises(LocationUnavailable, match="denied"):
            coordinate_from_geolocation({"error": {"code": 1, "message": "User denied Geolocation"}})

    def test_error_without_message_uses_code(self):
        with pytest.raises(LocationUnavailable, match="timed out"):
            coordinate_from_geolocation({"error": {"code": 3}})

    def test_no_payload(self):
        with pytest.raises(LocationUnavailable):
            coordinate_from_geolocation(None)

    def test_malformed_payload(self):
        with pytest.raises(LocationUnavailable):
            coordinate_from_geolocation({"coords": {"latitude": "north"}})

    def test_out_of_range_payload(self):
        with pytest.raises(LocationUnavailable):
            coordinate_from_geolocation({"coords": {"latitude": 123, "longitude": 0}})

    def test_each_attempt_gets_its_own_component_key(self):
        keys = {geolocation_key(n) for n in range(5)}
        assert len(keys) == 5
        assert geolocation_key(2) == geolocation_key(2)

    @pytest.mark.asyncio
    async def test_new_payload_recovers_after_denied_one(self):
        sched = RefreshScheduler(lambda when, c: make_observation(when=when, coordinate=c))
        sched.locator = payload_locator({"error": {"code": 1}})
        await sched.select_location(DeviceSelection())
        assert isinstance(sched.state, Failed)

        # the stored payload replays the same error
        await sched.refresh()
        assert isinstance(sched.state, Failed)

        sched.locator = payload_locator({"coords": {"latitude": 51.5074, "longitude": -0.1278}})
        await sched.select_location(DeviceSelection())
        assert isinstance(sched.state, Ready)
        assert sched.location.coordinate == LONDON


# ─────────────────────────────────────────────────────────────────────────────
# 3. REVERSE GEOCODING
# ─────────────────────────────────────────────────────────────────────────────


class TestReverseGeocode:

    def test_city_name_and_request_shape(self):
        seen = {}

        def handler(request):
            seen["params"] = dict(request.url.params)
            seen["agent"] = request.headers["User-Agent"]
            return httpx.Response(200, json={"address": {"city": "London", "country": "UK"}})

        name = reverse_geocode(LONDON, client=_client(handler), user_agent="test-agent")
        assert name == "London"
        assert seen["params"]["lat"] == "51.5074"
        assert seen["params"]["lon"] == "-0.1278"
        assert seen["params"]["format"] == "json"
        assert seen["agent"] == "test-agent"

    def test_falls_back_to_town(self):
        def handler(request):
            return httpx.Response(200, json={"address": {"town": "Whitby"}})

        assert reverse_geocode(LONDON, client=_client(handler)) == "Whitby"

    def test_no_locality_gives_unknown(self):
        def handler(request):
            return httpx.Response(200, json={"error": "Unable to geocode"})

        assert reverse_geocode(LONDON, client=_client(handler)) == UNKNOWN_PLACE

    def test_http_error_raises(self):
        def handler(request):
            return httpx.Response(503)

        with pytest.raises(GeocodeUnavailable):
            reverse_geocode(LONDON, client=_client(handler))

    def test_bad_json_raises(self):
        def handler(request):
            return httpx.Response(200, content=b"<html>")

        with pytest.raises(GeocodeUnavailable):
            reverse_geocode(LONDON, client=_client(handler))

    def test_non_object_address_raises(self):
        def handler(request):
            return httpx.Response(200, json={"address": "10 Downing Street"})

        with pytest.raises(GeocodeUnavailable):
            reverse_geocode(LONDON, client=_client(handler))

    def test_place_name_for_survives_non_object_address(self):
        def handler(request):
            return httpx.Response(200, json={"address": ["London"]})

        assert place_name_for(LONDON, client=_client(handler)) is None

    def test_transport_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("no route", request=request)

        with pytest.raises(GeocodeUnavailable):
            reverse_geocode(LONDON, client=_client(handler))

    def test_place_name_for_swallows_failures(self):
        def handler(request):
            return httpx.Response(500)

        assert place_name_for(LONDON, client=_client(handler)) is None

    def test_place_name_for_success(self):
        def handler(request):
            return httpx.Response(200, json={"address": {"village": "Grasmere"}})

        assert place_name_for(LONDON, client=_client(handler)) == "Grasmere"
