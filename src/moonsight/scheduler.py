"""APScheduler-driven refresh loop feeding the display layer one state at a time."""

import asyncio
import logging
from datetime import datetime
from typing import Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from pytz import utc

from moonsight.errors import (
    EphemerisUnavailable,
    GeocodeUnavailable,
    LocationUnavailable,
    MoonsightError,
)
from moonsight.locations import DeviceLocator, preset_coordinate
from moonsight.models import (
    Coordinate,
    Failed,
    Idle,
    Loading,
    LocationSelection,
    MoonObservation,
    ObservationState,
    PresetSelection,
    Ready,
    ResolvedLocation,
)

logger = logging.getLogger(__name__)

Calculator = Callable[[datetime, Coordinate], MoonObservation]
Geocoder = Callable[[Coordinate], str | None]
Listener = Callable[[ObservationState], None]

JOB_ID = "moon_refresh"


def _utc_now() -> datetime:
    return datetime.now(utc)


class RefreshScheduler:
    """Recompute the observation on a fixed interval, on demand, and on location change.

    All three triggers end in `_recompute()`. The current state is a single cell:
    each attempt publishes Loading, then either Ready or Failed, replacing whatever
    was there. Overlapping attempts are allowed; the last one to finish wins.

    Interval ticks reuse the cached location and never ask the device again.
    """

    def __init__(
        self,
        calculate: Calculator,
        locator: DeviceLocator | None = None,
        geocoder: Geocoder | None = None,
        interval_seconds: float = 60,
        location_timeout: float = 10.0,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.locator = locator
        self._calculate = calculate
        self._geocoder = geocoder
        self._interval = interval_seconds
        self._location_timeout = location_timeout
        self._clock = clock
        self._scheduler: AsyncIOScheduler | None = None
        self._listeners: list[Listener] = []
        self._state: ObservationState = Idle()
        self._selection: LocationSelection | None = None
        self._location: ResolvedLocation | None = None
        self._last_attempt: datetime | None = None

    @property
    def last_attempt_at(self) -> datetime | None:
        """When the most recent computation started, whatever its outcome."""
        return self._last_attempt

    @property
    def state(self) -> ObservationState:
        return self._state

    @property
    def selection(self) -> LocationSelection | None:
        return self._selection

    @property
    def location(self) -> ResolvedLocation | None:
        return self._location

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call `listener` with every new state. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, state: ObservationState) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    async def start(self, selection: LocationSelection) -> None:
        """Register the interval job and compute once for `selection`.

        Must be awaited inside a running event loop.
        """
        if self._scheduler is None:
            self._scheduler = AsyncIOScheduler(timezone=utc)
            self._scheduler.add_job(
                self.tick,
                IntervalTrigger(seconds=self._interval, timezone=utc),
                id=JOB_ID,
                replace_existing=True,
                coalesce=True,
            )
            self._scheduler.start()
            logger.info("Refresh scheduled every %ss", self._interval)
        await self.select_location(selection)

    def shutdown(self) -> None:
        """Cancel the interval job. Safe to call more than once."""
        if self._scheduler is not None:
            if self._scheduler.running:
                self._scheduler.shutdown(wait=False)
            self._scheduler = None
            logger.info("Refresh schedule cancelled")

    async def select_location(self, selection: LocationSelection) -> None:
        """Make `selection` active, resolve it, and recompute."""
        self._selection = selection
        self._location = None
        self._publish(Loading())
        try:
            location = await self._resolve(selection)
        except MoonsightError as e:
            logger.warning("Could not resolve %s: %s", selection, e)
            self._publish(Failed(e))
            return
        self._location = location
        logger.info(
            "Location set to %s (%s)",
            location.place_name or location.coordinate,
            location.source,
        )
        await self._recompute(location)

    async def refresh(self) -> None:
        """Manual refresh. Resolves the selection again only if nothing is cached."""
        if self._location is not None:
            await self._recompute(self._location)
        elif self._selection is not None:
            await self.select_location(self._selection)
        else:
            logger.debug("Refresh requested before any location was selected")

    def due(self, now: datetime) -> bool:
        """True once a full interval has passed since the last attempt for a cached location.

        Failed attempts count, so the cadence survives an error.
        """
        if self._location is None or self._last_attempt is None:
            return False
        return (now - self._last_attempt).total_seconds() >= self._interval

    async def tick(self) -> None:
        """Interval trigger. Recomputes for the cached location only."""
        if self._location is None:
            logger.debug("Tick skipped: no cached location")
            return
        await self._recompute(self._location)

    async def _resolve(self, selection: LocationSelection) -> ResolvedLocation:
        if isinstance(selection, PresetSelection):
            return ResolvedLocation(
                coordinate=preset_coordinate(selection.name),
                place_name=selection.name,
                source="preset",
            )

        if self.locator is None:
            raise LocationUnavailable("Device location is not available")
        try:
            coordinate = await asyncio.wait_for(self.locator(), self._location_timeout)
        except asyncio.TimeoutError:
            raise LocationUnavailable("Location error: timed out") from None
        except MoonsightError:
            raise
        except Exception as e:
            logger.exception("Device locator failed")
            raise LocationUnavailable(f"Location error: {e}") from e

        place_name = None
        if self._geocoder is not None:
            try:
                place_name = await asyncio.to_thread(self._geocoder, coordinate)
            except GeocodeUnavailable as e:
                logger.warning("No place name for %s: %s", coordinate, e)
            except Exception:
                logger.exception("Geocoder failed for %s", coordinate)
        return ResolvedLocation(coordinate=coordinate, place_name=place_name, source="device")

    async def _recompute(self, location: ResolvedLocation) -> None:
        self._publish(Loading())
        now = self._clock()
        self._last_attempt = now
        try:
            observation = await asyncio.to_thread(self._calculate, now, location.coordinate)
        except MoonsightError as e:
            logger.warning("Moon computation failed for %s: %s", location.coordinate, e)
            self._publish(Failed(e))
            return
        except Exception as e:
            logger.exception("Moon computation crashed for %s", location.coordinate)
            self._publish(Failed(EphemerisUnavailable(f"Moon computation failed: {e}")))
            return
        logger.debug("Moon visible=%s at %s", observation.is_visible, location.coordinate)
        self._publish(Ready(observation=observation, location=location, updated_at=self._clock()))
