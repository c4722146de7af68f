"""
Tracking session turning step events into distance, calories and duration.
"""
import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from ..core.interfaces import ActivitySummary, StepDetectorBase, monotonic_ms
from .geo import haversine_km, route_distance_km

logger = logging.getLogger(__name__)

STEP_LENGTH_KM = 0.000762
CALORIES_PER_STEP = 0.04
MIN_GPS_HOP_KM = 0.01

# Session states
SESSION_IDLE = 0
SESSION_TRACKING = 1
SESSION_PAUSED = 2
SESSION_STOPPED = 3


class TrackingSession:
    def __init__(
        self,
        step_length_km: float = STEP_LENGTH_KM,
        calories_per_step: float = CALORIES_PER_STEP,
        min_gps_hop_km: float = MIN_GPS_HOP_KM,
        clock: Callable[[], float] = monotonic_ms
    ):
        """
        Initialize a tracking session.

        Args:
            step_length_km: Distance credited per step when no GPS route exists
            calories_per_step: Calories credited per step
            min_gps_hop_km: GPS fixes closer than this to the last kept fix are ignored
            clock: Returns the current time in milliseconds
        """
        self.step_length_km = step_length_km
        self.calories_per_step = calories_per_step
        self.min_gps_hop_km = min_gps_hop_km
        self.clock = clock
        self.detector: Optional[StepDetectorBase] = None
        self._clear()

    def _clear(self):
        self.state = SESSION_IDLE
        self.steps = 0
        self.route: List[Tuple[float, float]] = []
        self.current_location: Optional[Tuple[float, float]] = None
        self._active_since: Optional[float] = None
        self._elapsed_ms = 0.0

    def make_detector(self, factory: Callable[..., StepDetectorBase], **kwargs) -> StepDetectorBase:
        """Create a detector whose steps are credited to this session."""
        self.detector = factory(self.record_step, **kwargs)
        return self.detector

    @property
    def is_tracking(self) -> bool:
        return self.state == SESSION_TRACKING

    @property
    def is_paused(self) -> bool:
        return self.state == SESSION_PAUSED

    def _require(self, action: str, *states):
        if self.state not in states:
            raise RuntimeError(f"Cannot {action} session in state {self.state}")

    def start(self):
        self._require('start', SESSION_IDLE)
        self._active_since = self.clock()
        self.state = SESSION_TRACKING
        logger.info("Tracking started")

    def pause(self):
        self._require('pause', SESSION_TRACKING)
        self._elapsed_ms += self.clock() - self._active_since
        self._active_since = None
        self.state = SESSION_PAUSED
        logger.info("Tracking paused")

    def resume(self):
        self._require('resume', SESSION_PAUSED)
        # Refractory timing from before the pause must not leak into the resumed stream
        if self.detector is not None:
            self.detector.reset()
        self._active_since = self.clock()
        self.state = SESSION_TRACKING
        logger.info("Tracking resumed")

    def record_step(self):
        """Step callback; steps outside active tracking are ignored."""
        if self.state == SESSION_TRACKING:
            self.steps += 1

    def add_position(self, latitude: float, longitude: float):
        """Add a GPS fix to the route."""
        if self.state != SESSION_TRACKING:
            return
        point = (latitude, longitude)
        if self.route:
            hop = haversine_km(*self.route[-1], latitude, longitude)
            if hop > self.min_gps_hop_km:
                self.route.append(point)
        else:
            self.route.append(point)
        self.current_location = point

    @property
    def gps_distance_km(self) -> float:
        """Length of the kept GPS route."""
        return route_distance_km(self.route)

    @property
    def distance_km(self) -> float:
        if self.route:
            return self.gps_distance_km
        return self.steps * self.step_length_km

    @property
    def calories(self) -> float:
        return self.steps * self.calories_per_step

    @property
    def duration_s(self) -> int:
        elapsed = self._elapsed_ms
        if self._active_since is not None:
            elapsed += self.clock() - self._active_since
        return int(elapsed // 1000)

    def summary(self, date: Optional[str] = None) -> ActivitySummary:
        return ActivitySummary(
            steps=self.steps,
            distance=round(self.distance_km, 2),
            calories=int(round(self.calories)),
            duration=self.duration_s,
            date=date or datetime.now(timezone.utc).isoformat(),
            route=list(self.route),
            has_gps=bool(self.route)
        )

    def stop(self, date: Optional[str] = None) -> Optional[ActivitySummary]:
        """Finish the session. Returns None when no steps were recorded."""
        self._require('stop', SESSION_TRACKING, SESSION_PAUSED)
        if self._active_since is not None:
            self._elapsed_ms += self.clock() - self._active_since
            self._active_since = None
        self.state = SESSION_STOPPED

        if self.steps == 0:
            logger.info("No steps to save")
            return None
        return self.summary(date)

    def reset(self):
        """Discard the session and return to idle."""
        if self.detector is not None:
            self.detector.reset()
        self._clear()
        logger.info("Tracking reset")
