"""
Online peak-based step detector.

Consumes one 3-axis accelerometer sample at a time, keeps a short rolling
history of magnitudes and reports a step when the middle of the last three
magnitudes is a strict local maximum above the threshold. Steps closer than
the refractory interval to the previously accepted step are dropped.
"""
import logging
import math
from collections import deque
from typing import Callable, Optional

from ..config import DetectorConfig
from ..core.interfaces import StepDetectorBase, monotonic_ms

logger = logging.getLogger(__name__)


def sample_magnitude(x, y, z) -> float:
    """Euclidean norm of a sample; NaN when any component is missing or non-finite."""
    try:
        components = (float(x), float(y), float(z))
    except (TypeError, ValueError):
        return math.nan
    if not all(math.isfinite(c) for c in components):
        return math.nan
    return math.hypot(*components)


class StepDetector(StepDetectorBase):
    def __init__(
        self,
        on_step: Callable[[], None],
        threshold: Optional[float] = None,
        *,
        refractory_interval_ms: Optional[float] = None,
        max_history_length: Optional[int] = None,
        clock: Callable[[], float] = monotonic_ms,
        config: Optional[DetectorConfig] = None
    ):
        """
        Initialize the step detector.

        Args:
            on_step: Called with no arguments once per accepted step
            threshold: Magnitude a peak must exceed to count as a step (default 15)
            refractory_interval_ms: Minimum time between accepted steps
            max_history_length: Number of magnitudes kept in the rolling window
            clock: Returns the current time in milliseconds
            config: Base configuration; explicit arguments override it
        """
        if not callable(on_step):
            raise TypeError("on_step must be callable")
        self._config = (config or DetectorConfig()).replace(
            threshold=threshold,
            refractory_interval_ms=refractory_interval_ms,
            max_history_length=max_history_length
        )
        self.on_step = on_step
        self.clock = clock

        self._history = deque(maxlen=self._config.max_history_length)
        self.last_step_timestamp: Optional[float] = None
        self._last_peak = math.nan

    @property
    def config(self) -> DetectorConfig:
        return self._config

    @property
    def threshold(self) -> float:
        return self._config.threshold

    @property
    def refractory_interval_ms(self) -> float:
        return self._config.refractory_interval_ms

    @property
    def max_history_length(self) -> int:
        return self._config.max_history_length

    @property
    def history(self) -> tuple:
        """Snapshot of the buffered magnitudes, oldest first."""
        return tuple(self._history)

    @property
    def is_armed(self) -> bool:
        """True once enough samples are buffered to evaluate a peak."""
        return len(self._history) >= 3

    @property
    def last_peak_magnitude(self) -> float:
        return self._last_peak

    def get_params(self) -> dict:
        return self._config.to_dict()

    def process(self, x: float, y: float, z: float) -> None:
        self._history.append(sample_magnitude(x, y, z))

        if not self.is_armed:
            return

        before_previous, previous, current = (
            self._history[-3], self._history[-2], self._history[-1]
        )
        # NaN fails every comparison, so non-finite samples never form a peak
        if not (previous > before_previous and previous > current and previous > self.threshold):
            return

        now = self.clock()
        if (self.last_step_timestamp is not None and
                now - self.last_step_timestamp <= self.refractory_interval_ms):
            logger.debug("Peak %.2f suppressed inside refractory interval", previous)
            return

        self.last_step_timestamp = now
        self._last_peak = previous
        logger.debug("Step detected at %.1f ms (magnitude %.2f)", now, previous)
        self.on_step()

    def reset(self) -> None:
        self._history.clear()
        self.last_step_timestamp = None
        self._last_peak = math.nan
