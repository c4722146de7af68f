"""
Self-calibrating step detector for handheld devices.
"""
import logging
import math
from collections import deque
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from ..config import activity_mode_params, DEFAULT_ACTIVITY_MODE
from ..core.interfaces import StepDetectorBase, monotonic_ms
from .step_detector import sample_magnitude

logger = logging.getLogger(__name__)

GRAVITY = 9.81


@dataclass
class DetectorStats:
    is_calibrated: bool
    threshold: float
    baseline: float
    is_walking: bool
    consecutive_steps: int
    history_length: int


class AdaptiveStepDetector(StepDetectorBase):
    def __init__(
        self,
        on_step: Callable[[], None],
        threshold: float = 12.0,
        *,
        min_step_interval_ms: float = 250.0,
        max_step_interval_ms: float = 2000.0,
        max_history_length: int = 10,
        calibration_samples: int = 50,
        smoothing_alpha: float = 0.8,
        clock: Callable[[], float] = monotonic_ms
    ):
        """
        Initialize the adaptive detector.

        The first ``calibration_samples`` readings only estimate the gravity
        baseline and noise level; the threshold is then replaced by
        ``max(1.5, 2 * std)`` of those readings.

        Args:
            on_step: Called with no arguments once per accepted step
            threshold: Peak threshold used until calibration completes
            min_step_interval_ms: Steps closer than this are dropped
            max_step_interval_ms: Gap after which walking is considered stopped
            max_history_length: Size of the filtered magnitude window
            calibration_samples: Number of samples used for calibration
            smoothing_alpha: Weight of the new value in the low-pass filter
            clock: Returns the current time in milliseconds
        """
        if not callable(on_step):
            raise TypeError("on_step must be callable")
        if max_history_length < 5:
            raise ValueError("max_history_length must be at least 5")
        if calibration_samples < 1:
            raise ValueError("calibration_samples must be positive")

        self.on_step = on_step
        self.clock = clock
        self.threshold = threshold
        self.min_step_interval_ms = min_step_interval_ms
        self.max_step_interval_ms = max_step_interval_ms
        self.max_history_length = max_history_length
        self.calibration_samples = calibration_samples
        self.smoothing_alpha = smoothing_alpha
        self._initial_threshold = threshold

        self.history = deque(maxlen=max_history_length)
        self.baseline = GRAVITY
        self.is_calibrated = False
        self._calibration_buffer = []

        self.last_step_timestamp: Optional[float] = None
        self.last_process_timestamp: Optional[float] = None
        self.is_walking = False
        self.consecutive_steps = 0
        self._last_peak = math.nan

    @property
    def last_peak_magnitude(self) -> float:
        return self._last_peak

    def get_params(self) -> dict:
        return {
            'threshold': self._initial_threshold,
            'min_step_interval_ms': self.min_step_interval_ms,
            'max_step_interval_ms': self.max_step_interval_ms,
            'max_history_length': self.max_history_length,
            'calibration_samples': self.calibration_samples,
            'smoothing_alpha': self.smoothing_alpha,
        }

    def calibrate(self, magnitude: float):
        """Collect one calibration sample; finish calibration when enough are buffered."""
        if math.isnan(magnitude):
            return
        self._calibration_buffer.append(magnitude)
        if len(self._calibration_buffer) < self.calibration_samples:
            return

        samples = np.asarray(self._calibration_buffer)
        self.baseline = float(np.mean(samples))
        self.threshold = max(1.5, float(np.std(samples)) * 2)
        self.is_calibrated = True
        logger.info("Detector calibrated: baseline=%.2f threshold=%.2f", self.baseline, self.threshold)

    def low_pass(self, current: float, previous: float) -> float:
        return previous + self.smoothing_alpha * (current - previous)

    def is_valid_step_pattern(self) -> bool:
        """Check that recent variation looks like gait rather than noise or stillness."""
        if len(self.history) < 5:
            return True
        recent = np.asarray(list(self.history)[-5:])
        avg_variation = float(np.mean(np.abs(np.diff(recent))))
        return 0.3 < avg_variation < 10

    def process(self, x: float, y: float, z: float) -> None:
        now = self.clock()

        if (self.last_process_timestamp is not None and
                now - self.last_process_timestamp > self.max_step_interval_ms):
            logger.debug("Idle gap detected, clearing history")
            self.history.clear()
        self.last_process_timestamp = now

        raw_magnitude = sample_magnitude(x, y, z)
        if not self.is_calibrated:
            self.calibrate(raw_magnitude)
            return

        magnitude = abs(raw_magnitude - self.baseline)
        if self.history and not math.isnan(self.history[-1]):
            magnitude = self.low_pass(magnitude, self.history[-1])
        self.history.append(magnitude)

        if len(self.history) >= 4:
            self._check_peak(now)

        if (self.is_walking and self.last_step_timestamp is not None and
                now - self.last_step_timestamp > self.max_step_interval_ms):
            logger.debug("Walking state reset after inactivity")
            self.is_walking = False
            self.consecutive_steps = 0

    def _check_peak(self, now: float):
        before_before_previous, before_previous, previous, current = list(self.history)[-4:]
        is_peak = (previous > current and
                   previous > before_previous and
                   previous > before_before_previous and
                   previous > self.threshold)
        if not is_peak:
            return

        first_step = self.last_step_timestamp is None
        elapsed = math.inf if first_step else now - self.last_step_timestamp
        valid_timing = (elapsed > self.min_step_interval_ms and
                        (elapsed < self.max_step_interval_ms or first_step or not self.is_walking))

        if valid_timing and self.is_valid_step_pattern():
            self.last_step_timestamp = now
            self.consecutive_steps += 1
            self.is_walking = True
            self._last_peak = previous
            logger.debug("Step detected: magnitude=%.2f", previous)
            self.on_step()

    def set_activity_mode(self, mode: str):
        """Apply the threshold and timing preset for walking, running or hiking."""
        params = activity_mode_params(mode)
        if params is DEFAULT_ACTIVITY_MODE:
            logger.info("Unknown activity mode %r, using default preset", mode)
        self.threshold, self.min_step_interval_ms, self.max_step_interval_ms = params

    def stats(self) -> DetectorStats:
        return DetectorStats(
            is_calibrated=self.is_calibrated,
            threshold=self.threshold,
            baseline=self.baseline,
            is_walking=self.is_walking,
            consecutive_steps=self.consecutive_steps,
            history_length=len(self.history)
        )

    def reset(self) -> None:
        """Clear session state; calibration is kept."""
        self.history.clear()
        self.last_step_timestamp = None
        self.last_process_timestamp = None
        self.is_walking = False
        self.consecutive_steps = 0
        self._last_peak = math.nan

    def full_reset(self) -> None:
        """Clear session state and calibration."""
        self.reset()
        self._calibration_buffer = []
        self.is_calibrated = False
        self.baseline = GRAVITY
        self.threshold = self._initial_threshold
