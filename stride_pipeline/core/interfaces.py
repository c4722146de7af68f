"""
Core interfaces and data classes for the step counting pipeline.
"""
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

import joblib
import numpy as np


@dataclass
class AccelSample:
    """One accelerometer reading."""
    x: float
    y: float
    z: float
    timestamp: Optional[float] = None  # ms, only set for recorded samples


@dataclass
class StepEvent:
    """A step accepted by a detector during replay."""
    timestamp: float  # ms
    sample_idx: int
    magnitude: float


@dataclass
class ImuRecording:
    """Recorded accelerometer session."""
    timestamp: np.ndarray  # ms
    accel_x: np.ndarray
    accel_y: np.ndarray
    accel_z: np.ndarray
    name: str = ""

    def __len__(self) -> int:
        return len(self.timestamp)

    def samples(self):
        """Iterate the recording as AccelSample values."""
        for t, x, y, z in zip(self.timestamp, self.accel_x, self.accel_y, self.accel_z):
            yield AccelSample(float(x), float(y), float(z), float(t))

    def magnitude(self) -> np.ndarray:
        return np.sqrt(self.accel_x ** 2 + self.accel_y ** 2 + self.accel_z ** 2)


@dataclass
class ActivitySummary:
    """Summary of a finished tracking session."""
    steps: int
    distance: float  # km
    calories: int
    duration: int  # s
    date: str
    route: List[Tuple[float, float]] = field(default_factory=list)
    has_gps: bool = False


def monotonic_ms() -> float:
    """Default detector clock in milliseconds."""
    return time.monotonic() * 1000.0


class ReplayClock:
    """Clock driven by recorded sample timestamps."""
    def __init__(self, start: float = 0.0):
        self.now = start

    def advance_to(self, timestamp: float):
        self.now = timestamp

    def __call__(self) -> float:
        return self.now


class StepDetectorBase(ABC):
    """Abstract base class for online step detection."""
    @abstractmethod
    def process(self, x: float, y: float, z: float) -> None:
        """Consume one acceleration sample, possibly invoking the step callback."""
        pass

    @abstractmethod
    def reset(self) -> None:
        """Clear session state while keeping configuration."""
        pass

    @property
    def last_peak_magnitude(self) -> float:
        """Magnitude of the most recently accepted peak."""
        return float('nan')

    def get_params(self) -> dict:
        """Constructor parameters needed to rebuild this detector."""
        return {}

    def save(self, path: str) -> None:
        """Save the detector configuration. The callback and clock are not stored."""
        joblib.dump({'cls': type(self).__name__, 'params': self.get_params()}, path)

    @classmethod
    def load(cls, path: str, on_step: Callable[[], None], **kwargs) -> 'StepDetectorBase':
        """Load a saved configuration and bind it to a new callback."""
        data = joblib.load(path)
        if data.get('cls') != cls.__name__:
            raise ValueError(f"{path} holds a {data.get('cls')} configuration, not {cls.__name__}")
        params = dict(data['params'])
        params.update(kwargs)
        return cls(on_step, **params)


class Pipeline:
    """Replays recorded sessions through an online step detector."""
    def __init__(
        self,
        detector_factory: Callable[..., StepDetectorBase],
        **detector_kwargs
    ):
        """
        Args:
            detector_factory: Detector class (or callable) taking
                ``on_step`` as first argument and ``clock`` as keyword
            detector_kwargs: Extra keyword arguments for the detector
        """
        self.clock = ReplayClock()
        self._events: List[StepEvent] = []
        self._sample_idx = 0
        self.detector = detector_factory(self._on_step, clock=self.clock, **detector_kwargs)

    def _on_step(self):
        self._events.append(StepEvent(
            timestamp=self.clock.now,
            sample_idx=self._sample_idx,
            magnitude=self.detector.last_peak_magnitude
        ))

    def run(self, recording: ImuRecording) -> List[StepEvent]:
        """Feed every sample of the recording and return the accepted steps."""
        # Calibrating detectors must not carry calibration between recordings
        reset = getattr(self.detector, 'full_reset', self.detector.reset)
        reset()
        self._events = []
        for i, sample in enumerate(recording.samples()):
            self._sample_idx = i
            self.clock.advance_to(sample.timestamp)
            self.detector.process(sample.x, sample.y, sample.z)
        return list(self._events)

    def count(self, recording: ImuRecording) -> int:
        """Number of steps detected in the recording."""
        return len(self.run(recording))
