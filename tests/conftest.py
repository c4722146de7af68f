import numpy as np
import pandas as pd
import pytest

from stride_pipeline.core.interfaces import ImuRecording


class FakeClock:
    """Manually advanced millisecond clock."""
    def __init__(self, start=0.0):
        self.now = start

    def advance(self, ms):
        self.now += ms

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


def feed(detector, clock, magnitudes, dt_ms=50.0):
    """Stream magnitudes along the z axis, advancing the clock before each sample."""
    for m in magnitudes:
        clock.advance(dt_ms)
        detector.process(0.0, 0.0, m)


def make_recording(magnitudes, dt_ms=50.0, name="walk"):
    magnitudes = np.asarray(magnitudes, dtype=float)
    n = len(magnitudes)
    return ImuRecording(
        timestamp=np.arange(n) * dt_ms,
        accel_x=np.zeros(n),
        accel_y=np.zeros(n),
        accel_z=magnitudes,
        name=name
    )


def write_recording_csv(path, magnitudes, dt_s=0.05):
    n = len(magnitudes)
    pd.DataFrame({
        'timestamp': np.arange(n) * dt_s,
        'x': np.zeros(n),
        'y': np.zeros(n),
        'z': magnitudes,
    }).to_csv(path, index=False)
