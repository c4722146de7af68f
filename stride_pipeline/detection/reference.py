"""
Offline reference step counter using whole-signal peak detection.
"""
import numpy as np
from scipy.signal import butter, filtfilt, find_peaks

from ..config import DEFAULT_THRESHOLD, DEFAULT_REFRACTORY_INTERVAL_MS
from ..core.interfaces import ImuRecording


class ReferenceStepCounter:
    def __init__(
        self,
        threshold: float = DEFAULT_THRESHOLD,
        refractory_interval_ms: float = DEFAULT_REFRACTORY_INTERVAL_MS,
        filter_cutoff: float = 3.0,
        filter_order: int = 2
    ):
        """
        Initialize the reference counter.

        Args:
            threshold: Minimum peak height of the magnitude signal
            refractory_interval_ms: Minimum spacing between peaks
            filter_cutoff: Low-pass cutoff in Hz (None disables filtering)
            filter_order: Butterworth filter order
        """
        self.threshold = threshold
        self.refractory_interval_ms = refractory_interval_ms
        self.filter_cutoff = filter_cutoff
        self.filter_order = filter_order

    @staticmethod
    def sampling_frequency(timestamps: np.ndarray) -> float:
        """Estimate sampling frequency in Hz from millisecond timestamps."""
        if len(timestamps) < 2:
            return 0.0
        dt = np.median(np.diff(timestamps))
        return 1000.0 / dt if dt > 0 else 0.0

    def butter_lowpass_filter(self, data: np.ndarray, fs: float) -> np.ndarray:
        """Apply a zero-phase Butterworth low-pass filter when the signal allows it."""
        if self.filter_cutoff is None or fs <= 0:
            return data
        nyquist = 0.5 * fs
        if self.filter_cutoff >= nyquist:
            return data
        b, a = butter(self.filter_order, self.filter_cutoff / nyquist, btype='low', analog=False)
        padlen = 3 * max(len(a), len(b))
        if len(data) <= padlen:
            return data
        return filtfilt(b, a, data)

    def detect_peaks(self, recording: ImuRecording) -> np.ndarray:
        """Return sample indices of the detected steps."""
        magnitude = recording.magnitude()
        if len(magnitude) < 3:
            return np.array([], dtype=int)

        fs = self.sampling_frequency(recording.timestamp)
        signal = self.butter_lowpass_filter(magnitude, fs)

        distance = None
        if fs > 0:
            # find_peaks distance is inclusive, the refractory interval is strict
            distance = max(1, int(np.floor(self.refractory_interval_ms * fs / 1000.0)) + 1)

        peaks, _ = find_peaks(signal, height=self.threshold, distance=distance)
        return peaks

    def count(self, recording: ImuRecording) -> int:
        return int(len(self.detect_peaks(recording)))
