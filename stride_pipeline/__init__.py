"""
Accelerometer step counting pipeline.
"""
from .core.interfaces import AccelSample, StepEvent, ImuRecording, ActivitySummary, Pipeline, ReplayClock
from .config import DetectorConfig
from .detection.step_detector import StepDetector
from .detection.adaptive_detector import AdaptiveStepDetector
from .tracking.session import TrackingSession

__version__ = "0.1"
