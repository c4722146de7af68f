from .step_detector import StepDetector
from .adaptive_detector import AdaptiveStepDetector
from .reference import ReferenceStepCounter

__all__ = [
    'StepDetector',
    'AdaptiveStepDetector',
    'ReferenceStepCounter',
]
