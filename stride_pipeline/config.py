"""
Detector configuration and activity presets.
"""
import json
from dataclasses import dataclass, asdict, fields
from pathlib import Path

DEFAULT_THRESHOLD = 15.0
DEFAULT_REFRACTORY_INTERVAL_MS = 300.0
DEFAULT_MAX_HISTORY_LENGTH = 5
MIN_HISTORY_LENGTH = 3

# (threshold, min step interval ms, max step interval ms)
ACTIVITY_MODES = {
    'walking': (1.5, 400.0, 2000.0),
    'running': (2.5, 200.0, 1000.0),
    'hiking': (2.0, 500.0, 3000.0),
}
DEFAULT_ACTIVITY_MODE = (1.8, 250.0, 2000.0)


@dataclass(frozen=True)
class DetectorConfig:
    """Configuration of the peak-based step detector."""
    threshold: float = DEFAULT_THRESHOLD
    refractory_interval_ms: float = DEFAULT_REFRACTORY_INTERVAL_MS
    max_history_length: int = DEFAULT_MAX_HISTORY_LENGTH

    def __post_init__(self):
        if self.max_history_length < MIN_HISTORY_LENGTH:
            raise ValueError(
                f"max_history_length must be at least {MIN_HISTORY_LENGTH}, "
                f"got {self.max_history_length}"
            )
        if self.refractory_interval_ms < 0:
            raise ValueError("refractory_interval_ms must not be negative")

    def to_dict(self) -> dict:
        return asdict(self)

    def replace(self, **overrides) -> 'DetectorConfig':
        """Copy with the given non-None values overridden."""
        values = self.to_dict()
        values.update({k: v for k, v in overrides.items() if v is not None})
        return DetectorConfig(**values)

    @classmethod
    def from_dict(cls, data: dict) -> 'DetectorConfig':
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown detector config keys: {sorted(unknown)}")
        return cls(**data)

    @classmethod
    def from_file(cls, path: str) -> 'DetectorConfig':
        """
        Load configuration from a JSON file.

        Expected format:
        {
            "threshold": 15.0,
            "refractory_interval_ms": 300,
            "max_history_length": 5
        }
        """
        with open(Path(path), 'r') as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{path} must contain a JSON object")
        return cls.from_dict(data)


def activity_mode_params(mode: str) -> tuple:
    """Return (threshold, min interval, max interval) for an activity mode."""
    return ACTIVITY_MODES.get(mode, DEFAULT_ACTIVITY_MODE)
