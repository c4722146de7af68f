"""
Data loader for accelerometer recordings and step count labels.
"""
import json
import logging
from pathlib import Path
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd

from ..core.interfaces import ImuRecording

logger = logging.getLogger(__name__)

# Accepted column names, first match wins
TIME_COLUMNS = ('timestamp', 'tMillis', 'time_ms', 'time_s')
AXIS_COLUMNS = {
    'x': ('x', 'ax', 'accel_x'),
    'y': ('y', 'ay', 'accel_y'),
    'z': ('z', 'az', 'accel_z'),
}


def _find_column(df: pd.DataFrame, candidates, filename: str) -> str:
    for name in candidates:
        if name in df.columns:
            return name
    raise ValueError(f"{filename} has none of the columns {list(candidates)}")


class DataLoader:
    def __init__(self, data_dir: str):
        """Initialize data loader with data directory."""
        self.data_dir = Path(data_dir)

    def load_imu_data(self, filename: str) -> ImuRecording:
        """Load an accelerometer recording from CSV."""
        path = self.data_dir / filename
        if not path.exists():
            raise FileNotFoundError(f"Recording not found: {path}")

        df = pd.read_csv(path)
        time_col = _find_column(df, TIME_COLUMNS, filename)
        axes = {axis: _find_column(df, names, filename) for axis, names in AXIS_COLUMNS.items()}

        timestamps = df[time_col].to_numpy(dtype=float)
        # Sub-unit spacing means the clock is in seconds
        if time_col == 'time_s' or (len(timestamps) > 1 and np.median(np.diff(timestamps)) < 1.0):
            timestamps = timestamps * 1000.0

        return ImuRecording(
            timestamp=timestamps,
            accel_x=df[axes['x']].to_numpy(dtype=float),
            accel_y=df[axes['y']].to_numpy(dtype=float),
            accel_z=df[axes['z']].to_numpy(dtype=float),
            name=Path(filename).stem
        )

    def label_path(self, imu_filename: str) -> Path:
        name = Path(imu_filename).name
        if name.endswith('_imu.csv'):
            name = name[:-len('_imu.csv')]
        else:
            name = Path(name).stem
        return self.data_dir / f"{name}_labels.json"

    def load_labels(self, imu_filename: str) -> Optional[int]:
        """Load the hand-counted step total for a recording."""
        label_file = self.label_path(imu_filename)

        if not label_file.exists():
            logger.warning("No labels found for %s", imu_filename)
            return None

        with open(label_file, 'r') as f:
            labels = json.load(f)

        if 'steps' not in labels:
            raise ValueError(f"{label_file} has no 'steps' entry")
        return int(labels['steps'])

    def load_dataset(self) -> List[Tuple[ImuRecording, Optional[int]]]:
        """Load all recordings with their labels."""
        dataset = []
        for imu_file in sorted(self.data_dir.glob('*_imu.csv')):
            recording = self.load_imu_data(imu_file.name)
            dataset.append((recording, self.load_labels(imu_file.name)))
        return dataset
