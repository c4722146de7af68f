"""
Organize raw recordings and a spreadsheet of hand-counted steps into the
pipeline's data layout without modifying the raw data.
"""
import json
import logging
import shutil
from pathlib import Path

import pandas as pd

logger = logging.getLogger(__name__)

RECORDING_COLUMN = 'Recording'
COUNT_COLUMN = 'Counted Steps'


def load_step_counts(counts_xlsx_path: Path) -> dict:
    """Read {recording stem: counted steps} from the counts spreadsheet."""
    counts = pd.read_excel(counts_xlsx_path, engine='openpyxl')
    missing = {RECORDING_COLUMN, COUNT_COLUMN} - set(counts.columns)
    if missing:
        raise ValueError(f"{counts_xlsx_path} is missing columns {sorted(missing)}")

    result = {}
    for _, row in counts.iterrows():
        if pd.isna(row[RECORDING_COLUMN]) or pd.isna(row[COUNT_COLUMN]):
            continue
        result[Path(str(row[RECORDING_COLUMN])).stem] = int(row[COUNT_COLUMN])
    return result


def convert_dataset(imu_csv_path: Path, steps: int, output_dir: Path, counts_name: str = ""):
    """Copy one recording and write its label file."""
    output_name = imu_csv_path.stem
    shutil.copy2(imu_csv_path, output_dir / f"{output_name}_imu.csv")

    with open(output_dir / f"{output_name}_labels.json", 'w') as f:
        json.dump({
            'steps': steps,
            'source_imu_file': imu_csv_path.name,
            'source_counts_file': counts_name
        }, f, indent=2)


def convert_all_data(data_dir: Path, output_dir: Path, counts_xlsx_path: Path) -> int:
    """
    Convert every recording in data_dir that has a counted value.

    Returns:
        Number of recordings converted
    """
    data_dir = Path(data_dir)
    output_dir = Path(output_dir)
    counts_xlsx_path = Path(counts_xlsx_path)
    output_dir.mkdir(parents=True, exist_ok=True)

    counts = load_step_counts(counts_xlsx_path)
    converted = 0
    for imu_file in sorted(data_dir.rglob('*.csv')):
        if output_dir.resolve() in imu_file.resolve().parents:
            continue
        steps = counts.get(imu_file.stem)
        if steps is None:
            logger.warning("No counted steps for %s, skipping", imu_file.name)
            continue
        try:
            convert_dataset(imu_file, steps, output_dir, counts_xlsx_path.name)
        except OSError as e:
            logger.error("Error processing %s: %s", imu_file.name, e)
            continue
        logger.info("Converted %s (%d steps)", imu_file.name, steps)
        converted += 1
    return converted
