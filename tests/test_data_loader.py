import json

import pandas as pd
import pytest

from stride_pipeline.data.convert_data import convert_all_data, load_step_counts
from stride_pipeline.data.data_loader import DataLoader

from conftest import write_recording_csv


def test_load_imu_data_converts_seconds(tmp_path):
    write_recording_csv(tmp_path / 'walk_imu.csv', [8, 8, 22, 8, 8])
    recording = DataLoader(str(tmp_path)).load_imu_data('walk_imu.csv')
    assert len(recording) == 5
    assert recording.name == 'walk_imu'
    assert recording.timestamp[1] == pytest.approx(50.0)
    assert list(recording.accel_z) == [8, 8, 22, 8, 8]


def test_load_imu_data_alternate_columns(tmp_path):
    pd.DataFrame({
        'tMillis': [1000, 1020, 1040],
        'ax': [0.0, 0.0, 0.0],
        'ay': [0.0, 0.0, 0.0],
        'az': [9.8, 12.0, 9.8],
    }).to_csv(tmp_path / 'run_imu.csv', index=False)
    recording = DataLoader(str(tmp_path)).load_imu_data('run_imu.csv')
    assert list(recording.timestamp) == [1000, 1020, 1040]
    assert recording.accel_z[1] == 12.0


def test_missing_column_raises(tmp_path):
    pd.DataFrame({'timestamp': [0, 1], 'x': [0, 0], 'y': [0, 0]}).to_csv(tmp_path / 'bad_imu.csv', index=False)
    with pytest.raises(ValueError):
        DataLoader(str(tmp_path)).load_imu_data('bad_imu.csv')


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        DataLoader(str(tmp_path)).load_imu_data('nope_imu.csv')


def test_labels(tmp_path):
    loader = DataLoader(str(tmp_path))
    (tmp_path / 'walk_labels.json').write_text(json.dumps({'steps': 42}))
    assert loader.load_labels('walk_imu.csv') == 42
    assert loader.load_labels('other_imu.csv') is None


def test_load_dataset(tmp_path):
    write_recording_csv(tmp_path / 'a_imu.csv', [8, 22, 8])
    write_recording_csv(tmp_path / 'b_imu.csv', [8, 8, 8])
    (tmp_path / 'a_labels.json').write_text(json.dumps({'steps': 1}))

    dataset = DataLoader(str(tmp_path)).load_dataset()
    assert [(r.name, steps) for r, steps in dataset] == [('a_imu', 1), ('b_imu', None)]


def test_convert_all_data(tmp_path):
    raw = tmp_path / 'raw' / 'day1'
    raw.mkdir(parents=True)
    write_recording_csv(raw / 'morning.csv', [8, 22, 8])
    write_recording_csv(raw / 'evening.csv', [8, 22, 8])
    counts = tmp_path / 'counts.xlsx'
    pd.DataFrame({'Recording': ['morning.csv', 'lunch'], 'Counted Steps': [120, 80]}).to_excel(counts, index=False)

    assert load_step_counts(counts) == {'morning': 120, 'lunch': 80}

    out = tmp_path / 'organized'
    assert convert_all_data(tmp_path / 'raw', out, counts) == 1
    assert (out / 'morning_imu.csv').read_bytes() == (raw / 'morning.csv').read_bytes()
    labels = json.loads((out / 'morning_labels.json').read_text())
    assert labels['steps'] == 120
    assert not (out / 'evening_imu.csv').exists()

    assert DataLoader(str(out)).load_labels('morning_imu.csv') == 120


def test_counts_sheet_missing_columns(tmp_path):
    counts = tmp_path / 'counts.xlsx'
    pd.DataFrame({'File': ['a'], 'Steps': [1]}).to_excel(counts, index=False)
    with pytest.raises(ValueError):
        load_step_counts(counts)
