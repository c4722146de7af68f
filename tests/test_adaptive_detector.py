import pytest

from stride_pipeline.detection.adaptive_detector import AdaptiveStepDetector, GRAVITY

from conftest import feed

# One stride: gravity, a 5 m/s^2 bump, back to gravity
STRIDE = [GRAVITY] * 3 + [GRAVITY + 5.0] + [GRAVITY] * 2


def make_detector(clock, **kwargs):
    steps = []
    detector = AdaptiveStepDetector(lambda: steps.append(clock()), clock=clock, **kwargs)
    return detector, steps


def calibrated(clock, **kwargs):
    d, steps = make_detector(clock, **kwargs)
    feed(d, clock, [GRAVITY] * d.calibration_samples)
    return d, steps


def test_calibration_sets_baseline_and_threshold(clock):
    d, steps = make_detector(clock)
    feed(d, clock, [8.0, 12.0] * 25)
    assert d.is_calibrated
    assert d.baseline == pytest.approx(10.0)
    assert d.threshold == pytest.approx(4.0)
    assert steps == []


def test_threshold_floor_after_quiet_calibration(clock):
    d, _ = calibrated(clock)
    assert d.threshold == 1.5
    assert d.baseline == pytest.approx(GRAVITY)


def test_no_steps_while_calibrating(clock):
    d, steps = make_detector(clock)
    feed(d, clock, [5.0, 40.0, 5.0] * 16)
    assert not d.is_calibrated
    assert steps == []
    assert d.stats().history_length == 0


def test_single_stride_detected(clock):
    d, steps = calibrated(clock)
    feed(d, clock, STRIDE)
    assert len(steps) == 1
    stats = d.stats()
    assert stats.is_walking
    assert stats.consecutive_steps == 1
    assert d.last_peak_magnitude == pytest.approx(4.0)


def test_consecutive_strides(clock):
    d, steps = calibrated(clock)
    feed(d, clock, STRIDE * 2)
    assert len(steps) == 2
    assert steps[1] - steps[0] == 300


def test_strides_faster_than_min_interval_are_dropped(clock):
    d, steps = calibrated(clock)
    feed(d, clock, STRIDE * 2, dt_ms=30)
    assert len(steps) == 1


def test_idle_gap_clears_history(clock):
    d, _ = calibrated(clock)
    feed(d, clock, [GRAVITY] * 4)
    assert d.stats().history_length == 4
    clock.advance(2500)
    d.process(0.0, 0.0, GRAVITY)
    assert d.stats().history_length == 1


def test_walking_state_resets_after_inactivity(clock):
    d, _ = calibrated(clock)
    feed(d, clock, STRIDE)
    assert d.is_walking
    clock.advance(2100)
    d.process(0.0, 0.0, GRAVITY)
    assert not d.is_walking
    assert d.consecutive_steps == 0


def test_activity_modes(clock):
    d, _ = make_detector(clock)
    d.set_activity_mode('running')
    assert (d.threshold, d.min_step_interval_ms, d.max_step_interval_ms) == (2.5, 200.0, 1000.0)
    d.set_activity_mode('hiking')
    assert (d.threshold, d.min_step_interval_ms, d.max_step_interval_ms) == (2.0, 500.0, 3000.0)
    d.set_activity_mode('swimming')
    assert (d.threshold, d.min_step_interval_ms, d.max_step_interval_ms) == (1.8, 250.0, 2000.0)


def test_reset_keeps_calibration(clock):
    d, _ = calibrated(clock)
    feed(d, clock, STRIDE)
    d.reset()
    assert d.is_calibrated
    assert d.stats().history_length == 0
    assert d.last_step_timestamp is None
    assert not d.is_walking


def test_full_reset_discards_calibration(clock):
    d, _ = make_detector(clock, threshold=12.0)
    feed(d, clock, [8.0, 12.0] * 25)
    d.full_reset()
    assert not d.is_calibrated
    assert d.baseline == GRAVITY
    assert d.threshold == 12.0


def test_nan_samples_do_not_break_detection(clock):
    d, steps = calibrated(clock)
    d.process(float('nan'), 0.0, 0.0)
    feed(d, clock, STRIDE)
    assert len(steps) == 1


def test_invalid_history_length():
    with pytest.raises(ValueError):
        AdaptiveStepDetector(lambda: None, max_history_length=4)


def test_save_and_load(tmp_path, clock):
    d, _ = make_detector(clock, threshold=3.0, calibration_samples=20)
    path = tmp_path / 'adaptive.joblib'
    d.save(str(path))
    loaded = AdaptiveStepDetector.load(str(path), lambda: None)
    assert loaded.get_params() == d.get_params()
