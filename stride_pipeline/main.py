"""
Command line entry point for the step counting pipeline.
"""
import argparse
import logging
import sys
from pathlib import Path

from .config import DetectorConfig
from .core.interfaces import Pipeline
from .data.convert_data import convert_all_data
from .data.data_loader import DataLoader
from .detection.adaptive_detector import AdaptiveStepDetector
from .detection.reference import ReferenceStepCounter
from .detection.step_detector import StepDetector
from .evaluation import evaluate_dataset
from .utils import setup_logging

logger = logging.getLogger(__name__)


def resolve_config(args) -> DetectorConfig:
    """Detector configuration from the config file with command line overrides."""
    config = DetectorConfig.from_file(args.config) if args.config else DetectorConfig()
    return config.replace(threshold=args.threshold)


def build_pipeline(args) -> Pipeline:
    """Create a replay pipeline from command line options."""
    if args.adaptive:
        kwargs = {}
        if args.threshold is not None:
            kwargs['threshold'] = args.threshold
        pipeline = Pipeline(AdaptiveStepDetector, **kwargs)
        if args.mode:
            pipeline.detector.set_activity_mode(args.mode)
        return pipeline

    return Pipeline(StepDetector, config=resolve_config(args))


def count_steps(args) -> int:
    """Replay one recording and report its steps."""
    path = Path(args.input)
    recording = DataLoader(str(path.parent)).load_imu_data(path.name)
    events = build_pipeline(args).run(recording)

    print(f"\nDetected {len(events)} steps in {recording.name}")
    if args.verbose_events:
        for i, event in enumerate(events, 1):
            print(f"Step {i}: t = {event.timestamp:.0f} ms, magnitude = {event.magnitude:.2f}")

    if args.reference:
        config = resolve_config(args)
        reference = ReferenceStepCounter(
            threshold=config.threshold,
            refractory_interval_ms=config.refractory_interval_ms
        )
        print(f"Reference counter: {reference.count(recording)} steps")
    return len(events)


def evaluate(args) -> dict:
    """Score the detector against every labelled recording in a directory."""
    results = evaluate_dataset(DataLoader(args.data_dir), build_pipeline(args))
    metrics = results['metrics']
    if 'error' in metrics:
        logger.error(metrics['error'])
        return results

    print(f"\nEvaluated {metrics['n_samples']} recordings")
    print(f"MAE: {metrics['mae']:.2f} steps, RMSE: {metrics['rmse']:.2f} steps")
    print(f"Mean error: {metrics['mean_percentage_error']:.1f}%, max error: {metrics['max_percentage_error']:.1f}%")
    return results


def add_detector_arguments(parser):
    parser.add_argument('--threshold', type=float, default=None, help='Peak magnitude threshold')
    parser.add_argument('--config', default=None, help='JSON detector configuration')
    parser.add_argument('--adaptive', action='store_true', help='Use the self-calibrating detector')
    parser.add_argument('--mode', choices=['walking', 'running', 'hiking'], default=None,
                        help='Activity preset for the adaptive detector')


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(description='Step Counting Pipeline')
    parser.add_argument('--log-file', default=None, help='Also write logs to this file')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')
    subparsers = parser.add_subparsers(dest='command', required=True, help='Command to run')

    count_parser = subparsers.add_parser('count', help='Count steps in a recording')
    count_parser.add_argument('--input', required=True, help='Input accelerometer CSV file')
    count_parser.add_argument('--reference', action='store_true', help='Also run the offline reference counter')
    count_parser.add_argument('--events', dest='verbose_events', action='store_true', help='Print every step')
    add_detector_arguments(count_parser)

    eval_parser = subparsers.add_parser('evaluate', help='Evaluate against labelled recordings')
    eval_parser.add_argument('--data-dir', required=True, help='Directory of *_imu.csv and *_labels.json files')
    add_detector_arguments(eval_parser)

    convert_parser = subparsers.add_parser('convert', help='Organize raw recordings into pipeline format')
    convert_parser.add_argument('--data-dir', required=True, help='Root directory containing raw recordings')
    convert_parser.add_argument('--output-dir', required=True, help='Directory to save organized data')
    convert_parser.add_argument('--counts', required=True, help='Spreadsheet of hand-counted steps')

    args = parser.parse_args(argv)
    if args.command in ('count', 'evaluate'):
        if args.mode and not args.adaptive:
            parser.error('--mode requires --adaptive')
        if args.config and args.adaptive:
            parser.error('--config applies to the peak detector and cannot be combined with --adaptive')
    return args


def main(argv=None) -> int:
    args = parse_arguments(argv)
    setup_logging(args.log_file, logging.DEBUG if args.debug else logging.INFO)

    try:
        if args.command == 'count':
            count_steps(args)
        elif args.command == 'evaluate':
            evaluate(args)
        elif args.command == 'convert':
            converted = convert_all_data(Path(args.data_dir), Path(args.output_dir), Path(args.counts))
            print(f"Converted {converted} recordings")
    except (FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
