"""
Step count accuracy against hand-counted labels.
"""
import logging
from typing import Any, Dict

import numpy as np
from sklearn.metrics import mean_absolute_error, mean_squared_error

from .core.interfaces import Pipeline
from .data.data_loader import DataLoader

logger = logging.getLogger(__name__)


def evaluate_counts(true_counts: Dict[str, int], predicted_counts: Dict[str, int]) -> Dict[str, Any]:
    """
    Calculate count accuracy metrics.

    Args:
        true_counts: Hand-counted steps per recording
        predicted_counts: Detected steps per recording

    Returns:
        Dictionary of metrics
    """
    common_keys = sorted(set(true_counts) & set(predicted_counts))
    if not common_keys:
        return {
            'error': 'No matching keys between true and predicted counts'
        }

    y_true = np.array([true_counts[k] for k in common_keys], dtype=float)
    y_pred = np.array([predicted_counts[k] for k in common_keys], dtype=float)

    mae = mean_absolute_error(y_true, y_pred)
    rmse = float(np.sqrt(mean_squared_error(y_true, y_pred)))

    # Recordings labelled with zero steps have no defined percentage error
    nonzero = y_true > 0
    if nonzero.any():
        percentage_errors = np.abs(y_true[nonzero] - y_pred[nonzero]) / y_true[nonzero] * 100
        mean_percentage_error = float(np.mean(percentage_errors))
        max_percentage_error = float(np.max(percentage_errors))
    else:
        mean_percentage_error = max_percentage_error = float('nan')

    return {
        'mae': float(mae),
        'rmse': rmse,
        'mean_percentage_error': mean_percentage_error,
        'max_percentage_error': max_percentage_error,
        'n_samples': len(common_keys)
    }


def evaluate_dataset(loader: DataLoader, pipeline: Pipeline) -> Dict[str, Any]:
    """Run the pipeline over every labelled recording and score the counts."""
    true_counts = {}
    predicted_counts = {}
    for recording, steps in loader.load_dataset():
        if steps is None:
            continue
        true_counts[recording.name] = steps
        predicted_counts[recording.name] = pipeline.count(recording)
        logger.info("%s: counted %d, detected %d", recording.name, steps, predicted_counts[recording.name])

    return {
        'true_counts': true_counts,
        'predicted_counts': predicted_counts,
        'metrics': evaluate_counts(true_counts, predicted_counts)
    }
