"""
Evaluation Metrics Module for Fake News Detection

This module computes evaluation metrics for the sequence classifiers:
- Confusion Matrix (positive class = FAKE)
- Accuracy, Precision, Recall, F1-Score
- Side-by-side comparison of several models

Every ratio with a zero denominator evaluates to 0.0, never NaN.
"""

import sys
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
from sklearn.metrics import confusion_matrix

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))
from config import LABEL_FAKE, LABEL_REAL

METRIC_NAMES = ['accuracy', 'precision', 'recall', 'f1']


@dataclass
class ConfusionMatrix:
    """Binary confusion matrix counts with FAKE as the positive class."""

    true_positive: int = 0
    true_negative: int = 0
    false_positive: int = 0
    false_negative: int = 0

    @property
    def total(self) -> int:
        return self.true_positive + self.true_negative + self.false_positive + self.false_negative

    def as_array(self) -> np.ndarray:
        """sklearn layout: rows = actual [REAL, FAKE], columns = predicted."""
        return np.array([
            [self.true_negative, self.false_positive],
            [self.false_negative, self.true_positive],
        ])

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass
class EvaluationMetrics:
    """Metrics derived from a confusion matrix."""

    accuracy: float
    precision: float
    recall: float
    f1: float
    confusion_matrix: ConfusionMatrix

    def to_dict(self) -> Dict[str, Any]:
        return {
            'accuracy': self.accuracy,
            'precision': self.precision,
            'recall': self.recall,
            'f1': self.f1,
            'confusion_matrix': self.confusion_matrix.to_dict(),
        }


def safe_divide(numerator: float, denominator: float) -> float:
    """numerator / denominator, or 0.0 when the denominator is 0."""
    if denominator == 0:
        return 0.0
    return float(numerator / denominator)


def compute_confusion_matrix(y_true: Sequence[int], y_pred: Sequence[int]) -> ConfusionMatrix:
    """
    Tabulate predictions against ground truth.

    Args:
        y_true: True labels (1=FAKE, 0=REAL)
        y_pred: Predicted labels (1=FAKE, 0=REAL)

    Returns:
        ConfusionMatrix whose counts sum to len(y_true)
    """
    y_true = np.asarray(y_true, dtype=int)
    y_pred = np.asarray(y_pred, dtype=int)

    if len(y_true) != len(y_pred):
        raise ValueError("y_true and y_pred must have the same length")

    if len(y_true) == 0:
        return ConfusionMatrix()

    valid = {LABEL_REAL, LABEL_FAKE}
    if not set(np.unique(y_true)) <= valid or not set(np.unique(y_pred)) <= valid:
        raise ValueError(f"Labels must be {LABEL_REAL} (REAL) or {LABEL_FAKE} (FAKE)")

    tn, fp, fn, tp = confusion_matrix(y_true, y_pred, labels=[LABEL_REAL, LABEL_FAKE]).ravel()

    return ConfusionMatrix(
        true_positive=int(tp),
        true_negative=int(tn),
        false_positive=int(fp),
        false_negative=int(fn),
    )


def compute_metrics(cm: ConfusionMatrix) -> EvaluationMetrics:
    """
    Derive accuracy, precision, recall and F1 from a confusion matrix.

    Args:
        cm: Confusion matrix counts

    Returns:
        EvaluationMetrics with every value in [0, 1]
    """
    tp, tn = cm.true_positive, cm.true_negative
    fp, fn = cm.false_positive, cm.false_negative

    precision = safe_divide(tp, tp + fp)
    recall = safe_divide(tp, tp + fn)

    return EvaluationMetrics(
        accuracy=safe_divide(tp + tn, cm.total),
        precision=precision,
        recall=recall,
        f1=safe_divide(2 * precision * recall, precision + recall),
        confusion_matrix=cm,
    )


class ModelEvaluator:
    """
    Evaluation of several classifiers on the same test split.

    Keeps each model's metrics so they can be compared and printed.
    """

    def __init__(self):
        self.results: Dict[str, EvaluationMetrics] = {}

    def evaluate(
        self,
        model,
        test_sequences: Sequence[Sequence[int]],
        test_labels: Sequence[int],
        model_name: Optional[str] = None
    ) -> EvaluationMetrics:
        """
        Run a model over a test set and compute its metrics.

        Args:
            model: Trained classifier exposing predict(sequence)
            test_sequences: Encoded test sequences
            test_labels: True labels (1=FAKE, 0=REAL)
            model_name: Name to store the result under (optional)

        Returns:
            EvaluationMetrics
        """
        if len(test_sequences) != len(test_labels):
            raise ValueError(
                f"Got {len(test_sequences)} sequences but {len(test_labels)} labels"
            )

        y_pred = [
            LABEL_FAKE if model.predict(sequence).label == 'FAKE' else LABEL_REAL
            for sequence in test_sequences
        ]
        metrics = compute_metrics(compute_confusion_matrix(test_labels, y_pred))

        if model_name:
            self.results[model_name] = metrics

        return metrics

    def compare_models(self) -> Dict[str, Dict]:
        """
        Compare all evaluated models.

        Returns:
            Dictionary with per-metric values and rankings (best first)
        """
        if not self.results:
            return {}

        comparison = {'metrics': {}, 'rankings': {}}

        for metric in METRIC_NAMES:
            values = {
                name: getattr(result, metric)
                for name, result in self.results.items()
            }
            comparison['metrics'][metric] = values
            comparison['rankings'][metric] = [
                name for name, _ in sorted(values.items(), key=lambda x: x[1], reverse=True)
            ]

        return comparison

    def get_best_model(self, metric: str = 'f1') -> Optional[str]:
        """
        Name of the best performing model (first evaluated wins ties).

        Args:
            metric: Metric to use for comparison
        """
        if metric not in METRIC_NAMES:
            raise ValueError(f"Unknown metric: {metric}")
        if not self.results:
            return None

        best_model = None
        best_score = -1.0
        for model_name, result in self.results.items():
            score = getattr(result, metric)
            if score > best_score:
                best_score = score
                best_model = model_name

        return best_model

    def print_results(self, model_name: Optional[str] = None):
        """
        Print evaluation results.

        Args:
            model_name: Specific model to print (or None for all)
        """
        if model_name:
            models = {model_name: self.results.get(model_name)}
        else:
            models = self.results

        for name, result in models.items():
            if not result:
                continue

            print(f"\n{'='*50}")
            print(f"Model: {name}")
            print('='*50)
            print(f"Accuracy:  {result.accuracy:.4f}")
            print(f"Precision: {result.precision:.4f}")
            print(f"Recall:    {result.recall:.4f}")
            print(f"F1-Score:  {result.f1:.4f}")

            cm = result.confusion_matrix
            print(f"\nConfusion Matrix:")
            print(f"  TN={cm.true_negative}, FP={cm.false_positive}")
            print(f"  FN={cm.false_negative}, TP={cm.true_positive}")

    def to_dataframe(self):
        """
        Convert results to pandas DataFrame for easy comparison.

        Returns:
            DataFrame with metrics and confusion counts for all models
        """
        import pandas as pd

        data: List[Dict[str, Any]] = []
        for model_name, result in self.results.items():
            row = {'model': model_name}
            row.update({metric: getattr(result, metric) for metric in METRIC_NAMES})
            row.update(result.confusion_matrix.to_dict())
            data.append(row)

        columns = ['model'] + METRIC_NAMES + list(ConfusionMatrix().to_dict())
        return pd.DataFrame(data, columns=columns).set_index('model')
