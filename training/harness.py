"""
Evaluation Harness for the Sequence Classifiers

Drives the full experiment:
1. Prepare: combine title and body, build one shared vocabulary, encode
2. Split: uniform random permutation into test / train sets
3. Train: forward-only loss reporting for each model
4. Evaluate: confusion matrix and derived metrics on the test set

The vocabulary and max length fixed by prepare_dataset() must be reused
for any later inference, otherwise predictions are meaningless.
"""

import math
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))
from config import MAX_SEQUENCE_LENGTH, TEST_FRACTION, TRAIN_EPOCHS
from evaluation.metrics import EvaluationMetrics, ModelEvaluator
from models.base import SequenceClassifier
from models.registry import MODEL_TYPES, create_model, normalize_model_type
from preprocessing.data_loader import NewsRecord
from preprocessing.text_vectorizer import TextVectorizer
from preprocessing.vocabulary import Vocabulary, VocabularyUnavailableError
from utils.deterministic import get_random_state, spawn_seeds


@dataclass
class LabeledSequences:
    """Encoded sequences with their binary labels (1=FAKE, 0=REAL)."""

    sequences: List[List[int]] = field(default_factory=list)
    labels: List[int] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.sequences)


@dataclass
class DatasetSplit:
    """Train/test partition of a prepared dataset."""

    train: LabeledSequences
    test: LabeledSequences
    train_indices: List[int]
    test_indices: List[int]


@dataclass
class TrainingReport:
    """Everything produced by one train_and_evaluate() run."""

    vocabulary: Vocabulary
    max_length: int
    split: DatasetSplit
    models: Dict[str, SequenceClassifier] = field(default_factory=dict)
    metrics: Dict[str, EvaluationMetrics] = field(default_factory=dict)
    histories: Dict[str, List[float]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'vocabulary_size': self.vocabulary.size,
            'max_length': self.max_length,
            'train_size': len(self.split.train),
            'test_size': len(self.split.test),
            'metrics': {name: m.to_dict() for name, m in self.metrics.items()},
            'histories': {name: list(h) for name, h in self.histories.items()},
        }


def _as_record(record: Union[NewsRecord, Mapping[str, Any]]) -> NewsRecord:
    if isinstance(record, NewsRecord):
        return record
    return NewsRecord(
        title=str(record.get('title') or ''),
        text=str(record.get('text') or ''),
        label=str(record.get('label', '')).strip().lower(),
    )


class EvaluationHarness:
    """
    Dataset preparation, splitting and evaluation for the classifiers.

    Attributes:
        vectorizer: TextVectorizer used for every encoding
        max_length: Length of every encoded sequence
        vocabulary: Vocabulary built by prepare_dataset (None before)
    """

    def __init__(
        self,
        vectorizer: Optional[TextVectorizer] = None,
        max_length: int = MAX_SEQUENCE_LENGTH,
        verbose: bool = True
    ):
        self.vectorizer = vectorizer or TextVectorizer()
        self.max_length = max_length
        self.verbose = verbose
        self.vocabulary: Optional[Vocabulary] = None
        self.evaluator = ModelEvaluator()

    def _log(self, message: str):
        if self.verbose:
            print(message)

    def prepare_dataset(
        self,
        records: Iterable[Union[NewsRecord, Mapping[str, Any]]]
    ) -> LabeledSequences:
        """
        Build the shared vocabulary and encode every record.

        Args:
            records: Labeled articles (NewsRecord or mappings with title/text/label)

        Returns:
            LabeledSequences aligned with the input order
        """
        records = [_as_record(record) for record in records]
        processed = [self.vectorizer.preprocess(record.full_text) for record in records]

        self.vocabulary = self.vectorizer.build_vocabulary(processed)
        self._log(f"Vocabulary size: {self.vocabulary.size}")

        sequences = self.vectorizer.encode_batch(processed, self.vocabulary, self.max_length)
        labels = [record.binary_label for record in records]

        self._log(f"Encoded {len(sequences)} articles to length {self.max_length}")
        return LabeledSequences(sequences=sequences, labels=labels)

    def encode_text(self, text: str) -> List[int]:
        """
        Encode new text with the vocabulary from prepare_dataset().

        Raises:
            VocabularyUnavailableError: If prepare_dataset() has not run
        """
        if self.vocabulary is None:
            raise VocabularyUnavailableError(
                "Vocabulary not built. Call prepare_dataset() first."
            )
        return self.vectorizer.encode(text, self.vocabulary, self.max_length)

    def split_dataset(
        self,
        sequences: Sequence[Sequence[int]],
        labels: Sequence[int],
        test_fraction: float = TEST_FRACTION,
        seed: Optional[int] = None
    ) -> DatasetSplit:
        """
        Shuffle and split into test and train sets.

        A uniform permutation of the indices is drawn (numpy's permutation,
        a Fisher-Yates shuffle); the first floor(N * test_fraction) indices
        form the test set and the rest the train set. No stratification.

        Args:
            sequences: Encoded sequences
            labels: Labels aligned with sequences
            test_fraction: Fraction held out, in [0, 1]
            seed: Shuffle seed (None: non-deterministic)

        Returns:
            DatasetSplit
        """
        if len(sequences) != len(labels):
            raise ValueError(
                f"Got {len(sequences)} sequences but {len(labels)} labels"
            )
        if not 0.0 <= test_fraction <= 1.0:
            raise ValueError(f"test_fraction must be in [0, 1], got {test_fraction}")

        total = len(sequences)
        test_size = math.floor(total * test_fraction)

        indices = [int(i) for i in get_random_state(seed).permutation(total)]
        test_indices = indices[:test_size]
        train_indices = indices[test_size:]

        def subset(idx: List[int]) -> LabeledSequences:
            return LabeledSequences(
                sequences=[list(sequences[i]) for i in idx],
                labels=[int(labels[i]) for i in idx],
            )

        self._log(f"Train: {len(train_indices)} samples")
        self._log(f"Test: {len(test_indices)} samples")

        return DatasetSplit(
            train=subset(train_indices),
            test=subset(test_indices),
            train_indices=train_indices,
            test_indices=test_indices,
        )

    def evaluate(
        self,
        model: SequenceClassifier,
        test_sequences: Sequence[Sequence[int]],
        test_labels: Sequence[int],
        model_name: Optional[str] = None
    ) -> EvaluationMetrics:
        """Predict every test example and compute confusion-matrix metrics."""
        return self.evaluator.evaluate(model, test_sequences, test_labels, model_name)

    def train_and_evaluate(
        self,
        records: Iterable[Union[NewsRecord, Mapping[str, Any]]],
        epochs: int = TRAIN_EPOCHS,
        test_fraction: float = TEST_FRACTION,
        seed: Optional[int] = None,
        model_types: Sequence[str] = MODEL_TYPES,
        model_params: Optional[Mapping[str, Mapping[str, Any]]] = None
    ) -> TrainingReport:
        """
        Full pipeline: prepare, split, train and evaluate each model.

        Args:
            records: Labeled articles
            epochs: Loss-reporting epochs per model
            test_fraction: Fraction held out for evaluation
            seed: Seed for the split; each model draws from a seed derived from it
            model_types: Models to build, by selector
            model_params: Per-model hyper-parameter overrides, keyed by selector

        Returns:
            TrainingReport with models, metrics and loss histories
        """
        model_types = [normalize_model_type(m) for m in model_types]
        model_params = {
            normalize_model_type(k): dict(v) for k, v in (model_params or {}).items()
        }

        dataset = self.prepare_dataset(records)
        split = self.split_dataset(dataset.sequences, dataset.labels, test_fraction, seed)

        report = TrainingReport(
            vocabulary=self.vocabulary,
            max_length=self.max_length,
            split=split,
        )

        # One child seed per model so no two models share a parameter draw
        model_seeds = spawn_seeds(seed, len(model_types))

        for model_type, model_seed in zip(model_types, model_seeds):
            model = create_model(
                model_type,
                vocab_size=self.vocabulary.embedding_rows,
                max_length=self.max_length,
                **model_params.get(model_type, {})
            )
            history = model.train(
                split.train.sequences,
                split.train.labels,
                epochs=epochs,
                seed=model_seed,
                verbose=self.verbose,
            )
            metrics = self.evaluate(
                model, split.test.sequences, split.test.labels,
                model_name=model.display_name,
            )

            report.models[model_type] = model
            report.histories[model_type] = history
            report.metrics[model_type] = metrics

        return report
