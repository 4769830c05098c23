"""
Base Sequence Classifier for Fake News Detection

Common contract of the LSTM, Bi-LSTM and CNN classifiers:
- Parameter initialisation from a seeded uniform draw
- Forward-only "training" that reports loss per epoch
- Single-sequence prediction with label, confidence and probabilities
- Lossless serialization of configuration and weights

IMPORTANT: train() never updates parameters. Each call draws fresh random
weights and then only measures the mean squared error of the forward pass,
so the reported loss is flat across epochs and the models are no better
than chance. This mirrors the system these models were built for and is
relied upon by the tests; adding an optimizer step changes the contract.
"""

import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import torch

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))
from config import (
    DECISION_THRESHOLD,
    EMBEDDING_DIM,
    MAX_SEQUENCE_LENGTH,
    SAVED_MODELS_DIR,
    TRAIN_EPOCHS,
)
from models.embedding import DTYPE, SequenceEncoder, uniform_init
from utils.deterministic import get_torch_generator


class ModelNotReadyError(ValueError):
    """Raised when a model is used before its parameters exist."""


class DeserializationError(ValueError):
    """Raised when serialized model data is missing fields or malformed."""


@dataclass
class PredictionResult:
    """Outcome of classifying one sequence."""

    label: str  # "REAL" or "FAKE"
    confidence: float
    probabilities: Dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_probability(
        cls,
        fake_probability: float,
        threshold: float = DECISION_THRESHOLD
    ) -> 'PredictionResult':
        """Build a result from the FAKE-class probability."""
        fake_probability = float(fake_probability)
        real_probability = 1.0 - fake_probability
        is_fake = fake_probability > threshold

        return cls(
            label='FAKE' if is_fake else 'REAL',
            confidence=fake_probability if is_fake else real_probability,
            probabilities={'real': real_probability, 'fake': fake_probability},
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'label': self.label,
            'confidence': self.confidence,
            'probabilities': dict(self.probabilities),
        }


class SequenceClassifier:
    """
    Base class for the forward-inference sequence classifiers.

    Subclasses define weight_shapes() and _forward(); everything else
    (initialisation, training loop, prediction, serialization) lives here.
    """

    # Selector used by the registry and the serialized format
    model_type: str = ''
    # Identifier stored with prediction records
    display_name: str = ''
    # Configuration keys required to rebuild an instance
    config_keys: Tuple[str, ...] = ('vocab_size', 'embedding_dim', 'max_length')
    # Weights that start at zero instead of a random draw
    zero_initialized: Tuple[str, ...] = ()

    def __init__(
        self,
        vocab_size: int,
        embedding_dim: int = EMBEDDING_DIM,
        max_length: int = MAX_SEQUENCE_LENGTH,
        seed: Optional[int] = None
    ):
        """
        Initialize classifier.

        Args:
            vocab_size: Rows of the embedding table (vocabulary size + 1)
            embedding_dim: Embedding dimension
            max_length: Length of every input sequence
            seed: Seed for parameter draws (None: non-deterministic)
        """
        if vocab_size < 1:
            raise ValueError(f"vocab_size must be positive, got {vocab_size}")
        if embedding_dim < 1:
            raise ValueError(f"embedding_dim must be positive, got {embedding_dim}")
        if max_length < 1:
            raise ValueError(f"max_length must be positive, got {max_length}")

        self.vocab_size = vocab_size
        self.embedding_dim = embedding_dim
        self.max_length = max_length
        self.seed = seed

        self.weights: Optional[Dict[str, torch.Tensor]] = None
        self.history: List[float] = []

    # ------------------------------------------------------------------
    # Subclass hooks
    # ------------------------------------------------------------------
    def get_config(self) -> Dict[str, Any]:
        return {
            'vocab_size': self.vocab_size,
            'embedding_dim': self.embedding_dim,
            'max_length': self.max_length,
        }

    def weight_shapes(self) -> Dict[str, Tuple[int, ...]]:
        """Name -> shape of every parameter tensor."""
        return {'embedding': (self.vocab_size, self.embedding_dim)}

    def _forward(self, sequences: torch.Tensor) -> torch.Tensor:
        """
        FAKE-class probabilities for a batch.

        Args:
            sequences: Long tensor of shape (batch, max_length)

        Returns:
            Tensor of shape (batch,)
        """
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------
    @property
    def is_trained(self) -> bool:
        return self.weights is not None

    @property
    def encoder(self) -> SequenceEncoder:
        self._require_weights()
        return SequenceEncoder(self.weights['embedding'])

    def initialize_weights(self, seed: Optional[int] = None):
        """Replace all parameters with a fresh draw."""
        generator = get_torch_generator(seed)
        weights = {}
        for name, shape in self.weight_shapes().items():
            if name in self.zero_initialized:
                weights[name] = torch.zeros(shape, dtype=DTYPE)
            else:
                weights[name] = uniform_init(shape, generator)
        self._set_weights(weights)

    def _set_weights(self, weights: Dict[str, torch.Tensor]):
        self.weights = weights

    def _require_weights(self):
        if self.weights is None:
            raise ModelNotReadyError("Model not trained. Call train() first.")

    # ------------------------------------------------------------------
    # Training / inference
    # ------------------------------------------------------------------
    def _as_batch(self, sequences) -> torch.Tensor:
        batch = torch.as_tensor(np.asarray(sequences, dtype=np.int64))
        if batch.dim() == 1:
            batch = batch.unsqueeze(0)
        if batch.dim() != 2 or batch.shape[1] != self.max_length:
            raise ValueError(
                f"Expected sequences of length {self.max_length}, "
                f"got shape {tuple(batch.shape)}"
            )
        return batch

    def forward(self, sequences) -> np.ndarray:
        """FAKE-class probabilities for a batch of sequences."""
        self._require_weights()
        batch = self._as_batch(sequences)
        with torch.no_grad():
            return self._forward(batch).numpy()

    def train(
        self,
        sequences: Sequence[Sequence[int]],
        labels: Sequence[int],
        epochs: int = TRAIN_EPOCHS,
        seed: Optional[int] = None,
        verbose: bool = True
    ) -> List[float]:
        """
        Initialize parameters and report per-epoch loss.

        Parameters are re-drawn on every call. No update step follows the
        forward pass, so loss is not expected to decrease across epochs.

        Args:
            sequences: Encoded training sequences
            labels: Binary labels (1=FAKE, 0=REAL)
            epochs: Number of epochs
            seed: Seed for this draw (default: the seed given at construction)
            verbose: If True, print loss per epoch

        Returns:
            Mean squared error for each epoch
        """
        if len(sequences) == 0:
            raise ValueError("No training data provided")
        if len(sequences) != len(labels):
            raise ValueError(
                f"Got {len(sequences)} sequences but {len(labels)} labels"
            )

        batch = self._as_batch(sequences)
        targets = torch.as_tensor(np.asarray(labels, dtype=np.float64))

        self.initialize_weights(self.seed if seed is None else seed)
        self.history = []

        if verbose:
            print(f"Training {self.display_name} on {len(targets)} samples...")

        for epoch in range(epochs):
            with torch.no_grad():
                probabilities = self._forward(batch)
            loss = float(torch.mean((probabilities - targets) ** 2))
            self.history.append(loss)

            if verbose:
                print(f"  {self.display_name} Epoch {epoch+1}/{epochs}: Loss={loss:.4f}")

        return self.history

    def predict(self, sequence: Sequence[int]) -> PredictionResult:
        """
        Classify one encoded sequence.

        Raises:
            ModelNotReadyError: If called before train() or load
        """
        probability = self.forward([sequence])[0]
        return PredictionResult.from_probability(probability)

    def predict_batch(self, sequences: Sequence[Sequence[int]]) -> List[PredictionResult]:
        """Classify several encoded sequences."""
        if len(sequences) == 0:
            return []
        return [PredictionResult.from_probability(p) for p in self.forward(sequences)]

    def predict_proba(self, sequences: Sequence[Sequence[int]]) -> np.ndarray:
        """
        Get prediction probabilities.

        Returns:
            Array of shape (n_samples, 2) with columns [real, fake]
        """
        if len(sequences) == 0:
            return np.zeros((0, 2))
        fake = self.forward(sequences)
        return np.column_stack([1 - fake, fake])

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------
    def serialize(self) -> Dict[str, Any]:
        """
        Self-describing snapshot of configuration and weights.

        Weights are nested lists, so the result is JSON-serializable.
        """
        self._require_weights()
        return {
            'model_type': self.model_type,
            'config': self.get_config(),
            'weights': {name: tensor.tolist() for name, tensor in self.weights.items()},
        }

    @classmethod
    def _parse(cls, data: Union[str, Mapping[str, Any]]) -> Tuple['SequenceClassifier', Dict[str, torch.Tensor]]:
        """Validate serialized data and build an unfitted instance plus its weights."""
        if isinstance(data, (str, bytes)):
            try:
                data = json.loads(data)
            except json.JSONDecodeError as e:
                raise DeserializationError(f"Invalid JSON: {e}") from e

        if not isinstance(data, Mapping):
            raise DeserializationError("Serialized model must be a mapping")

        model_type = data.get('model_type')
        if model_type is not None and model_type != cls.model_type:
            raise DeserializationError(
                f"Expected model_type {cls.model_type!r}, got {model_type!r}"
            )

        config = data.get('config')
        if not isinstance(config, Mapping):
            raise DeserializationError("Missing 'config' section")
        missing = [key for key in cls.config_keys if key not in config]
        if missing:
            raise DeserializationError(f"Missing config fields: {missing}")

        try:
            model = cls(**{key: config[key] for key in cls.config_keys})
        except (TypeError, ValueError) as e:
            raise DeserializationError(f"Invalid config: {e}") from e

        raw_weights = data.get('weights')
        if not isinstance(raw_weights, Mapping):
            raise DeserializationError("Missing 'weights' section")

        weights = {}
        for name, shape in model.weight_shapes().items():
            if name not in raw_weights:
                raise DeserializationError(f"Missing weight tensor {name!r}")
            try:
                tensor = torch.as_tensor(
                    np.asarray(raw_weights[name], dtype=np.float64)
                ).clone()
            except (TypeError, ValueError) as e:
                raise DeserializationError(f"Malformed weight tensor {name!r}: {e}") from e
            if tuple(tensor.shape) != tuple(shape):
                raise DeserializationError(
                    f"Weight {name!r} has shape {tuple(tensor.shape)}, expected {tuple(shape)}"
                )
            weights[name] = tensor

        return model, weights

    @classmethod
    def deserialize(cls, data: Union[str, Mapping[str, Any]]) -> 'SequenceClassifier':
        """Rebuild a model from serialize() output."""
        model, weights = cls._parse(data)
        model._set_weights(weights)
        return model

    def load_state(self, data: Union[str, Mapping[str, Any]]):
        """
        Replace this model's configuration and weights in place.

        Nothing is changed unless the whole payload is valid.
        """
        model, weights = self._parse(data)
        seed, history = self.seed, self.history
        self.__dict__.update(model.__dict__)
        self.seed, self.history = seed, history
        self._set_weights(weights)

    def to_json(self) -> str:
        return json.dumps(self.serialize())

    @classmethod
    def from_json(cls, payload: str) -> 'SequenceClassifier':
        return cls.deserialize(payload)

    def save(self, path: Optional[Union[str, Path]] = None):
        """Save trained model."""
        self._require_weights()
        if path is None:
            path = SAVED_MODELS_DIR / f"{self.model_type}_model.pt"
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        torch.save({
            'model_type': self.model_type,
            'config': self.get_config(),
            'weights': dict(self.weights),
            'history': list(self.history),
        }, path)
        print(f"Saved {self.display_name} model to {path}")

    def load(self, path: Optional[Union[str, Path]] = None):
        """Load trained model."""
        if path is None:
            path = SAVED_MODELS_DIR / f"{self.model_type}_model.pt"

        checkpoint = torch.load(path, map_location='cpu')
        self.load_state({
            'model_type': checkpoint.get('model_type'),
            'config': checkpoint.get('config'),
            'weights': {
                name: tensor.numpy() if isinstance(tensor, torch.Tensor) else tensor
                for name, tensor in (checkpoint.get('weights') or {}).items()
            },
        })
        self.history = list(checkpoint.get('history', []))

        print(f"Loaded {self.display_name} model from {path}")

    def __repr__(self) -> str:
        params = ', '.join(f"{k}={v!r}" for k, v in self.get_config().items())
        return f"{type(self).__name__}({params})"
