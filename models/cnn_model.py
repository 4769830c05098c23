"""
Text CNN Model for Fake News Detection

Convolutional classifier with several filter widths:
1. Embedding lookup (id 0 is the zero vector)
2. One 1-D convolution bank per filter width (stride 1, no padding)
3. ReLU, then max-pooling over time for each filter
4. Concatenated pooled features -> dense layer -> sigmoid

Weights are random draws; see models/base.py for why they are never updated.
"""

import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import torch
import torch.nn.functional as F

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))
from config import CNN_FILTER_SIZES, CNN_NUM_FILTERS, EMBEDDING_DIM, MAX_SEQUENCE_LENGTH
from models.base import SequenceClassifier


class CNNClassifier(SequenceClassifier):
    """
    Convolutional classifier over embedded sequences.

    Filter banks are kept as an ordered list of (width, bank) pairs in the
    order the widths were configured; each bank has shape
    (num_filters, width, embedding_dim).
    """

    model_type = 'cnn'
    display_name = 'CNN'
    config_keys = ('vocab_size', 'embedding_dim', 'num_filters', 'filter_sizes', 'max_length')
    zero_initialized = ('dense_bias',)

    def __init__(
        self,
        vocab_size: int,
        embedding_dim: int = EMBEDDING_DIM,
        num_filters: int = CNN_NUM_FILTERS,
        filter_sizes: Sequence[int] = CNN_FILTER_SIZES,
        max_length: int = MAX_SEQUENCE_LENGTH,
        seed: Optional[int] = None
    ):
        """
        Initialize CNN model.

        Args:
            vocab_size: Rows of the embedding table
            embedding_dim: Embedding dimension
            num_filters: Filters per width
            filter_sizes: Filter widths, in the order their features are concatenated
            max_length: Length of every input sequence
            seed: Seed for parameter draws
        """
        super().__init__(vocab_size, embedding_dim, max_length, seed)

        filter_sizes = tuple(int(size) for size in filter_sizes)
        if not filter_sizes:
            raise ValueError("At least one filter size is required")
        if min(filter_sizes) < 1:
            raise ValueError(f"Filter sizes must be positive, got {filter_sizes}")
        if max(filter_sizes) > max_length:
            raise ValueError(
                f"Filter width {max(filter_sizes)} exceeds sequence length {max_length}"
            )
        if num_filters < 1:
            raise ValueError(f"num_filters must be positive, got {num_filters}")

        self.num_filters = num_filters
        self.filter_sizes = filter_sizes
        self.filter_banks: List[Tuple[int, torch.Tensor]] = []

    def get_config(self) -> Dict:
        config = super().get_config()
        config['num_filters'] = self.num_filters
        config['filter_sizes'] = list(self.filter_sizes)
        return config

    @property
    def num_features(self) -> int:
        """Length of the pooled feature vector."""
        return self.num_filters * len(self.filter_sizes)

    def weight_shapes(self) -> Dict[str, Tuple[int, ...]]:
        shapes = super().weight_shapes()
        for i, width in enumerate(self.filter_sizes):
            shapes[f'conv_filters_{i}'] = (self.num_filters, width, self.embedding_dim)
        shapes['dense_weights'] = (self.num_features, 1)
        shapes['dense_bias'] = (1,)
        return shapes

    def _set_weights(self, weights: Dict[str, torch.Tensor]):
        super()._set_weights(weights)
        self.filter_banks = [
            (width, weights[f'conv_filters_{i}'])
            for i, width in enumerate(self.filter_sizes)
        ]

    def _pooled_features(self, sequences: torch.Tensor) -> torch.Tensor:
        # (batch, seq_len, embed_dim) -> (batch, embed_dim, seq_len) for conv1d
        embedded = self.encoder.embed(sequences).transpose(1, 2)

        pooled = []
        for _, bank in self.filter_banks:
            # bank: (num_filters, width, embed_dim) -> conv1d weight (num_filters, embed_dim, width)
            activations = F.relu(F.conv1d(embedded, bank.permute(0, 2, 1)))
            # Max-pool over time: (batch, num_filters, seq_len - width + 1) -> (batch, num_filters)
            pooled.append(activations.max(dim=2).values)

        return torch.cat(pooled, dim=1)

    def pooled_features(self, sequences) -> np.ndarray:
        """
        Feature vectors fed to the dense layer.

        Returns:
            Array of shape (n_samples, num_filters * len(filter_sizes))
        """
        self._require_weights()
        batch = self._as_batch(sequences)
        with torch.no_grad():
            return self._pooled_features(batch).numpy()

    def _forward(self, sequences: torch.Tensor) -> torch.Tensor:
        features = self._pooled_features(sequences)
        output = features @ self.weights['dense_weights'] + self.weights['dense_bias']
        return torch.sigmoid(output).squeeze(1)
