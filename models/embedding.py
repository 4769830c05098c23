"""
Embedding lookup shared by the sequence classifiers.

Id 0 (padding / unknown) and ids outside the table always embed to the
zero vector, whatever the table's row 0 holds.
"""

import sys
from pathlib import Path
from typing import Sequence

import torch

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))
from config import INIT_RANGE

DTYPE = torch.float64


def uniform_init(
    shape: Sequence[int],
    generator: torch.Generator,
    init_range: float = INIT_RANGE
) -> torch.Tensor:
    """
    Draw a tensor from a zero-centred uniform distribution.

    Args:
        shape: Tensor shape
        generator: Source of randomness
        init_range: Width of the interval (values in [-w/2, w/2))

    Returns:
        float64 tensor
    """
    return (torch.rand(tuple(shape), generator=generator, dtype=DTYPE) - 0.5) * init_range


class SequenceEncoder:
    """
    Embedding lookup over a (vocab_size, embedding_dim) table.
    """

    def __init__(self, table: torch.Tensor):
        if table.dim() != 2:
            raise ValueError(f"Embedding table must be 2-D, got shape {tuple(table.shape)}")
        self.table = table

    @property
    def embedding_dim(self) -> int:
        return self.table.shape[1]

    def embed(self, sequences: torch.Tensor) -> torch.Tensor:
        """
        Embed a batch of id sequences.

        Args:
            sequences: Long tensor of shape (batch, seq_len)

        Returns:
            Tensor of shape (batch, seq_len, embedding_dim)
        """
        ids = sequences.long()
        valid = (ids > 0) & (ids < self.table.shape[0])
        safe_ids = torch.where(valid, ids, torch.zeros_like(ids))

        embedded = self.table[safe_ids]
        return embedded * valid.unsqueeze(-1).to(self.table.dtype)
