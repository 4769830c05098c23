"""
LSTM/Bi-LSTM Models for Fake News Detection

Gated recurrent classifiers written directly against tensor primitives:
- Embedding lookup (id 0 is the zero vector)
- Single-layer LSTM cell unrolled over the full sequence
- Bidirectional variant with an independently parameterized backward cell
- Dense layer + sigmoid producing the FAKE-class probability

Weights are random draws; see models/base.py for why they are never updated.
"""

import sys
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

import torch

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))
from config import EMBEDDING_DIM, LSTM_UNITS, MAX_SEQUENCE_LENGTH
from models.base import SequenceClassifier

GATE_NAMES = ('forget_gate', 'input_gate', 'cell_gate', 'output_gate')


def lstm_cell(
    inputs: torch.Tensor,
    prev_hidden: torch.Tensor,
    prev_cell: torch.Tensor,
    gates: Mapping[str, torch.Tensor],
    prefix: str = ''
) -> Tuple[torch.Tensor, torch.Tensor]:
    """
    One LSTM step.

    Args:
        inputs: (batch, embedding_dim)
        prev_hidden: (batch, units)
        prev_cell: (batch, units)
        gates: Weight mapping holding the four gate matrices and the bias
        prefix: Name prefix of this cell's weights in the mapping

    Returns:
        Tuple of (hidden, cell), each (batch, units)
    """
    combined = torch.cat([inputs, prev_hidden], dim=1)
    units = prev_hidden.shape[1]
    bias = gates[f'{prefix}lstm_bias']

    forget_gate = torch.sigmoid(combined @ gates[f'{prefix}forget_gate'] + bias[:units])
    input_gate = torch.sigmoid(combined @ gates[f'{prefix}input_gate'] + bias[units:2 * units])
    cell_gate = torch.tanh(combined @ gates[f'{prefix}cell_gate'] + bias[2 * units:3 * units])
    output_gate = torch.sigmoid(combined @ gates[f'{prefix}output_gate'] + bias[3 * units:])

    cell = forget_gate * prev_cell + input_gate * cell_gate
    hidden = output_gate * torch.tanh(cell)
    return hidden, cell


def run_lstm(
    embedded: torch.Tensor,
    gates: Mapping[str, torch.Tensor],
    units: int,
    prefix: str = '',
    reverse: bool = False
) -> torch.Tensor:
    """
    Unroll an LSTM cell over a batch of embedded sequences.

    Args:
        embedded: (batch, seq_len, embedding_dim)
        gates: Weight mapping for the cell
        units: Hidden/cell state dimension
        prefix: Name prefix of the cell's weights
        reverse: If True, traverse the sequence right-to-left

    Returns:
        Final hidden state of shape (batch, units)
    """
    batch_size, seq_len, _ = embedded.shape
    hidden = embedded.new_zeros((batch_size, units))
    cell = embedded.new_zeros((batch_size, units))

    steps = range(seq_len - 1, -1, -1) if reverse else range(seq_len)
    for t in steps:
        hidden, cell = lstm_cell(embedded[:, t, :], hidden, cell, gates, prefix)

    return hidden


class LSTMClassifier(SequenceClassifier):
    """
    Single-direction LSTM classifier.

    Architecture:
    - Embedding (vocab_size x embedding_dim)
    - LSTM over the sequence, left to right (lstm_units)
    - Dense (lstm_units -> 1) + sigmoid
    """

    model_type = 'lstm'
    display_name = 'LSTM'
    config_keys = ('vocab_size', 'embedding_dim', 'lstm_units', 'max_length')
    zero_initialized = ('lstm_bias', 'dense_bias')

    def __init__(
        self,
        vocab_size: int,
        embedding_dim: int = EMBEDDING_DIM,
        lstm_units: int = LSTM_UNITS,
        max_length: int = MAX_SEQUENCE_LENGTH,
        seed: Optional[int] = None
    ):
        """
        Initialize LSTM model.

        Args:
            vocab_size: Rows of the embedding table
            embedding_dim: Embedding dimension
            lstm_units: Hidden and cell state dimension
            max_length: Length of every input sequence
            seed: Seed for parameter draws
        """
        super().__init__(vocab_size, embedding_dim, max_length, seed)
        if lstm_units < 1:
            raise ValueError(f"lstm_units must be positive, got {lstm_units}")
        self.lstm_units = lstm_units

    def get_config(self) -> Dict:
        config = super().get_config()
        config['lstm_units'] = self.lstm_units
        return config

    def _cell_shapes(self, prefix: str = '') -> Dict[str, Tuple[int, ...]]:
        combined_dim = self.embedding_dim + self.lstm_units
        shapes = {
            f'{prefix}{gate}': (combined_dim, self.lstm_units)
            for gate in GATE_NAMES
        }
        shapes[f'{prefix}lstm_bias'] = (4 * self.lstm_units,)
        return shapes

    @property
    def dense_input_dim(self) -> int:
        return self.lstm_units

    def weight_shapes(self) -> Dict[str, Tuple[int, ...]]:
        shapes = super().weight_shapes()
        shapes.update(self._cell_shapes())
        shapes['dense_weights'] = (self.dense_input_dim, 1)
        shapes['dense_bias'] = (1,)
        return shapes

    def _final_hidden(self, embedded: torch.Tensor) -> torch.Tensor:
        return run_lstm(embedded, self.weights, self.lstm_units)

    def _forward(self, sequences: torch.Tensor) -> torch.Tensor:
        embedded = self.encoder.embed(sequences)
        hidden = self._final_hidden(embedded)

        output = hidden @ self.weights['dense_weights'] + self.weights['dense_bias']
        return torch.sigmoid(output).squeeze(1)


class BiLSTMClassifier(LSTMClassifier):
    """
    Bidirectional LSTM classifier.

    A forward cell reads the sequence left to right and an independently
    parameterized backward cell reads it right to left. The two final
    hidden states are concatenated (forward first), so the dense layer
    takes 2 * lstm_units inputs.
    """

    model_type = 'bilstm'
    display_name = 'BiLSTM'
    zero_initialized = ('lstm_bias', 'backward_lstm_bias', 'dense_bias')

    @property
    def dense_input_dim(self) -> int:
        return 2 * self.lstm_units

    def weight_shapes(self) -> Dict[str, Tuple[int, ...]]:
        shapes = super().weight_shapes()
        shapes.update(self._cell_shapes(prefix='backward_'))
        return shapes

    def _final_hidden(self, embedded: torch.Tensor) -> torch.Tensor:
        forward_hidden = run_lstm(embedded, self.weights, self.lstm_units)
        backward_hidden = run_lstm(
            embedded, self.weights, self.lstm_units,
            prefix='backward_', reverse=True
        )
        # Concatenate final hidden states from both directions
        return torch.cat((forward_hidden, backward_hidden), dim=1)
