"""
Model registry: maps model selectors to classifier classes.

Selectors are the lowercase names used by the CLI and the web API
("lstm", "bilstm", "cnn"); display names ("LSTM", "BiLSTM", "CNN") are the
identifiers stored with prediction records.
"""

import json
import sys
from pathlib import Path
from typing import Any, Dict, Mapping, Type, Union

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))
from config import CNN_FILTER_SIZES, CNN_NUM_FILTERS, EMBEDDING_DIM, LSTM_UNITS
from models.base import DeserializationError, SequenceClassifier
from models.cnn_model import CNNClassifier
from models.lstm_model import BiLSTMClassifier, LSTMClassifier

MODEL_CLASSES: Dict[str, Type[SequenceClassifier]] = {
    'lstm': LSTMClassifier,
    'bilstm': BiLSTMClassifier,
    'cnn': CNNClassifier,
}

MODEL_TYPES = tuple(MODEL_CLASSES)

# Hyper-parameters each model is trained with by default
DEFAULT_PARAMS: Dict[str, Dict[str, Any]] = {
    'lstm': {'embedding_dim': EMBEDDING_DIM, 'lstm_units': LSTM_UNITS},
    'bilstm': {'embedding_dim': EMBEDDING_DIM, 'lstm_units': LSTM_UNITS},
    'cnn': {
        'embedding_dim': EMBEDDING_DIM,
        'num_filters': CNN_NUM_FILTERS,
        'filter_sizes': CNN_FILTER_SIZES,
    },
}


def normalize_model_type(model_type: str) -> str:
    """
    Resolve a selector or display name to its canonical selector.

    Raises:
        ValueError: For unknown model types
    """
    key = str(model_type).strip().lower()
    if key not in MODEL_CLASSES:
        raise ValueError(
            f"Unknown model type: {model_type!r}. Choose from {list(MODEL_TYPES)}"
        )
    return key


def get_model_class(model_type: str) -> Type[SequenceClassifier]:
    return MODEL_CLASSES[normalize_model_type(model_type)]


def display_name(model_type: str) -> str:
    """Identifier stored with prediction records ("LSTM", "BiLSTM", "CNN")."""
    return get_model_class(model_type).display_name


def create_model(model_type: str, vocab_size: int, max_length: int, **overrides) -> SequenceClassifier:
    """
    Build an untrained model with the default hyper-parameters.

    Args:
        model_type: Model selector
        vocab_size: Rows of the embedding table
        max_length: Sequence length
        **overrides: Hyper-parameters replacing the defaults (e.g. seed)

    Returns:
        Untrained classifier
    """
    key = normalize_model_type(model_type)
    params = dict(DEFAULT_PARAMS[key])
    params.update(overrides)
    return MODEL_CLASSES[key](vocab_size=vocab_size, max_length=max_length, **params)


def model_from_dict(data: Union[str, Mapping[str, Any]]) -> SequenceClassifier:
    """Rebuild any registered model from its serialize() output."""
    if isinstance(data, (str, bytes)):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as e:
            raise DeserializationError(f"Invalid JSON: {e}") from e

    if not isinstance(data, Mapping) or 'model_type' not in data:
        raise DeserializationError("Serialized model has no 'model_type'")

    try:
        model_cls = get_model_class(data['model_type'])
    except ValueError as e:
        raise DeserializationError(str(e)) from e

    return model_cls.deserialize(data)
