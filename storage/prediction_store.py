"""
Prediction History Store

Contract of the persistence boundary for classified articles:
- save(record) -> opaque id
- get_history(limit) -> newest records first
- get_stats() -> counts by label and by model

InMemoryPredictionStore is the bundled implementation; remote backends
implement the same three methods and raise PredictionStoreError on failure.
"""

import sys
import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))
from config import HISTORY_DEFAULT_LIMIT, HISTORY_TEXT_LIMIT

MODEL_IDENTIFIERS = ('LSTM', 'BiLSTM', 'CNN')
PREDICTION_LABELS = ('REAL', 'FAKE')


class PredictionStoreError(RuntimeError):
    """Raised when a prediction cannot be stored or read back."""


@dataclass
class PredictionRecord:
    """One stored prediction."""

    text: str
    prediction: str  # "REAL" or "FAKE"
    confidence: float
    model_type: str  # "LSTM", "BiLSTM" or "CNN"
    probabilities: Dict[str, float]
    id: Optional[str] = None
    created_at: Optional[str] = None

    def __post_init__(self):
        if self.prediction not in PREDICTION_LABELS:
            raise ValueError(f"Invalid prediction label: {self.prediction!r}")
        if self.model_type not in MODEL_IDENTIFIERS:
            raise ValueError(f"Invalid model identifier: {self.model_type!r}")
        self.text = self.text[:HISTORY_TEXT_LIMIT]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class PredictionStore(ABC):
    """Persistence boundary for prediction records."""

    @abstractmethod
    def save(self, record: PredictionRecord) -> str:
        """Store a record and return its id."""

    @abstractmethod
    def get_history(self, limit: int = HISTORY_DEFAULT_LIMIT) -> List[PredictionRecord]:
        """Most recent records, newest first."""

    @abstractmethod
    def get_stats(self) -> Dict[str, Any]:
        """Totals by prediction label and by model identifier."""


class InMemoryPredictionStore(PredictionStore):
    """Process-local store, safe to share between request threads."""

    def __init__(self):
        self._records: List[PredictionRecord] = []
        self._lock = threading.Lock()

    def save(self, record: PredictionRecord) -> str:
        stored = PredictionRecord(
            text=record.text,
            prediction=record.prediction,
            confidence=record.confidence,
            model_type=record.model_type,
            probabilities=dict(record.probabilities),
            id=str(uuid.uuid4()),
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        with self._lock:
            self._records.append(stored)
        return stored.id

    def get_history(self, limit: int = HISTORY_DEFAULT_LIMIT) -> List[PredictionRecord]:
        if limit < 0:
            raise ValueError(f"limit must be non-negative, got {limit}")
        with self._lock:
            # Insertion order is creation order
            return list(reversed(self._records))[:limit]

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            records = list(self._records)

        return {
            'total': len(records),
            'fake': sum(1 for r in records if r.prediction == 'FAKE'),
            'real': sum(1 for r in records if r.prediction == 'REAL'),
            'by_model': {
                name: sum(1 for r in records if r.model_type == name)
                for name in MODEL_IDENTIFIERS
            },
        }

    def __len__(self) -> int:
        return len(self._records)
