"""
News Predictor: inference boundary of the system.

Takes raw article text and a model selector and returns a label,
confidence and class probabilities. Optionally records each prediction
in a PredictionStore; a storage failure is reported but never discards
a prediction that was already computed.
"""

import sys
from pathlib import Path
from typing import Dict, Optional, Tuple

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))
from config import DEFAULT_MODEL_TYPE
from models.base import ModelNotReadyError, PredictionResult, SequenceClassifier
from models.registry import display_name, normalize_model_type
from storage.prediction_store import PredictionRecord, PredictionStore, PredictionStoreError
from training.harness import EvaluationHarness


class NewsPredictor:
    """
    Classifies free text with one of the trained sequence models.

    Attributes:
        harness: Harness holding the vocabulary the models were trained with
        models: Trained models keyed by selector ("lstm", "bilstm", "cnn")
        store: Optional prediction history store
    """

    def __init__(
        self,
        harness: EvaluationHarness,
        models: Dict[str, SequenceClassifier],
        store: Optional[PredictionStore] = None
    ):
        self.harness = harness
        self.models = {normalize_model_type(k): v for k, v in models.items()}
        self.store = store

    def get_model(self, model_type: str) -> SequenceClassifier:
        key = normalize_model_type(model_type)
        model = self.models.get(key)
        if model is None or not model.is_trained:
            raise ModelNotReadyError(f"Model {key!r} is not trained")
        return model

    def classify(self, text: str, model_type: str = DEFAULT_MODEL_TYPE) -> PredictionResult:
        """
        Classify one article.

        Args:
            text: Raw article text or headline
            model_type: "lstm", "bilstm" or "cnn"

        Returns:
            PredictionResult

        Raises:
            ValueError: For blank text or an unknown model type
            VocabularyUnavailableError: If no dataset has been prepared
            ModelNotReadyError: If the selected model is not trained
        """
        if not text or not text.strip():
            raise ValueError("No article text provided")

        model = self.get_model(model_type)
        sequence = self.harness.encode_text(text)
        return model.predict(sequence)

    def classify_and_record(
        self,
        text: str,
        model_type: str = DEFAULT_MODEL_TYPE
    ) -> Tuple[PredictionResult, Optional[str]]:
        """
        Classify an article and store the prediction.

        Returns:
            Tuple of (prediction, stored record id or None if not stored)
        """
        result = self.classify(text, model_type)

        if self.store is None:
            return result, None

        record = PredictionRecord(
            text=text,
            prediction=result.label,
            confidence=result.confidence,
            model_type=display_name(model_type),
            probabilities=dict(result.probabilities),
        )

        try:
            record_id = self.store.save(record)
        except PredictionStoreError as e:
            print(f"Warning: Could not save prediction: {e}")
            record_id = None

        return result, record_id
