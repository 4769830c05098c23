"""
Fake News Detection Web API

Flask JSON API over the sequence classifiers.

Endpoints:
- POST /api/train    prepare the corpus and train LSTM, Bi-LSTM and CNN
- POST /api/predict  classify article text with a selected model
- GET  /api/history  most recent predictions, newest first
- GET  /api/stats    prediction counts by label and by model
- GET  /api/health   service status

Predictions are probabilistic outputs of untrained (randomly initialised)
models, NOT verified judgements about an article.
"""

import sys
from pathlib import Path
from typing import Any, Dict, Optional

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from flask import Flask, jsonify, request
from flask_cors import CORS

from config import (
    DEFAULT_MODEL_TYPE,
    FLASK_DEBUG,
    FLASK_HOST,
    FLASK_PORT,
    HISTORY_DEFAULT_LIMIT,
    MAX_SEQUENCE_LENGTH,
    RANDOM_SEED,
    TEST_FRACTION,
    TRAIN_EPOCHS,
)
from inference.predictor import NewsPredictor
from models.base import ModelNotReadyError
from preprocessing.data_loader import SAMPLE_DATASET
from preprocessing.vocabulary import VocabularyUnavailableError
from storage.prediction_store import InMemoryPredictionStore, PredictionStore
from training.harness import EvaluationHarness


def create_app(
    store: Optional[PredictionStore] = None,
    model_params: Optional[Dict[str, Dict[str, Any]]] = None
) -> Flask:
    """
    Build the Flask application.

    Args:
        store: Prediction history store (default: in-memory)
        model_params: Per-model hyper-parameter overrides, keyed by selector

    Returns:
        Configured Flask app
    """
    app = Flask(__name__)
    CORS(app)

    state = {
        'store': store if store is not None else InMemoryPredictionStore(),
        'predictor': None,
        'report': None,
    }
    app.extensions['news_classifier'] = state

    @app.route('/api/health')
    def health():
        """Service status."""
        report = state['report']
        return jsonify({
            'status': 'ok',
            'models_trained': report is not None,
            'models': sorted(report.models) if report else [],
        })

    @app.route('/api/train', methods=['POST'])
    def train():
        """Train all models on the sample corpus (or on posted records)."""
        try:
            data = request.get_json(silent=True) or {}
            if not isinstance(data, dict):
                return jsonify({'error': 'Request body must be a JSON object'}), 400

            records = data.get('records') or SAMPLE_DATASET
            epochs = int(data.get('epochs', TRAIN_EPOCHS))
            test_fraction = float(data.get('test_fraction', TEST_FRACTION))
            seed = data.get('seed', RANDOM_SEED)
            seed = int(seed) if seed is not None else None

            harness = EvaluationHarness(max_length=MAX_SEQUENCE_LENGTH)
            report = harness.train_and_evaluate(
                records,
                epochs=epochs,
                test_fraction=test_fraction,
                seed=seed,
                model_params=model_params,
            )

            state['report'] = report
            state['predictor'] = NewsPredictor(harness, report.models, state['store'])

            return jsonify(report.to_dict())

        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        except Exception as e:
            return jsonify({'error': str(e)}), 500

    @app.route('/api/predict', methods=['POST'])
    def predict():
        """Classify article text."""
        try:
            data = request.get_json(silent=True)

            if not data or not isinstance(data, dict):
                return jsonify({'error': 'No data provided'}), 400

            text = (data.get('text') or '').strip()
            model_type = data.get('model') or DEFAULT_MODEL_TYPE

            if not text:
                return jsonify({'error': 'No article text provided'}), 400

            predictor = state['predictor']
            if predictor is None:
                return jsonify({'error': 'Models not trained. POST /api/train first.'}), 409

            result, record_id = predictor.classify_and_record(text, model_type)

            response = result.to_dict()
            response['model'] = str(model_type).lower()
            response['id'] = record_id
            return jsonify(response)

        except (ModelNotReadyError, VocabularyUnavailableError) as e:
            return jsonify({'error': str(e)}), 409
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        except Exception as e:
            return jsonify({'error': str(e)}), 500

    @app.route('/api/history')
    def history():
        """Most recent predictions, newest first."""
        try:
            limit = request.args.get('limit', HISTORY_DEFAULT_LIMIT, type=int)
            records = state['store'].get_history(limit)
            return jsonify([record.to_dict() for record in records])
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        except Exception as e:
            return jsonify({'error': str(e)}), 500

    @app.route('/api/stats')
    def stats():
        """Prediction counts by label and by model."""
        try:
            return jsonify(state['store'].get_stats())
        except Exception as e:
            return jsonify({'error': str(e)}), 500

    return app


if __name__ == '__main__':
    print("="*60)
    print("FAKE NEWS DETECTION - SEQUENCE CLASSIFIER API")
    print("="*60)
    print(f"\nServer starting at http://{FLASK_HOST}:{FLASK_PORT}")
    print("POST /api/train to build the models before predicting.\n")

    create_app().run(host=FLASK_HOST, port=FLASK_PORT, debug=FLASK_DEBUG)
