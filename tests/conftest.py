import pytest

from models.cnn_model import CNNClassifier
from models.lstm_model import BiLSTMClassifier, LSTMClassifier
from preprocessing.data_loader import SAMPLE_DATASET
from preprocessing.text_vectorizer import TextVectorizer
from training.harness import EvaluationHarness

# Small dimensions keep the forward passes fast
SMALL_MODEL_PARAMS = {
    'lstm': {'embedding_dim': 8, 'lstm_units': 6},
    'bilstm': {'embedding_dim': 8, 'lstm_units': 6},
    'cnn': {'embedding_dim': 8, 'num_filters': 4, 'filter_sizes': (3, 4, 5)},
}

SMALL_VOCAB = 20
SMALL_LENGTH = 12


def make_small_model(model_cls, **kwargs):
    params = {
        LSTMClassifier: SMALL_MODEL_PARAMS['lstm'],
        BiLSTMClassifier: SMALL_MODEL_PARAMS['bilstm'],
        CNNClassifier: SMALL_MODEL_PARAMS['cnn'],
    }[model_cls]
    config = dict(params, vocab_size=SMALL_VOCAB, max_length=SMALL_LENGTH)
    config.update(kwargs)
    return model_cls(**config)


def small_sequences():
    return [
        [1, 2, 3, 4, 5, 0, 0, 0, 0, 0, 0, 0],
        [6, 7, 8, 9, 10, 11, 12, 0, 0, 0, 0, 0],
        [13, 14, 15, 16, 17, 18, 19, 1, 2, 3, 4, 5],
        [2, 4, 6, 8, 0, 0, 0, 0, 0, 0, 0, 0],
    ]


SMALL_LABELS = [0, 1, 1, 0]


@pytest.fixture
def vectorizer():
    return TextVectorizer()


@pytest.fixture
def sample_records():
    return list(SAMPLE_DATASET)


@pytest.fixture
def harness():
    return EvaluationHarness(verbose=False)


@pytest.fixture
def trained_report(harness, sample_records):
    return harness.train_and_evaluate(
        sample_records,
        epochs=2,
        seed=7,
        model_params=SMALL_MODEL_PARAMS,
    )
