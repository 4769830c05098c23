"""
Fake News Sequence Classifier
Configuration Settings

Three hand-built sequence models (LSTM, Bi-LSTM, CNN) are run as
forward-only inference over randomly initialised parameters. Their output
is a probability, NOT a verified judgement about an article.
"""

from pathlib import Path

# =============================================================================
# PROJECT PATHS
# =============================================================================
PROJECT_ROOT = Path(__file__).parent
DATA_DIR = PROJECT_ROOT / "data"
RAW_DATA_DIR = DATA_DIR / "raw"
SAVED_MODELS_DIR = PROJECT_ROOT / "saved_models"

# =============================================================================
# DATA SETTINGS
# =============================================================================
# Fraction of the corpus held out for evaluation
TEST_FRACTION = 0.2

# Random seed for parameter draws and dataset shuffling.
# None means a fresh, non-deterministic draw on every run.
RANDOM_SEED = None

# Label encoding (positive class = FAKE)
LABEL_FAKE = 1
LABEL_REAL = 0

# =============================================================================
# TEXT PREPROCESSING SETTINGS
# =============================================================================
# Tokens must be at least this long to survive stop-word removal
MIN_TOKEN_LENGTH = 3

# Fixed length of every encoded sequence
MAX_SEQUENCE_LENGTH = 100

# =============================================================================
# MODEL SETTINGS
# =============================================================================
EMBEDDING_DIM = 50

# LSTM / Bi-LSTM
LSTM_UNITS = 64

# CNN
CNN_NUM_FILTERS = 100
CNN_FILTER_SIZES = (3, 4, 5)

# Parameters are drawn from U(-INIT_RANGE / 2, INIT_RANGE / 2)
INIT_RANGE = 0.1

# Probability above which a prediction is labelled FAKE
DECISION_THRESHOLD = 0.5

# Epochs of forward-only loss reporting
TRAIN_EPOCHS = 5

# =============================================================================
# INFERENCE / HISTORY SETTINGS
# =============================================================================
DEFAULT_MODEL_TYPE = "bilstm"

# Stored prediction text is truncated to this many characters
HISTORY_TEXT_LIMIT = 500

# Number of history records returned when no limit is given
HISTORY_DEFAULT_LIMIT = 50

# =============================================================================
# FLASK SETTINGS
# =============================================================================
FLASK_HOST = "127.0.0.1"
FLASK_PORT = 5000
FLASK_DEBUG = True
