"""
Training Script for the Sequence Models

Prepares the corpus, splits it, runs forward-only training for the LSTM,
Bi-LSTM and CNN models and prints their test metrics.

Training does not update parameters: each model keeps its random initial
weights, so the reported metrics are at chance level.

Usage:
    python training/train_models.py --epochs 5 --seed 42 --save
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import (
    MAX_SEQUENCE_LENGTH,
    RANDOM_SEED,
    SAVED_MODELS_DIR,
    TEST_FRACTION,
    TRAIN_EPOCHS,
)
from models.registry import MODEL_TYPES
from preprocessing.data_loader import load_records
from training.harness import EvaluationHarness


def main(args):
    """Main training pipeline."""

    print("="*60)
    print("FAKE NEWS DETECTION - SEQUENCE MODEL TRAINING")
    print("="*60)
    print("\nModels run forward-only over random parameters;")
    print("loss is reported but weights are never updated.\n")

    if args.seed is not None:
        print(f"Using seed {args.seed}")

    records = load_records(args.data)
    print(f"Loaded {len(records)} articles")

    harness = EvaluationHarness(max_length=args.max_length)
    report = harness.train_and_evaluate(
        records,
        epochs=args.epochs,
        test_fraction=args.test_fraction,
        seed=args.seed,
        model_types=args.models,
    )

    print("\n" + "="*50)
    print("EVALUATION")
    print("="*50)
    harness.evaluator.print_results()

    print("\nComparison:")
    print(harness.evaluator.to_dataframe().round(4).to_string())

    if args.save:
        output_dir = Path(args.output_dir)
        for model_type, model in report.models.items():
            model.save(output_dir / f"{model_type}_model.pt")
        report.vocabulary.save(output_dir / "vocabulary.joblib")

    print("\n" + "="*50)
    print("TRAINING COMPLETE")
    print("="*50)

    return report


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Train LSTM, Bi-LSTM and CNN models for fake news detection"
    )
    parser.add_argument(
        '--data',
        type=str,
        default=None,
        help='CSV with title, text and label columns (default: built-in sample)'
    )
    parser.add_argument(
        '--epochs',
        type=int,
        default=TRAIN_EPOCHS,
        help='Number of loss-reporting epochs'
    )
    parser.add_argument(
        '--test_fraction',
        type=float,
        default=TEST_FRACTION,
        help='Fraction of the corpus held out for evaluation'
    )
    parser.add_argument(
        '--max_length',
        type=int,
        default=MAX_SEQUENCE_LENGTH,
        help='Encoded sequence length'
    )
    parser.add_argument(
        '--seed',
        type=int,
        default=RANDOM_SEED,
        help='Seed for shuffling and parameter draws (default: random)'
    )
    parser.add_argument(
        '--models',
        nargs='+',
        choices=MODEL_TYPES,
        default=list(MODEL_TYPES),
        help='Models to train'
    )
    parser.add_argument(
        '--save',
        action='store_true',
        help='Save models and vocabulary after training'
    )
    parser.add_argument(
        '--output_dir',
        type=str,
        default=str(SAVED_MODELS_DIR),
        help='Directory for saved models'
    )
    return parser


if __name__ == "__main__":
    main(build_parser().parse_args())
