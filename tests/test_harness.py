import pytest
import torch

from conftest import SMALL_MODEL_PARAMS
from config import MAX_SEQUENCE_LENGTH
from preprocessing.data_loader import NewsDataLoader, NewsRecord, load_records
from preprocessing.vocabulary import VocabularyUnavailableError
from training.harness import EvaluationHarness
from training.train_models import build_parser, main


class TestPrepareDataset:
    def test_sample_corpus(self, harness, sample_records):
        dataset = harness.prepare_dataset(sample_records)
        assert harness.vocabulary.size > 0
        assert len(dataset) == 12
        assert all(len(seq) == MAX_SEQUENCE_LENGTH for seq in dataset.sequences)
        assert sorted(dataset.labels) == [0] * 6 + [1] * 6

    def test_labels_follow_records(self, harness, sample_records):
        dataset = harness.prepare_dataset(sample_records)
        assert dataset.labels == [r.binary_label for r in sample_records]

    def test_accepts_mappings(self, harness):
        dataset = harness.prepare_dataset([
            {'title': 'Moon Landing Faked', 'text': 'Studio footage', 'label': 'FAKE'},
            {'title': 'Rates Unchanged', 'text': None, 'label': 'real'},
        ])
        assert dataset.labels == [1, 0]
        assert 'moon' in harness.vocabulary

    def test_invalid_label(self, harness):
        with pytest.raises(ValueError):
            harness.prepare_dataset([{'title': 'x', 'text': 'y', 'label': 'satire'}])


class TestEncodeText:
    def test_requires_prepared_vocabulary(self, harness):
        with pytest.raises(VocabularyUnavailableError):
            harness.encode_text("BREAKING NEWS")

    def test_uses_shared_vocabulary(self, harness, sample_records):
        harness.prepare_dataset(sample_records)
        sequence = harness.encode_text("BREAKING NEWS")
        assert len(sequence) == MAX_SEQUENCE_LENGTH
        assert sequence[0] == harness.vocabulary.id_for('breaking')
        assert sequence == harness.encode_text("BREAKING NEWS")


class TestSplit:
    def test_sizes_and_partition(self, harness, sample_records):
        dataset = harness.prepare_dataset(sample_records)
        split = harness.split_dataset(dataset.sequences, dataset.labels, 0.2, seed=1)
        assert len(split.test) == 2
        assert len(split.train) == 10
        assert sorted(split.test_indices + split.train_indices) == list(range(12))
        assert not set(split.test_indices) & set(split.train_indices)

    def test_subsets_follow_indices(self, harness, sample_records):
        dataset = harness.prepare_dataset(sample_records)
        split = harness.split_dataset(dataset.sequences, dataset.labels, 0.5, seed=3)
        for position, index in enumerate(split.test_indices):
            assert split.test.sequences[position] == dataset.sequences[index]
            assert split.test.labels[position] == dataset.labels[index]

    def test_same_seed_same_split(self, harness):
        sequences = [[i] for i in range(20)]
        labels = [i % 2 for i in range(20)]
        first = harness.split_dataset(sequences, labels, 0.25, seed=5)
        second = harness.split_dataset(sequences, labels, 0.25, seed=5)
        assert first.test_indices == second.test_indices

    @pytest.mark.parametrize("fraction,test_size", [(0.0, 0), (1.0, 12), (0.99, 11), (0.3, 3)])
    def test_floor_of_fraction(self, harness, fraction, test_size):
        sequences = [[i] for i in range(12)]
        split = harness.split_dataset(sequences, [0] * 12, fraction, seed=0)
        assert len(split.test) == test_size
        assert len(split.train) == 12 - test_size

    @pytest.mark.parametrize("fraction", [-0.1, 1.5])
    def test_rejects_invalid_fraction(self, harness, fraction):
        with pytest.raises(ValueError):
            harness.split_dataset([[1]], [0], fraction)

    def test_rejects_misaligned_labels(self, harness):
        with pytest.raises(ValueError):
            harness.split_dataset([[1], [2]], [0])


class TestTrainAndEvaluate:
    def test_report(self, trained_report):
        assert set(trained_report.models) == {'lstm', 'bilstm', 'cnn'}
        assert len(trained_report.split.test) == 2
        for model_type, metrics in trained_report.metrics.items():
            assert metrics.confusion_matrix.total == 2
            for value in (metrics.accuracy, metrics.precision, metrics.recall, metrics.f1):
                assert 0.0 <= value <= 1.0
            assert len(trained_report.histories[model_type]) == 2

    def test_seeded_models_draw_independent_parameters(self, trained_report):
        lstm = trained_report.models['lstm']
        bilstm = trained_report.models['bilstm']
        cnn = trained_report.models['cnn']
        assert not torch.equal(lstm.weights['embedding'], cnn.weights['embedding'])
        assert not torch.equal(lstm.weights['embedding'], bilstm.weights['embedding'])
        assert not torch.equal(lstm.weights['forget_gate'], bilstm.weights['forget_gate'])

    def test_models_cover_shared_vocabulary(self, trained_report):
        rows = trained_report.vocabulary.embedding_rows
        for model in trained_report.models.values():
            assert model.vocab_size == rows
            assert model.max_length == MAX_SEQUENCE_LENGTH

    def test_evaluator_keeps_display_names(self, harness, trained_report):
        assert set(harness.evaluator.results) == {'LSTM', 'BiLSTM', 'CNN'}

    def test_to_dict(self, trained_report):
        summary = trained_report.to_dict()
        assert summary['train_size'] == 10
        assert summary['test_size'] == 2
        assert set(summary['metrics']) == {'lstm', 'bilstm', 'cnn'}

    def test_seed_reproduces_report(self, sample_records):
        def run():
            harness = EvaluationHarness(verbose=False)
            return harness.train_and_evaluate(
                sample_records, epochs=1, seed=11,
                model_types=['cnn'], model_params=SMALL_MODEL_PARAMS,
            )

        first, second = run(), run()
        assert first.split.test_indices == second.split.test_indices
        assert first.histories == second.histories

    def test_unknown_model_type(self, harness, sample_records):
        with pytest.raises(ValueError):
            harness.train_and_evaluate(sample_records, model_types=['transformer'])


class TestDataLoader:
    def test_load_records_defaults_to_sample(self):
        records = load_records()
        assert len(records) == 12
        assert NewsDataLoader.get_class_distribution(records) == {'real': 6, 'fake': 6}

    def test_load_csv(self, tmp_path):
        path = tmp_path / "news.csv"
        path.write_text(
            "title,text,label\n"
            "Headline A,Body A,REAL\n"
            ",Body B,fake\n"
            "Headline C,Body C,satire\n"
        )
        records = NewsDataLoader().load_csv(path)
        assert records == [
            NewsRecord(title='Headline A', text='Body A', label='real'),
            NewsRecord(title='', text='Body B', label='fake'),
        ]

    def test_missing_csv_falls_back(self, tmp_path, capsys):
        records = load_records(tmp_path / "missing.csv")
        assert len(records) == 12
        assert "Falling back" in capsys.readouterr().out

    def test_full_text_joins_title_and_body(self):
        record = NewsRecord(title='Title', text='Body', label='real')
        assert record.full_text == 'Title Body'
        assert record.binary_label == 0


def test_cli_trains_and_saves(tmp_path, capsys):
    args = build_parser().parse_args([
        '--epochs', '1',
        '--seed', '3',
        '--max_length', '20',
        '--models', 'cnn',
        '--save',
        '--output_dir', str(tmp_path),
    ])
    report = main(args)

    assert set(report.models) == {'cnn'}
    assert (tmp_path / "cnn_model.pt").exists()
    assert (tmp_path / "vocabulary.joblib").exists()
    assert "TRAINING COMPLETE" in capsys.readouterr().out
