import json

import numpy as np
import pytest
import torch

from conftest import SMALL_LABELS, SMALL_LENGTH, make_small_model, small_sequences
from models.base import DeserializationError, ModelNotReadyError, PredictionResult
from models.cnn_model import CNNClassifier
from models.lstm_model import BiLSTMClassifier, LSTMClassifier
from models.registry import create_model, display_name, model_from_dict, normalize_model_type

ALL_MODELS = [LSTMClassifier, BiLSTMClassifier, CNNClassifier]


@pytest.fixture(params=ALL_MODELS, ids=lambda cls: cls.display_name)
def model_cls(request):
    return request.param


@pytest.fixture
def trained(model_cls):
    model = make_small_model(model_cls)
    model.train(small_sequences(), SMALL_LABELS, epochs=3, seed=11, verbose=False)
    return model


class TestPredictionResult:
    def test_fake_above_threshold(self):
        result = PredictionResult.from_probability(0.8)
        assert result.label == 'FAKE'
        assert result.confidence == pytest.approx(0.8)
        assert result.probabilities == pytest.approx({'real': 0.2, 'fake': 0.8})

    def test_exactly_half_is_real(self):
        result = PredictionResult.from_probability(0.5)
        assert result.label == 'REAL'
        assert result.confidence == 0.5


class TestContract:
    def test_predict_before_train_fails(self, model_cls):
        model = make_small_model(model_cls)
        assert not model.is_trained
        with pytest.raises(ModelNotReadyError):
            model.predict([0] * SMALL_LENGTH)

    def test_serialize_before_train_fails(self, model_cls):
        with pytest.raises(ModelNotReadyError):
            make_small_model(model_cls).serialize()

    def test_probabilities_sum_to_one(self, trained):
        for sequence in small_sequences():
            result = trained.predict(sequence)
            probs = result.probabilities
            assert abs(probs['real'] + probs['fake'] - 1.0) < 1e-9
            assert result.confidence == max(probs['real'], probs['fake'])
            assert 0.0 <= result.confidence <= 1.0
            assert result.label == ('FAKE' if probs['fake'] > 0.5 else 'REAL')

    def test_all_padding_sequence_is_exactly_undecided(self, trained):
        # Zero embeddings and zero biases give a logit of exactly 0
        result = trained.predict([0] * SMALL_LENGTH)
        assert result.probabilities['fake'] == pytest.approx(0.5)
        assert result.label == 'REAL'

    def test_predict_proba_columns(self, trained):
        probs = trained.predict_proba(small_sequences())
        assert probs.shape == (4, 2)
        np.testing.assert_allclose(probs.sum(axis=1), 1.0, atol=1e-9)
        batch = trained.predict_batch(small_sequences())
        assert [r.probabilities['fake'] for r in batch] == pytest.approx(probs[:, 1].tolist())

    def test_rejects_wrong_length(self, trained):
        with pytest.raises(ValueError):
            trained.predict([1, 2, 3])

    def test_train_requires_matching_labels(self, model_cls):
        model = make_small_model(model_cls)
        with pytest.raises(ValueError):
            model.train(small_sequences(), [0, 1], verbose=False)
        with pytest.raises(ValueError):
            model.train([], [], verbose=False)


class TestForwardOnlyTraining:
    def test_loss_is_not_expected_to_decrease_across_epochs(self, model_cls):
        model = make_small_model(model_cls)
        history = model.train(small_sequences(), SMALL_LABELS, epochs=4, seed=3, verbose=False)
        assert len(history) == 4
        assert history == pytest.approx([history[0]] * 4)

    def test_training_does_not_update_parameters(self, model_cls):
        trained = make_small_model(model_cls)
        trained.train(small_sequences(), SMALL_LABELS, epochs=5, seed=5, verbose=False)

        fresh = make_small_model(model_cls)
        fresh.initialize_weights(seed=5)

        assert trained.weights.keys() == fresh.weights.keys()
        for name in fresh.weights:
            assert torch.equal(trained.weights[name], fresh.weights[name]), name

    def test_loss_is_mean_squared_error(self, model_cls):
        model = make_small_model(model_cls)
        history = model.train(small_sequences(), SMALL_LABELS, epochs=1, seed=9, verbose=False)
        fake = model.predict_proba(small_sequences())[:, 1]
        expected = np.mean((fake - np.array(SMALL_LABELS)) ** 2)
        assert history[0] == pytest.approx(expected)

    def test_each_train_call_redraws_parameters(self, model_cls):
        model = make_small_model(model_cls)
        model.train(small_sequences(), SMALL_LABELS, epochs=1, seed=1, verbose=False)
        first = model.weights['embedding'].clone()
        model.train(small_sequences(), SMALL_LABELS, epochs=1, seed=2, verbose=False)
        assert not torch.equal(first, model.weights['embedding'])

    def test_same_seed_same_predictions(self, model_cls):
        a = make_small_model(model_cls, seed=21)
        b = make_small_model(model_cls, seed=21)
        a.train(small_sequences(), SMALL_LABELS, epochs=1, verbose=False)
        b.train(small_sequences(), SMALL_LABELS, epochs=1, verbose=False)
        np.testing.assert_array_equal(a.predict_proba(small_sequences()),
                                      b.predict_proba(small_sequences()))

    def test_parameters_are_small_uniform_draws(self, trained):
        for name, tensor in trained.weights.items():
            assert tensor.abs().max().item() <= 0.05, name

    def test_biases_start_at_zero(self, trained):
        assert torch.count_nonzero(trained.weights['dense_bias']) == 0

    def test_prints_loss_per_epoch(self, model_cls, capsys):
        model = make_small_model(model_cls)
        model.train(small_sequences(), SMALL_LABELS, epochs=2, seed=1)
        out = capsys.readouterr().out
        assert f"{model.display_name} Epoch 1/2" in out
        assert f"{model.display_name} Epoch 2/2" in out


class TestEmbedding:
    def test_pad_and_out_of_range_ids_embed_to_zero(self, trained):
        embedded = trained.encoder.embed(torch.tensor([[0, 3, 999]]))
        assert embedded.shape == (1, 3, trained.embedding_dim)
        assert torch.count_nonzero(embedded[0, 0]) == 0
        assert torch.count_nonzero(embedded[0, 2]) == 0
        assert torch.equal(embedded[0, 1], trained.weights['embedding'][3])


class TestSerialization:
    def test_round_trip(self, trained):
        data = trained.serialize()
        restored = type(trained).deserialize(data)
        assert restored.get_config() == trained.get_config()
        np.testing.assert_array_equal(restored.predict_proba(small_sequences()),
                                      trained.predict_proba(small_sequences()))

    def test_json_round_trip(self, trained):
        payload = trained.to_json()
        assert json.loads(payload)['model_type'] == trained.model_type
        restored = model_from_dict(payload)
        assert type(restored) is type(trained)
        np.testing.assert_array_equal(restored.predict_proba(small_sequences()),
                                      trained.predict_proba(small_sequences()))

    def test_save_and_load(self, trained, tmp_path):
        path = tmp_path / "model.pt"
        trained.save(path)
        loaded = make_small_model(type(trained))
        loaded.load(path)
        assert loaded.history == trained.history
        np.testing.assert_array_equal(loaded.predict_proba(small_sequences()),
                                      trained.predict_proba(small_sequences()))

    def test_missing_config(self, trained):
        data = trained.serialize()
        del data['config']
        with pytest.raises(DeserializationError):
            type(trained).deserialize(data)

    def test_missing_config_field(self, trained):
        data = trained.serialize()
        del data['config']['embedding_dim']
        with pytest.raises(DeserializationError):
            type(trained).deserialize(data)

    def test_missing_weight(self, trained):
        data = trained.serialize()
        del data['weights']['dense_weights']
        with pytest.raises(DeserializationError):
            type(trained).deserialize(data)

    def test_wrong_weight_shape(self, trained):
        data = trained.serialize()
        data['weights']['embedding'] = data['weights']['embedding'][:-1]
        with pytest.raises(DeserializationError):
            type(trained).deserialize(data)

    def test_invalid_json(self, model_cls):
        with pytest.raises(DeserializationError):
            model_cls.deserialize("{not json")

    def test_wrong_model_type(self, trained):
        data = trained.serialize()
        other = LSTMClassifier if not isinstance(trained, LSTMClassifier) else CNNClassifier
        with pytest.raises(DeserializationError):
            other.deserialize(data)

    def test_failed_load_leaves_model_untouched(self, trained):
        before = {name: t.clone() for name, t in trained.weights.items()}
        config = trained.get_config()
        data = trained.serialize()
        data['config']['vocab_size'] = 99
        with pytest.raises(DeserializationError):
            trained.load_state(data)
        assert trained.get_config() == config
        for name, tensor in before.items():
            assert torch.equal(trained.weights[name], tensor)

    def test_load_state_installs_other_model(self, model_cls):
        source = make_small_model(model_cls)
        source.train(small_sequences(), SMALL_LABELS, epochs=1, seed=4, verbose=False)
        target = make_small_model(model_cls, vocab_size=50)
        target.load_state(source.serialize())
        assert target.vocab_size == source.vocab_size
        np.testing.assert_array_equal(target.predict_proba(small_sequences()),
                                      source.predict_proba(small_sequences()))


class TestBiLSTM:
    def test_concatenates_both_directions(self):
        model = make_small_model(BiLSTMClassifier)
        model.initialize_weights(seed=1)
        units = model.lstm_units
        assert model.weights['dense_weights'].shape == (2 * units, 1)
        assert 'backward_forget_gate' in model.weights
        assert not torch.equal(model.weights['forget_gate'], model.weights['backward_forget_gate'])

    def test_single_direction_dense_layer(self):
        model = make_small_model(LSTMClassifier)
        model.initialize_weights(seed=1)
        assert model.weights['dense_weights'].shape == (model.lstm_units, 1)
        assert 'backward_forget_gate' not in model.weights


class TestCNN:
    def test_three_hundred_pooled_features(self):
        model = CNNClassifier(vocab_size=30, embedding_dim=8, num_filters=100,
                              filter_sizes=[3, 4, 5], max_length=100)
        model.initialize_weights(seed=2)
        # Only two non-zero tokens, fewer than any filter width
        sequence = [5, 9] + [0] * 98
        features = model.pooled_features([sequence])
        assert features.shape == (1, 300)
        assert (features >= 0).all()
        result = model.predict(sequence)
        assert abs(sum(result.probabilities.values()) - 1.0) < 1e-9

    def test_filter_banks_follow_configuration_order(self):
        model = make_small_model(CNNClassifier, filter_sizes=(5, 3))
        model.initialize_weights(seed=1)
        assert [width for width, _ in model.filter_banks] == [5, 3]
        assert [tuple(bank.shape) for _, bank in model.filter_banks] == [(4, 5, 8), (4, 3, 8)]

    def test_filter_wider_than_sequence_is_rejected(self):
        with pytest.raises(ValueError):
            CNNClassifier(vocab_size=10, embedding_dim=4, num_filters=2,
                          filter_sizes=[3, 20], max_length=10)

    def test_convolution_matches_manual_computation(self):
        model = CNNClassifier(vocab_size=6, embedding_dim=2, num_filters=1,
                              filter_sizes=[2], max_length=3)
        model.initialize_weights(seed=0)
        table = model.weights['embedding']
        bank = model.weights['conv_filters_0'][0]

        sequence = [1, 2, 3]
        rows = [table[i] for i in sequence]
        activations = [
            max(0.0, float((rows[i] * bank[0]).sum() + (rows[i + 1] * bank[1]).sum()))
            for i in range(2)
        ]
        features = model.pooled_features([sequence])
        assert features[0, 0] == pytest.approx(max(activations))


class TestRegistry:
    def test_normalize(self):
        assert normalize_model_type('BiLSTM') == 'bilstm'
        assert normalize_model_type(' CNN ') == 'cnn'
        with pytest.raises(ValueError):
            normalize_model_type('transformer')

    def test_display_names(self):
        assert [display_name(m) for m in ('lstm', 'bilstm', 'cnn')] == ['LSTM', 'BiLSTM', 'CNN']

    def test_create_model_defaults(self):
        cnn = create_model('cnn', vocab_size=10, max_length=100)
        assert cnn.num_filters == 100
        assert cnn.filter_sizes == (3, 4, 5)
        assert cnn.embedding_dim == 50
        lstm = create_model('lstm', vocab_size=10, max_length=100, lstm_units=8)
        assert lstm.lstm_units == 8

    def test_model_from_dict_requires_type(self):
        with pytest.raises(DeserializationError):
            model_from_dict({'config': {}, 'weights': {}})
        with pytest.raises(DeserializationError):
            model_from_dict({'model_type': 'transformer'})
