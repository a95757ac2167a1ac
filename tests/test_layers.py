import numpy as np
import pytest

from feedforward_nn import (
    ActivationConfig,
    ConfigurationError,
    Layer,
    LayerConfig,
    LayerState,
    OptimizerConfig,
    OrderingError,
    ShapeMismatch,
    UnknownActivationType,
    UnknownOptimizerType,
    create_loss,
)

PLAIN_SGD = {"type": "sgd", "learn_rate": 0.1, "momentum": 0.0}


@pytest.fixture
def known_layer():
    """3 -> 2 identity layer with hand-picked parameters."""
    W = np.array([[1.0, 0.0, -1.0], [0.5, 1.0, 0.0]])
    b = np.array([0.1, -0.2])
    return Layer(3, 2, activation="linear", optimizer=PLAIN_SGD, W=W, b=b)


@pytest.fixture
def X():
    return np.array(
        [
            [1.0, 2.0, 0.0, 1.0],
            [0.0, 1.0, 1.0, 2.0],
            [1.0, 0.0, 2.0, 1.0],
        ]
    )


@pytest.fixture
def E():
    return np.array([[1.0, 0.0, -1.0, 2.0], [0.0, 1.0, 1.0, -2.0]])


class TestForward:
    @pytest.mark.parametrize("nodes_in, nodes_out, batch", [(1, 1, 1), (3, 2, 4), (5, 7, 3), (4, 1, 10)])
    @pytest.mark.parametrize("activation", ["tanh", "sigmoid", "relu", "softmax"])
    def test_output_shape(self, nodes_in, nodes_out, batch, activation, rng):
        layer = Layer(nodes_in, nodes_out, activation=activation, seed=0)
        out = layer.forward(rng.normal(size=(nodes_in, batch)))
        assert out.shape == (nodes_out, batch)

    def test_known_output(self, known_layer, X):
        out = known_layer.forward(X)
        np.testing.assert_allclose(
            out,
            [
                [0.1, 2.1, -1.9, 0.1],
                [0.3, 1.8, 0.8, 2.3],
            ],
        )

    def test_caches_input_and_pre_activation(self, known_layer, X):
        out = known_layer.forward(X)
        assert known_layer.A_prev is X
        np.testing.assert_array_equal(known_layer.Z, out)
        assert known_layer.state is LayerState.READY_FOR_BACKWARD

    def test_bias_broadcast_over_batch(self):
        layer = Layer(2, 3, activation="linear", W=np.zeros((3, 2)), b=[1.0, 2.0, 3.0])
        out = layer.forward(np.ones((2, 5)))
        np.testing.assert_array_equal(out, np.repeat([[1.0], [2.0], [3.0]], 5, axis=1))

    def test_wrong_input_rows(self, known_layer):
        with pytest.raises(ShapeMismatch):
            known_layer.forward(np.zeros((2, 4)))

    def test_empty_batch_rejected(self, known_layer):
        W_before, b_before = known_layer.get_weights()
        with pytest.raises(ShapeMismatch):
            known_layer.forward(np.zeros((3, 0)))
        with pytest.raises(ShapeMismatch):
            known_layer.predict(np.zeros((3, 0)))
        assert known_layer.state is LayerState.READY_FOR_FORWARD
        with pytest.raises(OrderingError):
            known_layer.backward(np.zeros((2, 0)))
        np.testing.assert_array_equal(known_layer.W, W_before)
        np.testing.assert_array_equal(known_layer.b, b_before)

    def test_second_forward_overwrites_cache(self, known_layer, X):
        known_layer.forward(X)
        X2 = X[:, :2]
        known_layer.forward(X2)
        assert known_layer.A_prev is X2
        assert known_layer.Z.shape == (2, 2)

    def test_predict_leaves_state_alone(self, known_layer, X):
        out = known_layer.predict(X)
        assert known_layer.state is LayerState.READY_FOR_FORWARD
        assert known_layer.A_prev is None
        np.testing.assert_allclose(out, known_layer.forward(X))


class TestBackward:
    def test_known_update_and_propagated_error(self, known_layer, X, E):
        known_layer.forward(X)
        propagated = known_layer.backward(E)

        np.testing.assert_allclose(
            known_layer.W,
            [
                [0.925, -0.075, -1.025],
                [0.5, 1.05, 0.0],
            ],
        )
        np.testing.assert_allclose(known_layer.b, [0.05, -0.2])
        # Propagated through the weights used in the forward pass
        np.testing.assert_allclose(
            propagated,
            [
                [1.0, 0.5, -0.5, 1.0],
                [0.0, 1.0, 1.0, -2.0],
                [-1.0, 0.0, 1.0, -2.0],
            ],
        )

    def test_post_update_propagation(self, X, E):
        W = np.array([[1.0, 0.0, -1.0], [0.5, 1.0, 0.0]])
        b = np.array([0.1, -0.2])
        layer = Layer(3, 2, activation="linear", optimizer=PLAIN_SGD, W=W, b=b,
                      backprop_weights="post_update")
        layer.forward(X)
        propagated = layer.backward(E)
        np.testing.assert_allclose(
            propagated,
            [
                [0.925, 0.5, -0.425, 0.85],
                [-0.075, 1.05, 1.125, -2.25],
                [-1.025, 0.0, 1.025, -2.05],
            ],
        )
        np.testing.assert_allclose(propagated, layer.W.T @ E)

    def test_propagated_error_is_input_gradient(self, rng, num_grad):
        layer = Layer(4, 3, activation="sigmoid", optimizer={"type": "sgd", "learn_rate": 0.5}, seed=3)
        loss = create_loss("squared")
        X = rng.normal(size=(4, 5))
        y = rng.normal(size=(3, 5))

        def batch_loss(inputs):
            return loss.eval(y, layer.predict(inputs)) * inputs.shape[1]

        numeric = num_grad(batch_loss, X)
        propagated = layer.backward(loss.grad(y, layer.forward(X)))
        np.testing.assert_allclose(propagated, numeric, rtol=1e-5, atol=1e-7)

    def test_activation_derivative_applied(self, X, E):
        W = np.array([[1.0, 0.0, -1.0], [0.5, 1.0, 0.0]])
        layer = Layer(3, 2, activation="tanh", optimizer=PLAIN_SGD, W=W)
        Z = W @ X
        layer.forward(X)
        propagated = layer.backward(E)
        D = E * (1 - np.tanh(Z) ** 2)
        np.testing.assert_allclose(propagated, W.T @ D)
        np.testing.assert_allclose(layer.W, W - 0.1 * D @ X.T / 4)

    def test_backward_before_forward(self, known_layer, E):
        with pytest.raises(OrderingError):
            known_layer.backward(E)

    def test_two_backwards_in_a_row(self, known_layer, X, E):
        known_layer.forward(X)
        known_layer.backward(E)
        assert known_layer.state is LayerState.READY_FOR_FORWARD
        assert known_layer.A_prev is None and known_layer.Z is None
        with pytest.raises(OrderingError):
            known_layer.backward(E)

    def test_ordering_error_is_runtime_error(self, known_layer, E):
        with pytest.raises(RuntimeError):
            known_layer.backward(E)

    def test_error_shape_must_match_output(self, known_layer, X):
        known_layer.forward(X)
        with pytest.raises(ShapeMismatch):
            known_layer.backward(np.zeros((4, 2)))
        # Still waiting for a valid backward
        assert known_layer.state is LayerState.READY_FOR_BACKWARD

    def test_does_not_mutate_arguments(self, known_layer, X, E):
        X_copy, E_copy = X.copy(), E.copy()
        known_layer.forward(X)
        known_layer.backward(E)
        np.testing.assert_array_equal(X, X_copy)
        np.testing.assert_array_equal(E, E_copy)


class TestConstruction:
    @pytest.mark.parametrize("nodes_in, nodes_out", [(0, 2), (3, 0), (-1, 2), (2.0, 3), (True, 2)])
    def test_invalid_sizes(self, nodes_in, nodes_out):
        with pytest.raises(ConfigurationError):
            Layer(nodes_in, nodes_out)

    def test_injected_weights_wrong_shape(self):
        with pytest.raises(ShapeMismatch):
            Layer(3, 2, W=np.zeros((3, 2)))
        with pytest.raises(ShapeMismatch):
            Layer(3, 2, b=np.zeros(3))

    def test_injected_weights_are_copied(self):
        W = np.ones((2, 3))
        layer = Layer(3, 2, W=W)
        layer.W[0, 0] = 5.0
        assert W[0, 0] == 1.0

    def test_default_initialization(self):
        layer = Layer(400, 50, seed=7)
        np.testing.assert_array_equal(layer.b, np.zeros(50))
        # N(0, 1) / sqrt(nodes_in)
        assert layer.W.std() == pytest.approx(1 / np.sqrt(400), rel=0.05)

    def test_seed_reproducible(self):
        np.testing.assert_array_equal(Layer(3, 2, seed=11).W, Layer(3, 2, seed=11).W)

    def test_invalid_backprop_weights(self):
        with pytest.raises(ConfigurationError):
            Layer(3, 2, backprop_weights="latest")

    def test_unknown_strategies(self):
        with pytest.raises(UnknownActivationType):
            Layer(3, 2, activation="swish")
        with pytest.raises(UnknownOptimizerType):
            Layer(3, 2, optimizer="lbfgs")

    def test_from_config(self):
        config = LayerConfig(
            nodes_in=4,
            nodes_out=3,
            activation=ActivationConfig(type="relu"),
            optimizer=OptimizerConfig(type="adam", learn_rate=0.01),
            seed=5,
        )
        layer = Layer.from_config(config)
        assert (layer.nodes_in, layer.nodes_out) == (4, 3)
        assert layer.optimizer.learn_rate == 0.01
        assert layer.n_parameters == 15
        np.testing.assert_array_equal(layer.W, Layer(4, 3, seed=5).W)

    def test_set_weights(self, known_layer, X):
        known_layer.set_weights(np.zeros((2, 3)), np.ones(2))
        np.testing.assert_array_equal(known_layer.forward(X), np.ones((2, 4)))
        with pytest.raises(OrderingError):
            known_layer.set_weights(np.zeros((2, 3)), np.ones(2))

    def test_get_weights_returns_copies(self, known_layer):
        W, b = known_layer.get_weights()
        W[:] = 0
        assert known_layer.W[0, 0] == 1.0


class TestTraining:
    def test_two_layers_learn_xor(self):
        X = np.array([[0.0, 0.0, 1.0, 1.0], [0.0, 1.0, 0.0, 1.0]])
        labels = np.array([0, 1, 1, 0])
        y = np.eye(2)[:, labels]

        hidden = Layer(2, 8, activation="tanh", optimizer={"type": "adam", "learn_rate": 0.05}, seed=0)
        output = Layer(8, 2, activation="softmax", optimizer={"type": "adam", "learn_rate": 0.05}, seed=1)
        loss = create_loss("log")

        first = loss.eval(y, output.predict(hidden.predict(X)))
        for _ in range(500):
            y_fit = output.forward(hidden.forward(X))
            hidden.backward(output.backward(loss.grad(y, y_fit)))

        y_fit = output.predict(hidden.predict(X))
        assert loss.eval(y, y_fit) < first
        np.testing.assert_array_equal(np.argmax(y_fit, axis=0), labels)

    def test_linear_regression_converges(self, rng):
        W_true = np.array([[2.0, -1.0, 0.5]])
        X = rng.normal(size=(3, 64))
        y = W_true @ X + 0.3

        layer = Layer(3, 1, activation="linear", optimizer={"type": "sgd", "learn_rate": 0.05, "momentum": 0.9}, seed=2)
        loss = create_loss({"type": "huber", "d_huber": 1.0})
        for _ in range(400):
            layer.backward(loss.grad(y, layer.forward(X)))

        np.testing.assert_allclose(layer.W, W_true, atol=1e-2)
        np.testing.assert_allclose(layer.b, [0.3], atol=1e-2)
