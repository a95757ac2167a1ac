import numpy as np
import pytest

from feedforward_nn import (
    ActivationConfig,
    ConfigurationError,
    UnknownActivationType,
    create_activation,
)
from feedforward_nn.core.activations import (
    ActivationFactory,
    LinearActivation,
    RampActivation,
    SigmoidActivation,
    SoftmaxActivation,
    StepActivation,
    TanhActivation,
)


@pytest.fixture
def Z(rng):
    # Keep away from the kinks of relu and ramp at 0 and 1
    z = rng.uniform(-2, 2, size=(3, 4))
    z[np.abs(z) < 0.05] += 0.1
    z[np.abs(z - 1) < 0.05] += 0.1
    return z


@pytest.mark.parametrize(
    "config",
    [
        "tanh",
        "sigmoid",
        "relu",
        "linear",
        "ramp",
        {"type": "step", "step_H": 3, "step_k": 2.0},
    ],
)
def test_grad_matches_finite_differences(config, Z):
    activation = create_activation(config)
    h = 1e-6
    numeric = (activation.eval(Z + h) - activation.eval(Z - h)) / (2 * h)
    np.testing.assert_allclose(activation.grad(Z), numeric, rtol=1e-5, atol=1e-7)


@pytest.mark.parametrize("name", ["tanh", "sigmoid", "relu", "linear", "ramp", "step", "softmax"])
def test_shape_preserving(name, Z):
    activation = create_activation(name)
    assert activation.eval(Z).shape == Z.shape
    assert activation.grad(Z).shape == Z.shape


def test_linear_is_identity(Z):
    np.testing.assert_array_equal(LinearActivation().eval(Z), Z)
    np.testing.assert_array_equal(LinearActivation().grad(Z), np.ones_like(Z))


def test_tanh():
    np.testing.assert_allclose(TanhActivation().eval(np.array([[0.0, 1.0]])), [[0.0, np.tanh(1.0)]])


def test_sigmoid_is_stable_for_large_inputs():
    with np.errstate(over="raise"):
        out = SigmoidActivation().eval(np.array([[-1000.0, 0.0, 1000.0]]))
    np.testing.assert_allclose(out, [[0.0, 0.5, 1.0]])


def test_ramp_saturates():
    out = RampActivation().eval(np.array([[-1.0, 0.25, 3.0]]))
    np.testing.assert_array_equal(out, [[0.0, 0.25, 1.0]])


def test_step_levels():
    step = StepActivation(step_H=4, step_k=1000.0)
    z = np.array([[-2.0, -0.6, -0.1, 0.1, 0.6, 2.0]])
    # Between step centers the output sits on one of H + 1 levels in [-1, 1]
    np.testing.assert_allclose(step.eval(z), [[-1.0, -0.5, 0.0, 0.0, 0.5, 1.0]], atol=1e-6)


@pytest.mark.parametrize("params", [{"step_H": 0}, {"step_k": -1.0}, {"step_H": 2.5}])
def test_step_invalid_parameters(params):
    with pytest.raises(ConfigurationError):
        create_activation({"type": "step", **params})


def test_softmax_columns_sum_to_one(Z):
    out = SoftmaxActivation().eval(Z)
    np.testing.assert_allclose(out.sum(axis=0), np.ones(Z.shape[1]))
    assert np.all(out > 0)


def test_softmax_is_stable_for_large_inputs():
    with np.errstate(over="raise"):
        out = SoftmaxActivation().eval(np.array([[1000.0], [1000.0]]))
    np.testing.assert_allclose(out, [[0.5], [0.5]])


def test_softmax_grad_is_ones(Z):
    np.testing.assert_array_equal(SoftmaxActivation().grad(Z), np.ones_like(Z))


def test_factory_accepts_dataclass():
    step = create_activation(ActivationConfig(type="step", step_H=7, step_k=10.0))
    assert isinstance(step, StepActivation)
    assert step.step_H == 7


def test_unknown_activation():
    with pytest.raises(UnknownActivationType):
        create_activation("swish")


def test_available():
    assert set(ActivationFactory.available()) == {
        "tanh", "sigmoid", "relu", "linear", "ramp", "step", "softmax",
    }
