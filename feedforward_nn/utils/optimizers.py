"""Optimizer implementations for layer parameter updates.

An optimizer is created for one specific layer from that layer's initial
weights and biases, and keeps its internal state (velocity, moment
estimates) for exactly those parameters. ``update_W`` and ``update_b``
receive the layer's error signal D of shape (nodes_out, batch) and return
new parameter arrays; inputs are never modified in place.

Gradients are averaged over the batch:
    dW = D @ A_prev.T / batch + L1 * sign(W) + L2 * W
    db = mean(D, axis=1)
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Tuple, Type
import numpy as np
import structlog

from ..configs.config import ConfigLike, as_param_dict
from ..errors import ConfigurationError, ShapeMismatch, UnknownOptimizerType
from .validation import (
    as_matrix,
    as_vector,
    check_batch,
    check_shape,
    non_negative_float,
    positive_float,
    unit_interval,
)

logger = structlog.get_logger(__name__)


class Optimizer(ABC):
    """Abstract base class for optimizers."""

    name: str = ""

    # Hyperparameters read from a config by from_params, besides the shared ones
    hyperparameters: Tuple[str, ...] = ()

    def __init__(
        self,
        W: np.ndarray,
        b: np.ndarray,
        learn_rate: float = 1e-4,
        L1: float = 0.0,
        L2: float = 0.0,
    ):
        """Initialize optimizer state for one layer.

        Args:
            W: Initial weight matrix, shape (nodes_out, nodes_in).
            b: Initial bias vector, shape (nodes_out,).
            learn_rate: Step size for updates.
            L1: L1 regularization coefficient on the weights.
            L2: L2 regularization coefficient on the weights.
        """
        W = as_matrix(W, "W")
        b = as_vector(b, "b")
        if b.shape[0] != W.shape[0]:
            raise ShapeMismatch(
                f"b has {b.shape[0]} entries but W has {W.shape[0]} rows"
            )
        self.W_shape = W.shape
        self.b_shape = b.shape
        self.learn_rate = positive_float(learn_rate, "learn_rate")
        self.L1 = non_negative_float(L1, "L1")
        self.L2 = non_negative_float(L2, "L2")

    @classmethod
    def from_params(cls, W: np.ndarray, b: np.ndarray, params: Mapping[str, Any]) -> "Optimizer":
        """Build the optimizer, picking the keys it understands from params."""
        keys = ("learn_rate", "L1", "L2") + cls.hyperparameters
        kwargs = {k: params[k] for k in keys if k in params}
        return cls(W, b, **kwargs)

    def weight_gradient(self, W: np.ndarray, D: np.ndarray, A_prev: np.ndarray) -> np.ndarray:
        """Batch-averaged weight gradient including regularization."""
        dW = D @ A_prev.T / D.shape[1]
        if self.L1 > 0:
            dW = dW + self.L1 * np.sign(W)
        if self.L2 > 0:
            dW = dW + self.L2 * W
        return dW

    def update_W(self, W: np.ndarray, D: np.ndarray, A_prev: np.ndarray) -> np.ndarray:
        """Return updated weights.

        Args:
            W: Current weights, shape (nodes_out, nodes_in).
            D: Error signal, shape (nodes_out, batch).
            A_prev: Layer input of the same forward pass, shape (nodes_in, batch).

        Returns:
            New weight matrix.
        """
        W = as_matrix(W, "W")
        D = as_matrix(D, "D")
        A_prev = as_matrix(A_prev, "A_prev")
        check_shape(W, self.W_shape, "W")
        check_batch(D, "D")
        check_shape(D, (self.W_shape[0], D.shape[1]), "D")
        check_shape(A_prev, (self.W_shape[1], D.shape[1]), "A_prev")
        return self._step("W", W, self.weight_gradient(W, D, A_prev))

    def update_b(self, b: np.ndarray, D: np.ndarray) -> np.ndarray:
        """Return updated biases.

        Args:
            b: Current biases, shape (nodes_out,).
            D: Error signal, shape (nodes_out, batch).

        Returns:
            New bias vector.
        """
        b = as_vector(b, "b")
        D = as_matrix(D, "D")
        check_shape(b, self.b_shape, "b")
        check_batch(D, "D")
        check_shape(D, (self.b_shape[0], D.shape[1]), "D")
        return self._step("b", b, D.mean(axis=1))

    @abstractmethod
    def _step(self, slot: str, params: np.ndarray, grads: np.ndarray) -> np.ndarray:
        """Apply the update rule to one parameter array.

        Args:
            slot: 'W' or 'b', selects the state belonging to that parameter.
            params: Current parameter values.
            grads: Gradient of loss w.r.t. parameters.

        Returns:
            Updated parameter values.
        """
        pass

    @abstractmethod
    def reset(self) -> None:
        """Reset optimizer state (e.g., for new training run)."""
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(learn_rate={self.learn_rate!r}, L1={self.L1!r}, L2={self.L2!r})"


class SGD(Optimizer):
    """Stochastic Gradient Descent optimizer with momentum.

    v = momentum * v + grad
    param = param - learn_rate * v
    """

    name = "sgd"
    hyperparameters = ("momentum",)

    def __init__(self, W, b, learn_rate: float = 1e-4, L1: float = 0.0, L2: float = 0.0,
                 momentum: float = 0.9):
        """Initialize SGD optimizer.

        Args:
            momentum: Momentum coefficient in [0, 1) (0 = no momentum).
        """
        super().__init__(W, b, learn_rate, L1, L2)
        self.momentum = unit_interval(momentum, "momentum")
        self.reset()

    def _step(self, slot: str, params: np.ndarray, grads: np.ndarray) -> np.ndarray:
        if self.momentum > 0:
            self._velocity[slot] = self.momentum * self._velocity[slot] + grads
            update = self._velocity[slot]
        else:
            update = grads
        return params - self.learn_rate * update

    def reset(self) -> None:
        """Reset momentum state."""
        self._velocity = {"W": np.zeros(self.W_shape), "b": np.zeros(self.b_shape)}


class RMSprop(Optimizer):
    """RMSprop: scales the step by a running RMS of past gradients.

    s = decay * s + (1 - decay) * grad^2
    param = param - learn_rate * grad / (sqrt(s) + epsilon)
    """

    name = "rmsprop"
    hyperparameters = ("decay", "epsilon")

    def __init__(self, W, b, learn_rate: float = 1e-4, L1: float = 0.0, L2: float = 0.0,
                 decay: float = 0.9, epsilon: float = 1e-8):
        super().__init__(W, b, learn_rate, L1, L2)
        self.decay = unit_interval(decay, "decay")
        self.epsilon = positive_float(epsilon, "epsilon")
        self.reset()

    def _step(self, slot: str, params: np.ndarray, grads: np.ndarray) -> np.ndarray:
        self._sq_avg[slot] = self.decay * self._sq_avg[slot] + (1 - self.decay) * grads ** 2
        return params - self.learn_rate * grads / (np.sqrt(self._sq_avg[slot]) + self.epsilon)

    def reset(self) -> None:
        self._sq_avg = {"W": np.zeros(self.W_shape), "b": np.zeros(self.b_shape)}


class Adam(Optimizer):
    """Adam optimizer (Adaptive Moment Estimation).

    Combines momentum with adaptive learning rates per parameter. Weights
    and biases keep separate moments and step counters.
    """

    name = "adam"
    hyperparameters = ("beta1", "beta2", "epsilon")

    def __init__(self, W, b, learn_rate: float = 1e-4, L1: float = 0.0, L2: float = 0.0,
                 beta1: float = 0.9, beta2: float = 0.999, epsilon: float = 1e-8):
        """Initialize Adam optimizer.

        Args:
            beta1: Exponential decay rate for first moment estimates.
            beta2: Exponential decay rate for second moment estimates.
            epsilon: Small constant for numerical stability.
        """
        super().__init__(W, b, learn_rate, L1, L2)
        self.beta1 = unit_interval(beta1, "beta1")
        self.beta2 = unit_interval(beta2, "beta2")
        self.epsilon = positive_float(epsilon, "epsilon")
        self.reset()

    def _step(self, slot: str, params: np.ndarray, grads: np.ndarray) -> np.ndarray:
        self._t[slot] += 1
        t = self._t[slot]

        # Update biased first and second moment estimates
        self._m[slot] = self.beta1 * self._m[slot] + (1 - self.beta1) * grads
        self._v[slot] = self.beta2 * self._v[slot] + (1 - self.beta2) * (grads ** 2)

        # Compute bias-corrected estimates
        m_hat = self._m[slot] / (1 - self.beta1 ** t)
        v_hat = self._v[slot] / (1 - self.beta2 ** t)

        return params - self.learn_rate * m_hat / (np.sqrt(v_hat) + self.epsilon)

    def reset(self) -> None:
        """Reset optimizer state."""
        self._m = {"W": np.zeros(self.W_shape), "b": np.zeros(self.b_shape)}
        self._v = {"W": np.zeros(self.W_shape), "b": np.zeros(self.b_shape)}
        self._t = {"W": 0, "b": 0}


class OptimizerFactory:
    """Builds the optimizer for one layer from its initial parameters.

    Example:
        optimizer = OptimizerFactory(W, b, {"type": "adam", "learn_rate": 1e-3}).create_optimizer()
    """

    _registry: Dict[str, Type[Optimizer]] = {
        SGD.name: SGD,
        RMSprop.name: RMSprop,
        Adam.name: Adam,
    }

    def __init__(self, W: np.ndarray, b: np.ndarray, config: ConfigLike):
        self.W = W
        self.b = b
        self.optim_param = as_param_dict(config)
        self.type = self.optim_param["type"]

    def create_optimizer(self) -> Optimizer:
        """Create the optimizer.

        Raises:
            UnknownOptimizerType: If 'type' names no registered optimizer.
        """
        if self.type not in self._registry:
            raise UnknownOptimizerType(
                f"Unknown optimizer type {self.type!r}; "
                f"expected one of {sorted(self._registry)}"
            )
        optimizer = self._registry[self.type].from_params(self.W, self.b, self.optim_param)
        logger.debug("optimizer_created", optimizer_type=self.type, optimizer=repr(optimizer))
        return optimizer

    @classmethod
    def register(cls, name: str, optimizer_cls: Type[Optimizer]) -> None:
        if not (isinstance(optimizer_cls, type) and issubclass(optimizer_cls, Optimizer)):
            raise ConfigurationError(f"{optimizer_cls!r} is not an Optimizer subclass")
        cls._registry[name] = optimizer_cls

    @classmethod
    def available(cls) -> Tuple[str, ...]:
        return tuple(sorted(cls._registry))


def create_optimizer(W: np.ndarray, b: np.ndarray, config: ConfigLike) -> Optimizer:
    """Convenience wrapper around :class:`OptimizerFactory`."""
    return OptimizerFactory(W, b, config).create_optimizer()
