"""Fully connected layer with explicit forward/backward computation.

A layer owns a weight matrix W of shape (nodes_out, nodes_in) and a bias
vector b of shape (nodes_out,). Inputs are column-per-sample matrices of
shape (nodes_in, batch). The nonlinearity is delegated to an Activation and
parameter updates to an Optimizer, both created from configs and owned by
the layer for its whole life.

forward and backward strictly alternate: forward caches its input and
pre-activation, backward consumes that cache exactly once.
"""

from enum import Enum
from typing import Optional, Tuple
import numpy as np
import structlog

from ..configs.config import ConfigLike, LayerConfig
from ..errors import ConfigurationError, OrderingError
from ..utils.optimizers import Optimizer, OptimizerFactory
from ..utils.validation import as_matrix, as_vector, check_batch, check_shape, positive_int
from .activations import Activation, ActivationFactory

logger = structlog.get_logger(__name__)

BACKPROP_WEIGHTS = ("pre_update", "post_update")


class LayerState(Enum):
    """Position of a layer in the forward/backward cycle."""

    READY_FOR_FORWARD = "ready_for_forward"
    READY_FOR_BACKWARD = "ready_for_backward"


class Layer:
    """Dense layer: A = g(W @ X + b).

    Attributes:
        nodes_in: Number of input units.
        nodes_out: Number of output units.
        W: Weight matrix of shape (nodes_out, nodes_in).
        b: Bias vector of shape (nodes_out,).
        A_prev: Input of the pending forward pass, or None.
        Z: Pre-activation of the pending forward pass, or None.
        backprop_weights: 'pre_update' propagates the error through the
            weights used in the forward pass (standard backpropagation).
            'post_update' propagates through the freshly updated weights.
    """

    def __init__(
        self,
        nodes_in: int,
        nodes_out: int,
        activation: ConfigLike = "tanh",
        optimizer: ConfigLike = "sgd",
        W: Optional[np.ndarray] = None,
        b: Optional[np.ndarray] = None,
        seed: Optional[int] = None,
        backprop_weights: str = "pre_update",
    ):
        """Initialize the layer.

        Args:
            nodes_in: Number of input units, positive.
            nodes_out: Number of output units, positive.
            activation: Activation config (type name, mapping or ActivationConfig).
            optimizer: Optimizer config (type name, mapping or OptimizerConfig).
            W: Optional initial weights. If None, drawn from
                N(0, 1) / sqrt(nodes_in).
            b: Optional initial biases. If None, zeros.
            seed: Seed for the weight initialization.
            backprop_weights: 'pre_update' or 'post_update'.
        """
        self.nodes_in = positive_int(nodes_in, "nodes_in")
        self.nodes_out = positive_int(nodes_out, "nodes_out")
        if backprop_weights not in BACKPROP_WEIGHTS:
            raise ConfigurationError(
                f"backprop_weights must be one of {BACKPROP_WEIGHTS}, got {backprop_weights!r}"
            )
        self.backprop_weights = backprop_weights

        if W is None:
            rng = np.random.default_rng(seed)
            W = rng.standard_normal((self.nodes_out, self.nodes_in)) / np.sqrt(self.nodes_in)
        if b is None:
            b = np.zeros(self.nodes_out)
        self.W, self.b = self._checked_params(W, b)

        self.activation: Activation = ActivationFactory.create_activation(activation)
        self.optimizer: Optimizer = OptimizerFactory(self.W, self.b, optimizer).create_optimizer()

        # Forward cache
        self.A_prev: Optional[np.ndarray] = None
        self.Z: Optional[np.ndarray] = None
        self._state = LayerState.READY_FOR_FORWARD

        logger.debug(
            "layer_created",
            nodes_in=self.nodes_in,
            nodes_out=self.nodes_out,
            activation=repr(self.activation),
            optimizer=repr(self.optimizer),
            backprop_weights=self.backprop_weights,
        )

    @classmethod
    def from_config(cls, config: LayerConfig) -> "Layer":
        """Build a layer from a LayerConfig."""
        return cls(
            config.nodes_in,
            config.nodes_out,
            activation=config.activation,
            optimizer=config.optimizer,
            seed=config.seed,
            backprop_weights=config.backprop_weights,
        )

    @property
    def state(self) -> LayerState:
        return self._state

    @property
    def n_parameters(self) -> int:
        return self.W.size + self.b.size

    def _checked_params(self, W, b) -> Tuple[np.ndarray, np.ndarray]:
        W = as_matrix(W, "W").copy()
        b = as_vector(b, "b").copy()
        check_shape(W, (self.nodes_out, self.nodes_in), "W")
        check_shape(b, (self.nodes_out,), "b")
        return W, b

    def _pre_activation(self, X: np.ndarray) -> np.ndarray:
        return self.W @ X + self.b[:, None]

    def forward(self, X: np.ndarray) -> np.ndarray:
        """Forward pass through the layer.

        Args:
            X: Input of shape (nodes_in, batch). Kept by reference as A_prev.

        Returns:
            Activated output of shape (nodes_out, batch).
        """
        X = as_matrix(X, "X")
        check_shape(X, (self.nodes_in, X.shape[1]), "X")
        check_batch(X, "X")

        if self._state is LayerState.READY_FOR_BACKWARD:
            logger.debug("forward_cache_overwritten", batch=self.A_prev.shape[1])

        self.A_prev = X
        self.Z = self._pre_activation(X)
        self._state = LayerState.READY_FOR_BACKWARD
        return self.activation.eval(self.Z)

    def backward(self, E: np.ndarray) -> np.ndarray:
        """Backward pass: update parameters and propagate the error.

        Args:
            E: Gradient of the loss w.r.t. this layer's output, same shape as
                the output of the preceding forward call.

        Returns:
            Gradient w.r.t. this layer's input, shape (nodes_in, batch).

        Raises:
            OrderingError: If no forward pass is pending.
            ShapeMismatch: If E does not match the forward output shape.
        """
        if self._state is not LayerState.READY_FOR_BACKWARD:
            raise OrderingError("backward called without a preceding forward")

        E = as_matrix(E, "E")
        check_shape(E, self.Z.shape, "E")

        D = E * self.activation.grad(self.Z)

        W_forward = self.W
        self.W = self.optimizer.update_W(self.W, D, self.A_prev)
        self.b = self.optimizer.update_b(self.b, D)

        W_prop = W_forward if self.backprop_weights == "pre_update" else self.W

        # Release the cache; the next backward needs a new forward
        self.A_prev = None
        self.Z = None
        self._state = LayerState.READY_FOR_FORWARD

        return W_prop.T @ D

    def predict(self, X: np.ndarray) -> np.ndarray:
        """Forward pass without touching the cache or the layer state."""
        X = as_matrix(X, "X")
        check_shape(X, (self.nodes_in, X.shape[1]), "X")
        check_batch(X, "X")
        return self.activation.eval(self._pre_activation(X))

    def get_weights(self) -> Tuple[np.ndarray, np.ndarray]:
        """Return copies of (W, b)."""
        return self.W.copy(), self.b.copy()

    def set_weights(self, W: np.ndarray, b: np.ndarray) -> None:
        """Directly set weights and biases.

        Only allowed between passes; the optimizer state is kept.
        """
        if self._state is LayerState.READY_FOR_BACKWARD:
            raise OrderingError("cannot replace parameters while a backward pass is pending")
        self.W, self.b = self._checked_params(W, b)

    def __repr__(self) -> str:
        return (
            f"Layer(nodes_in={self.nodes_in}, nodes_out={self.nodes_out}, "
            f"activation={self.activation!r}, optimizer={self.optimizer!r})"
        )
