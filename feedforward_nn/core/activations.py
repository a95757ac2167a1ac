"""Activation function implementations and their factory.

Every activation maps a pre-activation matrix Z of shape (units, batch) to a
matrix of the same shape. ``grad`` is the elementwise derivative evaluated at
the same Z, which ``Layer.backward`` multiplies into the incoming error.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Tuple, Type
import numpy as np
import structlog

from ..configs.config import ConfigLike, as_param_dict
from ..errors import ConfigurationError, UnknownActivationType
from ..utils.validation import as_matrix, positive_float, positive_int

logger = structlog.get_logger(__name__)


class Activation(ABC):
    """Abstract base class for activation functions."""

    name: str = ""

    @abstractmethod
    def eval(self, Z: np.ndarray) -> np.ndarray:
        """Apply the nonlinearity."""
        pass

    @abstractmethod
    def grad(self, Z: np.ndarray) -> np.ndarray:
        """Derivative of the nonlinearity at Z, same shape as Z."""
        pass

    def __call__(self, Z: np.ndarray) -> np.ndarray:
        """Alias for eval."""
        return self.eval(Z)

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "Activation":
        return cls()

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class TanhActivation(Activation):
    """Applies element-wise tanh: y = tanh(x)."""

    name = "tanh"

    def eval(self, Z: np.ndarray) -> np.ndarray:
        return np.tanh(as_matrix(Z, "Z"))

    def grad(self, Z: np.ndarray) -> np.ndarray:
        """Compute d(tanh(x))/dx = 1 - tanh(x)^2."""
        return 1.0 - np.square(np.tanh(as_matrix(Z, "Z")))


class SigmoidActivation(Activation):
    """Logistic sigmoid, evaluated piecewise so exp never overflows."""

    name = "sigmoid"

    def eval(self, Z: np.ndarray) -> np.ndarray:
        x = as_matrix(Z, "Z")
        out = np.empty_like(x)
        pos = x >= 0
        neg = ~pos
        out[pos] = 1.0 / (1.0 + np.exp(-x[pos]))
        ex = np.exp(x[neg])
        out[neg] = ex / (1.0 + ex)
        return out

    def grad(self, Z: np.ndarray) -> np.ndarray:
        s = self.eval(Z)
        return s * (1.0 - s)


class ReluActivation(Activation):
    name = "relu"

    def eval(self, Z: np.ndarray) -> np.ndarray:
        return np.maximum(as_matrix(Z, "Z"), 0.0)

    def grad(self, Z: np.ndarray) -> np.ndarray:
        # Derivative at exactly 0 taken as 0
        return (as_matrix(Z, "Z") > 0).astype(np.float64)


class LinearActivation(Activation):
    """Identity activation."""

    name = "linear"

    def eval(self, Z: np.ndarray) -> np.ndarray:
        return as_matrix(Z, "Z").copy()

    def grad(self, Z: np.ndarray) -> np.ndarray:
        return np.ones_like(as_matrix(Z, "Z"))


class RampActivation(Activation):
    """Linear on [0, 1], saturating outside it."""

    name = "ramp"

    def eval(self, Z: np.ndarray) -> np.ndarray:
        return np.clip(as_matrix(Z, "Z"), 0.0, 1.0)

    def grad(self, Z: np.ndarray) -> np.ndarray:
        x = as_matrix(Z, "Z")
        return ((x > 0) & (x < 1)).astype(np.float64)


class StepActivation(Activation):
    """Smooth staircase with ``step_H`` steps between -1 and 1.

    f(x) = 1/H * sum_h tanh(k * (x - c_h)),  c_h = -1 + (2h - 1) / H

    Larger ``step_k`` gives sharper steps (and steeper derivatives at the
    step locations).
    """

    name = "step"

    def __init__(self, step_H: int = 5, step_k: float = 100.0):
        """Initialize the step activation.

        Args:
            step_H: Number of steps.
            step_k: Smoothness parameter, larger is less smooth.
        """
        self.step_H = positive_int(step_H, "step_H")
        self.step_k = positive_float(step_k, "step_k")
        h = np.arange(1, self.step_H + 1)
        self._centers = -1.0 + (2 * h - 1) / self.step_H

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "Activation":
        return cls(params.get("step_H", 5), params.get("step_k", 100.0))

    def _shifted(self, Z: np.ndarray) -> np.ndarray:
        # Shape (H, units, batch)
        x = as_matrix(Z, "Z")
        return np.tanh(self.step_k * (x[None, :, :] - self._centers[:, None, None]))

    def eval(self, Z: np.ndarray) -> np.ndarray:
        return self._shifted(Z).mean(axis=0)

    def grad(self, Z: np.ndarray) -> np.ndarray:
        t = self._shifted(Z)
        return self.step_k * (1.0 - np.square(t)).mean(axis=0)

    def __repr__(self) -> str:
        return f"StepActivation(step_H={self.step_H}, step_k={self.step_k})"


class SoftmaxActivation(Activation):
    """Column-wise softmax for classification outputs.

    ``grad`` returns ones: softmax is meant to be paired with the log loss,
    whose gradient y_fit - y already is the derivative of the combined
    softmax/cross-entropy with respect to the pre-activation.
    """

    name = "softmax"

    def eval(self, Z: np.ndarray) -> np.ndarray:
        x = as_matrix(Z, "Z")
        e = np.exp(x - np.max(x, axis=0, keepdims=True))
        return e / np.sum(e, axis=0, keepdims=True)

    def grad(self, Z: np.ndarray) -> np.ndarray:
        return np.ones_like(as_matrix(Z, "Z"))


class ActivationFactory:
    """Selects and constructs an Activation from a named configuration."""

    _registry: Dict[str, Type[Activation]] = {
        cls.name: cls
        for cls in (
            TanhActivation,
            SigmoidActivation,
            ReluActivation,
            LinearActivation,
            RampActivation,
            StepActivation,
            SoftmaxActivation,
        )
    }

    @classmethod
    def create_activation(cls, config: ConfigLike) -> Activation:
        """Create a new activation instance.

        Raises:
            UnknownActivationType: If 'type' names no registered activation.
        """
        params = as_param_dict(config)
        activ_type = params["type"]
        if activ_type not in cls._registry:
            raise UnknownActivationType(
                f"Unknown activation type {activ_type!r}; "
                f"expected one of {sorted(cls._registry)}"
            )
        activation = cls._registry[activ_type].from_params(params)
        logger.debug("activation_created", activation_type=activ_type)
        return activation

    @classmethod
    def register(cls, name: str, activation_cls: Type[Activation]) -> None:
        """Register a new activation variant under ``name``."""
        if not (isinstance(activation_cls, type) and issubclass(activation_cls, Activation)):
            raise ConfigurationError(f"{activation_cls!r} is not an Activation subclass")
        cls._registry[name] = activation_cls

    @classmethod
    def available(cls) -> Tuple[str, ...]:
        return tuple(sorted(cls._registry))


def create_activation(config: ConfigLike) -> Activation:
    """Convenience wrapper around :meth:`ActivationFactory.create_activation`."""
    return ActivationFactory.create_activation(config)
