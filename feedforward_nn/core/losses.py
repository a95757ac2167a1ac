"""Loss function implementations and the factory that selects them.

All losses follow the column-per-sample convention: ``y`` and ``y_fit`` have
shape (output_dim, batch_size). ``eval`` returns the summed loss divided by
the batch size, ``grad`` returns the per-element gradient with respect to
``y_fit`` and is used directly as the error signal for ``Layer.backward``.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional, Tuple, Type
import sys

import numpy as np
import structlog

from ..configs.config import ConfigLike, as_param_dict
from ..errors import ConfigurationError, UnknownLossType
from ..utils.validation import as_matrix, check_batch, check_same_shape, positive_float

logger = structlog.get_logger(__name__)


class Loss(ABC):
    """Abstract base class for loss functions."""

    name: str = ""

    @abstractmethod
    def eval(self, y: np.ndarray, y_fit: np.ndarray) -> float:
        """Compute the loss value.

        Args:
            y: Target values, shape (output_dim, batch_size).
            y_fit: Fitted values, same shape as y.

        Returns:
            Scalar loss averaged over the batch.
        """
        pass

    @abstractmethod
    def grad(self, y: np.ndarray, y_fit: np.ndarray) -> np.ndarray:
        """Compute gradient of loss w.r.t. the fitted values.

        Args:
            y: Target values, shape (output_dim, batch_size).
            y_fit: Fitted values, same shape as y.

        Returns:
            Gradient array of same shape as y_fit.
        """
        pass

    def __call__(self, y: np.ndarray, y_fit: np.ndarray) -> Tuple[float, np.ndarray]:
        """Compute both loss and gradient.

        Returns:
            Tuple of (loss_value, gradient).
        """
        return self.eval(y, y_fit), self.grad(y, y_fit)

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "Loss":
        """Build the loss from a parameter mapping. Stateless losses ignore it."""
        return cls()

    @staticmethod
    def _prepare(y, y_fit) -> Tuple[np.ndarray, np.ndarray]:
        y = as_matrix(y, "y")
        y_fit = as_matrix(y_fit, "y_fit")
        check_same_shape(y, y_fit)
        check_batch(y, "y")
        return y, y_fit

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class LogLoss(Loss):
    """Log loss on the positive-class entries.

    L = sum(-log(y_fit[y == 1])) / batch_size

    The per-entry terms are clamped into [float_info.min, float_info.max],
    so -log(0) becomes the largest finite double and a perfect fit gives a
    tiny positive floor instead of exactly 0.

    The gradient y_fit - y is the combined gradient of this loss and a
    softmax (or sigmoid) output activation.
    """

    name = "log"

    def eval(self, y: np.ndarray, y_fit: np.ndarray) -> float:
        y, y_fit = self._prepare(y, y_fit)
        with np.errstate(divide="ignore"):
            l = -np.log(y_fit[y == 1])
        l = np.clip(l, sys.float_info.min, sys.float_info.max)
        return float(np.sum(l) / y.shape[1])

    def grad(self, y: np.ndarray, y_fit: np.ndarray) -> np.ndarray:
        y, y_fit = self._prepare(y, y_fit)
        return y_fit - y


class SquaredLoss(Loss):
    """Squared error loss.

    L = sum((y_fit - y)^2) / batch_size
    dL/dy_fit = 2 * (y_fit - y)
    """

    name = "squared"

    def eval(self, y: np.ndarray, y_fit: np.ndarray) -> float:
        y, y_fit = self._prepare(y, y_fit)
        return float(np.sum(np.square(y_fit - y)) / y.shape[1])

    def grad(self, y: np.ndarray, y_fit: np.ndarray) -> np.ndarray:
        y, y_fit = self._prepare(y, y_fit)
        return 2 * (y_fit - y)


class AbsoluteLoss(Loss):
    """Absolute error loss.

    L = sum(|y_fit - y|) / batch_size
    dL/dy_fit = sign(y_fit - y), which is 0 at exact ties.
    """

    name = "absolute"

    def eval(self, y: np.ndarray, y_fit: np.ndarray) -> float:
        y, y_fit = self._prepare(y, y_fit)
        return float(np.sum(np.abs(y_fit - y)) / y.shape[1])

    def grad(self, y: np.ndarray, y_fit: np.ndarray) -> np.ndarray:
        y, y_fit = self._prepare(y, y_fit)
        return np.sign(y_fit - y)


class _DeltaLoss(Loss):
    """Base for losses parametrized by the Huber cut-off ``d_huber``."""

    def __init__(self, d_huber: Optional[float] = None):
        """Initialize the loss.

        Args:
            d_huber: Positive cut-off between the quadratic and linear regime.
        """
        if d_huber is None:
            raise ConfigurationError(f"{self.name} loss requires the 'd_huber' parameter")
        self._d_huber = positive_float(d_huber, "d_huber")

    @property
    def d_huber(self) -> float:
        return self._d_huber

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "Loss":
        d_huber = params.get("d_huber", params.get("dHuber"))
        return cls(d_huber)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(d_huber={self._d_huber!r})"


class HuberLoss(_DeltaLoss):
    """Huber loss: quadratic for small errors, linear for large ones.

    With E = |y_fit - y| and d = d_huber:
        l = E^2 / 2            if E <= d
        l = d * (E - d / 2)    otherwise
    """

    name = "huber"

    def eval(self, y: np.ndarray, y_fit: np.ndarray) -> float:
        y, y_fit = self._prepare(y, y_fit)
        d = self._d_huber
        E = np.abs(y_fit - y)
        l = np.where(E <= d, np.square(E) / 2, d * (E - d / 2))
        return float(np.sum(l) / y.shape[1])

    def grad(self, y: np.ndarray, y_fit: np.ndarray) -> np.ndarray:
        y, y_fit = self._prepare(y, y_fit)
        d = self._d_huber
        E = y_fit - y
        return np.where(np.abs(E) <= d, E, d * np.sign(E))


class PseudoHuberLoss(_DeltaLoss):
    """Smooth approximation of the Huber loss.

    l = sqrt(1 + (E / d)^2) - 1
    grad = E / sqrt(1 + (E / d)^2)

    ``grad`` is d^2 times the derivative of ``l``: it tends to E near zero
    and to d * sign(E) for large residuals, matching the Huber gradient.
    The square root is taken with ``np.hypot`` so huge residuals do not
    overflow.
    """

    name = "pseudoHuber"

    def eval(self, y: np.ndarray, y_fit: np.ndarray) -> float:
        y, y_fit = self._prepare(y, y_fit)
        l = np.hypot(1.0, (y_fit - y) / self._d_huber) - 1
        return float(np.sum(l) / y.shape[1])

    def grad(self, y: np.ndarray, y_fit: np.ndarray) -> np.ndarray:
        y, y_fit = self._prepare(y, y_fit)
        E = y_fit - y
        return E / np.hypot(1.0, E / self._d_huber)


class LossFactory:
    """Selects and constructs a Loss from a named configuration.

    New variants are added with :meth:`register`; nothing else needs to
    change for the factory to hand them out.
    """

    _registry: Dict[str, Type[Loss]] = {
        LogLoss.name: LogLoss,
        SquaredLoss.name: SquaredLoss,
        AbsoluteLoss.name: AbsoluteLoss,
        HuberLoss.name: HuberLoss,
        PseudoHuberLoss.name: PseudoHuberLoss,
    }

    # Alternate spellings
    _aliases: Dict[str, str] = {
        "quadratic": SquaredLoss.name,
        "pseudo-huber": PseudoHuberLoss.name,
    }

    @classmethod
    def create_loss(cls, config: ConfigLike) -> Loss:
        """Create a new loss instance.

        Args:
            config: Type name, mapping or LossConfig. Requires 'type';
                'huber' and 'pseudoHuber' also require 'd_huber' (or 'dHuber').

        Returns:
            A freshly constructed loss owned by the caller.

        Raises:
            UnknownLossType: If 'type' names no registered loss.
            ConfigurationError: If 'type' or a required parameter is missing.
        """
        params = as_param_dict(config)
        loss_type = cls._aliases.get(params["type"], params["type"])
        if loss_type not in cls._registry:
            raise UnknownLossType(
                f"Unknown loss type {params['type']!r}; "
                f"expected one of {sorted(cls._registry)}"
            )
        loss = cls._registry[loss_type].from_params(params)
        logger.debug("loss_created", loss_type=loss_type, loss=repr(loss))
        return loss

    @classmethod
    def register(cls, name: str, loss_cls: Type[Loss]) -> None:
        """Register a new loss variant under ``name``."""
        if not (isinstance(loss_cls, type) and issubclass(loss_cls, Loss)):
            raise ConfigurationError(f"{loss_cls!r} is not a Loss subclass")
        cls._registry[name] = loss_cls

    @classmethod
    def available(cls) -> Tuple[str, ...]:
        """Names of all registered loss types."""
        return tuple(sorted(cls._registry))


def create_loss(config: ConfigLike) -> Loss:
    """Convenience wrapper around :meth:`LossFactory.create_loss`."""
    return LossFactory.create_loss(config)
