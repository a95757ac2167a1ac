"""Feed-forward neural network layer library.

Numerical building blocks for training feed-forward networks with explicit
gradients. Matrices follow a column-per-sample convention: rows are units
or features, columns are samples of a batch.

Architecture:
    - Layer: owns W (nodes_out x nodes_in) and b, computes forward output
      and backward error, hands parameter updates to its Optimizer
    - Loss: scores fitted values against targets and returns the error
      signal for the last layer
    - Activation / Optimizer: swappable strategies selected by name

Example:
    import numpy as np
    from feedforward_nn import Layer, create_loss

    layer = Layer(3, 2, activation="tanh", optimizer={"type": "adam", "learn_rate": 1e-2})
    loss = create_loss({"type": "huber", "d_huber": 1.0})

    X = np.random.randn(3, 16)
    y = np.random.randn(2, 16)
    y_fit = layer.forward(X)
    value, E = loss(y, y_fit)
    layer.backward(E)
"""

__version__ = "0.1.0"

from .errors import (
    FeedforwardError,
    ConfigurationError,
    UnknownLossType,
    UnknownActivationType,
    UnknownOptimizerType,
    ShapeMismatch,
    OrderingError,
)
from .configs.config import (
    LossConfig,
    ActivationConfig,
    OptimizerConfig,
    LayerConfig,
    load_config,
    save_config,
    LOG_LOSS,
    SQUARED_LOSS,
    ABSOLUTE_LOSS,
    HUBER_LOSS,
    PSEUDO_HUBER_LOSS,
    SGD_DEFAULT,
    SGD_NO_MOMENTUM,
    RMSPROP_DEFAULT,
    ADAM_DEFAULT,
    SOFTMAX_OUTPUT,
)
from .core.layers import Layer, LayerState
from .core.losses import (
    Loss,
    LogLoss,
    SquaredLoss,
    AbsoluteLoss,
    HuberLoss,
    PseudoHuberLoss,
    LossFactory,
    create_loss,
)
from .core.activations import Activation, ActivationFactory, create_activation
from .utils.optimizers import (
    Optimizer,
    SGD,
    RMSprop,
    Adam,
    OptimizerFactory,
    create_optimizer,
)
from .utils.log import configure_logging

# Visualization imports (optional dependency)
try:
    from .visualization import (
        plot_loss_history,
        plot_loss_profiles,
        plot_activation_profiles,
    )
    _HAS_VISUALIZATION = True
except ImportError:
    _HAS_VISUALIZATION = False

__all__ = [
    # Errors
    "FeedforwardError",
    "ConfigurationError",
    "UnknownLossType",
    "UnknownActivationType",
    "UnknownOptimizerType",
    "ShapeMismatch",
    "OrderingError",
    # Configuration
    "LossConfig",
    "ActivationConfig",
    "OptimizerConfig",
    "LayerConfig",
    "load_config",
    "save_config",
    "LOG_LOSS",
    "SQUARED_LOSS",
    "ABSOLUTE_LOSS",
    "HUBER_LOSS",
    "PSEUDO_HUBER_LOSS",
    "SGD_DEFAULT",
    "SGD_NO_MOMENTUM",
    "RMSPROP_DEFAULT",
    "ADAM_DEFAULT",
    "SOFTMAX_OUTPUT",
    # Layer
    "Layer",
    "LayerState",
    # Losses
    "Loss",
    "LogLoss",
    "SquaredLoss",
    "AbsoluteLoss",
    "HuberLoss",
    "PseudoHuberLoss",
    "LossFactory",
    "create_loss",
    # Activations
    "Activation",
    "ActivationFactory",
    "create_activation",
    # Optimizers
    "Optimizer",
    "SGD",
    "RMSprop",
    "Adam",
    "OptimizerFactory",
    "create_optimizer",
    # Logging
    "configure_logging",
    # Visualization (optional)
    "plot_loss_history",
    "plot_loss_profiles",
    "plot_activation_profiles",
]
