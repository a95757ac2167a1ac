"""Core neural network components: layer, losses and activations."""

from .layers import Layer, LayerState
from .losses import (
    Loss,
    LogLoss,
    SquaredLoss,
    AbsoluteLoss,
    HuberLoss,
    PseudoHuberLoss,
    LossFactory,
    create_loss,
)
from .activations import (
    Activation,
    TanhActivation,
    SigmoidActivation,
    ReluActivation,
    LinearActivation,
    RampActivation,
    StepActivation,
    SoftmaxActivation,
    ActivationFactory,
    create_activation,
)

__all__ = [
    "Layer",
    "LayerState",
    "Loss",
    "LogLoss",
    "SquaredLoss",
    "AbsoluteLoss",
    "HuberLoss",
    "PseudoHuberLoss",
    "LossFactory",
    "create_loss",
    "Activation",
    "TanhActivation",
    "SigmoidActivation",
    "ReluActivation",
    "LinearActivation",
    "RampActivation",
    "StepActivation",
    "SoftmaxActivation",
    "ActivationFactory",
    "create_activation",
]
