"""Utility modules: optimizers and shape validation."""

from .optimizers import (
    Optimizer,
    SGD,
    RMSprop,
    Adam,
    OptimizerFactory,
    create_optimizer,
)
from .log import configure_logging

__all__ = [
    "Optimizer",
    "SGD",
    "RMSprop",
    "Adam",
    "OptimizerFactory",
    "create_optimizer",
    "configure_logging",
]
