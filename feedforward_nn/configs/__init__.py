"""Configuration management for layers and their strategies."""

from .config import (
    LossConfig,
    ActivationConfig,
    OptimizerConfig,
    LayerConfig,
    as_param_dict,
    load_config,
    save_config,
)

__all__ = [
    "LossConfig",
    "ActivationConfig",
    "OptimizerConfig",
    "LayerConfig",
    "as_param_dict",
    "load_config",
    "save_config",
]
