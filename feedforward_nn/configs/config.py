"""Configuration system for losses, activations, optimizers and layers."""

from dataclasses import dataclass, field, asdict, is_dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Type, Union
import json

from ..errors import ConfigurationError


@dataclass
class LossConfig:
    """Loss function configuration.

    Attributes:
        type: Loss variant ('log', 'squared', 'absolute', 'huber', 'pseudoHuber').
        d_huber: Cut-off between quadratic and linear regime. Only used by
            'huber' and 'pseudoHuber'.
    """
    type: str = "squared"
    d_huber: float = 1.0

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return asdict(self)

    def to_json(self) -> str:
        """Convert config to JSON string."""
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_dict(cls, data: dict) -> "LossConfig":
        """Create config from dictionary. Accepts 'dHuber' for 'd_huber'."""
        data = dict(data)
        if "dHuber" in data:
            data["d_huber"] = data.pop("dHuber")
        return cls(**data)

    @classmethod
    def from_json(cls, json_str: str) -> "LossConfig":
        """Create config from JSON string."""
        return cls.from_dict(json.loads(json_str))


@dataclass
class ActivationConfig:
    """Activation function configuration.

    Attributes:
        type: Activation variant ('tanh', 'sigmoid', 'relu', 'linear',
            'ramp', 'step', 'softmax').
        step_H: Number of steps of the 'step' activation.
        step_k: Smoothness of the 'step' activation. Larger is sharper.
    """
    type: str = "tanh"
    step_H: int = 5
    step_k: float = 100.0

    def to_dict(self) -> dict:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_dict(cls, data: dict) -> "ActivationConfig":
        return cls(**data)

    @classmethod
    def from_json(cls, json_str: str) -> "ActivationConfig":
        return cls.from_dict(json.loads(json_str))


@dataclass
class OptimizerConfig:
    """Optimizer configuration.

    Attributes:
        type: Optimizer variant ('sgd', 'rmsprop', 'adam').
        learn_rate: Step size for parameter updates.
        L1: L1 regularization on the weights.
        L2: L2 regularization on the weights.
        momentum: SGD momentum (0 disables momentum).
        decay: RMSprop decay of the squared gradient average.
        beta1: Adam first moment decay.
        beta2: Adam second moment decay.
        epsilon: Small constant added to adaptive denominators.
    """
    type: str = "sgd"
    learn_rate: float = 1e-4
    L1: float = 0.0
    L2: float = 0.0
    momentum: float = 0.9
    decay: float = 0.9
    beta1: float = 0.9
    beta2: float = 0.999
    epsilon: float = 1e-8

    def to_dict(self) -> dict:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_dict(cls, data: dict) -> "OptimizerConfig":
        return cls(**data)

    @classmethod
    def from_json(cls, json_str: str) -> "OptimizerConfig":
        return cls.from_dict(json.loads(json_str))


@dataclass
class LayerConfig:
    """Complete configuration of a single layer.

    It can be saved to and loaded from JSON for reproducibility.

    Attributes:
        nodes_in: Number of input units.
        nodes_out: Number of output units.
        activation: Activation configuration.
        optimizer: Optimizer configuration.
        backprop_weights: Which weights feed the propagated error:
            'pre_update' or 'post_update'.
        seed: Random seed for weight initialization.
    """
    nodes_in: int = 1
    nodes_out: int = 1
    activation: ActivationConfig = field(default_factory=ActivationConfig)
    optimizer: OptimizerConfig = field(default_factory=OptimizerConfig)
    backprop_weights: str = "pre_update"
    seed: Optional[int] = None

    def to_dict(self) -> dict:
        """Convert config to dictionary (nested configs become dicts)."""
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_dict(cls, data: dict) -> "LayerConfig":
        """Create config from dictionary, rebuilding nested configs."""
        data = dict(data)
        if isinstance(data.get("activation"), Mapping):
            data["activation"] = ActivationConfig.from_dict(data["activation"])
        if isinstance(data.get("optimizer"), Mapping):
            data["optimizer"] = OptimizerConfig.from_dict(data["optimizer"])
        return cls(**data)

    @classmethod
    def from_json(cls, json_str: str) -> "LayerConfig":
        return cls.from_dict(json.loads(json_str))


ConfigLike = Union[str, Mapping[str, Any], LossConfig, ActivationConfig, OptimizerConfig]


def as_param_dict(config: ConfigLike) -> Dict[str, Any]:
    """Normalize a config given as type string, mapping or dataclass.

    Args:
        config: A bare type name, a mapping with a 'type' key, or one of the
            config dataclasses.

    Returns:
        A fresh dictionary that always contains a string 'type' entry.
    """
    if isinstance(config, str):
        params = {"type": config}
    elif is_dataclass(config) and not isinstance(config, type):
        params = asdict(config)
    elif isinstance(config, Mapping):
        params = dict(config)
    else:
        raise ConfigurationError(
            f"Configuration must be a type name, mapping or config object, got {type(config).__name__}"
        )

    if "type" not in params:
        raise ConfigurationError("Configuration is missing the required 'type' field")
    if not isinstance(params["type"], str):
        raise ConfigurationError(f"'type' must be a string, got {params['type']!r}")
    return params


def save_config(config, path: Union[str, Path]) -> None:
    """Save configuration to JSON file.

    Args:
        config: Any config dataclass from this module.
        path: File path for saving.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        f.write(config.to_json())


def load_config(path: Union[str, Path], config_cls: Type = LayerConfig):
    """Load configuration from JSON file.

    Args:
        path: File path to load from.
        config_cls: Config dataclass to build. Defaults to LayerConfig.

    Returns:
        Loaded configuration.
    """
    with open(path, "r") as f:
        return config_cls.from_json(f.read())


# Preset configurations
LOG_LOSS = LossConfig(type="log")
SQUARED_LOSS = LossConfig(type="squared")
ABSOLUTE_LOSS = LossConfig(type="absolute")
HUBER_LOSS = LossConfig(type="huber", d_huber=1.0)
PSEUDO_HUBER_LOSS = LossConfig(type="pseudoHuber", d_huber=1.0)

SGD_DEFAULT = OptimizerConfig(type="sgd")

# Plain gradient descent, handy for deterministic checks
SGD_NO_MOMENTUM = OptimizerConfig(type="sgd", learn_rate=0.01, momentum=0.0)

RMSPROP_DEFAULT = OptimizerConfig(type="rmsprop", learn_rate=1e-3, decay=0.9)

ADAM_DEFAULT = OptimizerConfig(
    type="adam",
    learn_rate=1e-3,
    beta1=0.9,
    beta2=0.999,
)

# Softmax output layer for classification with the log loss
SOFTMAX_OUTPUT = LayerConfig(
    activation=ActivationConfig(type="softmax"),
    optimizer=ADAM_DEFAULT,
)
