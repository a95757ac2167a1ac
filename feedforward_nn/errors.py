"""Exception hierarchy for the layer, loss, activation and optimizer modules.

All errors derive from :class:`FeedforwardError`. Configuration and shape
errors also subclass :class:`ValueError`, ordering errors subclass
:class:`RuntimeError`, so callers that only know the builtin types still
catch them.
"""


class FeedforwardError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(FeedforwardError, ValueError):
    """A hyperparameter or named type is missing or invalid at construction."""


class UnknownLossType(ConfigurationError):
    """LossFactory was given an unrecognized ``type``."""


class UnknownActivationType(ConfigurationError):
    """ActivationFactory was given an unrecognized ``type``."""


class UnknownOptimizerType(ConfigurationError):
    """OptimizerFactory was given an unrecognized ``type``."""


class ShapeMismatch(FeedforwardError, ValueError):
    """Matrix dimensions disagree between arguments or with cached state."""


class OrderingError(FeedforwardError, RuntimeError):
    """``Layer.backward`` was called without a matching ``forward``."""
