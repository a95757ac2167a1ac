"""Plots for loss functions, activations and training loss history."""

from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union
import numpy as np

try:
    import matplotlib.pyplot as plt
    HAS_MATPLOTLIB = True
except ImportError:
    HAS_MATPLOTLIB = False

from ..core.activations import Activation
from ..core.losses import Loss


def _check_matplotlib():
    if not HAS_MATPLOTLIB:
        raise ImportError(
            "matplotlib is required for plotting. "
            "Install with: pip install matplotlib"
        )


def _finish(fig, save_path: Optional[Union[str, Path]], show: bool):
    plt.tight_layout()

    if save_path:
        Path(save_path).parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(save_path, dpi=150, bbox_inches="tight")

    if show:
        plt.show()
    else:
        plt.close(fig)

    return fig


def plot_loss_history(
    train_losses: Sequence[float],
    val_losses: Optional[Sequence[float]] = None,
    steps_per_epoch: int = 1,
    save_path: Optional[Union[str, Path]] = None,
    show: bool = True,
    figsize: tuple = (8, 4),
    title: str = "Loss Over Training",
) -> "plt.Figure":
    """Plot training (and optionally validation) loss recorded by a driver.

    Args:
        train_losses: Loss per recorded step.
        val_losses: Validation loss per recorded step, same length.
        steps_per_epoch: Recorded steps per epoch, used to put the x axis
            in epochs.
        save_path: Path to save the figure. If None, figure is not saved.
        show: Whether to display the figure.
        figsize: Figure size as (width, height).
        title: Plot title.

    Returns:
        The matplotlib Figure object.
    """
    _check_matplotlib()

    x = np.arange(len(train_losses)) / max(1, steps_per_epoch)

    fig, ax = plt.subplots(figsize=figsize)
    ax.plot(x, train_losses, linewidth=1.5, color="#2E86AB", label="Training")
    if val_losses is not None:
        if len(val_losses) != len(train_losses):
            raise ValueError("val_losses must have the same length as train_losses")
        ax.plot(x, val_losses, linewidth=1.5, color="#E94F37", label="Validation")

    # Add rolling average
    if len(train_losses) > 10:
        window = min(10, len(train_losses) // 5)
        rolling_avg = np.convolve(train_losses, np.ones(window) / window, mode="valid")
        offset = window // 2
        ax.plot(
            x[offset:offset + len(rolling_avg)],
            rolling_avg,
            linewidth=2,
            color="#1B1B3A",
            label=f"{window}-step moving average",
            alpha=0.6,
        )

    ax.set_xlabel("Epoch")
    ax.set_ylabel("Loss")
    ax.set_title(title)
    ax.legend()
    ax.grid(True, alpha=0.3)

    return _finish(fig, save_path, show)


def plot_loss_profiles(
    losses: Union[Dict[str, Loss], List[Loss]],
    residuals: Optional[np.ndarray] = None,
    save_path: Optional[Union[str, Path]] = None,
    show: bool = True,
    figsize: tuple = (10, 4),
) -> "plt.Figure":
    """Plot each loss and its gradient against the residual y_fit - y.

    Every residual is scored as a single sample with a zero target.

    Args:
        losses: Losses to compare, as a name -> loss dict or a list.
        residuals: Residual values for the x axis. Defaults to [-3, 3].
        save_path: Path to save the figure. If None, figure is not saved.
        show: Whether to display the figure.
        figsize: Figure size as (width, height).

    Returns:
        The matplotlib Figure object.
    """
    _check_matplotlib()

    if residuals is None:
        residuals = np.linspace(-3, 3, 301)
    residuals = np.asarray(residuals, dtype=np.float64)
    if not isinstance(losses, dict):
        losses = {repr(loss): loss for loss in losses}

    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=figsize)
    zero = np.zeros((1, 1))

    for label, loss in losses.items():
        values = [loss.eval(zero, np.full((1, 1), r)) for r in residuals]
        grads = loss.grad(np.zeros((1, residuals.size)), residuals[None, :]).ravel()
        ax1.plot(residuals, values, linewidth=1.5, label=label)
        ax2.plot(residuals, grads, linewidth=1.5, label=label)

    ax1.set_xlabel("y_fit - y")
    ax1.set_ylabel("Loss")
    ax1.set_title("Loss")
    ax1.grid(True, alpha=0.3)
    ax1.legend()

    ax2.set_xlabel("y_fit - y")
    ax2.set_ylabel("dL / dy_fit")
    ax2.set_title("Gradient")
    ax2.grid(True, alpha=0.3)

    return _finish(fig, save_path, show)


def plot_activation_profiles(
    activations: Union[Dict[str, Activation], List[Activation]],
    z: Optional[np.ndarray] = None,
    save_path: Optional[Union[str, Path]] = None,
    show: bool = True,
    figsize: tuple = (10, 4),
) -> "plt.Figure":
    """Plot activations and their derivatives over a range of pre-activations."""
    _check_matplotlib()

    if z is None:
        z = np.linspace(-3, 3, 601)
    z = np.asarray(z, dtype=np.float64)
    if not isinstance(activations, dict):
        activations = {repr(a): a for a in activations}

    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=figsize)
    for label, activation in activations.items():
        ax1.plot(z, activation.eval(z[None, :]).ravel(), linewidth=1.5, label=label)
        ax2.plot(z, activation.grad(z[None, :]).ravel(), linewidth=1.5, label=label)

    ax1.set_xlabel("z")
    ax1.set_title("Activation")
    ax1.grid(True, alpha=0.3)
    ax1.legend()

    ax2.set_xlabel("z")
    ax2.set_title("Derivative")
    ax2.grid(True, alpha=0.3)

    return _finish(fig, save_path, show)
