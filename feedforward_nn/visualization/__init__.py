"""Visualization tools for losses, activations and training history."""

from .plots import plot_loss_history, plot_loss_profiles, plot_activation_profiles

__all__ = [
    "plot_loss_history",
    "plot_loss_profiles",
    "plot_activation_profiles",
]
