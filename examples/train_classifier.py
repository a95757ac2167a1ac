#!/usr/bin/env python3
"""Example script training a small two-layer classifier on two moons.

The script is its own training driver: it forms mini-batches, pushes them
forward through both layers, scores them with the chosen loss and pushes the
loss gradient back through the layers in reverse order.

Usage:
    # Train with default settings
    python train_classifier.py

    # Train with RMSprop and a wider hidden layer
    python train_classifier.py --optimizer rmsprop --hidden 16

    # Propagate errors through the updated weights instead
    python train_classifier.py --backprop-weights post_update

    # Save the loss curve
    python train_classifier.py --plot loss.png
"""

import argparse
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import numpy as np
from feedforward_nn import (
    ActivationConfig,
    Layer,
    LayerConfig,
    OptimizerConfig,
    configure_logging,
    create_loss,
    save_config,
)


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Train a two-layer classifier on two moons",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--samples", type=int, default=400, help="Number of samples")
    parser.add_argument("--hidden", type=int, default=8, help="Hidden units")
    parser.add_argument("--activation", type=str, default="tanh", help="Hidden activation")
    parser.add_argument(
        "--optimizer",
        type=str,
        default="adam",
        choices=["sgd", "rmsprop", "adam"],
        help="Optimizer type",
    )
    parser.add_argument("--lr", type=float, default=0.01, help="Learning rate")
    parser.add_argument("--epochs", type=int, default=200, help="Training epochs")
    parser.add_argument("--batch-size", type=int, default=32, help="Mini-batch size")
    parser.add_argument(
        "--backprop-weights",
        type=str,
        default="pre_update",
        choices=["pre_update", "post_update"],
        help="Weights used to propagate the error to the previous layer",
    )
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    parser.add_argument("--plot", type=str, default=None, help="Save loss curve to this path")
    parser.add_argument("--save-config", type=str, default=None, help="Save layer configs to this directory")
    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")
    parser.add_argument("--debug", action="store_true", help="Log layer and optimizer events")
    args = parser.parse_args(argv)
    if args.samples < 2:
        parser.error("--samples must be at least 2")
    if args.batch_size < 1:
        parser.error("--batch-size must be positive")
    return args


def make_moons(n: int, rng: np.random.Generator, noise: float = 0.1):
    """Two interleaving half circles, one column per sample."""
    n_upper = n // 2
    t_upper = rng.uniform(0, np.pi, n_upper)
    t_lower = rng.uniform(0, np.pi, n - n_upper)
    upper = np.stack([np.cos(t_upper), np.sin(t_upper)])
    lower = np.stack([1 - np.cos(t_lower), 0.5 - np.sin(t_lower)])
    X = np.concatenate([upper, lower], axis=1) + noise * rng.normal(size=(2, n))
    labels = np.concatenate([np.zeros(n_upper, dtype=int), np.ones(n - n_upper, dtype=int)])
    return X, labels


def main(argv=None):
    args = parse_args(argv)
    verbose = not args.quiet
    configure_logging("DEBUG" if args.debug else "WARNING")
    rng = np.random.default_rng(args.seed)

    X, labels = make_moons(args.samples, rng)
    # Standardize features, one-hot encode classes
    X = (X - X.mean(axis=1, keepdims=True)) / X.std(axis=1, keepdims=True)
    y = np.eye(2)[:, labels]

    optimizer = OptimizerConfig(type=args.optimizer, learn_rate=args.lr)
    hidden_config = LayerConfig(
        nodes_in=2,
        nodes_out=args.hidden,
        activation=ActivationConfig(type=args.activation),
        optimizer=optimizer,
        backprop_weights=args.backprop_weights,
        seed=args.seed,
    )
    output_config = LayerConfig(
        nodes_in=args.hidden,
        nodes_out=2,
        activation=ActivationConfig(type="softmax"),
        optimizer=optimizer,
        backprop_weights=args.backprop_weights,
        seed=args.seed + 1,
    )

    if args.save_config:
        save_dir = Path(args.save_config)
        save_config(hidden_config, save_dir / "hidden.json")
        save_config(output_config, save_dir / "output.json")

    layers = [Layer.from_config(hidden_config), Layer.from_config(output_config)]
    loss = create_loss("log")

    train_losses = []
    n = X.shape[1]
    batch_size = min(args.batch_size, n)
    for epoch in range(args.epochs):
        order = rng.permutation(n)
        for start in range(0, n - batch_size + 1, batch_size):
            idx = order[start:start + batch_size]
            A = X[:, idx]
            for layer in layers:
                A = layer.forward(A)
            value, E = loss(y[:, idx], A)
            for layer in reversed(layers):
                E = layer.backward(E)
            train_losses.append(value)

        if verbose and epoch % 20 == 0:
            print(f"Epoch {epoch}: loss={np.mean(train_losses[-10:]):.4f}")

    A = X
    for layer in layers:
        A = layer.predict(A)
    accuracy = np.mean(np.argmax(A, axis=0) == labels)

    if verbose:
        print("\nTraining complete")
        print(f"Final loss: {loss.eval(y, A):.4f}")
        print(f"Accuracy: {accuracy:.3f}")

    if args.plot:
        from feedforward_nn.visualization import plot_loss_history

        plot_loss_history(
            train_losses,
            steps_per_epoch=n // batch_size,
            save_path=args.plot,
            show=False,
        )

    return train_losses


if __name__ == "__main__":
    main()
