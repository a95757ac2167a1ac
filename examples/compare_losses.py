#!/usr/bin/env python3
"""Plot every loss function and activation side by side.

Usage:
    python compare_losses.py --output-dir output
    python compare_losses.py --d-huber 0.5
"""

import argparse
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import numpy as np
from feedforward_nn import create_activation, create_loss
from feedforward_nn.visualization import plot_activation_profiles, plot_loss_profiles


def parse_args():
    parser = argparse.ArgumentParser(
        description="Plot loss and activation profiles",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--output-dir", type=str, default="output", help="Directory for plots")
    parser.add_argument("--d-huber", type=float, default=1.0, help="Huber cut-off")
    parser.add_argument("--show", action="store_true", help="Display the figures")
    return parser.parse_args()


def main():
    args = parse_args()
    output_dir = Path(args.output_dir)

    losses = {
        name: create_loss({"type": name, "d_huber": args.d_huber})
        for name in ["squared", "absolute", "huber", "pseudoHuber"]
    }
    plot_loss_profiles(
        losses,
        residuals=np.linspace(-3, 3, 301),
        save_path=output_dir / "loss_profiles.png",
        show=args.show,
    )

    activations = {
        name: create_activation(name)
        for name in ["tanh", "sigmoid", "relu", "ramp"]
    }
    activations["step"] = create_activation({"type": "step", "step_H": 5, "step_k": 10.0})
    plot_activation_profiles(
        activations,
        z=np.linspace(-2, 2, 801),
        save_path=output_dir / "activation_profiles.png",
        show=args.show,
    )

    print(f"Saved plots to {output_dir}")


if __name__ == "__main__":
    main()
