"""Command-line interface for PhospheneSim.

Example:
    $ phosphenesim run config.yml --frames 60 --output result.pt
    $ phosphenesim run config.yml --output last_frame.png
    $ phosphenesim validate config.yml
    $ phosphenesim list-components
"""

import argparse
import sys
import traceback
from pathlib import Path
from typing import Any, Dict

import torch

from phosphenesim.config.schema import ConfigurationError, SimulatorConfig
from phosphenesim.config.yaml_utils import load_config_file
from phosphenesim.core.simulator import PhospheneSimulator
from phosphenesim.registry import (
    FILTER_REGISTRY,
    LAYOUT_REGISTRY,
    SPREAD_REGISTRY,
    STIMULUS_REGISTRY,
)


def build_config(args: argparse.Namespace) -> SimulatorConfig:
    """Load the YAML config and apply command-line overrides."""
    config = SimulatorConfig.from_dict(load_config_file(args.config))
    if getattr(args, "frames", None) is not None:
        config.stimulus.frames = args.frames
    if getattr(args, "device", None):
        config.display.device = args.device
    if getattr(args, "backend", None):
        config.display.spread_backend = args.backend
    return config


def save_png(render: torch.Tensor, output_path: Path) -> None:
    """Save the last rendered frame, left and right eye side by side."""
    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    last = render[-1].cpu()
    image = torch.cat([last[0], last[1]], dim=1).clamp(min=0.0)
    peak = image.max().item()
    if peak > 0:
        image = image / peak
    plt.imsave(output_path, image.numpy(), cmap="gray", vmin=0.0, vmax=1.0)


def cmd_run(args: argparse.Namespace) -> int:
    """Run an offline simulation of the configured stimulus.

    Returns:
        Exit code (0 for success, 1 for error).
    """
    try:
        config = build_config(args)
        print(f"Loading simulator from {args.config}...")
        simulator = PhospheneSimulator(config)
        stimulation = simulator.generate_stimulus()

        print(
            f"Simulating {stimulation.shape[0]} frames of '{config.stimulus.type}' "
            f"with {len(simulator.store)} phosphenes..."
        )
        results = simulator.run(stimulation, progress=not args.quiet)

        if args.output:
            output_path = Path(args.output)
            print(f"Saving results to {output_path}...")
            if output_path.suffix.lower() == ".png":
                save_png(results["render"], output_path)
            else:
                torch.save(
                    {
                        "config": config.to_dict(),
                        "results": {k: v.cpu() for k, v in results.items()},
                        "simulator_info": simulator.get_simulator_info(),
                    },
                    output_path,
                )
            print("Results saved successfully")
        else:
            final = results["activation"][-1]
            print("\nSimulation completed successfully!")
            print(f"Mean activation (left, right): {final.mean(dim=0).tolist()}")
            print(f"Active phosphenes (left, right): {(final > 1e-3).sum(dim=0).tolist()}")
        return 0

    except (ConfigurationError, FileNotFoundError, ValueError) as e:
        print(f"Error running simulation: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error running simulation: {e}", file=sys.stderr)
        traceback.print_exc()
        return 1


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate a config by building the simulator without running it."""
    try:
        config = build_config(args)
        print(f"Validating {args.config}...")
        simulator = PhospheneSimulator(config)
        info: Dict[str, Any] = simulator.get_simulator_info()

        print("✓ Configuration is valid!")
        print(f"  Phosphenes: {info['num_phosphenes']}")
        print(f"  Resolution: {info['resolution'][0]}x{info['resolution'][1]}")
        print(f"  Device: {info['device']}")
        print(f"  Spread backend: {info['spread_backend']}")
        print(f"  Max spread radius: {info['max_spread_radius_px']:.1f} px")
        return 0
    except FileNotFoundError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1
    except (ConfigurationError, ValueError) as e:
        print(f"❌ Configuration validation failed: {e}", file=sys.stderr)
        return 1


def cmd_list_components(args: argparse.Namespace) -> int:
    """List registered filters, layouts, stimuli and spreading backends."""
    print("Available PhospheneSim Components:")
    print("=" * 50)
    for title, registry in (
        ("Filters", FILTER_REGISTRY),
        ("Layouts", LAYOUT_REGISTRY),
        ("Stimuli", STIMULUS_REGISTRY),
        ("Spread backends", SPREAD_REGISTRY),
    ):
        print(f"\n{title}:")
        for name in registry.list_registered():
            print(f"  - {name}")
    print("\nUse 'phosphenesim run --help' for usage examples")
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog="phosphenesim",
        description="PhospheneSim: prosthetic phosphene vision simulator",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Run simulation from YAML config")
    run_parser.add_argument("config", help="Path to YAML configuration file")
    run_parser.add_argument("--frames", type=int, help="Override stimulus.frames")
    run_parser.add_argument(
        "--output",
        help="Output path: .png saves the last frame, anything else a torch checkpoint",
    )
    run_parser.add_argument(
        "--device",
        choices=["cpu", "cuda", "mps"],
        help="Override device from config",
    )
    run_parser.add_argument(
        "--backend",
        choices=["vectorized", "reference"],
        help="Override spreading backend from config",
    )
    run_parser.add_argument("--quiet", action="store_true", help="Hide the progress bar")

    validate_parser = subparsers.add_parser("validate", help="Validate YAML config without running")
    validate_parser.add_argument("config", help="Path to YAML configuration file")

    subparsers.add_parser("list-components", help="List registered components")
    return parser


def main(argv=None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    commands = {
        "run": cmd_run,
        "validate": cmd_validate,
        "list-components": cmd_list_components,
    }
    return commands[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
