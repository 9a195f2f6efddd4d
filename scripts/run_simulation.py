"""Run the Grid Explorer simulation."""

import argparse
import itertools
import sys

from gridexplorer.constants import DEFAULT_TICKS
from gridexplorer.logging_config import LOG_LEVEL_CHOICES, logger, set_log_level
from gridexplorer.rendering import ConsoleRenderer
from gridexplorer.report.summary import summary
from gridexplorer.simulation import Simulation
from gridexplorer.theme import DEFAULT_THEME, Theme
from gridexplorer.utils.config_loader import (
    SimulationConfig,
    configure_grid,
    load_simulation_config,
)


def parse_arguments() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description="Run the Grid Explorer simulation.")
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=LOG_LEVEL_CHOICES,
        help="Set the logging level (default: INFO). Use 'NONE' to disable logging.",
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path to the YAML configuration file.",
    )
    parser.add_argument(
        "--ticks",
        type=int,
        default=None,
        help=f"Number of ticks to run (default: config value or {DEFAULT_TICKS}). "
        "Use 0 to run until interrupted.",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed; overrides the config value. Generated when omitted.",
    )
    parser.add_argument(
        "--render-every",
        type=int,
        default=0,
        help="Render the grid every N ticks (default: 0, no rendering).",
    )
    parser.add_argument(
        "--show-last-frame-only",
        action="store_true",
        help="Only display the final frame.",
    )
    parser.add_argument(
        "--theme",
        type=str,
        default=None,
        choices=[theme.value for theme in Theme],
        help=f"Grid rendering theme (default: config value or '{DEFAULT_THEME.value}').",
    )

    return parser.parse_args()


def main() -> None:
    """Run the Grid Explorer simulation."""
    args = parse_arguments()

    config = load_simulation_config(args.config) if args.config else SimulationConfig()
    if args.seed is not None:
        config = config.model_copy(update={"seed": args.seed})

    ticks = args.ticks if args.ticks is not None else (config.ticks or DEFAULT_TICKS)
    theme = Theme(args.theme) if args.theme else (config.theme or DEFAULT_THEME)

    set_log_level(args.log_level)

    grid = configure_grid(config)
    renderer = ConsoleRenderer(grid.width, grid.height, grid.cell_size, theme=theme)
    simulation = Simulation(
        config,
        render_sink=renderer,
        heatmap_sink=renderer,
        readout_sink=renderer,
    )

    logger.info("Simulation parameters:")
    logger.info(f"Config file: {args.config}")
    logger.info(f"Ticks: {ticks or 'until interrupted'}")
    logger.info(f"Grid: {grid.width}x{grid.height}, cell size {grid.cell_size}")

    render_every = args.render_every
    tick_range = itertools.count() if ticks <= 0 else range(ticks)
    try:
        for _ in tick_range:
            result = simulation.tick()
            if render_every > 0 and not args.show_last_frame_only and result.tick % render_every == 0:
                renderer.render_frame(simulation.state.agent.position)
    except KeyboardInterrupt:
        logger.info(f"Interrupted after {simulation.state.tick} ticks")

    if args.show_last_frame_only:
        renderer.render_frame(simulation.state.agent.position, clear_screen=False)

    summary(simulation.result())


if __name__ == "__main__":
    sys.exit(main())
