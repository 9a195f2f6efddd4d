"""Output sinks for the grid explorer and a console renderer implementing them.

The simulation core never draws anything itself. It reports entity changes,
visitation updates and score readouts to the sinks defined here; any object
with matching methods can stand in (a GUI, a recorder, a test double).
"""

from __future__ import annotations

import math
import os
import sys
from typing import TYPE_CHECKING, Protocol

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text as RichText

from gridexplorer.theme import DEFAULT_THEME, THEME_SYMBOLS, DarkColorRichStyleConfig, Theme

if TYPE_CHECKING:
    import numpy as np

    from gridexplorer.dtypes import PixelPosition, VisitationMap
    from gridexplorer.env.grid_world import Obstacle, Reward


class RenderSink(Protocol):
    """Displays or removes obstacles and rewards."""

    def show_entity(self, entity: Obstacle | Reward) -> None:
        """Display a newly created entity."""
        ...

    def remove_entity(self, entity: Obstacle | Reward) -> None:
        """Remove an entity's visual representation."""
        ...


class HeatmapSink(Protocol):
    """Redraws the visitation overlay."""

    def draw_heatmap(self, visited_cells: VisitationMap, intensities: np.ndarray) -> None:
        """Redraw using per-cell intensities in [0, 1] indexed ``[row, column]``."""
        ...


class ReadoutSink(Protocol):
    """Displays score, collected reward count and exploration rate."""

    def update_readout(self, score: int, rewards_collected: int, epsilon: float) -> None:
        """Display the current readout values."""
        ...


class NullSink:
    """Sink that discards everything. Used when no display is attached."""

    def show_entity(self, entity: Obstacle | Reward) -> None:  # noqa: ARG002
        """Ignore entity creation."""
        return

    def remove_entity(self, entity: Obstacle | Reward) -> None:  # noqa: ARG002
        """Ignore entity removal."""
        return

    def draw_heatmap(self, visited_cells: VisitationMap, intensities: np.ndarray) -> None:  # noqa: ARG002
        """Ignore heatmap updates."""
        return

    def update_readout(self, score: int, rewards_collected: int, epsilon: float) -> None:  # noqa: ARG002
        """Ignore readout updates."""
        return


def format_readout(score: int, rewards_collected: int, epsilon: float) -> str:
    """Format the readout line with epsilon to 2 decimal places."""
    return f"Score: {score}  Rewards: {rewards_collected}  Exploration rate: {epsilon:.2f}"


class ConsoleRenderer:
    """Terminal renderer implementing all three sinks.

    Entity and heatmap events are buffered; ``render`` composes them with the
    agent position into one frame per call.

    Parameters
    ----------
    width : int
        Grid width in pixels.
    height : int
        Grid height in pixels.
    cell_size : int
        Cell side length in pixels.
    theme : Theme, optional
        Symbol theme, by default ASCII.
    rich_style_config : DarkColorRichStyleConfig | None, optional
        Styles used by the Rich theme.
    enabled : bool, optional
        When False, ``render_frame`` is a no-op. Events are still recorded.
    """

    def __init__(  # noqa: PLR0913
        self,
        width: int,
        height: int,
        cell_size: int,
        *,
        theme: Theme = DEFAULT_THEME,
        rich_style_config: DarkColorRichStyleConfig | None = None,
        enabled: bool = True,
    ) -> None:
        self.columns = width // cell_size
        self.rows = height // cell_size
        self.cell_size = cell_size
        self.theme = theme
        self.rich_style_config = rich_style_config or DarkColorRichStyleConfig()
        self.enabled = enabled

        self.entities: list[Obstacle | Reward] = []
        self.intensities: np.ndarray | None = None
        self.readout = format_readout(0, 0, 0.0)

    def show_entity(self, entity: Obstacle | Reward) -> None:
        """Record a new entity."""
        self.entities.append(entity)

    def remove_entity(self, entity: Obstacle | Reward) -> None:
        """Forget an entity."""
        if entity in self.entities:
            self.entities.remove(entity)

    def draw_heatmap(self, visited_cells: VisitationMap, intensities: np.ndarray) -> None:  # noqa: ARG002
        """Keep the latest intensity grid."""
        self.intensities = intensities

    def update_readout(self, score: int, rewards_collected: int, epsilon: float) -> None:
        """Keep the latest readout line."""
        self.readout = format_readout(score, rewards_collected, epsilon)

    def render(self, agent_position: PixelPosition) -> list[str]:
        """
        Compose the current frame.

        Returns
        -------
        list[str]
            Rendered grid lines followed by the readout line.
        """
        grid = self._build_grid(agent_position)
        if self.theme == Theme.RICH:
            lines = self._render_rich(grid)
        else:
            lines = [" ".join(row) for row in grid]
        return [*lines, self.readout]

    def render_frame(self, agent_position: PixelPosition, *, clear_screen: bool = True) -> None:
        """Print the current frame to stdout."""
        if not self.enabled:
            return

        if clear_screen:
            self.clear_screen()

        print("\n".join(self.render(agent_position)))  # noqa: T201

    @staticmethod
    def clear_screen() -> None:
        """Clear the terminal screen."""
        if sys.platform.startswith("win"):
            os.system("cls")  # noqa: S605, S607 - safe for terminal clearing
        else:
            print("\033[2J\033[H", end="")  # noqa: T201

    def _heat_symbol(self, intensity: float) -> str:
        levels = THEME_SYMBOLS[self.theme].heat
        if intensity <= 0:
            return levels[0]
        return levels[min(len(levels) - 1, math.ceil(intensity * (len(levels) - 1)))]

    def _build_grid(self, agent_position: PixelPosition) -> list[list[str]]:
        symbols = THEME_SYMBOLS[self.theme]

        grid = [[symbols.heat[0] for _ in range(self.columns)] for _ in range(self.rows)]

        if self.intensities is not None:
            for row in range(self.rows):
                for column in range(self.columns):
                    grid[row][column] = self._heat_symbol(float(self.intensities[row, column]))

        tier_symbols = {
            "standard": symbols.reward,
            "bonus": symbols.bonus,
            "exploration": symbols.exploration,
        }
        size = self.cell_size
        for entity in self.entities:
            tier = getattr(entity, "tier", None)
            if tier is None:
                first_column, first_row = entity.x // size, entity.y // size
                last_column = min(self.columns, -(-(entity.x + entity.width) // size))
                last_row = min(self.rows, -(-(entity.y + entity.height) // size))
                for row in range(max(0, first_row), last_row):
                    for column in range(max(0, first_column), last_column):
                        grid[row][column] = symbols.obstacle

        for entity in self.entities:
            tier = getattr(entity, "tier", None)
            if tier is not None:
                column, row = entity.x // size, entity.y // size
                if 0 <= column < self.columns and 0 <= row < self.rows:
                    grid[row][column] = tier_symbols[tier.value]

        agent_column, agent_row = agent_position[0] // size, agent_position[1] // size
        if 0 <= agent_column < self.columns and 0 <= agent_row < self.rows:
            grid[agent_row][agent_column] = symbols.agent

        return grid

    def _render_rich(self, grid: list[list[str]]) -> list[str]:
        """Render the grid with Rich styling and colors as strings."""
        symbols = THEME_SYMBOLS[self.theme]
        style = self.rich_style_config
        styles = {
            symbols.agent: style.agent_style,
            symbols.obstacle: style.obstacle_style,
            symbols.reward: style.reward_style,
            symbols.bonus: style.bonus_style,
            symbols.exploration: style.exploration_style,
        }
        for level, heat_symbol in enumerate(symbols.heat):
            styles[heat_symbol] = style.heat_styles[min(level, len(style.heat_styles) - 1)]

        console = Console(
            record=True,
            width=self.columns * 2 + 4,
            legacy_windows=False,
            force_terminal=True,
        )
        table = Table(
            show_header=False,
            box=box.SQUARE,
            padding=(0, 0),
            pad_edge=False,
            style=style.grid_background,
        )
        table.add_column(no_wrap=True)

        for row in grid:
            text = RichText()
            for cell in row:
                text.append(cell + " ", style=styles.get(cell, ""))
            table.add_row(text)

        with console.capture() as capture:
            console.print(table, crop=True)

        return [line.rstrip() for line in capture.get().splitlines() if line.strip()]
