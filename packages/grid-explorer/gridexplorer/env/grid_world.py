"""
Grid world environment for the exploring agent.

The world is a fixed ``width`` x ``height`` pixel grid split into square cells.
It owns three kinds of state:

- Obstacles: axis-aligned rectangles placed once by ``generate`` and never moved.
- Reward pools: one pool per tier (standard, bonus, exploration). Standard and
  bonus rewards respawn a fixed delay after collection; exploration bonuses
  are only created by a recurring placement event aimed at the least visited
  cells.
- The visitation map: visit counts per cell, used both as the novelty signal
  for the exploration policy and as the source of the heatmap overlay.

Timer effects go through an ``EventScheduler`` so they are serialized with
the agent's ticks.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

import numpy as np
from pydantic import BaseModel, Field, model_validator

from gridexplorer.constants import DEFAULT_CELL_SIZE, DEFAULT_GRID_HEIGHT, DEFAULT_GRID_WIDTH
from gridexplorer.dtypes import CellKey, PixelPosition, VisitationMap
from gridexplorer.env.scheduler import EventScheduler
from gridexplorer.errors import ERROR_CELL_SIZE_DIVISOR, ERROR_POSITION_OUT_OF_GRID
from gridexplorer.logging_config import logger
from gridexplorer.rendering import HeatmapSink, NullSink, RenderSink

DEFAULT_OBSTACLE_COUNT = 10
DEFAULT_OBSTACLE_MAX_CELLS = 3
DEFAULT_STANDARD_REWARD_COUNT = 15
DEFAULT_BONUS_REWARD_COUNT = 3
DEFAULT_EXPLORATION_BONUS_INTERVAL = 10.0
DEFAULT_EXPLORATION_CANDIDATES = 10


class RewardTier(str, Enum):
    """Reward categories, listed in collision resolution order."""

    STANDARD = "standard"
    BONUS = "bonus"
    EXPLORATION = "exploration"


class TierSpec(BaseModel):
    """
    Constants describing one reward tier.

    Attributes
    ----------
    zone_size : int
        Extent of the collection zone measured from the reward's top-left corner.
    value : int
        Score added when the reward is collected.
    respawn_delay : float | None
        Seconds until a same-tier replacement spawns, None for no respawn.
    """

    zone_size: int = Field(gt=0)
    value: int
    respawn_delay: float | None = None


def default_tier_specs() -> dict[RewardTier, TierSpec]:
    """Build the standard tier table."""
    return {
        RewardTier.STANDARD: TierSpec(zone_size=15, value=20, respawn_delay=2.0),
        RewardTier.BONUS: TierSpec(zone_size=15, value=50, respawn_delay=5.0),
        RewardTier.EXPLORATION: TierSpec(zone_size=20, value=100, respawn_delay=None),
    }


class GridParams(BaseModel):
    """Geometry and population parameters for a grid world."""

    width: int = Field(default=DEFAULT_GRID_WIDTH, gt=0)
    height: int = Field(default=DEFAULT_GRID_HEIGHT, gt=0)
    cell_size: int = Field(default=DEFAULT_CELL_SIZE, gt=0)
    obstacle_count: int = Field(default=DEFAULT_OBSTACLE_COUNT, ge=0)
    obstacle_max_cells: int = Field(default=DEFAULT_OBSTACLE_MAX_CELLS, ge=1)
    standard_reward_count: int = Field(default=DEFAULT_STANDARD_REWARD_COUNT, ge=0)
    bonus_reward_count: int = Field(default=DEFAULT_BONUS_REWARD_COUNT, ge=0)
    exploration_bonus_interval: float = Field(default=DEFAULT_EXPLORATION_BONUS_INTERVAL, gt=0)
    exploration_candidates: int = Field(default=DEFAULT_EXPLORATION_CANDIDATES, ge=1)
    tiers: dict[RewardTier, TierSpec] = Field(default_factory=default_tier_specs)

    @model_validator(mode="after")
    def validate_cell_alignment(self) -> GridParams:
        """Validate that cells tile the grid exactly."""
        if self.width % self.cell_size or self.height % self.cell_size:
            msg = ERROR_CELL_SIZE_DIVISOR.format(
                cell_size=self.cell_size,
                width=self.width,
                height=self.height,
            )
            raise ValueError(msg)
        missing = [tier.value for tier in RewardTier if tier not in self.tiers]
        if missing:
            msg = f"Missing reward tier specs: {', '.join(missing)}."
            raise ValueError(msg)
        return self


def boxes_overlap(  # noqa: PLR0913
    ax: int,
    ay: int,
    a_width: int,
    a_height: int,
    bx: int,
    by: int,
    b_width: int,
    b_height: int,
) -> bool:
    """Strict axis-aligned overlap test; touching edges do not overlap."""
    return ax < bx + b_width and ax + a_width > bx and ay < by + b_height and ay + a_height > by


@dataclass(frozen=True)
class Obstacle:
    """Immutable rectangular obstacle in pixel coordinates."""

    x: int
    y: int
    width: int
    height: int

    def overlaps(self, x: int, y: int, size: int) -> bool:
        """Check whether a square box overlaps this obstacle."""
        return boxes_overlap(x, y, size, size, self.x, self.y, self.width, self.height)


@dataclass(eq=False)
class Reward:
    """
    A collectible reward instance, compared by identity.

    Once ``collected`` is set the instance is dead; replacements are new
    instances.
    """

    x: int
    y: int
    tier: RewardTier
    value: int
    collected: bool = False


@dataclass
class CollisionResult:
    """
    Outcome of a collision query for one box.

    Attributes
    ----------
    obstacle_collision : bool
        Whether the box overlaps any obstacle.
    rewards : dict[RewardTier, Reward]
        At most one uncollected reward per tier whose zone overlaps the box,
        in tier order. Within a tier the first match in pool (spawn) order wins.
    """

    obstacle_collision: bool = False
    rewards: dict[RewardTier, Reward] = field(default_factory=dict)


class GridWorld:
    """
    Grid environment with obstacles, tiered rewards and a visitation ledger.

    Parameters
    ----------
    params : GridParams | None
        Geometry and population parameters, defaults when None.
    rng : np.random.Generator
        Source of all placement randomness.
    scheduler : EventScheduler
        Queue for respawn and exploration bonus events.
    render_sink : RenderSink | None
        Receives entity creation and removal.
    heatmap_sink : HeatmapSink | None
        Receives the visitation map after every recorded visit.
    """

    def __init__(
        self,
        params: GridParams | None = None,
        *,
        rng: np.random.Generator,
        scheduler: EventScheduler,
        render_sink: RenderSink | None = None,
        heatmap_sink: HeatmapSink | None = None,
    ) -> None:
        self.params = params or GridParams()
        self.rng = rng
        self.scheduler = scheduler
        self.render_sink: RenderSink = render_sink or NullSink()
        self.heatmap_sink: HeatmapSink = heatmap_sink or NullSink()

        self.obstacles: list[Obstacle] = []
        self.rewards: dict[RewardTier, list[Reward]] = {tier: [] for tier in RewardTier}
        self.visited_cells: VisitationMap = {}

    @property
    def width(self) -> int:
        """Grid width in pixels."""
        return self.params.width

    @property
    def height(self) -> int:
        """Grid height in pixels."""
        return self.params.height

    @property
    def cell_size(self) -> int:
        """Side length of a cell in pixels."""
        return self.params.cell_size

    @property
    def columns(self) -> int:
        """Number of cell columns."""
        return self.width // self.cell_size

    @property
    def rows(self) -> int:
        """Number of cell rows."""
        return self.height // self.cell_size

    # ------------------------------------------------------------------
    # Generation and placement
    # ------------------------------------------------------------------

    def generate(self) -> None:
        """
        Populate obstacles and rewards, then start exploration bonus placement.

        Placement does not check for overlap; rewards may sit on obstacles.
        The first exploration bonus is placed immediately and then every
        ``exploration_bonus_interval`` simulated seconds.
        """
        for _ in range(self.params.obstacle_count):
            width = self.cell_size * int(self.rng.integers(1, self.params.obstacle_max_cells + 1))
            height = self.cell_size * int(self.rng.integers(1, self.params.obstacle_max_cells + 1))
            x, y = self._random_cell()
            self.add_obstacle(x, y, width, height)

        for _ in range(self.params.standard_reward_count):
            self.spawn_reward(RewardTier.STANDARD)

        for _ in range(self.params.bonus_reward_count):
            self.spawn_reward(RewardTier.BONUS)

        logger.info(
            f"Generated {len(self.obstacles)} obstacles, "
            f"{len(self.rewards[RewardTier.STANDARD])} standard and "
            f"{len(self.rewards[RewardTier.BONUS])} bonus rewards",
        )

        self.scheduler.schedule_recurring(
            self.params.exploration_bonus_interval,
            self._on_exploration_bonus_timer,
            name="exploration-bonus",
        )
        self._publish_heatmap()

    def add_obstacle(self, x: int, y: int, width: int, height: int) -> Obstacle:
        """Place an obstacle; obstacles are never removed."""
        obstacle = Obstacle(x=x, y=y, width=width, height=height)
        self.obstacles.append(obstacle)
        self.render_sink.show_entity(obstacle)
        logger.debug(f"Placed obstacle at ({x}, {y}) size {width}x{height}")
        return obstacle

    def spawn_reward(
        self,
        tier: RewardTier,
        position: PixelPosition | None = None,
    ) -> Reward:
        """
        Add a reward of ``tier`` at ``position`` or at a random cell.

        Returns
        -------
        Reward
            The new reward, appended to the end of its tier pool.
        """
        x, y = position if position is not None else self._random_cell()
        reward = Reward(x=x, y=y, tier=tier, value=self.params.tiers[tier].value)
        self.rewards[tier].append(reward)
        self.render_sink.show_entity(reward)
        logger.debug(f"Spawned {tier.value} reward at ({x}, {y})")
        return reward

    def least_visited_cells(self) -> list[PixelPosition]:
        """
        Find the least visited obstacle-free cells.

        Cells are scanned column by column (x outer, y inner); ties in visit
        count keep that scan order.

        Returns
        -------
        list[PixelPosition]
            Up to ``exploration_candidates`` cell positions, fewest visits first.
        """
        counts = self._visit_counts()
        free = ~self._obstacle_mask()

        free_indices = np.flatnonzero(free.ravel())
        if free_indices.size == 0:
            return []

        order = np.argsort(counts.ravel()[free_indices], kind="stable")
        chosen = free_indices[order[: self.params.exploration_candidates]]

        return [
            (int(index // self.rows) * self.cell_size, int(index % self.rows) * self.cell_size)
            for index in chosen
        ]

    def place_exploration_bonus(self) -> Reward | None:
        """
        Spawn an exploration bonus on one of the least visited free cells.

        Returns
        -------
        Reward | None
            The new bonus, or None when every cell is covered by obstacles.
        """
        candidates = self.least_visited_cells()
        if not candidates:
            logger.warning("No obstacle-free cell available for an exploration bonus")
            return None

        position = candidates[int(self.rng.integers(len(candidates)))]
        reward = self.spawn_reward(RewardTier.EXPLORATION, position)
        logger.info(f"Exploration bonus placed at {position}")
        return reward

    # ------------------------------------------------------------------
    # Collision and collection
    # ------------------------------------------------------------------

    def hits_obstacle(self, x: int, y: int, size: int) -> bool:
        """Check whether a square box overlaps any obstacle. Valid for any coordinates."""
        return any(obstacle.overlaps(x, y, size) for obstacle in self.obstacles)

    def query_collisions(self, x: int, y: int, size: int) -> CollisionResult:
        """
        Resolve what a square box at ``(x, y)`` touches.

        Callers are expected to pass in-grid boxes; coordinates are not
        validated.
        """
        result = CollisionResult(obstacle_collision=self.hits_obstacle(x, y, size))

        for tier in RewardTier:
            zone = self.params.tiers[tier].zone_size
            for reward in self.rewards[tier]:
                if not reward.collected and boxes_overlap(
                    x, y, size, size, reward.x, reward.y, zone, zone
                ):
                    result.rewards[tier] = reward
                    break

        return result

    def collect(self, reward: Reward) -> None:
        """
        Mark ``reward`` collected, remove it, and schedule its replacement.

        Standard and bonus tiers respawn a fresh reward at a random cell after
        the tier's delay. Exploration bonuses are not replaced here.
        """
        reward.collected = True
        pool = self.rewards[reward.tier]
        if reward in pool:
            pool.remove(reward)
        self.render_sink.remove_entity(reward)

        delay = self.params.tiers[reward.tier].respawn_delay
        if delay is not None:
            tier = reward.tier
            self.scheduler.schedule(
                delay,
                lambda: self.spawn_reward(tier),
                name=f"respawn-{tier.value}",
            )

    # ------------------------------------------------------------------
    # Visitation
    # ------------------------------------------------------------------

    def cell_of(self, x: int, y: int) -> CellKey:
        """Return the (column, row) of the cell containing ``(x, y)``."""
        return x // self.cell_size, y // self.cell_size

    def visit_count(self, x: int, y: int) -> int:
        """Visit count of the cell containing ``(x, y)``; 0 for unseen or off-grid cells."""
        return self.visited_cells.get(self.cell_of(x, y), 0)

    def record_visit(self, x: int, y: int) -> int:
        """
        Increment the visit count for the cell containing ``(x, y)``.

        Returns
        -------
        int
            The cell's new count.

        Raises
        ------
        ValueError
            If the position is outside the grid.
        """
        if not (0 <= x < self.width and 0 <= y < self.height):
            error_message = ERROR_POSITION_OUT_OF_GRID.format(
                x=x,
                y=y,
                width=self.width,
                height=self.height,
            )
            logger.error(error_message)
            raise ValueError(error_message)

        key = self.cell_of(x, y)
        self.visited_cells[key] = self.visited_cells.get(key, 0) + 1
        self._publish_heatmap()
        return self.visited_cells[key]

    def heatmap(self) -> np.ndarray:
        """
        Visitation intensity per cell, indexed ``[row, column]``.

        Each cell holds ``count / max_count`` clamped to [0, 1], where the
        maximum never drops below 1.
        """
        counts = self._visit_counts().T.astype(float)
        max_count = max(1.0, float(counts.max(initial=0.0)))
        return np.clip(counts / max_count, 0.0, 1.0)

    def is_within_bounds(self, x: int, y: int, size: int) -> bool:
        """Check that a box of side ``size`` at ``(x, y)`` stays strictly inside the grid."""
        return 0 <= x < self.width - size and 0 <= y < self.height - size

    def active_rewards(self, tier: RewardTier) -> list[Reward]:
        """Uncollected rewards of ``tier`` in spawn order."""
        return [reward for reward in self.rewards[tier] if not reward.collected]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _random_cell(self) -> PixelPosition:
        return (
            int(self.rng.integers(self.columns)) * self.cell_size,
            int(self.rng.integers(self.rows)) * self.cell_size,
        )

    def _visit_counts(self) -> np.ndarray:
        """Visit counts indexed ``[column, row]``."""
        counts = np.zeros((self.columns, self.rows), dtype=np.int64)
        for (column, row), count in self.visited_cells.items():
            if 0 <= column < self.columns and 0 <= row < self.rows:
                counts[column, row] = count
        return counts

    def _obstacle_mask(self) -> np.ndarray:
        """Boolean mask indexed ``[column, row]`` of cells touched by an obstacle."""
        mask = np.zeros((self.columns, self.rows), dtype=bool)
        size = self.cell_size
        for obstacle in self.obstacles:
            first_column = max(0, obstacle.x // size)
            first_row = max(0, obstacle.y // size)
            last_column = -(-(obstacle.x + obstacle.width) // size)
            last_row = -(-(obstacle.y + obstacle.height) // size)
            if last_column <= 0 or last_row <= 0:
                continue
            mask[first_column:last_column, first_row:last_row] = True
        return mask

    def _publish_heatmap(self) -> None:
        self.heatmap_sink.draw_heatmap(self.visited_cells, self.heatmap())

    def _on_exploration_bonus_timer(self) -> None:
        self.place_exploration_bonus()
