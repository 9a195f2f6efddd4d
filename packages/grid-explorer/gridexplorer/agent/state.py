"""Mutable simulation state passed explicitly into each tick."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from gridexplorer.agent.tracker import RewardTracker
from gridexplorer.constants import DEFAULT_AGENT_SIZE, DEFAULT_START_POSITION

if TYPE_CHECKING:
    from gridexplorer.dtypes import PixelPosition
    from gridexplorer.env import GridWorld

DEFAULT_STALL_WINDOW = 50
DEFAULT_CENTROID_SAMPLES = 1000


class AgentConfig(BaseModel):
    """Configuration for the agent body."""

    start_x: int = Field(default=DEFAULT_START_POSITION[0], ge=0)
    start_y: int = Field(default=DEFAULT_START_POSITION[1], ge=0)
    size: int = Field(default=DEFAULT_AGENT_SIZE, gt=0)


@dataclass
class AgentState:
    """
    Position, exploration rate and movement history of the agent.

    Attributes
    ----------
    x, y : int
        Top-left corner of the agent's box; grid aligned after every move.
    size : int
        Side length of the agent's collision box.
    epsilon : float
        Current exploration rate.
    recent_positions : deque[PixelPosition]
        Last committed positions used for stall detection, oldest first.
    centroid_samples : deque[PixelPosition]
        Positions sampled for horizontal bias detection, oldest first.
    stalled_cycles : int
        Consecutive adaptation cycles classified as stalled.
    tracker : RewardTracker
        Score and collection counters.
    """

    x: int
    y: int
    size: int
    epsilon: float
    recent_positions: deque[PixelPosition] = field(
        default_factory=lambda: deque(maxlen=DEFAULT_STALL_WINDOW),
    )
    centroid_samples: deque[PixelPosition] = field(
        default_factory=lambda: deque(maxlen=DEFAULT_CENTROID_SAMPLES),
    )
    stalled_cycles: int = 0
    tracker: RewardTracker = field(default_factory=RewardTracker)

    @property
    def position(self) -> PixelPosition:
        """Current top-left position."""
        return self.x, self.y

    @property
    def score(self) -> int:
        """Cumulative score."""
        return self.tracker.score

    @property
    def rewards_collected(self) -> int:
        """Rewards collected so far."""
        return self.tracker.rewards_collected


@dataclass
class SimulationState:
    """
    Everything one tick reads and mutates.

    Attributes
    ----------
    world : GridWorld
        The environment, including its event scheduler.
    agent : AgentState
        The agent.
    tick : int
        Ticks processed so far.
    left_bias_correction : float
        Extra weight for the "left" move, consumed by the next scoring pass.
    """

    world: GridWorld
    agent: AgentState
    tick: int = 0
    left_bias_correction: float = 0.0
