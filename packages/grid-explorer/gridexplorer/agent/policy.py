"""
Epsilon-greedy exploration policy for the grid agent.

Each tick the policy picks one of four cardinal moves:

- With probability epsilon it explores, sampling a move in proportion to a
  novelty score (inverse visit count of the target cell, scaled by a
  position factor that pulls the agent back from the right half of the grid).
- Otherwise it exploits: moves into obstacles score -1, everything else 0,
  with a small penalty on the horizontal move pointing toward the center.

Epsilon itself adapts every ``adaptation_interval`` ticks. A stalled agent
(recent positions inside a small bounding box) explores more; otherwise the
rate decays toward ``min_epsilon``. Collecting an exploration bonus spikes it.

The position factor and bias correction terms are tuned heuristics, not a
principled intrinsic reward, and their constants are kept as found.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

import numpy as np
from pydantic import BaseModel, Field, model_validator

from gridexplorer.agent.state import (
    DEFAULT_CENTROID_SAMPLES,
    DEFAULT_STALL_WINDOW,
    AgentConfig,
    AgentState,
)
from gridexplorer.env import CollisionResult, RewardTier
from gridexplorer.logging_config import logger
from gridexplorer.rendering import NullSink, ReadoutSink

if TYPE_CHECKING:
    from collections.abc import Iterable

    from gridexplorer.agent.state import SimulationState
    from gridexplorer.dtypes import PixelPosition
    from gridexplorer.env import GridWorld

# Exploration rate
DEFAULT_EPSILON = 0.2
DEFAULT_MIN_EPSILON = 0.05
DEFAULT_MAX_EPSILON = 0.9
DEFAULT_EPSILON_DECAY = 0.9995
DEFAULT_ADAPTATION_INTERVAL = 100

# Stall detection
DEFAULT_STALL_MIN_SAMPLES = 30
DEFAULT_STALL_AREA_THRESHOLD = 5000.0
DEFAULT_STALL_EPSILON_BOOST = 1.2

# Horizontal bias handling
DEFAULT_BIAS_SAMPLE_INTERVAL = 1000
DEFAULT_BIAS_THRESHOLD = 0.2
DEFAULT_BIAS_CORRECTION_WEIGHT = 0.3
DEFAULT_POSITION_FACTOR_BASE = 1.2
DEFAULT_EXPLOIT_CORRECTION = 0.1
DEFAULT_FAR_RIGHT_FACTOR = 1.5
DEFAULT_FAR_RIGHT_EPSILON_NUDGE = 1.05

# Rewards
DEFAULT_EXPLORATION_EPSILON_SPIKE = 1.5
DEFAULT_OBSTACLE_PENALTY = 10

# Exploit baseline below any real action value
EXPLOIT_BASELINE_VALUE = -2.0
OBSTACLE_ACTION_VALUE = -1.0


class MoveAction(Enum):
    """Cardinal moves as (dx, dy) unit steps in screen coordinates."""

    UP = (0, -1)
    DOWN = (0, 1)
    LEFT = (-1, 0)
    RIGHT = (1, 0)

    @property
    def dx(self) -> int:
        """Horizontal unit step."""
        return self.value[0]

    @property
    def dy(self) -> int:
        """Vertical unit step."""
        return self.value[1]


# Candidate order; exploit ties resolve to the earliest entry
ACTIONS = [MoveAction.UP, MoveAction.DOWN, MoveAction.LEFT, MoveAction.RIGHT]


class Branch(str, Enum):
    """Which side of the epsilon-greedy split chose the move."""

    EXPLORE = "explore"
    EXPLOIT = "exploit"


class PolicyConfig(BaseModel):
    """Configuration for the exploration policy."""

    epsilon: float = DEFAULT_EPSILON
    min_epsilon: float = Field(default=DEFAULT_MIN_EPSILON, ge=0.0)
    max_epsilon: float = Field(default=DEFAULT_MAX_EPSILON, le=1.0)
    epsilon_decay: float = Field(default=DEFAULT_EPSILON_DECAY, gt=0.0, le=1.0)
    adaptation_interval: int = Field(default=DEFAULT_ADAPTATION_INTERVAL, gt=0)
    stall_window: int = Field(default=DEFAULT_STALL_WINDOW, gt=0)
    stall_min_samples: int = Field(default=DEFAULT_STALL_MIN_SAMPLES, ge=1)
    stall_area_threshold: float = Field(default=DEFAULT_STALL_AREA_THRESHOLD, ge=0.0)
    stall_epsilon_boost: float = Field(default=DEFAULT_STALL_EPSILON_BOOST, ge=1.0)
    bias_sample_interval: int = Field(default=DEFAULT_BIAS_SAMPLE_INTERVAL, gt=0)
    bias_sample_capacity: int = Field(default=DEFAULT_CENTROID_SAMPLES, gt=0)
    bias_threshold: float = DEFAULT_BIAS_THRESHOLD
    bias_correction_weight: float = Field(default=DEFAULT_BIAS_CORRECTION_WEIGHT, ge=0.0)
    position_factor_base: float = Field(default=DEFAULT_POSITION_FACTOR_BASE, gt=0.0)
    exploit_correction: float = DEFAULT_EXPLOIT_CORRECTION
    far_right_factor: float = DEFAULT_FAR_RIGHT_FACTOR
    far_right_epsilon_nudge: float = Field(default=DEFAULT_FAR_RIGHT_EPSILON_NUDGE, ge=1.0)
    exploration_epsilon_spike: float = Field(default=DEFAULT_EXPLORATION_EPSILON_SPIKE, ge=1.0)
    obstacle_penalty: int = Field(default=DEFAULT_OBSTACLE_PENALTY, ge=0)

    @model_validator(mode="after")
    def validate_epsilon_bounds(self) -> PolicyConfig:
        """Validate that the initial rate lies within [min_epsilon, max_epsilon]."""
        if not self.min_epsilon <= self.epsilon <= self.max_epsilon:
            msg = (
                f"Initial epsilon {self.epsilon} must lie within "
                f"[{self.min_epsilon}, {self.max_epsilon}]."
            )
            raise ValueError(msg)
        return self


@dataclass
class TickResult:
    """
    Outcome of one policy tick.

    Attributes
    ----------
    tick : int
        Tick number (1-based).
    action : MoveAction
        Chosen move.
    branch : Branch
        Whether the move came from exploration or exploitation.
    moved : bool
        False when the move would have left the grid and was discarded.
    collision : CollisionResult | None
        What the agent touched after moving, None when it did not move.
    score : int
        Score after the tick.
    epsilon : float
        Exploration rate after the tick.
    """

    tick: int
    action: MoveAction
    branch: Branch
    moved: bool
    collision: CollisionResult | None
    score: int
    epsilon: float


class ExplorationPolicy:
    """
    Per-tick decision loop for the exploring agent.

    Parameters
    ----------
    config : PolicyConfig | None
        Policy constants, defaults when None.
    rng : np.random.Generator
        Source of branch and sampling randomness.
    readout_sink : ReadoutSink | None
        Receives score and epsilon after every change.
    """

    def __init__(
        self,
        config: PolicyConfig | None = None,
        *,
        rng: np.random.Generator,
        readout_sink: ReadoutSink | None = None,
    ) -> None:
        self.config = config or PolicyConfig()
        self.rng = rng
        self.readout_sink: ReadoutSink = readout_sink or NullSink()

    def create_agent_state(self, agent_config: AgentConfig | None = None) -> AgentState:
        """Build a fresh agent with history buffers sized for this policy."""
        agent_config = agent_config or AgentConfig()
        return AgentState(
            x=agent_config.start_x,
            y=agent_config.start_y,
            size=agent_config.size,
            epsilon=self.config.epsilon,
            recent_positions=deque(maxlen=self.config.stall_window),
            centroid_samples=deque(maxlen=self.config.bias_sample_capacity),
        )

    def step(self, state: SimulationState) -> TickResult:
        """
        Run one tick: bookkeeping, scoring, selection, move and rewards.

        Rate adaptation and bias sampling run on their cadence whether or not
        the chosen move turns out to be valid.
        """
        agent = state.agent
        state.tick += 1

        if state.tick % self.config.adaptation_interval == 0:
            self.adapt_exploration_rate(state)

        self.sample_position_bias(state)
        scores = self.score_actions(state)

        if self.rng.random() < agent.epsilon:
            branch = Branch.EXPLORE
            action = self.explore(scores)
        else:
            branch = Branch.EXPLOIT
            action = self.exploit(state)

        moved, collision = self.apply_move(state, action)
        agent.tracker.track_tick(moved=moved)

        return TickResult(
            tick=state.tick,
            action=action,
            branch=branch,
            moved=moved,
            collision=collision,
            score=agent.score,
            epsilon=agent.epsilon,
        )

    # ------------------------------------------------------------------
    # Scoring and selection
    # ------------------------------------------------------------------

    def position_factor(self, x: int, world: GridWorld) -> float:
        """Multiplier applied to novelty; larger on the right half of the grid."""
        if x > world.width / 2:
            return self.config.position_factor_base + x / world.width
        return 1.0

    def score_actions(self, state: SimulationState) -> dict[MoveAction, float]:
        """
        Novelty-weighted score for each candidate move.

        ``1 / (visits(target cell) + 1)`` times the position factor. A pending
        left-bias correction is added to the "left" score and then cleared.
        """
        agent, world = state.agent, state.world
        step = world.cell_size
        factor = self.position_factor(agent.x, world)

        scores = {}
        for action in ACTIONS:
            visits = world.visit_count(agent.x + action.dx * step, agent.y + action.dy * step)
            scores[action] = factor / (visits + 1)

        if state.left_bias_correction:
            scores[MoveAction.LEFT] += state.left_bias_correction
            state.left_bias_correction = 0.0

        return scores

    def explore(self, scores: dict[MoveAction, float]) -> MoveAction:
        """Sample a move with probability proportional to its score."""
        total = sum(scores.values())
        draw = self.rng.random() * total

        accumulated = 0.0
        for action, score in scores.items():
            accumulated += score
            if draw <= accumulated:
                return action

        logger.debug("Novelty sampling selected nothing; falling back to a uniform move.")
        return ACTIONS[int(self.rng.integers(len(ACTIONS)))]

    def action_values(self, state: SimulationState) -> dict[MoveAction, float]:
        """
        Exploit value of each candidate move.

        -1 for a move whose box overlaps an obstacle, else 0. Right of center
        "left" loses ``exploit_correction``; left of center "right" loses it,
        so on open ground the exploit branch keeps to the vertical moves.
        """
        agent, world = state.agent, state.world
        step = world.cell_size
        center_x = world.width / 2
        correction = self.config.exploit_correction

        values = {}
        for action in ACTIONS:
            target_x = agent.x + action.dx * step
            target_y = agent.y + action.dy * step
            value = (
                OBSTACLE_ACTION_VALUE if world.hits_obstacle(target_x, target_y, agent.size) else 0.0
            )
            if action is MoveAction.LEFT and agent.x > center_x:
                value -= correction
            elif action is MoveAction.RIGHT and agent.x < center_x:
                value -= correction
            values[action] = value

        return values

    def exploit(self, state: SimulationState) -> MoveAction:
        """Pick the strictly highest valued move; ties keep the earlier candidate."""
        best_action, best_value = ACTIONS[0], EXPLOIT_BASELINE_VALUE
        for action, value in self.action_values(state).items():
            if value > best_value:
                best_action, best_value = action, value
        return best_action

    # ------------------------------------------------------------------
    # Move application and rewards
    # ------------------------------------------------------------------

    def apply_move(
        self,
        state: SimulationState,
        action: MoveAction,
    ) -> tuple[bool, CollisionResult | None]:
        """
        Commit ``action`` if it keeps the agent inside the grid.

        Returns
        -------
        tuple[bool, CollisionResult | None]
            Whether the agent moved, and what it touched if it did.
        """
        agent, world = state.agent, state.world
        new_x = agent.x + action.dx * world.cell_size
        new_y = agent.y + action.dy * world.cell_size

        if not world.is_within_bounds(new_x, new_y, agent.size):
            logger.debug(f"Move {action.name} from {agent.position} leaves the grid, staying put.")
            return False, None

        agent.x, agent.y = new_x, new_y
        agent.recent_positions.append((new_x, new_y))
        world.record_visit(new_x, new_y)

        return True, self.resolve_rewards(state)

    def resolve_rewards(self, state: SimulationState) -> CollisionResult:
        """Apply obstacle penalties and collect every reward under the agent."""
        agent, world = state.agent, state.world
        collision = world.query_collisions(agent.x, agent.y, agent.size)

        if collision.obstacle_collision:
            agent.tracker.track_obstacle_hit(self.config.obstacle_penalty)
            logger.debug(f"Obstacle hit at {agent.position}, score {agent.score}")
            self._publish_readout(agent)

        for tier, reward in collision.rewards.items():
            agent.tracker.track_reward(tier, reward.value)
            world.collect(reward)
            logger.info(f"Collected {tier.value} reward (+{reward.value}) at {agent.position}")

            if tier is RewardTier.EXPLORATION:
                agent.epsilon = min(
                    agent.epsilon * self.config.exploration_epsilon_spike,
                    self.config.max_epsilon,
                )
            self._publish_readout(agent)

        return collision

    # ------------------------------------------------------------------
    # Rate adaptation and bias detection
    # ------------------------------------------------------------------

    def is_stalled(self, positions: Iterable[PixelPosition]) -> bool:
        """
        Check whether recent positions fit inside a small bounding box.

        Fewer than ``stall_min_samples`` positions never count as stalled.
        """
        points = np.asarray(list(positions), dtype=float)
        if len(points) < self.config.stall_min_samples:
            return False

        width, height = np.ptp(points, axis=0)
        return float(width * height) < self.config.stall_area_threshold

    def adapt_exploration_rate(self, state: SimulationState) -> float:
        """
        Raise epsilon when stalled, otherwise decay it; nudge it up far right.

        Returns
        -------
        float
            The new exploration rate.
        """
        agent, world = state.agent, state.world
        config = self.config

        if self.is_stalled(agent.recent_positions):
            agent.stalled_cycles += 1
            agent.epsilon = min(agent.epsilon * config.stall_epsilon_boost, config.max_epsilon)
            logger.debug(
                f"Stalled for {agent.stalled_cycles} cycle(s), epsilon raised to {agent.epsilon:.4f}",
            )
        else:
            agent.stalled_cycles = 0
            agent.epsilon = max(agent.epsilon * config.epsilon_decay, config.min_epsilon)

        if agent.x > (world.width / 2) * config.far_right_factor:
            agent.epsilon = min(agent.epsilon * config.far_right_epsilon_nudge, config.max_epsilon)

        self._publish_readout(agent)
        return agent.epsilon

    def sample_position_bias(self, state: SimulationState) -> float | None:
        """
        Sample the agent position and set a left correction on right-side drift.

        Runs every ``bias_sample_interval`` ticks.

        Returns
        -------
        float | None
            Normalized horizontal bias of the sampled centroid, None when no
            sample was taken this tick.
        """
        if state.tick % self.config.bias_sample_interval != 0:
            return None

        agent = state.agent
        agent.centroid_samples.append(agent.position)

        center_x = state.world.width / 2
        mean_x = float(np.mean([x for x, _ in agent.centroid_samples]))
        bias = (mean_x - center_x) / center_x

        if bias > self.config.bias_threshold:
            logger.info(f"Correcting right-side bias: {bias:.2f}")
            state.left_bias_correction = self.config.bias_correction_weight
        else:
            state.left_bias_correction = 0.0

        return bias

    def _publish_readout(self, agent: AgentState) -> None:
        self.readout_sink.update_readout(agent.score, agent.rewards_collected, agent.epsilon)
