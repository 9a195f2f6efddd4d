"""Tick driver tying the grid world, the policy and the event scheduler together."""

from __future__ import annotations

from collections.abc import Callable

from gridexplorer.agent import ExplorationPolicy, SimulationState, TickResult
from gridexplorer.env import EventScheduler, GridWorld
from gridexplorer.logging_config import logger
from gridexplorer.rendering import HeatmapSink, ReadoutSink, RenderSink
from gridexplorer.report.dtypes import SessionResult
from gridexplorer.utils.config_loader import (
    SimulationConfig,
    configure_agent,
    configure_grid,
    configure_policy,
)
from gridexplorer.utils.seeding import ensure_seed, get_rng


class Simulation:
    """
    A single-agent exploration session.

    Each ``tick`` first advances the simulated clock by ``frame_time`` (firing
    due respawns and exploration bonus placements), then runs one policy step.
    Timer effects therefore never interleave with a tick.

    Parameters
    ----------
    config : SimulationConfig | None
        Session configuration, defaults when None.
    render_sink, heatmap_sink, readout_sink
        Optional display collaborators.
    """

    def __init__(
        self,
        config: SimulationConfig | None = None,
        *,
        render_sink: RenderSink | None = None,
        heatmap_sink: HeatmapSink | None = None,
        readout_sink: ReadoutSink | None = None,
    ) -> None:
        self.config = config or SimulationConfig()
        self.seed = ensure_seed(self.config.seed)
        logger.info(f"Simulation seed: {self.seed}")

        rng = get_rng(self.seed)
        self.scheduler = EventScheduler()
        world = GridWorld(
            configure_grid(self.config),
            rng=rng,
            scheduler=self.scheduler,
            render_sink=render_sink,
            heatmap_sink=heatmap_sink,
        )
        self.policy = ExplorationPolicy(
            configure_policy(self.config),
            rng=rng,
            readout_sink=readout_sink,
        )
        agent = self.policy.create_agent_state(configure_agent(self.config))

        if not world.is_within_bounds(agent.x, agent.y, agent.size):
            error_message = (
                f"Agent start {agent.position} with size {agent.size} "
                f"does not fit inside the {world.width}x{world.height} grid."
            )
            logger.error(error_message)
            raise ValueError(error_message)
        if agent.x % world.cell_size or agent.y % world.cell_size:
            error_message = (
                f"Agent start {agent.position} is not aligned to cell size {world.cell_size}."
            )
            logger.error(error_message)
            raise ValueError(error_message)

        self.state = SimulationState(world=world, agent=agent)
        self.started = False

    @property
    def world(self) -> GridWorld:
        """The session's grid world."""
        return self.state.world

    def start(self) -> None:
        """Generate the world and publish the initial readout. Idempotent."""
        if self.started:
            return
        self.world.generate()
        agent = self.state.agent
        self.policy.readout_sink.update_readout(agent.score, agent.rewards_collected, agent.epsilon)
        self.started = True

    def tick(self) -> TickResult:
        """Advance the clock one frame and run one policy step."""
        if not self.started:
            self.start()
        self.scheduler.advance(self.config.frame_time)
        return self.policy.step(self.state)

    def run(
        self,
        ticks: int,
        on_tick: Callable[[TickResult], None] | None = None,
    ) -> SessionResult:
        """
        Run ``ticks`` ticks and summarize the session.

        Parameters
        ----------
        ticks : int
            Number of ticks to run.
        on_tick : Callable[[TickResult], None] | None
            Called after every tick, e.g. to render a frame.
        """
        for _ in range(ticks):
            result = self.tick()
            if on_tick is not None:
                on_tick(result)

        return self.result()

    def result(self) -> SessionResult:
        """Summarize the session so far."""
        agent = self.state.agent
        data = agent.tracker.data
        visits = self.world.visited_cells
        return SessionResult(
            seed=self.seed,
            ticks=data.ticks,
            moves=data.moves,
            simulated_seconds=self.scheduler.now,
            score=data.score,
            rewards_collected=data.rewards_collected,
            collected_by_tier={tier.value: count for tier, count in data.collected_by_tier.items()},
            obstacle_hits=data.obstacle_hits,
            epsilon=agent.epsilon,
            stalled_cycles=agent.stalled_cycles,
            cells_visited=len(visits),
            max_visit_count=max(visits.values(), default=0),
        )
