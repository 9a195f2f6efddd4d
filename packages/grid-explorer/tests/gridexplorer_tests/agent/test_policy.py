"""Unit tests for the exploration policy."""

# ruff: noqa: PLR2004

from unittest.mock import MagicMock

import pytest
from gridexplorer.agent import (
    ACTIONS,
    Branch,
    ExplorationPolicy,
    MoveAction,
    PolicyConfig,
    SimulationState,
)
from gridexplorer.env import RewardTier
from gridexplorer.simulation import Simulation
from gridexplorer.utils.config_loader import SimulationConfig
from pydantic import ValidationError


def confined_positions(count: int, span: int = 40) -> list[tuple[int, int]]:
    """Build positions cycling inside a ``span`` x ``span`` box."""
    corners = [(0, 0), (span, 0), (span, span), (0, span)]
    return [corners[i % len(corners)] for i in range(count)]


class TestPolicyConfig:
    """Test policy configuration."""

    def test_defaults(self):
        """Test the tuned constants are the defaults."""
        config = PolicyConfig()

        assert config.epsilon == 0.2
        assert config.min_epsilon == 0.05
        assert config.max_epsilon == 0.9
        assert config.epsilon_decay == 0.9995
        assert config.adaptation_interval == 100
        assert config.stall_window == 50
        assert config.stall_min_samples == 30
        assert config.stall_area_threshold == 5000
        assert config.bias_sample_interval == 1000
        assert config.bias_correction_weight == 0.3
        assert config.obstacle_penalty == 10

    def test_initial_epsilon_must_be_within_bounds(self):
        """Test an initial rate below the floor is rejected."""
        with pytest.raises(ValidationError, match="must lie within"):
            PolicyConfig(epsilon=0.01)

    def test_agent_buffers_sized_from_config(self, rng):
        """Test history buffer capacities follow the config."""
        policy = ExplorationPolicy(PolicyConfig(stall_window=5, bias_sample_capacity=7), rng=rng)

        agent = policy.create_agent_state()

        assert agent.recent_positions.maxlen == 5
        assert agent.centroid_samples.maxlen == 7
        assert agent.epsilon == 0.2
        assert agent.position == (0, 0)


class TestStallDetection:
    """Test bounding-box stall classification."""

    def test_confined_positions_are_stalled(self, policy):
        """Test 50 positions inside a 50x50 box count as stalled."""
        positions = confined_positions(50, span=50)

        assert policy.is_stalled(positions)

    def test_spread_positions_are_not_stalled(self, policy):
        """Test positions spanning more than sqrt(5000) on both axes are not stalled."""
        positions = confined_positions(50, span=80)

        assert not policy.is_stalled(positions)

    def test_too_few_samples_never_stalled(self, policy):
        """Test fewer than 30 positions are never stalled."""
        assert not policy.is_stalled(confined_positions(29, span=0))
        assert not policy.is_stalled([])

    def test_threshold_is_strict(self, policy):
        """Test an area exactly at the threshold is not stalled."""
        positions = [(0, 0), (50, 100)] * 15

        assert not policy.is_stalled(positions)

    def test_line_of_positions_is_stalled(self, policy):
        """Test a long straight line has zero area."""
        positions = [(x * 20, 0) for x in range(40)]

        assert policy.is_stalled(positions)


class TestRateAdaptation:
    """Test epsilon adaptation."""

    def test_stalled_raises_epsilon(self, policy, state):
        """Test a stalled agent multiplies epsilon by 1.2."""
        state.agent.recent_positions.extend(confined_positions(50))

        epsilon = policy.adapt_exploration_rate(state)

        assert epsilon == pytest.approx(0.24)
        assert state.agent.stalled_cycles == 1

    def test_stalled_boost_is_capped(self, policy, state):
        """Test the stall boost never exceeds 0.9."""
        state.agent.epsilon = 0.85
        state.agent.recent_positions.extend(confined_positions(50))

        assert policy.adapt_exploration_rate(state) == pytest.approx(0.9)

    def test_not_stalled_decays(self, policy, state):
        """Test an active agent decays epsilon and resets the stall counter."""
        state.agent.stalled_cycles = 3

        epsilon = policy.adapt_exploration_rate(state)

        assert epsilon == pytest.approx(0.2 * 0.9995)
        assert state.agent.stalled_cycles == 0

    def test_decay_floor(self, policy, state):
        """Test decay stops at the minimum rate."""
        state.agent.epsilon = 0.05

        assert policy.adapt_exploration_rate(state) == pytest.approx(0.05)

    def test_far_right_nudge(self, policy, state):
        """Test an agent beyond 1.5x the center gets a further 1.05 boost."""
        state.agent.x = 400

        epsilon = policy.adapt_exploration_rate(state)

        assert epsilon == pytest.approx(0.2 * 0.9995 * 1.05)

    def test_no_nudge_at_threshold(self, policy, state):
        """Test x exactly at 1.5x the center is not nudged."""
        state.agent.x = 375

        assert policy.adapt_exploration_rate(state) == pytest.approx(0.2 * 0.9995)

    def test_readout_published(self, rng, state):
        """Test the readout sink sees the adapted rate."""
        sink = MagicMock()
        policy = ExplorationPolicy(rng=rng, readout_sink=sink)

        policy.adapt_exploration_rate(state)

        sink.update_readout.assert_called_once_with(0, 0, pytest.approx(0.2 * 0.9995))

    def test_hundredth_tick_adapts_confined_agent(self, policy, state):
        """Test one adaptation cycle on a confined agent gives 0.2 * 1.2."""
        state.tick = 99
        state.agent.recent_positions.extend(confined_positions(50))

        result = policy.step(state)

        assert result.tick == 100
        assert state.agent.epsilon == pytest.approx(0.24)

    def test_no_adaptation_off_cadence(self, policy, state):
        """Test ticks between cycles leave epsilon alone."""
        state.agent.recent_positions.extend(confined_positions(50))

        for _ in range(99):
            policy.step(state)

        assert state.agent.epsilon == pytest.approx(0.2)


class TestActionScoring:
    """Test novelty-weighted scoring."""

    def test_unvisited_neighbours_score_one(self, policy, state):
        """Test every unvisited target scores 1 on the left half."""
        scores = policy.score_actions(state)

        assert list(scores) == ACTIONS
        assert all(score == pytest.approx(1.0) for score in scores.values())

    def test_visited_target_scores_lower(self, policy, state):
        """Test the novelty bonus is 1 / (visits + 1)."""
        state.world.record_visit(20, 0)
        state.world.record_visit(20, 0)

        scores = policy.score_actions(state)

        assert scores[MoveAction.RIGHT] == pytest.approx(1 / 3)
        assert scores[MoveAction.DOWN] == pytest.approx(1.0)

    def test_position_factor_right_of_center(self, policy, state):
        """Test scores scale by 1.2 + x / width right of center."""
        state.agent.x = 300

        scores = policy.score_actions(state)

        assert all(score == pytest.approx(1.8) for score in scores.values())

    def test_position_factor_at_center(self, policy, state):
        """Test the center itself uses a factor of 1."""
        state.agent.x = 250

        assert policy.position_factor(250, state.world) == 1.0

    def test_left_bias_correction_consumed(self, policy, state):
        """Test a pending left correction is applied once."""
        state.left_bias_correction = 0.3

        first = policy.score_actions(state)
        second = policy.score_actions(state)

        assert first[MoveAction.LEFT] == pytest.approx(1.3)
        assert first[MoveAction.UP] == pytest.approx(1.0)
        assert second[MoveAction.LEFT] == pytest.approx(1.0)
        assert state.left_bias_correction == 0.0


class TestExplore:
    """Test novelty-weighted sampling."""

    def test_cumulative_sampling(self):
        """Test the draw walks the cumulative weights."""
        rng = MagicMock()
        policy = ExplorationPolicy(rng=rng)
        scores = {
            MoveAction.UP: 1.0,
            MoveAction.DOWN: 1.0,
            MoveAction.LEFT: 2.0,
            MoveAction.RIGHT: 0.0,
        }

        rng.random.return_value = 0.0
        assert policy.explore(scores) == MoveAction.UP

        rng.random.return_value = 0.5
        assert policy.explore(scores) == MoveAction.DOWN

        rng.random.return_value = 0.99
        assert policy.explore(scores) == MoveAction.LEFT

    def test_fallback_to_uniform(self):
        """Test a failed cumulative pass picks a uniform action."""
        rng = MagicMock()
        rng.random.return_value = 0.5
        rng.integers.return_value = 3
        policy = ExplorationPolicy(rng=rng)
        scores = dict.fromkeys(ACTIONS, float("nan"))

        assert policy.explore(scores) == MoveAction.RIGHT
        rng.integers.assert_called_once_with(4)

    def test_sampling_prefers_novel_cells(self, rng):
        """Test heavily visited targets are sampled less often."""
        policy = ExplorationPolicy(rng=rng)
        scores = {
            MoveAction.UP: 1.0,
            MoveAction.DOWN: 1 / 101,
            MoveAction.LEFT: 1 / 101,
            MoveAction.RIGHT: 1 / 101,
        }

        picks = [policy.explore(scores) for _ in range(500)]

        assert picks.count(MoveAction.UP) > 400


class TestExploit:
    """Test collision-aware exploitation."""

    def test_left_half_prefers_first_candidate(self, policy, state):
        """Test ties resolve to 'up' and 'right' is discouraged left of center."""
        values = policy.action_values(state)

        assert values[MoveAction.UP] == 0.0
        assert values[MoveAction.RIGHT] == pytest.approx(-0.1)
        assert policy.exploit(state) == MoveAction.UP

    def test_right_half_discourages_left(self, policy, state):
        """Test 'left' loses the correction right of center and 'up' wins."""
        state.agent.x, state.agent.y = 300, 200

        values = policy.action_values(state)

        assert values == {
            MoveAction.UP: 0.0,
            MoveAction.DOWN: 0.0,
            MoveAction.LEFT: pytest.approx(-0.1),
            MoveAction.RIGHT: 0.0,
        }
        assert policy.exploit(state) == MoveAction.UP

    def test_right_half_blocked_vertically_moves_right(self, policy, state):
        """Test 'right' beats the penalized 'left' when up and down are blocked."""
        state.agent.x, state.agent.y = 300, 200
        state.world.add_obstacle(300, 180, 20, 20)
        state.world.add_obstacle(300, 220, 20, 20)

        values = policy.action_values(state)

        assert values[MoveAction.UP] == -1.0
        assert values[MoveAction.DOWN] == -1.0
        assert values[MoveAction.LEFT] == pytest.approx(-0.1)
        assert policy.exploit(state) == MoveAction.RIGHT

    def test_no_correction_at_center(self, policy, state):
        """Test the exact center has no correction."""
        state.agent.x = 250

        values = policy.action_values(state)

        assert set(values.values()) == {0.0}

    def test_obstacles_score_minus_one(self, policy, state):
        """Test moves into obstacles are avoided."""
        state.agent.x, state.agent.y = 100, 100
        state.world.add_obstacle(100, 80, 20, 20)

        values = policy.action_values(state)

        assert values[MoveAction.UP] == -1.0
        assert policy.exploit(state) == MoveAction.DOWN

    def test_all_blocked_still_picks_first(self, policy, state):
        """Test the -2 baseline lets a blocked candidate win."""
        state.agent.x, state.agent.y = 100, 100
        state.world.add_obstacle(80, 80, 60, 60)

        assert policy.exploit(state) == MoveAction.UP

    def test_corner_obstacle_scenario(self, policy, state):
        """Test an obstacle at the origin leaves only off-grid moves unblocked."""
        world = state.world
        world.add_obstacle(0, 0, 40, 40)

        assert world.query_collisions(20, 0, 20).obstacle_collision
        assert world.query_collisions(0, 20, 20).obstacle_collision

        values = policy.action_values(state)
        assert values[MoveAction.DOWN] == -1.0
        assert values[MoveAction.RIGHT] == pytest.approx(-1.1)
        assert values[MoveAction.UP] == 0.0
        assert values[MoveAction.LEFT] == 0.0

        action = policy.exploit(state)
        assert action == MoveAction.UP

        moved, collision = policy.apply_move(state, action)
        assert not moved
        assert collision is None
        assert state.agent.position == (0, 0)

        moved, _ = policy.apply_move(state, MoveAction.LEFT)
        assert not moved
        assert world.visited_cells == {}


class TestMoveApplication:
    """Test committing moves and resolving rewards."""

    def test_committed_move_records_visit(self, policy, state):
        """Test a valid move updates position, history and visits."""
        moved, collision = policy.apply_move(state, MoveAction.RIGHT)

        assert moved
        assert collision is not None
        assert state.agent.position == (20, 0)
        assert list(state.agent.recent_positions) == [(20, 0)]
        assert state.world.visit_count(20, 0) == 1

    def test_boundary_rejects_last_column(self, policy, state):
        """Test the box must stay strictly inside the grid."""
        state.agent.x = 460

        moved, _ = policy.apply_move(state, MoveAction.RIGHT)

        assert not moved
        assert state.agent.x == 460

    def test_stall_buffer_keeps_last_fifty(self, policy, state):
        """Test the stall history evicts its oldest entries."""
        for _ in range(30):
            policy.apply_move(state, MoveAction.DOWN)
            policy.apply_move(state, MoveAction.UP)

        assert len(state.agent.recent_positions) == 50

    def test_obstacle_penalty(self, policy, state):
        """Test moving onto an obstacle costs 10 points."""
        state.world.add_obstacle(20, 0, 20, 20)

        moved, collision = policy.apply_move(state, MoveAction.RIGHT)

        assert moved
        assert collision.obstacle_collision
        assert state.agent.score == -10
        assert state.agent.tracker.data.obstacle_hits == 1

    def test_standard_reward_collection(self, policy, state):
        """Test a standard reward adds 20 and respawns after 2 seconds."""
        world = state.world
        reward = world.spawn_reward(RewardTier.STANDARD, (20, 0))

        policy.apply_move(state, MoveAction.RIGHT)

        assert state.agent.score == 20
        assert state.agent.rewards_collected == 1
        assert reward.collected
        assert world.rewards[RewardTier.STANDARD] == []

        world.scheduler.advance(2.0)
        assert len(world.active_rewards(RewardTier.STANDARD)) == 1

    def test_bonus_reward_collection(self, policy, state):
        """Test a bonus reward adds 50."""
        state.world.spawn_reward(RewardTier.BONUS, (20, 0))

        policy.apply_move(state, MoveAction.RIGHT)

        assert state.agent.score == 50
        assert state.agent.rewards_collected == 1

    def test_exploration_bonus_spikes_epsilon(self, policy, state):
        """Test an exploration bonus adds 100 and multiplies epsilon by 1.5."""
        world = state.world
        world.spawn_reward(RewardTier.EXPLORATION, (20, 0))

        policy.apply_move(state, MoveAction.RIGHT)

        assert state.agent.score == 100
        assert state.agent.rewards_collected == 1
        assert state.agent.epsilon == pytest.approx(0.3)
        assert world.scheduler.pending == 0

    def test_exploration_spike_is_capped(self, policy, state):
        """Test the spike never exceeds 0.9."""
        state.agent.epsilon = 0.8
        state.world.spawn_reward(RewardTier.EXPLORATION, (20, 0))

        policy.apply_move(state, MoveAction.RIGHT)

        assert state.agent.epsilon == pytest.approx(0.9)

    def test_penalty_and_rewards_combine(self, policy, state):
        """Test an obstacle and several rewards resolve on the same move."""
        world = state.world
        world.add_obstacle(20, 0, 20, 20)
        world.spawn_reward(RewardTier.STANDARD, (20, 0))
        world.spawn_reward(RewardTier.BONUS, (20, 0))

        policy.apply_move(state, MoveAction.RIGHT)

        assert state.agent.score == -10 + 20 + 50
        assert state.agent.rewards_collected == 2

    def test_readout_after_score_change(self, rng, world):
        """Test the readout sink sees every score change."""
        sink = MagicMock()
        policy = ExplorationPolicy(rng=rng, readout_sink=sink)
        state = SimulationState(world=world, agent=policy.create_agent_state())
        world.spawn_reward(RewardTier.STANDARD, (20, 0))

        policy.apply_move(state, MoveAction.RIGHT)

        sink.update_readout.assert_called_once_with(20, 1, 0.2)


class TestPositionBias:
    """Test centroid sampling and the left correction."""

    def test_samples_only_on_interval(self, policy, state):
        """Test no sample is taken off the 1000-tick cadence."""
        state.tick = 999

        assert policy.sample_position_bias(state) is None
        assert len(state.agent.centroid_samples) == 0

    def test_right_drift_sets_correction(self, policy, state):
        """Test a centroid far right of center sets the 0.3 weight."""
        state.tick = 1000
        state.agent.x = 400

        bias = policy.sample_position_bias(state)

        assert bias == pytest.approx(0.6)
        assert state.left_bias_correction == pytest.approx(0.3)

    def test_small_drift_clears_correction(self, policy, state):
        """Test a centroid within the threshold clears the weight."""
        state.tick = 1000
        state.agent.x = 280
        state.left_bias_correction = 0.3

        bias = policy.sample_position_bias(state)

        assert bias == pytest.approx(0.12)
        assert state.left_bias_correction == 0.0

    def test_buffer_evicts_oldest(self, rng, world):
        """Test the centroid buffer keeps its capacity."""
        policy = ExplorationPolicy(PolicyConfig(bias_sample_capacity=3), rng=rng)
        state = SimulationState(world=world, agent=policy.create_agent_state())

        for i, x in enumerate([0, 100, 200, 300, 400], start=1):
            state.tick = i * 1000
            state.agent.x = x
            policy.sample_position_bias(state)

        assert [x for x, _ in state.agent.centroid_samples] == [200, 300, 400]


class TestStep:
    """Test the full tick pipeline."""

    def test_step_reports_branch(self, rng, world):
        """Test epsilon 0.9 mostly explores, 0.05 mostly exploits."""
        explorer = ExplorationPolicy(PolicyConfig(epsilon=0.9), rng=rng)
        state = SimulationState(world=world, agent=explorer.create_agent_state())
        branches = [explorer.step(state).branch for _ in range(50)]

        assert branches.count(Branch.EXPLORE) > 30

    def test_rejected_move_still_counts_tick(self, policy, state):
        """Test a move off the grid is a no-op that still advances the tick."""
        policy.config = PolicyConfig(epsilon=0.05)
        policy.rng = MagicMock()
        policy.rng.random.return_value = 0.99

        result = policy.step(state)

        assert result.branch == Branch.EXPLOIT
        assert result.action == MoveAction.UP
        assert not result.moved
        assert state.tick == 1
        assert state.agent.tracker.data.ticks == 1
        assert state.agent.tracker.data.moves == 0

    @pytest.fixture
    def long_run(self):
        """Create a default simulation."""
        simulation = Simulation(SimulationConfig(seed=2024))
        simulation.start()
        return simulation

    def test_invariants_over_long_run(self, long_run):
        """Test bounds, epsilon range and visit increments on every tick."""
        world = long_run.world
        agent = long_run.state.agent

        for _ in range(3000):
            before = dict(world.visited_cells)
            result = long_run.tick()

            assert 0 <= agent.x < world.width - agent.size
            assert 0 <= agent.y < world.height - agent.size
            assert 0.05 <= agent.epsilon <= 0.9

            cell = world.cell_of(agent.x, agent.y)
            if result.moved:
                assert world.visited_cells[cell] == before.get(cell, 0) + 1
                changed = {
                    key
                    for key, count in world.visited_cells.items()
                    if count != before.get(key)
                }
                assert changed == {cell}
            else:
                assert world.visited_cells == before

