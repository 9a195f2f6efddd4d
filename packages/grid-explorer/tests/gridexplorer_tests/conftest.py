import pytest
from gridexplorer.agent import ExplorationPolicy, SimulationState
from gridexplorer.env import EventScheduler, GridParams, GridWorld
from gridexplorer.utils.seeding import get_rng


@pytest.fixture
def rng():
    """Create a deterministic random generator."""
    return get_rng(1234)


@pytest.fixture
def scheduler():
    """Create a scheduler at t=0."""
    return EventScheduler()


@pytest.fixture
def empty_params():
    """Create default geometry with no obstacles or rewards."""
    return GridParams(obstacle_count=0, standard_reward_count=0, bonus_reward_count=0)


@pytest.fixture
def world(empty_params, rng, scheduler):
    """Create an ungenerated 500x500 world with nothing placed."""
    return GridWorld(empty_params, rng=rng, scheduler=scheduler)


@pytest.fixture
def policy(rng):
    """Create a policy with default constants."""
    return ExplorationPolicy(rng=rng)


@pytest.fixture
def state(world, policy):
    """Create a simulation state with the agent at (0, 0)."""
    return SimulationState(world=world, agent=policy.create_agent_state())
