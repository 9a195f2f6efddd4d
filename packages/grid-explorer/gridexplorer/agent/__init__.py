"""Module for agent."""

__all__ = [
    "ACTIONS",
    "AgentConfig",
    "AgentState",
    "Branch",
    "ExplorationPolicy",
    "MoveAction",
    "PolicyConfig",
    "RewardTracker",
    "SimulationState",
    "TickResult",
]

from gridexplorer.agent.policy import (
    ACTIONS,
    Branch,
    ExplorationPolicy,
    MoveAction,
    PolicyConfig,
    TickResult,
)
from gridexplorer.agent.state import AgentConfig, AgentState, SimulationState
from gridexplorer.agent.tracker import RewardTracker
