"""
Grid Explorer: an epsilon-greedy agent exploring a 2D grid world.

A single agent moves cell by cell, collecting tiered rewards and avoiding
obstacles. Its exploration rate adapts to stalls and horizontal drift, and a
visitation map feeds both a novelty bonus and a heatmap overlay.
"""

from gridexplorer.agent import ExplorationPolicy, PolicyConfig, SimulationState
from gridexplorer.env import GridParams, GridWorld, RewardTier
from gridexplorer.simulation import Simulation
from gridexplorer.utils.config_loader import SimulationConfig, load_simulation_config

__version__ = "0.1.0"
__all__ = [
    "ExplorationPolicy",
    "GridParams",
    "GridWorld",
    "PolicyConfig",
    "RewardTier",
    "Simulation",
    "SimulationConfig",
    "SimulationState",
    "load_simulation_config",
]
