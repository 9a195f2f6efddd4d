"""Module for environments."""

__all__ = [
    "CollisionResult",
    "EventScheduler",
    "GridParams",
    "GridWorld",
    "Obstacle",
    "Reward",
    "RewardTier",
    "TierSpec",
]

from gridexplorer.env.grid_world import (
    CollisionResult,
    GridParams,
    GridWorld,
    Obstacle,
    Reward,
    RewardTier,
    TierSpec,
)
from gridexplorer.env.scheduler import EventScheduler
