"""Score and reward bookkeeping for the exploring agent."""

from __future__ import annotations

from dataclasses import dataclass, field

from gridexplorer.env import RewardTier


@dataclass
class SessionData:
    """Data accumulated over a simulation session.

    Attributes
    ----------
    ticks : int
        Ticks processed, including ticks where the move was rejected.
    moves : int
        Ticks that committed a move.
    score : int
        Cumulative score; obstacle penalties can drive it negative.
    rewards_collected : int
        Rewards collected across all tiers.
    collected_by_tier : dict[RewardTier, int]
        Rewards collected per tier.
    obstacle_hits : int
        Committed moves that ended overlapping an obstacle.
    """

    ticks: int = 0
    moves: int = 0
    score: int = 0
    rewards_collected: int = 0
    collected_by_tier: dict[RewardTier, int] = field(
        default_factory=lambda: dict.fromkeys(RewardTier, 0),
    )
    obstacle_hits: int = 0


class RewardTracker:
    """Tracks score, reward collection and movement counts.

    Attributes
    ----------
    data : SessionData
        Accumulated session data.
    """

    def __init__(self) -> None:
        """Initialize the tracker with zero counters."""
        self.data = SessionData()

    @property
    def score(self) -> int:
        """Get the cumulative score."""
        return self.data.score

    @property
    def rewards_collected(self) -> int:
        """Get the total number of rewards collected."""
        return self.data.rewards_collected

    def track_tick(self, *, moved: bool) -> None:
        """Track a processed tick.

        Parameters
        ----------
        moved : bool
            Whether the tick committed a move.
        """
        self.data.ticks += 1
        if moved:
            self.data.moves += 1

    def track_obstacle_hit(self, penalty: int) -> None:
        """Track an obstacle collision and apply its penalty.

        Parameters
        ----------
        penalty : int
            Amount subtracted from the score.
        """
        self.data.obstacle_hits += 1
        self.data.score -= penalty

    def track_reward(self, tier: RewardTier, value: int) -> None:
        """Track a collected reward.

        Parameters
        ----------
        tier : RewardTier
            Tier of the collected reward.
        value : int
            Score added by the reward.
        """
        self.data.score += value
        self.data.rewards_collected += 1
        self.data.collected_by_tier[tier] += 1
