"""Data types for reporting in Grid Explorer."""

from pydantic import BaseModel, Field


class SessionResult(BaseModel):
    """
    Summary of a finished simulation session.

    Attributes
    ----------
    seed : int
        Seed the session ran with.
    ticks : int
        Ticks processed.
    moves : int
        Ticks that committed a move.
    simulated_seconds : float
        Simulated clock at the end of the session.
    score : int
        Final score.
    rewards_collected : int
        Rewards collected across tiers.
    collected_by_tier : dict[str, int]
        Rewards collected per tier name.
    obstacle_hits : int
        Moves that ended on an obstacle.
    epsilon : float
        Final exploration rate.
    stalled_cycles : int
        Consecutive stalled adaptation cycles at the end of the session.
    cells_visited : int
        Distinct cells in the visitation map.
    max_visit_count : int
        Highest visit count of any cell.
    """

    seed: int
    ticks: int
    moves: int
    simulated_seconds: float
    score: int
    rewards_collected: int
    collected_by_tier: dict[str, int] = Field(default_factory=dict)
    obstacle_hits: int
    epsilon: float
    stalled_cycles: int
    cells_visited: int
    max_visit_count: int
