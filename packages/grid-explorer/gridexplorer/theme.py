"""Themes for the grid explorer console renderer."""

from enum import Enum

from pydantic import BaseModel


class Theme(str, Enum):
    """Console rendering themes."""

    ASCII = "ascii"
    UNICODE = "unicode"
    RICH = "rich"


DEFAULT_THEME = Theme.ASCII


class ThemeSymbolSet(BaseModel):
    """Symbol set for a specific theme.

    Attributes
    ----------
    agent : str
        Symbol for the agent.
    obstacle : str
        Symbol for a cell covered by an obstacle.
    reward : str
        Symbol for a standard reward.
    bonus : str
        Symbol for a bonus reward.
    exploration : str
        Symbol for an exploration bonus.
    heat : list[str]
        Symbols for empty cells from unvisited to most visited.
    """

    agent: str
    obstacle: str
    reward: str
    bonus: str
    exploration: str
    heat: list[str]


class DarkColorRichStyleConfig(BaseModel):
    """Rich styling configuration for colored on dark background Rich theme."""

    agent_style: str = "bold green"
    obstacle_style: str = "bold grey50"
    reward_style: str = "bold yellow"
    bonus_style: str = "bold magenta"
    exploration_style: str = "bold cyan"
    heat_styles: list[str] = ["dim grey93", "red3", "red1", "bold red1"]
    grid_background: str = "bold grey93"


THEME_SYMBOLS = {
    Theme.ASCII: ThemeSymbolSet(
        agent="@",
        obstacle="#",
        reward="*",
        bonus="$",
        exploration="?",
        heat=[".", "-", "=", "%"],
    ),
    Theme.UNICODE: ThemeSymbolSet(
        agent="◉",
        obstacle="■",
        reward="◆",
        bonus="★",
        exploration="✦",
        heat=["·", "░", "▒", "▓"],
    ),
    Theme.RICH: ThemeSymbolSet(
        agent="◉",
        obstacle="■",
        reward="◆",
        bonus="★",
        exploration="✦",
        heat=["·", "░", "▒", "▓"],
    ),
}
