"""Load and configure simulation settings from a YAML file."""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from gridexplorer.agent import AgentConfig, PolicyConfig
from gridexplorer.constants import DEFAULT_FRAME_TIME
from gridexplorer.env import GridParams
from gridexplorer.logging_config import logger
from gridexplorer.theme import Theme


class SimulationConfig(BaseModel):
    """Configuration for a simulation session."""

    seed: int | None = None
    ticks: int | None = Field(default=None, gt=0)
    frame_time: float = Field(default=DEFAULT_FRAME_TIME, gt=0)
    theme: Theme | None = None
    grid: GridParams | None = None
    agent: AgentConfig | None = None
    policy: PolicyConfig | None = None


def load_simulation_config(config_path: str | Path) -> SimulationConfig:
    """
    Load simulation configuration from a YAML file and parse it into a SimulationConfig model.

    Args:
        config_path (str | Path): Path to the YAML configuration file.

    Returns
    -------
        SimulationConfig: Parsed configuration as a Pydantic model.
    """
    with Path(config_path).open() as file:
        data = yaml.safe_load(file) or {}
        return SimulationConfig(**data)


def configure_grid(config: SimulationConfig) -> GridParams:
    """Return the grid parameters, defaults when the section is missing."""
    if config.grid is None:
        logger.warning("No grid configuration found. Using default GridParams.")
        return GridParams()
    return config.grid


def configure_agent(config: SimulationConfig) -> AgentConfig:
    """Return the agent configuration, defaults when the section is missing."""
    if config.agent is None:
        logger.warning("No agent configuration found. Using default AgentConfig.")
        return AgentConfig()
    return config.agent


def configure_policy(config: SimulationConfig) -> PolicyConfig:
    """Return the policy configuration, defaults when the section is missing."""
    if config.policy is None:
        logger.warning("No policy configuration found. Using default PolicyConfig.")
        return PolicyConfig()
    return config.policy
